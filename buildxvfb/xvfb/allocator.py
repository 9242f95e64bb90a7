"""
buildxvfb - Display Number Allocation

Decides which X display number a build's Xvfb is started on.  Builds on
the same node never share an executor at the same time, so the executor
and build numbers give a display number that doesn't collide without any
shared registry::

    decision = compute_display_number(None, False, executor_number=2,
                                      build_number=57)
    decision.display_number   # 20057

In auto mode Xvfb picks a free display itself and the number is only known
once it has been reported back (see ``display_scanner``).
"""

from dataclasses import dataclass

# Builds per executor that can be told apart before numbers start to overlap
EXECUTOR_STRIDE = 10000

DEFAULT_OFFSET = 1


def effective_offset(offset: int | None) -> int:
    """Return *offset*, or 1 when it is missing or not positive."""
    if offset is None or offset <= 0:
        return DEFAULT_OFFSET
    return offset


@dataclass(frozen=True)
class AllocationDecision:
    """Either a concrete display number or a request to let Xvfb choose."""

    display_number: int | None
    offset: int = DEFAULT_OFFSET

    @classmethod
    def defer(cls, offset: int = DEFAULT_OFFSET) -> "AllocationDecision":
        return cls(display_number=None, offset=offset)

    @property
    def is_deferred(self) -> bool:
        return self.display_number is None

    @property
    def display(self) -> str | None:
        """The ``:<n>`` display string, or None while deferred."""
        if self.is_deferred:
            return None
        return f":{self.display_number}"


def compute_display_number(
    explicit_number: int | None,
    auto_display: bool,
    executor_number: int,
    build_number: int,
    offset: int | None = DEFAULT_OFFSET,
) -> AllocationDecision:
    """Compute the display to request for a build.

    Args:
        explicit_number: Display number configured on the job, or None.
        auto_display: Let Xvfb pick the display (takes precedence).
        executor_number: Ordinal of the executor running the build.
        build_number: Ordinal of the build.
        offset: Display name offset. Carried on the decision, it does not
                change the executor/build arithmetic.

    Returns:
        An AllocationDecision; deferred when *auto_display* is set.
    """
    offset = effective_offset(offset)

    if auto_display:
        return AllocationDecision.defer(offset)

    if explicit_number is not None:
        return AllocationDecision(explicit_number, offset)

    return AllocationDecision(
        executor_number * EXECUTOR_STRIDE + build_number, offset
    )
