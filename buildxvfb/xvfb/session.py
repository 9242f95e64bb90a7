"""The display session a successful Xvfb launch attaches to its build."""

import enum
from dataclasses import dataclass

from timeouts import TIMEOUTS
from xvfb.launcher import LaunchedProcess


class TeardownPolicy(enum.Enum):
    """Which trigger is allowed to stop Xvfb for a session."""
    AT_BUILD_END = "at_build_end"
    ON_BUILD_COMPLETION = "on_build_completion"


@dataclass(frozen=True)
class DisplaySession:
    """A running Xvfb owned by one build.

    The process and framebuffer dir belong to the session alone; only
    ``lifecycle.shutdown_and_cleanup`` may stop or remove them.
    ``shutdown_with_build`` keeps Xvfb around for post-build steps and
    hands teardown to the build-completion notification.
    """
    display_number: int
    process: LaunchedProcess
    framebuffer_dir: str
    shutdown_with_build: bool = False
    kill_wait: float = TIMEOUTS["kill_wait_s"]

    @property
    def display(self) -> str:
        return f":{self.display_number}"

    @property
    def policy(self) -> TeardownPolicy:
        if self.shutdown_with_build:
            return TeardownPolicy.ON_BUILD_COMPLETION
        return TeardownPolicy.AT_BUILD_END
