"""Named Xvfb tool installations configured for a node."""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger("buildxvfb.xvfb")

XVFB_BINARY = "Xvfb"


@dataclass(frozen=True)
class XvfbInstallation:
    """An Xvfb install. An empty *home* means ``Xvfb`` is taken from PATH."""
    name: str
    home: str = ""

    def executable(self) -> str:
        if not self.home:
            return XVFB_BINARY
        return os.path.join(self.home, XVFB_BINARY)


def find_installation(installations, name: str | None) -> XvfbInstallation | None:
    """Return the installation called *name*, or None if there is none."""
    if name is None:
        return None
    for installation in installations:
        if installation.name == name:
            return installation
    logger.debug("No Xvfb installation named %r among %d", name, len(installations))
    return None
