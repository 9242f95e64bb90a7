"""buildxvfb - Xvfb display sessions for builds."""

from xvfb.errors import (
    XvfbError, XvfbConfigurationError, XvfbLaunchError, XvfbStartupError,
)
from xvfb.session import DisplaySession, TeardownPolicy
from xvfb.wrapper import XvfbBuildWrapper, XvfbEnvironment

__all__ = [
    "XvfbError", "XvfbConfigurationError", "XvfbLaunchError", "XvfbStartupError",
    "DisplaySession", "TeardownPolicy", "XvfbBuildWrapper", "XvfbEnvironment",
]
