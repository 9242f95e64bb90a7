"""Exceptions raised while bringing up an Xvfb display for a build."""


class XvfbError(Exception):
    """Base class for fatal Xvfb session errors. The build should abort."""


class XvfbConfigurationError(XvfbError):
    """No usable Xvfb installation, or the job configuration is invalid."""


class XvfbLaunchError(XvfbError):
    """The Xvfb process could not be spawned."""


class XvfbStartupError(XvfbError):
    """Xvfb exited during startup or never reported its display number."""

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode
