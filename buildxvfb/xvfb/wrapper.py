"""
buildxvfb - Xvfb Build Wrapper

Runs a build inside an Xvfb display:

    wrapper = XvfbBuildWrapper.from_config(job_config, installations)
    environment = wrapper.set_up(build)     # starts Xvfb, attaches session
    environment.build_env_vars(env)         # env["DISPLAY"] = ":20057"
    ... run build steps ...
    environment.tear_down(build, build.log)
    build.complete()

Teardown happens in ``tear_down`` unless ``shutdown_with_build`` is set, in
which case it waits for ``build.complete()``.
"""

import logging
import os
import shutil
import tempfile

from platform_utils import platform_name, which_xvfb
from timeouts import TIMEOUTS, get_timeout
from validators import validate_wrapper_config
from xvfb import lifecycle
from xvfb.allocator import DEFAULT_OFFSET, compute_display_number, effective_offset
from xvfb.errors import XvfbConfigurationError, XvfbError
from xvfb.installation import find_installation
from xvfb.launcher import DEFAULT_SCREEN, build_command, launch
from xvfb.readiness import await_ready
from xvfb.session import DisplaySession

logger = logging.getLogger("buildxvfb.xvfb")

FRAMEBUFFER_SUFFIX = "xvfb"


class XvfbEnvironment:
    """What ``set_up`` hands back to the build: env vars and a tear-down hook.

    Without a session (non-Unix node) it publishes nothing.
    """

    def __init__(self, session: DisplaySession | None = None):
        self.session = session

    def build_env_vars(self, env: dict):
        if self.session is not None:
            env["DISPLAY"] = self.session.display

    def tear_down(self, build, log) -> bool:
        if self.session is not None:
            lifecycle.on_build_end(self.session, log)
        return True


class XvfbBuildWrapper:
    """Per-job Xvfb settings and the set-up that starts the display."""

    def __init__(
        self,
        installation_name: str | None = None,
        display_name: int | None = None,
        screen: str | None = DEFAULT_SCREEN,
        debug: bool = False,
        timeout: int = TIMEOUTS["xvfb_startup_s"],
        display_name_offset: int = DEFAULT_OFFSET,
        additional_options: str | None = None,
        shutdown_with_build: bool = False,
        auto_display_name: bool = False,
        installations=(),
        displayfd_wait: float = TIMEOUTS["displayfd_wait_s"],
        poll_interval: float = TIMEOUTS["readiness_poll_s"],
        kill_wait: float = TIMEOUTS["kill_wait_s"],
    ):
        """
        Args:
            installation_name: Name of the Xvfb installation to run.
            display_name: Explicit display number; None to derive one.
            screen: Screen as WxHxD; blank means 1024x768x24.
            debug: Show Xvfb output live in the build log.
            timeout: Seconds to wait for Xvfb to start, 0 for no wait.
            display_name_offset: Display name offset, non-positive means 1.
            additional_options: Extra Xvfb arguments, split on whitespace.
            shutdown_with_build: Keep Xvfb for post-build steps and stop it
                                 when the build completes.
            auto_display_name: Let Xvfb pick the display number.
            installations: Xvfb installations known on this node.
            displayfd_wait: Minimum seconds to wait for a self-chosen display.
            poll_interval: Seconds between readiness checks.
            kill_wait: Seconds between SIGTERM and SIGKILL at teardown.
        """
        self.installation_name = installation_name
        self.display_name = display_name
        self.screen = screen if screen else DEFAULT_SCREEN
        self.debug = bool(debug)
        self.timeout = timeout or 0
        self.display_name_offset = effective_offset(display_name_offset)
        self.additional_options = additional_options
        self.shutdown_with_build = bool(shutdown_with_build)
        self.auto_display_name = bool(auto_display_name)
        self.installations = list(installations)
        self.displayfd_wait = displayfd_wait
        self.poll_interval = poll_interval
        self.kill_wait = kill_wait

    @classmethod
    def from_config(cls, config: dict, installations=()) -> "XvfbBuildWrapper":
        """Build a wrapper from a job configuration dict.

        Raises:
            XvfbConfigurationError: If any setting fails validation.
        """
        errors = validate_wrapper_config(config)
        if errors:
            raise XvfbConfigurationError(
                "Invalid Xvfb configuration: " + "; ".join(str(e) for e in errors)
            )

        def number(key, default=None):
            value = config.get(key)
            if value is None or str(value).strip() == "":
                return default
            return int(value)

        return cls(
            installation_name=config.get("installation_name"),
            display_name=number("display_name"),
            screen=config.get("screen"),
            debug=config.get("debug", False),
            timeout=number("timeout", TIMEOUTS["xvfb_startup_s"]),
            display_name_offset=number("display_name_offset", DEFAULT_OFFSET),
            additional_options=config.get("additional_options"),
            shutdown_with_build=config.get("shutdown_with_build", False),
            auto_display_name=config.get("auto_display_name", False),
            installations=installations,
            displayfd_wait=get_timeout(config, "displayfd_wait_s"),
            poll_interval=get_timeout(config, "readiness_poll_s"),
            kill_wait=get_timeout(config, "kill_wait_s"),
        )

    def get_installation(self):
        return find_installation(self.installations, self.installation_name)

    def set_up(self, build, env: dict | None = None) -> XvfbEnvironment:
        """Start Xvfb for *build* and attach the session to it.

        Raises:
            XvfbError: Any fatal startup condition. The build should abort.
        """
        if not build.node.unix:
            build.log.print("Xvfb is only supported on Unix nodes, skipping")
            logger.info(
                "Node %s is not Unix (%s), no Xvfb for %s",
                build.node.name, platform_name(), build.id,
            )
            return XvfbEnvironment()

        session = self._launch_xvfb(build, env)

        build.add_action(session)
        lifecycle.attach(build)
        return XvfbEnvironment(session)

    def make_build_variables(self, build, variables: dict):
        session = build.get_action(DisplaySession)
        if session is not None:
            variables["DISPLAY"] = session.display

    def _launch_xvfb(self, build, env) -> DisplaySession:
        decision = compute_display_number(
            self.display_name,
            self.auto_display_name,
            build.executor_number,
            build.number,
            self.display_name_offset,
        )

        installation = self.get_installation()
        if installation is None:
            build.log.error("No Xvfb installations configured")
            raise XvfbConfigurationError(
                f"No Xvfb installation named {self.installation_name!r}"
            )

        if which_xvfb(installation.home) is None:
            build.log.error(f"Xvfb not found in installation {installation.name!r}")
            raise XvfbConfigurationError(
                f"No usable Xvfb binary for installation {installation.name!r}"
            )

        framebuffer_dir = tempfile.mkdtemp(
            prefix=build.id, suffix=FRAMEBUFFER_SUFFIX, dir=build.node.root_path
        )

        try:
            command = build_command(
                installation.executable(),
                decision,
                self.screen,
                framebuffer_dir,
                self.additional_options,
            )
            build.log.print("Xvfb starting")
            process = launch(
                command,
                build.log,
                debug=self.debug,
                auto_display=decision.is_deferred,
                env=env,
            )
        except ValueError as e:
            shutil.rmtree(framebuffer_dir, ignore_errors=True)
            build.log.error(f"Bad additional Xvfb options: {e}")
            raise XvfbConfigurationError(f"Bad additional Xvfb options: {e}") from e
        except XvfbError as e:
            shutil.rmtree(framebuffer_dir, ignore_errors=True)
            build.log.error(f"Xvfb could not be started: {e}")
            raise

        try:
            display_number = await_ready(
                process,
                self.timeout,
                decision,
                build.log,
                debug=self.debug,
                displayfd_wait=self.displayfd_wait,
                poll_interval=self.poll_interval,
            )
        except BaseException as e:
            if not isinstance(e, XvfbError):
                build.log.error(f"Xvfb startup interrupted: {e!r}")
            process.kill(self.kill_wait)
            shutil.rmtree(framebuffer_dir, ignore_errors=True)
            raise

        logger.info(
            "Xvfb for %s on :%d, framebuffer in %s",
            build.id, display_number, os.path.basename(framebuffer_dir),
        )
        return DisplaySession(
            display_number,
            process,
            framebuffer_dir,
            self.shutdown_with_build,
            kill_wait=self.kill_wait,
        )
