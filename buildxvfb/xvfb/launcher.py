"""
buildxvfb - Xvfb Process Launcher

Builds the Xvfb command line and spawns the process with its output wired
up for the build:

- debug: stdout and stderr go straight to the live build log
- otherwise: both are kept in memory and only shown if startup fails

In auto mode stderr additionally passes through a ``DisplayNumberScanner``
so the display Xvfb chose can be read back.
"""

import io
import logging
import shlex
import subprocess
import threading

from timeouts import TIMEOUTS
from xvfb.display_scanner import DisplayNumberScanner
from xvfb.errors import XvfbLaunchError

logger = logging.getLogger("buildxvfb.xvfb.launcher")

# default screen configuration, also used when the job leaves it blank
DEFAULT_SCREEN = "1024x768x24"

# Xvfb writes its self-chosen display number to this descriptor
STDERR_FD = "2"

_CHUNK_SIZE = 4096


def build_command(
    binary: str,
    decision,
    screen: str | None,
    framebuffer_dir: str,
    additional_options: str | None = None,
) -> list[str]:
    """Return the Xvfb argv for *decision*.

    Raises:
        ValueError: If *additional_options* has unbalanced quotes.
    """
    cmd = [binary or "Xvfb"]

    if decision.is_deferred:
        cmd += ["-displayfd", STDERR_FD]
    else:
        cmd.append(decision.display)

    cmd += ["-screen", "0", screen or DEFAULT_SCREEN, "-fbdir", framebuffer_dir]

    if additional_options:
        cmd += shlex.split(additional_options)

    return cmd


class _OutputPump(threading.Thread):
    """Copies one pipe of the child into a sink until EOF."""

    def __init__(self, pipe, sink, name: str):
        super().__init__(name=name, daemon=True)
        self._pipe = pipe
        self._sink = sink

    def run(self):
        try:
            while True:
                chunk = self._pipe.read1(_CHUNK_SIZE)
                if not chunk:
                    break
                self._sink.write(chunk)
        except (OSError, ValueError) as e:
            # pipe closed underneath us while the process was being killed
            logger.debug("%s stopped: %s", self.name, e)
        finally:
            self._pipe.close()


class LaunchedProcess:
    """A running Xvfb child plus the plumbing that drains its output."""

    def __init__(self, popen, command, stdout_capture, stderr_capture,
                 scanner: DisplayNumberScanner | None, pumps):
        self._popen = popen
        self.command = command
        self.stdout_capture = stdout_capture
        self.stderr_capture = stderr_capture
        self.scanner = scanner
        self._pumps = pumps

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def returncode(self) -> int | None:
        return self._popen.poll()

    def is_alive(self) -> bool:
        return self._popen.poll() is None

    def wait(self, timeout: float | None = None) -> int:
        return self._popen.wait(timeout)

    def join_output(self, timeout: float = TIMEOUTS["pump_join_s"]):
        """Wait for the pumps to drain whatever the process wrote."""
        for pump in self._pumps:
            pump.join(timeout)

    def captured_output(self) -> bytes:
        """Everything captured in memory, stdout first."""
        return self.stdout_capture.getvalue() + self.stderr_capture.getvalue()

    def kill(self, wait: float = TIMEOUTS["kill_wait_s"]) -> bool:
        """Stop the process. Returns False if it had already exited."""
        if self._popen.poll() is not None:
            self.join_output()
            return False
        try:
            self._popen.terminate()
            try:
                self._popen.wait(timeout=wait)
            except subprocess.TimeoutExpired:
                logger.warning("Xvfb pid %d ignored SIGTERM, killing", self.pid)
                self._popen.kill()
                self._popen.wait()
        except ProcessLookupError:
            return False
        finally:
            self.join_output()
        return True


def launch(
    command: list[str],
    log,
    debug: bool = False,
    auto_display: bool = False,
    env: dict | None = None,
) -> LaunchedProcess:
    """Spawn Xvfb with *command*.

    Args:
        command: argv from ``build_command``.
        log: Live build log (binary ``write``).
        debug: Mirror Xvfb output to *log* instead of capturing it.
        auto_display: Route stderr through a DisplayNumberScanner.
        env: Environment for the child, defaults to the current one.

    Raises:
        XvfbLaunchError: If the process could not be started.
    """
    stdout_capture = io.BytesIO()
    stderr_capture = io.BytesIO()
    stdout_sink = log if debug else stdout_capture
    stderr_sink = log if debug else stderr_capture

    scanner = None
    if auto_display:
        scanner = DisplayNumberScanner(stderr_sink)
        stderr_sink = scanner

    logger.info("Starting Xvfb: %s", " ".join(command))
    try:
        popen = subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=env,
        )
    except OSError as e:
        raise XvfbLaunchError(f"Could not start {command[0]}: {e}") from e

    pumps = [
        _OutputPump(popen.stdout, stdout_sink, f"xvfb-{popen.pid}-stdout"),
        _OutputPump(popen.stderr, stderr_sink, f"xvfb-{popen.pid}-stderr"),
    ]
    for pump in pumps:
        pump.start()

    logger.debug("Xvfb running as pid %d", popen.pid)
    return LaunchedProcess(
        popen, command, stdout_capture, stderr_capture, scanner, pumps
    )
