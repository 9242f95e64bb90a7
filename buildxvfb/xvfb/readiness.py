"""
buildxvfb - Xvfb Readiness Check

After spawn, the build waits for the startup window and then decides,
once, whether the display is usable.  The wait is polled so that an Xvfb
that dies early, or one that reports its display number early in auto
mode, ends the wait straight away.
"""

import logging
import time

from timeouts import TIMEOUTS
from xvfb.errors import XvfbStartupError

logger = logging.getLogger("buildxvfb.xvfb.readiness")


def _wait(process, deadline: float, scanner, poll_interval: float):
    """Poll until *deadline*, the process exits, or the scanner has a number."""
    while True:
        if not process.is_alive():
            return
        if scanner is not None and scanner.display_number is not None:
            return
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return
        step = min(poll_interval, remaining)
        if scanner is not None:
            # wakes as soon as the number arrives, liveness is rechecked per step
            scanner.wait_for_number(step)
        else:
            time.sleep(step)


def await_ready(
    process,
    timeout: float,
    decision,
    log,
    debug: bool = False,
    displayfd_wait: float = TIMEOUTS["displayfd_wait_s"],
    poll_interval: float = TIMEOUTS["readiness_poll_s"],
) -> int:
    """Wait for Xvfb to come up and return the display number it serves.

    Args:
        process: The ``LaunchedProcess`` to watch.
        timeout: Startup window in seconds; 0 checks once without waiting.
        decision: The AllocationDecision the process was started with.
        log: Live build log; captured output is flushed here on failure.
        debug: Output already went to the log, so nothing is flushed.
        displayfd_wait: Minimum window for Xvfb to report a deferred number.
        poll_interval: Seconds between liveness checks.

    Raises:
        XvfbStartupError: If the process exited, or was alive but never
            reported a display number in auto mode.
    """
    scanner = process.scanner if decision.is_deferred else None
    window = timeout
    if scanner is not None:
        window = max(timeout, displayfd_wait)

    _wait(process, time.monotonic() + window, scanner, poll_interval)

    if not process.is_alive():
        returncode = process.returncode
        process.join_output()
        if not debug:
            log.write(process.captured_output())
        log.print()
        log.error(f"Xvfb failed to start (exit code {returncode})")
        raise XvfbStartupError("Xvfb exited during startup", returncode)

    if scanner is None:
        logger.info("Xvfb pid %d alive on %s", process.pid, decision.display)
        return decision.display_number

    display_number = scanner.display_number
    if display_number is None:
        log.error(f"Xvfb did not report a display number within {window}s")
        raise XvfbStartupError("Xvfb never reported its display number")

    logger.info("Xvfb pid %d picked display :%d", process.pid, display_number)
    return display_number
