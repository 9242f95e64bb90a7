"""
buildxvfb - Display Session Teardown

A session is stopped by exactly one of two triggers, chosen by its policy
when it was created:

- ``on_build_end``: the build's own tear-down hook (the default)
- ``on_build_completed``: the build's ``completed`` signal, so the display
  outlives post-build steps

Each trigger checks the policy and does nothing for sessions it doesn't
own, so both can be wired up unconditionally.
"""

import logging
import shutil

from xvfb.session import DisplaySession, TeardownPolicy

logger = logging.getLogger("buildxvfb.xvfb.lifecycle")


def shutdown_and_cleanup(session: DisplaySession, log):
    """Kill Xvfb and remove its framebuffer directory.

    A process that already exited, or a directory that is already gone,
    counts as done.
    """
    log.print(f"Xvfb stopping on {session.display}")
    if not session.process.kill(session.kill_wait):
        logger.debug("Xvfb for %s had already exited", session.display)
    try:
        shutil.rmtree(session.framebuffer_dir)
    except FileNotFoundError:
        logger.debug("Framebuffer dir %s already removed", session.framebuffer_dir)
    logger.info("Xvfb session %s torn down", session.display)


def on_build_end(session: DisplaySession, log) -> bool:
    """Tear-down hook of the build. Returns True if it stopped the session."""
    if session.policy is not TeardownPolicy.AT_BUILD_END:
        logger.debug("Leaving %s running until the build completes", session.display)
        return False
    shutdown_and_cleanup(session, log)
    return True


def on_build_completed(build, log=None) -> bool:
    """Completion listener. Returns True if it stopped the build's session."""
    session = build.get_action(DisplaySession)
    if session is None or session.policy is not TeardownPolicy.ON_BUILD_COMPLETION:
        return False
    shutdown_and_cleanup(session, log or build.log)
    return True


def _completion_slot(build):
    # an exception escaping a Qt slot aborts the process
    try:
        on_build_completed(build)
    except Exception as e:
        logger.exception("Xvfb cleanup for %s failed", build.id)
        try:
            build.log.error(f"Xvfb cleanup failed: {e}")
        except (OSError, ValueError):
            # the build log itself is gone, the logger line above stands
            pass


def attach(build):
    """Subscribe the completion trigger to *build*."""
    build.on_completed(_completion_slot)
