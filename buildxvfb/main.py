#!/usr/bin/env python3
"""buildxvfb: run a build step inside a private Xvfb display.

    buildxvfb --executor 2 --build-number 57 -- pytest tests/gui
    buildxvfb --auto-display --screen 1920x1080x24 -- ./run-ui-tests.sh
"""

import argparse
import json
import logging
import os
import subprocess
import sys

# Add the buildxvfb directory to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from build_record import Build, BuildLog, Node
from logging_config import setup_logging
from platform_utils import default_root_path
from xvfb.errors import XvfbConfigurationError, XvfbError
from xvfb.installation import XvfbInstallation
from xvfb.launcher import DEFAULT_SCREEN
from xvfb.wrapper import XvfbBuildWrapper

logger = logging.getLogger("buildxvfb.main")

DEFAULT_INSTALLATION = "default"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="buildxvfb",
        description="Run a command with DISPLAY set to a private Xvfb display.",
    )
    parser.add_argument("--config", help="JSON file with the job's Xvfb settings")
    parser.add_argument("--xvfb-home", default="",
                        help="Directory containing Xvfb (default: search PATH)")
    parser.add_argument("--display", type=int, dest="display_name",
                        help="Explicit display number")
    parser.add_argument("--auto-display", action="store_true", dest="auto_display_name",
                        help="Let Xvfb pick a free display number")
    parser.add_argument("--screen", help=f"WIDTHxHEIGHTxDEPTH (default {DEFAULT_SCREEN})")
    parser.add_argument("--timeout", type=int,
                        help="Seconds to wait for Xvfb to start (default 0)")
    parser.add_argument("--offset", type=int, dest="display_name_offset",
                        help="Display name offset (default 1)")
    parser.add_argument("--options", dest="additional_options",
                        help="Additional Xvfb arguments")
    parser.add_argument("--debug", action="store_true", help="Show Xvfb output live")
    parser.add_argument("--shutdown-with-build", action="store_true",
                        help="Keep Xvfb running until the build completes")
    parser.add_argument("--executor", type=int, default=0, dest="executor_number")
    parser.add_argument("--build-number", type=int, default=1)
    parser.add_argument("--job-name", default="build")
    parser.add_argument("--root", default=default_root_path(),
                        help="Directory for framebuffer directories")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("command", nargs=argparse.REMAINDER)
    args = parser.parse_args(argv)
    if args.command and args.command[0] == "--":
        args.command = args.command[1:]
    if not args.command:
        parser.error("no command given")
    return args


def load_config(args: argparse.Namespace) -> dict:
    """Merge the JSON config file with command-line settings (CLI wins)."""
    config = {}
    if args.config:
        with open(args.config, encoding="utf-8") as f:
            config.update(json.load(f))
    config.setdefault("installation_name", DEFAULT_INSTALLATION)

    for key in ("display_name", "screen", "timeout", "display_name_offset",
                "additional_options"):
        value = getattr(args, key)
        if value is not None:
            config[key] = value
    for key in ("auto_display_name", "debug", "shutdown_with_build"):
        if getattr(args, key):
            config[key] = True
    return config


def run(args: argparse.Namespace) -> int:
    installations = [XvfbInstallation(DEFAULT_INSTALLATION, args.xvfb_home)]
    build = Build(
        executor_number=args.executor_number,
        number=args.build_number,
        node=Node(root_path=args.root),
        log=BuildLog(),
        job_name=args.job_name,
    )

    try:
        wrapper = XvfbBuildWrapper.from_config(load_config(args), installations)
    except XvfbConfigurationError as e:
        logger.error("Xvfb configuration for %s rejected: %s", build.id, e)
        build.log.error(str(e))
        build.complete()
        return 1

    try:
        environment = wrapper.set_up(build)
    except XvfbError as e:
        # set_up already wrote the explanatory line to the build log
        logger.error("Xvfb set-up for %s failed: %s", build.id, e)
        build.complete()
        return 1

    env = dict(os.environ)
    environment.build_env_vars(env)
    try:
        logger.info("Running %s with DISPLAY=%s", args.command, env.get("DISPLAY"))
        returncode = subprocess.call(args.command, env=env)
    except OSError as e:
        build.log.error(f"Could not run {args.command[0]}: {e}")
        returncode = 127
    finally:
        environment.tear_down(build, build.log)
        build.complete()
    return returncode


def main(argv=None):
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
