"""
buildxvfb - Centralized Logging Configuration

Sets up rotating file handlers for the tool.  Call ``setup_logging()``
once at startup (in main.py) before any module creates a logger.

All modules should use named loggers under the ``buildxvfb`` namespace::

    logger = logging.getLogger("buildxvfb.xvfb")
    logger.info("Xvfb started on %s", display)

Output meant for the person reading the build goes through ``BuildLog``,
not through these loggers.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_DIR = os.path.expanduser("~/.buildxvfb/logs/")


def setup_logging(verbose: bool = False, log_dir: str = LOG_DIR) -> None:
    """Configure the root ``buildxvfb`` logger with a rotating file handler.

    - Log file: ``~/.buildxvfb/logs/buildxvfb.log``
    - Rotation: 5 MB per file, 3 backup copies
    - Console: WARNING and above to stderr (DEBUG with *verbose*)
    """
    os.makedirs(log_dir, exist_ok=True)

    root = logging.getLogger("buildxvfb")
    # Avoid adding handlers twice if called more than once
    if root.handlers:
        return
    root.setLevel(logging.DEBUG)

    # --- Rotating file handler (all levels) ---
    log_path = os.path.join(log_dir, "buildxvfb.log")
    fh = RotatingFileHandler(
        log_path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(name)s] %(threadName)s %(levelname)s: %(message)s"
        )
    )
    root.addHandler(fh)

    # --- Console handler ---
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.WARNING)
    ch.setFormatter(
        logging.Formatter("[%(name)s] %(levelname)s: %(message)s")
    )
    root.addHandler(ch)
