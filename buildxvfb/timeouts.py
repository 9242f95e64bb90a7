"""
buildxvfb - Configuration-Driven Timeouts

Centralized timeout defaults with per-job override support.
Usage: ``get_timeout(config, "displayfd_wait_s")`` returns the configured or
default value.
"""


# Default timeouts, keys describe the operation and unit
TIMEOUTS = {
    "xvfb_startup_s": 0,          # Readiness window when the job sets none
    "displayfd_wait_s": 10,       # Min wait for Xvfb to report its display
    "readiness_poll_s": 0.05,     # Interval between liveness checks
    "kill_wait_s": 5,             # Grace period between SIGTERM and SIGKILL
    "pump_join_s": 1,             # Wait for output pumps after process exit
}


def get_timeout(config, key: str) -> int | float:
    """Get a timeout value, checking the job configuration first.

    Args:
        config: Job configuration dict (or None for defaults only).
        key: Timeout key from TIMEOUTS dict.

    Returns:
        The configured timeout value, or the default from TIMEOUTS.

    Raises:
        KeyError: If key is not in TIMEOUTS.
    """
    if key not in TIMEOUTS:
        raise KeyError(f"Unknown timeout key: {key!r}")
    if config is not None:
        override = config.get(f"timeout_{key}")
        if override is not None:
            try:
                value = float(override)
            except (ValueError, TypeError):
                return TIMEOUTS[key]
            if value < 0:
                return TIMEOUTS[key]
            if isinstance(TIMEOUTS[key], int) and value.is_integer():
                return int(value)
            return value
    return TIMEOUTS[key]
