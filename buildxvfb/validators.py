"""
buildxvfb - Job Configuration Validation

Validation for the Xvfb settings of a job.  Each function returns a list
of ``ValidationError`` instances (empty list means valid).
"""

import re

_SCREEN_RE = re.compile(r"^\d+x\d+x\d+$")


class ValidationError:
    """Represents a single validation failure."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message

    def __repr__(self):
        return f"ValidationError({self.field!r}, {self.message!r})"

    def __str__(self):
        return f"{self.field}: {self.message}"


def _as_int(value):
    """Return *value* as an int, None when blank, or raise ValueError."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, str):
        if not value.strip():
            return None
        return int(value.strip())
    if isinstance(value, int):
        return value
    raise ValueError(value)


def validate_optional_non_negative_integer(field: str, value) -> list[ValidationError]:
    """Blank is fine, otherwise *value* must be an integer >= 0."""
    try:
        number = _as_int(value)
    except ValueError:
        return [ValidationError(field, "Not a number")]
    if number is not None and number < 0:
        return [ValidationError(field, "Not a non-negative number")]
    return []


def validate_optional_positive_integer(field: str, value) -> list[ValidationError]:
    """Blank is fine, otherwise *value* must be an integer > 0."""
    try:
        number = _as_int(value)
    except ValueError:
        return [ValidationError(field, "Not a number")]
    if number is not None and number <= 0:
        return [ValidationError(field, "Not a positive number")]
    return []


def validate_screen(screen) -> list[ValidationError]:
    """Blank is fine (the default screen is used), otherwise ``WxHxD``."""
    if screen is None or not str(screen).strip():
        return []
    if not _SCREEN_RE.match(str(screen).strip()):
        return [
            ValidationError("screen", "Screen must be WIDTHxHEIGHTxDEPTH, e.g. 1024x768x24")
        ]
    return []


def validate_wrapper_config(config: dict) -> list[ValidationError]:
    """Validate the Xvfb settings of a job configuration dict."""
    errors = []
    errors += validate_optional_non_negative_integer("display_name", config.get("display_name"))
    errors += validate_optional_positive_integer(
        "display_name_offset", config.get("display_name_offset")
    )
    errors += validate_optional_non_negative_integer("timeout", config.get("timeout"))
    errors += validate_screen(config.get("screen"))
    return errors