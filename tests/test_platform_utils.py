"""Tests for platform_utils module."""

import os
import stat
from unittest.mock import patch

from platform_utils import (
    is_linux, is_macos, is_windows, is_unix, platform_name,
    default_root_path, which_xvfb,
)


def test_at_most_one_platform_true():
    results = [is_linux(), is_macos(), is_windows()]
    assert sum(results) <= 1, f"Expected at most one True, got {results}"


def test_platform_name_matches_checks():
    name = platform_name()
    if name == "linux":
        assert is_linux() is True
    elif name == "macos":
        assert is_macos() is True
    elif name == "windows":
        assert is_windows() is True


def test_is_unix_false_when_mocked():
    with patch("platform_utils.os.name", "nt"):
        assert is_unix() is False


def test_default_root_path_exists():
    assert os.path.isdir(default_root_path())


def test_which_xvfb_in_home(tmp_path):
    assert which_xvfb(str(tmp_path)) is None
    binary = tmp_path / "Xvfb"
    binary.write_text("#!/bin/sh\n")
    binary.chmod(binary.stat().st_mode | stat.S_IXUSR)
    if is_unix():
        assert which_xvfb(str(tmp_path)) == str(binary)
