"""
buildxvfb Test Fixtures

Shared pytest fixtures for builds, fake Xvfb processes, and fake Xvfb
installations.
"""

import io
import os
import stat
import sys
import pytest

# Ensure the buildxvfb modules are importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "buildxvfb"))


@pytest.fixture(scope="session")
def qt_app():
    """Create a single QCoreApplication instance for the entire test session."""
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


class FakeProcess:
    """Stands in for a LaunchedProcess; counts kills."""

    def __init__(self, alive=True, scanner=None, output=b""):
        self.alive = alive
        self.scanner = scanner
        self.output = output
        self.kill_calls = 0
        self.kill_waits = []
        self.pid = 4242
        self.returncode = None if alive else 1

    def is_alive(self):
        return self.alive

    def join_output(self, timeout=None):
        pass

    def captured_output(self):
        return self.output

    def kill(self, wait=None):
        self.kill_calls += 1
        self.kill_waits.append(wait)
        was_alive = self.alive
        self.alive = False
        return was_alive


@pytest.fixture
def fake_process():
    return FakeProcess()


@pytest.fixture
def log_stream():
    return io.BytesIO()


@pytest.fixture
def build(tmp_path, log_stream):
    """A Unix build whose framebuffer dirs land in tmp_path."""
    from build_record import Build, BuildLog, Node

    return Build(
        executor_number=2,
        number=57,
        node=Node(root_path=str(tmp_path), unix=True),
        log=BuildLog(log_stream),
        job_name="job",
    )


@pytest.fixture
def fake_xvfb_home(tmp_path):
    """Return a factory writing a shell script named ``Xvfb`` to a home dir.

    The script records its arguments to ``args.txt`` next to itself and then
    runs *body*.
    """

    def make(body: str) -> str:
        home = tmp_path / "xvfb-home"
        home.mkdir(exist_ok=True)
        script = home / "Xvfb"
        script.write_text(
            "#!/bin/sh\n"
            f"printf '%s\\n' \"$@\" > '{home / 'args.txt'}'\n"
            f"{body}\n"
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(home)

    return make
