"""Tests for the Xvfb readiness check."""

import io
import threading
import time

import pytest

from build_record import BuildLog
from conftest import FakeProcess
from xvfb.allocator import AllocationDecision
from xvfb.display_scanner import DisplayNumberScanner
from xvfb.errors import XvfbStartupError
from xvfb.readiness import await_ready


@pytest.fixture
def stream():
    return io.BytesIO()


@pytest.fixture
def log(stream):
    return BuildLog(stream)


def test_concrete_alive_returns_number(log):
    process = FakeProcess(alive=True)
    assert await_ready(process, 0, AllocationDecision(7), log) == 7


def test_concrete_waits_full_window(log):
    process = FakeProcess(alive=True)
    started = time.monotonic()
    await_ready(process, 0.2, AllocationDecision(7), log, poll_interval=0.01)
    assert time.monotonic() - started >= 0.2


def test_exited_process_flushes_captured_output(log, stream):
    process = FakeProcess(alive=False, output=b"Fatal server error\n")
    with pytest.raises(XvfbStartupError) as exc_info:
        await_ready(process, 0, AllocationDecision(7), log)
    output = stream.getvalue()
    assert b"Fatal server error" in output
    assert b"ERROR: Xvfb failed to start" in output
    assert exc_info.value.returncode == 1


def test_exited_process_in_debug_flushes_nothing(log, stream):
    process = FakeProcess(alive=False, output=b"Fatal server error\n")
    with pytest.raises(XvfbStartupError):
        await_ready(process, 0, AllocationDecision(7), log, debug=True)
    assert b"Fatal server error" not in stream.getvalue()


def test_exit_ends_wait_early(log):
    process = FakeProcess(alive=False)
    started = time.monotonic()
    with pytest.raises(XvfbStartupError):
        await_ready(process, 30, AllocationDecision(7), log)
    assert time.monotonic() - started < 5


def test_deferred_resolves_from_scanner(log):
    scanner = DisplayNumberScanner(io.BytesIO())
    scanner.write(b"13\n")
    process = FakeProcess(alive=True, scanner=scanner)
    assert await_ready(process, 0, AllocationDecision.defer(), log) == 13


def test_deferred_without_report_fails(log, stream):
    scanner = DisplayNumberScanner(io.BytesIO())
    scanner.write(b"no number here")
    process = FakeProcess(alive=True, scanner=scanner)
    with pytest.raises(XvfbStartupError):
        await_ready(process, 0, AllocationDecision.defer(), log,
                    displayfd_wait=0.05, poll_interval=0.01)
    assert b"did not report a display number" in stream.getvalue()


def test_concrete_decision_ignores_scanner(log):
    scanner = DisplayNumberScanner(io.BytesIO())
    scanner.write(b"13\n")
    process = FakeProcess(alive=True, scanner=scanner)
    assert await_ready(process, 0, AllocationDecision(7), log) == 7


def test_deferred_wakes_when_number_arrives(log):
    scanner = DisplayNumberScanner(io.BytesIO())
    process = FakeProcess(alive=True, scanner=scanner)
    writer = threading.Timer(0.1, scanner.write, args=(b"21\n",))
    started = time.monotonic()
    writer.start()
    try:
        number = await_ready(process, 0, AllocationDecision.defer(), log,
                             displayfd_wait=30, poll_interval=10)
    finally:
        writer.join()
    assert number == 21
    assert time.monotonic() - started < 5
