"""
buildxvfb - Display Number Scanner

When Xvfb is started with ``-displayfd 2`` it picks a free display and
writes the number, followed by a newline, to stderr.  The scanner sits
between the process's stderr and the real sink: every byte is passed on
untouched, and the first line is parsed for the display number.
"""

import logging
import threading

logger = logging.getLogger("buildxvfb.xvfb.scanner")

_NEWLINE = ord("\n")
_DIGITS = range(ord("0"), ord("9") + 1)


class DisplayNumberScanner:
    """Binary pass-through stream that records a self-reported display number.

    Only the first line counts.  If it is not made of ASCII digits only,
    the number stays unknown for good.
    """

    def __init__(self, sink):
        self._sink = sink
        self._digits = bytearray()
        self._scanning = True
        self._display_number = None
        self._found = threading.Event()

    @property
    def display_number(self) -> int | None:
        """The reported display number, or None until a full line was seen."""
        return self._display_number

    def write(self, data: bytes) -> int:
        if self._scanning:
            self._scan(data)
        self._sink.write(data)
        return len(data)

    def flush(self):
        flush = getattr(self._sink, "flush", None)
        if flush is not None:
            flush()

    def wait_for_number(self, timeout: float | None = None) -> int | None:
        """Block until the number has been reported or *timeout* elapses."""
        self._found.wait(timeout)
        return self._display_number

    def _scan(self, data: bytes):
        for byte in data:
            if byte == _NEWLINE:
                self._scanning = False
                if self._digits:
                    self._display_number = int(self._digits.decode("ascii"))
                    logger.debug("Xvfb reported display :%d", self._display_number)
                    self._found.set()
                else:
                    logger.debug("Xvfb did not report a display number")
                return
            if byte not in _DIGITS:
                self._scanning = False
                logger.debug("Unexpected byte %r before display number", bytes([byte]))
                return
            self._digits.append(byte)
