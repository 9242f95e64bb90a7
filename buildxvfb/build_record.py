"""
buildxvfb - Build Record

The minimal build model the display session hangs off: the node it runs
on, the live build log, attached actions looked up by type, and a per-build
``completed`` signal that listeners subscribe to explicitly.

Usage::

    build = Build(executor_number=1, number=42, node=Node(), log=BuildLog())
    build.on_completed(on_completed)
    ...
    build.complete()
"""

import io
import logging
import sys
import threading
from dataclasses import dataclass, field

from PyQt6.QtCore import QObject, Qt, pyqtSignal

from platform_utils import default_root_path, is_unix

logger = logging.getLogger("buildxvfb.build")


@dataclass(frozen=True)
class Node:
    """The machine a build executes on."""
    root_path: str = field(default_factory=default_root_path)
    unix: bool = field(default_factory=is_unix)
    name: str = "local"


class BuildLog:
    """Live, user-visible build output over a binary stream.

    Writes from the Xvfb output pumps and from the build thread may
    interleave, so every write holds a lock.
    """

    def __init__(self, stream=None):
        if stream is None:
            stream = sys.stdout.buffer if hasattr(sys.stdout, "buffer") else io.BytesIO()
        self._stream = stream
        self._lock = threading.Lock()

    def write(self, data: bytes) -> int:
        with self._lock:
            self._stream.write(data)
        return len(data)

    def flush(self):
        with self._lock:
            self._stream.flush()

    def print(self, message: str = "", end: str = "\n"):
        self.write(f"{message}{end}".encode("utf-8"))
        self.flush()

    def error(self, message: str):
        self.print(f"ERROR: {message}")


class BuildEvents(QObject):
    """Signals for one build's lifecycle."""

    completed = pyqtSignal(object)   # the Build that completed


class Build:
    """One execution of a job on an executor."""

    def __init__(self, executor_number: int, number: int, node: Node = None,
                 log: BuildLog = None, job_name: str = "build"):
        self.executor_number = executor_number
        self.number = number
        self.node = node or Node()
        self.log = log or BuildLog()
        self.job_name = job_name
        self.events = BuildEvents()
        self._actions = []
        self._completed = False

    @property
    def id(self) -> str:
        """Identifier used for node-local resources, e.g. ``build-42``."""
        return f"{self.job_name}-{self.number}"

    def add_action(self, action):
        self._actions.append(action)

    def get_action(self, action_type):
        """Return the first attached action of *action_type*, or None."""
        for action in self._actions:
            if isinstance(action, action_type):
                return action
        return None

    def on_completed(self, slot):
        """Subscribe *slot* to completion; it runs on the completing thread."""
        self.events.completed.connect(slot, type=Qt.ConnectionType.DirectConnection)

    def complete(self):
        """Mark the build finished and notify completion listeners once."""
        if self._completed:
            return
        self._completed = True
        logger.debug("Build %s completed", self.id)
        self.events.completed.emit(self)
