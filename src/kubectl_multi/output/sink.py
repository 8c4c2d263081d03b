"""Shared output sink."""

from __future__ import annotations

import sys
import threading
from typing import TextIO


class OutputSink:
    """Line-oriented writer shared by every cluster task.

    The sink is the only resource shared between concurrent cluster tasks.
    Writes are serialized so lines from different clusters never interleave
    mid-line.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def write_line(self, line: str = "") -> None:
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()

    def write_lines(self, lines: list[str]) -> None:
        """Write several lines as one uninterrupted block."""
        if not lines:
            return
        with self._lock:
            self._stream.write("\n".join(lines) + "\n")
            self._stream.flush()

    def write(self, text: str) -> None:
        """Write raw text, adding a trailing newline if missing."""
        if not text:
            return
        if not text.endswith("\n"):
            text += "\n"
        with self._lock:
            self._stream.write(text)
            self._stream.flush()
