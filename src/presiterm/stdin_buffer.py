"""Split raw terminal input into complete key sequences.

A single ``read`` may return several keypresses, or only the first half of
an escape sequence. :class:`StdinBuffer` accumulates bytes and hands out
one complete sequence at a time. A lone ``ESC`` is reported as incomplete so
the caller can wait briefly for the rest of a sequence before deciding it
was the Escape key.
"""

from __future__ import annotations

from typing import Literal

ESC = "\x1b"

Completeness = Literal["complete", "incomplete", "not-escape"]


def sequence_status(data: str) -> Completeness:
    """Classify *data* as a complete escape sequence, a prefix of one, or plain input."""
    if not data.startswith(ESC):
        return "not-escape"

    if len(data) == 1:
        return "incomplete"

    kind = data[1]

    # CSI: ESC [ params final
    if kind == "[":
        if len(data) < 3:
            return "incomplete"
        if data.startswith(f"{ESC}[M"):
            return "complete" if len(data) >= 6 else "incomplete"
        return "complete" if 0x40 <= ord(data[-1]) <= 0x7E else "incomplete"

    # SS3: ESC O letter
    if kind == "O":
        return "complete" if len(data) >= 3 else "incomplete"

    # OSC / DCS / APC are terminated by ST or BEL
    if kind in ("]", "P", "_"):
        if data.endswith(f"{ESC}\\") or (kind == "]" and data.endswith("\x07")):
            return "complete"
        return "incomplete"

    # Meta: ESC followed by one character
    return "complete"


class StdinBuffer:
    """Accumulates decoded input and yields complete sequences in order."""

    def __init__(self) -> None:
        self._buffer: str = ""

    def __bool__(self) -> bool:
        return bool(self._buffer)

    @property
    def pending(self) -> str:
        return self._buffer

    def feed(self, data: str) -> None:
        self._buffer += data

    def next_sequence(self) -> str | None:
        """Pop the next complete sequence, or ``None`` if only a prefix is buffered."""
        if not self._buffer:
            return None

        if not self._buffer.startswith(ESC):
            seq, self._buffer = self._buffer[0], self._buffer[1:]
            return seq

        for end in range(1, len(self._buffer) + 1):
            candidate = self._buffer[:end]
            if sequence_status(candidate) == "complete":
                self._buffer = self._buffer[end:]
                return candidate
        return None

    def flush(self) -> str | None:
        """Pop whatever is buffered as a single sequence (used on timeout)."""
        if not self._buffer:
            return None
        if self._buffer.startswith(ESC):
            # A timed-out prefix: report the bare ESC, keep the rest
            seq, self._buffer = self._buffer[0], self._buffer[1:]
            return seq
        return self.next_sequence()

    def clear(self) -> None:
        self._buffer = ""
