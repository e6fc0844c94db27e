"""Virtual terminal for testing -- implements the Terminal protocol in-memory.

Satisfies the ``presiterm.terminal.Terminal`` protocol without any real
I/O. Output is captured for assertions and input is scripted up front:
each queued item is returned by one ``poll_input`` call, with ``None``
standing for a resize wake-up.
"""

from __future__ import annotations

import contextlib
import io
from collections import deque
from typing import IO, Iterator

from presiterm.errors import InputError


class _SharedStream(io.StringIO):
    """StringIO that also appends each write to another sink."""

    def __init__(self, sink: list[str]) -> None:
        super().__init__()
        self._sink = sink

    def write(self, s: str) -> int:
        self._sink.append(s)
        return super().write(s)


class VirtualTerminal:
    """In-memory terminal that records all writes for test inspection.

    Parameters
    ----------
    rows:
        Number of terminal rows (height).
    columns:
        Number of terminal columns (width).
    shared_stdout:
        When true, text printed to :attr:`stdout` also lands in the write
        log, the way a real terminal shows both on one screen.
    """

    def __init__(self, rows: int = 24, columns: int = 80, shared_stdout: bool = False) -> None:
        self._rows = rows
        self._columns = columns
        self._buffer: list[str] = []
        self._input: deque[str | None] = deque()
        self._resizes: deque[tuple[int, int]] = deque()
        self._stdout = _SharedStream(self._buffer) if shared_stdout else io.StringIO()
        self._cursor_visible = True
        self.raw = False
        self.raw_entered = 0

    # -- Terminal protocol: properties --------------------------------------

    @property
    def rows(self) -> int:
        return self._rows

    @rows.setter
    def rows(self, value: int) -> None:
        self._rows = value

    @property
    def columns(self) -> int:
        return self._columns

    @columns.setter
    def columns(self, value: int) -> None:
        self._columns = value

    @property
    def stdout(self) -> IO[str]:
        """Stream that command slides print to directly."""
        return self._stdout

    @property
    def cursor_visible(self) -> bool:
        return self._cursor_visible

    # -- Terminal protocol: output ------------------------------------------

    def write(self, data: str) -> None:
        """Append *data* to the internal buffer."""
        self._buffer.append(data)

    def hide_cursor(self) -> None:
        self._cursor_visible = False
        self.write("\x1b[?25l")

    def show_cursor(self) -> None:
        self._cursor_visible = True
        self.write("\x1b[?25h")

    # -- Terminal protocol: raw mode and input ------------------------------

    @contextlib.contextmanager
    def raw_mode(self) -> Iterator[None]:
        self.raw = True
        self.raw_entered += 1
        try:
            yield
        finally:
            self.show_cursor()
            self.raw = False

    def poll_input(self) -> str | None:
        if not self._input:
            raise InputError("input stream closed")
        item = self._input.popleft()
        if item is None and self._resizes:
            self._rows, self._columns = self._resizes.popleft()
        return item

    # -- Test helpers -------------------------------------------------------

    @property
    def output(self) -> str:
        """Return everything written to the terminal as a single string."""
        return "".join(self._buffer)

    @property
    def write_count(self) -> int:
        """Return the number of individual ``write`` calls made."""
        return len(self._buffer)

    @property
    def printed(self) -> str:
        """Text written to :attr:`stdout`, bypassing the screen buffer."""
        return self._stdout.getvalue()

    def clear_buffer(self) -> None:
        """Discard all recorded output."""
        self._buffer.clear()

    def queue_input(self, *data: str) -> None:
        """Script key presses for later ``poll_input`` calls."""
        self._input.extend(data)

    def queue_resize(self, rows: int, columns: int) -> None:
        """Script a resize: the next poll returns ``None`` at the new size."""
        self._resizes.append((rows, columns))
        self._input.append(None)
