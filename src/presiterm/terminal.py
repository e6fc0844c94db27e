"""Terminal abstraction for raw-mode full-screen presentation.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal`` backed by
``sys.stdin``/``sys.stdout``. Raw mode is a scoped resource acquired with
:meth:`ProcessTerminal.raw_mode`. Leaving the ``with`` block on any path
restores the saved termios attributes and makes the cursor visible again.

Input is read with a blocking ``select``. SIGWINCH is turned into a wake-up
through a self-pipe so a resize interrupts the wait and the caller can
repaint at the new size.
"""

from __future__ import annotations

import codecs
import contextlib
import logging
import os
import select
import signal
import sys
import termios
import tty
from typing import IO, Iterator, Protocol

from presiterm.errors import InputError
from presiterm.stdin_buffer import StdinBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
CLEAR_SCREEN = "\x1b[2J\x1b[H"

# How long to wait for the rest of an escape sequence after a bare ESC.
ESCAPE_TIMEOUT = 0.05


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface the presenter drives. ``VirtualTerminal`` in the tests implements it too."""

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    @property
    def stdout(self) -> IO[str]: ...

    def write(self, data: str) -> None: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def raw_mode(self) -> contextlib.AbstractContextManager[None]: ...

    def poll_input(self) -> str | None:
        """Block until a key arrives. ``None`` means the wait was interrupted by a resize."""
        ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Concrete terminal on the controlling tty."""

    def __init__(
        self,
        stdin: IO[str] | None = None,
        stdout: IO[str] | None = None,
    ) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._buffer = StdinBuffer()
        # Holds back a multi-byte character split across two reads
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._original_termios: list | None = None
        self._prev_sigwinch_handler: signal.Handlers | None = None
        self._wake_r: int | None = None
        self._wake_w: int | None = None

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(self._stdout.fileno()).lines
        except (ValueError, OSError):
            return 24

    @property
    def stdout(self) -> IO[str]:
        return self._stdout

    # -- output ---------------------------------------------------------------

    def write(self, data: str) -> None:
        if not data:
            return
        self._stdout.write(data)
        self._stdout.flush()

    def hide_cursor(self) -> None:
        self.write(HIDE_CURSOR)

    def show_cursor(self) -> None:
        self.write(SHOW_CURSOR)

    # -- raw mode -------------------------------------------------------------

    @contextlib.contextmanager
    def raw_mode(self) -> Iterator[None]:
        """Put the tty in raw mode for the duration of the ``with`` block."""
        self._enter_raw_mode()
        try:
            yield
        finally:
            self._exit_raw_mode()

    def _enter_raw_mode(self) -> None:
        fd = self._stdin.fileno()
        self._original_termios = termios.tcgetattr(fd)
        tty.setraw(fd)

        self._wake_r, self._wake_w = os.pipe()
        os.set_blocking(self._wake_w, False)
        self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
        signal.signal(signal.SIGWINCH, self._on_sigwinch)
        logger.debug("entered raw mode on fd %d", fd)

    def _exit_raw_mode(self) -> None:
        try:
            self.show_cursor()
        finally:
            if self._prev_sigwinch_handler is not None:
                signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
                self._prev_sigwinch_handler = None

            for fd in (self._wake_r, self._wake_w):
                if fd is not None:
                    os.close(fd)
            self._wake_r = self._wake_w = None

            if self._original_termios is not None:
                termios.tcsetattr(self._stdin.fileno(), termios.TCSADRAIN, self._original_termios)
                self._original_termios = None
            self._buffer.clear()
            self._decoder.reset()
            logger.debug("restored cooked mode")

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        if self._wake_w is not None:
            try:
                os.write(self._wake_w, b"\0")
            except BlockingIOError:
                pass

    # -- input ----------------------------------------------------------------

    def poll_input(self) -> str | None:
        """Return the next complete key sequence, blocking indefinitely.

        Raises :class:`InputError` when stdin fails or reaches end of file.
        """
        seq = self._buffer.next_sequence()
        if seq is not None:
            return seq

        fd = self._stdin.fileno()
        while True:
            timeout = ESCAPE_TIMEOUT if self._buffer else None
            watched = [fd] if self._wake_r is None else [fd, self._wake_r]
            try:
                readable, _, _ = select.select(watched, [], [], timeout)
            except OSError as exc:
                raise InputError(f"waiting for input failed: {exc}") from exc

            if self._wake_r is not None and self._wake_r in readable:
                os.read(self._wake_r, 64)
                return None

            if not readable:
                # A bare ESC that nothing followed
                return self._buffer.flush()

            try:
                raw = os.read(fd, 1024)
            except OSError as exc:
                raise InputError(f"reading input failed: {exc}") from exc
            if not raw:
                raise InputError("input stream closed")

            text = self._decoder.decode(raw)
            if not text:
                continue
            self._buffer.feed(text)
            seq = self._buffer.next_sequence()
            if seq is not None:
                return seq
