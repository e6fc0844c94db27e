"""Process execution boundary for command slides.

Runs synchronously and captures stdout in full. A different
:class:`ProcessRunner` (cancellable, streaming) can replace
:class:`SubprocessRunner` without touching the renderers.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Protocol, Sequence

from presiterm.errors import RenderError

logger = logging.getLogger(__name__)


class ProcessRunner(Protocol):
    def run(self, argv: Sequence[str]) -> bytes: ...


class SubprocessRunner:
    """Runs ``prefix + argv`` and returns its captured stdout.

    *prefix* lets every command go through a shell, e.g. ``["nu", "-c"]``
    or ``["sh", "-c"]``. The exit status is logged but not treated as a
    failure: whatever the command printed is what the slide shows.
    Failing to start the process raises :class:`RenderError`.
    """

    def __init__(self, prefix: Sequence[str] = (), cwd: str | None = None) -> None:
        self._prefix = list(prefix)
        self._cwd = cwd

    def run(self, argv: Sequence[str]) -> bytes:
        cmd = [*self._prefix, *argv]
        if not cmd:
            raise RenderError("command slide has no arguments")

        logger.debug("running %r", cmd)
        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
                cwd=self._cwd,
                check=False,
            )
        except OSError as exc:
            raise RenderError(f"could not run {cmd[0]!r}: {exc}") from exc

        if result.returncode != 0:
            logger.warning("command %r exited with status %d", cmd, result.returncode)
        return result.stdout
