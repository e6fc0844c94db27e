"""Tests for presiterm.process -- running command slides."""

from __future__ import annotations

import pytest

from presiterm.errors import RenderError
from presiterm.process import SubprocessRunner


class TestSubprocessRunner:
    def test_captures_stdout(self):
        assert SubprocessRunner().run(["echo", "hi"]) == b"hi\n"

    def test_prefix_prepended(self):
        assert SubprocessRunner(prefix=["sh", "-c"]).run(["echo a b"]) == b"a b\n"

    def test_stderr_discarded(self):
        assert SubprocessRunner().run(["sh", "-c", "echo err >&2"]) == b""

    def test_nonzero_exit_still_returns_output(self):
        assert SubprocessRunner().run(["sh", "-c", "echo out; exit 3"]) == b"out\n"

    def test_cwd(self, tmp_path):
        (tmp_path / "marker.txt").write_text("x")
        assert SubprocessRunner(cwd=str(tmp_path)).run(["ls"]) == b"marker.txt\n"

    def test_missing_program(self):
        with pytest.raises(RenderError, match="could not run"):
            SubprocessRunner().run(["definitely-not-a-real-program-xyz"])

    def test_empty_argv(self):
        with pytest.raises(RenderError):
            SubprocessRunner().run([])
