"""Exception hierarchy for presiterm."""

from __future__ import annotations


class PresitermError(Exception):
    """Base class for all presiterm failures."""


class ConfigError(PresitermError):
    """The configuration file could not be read or validated."""


class DeckLoadError(PresitermError):
    """The deck file could not be read or parsed. Raised before the loop starts."""


class RenderError(PresitermError):
    """A slide failed to render (missing file, decode failure, unknown language, spawn failure)."""

    def __init__(self, message: str, slide_index: int | None = None) -> None:
        super().__init__(message)
        self.slide_index = slide_index

    def __str__(self) -> str:
        base = super().__str__()
        if self.slide_index is None:
            return base
        return f"slide {self.slide_index + 1}: {base}"


class InputError(PresitermError):
    """Reading from the terminal failed while waiting for a key."""
