"""Deck file loading and the slide data model.

A deck is a JSON document. Each slide is an object tagged by ``type``::

    {"slides": [
        {"type": "text", "content": "Hello"},
        {"type": "markdown", "path": "intro.md"},
        {"type": "image", "path": "logo.png"},
        {"type": "code", "path": "main.rs", "language": "rs"},
        {"type": "command", "argv": ["ls", "-la"]}
    ]}

The externally tagged form is accepted as well, with ``files`` in place of
``slides`` and entries like ``{"Text": "Hello"}``,
``{"Code": ["main.rs", "rs"]}`` and ``{"Command": ["ls", "-la"]}``.

Relative paths resolve against the deck file's directory. Files are only
checked when a slide is rendered, never at load time.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from presiterm.errors import DeckLoadError

logger = logging.getLogger(__name__)


class _SlideBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class TextSlide(_SlideBase):
    type: Literal["text"] = "text"
    content: str


class MarkdownSlide(_SlideBase):
    type: Literal["markdown"] = "markdown"
    path: str


class ImageSlide(_SlideBase):
    type: Literal["image"] = "image"
    path: str


class CodeSlide(_SlideBase):
    type: Literal["code"] = "code"
    path: str
    language: str = Field(min_length=1)


class CommandSlide(_SlideBase):
    type: Literal["command"] = "command"
    argv: tuple[str, ...] = Field(min_length=1)


Slide = Annotated[
    Union[TextSlide, MarkdownSlide, ImageSlide, CodeSlide, CommandSlide],
    Field(discriminator="type"),
]

_PATH_SLIDES = (MarkdownSlide, ImageSlide, CodeSlide)


def _from_external_tag(entry: Any) -> Any:
    """Convert ``{"Code": ["a.rs", "rs"]}`` style entries to the tagged form."""
    if not isinstance(entry, dict) or len(entry) != 1 or "type" in entry:
        return entry

    tag, value = next(iter(entry.items()))
    kind = tag.lower()
    if kind == "text":
        return {"type": "text", "content": value}
    if kind in ("markdown", "image"):
        return {"type": kind, "path": value}
    if kind == "code" and isinstance(value, list) and len(value) == 2:
        return {"type": "code", "path": value[0], "language": value[1]}
    if kind == "command":
        return {"type": "command", "argv": value}
    return entry


class Deck(BaseModel):
    """Ordered, immutable sequence of slides."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    slides: tuple[Slide, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _accept_external_form(cls, data: Any) -> Any:
        if isinstance(data, dict) and "files" in data and "slides" not in data:
            data = {k: v for k, v in data.items() if k != "files"} | {"slides": data["files"]}
        if isinstance(data, dict) and isinstance(data.get("slides"), list):
            data = {**data, "slides": [_from_external_tag(s) for s in data["slides"]]}
        return data

    def __len__(self) -> int:
        return len(self.slides)

    def get(self, index: int) -> Slide | None:
        """Slide at *index*, or ``None`` past the end."""
        if 0 <= index < len(self.slides):
            return self.slides[index]
        return None

    def resolve_paths(self, base: Path) -> Deck:
        """Return a copy with relative slide paths made relative to *base*."""
        resolved = []
        for slide in self.slides:
            if isinstance(slide, _PATH_SLIDES) and not Path(slide.path).is_absolute():
                slide = slide.model_copy(update={"path": str(base / slide.path)})
            resolved.append(slide)
        return Deck(slides=tuple(resolved))


def parse_deck(data: Any) -> Deck:
    try:
        return Deck.model_validate(data)
    except ValidationError as exc:
        raise DeckLoadError(f"invalid deck: {exc}") from exc


def load_deck(path: str | Path) -> Deck:
    """Read, validate and path-resolve a deck file.

    Raises :class:`DeckLoadError` on any I/O, JSON or schema problem.
    """
    deck_path = Path(path)
    try:
        raw = deck_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DeckLoadError(f"cannot read deck {deck_path}: {exc.strerror or exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DeckLoadError(f"{deck_path}:{exc.lineno}:{exc.colno}: {exc.msg}") from exc

    deck = parse_deck(data).resolve_paths(deck_path.resolve().parent)
    logger.info("loaded %d slides from %s", len(deck), deck_path)
    return deck
