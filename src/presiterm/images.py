"""Image decoding and terminal image protocols.

Decoding does not rasterize anything: the terminal does that. It validates
the payload by sniffing the header of the common web formats, measures the
pixel size and wraps the bytes in a :class:`Texture`. The screen buffer
later turns a texture into a kitty or iTerm2 escape sequence, or into a
one-line text fallback when the terminal speaks neither protocol.
"""

from __future__ import annotations

import base64
import os
import struct
from dataclasses import dataclass
from typing import Literal, Protocol

from presiterm.errors import RenderError

ImageProtocol = Literal["kitty", "iterm2"] | None


@dataclass(frozen=True)
class TerminalCapabilities:
    images: ImageProtocol
    true_color: bool


@dataclass(frozen=True)
class ImageDimensions:
    width_px: int
    height_px: int


@dataclass(frozen=True, eq=False)
class Texture:
    """Opaque handle to a decoded image. Compared by identity."""

    data: bytes
    mime_type: str
    dimensions: ImageDimensions

    @property
    def base64_data(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class ImageDecoder(Protocol):
    def decode(self, raw: bytes) -> Texture: ...


# ---------------------------------------------------------------------------
# Capability detection
# ---------------------------------------------------------------------------

_cached_capabilities: TerminalCapabilities | None = None


def detect_capabilities() -> TerminalCapabilities:
    term_program = os.environ.get("TERM_PROGRAM", "").lower()
    term = os.environ.get("TERM", "").lower()
    color_term = os.environ.get("COLORTERM", "").lower()

    if os.environ.get("KITTY_WINDOW_ID") or term_program == "kitty":
        return TerminalCapabilities(images="kitty", true_color=True)

    if term_program == "ghostty" or "ghostty" in term or os.environ.get("GHOSTTY_RESOURCES_DIR"):
        return TerminalCapabilities(images="kitty", true_color=True)

    if os.environ.get("WEZTERM_PANE") or term_program == "wezterm":
        return TerminalCapabilities(images="kitty", true_color=True)

    if os.environ.get("ITERM_SESSION_ID") or term_program == "iterm.app":
        return TerminalCapabilities(images="iterm2", true_color=True)

    return TerminalCapabilities(images=None, true_color=color_term in ("truecolor", "24bit"))


def get_capabilities() -> TerminalCapabilities:
    global _cached_capabilities
    if _cached_capabilities is None:
        _cached_capabilities = detect_capabilities()
    return _cached_capabilities


def set_capabilities(caps: TerminalCapabilities | None) -> None:
    """Override (or with ``None`` reset) the cached capabilities."""
    global _cached_capabilities
    _cached_capabilities = caps


# ---------------------------------------------------------------------------
# Header sniffing
# ---------------------------------------------------------------------------


def _png_dimensions(data: bytes) -> ImageDimensions | None:
    if len(data) < 24 or data[0:8] != b"\x89PNG\r\n\x1a\n":
        return None
    width, height = struct.unpack(">II", data[16:24])
    return ImageDimensions(width_px=width, height_px=height)


def _jpeg_dimensions(data: bytes) -> ImageDimensions | None:
    if len(data) < 4 or data[0:2] != b"\xff\xd8":
        return None
    offset = 2
    while offset < len(data) - 9:
        if data[offset] != 0xFF:
            offset += 1
            continue
        marker = data[offset + 1]
        if 0xC0 <= marker <= 0xC2:
            height, width = struct.unpack(">HH", data[offset + 5 : offset + 9])
            return ImageDimensions(width_px=width, height_px=height)
        (length,) = struct.unpack(">H", data[offset + 2 : offset + 4])
        if length < 2:
            return None
        offset += 2 + length
    return None


def _gif_dimensions(data: bytes) -> ImageDimensions | None:
    if len(data) < 10 or data[0:6] not in (b"GIF87a", b"GIF89a"):
        return None
    width, height = struct.unpack("<HH", data[6:10])
    return ImageDimensions(width_px=width, height_px=height)


def _webp_dimensions(data: bytes) -> ImageDimensions | None:
    if len(data) < 30 or data[0:4] != b"RIFF" or data[8:12] != b"WEBP":
        return None
    chunk = data[12:16]
    if chunk == b"VP8 ":
        width = struct.unpack("<H", data[26:28])[0] & 0x3FFF
        height = struct.unpack("<H", data[28:30])[0] & 0x3FFF
        return ImageDimensions(width_px=width, height_px=height)
    if chunk == b"VP8L":
        bits = struct.unpack("<I", data[21:25])[0]
        return ImageDimensions(width_px=(bits & 0x3FFF) + 1, height_px=((bits >> 14) & 0x3FFF) + 1)
    if chunk == b"VP8X":
        width = (data[24] | (data[25] << 8) | (data[26] << 16)) + 1
        height = (data[27] | (data[28] << 8) | (data[29] << 16)) + 1
        return ImageDimensions(width_px=width, height_px=height)
    return None


_SNIFFERS = (
    ("image/png", _png_dimensions),
    ("image/jpeg", _jpeg_dimensions),
    ("image/gif", _gif_dimensions),
    ("image/webp", _webp_dimensions),
)


def sniff_image(data: bytes) -> tuple[str, ImageDimensions] | None:
    """Return ``(mime_type, dimensions)`` or ``None`` for unknown data."""
    for mime_type, sniff in _SNIFFERS:
        try:
            dims = sniff(data)
        except struct.error:
            dims = None
        if dims is not None:
            return mime_type, dims
    return None


class HeaderImageDecoder:
    """Default :class:`ImageDecoder`: accepts PNG, JPEG, GIF and WebP."""

    def decode(self, raw: bytes) -> Texture:
        sniffed = sniff_image(raw)
        if sniffed is None:
            raise RenderError("unsupported or corrupt image data")
        mime_type, dims = sniffed
        if dims.width_px == 0 or dims.height_px == 0:
            raise RenderError(f"image has zero size ({mime_type})")
        return Texture(data=raw, mime_type=mime_type, dimensions=dims)


# ---------------------------------------------------------------------------
# Protocol encoders
# ---------------------------------------------------------------------------

_KITTY_CHUNK_SIZE = 4096


def encode_kitty(base64_data: str, *, columns: int, rows: int) -> str:
    """Transmit-and-display command, chunked as the kitty protocol requires."""
    params = f"a=T,f=100,q=2,c={columns},r={rows}"

    if len(base64_data) <= _KITTY_CHUNK_SIZE:
        return f"\x1b_G{params};{base64_data}\x1b\\"

    chunks: list[str] = []
    for offset in range(0, len(base64_data), _KITTY_CHUNK_SIZE):
        chunk = base64_data[offset : offset + _KITTY_CHUNK_SIZE]
        more = 1 if offset + _KITTY_CHUNK_SIZE < len(base64_data) else 0
        if offset == 0:
            chunks.append(f"\x1b_G{params},m=1;{chunk}\x1b\\")
        else:
            chunks.append(f"\x1b_Gm={more};{chunk}\x1b\\")
    return "".join(chunks)


def delete_all_kitty_images() -> str:
    return "\x1b_Ga=d,d=A\x1b\\"


def encode_iterm2(base64_data: str, *, columns: int, rows: int) -> str:
    params = f"inline=1;width={columns};height={rows};preserveAspectRatio=1"
    return f"\x1b]1337;File={params}:{base64_data}\x07"


def image_fallback(texture: Texture) -> str:
    dims = texture.dimensions
    return f"[Image: {texture.mime_type} {dims.width_px}x{dims.height_px}]"


def image_sequence(
    texture: Texture,
    columns: int,
    rows: int,
    caps: TerminalCapabilities | None = None,
) -> str | None:
    """Escape sequence drawing *texture* into a ``columns x rows`` cell box,
    or ``None`` if the terminal has no image protocol."""
    caps = caps or get_capabilities()
    if caps.images == "kitty":
        return encode_kitty(texture.base64_data, columns=columns, rows=rows)
    if caps.images == "iterm2":
        return encode_iterm2(texture.base64_data, columns=columns, rows=rows)
    return None
