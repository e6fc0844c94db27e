"""Keyboard input parsing for the presenter.

Turns raw terminal input into key identifiers such as ``"down"``,
``"pageUp"``, ``"ctrl+c"`` or ``"q"``. Only legacy (xterm/VT) encodings
are recognised: the presenter never enables the kitty keyboard protocol.
"""

from __future__ import annotations

KeyId = str


class Key:
    """Named key constants."""

    escape = "escape"
    enter = "enter"
    space = "space"
    backspace = "backspace"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"


# ---------------------------------------------------------------------------
# Legacy escape sequences
# ---------------------------------------------------------------------------

LEGACY_KEY_SEQUENCES: dict[str, KeyId] = {
    # CSI (normal cursor mode)
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    # SS3 (application cursor mode)
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    # VT220 editing keys
    "\x1b[1~": "home",
    "\x1b[7~": "home",
    "\x1b[4~": "end",
    "\x1b[8~": "end",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
}

LEGACY_CTRL_SEQUENCES: dict[str, KeyId] = {
    "\x1b[1;5A": "up",
    "\x1b[1;5B": "down",
    "\x1b[1;5C": "right",
    "\x1b[1;5D": "left",
}

LEGACY_SHIFT_SEQUENCES: dict[str, KeyId] = {
    "\x1b[1;2A": "up",
    "\x1b[1;2B": "down",
    "\x1b[1;2C": "right",
    "\x1b[1;2D": "left",
    "\x1b[Z": "tab",
}


def parse_key(data: str) -> KeyId | None:  # noqa: C901
    """Return the key identifier for one complete input sequence, or ``None``."""
    if not data:
        return None

    if data in LEGACY_KEY_SEQUENCES:
        return LEGACY_KEY_SEQUENCES[data]
    if data in LEGACY_CTRL_SEQUENCES:
        return "ctrl+" + LEGACY_CTRL_SEQUENCES[data]
    if data in LEGACY_SHIFT_SEQUENCES:
        return "shift+" + LEGACY_SHIFT_SEQUENCES[data]

    if data == "\x1b":
        return "escape"
    if data in ("\r", "\n"):
        return "enter"
    if data == "\t":
        return "tab"
    if data == " ":
        return "space"
    if data in ("\x7f", "\x08"):
        return "backspace"

    # Ctrl + letter (0x01 - 0x1a)
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return "ctrl+" + chr(ord(data) + ord("a") - 1)

    # Alt + key (ESC prefix)
    if len(data) == 2 and data[0] == "\x1b":
        ch = data[1]
        if ch == "\x1b":
            return "alt+escape"
        if ch.isprintable():
            return "alt+" + ch.lower()
        return None

    if len(data) == 1 and data.isprintable():
        return data

    return None


def matches_key(data: str, key_id: KeyId) -> bool:
    """Check whether raw *data* is the key named by *key_id*.

    ``"esc"`` is accepted as an alias of ``"escape"``. Named keys compare
    case-insensitively. A single printable character must match exactly.
    """
    parsed = parse_key(data)
    if parsed is None:
        return False
    if key_id == "esc":
        key_id = "escape"
    if len(key_id) == 1:
        return parsed == key_id
    return parsed.lower() == key_id.lower()
