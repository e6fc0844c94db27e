"""Slide navigation: the saturating index and the key → action map."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from presiterm.keys import Key, KeyId, matches_key

NavAction = Literal["advance", "retreat", "quit"]

KeybindingsConfig = dict[NavAction, KeyId | list[KeyId]]

DEFAULT_KEYBINDINGS: dict[NavAction, KeyId | list[KeyId]] = {
    "advance": [Key.down, Key.right, Key.page_down, Key.space, Key.enter, "j", "l"],
    "retreat": [Key.up, Key.left, Key.page_up, Key.backspace, "k", "h"],
    "quit": [Key.escape, "q", Key.ctrl("c")],
}


@dataclass
class NavigationState:
    """Current slide index.

    There is no upper clamp: advancing past the last slide is how a
    presentation ends, and the event loop checks for it before rendering.
    """

    index: int = 0

    def advance(self) -> None:
        self.index += 1

    def retreat(self) -> None:
        if self.index > 0:
            self.index -= 1

    def is_past_end(self, deck_length: int) -> bool:
        return self.index >= deck_length


class KeybindingsManager:
    """Resolves raw input to a navigation action.

    Defaults are merged with a user override per action. An override
    replaces the default keys for that action entirely.
    """

    def __init__(self, config: KeybindingsConfig | None = None) -> None:
        self._action_to_keys: dict[NavAction, list[KeyId]] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: KeybindingsConfig) -> None:
        self._action_to_keys.clear()
        for source in (DEFAULT_KEYBINDINGS, config):
            for action, keys in source.items():
                self._action_to_keys[action] = list(keys) if isinstance(keys, list) else [keys]

    def matches(self, data: str, action: NavAction) -> bool:
        return any(matches_key(data, key) for key in self._action_to_keys.get(action, []))

    def resolve(self, data: str) -> NavAction | None:
        """Return the action bound to *data*. Quit wins over movement when keys overlap."""
        for action in ("quit", "advance", "retreat"):
            if self.matches(data, action):
                return action
        return None

    def get_keys(self, action: NavAction) -> list[KeyId]:
        return self._action_to_keys.get(action, [])

    def set_config(self, config: KeybindingsConfig) -> None:
        self._build_maps(config)
