"""Tests for presiterm.navigation -- slide index and keybindings."""

from __future__ import annotations

from presiterm.keys import Key
from presiterm.navigation import DEFAULT_KEYBINDINGS, KeybindingsManager, NavigationState


class TestNavigationState:
    def test_starts_at_zero(self):
        assert NavigationState().index == 0

    def test_retreat_saturates_at_zero(self):
        nav = NavigationState()
        nav.retreat()
        nav.retreat()
        assert nav.index == 0

    def test_advance_has_no_upper_clamp(self):
        nav = NavigationState()
        for _ in range(5):
            nav.advance()
        assert nav.index == 5
        assert nav.is_past_end(3)

    def test_not_past_end_on_last_slide(self):
        assert not NavigationState(index=2).is_past_end(3)

    def test_empty_deck_is_past_end(self):
        assert NavigationState().is_past_end(0)


class TestDefaultKeybindings:
    def test_has_all_actions(self):
        assert set(DEFAULT_KEYBINDINGS) == {"advance", "retreat", "quit"}

    def test_named_keys(self):
        assert Key.page_down in DEFAULT_KEYBINDINGS["advance"]
        assert Key.backspace in DEFAULT_KEYBINDINGS["retreat"]
        assert DEFAULT_KEYBINDINGS["quit"] == ["escape", "q", "ctrl+c"]

    def test_resolve_defaults(self):
        kb = KeybindingsManager()
        assert kb.resolve("\x1b[B") == "advance"
        assert kb.resolve("\x1b[C") == "advance"
        assert kb.resolve("\x1b[6~") == "advance"
        assert kb.resolve(" ") == "advance"
        assert kb.resolve("\x1b[A") == "retreat"
        assert kb.resolve("\x1b[D") == "retreat"
        assert kb.resolve("\x1b[5~") == "retreat"
        assert kb.resolve("\x1b") == "quit"
        assert kb.resolve("q") == "quit"
        assert kb.resolve("\x03") == "quit"

    def test_unbound_key(self):
        assert KeybindingsManager().resolve("x") is None


class TestKeybindingOverrides:
    def test_override_replaces_action_defaults(self):
        kb = KeybindingsManager({"advance": "n"})
        assert kb.resolve("n") == "advance"
        assert kb.resolve("\x1b[B") is None
        assert kb.get_keys("advance") == ["n"]

    def test_other_actions_keep_defaults(self):
        kb = KeybindingsManager({"advance": ["n"]})
        assert kb.resolve("\x1b[A") == "retreat"

    def test_quit_wins_on_overlap(self):
        kb = KeybindingsManager({"advance": ["q"]})
        assert kb.resolve("q") == "quit"

    def test_set_config_rebuilds(self):
        kb = KeybindingsManager({"advance": "n"})
        kb.set_config({})
        assert kb.resolve("\x1b[B") == "advance"
