"""Tests for presiterm.config -- layered presenter settings."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from presiterm.config import PresenterConfig, default_config_path, env_overrides, load_config
from presiterm.errors import ConfigError


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


def _write(path: Path, data: object) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestDefaults:
    def test_defaults(self):
        config = PresenterConfig()
        assert config.margin == 2
        assert config.theme == "solarized-light"
        assert (config.image_width, config.image_height) == (35, 35)
        assert config.command_prefix == []
        assert config.keybindings == {}
        assert config.log_level == "warning"
        assert config.log_file is None

    def test_no_file_no_env(self):
        assert load_config(env={}) == PresenterConfig()

    def test_default_path_under_home(self, isolated_home: Path):
        assert default_config_path() == isolated_home / ".presiterm" / "config.json"


class TestConfigFile:
    def test_default_file_is_read(self, isolated_home: Path):
        _write(isolated_home / ".presiterm" / "config.json", {"margin": 5})
        assert load_config(env={}).margin == 5

    def test_explicit_file(self, tmp_path: Path):
        path = _write(tmp_path / "c.json", {"theme": "monokai", "command_prefix": ["nu", "-c"]})
        config = load_config(path, env={})
        assert config.theme == "monokai"
        assert config.command_prefix == ["nu", "-c"]

    def test_file_from_env(self, tmp_path: Path):
        path = _write(tmp_path / "c.json", {"image_width": 20})
        assert load_config(env={"PRESITERM_CONFIG": str(path)}).image_width == 20

    def test_explicit_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="cannot read config"):
            load_config(tmp_path / "missing.json", env={})

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "c.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path, env={})

    def test_top_level_must_be_object(self, tmp_path: Path):
        path = _write(tmp_path / "c.json", [1, 2])
        with pytest.raises(ConfigError, match="top level"):
            load_config(path, env={})

    def test_unknown_key(self, tmp_path: Path):
        path = _write(tmp_path / "c.json", {"colour": "red"})
        with pytest.raises(ConfigError, match="unknown config keys: colour"):
            load_config(path, env={})

    def test_negative_margin(self, tmp_path: Path):
        path = _write(tmp_path / "c.json", {"margin": -1})
        with pytest.raises(ConfigError, match="margin"):
            load_config(path, env={})

    def test_unknown_keybinding_action(self, tmp_path: Path):
        path = _write(tmp_path / "c.json", {"keybindings": {"jump": "g"}})
        with pytest.raises(ConfigError, match="jump"):
            load_config(path, env={})

    def test_keybindings(self, tmp_path: Path):
        path = _write(tmp_path / "c.json", {"keybindings": {"advance": ["n"]}})
        assert load_config(path, env={}).keybindings == {"advance": ["n"]}

    def test_keybinding_value_not_a_key(self, tmp_path: Path):
        path = _write(tmp_path / "c.json", {"keybindings": {"advance": 5}})
        with pytest.raises(ConfigError, match="keybindings.advance"):
            load_config(path, env={})

    def test_keybinding_list_with_non_string(self):
        with pytest.raises(ConfigError, match="keybindings.quit"):
            PresenterConfig().merged({"keybindings": {"quit": ["q", 3]}})


class TestEnvironment:
    def test_env_overrides_file(self, tmp_path: Path):
        path = _write(tmp_path / "c.json", {"margin": 4})
        assert load_config(path, env={"PRESITERM_MARGIN": "6"}).margin == 6

    def test_env_values(self):
        overrides = env_overrides(
            {
                "PRESITERM_THEME": "monokai",
                "PRESITERM_LOG_LEVEL": "DEBUG",
                "PRESITERM_COMMAND_PREFIX": "sh -c",
                "PRESITERM_IMAGE_HEIGHT": "10",
            }
        )
        assert overrides == {
            "theme": "monokai",
            "log_level": "debug",
            "command_prefix": ["sh", "-c"],
            "image_height": 10,
        }

    def test_bad_integer(self):
        with pytest.raises(ConfigError, match="PRESITERM_MARGIN"):
            load_config(env={"PRESITERM_MARGIN": "wide"})

    def test_bad_log_level(self):
        with pytest.raises(ConfigError, match="log_level"):
            load_config(env={"PRESITERM_LOG_LEVEL": "loud"})


class TestMerged:
    def test_none_values_ignored(self):
        config = PresenterConfig(margin=3).merged({"margin": None, "log_file": "x.log"})
        assert config.margin == 3
        assert config.log_file == "x.log"

    def test_original_unchanged(self):
        base = PresenterConfig()
        base.merged({"margin": 9})
        assert base.margin == 2
