"""Presenter settings.

Precedence, lowest first: built-in defaults, the JSON config file,
``PRESITERM_*`` environment variables, command-line flags (applied by the
CLI). The config file defaults to ``~/.presiterm/config.json`` and is
optional; an explicitly named file must exist.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping

from presiterm.errors import ConfigError
from presiterm.highlight import DEFAULT_THEME

CONFIG_DIR_NAME = ".presiterm"
CONFIG_FILE_NAME = "config.json"
ENV_PREFIX = "PRESITERM_"

LOG_LEVELS = ("debug", "info", "warning", "error")


@dataclass
class PresenterConfig:
    """Layout, highlighting, command and logging options."""

    margin: int = 2
    theme: str = DEFAULT_THEME
    image_width: int = 35
    image_height: int = 35
    command_prefix: list[str] = field(default_factory=list)
    keybindings: dict[str, str | list[str]] = field(default_factory=dict)
    log_level: str = "warning"
    log_file: str | None = None

    def merged(self, overrides: Mapping[str, Any]) -> PresenterConfig:
        """Return a copy with the non-``None`` *overrides* applied and validated."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(sorted(unknown))}")
        updated = replace(self, **{k: v for k, v in overrides.items() if v is not None})
        updated.validate()
        return updated

    def validate(self) -> None:
        for name in ("margin", "image_width", "image_height"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigError(f"{name} must be a non-negative integer, got {value!r}")
        if not isinstance(self.command_prefix, list) or not all(isinstance(a, str) for a in self.command_prefix):
            raise ConfigError("command_prefix must be a list of strings")
        if not isinstance(self.keybindings, dict):
            raise ConfigError("keybindings must be an object mapping actions to keys")
        unknown_actions = set(self.keybindings) - {"advance", "retreat", "quit"}
        if unknown_actions:
            raise ConfigError(f"unknown keybinding actions: {', '.join(sorted(unknown_actions))}")
        for action, keys in self.keybindings.items():
            if isinstance(keys, str):
                continue
            if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
                raise ConfigError(f"keybindings.{action} must be a key or a list of keys, got {keys!r}")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}")


def default_config_path() -> Path:
    return Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def read_config_file(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"cannot read config {path}: {exc.strerror or exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path}:{exc.lineno}:{exc.colno}: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be an object")
    return data


def env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Read ``PRESITERM_MARGIN``, ``PRESITERM_THEME`` and friends."""
    overrides: dict[str, Any] = {}
    for name in ("margin", "image_width", "image_height"):
        raw = env.get(ENV_PREFIX + name.upper())
        if raw:
            try:
                overrides[name] = int(raw)
            except ValueError as exc:
                raise ConfigError(f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}") from exc
    for name in ("theme", "log_level", "log_file"):
        raw = env.get(ENV_PREFIX + name.upper())
        if raw:
            overrides[name] = raw.lower() if name == "log_level" else raw
    raw_prefix = env.get(ENV_PREFIX + "COMMAND_PREFIX")
    if raw_prefix:
        overrides["command_prefix"] = raw_prefix.split()
    return overrides


def load_config(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> PresenterConfig:
    """Build the effective configuration from defaults, file and environment."""
    env = os.environ if env is None else env

    explicit = path or env.get(ENV_PREFIX + "CONFIG")
    config_path = Path(explicit) if explicit else default_config_path()

    config = PresenterConfig()
    if explicit or config_path.exists():
        config = config.merged(read_config_file(config_path))
    return config.merged(env_overrides(env))
