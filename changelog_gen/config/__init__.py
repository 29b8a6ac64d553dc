"""Configuration Management Package

Settings come from, in increasing precedence: built-in defaults, a JSON
`.changelogrc` (current directory first, then home), CLG_* environment
variables, and command-line flags.
"""

import json
import sys
from dataclasses import dataclass, asdict
from pathlib import Path

from changelog_gen import ANALYSIS_MODES

VALID_PROVIDERS = {"auto", "claude", "ollama"}
VALID_MODES = set(ANALYSIS_MODES)
VALID_FORMATS = {"markdown", "json"}

ENV_OVERRIDES = {
    "CLG_PROVIDER": "provider",
    "CLG_MODEL": "model",
    "CLG_MODE": "analysis_mode",
}


@dataclass
class Config:
    """User configuration with sensible defaults."""
    provider: str = "auto"
    model: str | None = None
    analysis_mode: str = "standard"
    output_format: str = "markdown"
    output_file: str | None = None
    max_commits: int = 50
    include_metrics: bool = True
    include_attribution: bool = True

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def validate(self) -> list[str]:
        """Validate config values and return list of warnings.

        Invalid values are replaced with defaults after warning.
        """
        warnings = []
        defaults = Config()

        if self.provider not in VALID_PROVIDERS:
            warnings.append(f"Invalid provider '{self.provider}', using '{defaults.provider}'")
            self.provider = defaults.provider

        if self.analysis_mode not in VALID_MODES:
            warnings.append(f"Invalid analysis_mode '{self.analysis_mode}', using '{defaults.analysis_mode}'")
            self.analysis_mode = defaults.analysis_mode

        if self.output_format not in VALID_FORMATS:
            warnings.append(f"Invalid output_format '{self.output_format}', using '{defaults.output_format}'")
            self.output_format = defaults.output_format

        if isinstance(self.max_commits, bool) or not isinstance(self.max_commits, int) or self.max_commits <= 0:
            warnings.append(f"Invalid max_commits '{self.max_commits}', using {defaults.max_commits}")
            self.max_commits = defaults.max_commits

        return warnings

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        config = cls(**filtered)
        for warning in config.validate():
            print(f"Config warning: {warning}", file=sys.stderr)
        return config


class ConfigManager:
    """Manages loading and saving configuration."""

    CONFIG_FILENAME = ".changelogrc"

    def __init__(self):
        self._config: Config | None = None
        self._config_path: Path | None = None

    def load(self) -> Config:
        if self._config is not None:
            return self._config

        local_path = Path.cwd() / self.CONFIG_FILENAME
        if local_path.exists():
            self._config = self._load_from_file(local_path)
            self._config_path = local_path
            return self._config

        home_path = Path.home() / self.CONFIG_FILENAME
        if home_path.exists():
            self._config = self._load_from_file(home_path)
            self._config_path = home_path
            return self._config

        self._config = Config()
        return self._config

    def _load_from_file(self, path: Path) -> Config:
        try:
            with open(path, 'r') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            return Config.from_dict(data)
        except (json.JSONDecodeError, ValueError, OSError) as e:
            print(f"Warning: Could not load {path}: {e}", file=sys.stderr)
            return Config()

    def save(self, config: Config, global_config: bool = True) -> Path:
        path = Path.home() / self.CONFIG_FILENAME if global_config else Path.cwd() / self.CONFIG_FILENAME
        with open(path, 'w') as f:
            json.dump(config.to_dict(), f, indent=2)
        return path

    def get_config_path(self) -> Path | None:
        return self._config_path


_manager = ConfigManager()


def load_config() -> Config:
    return _manager.load()


def save_config(config: Config, global_config: bool = True) -> Path:
    return _manager.save(config, global_config)


def get_config_path() -> Path | None:
    return _manager.get_config_path()


__all__ = [
    "Config",
    "ConfigManager",
    "load_config",
    "save_config",
    "get_config_path",
    "VALID_PROVIDERS",
    "VALID_MODES",
    "VALID_FORMATS",
    "ENV_OVERRIDES",
]
