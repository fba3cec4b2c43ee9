"""Configuration loader for ImpulseSense.

Loads config.py from the working directory (or a parent), falling back to
defaults.
"""

import importlib.util
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

from . import defaults

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class Config:
    """Configuration object with attribute access."""

    def __init__(self, path: Path | str | None = None) -> None:
        # Start with defaults
        for key in defaults.CONFIG_KEYS:
            setattr(self, key, getattr(defaults, key))

        self.source: Path | None = None

        # Load user config if available
        self._load_user_config(Path(path) if path else None)

    def _load_user_config(self, path: Path | None) -> None:
        """Load config.py, either the given path or the nearest one found."""
        config_path = path if path is not None else self._find_config_file()

        if config_path is None or not config_path.exists():
            return

        # Load the module
        user_config = self._load_module_from_path(config_path)
        self.source = config_path

        # Override defaults with user values
        for key in defaults.CONFIG_KEYS:
            if hasattr(user_config, key):
                setattr(self, key, getattr(user_config, key))

    def _find_config_file(self) -> Path | None:
        """Find config.py in current dir or parents."""
        current = Path.cwd()

        search_paths = [current]
        while current != current.parent:
            current = current.parent
            search_paths.append(current)

        for path in search_paths:
            config_path = path / "config.py"
            if config_path.exists():
                return config_path

        return None

    def _load_module_from_path(self, path: Path) -> ModuleType:
        """Load a Python module from a file path."""
        spec = importlib.util.spec_from_file_location("impulsesense_user_config", path)
        if spec is None or spec.loader is None:
            raise RuntimeError(f"Could not load config from {path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules["impulsesense_user_config"] = module
        spec.loader.exec_module(module)
        return module

    def get(self, key: str, default: Any = None) -> Any:
        """Get config value with optional default."""
        return getattr(self, key, default)

    @property
    def high_risk_hours(self) -> tuple[int, int]:
        return (self.HIGH_RISK_START_HOUR, self.HIGH_RISK_END_HOUR)

    def to_dict(self) -> dict[str, Any]:
        """All configurable values, sorted by key."""
        return {key: getattr(self, key) for key in sorted(defaults.CONFIG_KEYS)}

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not isinstance(self.TICK_INTERVAL, (int, float)) or self.TICK_INTERVAL <= 0:
            errors.append("TICK_INTERVAL must be a positive number")

        if not isinstance(self.HISTORY_CAPACITY, int) or self.HISTORY_CAPACITY < 1:
            errors.append("HISTORY_CAPACITY must be a positive integer")

        if not isinstance(self.VIEW_WINDOW, int) or self.VIEW_WINDOW < 1:
            errors.append("VIEW_WINDOW must be a positive integer")

        if not isinstance(self.INITIAL_SCORE, (int, float)) or not 0.0 <= self.INITIAL_SCORE <= 1.0:
            errors.append("INITIAL_SCORE must be between 0.0 and 1.0")

        for key in ("HIGH_RISK_START_HOUR", "HIGH_RISK_END_HOUR"):
            value = getattr(self, key)
            if not isinstance(value, int) or not 0 <= value <= 23:
                errors.append(f"{key} must be an hour between 0 and 23")

        if not isinstance(self.UNLOCK_PHRASE, str) or not self.UNLOCK_PHRASE.strip():
            errors.append("UNLOCK_PHRASE must be a non-empty string")

        if not isinstance(self.BREATHING_DURATION, int) or self.BREATHING_DURATION < 1:
            errors.append("BREATHING_DURATION must be a positive integer")

        if self.LOG_LEVEL not in LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")

        return errors

    def __repr__(self) -> str:
        return f"<Config source={self.source}>"


# Global config instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config(path: Path | str | None = None) -> Config:
    """Reload configuration from disk."""
    global _config
    _config = Config(path)
    return _config
