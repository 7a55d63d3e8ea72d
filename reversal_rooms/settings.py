"""Settings manager for settings.yaml files.

Manages three-scope settings system:
- User global (~/.reversal-rooms/settings.yaml)
- Project (<game root>/settings.yaml)
- Local (<game root>/settings.local.yaml)
"""

import logging
from pathlib import Path
from typing import Any
from typing import Literal

import yaml

from .utils.yaml_io import dump_yaml
from .utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

ScopeType = Literal["user", "project", "local"]

DEFAULT_MODULES_DIR = "Modules"
DEFAULT_SAVES_DIR = "Saves"


class SettingsManager:
    """Manages settings across user/project/local scopes."""

    def __init__(self, root: Path | None = None, user_dir: Path | None = None):
        """Initialize settings manager with standard paths.

        Args:
            root: Game root holding project/local settings.
                  If None, uses the current directory.
            user_dir: Directory for user settings (for testing).
                      If None, uses ~/.reversal-rooms.
        """
        root = root if root is not None else Path.cwd()
        user_dir = user_dir if user_dir is not None else Path.home() / ".reversal-rooms"

        self.user_settings_file = user_dir / "settings.yaml"
        self.project_settings_file = root / "settings.yaml"
        self.local_settings_file = root / "settings.local.yaml"

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key (e.g. "paths.modules") in the merged settings."""
        value: Any = self.get_merged_settings()
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def set_value(self, key: str, value: Any, scope: ScopeType = "project") -> Path:
        """Set a dotted key in one scope's settings file.

        Args:
            key: Dotted key (e.g. "logging.level")
            value: Value to store
            scope: "user", "project", or "local"

        Returns:
            The settings file that was written
        """
        update: dict[str, Any] = {}
        cursor = update
        parts = key.split(".")
        for part in parts[:-1]:
            cursor = cursor.setdefault(part, {})
        cursor[parts[-1]] = value

        target_file = self._get_file_for_scope(scope)
        self._update_settings(target_file, update)
        logger.info(f"Set {key} = {value!r} at {scope} scope")
        return target_file

    def get_modules_dir(self) -> str:
        """Modules directory, relative to the game root unless absolute."""
        return str(self.get("paths.modules", DEFAULT_MODULES_DIR))

    def get_saves_dir(self) -> str:
        """Saves directory, relative to the game root unless absolute."""
        return str(self.get("paths.saves", DEFAULT_SAVES_DIR))

    def get_log_level(self) -> str | None:
        level = self.get("logging.level")
        return str(level).upper() if level else None

    def get_log_path(self) -> str | None:
        path = self.get("logging.path")
        return str(path) if path else None

    def get_merged_settings(self) -> dict[str, Any]:
        """Get merged settings from all scopes.

        Merge order (later overrides earlier):
        1. User settings
        2. Project settings
        3. Local settings

        Returns:
            Merged settings dictionary
        """
        merged: dict[str, Any] = {}
        for path in (self.user_settings_file, self.project_settings_file, self.local_settings_file):
            settings = self._read_settings(path)
            if settings:
                merged = self._deep_merge(merged, settings)
        return merged

    def _get_file_for_scope(self, scope: ScopeType) -> Path:
        if scope == "user":
            return self.user_settings_file
        if scope == "local":
            return self.local_settings_file
        return self.project_settings_file

    def _read_settings(self, path: Path) -> dict[str, Any] | None:
        """Read settings from YAML file.

        Args:
            path: Path to settings file

        Returns:
            Settings dict or None if the file doesn't exist or can't be read
        """
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                data = load_yaml(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to read settings from {path}: {e}")
            return None

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings in {path}: expected a mapping")
            return None
        return data

    def _write_settings(self, path: Path, settings: dict[str, Any]) -> None:
        """Write settings to YAML file.

        Args:
            path: Path to settings file
            settings: Settings dictionary
        """
        # Ensure directory exists
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(path, "w", encoding="utf-8") as f:
                dump_yaml(settings, f)
        except OSError as e:
            logger.error(f"Failed to write settings to {path}: {e}")
            raise

    def _update_settings(self, path: Path, updates: dict[str, Any]) -> None:
        """Update settings file with new values (deep merge).

        Args:
            path: Path to settings file
            updates: Updates to merge
        """
        existing = self._read_settings(path) or {}
        merged = self._deep_merge(existing, updates)
        self._write_settings(path, merged)

    def _deep_merge(self, base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries.

        Args:
            base: Base dictionary
            overlay: Overlay dictionary (takes precedence)

        Returns:
            Merged dictionary
        """
        result = base.copy()

        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
