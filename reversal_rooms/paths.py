"""Game path policy and dependency injection helpers.

This module centralizes where the game keeps its modules and saves.
Libraries receive paths via injection; this module provides the defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from .settings import SettingsManager
from .storage import FileSystem
from .storage import NormalizedPath
from .storage import normalize_relative_path

ROOT_ENV_VAR = "REVERSAL_ROOMS_ROOT"


def default_root() -> Path:
    """Game root: $REVERSAL_ROOMS_ROOT if set, otherwise the current directory."""
    configured = os.environ.get(ROOT_ENV_VAR)
    if configured:
        return Path(configured).expanduser().resolve()
    return Path.cwd().resolve()


@dataclass(frozen=True)
class GamePaths:
    """Root, modules and saves directories of one game installation."""

    root: Path
    modules: Path
    saves: Path

    @classmethod
    def from_root(cls, root: Path | str, modules_dir: str = "Modules", saves_dir: str = "Saves") -> "GamePaths":
        """Build paths below ``root``; absolute directory settings are kept as given."""
        root_path = Path(root).resolve()
        return cls(root=root_path, modules=root_path / modules_dir, saves=root_path / saves_dir)

    def normalize_root_path(self, path: Path | str) -> NormalizedPath:
        return normalize_relative_path(self.root, path)

    def normalize_modules_path(self, path: Path | str) -> NormalizedPath:
        return normalize_relative_path(self.modules, path)

    def normalize_saves_path(self, path: Path | str) -> NormalizedPath:
        return normalize_relative_path(self.saves, path)


# ===== FACTORIES =====


def create_settings_manager(root: Path | None = None) -> SettingsManager:
    return SettingsManager(root=root if root is not None else default_root())


def create_game_paths(root: Path | None = None, settings: SettingsManager | None = None) -> GamePaths:
    """Create GamePaths from settings (paths.modules / paths.saves)."""
    root = root if root is not None else default_root()
    settings = settings or SettingsManager(root=root)
    return GamePaths.from_root(root, settings.get_modules_dir(), settings.get_saves_dir())


def create_filesystem(paths: GamePaths) -> FileSystem:
    """FileSystem rooted at the modules directory."""
    return FileSystem(paths.modules)
