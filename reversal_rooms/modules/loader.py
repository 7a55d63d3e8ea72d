"""Discover and resolve the modules of one game installation."""

import logging
from dataclasses import dataclass

from ..paths import GamePaths
from ..paths import create_filesystem
from ..paths import create_game_paths
from .activation import Activator
from .discovery import DiscoveryReport
from .discovery import discover_modules
from .resolver import ModuleResolver
from .resolver import ResolutionResult

logger = logging.getLogger(__name__)


@dataclass
class LoadReport:
    """What discovery found and what resolution made of it."""

    discovery: DiscoveryReport
    resolution: ResolutionResult


def load_modules(paths: GamePaths | None = None, activate: Activator | None = None) -> LoadReport:
    """Discover modules under the modules directory and resolve them.

    Discovery finishes and hands over its descriptors before resolution
    starts; activation runs during resolution, once per resolvable module.

    Args:
        paths: Game paths (default: from settings and $REVERSAL_ROOMS_ROOT)
        activate: Activator for resolvable modules (default: LoggingActivator)

    Raises:
        FileNotFoundError: If the modules directory does not exist
    """
    paths = paths or create_game_paths()
    logger.info(f"Loading modules from {paths.modules}")
    with create_filesystem(paths) as filesystem:
        discovery = discover_modules(filesystem)
        resolution = ModuleResolver(discovery.descriptors, activate).resolve()
    return LoadReport(discovery=discovery, resolution=resolution)
