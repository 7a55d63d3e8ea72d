"""Deduplication of module descriptors that share an identity."""

import logging
from collections.abc import Iterable

from .models import ModuleDescriptor
from .versions import outdates

logger = logging.getLogger(__name__)


class ModuleDeduplicator:
    """Keeps one descriptor per identity, preferring the highest version.

    A later descriptor replaces an earlier one only when its version is
    strictly newer; on equal versions the first one seen is kept.
    """

    def __init__(self) -> None:
        """Initialize deduplicator with empty state."""
        self._by_id: dict[str, ModuleDescriptor] = {}
        self._ordered: list[ModuleDescriptor] = []
        self.replaced: list[ModuleDescriptor] = []
        self.ignored: list[ModuleDescriptor] = []

    def add(self, descriptor: ModuleDescriptor) -> bool:
        """Add a descriptor.

        Args:
            descriptor: Newly discovered descriptor

        Returns:
            True if the descriptor is now the survivor for its identity
        """
        existing = self._by_id.get(descriptor.id)
        if existing is None:
            self._by_id[descriptor.id] = descriptor
            self._ordered.append(descriptor)
            return True

        if not outdates(descriptor.version, existing.version):
            logger.debug(f"Ignoring {descriptor} at {descriptor.location}: {existing} is already known")
            self.ignored.append(descriptor)
            return False

        logger.debug(f"Replacing {existing} with newer {descriptor}")
        self._by_id[descriptor.id] = descriptor
        self._ordered.remove(existing)
        self._ordered.append(descriptor)
        self.replaced.append(existing)
        return True

    def add_all(self, descriptors: Iterable[ModuleDescriptor]) -> None:
        for descriptor in descriptors:
            self.add(descriptor)

    @property
    def by_id(self) -> dict[str, ModuleDescriptor]:
        """Surviving descriptors keyed by identity."""
        return dict(self._by_id)

    @property
    def modules(self) -> list[ModuleDescriptor]:
        """Surviving descriptors, one per identity."""
        return list(self._ordered)


def deduplicate(descriptors: Iterable[ModuleDescriptor]) -> tuple[dict[str, ModuleDescriptor], list[ModuleDescriptor]]:
    """Collapse descriptors sharing an identity into the highest version.

    Returns:
        Tuple of (identity -> survivor, ordered list of survivors)
    """
    deduplicator = ModuleDeduplicator()
    deduplicator.add_all(descriptors)
    return deduplicator.by_id, deduplicator.modules
