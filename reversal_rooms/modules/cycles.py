"""Dependency cycle classification.

Runs before the fixed-point pass so that no requirement is left waiting
on a module that can only resolve after the requirement itself does.

For every module M a depth-first walk starts at M and follows pending
requirements to modules that exist. A requirement pointing back at M
closes a loop:

- if M's version meets the requirement's minimum, the loop is a true
  cycle and every requirement on the walk path, plus the closing one,
  becomes CIRCULAR;
- otherwise only the closing requirement becomes OLD_VERSION. The loop
  is a stale reference rather than a mutual dependency.

Requirements whose target does not exist stay PENDING; the resolver
decides those.

After classification every loop of pending requirements whose targets
exist and meet their minimums contains a CIRCULAR requirement: walking
from any module on such a loop reaches its predecessor on the loop, and
the predecessor's requirement closes it.
"""

import logging
from collections.abc import Iterator
from collections.abc import Mapping

from .models import Cycle
from .models import ModuleDescriptor
from .models import RequirementKey
from .models import RequirementState
from .models import RequirementTable
from .versions import meets_version

logger = logging.getLogger(__name__)


class CycleClassifier:
    """Marks cyclic and stale back-edge requirements in a requirement table."""

    def __init__(self, modules: Mapping[str, ModuleDescriptor], table: RequirementTable) -> None:
        """Initialize classifier.

        Args:
            modules: Deduplicated descriptors keyed by identity
            table: Requirement table to update (owned by the resolver)
        """
        self._modules = modules
        self._table = table
        self.cycles: list[Cycle] = []
        self.dependents: dict[str, list[RequirementKey]] = {}

    def classify(self) -> list[Cycle]:
        """Walk from every module and index who waits on whom.

        Returns:
            The true cycles found, in discovery order
        """
        for descriptor in self._modules.values():
            self.walk(descriptor)
            for key, requirement in zip(descriptor.requirement_keys(), descriptor.dependencies, strict=True):
                self.dependents.setdefault(requirement.target, []).append(key)
        return self.cycles

    def walk(self, start: ModuleDescriptor) -> None:
        """Depth-first walk from ``start`` looking for loops back to it.

        Each module is expanded at most once per walk. ``path`` holds the
        requirement taken into every frame below the root, so it is always
        one shorter than ``stack``.
        """
        visited = {start.id}
        path: list[RequirementKey] = []
        stack: list[tuple[ModuleDescriptor, Iterator[int]]] = [(start, iter(range(len(start.dependencies))))]

        while stack:
            current, indexes = stack[-1]
            index = next(indexes, None)
            if index is None:
                stack.pop()
                if path:
                    path.pop()
                continue

            key = RequirementKey(current.id, index)
            if not self._table.is_pending(key):
                continue

            requirement = current.dependencies[index]
            if requirement.target == start.id:
                self.close_loop(start, path, key)
                continue

            target = self._modules.get(requirement.target)
            if target is None or target.id in visited:
                continue

            visited.add(target.id)
            path.append(key)
            stack.append((target, iter(range(len(target.dependencies)))))

    def close_loop(self, start: ModuleDescriptor, path: list[RequirementKey], closing: RequirementKey) -> Cycle | None:
        """Classify a requirement that points back at the walk's start.

        Args:
            start: Module the walk started from
            path: Requirements taken from ``start`` to the closing module
            closing: The requirement targeting ``start``

        Returns:
            The new Cycle if the loop is a true cycle, otherwise None
        """
        requirement = self._modules[closing.module_id].dependencies[closing.index]
        if not meets_version(start.version, requirement.minimum):
            logger.debug(f"{closing.module_id} wants {requirement}, found {start}: stale back-edge, not a cycle")
            self._table.set(closing, RequirementState.old_version())
            return None

        cycle = Cycle(cycle_id=len(self.cycles), path=(*path, closing))
        for key in cycle.path:
            # A shared prefix may already belong to a cycle found earlier in this walk
            if self._table.is_pending(key):
                self._table.set(key, RequirementState.circular(cycle.cycle_id))
        self.cycles.append(cycle)
        logger.info(f"Dependency cycle {cycle.cycle_id}: {' -> '.join([*cycle.module_ids, start.id])}")
        return cycle


def classify_cycles(
    modules: Mapping[str, ModuleDescriptor], table: RequirementTable
) -> tuple[list[Cycle], dict[str, list[RequirementKey]]]:
    """Run a classifier over ``modules``.

    Returns:
        Tuple of (cycles found, identity -> requirements waiting on it)
    """
    classifier = CycleClassifier(modules, table)
    cycles = classifier.classify()
    return cycles, classifier.dependents
