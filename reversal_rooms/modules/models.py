"""Data models for module descriptors and dependency resolution state."""

from __future__ import annotations

from collections.abc import Iterator
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import NamedTuple

from semantic_version import Version

from .errors import InvalidTransitionError


class DependencyState(Enum):
    """Resolution state of a single requirement."""

    PENDING = "pending"
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    OLD_VERSION = "old_version"
    CIRCULAR = "circular"

    @property
    def is_terminal(self) -> bool:
        return self is not DependencyState.PENDING


class ModuleStatus(Enum):
    """Overall status of a module, derived from its requirement states."""

    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class DependencyRequirement:
    """One declared dependency on another module."""

    target: str
    minimum: Version

    def __str__(self) -> str:
        return f"{self.target}>={self.minimum}"


@dataclass(frozen=True)
class ModuleDescriptor:
    """Parsed metadata for one discoverable module.

    Attributes:
        id: Identity, unique among loaded modules
        display_name: Name shown on UIs
        description: Short free-text description
        author: Author(s) of the module
        version: Semantic version of the module
        location: Where the module lives; only activation looks at it
        website: Optional homepage (e.g. a repository URL)
        entry: Optional path to the module's code, relative to location
        dependencies: Requirements in declaration order
    """

    id: str
    display_name: str
    description: str
    author: str
    version: Version
    location: str = ""
    website: str | None = None
    entry: str | None = None
    dependencies: tuple[DependencyRequirement, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Module identity must not be empty")
        # Accept lists from callers but store an immutable sequence
        object.__setattr__(self, "dependencies", tuple(self.dependencies))

    def requirement_keys(self) -> list[RequirementKey]:
        return [RequirementKey(self.id, index) for index in range(len(self.dependencies))]

    def __str__(self) -> str:
        return f"{self.id}@{self.version}"


class RequirementKey(NamedTuple):
    """Identifies one requirement: the owning module and its index."""

    module_id: str
    index: int


@dataclass(frozen=True)
class RequirementState:
    """Tagged resolution state of one requirement.

    ``version`` is only set for RESOLVED (the version that satisfied it),
    ``cycle_id`` only for CIRCULAR.
    """

    kind: DependencyState
    version: Version | None = None
    cycle_id: int | None = None

    @classmethod
    def pending(cls) -> RequirementState:
        return _PENDING

    @classmethod
    def resolved(cls, version: Version) -> RequirementState:
        return cls(DependencyState.RESOLVED, version=version)

    @classmethod
    def not_found(cls) -> RequirementState:
        return cls(DependencyState.NOT_FOUND)

    @classmethod
    def old_version(cls) -> RequirementState:
        return cls(DependencyState.OLD_VERSION)

    @classmethod
    def circular(cls, cycle_id: int) -> RequirementState:
        return cls(DependencyState.CIRCULAR, cycle_id=cycle_id)

    @property
    def is_terminal(self) -> bool:
        return self.kind.is_terminal

    def __str__(self) -> str:
        if self.kind is DependencyState.RESOLVED:
            return f"resolved ({self.version})"
        if self.kind is DependencyState.CIRCULAR:
            return f"circular (cycle {self.cycle_id})"
        return self.kind.value.replace("_", " ")


_PENDING = RequirementState(DependencyState.PENDING)


@dataclass(frozen=True)
class Cycle:
    """A true dependency cycle found by the classifier.

    Attributes:
        cycle_id: Index of the cycle within one resolution run
        path: Requirement keys in the order the walk took them
        members: The same keys as a set, for membership checks
    """

    cycle_id: int
    path: tuple[RequirementKey, ...]
    members: frozenset[RequirementKey] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "members", frozenset(self.path))

    @property
    def module_ids(self) -> list[str]:
        """Modules on the cycle, in walk order."""
        return [key.module_id for key in self.path]


class RequirementTable(Mapping[RequirementKey, RequirementState]):
    """Resolver-owned table of requirement states.

    Every requirement starts PENDING. Only PENDING entries may change;
    terminal states are final.
    """

    def __init__(self, descriptors: Mapping[str, ModuleDescriptor] | None = None) -> None:
        self._states: dict[RequirementKey, RequirementState] = {}
        for descriptor in (descriptors or {}).values():
            self.register(descriptor)

    def register(self, descriptor: ModuleDescriptor) -> None:
        for key in descriptor.requirement_keys():
            self._states.setdefault(key, RequirementState.pending())

    def set(self, key: RequirementKey, state: RequirementState) -> None:
        """Move a pending requirement to a new state.

        Raises:
            KeyError: If the requirement was never registered
            InvalidTransitionError: If the requirement is already terminal
        """
        current = self._states[key]
        if current.is_terminal:
            raise InvalidTransitionError(key, current.kind, state.kind)
        self._states[key] = state

    def kind(self, key: RequirementKey) -> DependencyState:
        return self._states[key].kind

    def is_pending(self, key: RequirementKey) -> bool:
        return not self._states[key].is_terminal

    def snapshot(self) -> dict[RequirementKey, RequirementState]:
        return dict(self._states)

    def __getitem__(self, key: RequirementKey) -> RequirementState:
        return self._states[key]

    def __iter__(self) -> Iterator[RequirementKey]:
        return iter(self._states)

    def __len__(self) -> int:
        return len(self._states)


def module_status(
    descriptor: ModuleDescriptor,
    states: Mapping[RequirementKey, RequirementState],
    *,
    activated: bool = False,
) -> ModuleStatus:
    """Derive a module's overall status from its requirement states."""
    if activated:
        return ModuleStatus.RESOLVED

    kinds = [states[key].kind for key in descriptor.requirement_keys()]
    if all(kind is DependencyState.RESOLVED for kind in kinds):
        return ModuleStatus.RESOLVED
    if any(kind is DependencyState.PENDING for kind in kinds):
        return ModuleStatus.PENDING
    return ModuleStatus.FAILED
