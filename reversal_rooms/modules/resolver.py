"""Fixed-point module resolution.

Resolution runs in passes over a working set of modules. In each pass a
module whose requirements are all RESOLVED is activated, and a module
with no PENDING requirement left (but some unresolved one) is failed.
Either way it leaves the working set and the requirements waiting on it
are settled: RESOLVED (or OLD_VERSION) after an activation, NOT_FOUND
after a failure. Load order is the order modules get activated; no
explicit topological sort is computed.

Termination: every pass removes at least one module. Suppose a pass
removes none. Each remaining module then has a PENDING requirement, and
a requirement stays PENDING only when its target exists, meets the
minimum version and is itself still in the working set. Following those
requirements from module to module must revisit a module, giving a loop
of PENDING, version-satisfied requirements. The cycle classifier leaves
no such loop without a CIRCULAR member (see ``cycles``), so the pass
could not have stalled. Hence passes <= number of modules. A stalled
pass raises ResolutionStalledError instead of spinning.
"""

import logging
from collections.abc import Iterable
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field

from .activation import ActivationResult
from .activation import Activator
from .activation import LoggingActivator
from .cycles import CycleClassifier
from .deduplicator import ModuleDeduplicator
from .errors import ModuleActivationError
from .errors import ResolutionStalledError
from .models import Cycle
from .models import DependencyRequirement
from .models import DependencyState
from .models import ModuleDescriptor
from .models import ModuleStatus
from .models import RequirementKey
from .models import RequirementState
from .models import RequirementTable
from .versions import meets_version

logger = logging.getLogger(__name__)


@dataclass
class ResolutionResult:
    """Everything a resolution run produced.

    Attributes:
        all_modules: Descriptors after deduplication, before resolution
        modules: Activated descriptors keyed by identity, in load order
        failed_modules: Failed descriptors in the order they failed
        states: Final state of every requirement
        cycles: True dependency cycles found by the classifier
        passes: Number of fixed-point passes the run took
        activation_errors: Identity -> reason, for modules whose activation failed
    """

    all_modules: list[ModuleDescriptor]
    modules: dict[str, ModuleDescriptor]
    failed_modules: list[ModuleDescriptor]
    states: Mapping[RequirementKey, RequirementState]
    cycles: list[Cycle] = field(default_factory=list)
    passes: int = 0
    activation_errors: dict[str, str] = field(default_factory=dict)

    @property
    def load_order(self) -> list[str]:
        return list(self.modules)

    @property
    def failed_ids(self) -> list[str]:
        return [descriptor.id for descriptor in self.failed_modules]

    def get(self, module_id: str) -> ModuleDescriptor | None:
        """Look up a descriptor that survived deduplication."""
        return next((d for d in self.all_modules if d.id == module_id), None)

    def state_of(self, module_id: str, index: int) -> RequirementState:
        return self.states[RequirementKey(module_id, index)]

    def status_of(self, module_id: str) -> ModuleStatus | None:
        """Overall status of a module, or None if it was never known."""
        if module_id in self.modules:
            return ModuleStatus.RESOLVED
        if module_id in self.failed_ids:
            return ModuleStatus.FAILED
        if self.get(module_id) is not None:
            return ModuleStatus.PENDING
        return None

    def requirements_of(self, module_id: str) -> list[tuple[DependencyRequirement, RequirementState]]:
        descriptor = self.get(module_id)
        if descriptor is None:
            return []
        return [
            (requirement, self.states[key])
            for key, requirement in zip(descriptor.requirement_keys(), descriptor.dependencies, strict=True)
        ]

    def unresolved_requirements(self, module_id: str) -> list[tuple[DependencyRequirement, RequirementState]]:
        """Requirements of a module that did not end up RESOLVED."""
        return [
            (requirement, state)
            for requirement, state in self.requirements_of(module_id)
            if state.kind is not DependencyState.RESOLVED
        ]


class ModuleResolver:
    """Resolves one set of discovered descriptors.

    Construct one resolver per run. ``resolve()`` activates modules, so
    it runs once; later calls return the same result.
    """

    def __init__(self, descriptors: Iterable[ModuleDescriptor], activate: Activator | None = None) -> None:
        """Initialize resolver.

        Args:
            descriptors: Discovered descriptors, duplicates allowed
            activate: Called once per resolvable module (default: LoggingActivator)
        """
        self._descriptors = tuple(descriptors)
        self._activate = activate or LoggingActivator()
        self._known: dict[str, ModuleDescriptor] = {}
        self._table = RequirementTable()
        self._dependents: dict[str, list[RequirementKey]] = {}
        self._result: ResolutionResult | None = None

    def resolve(self) -> ResolutionResult:
        if self._result is not None:
            return self._result

        deduplicator = ModuleDeduplicator()
        deduplicator.add_all(self._descriptors)
        self._known = deduplicator.by_id
        self._table = RequirementTable(self._known)

        classifier = CycleClassifier(self._known, self._table)
        cycles = classifier.classify()
        self._dependents = classifier.dependents

        working = dict(self._known)
        modules: dict[str, ModuleDescriptor] = {}
        failed: list[ModuleDescriptor] = []
        errors: dict[str, str] = {}
        passes = 0

        while working:
            passes += 1
            settled = 0
            for descriptor in list(working.values()):
                all_resolved, none_pending = self._check(descriptor)
                if all_resolved:
                    error = self._run_activation(descriptor)
                    if error is None:
                        self._release(descriptor, activated=True)
                        modules[descriptor.id] = descriptor
                    else:
                        errors[descriptor.id] = error
                        self._release(descriptor, activated=False)
                        failed.append(descriptor)
                elif none_pending:
                    logger.info(f"Module {descriptor} failed: {self._describe_failure(descriptor)}")
                    self._release(descriptor, activated=False)
                    failed.append(descriptor)
                else:
                    continue
                del working[descriptor.id]
                settled += 1

            if not settled:
                raise ResolutionStalledError(sorted(working))
            logger.debug(f"Pass {passes}: settled {settled}, {len(working)} remaining")

        logger.info(
            f"Resolved {len(modules)} of {len(self._known)} modules in {passes} passes ({len(failed)} failed)",
            extra={"event": "modules.resolved"},
        )
        self._result = ResolutionResult(
            all_modules=deduplicator.modules,
            modules=modules,
            failed_modules=failed,
            states=self._table.snapshot(),
            cycles=cycles,
            passes=passes,
            activation_errors=errors,
        )
        return self._result

    def _check(self, descriptor: ModuleDescriptor) -> tuple[bool, bool]:
        """Settle what can be settled locally.

        Returns:
            Tuple of (every requirement RESOLVED, no requirement PENDING)
        """
        all_resolved = True
        none_pending = True
        for key, requirement in zip(descriptor.requirement_keys(), descriptor.dependencies, strict=True):
            kind = self._table.kind(key)
            if kind is DependencyState.RESOLVED:
                continue
            all_resolved = False
            if kind is not DependencyState.PENDING:
                continue

            target = self._known.get(requirement.target)
            if target is None:
                self._table.set(key, RequirementState.not_found())
            elif not meets_version(target.version, requirement.minimum):
                self._table.set(key, RequirementState.old_version())
            else:
                none_pending = False
        return all_resolved, none_pending

    def _run_activation(self, descriptor: ModuleDescriptor) -> str | None:
        """Activate a module and return the failure reason, if any."""
        try:
            outcome = self._activate(descriptor)
        except ModuleActivationError as e:
            outcome = ActivationResult.failed(e.reason)

        if outcome is None or outcome.success:
            return None
        reason = outcome.error or "activation failed"
        logger.warning(f"Activation of {descriptor} failed: {reason}", extra={"event": "module.activation_failed"})
        return reason

    def _release(self, descriptor: ModuleDescriptor, *, activated: bool) -> None:
        """Settle every pending requirement waiting on ``descriptor``."""
        for key in self._dependents.get(descriptor.id, []):
            if not self._table.is_pending(key):
                continue
            requirement = self._known[key.module_id].dependencies[key.index]
            if not activated:
                self._table.set(key, RequirementState.not_found())
            elif meets_version(descriptor.version, requirement.minimum):
                self._table.set(key, RequirementState.resolved(descriptor.version))
            else:
                self._table.set(key, RequirementState.old_version())

    def _describe_failure(self, descriptor: ModuleDescriptor) -> str:
        reasons = []
        for key, requirement in zip(descriptor.requirement_keys(), descriptor.dependencies, strict=True):
            state = self._table[key]
            if state.kind is not DependencyState.RESOLVED:
                reasons.append(f"{requirement} is {state}")
        return "; ".join(reasons)


def resolve_modules(descriptors: Iterable[ModuleDescriptor], activate: Activator | None = None) -> ResolutionResult:
    """Deduplicate, classify and resolve ``descriptors`` in one run."""
    return ModuleResolver(descriptors, activate).resolve()
