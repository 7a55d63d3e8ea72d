"""Module system: descriptors, discovery and dependency resolution.

Public API:
- ModuleDescriptor, DependencyRequirement: parsed module metadata
- DependencyState, RequirementState, ModuleStatus: resolution states
- ModuleDeduplicator: one descriptor per identity, newest version wins
- CycleClassifier: marks true dependency cycles before resolution
- ModuleResolver / resolve_modules: fixed-point resolution and activation
- discover_modules: find module.yaml documents in directories and archives
- load_modules: discovery followed by resolution for a game installation
"""

from .activation import ActivationResult
from .activation import Activator
from .activation import LoggingActivator
from .cycles import CycleClassifier
from .cycles import classify_cycles
from .deduplicator import ModuleDeduplicator
from .deduplicator import deduplicate
from .discovery import DiscoveryReport
from .discovery import SkippedManifest
from .discovery import discover_modules
from .discovery import parse_manifest
from .errors import InvalidTransitionError
from .errors import ManifestError
from .errors import ModuleActivationError
from .errors import ModuleSystemError
from .errors import ResolutionStalledError
from .loader import LoadReport
from .loader import load_modules
from .models import Cycle
from .models import DependencyRequirement
from .models import DependencyState
from .models import ModuleDescriptor
from .models import ModuleStatus
from .models import RequirementKey
from .models import RequirementState
from .models import RequirementTable
from .models import module_status
from .resolver import ModuleResolver
from .resolver import ResolutionResult
from .resolver import resolve_modules
from .schema import ModuleManifest

__all__ = [
    "ActivationResult",
    "Activator",
    "Cycle",
    "CycleClassifier",
    "DependencyRequirement",
    "DependencyState",
    "DiscoveryReport",
    "InvalidTransitionError",
    "LoadReport",
    "LoggingActivator",
    "ManifestError",
    "ModuleActivationError",
    "ModuleDeduplicator",
    "ModuleDescriptor",
    "ModuleManifest",
    "ModuleResolver",
    "ModuleStatus",
    "ModuleSystemError",
    "RequirementKey",
    "RequirementState",
    "RequirementTable",
    "ResolutionResult",
    "ResolutionStalledError",
    "SkippedManifest",
    "classify_cycles",
    "deduplicate",
    "discover_modules",
    "load_modules",
    "module_status",
    "parse_manifest",
    "resolve_modules",
]
