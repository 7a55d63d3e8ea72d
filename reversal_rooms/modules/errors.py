"""Exceptions raised by the module system.

Resolution outcomes (missing dependencies, stale versions, cycles) are
reported as requirement states, not exceptions. The classes here cover
programming errors and collaborator failures only.
"""


class ModuleSystemError(Exception):
    """Base class for module system errors."""


class InvalidTransitionError(ModuleSystemError):
    """A terminal requirement state was asked to change."""

    def __init__(self, key, current, requested):
        self.key = key
        self.current = current
        self.requested = requested
        super().__init__(
            f"Requirement {key.module_id}[{key.index}] is already {current.value}, cannot become {requested.value}"
        )


class ResolutionStalledError(ModuleSystemError):
    """A resolution pass finished without resolving or failing any module."""

    def __init__(self, pending: list[str]):
        self.pending = pending
        super().__init__(f"Resolution made no progress; still pending: {', '.join(pending)}")


class ModuleActivationError(ModuleSystemError):
    """Raised by an activator when a module could not be activated."""

    def __init__(self, module_id: str, reason: str):
        self.module_id = module_id
        self.reason = reason
        super().__init__(f"Failed to activate '{module_id}': {reason}")


class ManifestError(ModuleSystemError):
    """A module metadata document could not be parsed or validated."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid module metadata at {path}: {reason}")
