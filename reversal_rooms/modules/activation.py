"""Module activation.

The resolver hands every resolvable module to an activator exactly once,
synchronously, in load order. Activators report failure either by
returning a failed ActivationResult or by raising ModuleActivationError;
any other exception is a bug and propagates to the caller.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .models import ModuleDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivationResult:
    """Outcome of activating one module."""

    success: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "ActivationResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error: str) -> "ActivationResult":
        return cls(success=False, error=error)


Activator = Callable[[ModuleDescriptor], ActivationResult | None]


class LoggingActivator:
    """Placeholder activator that only logs and remembers what it loaded.

    Loading code and assets is not implemented by the engine yet.
    """

    def __init__(self) -> None:
        self.activated: list[ModuleDescriptor] = []

    def __call__(self, descriptor: ModuleDescriptor) -> ActivationResult:
        logger.info(f"Loading: {descriptor.id}", extra={"event": "module.activate", "module_id": descriptor.id})
        self.activated.append(descriptor)
        return ActivationResult.ok()

    @property
    def order(self) -> list[str]:
        """Identities in the order they were activated."""
        return [descriptor.id for descriptor in self.activated]
