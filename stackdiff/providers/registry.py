"""
Spec provider registry.

Maps backend names to factories that build ``SpecProvider`` instances.
Provider packages contribute factories through a ``register_providers``
function, discovered from the configured providers path.
"""

import importlib
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from ..config import DiffConfig
from .base import SpecProvider


logger = logging.getLogger(__name__)

ProviderFactory = Callable[[Any, DiffConfig, logging.Logger], SpecProvider]


class ProviderRegistry:
    """Registry of spec provider factories keyed by backend name."""

    def __init__(self):
        """Initialize empty provider registry."""
        self._factories: Dict[str, ProviderFactory] = {}
        self._discovered: Set[str] = set()

    def register(self, name: str, factory: ProviderFactory) -> None:
        """
        Register a spec provider factory.

        Args:
            name: Backend name the factory serves
            factory: Callable(backend, config, log) returning a SpecProvider

        Raises:
            ValueError: If name is empty or factory is not callable
        """
        if not name:
            raise ValueError("Provider name cannot be empty")
        if not callable(factory):
            raise ValueError(f"Factory for provider '{name}' is not callable")

        self._factories[name] = factory
        logger.debug(f"Registered spec provider: {name}")

    def get(self, name: str) -> Optional[ProviderFactory]:
        """Factory for a backend name, or None if not found."""
        return self._factories.get(name)

    def exists(self, name: str) -> bool:
        return name in self._factories

    def list_providers(self) -> List[str]:
        return sorted(self._factories)

    def discover(self, module_path: str) -> None:
        """
        Import a providers module and let it register its factories.

        Each module is only imported once per registry.

        Raises:
            ImportError: If the module cannot be imported
            AttributeError: If it has no register_providers function
        """
        if module_path in self._discovered:
            return

        module = importlib.import_module(module_path)
        register = getattr(module, "register_providers", None)
        if not callable(register):
            raise AttributeError(f"module '{module_path}' has no register_providers()")

        register(self)
        self._discovered.add(module_path)
        logger.debug(f"Discovered spec providers from {module_path}: {self.list_providers()}")

    def create(self, name: str, backend: Any, config: DiffConfig, log: logging.Logger) -> SpecProvider:
        """
        Build the spec provider registered under ``name``.

        Raises:
            LookupError: If nothing is registered under ``name``
        """
        factory = self.get(name)
        if factory is None:
            raise LookupError(f"no spec provider registered for '{name}'")
        return factory(backend, config, log)
