"""Identity provider registry.

Maps lowercase provider names to factories. Built once at startup by
build_default_registry() and passed by reference to whatever needs provider
lookup; there is no module-level instance.
"""

import logging
import threading
from typing import Callable, Dict, List

from .errors import ConfigError
from .oauth2 import OAuth2Provider
from .providers import register_builtin_providers

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[], OAuth2Provider]


class ProviderRegistry:
    """Name-keyed table of provider factories.

    get() always returns a brand-new instance: provider credentials are
    mutable, so instances are never shared between login attempts.

    Registration normally happens before traffic starts. Late registration is
    serialized by a lock; lookups do not lock because a single dict read is
    atomic and factories are never mutated in place.
    """

    def __init__(self):
        self._factories: Dict[str, ProviderFactory] = {}
        self._lock = threading.Lock()

    def register(self, name: str, factory: ProviderFactory, replace: bool = False) -> None:
        """Register a provider factory.

        Args:
            name: Provider name; stored lowercase
            factory: Zero-argument callable returning a new OAuth2Provider
            replace: Allow overriding an existing registration

        Raises:
            ConfigError: If name is empty or already registered and replace is False
        """
        key = _normalize(name)
        if not key:
            raise ConfigError("provider name must not be empty")

        with self._lock:
            if key in self._factories and not replace:
                raise ConfigError(f"provider already registered: {key}")
            factories = dict(self._factories)
            factories[key] = factory
            self._factories = factories

        logger.debug(f"Registered identity provider: {key}")

    def get(self, name: str) -> OAuth2Provider:
        """Create a fresh provider instance.

        Raises:
            ConfigError: If no provider is registered under name
        """
        factory = self._factories.get(_normalize(name))
        if factory is None:
            raise ConfigError(f"unknown provider: {name}")
        return factory()

    def names(self) -> List[str]:
        """Registered provider names, sorted."""
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _normalize(name) in self._factories

    def __len__(self) -> int:
        return len(self._factories)


def _normalize(name: str) -> str:
    return name.strip().lower()


def build_default_registry() -> ProviderRegistry:
    """Create a registry holding every built-in provider."""
    registry = ProviderRegistry()
    register_builtin_providers(registry)
    logger.info(f"Identity provider registry initialized: {', '.join(registry.names())}")
    return registry
