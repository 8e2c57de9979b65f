"""Registry of provider implementations.

Providers register themselves with the `register_provider` decorator at
import time. The orchestrator only ever sees the instances produced by
`build_providers`, so sources can be added or removed without touching it.
"""

import logging

from pricefuse.config import Settings, settings as default_settings
from pricefuse.providers.base import PriceProvider

logger = logging.getLogger(__name__)

_REGISTRY: dict[str, type[PriceProvider]] = {}


def register_provider(cls: type[PriceProvider]) -> type[PriceProvider]:
    """Class decorator adding a provider implementation to the registry."""
    name = getattr(cls, "name", None)
    if not name:
        raise TypeError(f"{cls.__name__} must define a non-empty 'name'")
    existing = _REGISTRY.get(name)
    if existing is not None and existing is not cls:
        raise ValueError(f"Provider name '{name}' already registered by {existing.__name__}")
    _REGISTRY[name] = cls
    return cls


def unregister_provider(name: str) -> None:
    _REGISTRY.pop(name, None)


def registered_providers() -> dict[str, type[PriceProvider]]:
    """Registered implementations keyed by provider name."""
    return dict(_REGISTRY)


def build_providers(
    settings: Settings | None = None,
    names: list[str] | None = None,
) -> list[PriceProvider]:
    """Instantiate every registered provider whose credentials are configured.

    Args:
        settings: Settings to build from (default: global settings)
        names: Restrict to these provider names (default: all registered)

    Returns:
        Provider instances in registration order
    """
    settings = settings or default_settings
    providers: list[PriceProvider] = []

    for name, cls in _REGISTRY.items():
        if names is not None and name not in names:
            continue
        if not cls.is_configured(settings):
            logger.warning("Provider %s not configured (missing credentials), skipping", name)
            continue
        providers.append(cls(settings=settings))

    logger.info("Built %d providers: %s", len(providers), [p.name for p in providers])
    return providers
