# fleet_telemetry_gateway/registry.py
"""
Adapter registry: provider type -> adapter constructor.

Vendors are added with ``register`` calls rather than a switch statement, so
a new adapter only needs one registration line. The default registry is
pre-populated with the six built-in adapters.

Design Decisions:
-----------------
- Case-insensitive lookups: provider types may be given as enum members or
  as strings in any case.

- Factories, not instances: every ``create`` call builds a fresh adapter
  with the settings, token cache and HTTP helper it is given. Adapters are
  stateless, so callers may also keep and reuse them.

Usage:
------
    from fleet_telemetry_gateway.registry import create_adapter

    adapter = create_adapter('samsara')
    token = await adapter.authenticate({'apiKey': 'samsara_api_...'})
    vehicles = await adapter.get_vehicles(token)
"""

import logging
from typing import Protocol, Self

from fleet_telemetry_gateway.adapters import (
    FleetGoAdapter,
    ProviderAdapter,
    RouteVisionAdapter,
    SamsaraAdapter,
    TrackJackAdapter,
    VerizonAdapter,
    WebfleetAdapter,
)
from fleet_telemetry_gateway.catalog import resolve_provider_type
from fleet_telemetry_gateway.client import ProviderHttpClient
from fleet_telemetry_gateway.config import ProviderConfig
from fleet_telemetry_gateway.exceptions import UnknownProviderError
from fleet_telemetry_gateway.models import ProviderType
from fleet_telemetry_gateway.token_cache import TokenCache

__all__: list[str] = [
    'AdapterFactory',
    'AdapterRegistry',
    'create_adapter',
]

logger: logging.Logger = logging.getLogger(__name__)


class AdapterFactory(Protocol):
    """Callable building an adapter from its collaborators (adapter classes qualify)."""

    def __call__(
        self,
        settings: ProviderConfig | None = None,
        token_cache: TokenCache | None = None,
        http_client: ProviderHttpClient | None = None,
    ) -> ProviderAdapter: ...


class AdapterRegistry:
    """
    Maps provider types to adapter factories.

    Example:
        >>> registry = AdapterRegistry.default()
        >>> adapter = registry.create('verizon')
        >>> adapter.provider_type
        <ProviderType.VERIZON: 'verizon'>
    """

    _default: Self | None = None

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._factories: dict[ProviderType, AdapterFactory] = {}

    @classmethod
    def default(cls) -> Self:
        """
        Get the shared registry with every built-in adapter registered.

        Returns:
            The shared AdapterRegistry instance.
        """
        if cls._default is None:
            registry = cls()
            registry.register(ProviderType.ROUTEVISION, RouteVisionAdapter)
            registry.register(ProviderType.FLEETGO, FleetGoAdapter)
            registry.register(ProviderType.SAMSARA, SamsaraAdapter)
            registry.register(ProviderType.WEBFLEET, WebfleetAdapter)
            registry.register(ProviderType.TRACKJACK, TrackJackAdapter)
            registry.register(ProviderType.VERIZON, VerizonAdapter)
            cls._default = registry
        return cls._default

    def register(self, provider_type: ProviderType | str, factory: AdapterFactory) -> None:
        """
        Register (or replace) the factory for a provider type.

        Args:
            provider_type: Provider the factory builds adapters for.
            factory: Callable accepting settings, token_cache and http_client.

        Raises:
            UnknownProviderError: If provider_type is not a ProviderType.
        """
        resolved: ProviderType = resolve_provider_type(provider_type)
        if resolved in self._factories:
            logger.debug('Replacing adapter factory for %s', resolved.value)
        self._factories[resolved] = factory

    def create(
        self,
        provider_type: ProviderType | str,
        settings: ProviderConfig | None = None,
        token_cache: TokenCache | None = None,
        http_client: ProviderHttpClient | None = None,
    ) -> ProviderAdapter:
        """
        Build an adapter for a provider type.

        Args:
            provider_type: Provider type enum or case-insensitive name.
            settings: Transport settings. Defaults to ProviderConfig().
            token_cache: Token cache. Defaults to TokenCache.shared().
            http_client: HTTP helper. Defaults to one built from settings.

        Returns:
            A new adapter whose provider_type equals the requested type.

        Raises:
            UnknownProviderError: If no factory is registered for the type.
        """
        resolved: ProviderType = resolve_provider_type(provider_type)

        factory: AdapterFactory | None = self._factories.get(resolved)
        if factory is None:
            raise UnknownProviderError(
                provider=str(provider_type),
                available_providers=self.list_provider_types(),
            )

        return factory(settings=settings, token_cache=token_cache, http_client=http_client)

    def list_provider_types(self) -> list[str]:
        """Registered provider type names, sorted."""
        return sorted(provider_type.value for provider_type in self._factories)

    def has(self, provider_type: ProviderType | str) -> bool:
        """Check whether a factory is registered for a provider type."""
        try:
            return resolve_provider_type(provider_type) in self._factories
        except UnknownProviderError:
            return False

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f'AdapterRegistry(providers={self.list_provider_types()})'


def create_adapter(
    provider_type: ProviderType | str,
    *,
    settings: ProviderConfig | None = None,
    token_cache: TokenCache | None = None,
    http_client: ProviderHttpClient | None = None,
) -> ProviderAdapter:
    """
    Build an adapter from the default registry.

    Raises:
        UnknownProviderError: If the provider type is not supported.
    """
    return AdapterRegistry.default().create(
        provider_type,
        settings=settings,
        token_cache=token_cache,
        http_client=http_client,
    )
