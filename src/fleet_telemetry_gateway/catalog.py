# fleet_telemetry_gateway/catalog.py
"""
Static catalog of supported fleet-tracking vendors.

The catalog answers "which vendors exist and what do they need?" without
constructing adapters or touching the network. A settings screen can list the
vendors and render the right credential form from ``auth_type``.

Design Decisions:
-----------------
- Case-insensitive lookups: 'RouteVision', 'ROUTEVISION' and 'routevision'
  all resolve to the same entry.

- Immutable after initialization: entries live in a MappingProxyType and
  ProviderInfo is frozen.

- Singleton convenience: ``ProviderCatalog.instance()`` returns a shared
  catalog; independent instances are cheap to create for tests.

Usage:
------
    from fleet_telemetry_gateway.catalog import get_provider_info, list_providers

    for info in list_providers():
        print(info.display_name, info.auth_type.value)
"""

import logging
from types import MappingProxyType
from typing import Self

from fleet_telemetry_gateway.exceptions import UnknownProviderError
from fleet_telemetry_gateway.models import (
    AuthType,
    CountryClass,
    ProviderInfo,
    ProviderType,
)

__all__: list[str] = [
    'ProviderCatalog',
    'get_provider_info',
    'list_providers',
    'resolve_provider_type',
]

logger: logging.Logger = logging.getLogger(__name__)


_PROVIDER_INFOS: tuple[ProviderInfo, ...] = (
    ProviderInfo(
        id=ProviderType.ROUTEVISION,
        name='routevision',
        display_name='RouteVision',
        logo='/images/providers/routevision.svg',
        description='Dutch trip registration specialist with extensive reporting',
        website='https://routevision.com',
        auth_type=AuthType.CREDENTIALS,
        features=('Trip registration', 'GPS tracking', 'Mileage records', 'Tax reports'),
        country=CountryClass.NL,
        popular=True,
    ),
    ProviderInfo(
        id=ProviderType.FLEETGO,
        name='fleetgo',
        display_name='FleetGO',
        logo='/images/providers/fleetgo.svg',
        description='Modern fleet management with real-time tracking and eco-driving scores',
        website='https://fleetgo.com',
        auth_type=AuthType.API_KEY,
        features=('Fleet management', 'Eco-driving', 'Real-time tracking', 'Maintenance'),
        country=CountryClass.NL,
        popular=True,
    ),
    ProviderInfo(
        id=ProviderType.SAMSARA,
        name='samsara',
        display_name='Samsara',
        logo='/images/providers/samsara.svg',
        description='Enterprise fleet platform with AI dashcams and IoT sensors',
        website='https://samsara.com',
        auth_type=AuthType.API_KEY,
        features=('AI dashcams', 'IoT sensors', 'Route optimization', 'Compliance'),
        country=CountryClass.GLOBAL,
        popular=True,
    ),
    ProviderInfo(
        id=ProviderType.WEBFLEET,
        name='webfleet',
        display_name='Webfleet (TomTom)',
        logo='/images/providers/webfleet.svg',
        description="TomTom's professional fleet management with navigation integration",
        website='https://webfleet.com',
        auth_type=AuthType.CREDENTIALS,
        features=('TomTom navigation', 'OptiDrive 360', 'Work orders', 'API integrations'),
        country=CountryClass.EU,
        popular=True,
    ),
    ProviderInfo(
        id=ProviderType.TRACKJACK,
        name='trackjack',
        display_name='TrackJack',
        logo='/images/providers/trackjack.svg',
        description='Affordable trip registration for small businesses with tax export',
        website='https://trackjack.nl',
        auth_type=AuthType.CREDENTIALS,
        features=('Trip registration', 'Tax export', 'SME friendly', 'Low cost'),
        country=CountryClass.NL,
        popular=False,
    ),
    ProviderInfo(
        id=ProviderType.VERIZON,
        name='verizon',
        display_name='Verizon Connect',
        logo='/images/providers/verizon.svg',
        description='Enterprise fleet management with extensive analytics and integrations',
        website='https://verizonconnect.com',
        auth_type=AuthType.OAUTH2,
        features=('Enterprise analytics', 'Field service', 'Asset tracking', 'Video telematics'),
        country=CountryClass.GLOBAL,
        popular=False,
    ),
)


def resolve_provider_type(provider_type: ProviderType | str) -> ProviderType:
    """
    Normalize a provider type given as enum or case-insensitive string.

    Raises:
        UnknownProviderError: If the value names no supported provider.
    """
    if isinstance(provider_type, ProviderType):
        return provider_type

    try:
        return ProviderType(str(provider_type).strip().lower())
    except ValueError as error:
        raise UnknownProviderError(
            provider=str(provider_type),
            available_providers=[member.value for member in ProviderType],
        ) from error


class ProviderCatalog:
    """
    Read-only registry of ProviderInfo, one entry per ProviderType.

    Example:
        >>> catalog = ProviderCatalog.instance()
        >>> catalog.get_provider_info('verizon').auth_type
        <AuthType.OAUTH2: 'oauth2'>
    """

    _instance: Self | None = None

    def __init__(self, infos: tuple[ProviderInfo, ...] = _PROVIDER_INFOS) -> None:
        """
        Initialize the catalog.

        Args:
            infos: Provider metadata. Defaults to the built-in vendor list.
        """
        self._infos: MappingProxyType[ProviderType, ProviderInfo] = MappingProxyType(
            {info.id: info for info in infos}
        )
        logger.debug('ProviderCatalog initialized: %d providers', len(self._infos))

    @classmethod
    def instance(cls) -> Self:
        """Get the shared catalog instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def get_provider_info(self, provider_type: ProviderType | str) -> ProviderInfo:
        """
        Look up metadata for one provider.

        Args:
            provider_type: Provider type enum or case-insensitive name.

        Returns:
            The provider's ProviderInfo.

        Raises:
            UnknownProviderError: If the provider is not in the catalog.
        """
        resolved: ProviderType = resolve_provider_type(provider_type)

        if resolved not in self._infos:
            raise UnknownProviderError(
                provider=resolved.value,
                available_providers=[key.value for key in self._infos],
            )
        return self._infos[resolved]

    def list_providers(self) -> list[ProviderInfo]:
        """
        List every provider, popular ones first, then by display name.

        Returns:
            ProviderInfo list in presentation order.
        """
        return sorted(
            self._infos.values(),
            key=lambda info: (not info.popular, info.display_name.lower()),
        )

    def has(self, provider_type: ProviderType | str) -> bool:
        """Check whether a provider is in the catalog."""
        try:
            resolved: ProviderType = resolve_provider_type(provider_type)
        except UnknownProviderError:
            return False
        return resolved in self._infos

    def __len__(self) -> int:
        """Number of providers in the catalog."""
        return len(self._infos)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f'ProviderCatalog(providers={[key.value for key in self._infos]})'


def get_provider_info(provider_type: ProviderType | str) -> ProviderInfo:
    """Look up provider metadata in the shared catalog."""
    return ProviderCatalog.instance().get_provider_info(provider_type)


def list_providers() -> list[ProviderInfo]:
    """List providers from the shared catalog, popular first."""
    return ProviderCatalog.instance().list_providers()
