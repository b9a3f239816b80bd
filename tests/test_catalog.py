"""
Tests for fleet_telemetry_gateway.catalog module.

Tests provider metadata lookup, ordering and provider type resolution.
"""

import pytest

from fleet_telemetry_gateway.catalog import (
    ProviderCatalog,
    get_provider_info,
    list_providers,
    resolve_provider_type,
)
from fleet_telemetry_gateway.exceptions import UnknownProviderError
from fleet_telemetry_gateway.models import AuthType, CountryClass, ProviderType


class TestResolveProviderType:
    """Tests for resolve_provider_type."""

    def test_enum_passes_through(self) -> None:
        """Should return enum members unchanged."""
        assert resolve_provider_type(ProviderType.SAMSARA) is ProviderType.SAMSARA

    def test_string_is_case_insensitive(self) -> None:
        """Should accept names in any case with surrounding whitespace."""
        assert resolve_provider_type('  WebFleet ') is ProviderType.WEBFLEET

    def test_unknown_name_raises(self) -> None:
        """Should raise UnknownProviderError listing the supported providers."""
        with pytest.raises(UnknownProviderError) as exc_info:
            resolve_provider_type('geotab')

        assert exc_info.value.provider == 'geotab'
        assert 'routevision' in exc_info.value.available_providers
        assert 'geotab' in str(exc_info.value)


class TestProviderCatalog:
    """Tests for ProviderCatalog."""

    def test_every_provider_type_has_metadata(self) -> None:
        """Should describe each supported provider exactly once."""
        catalog = ProviderCatalog()

        assert len(catalog) == len(ProviderType)
        for provider_type in ProviderType:
            assert catalog.get_provider_info(provider_type).id is provider_type

    def test_auth_types(self) -> None:
        """Should declare the auth scheme each vendor requires."""
        assert get_provider_info('routevision').auth_type is AuthType.CREDENTIALS
        assert get_provider_info('fleetgo').auth_type is AuthType.API_KEY
        assert get_provider_info('samsara').auth_type is AuthType.API_KEY
        assert get_provider_info('webfleet').auth_type is AuthType.CREDENTIALS
        assert get_provider_info('trackjack').auth_type is AuthType.CREDENTIALS
        assert get_provider_info('verizon').auth_type is AuthType.OAUTH2

    def test_countries(self) -> None:
        """Should classify vendors by primary market."""
        assert get_provider_info('routevision').country is CountryClass.NL
        assert get_provider_info('webfleet').country is CountryClass.EU
        assert get_provider_info('samsara').country is CountryClass.GLOBAL

    def test_machine_name_and_logo(self) -> None:
        """Should expose each vendor's machine name and logo path."""
        for info in list_providers():
            assert info.name == info.id.value
            assert info.logo == f'/images/providers/{info.id.value}.svg'

    def test_list_orders_popular_first_then_by_name(self) -> None:
        """Should list popular vendors first, each group sorted by display name."""
        names: list[str] = [info.display_name for info in list_providers()]

        assert names == [
            'FleetGO',
            'RouteVision',
            'Samsara',
            'Webfleet (TomTom)',
            'TrackJack',
            'Verizon Connect',
        ]

    def test_has(self) -> None:
        """Should report membership without raising for unknown names."""
        catalog = ProviderCatalog.instance()

        assert catalog.has('verizon')
        assert not catalog.has('geotab')

    def test_custom_catalog_rejects_missing_provider(self) -> None:
        """Should raise UnknownProviderError for a type it does not hold."""
        catalog = ProviderCatalog(infos=(get_provider_info('samsara'),))

        with pytest.raises(UnknownProviderError):
            catalog.get_provider_info('verizon')

    def test_instance_is_shared(self) -> None:
        """Should return the same catalog on every call."""
        assert ProviderCatalog.instance() is ProviderCatalog.instance()
