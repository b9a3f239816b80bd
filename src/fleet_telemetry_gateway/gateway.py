# fleet_telemetry_gateway/gateway.py
"""
High-level facade over the catalog, the adapter registry and the token cache.

A sync job or a "test connection" endpoint usually needs three things: the
list of vendors, a configured adapter per vendor, and a way to pull trips for
many vehicles at once without one broken vehicle hiding the rest. FleetGateway
bundles those on top of a loaded GatewayConfig.

Design Decisions:
-----------------
- One adapter per provider type, built lazily with that provider's
  ProviderConfig and reused afterwards (adapters are stateless).
- The gateway owns a TokenCache sized from ``token_cache.ttl_seconds`` unless
  one is injected.
- ``fetch_trips`` isolates failures per vehicle: gateway errors for one
  vehicle are recorded in the TripBatch and logged, the others continue.
  A rejected date window is the caller's mistake and raises immediately.

Usage:
------
    from fleet_telemetry_gateway import FleetGateway

    gateway = FleetGateway.from_config('config/gateway_config.yaml')

    result = await gateway.test_connection('routevision', stored_credentials)
    if result.success:
        token = await gateway.authenticate('routevision', stored_credentials)
        batch = await gateway.fetch_trips(
            'routevision', token, ['12', '15'], date_from, date_to
        )
"""

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any, Final, Self

import httpx

from fleet_telemetry_gateway.adapters import ProviderAdapter
from fleet_telemetry_gateway.catalog import ProviderCatalog, resolve_provider_type
from fleet_telemetry_gateway.client import ProviderHttpClient
from fleet_telemetry_gateway.config import GatewayConfig, ProviderConfig, load_config
from fleet_telemetry_gateway.exceptions import (
    DateRangeError,
    FleetGatewayError,
    UnknownProviderError,
)
from fleet_telemetry_gateway.models import (
    ConnectionTestResult,
    Credentials,
    ProviderInfo,
    ProviderType,
    Trip,
    TripBatch,
)
from fleet_telemetry_gateway.normalization import ensure_date_window
from fleet_telemetry_gateway.registry import AdapterRegistry
from fleet_telemetry_gateway.token_cache import TokenCache

__all__: list[str] = ['DEFAULT_MAX_CONCURRENCY', 'FleetGateway']

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY: Final[int] = 4


class FleetGateway:
    """
    Config-driven entry point to every supported vendor.

    Attributes:
        config: Validated gateway configuration.
        token_cache: Cache shared by every adapter this gateway builds.
    """

    def __init__(
        self,
        config: GatewayConfig | None = None,
        registry: AdapterRegistry | None = None,
        token_cache: TokenCache | None = None,
        catalog: ProviderCatalog | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            config: Gateway configuration. Defaults to GatewayConfig().
            registry: Adapter registry. Defaults to AdapterRegistry.default().
            token_cache: Token cache. Defaults to a new cache using the
                configured TTL.
            catalog: Provider catalog. Defaults to ProviderCatalog.instance().
            transport: Custom httpx transport passed to every HTTP helper.
        """
        self.config: GatewayConfig = config or GatewayConfig()
        self.token_cache: TokenCache = token_cache or TokenCache(
            ttl_seconds=self.config.token_cache.ttl_seconds
        )
        self._registry: AdapterRegistry = registry or AdapterRegistry.default()
        self._catalog: ProviderCatalog = catalog or ProviderCatalog.instance()
        self._transport: httpx.AsyncBaseTransport | None = transport
        self._adapters: dict[ProviderType, ProviderAdapter] = {}

    @classmethod
    def from_config(cls, config_path: Path | str | None = None) -> Self:
        """
        Build a gateway from a YAML configuration file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the configuration is invalid.
        """
        return cls(config=load_config(config_path))

    # -------------------------------------------------------------------------
    # Catalog Access
    # -------------------------------------------------------------------------

    def list_providers(self) -> list[ProviderInfo]:
        """Every supported provider, popular first."""
        return self._catalog.list_providers()

    def provider_info(self, provider_type: ProviderType | str) -> ProviderInfo:
        """Metadata of one provider. Raises UnknownProviderError if unknown."""
        return self._catalog.get_provider_info(provider_type)

    # -------------------------------------------------------------------------
    # Adapter Access
    # -------------------------------------------------------------------------

    def adapter(self, provider_type: ProviderType | str) -> ProviderAdapter:
        """
        Get the adapter for a provider, building it on first use.

        Raises:
            UnknownProviderError: If the provider is not supported.
        """
        resolved: ProviderType = resolve_provider_type(provider_type)

        cached: ProviderAdapter | None = self._adapters.get(resolved)
        if cached is not None:
            return cached

        settings: ProviderConfig = self.config.provider_settings(resolved)
        http_client = ProviderHttpClient(
            settings,
            transport=self._transport,
            use_truststore=self.config.use_truststore,
        )
        adapter: ProviderAdapter = self._registry.create(
            resolved,
            settings=settings,
            token_cache=self.token_cache,
            http_client=http_client,
        )
        self._adapters[resolved] = adapter
        logger.debug('Built %s adapter', resolved.value)
        return adapter

    async def authenticate(
        self,
        provider_type: ProviderType | str,
        credentials: Credentials | Mapping[str, Any],
    ) -> str:
        """Authenticate with a provider and return its token."""
        return await self.adapter(provider_type).authenticate(credentials)

    async def test_connection(
        self,
        provider_type: ProviderType | str,
        credentials: Credentials | Mapping[str, Any],
    ) -> ConnectionTestResult:
        """
        Probe a provider with the given credentials. Never raises.

        An unknown provider type is reported as a failed result as well.
        """
        try:
            adapter: ProviderAdapter = self.adapter(provider_type)
        except UnknownProviderError as error:
            return ConnectionTestResult.failed(str(error))
        return await adapter.test_connection(credentials)

    # -------------------------------------------------------------------------
    # Trip Fetching
    # -------------------------------------------------------------------------

    async def fetch_trips(
        self,
        provider_type: ProviderType | str,
        token: str,
        vehicle_ids: Iterable[str],
        date_from: datetime,
        date_to: datetime,
        *,
        include_running: bool = False,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> TripBatch:
        """
        Fetch trips for several vehicles concurrently.

        Args:
            provider_type: Provider to fetch from.
            token: Token from ``authenticate``.
            vehicle_ids: Vendor vehicle identifiers. Duplicates are fetched once.
            date_from: Window start.
            date_to: Window end.
            include_running: Keep trips that are still in progress.
            max_concurrency: Most vehicles fetched at the same time.

        Returns:
            TripBatch with the trips of every vehicle that succeeded and an
            error message per vehicle that failed.

        Raises:
            UnknownProviderError: If the provider is not supported.
            DateRangeTooLargeError: If the window exceeds the provider limit.
            InvalidDateRangeError: If date_from is after date_to.
            ValueError: If max_concurrency is below 1.
        """
        if max_concurrency < 1:
            raise ValueError(f'max_concurrency must be at least 1, got: {max_concurrency}')

        adapter: ProviderAdapter = self.adapter(provider_type)
        resolved: ProviderType = adapter.provider_type
        ensure_date_window(
            date_from,
            date_to,
            max_days=self.config.provider_settings(resolved).max_trip_window_days,
            provider=resolved.value,
        )

        unique_vehicle_ids: list[str] = list(dict.fromkeys(vehicle_ids))
        semaphore = asyncio.Semaphore(max_concurrency)
        errors: dict[str, str] = {}

        async def fetch_one(vehicle_id: str) -> Sequence[Trip]:
            async with semaphore:
                try:
                    return await adapter.get_trips(token, vehicle_id, date_from, date_to)
                except DateRangeError:
                    raise
                except FleetGatewayError as error:
                    logger.warning(
                        'Trip fetch failed for %s vehicle %s: %s',
                        resolved.value,
                        vehicle_id,
                        error,
                    )
                    errors[vehicle_id] = str(error) or type(error).__name__
                    return ()

        per_vehicle: list[Sequence[Trip]] = await asyncio.gather(
            *(fetch_one(vehicle_id) for vehicle_id in unique_vehicle_ids)
        )

        trips: list[Trip] = [
            trip
            for vehicle_trips in per_vehicle
            for trip in vehicle_trips
            if include_running or not trip.is_running
        ]

        logger.info(
            'Fetched %d trips for %d vehicles from %s (%d failed)',
            len(trips),
            len(unique_vehicle_ids),
            resolved.value,
            len(errors),
        )

        return TripBatch(
            provider_type=resolved,
            date_from=date_from,
            date_to=date_to,
            trips=tuple(trips),
            errors=errors,
        )
