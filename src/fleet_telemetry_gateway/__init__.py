# fleet_telemetry_gateway/__init__.py
"""
Fleet Telemetry Gateway - one interface to many fleet-tracking vendors.

Fleet-management products need vehicles, trips and live positions from
whichever tracking system a customer happens to use. Each vendor has its own
authentication scheme, payload shape and units. This package hides those
differences behind a single adapter contract and normalized models.

Supported vendors:
    RouteVision, FleetGO, Samsara, Webfleet (TomTom), TrackJack and
    Verizon Connect.

Quick Start - Gateway (config-driven):
    >>> from fleet_telemetry_gateway import FleetGateway
    >>>
    >>> gateway = FleetGateway.from_config('config/gateway_config.yaml')
    >>> result = await gateway.test_connection('samsara', {'apiKey': '...'})
    >>> token = await gateway.authenticate('samsara', {'apiKey': '...'})
    >>> batch = await gateway.fetch_trips('samsara', token, ['281474'], start, end)
    >>> df = trips_to_dataframe(batch.trips)

Quick Start - Single Adapter:
    >>> from fleet_telemetry_gateway import create_adapter
    >>>
    >>> adapter = create_adapter('routevision')
    >>> token = await adapter.authenticate({'email': '...', 'password': '...'})
    >>> vehicles = await adapter.get_vehicles(token)

Features:
    - Normalized units: kilometers, minutes, km/h, timezone-aware datetimes
    - Process-wide token cache (14 minute TTL by default)
    - Connection probes that report failures instead of raising
    - Per-vehicle error isolation for bulk trip fetches
    - Optional retry with exponential backoff for transient failures
"""

__version__ = '0.1.0'

from fleet_telemetry_gateway.adapters import ProviderAdapter
from fleet_telemetry_gateway.catalog import (
    ProviderCatalog,
    get_provider_info,
    list_providers,
)
from fleet_telemetry_gateway.client import ProviderHttpClient, RateLimitError
from fleet_telemetry_gateway.common import setup_logger
from fleet_telemetry_gateway.config import GatewayConfig, ProviderConfig, load_config
from fleet_telemetry_gateway.exceptions import (
    AuthenticationFailedError,
    DateRangeError,
    DateRangeTooLargeError,
    FleetGatewayError,
    InvalidDateRangeError,
    MalformedResponseError,
    MissingCredentialsError,
    ProviderRequestError,
    TransientProviderError,
    UnknownProviderError,
)
from fleet_telemetry_gateway.gateway import FleetGateway
from fleet_telemetry_gateway.models import (
    ConnectionTestResult,
    ProviderInfo,
    ProviderType,
    Trip,
    TripBatch,
    Vehicle,
    VehicleLocation,
)
from fleet_telemetry_gateway.normalization import format_address, parse_duration_to_minutes
from fleet_telemetry_gateway.registry import AdapterRegistry, create_adapter
from fleet_telemetry_gateway.schema import trips_to_dataframe
from fleet_telemetry_gateway.token_cache import TokenCache

__all__: list[str] = [
    'AdapterRegistry',
    'AuthenticationFailedError',
    'ConnectionTestResult',
    'DateRangeError',
    'DateRangeTooLargeError',
    'FleetGateway',
    'FleetGatewayError',
    'GatewayConfig',
    'InvalidDateRangeError',
    'MalformedResponseError',
    'MissingCredentialsError',
    'ProviderAdapter',
    'ProviderCatalog',
    'ProviderConfig',
    'ProviderHttpClient',
    'ProviderInfo',
    'ProviderRequestError',
    'ProviderType',
    'RateLimitError',
    'TokenCache',
    'TransientProviderError',
    'Trip',
    'TripBatch',
    'UnknownProviderError',
    'Vehicle',
    'VehicleLocation',
    '__version__',
    'create_adapter',
    'format_address',
    'get_provider_info',
    'list_providers',
    'load_config',
    'parse_duration_to_minutes',
    'setup_logger',
    'trips_to_dataframe',
]
