# fleet_telemetry_gateway/models/__init__.py

from fleet_telemetry_gateway.models.credentials import (
    ApiKeyCredentials,
    Credentials,
    OAuth2ClientCredentials,
    SessionLoginCredentials,
    parse_credentials,
)
from fleet_telemetry_gateway.models.domain import (
    AuthType,
    ConnectionTestResult,
    CountryClass,
    ProviderInfo,
    ProviderType,
    Trip,
    TripBatch,
    TripLocation,
    Vehicle,
    VehicleLocation,
)
from fleet_telemetry_gateway.models.shared_request_models import (
    HTTPMethod,
    RateLimitInfo,
    RequestSpec,
)

__all__: list[str] = [
    'ApiKeyCredentials',
    'AuthType',
    'ConnectionTestResult',
    'CountryClass',
    'Credentials',
    'HTTPMethod',
    'OAuth2ClientCredentials',
    'ProviderInfo',
    'ProviderType',
    'RateLimitInfo',
    'RequestSpec',
    'SessionLoginCredentials',
    'Trip',
    'TripBatch',
    'TripLocation',
    'Vehicle',
    'VehicleLocation',
    'parse_credentials',
]
