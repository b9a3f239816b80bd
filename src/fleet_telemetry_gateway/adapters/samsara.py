# fleet_telemetry_gateway/adapters/samsara.py
"""
Samsara adapter (global enterprise fleet platform, static API token).

Authentication:
    The API token is validated by a probe (GET /fleet/vehicles with a bearer
    header) and then cached and returned as the "token".

Normalization:
    Trip distance arrives in meters. Trip duration is not reported, so it is
    computed from the start and end timestamps.
"""

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Final

from fleet_telemetry_gateway.adapters.base import (
    AdapterContext,
    authentication_exchange,
    build_model,
    probe_connection,
    require_credentials,
    validate_records,
)
from fleet_telemetry_gateway.catalog import get_provider_info
from fleet_telemetry_gateway.client import ProviderHttpClient
from fleet_telemetry_gateway.config import ProviderConfig
from fleet_telemetry_gateway.models import (
    ApiKeyCredentials,
    ConnectionTestResult,
    Credentials,
    HTTPMethod,
    ProviderInfo,
    ProviderType,
    Trip,
    TripLocation,
    Vehicle,
    VehicleLocation,
)
from fleet_telemetry_gateway.models.samsara_responses import (
    SamsaraLocation,
    SamsaraTrip,
    SamsaraTripEndpoint,
    SamsaraVehicle,
)
from fleet_telemetry_gateway.normalization import (
    UNKNOWN_ADDRESS,
    format_iso_utc,
    meters_to_km,
    minutes_between,
    parse_ignition,
    parse_timestamp,
    require_registration,
    to_float,
)
from fleet_telemetry_gateway.token_cache import TokenCache

__all__: list[str] = ['SAMSARA_BASE_URL', 'SamsaraAdapter']

logger: logging.Logger = logging.getLogger(__name__)

SAMSARA_BASE_URL: Final[str] = 'https://api.samsara.com'
COLLECTION_KEY: Final[str] = 'data'


def _to_trip_location(endpoint: SamsaraTripEndpoint | None) -> TripLocation:
    if endpoint is None:
        return TripLocation()
    return TripLocation(
        address=endpoint.formatted_address or UNKNOWN_ADDRESS,
        lat=endpoint.latitude,
        lng=endpoint.longitude,
    )


class SamsaraAdapter:
    """Adapter for the Samsara fleet API."""

    def __init__(
        self,
        settings: ProviderConfig | None = None,
        token_cache: TokenCache | None = None,
        http_client: ProviderHttpClient | None = None,
    ) -> None:
        self._context: AdapterContext = AdapterContext(
            ProviderType.SAMSARA,
            SAMSARA_BASE_URL,
            settings=settings,
            token_cache=token_cache,
            http_client=http_client,
        )

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.SAMSARA

    @property
    def info(self) -> ProviderInfo:
        return get_provider_info(self.provider_type)

    async def authenticate(self, credentials: Credentials | Mapping[str, Any]) -> str:
        """
        Validate the API token with a probe request and return it.

        Raises:
            MissingCredentialsError: If no API token is given.
            AuthenticationFailedError: If Samsara rejects the token.
        """
        key_credentials: ApiKeyCredentials = require_credentials(
            credentials, ApiKeyCredentials, self.provider_type
        )
        api_token: str = key_credentials.api_key.get_secret_value()

        async def exchange() -> str:
            with authentication_exchange(self.provider_type):
                await self._context.http.request(
                    HTTPMethod.GET, self._context.url('/fleet/vehicles'), token=api_token
                )
            return api_token

        return await self._context.token_for(key_credentials, exchange)

    async def test_connection(
        self, credentials: Credentials | Mapping[str, Any]
    ) -> ConnectionTestResult:
        return await probe_connection(self, credentials)

    async def get_vehicles(self, token: str) -> list[Vehicle]:
        payload: Any = await self._context.http.request(
            HTTPMethod.GET, self._context.url('/fleet/vehicles'), token=token
        )
        records: list[SamsaraVehicle] = validate_records(
            SamsaraVehicle, payload, self.provider_type, collection_key=COLLECTION_KEY
        )

        return [
            build_model(
                Vehicle,
                self.provider_type,
                id=record.vehicle_id,
                registration=require_registration(
                    (record.license_plate, record.name),
                    record.vehicle_id,
                    self.provider_type.value,
                ),
                name=record.name,
                brand=record.make,
                model=record.model,
                is_active=True,
                provider_id=record.vehicle_id,
                provider_type=self.provider_type,
            )
            for record in records
        ]

    async def get_trips(
        self,
        token: str,
        vehicle_id: str,
        date_from: datetime,
        date_to: datetime,
    ) -> list[Trip]:
        self._context.ensure_trip_window(date_from, date_to)

        payload: Any = await self._context.http.request(
            HTTPMethod.GET,
            self._context.url(f'/fleet/vehicles/{vehicle_id}/trips'),
            token=token,
            params={'startTime': format_iso_utc(date_from), 'endTime': format_iso_utc(date_to)},
        )
        records: list[SamsaraTrip] = validate_records(
            SamsaraTrip, payload, self.provider_type, collection_key=COLLECTION_KEY
        )
        return [self._to_trip(record, vehicle_id) for record in records]

    async def get_vehicle_locations(self, token: str) -> list[VehicleLocation]:
        payload: Any = await self._context.http.request(
            HTTPMethod.GET, self._context.url('/fleet/vehicles/locations'), token=token
        )
        records: list[SamsaraLocation] = validate_records(
            SamsaraLocation, payload, self.provider_type, collection_key=COLLECTION_KEY
        )

        return [
            build_model(
                VehicleLocation,
                self.provider_type,
                vehicle_id=record.vehicle_id,
                registration=record.name or record.vehicle_id,
                lat=record.location.latitude,
                lng=record.location.longitude,
                speed=to_float(record.location.speed),
                heading=to_float(record.location.heading),
                timestamp=parse_timestamp(record.location.time, self.provider_type.value),
                address=record.location.formatted_address,
                is_ignition_on=parse_ignition(
                    record.engine_state.value if record.engine_state else None
                ),
                provider_type=self.provider_type,
            )
            for record in records
        ]

    def _to_trip(self, record: SamsaraTrip, vehicle_id: str) -> Trip:
        provider: str = self.provider_type.value
        departure_time: datetime = parse_timestamp(record.start_time, provider)
        # Samsara lists a trip that is still underway without an end time
        is_running: bool = record.end_time is None
        arrival_time: datetime = (
            departure_time if is_running else parse_timestamp(record.end_time, provider)
        )

        vehicle_ref_id: str | None = record.vehicle.entity_id if record.vehicle else None
        vehicle_name: str | None = record.vehicle.name if record.vehicle else None

        return build_model(
            Trip,
            self.provider_type,
            id=record.trip_id,
            vehicle_id=vehicle_ref_id or vehicle_id,
            registration=require_registration(
                (vehicle_name, vehicle_id), record.trip_id, provider
            ),
            driver_name=record.driver.name if record.driver else None,
            departure_time=departure_time,
            arrival_time=arrival_time,
            distance_km=max(meters_to_km(record.distance_meters), 0.0),
            duration_minutes=minutes_between(departure_time, arrival_time),
            departure=_to_trip_location(record.start_location),
            arrival=_to_trip_location(record.end_location),
            is_running=is_running,
            provider_id=record.trip_id,
            provider_type=self.provider_type,
        )
