# fleet_telemetry_gateway/adapters/fleetgo.py
"""
FleetGO adapter (Dutch fleet management, static API key).

Authentication:
    There is no token exchange. The key is validated by a cheap probe
    (GET /vehicles with ``X-API-Key``) and then cached and returned as the
    "token" for later calls.
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
from fleet_telemetry_gateway.models.fleetgo_responses import (
    FleetGoAddress,
    FleetGoLocation,
    FleetGoTrip,
    FleetGoTripStatus,
    FleetGoTripType,
    FleetGoVehicle,
)
from fleet_telemetry_gateway.normalization import (
    format_address,
    format_iso_utc,
    minutes_between,
    parse_ignition,
    parse_timestamp,
    require_registration,
    seconds_to_minutes,
    to_float,
)
from fleet_telemetry_gateway.token_cache import TokenCache

__all__: list[str] = ['FLEETGO_BASE_URL', 'FleetGoAdapter']

logger: logging.Logger = logging.getLogger(__name__)

FLEETGO_BASE_URL: Final[str] = 'https://api.fleetgo.com/v1'
ACTIVE_STATUS: Final[str] = 'ACTIVE'


def _to_trip_location(address: FleetGoAddress | None) -> TripLocation:
    if address is None:
        return TripLocation()

    formatted: str = address.formatted_address or format_address(
        address.street, address.house_number, address.postal_code, address.city
    )
    return TripLocation(
        street=address.street,
        house_number=address.house_number,
        postal_code=address.postal_code,
        city=address.city,
        address=formatted,
        lat=address.coordinates.lat if address.coordinates else None,
        lng=address.coordinates.lng if address.coordinates else None,
    )


class FleetGoAdapter:
    """Adapter for the FleetGO v1 API."""

    def __init__(
        self,
        settings: ProviderConfig | None = None,
        token_cache: TokenCache | None = None,
        http_client: ProviderHttpClient | None = None,
    ) -> None:
        self._context: AdapterContext = AdapterContext(
            ProviderType.FLEETGO,
            FLEETGO_BASE_URL,
            settings=settings,
            token_cache=token_cache,
            http_client=http_client,
        )

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.FLEETGO

    @property
    def info(self) -> ProviderInfo:
        return get_provider_info(self.provider_type)

    async def authenticate(self, credentials: Credentials | Mapping[str, Any]) -> str:
        """
        Validate the API key with a probe request and return it.

        Raises:
            MissingCredentialsError: If no API key is given.
            AuthenticationFailedError: If FleetGO rejects the key.
        """
        key_credentials: ApiKeyCredentials = require_credentials(
            credentials, ApiKeyCredentials, self.provider_type
        )
        api_key: str = key_credentials.api_key.get_secret_value()

        async def exchange() -> str:
            with authentication_exchange(self.provider_type):
                await self._context.http.request(
                    HTTPMethod.GET, self._context.url('/vehicles'), api_key=api_key
                )
            return api_key

        return await self._context.token_for(key_credentials, exchange)

    async def test_connection(
        self, credentials: Credentials | Mapping[str, Any]
    ) -> ConnectionTestResult:
        return await probe_connection(self, credentials)

    async def get_vehicles(self, token: str) -> list[Vehicle]:
        payload: Any = await self._context.http.request(
            HTTPMethod.GET, self._context.url('/vehicles'), api_key=token
        )
        records: list[FleetGoVehicle] = validate_records(
            FleetGoVehicle, payload, self.provider_type, collection_key='vehicles'
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
                brand=record.brand,
                model=record.model,
                is_active=(record.status or '').upper() == ACTIVE_STATUS,
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
            self._context.url(f'/vehicles/{vehicle_id}/trips'),
            api_key=token,
            params={'startTime': format_iso_utc(date_from), 'endTime': format_iso_utc(date_to)},
        )
        records: list[FleetGoTrip] = validate_records(
            FleetGoTrip, payload, self.provider_type, collection_key='trips'
        )
        return [self._to_trip(record, vehicle_id) for record in records]

    async def get_vehicle_locations(self, token: str) -> list[VehicleLocation]:
        payload: Any = await self._context.http.request(
            HTTPMethod.GET, self._context.url('/vehicles/locations'), api_key=token
        )
        records: list[FleetGoLocation] = validate_records(
            FleetGoLocation, payload, self.provider_type, collection_key='locations'
        )

        return [
            build_model(
                VehicleLocation,
                self.provider_type,
                vehicle_id=record.vehicle_id,
                registration=record.license_plate or record.vehicle_id,
                lat=record.position.lat,
                lng=record.position.lng,
                speed=to_float(record.speed),
                heading=to_float(record.heading),
                timestamp=parse_timestamp(record.timestamp, self.provider_type.value),
                address=record.address,
                is_ignition_on=parse_ignition(record.ignition_on),
                provider_type=self.provider_type,
            )
            for record in records
        ]

    def _to_trip(self, record: FleetGoTrip, vehicle_id: str) -> Trip:
        provider: str = self.provider_type.value
        is_running: bool = record.status == FleetGoTripStatus.IN_PROGRESS
        departure_time: datetime = parse_timestamp(record.start_time, provider)

        if record.end_time is None and is_running:
            arrival_time: datetime = departure_time
        else:
            arrival_time = parse_timestamp(record.end_time, provider)

        duration_minutes: int | None = seconds_to_minutes(record.duration_seconds)
        if duration_minutes is None:
            duration_minutes = minutes_between(departure_time, arrival_time)

        return build_model(
            Trip,
            self.provider_type,
            id=record.trip_id,
            vehicle_id=record.vehicle_id or vehicle_id,
            registration=require_registration(
                (record.license_plate, vehicle_id), record.trip_id, provider
            ),
            driver_name=record.driver.name if record.driver else None,
            departure_time=departure_time,
            arrival_time=arrival_time,
            distance_km=max(to_float(record.distance_km), 0.0),
            duration_minutes=duration_minutes,
            departure=_to_trip_location(record.start_address),
            arrival=_to_trip_location(record.end_address),
            is_private=record.trip_type == FleetGoTripType.PRIVATE,
            is_commute=record.trip_type == FleetGoTripType.COMMUTE,
            is_manual=False,
            is_running=is_running,
            provider_id=record.trip_id,
            provider_type=self.provider_type,
        )
