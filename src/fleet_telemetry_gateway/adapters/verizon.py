# fleet_telemetry_gateway/adapters/verizon.py
"""
Verizon Connect adapter (OAuth2 client-credentials).

Authentication:
    POST /oauth/token with ``Authorization: Basic base64(client_id:secret)``
    and the form body ``grant_type=client_credentials``. The ``access_token``
    of the answer is sent as a bearer header afterwards.

Normalization:
    miles -> km and mph -> km/h (x 1.60934), seconds -> minutes.
"""

import base64
import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Final

from pydantic import ValidationError

from fleet_telemetry_gateway.adapters.base import (
    AdapterContext,
    IssuedToken,
    authentication_exchange,
    build_model,
    probe_connection,
    require_credentials,
    validate_records,
)
from fleet_telemetry_gateway.catalog import get_provider_info
from fleet_telemetry_gateway.client import ProviderHttpClient
from fleet_telemetry_gateway.config import ProviderConfig
from fleet_telemetry_gateway.exceptions import AuthenticationFailedError
from fleet_telemetry_gateway.models import (
    ConnectionTestResult,
    Credentials,
    HTTPMethod,
    OAuth2ClientCredentials,
    ProviderInfo,
    ProviderType,
    Trip,
    TripLocation,
    Vehicle,
    VehicleLocation,
)
from fleet_telemetry_gateway.models.verizon_responses import (
    VerizonLocation,
    VerizonTokenResponse,
    VerizonTrip,
    VerizonTripEndpoint,
    VerizonVehicle,
)
from fleet_telemetry_gateway.normalization import (
    UNKNOWN_ADDRESS,
    format_iso_utc,
    miles_to_km,
    minutes_between,
    mph_to_kmh,
    parse_ignition,
    parse_timestamp,
    require_registration,
    seconds_to_minutes,
    to_float,
)
from fleet_telemetry_gateway.token_cache import TokenCache

__all__: list[str] = ['VERIZON_BASE_URL', 'VerizonAdapter', 'basic_auth_header']

logger: logging.Logger = logging.getLogger(__name__)

VERIZON_BASE_URL: Final[str] = 'https://fim.api.verizonconnect.com/v1'
ACTIVE_STATUS: Final[str] = 'active'


def basic_auth_header(client_id: str, client_secret: str) -> str:
    """'Basic ' + base64('client_id:client_secret')."""
    encoded: str = base64.b64encode(f'{client_id}:{client_secret}'.encode()).decode('ascii')
    return f'Basic {encoded}'


def _to_trip_location(endpoint: VerizonTripEndpoint | None) -> TripLocation:
    if endpoint is None:
        return TripLocation()
    return TripLocation(
        address=endpoint.address or UNKNOWN_ADDRESS,
        lat=endpoint.latitude,
        lng=endpoint.longitude,
    )


class VerizonAdapter:
    """Adapter for the Verizon Connect Fleet Integration API."""

    def __init__(
        self,
        settings: ProviderConfig | None = None,
        token_cache: TokenCache | None = None,
        http_client: ProviderHttpClient | None = None,
    ) -> None:
        self._context: AdapterContext = AdapterContext(
            ProviderType.VERIZON,
            VERIZON_BASE_URL,
            settings=settings,
            token_cache=token_cache,
            http_client=http_client,
        )

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.VERIZON

    @property
    def info(self) -> ProviderInfo:
        return get_provider_info(self.provider_type)

    async def authenticate(self, credentials: Credentials | Mapping[str, Any]) -> str:
        """
        Run the client-credentials grant and return the access token.

        The token is cached for ``expires_in`` seconds when Verizon grants
        less than the cache TTL.

        Raises:
            MissingCredentialsError: If the client id or secret is missing.
            AuthenticationFailedError: If Verizon rejects the client or the
                answer has no access_token.
        """
        client: OAuth2ClientCredentials = require_credentials(
            credentials, OAuth2ClientCredentials, self.provider_type
        )

        async def exchange() -> IssuedToken:
            with authentication_exchange(self.provider_type):
                payload: Any = await self._context.http.request(
                    HTTPMethod.POST,
                    self._context.url('/oauth/token'),
                    form={'grant_type': 'client_credentials'},
                    headers={
                        'Authorization': basic_auth_header(
                            client.api_key.get_secret_value(),
                            client.api_secret.get_secret_value(),
                        ),
                    },
                )

            try:
                token_response = VerizonTokenResponse.model_validate(payload)
            except ValidationError as error:
                raise AuthenticationFailedError(
                    'Verizon Connect token response is not a JSON object',
                    provider=self.provider_type.value,
                ) from error

            if not token_response.access_token:
                raise AuthenticationFailedError(
                    'Verizon Connect token response has no access_token',
                    provider=self.provider_type.value,
                )
            return IssuedToken(token_response.access_token, token_response.expires_in)

        return await self._context.token_for(client, exchange)

    async def test_connection(
        self, credentials: Credentials | Mapping[str, Any]
    ) -> ConnectionTestResult:
        return await probe_connection(self, credentials)

    async def get_vehicles(self, token: str) -> list[Vehicle]:
        payload: Any = await self._context.http.request(
            HTTPMethod.GET, self._context.url('/vehicles'), token=token
        )
        records: list[VerizonVehicle] = validate_records(
            VerizonVehicle, payload, self.provider_type, collection_key='vehicles'
        )

        return [
            build_model(
                Vehicle,
                self.provider_type,
                id=record.vehicle_id,
                registration=require_registration(
                    (record.registration_number, record.vehicle_name),
                    record.vehicle_id,
                    self.provider_type.value,
                ),
                name=record.vehicle_name,
                brand=record.make,
                model=record.model,
                is_active=(record.status or '').lower() == ACTIVE_STATUS,
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
            token=token,
            params={'startDate': format_iso_utc(date_from), 'endDate': format_iso_utc(date_to)},
        )
        records: list[VerizonTrip] = validate_records(
            VerizonTrip, payload, self.provider_type, collection_key='trips'
        )
        return [self._to_trip(record, vehicle_id) for record in records]

    async def get_vehicle_locations(self, token: str) -> list[VehicleLocation]:
        payload: Any = await self._context.http.request(
            HTTPMethod.GET, self._context.url('/vehicles/locations'), token=token
        )
        records: list[VerizonLocation] = validate_records(
            VerizonLocation, payload, self.provider_type, collection_key='locations'
        )

        return [
            build_model(
                VehicleLocation,
                self.provider_type,
                vehicle_id=record.vehicle_id,
                registration=(
                    record.registration_number or record.vehicle_name or record.vehicle_id
                ),
                lat=record.latitude,
                lng=record.longitude,
                speed=mph_to_kmh(record.speed_mph),
                heading=to_float(record.heading),
                timestamp=parse_timestamp(record.last_updated, self.provider_type.value),
                address=record.address,
                is_ignition_on=parse_ignition(record.ignition_status),
                provider_type=self.provider_type,
            )
            for record in records
        ]

    def _to_trip(self, record: VerizonTrip, vehicle_id: str) -> Trip:
        provider: str = self.provider_type.value
        departure_time: datetime = parse_timestamp(record.start_date_time, provider)
        is_running: bool = record.end_date_time is None
        arrival_time: datetime = (
            departure_time if is_running else parse_timestamp(record.end_date_time, provider)
        )

        duration_minutes: int | None = seconds_to_minutes(record.duration_seconds)
        if duration_minutes is None:
            duration_minutes = minutes_between(departure_time, arrival_time)

        return build_model(
            Trip,
            self.provider_type,
            id=record.trip_id,
            vehicle_id=record.vehicle_id or vehicle_id,
            registration=require_registration(
                (record.vehicle_name, vehicle_id), record.trip_id, provider
            ),
            driver_name=record.driver_name,
            departure_time=departure_time,
            arrival_time=arrival_time,
            distance_km=max(miles_to_km(record.distance_miles), 0.0),
            duration_minutes=duration_minutes,
            departure=_to_trip_location(record.start_location),
            arrival=_to_trip_location(record.end_location),
            is_private=record.trip_type == 'Personal',
            is_commute=record.trip_type == 'Commute',
            is_running=is_running,
            provider_id=record.trip_id,
            provider_type=self.provider_type,
        )
