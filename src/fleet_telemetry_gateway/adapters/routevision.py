# fleet_telemetry_gateway/adapters/routevision.py
"""
RouteVision adapter (Dutch trip registration, session login).

Authentication:
    POST /Login with ``{"email", "password"}``. The response body is the bare
    session token as plain text (occasionally JSON-quoted).

Trips:
    The API refuses windows longer than 31 days, so that limit is hard here
    even if the configured ``max_trip_window_days`` is larger. Dates are sent
    as 'YYYY-MM-DD'.
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
    ConnectionTestResult,
    Credentials,
    HTTPMethod,
    ProviderInfo,
    ProviderType,
    SessionLoginCredentials,
    Trip,
    TripLocation,
    Vehicle,
    VehicleLocation,
)
from fleet_telemetry_gateway.models.routevision_responses import (
    RouteVisionLocation,
    RouteVisionTrip,
    RouteVisionVehicle,
)
from fleet_telemetry_gateway.normalization import (
    ensure_date_window,
    format_address,
    format_date,
    parse_ignition,
    parse_timestamp,
    require_registration,
    resolve_duration_minutes,
    to_float,
)
from fleet_telemetry_gateway.token_cache import TokenCache

__all__: list[str] = ['ROUTEVISION_BASE_URL', 'ROUTEVISION_MAX_TRIP_DAYS', 'RouteVisionAdapter']

logger: logging.Logger = logging.getLogger(__name__)

ROUTEVISION_BASE_URL: Final[str] = 'https://rest.routevision.com'
ROUTEVISION_MAX_TRIP_DAYS: Final[int] = 31


def _extract_session_token(payload: Any) -> str | None:
    """Session token from a bare-text or ``{"token": ...}`` login response."""
    if isinstance(payload, str):
        return payload
    # A bare numeric session id decodes as a JSON number.
    if isinstance(payload, int | float) and not isinstance(payload, bool):
        return str(payload)
    if isinstance(payload, Mapping):
        token: Any = payload.get('token') or payload.get('sessionToken')
        return str(token) if token else None
    return None


class RouteVisionAdapter:
    """Adapter for the RouteVision REST API."""

    def __init__(
        self,
        settings: ProviderConfig | None = None,
        token_cache: TokenCache | None = None,
        http_client: ProviderHttpClient | None = None,
    ) -> None:
        self._context: AdapterContext = AdapterContext(
            ProviderType.ROUTEVISION,
            ROUTEVISION_BASE_URL,
            settings=settings,
            token_cache=token_cache,
            http_client=http_client,
        )

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.ROUTEVISION

    @property
    def info(self) -> ProviderInfo:
        return get_provider_info(self.provider_type)

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def authenticate(self, credentials: Credentials | Mapping[str, Any]) -> str:
        """
        Log in with email and password and return the session token.

        Raises:
            MissingCredentialsError: If email or password is missing.
            AuthenticationFailedError: If RouteVision rejects the login or
                returns an empty token.
        """
        login: SessionLoginCredentials = require_credentials(
            credentials, SessionLoginCredentials, self.provider_type
        )

        async def exchange() -> str | None:
            with authentication_exchange(self.provider_type):
                payload: Any = await self._context.http.request(
                    HTTPMethod.POST,
                    self._context.url('/Login'),
                    json_body={
                        'email': login.email,
                        'password': login.password.get_secret_value(),
                    },
                )
            return _extract_session_token(payload)

        return await self._context.token_for(login, exchange)

    async def test_connection(
        self, credentials: Credentials | Mapping[str, Any]
    ) -> ConnectionTestResult:
        return await probe_connection(self, credentials)

    # -------------------------------------------------------------------------
    # Data Access
    # -------------------------------------------------------------------------

    async def get_vehicles(self, token: str) -> list[Vehicle]:
        payload: Any = await self._context.http.request(
            HTTPMethod.GET, self._context.url('/Vehicle/All'), token=token
        )
        records: list[RouteVisionVehicle] = validate_records(
            RouteVisionVehicle, payload, self.provider_type
        )

        return [
            build_model(
                Vehicle,
                self.provider_type,
                id=record.vehicle_id,
                registration=require_registration(
                    (record.registration, record.name),
                    record.vehicle_id,
                    self.provider_type.value,
                ),
                name=record.name,
                brand=record.brand,
                model=record.model,
                is_active=True if record.is_active is None else record.is_active,
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
        """
        Fetch one vehicle's trips.

        Raises:
            DateRangeTooLargeError: If the window exceeds 31 days (or the
                configured maximum, whichever is smaller).
            InvalidDateRangeError: If date_from is after date_to.
        """
        ensure_date_window(
            date_from,
            date_to,
            max_days=min(ROUTEVISION_MAX_TRIP_DAYS, self._context.settings.max_trip_window_days),
            provider=self.provider_type.value,
        )

        payload: Any = await self._context.http.request(
            HTTPMethod.GET,
            self._context.url(f'/Vehicle/{vehicle_id}/Trips'),
            token=token,
            params={'dateFrom': format_date(date_from), 'dateTo': format_date(date_to)},
        )
        records: list[RouteVisionTrip] = validate_records(
            RouteVisionTrip, payload, self.provider_type
        )

        trips: list[Trip] = [self._to_trip(record, vehicle_id) for record in records]
        logger.debug('RouteVision vehicle %s: %d trips', vehicle_id, len(trips))
        return trips

    async def get_vehicle_locations(self, token: str) -> list[VehicleLocation]:
        payload: Any = await self._context.http.request(
            HTTPMethod.GET,
            self._context.url('/Vehicle/GetAllVehicleLocations'),
            token=token,
        )
        records: list[RouteVisionLocation] = validate_records(
            RouteVisionLocation, payload, self.provider_type
        )

        return [
            build_model(
                VehicleLocation,
                self.provider_type,
                vehicle_id=record.vehicle_id,
                registration=record.registration or record.vehicle_id,
                lat=record.latitude,
                lng=record.longitude,
                speed=to_float(record.speed),
                heading=to_float(record.heading),
                timestamp=parse_timestamp(record.timestamp, self.provider_type.value),
                address=record.address,
                is_ignition_on=parse_ignition(record.is_ignition_on),
                provider_type=self.provider_type,
            )
            for record in records
        ]

    # -------------------------------------------------------------------------
    # Normalization
    # -------------------------------------------------------------------------

    def _to_trip(self, record: RouteVisionTrip, vehicle_id: str) -> Trip:
        provider: str = self.provider_type.value
        departure_time: datetime = parse_timestamp(record.departure_date_time, provider)
        is_running: bool = bool(record.is_running)

        # A running trip has no arrival yet
        if record.arrival_date_time is None and is_running:
            arrival_time: datetime = departure_time
        else:
            arrival_time = parse_timestamp(record.arrival_date_time, provider)

        return build_model(
            Trip,
            self.provider_type,
            id=record.trip_id,
            vehicle_id=vehicle_id,
            registration=require_registration(
                (record.registration, vehicle_id), record.trip_id, provider
            ),
            driver_name=record.driver_name or None,
            departure_time=departure_time,
            arrival_time=arrival_time,
            distance_km=max(to_float(record.distance), 0.0),
            duration_minutes=resolve_duration_minutes(
                record.duration, departure_time, arrival_time
            ),
            departure=TripLocation(
                street=record.departure_street,
                house_number=record.departure_house_number,
                postal_code=record.departure_postal_code,
                city=record.departure_city,
                address=format_address(
                    record.departure_street,
                    record.departure_house_number,
                    record.departure_postal_code,
                    record.departure_city,
                ),
            ),
            arrival=TripLocation(
                street=record.arrival_street,
                house_number=record.arrival_house_number,
                postal_code=record.arrival_postal_code,
                city=record.arrival_city,
                address=format_address(
                    record.arrival_street,
                    record.arrival_house_number,
                    record.arrival_postal_code,
                    record.arrival_city,
                ),
            ),
            is_private=bool(record.is_private),
            is_commute=bool(record.is_commute),
            is_manual=bool(record.is_manual),
            is_running=is_running,
            provider_id=record.trip_id,
            provider_type=self.provider_type,
        )
