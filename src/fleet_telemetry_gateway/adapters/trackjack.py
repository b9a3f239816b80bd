# fleet_telemetry_gateway/adapters/trackjack.py
"""
TrackJack adapter (Dutch SME trip registration, session login).

Authentication:
    POST /auth/login with ``{"email", "wachtwoord"}`` returns
    ``{"token": ...}``; the token is sent as a bearer header afterwards.
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
from fleet_telemetry_gateway.models.trackjack_responses import (
    TrackJackLocatie,
    TrackJackRit,
    TrackJackRitType,
    TrackJackVoertuig,
)
from fleet_telemetry_gateway.normalization import (
    UNKNOWN_ADDRESS,
    format_date,
    minutes_between,
    parse_ignition,
    parse_timestamp,
    require_registration,
    to_float,
)
from fleet_telemetry_gateway.token_cache import TokenCache

__all__: list[str] = ['TRACKJACK_BASE_URL', 'TrackJackAdapter']

logger: logging.Logger = logging.getLogger(__name__)

TRACKJACK_BASE_URL: Final[str] = 'https://api.trackjack.nl/v1'


class TrackJackAdapter:
    """Adapter for the TrackJack v1 API."""

    def __init__(
        self,
        settings: ProviderConfig | None = None,
        token_cache: TokenCache | None = None,
        http_client: ProviderHttpClient | None = None,
    ) -> None:
        self._context: AdapterContext = AdapterContext(
            ProviderType.TRACKJACK,
            TRACKJACK_BASE_URL,
            settings=settings,
            token_cache=token_cache,
            http_client=http_client,
        )

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.TRACKJACK

    @property
    def info(self) -> ProviderInfo:
        return get_provider_info(self.provider_type)

    async def authenticate(self, credentials: Credentials | Mapping[str, Any]) -> str:
        """
        Log in and return the bearer token.

        Raises:
            MissingCredentialsError: If email or password is missing.
            AuthenticationFailedError: If TrackJack rejects the login or the
                answer has no token.
        """
        login: SessionLoginCredentials = require_credentials(
            credentials, SessionLoginCredentials, self.provider_type
        )

        async def exchange() -> str | None:
            with authentication_exchange(self.provider_type):
                payload: Any = await self._context.http.request(
                    HTTPMethod.POST,
                    self._context.url('/auth/login'),
                    json_body={
                        'email': login.email,
                        'wachtwoord': login.password.get_secret_value(),
                    },
                )
            if not isinstance(payload, Mapping):
                return None
            token: Any = payload.get('token')
            return str(token) if token else None

        return await self._context.token_for(login, exchange)

    async def test_connection(
        self, credentials: Credentials | Mapping[str, Any]
    ) -> ConnectionTestResult:
        return await probe_connection(self, credentials)

    async def get_vehicles(self, token: str) -> list[Vehicle]:
        payload: Any = await self._context.http.request(
            HTTPMethod.GET, self._context.url('/voertuigen'), token=token
        )
        records: list[TrackJackVoertuig] = validate_records(
            TrackJackVoertuig, payload, self.provider_type, collection_key='voertuigen'
        )

        return [
            build_model(
                Vehicle,
                self.provider_type,
                id=record.id,
                registration=require_registration(
                    (record.kenteken, record.naam), record.id, self.provider_type.value
                ),
                name=record.naam,
                brand=record.merk,
                model=record.type,
                is_active=True if record.actief is None else record.actief,
                provider_id=record.id,
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
            self._context.url(f'/voertuigen/{vehicle_id}/ritten'),
            token=token,
            params={'van': format_date(date_from), 'tot': format_date(date_to)},
        )
        records: list[TrackJackRit] = validate_records(
            TrackJackRit, payload, self.provider_type, collection_key='ritten'
        )
        return [self._to_trip(record, vehicle_id) for record in records]

    async def get_vehicle_locations(self, token: str) -> list[VehicleLocation]:
        payload: Any = await self._context.http.request(
            HTTPMethod.GET, self._context.url('/voertuigen/locaties'), token=token
        )
        records: list[TrackJackLocatie] = validate_records(
            TrackJackLocatie, payload, self.provider_type, collection_key='locaties'
        )

        return [
            build_model(
                VehicleLocation,
                self.provider_type,
                vehicle_id=record.voertuig_id,
                registration=record.kenteken or record.voertuig_id,
                lat=record.lat,
                lng=record.lng,
                speed=to_float(record.snelheid),
                heading=to_float(record.richting),
                timestamp=parse_timestamp(record.tijdstip, self.provider_type.value),
                address=record.adres,
                is_ignition_on=parse_ignition(record.contact_aan),
                provider_type=self.provider_type,
            )
            for record in records
        ]

    def _to_trip(self, record: TrackJackRit, vehicle_id: str) -> Trip:
        provider: str = self.provider_type.value
        departure_time: datetime = parse_timestamp(record.start_tijd, provider)
        is_running: bool = record.eind_tijd is None
        arrival_time: datetime = (
            departure_time if is_running else parse_timestamp(record.eind_tijd, provider)
        )

        duration_minutes: int = (
            max(record.duur_minuten, 0)
            if record.duur_minuten is not None
            else minutes_between(departure_time, arrival_time)
        )

        return build_model(
            Trip,
            self.provider_type,
            id=record.id,
            vehicle_id=record.voertuig_id or vehicle_id,
            registration=require_registration(
                (record.kenteken, vehicle_id), record.id, provider
            ),
            driver_name=record.bestuurder,
            departure_time=departure_time,
            arrival_time=arrival_time,
            distance_km=max(to_float(record.afstand_km), 0.0),
            duration_minutes=duration_minutes,
            departure=TripLocation(
                address=record.start_adres or UNKNOWN_ADDRESS,
                lat=record.start_lat,
                lng=record.start_lng,
            ),
            arrival=TripLocation(
                address=record.eind_adres or UNKNOWN_ADDRESS,
                lat=record.eind_lat,
                lng=record.eind_lng,
            ),
            is_private=record.rit_type == TrackJackRitType.PRIVE,
            is_commute=record.rit_type == TrackJackRitType.WOON_WERK,
            is_manual=bool(record.handmatig),
            is_running=is_running,
            provider_id=record.id,
            provider_type=self.provider_type,
        )
