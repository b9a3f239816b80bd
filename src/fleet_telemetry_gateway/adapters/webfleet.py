# fleet_telemetry_gateway/adapters/webfleet.py
"""
Webfleet (TomTom) adapter: session login over the CSV ``/extern`` interface.

Authentication:
    GET ``/extern?action=createSession`` with account, username, password and
    the optional Webfleet API key. The first field of the answer is the
    session token. Every later call carries it as ``sessiontoken``, so the
    adapter keeps no login state of its own.

    The account comes from ``account_id`` when given (``email`` is then the
    username); otherwise ``email`` must have the form 'account@username'.

Reports:
    Reports are semicolon-delimited CSV with a header row, parsed with pandas
    and read by column name. A first line containing 'Error' is how Webfleet
    reports failures with HTTP 200.
"""

import csv
import io
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Final

import pandas as pd

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
from fleet_telemetry_gateway.exceptions import (
    AuthenticationFailedError,
    MalformedResponseError,
    MissingCredentialsError,
    ProviderRequestError,
)
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
from fleet_telemetry_gateway.models.webfleet_responses import (
    OBJECT_REPORT_COLUMNS,
    TRIP_REPORT_COLUMNS,
    VEHICLE_REPORT_COLUMNS,
    WebfleetObjectRow,
    WebfleetTripRow,
)
from fleet_telemetry_gateway.normalization import (
    UNKNOWN_ADDRESS,
    meters_to_km,
    minutes_between,
    parse_ignition,
    parse_timestamp,
    require_registration,
    to_float,
)
from fleet_telemetry_gateway.token_cache import TokenCache

__all__: list[str] = [
    'WEBFLEET_BASE_URL',
    'WebfleetAdapter',
    'parse_csv_report',
    'resolve_webfleet_login',
]

logger: logging.Logger = logging.getLogger(__name__)

WEBFLEET_BASE_URL: Final[str] = 'https://csv.webfleet.com/extern'
WEBFLEET_LANGUAGE: Final[str] = 'nl'
CSV_SEPARATOR: Final[str] = ';'
ERROR_MARKER: Final[str] = 'Error'
INACTIVE_STATUS: Final[str] = 'INACTIVE'
RANGE_FORMAT: Final[str] = '%Y-%m-%d %H:%M:%S'


# =============================================================================
# CSV Handling
# =============================================================================


def _first_line(text: str) -> str:
    stripped: str = text.strip()
    return stripped.splitlines()[0] if stripped else ''


def _accepted_widths(header: list[str]) -> set[int]:
    """Row widths that line up with ``header``, trailing separators allowed."""
    widths: set[int] = {len(header), len(header) + 1}
    if len(header) > 1 and not header[-1].strip():
        widths.add(len(header) - 1)
    return widths


def _check_field_counts(text: str, provider: str) -> None:
    """Raise if any data row has a different number of fields than the header."""
    reader = csv.reader(io.StringIO(text), delimiter=CSV_SEPARATOR)
    header: list[str] | None = None
    accepted: set[int] = set()

    try:
        for fields in reader:
            if not fields or (len(fields) == 1 and not fields[0].strip()):
                continue

            if header is None:
                header = fields
                accepted = _accepted_widths(header)
                continue

            width: int = len(fields)
            # One extra field is only a trailing separator when it is empty.
            if width not in accepted or (width == len(header) + 1 and fields[-1].strip()):
                raise MalformedResponseError(
                    f'CSV report line {reader.line_num} has {width} fields, '
                    f'header has {len(header)}',
                    provider=provider,
                )
    except csv.Error as error:
        raise MalformedResponseError(
            f'Unreadable CSV report: {error}', provider=provider
        ) from error


def parse_csv_report(
    text: str,
    required_columns: tuple[str, ...],
    provider: str = ProviderType.WEBFLEET.value,
) -> list[dict[str, str]]:
    """
    Parse a semicolon-delimited report with a header row.

    Quoted fields may contain the separator. Header names are matched
    case-insensitively; extra columns are ignored. Every row must have as
    many fields as the header; a trailing separator on a line is allowed.

    Args:
        text: Raw response body.
        required_columns: Columns the report must contain.
        provider: Provider name for error messages.

    Returns:
        One dict per data row, column name to cell text ('' for empty cells).
        An empty body yields an empty list.

    Raises:
        MalformedResponseError: If the CSV cannot be parsed, a row has the
            wrong number of fields or a required column is missing.
    """
    if not text.strip():
        return []

    _check_field_counts(text, provider)

    try:
        # index_col=False: a trailing separator must not turn the first
        # column into the index and shift every value one column left.
        report: pd.DataFrame = pd.read_csv(
            io.StringIO(text),
            sep=CSV_SEPARATOR,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            index_col=False,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as error:
        raise MalformedResponseError(
            f'Unreadable CSV report: {error}', provider=provider
        ) from error

    report.columns = [str(column).strip().lower() for column in report.columns]
    # A trailing separator on the header row yields an unnamed empty column.
    report = report.loc[:, [not column.startswith('unnamed:') for column in report.columns]]

    missing_columns: list[str] = [
        column for column in required_columns if column not in report.columns
    ]
    if missing_columns:
        raise MalformedResponseError(
            f'CSV report is missing columns: {", ".join(missing_columns)}',
            provider=provider,
        )

    return report.to_dict(orient='records')


def resolve_webfleet_login(credentials: SessionLoginCredentials) -> tuple[str, str]:
    """
    Split credentials into Webfleet's (account, username) pair.

    Raises:
        MissingCredentialsError: If no account can be determined.
    """
    if credentials.account_id:
        return credentials.account_id, credentials.email

    account, separator, username = credentials.email.partition('@')
    if not separator or not account.strip() or not username.strip() or '@' in username:
        raise MissingCredentialsError(
            "Webfleet needs account_id, or email in the form 'account@username'",
            provider=ProviderType.WEBFLEET.value,
            missing_fields=['account_id'],
        )
    return account.strip(), username.strip()


def _extract_session_token(text: str) -> str | None:
    """Session token from a createSession answer (optionally with a header row)."""
    lines: list[str] = [line for line in text.strip().splitlines() if line.strip()]
    if not lines:
        return None

    first_field: str = lines[0].split(CSV_SEPARATOR)[0].strip()
    if first_field.lower() == 'sessiontoken':
        if len(lines) < 2:
            return None
        first_field = lines[1].split(CSV_SEPARATOR)[0].strip()
    return first_field.strip('"') or None


def _format_range(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).strftime(RANGE_FORMAT)


# =============================================================================
# Adapter
# =============================================================================


class WebfleetAdapter:
    """Adapter for the Webfleet CSV interface."""

    def __init__(
        self,
        settings: ProviderConfig | None = None,
        token_cache: TokenCache | None = None,
        http_client: ProviderHttpClient | None = None,
    ) -> None:
        self._context: AdapterContext = AdapterContext(
            ProviderType.WEBFLEET,
            WEBFLEET_BASE_URL,
            settings=settings,
            token_cache=token_cache,
            http_client=http_client,
        )

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.WEBFLEET

    @property
    def info(self) -> ProviderInfo:
        return get_provider_info(self.provider_type)

    async def authenticate(self, credentials: Credentials | Mapping[str, Any]) -> str:
        """
        Create a Webfleet session and return its token.

        Raises:
            MissingCredentialsError: If the login or account is incomplete.
            AuthenticationFailedError: If Webfleet reports an error or
                returns no session token.
        """
        login: SessionLoginCredentials = require_credentials(
            credentials, SessionLoginCredentials, self.provider_type
        )
        account, username = resolve_webfleet_login(login)

        params: dict[str, str] = {
            'action': 'createSession',
            'account': account,
            'username': username,
            'password': login.password.get_secret_value(),
            'lang': WEBFLEET_LANGUAGE,
        }
        api_key: str | None = login.custom_fields.get('apiKey') or login.custom_fields.get(
            'api_key'
        )
        if api_key:
            params['apikey'] = api_key

        async def exchange() -> str | None:
            with authentication_exchange(self.provider_type):
                text: str = await self._context.http.request_text(
                    HTTPMethod.GET, self._context.base_url, params=params
                )

            if ERROR_MARKER in _first_line(text):
                raise AuthenticationFailedError(
                    f'Webfleet authentication failed: {_first_line(text)}',
                    provider=self.provider_type.value,
                )
            return _extract_session_token(text)

        return await self._context.token_for(login, exchange)

    async def test_connection(
        self, credentials: Credentials | Mapping[str, Any]
    ) -> ConnectionTestResult:
        return await probe_connection(self, credentials)

    async def _fetch_report(
        self,
        action: str,
        token: str,
        required_columns: tuple[str, ...],
        **extra_params: str,
    ) -> list[dict[str, str]]:
        text: str = await self._context.http.request_text(
            HTTPMethod.GET,
            self._context.base_url,
            params={
                'action': action,
                'sessiontoken': token,
                'lang': WEBFLEET_LANGUAGE,
                **extra_params,
            },
        )

        if ERROR_MARKER in _first_line(text):
            raise ProviderRequestError(
                f'Webfleet {action} failed: {_first_line(text)}',
                response_body=text,
            )
        return parse_csv_report(text, required_columns, self.provider_type.value)

    async def get_vehicles(self, token: str) -> list[Vehicle]:
        rows: list[dict[str, str]] = await self._fetch_report(
            'showObjectReportExtern', token, VEHICLE_REPORT_COLUMNS
        )
        records: list[WebfleetObjectRow] = validate_records(
            WebfleetObjectRow, rows, self.provider_type
        )

        return [
            build_model(
                Vehicle,
                self.provider_type,
                id=record.objectno,
                registration=require_registration(
                    (record.licenseplate, record.objectname),
                    record.objectno,
                    self.provider_type.value,
                ),
                name=record.objectname,
                is_active=(record.status or '').upper() != INACTIVE_STATUS,
                provider_id=record.objectno,
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

        rows: list[dict[str, str]] = await self._fetch_report(
            'showTripReportExtern',
            token,
            TRIP_REPORT_COLUMNS,
            objectno=vehicle_id,
            rangefrom_string=_format_range(date_from),
            rangeto_string=_format_range(date_to),
        )
        records: list[WebfleetTripRow] = validate_records(
            WebfleetTripRow, rows, self.provider_type
        )
        return [self._to_trip(record, vehicle_id) for record in records]

    async def get_vehicle_locations(self, token: str) -> list[VehicleLocation]:
        """
        Last known positions from the object report.

        Objects that never reported a position are left out.
        """
        rows: list[dict[str, str]] = await self._fetch_report(
            'showObjectReportExtern', token, OBJECT_REPORT_COLUMNS
        )
        records: list[WebfleetObjectRow] = validate_records(
            WebfleetObjectRow, rows, self.provider_type
        )

        locations: list[VehicleLocation] = []
        for record in records:
            if record.latitude is None or record.longitude is None or not record.postime:
                logger.debug('Webfleet object %s has no position', record.objectno)
                continue

            locations.append(
                build_model(
                    VehicleLocation,
                    self.provider_type,
                    vehicle_id=record.objectno,
                    registration=record.licenseplate or record.objectname or record.objectno,
                    lat=record.latitude,
                    lng=record.longitude,
                    speed=to_float(record.speed),
                    heading=to_float(record.course),
                    timestamp=parse_timestamp(record.postime, self.provider_type.value),
                    address=record.postext,
                    is_ignition_on=parse_ignition(record.ignition),
                    provider_type=self.provider_type,
                )
            )
        return locations

    def _to_trip(self, record: WebfleetTripRow, vehicle_id: str) -> Trip:
        provider: str = self.provider_type.value
        departure_time: datetime = parse_timestamp(record.start_time, provider)
        is_running: bool = record.end_time is None
        arrival_time: datetime = (
            departure_time if is_running else parse_timestamp(record.end_time, provider)
        )
        trip_type: str = (record.triptype or '').upper()

        return build_model(
            Trip,
            self.provider_type,
            id=record.tripid,
            vehicle_id=record.objectno or vehicle_id,
            registration=require_registration(
                (record.licenseplate, record.objectno, vehicle_id), record.tripid, provider
            ),
            driver_name=record.drivername,
            departure_time=departure_time,
            arrival_time=arrival_time,
            distance_km=max(meters_to_km(record.distance), 0.0),
            duration_minutes=minutes_between(departure_time, arrival_time),
            departure=TripLocation(
                address=record.start_postext or UNKNOWN_ADDRESS,
                lat=record.start_latitude,
                lng=record.start_longitude,
            ),
            arrival=TripLocation(
                address=record.end_postext or UNKNOWN_ADDRESS,
                lat=record.end_latitude,
                lng=record.end_longitude,
            ),
            is_private=trip_type == 'PRIVATE',
            is_commute=trip_type == 'COMMUTE',
            is_running=is_running,
            provider_id=record.tripid,
            provider_type=self.provider_type,
        )
