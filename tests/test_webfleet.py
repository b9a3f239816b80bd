"""
Tests for the Webfleet adapter and its CSV report parsing.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx
import pytest
from pydantic import SecretStr

from conftest import MockVendor
from fleet_telemetry_gateway.adapters import WebfleetAdapter
from fleet_telemetry_gateway.adapters.webfleet import parse_csv_report, resolve_webfleet_login
from fleet_telemetry_gateway.exceptions import (
    AuthenticationFailedError,
    MalformedResponseError,
    MissingCredentialsError,
    ProviderRequestError,
)
from fleet_telemetry_gateway.models import SessionLoginCredentials
from fleet_telemetry_gateway.models.webfleet_responses import (
    OBJECT_REPORT_COLUMNS,
    TRIP_REPORT_COLUMNS,
    VEHICLE_REPORT_COLUMNS,
)

EXTERN_PATH: str = '/extern'

LOGIN: dict[str, Any] = {
    'email': 'jan',
    'password': 'pw',
    'accountId': 'acme',
    'customFields': {'apiKey': 'wf-key'},
}

OBJECT_REPORT: str = (
    'objectno;objectname;licenseplate;objecttype;status;postime;latitude;longitude;'
    'speed;course;ignition;postext\n'
    '001;Van 1;AB-12-CD;car;ACTIVE;2024-03-02 08:00:00;52.37;4.89;35;270;1;'
    '"Damrak 1; Amsterdam"\n'
    '002;Van 2;;car;INACTIVE;;;;;;0;\n'
)

TRIP_REPORT: str = (
    'tripid;objectno;licenseplate;drivername;start_time;end_time;distance;triptype;'
    'start_postext;start_latitude;start_longitude;end_postext;end_latitude;end_longitude\n'
    '7001;001;AB-12-CD;Jan;2024-03-02 08:00:00;2024-03-02 08:50:00;42000;PRIVATE;'
    '"Damrak 1; Amsterdam";52.37;4.89;Utrecht;52.09;5.12\n'
    '7002;001;AB-12-CD;;2024-03-02 09:00:00;;;BUSINESS;;;;;;\n'
)


def route_by_action(responses: dict[str, str]) -> Callable[[httpx.Request], httpx.Response]:
    """Answer /extern requests by their 'action' query parameter."""

    def handler(request: httpx.Request) -> httpx.Response:
        action: str = request.url.params.get('action', '')
        return httpx.Response(200, text=responses.get(action, 'Error: unknown action'))

    return handler


@pytest.fixture
def adapter(make_adapter: Callable[..., Any]) -> WebfleetAdapter:
    """Provide a Webfleet adapter against the mock vendor."""
    return make_adapter(WebfleetAdapter)


class TestParseCsvReport:
    """Tests for parse_csv_report."""

    def test_quoted_separator(self) -> None:
        """Should keep a quoted ';' inside one field."""
        rows = parse_csv_report(OBJECT_REPORT, OBJECT_REPORT_COLUMNS)

        assert rows[0]['postext'] == 'Damrak 1; Amsterdam'
        assert rows[0]['objectno'] == '001'

    def test_empty_cells_are_empty_strings(self) -> None:
        """Should not turn empty cells into NaN."""
        rows = parse_csv_report(OBJECT_REPORT, OBJECT_REPORT_COLUMNS)

        assert rows[1]['licenseplate'] == ''

    def test_header_case_and_extra_columns(self) -> None:
        """Should match headers case-insensitively and ignore extra columns."""
        rows = parse_csv_report('TripId;Extra\n1;x\n', ('tripid',))

        assert rows == [{'tripid': '1', 'extra': 'x'}]

    def test_missing_column(self) -> None:
        """Should raise MalformedResponseError naming the missing column."""
        with pytest.raises(MalformedResponseError, match='end_time'):
            parse_csv_report('tripid;start_time\n1;x\n', TRIP_REPORT_COLUMNS)

    def test_empty_body(self) -> None:
        """Should return no rows for an empty body."""
        assert parse_csv_report('  \n', OBJECT_REPORT_COLUMNS) == []

    def test_trailing_separator_keeps_columns_aligned(self) -> None:
        """Should not shift values when data rows end with ';'."""
        text: str = (
            'objectno;objectname;licenseplate;status\n'
            '001;Van 1;AB-12-CD;ACTIVE;\n'
            '002;Van 2;EF-34-GH;INACTIVE;\n'
        )

        rows = parse_csv_report(text, VEHICLE_REPORT_COLUMNS)

        assert rows[0] == {
            'objectno': '001',
            'objectname': 'Van 1',
            'licenseplate': 'AB-12-CD',
            'status': 'ACTIVE',
        }
        assert [row['objectno'] for row in rows] == ['001', '002']
        assert rows[1]['status'] == 'INACTIVE'

    def test_trailing_separator_on_every_line(self) -> None:
        """Should drop the unnamed column a trailing ';' on the header adds."""
        rows = parse_csv_report('tripid;objectno;\n7001;001;\n', ('tripid', 'objectno'))

        assert rows == [{'tripid': '7001', 'objectno': '001'}]

    def test_row_with_extra_field(self) -> None:
        """Should reject a row with more values than the header."""
        text: str = 'objectno;objectname\n001;Van 1;surplus\n'

        with pytest.raises(MalformedResponseError, match='line 2 has 3 fields'):
            parse_csv_report(text, ('objectno',))

    def test_row_with_missing_field(self) -> None:
        """Should reject a row with fewer values than the header."""
        text: str = 'objectno;objectname;licenseplate\n001;Van 1;AB-12-CD\n002\n'

        with pytest.raises(MalformedResponseError, match='line 3 has 1 fields'):
            parse_csv_report(text, ('objectno',))


class TestResolveLogin:
    """Tests for resolve_webfleet_login."""

    def test_account_id(self) -> None:
        """Should use account_id with email as the username."""
        credentials = SessionLoginCredentials(
            email='jan', password=SecretStr('pw'), account_id='acme'
        )

        assert resolve_webfleet_login(credentials) == ('acme', 'jan')

    def test_account_at_username(self) -> None:
        """Should split 'account@username'."""
        credentials = SessionLoginCredentials(email='acme@jan', password=SecretStr('pw'))

        assert resolve_webfleet_login(credentials) == ('acme', 'jan')

    def test_no_account(self) -> None:
        """Should raise MissingCredentialsError without an account."""
        credentials = SessionLoginCredentials(email='jan', password=SecretStr('pw'))

        with pytest.raises(MissingCredentialsError) as exc_info:
            resolve_webfleet_login(credentials)

        assert exc_info.value.missing_fields == ['account_id']


class TestAuthenticate:
    """Tests for createSession."""

    async def test_create_session(self, adapter: WebfleetAdapter, vendor: MockVendor) -> None:
        """Should send the login and API key and return the session token."""
        vendor.add_handler(
            'GET', EXTERN_PATH, route_by_action({'createSession': 'sessiontoken\nwf-sess-1\n'})
        )

        token: str = await adapter.authenticate(LOGIN)

        assert token == 'wf-sess-1'
        params = vendor.requests[0].url.params
        assert params['account'] == 'acme'
        assert params['username'] == 'jan'
        assert params['password'] == 'pw'
        assert params['apikey'] == 'wf-key'

    async def test_bare_token(self, adapter: WebfleetAdapter, vendor: MockVendor) -> None:
        """Should accept an answer without a header row."""
        vendor.add_handler('GET', EXTERN_PATH, route_by_action({'createSession': 'wf-sess-2'}))

        assert await adapter.authenticate(LOGIN) == 'wf-sess-2'

    async def test_error_line(self, adapter: WebfleetAdapter, vendor: MockVendor) -> None:
        """Should treat an 'Error' first line as a rejected login."""
        vendor.add_handler(
            'GET',
            EXTERN_PATH,
            route_by_action({'createSession': 'Error 1101: invalid credentials'}),
        )

        with pytest.raises(AuthenticationFailedError, match='1101'):
            await adapter.authenticate(LOGIN)


class TestReports:
    """Tests for the object and trip reports."""

    async def test_get_vehicles(self, adapter: WebfleetAdapter, vendor: MockVendor) -> None:
        """Should read vehicles by column name and send the session token."""
        vendor.add_handler(
            'GET', EXTERN_PATH, route_by_action({'showObjectReportExtern': OBJECT_REPORT})
        )

        vehicles = await adapter.get_vehicles('wf-sess-1')

        assert [vehicle.id for vehicle in vehicles] == ['001', '002']
        assert vehicles[0].registration == 'AB-12-CD'
        assert vehicles[1].registration == 'Van 2'
        assert [vehicle.is_active for vehicle in vehicles] == [True, False]
        assert vendor.requests[0].url.params['sessiontoken'] == 'wf-sess-1'

    async def test_get_vehicles_without_position_columns(
        self, adapter: WebfleetAdapter, vendor: MockVendor
    ) -> None:
        """Should list vehicles from a report that carries no position columns."""
        vendor.add_handler(
            'GET',
            EXTERN_PATH,
            route_by_action(
                {
                    'showObjectReportExtern': (
                        'objectno;objectname;licenseplate;status\n001;Van 1;AB-12-CD;ACTIVE\n'
                    )
                }
            ),
        )

        (vehicle,) = await adapter.get_vehicles('wf-sess-1')

        assert vehicle.id == '001'
        assert vehicle.registration == 'AB-12-CD'

    async def test_locations_still_require_position_columns(
        self, adapter: WebfleetAdapter, vendor: MockVendor
    ) -> None:
        """Should reject a location report without position columns."""
        vendor.add_handler(
            'GET',
            EXTERN_PATH,
            route_by_action(
                {
                    'showObjectReportExtern': (
                        'objectno;objectname;licenseplate;status\n001;Van 1;AB-12-CD;ACTIVE\n'
                    )
                }
            ),
        )

        with pytest.raises(MalformedResponseError, match='latitude'):
            await adapter.get_vehicle_locations('wf-sess-1')

    async def test_get_vehicle_locations_skips_unpositioned(
        self, adapter: WebfleetAdapter, vendor: MockVendor
    ) -> None:
        """Should leave out objects without a position."""
        vendor.add_handler(
            'GET', EXTERN_PATH, route_by_action({'showObjectReportExtern': OBJECT_REPORT})
        )

        (location,) = await adapter.get_vehicle_locations('wf-sess-1')

        assert location.vehicle_id == '001'
        assert location.address == 'Damrak 1; Amsterdam'
        assert location.is_ignition_on
        assert location.heading == 270.0

    async def test_get_trips(
        self,
        adapter: WebfleetAdapter,
        vendor: MockVendor,
        window: tuple[datetime, datetime],
    ) -> None:
        """Should request the range and convert meters to km."""
        vendor.add_handler(
            'GET', EXTERN_PATH, route_by_action({'showTripReportExtern': TRIP_REPORT})
        )

        completed, running = await adapter.get_trips('wf-sess-1', '001', *window)

        params = vendor.requests[0].url.params
        assert params['objectno'] == '001'
        assert params['rangefrom_string'] == '2024-03-01 00:00:00'
        assert params['rangeto_string'] == '2024-03-21 00:00:00'

        assert completed.distance_km == pytest.approx(42.0)
        assert completed.duration_minutes == 50
        assert completed.is_private
        assert completed.departure.address == 'Damrak 1; Amsterdam'
        assert completed.arrival.lat == 52.09

        assert running.is_running
        assert running.driver_name is None
        assert running.departure.address == 'Unknown'

    async def test_error_report(self, adapter: WebfleetAdapter, vendor: MockVendor) -> None:
        """Should raise ProviderRequestError for an 'Error' answer."""
        vendor.add_handler(
            'GET',
            EXTERN_PATH,
            route_by_action({'showObjectReportExtern': 'Error 8011: session expired'}),
        )

        with pytest.raises(ProviderRequestError, match='8011'):
            await adapter.get_vehicles('wf-sess-1')
