"""
Tests for the RouteVision adapter.
"""

import asyncio
import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest

from conftest import FakeClock, MockVendor
from fleet_telemetry_gateway.adapters import RouteVisionAdapter
from fleet_telemetry_gateway.config import ProviderConfig
from fleet_telemetry_gateway.exceptions import (
    AuthenticationFailedError,
    DateRangeTooLargeError,
    MalformedResponseError,
    MissingCredentialsError,
    TransientProviderError,
)
from fleet_telemetry_gateway.models import ProviderType

LOGIN: dict[str, str] = {'email': 'jan@example.nl', 'password': 'hunter2'}

TRIP_PAYLOAD: list[dict[str, Any]] = [
    {
        'id': 9001,
        'registration': 'AB-123-C',
        'driverName': 'Jan Jansen',
        'departureDateTime': '2024-03-04T08:00:00Z',
        'arrivalDateTime': '2024-03-04T09:30:00Z',
        'duration': '01:30:00',
        'distance': 84.2,
        'departureStreet': 'Hoofdstraat',
        'departureHouseNumber': '1',
        'departurePostalCode': '3500 AA',
        'departureCity': 'Utrecht',
        'arrivalCity': 'Amsterdam',
        'isPrivate': False,
        'isCommute': True,
    },
    {
        'id': 9002,
        'registration': 'AB-123-C',
        'departureDateTime': '2024-03-05T17:00:00Z',
        'arrivalDateTime': '2024-03-05T17:45:00Z',
        'duration': 'garbage',
        'distance': 30,
    },
]


@pytest.fixture
def adapter(make_adapter: Callable[..., Any]) -> RouteVisionAdapter:
    """Provide a RouteVision adapter against the mock vendor."""
    return make_adapter(RouteVisionAdapter)


class TestAuthenticate:
    """Tests for the session login."""

    async def test_returns_plain_text_token(
        self, adapter: RouteVisionAdapter, vendor: MockVendor
    ) -> None:
        """Should post email and password and return the bare token."""
        vendor.add('POST', '/Login', text='rv-session-123')

        token: str = await adapter.authenticate(LOGIN)

        assert token == 'rv-session-123'
        sent = vendor.calls('POST', '/Login')[0]
        assert json.loads(sent.content) == {'email': 'jan@example.nl', 'password': 'hunter2'}

    async def test_json_quoted_token(
        self, adapter: RouteVisionAdapter, vendor: MockVendor
    ) -> None:
        """Should unwrap a JSON-quoted token."""
        vendor.add('POST', '/Login', text='"rv-session-456"')

        assert await adapter.authenticate(LOGIN) == 'rv-session-456'

    async def test_numeric_token(self, adapter: RouteVisionAdapter, vendor: MockVendor) -> None:
        """Should accept a bare numeric session id."""
        vendor.add('POST', '/Login', text='12345')

        assert await adapter.authenticate(LOGIN) == '12345'

    async def test_concurrent_logins_share_one_session(
        self, adapter: RouteVisionAdapter, vendor: MockVendor
    ) -> None:
        """Should log in once when many tasks authenticate the same account."""
        issued: list[str] = []

        def login(request: httpx.Request) -> httpx.Response:
            issued.append(f'rv-session-{len(issued) + 1}')
            return httpx.Response(200, text=issued[-1])

        vendor.add_handler('POST', '/Login', login)

        tokens: list[str] = await asyncio.gather(
            *(adapter.authenticate(LOGIN) for _ in range(5))
        )

        assert tokens == ['rv-session-1'] * 5
        assert len(vendor.calls('POST', '/Login')) == 1

    async def test_concurrent_logins_per_account(
        self, adapter: RouteVisionAdapter, vendor: MockVendor
    ) -> None:
        """Should keep separate sessions for different accounts."""

        def login(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=f'session-for-{json.loads(request.content)["email"]}')

        vendor.add_handler('POST', '/Login', login)
        other_login: dict[str, str] = {'email': 'piet@example.nl', 'password': 'hunter3'}

        tokens: list[str] = await asyncio.gather(
            adapter.authenticate(LOGIN),
            adapter.authenticate(other_login),
            adapter.authenticate(LOGIN),
        )

        assert tokens == [
            'session-for-jan@example.nl',
            'session-for-piet@example.nl',
            'session-for-jan@example.nl',
        ]
        assert len(vendor.calls('POST', '/Login')) == 2

    async def test_token_is_cached(
        self, adapter: RouteVisionAdapter, vendor: MockVendor, clock: FakeClock
    ) -> None:
        """Should reuse the session for 14 minutes, then log in again."""
        vendor.add('POST', '/Login', text='rv-session-123')

        await adapter.authenticate(LOGIN)
        clock.advance(13 * 60)
        await adapter.authenticate(LOGIN)
        assert len(vendor.calls('POST', '/Login')) == 1

        clock.advance(2 * 60)
        await adapter.authenticate(LOGIN)
        assert len(vendor.calls('POST', '/Login')) == 2

    async def test_rejected_login(self, adapter: RouteVisionAdapter, vendor: MockVendor) -> None:
        """Should map HTTP 401 to AuthenticationFailedError."""
        vendor.add('POST', '/Login', status_code=401, text='invalid')

        with pytest.raises(AuthenticationFailedError) as exc_info:
            await adapter.authenticate(LOGIN)

        assert exc_info.value.status_code == 401
        assert exc_info.value.provider == 'routevision'

    async def test_empty_token(self, adapter: RouteVisionAdapter, vendor: MockVendor) -> None:
        """Should reject an empty login answer."""
        vendor.add('POST', '/Login', text='   ')

        with pytest.raises(AuthenticationFailedError):
            await adapter.authenticate(LOGIN)

    async def test_server_error_stays_transient(
        self, adapter: RouteVisionAdapter, vendor: MockVendor
    ) -> None:
        """Should not blame the credentials for a 5xx."""
        vendor.add('POST', '/Login', status_code=503)

        with pytest.raises(TransientProviderError):
            await adapter.authenticate(LOGIN)

    async def test_missing_password(self, adapter: RouteVisionAdapter, vendor: MockVendor) -> None:
        """Should raise MissingCredentialsError before any request."""
        with pytest.raises(MissingCredentialsError):
            await adapter.authenticate({'email': 'jan@example.nl'})

        assert vendor.requests == []


class TestVehicles:
    """Tests for vehicle listing and live locations."""

    async def test_get_vehicles(self, adapter: RouteVisionAdapter, vendor: MockVendor) -> None:
        """Should normalize vehicles and fall back to the name for the plate."""
        vendor.add(
            'GET',
            '/Vehicle/All',
            json=[
                {'id': 12, 'registration': 'AB-123-C', 'brand': 'Volvo', 'isActive': True},
                {'id': 13, 'name': 'Bus 13', 'isActive': False},
            ],
        )

        vehicles = await adapter.get_vehicles('token-1')

        assert [vehicle.id for vehicle in vehicles] == ['12', '13']
        assert vehicles[0].registration == 'AB-123-C'
        assert vehicles[0].brand == 'Volvo'
        assert vehicles[1].registration == 'Bus 13'
        assert vehicles[1].is_active is False
        assert all(vehicle.provider_type is ProviderType.ROUTEVISION for vehicle in vehicles)
        assert vendor.requests[0].headers['Authorization'] == 'Bearer token-1'

    async def test_vehicle_without_registration(
        self, adapter: RouteVisionAdapter, vendor: MockVendor
    ) -> None:
        """Should raise MalformedResponseError when no plate can be found."""
        vendor.add('GET', '/Vehicle/All', json=[{'id': 14}])

        with pytest.raises(MalformedResponseError):
            await adapter.get_vehicles('token-1')

    async def test_non_list_payload(self, adapter: RouteVisionAdapter, vendor: MockVendor) -> None:
        """Should raise MalformedResponseError for an object payload."""
        vendor.add('GET', '/Vehicle/All', json={'error': 'nope'})

        with pytest.raises(MalformedResponseError):
            await adapter.get_vehicles('token-1')

    async def test_get_vehicle_locations(
        self, adapter: RouteVisionAdapter, vendor: MockVendor
    ) -> None:
        """Should normalize positions and ignition flags."""
        vendor.add(
            'GET',
            '/Vehicle/GetAllVehicleLocations',
            json=[
                {
                    'vehicleId': 12,
                    'registration': 'AB-123-C',
                    'latitude': 52.09,
                    'longitude': 5.12,
                    'speed': 48,
                    'heading': 180,
                    'timestamp': '2024-03-04T08:15:00Z',
                    'isIgnitionOn': 1,
                }
            ],
        )

        locations = await adapter.get_vehicle_locations('token-1')

        assert len(locations) == 1
        assert locations[0].vehicle_id == '12'
        assert locations[0].speed == 48.0
        assert locations[0].is_ignition_on is True
        assert locations[0].timestamp == datetime(2024, 3, 4, 8, 15, tzinfo=UTC)


class TestTrips:
    """Tests for trip fetching and normalization."""

    async def test_get_trips(
        self,
        adapter: RouteVisionAdapter,
        vendor: MockVendor,
        window: tuple[datetime, datetime],
    ) -> None:
        """Should request the date window and normalize each trip."""
        vendor.add('GET', '/Vehicle/12/Trips', json=TRIP_PAYLOAD)

        trips = await adapter.get_trips('token-1', '12', *window)

        sent = vendor.requests[0]
        assert sent.url.params['dateFrom'] == '2024-03-01'
        assert sent.url.params['dateTo'] == '2024-03-21'

        first, second = trips
        assert first.id == '9001'
        assert first.vehicle_id == '12'
        assert first.duration_minutes == 90
        assert first.distance_km == pytest.approx(84.2)
        assert first.departure.address == 'Hoofdstraat 1, 3500 AA Utrecht'
        assert first.arrival.address == 'Amsterdam'
        assert first.is_commute and not first.is_private
        assert first.driver_name == 'Jan Jansen'

        # Unparseable duration falls back to the timestamps
        assert second.duration_minutes == 45
        assert second.departure.address == 'Unknown'

    async def test_trip_invariants(
        self,
        adapter: RouteVisionAdapter,
        vendor: MockVendor,
        window: tuple[datetime, datetime],
    ) -> None:
        """Should only produce trips with departure <= arrival and non-negative totals."""
        vendor.add('GET', '/Vehicle/12/Trips', json=TRIP_PAYLOAD)

        for trip in await adapter.get_trips('token-1', '12', *window):
            assert trip.departure_time <= trip.arrival_time
            assert trip.distance_km >= 0
            assert trip.duration_minutes >= 0

    async def test_running_trip_without_arrival(
        self,
        adapter: RouteVisionAdapter,
        vendor: MockVendor,
        window: tuple[datetime, datetime],
    ) -> None:
        """Should set arrival to departure for a trip still in progress."""
        vendor.add(
            'GET',
            '/Vehicle/12/Trips',
            json=[
                {
                    'id': 1,
                    'registration': 'AB-123-C',
                    'departureDateTime': '2024-03-04T08:00:00Z',
                    'isRunning': True,
                }
            ],
        )

        (trip,) = await adapter.get_trips('token-1', '12', *window)

        assert trip.is_running
        assert trip.arrival_time == trip.departure_time
        assert trip.duration_minutes == 0

    async def test_arrival_before_departure_rejected(
        self,
        adapter: RouteVisionAdapter,
        vendor: MockVendor,
        window: tuple[datetime, datetime],
    ) -> None:
        """Should raise MalformedResponseError for an inverted trip."""
        vendor.add(
            'GET',
            '/Vehicle/12/Trips',
            json=[
                {
                    'id': 1,
                    'registration': 'AB-123-C',
                    'departureDateTime': '2024-03-04T09:00:00Z',
                    'arrivalDateTime': '2024-03-04T08:00:00Z',
                }
            ],
        )

        with pytest.raises(MalformedResponseError):
            await adapter.get_trips('token-1', '12', *window)

    async def test_twenty_day_window_allowed(
        self, adapter: RouteVisionAdapter, vendor: MockVendor
    ) -> None:
        """Should accept a 20-day window."""
        vendor.add('GET', '/Vehicle/12/Trips', json=[])
        start = datetime(2024, 3, 1, tzinfo=UTC)

        assert await adapter.get_trips('token-1', '12', start, start + timedelta(days=20)) == []

    async def test_forty_day_window_rejected(
        self, adapter: RouteVisionAdapter, vendor: MockVendor
    ) -> None:
        """Should raise DateRangeTooLargeError without calling the API."""
        start = datetime(2024, 3, 1, tzinfo=UTC)

        with pytest.raises(DateRangeTooLargeError) as exc_info:
            await adapter.get_trips('token-1', '12', start, start + timedelta(days=40))

        assert exc_info.value.max_days == 31
        assert vendor.requests == []

    async def test_configured_limit_cannot_exceed_vendor_limit(
        self, make_adapter: Callable[..., Any], vendor: MockVendor
    ) -> None:
        """Should keep the 31-day limit even when configured higher."""
        adapter: RouteVisionAdapter = make_adapter(
            RouteVisionAdapter, ProviderConfig(max_trip_window_days=90)
        )
        start = datetime(2024, 3, 1, tzinfo=UTC)

        with pytest.raises(DateRangeTooLargeError):
            await adapter.get_trips('token-1', '12', start, start + timedelta(days=40))


class TestConnection:
    """Tests for test_connection."""

    async def test_success(self, adapter: RouteVisionAdapter, vendor: MockVendor) -> None:
        """Should report the vehicle count."""
        vendor.add('POST', '/Login', text='rv-session-123')
        vendor.add('GET', '/Vehicle/All', json=[{'id': 1, 'registration': 'AB-123-C'}])

        result = await adapter.test_connection(LOGIN)

        assert result.success
        assert result.vehicle_count == 1
        assert vendor.calls('GET', '/Vehicle/All')[0].headers['Authorization'] == (
            'Bearer rv-session-123'
        )

    async def test_failure_never_raises(
        self, adapter: RouteVisionAdapter, vendor: MockVendor
    ) -> None:
        """Should return a failed result for a rejected login."""
        vendor.add('POST', '/Login', status_code=401)

        result = await adapter.test_connection(LOGIN)

        assert not result.success
        assert 'rejected' in (result.error or '')

    async def test_missing_credentials_never_raises(self, adapter: RouteVisionAdapter) -> None:
        """Should return a failed result for incomplete credentials."""
        result = await adapter.test_connection({})

        assert not result.success
        assert result.error
