"""
Tests for the FleetGO adapter.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from conftest import MockVendor
from fleet_telemetry_gateway.adapters import FleetGoAdapter
from fleet_telemetry_gateway.exceptions import AuthenticationFailedError, MissingCredentialsError

API_KEY: str = 'fg_live_0123456789'


@pytest.fixture
def adapter(make_adapter: Callable[..., Any]) -> FleetGoAdapter:
    """Provide a FleetGO adapter against the mock vendor."""
    return make_adapter(FleetGoAdapter)


class TestAuthenticate:
    """Tests for API key validation."""

    async def test_validation_request_sends_key(self, adapter: FleetGoAdapter, vendor: MockVendor) -> None:
        """Should validate the key against /vehicles with X-API-Key and return it."""
        vendor.add('GET', '/v1/vehicles', json={'vehicles': []})

        token: str = await adapter.authenticate({'apiKey': API_KEY})

        assert token == API_KEY
        assert vendor.requests[0].headers['X-API-Key'] == API_KEY

    async def test_key_is_cached(self, adapter: FleetGoAdapter, vendor: MockVendor) -> None:
        """Should validate the key only once within the TTL."""
        vendor.add('GET', '/v1/vehicles', json={'vehicles': []})

        await adapter.authenticate({'apiKey': API_KEY})
        await adapter.authenticate({'apiKey': API_KEY})

        assert len(vendor.requests) == 1

    async def test_rejected_key(self, adapter: FleetGoAdapter, vendor: MockVendor) -> None:
        """Should map HTTP 403 to AuthenticationFailedError."""
        vendor.add('GET', '/v1/vehicles', status_code=403)

        with pytest.raises(AuthenticationFailedError):
            await adapter.authenticate({'apiKey': API_KEY})

    async def test_password_credentials_rejected(self, adapter: FleetGoAdapter) -> None:
        """Should refuse credentials without an API key."""
        with pytest.raises(MissingCredentialsError):
            await adapter.authenticate({'email': 'jan', 'password': 'pw'})


class TestData:
    """Tests for vehicles, trips and locations."""

    async def test_get_vehicles(self, adapter: FleetGoAdapter, vendor: MockVendor) -> None:
        """Should map licensePlate and the ACTIVE status."""
        vendor.add(
            'GET',
            '/v1/vehicles',
            json={
                'vehicles': [
                    {'id': 'fg-1', 'licensePlate': 'GH-456-J', 'status': 'ACTIVE'},
                    {'id': 'fg-2', 'licensePlate': 'KL-789-M', 'status': 'INACTIVE'},
                ]
            },
        )

        vehicles = await adapter.get_vehicles(API_KEY)

        assert [vehicle.registration for vehicle in vehicles] == ['GH-456-J', 'KL-789-M']
        assert [vehicle.is_active for vehicle in vehicles] == [True, False]

    async def test_get_trips(
        self,
        adapter: FleetGoAdapter,
        vendor: MockVendor,
        window: tuple[datetime, datetime],
    ) -> None:
        """Should send ISO timestamps and normalize seconds and addresses."""
        vendor.add(
            'GET',
            '/v1/vehicles/fg-1/trips',
            json={
                'trips': [
                    {
                        'id': 'trip-1',
                        'licensePlate': 'GH-456-J',
                        'driver': {'name': 'Piet'},
                        'startTime': '2024-03-02T07:00:00Z',
                        'endTime': '2024-03-02T07:40:00Z',
                        'distanceKm': 31.5,
                        'durationSeconds': 2400,
                        'startAddress': {
                            'street': 'Stationsplein',
                            'houseNumber': '5',
                            'city': 'Utrecht',
                            'coordinates': {'lat': 52.09, 'lng': 5.11},
                        },
                        'endAddress': {'formattedAddress': 'Dam 1, Amsterdam'},
                        'tripType': 'PRIVATE',
                        'status': 'COMPLETED',
                    },
                    {
                        'id': 'trip-2',
                        'licensePlate': 'GH-456-J',
                        'startTime': '2024-03-03T07:00:00Z',
                        'tripType': 'BUSINESS',
                        'status': 'IN_PROGRESS',
                    },
                ]
            },
        )

        completed, running = await adapter.get_trips(API_KEY, 'fg-1', *window)

        sent = vendor.requests[0]
        assert sent.url.params['startTime'] == '2024-03-01T00:00:00Z'
        assert sent.url.params['endTime'] == '2024-03-21T00:00:00Z'

        assert completed.duration_minutes == 40
        assert completed.is_private
        assert completed.driver_name == 'Piet'
        assert completed.departure.address == 'Stationsplein 5, Utrecht'
        assert completed.departure.lat == 52.09
        assert completed.arrival.address == 'Dam 1, Amsterdam'

        assert running.is_running
        assert running.arrival_time == running.departure_time
        assert running.duration_minutes == 0

    async def test_get_vehicle_locations(
        self, adapter: FleetGoAdapter, vendor: MockVendor
    ) -> None:
        """Should normalize positions."""
        vendor.add(
            'GET',
            '/v1/vehicles/locations',
            json={
                'locations': [
                    {
                        'vehicleId': 'fg-1',
                        'licensePlate': 'GH-456-J',
                        'position': {'lat': 52.1, 'lng': 5.2},
                        'speed': 80,
                        'timestamp': '2024-03-02T07:10:00Z',
                        'ignitionOn': True,
                    }
                ]
            },
        )

        (location,) = await adapter.get_vehicle_locations(API_KEY)

        assert location.registration == 'GH-456-J'
        assert (location.lat, location.lng) == (52.1, 5.2)
        assert location.is_ignition_on
        assert location.timestamp == datetime(2024, 3, 2, 7, 10, tzinfo=UTC)

    async def test_missing_collection_is_empty(
        self, adapter: FleetGoAdapter, vendor: MockVendor
    ) -> None:
        """Should treat a missing collection key as no records."""
        vendor.add('GET', '/v1/vehicles/locations', json={'meta': {}})

        assert await adapter.get_vehicle_locations(API_KEY) == []
