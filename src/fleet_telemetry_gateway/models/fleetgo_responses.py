# fleet_telemetry_gateway/models/fleetgo_responses.py
"""
Pydantic response models for the FleetGO v1 API.

Lists are wrapped in an object keyed by resource name ({"vehicles": [...]},
{"trips": [...]}, {"locations": [...]}). Durations are in seconds, distances
in kilometers, and addresses come both split and pre-formatted.
"""

from enum import Enum

from pydantic import Field

from fleet_telemetry_gateway.models.shared_response_models import VendorModelBase

__all__: list[str] = [
    'FleetGoAddress',
    'FleetGoCoordinates',
    'FleetGoDriver',
    'FleetGoLocation',
    'FleetGoTrip',
    'FleetGoTripStatus',
    'FleetGoTripType',
    'FleetGoVehicle',
]


class FleetGoTripType(str, Enum):
    """Trip classification."""

    BUSINESS = 'BUSINESS'
    PRIVATE = 'PRIVATE'
    COMMUTE = 'COMMUTE'


class FleetGoTripStatus(str, Enum):
    """Trip lifecycle state."""

    COMPLETED = 'COMPLETED'
    IN_PROGRESS = 'IN_PROGRESS'


class FleetGoCoordinates(VendorModelBase):
    lat: float
    lng: float


class FleetGoAddress(VendorModelBase):
    """Start or end address of a trip."""

    street: str | None = None
    house_number: str | None = Field(default=None, alias='houseNumber')
    postal_code: str | None = Field(default=None, alias='postalCode')
    city: str | None = None
    formatted_address: str | None = Field(default=None, alias='formattedAddress')
    coordinates: FleetGoCoordinates | None = None


class FleetGoDriver(VendorModelBase):
    name: str | None = None


class FleetGoVehicle(VendorModelBase):
    """Entry of GET /vehicles."""

    vehicle_id: str = Field(alias='id')
    license_plate: str | None = Field(default=None, alias='licensePlate')
    name: str | None = None
    brand: str | None = None
    model: str | None = None
    status: str | None = None


class FleetGoTrip(VendorModelBase):
    """
    Entry of GET /vehicles/{id}/trips.

    Attributes:
        trip_type: BUSINESS, PRIVATE or COMMUTE. Unknown values are kept as
            plain strings.
        status: COMPLETED or IN_PROGRESS.
    """

    trip_id: str = Field(alias='id')
    vehicle_id: str | None = Field(default=None, alias='vehicleId')
    license_plate: str | None = Field(default=None, alias='licensePlate')
    driver: FleetGoDriver | None = None
    start_time: str | None = Field(default=None, alias='startTime')
    end_time: str | None = Field(default=None, alias='endTime')
    distance_km: float | None = Field(default=None, alias='distanceKm')
    duration_seconds: float | None = Field(default=None, alias='durationSeconds')
    start_address: FleetGoAddress | None = Field(default=None, alias='startAddress')
    end_address: FleetGoAddress | None = Field(default=None, alias='endAddress')
    trip_type: FleetGoTripType | str | None = Field(default=None, alias='tripType')
    status: FleetGoTripStatus | str | None = None


class FleetGoLocation(VendorModelBase):
    """Entry of GET /vehicles/locations."""

    vehicle_id: str = Field(alias='vehicleId')
    license_plate: str | None = Field(default=None, alias='licensePlate')
    position: FleetGoCoordinates
    speed: float | None = None
    heading: float | None = None
    timestamp: str | None = None
    address: str | None = None
    ignition_on: bool | int | str | None = Field(default=None, alias='ignitionOn')
