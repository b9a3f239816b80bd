# fleet_telemetry_gateway/models/routevision_responses.py
"""
Pydantic response models for the RouteVision REST API.

RouteVision returns bare JSON arrays (no wrapper object), camelCase field
names, kilometers for distance and a free-form duration string. Addresses are
split into street, house number, postal code and city.
"""

from pydantic import Field

from fleet_telemetry_gateway.models.shared_response_models import VendorModelBase

__all__: list[str] = [
    'RouteVisionLocation',
    'RouteVisionTrip',
    'RouteVisionVehicle',
]


class RouteVisionVehicle(VendorModelBase):
    """Entry of GET /Vehicle/All."""

    vehicle_id: str = Field(alias='id')
    registration: str | None = None
    name: str | None = None
    brand: str | None = None
    model: str | None = None
    is_active: bool | None = Field(default=None, alias='isActive')


class RouteVisionTrip(VendorModelBase):
    """
    Entry of GET /Vehicle/{id}/Trips.

    Attributes:
        duration: Duration as 'HH:MM:SS', ISO-8601 'PT#H#M' or minutes.
        distance: Distance in kilometers.
    """

    trip_id: str = Field(alias='id')
    registration: str | None = None
    driver_name: str | None = Field(default=None, alias='driverName')
    departure_date_time: str | None = Field(default=None, alias='departureDateTime')
    arrival_date_time: str | None = Field(default=None, alias='arrivalDateTime')
    duration: str | None = None
    distance: float | None = None

    departure_street: str | None = Field(default=None, alias='departureStreet')
    departure_house_number: str | None = Field(default=None, alias='departureHouseNumber')
    departure_postal_code: str | None = Field(default=None, alias='departurePostalCode')
    departure_city: str | None = Field(default=None, alias='departureCity')
    arrival_street: str | None = Field(default=None, alias='arrivalStreet')
    arrival_house_number: str | None = Field(default=None, alias='arrivalHouseNumber')
    arrival_postal_code: str | None = Field(default=None, alias='arrivalPostalCode')
    arrival_city: str | None = Field(default=None, alias='arrivalCity')

    is_private: bool | None = Field(default=None, alias='isPrivate')
    is_commute: bool | None = Field(default=None, alias='isCommute')
    is_manual: bool | None = Field(default=None, alias='isManual')
    is_running: bool | None = Field(default=None, alias='isRunning')


class RouteVisionLocation(VendorModelBase):
    """Entry of GET /Vehicle/GetAllVehicleLocations."""

    vehicle_id: str = Field(alias='vehicleId')
    registration: str | None = None
    latitude: float
    longitude: float
    speed: float | None = None
    heading: float | None = None
    timestamp: str | None = None
    address: str | None = None
    is_ignition_on: bool | int | str | None = Field(default=None, alias='isIgnitionOn')
