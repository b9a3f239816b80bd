# fleet_telemetry_gateway/models/samsara_responses.py
"""
Pydantic response models for the Samsara fleet API.

Samsara wraps lists in {"data": [...]}, reports trip distance in meters and
gives no trip duration, so adapters derive it from the timestamps. Vehicles
do not always carry a license plate; the vehicle name is the fallback.
"""

from pydantic import Field

from fleet_telemetry_gateway.models.shared_response_models import VendorModelBase

__all__: list[str] = [
    'SamsaraEngineState',
    'SamsaraEntityRef',
    'SamsaraGpsPoint',
    'SamsaraLocation',
    'SamsaraTrip',
    'SamsaraTripEndpoint',
    'SamsaraVehicle',
]


class SamsaraEntityRef(VendorModelBase):
    """Minimal reference to a vehicle or driver."""

    entity_id: str | None = Field(default=None, alias='id')
    name: str | None = None


class SamsaraTripEndpoint(VendorModelBase):
    latitude: float | None = None
    longitude: float | None = None
    formatted_address: str | None = Field(default=None, alias='formattedAddress')


class SamsaraGpsPoint(VendorModelBase):
    """Last known GPS fix of a vehicle."""

    latitude: float
    longitude: float
    speed: float | None = None
    heading: float | None = None
    time: str | None = None
    formatted_address: str | None = Field(default=None, alias='formattedAddress')


class SamsaraEngineState(VendorModelBase):
    value: str | None = None


class SamsaraVehicle(VendorModelBase):
    """Entry of GET /fleet/vehicles."""

    vehicle_id: str = Field(alias='id')
    name: str | None = None
    license_plate: str | None = Field(default=None, alias='licensePlate')
    make: str | None = None
    model: str | None = None
    vin: str | None = None


class SamsaraTrip(VendorModelBase):
    """Entry of GET /fleet/vehicles/{id}/trips."""

    trip_id: str = Field(alias='id')
    vehicle: SamsaraEntityRef | None = None
    driver: SamsaraEntityRef | None = None
    start_time: str | None = Field(default=None, alias='startTime')
    end_time: str | None = Field(default=None, alias='endTime')
    distance_meters: float | None = Field(default=None, alias='distanceMeters')
    start_location: SamsaraTripEndpoint | None = Field(default=None, alias='startLocation')
    end_location: SamsaraTripEndpoint | None = Field(default=None, alias='endLocation')


class SamsaraLocation(VendorModelBase):
    """Entry of GET /fleet/vehicles/locations."""

    vehicle_id: str = Field(alias='id')
    name: str | None = None
    location: SamsaraGpsPoint
    engine_state: SamsaraEngineState | None = Field(default=None, alias='engineState')
