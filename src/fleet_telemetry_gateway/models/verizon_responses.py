# fleet_telemetry_gateway/models/verizon_responses.py
"""
Pydantic response models for the Verizon Connect (Fleet Integration) API.

Verizon Connect is US-centric: distances are miles, speeds mph, durations
seconds. The adapter converts to kilometers, km/h and minutes.
"""

from pydantic import Field

from fleet_telemetry_gateway.models.shared_response_models import VendorModelBase

__all__: list[str] = [
    'VerizonLocation',
    'VerizonTokenResponse',
    'VerizonTrip',
    'VerizonTripEndpoint',
    'VerizonVehicle',
]


class VerizonTokenResponse(VendorModelBase):
    """Answer of POST /oauth/token."""

    access_token: str | None = None
    token_type: str | None = None
    expires_in: int | None = None


class VerizonTripEndpoint(VendorModelBase):
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class VerizonVehicle(VendorModelBase):
    """Entry of GET /vehicles."""

    vehicle_id: str = Field(alias='vehicleId')
    vehicle_name: str | None = Field(default=None, alias='vehicleName')
    registration_number: str | None = Field(default=None, alias='registrationNumber')
    make: str | None = None
    model: str | None = None
    status: str | None = None


class VerizonTrip(VendorModelBase):
    """Entry of GET /vehicles/{id}/trips."""

    trip_id: str = Field(alias='tripId')
    vehicle_id: str | None = Field(default=None, alias='vehicleId')
    vehicle_name: str | None = Field(default=None, alias='vehicleName')
    driver_name: str | None = Field(default=None, alias='driverName')
    start_date_time: str | None = Field(default=None, alias='startDateTime')
    end_date_time: str | None = Field(default=None, alias='endDateTime')
    distance_miles: float | None = Field(default=None, alias='distanceMiles')
    duration_seconds: float | None = Field(default=None, alias='durationSeconds')
    start_location: VerizonTripEndpoint | None = Field(default=None, alias='startLocation')
    end_location: VerizonTripEndpoint | None = Field(default=None, alias='endLocation')
    trip_type: str | None = Field(default=None, alias='tripType')


class VerizonLocation(VendorModelBase):
    """Entry of GET /vehicles/locations."""

    vehicle_id: str = Field(alias='vehicleId')
    vehicle_name: str | None = Field(default=None, alias='vehicleName')
    registration_number: str | None = Field(default=None, alias='registrationNumber')
    latitude: float
    longitude: float
    speed_mph: float | None = Field(default=None, alias='speedMph')
    heading: float | None = None
    last_updated: str | None = Field(default=None, alias='lastUpdated')
    address: str | None = None
    ignition_status: str | None = Field(default=None, alias='ignitionStatus')
