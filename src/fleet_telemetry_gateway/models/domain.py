# fleet_telemetry_gateway/models/domain.py
"""
Normalized domain model shared by every provider adapter.

Vendors disagree on nearly everything: field names (licensePlate, kenteken,
registrationNumber), units (meters, miles, kilometers), timestamp formats and
ignition encodings. Adapters translate their payloads into the models below at
the adapter boundary, so downstream code only ever sees kilometers, minutes,
km/h and timezone-aware datetimes.

Design Decisions:
-----------------
- Value objects are frozen: adapters create them, nothing mutates them.
- Invariants live on the models (non-empty registration, non-negative
  distance/duration, departure <= arrival) so a broken vendor payload fails
  loudly instead of corrupting downstream totals.
- Field names are snake_case; camelCase aliases are not accepted here because
  these models are never parsed from vendor JSON directly.
"""

from datetime import datetime
from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

__all__: list[str] = [
    'AuthType',
    'ConnectionTestResult',
    'CountryClass',
    'ProviderInfo',
    'ProviderType',
    'Trip',
    'TripBatch',
    'TripLocation',
    'Vehicle',
    'VehicleLocation',
]


# =============================================================================
# Enumerations
# =============================================================================


class ProviderType(str, Enum):
    """Supported fleet-tracking vendors."""

    ROUTEVISION = 'routevision'
    FLEETGO = 'fleetgo'
    SAMSARA = 'samsara'
    WEBFLEET = 'webfleet'
    TRACKJACK = 'trackjack'
    VERIZON = 'verizon'


class AuthType(str, Enum):
    """Authentication scheme a vendor expects."""

    CREDENTIALS = 'credentials'  # username/password session login
    API_KEY = 'api_key'  # static key, validated with a probe request
    OAUTH2 = 'oauth2'  # client-credentials token exchange


class CountryClass(str, Enum):
    """Market a vendor primarily serves."""

    NL = 'nl'
    EU = 'eu'
    GLOBAL = 'global'


# =============================================================================
# Provider Metadata
# =============================================================================


class ProviderInfo(BaseModel):
    """
    Immutable metadata describing one supported vendor.

    Attributes:
        id: Provider type tag.
        name: Machine name of the vendor, equal to the provider type value.
        display_name: Human-readable vendor name.
        logo: Path or URL of the vendor logo.
        description: Short description for presentation.
        website: Vendor homepage.
        auth_type: Which credential shape the vendor requires.
        features: Marketing feature list.
        country: Primary market.
        popular: Whether to list the vendor first.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    id: ProviderType
    name: str
    display_name: str
    logo: str
    description: str
    website: str
    auth_type: AuthType
    features: tuple[str, ...] = ()
    country: CountryClass
    popular: bool = False


# =============================================================================
# Vehicles
# =============================================================================


class Vehicle(BaseModel):
    """
    A tracked asset as reported by a vendor.

    Read-only to this layer: vendors create and update vehicles, the gateway
    only reads them.

    Attributes:
        id: Vendor's vehicle identifier.
        registration: License plate; never empty.
        name: Display name, if the vendor has one.
        brand: Make, if known.
        model: Model, if known.
        is_active: Whether the vendor reports the vehicle as active.
        provider_id: Identifier of the record at the vendor.
        provider_type: Vendor the vehicle came from.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    id: str = Field(min_length=1)
    registration: str
    name: str | None = None
    brand: str | None = None
    model: str | None = None
    is_active: bool = True
    provider_id: str
    provider_type: ProviderType

    @field_validator('registration')
    @classmethod
    def validate_registration_not_blank(cls, registration: str) -> str:
        """Reject empty or whitespace-only registrations."""
        stripped: str = registration.strip()
        if not stripped:
            raise ValueError('registration cannot be empty')
        return stripped


# =============================================================================
# Trips
# =============================================================================


class TripLocation(BaseModel):
    """
    Structured departure or arrival location of a trip.

    Attributes:
        street: Street name, if the vendor splits addresses.
        house_number: House number.
        postal_code: Postal code.
        city: City.
        address: Formatted single-line address ('Unknown' when absent).
        lat: Latitude in decimal degrees.
        lng: Longitude in decimal degrees.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    street: str | None = None
    house_number: str | None = None
    postal_code: str | None = None
    city: str | None = None
    address: str = 'Unknown'
    lat: float | None = None
    lng: float | None = None


class Trip(BaseModel):
    """
    One completed or in-progress vehicle movement.

    Units are normalized at the adapter boundary: kilometers for distance,
    whole minutes for duration, timezone-aware datetimes for timestamps.

    Attributes:
        id: Vendor's trip identifier.
        vehicle_id: Vendor's vehicle identifier.
        registration: License plate of the vehicle.
        driver_name: Driver, if the vendor knows one.
        departure_time: Start of the trip.
        arrival_time: End of the trip (equals departure_time for a trip that
            is still running and has no end yet).
        distance_km: Distance driven, >= 0.
        duration_minutes: Duration in minutes, >= 0.
        departure: Where the trip started.
        arrival: Where the trip ended.
        is_private: Private trip.
        is_commute: Home-work commute.
        is_manual: Entered by hand rather than recorded.
        is_running: Trip still in progress.
        provider_id: Identifier of the record at the vendor.
        provider_type: Vendor the trip came from.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    id: str = Field(min_length=1)
    vehicle_id: str
    registration: str
    driver_name: str | None = None
    departure_time: datetime
    arrival_time: datetime
    distance_km: float = Field(ge=0.0)
    duration_minutes: int = Field(ge=0)
    departure: TripLocation = Field(default_factory=TripLocation)
    arrival: TripLocation = Field(default_factory=TripLocation)
    is_private: bool = False
    is_commute: bool = False
    is_manual: bool = False
    is_running: bool = False
    provider_id: str
    provider_type: ProviderType

    @model_validator(mode='after')
    def validate_departure_not_after_arrival(self) -> Self:
        """Ensure departure_time <= arrival_time."""
        if self.departure_time > self.arrival_time:
            raise ValueError(
                f'departure_time {self.departure_time.isoformat()} is after '
                f'arrival_time {self.arrival_time.isoformat()}'
            )
        return self


# =============================================================================
# Live Locations
# =============================================================================


class VehicleLocation(BaseModel):
    """
    Point-in-time position snapshot of a vehicle. Never persisted here.

    Attributes:
        vehicle_id: Vendor's vehicle identifier.
        registration: License plate.
        lat: Latitude in decimal degrees.
        lng: Longitude in decimal degrees.
        speed: Speed in km/h.
        heading: Compass heading in degrees.
        timestamp: When the position was recorded.
        address: Reverse-geocoded address, if provided.
        is_ignition_on: Normalized ignition state.
        provider_type: Vendor the snapshot came from.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    vehicle_id: str
    registration: str
    lat: float
    lng: float
    speed: float = 0.0
    heading: float = 0.0
    timestamp: datetime
    address: str | None = None
    is_ignition_on: bool = False
    provider_type: ProviderType


# =============================================================================
# Result Values
# =============================================================================


class ConnectionTestResult(BaseModel):
    """
    Outcome of a connectivity probe. Returned to the caller, never stored.

    Attributes:
        success: Whether authentication and the vehicle listing both worked.
        vehicle_count: Number of vehicles visible with the credentials.
        error: Failure message when success is False.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    success: bool
    vehicle_count: int | None = None
    error: str | None = None

    @classmethod
    def ok(cls, vehicle_count: int) -> Self:
        """Factory for a successful probe."""
        return cls(success=True, vehicle_count=vehicle_count)

    @classmethod
    def failed(cls, error: str) -> Self:
        """Factory for a failed probe."""
        return cls(success=False, error=error)


class TripBatch(BaseModel):
    """
    Trips gathered for several vehicles of one provider in one window.

    Per-vehicle failures are collected in ``errors`` instead of aborting the
    whole batch, so one broken vehicle does not hide the others' trips.

    Attributes:
        provider_type: Vendor the trips came from.
        date_from: Start of the requested window.
        date_to: End of the requested window.
        trips: Normalized trips across all vehicles that succeeded.
        errors: Vehicle id to error message for vehicles that failed.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    provider_type: ProviderType
    date_from: datetime
    date_to: datetime
    trips: tuple[Trip, ...] = ()
    errors: dict[str, str] = Field(default_factory=dict)

    @property
    def trip_count(self) -> int:
        """Number of trips in the batch."""
        return len(self.trips)

    @property
    def success(self) -> bool:
        """True when no vehicle failed."""
        return not self.errors
