# fleet_telemetry_gateway/models/webfleet_responses.py
"""
Row models for the Webfleet CSV interface.

Webfleet's ``/extern`` interface answers with semicolon-delimited CSV that
starts with a header row. Rows are read by column name, never by position,
so a reordered or extended report does not shift values into the wrong
fields. The column lists below are the minimum each report must carry.
The vehicle listing reads the object report too but needs only its
identity columns, so a report without position columns still lists
vehicles.

Empty cells arrive as empty strings and are read as None.
"""

from typing import Any, Final

from pydantic import field_validator

from fleet_telemetry_gateway.models.shared_response_models import VendorModelBase

__all__: list[str] = [
    'OBJECT_REPORT_COLUMNS',
    'TRIP_REPORT_COLUMNS',
    'VEHICLE_REPORT_COLUMNS',
    'WebfleetObjectRow',
    'WebfleetTripRow',
]

VEHICLE_REPORT_COLUMNS: Final[tuple[str, ...]] = (
    'objectno',
    'objectname',
    'licenseplate',
    'status',
)

OBJECT_REPORT_COLUMNS: Final[tuple[str, ...]] = (
    'objectno',
    'objectname',
    'licenseplate',
    'objecttype',
    'status',
    'postime',
    'latitude',
    'longitude',
    'speed',
    'course',
    'ignition',
    'postext',
)

TRIP_REPORT_COLUMNS: Final[tuple[str, ...]] = (
    'tripid',
    'objectno',
    'licenseplate',
    'drivername',
    'start_time',
    'end_time',
    'distance',
    'triptype',
    'start_postext',
    'start_latitude',
    'start_longitude',
    'end_postext',
    'end_latitude',
    'end_longitude',
)


class _WebfleetRowBase(VendorModelBase):
    @field_validator('*', mode='before')
    @classmethod
    def empty_cell_to_none(cls, value: Any) -> Any:
        """Treat empty CSV cells as missing values."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class WebfleetObjectRow(_WebfleetRowBase):
    """
    Row of showObjectReportExtern: one vehicle with its last position.

    Positions are decimal degrees, speed is km/h, course is degrees and
    ignition is '1' or '0'.
    """

    objectno: str
    objectname: str | None = None
    licenseplate: str | None = None
    objecttype: str | None = None
    status: str | None = None
    postime: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    speed: float | None = None
    course: float | None = None
    ignition: str | None = None
    postext: str | None = None


class WebfleetTripRow(_WebfleetRowBase):
    """
    Row of showTripReportExtern.

    Attributes:
        distance: Distance in meters.
        triptype: BUSINESS, PRIVATE or COMMUTE.
    """

    tripid: str
    objectno: str | None = None
    licenseplate: str | None = None
    drivername: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    distance: float | None = None
    triptype: str | None = None
    start_postext: str | None = None
    start_latitude: float | None = None
    start_longitude: float | None = None
    end_postext: str | None = None
    end_latitude: float | None = None
    end_longitude: float | None = None
