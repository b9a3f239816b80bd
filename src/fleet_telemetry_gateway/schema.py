# fleet_telemetry_gateway/schema.py
"""
Flat DataFrame schema for normalized trips.

Adapters hand out pydantic Trip models. Reporting code (mileage registers,
tax exports, BI tools) usually wants one flat table instead, so this module
defines the canonical column order and the dtype enforcement for it.

Design Rationale:
-----------------
The schema is flat (no nested structures): departure and arrival locations
are spread over ``departure_*`` and ``arrival_*`` columns so the frame can be
queried without unpacking objects.
"""

import logging
from collections.abc import Iterable
from typing import Any, Final

import numpy as np
import pandas as pd

from fleet_telemetry_gateway.models import Trip, TripLocation

logger: logging.Logger = logging.getLogger(__name__)

__all__: list[str] = [
    'SORT_COLUMNS',
    'TRIP_COLUMNS',
    'enforce_trip_schema',
    'trips_to_dataframe',
]

# =============================================================================
# Schema Constants
# =============================================================================

# Canonical column order for trip records.
TRIP_COLUMNS: Final[list[str]] = [
    'provider',  # Source vendor: 'routevision', 'samsara', ...
    'trip_id',  # Vendor trip identifier
    'vehicle_id',  # Vendor vehicle identifier
    'registration',  # License plate
    'driver_name',  # Driver, if known
    'departure_time',  # Trip start (UTC, timezone-aware)
    'arrival_time',  # Trip end (UTC, timezone-aware)
    'distance_km',  # Distance in kilometers
    'duration_minutes',  # Duration in whole minutes
    'departure_address',  # Formatted departure address
    'departure_lat',  # Departure latitude (decimal degrees, WGS84)
    'departure_lng',  # Departure longitude
    'arrival_address',  # Formatted arrival address
    'arrival_lat',  # Arrival latitude
    'arrival_lng',  # Arrival longitude
    'is_private',
    'is_commute',
    'is_manual',
    'is_running',
]

# Vendor first, then vehicle, then chronological.
SORT_COLUMNS: Final[list[str]] = ['provider', 'vehicle_id', 'departure_time']

_DATETIME_COLUMNS: Final[list[str]] = ['departure_time', 'arrival_time']
_FLOAT_COLUMNS: Final[list[str]] = [
    'distance_km',
    'departure_lat',
    'departure_lng',
    'arrival_lat',
    'arrival_lng',
]
_BOOL_COLUMNS: Final[list[str]] = ['is_private', 'is_commute', 'is_manual', 'is_running']


# =============================================================================
# Schema Functions
# =============================================================================


def _location_fields(prefix: str, location: TripLocation) -> dict[str, Any]:
    return {
        f'{prefix}_address': location.address,
        f'{prefix}_lat': location.lat,
        f'{prefix}_lng': location.lng,
    }


def _trip_to_row(trip: Trip) -> dict[str, Any]:
    return {
        'provider': trip.provider_type.value,
        'trip_id': trip.id,
        'vehicle_id': trip.vehicle_id,
        'registration': trip.registration,
        'driver_name': trip.driver_name,
        'departure_time': trip.departure_time,
        'arrival_time': trip.arrival_time,
        'distance_km': trip.distance_km,
        'duration_minutes': trip.duration_minutes,
        **_location_fields('departure', trip.departure),
        **_location_fields('arrival', trip.arrival),
        'is_private': trip.is_private,
        'is_commute': trip.is_commute,
        'is_manual': trip.is_manual,
        'is_running': trip.is_running,
    }


def enforce_trip_schema(dataframe: pd.DataFrame) -> pd.DataFrame:
    """
    Enforce column order and dtypes on a trip DataFrame.

    Idempotent: calling it on an already enforced frame changes nothing.

    Args:
        dataframe: Frame containing every column of TRIP_COLUMNS.

    Returns:
        Copy with enforced types:
            - departure_time/arrival_time: datetime64[ns, UTC]
            - distance_km and coordinates: float64 (missing values are NaN)
            - duration_minutes: int64
            - is_* flags: bool
            - provider: category
            - all others: object (string or None)

    Raises:
        ValueError: If required columns are missing.
    """
    missing_columns: set[str] = set(TRIP_COLUMNS) - set(dataframe.columns)
    if missing_columns:
        raise ValueError(f'DataFrame missing required columns: {sorted(missing_columns)}')

    result: pd.DataFrame = dataframe.copy()

    for column_name in _DATETIME_COLUMNS:
        result[column_name] = pd.to_datetime(result[column_name], utc=True, errors='coerce')

    for column_name in _FLOAT_COLUMNS:
        result[column_name] = pd.to_numeric(result[column_name], errors='coerce').astype(
            np.float64
        )

    result['duration_minutes'] = (
        pd.to_numeric(result['duration_minutes'], errors='coerce')
        .fillna(0)
        .astype(np.int64)
    )

    for column_name in _BOOL_COLUMNS:
        result[column_name] = result[column_name].fillna(False).astype(bool)

    result['provider'] = result['provider'].astype('category')

    return result[TRIP_COLUMNS]


def trips_to_dataframe(trips: Iterable[Trip], *, sort: bool = True) -> pd.DataFrame:
    """
    Flatten normalized trips into a DataFrame with the canonical schema.

    Args:
        trips: Trips from one or more adapters (a TripBatch's ``trips``).
        sort: Sort rows by provider, vehicle and departure time.

    Returns:
        DataFrame with exactly TRIP_COLUMNS, enforced dtypes and a fresh
        RangeIndex. An empty input gives an empty frame with the same columns.
    """
    rows: list[dict[str, Any]] = [_trip_to_row(trip) for trip in trips]
    dataframe: pd.DataFrame = enforce_trip_schema(pd.DataFrame(rows, columns=TRIP_COLUMNS))

    if sort and not dataframe.empty:
        dataframe = dataframe.sort_values(SORT_COLUMNS, kind='stable')

    logger.debug('Built trip DataFrame with %d rows', len(dataframe))
    return dataframe.reset_index(drop=True)
