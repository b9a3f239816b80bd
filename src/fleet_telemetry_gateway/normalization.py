# fleet_telemetry_gateway/normalization.py
"""
Shared helpers that turn vendor values into domain values.

Every adapter depends on these functions explicitly instead of inheriting
them, so each adapter can be tested on its own and a vendor quirk never leaks
into the others through a base class.

Units after normalization:
    distance  -> kilometers
    duration  -> whole minutes
    speed     -> km/h
    time      -> timezone-aware datetime (naive vendor values are taken as UTC)
"""

import logging
import math
import re
from collections.abc import Iterable
from datetime import UTC, date, datetime
from typing import Any, Final

from fleet_telemetry_gateway.exceptions import (
    DateRangeTooLargeError,
    InvalidDateRangeError,
    MalformedResponseError,
)

__all__: list[str] = [
    'KM_PER_MILE',
    'UNKNOWN_ADDRESS',
    'ensure_date_window',
    'format_address',
    'format_date',
    'format_iso_utc',
    'meters_to_km',
    'miles_to_km',
    'minutes_between',
    'mph_to_kmh',
    'parse_duration_to_minutes',
    'parse_ignition',
    'parse_timestamp',
    'require_registration',
    'resolve_duration_minutes',
    'seconds_to_minutes',
    'to_float',
]

logger: logging.Logger = logging.getLogger(__name__)

KM_PER_MILE: Final[float] = 1.60934
METERS_PER_KM: Final[float] = 1000.0
SECONDS_PER_DAY: Final[int] = 86_400
UNKNOWN_ADDRESS: Final[str] = 'Unknown'

_HHMMSS_PATTERN: Final[re.Pattern[str]] = re.compile(r'^(\d+):(\d+):(\d+)$')
_ISO_DURATION_PATTERN: Final[re.Pattern[str]] = re.compile(
    r'^PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?$'
)
_PLAIN_MINUTES_PATTERN: Final[re.Pattern[str]] = re.compile(r'^\d+$')

_IGNITION_ON_VALUES: Final[frozenset[str]] = frozenset({'on', '1', 'true', 'yes'})


# =============================================================================
# Addresses
# =============================================================================


def format_address(
    street: str | None = None,
    house_number: str | None = None,
    postal_code: str | None = None,
    city: str | None = None,
) -> str:
    """
    Join address parts into one display line.

    Street and house number form the first part, postal code and city the
    second, separated by a comma. A house number without a street is dropped.

    Args:
        street: Street name.
        house_number: House number.
        postal_code: Postal code.
        city: City.

    Returns:
        Formatted address, or 'Unknown' if every part is empty.

    Example:
        >>> format_address('Hoofdstraat', '1', '3500 AA', 'Utrecht')
        'Hoofdstraat 1, 3500 AA Utrecht'
    """
    parts: list[str] = []

    street = (street or '').strip()
    house_number = (house_number or '').strip()
    postal_code = (postal_code or '').strip()
    city = (city or '').strip()

    if street:
        parts.append(f'{street} {house_number}' if house_number else street)

    locality: str = ' '.join(part for part in (postal_code, city) if part)
    if locality:
        parts.append(locality)

    return ', '.join(parts) or UNKNOWN_ADDRESS


# =============================================================================
# Durations and Timestamps
# =============================================================================


def _parse_duration(duration: str) -> int | None:
    """Parse a duration to minutes, None if the format is not recognized."""
    text: str = duration.strip()
    if not text:
        return None

    hhmmss_match: re.Match[str] | None = _HHMMSS_PATTERN.match(text)
    if hhmmss_match:
        return int(hhmmss_match.group(1)) * 60 + int(hhmmss_match.group(2))

    iso_match: re.Match[str] | None = _ISO_DURATION_PATTERN.match(text)
    if iso_match and any(iso_match.groups()):
        hours: int = int(iso_match.group(1) or 0)
        minutes: int = int(iso_match.group(2) or 0)
        return hours * 60 + minutes

    if _PLAIN_MINUTES_PATTERN.match(text):
        return int(text)

    return None


def parse_duration_to_minutes(duration: Any) -> int:
    """
    Convert a vendor duration to whole minutes. Never raises.

    Accepted formats (seconds are discarded):
        - 'HH:MM:SS'      -> hours * 60 + minutes
        - 'PT#H#M#S'      -> ISO-8601 hours and minutes components
        - '45'            -> already minutes

    Args:
        duration: Duration value from a vendor payload.

    Returns:
        Minutes, or 0 for missing or unparseable input.

    Example:
        >>> parse_duration_to_minutes('01:30:00')
        90
        >>> parse_duration_to_minutes('garbage')
        0
    """
    if duration is None:
        return 0
    if isinstance(duration, bool):
        return 0
    if isinstance(duration, int):
        return max(duration, 0)

    parsed: int | None = _parse_duration(str(duration))
    return parsed if parsed is not None else 0


def resolve_duration_minutes(
    duration: Any,
    departure_time: datetime,
    arrival_time: datetime,
) -> int:
    """
    Use the vendor duration when it parses, else the timestamp delta.

    Keeps an unparseable vendor duration from silently becoming 0 and
    understating aggregate driving time downstream.
    """
    if duration is not None and not isinstance(duration, bool):
        parsed: int | None = (
            max(duration, 0) if isinstance(duration, int) else _parse_duration(str(duration))
        )
        if parsed is not None:
            return parsed

        logger.debug('Unparseable duration %r, using timestamp delta', duration)

    return minutes_between(departure_time, arrival_time)


def seconds_to_minutes(seconds: Any) -> int | None:
    """Round a seconds value to whole minutes, None if it is missing."""
    if seconds is None or isinstance(seconds, bool):
        return None
    try:
        return max(round(float(seconds) / 60), 0)
    except (TypeError, ValueError, OverflowError):
        return None


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end``, rounded, never negative."""
    delta_seconds: float = (end - start).total_seconds()
    return max(round(delta_seconds / 60), 0)


def parse_timestamp(value: Any, provider: str | None = None) -> datetime:
    """
    Parse a vendor timestamp into a timezone-aware datetime.

    Accepts datetime objects, ISO-8601 strings with 'Z' or offsets, and the
    'YYYY-MM-DD HH:MM:SS' form. Naive values are taken as UTC.

    Args:
        value: Timestamp from a vendor payload.
        provider: Provider name for error messages.

    Returns:
        Timezone-aware datetime.

    Raises:
        MalformedResponseError: If the value is missing or not a timestamp.
    """
    if isinstance(value, datetime):
        parsed: datetime = value
    elif isinstance(value, str) and value.strip():
        text: str = value.strip()
        if text.endswith(('Z', 'z')):
            text = f'{text[:-1]}+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as parse_error:
            raise MalformedResponseError(
                f'Invalid timestamp {value!r}', provider=provider
            ) from parse_error
    else:
        raise MalformedResponseError(
            f'Missing or invalid timestamp {value!r}', provider=provider
        )

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_iso_utc(moment: datetime) -> str:
    """Format as 'YYYY-MM-DDTHH:MM:SSZ' in UTC (naive values taken as UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).strftime('%Y-%m-%dT%H:%M:%SZ')


def format_date(moment: datetime | date) -> str:
    """Format the UTC calendar date as 'YYYY-MM-DD'."""
    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=UTC)
        return moment.astimezone(UTC).date().isoformat()
    return moment.isoformat()


def ensure_date_window(
    date_from: datetime,
    date_to: datetime,
    max_days: int,
    provider: str,
) -> int:
    """
    Validate a trip window against a provider's maximum span.

    The span is counted in days rounded up, so 31 days and one second is
    32 days.

    Args:
        date_from: Window start.
        date_to: Window end.
        max_days: Largest span the provider accepts.
        provider: Provider name for the error.

    Returns:
        Span of the window in whole days (rounded up).

    Raises:
        InvalidDateRangeError: If date_from is after date_to.
        DateRangeTooLargeError: If the span exceeds max_days.
    """
    if date_from.tzinfo is None:
        date_from = date_from.replace(tzinfo=UTC)
    if date_to.tzinfo is None:
        date_to = date_to.replace(tzinfo=UTC)

    if date_from > date_to:
        raise InvalidDateRangeError(
            f'date_from {date_from.isoformat()} is after date_to {date_to.isoformat()}'
        )

    span_days: int = math.ceil((date_to - date_from).total_seconds() / SECONDS_PER_DAY)
    if span_days > max_days:
        raise DateRangeTooLargeError(
            provider=provider,
            requested_days=span_days,
            max_days=max_days,
        )
    return span_days


# =============================================================================
# Units and Flags
# =============================================================================


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce a vendor number (possibly a string) to float, else ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        result: float = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(result) else result


def miles_to_km(miles: Any) -> float:
    """Convert miles to kilometers."""
    return to_float(miles) * KM_PER_MILE


def mph_to_kmh(mph: Any) -> float:
    """Convert miles per hour to km/h."""
    return to_float(mph) * KM_PER_MILE


def meters_to_km(meters: Any) -> float:
    """Convert meters to kilometers."""
    return to_float(meters) / METERS_PER_KM


def parse_ignition(value: Any) -> bool:
    """
    Normalize vendor ignition encodings to a boolean.

    True for: True, 1, '1', 'On', 'true', 'yes' (case-insensitive).
    Everything else, including None, is False.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _IGNITION_ON_VALUES
    return False


def require_registration(
    candidates: Iterable[Any],
    record_id: str,
    provider: str,
) -> str:
    """
    Pick the first non-blank registration candidate.

    Vendors without a dedicated plate field fall back to the vehicle name.

    Raises:
        MalformedResponseError: If every candidate is blank.
    """
    for candidate in candidates:
        if candidate is None:
            continue
        text: str = str(candidate).strip()
        if text:
            return text

    raise MalformedResponseError(
        f'Record {record_id!r} has no registration', provider=provider
    )
