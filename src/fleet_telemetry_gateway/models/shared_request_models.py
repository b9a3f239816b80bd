# fleet_telemetry_gateway/models/shared_request_models.py
"""
Vendor-neutral request models used by ProviderHttpClient.

Adapters decide what to send; the HTTP helper turns their call into a
RequestSpec and executes it without knowing which vendor it talks to.
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any, Final, Self

from pydantic import BaseModel, ConfigDict, Field

__all__: list[str] = [
    'HTTPMethod',
    'RateLimitInfo',
    'RequestSpec',
]

DEFAULT_RETRY_AFTER_SECONDS: Final[float] = 1.0


class HTTPMethod(str, Enum):
    """HTTP methods the vendor APIs are called with."""

    GET = 'GET'
    POST = 'POST'
    PUT = 'PUT'
    DELETE = 'DELETE'


class RequestSpec(BaseModel):
    """
    One fully resolved vendor request.

    Attributes:
        url: Absolute URL.
        method: HTTP method.
        headers: Headers, authentication included.
        query_params: Query string values, already stringified.
        json_body: Payload sent as JSON, or None.
        form_body: Payload sent urlencoded (OAuth2 token endpoints), or None.
        timeout: (connect, read) timeout in seconds.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    url: str
    method: HTTPMethod = HTTPMethod.GET
    headers: dict[str, str] = Field(default_factory=dict)
    query_params: dict[str, str] = Field(default_factory=dict)
    json_body: Any = None
    form_body: dict[str, str] | None = None
    timeout: tuple[float, float] = (10.0, 30.0)


def _parse_retry_after(raw_value: str | None, now: datetime | None = None) -> float:
    """Seconds from a Retry-After value given as delta-seconds or HTTP-date."""
    if raw_value is None or not raw_value.strip():
        return DEFAULT_RETRY_AFTER_SECONDS

    text: str = raw_value.strip()
    if text.isdigit():
        return float(text)

    try:
        retry_at: datetime = parsedate_to_datetime(text)
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER_SECONDS

    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=UTC)
    return max((retry_at - (now or datetime.now(UTC))).total_seconds(), 0.0)


def _parse_count(raw_value: str | None) -> int | None:
    if raw_value is None or not raw_value.strip().isdigit():
        return None
    return int(raw_value)


class RateLimitInfo(BaseModel):
    """
    Rate limit details of an HTTP 429 answer.

    Attributes:
        retry_after_seconds: Wait before the next attempt. 1 second when the
            vendor sends no usable Retry-After.
        limit: Requests allowed per window (X-RateLimit-Limit).
        remaining: Requests left in the window (X-RateLimit-Remaining).
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    retry_after_seconds: float = DEFAULT_RETRY_AFTER_SECONDS
    limit: int | None = None
    remaining: int | None = None

    @classmethod
    def from_response_headers(cls, headers: Mapping[str, str]) -> Self:
        """
        Read rate limit headers, matching names case-insensitively.

        Unparseable values fall back to the defaults so that building the
        error never fails itself.
        """
        by_name: dict[str, str] = {name.lower(): value for name, value in headers.items()}

        return cls(
            retry_after_seconds=_parse_retry_after(by_name.get('retry-after')),
            limit=_parse_count(by_name.get('x-ratelimit-limit')),
            remaining=_parse_count(by_name.get('x-ratelimit-remaining')),
        )
