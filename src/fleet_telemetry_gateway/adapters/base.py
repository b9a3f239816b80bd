# fleet_telemetry_gateway/adapters/base.py
"""
Adapter interface and the shared pieces every adapter is composed from.

There is no adapter base class. Each adapter satisfies the ProviderAdapter
protocol and holds an AdapterContext, which bundles the collaborators it
needs: transport settings, the token cache and the HTTP helper. Helpers that
every adapter uses (payload validation, the auth-exchange error mapping, the
connection probe) are plain functions in this module.

Design Decisions:
-----------------
- Stateless adapters: an adapter keeps no per-tenant state. Tokens flow in
  and out through method arguments and the injected token cache.

- Errors surface untouched: only ``probe_connection`` (the shared body of
  ``test_connection``) turns exceptions into a result value.

- Vendor payloads are validated with pydantic models; a payload that does
  not validate raises MalformedResponseError naming the provider.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Any, NamedTuple, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from fleet_telemetry_gateway.client import ProviderHttpClient
from fleet_telemetry_gateway.config import ProviderConfig
from fleet_telemetry_gateway.exceptions import (
    AuthenticationFailedError,
    MalformedResponseError,
    MissingCredentialsError,
    ProviderRequestError,
    TransientProviderError,
)
from fleet_telemetry_gateway.models import (
    ConnectionTestResult,
    Credentials,
    ProviderInfo,
    ProviderType,
    Trip,
    Vehicle,
    VehicleLocation,
    parse_credentials,
)
from fleet_telemetry_gateway.normalization import ensure_date_window
from fleet_telemetry_gateway.token_cache import TokenCache, build_cache_key

__all__: list[str] = [
    'AdapterContext',
    'IssuedToken',
    'ProviderAdapter',
    'authentication_exchange',
    'build_model',
    'probe_connection',
    'require_credentials',
    'validate_records',
]

logger: logging.Logger = logging.getLogger(__name__)


# =============================================================================
# Adapter Protocol
# =============================================================================


@runtime_checkable
class ProviderAdapter(Protocol):
    """
    Uniform interface over one fleet-tracking vendor.

    Every method except ``test_connection`` lets errors surface to the caller.
    """

    @property
    def provider_type(self) -> ProviderType:
        """Vendor this adapter talks to."""
        ...

    @property
    def info(self) -> ProviderInfo:
        """Catalog metadata of the vendor."""
        ...

    async def authenticate(self, credentials: Credentials | Mapping[str, Any]) -> str:
        """Return a token for the credentials, from cache or a fresh exchange."""
        ...

    async def test_connection(
        self, credentials: Credentials | Mapping[str, Any]
    ) -> ConnectionTestResult:
        """Authenticate and list vehicles. Never raises."""
        ...

    async def get_vehicles(self, token: str) -> list[Vehicle]:
        """List the account's vehicles."""
        ...

    async def get_trips(
        self,
        token: str,
        vehicle_id: str,
        date_from: datetime,
        date_to: datetime,
    ) -> list[Trip]:
        """List one vehicle's trips in [date_from, date_to]."""
        ...

    async def get_vehicle_locations(self, token: str) -> list[VehicleLocation]:
        """Snapshot of every vehicle's last known position."""
        ...


# =============================================================================
# Adapter Context
# =============================================================================


class IssuedToken(NamedTuple):
    """Token from an exchange whose vendor states its lifetime."""

    token: str
    ttl_seconds: float | None = None


class AdapterContext:
    """
    Collaborators an adapter is composed from.

    Attributes:
        provider_type: Vendor the owning adapter talks to.
        settings: Transport settings for the vendor.
        token_cache: Cache consulted before every token exchange.
        http: HTTP helper executing the exchanges.
        base_url: Configured base URL, or the vendor default.
    """

    def __init__(
        self,
        provider_type: ProviderType,
        default_base_url: str,
        settings: ProviderConfig | None = None,
        token_cache: TokenCache | None = None,
        http_client: ProviderHttpClient | None = None,
    ) -> None:
        self.provider_type: ProviderType = provider_type
        self.settings: ProviderConfig = settings or ProviderConfig()
        self.token_cache: TokenCache = token_cache or TokenCache.shared()
        self.http: ProviderHttpClient = http_client or ProviderHttpClient(self.settings)
        self.base_url: str = (self.settings.base_url or default_base_url).rstrip('/')
        self._login_locks: dict[str, asyncio.Lock] = {}

    def url(self, path: str) -> str:
        """Absolute URL for a vendor path such as '/vehicles'."""
        return f'{self.base_url}{path}'

    def cached_token(self, key: str) -> str | None:
        """Token cached under ``key``, if still valid."""
        return self.token_cache.get(key)

    def remember_token(self, key: str, token: str, ttl_seconds: float | None = None) -> None:
        """Cache a freshly obtained token under ``key``."""
        self.token_cache.put(key, token, ttl_seconds=ttl_seconds)

    async def token_for(
        self,
        credentials: Credentials,
        exchange: Callable[[], Awaitable[str | IssuedToken | None]],
    ) -> str:
        """
        Return a cached token or run ``exchange`` and cache its result.

        Concurrent calls for the same cache key share one exchange: the
        first caller logs in, the others wait and read its token from the
        cache.

        Args:
            credentials: Validated credentials, used to derive the cache key.
            exchange: Coroutine factory performing the vendor token exchange.
                An IssuedToken with a lifetime shorter than the cache TTL
                is cached for that shorter lifetime.

        Returns:
            Token or session string.

        Raises:
            AuthenticationFailedError: If the exchange yields no token.
        """
        cache_key: str = build_cache_key(self.provider_type, credentials)

        cached: str | None = self.cached_token(cache_key)
        if cached is not None:
            logger.debug('Token cache hit for %s', cache_key)
            return cached

        login_lock: asyncio.Lock = self._login_locks.setdefault(cache_key, asyncio.Lock())
        async with login_lock:
            cached = self.cached_token(cache_key)
            if cached is not None:
                logger.debug('Token cached by a concurrent login for %s', cache_key)
                return cached

            result: str | IssuedToken | None = await exchange()
            issued: IssuedToken | None = (
                IssuedToken(result) if isinstance(result, str) else result
            )
            if issued is None or not issued.token.strip():
                raise AuthenticationFailedError(
                    f'{self.provider_type.value} returned no token',
                    provider=self.provider_type.value,
                )

            ttl_seconds: float | None = None
            if issued.ttl_seconds is not None and issued.ttl_seconds > 0:
                ttl_seconds = min(self.token_cache.ttl_seconds, issued.ttl_seconds)

            token: str = issued.token.strip()
            self.remember_token(cache_key, token, ttl_seconds=ttl_seconds)

        logger.info('Authenticated with %s', self.provider_type.value)
        return token

    def ensure_trip_window(self, date_from: datetime, date_to: datetime) -> None:
        """Reject windows larger than the configured maximum for this vendor."""
        ensure_date_window(
            date_from,
            date_to,
            max_days=self.settings.max_trip_window_days,
            provider=self.provider_type.value,
        )


# =============================================================================
# Shared Helpers
# =============================================================================

CredentialsT = TypeVar('CredentialsT', bound=BaseModel)
ModelT = TypeVar('ModelT', bound=BaseModel)


def require_credentials(
    credentials: Credentials | Mapping[str, Any],
    expected_type: type[CredentialsT],
    provider_type: ProviderType,
) -> CredentialsT:
    """
    Check that credentials are the variant an adapter accepts.

    A loose mapping is first parsed into the expected variant.

    Args:
        credentials: Credential model or loose mapping.
        expected_type: Credential class the adapter requires.
        provider_type: Adapter's vendor, for error messages.

    Returns:
        The credentials, typed as ``expected_type``.

    Raises:
        MissingCredentialsError: If the mapping lacks required fields or the
            model is the wrong variant.
    """
    if isinstance(credentials, Mapping):
        credentials = parse_credentials(
            expected_type.model_fields['auth_type'].default,
            credentials,
            provider=provider_type.value,
        )

    if not isinstance(credentials, expected_type):
        raise MissingCredentialsError(
            f'{provider_type.value} requires {expected_type.__name__}, '
            f'got {type(credentials).__name__}',
            provider=provider_type.value,
        )
    return credentials


@contextmanager
def authentication_exchange(provider_type: ProviderType) -> Iterator[None]:
    """
    Map a rejected token exchange to AuthenticationFailedError.

    Transient failures (timeouts, 5xx, 429) pass through unchanged because
    they say nothing about the credentials.
    """
    try:
        yield
    except TransientProviderError:
        raise
    except ProviderRequestError as error:
        raise AuthenticationFailedError(
            f'{provider_type.value} rejected the credentials (HTTP {error.status_code})',
            provider=provider_type.value,
            status_code=error.status_code,
        ) from error


def build_model(
    model_class: type[ModelT],
    provider_type: ProviderType,
    /,
    **fields: Any,
) -> ModelT:
    """Construct a domain model, reporting invalid values as a malformed payload."""
    try:
        return model_class(**fields)
    except ValidationError as error:
        raise MalformedResponseError(
            f'Invalid {model_class.__name__} from {provider_type.value}: {error}',
            provider=provider_type.value,
        ) from error


def validate_records(
    model_class: type[ModelT],
    payload: Any,
    provider_type: ProviderType,
    collection_key: str | None = None,
) -> list[ModelT]:
    """
    Validate a vendor list payload into vendor models.

    Args:
        model_class: Pydantic model of one vendor record.
        payload: Decoded response body.
        provider_type: Vendor, for error messages.
        collection_key: Key of the list inside a JSON object. A bare list is
            accepted when the key is absent.

    Returns:
        Validated records. None or a missing collection yields an empty list.

    Raises:
        MalformedResponseError: If the payload is not a list of records.
    """
    records: Any = payload
    if collection_key is not None and isinstance(payload, Mapping):
        records = payload.get(collection_key)
    if records is None:
        return []

    if not isinstance(records, Sequence) or isinstance(records, str | bytes):
        raise MalformedResponseError(
            f'Expected a list of {model_class.__name__} records from '
            f'{provider_type.value}, got {type(records).__name__}',
            provider=provider_type.value,
        )

    try:
        return [model_class.model_validate(record) for record in records]
    except ValidationError as error:
        raise MalformedResponseError(
            f'Unexpected {model_class.__name__} payload from {provider_type.value}: {error}',
            provider=provider_type.value,
        ) from error


async def probe_connection(
    adapter: ProviderAdapter,
    credentials: Credentials | Mapping[str, Any],
) -> ConnectionTestResult:
    """
    Authenticate and list vehicles, reporting the outcome as a value.

    This is the single place where errors become a result. It never raises
    for an ``Exception``.

    Args:
        adapter: Adapter to probe.
        credentials: Credentials to test.

    Returns:
        ConnectionTestResult with the vehicle count or the error message.
    """
    try:
        token: str = await adapter.authenticate(credentials)
        vehicles: list[Vehicle] = await adapter.get_vehicles(token)
    except Exception as error:  # noqa: BLE001
        logger.warning(
            'Connection test failed for %s: %s',
            adapter.provider_type.value,
            error,
        )
        return ConnectionTestResult.failed(str(error) or type(error).__name__)

    logger.info(
        'Connection test succeeded for %s: %d vehicles',
        adapter.provider_type.value,
        len(vehicles),
    )
    return ConnectionTestResult.ok(len(vehicles))
