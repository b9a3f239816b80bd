# fleet_telemetry_gateway/token_cache.py
"""
In-process cache for vendor session tokens.

Session-login and OAuth2 vendors hand out tokens that stay valid for a while;
re-authenticating on every call is slow and, for some vendors, rate limited.
Adapters consult this cache before hitting the network and populate it after
a successful exchange.

Design Decisions:
-----------------
- Injected service: adapters receive a TokenCache instance. ``shared()``
  returns the process-wide default for callers that do not inject one.

- Thread-safe: a lock guards the read-check-write sequence. Two callers that
  miss at the same time both re-authenticate and the last writer wins, which
  is wasteful but correct.

- Lazy eviction: expired entries are removed when a lookup finds them (or on
  ``purge_expired()``); there is no background sweeper.

- Secret-free keys: ``build_cache_key`` combines the provider type, the login
  email and at most the first 8 characters of an API key. Keys can be logged.

- Process-lifetime only: the cache does not survive restarts and is not shared
  between processes. Multi-instance deployments that want shared sessions need
  a distributed store behind the same get/put interface.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Final, Self

from pydantic import BaseModel, ConfigDict

from fleet_telemetry_gateway.config import DEFAULT_TOKEN_TTL_SECONDS
from fleet_telemetry_gateway.models import (
    ApiKeyCredentials,
    OAuth2ClientCredentials,
    ProviderType,
    SessionLoginCredentials,
)

__all__: list[str] = [
    'API_KEY_PREFIX_LENGTH',
    'CachedToken',
    'TokenCache',
    'build_cache_key',
]

logger: logging.Logger = logging.getLogger(__name__)

# Enough to tell accounts apart without the key being recoverable from a log line
API_KEY_PREFIX_LENGTH: Final[int] = 8


class CachedToken(BaseModel):
    """
    A cached token together with its absolute expiry instant.

    Attributes:
        token: Session id, access token or API key.
        expires_at: Clock reading (seconds) after which the token is stale.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    token: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """True once ``now`` has reached the expiry instant."""
        return now >= self.expires_at


def build_cache_key(
    provider_type: ProviderType | str,
    credentials: SessionLoginCredentials | ApiKeyCredentials | OAuth2ClientCredentials,
) -> str:
    """
    Derive the cache key for a provider/credentials pair.

    The key is ``provider[:email][:api_key_prefix]``. Passwords and API secrets
    never contribute; API keys contribute only their first 8 characters.

    Args:
        provider_type: Provider the token belongs to.
        credentials: Credentials used to obtain the token.

    Returns:
        Colon-separated cache key.

    Example:
        >>> build_cache_key('fleetgo', ApiKeyCredentials(api_key=SecretStr('abcdef123456')))
        'fleetgo:abcdef12'
    """
    parts: list[str] = [ProviderType(provider_type).value]

    if isinstance(credentials, SessionLoginCredentials):
        if credentials.account_id:
            parts.append(credentials.account_id)
        parts.append(credentials.email)
    else:
        api_key: str = credentials.api_key.get_secret_value()
        parts.append(api_key[:API_KEY_PREFIX_LENGTH])

    return ':'.join(parts)


class TokenCache:
    """
    Thread-safe keyed store of short-lived tokens.

    Example:
        >>> cache = TokenCache(ttl_seconds=60)
        >>> cache.put('samsara:abcdef12', 'abcdef1234567890')
        >>> cache.get('samsara:abcdef12')
        'abcdef1234567890'
    """

    _shared: Self | None = None
    _shared_lock: threading.Lock = threading.Lock()

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize an empty cache.

        Args:
            ttl_seconds: Default lifetime of stored tokens.
            clock: Monotonic time source in seconds. Injected in tests.

        Raises:
            ValueError: If ttl_seconds is not positive.
        """
        if ttl_seconds <= 0:
            raise ValueError(f'ttl_seconds must be positive, got: {ttl_seconds}')

        self._ttl_seconds: float = ttl_seconds
        self._clock: Callable[[], float] = clock
        self._entries: dict[str, CachedToken] = {}
        self._lock: threading.Lock = threading.Lock()

    @classmethod
    def shared(cls) -> Self:
        """
        Get the process-wide cache used when no cache is injected.

        Returns:
            The shared TokenCache instance (default TTL, monotonic clock).
        """
        if cls._shared is None:
            with cls._shared_lock:
                if cls._shared is None:
                    cls._shared = cls()
        return cls._shared

    @property
    def ttl_seconds(self) -> float:
        """Default lifetime of stored tokens in seconds."""
        return self._ttl_seconds

    # -------------------------------------------------------------------------
    # Lookup and Storage
    # -------------------------------------------------------------------------

    def get(self, key: str) -> str | None:
        """
        Return the cached token for ``key`` if it has not expired.

        An expired entry found by the lookup is evicted.

        Args:
            key: Cache key from build_cache_key.

        Returns:
            The token, or None on a miss or expiry.
        """
        with self._lock:
            entry: CachedToken | None = self._entries.get(key)
            if entry is None:
                return None

            if entry.is_expired(self._clock()):
                del self._entries[key]
                logger.debug('Evicted expired token for %s', key)
                return None

            return entry.token

    def put(self, key: str, token: str, ttl_seconds: float | None = None) -> CachedToken:
        """
        Store ``token`` under ``key`` until now + TTL. Last writer wins.

        Args:
            key: Cache key from build_cache_key.
            token: Token to store.
            ttl_seconds: Override of the default TTL for this entry.

        Returns:
            The stored CachedToken.
        """
        lifetime: float = self._ttl_seconds if ttl_seconds is None else ttl_seconds

        with self._lock:
            entry = CachedToken(token=token, expires_at=self._clock() + lifetime)
            self._entries[key] = entry

        logger.debug('Cached token for %s (ttl=%.0fs)', key, lifetime)
        return entry

    def invalidate(self, key: str) -> bool:
        """
        Drop the entry for ``key``.

        Returns:
            True if an entry was removed.
        """
        with self._lock:
            return self._entries.pop(key, None) is not None

    def purge_expired(self) -> int:
        """
        Remove every expired entry.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now: float = self._clock()
            expired_keys: list[str] = [
                key for key, entry in self._entries.items() if entry.is_expired(now)
            ]
            for key in expired_keys:
                del self._entries[key]

        if expired_keys:
            logger.debug('Purged %d expired token(s)', len(expired_keys))
        return len(expired_keys)

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        """Raw presence check; does not look at expiry."""
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        """Number of stored entries, expired or not."""
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        """String representation for debugging (keys only, never tokens)."""
        return f'TokenCache(entries={len(self)}, ttl_seconds={self._ttl_seconds})'
