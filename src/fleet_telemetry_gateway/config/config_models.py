# fleet_telemetry_gateway/config/config_models.py
"""
Pydantic models for the gateway configuration file.

The file tunes transport behavior per vendor (base URL, timeouts, retries,
TLS), the token cache and logging. It never holds vendor credentials: the
calling system stores those per tenant and hands them to ``authenticate``.

Design Decisions:
-----------------
- Every model forbids unknown keys, so a typo in the YAML fails loudly.
- Every field has a default. An empty file, or no file at all, gives a
  working gateway against the vendors' public endpoints.
- Nothing here logs: logging is configured from this very model, after the
  file has been loaded.
- ``verify_ssl`` accepts True (system CA store), False (no verification) or
  the path of a CA bundle, e.g. an exported corporate proxy root.

Usage:
------
    from fleet_telemetry_gateway.config import load_config

    config = load_config('config/gateway_config.yaml')
    samsara_settings = config.provider_settings('samsara')
"""

from pathlib import Path
from typing import Annotated, Final, Literal, Self

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from fleet_telemetry_gateway.models.domain import ProviderType

__all__: list[str] = [
    'DEFAULT_TOKEN_TTL_SECONDS',
    'GatewayConfig',
    'LogLevelName',
    'LoggingConfig',
    'ProviderConfig',
    'TokenCacheConfig',
]

# =============================================================================
# Constants
# =============================================================================

LogLevelName = Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

# Numeric values of the standard levels, kept here so the model layer does
# not import logging.
_LEVEL_BY_NAME: Final[dict[str, int]] = {
    'DEBUG': 10,
    'INFO': 20,
    'WARNING': 30,
    'ERROR': 40,
    'CRITICAL': 50,
}

# Below the vendors' own session lifetimes (RouteVision: 15 minutes).
DEFAULT_TOKEN_TTL_SECONDS: Final[int] = 14 * 60

DEFAULT_TIMEOUT_SECONDS: Final[tuple[int, int]] = (10, 30)
DEFAULT_MAX_TRIP_WINDOW_DAYS: Final[int] = 31


def _check_level(level: LogLevelName | int | None) -> LogLevelName | int | None:
    if isinstance(level, int) and level not in _LEVEL_BY_NAME.values():
        raise ValueError(
            f'Numeric log level must be one of {sorted(_LEVEL_BY_NAME.values())}, '
            f'got: {level}'
        )
    return level


def _level_to_int(level: LogLevelName | int) -> int:
    return level if isinstance(level, int) else _LEVEL_BY_NAME[level]


LogLevel = Annotated[LogLevelName | int, AfterValidator(_check_level)]


# =============================================================================
# Provider Configuration
# =============================================================================


class ProviderConfig(BaseModel):
    """
    Transport settings for one vendor.

    Retries:
        ``max_attempts`` defaults to 1, so a failure reaches the caller at
        once and the caller decides whether to try again. Above 1, timeouts,
        connection errors, 5xx and 429 answers are retried with exponential
        backoff (``retry_backoff_seconds * 2 ** (attempt - 1)``). Other 4xx
        answers are never retried.

    Attributes:
        base_url: API root. None keeps the adapter's built-in URL.
        request_timeout: (connect, read) timeout in seconds.
        max_attempts: Attempts per request, 1 to 10.
        retry_backoff_seconds: First retry delay.
        verify_ssl: True, False, or the path of a CA bundle file.
        max_trip_window_days: Widest trip window ``get_trips`` accepts.
    """

    model_config = ConfigDict(extra='forbid')

    base_url: str | None = Field(
        default=None,
        description='Vendor API root including scheme',
    )
    request_timeout: tuple[int, int] = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        description='(connect, read) timeout in seconds',
    )
    max_attempts: int = Field(default=1, ge=1, le=10)
    retry_backoff_seconds: float = Field(default=1.0, ge=0.0, le=60.0)
    verify_ssl: bool | str = Field(
        default=True,
        description='True for the system CA store, False to disable, or a CA bundle path',
    )
    max_trip_window_days: int = Field(default=DEFAULT_MAX_TRIP_WINDOW_DAYS, ge=1, le=366)

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, base_url: str | None) -> str | None:
        """Require an http(s) scheme and drop the trailing slash."""
        if base_url is None:
            return None

        stripped: str = base_url.strip()
        if not stripped.startswith(('http://', 'https://')):
            raise ValueError(f"base_url must start with 'http://' or 'https://': {base_url!r}")
        return stripped.rstrip('/')

    @field_validator('request_timeout')
    @classmethod
    def validate_request_timeout(cls, timeout: tuple[int, int]) -> tuple[int, int]:
        """Both timeouts must be positive."""
        for label, seconds in zip(('connect_timeout', 'read_timeout'), timeout, strict=True):
            if seconds <= 0:
                raise ValueError(f'{label} must be positive, got: {seconds}')
        return timeout

    @field_validator('verify_ssl')
    @classmethod
    def validate_ca_bundle(cls, verify_ssl: bool | str) -> bool | str:
        """A CA bundle path must point at an existing file."""
        if isinstance(verify_ssl, str):
            bundle: Path = Path(verify_ssl)
            if not bundle.is_file():
                reason: str = 'is a directory' if bundle.is_dir() else 'not found'
                raise ValueError(f'CA bundle {reason}: {verify_ssl}')
        return verify_ssl


# =============================================================================
# Token Cache Configuration
# =============================================================================


class TokenCacheConfig(BaseModel):
    """
    Settings for the in-process token cache.

    Attributes:
        ttl_seconds: How long a token or session is reused. Keep it below
            the shortest vendor session lifetime.
    """

    model_config = ConfigDict(extra='forbid')

    ttl_seconds: int = Field(default=DEFAULT_TOKEN_TTL_SECONDS, gt=0, le=86_400)


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """
    Console and optional file logging.

    Levels are names ('DEBUG', 'INFO', ...) or the matching numbers.

    Attributes:
        console_level: Minimum level written to stdout.
        file_path: Log file. None disables file logging. '.log' is appended
            when missing.
        file_level: Minimum level written to the file. Defaults to DEBUG
            when only ``file_path`` is given.
        quiet_http_libraries: Raise httpx and httpcore loggers to WARNING,
            so request lines (which carry query strings) stay out of INFO logs.
    """

    model_config = ConfigDict(extra='forbid')

    console_level: LogLevel = 'INFO'
    file_path: Path | None = None
    file_level: LogLevel | None = None
    quiet_http_libraries: bool = True

    @field_validator('file_path', mode='before')
    @classmethod
    def add_log_suffix(cls, file_path: str | Path | None) -> Path | None:
        """Append '.log' unless the path already ends with it."""
        if file_path is None:
            return None
        path: Path = Path(file_path)
        return path if path.suffix.lower() == '.log' else Path(f'{path}.log')

    @model_validator(mode='after')
    def pair_file_settings(self) -> Self:
        """Default the file level, and reject a level without a file."""
        if self.file_path is not None and self.file_level is None:
            self.file_level = 'DEBUG'
        elif self.file_path is None and self.file_level is not None:
            raise ValueError('file_level needs file_path; set both or neither')
        return self

    def get_console_level_int(self) -> int:
        return _level_to_int(self.console_level)

    def get_file_level_int(self) -> int | None:
        """Numeric file level, or None when file logging is off."""
        return None if self.file_level is None else _level_to_int(self.file_level)


# =============================================================================
# Root Configuration
# =============================================================================


class GatewayConfig(BaseModel):
    """
    Root of the gateway configuration file.

    Attributes:
        providers: Settings per provider, keyed by lowercase provider type.
            Providers left out use ProviderConfig defaults.
        token_cache: Token cache settings.
        use_truststore: Verify TLS against the OS trust store through the
            optional ``truststore`` package.
        logging: Logging settings.
    """

    model_config = ConfigDict(extra='forbid')

    providers: dict[str, ProviderConfig] = Field(default_factory=dict)
    token_cache: TokenCacheConfig = Field(default_factory=TokenCacheConfig)
    use_truststore: bool = False
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator('providers')
    @classmethod
    def validate_provider_keys(
        cls, providers: dict[str, ProviderConfig]
    ) -> dict[str, ProviderConfig]:
        """Keys must be lowercase names of supported providers."""
        supported: list[str] = sorted(provider_type.value for provider_type in ProviderType)

        for key in providers:
            if key != key.lower():
                raise ValueError(f"Provider keys must be lowercase: use '{key.lower()}'")
            if key not in supported:
                raise ValueError(f"Unknown provider '{key}'; supported: {', '.join(supported)}")

        return providers

    def provider_settings(self, provider_type: ProviderType | str) -> ProviderConfig:
        """Settings for a provider, or defaults when it is not configured."""
        return self.providers.get(ProviderType(provider_type).value) or ProviderConfig()
