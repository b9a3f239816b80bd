# fleet_telemetry_gateway/exceptions.py
"""
Exception hierarchy for the fleet telemetry gateway.

Every error raised by this package derives from FleetGatewayError, so callers
can catch the root type to handle any gateway failure. Adapters let these
errors surface untouched; only ``test_connection`` converts them into a
ConnectionTestResult.

Hierarchy:
----------
    FleetGatewayError
    ├── UnknownProviderError
    ├── MissingCredentialsError
    ├── AuthenticationFailedError
    ├── ProviderRequestError
    │   └── TransientProviderError
    ├── DateRangeError
    │   ├── DateRangeTooLargeError
    │   └── InvalidDateRangeError
    └── MalformedResponseError
"""

__all__: list[str] = [
    'AuthenticationFailedError',
    'DateRangeError',
    'DateRangeTooLargeError',
    'FleetGatewayError',
    'InvalidDateRangeError',
    'MalformedResponseError',
    'MissingCredentialsError',
    'ProviderRequestError',
    'TransientProviderError',
    'UnknownProviderError',
]


class FleetGatewayError(Exception):
    """Root of the gateway error hierarchy."""


class UnknownProviderError(FleetGatewayError):
    """
    Raised when a provider type is not registered.

    Attributes:
        provider: The provider value that was requested.
        available_providers: Registered provider type names.
    """

    def __init__(self, provider: str, available_providers: list[str]) -> None:
        self.provider: str = provider
        self.available_providers: list[str] = available_providers
        super().__init__(
            f"Unknown provider type '{provider}'. "
            f'Available: {", ".join(sorted(available_providers))}'
        )


class MissingCredentialsError(FleetGatewayError):
    """
    Raised when required credential fields are absent or blank.

    Attributes:
        provider: Provider type the credentials were meant for, if known.
        missing_fields: Names of the fields that were missing.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        missing_fields: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.provider: str | None = provider
        self.missing_fields: list[str] = missing_fields or []


class AuthenticationFailedError(FleetGatewayError):
    """
    Raised when a vendor rejects credentials or the token exchange is malformed.

    Attributes:
        provider: Provider type that refused authentication.
        status_code: HTTP status of the rejected exchange, None if the
            exchange succeeded but returned no usable token.
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider: str = provider
        self.status_code: int | None = status_code


class ProviderRequestError(FleetGatewayError):
    """
    Raised for a failed HTTP exchange with a vendor API.

    Attributes:
        status_code: HTTP status code, None for transport-level failures.
        response_body: Raw response body for debugging, None if unavailable.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code: int | None = status_code
        self.response_body: str | None = response_body


class TransientProviderError(ProviderRequestError):
    """
    Raised for failures that may succeed on a later attempt.

    Covers timeouts, connection errors and 5xx responses. The HTTP helper only
    retries this type, and only when more than one attempt is configured.
    """


class DateRangeError(FleetGatewayError):
    """Base class for rejected trip date windows."""


class DateRangeTooLargeError(DateRangeError):
    """
    Raised when a trip window exceeds the provider's allowed span.

    Attributes:
        provider: Provider type enforcing the limit.
        requested_days: Span of the requested window in whole days (rounded up).
        max_days: Largest span the provider accepts.
    """

    def __init__(self, provider: str, requested_days: int, max_days: int) -> None:
        self.provider: str = provider
        self.requested_days: int = requested_days
        self.max_days: int = max_days
        super().__init__(
            f'Date range of {requested_days} days exceeds the {max_days}-day '
            f'limit for {provider}'
        )


class InvalidDateRangeError(DateRangeError):
    """Raised when date_from is later than date_to."""


class MalformedResponseError(FleetGatewayError):
    """
    Raised when a vendor payload does not have the expected shape.

    Attributes:
        provider: Provider type that returned the payload.
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider: str | None = provider
