# fleet_telemetry_gateway/client.py
"""
Provider-agnostic async HTTP helper for vendor APIs.

Adapters decide WHAT to ask a vendor (URL, auth material, body); this module
decides HOW the exchange is executed. It never knows which vendor it is
talking to.

Error Mapping:
--------------
- Rate limits (429): RateLimitError, carrying the parsed Retry-After header
- Server errors (5xx): TransientProviderError
- Timeouts and connection errors: TransientProviderError
- Other non-2xx responses: ProviderRequestError

Retry Behavior:
---------------
Retries are driven by tenacity and only ever cover TransientProviderError
(which includes RateLimitError). ``ProviderConfig.max_attempts`` defaults to
1, so out of the box every failure is reported to the caller immediately and
retry orchestration stays with the caller. Raising it enables exponential
backoff (``retry_backoff_seconds * 2 ** (attempt - 1)``), or the server's
Retry-After for rate limits.

SSL/TLS Handling:
-----------------
- Standard verification (verify_ssl=True)
- Disabled verification (verify_ssl=False) for development
- Custom CA bundle (verify_ssl='/path/to/cert.pem') for Zscaler environments
- Truststore integration (use_truststore=True) for the OS certificate store
"""

import logging
from collections.abc import Mapping
from ssl import SSLContext
from typing import Any, Final

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

from fleet_telemetry_gateway.common import build_truststore_ssl_context
from fleet_telemetry_gateway.config import ProviderConfig
from fleet_telemetry_gateway.exceptions import (
    ProviderRequestError,
    TransientProviderError,
)
from fleet_telemetry_gateway.models import HTTPMethod, RateLimitInfo, RequestSpec

__all__: list[str] = [
    'ProviderHttpClient',
    'RateLimitError',
]

logger: logging.Logger = logging.getLogger(__name__)

# HTTP status codes
HTTP_STATUS_RATE_LIMITED: Final[int] = 429
HTTP_STATUS_SERVER_ERROR_MIN: Final[int] = 500
HTTP_STATUS_SERVER_ERROR_MAX: Final[int] = 599

RETRY_BACKOFF_MAX_SECONDS: Final[float] = 60.0
RATE_LIMIT_BUFFER_SECONDS: Final[float] = 0.5
LOGGED_BODY_LENGTH: Final[int] = 200


class RateLimitError(TransientProviderError):
    """
    Raised when a vendor answers HTTP 429.

    Attributes:
        rate_limit_info: Parsed rate limit headers including retry_after_seconds.
    """

    def __init__(
        self,
        rate_limit_info: RateLimitInfo,
        response_body: str | None = None,
    ) -> None:
        super().__init__(
            f'Rate limit exceeded, retry after {rate_limit_info.retry_after_seconds}s',
            status_code=HTTP_STATUS_RATE_LIMITED,
            response_body=response_body,
        )
        self.rate_limit_info: RateLimitInfo = rate_limit_info


class ProviderHttpClient:
    """
    Executes vendor HTTP exchanges with bounded timeouts and mapped errors.

    Each request opens a short-lived ``httpx.AsyncClient``, so one helper can
    be shared by any number of concurrent coroutines without connection state
    leaking between tenants.

    Example:
        >>> client = ProviderHttpClient(ProviderConfig(request_timeout=(5, 15)))
        >>> vehicles = await client.request(
        ...     'GET', 'https://api.samsara.com/fleet/vehicles', token='...'
        ... )
    """

    def __init__(
        self,
        settings: ProviderConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        ssl_verify: SSLContext | bool | str | None = None,
        use_truststore: bool = False,
    ) -> None:
        """
        Initialize the helper.

        Args:
            settings: Provider transport settings. Defaults to ProviderConfig().
            transport: Custom httpx transport. Tests pass an httpx.MockTransport.
            ssl_verify: Explicit verification setting, overriding settings and
                truststore.
            use_truststore: Build the SSLContext from the OS trust store.

        Raises:
            RuntimeError: If use_truststore is set but truststore is missing.
        """
        self._settings: ProviderConfig = settings or ProviderConfig()
        self._transport: httpx.AsyncBaseTransport | None = transport

        if ssl_verify is not None:
            self._ssl_verify: SSLContext | bool | str = ssl_verify
        elif use_truststore:
            self._ssl_verify = build_truststore_ssl_context()
        else:
            self._ssl_verify = self._settings.verify_ssl

    @property
    def settings(self) -> ProviderConfig:
        """Transport settings in effect for this helper."""
        return self._settings

    # -------------------------------------------------------------------------
    # Public Request API
    # -------------------------------------------------------------------------

    def build_request_spec(
        self,
        method: HTTPMethod | str,
        url: str,
        *,
        token: str | None = None,
        api_key: str | None = None,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        form: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RequestSpec:
        """
        Assemble the full RequestSpec for one exchange.

        ``Content-Type: application/json`` is set unless a form body is sent.
        A token becomes ``Authorization: Bearer <token>``; an API key becomes
        ``X-API-Key``. Explicit ``headers`` win over both.

        Query parameter values are stringified; None values are dropped.
        """
        request_headers: dict[str, str] = {}
        if form is None:
            request_headers['Content-Type'] = 'application/json'
        if token:
            request_headers['Authorization'] = f'Bearer {token}'
        if api_key:
            request_headers['X-API-Key'] = api_key
        if headers:
            request_headers.update(headers)

        query_params: dict[str, str] = {
            key: str(value) for key, value in (params or {}).items() if value is not None
        }

        return RequestSpec(
            url=url,
            method=HTTPMethod(method),
            headers=request_headers,
            query_params=query_params,
            json_body=json_body,
            form_body=dict(form) if form is not None else None,
            timeout=(
                float(self._settings.request_timeout[0]),
                float(self._settings.request_timeout[1]),
            ),
        )

    async def request(
        self,
        method: HTTPMethod | str,
        url: str,
        *,
        token: str | None = None,
        api_key: str | None = None,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        form: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """
        Perform an exchange and return the decoded body.

        Args:
            method: HTTP method.
            url: Absolute URL without query string.
            token: Bearer token for the Authorization header.
            api_key: Value for the X-API-Key header.
            params: Query parameters.
            json_body: Body to JSON-encode.
            form: Body to send urlencoded (OAuth2 token endpoints).
            headers: Extra headers.

        Returns:
            Parsed JSON; the raw text if the body is not JSON; None if the
            body is empty.

        Raises:
            RateLimitError: On HTTP 429 after the configured attempts.
            TransientProviderError: On 5xx, timeouts or connection errors
                after the configured attempts.
            ProviderRequestError: On any other non-2xx response.
        """
        request_spec: RequestSpec = self.build_request_spec(
            method,
            url,
            token=token,
            api_key=api_key,
            params=params,
            json_body=json_body,
            form=form,
            headers=headers,
        )
        response: httpx.Response = await self._execute_with_retry(request_spec)
        return self._decode_body(response)

    async def request_text(
        self,
        method: HTTPMethod | str,
        url: str,
        *,
        token: str | None = None,
        api_key: str | None = None,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        form: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """
        Perform an exchange and return the raw body text (CSV vendors).

        Raises the same errors as ``request``.
        """
        request_spec: RequestSpec = self.build_request_spec(
            method,
            url,
            token=token,
            api_key=api_key,
            params=params,
            json_body=json_body,
            form=form,
            headers=headers,
        )
        response: httpx.Response = await self._execute_with_retry(request_spec)
        return response.text

    # -------------------------------------------------------------------------
    # HTTP Execution Layer
    # -------------------------------------------------------------------------

    def _wait_for_rate_limit_or_exponential(self, retry_state: RetryCallState) -> float:
        """
        Wait strategy that respects Retry-After for rate limits.

        Falls back to exponential backoff for other transient errors.
        """
        exception: BaseException | None = (
            retry_state.outcome.exception() if retry_state.outcome else None
        )

        if isinstance(exception, RateLimitError):
            return exception.rate_limit_info.retry_after_seconds + RATE_LIMIT_BUFFER_SECONDS

        exponential_wait: float = self._settings.retry_backoff_seconds * (
            2 ** (retry_state.attempt_number - 1)
        )
        return min(exponential_wait, RETRY_BACKOFF_MAX_SECONDS)

    async def _execute_with_retry(self, request_spec: RequestSpec) -> httpx.Response:
        """Run the exchange under the configured tenacity retry policy."""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TransientProviderError),
            wait=self._wait_for_rate_limit_or_exponential,
            stop=stop_after_attempt(self._settings.max_attempts),
            reraise=True,
        )
        return await retrying(self._execute_once, request_spec)

    async def _execute_once(self, request_spec: RequestSpec) -> httpx.Response:
        response: httpx.Response = await self._send_http_request(request_spec)
        self._raise_for_status(response)
        return response

    async def _send_http_request(self, request_spec: RequestSpec) -> httpx.Response:
        """
        Send the request, converting transport errors to TransientProviderError.

        The URL is logged without its query string; some vendors take
        credentials as query parameters.
        """
        connect_timeout, read_timeout = request_spec.timeout
        timeout = httpx.Timeout(
            connect=connect_timeout,
            read=read_timeout,
            write=connect_timeout,
            pool=connect_timeout,
        )

        logger.debug('%s %s', request_spec.method.value, request_spec.url)

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                verify=self._ssl_verify,
                timeout=timeout,
            ) as http_client:
                return await http_client.request(
                    method=request_spec.method.value,
                    url=request_spec.url,
                    params=request_spec.query_params or None,
                    headers=request_spec.headers,
                    json=request_spec.json_body,
                    data=request_spec.form_body,
                )
        except httpx.TimeoutException as error:
            logger.warning('Request timeout: %s', request_spec.url)
            raise TransientProviderError(f'Request timeout: {error}') from error
        except httpx.RequestError as error:
            logger.warning('Connection error: %s - %s', request_spec.url, error)
            raise TransientProviderError(f'Connection error: {error}') from error

    def _raise_for_status(self, response: httpx.Response) -> None:
        """
        Raise the mapped error for a non-2xx response.

        Raises:
            RateLimitError: On HTTP 429.
            TransientProviderError: On 5xx server errors.
            ProviderRequestError: On other non-2xx responses.
        """
        status_code: int = response.status_code

        if status_code == HTTP_STATUS_RATE_LIMITED:
            rate_limit_info: RateLimitInfo = RateLimitInfo.from_response_headers(
                dict(response.headers)
            )
            logger.warning(
                'Rate limited by %s (retry after %.1fs)',
                response.request.url.host,
                rate_limit_info.retry_after_seconds,
            )
            raise RateLimitError(rate_limit_info, response_body=response.text)

        if HTTP_STATUS_SERVER_ERROR_MIN <= status_code <= HTTP_STATUS_SERVER_ERROR_MAX:
            logger.warning(
                'Server error %d from %s: %s',
                status_code,
                response.request.url.host,
                response.text[:LOGGED_BODY_LENGTH],
            )
            raise TransientProviderError(
                f'Server error: HTTP {status_code}',
                status_code=status_code,
                response_body=response.text,
            )

        if not response.is_success:
            logger.warning(
                'Client error %d from %s',
                status_code,
                response.request.url.host,
            )
            raise ProviderRequestError(
                f'Client error: HTTP {status_code}',
                status_code=status_code,
                response_body=response.text,
            )

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        """Parse JSON, fall back to the raw text, None for an empty body."""
        if not response.content.strip():
            return None

        try:
            return response.json()
        except ValueError:
            return response.text
