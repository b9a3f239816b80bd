"""
Shared pytest fixtures for fleet_telemetry_gateway tests.

Vendor APIs are simulated with ``httpx.MockTransport``: a MockVendor routes
requests by (method, path) to canned responses and records every request, so
tests can assert both on what an adapter sent and on what it returned.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest

from fleet_telemetry_gateway.client import ProviderHttpClient
from fleet_telemetry_gateway.config import ProviderConfig
from fleet_telemetry_gateway.token_cache import TokenCache

ResponseFactory = Callable[[httpx.Request], httpx.Response]

# =============================================================================
# Fakes
# =============================================================================


class FakeClock:
    """Manually advanced monotonic clock for TokenCache tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now: float = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MockVendor:
    """
    Routes requests to canned responses and records them.

    Unrouted requests get a 404 so a wrong URL fails loudly.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], ResponseFactory] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        *,
        status_code: int = 200,
        json: Any = None,
        text: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Register a fresh response per call for (method, path)."""

        def respond(request: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status_code, text=text, headers=headers)
            if json is not None:
                return httpx.Response(status_code, json=json, headers=headers)
            return httpx.Response(status_code, headers=headers)

        self.routes[(method, path)] = respond

    def add_handler(self, method: str, path: str, handler: ResponseFactory) -> None:
        """Register a custom response factory for (method, path)."""
        self.routes[(method, path)] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler: ResponseFactory | None = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, text=f'no route for {request.method} {request.url.path}')
        return handler(request)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        """Recorded requests for (method, path)."""
        return [
            request
            for request in self.requests
            if request.method == method and request.url.path == path
        ]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def token_cache(clock: FakeClock) -> TokenCache:
    """Provide an isolated token cache with the default 14 minute TTL."""
    return TokenCache(clock=clock)


@pytest.fixture
def vendor() -> MockVendor:
    """Provide an empty mock vendor API."""
    return MockVendor()


@pytest.fixture
def make_http_client(vendor: MockVendor) -> Callable[..., ProviderHttpClient]:
    """Provide a factory for HTTP helpers wired to the mock vendor."""

    def factory(settings: ProviderConfig | None = None) -> ProviderHttpClient:
        return ProviderHttpClient(settings, transport=httpx.MockTransport(vendor))

    return factory


@pytest.fixture
def make_adapter(
    vendor: MockVendor,
    token_cache: TokenCache,
) -> Callable[..., Any]:
    """Provide a factory building any adapter class against the mock vendor."""

    def factory(adapter_class: type, settings: ProviderConfig | None = None) -> Any:
        return adapter_class(
            settings=settings,
            token_cache=token_cache,
            http_client=ProviderHttpClient(settings, transport=httpx.MockTransport(vendor)),
        )

    return factory


@pytest.fixture
def window() -> tuple[datetime, datetime]:
    """Provide a 20-day trip window in UTC."""
    return datetime(2024, 3, 1, tzinfo=UTC), datetime(2024, 3, 21, tzinfo=UTC)
