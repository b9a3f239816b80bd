# fleet_telemetry_gateway/common/truststore_context.py
"""
SSLContext backed by the operating system's trust store.

Behind a TLS-inspecting proxy (Zscaler and similar) vendor traffic is
re-signed by a corporate root CA that lives in the Windows/macOS store but
not in certifi, so every vendor call fails with SSLCertVerificationError.
``truststore`` verifies against the OS store instead.

``truststore`` is an optional extra
(``pip install fleet-telemetry-gateway[truststore]``) and is imported only
when a context is actually requested.
"""

import functools
import logging
import ssl

__all__: list[str] = ['build_truststore_ssl_context']

logger: logging.Logger = logging.getLogger(__name__)


@functools.cache
def build_truststore_ssl_context() -> ssl.SSLContext:
    """
    Client-side SSLContext verifying against the OS trust store.

    The context is built once per process and shared by every HTTP helper.

    Raises:
        RuntimeError: If the truststore package is not installed.
    """
    try:
        import truststore  # noqa: PLC0415
    except ImportError as import_error:
        raise RuntimeError(
            'use_truststore is enabled but truststore is not installed; '
            'install it with: pip install fleet-telemetry-gateway[truststore]'
        ) from import_error

    logger.debug('Using the OS trust store for TLS verification')
    return truststore.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
