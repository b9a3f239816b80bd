"""
Configuration Package for the Fleet Telemetry Gateway.

Exposes the main configuration models and the loader function.
"""

from fleet_telemetry_gateway.config.config_models import (
    DEFAULT_TOKEN_TTL_SECONDS,
    GatewayConfig,
    LoggingConfig,
    ProviderConfig,
    TokenCacheConfig,
)
from fleet_telemetry_gateway.config.loader import load_config

__all__: list[str] = [
    'DEFAULT_TOKEN_TTL_SECONDS',
    'GatewayConfig',
    'LoggingConfig',
    'ProviderConfig',
    'TokenCacheConfig',
    'load_config',
]
