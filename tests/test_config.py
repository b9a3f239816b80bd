"""
Tests for fleet_telemetry_gateway.config (models and YAML loader).
"""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from fleet_telemetry_gateway.common import setup_logger
from fleet_telemetry_gateway.common.logger import PACKAGE_LOGGER_NAME
from fleet_telemetry_gateway.config import (
    DEFAULT_TOKEN_TTL_SECONDS,
    GatewayConfig,
    LoggingConfig,
    ProviderConfig,
    load_config,
)
from fleet_telemetry_gateway.models import ProviderType


def write_config(directory: Path, content: str) -> Path:
    """Write a YAML config file and return its path."""
    config_path: Path = directory / 'gateway_config.yaml'
    config_path.write_text(content, encoding='utf-8')
    return config_path


class TestProviderConfig:
    """Tests for ProviderConfig validation."""

    def test_defaults(self) -> None:
        """Should default to no retries, 31-day windows and SSL on."""
        settings = ProviderConfig()

        assert settings.base_url is None
        assert settings.max_attempts == 1
        assert settings.max_trip_window_days == 31
        assert settings.request_timeout == (10, 30)
        assert settings.verify_ssl is True

    def test_base_url_trailing_slash_stripped(self) -> None:
        """Should normalize the base URL."""
        assert ProviderConfig(base_url='https://api.test/v1/').base_url == 'https://api.test/v1'

    def test_base_url_requires_scheme(self) -> None:
        """Should reject URLs without http(s) scheme."""
        with pytest.raises(ValidationError, match='http'):
            ProviderConfig(base_url='api.test')

    def test_non_positive_timeout_rejected(self) -> None:
        """Should reject zero timeouts."""
        with pytest.raises(ValidationError, match='connect_timeout'):
            ProviderConfig(request_timeout=(0, 30))

    def test_max_attempts_bounds(self) -> None:
        """Should keep max_attempts between 1 and 10."""
        with pytest.raises(ValidationError):
            ProviderConfig(max_attempts=0)
        with pytest.raises(ValidationError):
            ProviderConfig(max_attempts=11)

    def test_missing_ca_bundle_rejected(self, tmp_path: Path) -> None:
        """Should reject a CA bundle path that does not exist."""
        with pytest.raises(ValidationError, match='not found'):
            ProviderConfig(verify_ssl=str(tmp_path / 'missing.pem'))

    def test_extra_fields_forbidden(self) -> None:
        """Should reject unknown keys."""
        with pytest.raises(ValidationError):
            ProviderConfig(api_key='nope')  # type: ignore[call-arg]


class TestGatewayConfig:
    """Tests for GatewayConfig validation."""

    def test_defaults(self) -> None:
        """Should be usable without any file."""
        config = GatewayConfig()

        assert config.providers == {}
        assert config.token_cache.ttl_seconds == DEFAULT_TOKEN_TTL_SECONDS == 840
        assert config.use_truststore is False

    def test_provider_settings_fallback(self) -> None:
        """Should return defaults for providers that are not configured."""
        config = GatewayConfig(providers={'samsara': ProviderConfig(max_attempts=3)})

        assert config.provider_settings(ProviderType.SAMSARA).max_attempts == 3
        assert config.provider_settings('verizon').max_attempts == 1

    def test_uppercase_provider_key_rejected(self) -> None:
        """Should require lowercase provider keys."""
        with pytest.raises(ValidationError, match='lowercase'):
            GatewayConfig(providers={'Samsara': ProviderConfig()})

    def test_unknown_provider_key_rejected(self) -> None:
        """Should reject providers that do not exist."""
        with pytest.raises(ValidationError, match='Unknown provider'):
            GatewayConfig(providers={'geotab': ProviderConfig()})


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_full_file(self, tmp_path: Path) -> None:
        """Should parse and validate a complete file."""
        config_path: Path = write_config(
            tmp_path,
            """
providers:
  routevision:
    base_url: https://rv.example.test/
    max_trip_window_days: 14
  samsara:
    max_attempts: 3
token_cache:
  ttl_seconds: 600
logging:
  console_level: DEBUG
""",
        )

        config: GatewayConfig = load_config(config_path)

        assert config.provider_settings('routevision').base_url == 'https://rv.example.test'
        assert config.provider_settings('routevision').max_trip_window_days == 14
        assert config.provider_settings('samsara').max_attempts == 3
        assert config.token_cache.ttl_seconds == 600
        assert config.logging.console_level == 'DEBUG'

    def test_empty_file_yields_defaults(self, tmp_path: Path) -> None:
        """Should treat an empty file as all defaults."""
        config: GatewayConfig = load_config(write_config(tmp_path, ''))

        assert config == GatewayConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        """Should raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / 'nope.yaml')

    def test_non_mapping_root(self, tmp_path: Path) -> None:
        """Should reject a YAML list at the root."""
        with pytest.raises(ValueError, match='mapping'):
            load_config(write_config(tmp_path, '- a\n- b\n'))

    def test_invalid_values(self, tmp_path: Path) -> None:
        """Should wrap validation failures in ValueError."""
        with pytest.raises(ValueError, match='validation failed'):
            load_config(write_config(tmp_path, 'token_cache:\n  ttl_seconds: -1\n'))


class TestLogging:
    """Tests for LoggingConfig and setup_logger."""

    def test_file_level_defaults_to_debug(self, tmp_path: Path) -> None:
        """Should enable DEBUG file logging when only a path is given."""
        config = LoggingConfig(file_path=tmp_path / 'gateway')

        assert config.file_path == tmp_path / 'gateway.log'
        assert config.get_file_level_int() == logging.DEBUG

    def test_file_level_without_path_rejected(self) -> None:
        """Should reject a file level without a file path."""
        with pytest.raises(ValidationError, match='file_path'):
            LoggingConfig(file_level='INFO')

    def test_setup_logger_configures_package_logger(self, tmp_path: Path) -> None:
        """Should attach console and file handlers with the right levels."""
        config = LoggingConfig(console_level='WARNING', file_path=tmp_path / 'gateway.log')

        package_logger: logging.Logger = setup_logger(config=config)

        try:
            assert package_logger.name == PACKAGE_LOGGER_NAME
            assert len(package_logger.handlers) == 2
            assert package_logger.level == logging.DEBUG
        finally:
            for handler in package_logger.handlers:
                handler.close()
            package_logger.handlers.clear()

    def test_http_library_loggers_quieted(self) -> None:
        """Should raise httpx logging to WARNING by default."""
        package_logger: logging.Logger = setup_logger(logging.DEBUG)

        try:
            assert logging.getLogger('httpx').level == logging.WARNING
            assert package_logger.level == logging.DEBUG
            assert len(package_logger.handlers) == 1
        finally:
            package_logger.handlers.clear()
