# fleet_telemetry_gateway/config/loader.py
"""
Reads the gateway configuration file from disk.

YAML is parsed with ``yaml.safe_load`` and validated into GatewayConfig.
Every failure is logged with the file path before it is raised, since the
caller usually has not configured logging yet when this runs and the
message would otherwise only surface in a traceback.
"""

import logging
from pathlib import Path
from typing import Any, Final

import yaml
from pydantic import ValidationError

from fleet_telemetry_gateway.config.config_models import GatewayConfig

__all__: list[str] = ['DEFAULT_CONFIG_PATH', 'load_config']

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH: Final[Path] = Path('config/gateway_config.yaml')


def _read_yaml_mapping(config_path: Path) -> dict[str, Any]:
    """Parse the file; an empty document counts as an empty mapping."""
    try:
        document: Any = yaml.safe_load(config_path.read_text(encoding='utf-8'))
    except yaml.YAMLError as error:
        logger.error('Unparseable YAML in %s: %s', config_path, error)
        raise

    if document is None:
        return {}
    if not isinstance(document, dict):
        message: str = (
            f'{config_path}: configuration root must be a mapping, '
            f'got {type(document).__name__}'
        )
        logger.error(message)
        raise ValueError(message)
    return document


def load_config(config_path: Path | str | None = None) -> GatewayConfig:
    """
    Load and validate the gateway configuration.

    Args:
        config_path: YAML file. Defaults to 'config/gateway_config.yaml'
            relative to the working directory.

    Returns:
        Validated GatewayConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the root is not a mapping or validation fails.

    Example:
        >>> load_config('config/gateway_config.yaml').token_cache.ttl_seconds
        840
    """
    path: Path = DEFAULT_CONFIG_PATH if config_path is None else Path(config_path)

    if not path.is_file():
        logger.error('Configuration file not found: %s', path)
        raise FileNotFoundError(f'Configuration file not found: {path}')

    raw_config: dict[str, Any] = _read_yaml_mapping(path)

    try:
        config: GatewayConfig = GatewayConfig.model_validate(raw_config)
    except ValidationError as error:
        logger.error('Invalid configuration in %s: %s', path, error)
        raise ValueError(f'Configuration validation failed for {path}: {error}') from error

    logger.info(
        'Loaded gateway configuration from %s (%d providers configured)',
        path,
        len(config.providers),
    )
    return config
