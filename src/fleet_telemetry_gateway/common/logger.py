# fleet_telemetry_gateway/common/logger.py
"""
Logging setup for the fleet_telemetry_gateway package.

Every module logs through ``logging.getLogger(__name__)``, so configuring the
package logger once is enough for the whole gateway. Calling setup_logger
again replaces the handlers instead of stacking them.
"""

import logging
import sys
from typing import Final

from fleet_telemetry_gateway.config import LoggingConfig

__all__: list[str] = ['PACKAGE_LOGGER_NAME', 'setup_logger']

PACKAGE_LOGGER_NAME: Final[str] = 'fleet_telemetry_gateway'

# httpx logs every request at INFO, including query strings that can carry
# Webfleet passwords and session tokens.
HTTP_LIBRARY_LOGGERS: Final[tuple[str, ...]] = ('httpx', 'httpcore')

LOG_FORMAT: Final[str] = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'
DATE_FORMAT: Final[str] = '%Y-%m-%d %H:%M:%S'


def _file_handler(config: LoggingConfig, formatter: logging.Formatter) -> logging.Handler | None:
    file_level: int | None = config.get_file_level_int()
    if config.file_path is None or file_level is None:
        return None

    config.file_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(config.file_path, mode='a', encoding='utf-8')
    handler.setFormatter(formatter)
    handler.setLevel(file_level)
    return handler


def setup_logger(
    logging_level: int | None = None,
    config: LoggingConfig | None = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        logging_level: Console level when no config is given. Defaults to
            logging.INFO.
        config: Logging settings. When given, ``logging_level`` is ignored
            and a file handler is added if ``config.file_path`` is set.

    Returns:
        The 'fleet_telemetry_gateway' logger.

    Example:
        >>> setup_logger(logging.DEBUG)
        >>> setup_logger(config=load_config().logging)
    """
    settings: LoggingConfig = config or LoggingConfig()
    console_level: int = (
        settings.get_console_level_int()
        if config is not None
        else (logging_level if logging_level is not None else logging.INFO)
    )
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    package_logger: logging.Logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(console_level)
    package_logger.addHandler(console_handler)

    handler_levels: list[int] = [console_level]

    file_handler: logging.Handler | None = _file_handler(settings, formatter)
    if file_handler is not None:
        package_logger.addHandler(file_handler)
        handler_levels.append(file_handler.level)
        if console_level <= logging.INFO:
            print(f'Logging to file: {settings.file_path}', file=sys.stderr)

    # Records below the logger level never reach any handler.
    package_logger.setLevel(min(handler_levels))

    if settings.quiet_http_libraries:
        for library_name in HTTP_LIBRARY_LOGGERS:
            logging.getLogger(library_name).setLevel(logging.WARNING)

    return package_logger
