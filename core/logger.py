"""
Service Logger

Configures the root logger once per process from LoggingConfig and returns
the named service logger.

Usage:
    from core.logger import setup_service_logger

    logger = setup_service_logger("availability_service")
"""

import logging
from typing import Optional

from core.config import LoggingConfig

_configured = False


def setup_service_logger(
    service_name: str,
    config: Optional[LoggingConfig] = None,
) -> logging.Logger:
    """
    Configure logging handlers and return the service logger.

    Args:
        service_name: Logger name for the service
        config: Logging configuration (defaults to environment)

    Returns:
        Configured logger
    """
    global _configured

    config = config or LoggingConfig.from_env()

    if not _configured:
        handlers = []
        if config.enable_console:
            handlers.append(logging.StreamHandler())
        if config.log_file:
            handlers.append(logging.FileHandler(config.log_file, encoding="utf-8"))

        logging.basicConfig(
            level=getattr(logging, config.log_level.upper(), logging.INFO),
            format=config.log_format,
            handlers=handlers or None,
        )
        _configured = True

    logger = logging.getLogger(service_name)
    logger.debug(f"Logger configured for {service_name} ({config.environment})")
    return logger
