"""structlog setup shared by the ledger components."""

import logging
from typing import Optional

import structlog

from freight_ledger.core.config import ConfigManager, get_config


def configure_logging(config_manager: Optional[ConfigManager] = None) -> None:
    """
    Configure structlog from environment settings.

    Args:
        config_manager: Optional config manager (defaults to global instance)
    """
    settings = (config_manager or get_config()).env
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
