"""
Core infrastructure for the freight ledger.

This module provides:
- Config: Configuration management
- Logging: structlog setup
- Errors: Domain exceptions
"""

from .config import ConfigManager, get_config
from .errors import FreightAlreadyPaidError, LedgerError
from .logging import configure_logging

__all__ = [
    "ConfigManager",
    "get_config",
    "configure_logging",
    "LedgerError",
    "FreightAlreadyPaidError",
]
