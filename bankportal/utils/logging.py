"""
Logging utilities for the bank portal backend.

Provides standardized logger configuration following security and privacy rules.

CRITICAL SECURITY RULES:
- NEVER log card numbers, CVVs, SSNs or mothers' maiden names
- NEVER log account balances or transaction amounts tied to a named person
- NEVER log Supabase Auth tokens, anon keys or service-role keys
- NEVER log raw SQL passed to the execute_sql escape hatch beyond its length
  and the calling admin's id

Acceptable logging:
- High-level events (e.g., "Account frozen by admin", "Bulk upload finished")
- Entity ids and row counts
- Error codes and sanitized error messages
"""

import logging
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def resolve_level(level: Union[int, str, None]) -> int:
    """Map a level name such as "debug" (or an int) to a logging level."""
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def get_logger(name: str, level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Get a configured logger for the specified module.

    Args:
        name: Module name (typically __name__)
        level: Optional logging level, int or name (defaults to INFO)

    Returns:
        Configured logger instance

    Usage:
        >>> from bankportal.utils.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("High-level event occurred")
    """
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(level))

    # Add handler if not already configured (avoid duplicate handlers)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
