# backend/wealth/utils/__init__.py
"""
Cross-cutting utilities:
- logging: Logging setup with correlation ID support
- context: Request-scoped correlation ID storage
- date_utils: Calendar arithmetic (month shifts, Thursday-anchored weeks)
"""

from wealth.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from wealth.utils.logging import setup_logging, get_logger

__all__ = [
    "setup_logging",
    "get_logger",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
]
