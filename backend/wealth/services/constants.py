# backend/wealth/services/constants.py
"""
Centralized constants for the wealth ledger services.

Usage:
    from wealth.services.constants import RATE_LIMIT_REFRESH, MAX_EXPENSE_PAGE_SIZE
"""


# =============================================================================
# API RATE LIMITING
# =============================================================================
# Format: "<count>/<period>" where period is second, minute, hour or day

# Read endpoints
RATE_LIMIT_DEFAULT: str = "100/minute"

# Write endpoints (POST, PUT, PATCH, DELETE)
RATE_LIMIT_WRITE: str = "30/minute"

# Bulk refresh endpoints call mfapi.in, CoinGecko and Yahoo once per instrument
RATE_LIMIT_REFRESH: str = "5/minute"

# Fund / coin search (one upstream call per keystroke burst)
RATE_LIMIT_SEARCH: str = "30/minute"

# Health endpoints are polled by monitors
RATE_LIMIT_HEALTH: str = "300/minute"


# =============================================================================
# EXPENSE LISTING
# =============================================================================

DEFAULT_EXPENSE_PAGE_SIZE: int = 100

MAX_EXPENSE_PAGE_SIZE: int = 1000
