# backend/wealth/services/__init__.py
"""
Service layer for business logic.

Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive database sessions as parameters (not via Depends)
- Are easily testable via dependency injection

Usage:
    from wealth.services.instruments import InstrumentService
    from wealth.services.expenses import ExpenseService
    from wealth.services import InvalidStateTransition, ValidationError

Architecture:
    services/
    ├── __init__.py          # This file - exception exports
    ├── exceptions.py        # Domain exceptions
    ├── constants.py         # Rate limits and page sizes
    ├── lifecycle.py         # Per-class state machines
    ├── rollup.py            # Net worth and chart series (pure)
    ├── expenses.py          # Expenses, tags, budgets, bucketed views
    ├── overview.py          # Portfolio rollup over a session snapshot
    ├── valuation/           # Point-in-time calculators
    ├── bucketing/           # Temporal bucketing engine and heatmaps
    ├── instruments/         # Per-class services and the class-generic facade
    └── market_data/         # Price/NAV resolvers and bulk refresh
"""

from wealth.services.exceptions import (
    ExternalLookupFailure,
    IdentifierNotFoundError,
    InstrumentNotFoundError,
    InvalidStateTransition,
    NotFoundError,
    ProviderUnavailableError,
    RateLimitError,
    ServiceError,
    TagNotFoundError,
    ValidationError,
)

__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "InstrumentNotFoundError",
    "TagNotFoundError",
    "InvalidStateTransition",
    "ExternalLookupFailure",
    "ProviderUnavailableError",
    "RateLimitError",
    "IdentifierNotFoundError",
]
