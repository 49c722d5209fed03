# backend/wealth/routers/__init__.py
"""
API routers for Wealth Ledger.

Each router handles a specific domain:
- fixed_deposits, sips, recurring_deposits, positions: per-class CRUD and lifecycle
- instruments: class-generic summaries, details and actions
- expenses, tags, budgets: spending ledger and its bucketed views
- overview: net-worth rollup plus accounts, other assets and goals
- refresh: bulk price / NAV refresh
"""

from wealth.routers.budgets import router as budgets_router
from wealth.routers.expenses import router as expenses_router
from wealth.routers.fixed_deposits import router as fixed_deposits_router
from wealth.routers.instruments import router as instruments_router
from wealth.routers.overview import accounts_router, assets_router, goals_router
from wealth.routers.overview import router as overview_router
from wealth.routers.positions import router as positions_router
from wealth.routers.recurring_deposits import router as recurring_deposits_router
from wealth.routers.refresh import router as refresh_router
from wealth.routers.sips import router as sips_router
from wealth.routers.tags import exclusion_router as exclusion_tags_router
from wealth.routers.tags import router as tags_router

__all__ = [
    "fixed_deposits_router",
    "sips_router",
    "recurring_deposits_router",
    "positions_router",
    "instruments_router",
    "expenses_router",
    "tags_router",
    "exclusion_tags_router",
    "budgets_router",
    "overview_router",
    "accounts_router",
    "assets_router",
    "goals_router",
    "refresh_router",
]
