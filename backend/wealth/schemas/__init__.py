# backend/wealth/schemas/__init__.py
"""
Pydantic schemas for API request/response validation, organized by domain:
- errors: Error response formats
- instruments: Fixed deposits, SIPs, recurring deposits, positions
- expenses: Expenses, tags, budgets, bucketed views and heatmaps
- overview: Net-worth rollup, accounts, other assets, goal buckets

Usage:
    from wealth.schemas.instruments import SipCreate, SipResponse
    from wealth.schemas.expenses import ExpenseCreate
"""
