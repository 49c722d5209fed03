# backend/wealth/services/instruments/__init__.py
"""
Instrument services.

Architecture:
    instruments/
    ├── base.py                 # Shared get/delete/lifecycle plumbing
    ├── fixed_deposits.py       # FixedDepositService
    ├── sips.py                 # SipService (+ installment ledger)
    ├── recurring_deposits.py   # RecurringDepositService
    ├── positions.py            # PositionService (stocks, crypto)
    └── service.py              # InstrumentService facade (class_id based)
"""

from wealth.services.instruments.fixed_deposits import FixedDepositService
from wealth.services.instruments.positions import CLASS_MARKET, MARKET_CLASS, PositionService
from wealth.services.instruments.recurring_deposits import RecurringDepositService
from wealth.services.instruments.service import InstrumentDetail, InstrumentService, parse_class_id
from wealth.services.instruments.sips import SipService

__all__ = [
    "FixedDepositService",
    "SipService",
    "RecurringDepositService",
    "PositionService",
    "InstrumentService",
    "InstrumentDetail",
    "parse_class_id",
    "CLASS_MARKET",
    "MARKET_CLASS",
]
