# backend/wealth/services/instruments/service.py
"""
Class-generic facade over the four instrument services.

Callers address instruments by (class_id, id) and get back a valuation,
without knowing which table or calculator backs the class:

    fixed_deposit      -> FixedDepositService
    sip                -> SipService
    recurring_deposit  -> RecurringDepositService
    indian_stock       -> PositionService (market=indian)
    us_stock           -> PositionService (market=us)
    crypto             -> PositionService (market=crypto)

Actions a class does not support are rejected with InvalidStateTransition,
the same error as a state that does not allow the action.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from wealth.models import SipTransactionKind
from wealth.services.exceptions import (
    InstrumentNotFoundError,
    InvalidStateTransition,
    ValidationError,
)
from wealth.services.instruments.fixed_deposits import FixedDepositService
from wealth.services.instruments.positions import CLASS_MARKET, PositionService
from wealth.services.instruments.recurring_deposits import RecurringDepositService
from wealth.services.instruments.sips import SipService
from wealth.services.lifecycle import LifecycleAction
from wealth.services.valuation import (
    ClassSummary,
    InstrumentClass,
    ValuationResult,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstrumentDetail:
    """
    One instrument with its valuation.

    Attributes:
        instrument_class: Class the instrument was addressed by
        instrument: The ORM row
        valuation: Point-in-time valuation
        allowed_actions: Actions legal from the current state
    """
    instrument_class: InstrumentClass
    instrument: Any
    valuation: ValuationResult
    allowed_actions: list[LifecycleAction] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.instrument.name

    @property
    def status(self) -> str:
        return self.instrument.status.value


def parse_class_id(class_id: str | InstrumentClass) -> InstrumentClass:
    """
    Raises:
        ValidationError: Unknown class id
    """
    if isinstance(class_id, InstrumentClass):
        return class_id
    try:
        return InstrumentClass(class_id)
    except ValueError:
        valid = ", ".join(c.value for c in InstrumentClass)
        raise ValidationError(f"Unknown instrument class '{class_id}' (expected one of: {valid})", field="class_id")


class InstrumentService:
    """
    Facade used by the class-generic endpoints and the overview.

    Example:
        service = InstrumentService()
        summary = service.get_instrument_summary(db, "sip")
        detail = service.apply_installment(db, "sip", 3, amount=Decimal("5000"), nav=Decimal("42.1"))
    """

    def __init__(
            self,
            fixed_deposits: FixedDepositService | None = None,
            sips: SipService | None = None,
            recurring_deposits: RecurringDepositService | None = None,
            positions: PositionService | None = None,
    ) -> None:
        self.fixed_deposits = fixed_deposits or FixedDepositService()
        self.sips = sips or SipService()
        self.recurring_deposits = recurring_deposits or RecurringDepositService()
        self.positions = positions or PositionService()
        logger.info("InstrumentService initialized")

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_instrument_summary(self, db: Session, class_id: str | InstrumentClass) -> ClassSummary:
        instrument_class = parse_class_id(class_id)

        if instrument_class == InstrumentClass.FIXED_DEPOSIT:
            return self.fixed_deposits.summary(db)
        if instrument_class == InstrumentClass.SIP:
            return self.sips.summary(db)
        if instrument_class == InstrumentClass.RECURRING_DEPOSIT:
            return self.recurring_deposits.summary(db)
        return self.positions.summary(db, CLASS_MARKET[instrument_class])

    def get_all_summaries(self, db: Session) -> list[ClassSummary]:
        return [self.get_instrument_summary(db, c) for c in InstrumentClass]

    def get_instrument_detail(
            self,
            db: Session,
            class_id: str | InstrumentClass,
            instrument_id: int,
    ) -> InstrumentDetail:
        """
        Raises:
            ValidationError: Unknown class id
            InstrumentNotFoundError: No instrument with this id in the class
        """
        instrument_class = parse_class_id(class_id)
        service = self._service_for(instrument_class)
        instrument = service.get(db, instrument_id)

        if instrument_class in CLASS_MARKET and instrument.market != CLASS_MARKET[instrument_class]:
            raise InstrumentNotFoundError(instrument_class.value, instrument_id)

        return self._detail(instrument_class, instrument)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def apply_installment(
            self,
            db: Session,
            class_id: str | InstrumentClass,
            instrument_id: int,
            amount: Decimal | None = None,
            nav: Decimal | None = None,
            on_date: date | None = None,
            kind: SipTransactionKind = SipTransactionKind.RECURRING,
    ) -> InstrumentDetail:
        """
        SIP: buy units at `nav` for `amount`. Recurring deposit: mark the
        next installment paid (amount and nav are ignored).
        """
        detail = self.get_instrument_detail(db, class_id, instrument_id)
        instrument_class = detail.instrument_class

        if instrument_class == InstrumentClass.SIP:
            if amount is None or nav is None:
                raise ValidationError("A SIP installment needs both amount and nav", field="amount")
            position = self.sips.apply_installment(
                db, instrument_id, amount, nav, on_date or date.today(), kind
            )
            return self._detail(instrument_class, position)

        if instrument_class == InstrumentClass.RECURRING_DEPOSIT:
            deposit = self.recurring_deposits.mark_installment_paid(db, instrument_id)
            return self._detail(instrument_class, deposit)

        raise self._unsupported(detail, LifecycleAction.INSTALLMENT)

    def pause_resume(
            self,
            db: Session,
            class_id: str | InstrumentClass,
            instrument_id: int,
            pause: bool,
            on_date: date | None = None,
    ) -> InstrumentDetail:
        detail = self.get_instrument_detail(db, class_id, instrument_id)
        if detail.instrument_class != InstrumentClass.SIP:
            raise self._unsupported(detail, LifecycleAction.PAUSE if pause else LifecycleAction.RESUME)

        if pause:
            position = self.sips.pause(db, instrument_id, on_date)
        else:
            position = self.sips.resume(db, instrument_id)
        return self._detail(detail.instrument_class, position)

    def redeem_or_close(
            self,
            db: Session,
            class_id: str | InstrumentClass,
            instrument_id: int,
            amount: Decimal,
            on_date: date,
    ) -> InstrumentDetail:
        """
        Terminal exit with the money actually received.

        FD and RD close, SIPs redeem, positions sell at amount / quantity.
        A second call on the same instrument raises InvalidStateTransition.
        """
        detail = self.get_instrument_detail(db, class_id, instrument_id)
        instrument_class = detail.instrument_class

        if instrument_class == InstrumentClass.FIXED_DEPOSIT:
            instrument = self.fixed_deposits.close(db, instrument_id, amount, on_date)
        elif instrument_class == InstrumentClass.SIP:
            instrument = self.sips.redeem(db, instrument_id, amount, on_date)
        elif instrument_class == InstrumentClass.RECURRING_DEPOSIT:
            instrument = self.recurring_deposits.close(db, instrument_id, amount, on_date)
        else:
            instrument = self.positions.sell_for_proceeds(db, instrument_id, amount, on_date)
        return self._detail(instrument_class, instrument)

    def sell(
            self,
            db: Session,
            class_id: str | InstrumentClass,
            instrument_id: int,
            price: Decimal,
            on_date: date,
    ) -> InstrumentDetail:
        detail = self.get_instrument_detail(db, class_id, instrument_id)
        if detail.instrument_class not in CLASS_MARKET:
            raise self._unsupported(detail, LifecycleAction.SELL)

        position = self.positions.sell(db, instrument_id, price, on_date)
        return self._detail(detail.instrument_class, position)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _service_for(self, instrument_class: InstrumentClass):
        if instrument_class == InstrumentClass.FIXED_DEPOSIT:
            return self.fixed_deposits
        if instrument_class == InstrumentClass.SIP:
            return self.sips
        if instrument_class == InstrumentClass.RECURRING_DEPOSIT:
            return self.recurring_deposits
        return self.positions

    def _detail(self, instrument_class: InstrumentClass, instrument: Any) -> InstrumentDetail:
        service = self._service_for(instrument_class)
        return InstrumentDetail(
            instrument_class=instrument_class,
            instrument=instrument,
            valuation=service.value(instrument),
            allowed_actions=service.allowed_actions(instrument),
        )

    @staticmethod
    def _unsupported(detail: InstrumentDetail, action: LifecycleAction) -> InvalidStateTransition:
        logger.warning(
            f"Rejected {detail.instrument_class.value} {detail.instrument.id}: "
            f"'{action.value}' is not supported by this class"
        )
        return InvalidStateTransition(
            instrument_class=detail.instrument_class.value,
            state=detail.status,
            action=action.value,
            instrument_id=detail.instrument.id,
        )
