# backend/wealth/services/instruments/fixed_deposits.py
"""
Fixed deposit service.

Lifecycle: ONGOING --close--> CLOSED, plus the amend_closed correction
path on CLOSED. Closing (and amending) back-computes the realised annual
rate from the actual withdrawal and stores it in interest_rate; the
contracted maturity date and expected withdrawal are kept.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from wealth.models import FixedDeposit, FixedDepositStatus
from wealth.schemas.instruments import (
    FixedDepositAmend,
    FixedDepositCreate,
    FixedDepositUpdate,
)
from wealth.services.exceptions import ValidationError
from wealth.services.instruments.base import InstrumentServiceBase
from wealth.services.lifecycle import FIXED_DEPOSIT_LIFECYCLE, LifecycleAction
from wealth.services.valuation import (
    ClassSummary,
    FixedDepositValuation,
    FixedTermCalculator,
    InstrumentClass,
    money,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _check_term(start_date: date, maturity_date: date) -> None:
    if maturity_date <= start_date:
        raise ValidationError(
            f"maturity_date {maturity_date} must be after start_date {start_date}",
            field="maturity_date",
        )


def _check_closed_date(start_date: date, closed_date: date) -> None:
    if closed_date < start_date:
        raise ValidationError(
            f"closed_date {closed_date} cannot be before start_date {start_date}",
            field="closed_date",
        )


class FixedDepositService(InstrumentServiceBase[FixedDeposit]):
    """
    CRUD and lifecycle for fixed deposits.

    Example:
        service = FixedDepositService()
        fd = service.create(db, FixedDepositCreate(...))
        fd = service.close(db, fd.id, Decimal("107000"), date(2025, 1, 1))
    """

    model = FixedDeposit
    lifecycle = FIXED_DEPOSIT_LIFECYCLE

    def __init__(self, calculator: FixedTermCalculator | None = None) -> None:
        self._calculator = calculator or FixedTermCalculator()

    # =========================================================================
    # QUERIES
    # =========================================================================

    def list(self, db: Session) -> list[FixedDeposit]:
        """By maturity date, soonest first."""
        return list(db.scalars(
            select(FixedDeposit).order_by(FixedDeposit.maturity_date, FixedDeposit.id)
        ))

    def value(self, deposit: FixedDeposit, as_of: date | None = None) -> FixedDepositValuation:
        return self._calculator.value(deposit, as_of or date.today())

    def summary(self, db: Session) -> ClassSummary:
        """Ongoing deposits only; carried at principal."""
        ongoing = list(db.scalars(
            select(FixedDeposit).where(FixedDeposit.status == FixedDepositStatus.ONGOING)
        ))
        invested = sum((fd.invested_amount for fd in ongoing), ZERO)
        expected = sum((fd.expected_withdrawal for fd in ongoing), ZERO)
        return ClassSummary(
            instrument_class=InstrumentClass.FIXED_DEPOSIT,
            count=len(ongoing),
            total_invested=money(invested),
            current_value=money(invested),
            projected_maturity=money(expected),
        )

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def create(self, db: Session, data: FixedDepositCreate) -> FixedDeposit:
        _check_term(data.start_date, data.maturity_date)

        deposit = FixedDeposit(
            name=data.name,
            invested_amount=data.invested_amount,
            interest_rate=data.interest_rate,
            start_date=data.start_date,
            maturity_date=data.maturity_date,
            expected_withdrawal=self._calculator.expected_withdrawal(
                data.invested_amount, data.interest_rate, data.start_date, data.maturity_date
            ),
            status=self.lifecycle.initial,
            notes=data.notes,
        )
        deposit = self._save(db, deposit)
        logger.info(f"Created fixed_deposit {deposit.id} ({deposit.name})")
        return deposit

    def update(self, db: Session, deposit_id: int, data: FixedDepositUpdate) -> FixedDeposit:
        """Edit an ongoing deposit; the expected withdrawal is recomputed."""
        deposit = self.get(db, deposit_id)
        self._require(deposit, LifecycleAction.EDIT)

        changes = self._changes(data)
        start_date = changes.get("start_date", deposit.start_date)
        maturity_date = changes.get("maturity_date", deposit.maturity_date)
        _check_term(start_date, maturity_date)

        for field_name, value in changes.items():
            setattr(deposit, field_name, value)
        deposit.expected_withdrawal = self._calculator.expected_withdrawal(
            deposit.invested_amount, deposit.interest_rate, deposit.start_date, deposit.maturity_date
        )
        return self._save(db, deposit)

    def close(
            self,
            db: Session,
            deposit_id: int,
            actual_withdrawal: Decimal,
            closed_date: date,
    ) -> FixedDeposit:
        """
        Close an ongoing deposit with the amount actually received.

        Raises:
            InvalidStateTransition: Already closed
            ValidationError: Non-positive withdrawal or closed before start
        """
        deposit = self.get(db, deposit_id)
        target = self._require(deposit, LifecycleAction.CLOSE)
        if actual_withdrawal <= ZERO:
            raise ValidationError("actual_withdrawal must be greater than 0", field="actual_withdrawal")
        _check_closed_date(deposit.start_date, closed_date)

        deposit.status = target
        deposit.actual_withdrawal = actual_withdrawal
        deposit.closed_date = closed_date
        deposit.interest_rate = self._calculator.implied_rate(
            deposit.invested_amount, actual_withdrawal, deposit.start_date, closed_date
        )
        deposit = self._save(db, deposit)
        logger.info(
            f"Closed fixed_deposit {deposit.id}: withdrew {actual_withdrawal}, "
            f"realised rate {deposit.interest_rate}%"
        )
        return deposit

    def amend_closed(self, db: Session, deposit_id: int, data: FixedDepositAmend) -> FixedDeposit:
        """
        Correct the withdrawal, date or notes of a closed deposit.

        The only mutation a terminal fixed deposit accepts.
        """
        deposit = self.get(db, deposit_id)
        self._require(deposit, LifecycleAction.AMEND_CLOSED)

        changes = self._changes(data)
        withdrawal = changes.get("actual_withdrawal") or deposit.actual_withdrawal
        closed_date = changes.get("closed_date") or deposit.closed_date
        if withdrawal is None or closed_date is None:
            raise ValidationError("A closed deposit needs both a withdrawal and a closed date")
        _check_closed_date(deposit.start_date, closed_date)

        logger.warning(
            f"Amending closed fixed_deposit {deposit.id}: "
            f"withdrawal {deposit.actual_withdrawal} -> {withdrawal}, "
            f"closed {deposit.closed_date} -> {closed_date}"
        )

        deposit.actual_withdrawal = withdrawal
        deposit.closed_date = closed_date
        if "notes" in changes:
            deposit.notes = changes["notes"]
        deposit.interest_rate = self._calculator.implied_rate(
            deposit.invested_amount, withdrawal, deposit.start_date, closed_date
        )
        return self._save(db, deposit)
