# backend/wealth/services/instruments/recurring_deposits.py
"""
Recurring deposit service.

ONGOING becomes COMPLETED automatically when the last installment is
marked paid; either can then be CLOSED with the actual withdrawal.
The stored maturity_value and next_due_date are derived columns,
recomputed on every change that affects the schedule.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from wealth.models import DepositFrequency, RecurringDeposit, RecurringDepositStatus
from wealth.schemas.instruments import RecurringDepositCreate, RecurringDepositUpdate
from wealth.services.exceptions import ValidationError
from wealth.services.instruments.base import InstrumentServiceBase
from wealth.services.lifecycle import (
    RECURRING_DEPOSIT_LIFECYCLE,
    LifecycleAction,
    settle_recurring_deposit,
)
from wealth.services.valuation import (
    ClassSummary,
    InstallmentCalculator,
    InstrumentClass,
    RecurringDepositValuation,
    money,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _check_schedule(
        frequency: DepositFrequency,
        custom_days: int | None,
        installments_paid: int,
        total_installments: int,
) -> None:
    if frequency == DepositFrequency.CUSTOM and not custom_days:
        raise ValidationError(
            "custom_frequency_days is required for a custom frequency",
            field="custom_frequency_days",
        )
    if total_installments < 1:
        raise ValidationError("total_installments must be at least 1", field="total_installments")
    if installments_paid > total_installments:
        raise ValidationError(
            f"installments_paid ({installments_paid}) cannot exceed "
            f"total_installments ({total_installments})",
            field="installments_paid",
        )


class RecurringDepositService(InstrumentServiceBase[RecurringDeposit]):
    """CRUD, installment tracking and closure for recurring deposits."""

    model = RecurringDeposit
    lifecycle = RECURRING_DEPOSIT_LIFECYCLE

    def __init__(self, calculator: InstallmentCalculator | None = None) -> None:
        self._calculator = calculator or InstallmentCalculator()

    # =========================================================================
    # QUERIES
    # =========================================================================

    def list(self, db: Session) -> list[RecurringDeposit]:
        """Soonest due first; deposits with nothing due last."""
        return list(db.scalars(
            select(RecurringDeposit).order_by(
                RecurringDeposit.next_due_date.is_(None),
                RecurringDeposit.next_due_date,
                RecurringDeposit.id,
            )
        ))

    def value(self, deposit: RecurringDeposit) -> RecurringDepositValuation:
        return self._calculator.value(deposit)

    def summary(self, db: Session) -> ClassSummary:
        """Ongoing and completed deposits, carried at installments paid."""
        active = list(db.scalars(
            select(RecurringDeposit).where(
                RecurringDeposit.status.in_([RecurringDepositStatus.ONGOING, RecurringDepositStatus.COMPLETED])
            )
        ))
        invested = sum((rd.installment_amount * rd.installments_paid for rd in active), ZERO)
        maturity = sum((rd.maturity_value for rd in active), ZERO)
        return ClassSummary(
            instrument_class=InstrumentClass.RECURRING_DEPOSIT,
            count=len(active),
            total_invested=money(invested),
            current_value=money(invested),
            projected_maturity=money(maturity),
        )

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def create(self, db: Session, data: RecurringDepositCreate) -> RecurringDeposit:
        _check_schedule(
            data.frequency, data.custom_frequency_days, data.installments_paid, data.total_installments
        )

        deposit = RecurringDeposit(
            name=data.name,
            installment_amount=data.installment_amount,
            frequency=data.frequency,
            custom_frequency_days=data.custom_frequency_days,
            interest_rate=data.interest_rate,
            start_date=data.start_date,
            total_installments=data.total_installments,
            installments_paid=data.installments_paid,
            status=self.lifecycle.initial,
            notes=data.notes,
        )
        self._recompute(deposit)
        deposit = self._save(db, deposit)
        logger.info(f"Created recurring_deposit {deposit.id} ({deposit.name}), maturity {deposit.maturity_value}")
        return deposit

    def update(self, db: Session, deposit_id: int, data: RecurringDepositUpdate) -> RecurringDeposit:
        """
        Edit an ongoing or completed deposit; installments_paid is preserved.

        A completed deposit cannot be given more installments than already
        paid (that would silently reopen it).
        """
        deposit = self.get(db, deposit_id)
        self._require(deposit, LifecycleAction.EDIT)

        changes = self._changes(data)
        frequency = changes.get("frequency", deposit.frequency)
        custom_days = changes.get("custom_frequency_days", deposit.custom_frequency_days)
        total = changes.get("total_installments", deposit.total_installments)
        _check_schedule(frequency, custom_days, deposit.installments_paid, total)

        if deposit.status == RecurringDepositStatus.COMPLETED and total > deposit.installments_paid:
            raise ValidationError(
                "A completed deposit cannot be extended beyond the installments already paid",
                field="total_installments",
            )

        for field_name, value in changes.items():
            setattr(deposit, field_name, value)
        self._recompute(deposit)
        return self._save(db, deposit)

    def mark_installment_paid(self, db: Session, deposit_id: int) -> RecurringDeposit:
        """
        Record one more paid installment.

        Paying the last one moves the deposit to COMPLETED.

        Raises:
            InvalidStateTransition: Deposit is completed or closed
        """
        deposit = self.get(db, deposit_id)
        self._require(deposit, LifecycleAction.PAY_INSTALLMENT)

        deposit.installments_paid += 1
        self._recompute(deposit)
        deposit = self._save(db, deposit)
        logger.info(
            f"recurring_deposit {deposit_id}: paid {deposit.installments_paid}/{deposit.total_installments}"
            f" ({deposit.status.value})"
        )
        return deposit

    def close(
            self,
            db: Session,
            deposit_id: int,
            actual_withdrawal: Decimal,
            closed_date: date,
    ) -> RecurringDeposit:
        """
        Raises:
            InvalidStateTransition: Already closed
            ValidationError: Non-positive withdrawal or closed before start
        """
        deposit = self.get(db, deposit_id)
        target = self._require(deposit, LifecycleAction.CLOSE)
        if actual_withdrawal <= ZERO:
            raise ValidationError("actual_withdrawal must be greater than 0", field="actual_withdrawal")
        if closed_date < deposit.start_date:
            raise ValidationError(
                f"closed_date {closed_date} cannot be before start_date {deposit.start_date}",
                field="closed_date",
            )

        deposit.status = target
        deposit.actual_withdrawal = actual_withdrawal
        deposit.closed_date = closed_date
        deposit.next_due_date = None
        deposit = self._save(db, deposit)
        logger.info(f"Closed recurring_deposit {deposit_id}: withdrew {actual_withdrawal}")
        return deposit

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _recompute(self, deposit: RecurringDeposit) -> None:
        """Refresh status, maturity and next due from the schedule."""
        deposit.status = settle_recurring_deposit(
            deposit.status, deposit.installments_paid, deposit.total_installments, deposit.id
        )
        deposit.maturity_value = self._calculator.maturity_value(
            deposit.installment_amount,
            deposit.interest_rate,
            deposit.total_installments,
            deposit.frequency,
            deposit.custom_frequency_days,
        )
        if deposit.status == RecurringDepositStatus.ONGOING:
            deposit.next_due_date = self._calculator.next_due_date(
                deposit.start_date,
                deposit.frequency,
                deposit.installments_paid,
                deposit.total_installments,
                deposit.custom_frequency_days,
            )
        else:
            deposit.next_due_date = None
