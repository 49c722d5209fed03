# backend/wealth/services/instruments/sips.py
"""
SIP / mutual fund service.

A SipPosition keeps running totals (units, invested, NAV) next to an
append-only ledger of SipTransaction rows. Every purchase goes through
UnitBasedCalculator so the totals always equal the fold of the ledger's
purchase rows.

Ledger kinds:
- recurring: scheduled installment
- lumpsum: one-off top-up
- nav_update: NAV refresh or manual units correction (no money moves)
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from wealth.models import SipPosition, SipStatus, SipTransaction, SipTransactionKind
from wealth.schemas.instruments import SipCreate, SipUpdate
from wealth.services.exceptions import ValidationError
from wealth.services.instruments.base import InstrumentServiceBase
from wealth.services.lifecycle import SIP_LIFECYCLE, LifecycleAction
from wealth.services.valuation import (
    ClassSummary,
    InstrumentClass,
    UnitBasedCalculator,
    UnitPositionValuation,
    money,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

PURCHASE_KINDS = frozenset({SipTransactionKind.RECURRING, SipTransactionKind.LUMPSUM})


def _check_purchase_kind(kind: SipTransactionKind) -> None:
    if kind not in PURCHASE_KINDS:
        raise ValidationError(
            f"Installment kind must be recurring or lumpsum, got '{kind.value}'",
            field="kind",
        )


class SipService(InstrumentServiceBase[SipPosition]):
    """
    CRUD, installments and lifecycle for unit-based positions.

    Example:
        service = SipService()
        sip = service.create(db, SipCreate(name="Flexi Cap", sip_amount=5000, ...))
        sip = service.apply_installment(db, sip.id, Decimal("5000"), Decimal("50"), date.today())
    """

    model = SipPosition
    lifecycle = SIP_LIFECYCLE

    def __init__(self, calculator: UnitBasedCalculator | None = None) -> None:
        self._calculator = calculator or UnitBasedCalculator()

    # =========================================================================
    # QUERIES
    # =========================================================================

    def list(self, db: Session) -> list[SipPosition]:
        return list(db.scalars(select(SipPosition).order_by(SipPosition.name, SipPosition.id)))

    def list_transactions(self, db: Session, sip_id: int) -> list[SipTransaction]:
        """Newest first."""
        self.get(db, sip_id)
        return list(db.scalars(
            select(SipTransaction)
            .where(SipTransaction.sip_id == sip_id)
            .order_by(SipTransaction.date.desc(), SipTransaction.id.desc())
        ))

    def list_refreshable(self, db: Session) -> list[SipPosition]:
        """Positions with a scheme code that are not redeemed."""
        return list(db.scalars(
            select(SipPosition)
            .where(SipPosition.scheme_code.is_not(None))
            .where(SipPosition.status != SipStatus.REDEEMED)
            .order_by(SipPosition.id)
        ))

    def value(self, position: SipPosition) -> UnitPositionValuation:
        return self._calculator.value(position)

    def summary(self, db: Session) -> ClassSummary:
        """Ongoing and paused positions."""
        active = list(db.scalars(
            select(SipPosition).where(SipPosition.status.in_([SipStatus.ONGOING, SipStatus.PAUSED]))
        ))
        invested = ZERO
        current = ZERO
        for position in active:
            valuation = self.value(position)
            invested += valuation.invested
            current += valuation.current_value
        return ClassSummary(
            instrument_class=InstrumentClass.SIP,
            count=len(active),
            total_invested=money(invested),
            current_value=money(current),
        )

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def create(self, db: Session, data: SipCreate) -> SipPosition:
        """Open a position with its first purchase already recorded."""
        _check_purchase_kind(data.investment_kind)

        invested = data.invested_amount if data.invested_amount is not None else data.sip_amount
        units = data.total_units if data.total_units is not None else self._calculator.units_for(
            invested, data.current_nav
        )

        position = SipPosition(
            name=data.name,
            scheme_code=data.scheme_code,
            sip_amount=data.sip_amount,
            start_date=data.start_date,
            total_units=units,
            current_nav=data.current_nav,
            total_invested=invested,
            status=self.lifecycle.initial,
            notes=data.notes,
        )
        first_note = (
            "Initial lumpsum investment"
            if data.investment_kind == SipTransactionKind.LUMPSUM
            else "Initial SIP installment"
        )
        position.transactions.append(SipTransaction(
            date=data.start_date,
            kind=data.investment_kind,
            amount=invested,
            nav=data.current_nav,
            units=units,
            notes=first_note,
        ))
        position = self._save(db, position)
        logger.info(f"Created sip {position.id} ({position.name}): {units} units @ {data.current_nav}")
        return position

    def update(self, db: Session, sip_id: int, data: SipUpdate) -> SipPosition:
        """Edit descriptive fields; totals only change through the ledger."""
        position = self.get(db, sip_id)
        self._require(position, LifecycleAction.EDIT)

        for field_name, value in self._changes(data).items():
            setattr(position, field_name, value)
        return self._save(db, position)

    def apply_installment(
            self,
            db: Session,
            sip_id: int,
            amount: Decimal,
            nav: Decimal,
            on_date: date,
            kind: SipTransactionKind = SipTransactionKind.RECURRING,
            notes: str | None = None,
    ) -> SipPosition:
        """
        Buy units: units += amount / nav, invested += amount, NAV := nav.

        Raises:
            InvalidStateTransition: Position is redeemed
            ValidationError: Non-positive amount or NAV, or a non-purchase kind
        """
        position = self.get(db, sip_id)
        self._require(position, LifecycleAction.INSTALLMENT)
        _check_purchase_kind(kind)

        update = self._calculator.apply_installment(
            position.total_units, position.total_invested, amount, nav
        )

        position.total_units = update.total_units
        position.total_invested = update.total_invested
        position.current_nav = update.current_nav
        position.transactions.append(SipTransaction(
            date=on_date,
            kind=kind,
            amount=amount,
            nav=nav,
            units=update.units_added,
            notes=notes,
        ))
        position = self._save(db, position)
        logger.info(f"sip {sip_id}: {kind.value} {amount} @ {nav} -> {update.units_added} units")
        return position

    def update_nav(
            self,
            db: Session,
            sip_id: int,
            nav: Decimal,
            on_date: date | None = None,
    ) -> SipPosition:
        """Record a new NAV; units and invested are untouched."""
        position = self.get(db, sip_id)
        self._require(position, LifecycleAction.NAV_UPDATE)
        if nav <= ZERO:
            raise ValidationError(f"nav must be greater than 0, got {nav}", field="nav")

        position.current_nav = nav
        position.transactions.append(SipTransaction(
            date=on_date or date.today(),
            kind=SipTransactionKind.NAV_UPDATE,
            nav=nav,
            notes="NAV updated",
        ))
        return self._save(db, position)

    def set_total_units(self, db: Session, sip_id: int, total_units: Decimal) -> SipPosition:
        """Manual units correction (statement reconciliation)."""
        position = self.get(db, sip_id)
        self._require(position, LifecycleAction.SET_UNITS)
        if total_units < ZERO:
            raise ValidationError("total_units cannot be negative", field="total_units")

        logger.info(f"sip {sip_id}: units corrected {position.total_units} -> {total_units}")
        position.total_units = total_units
        position.transactions.append(SipTransaction(
            date=date.today(),
            kind=SipTransactionKind.NAV_UPDATE,
            nav=position.current_nav,
            units=total_units,
            notes="Total units updated",
        ))
        return self._save(db, position)

    def pause(self, db: Session, sip_id: int, on_date: date | None = None) -> SipPosition:
        position = self.get(db, sip_id)
        position.status = self._require(position, LifecycleAction.PAUSE)
        position.paused_date = on_date or date.today()
        return self._save(db, position)

    def resume(self, db: Session, sip_id: int) -> SipPosition:
        position = self.get(db, sip_id)
        position.status = self._require(position, LifecycleAction.RESUME)
        position.paused_date = None
        return self._save(db, position)

    def redeem(self, db: Session, sip_id: int, amount: Decimal, on_date: date) -> SipPosition:
        """
        Terminal: records the amount received and blocks further purchases.

        Raises:
            InvalidStateTransition: Already redeemed
        """
        position = self.get(db, sip_id)
        target = self._require(position, LifecycleAction.REDEEM)
        if amount <= ZERO:
            raise ValidationError("Redeemed amount must be greater than 0", field="amount")

        position.status = target
        position.redeemed_amount = amount
        position.redeemed_date = on_date
        position = self._save(db, position)
        logger.info(f"Redeemed sip {sip_id} for {amount} on {on_date}")
        return position
