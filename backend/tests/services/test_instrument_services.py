# backend/tests/services/test_instrument_services.py
"""
Tests for the per-class instrument services and the class-generic facade.

Test Coverage:
- FixedDepositService: expected withdrawal on create, close, amend_closed
- SipService: installment ledger, NAV updates, pause/resume/redeem
- RecurringDepositService: automatic completion, closure, schedule checks
- PositionService: buy price from outlay, sell freezes price
- InstrumentService: summaries, details, class-generic actions
- Rejected actions leave the stored instrument unchanged
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from wealth.models import (
    FixedDepositStatus,
    Market,
    PositionStatus,
    RecurringDepositStatus,
    SipStatus,
    SipTransaction,
    SipTransactionKind,
)
from wealth.schemas.instruments import (
    FixedDepositAmend,
    FixedDepositCreate,
    FixedDepositUpdate,
    PositionCreate,
    RecurringDepositCreate,
    RecurringDepositUpdate,
    SipCreate,
)
from wealth.services.exceptions import (
    InstrumentNotFoundError,
    InvalidStateTransition,
    ValidationError,
)
from wealth.services.instruments import (
    FixedDepositService,
    InstrumentService,
    PositionService,
    RecurringDepositService,
    SipService,
)
from wealth.services.valuation import InstrumentClass
from tests.conftest import create_position, create_sip


# =============================================================================
# FIXED DEPOSITS
# =============================================================================

class TestFixedDepositService:

    @pytest.fixture
    def service(self) -> FixedDepositService:
        return FixedDepositService()

    @pytest.fixture
    def deposit(self, db, service):
        return service.create(db, FixedDepositCreate(
            name="SBI 1Y",
            invested_amount=Decimal("100000"),
            interest_rate=Decimal("7.5"),
            start_date=date(2024, 1, 1),
            maturity_date=date(2025, 1, 1),
        ))

    def test_create_computes_expected_withdrawal(self, deposit):
        assert deposit.expected_withdrawal == Decimal("107520.55")
        assert deposit.status == FixedDepositStatus.ONGOING

    def test_maturity_must_follow_start(self, db, service):
        with pytest.raises(ValidationError):
            service.create(db, FixedDepositCreate(
                name="Bad",
                invested_amount=Decimal("1000"),
                interest_rate=Decimal("7"),
                start_date=date(2024, 1, 1),
                maturity_date=date(2024, 1, 1),
            ))

    def test_update_recomputes_expected(self, db, service, deposit):
        updated = service.update(db, deposit.id, FixedDepositUpdate(interest_rate=Decimal("0")))
        assert updated.expected_withdrawal == Decimal("100000.00")

    def test_close_records_realised_rate(self, db, service, deposit):
        closed = service.close(db, deposit.id, Decimal("107000"), date(2025, 1, 1))

        assert closed.status == FixedDepositStatus.CLOSED
        assert closed.actual_withdrawal == Decimal("107000")
        assert closed.interest_rate == Decimal("6.98")
        assert closed.expected_withdrawal == Decimal("107520.55")

    def test_close_twice_rejected(self, db, service, deposit):
        service.close(db, deposit.id, Decimal("107000"), date(2025, 1, 1))

        with pytest.raises(InvalidStateTransition):
            service.close(db, deposit.id, Decimal("1"), date(2025, 1, 2))

        db.refresh(deposit)
        assert deposit.actual_withdrawal == Decimal("107000")

    def test_edit_closed_rejected(self, db, service, deposit):
        service.close(db, deposit.id, Decimal("107000"), date(2025, 1, 1))

        with pytest.raises(InvalidStateTransition):
            service.update(db, deposit.id, FixedDepositUpdate(name="Renamed"))

    def test_amend_closed(self, db, service, deposit):
        service.close(db, deposit.id, Decimal("107000"), date(2025, 1, 1))

        amended = service.amend_closed(db, deposit.id, FixedDepositAmend(actual_withdrawal=Decimal("107520.55")))

        assert amended.actual_withdrawal == Decimal("107520.55")
        assert amended.interest_rate == Decimal("7.50")
        assert amended.status == FixedDepositStatus.CLOSED

    def test_amend_ongoing_rejected(self, db, service, deposit):
        with pytest.raises(InvalidStateTransition):
            service.amend_closed(db, deposit.id, FixedDepositAmend(notes="x"))

    def test_close_before_start_rejected(self, db, service, deposit):
        with pytest.raises(ValidationError):
            service.close(db, deposit.id, Decimal("100000"), date(2023, 12, 31))

        db.refresh(deposit)
        assert deposit.status == FixedDepositStatus.ONGOING

    def test_summary_counts_ongoing_only(self, db, service, deposit):
        other = service.create(db, FixedDepositCreate(
            name="HDFC",
            invested_amount=Decimal("50000"),
            interest_rate=Decimal("7"),
            start_date=date(2024, 1, 1),
            maturity_date=date(2025, 1, 1),
        ))
        service.close(db, other.id, Decimal("53500"), date(2025, 1, 1))

        summary = service.summary(db)

        assert summary.count == 1
        assert summary.total_invested == Decimal("100000.00")
        assert summary.projected_maturity == Decimal("107520.55")

    def test_missing_deposit(self, db, service):
        with pytest.raises(InstrumentNotFoundError):
            service.get(db, 404)


# =============================================================================
# SIPS
# =============================================================================

class TestSipService:

    @pytest.fixture
    def service(self) -> SipService:
        return SipService()

    @pytest.fixture
    def sip(self, db, service):
        return service.create(db, SipCreate(
            name="Flexi Cap",
            scheme_code="122639",
            sip_amount=Decimal("5000"),
            start_date=date(2024, 1, 5),
            current_nav=Decimal("50"),
        ))

    def test_create_records_first_installment(self, db, sip):
        assert sip.total_units == Decimal("100")
        assert sip.total_invested == Decimal("5000")
        assert len(sip.transactions) == 1
        assert sip.transactions[0].kind == SipTransactionKind.RECURRING

    def test_lumpsum_create(self, db, service):
        sip = service.create(db, SipCreate(
            name="Index",
            sip_amount=Decimal("1000"),
            start_date=date(2024, 1, 5),
            current_nav=Decimal("20"),
            invested_amount=Decimal("20000"),
            investment_kind=SipTransactionKind.LUMPSUM,
        ))

        assert sip.total_units == Decimal("1000")
        assert sip.transactions[0].notes == "Initial lumpsum investment"

    def test_installment_then_nav_change(self, db, service, sip):
        """225 units / 10000 invested, revalued at NAV 45."""
        service.apply_installment(db, sip.id, Decimal("5000"), Decimal("40"), date(2024, 2, 5))
        sip = service.update_nav(db, sip.id, Decimal("45"), date(2024, 3, 1))

        valuation = service.value(sip)

        assert sip.total_units == Decimal("225")
        assert sip.total_invested == Decimal("10000")
        assert valuation.current_value == Decimal("10125.00")
        assert valuation.returns_percent == Decimal("1.25")

    def test_totals_match_ledger(self, db, service, sip):
        service.apply_installment(db, sip.id, Decimal("5000"), Decimal("40"), date(2024, 2, 5))
        service.apply_installment(
            db, sip.id, Decimal("2500"), Decimal("25"), date(2024, 2, 20), kind=SipTransactionKind.LUMPSUM
        )
        service.update_nav(db, sip.id, Decimal("30"))

        purchases = db.scalars(
            select(SipTransaction)
            .where(SipTransaction.sip_id == sip.id)
            .where(SipTransaction.kind != SipTransactionKind.NAV_UPDATE)
        ).all()
        db.refresh(sip)

        assert sum(t.units for t in purchases) == sip.total_units
        assert sum(t.amount for t in purchases) == sip.total_invested

    def test_nav_update_kind_not_a_purchase(self, db, service, sip):
        with pytest.raises(ValidationError):
            service.apply_installment(
                db, sip.id, Decimal("100"), Decimal("10"), date(2024, 2, 5), kind=SipTransactionKind.NAV_UPDATE
            )

    def test_zero_nav_rejected(self, db, service, sip):
        with pytest.raises(ValidationError):
            service.update_nav(db, sip.id, Decimal("0"))

    def test_pause_resume(self, db, service, sip):
        paused = service.pause(db, sip.id, date(2024, 6, 1))
        assert paused.status == SipStatus.PAUSED
        assert paused.paused_date == date(2024, 6, 1)

        with pytest.raises(InvalidStateTransition):
            service.pause(db, sip.id)

        resumed = service.resume(db, sip.id)
        assert resumed.status == SipStatus.ONGOING
        assert resumed.paused_date is None

    def test_installment_allowed_while_paused(self, db, service, sip):
        service.pause(db, sip.id)

        sip = service.apply_installment(db, sip.id, Decimal("5000"), Decimal("50"), date(2024, 7, 1))

        assert sip.status == SipStatus.PAUSED
        assert sip.total_units == Decimal("200")

    def test_redeem_is_terminal(self, db, service, sip):
        service.redeem(db, sip.id, Decimal("5500"), date(2024, 12, 1))

        with pytest.raises(InvalidStateTransition):
            service.redeem(db, sip.id, Decimal("5500"), date(2024, 12, 2))
        with pytest.raises(InvalidStateTransition):
            service.apply_installment(db, sip.id, Decimal("5000"), Decimal("50"), date(2024, 12, 3))

        db.refresh(sip)
        assert sip.status == SipStatus.REDEEMED
        assert sip.redeemed_amount == Decimal("5500")
        assert sip.total_units == Decimal("100")

    def test_list_transactions_newest_first(self, db, service, sip):
        service.apply_installment(db, sip.id, Decimal("5000"), Decimal("40"), date(2024, 2, 5))

        dates = [t.date for t in service.list_transactions(db, sip.id)]

        assert dates == [date(2024, 2, 5), date(2024, 1, 5)]

    def test_set_total_units(self, db, service, sip):
        sip = service.set_total_units(db, sip.id, Decimal("101.5"))
        assert sip.total_units == Decimal("101.5")

    def test_returns_zero_without_investment(self, db, service):
        sip = create_sip(db, total_units=Decimal("0"), total_invested=Decimal("0"))
        assert service.value(sip).returns_percent == Decimal("0")

    def test_summary_excludes_redeemed(self, db, service, sip):
        create_sip(db, name="Old", status=SipStatus.REDEEMED)

        summary = service.summary(db)

        assert summary.count == 1
        assert summary.total_invested == Decimal("5000.00")


# =============================================================================
# RECURRING DEPOSITS
# =============================================================================

class TestRecurringDepositService:

    @pytest.fixture
    def service(self) -> RecurringDepositService:
        return RecurringDepositService()

    @pytest.fixture
    def deposit(self, db, service):
        return service.create(db, RecurringDepositCreate(
            name="Post Office RD",
            installment_amount=Decimal("1000"),
            interest_rate=Decimal("0"),
            start_date=date(2024, 1, 10),
            total_installments=12,
        ))

    def test_create(self, deposit):
        assert deposit.maturity_value == Decimal("12000.00")
        assert deposit.next_due_date == date(2024, 1, 10)
        assert deposit.status == RecurringDepositStatus.ONGOING

    def test_custom_frequency_needs_days(self, db, service):
        with pytest.raises(ValidationError):
            service.create(db, RecurringDepositCreate(
                name="Odd",
                installment_amount=Decimal("100"),
                frequency="custom",
                interest_rate=Decimal("5"),
                start_date=date(2024, 1, 1),
                total_installments=4,
            ))

    def test_paid_cannot_exceed_total(self, db, service):
        with pytest.raises(ValidationError):
            service.create(db, RecurringDepositCreate(
                name="Over",
                installment_amount=Decimal("100"),
                interest_rate=Decimal("5"),
                start_date=date(2024, 1, 1),
                total_installments=4,
                installments_paid=5,
            ))

    def test_last_installment_completes(self, db, service, deposit):
        for _ in range(12):
            deposit = service.mark_installment_paid(db, deposit.id)

        assert deposit.installments_paid == 12
        assert deposit.status == RecurringDepositStatus.COMPLETED
        assert deposit.next_due_date is None

        with pytest.raises(InvalidStateTransition):
            service.mark_installment_paid(db, deposit.id)

        db.refresh(deposit)
        assert deposit.installments_paid == 12

    def test_close_then_pay_rejected(self, db, service, deposit):
        for _ in range(12):
            service.mark_installment_paid(db, deposit.id)

        closed = service.close(db, deposit.id, Decimal("12300"), date(2025, 1, 10))
        assert closed.status == RecurringDepositStatus.CLOSED
        assert service.value(closed).current_value == Decimal("12300.00")

        with pytest.raises(InvalidStateTransition):
            service.mark_installment_paid(db, deposit.id)
        with pytest.raises(InvalidStateTransition):
            service.close(db, deposit.id, Decimal("12300"), date(2025, 1, 10))

    def test_next_due_advances(self, db, service, deposit):
        deposit = service.mark_installment_paid(db, deposit.id)
        assert deposit.next_due_date == date(2024, 2, 10)

    def test_completed_cannot_be_extended(self, db, service, deposit):
        for _ in range(12):
            service.mark_installment_paid(db, deposit.id)

        with pytest.raises(ValidationError):
            service.update(db, deposit.id, RecurringDepositUpdate(total_installments=24))

    def test_summary(self, db, service, deposit):
        service.mark_installment_paid(db, deposit.id)
        service.mark_installment_paid(db, deposit.id)

        summary = service.summary(db)

        assert summary.total_invested == Decimal("2000.00")
        assert summary.projected_maturity == Decimal("12000.00")


# =============================================================================
# POSITIONS
# =============================================================================

class TestPositionService:

    @pytest.fixture
    def service(self) -> PositionService:
        return PositionService()

    def test_buy_price_from_invested_value(self, db, service):
        position = service.create(db, PositionCreate(
            market=Market.US,
            symbol=" aapl ",
            quantity=Decimal("10"),
            invested_value=Decimal("1500"),
            buy_date=date(2024, 2, 1),
        ))

        assert position.symbol == "AAPL"
        assert position.buy_price == Decimal("150")
        assert position.current_price == Decimal("150")

    def test_exactly_one_price_input(self, db, service):
        with pytest.raises(ValidationError):
            service.create(db, PositionCreate(
                market=Market.US,
                symbol="AAPL",
                quantity=Decimal("10"),
                buy_date=date(2024, 2, 1),
            ))

    def test_sell_freezes_price(self, db, service):
        position = create_position(db)

        sold = service.sell(db, position.id, Decimal("200"), date(2024, 6, 1))
        assert sold.status == PositionStatus.SOLD
        assert sold.current_price == Decimal("200")

        unchanged = service.update_price(db, position.id, Decimal("500"))
        assert unchanged.current_price == Decimal("200")

    def test_sell_twice_rejected(self, db, service):
        position = create_position(db)
        service.sell(db, position.id, Decimal("200"), date(2024, 6, 1))

        with pytest.raises(InvalidStateTransition):
            service.sell(db, position.id, Decimal("210"), date(2024, 6, 2))

    def test_sell_before_buy_rejected(self, db, service):
        position = create_position(db)

        with pytest.raises(ValidationError):
            service.sell(db, position.id, Decimal("200"), date(2024, 1, 1))

    def test_summary_by_tile(self, db, service):
        create_position(db, market=Market.CRYPTO, symbol="BTC", tile_id="cold",
                        quantity=Decimal("1"), buy_price=Decimal("30000"), current_price=Decimal("60000"))
        create_position(db, market=Market.CRYPTO, symbol="ETH", tile_id="hot",
                        quantity=Decimal("2"), buy_price=Decimal("2000"), current_price=Decimal("3000"))

        assert service.summary(db, Market.CRYPTO, "cold").current_value == Decimal("60000.00")
        assert service.summary(db, Market.CRYPTO).current_value == Decimal("66000.00")


# =============================================================================
# CLASS-GENERIC FACADE
# =============================================================================

class TestInstrumentService:

    @pytest.fixture
    def service(self) -> InstrumentService:
        return InstrumentService()

    def test_unknown_class(self, db, service):
        with pytest.raises(ValidationError):
            service.get_instrument_summary(db, "bonds")

    def test_all_summaries_cover_every_class(self, db, service):
        summaries = service.get_all_summaries(db)
        assert [s.instrument_class for s in summaries] == list(InstrumentClass)

    def test_detail(self, db, service):
        sip = create_sip(db, current_nav=Decimal("45"))

        detail = service.get_instrument_detail(db, "sip", sip.id)

        assert detail.valuation.current_value == Decimal("10125.00")
        assert detail.status == "ongoing"

    def test_position_addressed_by_wrong_market(self, db, service):
        position = create_position(db, market=Market.INDIAN, symbol="TCS")

        with pytest.raises(InstrumentNotFoundError):
            service.get_instrument_detail(db, "us_stock", position.id)

    def test_sip_installment(self, db, service):
        sip = create_sip(db)

        detail = service.apply_installment(db, "sip", sip.id, amount=Decimal("4500"), nav=Decimal("45"))

        assert detail.instrument.total_units == Decimal("325")

    def test_sip_installment_needs_nav(self, db, service):
        sip = create_sip(db)

        with pytest.raises(ValidationError):
            service.apply_installment(db, "sip", sip.id, amount=Decimal("4500"))

    def test_installment_unsupported_for_positions(self, db, service):
        position = create_position(db)

        with pytest.raises(InvalidStateTransition):
            service.apply_installment(db, "us_stock", position.id)

    def test_pause_resume_only_for_sips(self, db, service):
        position = create_position(db)

        with pytest.raises(InvalidStateTransition):
            service.pause_resume(db, "us_stock", position.id, pause=True)

    def test_redeem_or_close_sells_position(self, db, service):
        position = create_position(db)

        detail = service.redeem_or_close(db, "us_stock", position.id, Decimal("2000"), date(2024, 6, 1))

        assert detail.instrument.sell_price == Decimal("200")
        assert detail.allowed_actions == []

    def test_double_redeem_rejected(self, db, service):
        sip = create_sip(db)
        service.redeem_or_close(db, "sip", sip.id, Decimal("11000"), date(2024, 6, 1))

        with pytest.raises(InvalidStateTransition):
            service.redeem_or_close(db, "sip", sip.id, Decimal("11000"), date(2024, 6, 2))
