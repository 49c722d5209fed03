# backend/wealth/models.py
import enum
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# Money columns
MONEY = Numeric(18, 2)
# Units, NAVs and per-unit prices
PRECISE = Numeric(18, 8)


# =============================================================================
# LIFECYCLE STATES
# =============================================================================
# Legal transitions between these live in services/lifecycle.py

class FixedDepositStatus(str, enum.Enum):
    ONGOING = "ongoing"
    CLOSED = "closed"


class SipStatus(str, enum.Enum):
    ONGOING = "ongoing"
    PAUSED = "paused"
    REDEEMED = "redeemed"


class RecurringDepositStatus(str, enum.Enum):
    ONGOING = "ongoing"
    COMPLETED = "completed"  # installments_paid == total_installments
    CLOSED = "closed"


class PositionStatus(str, enum.Enum):
    HOLDING = "holding"
    SOLD = "sold"


# =============================================================================
# CLASSIFIERS
# =============================================================================

class SipTransactionKind(str, enum.Enum):
    RECURRING = "recurring"
    LUMPSUM = "lumpsum"
    NAV_UPDATE = "nav_update"


class DepositFrequency(str, enum.Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"  # every custom_frequency_days days


class Market(str, enum.Enum):
    INDIAN = "indian"  # INR
    US = "us"          # USD
    CRYPTO = "crypto"  # USD


class OtherAssetKind(str, enum.Enum):
    ASSET = "asset"
    INVESTMENT = "investment"
    PLAN = "plan"
    LIFE_XP = "life_xp"


class GoalStatus(str, enum.Enum):
    ACTIVE = "active"
    ACHIEVED = "achieved"
    ARCHIVED = "archived"


# =============================================================================
# INSTRUMENTS
# =============================================================================

class FixedDeposit(Base):
    """
    Fixed-term deposit with simple interest.

    actual_withdrawal is NULL while ongoing and set on closure.
    """
    __tablename__ = "fixed_deposits"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String)
    invested_amount: Mapped[Decimal] = mapped_column(MONEY)
    interest_rate: Mapped[Decimal] = mapped_column(Numeric(9, 4))  # annual %
    start_date: Mapped[date] = mapped_column(Date)
    maturity_date: Mapped[date] = mapped_column(Date)
    expected_withdrawal: Mapped[Decimal] = mapped_column(MONEY)
    actual_withdrawal: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    status: Mapped[FixedDepositStatus] = mapped_column(
        Enum(FixedDepositStatus), default=FixedDepositStatus.ONGOING, index=True
    )
    closed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class SipPosition(Base):
    """
    Unit-based mutual fund position (systematic and/or lumpsum).

    total_units and total_invested are running sums over the installment
    ledger in `transactions`.
    """
    __tablename__ = "sip_positions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String)
    scheme_code: Mapped[str | None] = mapped_column(String, nullable=True)  # mfapi.in scheme code
    sip_amount: Mapped[Decimal] = mapped_column(MONEY)
    start_date: Mapped[date] = mapped_column(Date)
    total_units: Mapped[Decimal] = mapped_column(PRECISE, default=Decimal("0"))
    current_nav: Mapped[Decimal] = mapped_column(PRECISE)
    total_invested: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    status: Mapped[SipStatus] = mapped_column(Enum(SipStatus), default=SipStatus.ONGOING, index=True)
    paused_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    redeemed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    redeemed_amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    transactions: Mapped[list["SipTransaction"]] = relationship(
        back_populates="position",
        cascade="all, delete-orphan",
        order_by="SipTransaction.id",
    )


class SipTransaction(Base):
    """Append-only installment / NAV ledger entry of a SipPosition."""
    __tablename__ = "sip_transactions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    sip_id: Mapped[int] = mapped_column(ForeignKey("sip_positions.id", ondelete="CASCADE"), index=True)
    date: Mapped[date] = mapped_column(Date)
    kind: Mapped[SipTransactionKind] = mapped_column(Enum(SipTransactionKind))
    amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    nav: Mapped[Decimal] = mapped_column(PRECISE)
    units: Mapped[Decimal | None] = mapped_column(PRECISE, nullable=True)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    position: Mapped["SipPosition"] = relationship(back_populates="transactions")


class RecurringDeposit(Base):
    __tablename__ = "recurring_deposits"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String)
    installment_amount: Mapped[Decimal] = mapped_column(MONEY)
    frequency: Mapped[DepositFrequency] = mapped_column(Enum(DepositFrequency), default=DepositFrequency.MONTHLY)
    custom_frequency_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    interest_rate: Mapped[Decimal] = mapped_column(Numeric(9, 4))
    start_date: Mapped[date] = mapped_column(Date)
    total_installments: Mapped[int] = mapped_column(Integer)
    installments_paid: Mapped[int] = mapped_column(Integer, default=0)
    next_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    maturity_value: Mapped[Decimal] = mapped_column(MONEY)
    status: Mapped[RecurringDepositStatus] = mapped_column(
        Enum(RecurringDepositStatus), default=RecurringDepositStatus.ONGOING, index=True
    )
    closed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_withdrawal: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class TradablePosition(Base):
    """
    Equity or crypto holding.

    tile_id groups positions into user-defined tiles within a market
    (NULL = the market's main tile).
    """
    __tablename__ = "tradable_positions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    market: Mapped[Market] = mapped_column(Enum(Market), index=True)
    tile_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    symbol: Mapped[str] = mapped_column(String, index=True)
    name: Mapped[str] = mapped_column(String)
    quantity: Mapped[Decimal] = mapped_column(PRECISE)
    buy_price: Mapped[Decimal] = mapped_column(PRECISE)
    buy_date: Mapped[date] = mapped_column(Date)
    current_price: Mapped[Decimal] = mapped_column(PRECISE)
    price_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[PositionStatus] = mapped_column(Enum(PositionStatus), default=PositionStatus.HOLDING, index=True)
    sell_price: Mapped[Decimal | None] = mapped_column(PRECISE, nullable=True)
    sell_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


# =============================================================================
# EXPENSES
# =============================================================================

expense_exclusion_tags = Table(
    "expense_exclusion_tags",
    Base.metadata,
    Column("expense_id", ForeignKey("expenses.id", ondelete="CASCADE"), primary_key=True),
    Column("exclusion_tag_id", ForeignKey("exclusion_tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(Base):
    """Category tag; every expense has at most one."""
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, unique=True)
    color: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class ExclusionTag(Base):
    """Label that removes an expense from bucketed sums when filtered on."""
    __tablename__ = "exclusion_tags"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, unique=True)
    color: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Expense(Base):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    date: Mapped[date] = mapped_column(Date, index=True)
    amount: Mapped[Decimal] = mapped_column(MONEY)
    statement: Mapped[str] = mapped_column(String)
    # No FK: a deleted tag leaves expenses in the "Unknown" category
    tag_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    exclusion_tags: Mapped[list["ExclusionTag"]] = relationship(secondary=expense_exclusion_tags)


class MonthlyBudget(Base):
    __tablename__ = "monthly_budgets"
    __table_args__ = (
        UniqueConstraint("year", "month", name="uq_budget_year_month"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    year: Mapped[int] = mapped_column(Integer)
    month: Mapped[int] = mapped_column(Integer)
    amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


# =============================================================================
# CASH, OTHER ASSETS, GOALS
# =============================================================================

class Account(Base):
    """Liquid money (bank accounts, wallets)."""
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String)
    balance: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class OtherAsset(Base):
    """Manually valued holding (property, vehicle, policy)."""
    __tablename__ = "other_assets"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String)
    value: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    kind: Mapped[OtherAssetKind] = mapped_column(Enum(OtherAssetKind), default=OtherAssetKind.ASSET)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class GoalBucket(Base):
    """Savings goal; saved_amount of active buckets counts toward net worth."""
    __tablename__ = "goal_buckets"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String)
    target_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    saved_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    status: Mapped[GoalStatus] = mapped_column(Enum(GoalStatus), default=GoalStatus.ACTIVE)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
