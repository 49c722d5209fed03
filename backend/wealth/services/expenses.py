# backend/wealth/services/expenses.py
"""
Expense Service - expenses, category/exclusion tags, budgets and the
bucketed views over them.

Bucketed views load one consistent snapshot of expenses per call, convert
the rows to DatedEvent values and hand them to the pure bucketing engine.
Nothing is cached between calls.

Usage:
    service = ExpenseService()
    weekdays = service.bucket_expenses(db, Granularity.WEEKDAY, year=2024)
    cells = service.heatmap(db, Granularity.DAY, year=2024, month=3)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from wealth.models import ExclusionTag, Expense, MonthlyBudget, Tag
from wealth.schemas.expenses import ExpenseCreate, ExpenseUpdate, TagCreate, TagUpdate
from wealth.services.bucketing import (
    BucketFilter,
    BucketMap,
    BucketRequest,
    DatedEvent,
    Granularity,
    HeatmapCell,
    YearlyAggregate,
    bucket,
    build_heatmap,
)
from wealth.services.constants import DEFAULT_EXPENSE_PAGE_SIZE
from wealth.services.exceptions import NotFoundError, TagNotFoundError, ValidationError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError(f"month must be between 1 and 12, got {month}", field="month")


def _year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year + 1, 1, 1)


class ExpenseService:
    """
    Stateless; the session is passed to every call.

    Tags come in two kinds that share a shape but not a table:
    category tags (`Tag`, one per expense) and exclusion tags
    (`ExclusionTag`, any number per expense).
    """

    # =========================================================================
    # TAGS
    # =========================================================================

    def list_tags(self, db: Session) -> list[Tag]:
        return list(db.scalars(select(Tag).order_by(Tag.name)))

    def create_tag(self, db: Session, data: TagCreate) -> Tag:
        return self._create_tag(db, Tag, data)

    def update_tag(self, db: Session, tag_id: int, data: TagUpdate) -> Tag:
        return self._update_tag(db, Tag, tag_id, data)

    def delete_tag(self, db: Session, tag_id: int) -> None:
        """Expenses keep the dangling tag id; views show them as "Unknown"."""
        self._delete_tag(db, Tag, tag_id)

    def list_exclusion_tags(self, db: Session) -> list[ExclusionTag]:
        return list(db.scalars(select(ExclusionTag).order_by(ExclusionTag.name)))

    def create_exclusion_tag(self, db: Session, data: TagCreate) -> ExclusionTag:
        return self._create_tag(db, ExclusionTag, data)

    def update_exclusion_tag(self, db: Session, tag_id: int, data: TagUpdate) -> ExclusionTag:
        return self._update_tag(db, ExclusionTag, tag_id, data)

    def delete_exclusion_tag(self, db: Session, tag_id: int) -> None:
        self._delete_tag(db, ExclusionTag, tag_id)

    def tag_names(self, db: Session) -> dict[int, str]:
        return {tag.id: tag.name for tag in self.list_tags(db)}

    def _get_tag(self, db: Session, model: type[Tag] | type[ExclusionTag], tag_id: int):
        tag = db.get(model, tag_id)
        if tag is None:
            raise TagNotFoundError(tag_id, kind=model.__name__)
        return tag

    def _check_unique_name(self, db: Session, model, name: str, exclude_id: int | None = None) -> None:
        existing = db.scalar(select(model).where(model.name == name))
        if existing is not None and existing.id != exclude_id:
            raise ValidationError(f"{model.__name__} '{name}' already exists", field="name")

    def _create_tag(self, db: Session, model, data: TagCreate):
        name = data.name.strip()
        self._check_unique_name(db, model, name)
        tag = model(name=name, color=data.color)
        db.add(tag)
        db.commit()
        db.refresh(tag)
        logger.info(f"Created {model.__name__} {tag.id} '{tag.name}'")
        return tag

    def _update_tag(self, db: Session, model, tag_id: int, data: TagUpdate):
        tag = self._get_tag(db, model, tag_id)
        changes = data.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"] is not None:
            changes["name"] = changes["name"].strip()
            self._check_unique_name(db, model, changes["name"], exclude_id=tag_id)
        for key, value in changes.items():
            setattr(tag, key, value)
        db.commit()
        db.refresh(tag)
        return tag

    def _delete_tag(self, db: Session, model, tag_id: int) -> None:
        tag = self._get_tag(db, model, tag_id)
        db.delete(tag)
        db.commit()
        logger.info(f"Deleted {model.__name__} {tag_id}")

    # =========================================================================
    # EXPENSES
    # =========================================================================

    def get_expense(self, db: Session, expense_id: int) -> Expense:
        expense = db.get(Expense, expense_id)
        if expense is None:
            raise NotFoundError(
                f"Expense {expense_id} not found",
                resource_type="Expense",
                resource_id=expense_id,
            )
        return expense

    def list_expenses(
            self,
            db: Session,
            year: int | None = None,
            month: int | None = None,
            limit: int = DEFAULT_EXPENSE_PAGE_SIZE,
            offset: int = 0,
    ) -> list[Expense]:
        """Newest first, optionally restricted to a year and month."""
        query = self._expense_query(year, month)
        query = query.order_by(Expense.date.desc(), Expense.id.desc()).limit(limit).offset(offset)
        return list(db.scalars(query))

    def create_expense(self, db: Session, data: ExpenseCreate) -> Expense:
        if data.tag_id is not None:
            self._get_tag(db, Tag, data.tag_id)

        expense = Expense(
            date=data.date,
            amount=data.amount,
            statement=data.statement,
            tag_id=data.tag_id,
            notes=data.notes,
        )
        expense.exclusion_tags = self._load_exclusion_tags(db, data.exclusion_tag_ids)

        db.add(expense)
        db.commit()
        db.refresh(expense)

        logger.info(f"Created expense {expense.id}: {expense.amount} on {expense.date}")
        return expense

    def update_expense(self, db: Session, expense_id: int, data: ExpenseUpdate) -> Expense:
        expense = self.get_expense(db, expense_id)
        changes = data.model_dump(exclude_unset=True)

        exclusion_ids = changes.pop("exclusion_tag_ids", None)
        if changes.get("tag_id") is not None:
            self._get_tag(db, Tag, changes["tag_id"])
        if exclusion_ids is not None:
            expense.exclusion_tags = self._load_exclusion_tags(db, exclusion_ids)

        for key, value in changes.items():
            setattr(expense, key, value)

        db.commit()
        db.refresh(expense)
        return expense

    def delete_expense(self, db: Session, expense_id: int) -> None:
        expense = self.get_expense(db, expense_id)
        db.delete(expense)
        db.commit()
        logger.info(f"Deleted expense {expense_id}")

    def delete_by_months(self, db: Session, year: int, months: Iterable[int]) -> int:
        """
        Delete every expense of `year` falling in one of `months`.

        An empty month list deletes nothing. Returns the number of rows removed.
        """
        wanted = set(months)
        if not wanted:
            return 0
        for month in wanted:
            _check_month(month)

        doomed = [e for e in db.scalars(self._expense_query(year)) if e.date.month in wanted]
        for expense in doomed:
            db.delete(expense)
        db.commit()

        logger.info(f"Deleted {len(doomed)} expenses from {year} months {sorted(wanted)}")
        return len(doomed)

    def _expense_query(self, year: int | None = None, month: int | None = None):
        query = select(Expense)
        if year is not None:
            start, end = _year_bounds(year)
            if month is not None:
                _check_month(month)
                start = date(year, month, 1)
                end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
            query = query.where(Expense.date >= start, Expense.date < end)
        elif month is not None:
            raise ValidationError("month filter needs a year", field="year")
        return query

    def _load_exclusion_tags(self, db: Session, tag_ids: Iterable[int]) -> list[ExclusionTag]:
        return [self._get_tag(db, ExclusionTag, tag_id) for tag_id in dict.fromkeys(tag_ids)]

    # =========================================================================
    # BUDGETS
    # =========================================================================

    def get_budget(self, db: Session, year: int, month: int) -> MonthlyBudget:
        """Stored budget, or an unsaved zero budget when none is set."""
        _check_month(month)
        budget = self._find_budget(db, year, month)
        if budget is None:
            return MonthlyBudget(year=year, month=month, amount=ZERO)
        return budget

    def set_budget(self, db: Session, year: int, month: int, amount: Decimal) -> MonthlyBudget:
        _check_month(month)
        if amount < ZERO:
            raise ValidationError(f"budget cannot be negative, got {amount}", field="amount")

        budget = self._find_budget(db, year, month)
        if budget is None:
            budget = MonthlyBudget(year=year, month=month, amount=amount)
            db.add(budget)
        else:
            budget.amount = amount
        db.commit()
        db.refresh(budget)

        logger.info(f"Budget for {year}-{month:02d} set to {amount}")
        return budget

    def _find_budget(self, db: Session, year: int, month: int) -> MonthlyBudget | None:
        return db.scalar(
            select(MonthlyBudget).where(MonthlyBudget.year == year, MonthlyBudget.month == month)
        )

    def yearly_aggregates(self, db: Session, year: int) -> list[YearlyAggregate]:
        """Spent vs budget for all twelve months, zero-filled."""
        rows = {m: YearlyAggregate(year=year, month=m) for m in range(1, 13)}

        for expense in db.scalars(self._expense_query(year)):
            rows[expense.date.month].spent += Decimal(expense.amount)

        for budget in db.scalars(select(MonthlyBudget).where(MonthlyBudget.year == year)):
            if budget.month in rows:
                rows[budget.month].budget = Decimal(budget.amount)

        return [rows[m] for m in range(1, 13)]

    # =========================================================================
    # BUCKETED VIEWS
    # =========================================================================

    def load_events(self, db: Session, year: int | None = None) -> list[DatedEvent]:
        """Snapshot of expenses as bucketing events, oldest first."""
        query = (
            self._expense_query(year)
            .options(selectinload(Expense.exclusion_tags))
            .order_by(Expense.date, Expense.id)
        )
        return [
            DatedEvent(
                amount=Decimal(expense.amount),
                date=expense.date,
                category_tag_id=expense.tag_id,
                exclusion_tag_ids=frozenset(tag.id for tag in expense.exclusion_tags),
                event_id=expense.id,
            )
            for expense in db.scalars(query)
        ]

    def bucket_expenses(
            self,
            db: Session,
            granularity: Granularity,
            year: int | None = None,
            month: int | None = None,
            exclusion_tag_ids: Iterable[int] = (),
            months: Iterable[int] = (),
    ) -> BucketMap:
        """
        Bucketed totals of the year's expenses (all years when `year` is None).

        Raises:
            ValidationError: DAY granularity without year and month, or a bad month
        """
        months = frozenset(months)
        for m in months:
            _check_month(m)

        request = BucketRequest(
            granularity=granularity,
            filter=BucketFilter(
                exclusion_tag_ids=frozenset(exclusion_tag_ids),
                months=months,
            ),
            year=year,
            month=month,
            tag_names=self.tag_names(db) if granularity == Granularity.CATEGORY else {},
        )
        if granularity == Granularity.DAY and (year is None or month is None):
            raise ValidationError("Day buckets need both year and month", field="month")

        return bucket(self.load_events(db, year), request)

    def heatmap(
            self,
            db: Session,
            granularity: Granularity,
            year: int | None = None,
            month: int | None = None,
            exclusion_tag_ids: Iterable[int] = (),
            months: Iterable[int] = (),
    ) -> list[HeatmapCell]:
        buckets = self.bucket_expenses(db, granularity, year, month, exclusion_tag_ids, months)
        return build_heatmap(buckets)
