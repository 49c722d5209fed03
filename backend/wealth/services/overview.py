# backend/wealth/services/overview.py
"""
Overview Service - the net-worth view across every balance the ledger holds.

Reads one session snapshot (class summaries, account balances, other
assets, active goal savings) and hands it to the pure PortfolioRollup.
Also owns CRUD for the three non-instrument balance tables.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from wealth.models import Account, GoalBucket, GoalStatus, OtherAsset, OtherAssetKind
from wealth.services.exceptions import NotFoundError
from wealth.services.instruments import InstrumentService
from wealth.services.rollup import PortfolioRollup, RollupInput, RollupResult
from wealth.services.valuation import ClassSummary

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class PortfolioOverview:
    """Rollup plus the class summaries it was computed from."""
    rollup: RollupResult
    summaries: list[ClassSummary]


class OverviewService:
    """
    Example:
        service = OverviewService(InstrumentService())
        overview = service.rollup_portfolio(db)
        print(overview.rollup.net_worth)
    """

    def __init__(
            self,
            instruments: InstrumentService | None = None,
            rollup: PortfolioRollup | None = None,
    ) -> None:
        self._instruments = instruments or InstrumentService()
        self._rollup = rollup or PortfolioRollup()

    # =========================================================================
    # ROLLUP
    # =========================================================================

    def gather(self, db: Session) -> tuple[RollupInput, list[ClassSummary]]:
        """Snapshot of everything the rollup needs."""
        summaries = self._instruments.get_all_summaries(db)

        cash = sum((Decimal(a.balance) for a in self.list_accounts(db)), ZERO)
        other_assets = sum(
            (Decimal(a.value) for a in self.list_other_assets(db) if a.kind == OtherAssetKind.ASSET),
            ZERO,
        )
        goal_savings = sum(
            (Decimal(g.saved_amount) for g in self.list_goals(db) if g.status == GoalStatus.ACTIVE),
            ZERO,
        )

        snapshot = RollupInput(
            summaries=tuple(summaries),
            cash=cash,
            other_assets=other_assets,
            goal_savings=goal_savings,
        )
        return snapshot, summaries

    def rollup_portfolio(self, db: Session) -> PortfolioOverview:
        snapshot, summaries = self.gather(db)
        result = self._rollup.rollup(snapshot)
        logger.debug(f"Rollup: net worth {result.net_worth} over {len(summaries)} classes")
        return PortfolioOverview(rollup=result, summaries=summaries)

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    def list_accounts(self, db: Session) -> list[Account]:
        return list(db.scalars(select(Account).order_by(Account.name)))

    def create_account(self, db: Session, data: BaseModel) -> Account:
        return self._create(db, Account(**data.model_dump()))

    def update_account(self, db: Session, account_id: int, data: BaseModel) -> Account:
        return self._update(db, self._get(db, Account, account_id), data)

    def delete_account(self, db: Session, account_id: int) -> None:
        self._delete(db, self._get(db, Account, account_id))

    # =========================================================================
    # OTHER ASSETS
    # =========================================================================

    def list_other_assets(self, db: Session, kind: OtherAssetKind | None = None) -> list[OtherAsset]:
        query = select(OtherAsset).order_by(OtherAsset.name)
        if kind is not None:
            query = query.where(OtherAsset.kind == kind)
        return list(db.scalars(query))

    def create_other_asset(self, db: Session, data: BaseModel) -> OtherAsset:
        return self._create(db, OtherAsset(**data.model_dump()))

    def update_other_asset(self, db: Session, asset_id: int, data: BaseModel) -> OtherAsset:
        return self._update(db, self._get(db, OtherAsset, asset_id), data)

    def delete_other_asset(self, db: Session, asset_id: int) -> None:
        self._delete(db, self._get(db, OtherAsset, asset_id))

    # =========================================================================
    # GOAL BUCKETS
    # =========================================================================

    def list_goals(self, db: Session) -> list[GoalBucket]:
        return list(db.scalars(select(GoalBucket).order_by(GoalBucket.name)))

    def create_goal(self, db: Session, data: BaseModel) -> GoalBucket:
        return self._create(db, GoalBucket(**data.model_dump()))

    def update_goal(self, db: Session, goal_id: int, data: BaseModel) -> GoalBucket:
        return self._update(db, self._get(db, GoalBucket, goal_id), data)

    def delete_goal(self, db: Session, goal_id: int) -> None:
        self._delete(db, self._get(db, GoalBucket, goal_id))

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _get(db: Session, model: type, row_id: int) -> Any:
        row = db.get(model, row_id)
        if row is None:
            raise NotFoundError(
                f"{model.__name__} {row_id} not found",
                resource_type=model.__name__,
                resource_id=row_id,
            )
        return row

    @staticmethod
    def _create(db: Session, row: Any) -> Any:
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info(f"Created {type(row).__name__} {row.id}")
        return row

    @staticmethod
    def _update(db: Session, row: Any, data: BaseModel) -> Any:
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(row, key, value)
        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def _delete(db: Session, row: Any) -> None:
        label = f"{type(row).__name__} {row.id}"
        db.delete(row)
        db.commit()
        logger.info(f"Deleted {label}")
