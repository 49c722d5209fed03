# backend/wealth/services/instruments/base.py
"""
Shared plumbing for the per-class instrument services.

Every class service:
- loads rows by id or raises InstrumentNotFoundError
- asks its Lifecycle before mutating (InvalidStateTransition otherwise)
- validates input before touching the row, so a rejected call leaves
  the stored instrument unchanged
- commits once per public operation
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Session

from wealth.models import Base
from wealth.services.exceptions import InstrumentNotFoundError
from wealth.services.lifecycle import Lifecycle, LifecycleAction

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Base)


class InstrumentServiceBase(Generic[M]):
    """
    Base class; subclasses set `model` and `lifecycle`.

    Services are stateless and safe to share across requests; the session
    is passed to every call.
    """

    model: type[M]
    lifecycle: Lifecycle

    @property
    def instrument_class(self) -> str:
        return self.lifecycle.instrument_class

    def get(self, db: Session, instrument_id: int) -> M:
        """
        Raises:
            InstrumentNotFoundError: No row with this id
        """
        instrument = db.get(self.model, instrument_id)
        if instrument is None:
            raise InstrumentNotFoundError(self.instrument_class, instrument_id)
        return instrument

    def delete(self, db: Session, instrument_id: int) -> None:
        """Hard delete, allowed in every state."""
        instrument = self.get(db, instrument_id)
        db.delete(instrument)
        db.commit()
        logger.info(f"Deleted {self.instrument_class} {instrument_id}")

    def allowed_actions(self, instrument: M) -> list[LifecycleAction]:
        return self.lifecycle.allowed_actions(instrument.status)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _require(self, instrument: M, action: LifecycleAction):
        """Target state for `action`, or InvalidStateTransition."""
        return self.lifecycle.require(instrument.status, action, instrument.id)

    def _save(self, db: Session, instrument: M) -> M:
        db.add(instrument)
        db.commit()
        db.refresh(instrument)
        return instrument

    @staticmethod
    def _changes(data: BaseModel) -> dict[str, Any]:
        """Fields the client actually sent."""
        return data.model_dump(exclude_unset=True)
