# backend/wealth/services/lifecycle.py
"""
Lifecycle state machines for every instrument class.

Each class gets one immutable `Lifecycle` holding an explicit transition
table. Services ask the table before mutating anything; a missing entry is
an InvalidStateTransition and the instrument stays untouched.

States and transitions:

    FixedDeposit        ONGOING --close--> CLOSED
                        CLOSED  --amend_closed--> CLOSED   (correction path)

    SipPosition         ONGOING <--pause/resume--> PAUSED
                        ONGOING|PAUSED --redeem--> REDEEMED

    RecurringDeposit    ONGOING --complete--> COMPLETED    (automatic, paid == total)
                        ONGOING|COMPLETED --close--> CLOSED

    TradablePosition    HOLDING --sell--> SOLD
                        SOLD    --price_refresh--> SOLD    (no-op, not an error)

Tables are validated when constructed: every state and target must belong
to the class's status enum, and terminal states may only carry the
transitions explicitly allowed on them.

Usage:
    from wealth.services.lifecycle import SIP_LIFECYCLE, LifecycleAction

    outcome = SIP_LIFECYCLE.transition(position.status, LifecycleAction.PAUSE, position.id)
    position.status = outcome.target
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from wealth.models import (
    FixedDepositStatus,
    PositionStatus,
    RecurringDepositStatus,
    SipStatus,
)
from wealth.services.exceptions import InvalidStateTransition

logger = logging.getLogger(__name__)


class LifecycleAction(str, enum.Enum):
    EDIT = "edit"
    CLOSE = "close"
    AMEND_CLOSED = "amend_closed"
    INSTALLMENT = "installment"
    PAUSE = "pause"
    RESUME = "resume"
    REDEEM = "redeem"
    NAV_UPDATE = "nav_update"
    SET_UNITS = "set_units"
    PAY_INSTALLMENT = "pay_installment"
    COMPLETE = "complete"
    SELL = "sell"
    PRICE_REFRESH = "price_refresh"


@dataclass(frozen=True)
class TransitionOutcome:
    """
    Result of asking a lifecycle for a transition.

    Attributes:
        source: State before the action
        target: State after the action
        applied: False when the action is a tolerated no-op
    """
    source: enum.Enum
    target: enum.Enum
    applied: bool = True

    @property
    def changed(self) -> bool:
        return self.source != self.target


@dataclass(frozen=True)
class Lifecycle:
    """
    Transition table for one instrument class.

    Attributes:
        instrument_class: Name used in errors and logs
        states: The class's status enum
        initial: Starting state of new instruments
        terminal: States that end value-changing mutation
        transitions: (state, action) -> next state
        noops: (state, action) pairs accepted without any effect
    """
    instrument_class: str
    states: type[enum.Enum]
    initial: enum.Enum
    terminal: frozenset
    transitions: Mapping[tuple[enum.Enum, LifecycleAction], enum.Enum]
    noops: frozenset = field(default_factory=frozenset)
    terminal_amendments: frozenset = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        members = set(self.states)
        if self.initial not in members:
            raise ValueError(f"{self.instrument_class}: initial state {self.initial} not in {self.states.__name__}")
        if self.initial in self.terminal:
            raise ValueError(f"{self.instrument_class}: initial state cannot be terminal")

        for (source, action), target in self.transitions.items():
            if source not in members or target not in members:
                raise ValueError(f"{self.instrument_class}: unknown state in {source} --{action.value}--> {target}")
            if source in self.terminal and action not in self.terminal_amendments:
                raise ValueError(
                    f"{self.instrument_class}: terminal state {source.value} cannot accept '{action.value}'"
                )

        for source, action in self.noops:
            if source not in members:
                raise ValueError(f"{self.instrument_class}: unknown state {source} in no-op table")
            if (source, action) in self.transitions:
                raise ValueError(f"{self.instrument_class}: {source.value}/{action.value} is both no-op and transition")

        object.__setattr__(self, "transitions", MappingProxyType(dict(self.transitions)))

    # =========================================================================
    # QUERIES
    # =========================================================================

    def is_terminal(self, state: enum.Enum) -> bool:
        return state in self.terminal

    def can(self, state: enum.Enum, action: LifecycleAction) -> bool:
        """True when the action is a real transition from `state`."""
        return (state, action) in self.transitions

    def allowed_actions(self, state: enum.Enum) -> list[LifecycleAction]:
        return [action for (source, action) in self.transitions if source == state]

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def transition(
            self,
            state: enum.Enum,
            action: LifecycleAction,
            instrument_id: int | None = None,
    ) -> TransitionOutcome:
        """
        Resolve an action against the table.

        Raises:
            InvalidStateTransition: The pair is neither a transition nor a no-op
        """
        target = self.transitions.get((state, action))
        if target is not None:
            return TransitionOutcome(source=state, target=target)

        if (state, action) in self.noops:
            logger.debug(f"{self.instrument_class} {instrument_id}: '{action.value}' ignored in state '{state.value}'")
            return TransitionOutcome(source=state, target=state, applied=False)

        logger.warning(
            f"Rejected {self.instrument_class} {instrument_id}: '{action.value}' from state '{state.value}'"
        )
        raise InvalidStateTransition(
            instrument_class=self.instrument_class,
            state=state.value,
            action=action.value,
            instrument_id=instrument_id,
        )

    def require(
            self,
            state: enum.Enum,
            action: LifecycleAction,
            instrument_id: int | None = None,
    ) -> enum.Enum:
        """Shorthand for transition(...).target."""
        return self.transition(state, action, instrument_id).target


# =============================================================================
# TRANSITION TABLES
# =============================================================================

_FD = FixedDepositStatus
FIXED_DEPOSIT_LIFECYCLE = Lifecycle(
    instrument_class="fixed_deposit",
    states=FixedDepositStatus,
    initial=_FD.ONGOING,
    terminal=frozenset({_FD.CLOSED}),
    transitions={
        (_FD.ONGOING, LifecycleAction.EDIT): _FD.ONGOING,
        (_FD.ONGOING, LifecycleAction.CLOSE): _FD.CLOSED,
        (_FD.CLOSED, LifecycleAction.AMEND_CLOSED): _FD.CLOSED,
    },
    terminal_amendments=frozenset({LifecycleAction.AMEND_CLOSED}),
)

_SIP = SipStatus
SIP_LIFECYCLE = Lifecycle(
    instrument_class="sip",
    states=SipStatus,
    initial=_SIP.ONGOING,
    terminal=frozenset({_SIP.REDEEMED}),
    transitions={
        (_SIP.ONGOING, LifecycleAction.EDIT): _SIP.ONGOING,
        (_SIP.ONGOING, LifecycleAction.INSTALLMENT): _SIP.ONGOING,
        (_SIP.ONGOING, LifecycleAction.NAV_UPDATE): _SIP.ONGOING,
        (_SIP.ONGOING, LifecycleAction.SET_UNITS): _SIP.ONGOING,
        (_SIP.ONGOING, LifecycleAction.PAUSE): _SIP.PAUSED,
        (_SIP.ONGOING, LifecycleAction.REDEEM): _SIP.REDEEMED,
        (_SIP.PAUSED, LifecycleAction.EDIT): _SIP.PAUSED,
        (_SIP.PAUSED, LifecycleAction.INSTALLMENT): _SIP.PAUSED,  # lumpsum top-ups
        (_SIP.PAUSED, LifecycleAction.NAV_UPDATE): _SIP.PAUSED,
        (_SIP.PAUSED, LifecycleAction.SET_UNITS): _SIP.PAUSED,
        (_SIP.PAUSED, LifecycleAction.RESUME): _SIP.ONGOING,
        (_SIP.PAUSED, LifecycleAction.REDEEM): _SIP.REDEEMED,
    },
)

_RD = RecurringDepositStatus
RECURRING_DEPOSIT_LIFECYCLE = Lifecycle(
    instrument_class="recurring_deposit",
    states=RecurringDepositStatus,
    initial=_RD.ONGOING,
    terminal=frozenset({_RD.CLOSED}),
    transitions={
        (_RD.ONGOING, LifecycleAction.EDIT): _RD.ONGOING,
        (_RD.ONGOING, LifecycleAction.PAY_INSTALLMENT): _RD.ONGOING,
        (_RD.ONGOING, LifecycleAction.COMPLETE): _RD.COMPLETED,
        (_RD.ONGOING, LifecycleAction.CLOSE): _RD.CLOSED,
        (_RD.COMPLETED, LifecycleAction.EDIT): _RD.COMPLETED,
        (_RD.COMPLETED, LifecycleAction.CLOSE): _RD.CLOSED,
    },
)

_POS = PositionStatus
POSITION_LIFECYCLE = Lifecycle(
    instrument_class="position",
    states=PositionStatus,
    initial=_POS.HOLDING,
    terminal=frozenset({_POS.SOLD}),
    transitions={
        (_POS.HOLDING, LifecycleAction.EDIT): _POS.HOLDING,
        (_POS.HOLDING, LifecycleAction.PRICE_REFRESH): _POS.HOLDING,
        (_POS.HOLDING, LifecycleAction.SELL): _POS.SOLD,
    },
    noops=frozenset({(_POS.SOLD, LifecycleAction.PRICE_REFRESH)}),
)


def settle_recurring_deposit(
        state: RecurringDepositStatus,
        installments_paid: int,
        total_installments: int,
        instrument_id: int | None = None,
) -> RecurringDepositStatus:
    """
    Apply the automatic ONGOING -> COMPLETED transition once every installment is paid.

    Any other state is returned unchanged.
    """
    if state == _RD.ONGOING and installments_paid >= total_installments:
        return RECURRING_DEPOSIT_LIFECYCLE.require(state, LifecycleAction.COMPLETE, instrument_id)
    return state


__all__ = [
    "LifecycleAction",
    "Lifecycle",
    "TransitionOutcome",
    "FIXED_DEPOSIT_LIFECYCLE",
    "SIP_LIFECYCLE",
    "RECURRING_DEPOSIT_LIFECYCLE",
    "POSITION_LIFECYCLE",
    "settle_recurring_deposit",
]
