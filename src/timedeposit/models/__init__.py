"""SQLModel table exports."""

from .account import Account, LedgerTransaction, LedgerTransactionKind
from .investment import (
    ALLOWED_TRANSITIONS,
    InterestModality,
    Investment,
    InvestmentState,
    Product,
)
from .movement import Movement, MovementType
from .schedule import ScheduleEntry, ScheduleEntryState, ScheduleEventType

__all__ = [
    "ALLOWED_TRANSITIONS",
    "Account",
    "InterestModality",
    "Investment",
    "InvestmentState",
    "LedgerTransaction",
    "LedgerTransactionKind",
    "Movement",
    "MovementType",
    "Product",
    "ScheduleEntry",
    "ScheduleEntryState",
    "ScheduleEventType",
]
