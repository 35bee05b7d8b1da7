"""Repository protocol definitions for domain layer."""

from .investment import InvestmentRepository
from .ledger import Ledger
from .movement import MovementRepository
from .schedule import ScheduleRepository

__all__ = [
    "InvestmentRepository",
    "Ledger",
    "MovementRepository",
    "ScheduleRepository",
]
