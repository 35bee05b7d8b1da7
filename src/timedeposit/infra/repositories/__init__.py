"""Concrete repository implementations using SQLModel."""

from .investment import SQLModelInvestmentRepository
from .movement import SQLModelMovementRepository
from .schedule import SQLModelScheduleRepository

__all__ = [
    "SQLModelInvestmentRepository",
    "SQLModelMovementRepository",
    "SQLModelScheduleRepository",
]
