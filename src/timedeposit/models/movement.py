"""Append-only record linking an investment action to a ledger transaction."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Optional

from sqlmodel import Field, SQLModel

from .investment import _new_id, _utcnow


class MovementType(str, Enum):
    OPENING = "OPENING"
    INTEREST_PAYMENT = "INTEREST_PAYMENT"
    MATURITY_PAYOUT = "MATURITY_PAYOUT"
    CANCELLATION = "CANCELLATION"
    RENEWAL = "RENEWAL"


class Movement(SQLModel, table=True):
    """Created once per settlement action and never mutated."""

    __tablename__: ClassVar[str] = "movement"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=32)
    investment_id: str = Field(foreign_key="investment.id", nullable=False, index=True, max_length=32)
    # Null when the action moved no money (e.g. a zero-interest renewal).
    transaction_id: Optional[str] = Field(default=None, index=True, max_length=32)
    movement_type: MovementType = Field(nullable=False)
    amount: Decimal = Field(default=Decimal("0"), nullable=False, max_digits=14, decimal_places=2)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "investment_id": self.investment_id,
            "transaction_id": self.transaction_id,
            "movement_type": self.movement_type.value,
            "amount": f"{self.amount:.2f}",
            "created_at": self.created_at.isoformat(),
        }
