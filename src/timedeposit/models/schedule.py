"""Schedule (cronograma) entries generated for each investment."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Optional

from sqlmodel import Field, SQLModel

from .investment import _new_id


class ScheduleEventType(str, Enum):
    INTEREST_PAYMENT = "INTEREST_PAYMENT"
    CAPITAL_RETURN = "CAPITAL_RETURN"


class ScheduleEntryState(str, Enum):
    PENDING = "PENDING"
    SETTLED = "SETTLED"
    CANCELED = "CANCELED"


class ScheduleEntry(SQLModel, table=True):
    """One future interest or capital event of an investment."""

    __tablename__: ClassVar[str] = "schedule_entry"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=32)
    investment_id: str = Field(foreign_key="investment.id", nullable=False, index=True, max_length=32)
    sequence: int = Field(nullable=False)
    event_type: ScheduleEventType = Field(nullable=False)
    scheduled_date: date = Field(nullable=False, index=True)
    scheduled_amount: Decimal = Field(nullable=False, max_digits=14, decimal_places=2)
    state: ScheduleEntryState = Field(
        default=ScheduleEntryState.PENDING, nullable=False, index=True
    )
    settled_at: Optional[datetime] = Field(default=None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "investment_id": self.investment_id,
            "sequence": self.sequence,
            "event_type": self.event_type.value,
            "scheduled_date": self.scheduled_date.isoformat(),
            "scheduled_amount": f"{self.scheduled_amount:.2f}",
            "state": self.state.value,
            "settled_at": self.settled_at.isoformat() if self.settled_at else None,
        }
