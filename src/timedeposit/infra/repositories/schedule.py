"""SQLModel implementation of the schedule entry repository."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func, update
from sqlmodel import Session, select

from ...models.investment import Investment, InvestmentState
from ...models.schedule import ScheduleEntry, ScheduleEntryState, ScheduleEventType


class SQLModelScheduleRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, entry_id: str) -> Optional[ScheduleEntry]:
        return self.session.get(ScheduleEntry, entry_id)

    def add_all(self, entries: Iterable[ScheduleEntry]) -> list[ScheduleEntry]:
        items = list(entries)
        self.session.add_all(items)
        self.session.flush()
        return items

    def list_for(self, investment_id: str) -> list[ScheduleEntry]:
        statement = (
            select(ScheduleEntry)
            .where(ScheduleEntry.investment_id == investment_id)
            .order_by(ScheduleEntry.scheduled_date, ScheduleEntry.sequence)  # type: ignore
        )
        return list(self.session.exec(statement).all())

    def find_due_interest(self, as_of: date) -> list[ScheduleEntry]:
        statement = (
            select(ScheduleEntry)
            .join(Investment, Investment.id == ScheduleEntry.investment_id)  # type: ignore
            .where(ScheduleEntry.event_type == ScheduleEventType.INTEREST_PAYMENT)
            .where(ScheduleEntry.state == ScheduleEntryState.PENDING)
            .where(ScheduleEntry.scheduled_date <= as_of)
            .where(Investment.state == InvestmentState.ACTIVE)
            # Maturity settlement pays whatever interest is still pending.
            .where(Investment.maturity_date > as_of)
            .order_by(ScheduleEntry.scheduled_date, ScheduleEntry.sequence)  # type: ignore
        )
        return list(self.session.exec(statement).all())

    def mark_settled(self, entry_id: str, settled_at: datetime) -> bool:
        statement = (
            update(ScheduleEntry)
            .where(ScheduleEntry.id == entry_id)  # type: ignore
            .where(ScheduleEntry.state == ScheduleEntryState.PENDING)  # type: ignore
            .values(state=ScheduleEntryState.SETTLED, settled_at=settled_at)
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.exec(statement)  # type: ignore[call-overload]
        return result.rowcount == 1

    def close_pending(
        self,
        investment_id: str,
        new_state: ScheduleEntryState,
        settled_at: datetime | None = None,
    ) -> int:
        statement = (
            update(ScheduleEntry)
            .where(ScheduleEntry.investment_id == investment_id)  # type: ignore
            .where(ScheduleEntry.state == ScheduleEntryState.PENDING)  # type: ignore
            .values(state=new_state, settled_at=settled_at)
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.exec(statement)  # type: ignore[call-overload]
        return result.rowcount

    def settled_interest(self, investment_id: str) -> Decimal:
        statement = (
            select(func.coalesce(func.sum(ScheduleEntry.scheduled_amount), 0))
            .where(ScheduleEntry.investment_id == investment_id)
            .where(ScheduleEntry.event_type == ScheduleEventType.INTEREST_PAYMENT)
            .where(ScheduleEntry.state == ScheduleEntryState.SETTLED)
        )
        total = self.session.exec(statement).one()
        return Decimal(str(total))
