"""Schedule entry repository protocol."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Protocol

from ...models.schedule import ScheduleEntry, ScheduleEntryState


class ScheduleRepository(Protocol):
    def get(self, entry_id: str) -> Optional[ScheduleEntry]:
        ...

    def add_all(self, entries: Iterable[ScheduleEntry]) -> list[ScheduleEntry]:
        ...

    def list_for(self, investment_id: str) -> list[ScheduleEntry]:
        """Entries of one investment ordered by date then sequence."""
        ...

    def find_due_interest(self, as_of: date) -> list[ScheduleEntry]:
        """PENDING interim interest entries of ACTIVE, not-yet-matured investments."""
        ...

    def mark_settled(self, entry_id: str, settled_at: datetime) -> bool:
        """Compare-and-set a single entry PENDING -> SETTLED."""
        ...

    def close_pending(
        self,
        investment_id: str,
        new_state: ScheduleEntryState,
        settled_at: datetime | None = None,
    ) -> int:
        """Move every PENDING entry of an investment to ``new_state``."""
        ...

    def settled_interest(self, investment_id: str) -> Decimal:
        """Sum of interest already paid out through settled entries."""
        ...
