"""Investment repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ...models.investment import Investment, InvestmentState, Product


class InvestmentRepository(Protocol):
    """Repository for time-deposit contracts."""

    def get(self, investment_id: str) -> Optional[Investment]:
        """Retrieve an investment by ID."""
        ...

    def add(self, investment: Investment) -> Investment:
        """Persist a new investment."""
        ...

    def save(self, investment: Investment) -> Investment:
        """Persist changes to non-state attributes of an investment."""
        ...

    def find(
        self,
        *,
        account_id: Optional[str] = None,
        state: Optional[InvestmentState] = None,
        product: Optional[Product] = None,
    ) -> list[Investment]:
        """List investments matching the filters, newest opening first."""
        ...

    def find_matured(self, as_of: date) -> list[Investment]:
        """ACTIVE investments whose maturity date is on or before ``as_of``."""
        ...

    def find_maturing_between(self, start: date, end: date) -> list[Investment]:
        """ACTIVE investments maturing within ``[start, end]``."""
        ...

    def transition(
        self, investment_id: str, expected: InvestmentState, new_state: InvestmentState
    ) -> bool:
        """Compare-and-set the state; False when the stored state differs from ``expected``."""
        ...
