"""SQLModel implementation of the investment repository."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, select

from ...models.investment import Investment, InvestmentState, Product


class SQLModelInvestmentRepository:
    """Investment repository bound to the caller's session (one unit of work)."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, investment_id: str) -> Optional[Investment]:
        return self.session.get(Investment, investment_id)

    def add(self, investment: Investment) -> Investment:
        self.session.add(investment)
        self.session.flush()
        return investment

    def save(self, investment: Investment) -> Investment:
        investment.updated_at = datetime.now(timezone.utc)
        self.session.add(investment)
        self.session.flush()
        return investment

    def find(
        self,
        *,
        account_id: Optional[str] = None,
        state: Optional[InvestmentState] = None,
        product: Optional[Product] = None,
    ) -> list[Investment]:
        statement = select(Investment)
        if account_id is not None:
            statement = statement.where(Investment.account_id == account_id)
        if state is not None:
            statement = statement.where(Investment.state == state)
        if product is not None:
            statement = statement.where(Investment.product == product)
        statement = statement.order_by(
            Investment.open_date.desc(), Investment.created_at.desc()  # type: ignore
        )
        return list(self.session.exec(statement).all())

    def find_matured(self, as_of: date) -> list[Investment]:
        statement = (
            select(Investment)
            .where(Investment.state == InvestmentState.ACTIVE)
            .where(Investment.maturity_date <= as_of)
            .order_by(Investment.maturity_date, Investment.id)  # type: ignore
        )
        return list(self.session.exec(statement).all())

    def find_maturing_between(self, start: date, end: date) -> list[Investment]:
        statement = (
            select(Investment)
            .where(Investment.state == InvestmentState.ACTIVE)
            .where(Investment.maturity_date >= start)
            .where(Investment.maturity_date <= end)
            .order_by(Investment.maturity_date)  # type: ignore
        )
        return list(self.session.exec(statement).all())

    def transition(
        self, investment_id: str, expected: InvestmentState, new_state: InvestmentState
    ) -> bool:
        statement = (
            update(Investment)
            .where(Investment.id == investment_id)  # type: ignore
            .where(Investment.state == expected)  # type: ignore
            .values(state=new_state, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.exec(statement)  # type: ignore[call-overload]
        return result.rowcount == 1
