"""SQLModel implementation of the movement repository."""

from __future__ import annotations

from sqlmodel import Session, select

from ...models.movement import Movement


class SQLModelMovementRepository:
    def __init__(self, session: Session):
        self.session = session

    def add(self, movement: Movement) -> Movement:
        self.session.add(movement)
        self.session.flush()
        return movement

    def list_for(self, investment_id: str) -> list[Movement]:
        statement = (
            select(Movement)
            .where(Movement.investment_id == investment_id)
            .order_by(Movement.created_at, Movement.id)  # type: ignore
        )
        return list(self.session.exec(statement).all())
