"""Movement repository protocol."""

from __future__ import annotations

from typing import Protocol

from ...models.movement import Movement


class MovementRepository(Protocol):
    def add(self, movement: Movement) -> Movement:
        """Append a movement; movements are never updated."""
        ...

    def list_for(self, investment_id: str) -> list[Movement]:
        ...
