"""Bundles one session with the repositories and ledger bound to it."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..domain.repositories import (
    InvestmentRepository,
    Ledger,
    MovementRepository,
    ScheduleRepository,
)
from ..errors import InfrastructureError
from ..infra.database import SessionFactory
from ..infra.ledger import SQLModelLedger
from ..infra.repositories import (
    SQLModelInvestmentRepository,
    SQLModelMovementRepository,
    SQLModelScheduleRepository,
)

LedgerFactory = Callable[[Session], Ledger]


@dataclass(slots=True)
class UnitOfWork:
    session: Session
    investments: InvestmentRepository
    schedule: ScheduleRepository
    movements: MovementRepository
    ledger: Ledger


class UnitOfWorkFactory:
    """Opens one transaction per ``with`` block; SQLAlchemy failures surface as InfrastructureError."""

    def __init__(self, session_factory: SessionFactory, ledger_factory: LedgerFactory = SQLModelLedger):
        self.session_factory = session_factory
        self.ledger_factory = ledger_factory

    @contextmanager
    def __call__(self) -> Iterator[UnitOfWork]:
        try:
            with self.session_factory() as session:
                yield UnitOfWork(
                    session=session,
                    investments=SQLModelInvestmentRepository(session),
                    schedule=SQLModelScheduleRepository(session),
                    movements=SQLModelMovementRepository(session),
                    ledger=self.ledger_factory(session),
                )
        except SQLAlchemyError as exc:
            raise InfrastructureError(f"Persistence failure: {exc.__class__.__name__}") from exc
