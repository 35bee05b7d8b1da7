"""Batch settlement of matured deposits and interim interest payments."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Optional

from ..errors import DepositError, InvalidStateError, NotFoundError, ValidationError, error_kind
from ..logging_config import get_logger
from ..models.investment import Investment, InvestmentState
from ..models.movement import Movement, MovementType
from ..models.schedule import ScheduleEntry, ScheduleEntryState
from .calculator import InterestCalculator
from .lifecycle import InvestmentLifecycle
from .unit_of_work import UnitOfWorkFactory

logger = get_logger("settlement")

ACTION_MATURED = "MATURED"
ACTION_RENEWED = "RENEWED"
ACTION_INTEREST = "INTEREST_PAID"


@dataclass(slots=True)
class DueSet:
    maturities: list[Investment] = field(default_factory=list)
    interest_entries: list[ScheduleEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.maturities) + len(self.interest_entries)


@dataclass(slots=True)
class SettledItem:
    investment_id: str
    amount: Decimal
    maturity_date: date
    action: str
    transaction_id: Optional[str] = None
    entry_id: Optional[str] = None
    renewed_into: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["amount"] = f"{self.amount:.2f}"
        payload["maturity_date"] = self.maturity_date.isoformat()
        return payload


@dataclass(slots=True)
class FailedItem:
    investment_id: str
    error_kind: str
    message: str
    entry_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SettlementRun:
    triggered_at: datetime
    as_of: date
    processed: list[SettledItem] = field(default_factory=list)
    failed: list[FailedItem] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    deferred: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.processed) + len(self.failed) + len(self.skipped) + len(self.deferred)

    def to_dict(self) -> dict[str, Any]:
        return {
            "triggered_at": self.triggered_at.isoformat(),
            "as_of": self.as_of.isoformat(),
            "processed": [item.to_dict() for item in self.processed],
            "failed": [item.to_dict() for item in self.failed],
            "skipped": list(self.skipped),
            "deferred": list(self.deferred),
            "total": self.total,
        }


@dataclass(slots=True)
class _Task:
    kind: str  # "maturity" or "interest"
    investment_id: str
    entry_id: Optional[str] = None


@dataclass(slots=True)
class _Outcome:
    task: _Task
    item: Optional[SettledItem] = None
    error: Optional[FailedItem] = None
    deferred: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SettlementRunner:
    """Settles whatever is due as of a date.

    ``run`` is stateless and safe to invoke concurrently or repeatedly: every
    item re-reads its row and flips state with a compare-and-set in the same
    transaction as the ledger credit, so an item already handled by another
    run becomes a skip instead of a second payout.
    """

    def __init__(
        self,
        units: UnitOfWorkFactory,
        calculator: InterestCalculator,
        lifecycle: InvestmentLifecycle,
        *,
        workers: int = 1,
        deadline_seconds: Optional[float] = None,
        horizon_days: int = 1800,
        today: Callable[[], date] = date.today,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.units = units
        self.calculator = calculator
        self.lifecycle = lifecycle
        self.workers = max(1, workers)
        self.deadline_seconds = deadline_seconds
        self.horizon_days = horizon_days
        self.today = today
        self.clock = clock

    def find_due(self, as_of: date) -> DueSet:
        with self.units() as uow:
            return DueSet(
                maturities=uow.investments.find_matured(as_of),
                interest_entries=uow.schedule.find_due_interest(as_of),
            )

    def settle_one(self, investment_id: str) -> Optional[SettledItem]:
        """Pay out or renew one investment; None when it is no longer ACTIVE."""

        with self.units() as uow:
            investment = uow.investments.get(investment_id)
            if investment is None or investment.state is not InvestmentState.ACTIVE:
                return None
            renew = investment.auto_renew
            target = InvestmentState.RENEWED if renew else InvestmentState.MATURED
            if not uow.investments.transition(investment_id, InvestmentState.ACTIVE, target):
                return None

            principal = Decimal(investment.principal)
            total_interest = self.calculator.interest(
                principal, investment.annual_rate, investment.term_days
            )
            paid = uow.schedule.settled_interest(investment_id)
            remaining = max(Decimal("0"), total_interest - paid)
            payout = remaining if renew else remaining + principal

            transaction_id = None
            if payout > 0:
                memo = "Time deposit renewal interest" if renew else "Time deposit maturity"
                transaction_id = uow.ledger.credit(
                    investment.account_id, payout, f"{memo} {investment_id}"
                )
            uow.schedule.close_pending(investment_id, ScheduleEntryState.SETTLED, _utcnow())
            uow.movements.add(
                Movement(
                    investment_id=investment_id,
                    transaction_id=transaction_id,
                    movement_type=MovementType.RENEWAL if renew else MovementType.MATURITY_PAYOUT,
                    amount=payout,
                )
            )

            renewed_into = None
            if renew:
                successor = self.lifecycle.open_contract(
                    uow,
                    account_id=investment.account_id,
                    principal=principal,
                    term_days=investment.term_days,
                    modality=investment.interest_modality,
                    auto_renew=True,
                    product=investment.product,
                    open_date=investment.maturity_date,
                    renewed_from_id=investment_id,
                )
                renewed_into = successor.id

        logger.info(
            "Investment settled",
            extra={
                "investment_id": investment_id,
                "action": target.value,
                "amount": str(payout),
                "renewed_into": renewed_into,
            },
        )
        return SettledItem(
            investment_id=investment_id,
            amount=payout,
            maturity_date=investment.maturity_date,
            action=ACTION_RENEWED if renew else ACTION_MATURED,
            transaction_id=transaction_id,
            renewed_into=renewed_into,
        )

    def settle_entry(self, entry_id: str) -> Optional[SettledItem]:
        """Pay one interim interest entry; None when it was already handled."""

        with self.units() as uow:
            entry = uow.schedule.get(entry_id)
            if entry is None or entry.state is not ScheduleEntryState.PENDING:
                return None
            investment = uow.investments.get(entry.investment_id)
            if investment is None or investment.state is not InvestmentState.ACTIVE:
                return None
            if not uow.schedule.mark_settled(entry_id, _utcnow()):
                return None

            amount = Decimal(entry.scheduled_amount)
            transaction_id = None
            if amount > 0:
                transaction_id = uow.ledger.credit(
                    investment.account_id, amount, f"Time deposit interest {investment.id}"
                )
            uow.movements.add(
                Movement(
                    investment_id=investment.id,
                    transaction_id=transaction_id,
                    movement_type=MovementType.INTEREST_PAYMENT,
                    amount=amount,
                )
            )
        logger.info(
            "Interest paid",
            extra={
                "investment_id": investment.id,
                "entry_id": entry_id,
                "amount": str(amount),
            },
        )
        return SettledItem(
            investment_id=investment.id,
            amount=amount,
            maturity_date=investment.maturity_date,
            action=ACTION_INTEREST,
            transaction_id=transaction_id,
            entry_id=entry_id,
        )

    def _execute(self, task: _Task, started: float, deadline: Optional[float]) -> _Outcome:
        if deadline is not None and self.clock() - started >= deadline:
            return _Outcome(task=task, deferred=True)
        try:
            if task.kind == "maturity":
                item = self.settle_one(task.investment_id)
            else:
                item = self.settle_entry(task.entry_id or "")
        except Exception as exc:
            logger.error(
                "Settlement item failed",
                exc_info=True,
                extra={
                    "investment_id": task.investment_id,
                    "entry_id": task.entry_id,
                    "error_kind": error_kind(exc),
                },
            )
            message = exc.message if isinstance(exc, DepositError) else str(exc)
            return _Outcome(
                task=task,
                error=FailedItem(
                    investment_id=task.investment_id,
                    error_kind=error_kind(exc),
                    message=message,
                    entry_id=task.entry_id,
                ),
            )
        return _Outcome(task=task, item=item)

    def run(self, as_of: Optional[date] = None, deadline: Optional[float] = None) -> SettlementRun:
        """Settle everything due as of ``as_of``; only a failed due-set fetch raises."""

        as_of = as_of or self.today()
        deadline = deadline if deadline is not None else self.deadline_seconds
        started = self.clock()
        summary = SettlementRun(triggered_at=_utcnow(), as_of=as_of)

        due = self.find_due(as_of)
        tasks = [_Task("maturity", investment.id) for investment in due.maturities]
        tasks.extend(
            _Task("interest", entry.investment_id, entry.id) for entry in due.interest_entries
        )

        if self.workers > 1 and len(tasks) > 1:
            with ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="settlement"
            ) as pool:
                futures = [
                    pool.submit(self._execute, task, started, deadline) for task in tasks
                ]
                outcomes = [future.result() for future in futures]
        else:
            outcomes = [self._execute(task, started, deadline) for task in tasks]

        for outcome in outcomes:
            key = outcome.task.entry_id or outcome.task.investment_id
            if outcome.deferred:
                summary.deferred.append(key)
            elif outcome.error is not None:
                summary.failed.append(outcome.error)
            elif outcome.item is None:
                summary.skipped.append(key)
            else:
                summary.processed.append(outcome.item)

        logger.info(
            "Settlement run finished",
            extra={
                "as_of": as_of.isoformat(),
                "processed": len(summary.processed),
                "failed": len(summary.failed),
                "skipped": len(summary.skipped),
                "deferred": len(summary.deferred),
                "duration_seconds": round(self.clock() - started, 3),
            },
        )
        return summary

    def settle_now(self, investment_id: str) -> SettledItem:
        """Administrative single-item settlement, ignoring the maturity date."""

        today = self.today()
        with self.units() as uow:
            investment = uow.investments.get(investment_id)
            if investment is None:
                raise NotFoundError(
                    f"Investment {investment_id} not found", investment_id=investment_id
                )
            if investment.state is not InvestmentState.ACTIVE:
                raise InvalidStateError(
                    "Only ACTIVE investments can be settled",
                    investment_id=investment_id,
                    state=investment.state.value,
                )
            early = investment.maturity_date > today
        if early:
            logger.warning(
                "Settling investment before maturity",
                extra={"investment_id": investment_id},
            )
        item = self.settle_one(investment_id)
        if item is None:
            raise InvalidStateError(
                "Investment was settled concurrently", investment_id=investment_id
            )
        return item

    def upcoming(self, days: int = 7, today: Optional[date] = None) -> list[dict[str, Any]]:
        """ACTIVE investments maturing within ``days`` with their projected payout."""

        if days < 0:
            raise ValidationError("days must not be negative", field="days")
        # No contract runs longer than the maximum term, so nothing matures further out.
        if days > self.horizon_days:
            raise ValidationError(
                f"days must be at most {self.horizon_days}", field="days", max_days=self.horizon_days
            )
        start = today or self.today()
        end = date.fromordinal(start.toordinal() + days)
        with self.units() as uow:
            investments = uow.investments.find_maturing_between(start, end)
        results = []
        for investment in investments:
            interest = self.calculator.interest(
                investment.principal, investment.annual_rate, investment.term_days
            )
            payload = investment.to_dict()
            payload.update(
                {
                    "estimated_interest": f"{interest:.2f}",
                    "total_payout": f"{Decimal(investment.principal) + interest:.2f}",
                    "days_remaining": (investment.maturity_date - start).days,
                }
            )
            results.append(payload)
        return results
