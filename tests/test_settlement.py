from __future__ import annotations

import itertools
from datetime import date
from decimal import Decimal

import pytest
from sqlmodel import SQLModel

from timedeposit.context import create_app_context
from timedeposit.errors import (
    InfrastructureError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from timedeposit.infra.ledger import SQLModelLedger
from timedeposit.models import InvestmentState, MovementType, ScheduleEntryState
from timedeposit.services.settlement import SettlementRunner

MATURITY = date(2026, 2, 5)  # 2026-01-05 + 31 days


def test_find_due_splits_maturities_and_interim_interest(ctx, open_investment):
    due_now = open_investment(term_days=31)
    monthly = open_investment(term_days=90, modality="MONTHLY")
    open_investment(term_days=180)

    due = ctx.settlement.find_due(MATURITY)

    assert [i.id for i in due.maturities] == [due_now.id]
    assert [e.investment_id for e in due.interest_entries] == [monthly.id]
    assert len(due) == 2


def test_run_matures_and_pays_principal_plus_interest(ctx, account_factory, balance_of):
    account_id = account_factory("10000")
    investment = ctx.lifecycle.create(account_id, "1000", 31, "AT_MATURITY")

    summary = ctx.settlement.run(MATURITY)

    assert [item.investment_id for item in summary.processed] == [investment.id]
    item = summary.processed[0]
    # 1000 * 0.0265 * 31 / 360 = 2.28
    assert item.amount == Decimal("1002.28")
    assert item.action == "MATURED"
    assert item.maturity_date == MATURITY
    assert summary.failed == [] and summary.skipped == [] and summary.deferred == []
    assert ctx.lifecycle.get(investment.id).state is InvestmentState.MATURED
    assert balance_of(account_id) == Decimal("10002.28")
    entries = ctx.lifecycle.schedule(investment.id)
    assert all(e.state is ScheduleEntryState.SETTLED for e in entries)
    assert all(e.settled_at is not None for e in entries)


def test_nothing_due_before_maturity(ctx, open_investment):
    open_investment(term_days=31)
    summary = ctx.settlement.run(date(2026, 2, 4))
    assert summary.total == 0


def test_settle_one_is_idempotent(ctx, account_factory, balance_of):
    account_id = account_factory("10000")
    investment = ctx.lifecycle.create(account_id, "1000", 31, "AT_MATURITY")

    first = ctx.settlement.settle_one(investment.id)
    second = ctx.settlement.settle_one(investment.id)

    assert first is not None
    assert second is None
    payouts = [
        m for m in ctx.lifecycle.movements(investment.id)
        if m.movement_type is MovementType.MATURITY_PAYOUT
    ]
    assert len(payouts) == 1
    assert balance_of(account_id) == Decimal("10002.28")


def test_repeated_runs_do_not_double_pay(ctx, account_factory, balance_of):
    account_id = account_factory("10000")
    ctx.lifecycle.create(account_id, "1000", 31, "AT_MATURITY")

    ctx.settlement.run(MATURITY)
    again = ctx.settlement.run(MATURITY)

    assert again.total == 0
    assert balance_of(account_id) == Decimal("10002.28")


def test_stale_due_set_items_are_skipped(ctx, open_investment, monkeypatch):
    investment = open_investment(term_days=31)
    stale = ctx.settlement.find_due(MATURITY)
    ctx.settlement.settle_one(investment.id)

    monkeypatch.setattr(ctx.settlement, "find_due", lambda as_of: stale)
    summary = ctx.settlement.run(MATURITY)

    assert summary.processed == []
    assert summary.skipped == [investment.id]


class FailingLedger(SQLModelLedger):
    failing_accounts: set[str] = set()

    def credit(self, account_id, amount, memo):
        if account_id in self.failing_accounts:
            raise InfrastructureError("ledger unavailable", account_id=account_id)
        return super().credit(account_id, amount, memo)


@pytest.fixture()
def failing_ctx(config, today):
    FailingLedger.failing_accounts = set()
    context = create_app_context(config, ledger_factory=FailingLedger, today=today)
    yield context
    context.engine.dispose()


def _open_on_new_account(context, balance="10000", **kwargs):
    with context.units() as uow:
        account = SQLModelLedger(uow.session).open_account("Batch", balance=Decimal(balance))
    return context.lifecycle.create(
        account.id,
        kwargs.get("principal", "1000"),
        kwargs.get("term_days", 31),
        kwargs.get("modality", "AT_MATURITY"),
        kwargs.get("auto_renew", False),
    )


def test_one_failure_does_not_abort_the_run(failing_ctx):
    investments = [_open_on_new_account(failing_ctx) for _ in range(4)]
    broken = investments[2]
    FailingLedger.failing_accounts = {broken.account_id}

    summary = failing_ctx.settlement.run(MATURITY)

    assert len(summary.processed) == 3
    assert len(summary.failed) == 1
    failure = summary.failed[0]
    assert failure.investment_id == broken.id
    assert failure.error_kind == "infrastructure"
    assert failing_ctx.lifecycle.get(broken.id).state is InvestmentState.ACTIVE
    assert all(
        e.state is ScheduleEntryState.PENDING for e in failing_ctx.lifecycle.schedule(broken.id)
    )
    assert [m.movement_type for m in failing_ctx.lifecycle.movements(broken.id)] == [
        MovementType.OPENING
    ]

    # The next run picks the failed item up once the ledger recovers.
    FailingLedger.failing_accounts = set()
    retry = failing_ctx.settlement.run(MATURITY)
    assert [item.investment_id for item in retry.processed] == [broken.id]


def test_find_due_failure_aborts_the_run(ctx):
    SQLModel.metadata.drop_all(ctx.engine)
    with pytest.raises(InfrastructureError):
        ctx.settlement.run(MATURITY)


def test_auto_renew_opens_successor(ctx, account_factory, balance_of):
    account_id = account_factory("10000")
    original = ctx.lifecycle.create(account_id, "1000", 31, "AT_MATURITY", True)

    summary = ctx.settlement.run(MATURITY)

    item = summary.processed[0]
    assert item.action == "RENEWED"
    assert item.amount == Decimal("2.28")
    assert ctx.lifecycle.get(original.id).state is InvestmentState.RENEWED
    assert balance_of(account_id) == Decimal("9002.28")

    successor = ctx.lifecycle.get(item.renewed_into)
    assert successor.state is InvestmentState.ACTIVE
    assert successor.renewed_from_id == original.id
    assert successor.open_date == MATURITY
    assert successor.maturity_date == date(2026, 3, 9)  # 2026-03-08 is a Sunday
    assert successor.principal == Decimal("1000.00")
    assert successor.auto_renew is True
    opening = ctx.lifecycle.movements(successor.id)
    assert [m.movement_type for m in opening] == [MovementType.OPENING]
    assert opening[0].transaction_id is None
    assert [m.movement_type for m in ctx.lifecycle.movements(original.id)] == [
        MovementType.OPENING,
        MovementType.RENEWAL,
    ]


def test_interim_interest_then_maturity(ctx, account_factory, balance_of):
    account_id = account_factory("10000")
    investment = ctx.lifecycle.create(account_id, "1000", 90, "MONTHLY")

    first = ctx.settlement.run(date(2026, 2, 5))
    assert [(i.action, i.amount) for i in first.processed] == [("INTEREST_PAID", Decimal("2.37"))]
    assert ctx.lifecycle.get(investment.id).state is InvestmentState.ACTIVE
    assert balance_of(account_id) == Decimal("9002.37")

    assert ctx.settlement.run(date(2026, 2, 5)).total == 0

    final = ctx.settlement.run(date(2026, 4, 6))
    assert [(i.action, i.amount) for i in final.processed] == [("MATURED", Decimal("1004.76"))]
    # 9000 + total interest 7.13 + principal
    assert balance_of(account_id) == Decimal("10007.13")
    interest_movements = [
        m for m in ctx.lifecycle.movements(investment.id)
        if m.movement_type is MovementType.INTEREST_PAYMENT
    ]
    assert len(interest_movements) == 1


def test_settle_entry_logs_and_is_idempotent(ctx, open_investment, caplog):
    investment = open_investment(term_days=90, modality="MONTHLY")
    entry = ctx.settlement.find_due(date(2026, 2, 5)).interest_entries[0]

    with caplog.at_level("INFO", logger="timedeposit"):
        item = ctx.settlement.settle_entry(entry.id)

    assert item.entry_id == entry.id
    assert ctx.settlement.settle_entry(entry.id) is None
    assert ctx.settlement.settle_entry("missing") is None
    paid = [r for r in caplog.records if r.getMessage() == "Interest paid"]
    assert len(paid) == 1
    assert paid[0].investment_id == investment.id
    assert paid[0].entry_id == entry.id

    with ctx.units() as uow:
        assert uow.schedule.get(entry.id).state is ScheduleEntryState.SETTLED
        assert uow.schedule.get("missing") is None


def test_deadline_defers_unstarted_items(ctx, open_investment):
    first = open_investment()
    second = open_investment()
    ticks = itertools.count(0, 10)
    runner = SettlementRunner(
        ctx.units,
        ctx.calculator,
        ctx.lifecycle,
        today=ctx.lifecycle.today,
        clock=lambda: next(ticks),
    )

    summary = runner.run(MATURITY, deadline=15)

    assert len(summary.processed) == 1
    assert len(summary.deferred) == 1
    assert {summary.processed[0].investment_id, summary.deferred[0]} == {first.id, second.id}
    deferred = ctx.lifecycle.get(summary.deferred[0])
    assert deferred.state is InvestmentState.ACTIVE


def test_worker_pool_settles_everything(ctx, open_investment):
    investments = [open_investment() for _ in range(3)]
    runner = SettlementRunner(
        ctx.units, ctx.calculator, ctx.lifecycle, workers=2, today=ctx.lifecycle.today
    )

    summary = runner.run(MATURITY)

    assert sorted(item.investment_id for item in summary.processed) == sorted(
        i.id for i in investments
    )
    assert summary.failed == []


def test_settle_now_settles_before_maturity(ctx, open_investment, caplog):
    investment = open_investment(term_days=180)

    with caplog.at_level("WARNING", logger="timedeposit"):
        item = ctx.settlement.settle_now(investment.id)

    assert item.action == "MATURED"
    assert ctx.lifecycle.get(investment.id).state is InvestmentState.MATURED
    assert any("before maturity" in record.getMessage() for record in caplog.records)


def test_settle_now_errors(ctx, open_investment):
    with pytest.raises(NotFoundError):
        ctx.settlement.settle_now("missing")
    investment = open_investment()
    ctx.lifecycle.cancel(investment.id)
    with pytest.raises(InvalidStateError):
        ctx.settlement.settle_now(investment.id)


def test_upcoming_lists_maturities_within_window(ctx, open_investment):
    soon = open_investment(term_days=31)
    open_investment(term_days=180)

    rows = ctx.settlement.upcoming(days=7, today=date(2026, 2, 1))

    assert [row["id"] for row in rows] == [soon.id]
    assert rows[0]["estimated_interest"] == "2.28"
    assert rows[0]["total_payout"] == "1002.28"
    assert rows[0]["days_remaining"] == 4


def test_upcoming_rejects_windows_beyond_the_longest_term(ctx):
    with pytest.raises(ValidationError) as excinfo:
        ctx.settlement.upcoming(days=ctx.config.MAX_TERM_DAYS + 1)
    assert excinfo.value.details["field"] == "days"
    assert ctx.settlement.upcoming(days=ctx.config.MAX_TERM_DAYS) == []
    with pytest.raises(ValidationError):
        ctx.settlement.upcoming(days=-1)


def test_run_summary_serializes(ctx, open_investment):
    open_investment()
    payload = ctx.settlement.run(MATURITY).to_dict()
    assert payload["as_of"] == "2026-02-05"
    assert payload["processed"][0]["amount"] == "1002.28"
    assert payload["total"] == 1
