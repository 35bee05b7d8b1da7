"""Shared fixtures: an isolated SQLite database per test and a wired AppContext."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from timedeposit import create_app
from timedeposit.config import TestConfig
from timedeposit.context import create_app_context
from timedeposit.infra.ledger import SQLModelLedger

TODAY = date(2026, 1, 5)  # a Monday


class FixedToday:
    """Callable standing in for ``date.today`` that tests can move forward."""

    def __init__(self, value: date = TODAY):
        self.value = value

    def __call__(self) -> date:
        return self.value


@pytest.fixture()
def config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestConfig:
    monkeypatch.setenv("TIMEDEPOSIT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TIMEDEPOSIT_DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    return TestConfig()


@pytest.fixture()
def today() -> FixedToday:
    return FixedToday()


@pytest.fixture()
def ctx(config, today):
    context = create_app_context(config, today=today)
    yield context
    context.engine.dispose()


@pytest.fixture()
def account_factory(ctx):
    """Open ledger accounts with a starting balance."""

    def _create(balance: str = "10000", holder: str = "Tester") -> str:
        with ctx.units() as uow:
            account = SQLModelLedger(uow.session).open_account(holder, balance=Decimal(balance))
            return account.id

    return _create


@pytest.fixture()
def balance_of(ctx):
    def _balance(account_id: str) -> Decimal:
        with ctx.units() as uow:
            return uow.ledger.get_balance(account_id)

    return _balance


@pytest.fixture()
def open_investment(ctx, account_factory):
    """Open a deposit on a fresh account unless one is given."""

    def _open(
        principal: str = "1000",
        term_days: int = 31,
        modality: str = "AT_MATURITY",
        auto_renew: bool = False,
        account_id: str | None = None,
        open_date: date | None = None,
    ):
        account_id = account_id or account_factory()
        return ctx.lifecycle.create(
            account_id, principal, term_days, modality, auto_renew, open_date=open_date
        )

    return _open


@pytest.fixture()
def app(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, today: FixedToday):
    monkeypatch.setenv("TIMEDEPOSIT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TIMEDEPOSIT_DATABASE_URL", f"sqlite:///{tmp_path / 'app.db'}")
    application = create_app("testing", today=today)
    yield application
    application.extensions["timedeposit"].engine.dispose()


@pytest.fixture()
def client(app):
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture()
def app_account(app):
    """A funded account inside the Flask app's database."""

    ctx = app.extensions["timedeposit"]
    with ctx.units() as uow:
        account = SQLModelLedger(uow.session).open_account("Route Tester", balance=Decimal("50000"))
        return account.id
