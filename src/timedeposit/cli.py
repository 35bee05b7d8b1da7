"""Flask CLI commands for the time-deposit engine."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import click

from .errors import DepositError
from .extensions import get_context
from .infra.ledger import SQLModelLedger
from .models.investment import InterestModality


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("deposits-settle")
    @click.option(
        "--as-of",
        "as_of",
        type=click.DateTime(formats=["%Y-%m-%d"]),
        default=None,
        help="Settle as if today were this date (YYYY-MM-DD).",
    )
    def deposits_settle(as_of) -> None:
        """Run one settlement pass."""

        ctx = get_context()
        try:
            summary = ctx.settlement.run(as_of.date() if as_of else None)
        except DepositError as exc:
            raise click.ClickException(exc.message) from exc

        click.echo(
            f"Settlement as of {summary.as_of.isoformat()}: "
            f"{len(summary.processed)} processed, {len(summary.failed)} failed, "
            f"{len(summary.skipped)} skipped, {len(summary.deferred)} deferred"
        )
        for item in summary.processed:
            click.echo(f"  {item.action:<13} {item.investment_id} {item.amount:>14.2f}")
        for failure in summary.failed:
            click.echo(f"  FAILED        {failure.investment_id} [{failure.error_kind}] {failure.message}")

    @app.cli.command("deposits-upcoming")
    @click.option("--days", default=7, show_default=True, type=int, help="Look-ahead window.")
    def deposits_upcoming(days: int) -> None:
        """List ACTIVE deposits maturing soon."""

        ctx = get_context()
        try:
            rows = ctx.settlement.upcoming(days)
        except DepositError as exc:
            raise click.ClickException(exc.message) from exc
        if not rows:
            click.echo(f"No deposits maturing in the next {days} days.")
            return
        for row in rows:
            click.echo(
                f"{row['maturity_date']}  {row['id']}  principal={row['principal']}  "
                f"interest={row['estimated_interest']}  in {row['days_remaining']}d"
            )

    @app.cli.command("deposits-rates")
    def deposits_rates() -> None:
        """Print the loaded rate table."""

        ctx = get_context()
        for band in ctx.rate_table.bands():
            click.echo(f"{band['term_min_days']}-{band['term_max_days']} days")
            for cell in band["amounts"]:
                upper = cell["amount_max"] or "+"
                click.echo(f"  {cell['amount_min']:>12} - {upper:<12} {cell['rate_percent']}%")
        click.echo(f"Fallback: {ctx.rate_table.fallback_rate * 100:.2f}%")

    @app.cli.command("deposits-seed-demo")
    @click.option("--holder", default="Demo Holder", show_default=True)
    @click.option("--balance", default="250000", show_default=True)
    def deposits_seed_demo(holder: str, balance: str) -> None:
        """Create a funded account with a few deposits, one already due."""

        ctx = get_context()
        with ctx.units() as uow:
            account = SQLModelLedger(uow.session).open_account(holder, balance=Decimal(balance))
        today = ctx.lifecycle.today()
        seeds = [
            ("5000", 31, InterestModality.AT_MATURITY, False, today - timedelta(days=40)),
            ("20000", 180, InterestModality.MONTHLY, False, today),
            ("75000", 365, InterestModality.QUARTERLY, True, today),
        ]
        for principal, term, modality, auto_renew, open_date in seeds:
            investment = ctx.lifecycle.create(
                account.id, principal, term, modality, auto_renew, open_date=open_date
            )
            click.echo(
                f"Opened {investment.id}: {investment.principal} for {term}d "
                f"at {investment.annual_rate * 100:.2f}% maturing {investment.maturity_date}"
            )
        click.echo(f"Demo account: {account.id}")
