from __future__ import annotations


def test_rates_command_prints_table(app):
    result = app.test_cli_runner().invoke(args=["deposits-rates"])
    assert result.exit_code == 0
    assert "31-60 days" in result.output
    assert "Fallback: 2.50%" in result.output


def test_seed_then_settle(app):
    runner = app.test_cli_runner()

    seeded = runner.invoke(args=["deposits-seed-demo", "--holder", "CLI Holder"])
    assert seeded.exit_code == 0, seeded.output
    assert seeded.output.count("Opened ") == 3
    assert "Demo account:" in seeded.output

    settled = runner.invoke(args=["deposits-settle"])
    assert settled.exit_code == 0, settled.output
    assert "1 processed" in settled.output
    assert "MATURED" in settled.output

    again = runner.invoke(args=["deposits-settle"])
    assert "0 processed" in again.output


def test_settle_with_as_of_and_upcoming(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["deposits-settle", "--as-of", "2026-02-05"])
    assert result.exit_code == 0
    assert "as of 2026-02-05" in result.output

    upcoming = runner.invoke(args=["deposits-upcoming", "--days", "3"])
    assert upcoming.exit_code == 0
    assert "No deposits maturing" in upcoming.output
