"""Simple-interest math and business-day date adjustment."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from ..errors import ValidationError

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """Coerce user input to Decimal, raising ValidationError on garbage."""

    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValidationError(f"{field} must be a number", field=field) from exc
    if not result.is_finite():
        raise ValidationError(f"{field} must be a number", field=field)
    return result


def normalize_rate(value: Any) -> Decimal:
    """Convert an external rate to a fraction; values above 1 are percentages."""

    rate = to_decimal(value, "rate")
    if rate > 1:
        rate = rate / HUNDRED
    return rate


class InterestCalculator:
    """Simple interest on an actual/360 basis, rounded half-up to the cent."""

    def __init__(self, day_count_basis: int = 360):
        self.day_count_basis = Decimal(day_count_basis)

    def interest(self, principal: Decimal, rate: Decimal, term_days: int) -> Decimal:
        principal = Decimal(principal)
        rate = Decimal(rate)
        if not Decimal("0") <= rate <= Decimal("1"):
            raise ValidationError("Rate must be a fraction between 0 and 1", rate=str(rate))
        if term_days < 0:
            raise ValidationError("Term must not be negative", term_days=term_days)
        return quantize_money(principal * rate * Decimal(term_days) / self.day_count_basis)

    def final_amount(self, principal: Decimal, rate: Decimal, term_days: int) -> Decimal:
        return quantize_money(Decimal(principal) + self.interest(principal, rate, term_days))


class BusinessDayAdjuster:
    """Moves weekend dates to the following Monday.

    A single forward shift; holidays are not considered.
    """

    def adjust(self, value: date) -> date:
        weekday = value.weekday()
        if weekday == 5:  # Saturday
            return value + timedelta(days=2)
        if weekday == 6:  # Sunday
            return value + timedelta(days=1)
        return value

    def adjust_maturity(self, open_date: date, term_days: int) -> date:
        return self.adjust(open_date + timedelta(days=term_days))
