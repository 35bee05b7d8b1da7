"""Pre-contract quoting: projected payout and term recommendations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional, Sequence

from ..constants.rates import RECOMMENDED_TERMS
from ..errors import ValidationError
from .calculator import BusinessDayAdjuster, InterestCalculator, to_decimal
from .rates import RateTable


@dataclass(slots=True)
class SimulationResult:
    principal: Decimal
    term_days: int
    rate: Decimal  # fraction
    interest: Decimal
    final_amount: Decimal
    open_date: date
    maturity_date: date

    def to_dict(self) -> dict[str, Any]:
        return {
            "principal": f"{self.principal:.2f}",
            "term_days": self.term_days,
            "rate_percent": f"{self.rate * 100:.2f}",
            "interest": f"{self.interest:.2f}",
            "final_amount": f"{self.final_amount:.2f}",
            "open_date": self.open_date.isoformat(),
            "maturity_date": self.maturity_date.isoformat(),
        }


def parse_term(value: Any) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("term_days is required", field="term_days")
    if isinstance(value, bool):
        raise ValidationError("term_days must be a whole number of days", field="term_days")
    try:
        term = int(str(value).strip())
    except ValueError as exc:
        raise ValidationError(
            "term_days must be a whole number of days", field="term_days"
        ) from exc
    if term <= 0:
        raise ValidationError("term_days must be positive", field="term_days")
    return term


def check_limits(limits: dict[str, Any], principal: Decimal, term_days: int) -> None:
    """Raise ValidationError when the request falls outside configured limits."""

    min_principal = limits.get("min_principal")
    max_principal = limits.get("max_principal")
    min_term = limits.get("min_term_days")
    max_term = limits.get("max_term_days")
    if min_principal is not None and principal < Decimal(min_principal):
        raise ValidationError(
            f"Minimum principal is {min_principal}", field="principal", limit=str(min_principal)
        )
    if max_principal is not None and principal > Decimal(max_principal):
        raise ValidationError(
            f"Maximum principal is {max_principal}", field="principal", limit=str(max_principal)
        )
    if min_term is not None and term_days < int(min_term):
        raise ValidationError(
            f"Minimum term is {min_term} days", field="term_days", limit=int(min_term)
        )
    if max_term is not None and term_days > int(max_term):
        raise ValidationError(
            f"Maximum term is {max_term} days", field="term_days", limit=int(max_term)
        )


class Simulator:
    """Pure quoting over the rate table; nothing is persisted."""

    def __init__(
        self,
        rate_table: RateTable,
        calculator: InterestCalculator,
        adjuster: BusinessDayAdjuster,
        *,
        today: Callable[[], date] = date.today,
        recommended_terms: Sequence[int] = RECOMMENDED_TERMS,
        limits: Optional[dict[str, Any]] = None,
    ):
        self.rate_table = rate_table
        self.calculator = calculator
        self.adjuster = adjuster
        self.today = today
        self.recommended_terms = tuple(recommended_terms)
        self.limits = limits or {}

    def _principal(self, value: Any) -> Decimal:
        principal = to_decimal(value, "principal")
        if principal <= 0:
            raise ValidationError("principal must be positive", field="principal")
        return principal

    def simulate(self, principal: Any, term_days: Any) -> SimulationResult:
        amount = self._principal(principal)
        term = parse_term(term_days)
        rate = self.rate_table.lookup(amount, term)
        open_date = self.today()
        return SimulationResult(
            principal=amount,
            term_days=term,
            rate=rate,
            interest=self.calculator.interest(amount, rate, term),
            final_amount=self.calculator.final_amount(amount, rate, term),
            open_date=open_date,
            maturity_date=self.adjuster.adjust_maturity(open_date, term),
        )

    def recommend(self, principal: Any) -> list[SimulationResult]:
        amount = self._principal(principal)
        return [self.simulate(amount, term) for term in self.recommended_terms]

    def quote(self, principal: Any, term_days: Any) -> dict[str, Any]:
        """Simulation, recommendations and limits bundled for the ``/simulate`` endpoint."""

        amount = self._principal(principal)
        term = parse_term(term_days)
        check_limits(self.limits, amount, term)
        simulation = self.simulate(amount, term)
        return {
            "simulation": simulation.to_dict(),
            "recommendations": [item.to_dict() for item in self.recommend(amount)],
            "limits": dict(self.limits),
        }
