"""Request payload parsing for the JSON endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

from ..models.investment import InterestModality, Product


def pick(payload: Mapping[str, Any], *keys: str) -> Any:
    """First present key wins; clients send either camelCase or snake_case."""

    for key in keys:
        if key in payload:
            return payload[key]
    return None


@dataclass(slots=True)
class InvestmentForm:
    """Inputs for opening a deposit and the field errors found while parsing them."""

    account_id: Any = None
    principal: Any = None
    term_days: Any = None
    interest_modality: Any = None
    auto_renew: Any = False
    product: Any = Product.TIME_DEPOSIT.value
    open_date_sent: bool = False
    errors: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "InvestmentForm":
        return cls(
            account_id=pick(payload, "accountId", "account_id"),
            principal=pick(payload, "principal", "amount"),
            term_days=pick(payload, "termDays", "term_days"),
            interest_modality=pick(payload, "modality", "interestModality", "interest_modality"),
            auto_renew=pick(payload, "autoRenew", "auto_renew") or False,
            product=pick(payload, "product") or Product.TIME_DEPOSIT.value,
            open_date_sent=pick(payload, "openDate", "open_date") is not None,
        )

    def validate(self) -> bool:
        self.errors.clear()

        if not isinstance(self.account_id, str) or not self.account_id.strip():
            self.errors.setdefault("account_id", []).append("Choose the funding account.")
        else:
            self.account_id = self.account_id.strip()

        self.principal = self._parse_decimal("principal", self.principal)
        if isinstance(self.principal, Decimal) and self.principal <= 0:
            self.errors.setdefault("principal", []).append("Principal must be positive.")

        self.term_days = self._parse_int("term_days", self.term_days)

        modalities = {member.value for member in InterestModality}
        if not isinstance(self.interest_modality, str) or self.interest_modality.upper() not in modalities:
            self.errors.setdefault("interest_modality", []).append(
                "Choose one of: " + ", ".join(sorted(modalities))
            )
        else:
            self.interest_modality = InterestModality(self.interest_modality.upper())

        if not isinstance(self.auto_renew, bool):
            self.errors.setdefault("auto_renew", []).append("auto_renew must be true or false.")

        products = {member.value for member in Product}
        if not isinstance(self.product, str) or self.product.upper() not in products:
            self.errors.setdefault("product", []).append("Unsupported product.")
        else:
            self.product = Product(self.product.upper())

        if self.open_date_sent:
            self.errors.setdefault("open_date", []).append(
                "Deposits open on the day they are created."
            )

        return not self.errors

    def _parse_decimal(self, name: str, value: Any) -> Optional[Decimal]:
        if value is None or value == "":
            self.errors.setdefault(name, []).append("This field is required.")
            return None
        if isinstance(value, bool):
            self.errors.setdefault(name, []).append("Enter a valid number.")
            return None
        try:
            parsed = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            self.errors.setdefault(name, []).append("Enter a valid number.")
            return None
        if not parsed.is_finite():
            self.errors.setdefault(name, []).append("Enter a valid number.")
            return None
        return parsed

    def _parse_int(self, name: str, value: Any) -> Optional[int]:
        if value is None or value == "":
            self.errors.setdefault(name, []).append("This field is required.")
            return None
        if isinstance(value, bool):
            self.errors.setdefault(name, []).append("Enter a whole number.")
            return None
        try:
            return int(str(value))
        except ValueError:
            self.errors.setdefault(name, []).append("Enter a whole number.")
            return None


def parse_iso_date(value: Any) -> Optional[date]:
    """Parse an optional YYYY-MM-DD value, returning None when absent."""

    if value in (None, ""):
        return None
    return date.fromisoformat(str(value))
