"""Tiered rate table for time deposits."""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from ..constants.rates import DEFAULT_RATE_ROWS, RateRow
from ..errors import ConfigurationError
from .calculator import normalize_rate


@dataclass(frozen=True, slots=True)
class RateRule:
    """One cell of the rate grid; ``amount_max`` of None means unbounded."""

    term_min_days: int
    term_max_days: int
    amount_min: Decimal
    amount_max: Optional[Decimal]
    annual_rate: Decimal  # fraction

    def matches(self, amount: Decimal, term_days: int) -> bool:
        if not self.term_min_days <= term_days <= self.term_max_days:
            return False
        if amount < self.amount_min:
            return False
        return self.amount_max is None or amount < self.amount_max

    def _overlaps(self, other: "RateRule") -> bool:
        if self.term_max_days < other.term_min_days or other.term_max_days < self.term_min_days:
            return False
        if self.amount_max is not None and self.amount_max <= other.amount_min:
            return False
        if other.amount_max is not None and other.amount_max <= self.amount_min:
            return False
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "term_min_days": self.term_min_days,
            "term_max_days": self.term_max_days,
            "amount_min": f"{self.amount_min:.2f}",
            "amount_max": f"{self.amount_max:.2f}" if self.amount_max is not None else None,
            "rate_percent": f"{self.annual_rate * 100:.2f}",
        }


class RateTable:
    """Immutable (amount, term) -> annual rate lookup.

    Rules are validated once at construction; overlapping cells raise
    :class:`ConfigurationError`. Lookups never raise and fall back to
    ``fallback_rate`` when no rule matches.
    """

    def __init__(self, rules: Iterable[RateRule], fallback_rate: Decimal):
        self._rules: tuple[RateRule, ...] = tuple(
            sorted(rules, key=lambda r: (r.term_min_days, r.amount_min))
        )
        self.fallback_rate = normalize_rate(fallback_rate)
        self._validate()

    @classmethod
    def from_rows(cls, rows: Iterable[RateRow], fallback_rate: Decimal) -> "RateTable":
        rules = []
        for row in rows:
            try:
                term_min, term_max, amount_min, amount_max, rate = row
                rules.append(
                    RateRule(
                        term_min_days=int(term_min),
                        term_max_days=int(term_max),
                        amount_min=Decimal(str(amount_min)),
                        amount_max=Decimal(str(amount_max)) if amount_max is not None else None,
                        annual_rate=normalize_rate(Decimal(str(rate))),
                    )
                )
            except (TypeError, ValueError, InvalidOperation) as exc:
                raise ConfigurationError(f"Malformed rate row: {row!r}") from exc
        return cls(rules, fallback_rate)

    @classmethod
    def from_json(cls, path: Path, fallback_rate: Decimal) -> "RateTable":
        """Load rules from a JSON list of objects keyed like :meth:`RateRule.to_dict`."""

        try:
            payload = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Cannot read rate table {path}: {exc}") from exc
        if not isinstance(payload, list):
            raise ConfigurationError("Rate table file must contain a JSON list")
        try:
            rows = [
                (
                    item["term_min_days"],
                    item["term_max_days"],
                    item["amount_min"],
                    item.get("amount_max"),
                    item["rate_percent"],
                )
                for item in payload
            ]
        except (KeyError, TypeError, AttributeError) as exc:
            raise ConfigurationError(f"Malformed rate table entry in {path}") from exc
        return cls.from_rows(rows, fallback_rate)

    @classmethod
    def from_config(cls, config) -> "RateTable":
        if config.RATE_TABLE_PATH is not None:
            return cls.from_json(config.RATE_TABLE_PATH, config.FALLBACK_RATE)
        return cls.from_rows(DEFAULT_RATE_ROWS, config.FALLBACK_RATE)

    def _validate(self) -> None:
        for index, rule in enumerate(self._rules):
            if rule.term_min_days > rule.term_max_days:
                raise ConfigurationError("Rate rule has an empty term band", rule=rule.to_dict())
            if rule.amount_max is not None and rule.amount_max <= rule.amount_min:
                raise ConfigurationError("Rate rule has an empty amount band", rule=rule.to_dict())
            if not Decimal("0") <= rule.annual_rate <= Decimal("1"):
                raise ConfigurationError("Rate out of range", rule=rule.to_dict())
            for other in self._rules[index + 1 :]:
                if rule._overlaps(other):
                    raise ConfigurationError(
                        "Overlapping rate rules",
                        first=rule.to_dict(),
                        second=other.to_dict(),
                    )

    @property
    def rules(self) -> Sequence[RateRule]:
        return self._rules

    def find_rule(self, amount: Decimal, term_days: int) -> Optional[RateRule]:
        amount = Decimal(amount)
        for rule in self._rules:
            if rule.matches(amount, term_days):
                return rule
        return None

    def lookup(self, amount: Decimal, term_days: int) -> Decimal:
        rule = self.find_rule(amount, term_days)
        return rule.annual_rate if rule is not None else self.fallback_rate

    def bands(self) -> list[dict[str, Any]]:
        """Rules grouped by term band, in ascending term order."""

        grouped: dict[tuple[int, int], list[dict[str, Any]]] = {}
        for rule in self._rules:
            key = (rule.term_min_days, rule.term_max_days)
            cell = rule.to_dict()
            grouped.setdefault(key, []).append(
                {k: cell[k] for k in ("amount_min", "amount_max", "rate_percent")}
            )
        return [
            {"term_min_days": term_min, "term_max_days": term_max, "amounts": amounts}
            for (term_min, term_max), amounts in grouped.items()
        ]
