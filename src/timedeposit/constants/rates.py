"""Built-in rate table for time deposits.

Each row is ``(term_min_days, term_max_days, amount_min, amount_max, annual_rate_percent)``.
Amount bands are half-open ``[amount_min, amount_max)`` and contiguous; ``None`` marks
the unbounded top band. Rates are quoted in percent and converted to fractions once,
when the :class:`~timedeposit.services.rates.RateTable` is built.
"""

from __future__ import annotations

from typing import Optional, Tuple

RateRow = Tuple[int, int, str, Optional[str], str]

# Amount band edges shared by every term band.
AMOUNT_BANDS: tuple[tuple[str, Optional[str]], ...] = (
    ("500", "5000"),
    ("5000", "10000"),
    ("10000", "50000"),
    ("50000", "100000"),
    ("100000", None),
)

_RATES_BY_TERM: tuple[tuple[int, int, tuple[str, ...]], ...] = (
    (31, 60, ("2.65", "2.85", "2.90", "4.70", "4.75")),
    (61, 90, ("2.85", "3.05", "3.15", "4.85", "4.90")),
    (91, 120, ("3.05", "3.25", "3.55", "5.00", "5.05")),
    (121, 180, ("4.75", "4.80", "5.10", "5.15", "5.20")),
    (181, 240, ("4.80", "4.85", "5.15", "5.20", "5.25")),
    (241, 300, ("4.85", "4.90", "5.20", "5.30", "5.35")),
    (301, 360, ("4.90", "5.00", "5.30", "5.40", "5.45")),
    (361, 1800, ("4.95", "5.10", "5.35", "5.45", "5.50")),
)

DEFAULT_RATE_ROWS: tuple[RateRow, ...] = tuple(
    (term_min, term_max, amount_min, amount_max, rate)
    for term_min, term_max, rates in _RATES_BY_TERM
    for (amount_min, amount_max), rate in zip(AMOUNT_BANDS, rates)
)

RECOMMENDED_TERMS: tuple[int, ...] = (61, 91, 121)

__all__ = ["AMOUNT_BANDS", "DEFAULT_RATE_ROWS", "RECOMMENDED_TERMS", "RateRow"]
