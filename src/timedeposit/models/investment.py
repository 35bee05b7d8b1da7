"""Time-deposit contract entity and its lifecycle enums."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Optional
from uuid import uuid4

from sqlmodel import Field, SQLModel


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(str, Enum):
    TIME_DEPOSIT = "TIME_DEPOSIT"


class InterestModality(str, Enum):
    """How often interest is paid out before maturity."""

    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    SEMIANNUAL = "SEMIANNUAL"
    AT_MATURITY = "AT_MATURITY"

    @property
    def interval_months(self) -> int | None:
        return _INTERVAL_MONTHS[self]


_INTERVAL_MONTHS: dict[InterestModality, int | None] = {
    InterestModality.MONTHLY: 1,
    InterestModality.QUARTERLY: 3,
    InterestModality.SEMIANNUAL: 6,
    InterestModality.AT_MATURITY: None,
}


class InvestmentState(str, Enum):
    ACTIVE = "ACTIVE"
    MATURED = "MATURED"
    CANCELED = "CANCELED"
    RENEWED = "RENEWED"

    @property
    def is_terminal(self) -> bool:
        return self is not InvestmentState.ACTIVE


# Legal lifecycle edges; every non-ACTIVE state is terminal.
ALLOWED_TRANSITIONS: dict[InvestmentState, frozenset[InvestmentState]] = {
    InvestmentState.ACTIVE: frozenset(
        {InvestmentState.CANCELED, InvestmentState.MATURED, InvestmentState.RENEWED}
    ),
    InvestmentState.MATURED: frozenset(),
    InvestmentState.CANCELED: frozenset(),
    InvestmentState.RENEWED: frozenset(),
}


class Investment(SQLModel, table=True):
    """A time-deposit contract owned by a single account."""

    __tablename__: ClassVar[str] = "investment"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=32)
    account_id: str = Field(foreign_key="account.id", nullable=False, index=True, max_length=32)
    product: Product = Field(default=Product.TIME_DEPOSIT, nullable=False, index=True)
    principal: Decimal = Field(nullable=False, max_digits=14, decimal_places=2)
    term_days: int = Field(nullable=False)
    interest_modality: InterestModality = Field(nullable=False)
    open_date: date = Field(nullable=False, index=True)
    maturity_date: date = Field(nullable=False, index=True)
    auto_renew: bool = Field(default=False, nullable=False)
    state: InvestmentState = Field(default=InvestmentState.ACTIVE, nullable=False, index=True)
    # Annual rate as a fraction, frozen when the contract is opened.
    annual_rate: Decimal = Field(nullable=False, max_digits=9, decimal_places=6)
    renewed_from_id: Optional[str] = Field(
        default=None, foreign_key="investment.id", max_length=32
    )
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "product": self.product.value,
            "principal": f"{self.principal:.2f}",
            "term_days": self.term_days,
            "interest_modality": self.interest_modality.value,
            "open_date": self.open_date.isoformat(),
            "maturity_date": self.maturity_date.isoformat(),
            "auto_renew": self.auto_renew,
            "state": self.state.value,
            "annual_rate_percent": f"{self.annual_rate * 100:.2f}",
            "renewed_from_id": self.renewed_from_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
