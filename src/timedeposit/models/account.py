"""Account and ledger transaction tables backing the reference ledger adapter."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar

from sqlmodel import Field, SQLModel

from .investment import _new_id, _utcnow


class Account(SQLModel, table=True):
    __tablename__: ClassVar[str] = "account"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=32)
    holder_name: str = Field(default="", max_length=128)
    balance: Decimal = Field(default=Decimal("0"), nullable=False, max_digits=16, decimal_places=2)
    currency: str = Field(default="USD", max_length=3)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "holder_name": self.holder_name,
            "balance": f"{self.balance:.2f}",
            "currency": self.currency,
        }


class LedgerTransactionKind(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class LedgerTransaction(SQLModel, table=True):
    """A single balance mutation on an account."""

    __tablename__: ClassVar[str] = "ledger_transaction"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=32)
    account_id: str = Field(foreign_key="account.id", nullable=False, index=True, max_length=32)
    kind: LedgerTransactionKind = Field(nullable=False)
    amount: Decimal = Field(nullable=False, max_digits=16, decimal_places=2, description="Positive for credits, negative for debits")
    memo: str = Field(default="", max_length=255)
    occurred_at: datetime = Field(default_factory=_utcnow, nullable=False, index=True)
