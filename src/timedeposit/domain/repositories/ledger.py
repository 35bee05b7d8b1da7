"""Ledger collaborator protocol.

The engine never touches balances directly; every money movement goes through
this interface and returns the ledger's transaction id.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol


class Ledger(Protocol):
    def has_account(self, account_id: str) -> bool:
        ...

    def get_balance(self, account_id: str) -> Decimal:
        ...

    def credit(self, account_id: str, amount: Decimal, memo: str) -> str:
        """Add ``amount`` to the account and return the transaction id."""
        ...

    def debit(self, account_id: str, amount: Decimal, memo: str) -> str:
        """Remove ``amount`` from the account and return the transaction id.

        Raises InsufficientFundsError when the balance does not cover it.
        """
        ...
