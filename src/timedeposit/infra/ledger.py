"""Reference ledger adapter storing balances in the ``account`` table."""

from __future__ import annotations

from decimal import Decimal

from sqlmodel import Session

from ..errors import InsufficientFundsError, NotFoundError, ValidationError
from ..models.account import Account, LedgerTransaction, LedgerTransactionKind


class SQLModelLedger:
    """Ledger bound to the caller's session so balance changes share its transaction."""

    def __init__(self, session: Session):
        self.session = session

    def _account(self, account_id: str) -> Account:
        account = self.session.get(Account, account_id)
        if account is None:
            raise NotFoundError(f"Account {account_id} not found", account_id=account_id)
        return account

    def has_account(self, account_id: str) -> bool:
        return self.session.get(Account, account_id) is not None

    def get_balance(self, account_id: str) -> Decimal:
        return Decimal(self._account(account_id).balance)

    def open_account(
        self, holder_name: str, *, balance: Decimal = Decimal("0"), currency: str = "USD"
    ) -> Account:
        account = Account(holder_name=holder_name, balance=balance, currency=currency)
        self.session.add(account)
        self.session.flush()
        return account

    def credit(self, account_id: str, amount: Decimal, memo: str) -> str:
        return self._post(account_id, amount, memo, LedgerTransactionKind.CREDIT)

    def debit(self, account_id: str, amount: Decimal, memo: str) -> str:
        return self._post(account_id, amount, memo, LedgerTransactionKind.DEBIT)

    def _post(
        self, account_id: str, amount: Decimal, memo: str, kind: LedgerTransactionKind
    ) -> str:
        if amount <= 0:
            raise ValidationError("Ledger amounts must be positive", amount=str(amount))
        account = self._account(account_id)
        balance = Decimal(account.balance)
        if kind is LedgerTransactionKind.DEBIT:
            if balance < amount:
                raise InsufficientFundsError(
                    "Insufficient funds",
                    account_id=account_id,
                    balance=f"{balance:.2f}",
                    requested=f"{amount:.2f}",
                )
            signed = -amount
        else:
            signed = amount
        account.balance = balance + signed
        txn = LedgerTransaction(account_id=account_id, kind=kind, amount=signed, memo=memo)
        self.session.add(account)
        self.session.add(txn)
        self.session.flush()
        return txn.id
