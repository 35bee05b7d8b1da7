"""Exception hierarchy shared by the services and the HTTP layer."""

from __future__ import annotations

from typing import Any


class DepositError(Exception):
    """Base exception for all time-deposit errors."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "message": self.message, "details": dict(self.details)}


class ValidationError(DepositError):
    """Raised when a request is rejected before anything is persisted."""

    kind = "validation"
    status_code = 400


class InsufficientFundsError(ValidationError):
    """Raised when the funding account cannot cover the principal."""

    kind = "insufficient_funds"


class NotFoundError(DepositError):
    """Raised when a referenced investment, account or schedule entry does not exist."""

    kind = "not_found"
    status_code = 404


class InvalidStateError(DepositError):
    """Raised when an operation is not legal from the current lifecycle state."""

    kind = "invalid_state"
    status_code = 409


class InfrastructureError(DepositError):
    """Raised when a persistence or ledger call fails."""

    kind = "infrastructure"
    status_code = 503


class ConfigurationError(DepositError):
    """Raised when static configuration (such as the rate table) is invalid."""

    kind = "configuration"


def error_kind(exc: BaseException) -> str:
    """Return the kind recorded for ``exc`` in settlement summaries."""

    if isinstance(exc, DepositError):
        return exc.kind
    return InfrastructureError.kind
