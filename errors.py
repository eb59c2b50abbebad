"""Ledger error types.

Core operations raise exactly one of the two domain errors
(``LedgerArithmeticError`` or ``InsufficientFundsError``). Everything else
here belongs to the collaborators around the core.
"""

from typing import Optional


class LedgerError(Exception):
    """Base domain error."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class LedgerArithmeticError(LedgerError, ArithmeticError):
    """Overflow, underflow or an unparseable monetary value."""

    def __init__(self, message: str = "Arithmetic error") -> None:
        super().__init__("ARITHMETIC_ERROR", message)


class InsufficientFundsError(LedgerError):
    def __init__(self) -> None:
        super().__init__("INSUFFICIENT_FUNDS", "Funds insufficient for operation")


class RecordError(ValueError):
    """An input record could not be turned into a transaction."""

    def __init__(self, message: str, line: Optional[int] = None) -> None:
        self.line = line
        super().__init__(message if line is None else f"line {line}: {message}")


class AccountNotFoundError(LookupError):
    def __init__(self, client_id: int) -> None:
        self.client_id = client_id
        super().__init__(f"Account not found for client {client_id}")
