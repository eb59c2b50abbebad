"""Client accounts and the transaction state machine.

This module holds the domain model only; reading records and writing
reports happen elsewhere.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from amount import Amount
from errors import InsufficientFundsError, LedgerArithmeticError

MAX_CLIENT_ID = 2**16 - 1
MAX_TX = 2**32 - 1


@dataclass(frozen=True)
class ClientId:
    """Client identifier. Equality and hashing only, no arithmetic or ordering."""

    value: int

    def __post_init__(self):
        if not 0 <= self.value <= MAX_CLIENT_ID:
            raise ValueError(f"Client id out of range: {self.value}")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Tx:
    """Transaction identifier. Equality and hashing only, no arithmetic or ordering."""

    value: int

    def __post_init__(self):
        if not 0 <= self.value <= MAX_TX:
            raise ValueError(f"Transaction id out of range: {self.value}")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Deposit:
    """A credit to the client's account."""

    tx: Tx
    amount: Amount


@dataclass(frozen=True)
class Withdrawal:
    """A debit to the client's account."""

    tx: Tx
    amount: Amount


@dataclass(frozen=True)
class Dispute:
    """A claim that the deposit ``tx`` was erroneous."""

    tx: Tx


@dataclass(frozen=True)
class Resolve:
    """Settles the dispute on ``tx`` in the client's favor."""

    tx: Tx


@dataclass(frozen=True)
class Chargeback:
    """Settles the dispute on ``tx`` against the client and locks the account."""

    tx: Tx


Transaction = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]


@dataclass
class DepositEntry:
    """A deposit recorded in the client's account."""

    tx: Tx
    amount: Amount
    disputed: bool = False


@dataclass
class Account:
    owner: ClientId
    available: Amount = field(default_factory=Amount.zero)
    held: Amount = field(default_factory=Amount.zero)
    locked: bool = False
    deposits: List[DepositEntry] = field(default_factory=list, repr=False)
    # first entry recorded for each tx
    _by_tx: Dict[Tx, DepositEntry] = field(default_factory=dict, init=False, repr=False, compare=False)

    def total(self) -> Amount:
        return self.available.add(self.held)

    def find_deposit(self, tx: Tx) -> Optional[DepositEntry]:
        return self._by_tx.get(tx)

    def apply(self, transaction: Transaction) -> None:
        """Apply one transaction.

        Raises ``LedgerArithmeticError`` or ``InsufficientFundsError`` and
        leaves the account untouched when the transaction cannot be applied.
        Dispute, resolve and chargeback referencing an unknown deposit, or a
        deposit in the wrong dispute state, are ignored.
        """
        if isinstance(transaction, Deposit):
            self._deposit(transaction)
        elif isinstance(transaction, Withdrawal):
            self._withdraw(transaction)
        elif isinstance(transaction, Dispute):
            self._dispute(transaction)
        elif isinstance(transaction, Resolve):
            self._resolve(transaction)
        elif isinstance(transaction, Chargeback):
            self._chargeback(transaction)
        else:
            raise TypeError(f"Unknown transaction: {transaction!r}")

    def _deposit(self, deposit: Deposit) -> None:
        self.available = self.available.add(deposit.amount)
        entry = DepositEntry(deposit.tx, deposit.amount)
        self.deposits.append(entry)
        self._by_tx.setdefault(deposit.tx, entry)

    def _withdraw(self, withdrawal: Withdrawal) -> None:
        self.available = _take(self.available, withdrawal.amount)

    def _dispute(self, dispute: Dispute) -> None:
        entry = self.find_deposit(dispute.tx)
        if entry is None or entry.disputed:
            return
        available = _take(self.available, entry.amount)
        held = self.held.add(entry.amount)
        self.available, self.held = available, held
        entry.disputed = True

    def _resolve(self, resolve: Resolve) -> None:
        entry = self.find_deposit(resolve.tx)
        if entry is None or not entry.disputed:
            return
        held = _take(self.held, entry.amount)
        available = self.available.add(entry.amount)
        self.available, self.held = available, held
        entry.disputed = False

    def _chargeback(self, chargeback: Chargeback) -> None:
        entry = self.find_deposit(chargeback.tx)
        if entry is None or not entry.disputed:
            return
        # the entry stays disputed
        self.held = _take(self.held, entry.amount)
        self.locked = True


def _take(balance: Amount, amount: Amount) -> Amount:
    try:
        return balance.sub(amount)
    except LedgerArithmeticError as exc:
        raise InsufficientFundsError() from exc
