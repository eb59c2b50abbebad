from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
from pydantic import ValidationError

from accounts import (
    Account,
    Chargeback,
    ClientId,
    Deposit,
    Dispute,
    Resolve,
    Transaction,
    Tx,
    Withdrawal,
)
from amount import Amount
from errors import LedgerArithmeticError, LedgerError, RecordError
from models import (
    AccountResponse,
    RejectedTransaction,
    TransactionRequest,
    TransactionType,
    describe_validation_error,
)
from repositories import AccountRepository

logger = structlog.get_logger(__name__)


def to_transaction(request: TransactionRequest) -> Tuple[ClientId, Transaction]:
    """Map an external record onto the domain types."""
    client_id = ClientId(request.client)
    tx = Tx(request.tx)

    if request.type in (TransactionType.deposit, TransactionType.withdrawal):
        if request.amount is None:
            raise RecordError(f"{request.type.value.capitalize()} transaction is missing an amount")
        try:
            amount = Amount.from_decimal(request.amount)
        except LedgerArithmeticError as exc:
            raise RecordError(exc.message) from exc
        if request.type == TransactionType.deposit:
            return client_id, Deposit(tx, amount)
        return client_id, Withdrawal(tx, amount)

    if request.type == TransactionType.dispute:
        return client_id, Dispute(tx)
    if request.type == TransactionType.resolve:
        return client_id, Resolve(tx)
    if request.type == TransactionType.chargeback:
        return client_id, Chargeback(tx)
    raise RecordError(f"Unknown transaction type: {request.type}")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class ProcessingSummary:
    applied: int = 0
    rejected: List[RejectedTransaction] = field(default_factory=list)


class TransactionService:
    def __init__(self, account_repo: AccountRepository, stop_on_error: bool = False):
        self.account_repo = account_repo
        self.stop_on_error = stop_on_error
        self.transactions_processed = 0

    def apply(self, request: TransactionRequest) -> Account:
        """Apply a single record. Domain errors propagate unchanged."""
        client_id, transaction = to_transaction(request)
        account = self.account_repo.apply_transaction(client_id, transaction)
        self.transactions_processed += 1

        logger.debug(
            "Transaction applied",
            client=request.client,
            tx=request.tx,
            type=request.type.value,
            available=str(account.available),
            held=str(account.held),
            locked=account.locked
        )
        return account

    def process(self, requests: Iterable[TransactionRequest]) -> ProcessingSummary:
        """Apply records in the order received.

        A record that fails is logged and skipped, unless ``stop_on_error``
        is set, in which case the error propagates and the run stops.
        """
        summary = ProcessingSummary()
        for index, request in enumerate(requests):
            self._apply_one(summary, index, request)
        return self._finish(summary)

    def process_records(self, records: Iterable[Dict[str, Any]]) -> ProcessingSummary:
        """Validate and apply raw records in order.

        A record that fails validation is rejected like any other failed
        record; the rest of the sequence is still applied.
        """
        summary = ProcessingSummary()
        for index, record in enumerate(records):
            try:
                request = TransactionRequest.model_validate(record)
            except ValidationError as exc:
                error = RecordError(describe_validation_error(exc))
                self._reject(summary, index, record.get("client"), record.get("tx"), record.get("type"), error)
                continue
            self._apply_one(summary, index, request)
        return self._finish(summary)

    def _apply_one(self, summary: ProcessingSummary, index: int, request: TransactionRequest) -> None:
        try:
            self.apply(request)
        except (LedgerError, RecordError) as exc:
            self._reject(summary, index, request.client, request.tx, request.type.value, exc)
        else:
            summary.applied += 1

    def _reject(self, summary, index, client, tx, type_, exc) -> None:
        code = exc.code if isinstance(exc, LedgerError) else "INVALID_RECORD"
        logger.warning(
            "Could not process transaction",
            client=client,
            tx=tx,
            type=type_,
            error_code=code,
            error=str(exc)
        )
        if self.stop_on_error:
            raise exc
        summary.rejected.append(RejectedTransaction(
            index=index,
            client=client if _is_int(client) else None,
            tx=tx if _is_int(tx) else None,
            error_code=code,
            detail=str(exc),
        ))

    def _finish(self, summary: ProcessingSummary) -> ProcessingSummary:
        logger.info(
            "Transactions processed",
            applied=summary.applied,
            rejected=len(summary.rejected)
        )
        return summary

    def report(self) -> List[AccountResponse]:
        """One row per account, sorted by client id."""
        accounts = sorted(
            (account for _, account in self.account_repo.iterate()),
            key=lambda account: account.owner.value
        )
        return [AccountResponse.from_account(account) for account in accounts]

    def account_report(self, client_id: ClientId) -> Optional[AccountResponse]:
        account = self.account_repo.get(client_id)
        if account is None:
            return None
        return AccountResponse.from_account(account)


# Factory function for dependency injection
def get_transaction_service(
    account_repo: AccountRepository,
    stop_on_error: bool = False
) -> TransactionService:
    return TransactionService(account_repo, stop_on_error)
