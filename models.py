from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime, timezone

from accounts import Account, MAX_CLIENT_ID, MAX_TX


def _now() -> datetime:
    return datetime.now(timezone.utc)


def describe_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors into one line, e.g. ``tx: Field required``."""
    return "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc']) or 'record'}: {err['msg']}"
        for err in exc.errors()
    )


class TransactionType(str, Enum):
    deposit = "deposit"
    withdrawal = "withdrawal"
    dispute = "dispute"
    resolve = "resolve"
    chargeback = "chargeback"


AMOUNT_REQUIRED = {TransactionType.deposit, TransactionType.withdrawal}


class TransactionRequest(BaseModel):
    """One external transaction record, as read from CSV or posted over HTTP."""

    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType = Field(..., description="Transaction type")
    client: int = Field(..., ge=0, le=MAX_CLIENT_ID, description="Client identifier")
    tx: int = Field(..., ge=0, le=MAX_TX, description="Transaction identifier")
    amount: Optional[float] = Field(
        None,
        description="Amount with up to four decimal places; deposits and withdrawals only"
    )

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator('amount', mode='before')
    @classmethod
    def blank_amount_is_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode='after')
    def validate_amount_presence(self):
        if self.type in AMOUNT_REQUIRED and self.amount is None:
            raise ValueError(f'{self.type.value.capitalize()} transaction is missing an amount')
        return self


class AccountResponse(BaseModel):
    client: int = Field(..., description="Client identifier")
    available: str = Field(..., description="Funds available for withdrawal")
    held: str = Field(..., description="Funds held by open disputes")
    total: str = Field(..., description="Available plus held")
    locked: bool = Field(..., description="Whether a chargeback locked the account")

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        """Build a report row. Raises LedgerArithmeticError if the total overflows."""
        total = account.total()
        return cls(
            client=account.owner.value,
            available=str(account.available),
            held=str(account.held),
            total=str(total),
            locked=account.locked,
        )


class TransactionResponse(BaseModel):
    status: Literal["processed"] = Field(..., description="Transaction status")
    client: int = Field(..., description="Client identifier")
    tx: int = Field(..., description="Transaction identifier")
    account: AccountResponse = Field(..., description="Account state after the transaction")
    timestamp: datetime = Field(default_factory=_now, description="Processing timestamp")


class RejectedTransaction(BaseModel):
    index: int = Field(..., description="Position of the record in the batch")
    client: Optional[int] = None
    tx: Optional[int] = None
    error_code: str
    detail: str


class BatchRequest(BaseModel):
    transactions: List[Dict[str, Any]] = Field(..., description="Records validated and applied in order")


class BatchResponse(BaseModel):
    applied: int = Field(..., description="Number of records applied")
    rejected: List[RejectedTransaction] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Error description")
    error_code: str = Field(..., description="Machine-readable error code")
    timestamp: datetime = Field(default_factory=_now, description="Error timestamp")


class HealthResponse(BaseModel):
    status: str = Field(..., description="Service health status")
    timestamp: datetime = Field(default_factory=_now)
    accounts_count: int = Field(..., description="Number of accounts in system")
    transactions_processed: int = Field(..., description="Total transactions processed")
