from pydantic import BaseModel, Field, validator
from enum import Enum
from typing import Optional
from decimal import Decimal, ROUND_HALF_EVEN, localcontext


MAX_CLIENT_ID = 2 ** 16 - 1
MAX_TRANSACTION_ID = 2 ** 32 - 1


def round_amount(value: Decimal, precision: int = 4) -> Decimal:
    """Round half to even at `precision` places, however many integer digits value has."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + precision + 2)
        ctx.rounding = ROUND_HALF_EVEN
        return value.quantize(Decimal(1).scaleb(-precision))


class TransactionType(str, Enum):
    deposit = "deposit"
    withdrawal = "withdrawal"
    dispute = "dispute"
    resolve = "resolve"
    chargeback = "chargeback"


class Outcome(str, Enum):
    """Result of applying one transaction to an account.

    Only ``applied`` and ``duplicate_transaction`` change balances; every
    other value means the transaction was dropped and the account is
    untouched.
    """
    applied = "applied"
    duplicate_transaction = "duplicate_transaction"
    insufficient_funds = "insufficient_funds"
    unknown_transaction = "unknown_transaction"
    not_disputed = "not_disputed"
    missing_amount = "missing_amount"

    @property
    def is_applied(self) -> bool:
        return self in (Outcome.applied, Outcome.duplicate_transaction)


class Transaction(BaseModel):
    kind: TransactionType = Field(..., alias="type", description="Transaction type")
    client_id: int = Field(
        ...,
        alias="client",
        ge=0,
        le=MAX_CLIENT_ID,
        description="Client identifier"
    )
    transaction_id: int = Field(
        ...,
        alias="tx",
        ge=0,
        le=MAX_TRANSACTION_ID,
        description="Globally unique id of a deposit or withdrawal"
    )
    amount: Optional[Decimal] = Field(
        None,
        ge=0,
        description="Amount, only meaningful for deposits and withdrawals"
    )

    class Config:
        populate_by_name = True
        frozen = True

    @validator('kind', pre=True)
    def normalize_kind(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @validator('client_id', 'transaction_id', pre=True)
    def strip_identifier(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @validator('amount', pre=True)
    def empty_amount_is_missing(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
        return v

    def __repr__(self) -> str:
        return (
            f"Transaction({self.kind.value}, client={self.client_id}, "
            f"tx={self.transaction_id}, amount={self.amount})"
        )


class AccountSummary(BaseModel):
    client: int = Field(..., description="Client identifier")
    available: Decimal = Field(..., description="Funds available for withdrawal")
    held: Decimal = Field(..., description="Funds held by open disputes")
    total: Decimal = Field(..., description="available + held")
    locked: bool = Field(..., description="Whether a chargeback has occurred")

    @classmethod
    def from_account(cls, account, precision: int = 4) -> "AccountSummary":
        """Snapshot an account with monetary values rounded for reporting."""
        return cls(
            client=account.client_id,
            available=round_amount(account.available, precision),
            held=round_amount(account.held, precision),
            total=round_amount(account.total, precision),
            locked=account.locked,
        )

    def as_row(self) -> list:
        return [
            self.client,
            str(self.available),
            str(self.held),
            str(self.total),
            "true" if self.locked else "false",
        ]
