"""API request/response schemas for ledger endpoints."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_serializer


class TransactionRequest(BaseModel):
    """Deposit/withdraw payload.

    Both fields are left untyped so bad input surfaces as `InvalidAccount` or
    `InvalidAmount` from the ledger instead of a generic validation error.
    """

    account_id: Any = None
    amount: Any = None


class TransactionOut(BaseModel):
    """Public view of one ledger record."""

    id: int
    account_id: str
    sequence: int
    kind: str
    amount: Decimal
    balance_after: Decimal
    created_at: datetime

    @classmethod
    def from_record(cls, record) -> "TransactionOut":
        created_at = record.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return cls(
            id=record.id,
            account_id=record.account_id,
            sequence=record.sequence,
            kind=record.kind,
            amount=record.amount,
            balance_after=record.balance_after,
            created_at=created_at,
        )

    @field_serializer("amount", "balance_after")
    def _money(self, value: Decimal) -> str:
        return f"{value:.2f}"


class TransactionResult(BaseModel):
    """Outcome of a committed deposit or withdrawal."""

    message: str
    balance: Decimal
    transaction: TransactionOut

    @field_serializer("balance")
    def _money(self, value: Decimal) -> str:
        return f"{value:.2f}"


class BalanceResponse(BaseModel):
    account_id: str
    balance: Decimal

    @field_serializer("balance")
    def _money(self, value: Decimal) -> str:
        return f"{value:.2f}"


class HistoryIssue(BaseModel):
    """One record whose stored chain fields disagree with its predecessor."""

    id: int
    sequence: int
    problem: str
    expected: str
    stored: str


class HistoryReport(BaseModel):
    """Result of replaying an account's records from amounts and kinds."""

    account_id: str
    records_checked: int
    balance: str
    consistent: bool
    issues: list[HistoryIssue] = Field(default_factory=list)
