"""Ledger database model: one immutable row per deposit or withdrawal."""

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledgerbank.common.db import Base
from ledgerbank.services.ledger.amounts import to_decimal


DEPOSIT = "deposit"
WITHDRAW = "withdraw"


class TransactionRecord(Base):
    """Append-only movement on one account.

    `balance_after_cents` caches the account balance right after this row; the
    latest row per account is the only place the balance lives.
    """

    __tablename__ = "ledger_transactions"
    __table_args__ = (
        UniqueConstraint("account_id", "sequence", name="uq_ledger_transactions_account_sequence"),
        CheckConstraint("amount_cents > 0", name="ck_ledger_transactions_positive_amount"),
        CheckConstraint("balance_after_cents >= 0", name="ck_ledger_transactions_non_negative_balance"),
        CheckConstraint("kind IN ('deposit', 'withdraw')", name="ck_ledger_transactions_kind"),
        Index("ix_ledger_transactions_account_created_at", "account_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[str] = mapped_column(String, index=True)
    sequence: Mapped[int] = mapped_column(Integer)
    kind: Mapped[str] = mapped_column(String(16))
    amount_cents: Mapped[int] = mapped_column(BigInteger)
    balance_after_cents: Mapped[int] = mapped_column(BigInteger)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    @property
    def amount(self):
        return to_decimal(self.amount_cents)

    @property
    def balance_after(self):
        return to_decimal(self.balance_after_cents)

    @property
    def signed_cents(self) -> int:
        return self.amount_cents if self.kind == DEPOSIT else -self.amount_cents
