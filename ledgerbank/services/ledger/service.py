"""Ledger posting logic.

Balances are never stored on their own: the latest record of an account holds
the balance in `balance_after_cents`, and every deposit/withdrawal appends one
new record derived from it. The read-validate-append sequence runs under a
per-account lock; a unique `(account_id, sequence)` constraint rejects appends
built on a stale read by another process.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
import time
from time import perf_counter

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError, TimeoutError as PoolTimeoutError

from ledgerbank.common.db import Base
from ledgerbank.common.logging import logger
from ledgerbank.common.metrics import (
    account_lock_wait_seconds,
    append_conflicts_total,
    ledger_operation_latency_seconds,
    ledger_operations_total,
)
from ledgerbank.services.ledger.amounts import MAX_BALANCE_CENTS, parse_amount, to_decimal
from ledgerbank.services.ledger.errors import (
    ConcurrentModification,
    InsufficientFunds,
    InvalidAccount,
    InvalidAmount,
    LedgerError,
    StorageUnavailable,
)
from ledgerbank.services.ledger.locks import AccountLocks
from ledgerbank.services.ledger.models import DEPOSIT, WITHDRAW, TransactionRecord
from ledgerbank.services.ledger.schemas import HistoryIssue, HistoryReport


def _utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def check_account_id(account_id) -> str:
    """Reject missing, non-string and blank account identifiers."""

    if not isinstance(account_id, str) or not account_id.strip():
        raise InvalidAccount("account_id must be a non-empty identifier")
    return account_id


@contextmanager
def storage_guard(operation: str):
    """Translate driver/pool failures into `StorageUnavailable`.

    Integrity errors pass through untouched; they signal an append race.
    """

    try:
        yield
    except IntegrityError:
        raise
    except (DBAPIError, PoolTimeoutError) as exc:
        logger.error("ledger storage failure operation=%s error=%s", operation, exc)
        raise StorageUnavailable(f"ledger store unavailable during {operation}") from exc


class TransactionHistory:
    """Newest-first records of one account.

    Each iteration runs a fresh query, so the sequence can be walked again
    after new appends.
    """

    def __init__(self, session_factory, account_id: str, batch_size: int = 500) -> None:
        self.session_factory = session_factory
        self.account_id = account_id
        self.batch_size = batch_size

    def __iter__(self):
        stmt = (
            select(TransactionRecord)
            .where(TransactionRecord.account_id == self.account_id)
            .order_by(TransactionRecord.created_at.desc(), TransactionRecord.id.desc())
            .execution_options(yield_per=self.batch_size)
        )
        with storage_guard("list_transactions"), self.session_factory() as db:
            yield from db.scalars(stmt)


class LedgerService:
    """Owns deposit/withdraw appends and balance derivation per account."""

    def __init__(
        self,
        session_factory,
        service_name: str = "ledger",
        conflict_retries: int = 3,
        locks: AccountLocks | None = None,
        clock=None,
    ) -> None:
        self.session_factory = session_factory
        self.service_name = service_name
        self.conflict_retries = conflict_retries
        self.locks = locks or AccountLocks()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def ensure_schema(self, retries: int = 20, delay_seconds: float = 1.0) -> None:
        """Create ledger tables if missing; retry during cold-start races."""

        for attempt in range(1, retries + 1):
            try:
                with self.session_factory() as db:
                    Base.metadata.create_all(db.get_bind())
                return
            except DBAPIError as exc:
                logger.warning("ledger schema bootstrap retry=%s/%s error=%s", attempt, retries, exc)
                if attempt == retries:
                    raise StorageUnavailable("ledger store unavailable at startup") from exc
                # Keep startup resilient during cold boot when the database is still initializing.
                time.sleep(delay_seconds)

    def _latest(self, db, account_id: str) -> TransactionRecord | None:
        return db.execute(
            select(TransactionRecord)
            .where(TransactionRecord.account_id == account_id)
            .order_by(TransactionRecord.sequence.desc())
            .limit(1)
        ).scalar_one_or_none()

    def get_balance(self, account_id: str) -> Decimal:
        """Balance after the latest record, or zero for an account with no activity."""

        with storage_guard("get_balance"), self.session_factory() as db:
            latest = self._latest(db, account_id)
            return to_decimal(latest.balance_after_cents if latest else 0)

    def list_transactions(self, account_id: str) -> TransactionHistory:
        return TransactionHistory(self.session_factory, account_id)

    def deposit(self, account_id: str, amount) -> tuple[TransactionRecord, Decimal]:
        return self._apply("deposit", DEPOSIT, account_id, amount)

    def withdraw(self, account_id: str, amount) -> tuple[TransactionRecord, Decimal]:
        return self._apply("withdraw", WITHDRAW, account_id, amount)

    def _apply(self, operation: str, kind: str, account_id: str, raw_amount) -> tuple[TransactionRecord, Decimal]:
        started = perf_counter()
        try:
            check_account_id(account_id)
            amount_cents = parse_amount(raw_amount)
            with self.locks.hold(account_id, on_wait=self._observe_lock_wait):
                record = self._append_with_retry(account_id, kind, amount_cents)
        except LedgerError as exc:
            ledger_operations_total.labels(
                service=self.service_name, operation=operation, outcome=exc.code
            ).inc()
            logger.info("%s rejected account_id=%s error=%s detail=%s", operation, account_id, exc.code, exc)
            raise
        finally:
            ledger_operation_latency_seconds.labels(service=self.service_name, operation=operation).observe(
                max(0.0, perf_counter() - started)
            )
        ledger_operations_total.labels(service=self.service_name, operation=operation, outcome="ok").inc()
        logger.info(
            "%s committed account_id=%s id=%s sequence=%s amount_cents=%s balance_after_cents=%s",
            operation,
            account_id,
            record.id,
            record.sequence,
            record.amount_cents,
            record.balance_after_cents,
        )
        return record, record.balance_after

    def _observe_lock_wait(self, seconds: float) -> None:
        account_lock_wait_seconds.labels(service=self.service_name).observe(seconds)

    def _append_with_retry(self, account_id: str, kind: str, amount_cents: int) -> TransactionRecord:
        """Re-run read-validate-append when another process appended first."""

        attempts = self.conflict_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return self._append_once(account_id, kind, amount_cents)
            except IntegrityError as exc:
                append_conflicts_total.labels(service=self.service_name).inc()
                logger.warning(
                    "ledger append conflict account_id=%s attempt=%s/%s error=%s",
                    account_id,
                    attempt,
                    attempts,
                    exc.orig,
                )
        raise ConcurrentModification(f"account {account_id} kept changing; retry the request")

    def _append_once(self, account_id: str, kind: str, amount_cents: int) -> TransactionRecord:
        with storage_guard(kind), self.session_factory() as db:
            latest = self._latest(db, account_id)
            balance = latest.balance_after_cents if latest else 0
            if kind == WITHDRAW and amount_cents > balance:
                raise InsufficientFunds(account_id, to_decimal(balance), to_decimal(amount_cents))
            if kind == DEPOSIT and balance + amount_cents > MAX_BALANCE_CENTS:
                raise InvalidAmount("deposit would exceed the maximum account balance")

            record = TransactionRecord(
                account_id=account_id,
                sequence=latest.sequence + 1 if latest else 1,
                kind=kind,
                amount_cents=amount_cents,
                balance_after_cents=balance + amount_cents if kind == DEPOSIT else balance - amount_cents,
                created_at=self._next_timestamp(latest),
            )
            db.add(record)
            db.commit()
            return record

    def _next_timestamp(self, latest: TransactionRecord | None) -> datetime:
        """Wall clock, clamped so a record never predates its predecessor."""

        now = _utc(self.clock())
        if latest is None:
            return now
        return max(now, _utc(latest.created_at))

    def verify_history(self, account_id: str) -> HistoryReport:
        """Replay an account in insertion order and report chain breaks.

        Each record is checked against its stored predecessor: sequence must be
        predecessor + 1 and `balance_after` must equal the predecessor's
        balance plus the record's signed amount.
        """

        issues: list[HistoryIssue] = []
        previous_balance = 0
        previous_sequence = 0
        checked = 0
        stmt = (
            select(TransactionRecord)
            .where(TransactionRecord.account_id == account_id)
            .order_by(TransactionRecord.sequence, TransactionRecord.id)
        )
        with storage_guard("verify_history"), self.session_factory() as db:
            for record in db.scalars(stmt):
                checked += 1
                if record.sequence != previous_sequence + 1:
                    issues.append(
                        HistoryIssue(
                            id=record.id,
                            sequence=record.sequence,
                            problem="sequence_gap",
                            expected=str(previous_sequence + 1),
                            stored=str(record.sequence),
                        )
                    )
                expected = previous_balance + record.signed_cents
                if record.balance_after_cents != expected:
                    issues.append(
                        HistoryIssue(
                            id=record.id,
                            sequence=record.sequence,
                            problem="balance_mismatch",
                            expected=str(to_decimal(expected)),
                            stored=str(record.balance_after),
                        )
                    )
                previous_balance = record.balance_after_cents
                previous_sequence = record.sequence

        if issues:
            logger.warning("ledger history inconsistent account_id=%s issues=%s", account_id, len(issues))
        return HistoryReport(
            account_id=account_id,
            records_checked=checked,
            balance=str(to_decimal(previous_balance)),
            consistent=not issues,
            issues=issues,
        )
