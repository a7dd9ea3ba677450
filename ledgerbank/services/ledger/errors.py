"""Domain failures raised by the ledger and rendered once at the HTTP boundary."""


class LedgerError(Exception):
    """Base class for structured ledger failures."""

    code = "LedgerError"
    status_code = 400
    retryable = False

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": str(self), "retryable": self.retryable}


class InvalidAmount(LedgerError):
    """Amount missing, non-numeric, non-finite, non-positive or below one cent."""

    code = "InvalidAmount"
    status_code = 400


class InsufficientFunds(LedgerError):
    """Withdrawal amount exceeds the current balance."""

    code = "InsufficientFunds"
    status_code = 409

    def __init__(self, account_id: str, balance, amount) -> None:
        super().__init__(f"insufficient funds: balance={balance} requested={amount}")
        self.account_id = account_id
        self.balance = balance
        self.amount = amount


class ConcurrentModification(LedgerError):
    """Another writer kept winning the append race for this account."""

    code = "ConcurrentModification"
    status_code = 409
    retryable = True


class StorageUnavailable(LedgerError):
    """The record store could not be reached or failed mid-operation."""

    code = "StorageUnavailable"
    status_code = 503
    retryable = True


class InvalidAccount(LedgerError):
    """Account identifier missing, not a string, or blank."""

    code = "InvalidAccount"
    status_code = 400
