"""Per-account mutual exclusion for the read-validate-append sequence."""

import threading
from contextlib import contextmanager
from time import perf_counter


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class AccountLocks:
    """Registry of one lock per account id.

    Entries exist only while some thread holds or waits for them, so the
    registry does not grow with the number of accounts ever touched.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, account_id: str, on_wait=None):
        """Hold the lock for `account_id`; `on_wait(seconds)` receives wait time."""

        with self._guard:
            entry = self._entries.get(account_id)
            if entry is None:
                entry = self._entries[account_id] = _Entry()
            entry.holders += 1
        started = perf_counter()
        entry.lock.acquire()
        try:
            if on_wait is not None:
                on_wait(perf_counter() - started)
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[account_id]

    def active_accounts(self) -> int:
        with self._guard:
            return len(self._entries)
