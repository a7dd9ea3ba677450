"""Per-account lock registry."""

import threading
import time

from ledgerbank.services.ledger.locks import AccountLocks


def test_same_account_is_serialized():
    locks = AccountLocks()
    inside = []
    overlap = []

    def work():
        with locks.hold("a"):
            inside.append(1)
            if len(inside) > 1:
                overlap.append(True)
            time.sleep(0.01)
            inside.pop()

    threads = [threading.Thread(target=work) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert not overlap


def test_different_accounts_do_not_block_each_other():
    locks = AccountLocks()
    entered_b = threading.Event()

    with locks.hold("a"):

        def hold_b():
            with locks.hold("b"):
                entered_b.set()

        t = threading.Thread(target=hold_b)
        t.start()
        assert entered_b.wait(timeout=2)
        t.join()


def test_idle_entries_are_dropped():
    locks = AccountLocks()
    waits = []
    with locks.hold("a", on_wait=waits.append):
        assert locks.active_accounts() == 1
    assert locks.active_accounts() == 0
    assert len(waits) == 1 and waits[0] >= 0
