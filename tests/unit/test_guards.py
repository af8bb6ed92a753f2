"""
test_guards.py - Unit tests for the reentrancy guard and account checks
"""

import threading

import pytest

from curve_ledger import (
    ReentrancyGuard, require_account, require_owner,
    InvalidAccount, ReentrancyDetected, Unauthorized, ZERO_ACCOUNT,
)


class TestReentrancyGuard:

    def test_idle_by_default(self):
        guard = ReentrancyGuard()
        assert not guard.is_busy
        assert guard.current_operation is None

    def test_busy_inside_block(self):
        guard = ReentrancyGuard()
        with guard.enter("mint"):
            assert guard.is_busy
            assert guard.current_operation == "mint"
        assert not guard.is_busy

    def test_nested_entry_raises(self):
        guard = ReentrancyGuard()
        with guard.enter("mint"):
            with pytest.raises(ReentrancyDetected, match="redeem entered while mint"):
                with guard.enter("redeem"):
                    pass
            # The outer operation still holds the guard
            assert guard.current_operation == "mint"
        assert not guard.is_busy

    def test_released_after_exception(self):
        guard = ReentrancyGuard()
        with pytest.raises(ValueError):
            with guard.enter("transfer"):
                raise ValueError("boom")
        assert not guard.is_busy
        with guard.enter("transfer"):
            pass

    def test_other_threads_wait_instead_of_failing(self):
        guard = ReentrancyGuard()
        entered = threading.Event()
        release = threading.Event()
        order = []
        errors = []

        def holder():
            with guard.enter("first"):
                entered.set()
                release.wait(timeout=5)
                order.append("first")

        def waiter():
            try:
                with guard.enter("second"):
                    order.append("second")
            except ReentrancyDetected as exc:
                errors.append(exc)

        t1 = threading.Thread(target=holder)
        t1.start()
        assert entered.wait(timeout=5)
        t2 = threading.Thread(target=waiter)
        t2.start()
        release.set()
        t1.join(timeout=5)
        t2.join(timeout=5)

        assert errors == []
        assert order == ["first", "second"]
        assert not guard.is_busy

    def test_nested_call_from_worker_thread_blocks_not_raises(self):
        guard = ReentrancyGuard()
        outcome = []

        def worker():
            try:
                with guard.enter("nested"):
                    outcome.append("entered")
            except ReentrancyDetected as exc:
                outcome.append(exc)

        with guard.enter("outer"):
            t = threading.Thread(target=worker)
            t.start()
            t.join(timeout=0.2)
            # Joining without a timeout here would deadlock
            assert t.is_alive()
            assert outcome == []
        t.join(timeout=5)
        assert outcome == ["entered"]


class TestRequireOwner:

    def test_owner_passes(self):
        require_owner("owner", "owner")

    def test_non_owner_raises(self):
        with pytest.raises(Unauthorized):
            require_owner("owner", "mallory")


class TestRequireAccount:

    def test_returns_account(self):
        assert require_account("alice") == "alice"

    @pytest.mark.parametrize("account", [None, "", "   ", ZERO_ACCOUNT, 42, b"alice"])
    def test_null_accounts_rejected(self, account):
        with pytest.raises(InvalidAccount, match="recipient"):
            require_account(account, "recipient")
