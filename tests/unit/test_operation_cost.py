"""
test_operation_cost.py - Per-operation bookkeeping does not grow with the book

An operation journals the entries it writes and nothing else. With an
instrumented BalanceLedger in place of the token's book, the number of
journaled entries per operation must be the same for a token with a handful
of holders and one with tens of thousands, and no operation may scan the
whole book.
"""

import pytest

import curve_ledger.token as token_module
from curve_ledger import BalanceLedger, InsufficientBalance
from tests.helpers import ALICE, BOB, CAROL, OWNER, WAD, make_token


EXTRA_HOLDERS = 20_000


class CountingLedger(BalanceLedger):
    """BalanceLedger that records journal sizes and full-book scans."""

    def __init__(self):
        super().__init__()
        self.committed = []
        self.rolled_back = []
        self.scans = 0

    def commit(self) -> None:
        self.committed.append(self.journal_size)
        super().commit()

    def rollback(self) -> None:
        self.rolled_back.append(self.journal_size)
        super().rollback()

    def holders(self):
        self.scans += 1
        return super().holders()

    def balance_sum(self):
        self.scans += 1
        return super().balance_sum()


@pytest.fixture
def counting(monkeypatch):
    monkeypatch.setattr(token_module, "BalanceLedger", CountingLedger)


def run_workload(extra_holders: int) -> CountingLedger:
    token = make_token()
    book = token._book
    assert isinstance(book, CountingLedger)
    # One wei each keeps the price effectively unchanged
    for i in range(extra_holders):
        book.credit(f"holder_{i:05d}", 1)

    book.committed.clear()
    token.mint(ALICE, 100 * WAD)
    token.transfer(ALICE, BOB, 10 * WAD)
    token.approve(ALICE, CAROL, 5 * WAD)
    token.transfer_from(CAROL, ALICE, BOB, 5 * WAD)
    token.burn(BOB, WAD)
    token.redeem(ALICE, 20 * WAD)
    token.set_excluded(OWNER, BOB, True)
    with pytest.raises(InsufficientBalance):
        token.transfer(CAROL, ALICE, WAD)
    return book


@pytest.mark.usefixtures("counting")
class TestOperationCost:

    def test_journal_size_independent_of_holder_count(self):
        small = run_workload(0)
        large = run_workload(EXTRA_HOLDERS)
        assert large.committed == small.committed
        assert large.rolled_back == small.rolled_back
        assert max(large.committed) <= 4

    def test_operations_never_scan_the_book(self):
        book = run_workload(EXTRA_HOLDERS)
        assert book.scans == 0

    def test_rejected_operation_undoes_only_touched_entries(self):
        token = make_token()
        book = token._book
        for i in range(EXTRA_HOLDERS):
            book.credit(f"holder_{i:05d}", 1)
        token.mint(ALICE, 10 * WAD)

        with pytest.raises(InsufficientBalance):
            token.transfer(ALICE, BOB, 11 * WAD)

        assert book.rolled_back == [0]
        assert token.balance_of(ALICE) == 10 * WAD
        assert len(token.holders()) == EXTRA_HOLDERS + 2
