"""
test_reentrancy.py - Unit tests for nested entry through the backing asset

A backing asset that calls back into the token while the token is moving its
backing must find every mutating operation closed. Views stay open.
"""

import pytest

from curve_ledger import (
    SCALE,
    BackingTransferFailed, ReentrancyDetected,
)
from tests.fake_backing import ReentrantBackingAsset
from tests.helpers import (
    ALICE, BOB, OWNER, WAD,
    capture_state, make_backing, make_token,
)


@pytest.fixture
def hooked():
    backing = make_backing(asset=ReentrantBackingAsset())
    token = make_token(backing)
    token.mint(ALICE, 10 * WAD)
    return token, backing


class TestReentrantCallsRejected:

    def test_mint_during_mint(self, hooked):
        token, backing = hooked
        backing.callback = lambda: token.mint(BOB, WAD)

        token.mint(ALICE, WAD)

        assert len(backing.reentry_errors) == 1
        assert isinstance(backing.reentry_errors[0], ReentrancyDetected)
        assert token.balance_of(BOB) == 0
        assert token.balance_of(ALICE) == 11 * WAD

    def test_redeem_during_redeem(self, hooked):
        token, backing = hooked
        backing.callback = lambda: token.redeem(ALICE, WAD)

        token.redeem(ALICE, 2 * WAD)

        assert isinstance(backing.reentry_errors[0], ReentrancyDetected)
        assert token.balance_of(ALICE) == 8 * WAD

    @pytest.mark.parametrize("reenter", [
        lambda t: t.transfer(ALICE, BOB, WAD),
        lambda t: t.approve(ALICE, BOB, WAD),
        lambda t: t.burn(ALICE, WAD),
        lambda t: t.set_excluded(OWNER, ALICE, True),
        lambda t: t.set_tax_collector(OWNER, BOB),
        lambda t: t.initialize(OWNER),
    ])
    def test_every_mutating_operation_closed(self, hooked, reenter):
        token, backing = hooked
        backing.callback = lambda: reenter(token)

        token.mint(ALICE, WAD)

        assert len(backing.reentry_errors) == 1
        assert isinstance(backing.reentry_errors[0], ReentrancyDetected)

    def test_views_open_during_operation(self, hooked):
        token, backing = hooked
        seen = {}

        def observe():
            seen['busy'] = token.is_busy
            seen['price'] = token.get_current_price()
            seen['balance'] = token.balance_of(ALICE)
            seen['preview'] = token.preview_mint(WAD)

        backing.callback = observe
        token.mint(ALICE, WAD)

        assert backing.reentry_errors == []
        assert seen == {'busy': True, 'price': SCALE, 'balance': 10 * WAD, 'preview': WAD}
        assert not token.is_busy


class TestPropagatedReentry:

    def test_outer_operation_fails_and_rolls_back(self):
        backing = make_backing(asset=ReentrantBackingAsset(propagate=True))
        token = make_token(backing)
        backing.callback = lambda: token.mint(BOB, WAD)
        before = capture_state(token)

        with pytest.raises(BackingTransferFailed) as exc_info:
            token.mint(ALICE, WAD)

        assert isinstance(exc_info.value.__cause__, ReentrancyDetected)
        assert capture_state(token) == before
        assert not token.is_busy

    def test_token_usable_after_rejected_reentry(self):
        backing = make_backing(asset=ReentrantBackingAsset(propagate=True))
        token = make_token(backing)
        backing.callback = lambda: token.burn(OWNER, 1)

        with pytest.raises(BackingTransferFailed):
            token.mint(ALICE, WAD)

        backing.callback = None
        assert token.mint(ALICE, WAD) == WAD
