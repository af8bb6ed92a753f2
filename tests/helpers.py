"""
helpers.py - Shared builders and assertions for curve_ledger tests

Accounts, a funded backing asset, token construction and state capture.
Fixtures in conftest.py are thin wrappers over these.
"""

from typing import Any, Dict, Optional

from curve_ledger import (
    BondingCurveToken, StandardToken, TokenConfig,
    UINT256_MAX,
)


OWNER = "owner"
COLLECTOR = "treasury"
ALICE = "alice"
BOB = "bob"
CAROL = "carol"
USERS = (ALICE, BOB, CAROL)

# One whole token at 18 decimals
WAD = 10 ** 18


def make_backing(
    funding: Optional[Dict[str, int]] = None,
    asset: Optional[StandardToken] = None,
) -> StandardToken:
    """Backing asset with the owner and the usual users funded."""
    if asset is None:
        asset = StandardToken("USD Coin", "USDC")
    if funding is None:
        funding = {
            OWNER: 1_000 * WAD,
            ALICE: 1_000_000 * WAD,
            BOB: 1_000_000 * WAD,
            CAROL: 1_000_000 * WAD,
        }
    for account, amount in funding.items():
        asset.issue(account, amount)
    return asset


def make_token(
    backing: Optional[StandardToken] = None,
    initialize: bool = True,
    approve_all: bool = True,
    **config_kwargs,
) -> BondingCurveToken:
    """
    Build a token over backing (default: make_backing()).

    Every funded account gets an unlimited backing allowance for the token's
    holding account, so mint() and initialize() can pull backing directly.
    """
    if backing is None:
        backing = make_backing()
    token = BondingCurveToken(
        OWNER, backing,
        tax_collector=COLLECTOR,
        config=TokenConfig(**config_kwargs),
        verbose=False,
    )
    if approve_all:
        for account in (OWNER,) + USERS:
            backing.approve(account, token.account, UINT256_MAX)
    if initialize:
        token.initialize(OWNER)
    return token


def capture_state(token: BondingCurveToken) -> Dict[str, Any]:
    """Everything an operation could change, in comparable form."""
    return {
        'holders': token.holders(),
        'supply': token.total_supply,
        'excluded': token.excluded_accounts(),
        'collector': token.tax_collector,
        'initialized': token.initialized,
        'events': list(token.events),
        'backing_held': token.backing_held(),
        'busy': token.is_busy,
    }


def assert_invariants(token: BondingCurveToken) -> None:
    result = token.verify_invariants()
    assert result['valid'], f"Invariant violated: {result['discrepancies']}"
