#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: The Bonding-Curve Token Step by Step

A walkthrough of one token's life, from the seed deposit to the last
redemption. Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:   Foundation     - Backing asset, construction, the seed deposit
  4-6:   The Curve      - Minting, taxed transfers, redeeming
  7-8:   Safety         - Rejected operations, reentrancy
  9-10:  Administration - Exclusions, tax collector, emergency withdrawal
  11:    Load Test      - Random workload with invariant checks

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys
import random

from curve_ledger import (
    BondingCurveToken, StandardToken, TokenConfig,
    EventType, LedgerError, UINT256_MAX,
    price_to_decimal, to_decimal,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

WAD = 10 ** 18


@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    # Initial funding, in whole backing units
    owner_initial: int = 1_000
    alice_initial: int = 10_000
    bob_initial: int = 10_000

    # Token parameters
    tax_rate: int = 100          # 1%
    seed_amount: int = 1 * WAD

    # Load test parameters (Step 11)
    load_test_accounts: int = 50
    load_test_operations: int = 20_000
    load_test_seed: int = 42


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def show_stats(token: BondingCurveToken):
    stats = token.get_stats()
    print(f"Backing held:  {to_decimal(stats.backing_held)} {token.backing.symbol}")
    print(f"Total supply:  {to_decimal(stats.supply)} {token.symbol}")
    print(f"Price:         {price_to_decimal(stats.price)} {token.backing.symbol}/{token.symbol}")


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_backing_asset() -> StandardToken:
    """Create the asset the token will hold as collateral."""
    step_header(1, "The Backing Asset",
        "Every ledger token is a claim on a pool of some other asset.")

    print(">>> usdc = StandardToken('USD Coin', 'USDC')")
    usdc = StandardToken("USD Coin", "USDC")
    usdc.issue("owner", CONFIG.owner_initial * WAD)
    usdc.issue("alice", CONFIG.alice_initial * WAD)
    usdc.issue("bob", CONFIG.bob_initial * WAD)

    section_header("Balances")
    for account in ("owner", "alice", "bob"):
        print(f"{account:8s} {to_decimal(usdc.balance_of(account))} USDC")
    return usdc


def step_02_construct(usdc: StandardToken) -> BondingCurveToken:
    """Construct the token. It has no supply yet, so no price."""
    step_header(2, "Construction",
        "A freshly built token has no supply and therefore no price.")

    config = TokenConfig(name="Curve Dollar", symbol="CRV$",
                         tax_rate=CONFIG.tax_rate, seed_amount=CONFIG.seed_amount)
    token = BondingCurveToken("owner", usdc, tax_collector="treasury", config=config)

    print(f"Owner:          {token.owner}")
    print(f"Tax collector:  {token.tax_collector}")
    print(f"Excluded:       {token.excluded_accounts()}")
    print(f"Tax:            {config.tax_rate}/{config.basis_points} "
          f"({config.tax_rate * 100 / config.basis_points}%)")

    section_header("Price before initialize()")
    try:
        token.get_current_price()
    except LedgerError as exc:
        print(f"✗ {type(exc).__name__}: {exc}")
    return token


def step_03_initialize(token: BondingCurveToken) -> BondingCurveToken:
    """Seed the curve: equal backing and supply, so price = 1.0."""
    step_header(3, "The Seed Deposit",
        "initialize() pulls backing and mints the same number of tokens.")

    for account in ("owner", "alice", "bob"):
        token.backing.approve(account, token.account, UINT256_MAX)

    token.initialize("owner")
    show_stats(token)
    return token


# ============================================================================
# PHASE 2: THE CURVE (Steps 4-6)
# ============================================================================

def step_04_mint(token: BondingCurveToken) -> BondingCurveToken:
    step_header(4, "Minting",
        "Deposits buy tokens at the current price; the price does not move.")

    print(f"Preview: 100 USDC buys {to_decimal(token.preview_mint(100 * WAD))} {token.symbol}")
    token.mint("alice", 100 * WAD)
    show_stats(token)
    return token


def step_05_taxed_transfer(token: BondingCurveToken) -> BondingCurveToken:
    step_header(5, "Taxed Transfer",
        "Half of the tax is burned, so every ordinary transfer lifts the price.")

    split = token.preview_transfer(100 * WAD, "alice", "bob")
    print(f"Preview: net {to_decimal(split.net)}, burned {to_decimal(split.burned)}, "
          f"collector {to_decimal(split.collected)}")

    token.transfer("alice", "bob", 100 * WAD)
    section_header("After the transfer")
    print(f"bob:       {to_decimal(token.balance_of('bob'))} {token.symbol}")
    print(f"treasury:  {to_decimal(token.balance_of('treasury'))} {token.symbol}")
    show_stats(token)
    return token


def step_06_redeem(token: BondingCurveToken) -> BondingCurveToken:
    step_header(6, "Redeeming",
        "Holders exit at the current price, which now carries the burned tax.")

    before = token.backing.balance_of("bob")
    token.redeem("bob", 50 * WAD)
    paid = token.backing.balance_of("bob") - before
    print(f"bob redeemed 50 {token.symbol} for {to_decimal(paid)} USDC")
    show_stats(token)
    return token


# ============================================================================
# PHASE 3: SAFETY (Steps 7-8)
# ============================================================================

def step_07_rejections(token: BondingCurveToken) -> BondingCurveToken:
    step_header(7, "Rejected Operations",
        "A failed operation leaves no trace: no balance change, no event.")

    events_before = len(token.events)
    attempts = [
        ("redeem(0)", lambda: token.redeem("alice", 0)),
        ("initialize() again", lambda: token.initialize("owner")),
        ("transfer more than held", lambda: token.transfer("bob", "alice", 10 ** 30)),
        ("non-owner exclusion", lambda: token.set_excluded("alice", "alice", True)),
    ]
    for label, attempt in attempts:
        print(f">>> {label}")
        try:
            attempt()
        except LedgerError:
            pass

    section_header("Event log untouched")
    print(f"Events before: {events_before}, after: {len(token.events)}")
    return token


class HookedDollar(StandardToken):
    """Backing asset that runs a callback before every transfer_from."""

    def __init__(self):
        super().__init__("Hooked Dollar", "HUSD")
        self.callback = None

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        if self.callback is not None:
            self.callback()
        return super().transfer_from(spender, owner, to, amount)


def step_08_reentrancy(token: BondingCurveToken) -> BondingCurveToken:
    step_header(8, "Reentrancy",
        "Nested calls into a busy token are refused; views stay available.")

    hooked = HookedDollar()
    hooked.issue("owner", WAD)
    hooked.issue("alice", 10 * WAD)
    guarded = BondingCurveToken("owner", hooked, verbose=False)
    for account in ("owner", "alice"):
        hooked.approve(account, guarded.account, UINT256_MAX)
    guarded.initialize("owner")

    def reenter():
        print(f"is_busy inside mint():       {guarded.is_busy}")
        print(f"price still readable:        {price_to_decimal(guarded.get_current_price())}")
        try:
            guarded.mint("alice", WAD)
        except LedgerError as exc:
            print(f"nested mint: ✗ {type(exc).__name__}")

    print(">>> the backing asset calls mint() again while mint() pulls the deposit")
    hooked.callback = reenter
    guarded.mint("alice", 2 * WAD)
    hooked.callback = None
    print(f"is_busy afterwards:          {guarded.is_busy}")
    print(f"alice holds:                 {to_decimal(guarded.balance_of('alice'))} {guarded.symbol}")
    return token


# ============================================================================
# PHASE 4: ADMINISTRATION (Steps 9-10)
# ============================================================================

def step_09_exclusions(token: BondingCurveToken) -> BondingCurveToken:
    step_header(9, "Exclusions and the Tax Collector",
        "Excluded accounts move tokens untaxed; the exemption follows the collector.")

    token.set_excluded("owner", "bob", True)
    token.transfer("bob", "alice", 10 * WAD)
    print(f"alice received the full {to_decimal(token.balance_of('alice'))} {token.symbol}")

    token.set_tax_collector("owner", "dao")
    print(f"Excluded now: {token.excluded_accounts()}")
    return token


def step_10_emergency(token: BondingCurveToken) -> BondingCurveToken:
    step_header(10, "Emergency Withdrawal",
        "Stray assets can be recovered; the backing asset never can.")

    stray = StandardToken("Wrapped Ether", "WETH")
    stray.issue(token.account, 3 * WAD)
    token.emergency_withdraw("owner", stray, 3 * WAD)
    print(f"owner recovered {to_decimal(stray.balance_of('owner'))} WETH")

    try:
        token.emergency_withdraw("owner", token.backing, WAD)
    except LedgerError:
        pass
    return token


# ============================================================================
# PHASE 5: SCALE (Step 11)
# ============================================================================

def step_11_load_test():
    step_header(11, "Load Test",
        "Random operations never break conservation or lower the price.")

    rng = random.Random(CONFIG.load_test_seed)
    usdc = StandardToken("USD Coin", "USDC")
    accounts = [f"user_{i:03d}" for i in range(CONFIG.load_test_accounts)]
    usdc.issue("owner", WAD)
    for account in accounts:
        usdc.issue(account, 1_000_000 * WAD)

    token = BondingCurveToken("owner", usdc, tax_collector="treasury", verbose=False)
    for account in ["owner"] + accounts:
        usdc.approve(account, token.account, UINT256_MAX)
    token.initialize("owner")

    accepted = rejected = 0
    price = token.get_current_price()
    for _ in range(CONFIG.load_test_operations):
        actor = rng.choice(accounts)
        other = rng.choice(accounts)
        amount = rng.randint(1, 1_000 * WAD)
        op = rng.choice(("mint", "redeem", "transfer", "burn"))
        try:
            if op == "mint":
                token.mint(actor, amount)
            elif op == "redeem":
                token.redeem(actor, min(amount, token.balance_of(actor)))
            elif op == "transfer":
                token.transfer(actor, other, min(amount, token.balance_of(actor)))
            else:
                token.burn(actor, min(amount // 100, token.balance_of(actor)))
            accepted += 1
        except LedgerError:
            rejected += 1
        new_price = token.get_current_price()
        assert new_price >= price
        price = new_price

    result = token.verify_invariants()
    print(f"Operations:    {accepted} accepted, {rejected} rejected")
    print(f"Holders:       {len(token.holders())}")
    print(f"Events:        {len(token.events)} "
          f"({len(token.events_of(EventType.TAX_COLLECTED))} taxed transfers)")
    show_stats(token)
    print(f"Invariants:    {'✓ valid' if result['valid'] else '✗ ' + str(result['discrepancies'])}")


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       BONDING-CURVE TOKEN - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")
    wait_for_enter()

    usdc = step_01_backing_asset()
    wait_for_enter()
    token = step_02_construct(usdc)
    wait_for_enter()
    token = step_03_initialize(token)
    wait_for_enter()

    token = step_04_mint(token)
    wait_for_enter()
    token = step_05_taxed_transfer(token)
    wait_for_enter()
    token = step_06_redeem(token)
    wait_for_enter()

    token = step_07_rejections(token)
    wait_for_enter()
    token = step_08_reentrancy(token)
    wait_for_enter()

    token = step_09_exclusions(token)
    wait_for_enter()
    token = step_10_emergency(token)
    wait_for_enter()

    step_11_load_test()

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    You've learned:

      - Price = backing held / total supply, fixed-point at 10^18
      - Minting and redeeming happen at that price, rounded toward the pool
      - Every taxed transfer burns half its tax, so the price only rises
      - Operations are all-or-nothing and refuse nested entry

    Next steps:
      - See curve_ledger/token.py for the operation sequences
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
