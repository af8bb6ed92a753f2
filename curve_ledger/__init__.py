"""
curve_ledger - Bonding-Curve Token Ledger

A token minted against, and redeemable for, a backing asset at
price = backing_held * SCALE / total_supply, whose ordinary transfers burn half
of a basis-point tax and pay the other half to a collector.

Usage:
    from curve_ledger import BondingCurveToken, StandardToken, TokenConfig

    usdc = StandardToken("USD Coin", "USDC")
    usdc.issue("owner", 10**18)
    usdc.issue("alice", 100 * 10**18)

    token = BondingCurveToken("owner", usdc, tax_collector="treasury", verbose=False)
    usdc.approve("owner", token.account, 10**18)
    token.initialize("owner")

    # Mint at the opening price of 1.0
    usdc.approve("alice", token.account, 100 * 10**18)
    minted = token.mint("alice", 100 * 10**18)

    # Taxed transfer: 1% tax, half burned, half to the collector
    token.transfer("alice", "bob", minted)
"""

# Core types
from .core import (
    BackingAsset,
    Transferable,
    Burnable,
    OwnerGated,
    ReentrancyGuarded,
    TokenConfig,
    TaxSplit,
    TokenStats,
    TokenEvent,
    EventType,
    LedgerError,
    NotInitialized,
    AlreadyInitialized,
    ZeroAmount,
    AmountTooSmall,
    InsufficientBalance,
    InsufficientAllowance,
    InsufficientBacking,
    InvalidAccount,
    AssetTransferFailed,
    BackingTransferFailed,
    ArithmeticOverflow,
    DivisionByZero,
    ReentrancyDetected,
    Unauthorized,
    CannotWithdrawBacking,
    SCALE,
    UINT256_MAX,
    DEFAULT_TAX_RATE,
    DEFAULT_BASIS_POINTS,
    DEFAULT_SEED_AMOUNT,
    ZERO_ACCOUNT,
    to_decimal,
)

# Balance ledger
from .balances import BalanceLedger, Journal

# Pricing oracle
from .pricing import (
    compute_price,
    compute_mint_amount,
    compute_redeem_amount,
    split_tax,
    untaxed,
    price_to_decimal,
)

# Guards
from .guards import ReentrancyGuard, require_owner, require_account

# Assets
from .standard_token import StandardToken
from .token import BondingCurveToken, DEFAULT_HOLDING_ACCOUNT

__all__ = [
    # Protocols
    'BackingAsset', 'Transferable', 'Burnable', 'OwnerGated', 'ReentrancyGuarded',
    # Records
    'TokenConfig', 'TaxSplit', 'TokenStats', 'TokenEvent', 'EventType',
    # Exceptions
    'LedgerError', 'NotInitialized', 'AlreadyInitialized', 'ZeroAmount',
    'AmountTooSmall', 'InsufficientBalance', 'InsufficientAllowance',
    'InsufficientBacking', 'InvalidAccount', 'AssetTransferFailed',
    'BackingTransferFailed', 'ArithmeticOverflow', 'DivisionByZero',
    'ReentrancyDetected', 'Unauthorized', 'CannotWithdrawBacking',
    # Constants
    'SCALE', 'UINT256_MAX', 'DEFAULT_TAX_RATE', 'DEFAULT_BASIS_POINTS',
    'DEFAULT_SEED_AMOUNT', 'ZERO_ACCOUNT', 'DEFAULT_HOLDING_ACCOUNT',
    # Balance ledger
    'BalanceLedger', 'Journal',
    # Pricing
    'compute_price', 'compute_mint_amount', 'compute_redeem_amount',
    'split_tax', 'untaxed', 'price_to_decimal', 'to_decimal',
    # Guards
    'ReentrancyGuard', 'require_owner', 'require_account',
    # Assets
    'StandardToken', 'BondingCurveToken',
]

__version__ = '1.0.0'
