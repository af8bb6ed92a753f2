"""
pricing.py - Bonding-curve pricing and tax arithmetic

Pure functions shared by the mutating operations and their previews, so a
preview is bit-identical to the operation it quotes:

    compute_price(backing_held, supply)       floor(backing_held * SCALE / supply)
    compute_mint_amount(backing_amount, p)    floor(backing_amount * SCALE / p)
    compute_redeem_amount(ledger_amount, p)   floor(ledger_amount * p / SCALE)
    split_tax(amount, tax_rate, basis_points) tax, burned and collected halves, net

Prices are unsigned fixed-point integers where SCALE denotes 1.0. Every product
is checked against the uint256 range before dividing.
"""

from decimal import Decimal

from .core import (
    SCALE, TaxSplit,
    DivisionByZero,
    checked_mul, checked_sub, u256,
)


def compute_price(backing_held: int, supply: int, scale: int = SCALE) -> int:
    """
    Backing units held per ledger unit, scaled by SCALE.

    Args:
        backing_held: Backing asset balance of the ledger's holding account
        supply: Ledger token total supply

    Raises:
        DivisionByZero: If supply is zero. After initialization this only
            happens if every holder has burned or redeemed their full balance.
    """
    u256(backing_held)
    if u256(supply) == 0:
        raise DivisionByZero("Price undefined: total supply is zero")
    return checked_mul(backing_held, scale) // supply


def compute_mint_amount(backing_amount: int, price: int, scale: int = SCALE) -> int:
    """
    Ledger units minted for a deposit of backing_amount at price.

    Raises:
        DivisionByZero: If price is zero
    """
    if u256(price) == 0:
        raise DivisionByZero("Cannot mint at a price of zero")
    return checked_mul(backing_amount, scale) // price


def compute_redeem_amount(ledger_amount: int, price: int, scale: int = SCALE) -> int:
    """Backing units paid out for redeeming ledger_amount at price."""
    return checked_mul(ledger_amount, price) // scale


def split_tax(amount: int, tax_rate: int, basis_points: int) -> TaxSplit:
    """
    Apply the transfer tax rule to amount.

    The burned half is rounded down; the collector receives the remainder,
    so burned <= collected <= burned + 1 and the sender never keeps a unit
    of rounding.

    Example:
        split = split_tax(100 * 10**18, 100, 10_000)
        # split.tax == 1 * 10**18
        # split.burned == split.collected == 5 * 10**17
        # split.net == 99 * 10**18
    """
    if basis_points <= 0:
        raise ValueError(f"basis_points must be positive, got {basis_points}")
    tax = checked_mul(amount, tax_rate) // basis_points
    burned = tax // 2
    return TaxSplit(
        amount=amount,
        tax=tax,
        burned=burned,
        collected=tax - burned,
        net=checked_sub(amount, tax),
    )


def untaxed(amount: int) -> TaxSplit:
    """The split of a transfer where sender or recipient is excluded."""
    return TaxSplit(amount=u256(amount), tax=0, burned=0, collected=0, net=amount)


def price_to_decimal(price: int, scale: int = SCALE) -> Decimal:
    """Convert a fixed-point price to a Decimal for display (SCALE -> 1)."""
    return (Decimal(price) / Decimal(scale)).normalize()
