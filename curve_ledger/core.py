"""
Core types and pure helpers for the bonding-curve token ledger.

This module provides the foundational pieces the engine is built from:
1. Constants: fixed-point scale, uint256 bounds, default tax and seed parameters
2. Checked arithmetic: uint256 range validation, add/sub/mul that never wrap
3. Exceptions: LedgerError and the domain-specific error taxonomy
4. Protocols: BackingAsset plus the capability interfaces the token implements
5. Immutable records: TokenConfig, TaxSplit, TokenStats, TokenEvent

Everything here is pure. Nothing in this module holds or mutates ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Protocol, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Fixed-point denominator for prices: SCALE represents a price of 1.0.
SCALE = 10 ** 18

# Word width of every amount the ledger stores or computes.
UINT256_MAX = (1 << 256) - 1

# Reference tax: 100 / 10_000 = 1% of every taxed transfer.
DEFAULT_TAX_RATE = 100
DEFAULT_BASIS_POINTS = 10_000

# Backing pulled from (and ledger tokens credited to) the owner at initialization.
# Equal amounts on both sides make the opening price exactly SCALE.
DEFAULT_SEED_AMOUNT = 10 ** 18

DEFAULT_DECIMALS = 18

# Null account. Used as the counterparty of mint and burn records.
ZERO_ACCOUNT = "0x0000000000000000000000000000000000000000"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class NotInitialized(LedgerError):
    """Raised when mint or redeem is attempted before initialize()."""
    pass


class AlreadyInitialized(LedgerError):
    """Raised on any initialize() call after the first successful one."""
    pass


class ZeroAmount(LedgerError):
    """Raised when an operation that requires a positive amount receives zero."""
    pass


class AmountTooSmall(LedgerError):
    """Raised when a mint or redeem conversion rounds down to zero."""
    pass


class InsufficientBalance(LedgerError):
    """Raised when a debit would take an account balance below zero."""
    pass


class InsufficientAllowance(InsufficientBalance):
    """Raised when a delegated spend exceeds the approved allowance."""
    pass


class InsufficientBacking(LedgerError):
    """Raised when the ledger does not hold enough backing to pay a redemption."""
    pass


class InvalidAccount(LedgerError):
    """Raised when a null account is supplied where a real one is required."""
    pass


class AssetTransferFailed(LedgerError):
    """Raised when an external asset transfer returns False or raises."""
    pass


class BackingTransferFailed(AssetTransferFailed):
    """Raised when a transfer of the backing asset returns False or raises."""
    pass


class ArithmeticOverflow(LedgerError, ArithmeticError):
    """Raised when an amount falls outside [0, UINT256_MAX]."""
    pass


class DivisionByZero(LedgerError, ZeroDivisionError):
    """Raised when a price is requested while supply (or price) is zero."""
    pass


class ReentrancyDetected(LedgerError):
    """Raised when a mutating operation is entered while another is in flight."""
    pass


class Unauthorized(LedgerError):
    """Raised when a non-owner calls an owner-only operation."""
    pass


class CannotWithdrawBacking(LedgerError):
    """Raised when emergency withdrawal targets the backing asset or the token itself."""
    pass


# ============================================================================
# CHECKED ARITHMETIC
# ============================================================================

def u256(value: int) -> int:
    """
    Validate that value is an unsigned 256-bit integer and return it.

    Raises:
        TypeError: If value is not an int (bool, float and Decimal are rejected)
        ArithmeticOverflow: If value is negative or exceeds UINT256_MAX
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Amount must be int, got {type(value).__name__}")
    if value < 0:
        raise ArithmeticOverflow(f"Amount underflows uint256: {value}")
    if value > UINT256_MAX:
        raise ArithmeticOverflow(f"Amount overflows uint256: {value}")
    return value


def checked_add(a: int, b: int) -> int:
    return u256(u256(a) + u256(b))


def checked_sub(a: int, b: int) -> int:
    return u256(u256(a) - u256(b))


def checked_mul(a: int, b: int) -> int:
    return u256(u256(a) * u256(b))


def is_null_account(account: object) -> bool:
    """True for anything that is not a non-blank string, and for ZERO_ACCOUNT."""
    return not isinstance(account, str) or not account.strip() or account == ZERO_ACCOUNT


def to_decimal(amount: int, decimals: int = DEFAULT_DECIMALS) -> Decimal:
    """
    Render a raw integer amount as a Decimal in whole-token units.

    Used for display only. All ledger arithmetic stays in integers.
    """
    value = Decimal(amount).scaleb(-decimals)
    normalized = value.normalize()
    if normalized == normalized.to_integral_value():
        return normalized.quantize(Decimal(1))
    return normalized


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class BackingAsset(Protocol):
    """
    Interface the ledger consumes from the asset it holds as collateral.

    The caller identity is explicit: `sender` for transfer, `spender` for
    transfer_from. Either method may return False or raise; the ledger treats
    both as a failed transfer.
    """

    def balance_of(self, account: str) -> int:
        """Return the balance held by account (0 if unknown)."""
        ...

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """Move amount from sender to `to`."""
        ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        """Move amount from owner to `to`, consuming spender's allowance."""
        ...


@runtime_checkable
class Transferable(Protocol):
    """Standard transferable-balance capability."""

    @property
    def total_supply(self) -> int:
        ...

    def balance_of(self, account: str) -> int:
        ...

    def allowance(self, owner: str, spender: str) -> int:
        ...

    def approve(self, caller: str, spender: str, amount: int) -> bool:
        ...

    def transfer(self, caller: str, to: str, amount: int) -> bool:
        ...

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        ...


@runtime_checkable
class Burnable(Protocol):
    """Supply-destroying capability."""

    def burn(self, caller: str, amount: int) -> None:
        ...

    def burn_from(self, caller: str, account: str, amount: int) -> None:
        ...


@runtime_checkable
class OwnerGated(Protocol):
    """A single designated owner gates administrative operations."""

    @property
    def owner(self) -> str:
        ...


@runtime_checkable
class ReentrancyGuarded(Protocol):
    """Mutating operations run one at a time and reject nested entry."""

    @property
    def is_busy(self) -> bool:
        ...


# ============================================================================
# ENUMS
# ============================================================================

class EventType(Enum):
    """
    Kind of a completed state transition recorded in the event log.

    The engine never reads these back; they exist for observers and audits.
    """
    INITIALIZED = "initialized"
    MINTED = "minted"
    REDEEMED = "redeemed"
    TRANSFER = "transfer"
    APPROVAL = "approval"
    TAX_COLLECTED = "tax_collected"
    BURNED = "burned"
    TAX_COLLECTOR_UPDATED = "tax_collector_updated"
    EXCLUSION_UPDATED = "exclusion_updated"
    EMERGENCY_WITHDRAWAL = "emergency_withdrawal"


# ============================================================================
# IMMUTABLE RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class TokenConfig:
    """
    Construction-time parameters of a bonding-curve token.

    Attributes:
        name: Human-readable token name.
        symbol: Ticker symbol.
        decimals: Display precision of one whole token.
        tax_rate: Tax numerator, in basis points of the transferred amount.
        basis_points: Tax denominator.
        seed_amount: Backing pulled and ledger tokens credited at initialize().

    All fields are validated in __post_init__.
    """
    name: str = "Backed Token"
    symbol: str = "BKD"
    decimals: int = DEFAULT_DECIMALS
    tax_rate: int = DEFAULT_TAX_RATE
    basis_points: int = DEFAULT_BASIS_POINTS
    seed_amount: int = DEFAULT_SEED_AMOUNT

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Token name cannot be empty")
        if not self.symbol or not self.symbol.strip():
            raise ValueError("Token symbol cannot be empty")
        for attr in ("decimals", "tax_rate", "basis_points", "seed_amount"):
            value = getattr(self, attr)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{attr} must be int, got {type(value).__name__}")
        if self.decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {self.decimals}")
        if self.basis_points <= 0:
            raise ValueError(f"basis_points must be positive, got {self.basis_points}")
        if not 0 <= self.tax_rate <= self.basis_points:
            raise ValueError(
                f"tax_rate must be within [0, {self.basis_points}], got {self.tax_rate}"
            )
        if not 0 < self.seed_amount <= UINT256_MAX:
            raise ValueError(f"seed_amount must be a positive uint256, got {self.seed_amount}")


@dataclass(frozen=True, slots=True)
class TaxSplit:
    """
    Breakdown of one transfer under the tax rule.

    Attributes:
        amount: Gross amount debited from the sender.
        tax: Total tax withheld.
        burned: Part of the tax destroyed (floor of half).
        collected: Part of the tax paid to the collector (receives the remainder).
        net: Amount the recipient receives.
    """
    amount: int
    tax: int
    burned: int
    collected: int
    net: int

    @property
    def is_taxed(self) -> bool:
        return self.tax > 0


@dataclass(frozen=True, slots=True)
class TokenStats:
    """Snapshot of the bonding-curve inputs and the derived price."""
    backing_held: int
    supply: int
    price: int


@dataclass(frozen=True, slots=True)
class TokenEvent:
    """
    Immutable record of a completed state transition.

    Attributes:
        event_type: What happened.
        sequence_number: Monotonic position within the token's event log.
        data: Event fields (accounts and integer amounts).
    """
    event_type: EventType
    sequence_number: int
    data: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v}" for k, v in self.data.items())
        return f"TokenEvent(#{self.sequence_number} {self.event_type.value}: {fields})"
