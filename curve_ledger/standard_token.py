"""
standard_token.py - In-memory transferable-balance asset

A plain fungible token with balances, allowances, transfer and transfer_from.
It satisfies the BackingAsset protocol, so it serves as the collateral of a
BondingCurveToken in simulations and tests, and as an unrelated asset that can
be recovered with emergency_withdraw().

Failures raise (InsufficientBalance, InsufficientAllowance, InvalidAccount)
rather than returning False; a BondingCurveToken treats both the same way.
"""

from __future__ import annotations

from .balances import BalanceLedger
from .core import DEFAULT_DECIMALS, InsufficientBalance, u256
from .guards import require_account


class StandardToken:
    """
    Fungible asset with explicit-caller transfer methods.

    Example:
        usdc = StandardToken("USD Coin", "USDC", decimals=6)
        usdc.issue("alice", 1_000_000)
        usdc.approve("alice", "pool", 500_000)
        usdc.transfer_from("pool", "alice", "pool", 500_000)
    """

    def __init__(self, name: str, symbol: str, decimals: int = DEFAULT_DECIMALS):
        if not symbol or not symbol.strip():
            raise ValueError("symbol cannot be empty")
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self._book = BalanceLedger()

    @property
    def total_supply(self) -> int:
        return self._book.total_supply

    def balance_of(self, account: str) -> int:
        return self._book.balance_of(account)

    def allowance(self, owner: str, spender: str) -> int:
        return self._book.allowance(owner, spender)

    def issue(self, to: str, amount: int) -> None:
        """Create amount new units in `to` (test and simulation funding)."""
        self._book.credit(require_account(to, "recipient"), amount)

    def approve(self, caller: str, spender: str, amount: int) -> bool:
        require_account(caller, "owner")
        require_account(spender, "spender")
        self._book.approve(caller, spender, amount)
        return True

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        require_account(sender, "sender")
        require_account(to, "recipient")
        self._book.move(sender, to, u256(amount))
        return True

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        """Move amount from owner to `to` using spender's allowance."""
        require_account(owner, "owner")
        require_account(to, "recipient")
        balance = self._book.balance_of(owner)
        if balance < u256(amount):
            raise InsufficientBalance(f"{owner}: balance {balance} < requested {amount}")
        # spend_allowance raises before writing; move cannot fail past the balance check
        self._book.spend_allowance(owner, spender, amount)
        self._book.move(owner, to, amount)
        return True

    def __repr__(self) -> str:
        return f"StandardToken({self.symbol}, supply={self.total_supply})"
