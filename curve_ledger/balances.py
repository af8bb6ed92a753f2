"""
balances.py - Balance Ledger

Sparse account balances, the total-supply counter and delegated allowances,
mutated only through conservation-preserving primitives:

    credit(account, amount)     balance += amount, supply += amount
    debit(account, amount)      balance -= amount, supply -= amount
    move(source, dest, amount)  debit(source) then credit(dest)

While a journal is open (begin), the first write to each balance, allowance
and the supply records its prior value. rollback() puts back only those
entries, so undoing an operation costs what the operation touched, never the
size of the book.

Every primitive uses checked uint256 arithmetic, so an amount can never wrap.
The class has no notion of price, tax or ownership; those live in token.py.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .core import (
    UINT256_MAX,
    InsufficientBalance, InsufficientAllowance,
    checked_add, checked_sub, u256,
)


@dataclass(slots=True)
class Journal:
    """Prior values of the entries written since begin(), first write only."""
    total_supply: int
    balances: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[Tuple[str, str], int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.balances) + len(self.allowances)


class BalanceLedger:
    """
    Account balances and total supply with checked mutation primitives.

    Invariant: sum(balances.values()) == total_supply after every primitive.

    Absent accounts hold zero; accounts whose balance returns to zero are
    dropped so that iteration only sees holders.

    Example:
        book = BalanceLedger()
        book.credit("alice", 100)
        book.begin()
        book.move("alice", "bob", 40)
        book.rollback()
        assert book.holders() == {"alice": 100}
    """

    def __init__(self):
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._total_supply: int = 0
        self._journal: Optional[Journal] = None

    # ========================================================================
    # READ-ONLY
    # ========================================================================

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def holders(self) -> Dict[str, int]:
        """Return a copy of all non-zero balances."""
        return dict(self._balances)

    def balance_sum(self) -> int:
        """Sum every balance, in sorted account order for determinism."""
        return sum(self._balances[a] for a in sorted(self._balances))

    # ========================================================================
    # MUTATION PRIMITIVES
    # ========================================================================

    def credit(self, account: str, amount: int) -> None:
        """
        Increase account's balance and the total supply by amount.

        Raises:
            ArithmeticOverflow: If either sum leaves the uint256 range
        """
        u256(amount)
        new_supply = checked_add(self._total_supply, amount)
        new_balance = checked_add(self.balance_of(account), amount)
        self._total_supply = new_supply
        self._set_balance(account, new_balance)

    def debit(self, account: str, amount: int) -> None:
        """
        Decrease account's balance and the total supply by amount.

        Raises:
            InsufficientBalance: If the account holds less than amount
        """
        u256(amount)
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientBalance(
                f"{account}: balance {balance} < requested {amount}"
            )
        self._total_supply = checked_sub(self._total_supply, amount)
        self._set_balance(account, balance - amount)

    def move(self, source: str, dest: str, amount: int) -> None:
        """Transfer amount from source to dest without any fee."""
        self.debit(source, amount)
        self.credit(dest, amount)

    def _set_balance(self, account: str, balance: int) -> None:
        if self._journal is not None and account not in self._journal.balances:
            self._journal.balances[account] = self.balance_of(account)
        if balance:
            self._balances[account] = balance
        else:
            self._balances.pop(account, None)

    # ========================================================================
    # ALLOWANCES
    # ========================================================================

    def approve(self, owner: str, spender: str, amount: int) -> None:
        u256(amount)
        self._set_allowance((owner, spender), amount)

    def spend_allowance(self, owner: str, spender: str, amount: int) -> None:
        """
        Consume amount of spender's allowance over owner's balance.

        An allowance of UINT256_MAX is unlimited and never decremented.

        Raises:
            InsufficientAllowance: If the allowance is smaller than amount
        """
        u256(amount)
        current = self.allowance(owner, spender)
        if current == UINT256_MAX:
            return
        if current < amount:
            raise InsufficientAllowance(
                f"{spender} may spend {current} of {owner}'s balance, requested {amount}"
            )
        self._set_allowance((owner, spender), current - amount)

    def _set_allowance(self, key: Tuple[str, str], amount: int) -> None:
        if self._journal is not None and key not in self._journal.allowances:
            self._journal.allowances[key] = self._allowances.get(key, 0)
        if amount:
            self._allowances[key] = amount
        else:
            self._allowances.pop(key, None)

    # ========================================================================
    # JOURNAL
    # ========================================================================

    @property
    def journal_size(self) -> int:
        """Number of balance and allowance entries recorded by the open journal."""
        return len(self._journal) if self._journal is not None else 0

    def begin(self) -> None:
        """
        Open a journal. Writes from here on can be undone with rollback().

        Raises:
            RuntimeError: If a journal is already open
        """
        if self._journal is not None:
            raise RuntimeError("BalanceLedger journal is already open")
        self._journal = Journal(total_supply=self._total_supply)

    def commit(self) -> None:
        """Keep every write since begin() and close the journal."""
        self._journal = None

    def rollback(self) -> None:
        """Put back every entry written since begin() and close the journal."""
        journal, self._journal = self._journal, None
        if journal is None:
            return
        for account, balance in journal.balances.items():
            self._set_balance(account, balance)
        for key, amount in journal.allowances.items():
            self._set_allowance(key, amount)
        self._total_supply = journal.total_supply

    def __repr__(self) -> str:
        return f"BalanceLedger({len(self._balances)} holders, supply={self._total_supply})"
