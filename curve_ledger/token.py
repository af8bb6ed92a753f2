"""
token.py - Bonding-Curve Token Ledger

BondingCurveToken is the only class in the package that mutates token state.
It composes the capability modules into one service:

    - Balance Ledger (balances.py): balances, supply, allowances
    - Pricing Oracle (pricing.py): price, mint/redeem conversion, tax split
    - Guards (guards.py): reentrancy guard, owner and account checks
    - Exclusion Registry: tax-exempt accounts, held here
    - Backing asset: any object implementing the BackingAsset protocol

Key responsibilities:
    - Mint ledger tokens against deposits of the backing asset and redeem
      them back, both at price = backing_held * SCALE / total_supply
    - Tax ordinary transfers: half of the tax is burned, the rest goes to the
      tax collector, unless either party is excluded
    - Run every mutating operation atomically: on any error the state is
      undone entry by entry, back to exactly what it was before the call
    - Record every completed transition in an append-only event log
"""

from __future__ import annotations
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .balances import BalanceLedger
from .core import (
    # Types
    BackingAsset, EventType, TaxSplit, TokenConfig, TokenEvent, TokenStats,
    # Constants
    SCALE, ZERO_ACCOUNT,
    # Exceptions
    AlreadyInitialized, AmountTooSmall, AssetTransferFailed, BackingTransferFailed,
    CannotWithdrawBacking, InsufficientBacking, InsufficientBalance,
    NotInitialized, ZeroAmount,
    # Helpers
    to_decimal, u256,
)
from .guards import ReentrancyGuard, require_account, require_owner
from .pricing import (
    compute_mint_amount, compute_price, compute_redeem_amount,
    price_to_decimal, split_tax, untaxed,
)


# Default account under which the token holds its backing on the backing asset.
DEFAULT_HOLDING_ACCOUNT = "curve_ledger"


class BondingCurveToken:
    """
    Ledger token minted against and redeemed for a backing asset.

    Implements the Transferable, Burnable, OwnerGated and ReentrancyGuarded
    protocols from core.py. Every operation takes the acting account as its
    first argument.

    Lifecycle:
        1. Construct with an owner, a backing asset and a TokenConfig
        2. Owner calls initialize(), which pulls config.seed_amount of backing
           and credits the same amount of ledger tokens, so the opening price
           is exactly SCALE
        3. Anyone may mint, redeem, transfer and burn from then on

    Thread Safety:
        Mutating operations are serialized by the reentrancy guard. Views and
        previews read state without taking it.

    Example:
        usdc = StandardToken("USD Coin", "USDC")
        usdc.issue("owner", 10**18)
        token = BondingCurveToken("owner", usdc, tax_collector="treasury")
        usdc.approve("owner", token.account, 10**18)
        token.initialize("owner")
        assert token.get_current_price() == SCALE
    """

    def __init__(
        self,
        owner: str,
        backing: BackingAsset,
        tax_collector: Optional[str] = None,
        config: Optional[TokenConfig] = None,
        account: str = DEFAULT_HOLDING_ACCOUNT,
        verbose: bool = True,
    ):
        """
        Create an uninitialized token.

        Args:
            owner: Account allowed to initialize and administer the token
            backing: Asset held as collateral
            tax_collector: Receives the non-burned half of transfer tax
                (default: owner)
            config: Token parameters (default: TokenConfig())
            account: Holding account of this token on the backing asset
            verbose: Print a line for every accepted or rejected operation

        Raises:
            InvalidAccount: If owner, tax_collector or account is null
        """
        self._owner = require_account(owner, "owner")
        self.account = require_account(account, "holding account")
        self._tax_collector = require_account(
            tax_collector if tax_collector is not None else owner, "tax collector"
        )
        self.backing = backing
        self.config = config or TokenConfig()
        self.verbose = verbose

        self._book = BalanceLedger()
        self._excluded: Dict[str, bool] = {self.account: True, self._tax_collector: True}
        self._exclusion_journal: Optional[Dict[str, bool]] = None
        self._initialized = False
        self._guard = ReentrancyGuard()

        # Audit trail of completed transitions
        self.events: List[TokenEvent] = []
        self._next_sequence: int = 0

    # ========================================================================
    # METADATA AND STATE VIEWS
    # ========================================================================

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def symbol(self) -> str:
        return self.config.symbol

    @property
    def decimals(self) -> int:
        return self.config.decimals

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def tax_collector(self) -> str:
        return self._tax_collector

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def is_busy(self) -> bool:
        """True while a mutating operation is in flight."""
        return self._guard.is_busy

    @property
    def total_supply(self) -> int:
        return self._book.total_supply

    def balance_of(self, account: str) -> int:
        return self._book.balance_of(account)

    def allowance(self, owner: str, spender: str) -> int:
        return self._book.allowance(owner, spender)

    def is_excluded(self, account: str) -> bool:
        return self._excluded.get(account, False)

    def excluded_accounts(self) -> List[str]:
        return sorted(a for a, flag in self._excluded.items() if flag)

    def holders(self) -> Dict[str, int]:
        """All accounts with a non-zero ledger balance."""
        return self._book.holders()

    def events_of(self, event_type: EventType) -> List[TokenEvent]:
        return [e for e in self.events if e.event_type == event_type]

    # ========================================================================
    # PRICING VIEWS
    # ========================================================================

    def backing_held(self) -> int:
        """Backing balance of the holding account, read live from the asset."""
        return self.backing.balance_of(self.account)

    def get_current_price(self) -> int:
        """
        Current price, in backing units per ledger unit scaled by SCALE.

        Raises:
            DivisionByZero: If total supply is zero (before initialize(), or
                after every holder has burned or redeemed everything)
        """
        return compute_price(self.backing_held(), self._book.total_supply)

    def get_stats(self) -> TokenStats:
        held = self.backing_held()
        supply = self._book.total_supply
        return TokenStats(backing_held=held, supply=supply, price=compute_price(held, supply))

    def preview_mint(self, backing_amount: int) -> int:
        """Ledger units mint(backing_amount) would credit right now (0 if it would round to zero)."""
        self._require_initialized()
        return self._quote_mint(backing_amount)[1]

    def preview_redeem(self, ledger_amount: int) -> int:
        """Backing units redeem(ledger_amount) would pay right now (0 if it would round to zero)."""
        self._require_initialized()
        return self._quote_redeem(ledger_amount)[1]

    def preview_transfer(
        self,
        amount: int,
        sender: Optional[str] = None,
        recipient: Optional[str] = None,
    ) -> TaxSplit:
        """
        Split a transfer of amount would produce.

        Without parties the taxed split is returned. When a given sender or
        recipient is excluded, the untaxed split is returned instead.
        """
        if (sender is not None and self.is_excluded(sender)) or \
                (recipient is not None and self.is_excluded(recipient)):
            return untaxed(amount)
        return split_tax(u256(amount), self.config.tax_rate, self.config.basis_points)

    def _quote_mint(self, backing_amount: int) -> Tuple[int, int]:
        u256(backing_amount)
        price = self.get_current_price()
        return price, compute_mint_amount(backing_amount, price)

    def _quote_redeem(self, ledger_amount: int) -> Tuple[int, int]:
        u256(ledger_amount)
        price = self.get_current_price()
        return price, compute_redeem_amount(ledger_amount, price)

    # ========================================================================
    # INVARIANTS
    # ========================================================================

    def verify_invariants(self) -> Dict[str, Any]:
        """
        Check conservation and backing sufficiency against current state.

        Returns:
            Dict with keys:
            - 'valid': bool - True if every invariant holds
            - 'supply': int - total supply counter
            - 'balance_sum': int - sum of all balances
            - 'backing_held': int - live backing balance
            - 'price': Optional[int] - current price, None while supply is zero
            - 'discrepancies': List[Dict] - one entry per violated invariant

        Example:
            result = token.verify_invariants()
            assert result['valid'], result['discrepancies']
        """
        supply = self._book.total_supply
        balance_sum = self._book.balance_sum()
        held = self.backing_held()
        discrepancies = []

        if balance_sum != supply:
            discrepancies.append({
                'invariant': 'conservation',
                'expected': supply,
                'actual': balance_sum,
                'difference': balance_sum - supply,
            })

        price = None
        if supply:
            price = compute_price(held, supply)
            covered = supply * price // SCALE
            if held < covered:
                discrepancies.append({
                    'invariant': 'backing_sufficiency',
                    'expected': covered,
                    'actual': held,
                    'difference': held - covered,
                })

        return {
            'valid': len(discrepancies) == 0,
            'supply': supply,
            'balance_sum': balance_sum,
            'backing_held': held,
            'price': price,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # OPERATION SCAFFOLDING
    # ========================================================================

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        """
        Run a mutating operation under the guard, all-or-nothing.

        The balance book journals the entries the body writes and the token
        journals exclusion flags, so a failed call is undone entry by entry
        and leaves no trace (events included).
        """
        with self._guard.enter(name):
            before = self._capture()
            self._book.begin()
            try:
                yield
            except Exception as exc:
                self._book.rollback()
                self._restore(before)
                self._log(f"✗ REJECTED {name}: {type(exc).__name__}: {exc}")
                raise
            else:
                self._book.commit()
                self._exclusion_journal = None

    def _capture(self) -> Tuple[str, bool, int, int]:
        self._exclusion_journal = {}
        return (
            self._tax_collector,
            self._initialized,
            len(self.events),
            self._next_sequence,
        )

    def _restore(self, captured) -> None:
        collector, initialized, n_events, sequence = captured
        journal, self._exclusion_journal = self._exclusion_journal or {}, None
        for account, flag in journal.items():
            if flag:
                self._excluded[account] = True
            else:
                self._excluded.pop(account, None)
        self._tax_collector = collector
        self._initialized = initialized
        del self.events[n_events:]
        self._next_sequence = sequence

    def _emit(self, event_type: EventType, **data: Any) -> TokenEvent:
        event = TokenEvent(event_type, self._next_sequence, data)
        self._next_sequence += 1
        self.events.append(event)
        return event

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message)

    def _fmt(self, amount: int) -> str:
        return f"{to_decimal(amount, self.decimals)} {self.symbol}"

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitialized(f"{self.symbol} has not been initialized")

    def _pull_backing(self, source: str, amount: int) -> None:
        """Move amount of backing from source into the holding account."""
        try:
            ok = self.backing.transfer_from(self.account, source, self.account, amount)
        except Exception as exc:
            raise BackingTransferFailed(
                f"Pulling {amount} backing from {source} failed: {exc}"
            ) from exc
        if not ok:
            raise BackingTransferFailed(f"Pulling {amount} backing from {source} returned False")

    def _push_backing(self, dest: str, amount: int) -> None:
        """Move amount of backing from the holding account to dest."""
        try:
            ok = self.backing.transfer(self.account, dest, amount)
        except Exception as exc:
            raise BackingTransferFailed(
                f"Paying {amount} backing to {dest} failed: {exc}"
            ) from exc
        if not ok:
            raise BackingTransferFailed(f"Paying {amount} backing to {dest} returned False")

    # ========================================================================
    # INITIALIZATION
    # ========================================================================

    def initialize(self, caller: str) -> None:
        """
        Seed the ledger so the price is defined from here on.

        Pulls config.seed_amount of backing from the owner and credits the same
        amount of ledger tokens to the owner. Can succeed exactly once.

        Raises:
            AlreadyInitialized: On any call after the first success, whoever calls
            Unauthorized: If caller is not the owner
            BackingTransferFailed: If the seed deposit fails
        """
        with self._operation("initialize"):
            if self._initialized:
                raise AlreadyInitialized(f"{self.symbol} is already initialized")
            require_owner(self._owner, caller)
            if self._book.total_supply != 0:
                raise AlreadyInitialized(
                    f"{self.symbol} already has supply {self._book.total_supply}"
                )
            seed = self.config.seed_amount
            self._pull_backing(caller, seed)
            self._initialized = True
            self._book.credit(caller, seed)
            self._emit(EventType.INITIALIZED, owner=caller, backing_amount=seed, ledger_amount=seed)
            self._emit(EventType.TRANSFER, sender=ZERO_ACCOUNT, recipient=caller, amount=seed)
        self._log(f"✓ INITIALIZED {self.symbol}: seeded {self._fmt(seed)} to {caller}")

    # ========================================================================
    # MINT / REDEEM
    # ========================================================================

    def mint(self, caller: str, backing_amount: int) -> int:
        """
        Deposit backing_amount of the backing asset and receive ledger tokens.

        The price is taken before the deposit lands. The caller must have
        approved this token's holding account on the backing asset.

        Returns:
            Ledger units credited to caller

        Raises:
            NotInitialized, ZeroAmount, AmountTooSmall, BackingTransferFailed
        """
        with self._operation("mint"):
            require_account(caller, "minter")
            self._require_initialized()
            if u256(backing_amount) == 0:
                raise ZeroAmount("Cannot mint with zero backing")
            price, ledger_amount = self._quote_mint(backing_amount)
            if ledger_amount == 0:
                raise AmountTooSmall(
                    f"{backing_amount} backing buys nothing at price {price}"
                )
            self._pull_backing(caller, backing_amount)
            self._book.credit(caller, ledger_amount)
            self._emit(
                EventType.MINTED,
                account=caller, backing_amount=backing_amount,
                ledger_amount=ledger_amount, price=price,
            )
            self._emit(EventType.TRANSFER, sender=ZERO_ACCOUNT, recipient=caller, amount=ledger_amount)
        self._log(
            f"✓ MINTED {self._fmt(ledger_amount)} to {caller} "
            f"for {backing_amount} backing @ {price_to_decimal(price)}"
        )
        return ledger_amount

    def redeem(self, caller: str, ledger_amount: int) -> int:
        """
        Burn ledger_amount of caller's tokens and receive backing in return.

        Returns:
            Backing units paid to caller

        Raises:
            NotInitialized, ZeroAmount, InsufficientBalance, AmountTooSmall,
            InsufficientBacking, BackingTransferFailed
        """
        with self._operation("redeem"):
            require_account(caller, "redeemer")
            self._require_initialized()
            if u256(ledger_amount) == 0:
                raise ZeroAmount("Cannot redeem zero")
            balance = self._book.balance_of(caller)
            if balance < ledger_amount:
                raise InsufficientBalance(
                    f"{caller}: balance {balance} < requested {ledger_amount}"
                )
            price, backing_amount = self._quote_redeem(ledger_amount)
            if backing_amount == 0:
                raise AmountTooSmall(
                    f"{ledger_amount} ledger units redeem for nothing at price {price}"
                )
            held = self.backing_held()
            if held < backing_amount:
                raise InsufficientBacking(f"Holding {held} backing, owed {backing_amount}")
            self._book.debit(caller, ledger_amount)
            self._push_backing(caller, backing_amount)
            self._emit(
                EventType.REDEEMED,
                account=caller, ledger_amount=ledger_amount,
                backing_amount=backing_amount, price=price,
            )
            self._emit(EventType.TRANSFER, sender=caller, recipient=ZERO_ACCOUNT, amount=ledger_amount)
        self._log(
            f"✓ REDEEMED {self._fmt(ledger_amount)} from {caller} "
            f"for {backing_amount} backing @ {price_to_decimal(price)}"
        )
        return backing_amount

    # ========================================================================
    # TRANSFERS
    # ========================================================================

    def approve(self, caller: str, spender: str, amount: int) -> bool:
        """Allow spender to move up to amount of caller's tokens."""
        with self._operation("approve"):
            require_account(caller, "owner")
            require_account(spender, "spender")
            self._book.approve(caller, spender, amount)
            self._emit(EventType.APPROVAL, owner=caller, spender=spender, amount=amount)
        return True

    def transfer(self, caller: str, to: str, amount: int) -> bool:
        """
        Send amount from caller to `to`, taxed unless either side is excluded.

        Raises:
            InvalidAccount: If either party is the null account
            InsufficientBalance: If caller holds less than amount
        """
        with self._operation("transfer"):
            split = self._transfer(caller, to, amount)
        self._log_transfer(caller, to, split)
        return True

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        """
        Send amount from owner to `to` on owner's behalf, consuming caller's allowance.

        Raises:
            InsufficientAllowance: If caller's allowance over owner is below amount
            InvalidAccount, InsufficientBalance: As for transfer()
        """
        with self._operation("transfer_from"):
            require_account(owner, "owner")
            self._book.spend_allowance(owner, caller, amount)
            split = self._transfer(owner, to, amount)
        self._log_transfer(owner, to, split)
        return True

    def _transfer(self, sender: str, recipient: str, amount: int) -> TaxSplit:
        """
        Apply the tax-split-and-burn rule. Must run inside _operation().

        Sequence for a taxed transfer:
            1. burn the burned half from sender (supply shrinks)
            2. move the collected half to the tax collector
            3. move the net amount to recipient
        """
        require_account(sender, "sender")
        require_account(recipient, "recipient")
        balance = self._book.balance_of(sender)
        if balance < u256(amount):
            raise InsufficientBalance(f"{sender}: balance {balance} < requested {amount}")

        if self.is_excluded(sender) or self.is_excluded(recipient):
            self._book.move(sender, recipient, amount)
            self._emit(EventType.TRANSFER, sender=sender, recipient=recipient, amount=amount)
            return untaxed(amount)

        split = split_tax(amount, self.config.tax_rate, self.config.basis_points)
        if split.burned > 0:
            self._book.debit(sender, split.burned)
            self._emit(EventType.TRANSFER, sender=sender, recipient=ZERO_ACCOUNT, amount=split.burned)
        if split.collected > 0:
            self._book.move(sender, self._tax_collector, split.collected)
            self._emit(
                EventType.TRANSFER,
                sender=sender, recipient=self._tax_collector, amount=split.collected,
            )
        self._book.move(sender, recipient, split.net)
        self._emit(EventType.TRANSFER, sender=sender, recipient=recipient, amount=split.net)
        self._emit(
            EventType.TAX_COLLECTED,
            sender=sender, recipient=recipient, amount=amount,
            tax=split.tax, burned=split.burned,
        )
        return split

    def _log_transfer(self, sender: str, recipient: str, split: TaxSplit) -> None:
        if split.is_taxed:
            self._log(
                f"✓ TRANSFER {self._fmt(split.net)}: {sender} → {recipient} "
                f"(tax {self._fmt(split.tax)}, burned {self._fmt(split.burned)})"
            )
        else:
            self._log(f"✓ TRANSFER {self._fmt(split.net)}: {sender} → {recipient}")

    # ========================================================================
    # BURNS
    # ========================================================================

    def burn(self, caller: str, amount: int) -> None:
        """Destroy amount of caller's tokens. Backing stays put, so price rises."""
        with self._operation("burn"):
            require_account(caller, "burner")
            self._burn(caller, amount)
        self._log(f"✓ BURNED {self._fmt(amount)} from {caller}")

    def burn_from(self, caller: str, account: str, amount: int) -> None:
        """Destroy amount of account's tokens, consuming caller's allowance."""
        with self._operation("burn_from"):
            require_account(account, "account")
            self._book.spend_allowance(account, caller, amount)
            self._burn(account, amount)
        self._log(f"✓ BURNED {self._fmt(amount)} from {account} by {caller}")

    def _burn(self, account: str, amount: int) -> None:
        self._book.debit(account, amount)
        self._emit(EventType.BURNED, account=account, amount=amount)
        self._emit(EventType.TRANSFER, sender=account, recipient=ZERO_ACCOUNT, amount=amount)

    # ========================================================================
    # ADMINISTRATION (owner-only)
    # ========================================================================

    def set_excluded(self, caller: str, account: str, flag: bool) -> None:
        """Mark or unmark account as exempt from transfer tax."""
        with self._operation("set_excluded"):
            require_owner(self._owner, caller)
            require_account(account, "account")
            self._set_exclusion(account, bool(flag))
        self._log(f"✓ EXCLUSION {account} = {bool(flag)}")

    def set_tax_collector(self, caller: str, new_collector: str) -> None:
        """
        Replace the tax collector, moving its exclusion flag with it.

        The old collector loses its exemption and the new one gains it within
        the same operation.
        """
        with self._operation("set_tax_collector"):
            require_owner(self._owner, caller)
            require_account(new_collector, "tax collector")
            old_collector = self._tax_collector
            self._set_exclusion(old_collector, False)
            self._set_exclusion(new_collector, True)
            self._tax_collector = new_collector
            self._emit(
                EventType.TAX_COLLECTOR_UPDATED,
                old_collector=old_collector, new_collector=new_collector,
            )
        self._log(f"✓ TAX COLLECTOR {old_collector} → {new_collector}")

    def _set_exclusion(self, account: str, flag: bool) -> None:
        if self._exclusion_journal is not None and account not in self._exclusion_journal:
            self._exclusion_journal[account] = self.is_excluded(account)
        if flag:
            self._excluded[account] = True
        else:
            self._excluded.pop(account, None)
        self._emit(EventType.EXCLUSION_UPDATED, account=account, excluded=flag)

    def emergency_withdraw(self, caller: str, other_asset: BackingAsset, amount: int) -> None:
        """
        Send amount of an asset mistakenly held by this token to the owner.

        Raises:
            Unauthorized: If caller is not the owner
            CannotWithdrawBacking: If other_asset is the backing asset, or this
                token itself, whose transfer would re-enter the busy guard
            ZeroAmount: If amount is zero
            AssetTransferFailed: If the asset transfer fails
        """
        with self._operation("emergency_withdraw"):
            require_owner(self._owner, caller)
            if other_asset is self.backing:
                raise CannotWithdrawBacking("The backing asset can only leave through redeem()")
            if other_asset is self:
                raise CannotWithdrawBacking(f"{self.symbol} cannot withdraw from its own ledger")
            if u256(amount) == 0:
                raise ZeroAmount("Cannot withdraw zero")
            try:
                ok = other_asset.transfer(self.account, self._owner, amount)
            except Exception as exc:
                raise AssetTransferFailed(f"Emergency withdrawal of {amount} failed: {exc}") from exc
            if not ok:
                raise AssetTransferFailed(f"Emergency withdrawal of {amount} returned False")
            self._emit(
                EventType.EMERGENCY_WITHDRAWAL,
                asset=getattr(other_asset, "symbol", repr(other_asset)),
                recipient=self._owner, amount=amount,
            )
        self._log(f"✓ EMERGENCY WITHDRAWAL {amount} to {self._owner}")

    def __repr__(self) -> str:
        state = "initialized" if self._initialized else "uninitialized"
        return f"BondingCurveToken({self.symbol}, {state}, supply={self._book.total_supply})"
