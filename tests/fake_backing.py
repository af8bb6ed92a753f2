"""
fake_backing.py - Misbehaving backing assets for tests

Provides StandardToken variants that fail or call back into the token
mid-transfer, to exercise the atomicity and reentrancy guarantees without
a real external asset.
"""

from __future__ import annotations
from typing import Callable, List, Optional

from curve_ledger import StandardToken


class FailingBackingAsset(StandardToken):
    """
    StandardToken whose transfers can be switched to fail.

    Example:
        asset = FailingBackingAsset()
        asset.fail_transfer = "false"   # transfer() returns False
        asset.fail_transfer_from = "raise"  # transfer_from() raises
    """

    def __init__(self):
        super().__init__("Flaky Dollar", "FLAKY")
        self.fail_transfer: Optional[str] = None
        self.fail_transfer_from: Optional[str] = None

    @staticmethod
    def _fail(mode: Optional[str]) -> Optional[bool]:
        if mode == "false":
            return False
        if mode == "raise":
            raise RuntimeError("backing asset is paused")
        return None

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        failed = self._fail(self.fail_transfer)
        if failed is not None:
            return failed
        return super().transfer(sender, to, amount)

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        failed = self._fail(self.fail_transfer_from)
        if failed is not None:
            return failed
        return super().transfer_from(spender, owner, to, amount)


class SlashableBackingAsset(StandardToken):
    """
    StandardToken whose balances can shrink outside any transfer.

    Models a rebasing or slashed collateral: slash() removes units from an
    account without the holder's involvement.
    """

    def __init__(self):
        super().__init__("Staked Dollar", "stUSD")

    def slash(self, account: str, amount: int) -> None:
        self._book.debit(account, amount)


class ReentrantBackingAsset(StandardToken):
    """
    StandardToken that runs a callback in the middle of every transfer.

    The callback typically calls back into the token. Exceptions it raises are
    recorded in `reentry_errors`; with propagate=True they are re-raised out of
    the transfer, otherwise the transfer completes normally.
    """

    def __init__(self, propagate: bool = False):
        super().__init__("Hooked Dollar", "HOOK")
        self.callback: Optional[Callable[[], None]] = None
        self.propagate = propagate
        self.reentry_errors: List[Exception] = []

    def _run_callback(self) -> None:
        if self.callback is None:
            return
        try:
            self.callback()
        except Exception as exc:
            self.reentry_errors.append(exc)
            if self.propagate:
                raise

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        self._run_callback()
        return super().transfer(sender, to, amount)

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        self._run_callback()
        return super().transfer_from(spender, owner, to, amount)
