"""
guards.py - Explicit guard functions for the token's mutating operations

- ReentrancyGuard: scoped acquisition around every mutating operation.
  Calls from other threads wait their turn on an RLock; a nested call on the
  same thread (a callback from an external asset re-entering the token) finds
  the busy flag set and raises ReentrancyDetected.
- require_owner / require_account: called at the top of an operation instead
  of being wrapped around it.
"""

from __future__ import annotations
from contextlib import contextmanager
from typing import Iterator, Optional
import threading

from .core import (
    InvalidAccount, ReentrancyDetected, Unauthorized,
    is_null_account,
)


class ReentrancyGuard:
    """
    Busy flag plus a re-entrant lock.

    Only same-thread nesting raises ReentrancyDetected. A call from another
    thread blocks on the lock until the operation in flight finishes; if that
    operation is itself waiting on the other thread (a backing asset that
    hands the call to a worker and joins it), the two deadlock and nothing
    is raised.

    Example:
        guard = ReentrancyGuard()
        with guard.enter("mint"):
            ...  # any guard.enter() inside here raises ReentrancyDetected
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._busy: Optional[str] = None

    @property
    def is_busy(self) -> bool:
        return self._busy is not None

    @property
    def current_operation(self) -> Optional[str]:
        """Name of the operation in flight, or None."""
        return self._busy

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        """
        Hold the guard for the duration of the with-block.

        Raises:
            ReentrancyDetected: If this thread is already inside a guarded operation
        """
        self._lock.acquire()
        try:
            if self._busy is not None:
                raise ReentrancyDetected(
                    f"{operation} entered while {self._busy} is in flight"
                )
            self._busy = operation
            try:
                yield
            finally:
                self._busy = None
        finally:
            self._lock.release()


def require_owner(owner: str, caller: str) -> None:
    """Raise Unauthorized unless caller is the designated owner."""
    if caller != owner:
        raise Unauthorized(f"{caller} is not the owner")


def require_account(account: Optional[str], role: str = "account") -> str:
    """Raise InvalidAccount for a null account; return it otherwise."""
    if is_null_account(account):
        raise InvalidAccount(f"{role} cannot be the null account")
    return account
