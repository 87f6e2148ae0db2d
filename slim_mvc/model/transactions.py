"""Nested transaction accounting for one named connection.

Invariants:
    - The physical transaction is opened only when depth goes 0 -> 1 and is
      resolved (commit or rollback) only when depth goes 1 -> 0.
    - complete()/fail() at depth 0 return False and never touch the handle.
    - A nested fail() taints the ledger; the taint is cleared only when depth
      returns to 0.

Caller contract:
    start/complete/fail must be balanced by the caller. The ledger cannot
    detect mismatched call sites beyond refusing complete/fail at depth 0.

Known behaviour (kept as is):
    - A non-terminal complete() reports ``not tainted`` but leaves the taint
      in place, so sibling nested scopes in the same outer scope keep seeing
      it until depth reaches 0.
    - The terminal complete() commits even when an inner scope failed; only
      the booleans returned by the nested completions reveal the failure.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol

logger = logging.getLogger(__name__)


class TransactionHandle(Protocol):
    """Physical transaction control for one connection."""

    def begin(self) -> bool: ...
    def commit(self) -> bool: ...
    def rollback(self) -> bool: ...
    def in_transaction(self) -> bool: ...


class TransactionLedger:
    def __init__(self, handle: TransactionHandle, *, name: str = "default") -> None:
        self.name = name
        self._handle = handle
        self._lock = threading.RLock()
        self._depth = 0
        self._tainted = False

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def tainted(self) -> bool:
        return self._tainted

    def start(self) -> bool:
        with self._lock:
            try:
                if self._handle.in_transaction():
                    # Joined a transaction opened outside the ledger.
                    if self._depth < 1:
                        self._depth = 1
                    self._depth += 1
                    return True
                if self._handle.begin():
                    self._depth += 1
                    return True
                return False
            except Exception as e:
                logger.warning("Could not start transaction on '%s': %s", self.name, e)
                return False

    def complete(self) -> bool:
        with self._lock:
            if self._depth < 1:
                logger.warning("complete() without matching start() on '%s'", self.name)
                return False
            try:
                self._depth -= 1
                if self._depth > 0:
                    return not self._tainted
                self._tainted = False
                self._depth = 0
                return bool(self._handle.commit())
            except Exception as e:
                logger.warning("Commit failed on '%s': %s", self.name, e)
                return False

    def fail(self) -> bool:
        with self._lock:
            if self._depth < 1:
                logger.warning("fail() without matching start() on '%s'", self.name)
                return False
            try:
                self._depth -= 1
                self._tainted = True
                if self._depth > 0:
                    return True
                self._tainted = False
                self._depth = 0
                return bool(self._handle.rollback())
            except Exception as e:
                logger.warning("Rollback failed on '%s': %s", self.name, e)
                return False
