"""
recon_engines.deposit_index -- Amount-keyed index of unmatched deposits.

Responsibility:
    Give the POS rounds constant-time access to the deposits that could
    match a payment: ``normalized amount -> (date, method) -> [deposit]``.
    The index is built once per invocation and shrinks as deposits are
    claimed.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Works on anything that satisfies ``Reconcilable`` (single deposits
    and AggregatedDeposit groups alike).

Invariants enforced:
    - Keys use ``normalize_amount``; 12.5 and 12.50 share a level.
    - A claimed deposit is removed immediately, so it can never be
      handed out twice.
    - Empty buckets and empty amount levels are deleted; iteration and
      len() only ever see resident entries.
    - Buckets keep insertion order, which is the store's (date, time, id)
      order, so first-fit is deterministic.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from datetime import date
from decimal import Decimal
from typing import Generic, TypeVar

from recon_kernel.domain.amounts import normalize_amount
from recon_kernel.domain.types import Reconcilable

D = TypeVar("D", bound=Reconcilable)

BucketKey = tuple[date, str]


class DepositIndex(Generic[D]):
    """
    Owned, mutable two-level index over deposits.

    Contract:
        ``claim`` is the only way the matching rounds take a deposit; it
        removes the deposit it returns.
    Non-goals:
        - Does not look at status when building; callers pass only
          deposits that are still candidates.
    """

    def __init__(self, deposits: Iterable[D] = ()) -> None:
        self._levels: dict[Decimal, dict[BucketKey, list[D]]] = {}
        self._size = 0
        for deposit in deposits:
            self.add(deposit)

    def add(self, deposit: D) -> None:
        level = self._levels.setdefault(normalize_amount(deposit.amount), {})
        level.setdefault((deposit.match_date, deposit.method), []).append(deposit)
        self._size += 1

    def bucket(self, amount: Decimal, on: date, method: str) -> tuple[D, ...]:
        """Resident deposits for (amount, date, method), in insertion order."""
        level = self._levels.get(normalize_amount(amount))
        if not level:
            return ()
        return tuple(level.get((on, method), ()))

    def has_bucket(self, amount: Decimal, on: date, method: str) -> bool:
        return bool(self.bucket(amount, on, method))

    def level(self, amount: Decimal) -> dict[BucketKey, tuple[D, ...]]:
        """All buckets for one amount (read-only copy)."""
        level = self._levels.get(normalize_amount(amount), {})
        return {key: tuple(bucket) for key, bucket in level.items()}

    def claim(
        self,
        amount: Decimal,
        on: date,
        method: str,
        predicate: Callable[[D], bool] = lambda d: True,
    ) -> D | None:
        """
        Remove and return the first deposit in the bucket passing ``predicate``.

        Returns None (and leaves the index unchanged) when nothing passes.
        """
        key = normalize_amount(amount)
        level = self._levels.get(key)
        if not level:
            return None
        bucket = level.get((on, method))
        if not bucket:
            return None
        for position, deposit in enumerate(bucket):
            if predicate(deposit):
                del bucket[position]
                self._size -= 1
                self._prune(key, (on, method))
                return deposit
        return None

    def remove(self, deposit: D) -> bool:
        """Remove a specific deposit; returns False if it was not resident."""
        key = normalize_amount(deposit.amount)
        bucket_key = (deposit.match_date, deposit.method)
        bucket = self._levels.get(key, {}).get(bucket_key)
        if not bucket:
            return False
        for position, resident in enumerate(bucket):
            if resident is deposit:
                del bucket[position]
                self._size -= 1
                self._prune(key, bucket_key)
                return True
        return False

    def _prune(self, key: Decimal, bucket_key: BucketKey) -> None:
        level = self._levels[key]
        if not level[bucket_key]:
            del level[bucket_key]
        if not level:
            del self._levels[key]

    @property
    def amounts(self) -> tuple[Decimal, ...]:
        return tuple(self._levels)

    def __iter__(self) -> Iterator[D]:
        for level in self._levels.values():
            for bucket in level.values():
                yield from bucket

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._size > 0

    def __repr__(self) -> str:
        return f"DepositIndex(levels={len(self._levels)}, deposits={self._size})"
