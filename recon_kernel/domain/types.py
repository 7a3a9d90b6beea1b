"""
Domain records for payment-to-deposit reconciliation.

Pure frozen dataclasses.  The stores populate them from the database; the
engines receive them as immutable inputs and return updated copies built
with ``dataclasses.replace`` (via ``transition``).

Payments and both deposit variants share a read interface
(``Reconcilable``: amount, match_date, method, status) so that indexing
and aggregation are written once for every flow.

Architecture: recon_kernel/domain -- pure domain, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum, unique
from typing import Any, Protocol, TypeVar, runtime_checkable
from uuid import UUID

from recon_kernel.domain.amounts import normalize_amount, to_decimal
from recon_kernel.domain.status import (
    HeuristicRound,
    MatchStatus,
    validate_transition,
)
from recon_kernel.exceptions import (
    InvalidDateRangeError,
    InvalidStatusTransitionError,
)


@unique
class Program(str, Enum):
    """Revenue-collection programs whose locations report payments."""

    SBC = "SBC"
    LABOUR = "LABOUR"


@unique
class PaymentClassification(str, Enum):
    """Settlement flow a payment method belongs to."""

    POS = "POS"  # Card settlement batches
    CASH = "CASH"  # Cash, cheque, money order -> till deposits


# =============================================================================
# Reference data
# =============================================================================


@dataclass(frozen=True)
class PaymentMethod:
    """Payment method master data (e.g. "V" Visa, "CASH" Cash)."""

    method: str
    classification: PaymentClassification
    description: str = ""
    sbc_code: str | None = None


@dataclass(frozen=True)
class Location:
    """
    A business location and the keys its deposits are reported under.

    Cash deposits are keyed by ``pt_location_id``; POS deposits by one of
    ``merchant_ids``; payments by ``location_id``.
    """

    location_id: int
    program: Program
    pt_location_id: int
    merchant_ids: tuple[int, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range for one batch pass."""

    min_date: date
    max_date: date

    def __post_init__(self) -> None:
        if self.min_date > self.max_date:
            raise InvalidDateRangeError(
                self.min_date.isoformat(), self.max_date.isoformat()
            )

    def __contains__(self, value: date) -> bool:
        return self.min_date <= value <= self.max_date

    @classmethod
    def single_day(cls, day: date) -> DateRange:
        return cls(min_date=day, max_date=day)


# =============================================================================
# Shared read interface
# =============================================================================


@runtime_checkable
class Reconcilable(Protocol):
    """What the index and aggregation need to know about a record."""

    @property
    def amount(self) -> Decimal: ...

    @property
    def match_date(self) -> date: ...

    @property
    def method(self) -> str: ...

    @property
    def status(self) -> MatchStatus: ...


R = TypeVar("R", bound="_StatusRecord")


class _StatusRecord:
    """Mixin: validated status transitions for frozen records."""

    id: UUID
    status: MatchStatus

    def transition(self: R, target: MatchStatus, **changes: Any) -> R:
        """
        Return a copy moved to ``target`` with ``changes`` applied.

        Raises:
            InvalidStatusTransitionError: If the current status does not
                allow ``target`` (MATCH and EXCEPTION are terminal).
        """
        if not validate_transition(self.status, target):
            raise InvalidStatusTransitionError(
                str(self.id), self.status.value, target.value
            )
        return replace(self, status=target, **changes)


def _combine(day: date, at: time | None) -> datetime:
    return datetime.combine(day, at or time.min)


# =============================================================================
# Payments
# =============================================================================


@dataclass(frozen=True)
class Transaction:
    """The sales transaction a payment belongs to."""

    transaction_id: str
    transaction_date: date
    location_id: int
    fiscal_close_date: date
    program: Program = Program.SBC
    transaction_time: time | None = None


@dataclass(frozen=True)
class Payment(_StatusRecord):
    """One tender line of a transaction reported by a location."""

    id: UUID
    transaction: Transaction
    amount: Decimal
    payment_method: PaymentMethod
    status: MatchStatus = MatchStatus.PENDING
    heuristic_match_round: HeuristicRound | None = None
    pos_deposit_id: UUID | None = None
    cash_deposit_id: UUID | None = None
    round_four_deposit_ids: tuple[UUID, ...] = ()
    reconciled_on: date | None = None
    in_progress_on: date | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", to_decimal(self.amount))

    @property
    def match_date(self) -> date:
        return self.transaction.transaction_date

    @property
    def method(self) -> str:
        return self.payment_method.method

    @property
    def classification(self) -> PaymentClassification:
        return self.payment_method.classification

    @property
    def timestamp(self) -> datetime:
        return _combine(
            self.transaction.transaction_date,
            self.transaction.transaction_time,
        )


# =============================================================================
# Deposits
# =============================================================================


@dataclass(frozen=True)
class CashDeposit(_StatusRecord):
    """Bank-reported cash-till deposit for a program-territory location."""

    id: UUID
    program: Program
    pt_location_id: int
    deposit_date: date
    amount: Decimal
    status: MatchStatus = MatchStatus.PENDING
    payment_ids: tuple[UUID, ...] = ()
    reconciled_on: date | None = None
    in_progress_on: date | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", to_decimal(self.amount))

    @property
    def match_date(self) -> date:
        return self.deposit_date

    @property
    def method(self) -> str:
        return PaymentClassification.CASH.value


@dataclass(frozen=True)
class PosDeposit(_StatusRecord):
    """Bank-reported card settlement for one merchant/method/batch."""

    id: UUID
    program: Program
    merchant_id: int
    transaction_date: date
    amount: Decimal
    payment_method: PaymentMethod
    transaction_time: time | None = None
    status: MatchStatus = MatchStatus.PENDING
    heuristic_match_round: HeuristicRound | None = None
    payment_id: UUID | None = None
    round_four_payment_ids: tuple[UUID, ...] = ()
    reconciled_on: date | None = None
    in_progress_on: date | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", to_decimal(self.amount))

    @property
    def match_date(self) -> date:
        return self.transaction_date

    @property
    def method(self) -> str:
        return self.payment_method.method

    @property
    def timestamp(self) -> datetime:
        return _combine(self.transaction_date, self.transaction_time)


# =============================================================================
# Run-scoped aggregates (never persisted)
# =============================================================================


def _group_status(statuses: list[MatchStatus]) -> MatchStatus:
    """MATCH only when every member is matched; otherwise the least advanced."""
    if statuses and all(s == MatchStatus.MATCH for s in statuses):
        return MatchStatus.MATCH
    if MatchStatus.IN_PROGRESS in statuses:
        return MatchStatus.IN_PROGRESS
    return MatchStatus.PENDING


@dataclass(frozen=True)
class AggregatedPayment:
    """Payments sharing (date, method), with their summed amount."""

    match_date: date
    method: str
    members: tuple[Payment, ...] = field(default_factory=tuple)

    @property
    def amount(self) -> Decimal:
        return normalize_amount(sum((p.amount for p in self.members), Decimal("0")))

    @property
    def status(self) -> MatchStatus:
        return _group_status([p.status for p in self.members])

    @property
    def payment_ids(self) -> tuple[UUID, ...]:
        return tuple(p.id for p in self.members)

    def __len__(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class AggregatedDeposit:
    """Deposits sharing (date, method), with their summed amount."""

    match_date: date
    method: str
    members: tuple[PosDeposit | CashDeposit, ...] = field(default_factory=tuple)

    @property
    def amount(self) -> Decimal:
        return normalize_amount(sum((d.amount for d in self.members), Decimal("0")))

    @property
    def status(self) -> MatchStatus:
        return _group_status([d.status for d in self.members])

    @property
    def deposit_ids(self) -> tuple[UUID, ...]:
        return tuple(d.id for d in self.members)

    def __len__(self) -> int:
        return len(self.members)
