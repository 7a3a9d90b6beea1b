"""
Module: recon_kernel.stores.base
Responsibility: Persistence contracts the reconciliation services depend on.
Architecture position: Kernel > Stores.  May import from domain/ only.
    Concrete SQLAlchemy implementations live in stores/sql.py.

Invariants enforced:
    - Stores return domain records, never ORM rows.
    - find_* results are ordered by (date, time, id) so greedy first-fit
      matching is reproducible across runs.
    - update() is a bulk upsert by id inside the caller's transaction.
      Stores flush; they never commit or roll back.

Failure modes:
    - SQLAlchemyError propagates unmodified to the caller, whose
      session_scope rolls the whole invocation back.
    - LocationStore.get raises LocationNotFoundError for unknown ids.
"""

from collections.abc import Iterable, Sequence
from datetime import date
from typing import Protocol

from recon_kernel.domain.status import MatchStatus
from recon_kernel.domain.types import (
    AggregatedPayment,
    CashDeposit,
    DateRange,
    Location,
    Payment,
    PaymentClassification,
    PosDeposit,
    Program,
)


class PaymentStore(Protocol):
    """Read and persist payments reported by locations."""

    def find_pending(
        self,
        program: Program,
        date_range: DateRange,
        location_id: int,
        statuses: Sequence[MatchStatus],
        classification: PaymentClassification,
    ) -> list[Payment]:
        """Payments of one classification in ``statuses`` within the range.

        POS payments are filtered on transaction date, cash payments on
        fiscal close date.
        """
        ...

    def find_aggregated_cash(
        self,
        program: Program,
        date_range: DateRange,
        location_id: int,
        statuses: Sequence[MatchStatus],
    ) -> list[AggregatedPayment]:
        """Cash payments in ``statuses`` grouped per fiscal close date."""
        ...

    def update(self, payments: Iterable[Payment]) -> list[Payment]:
        ...

    def find_exception_candidates(
        self,
        program: Program,
        cutoff: date,
        location_id: int,
        classification: PaymentClassification,
    ) -> list[Payment]:
        """Unresolved payments dated on or before ``cutoff``."""
        ...


class CashDepositStore(Protocol):
    """Read and persist cash-till deposits."""

    def find_pending(
        self,
        program: Program,
        date_range: DateRange,
        pt_location_id: int,
        statuses: Sequence[MatchStatus],
    ) -> list[CashDeposit]:
        ...

    def update(self, deposits: Iterable[CashDeposit]) -> list[CashDeposit]:
        ...

    def find_exception_candidates(
        self,
        program: Program,
        cutoff: date,
        pt_location_id: int,
    ) -> list[CashDeposit]:
        ...


class PosDepositStore(Protocol):
    """Read and persist card settlement deposits."""

    def find_pending(
        self,
        program: Program,
        date_range: DateRange,
        merchant_ids: Sequence[int],
        statuses: Sequence[MatchStatus],
    ) -> list[PosDeposit]:
        ...

    def update(self, deposits: Iterable[PosDeposit]) -> list[PosDeposit]:
        ...

    def find_exception_candidates(
        self,
        program: Program,
        cutoff: date,
        merchant_ids: Sequence[int],
    ) -> list[PosDeposit]:
        ...


class LocationStore(Protocol):
    """Read-only location master data."""

    def find_by_program(self, program: Program) -> list[Location]:
        ...

    def get(self, location_id: int, program: Program | None = None) -> Location:
        """
        Raises:
            LocationNotFoundError: When no location has ``location_id``.
        """
        ...
