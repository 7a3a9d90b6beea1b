"""
Module: recon_kernel.stores.sql
Responsibility: SQLAlchemy implementations of the payment, deposit, and
    location stores.
Architecture position: Kernel > Stores.  May import from models/,
    domain/, and db/.  MUST NOT import from engines or services.

Invariants enforced:
    - Stores accept a Session from the caller and only flush.
    - Results are sorted by (date, time, id) in Python so that NULL time
      ordering does not depend on the database dialect.
    - update() writes engine-owned fields only (status, links, dates);
      amounts and transaction references are never rewritten.

Failure modes:
    - SQLAlchemyError from flush propagates to the caller.
    - LocationNotFoundError from SqlLocationStore.get.
"""

from collections.abc import Iterable, Sequence
from datetime import date, time
from itertools import groupby
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from recon_kernel.db.base import Base
from recon_kernel.domain.status import RECONCILABLE_STATUSES, MatchStatus
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
from recon_kernel.exceptions import LocationNotFoundError
from recon_kernel.logging_config import get_logger
from recon_kernel.models.deposit import CashDepositModel, PosDepositModel
from recon_kernel.models.location import LocationModel
from recon_kernel.models.payment import PaymentMethodModel, PaymentModel

logger = get_logger("stores.sql")

ModelType = TypeVar("ModelType", bound=Base)

# Keeps IN (...) lists under the SQLite bound-parameter limit
_ID_CHUNK = 500


def _status_values(statuses: Sequence[MatchStatus]) -> list[str]:
    return [MatchStatus(s).value for s in statuses]


def _chunks(ids: list[UUID]) -> Iterable[list[UUID]]:
    for start in range(0, len(ids), _ID_CHUNK):
        yield ids[start:start + _ID_CHUNK]


def _payment_sort_key(payment: Payment) -> tuple:
    txn = payment.transaction
    return (txn.transaction_date, txn.transaction_time or time.min, str(payment.id))


def _cash_payment_sort_key(payment: Payment) -> tuple:
    return (payment.transaction.fiscal_close_date, *_payment_sort_key(payment))


class SqlStore(Generic[ModelType]):
    """
    Shared session handling and bulk upsert for the concrete stores.

    Subclasses set ``model`` to the ORM class whose rows they manage.
    """

    model: type[ModelType]

    def __init__(self, session: Session):
        self.session = session

    def _upsert(self, records: Iterable) -> list:
        records = list(records)
        if not records:
            return []

        by_id = {r.id: r for r in records}
        existing: dict[UUID, ModelType] = {}
        for chunk in _chunks(list(by_id)):
            rows = self.session.scalars(
                select(self.model).where(self.model.id.in_(chunk))
            )
            existing.update({row.id: row for row in rows})

        inserted = 0
        rows_out: list[ModelType] = []
        for record_id, record in by_id.items():
            row = existing.get(record_id)
            if row is None:
                row = self.model.from_dto(record)
                self.session.add(row)
                inserted += 1
            else:
                row.apply(record)
            rows_out.append(row)

        self.session.flush()
        logger.debug(
            "store_rows_written",
            extra={
                "table": self.model.__tablename__,
                "updated": len(rows_out) - inserted,
                "inserted": inserted,
            },
        )
        return [row.to_dto() for row in rows_out]


class SqlPaymentStore(SqlStore[PaymentModel]):
    """PaymentStore backed by the ``payments`` table."""

    model = PaymentModel

    def _select(self, program: Program, location_id: int, classification: PaymentClassification):
        return (
            select(PaymentModel)
            .join(PaymentMethodModel, PaymentModel.method == PaymentMethodModel.method)
            .where(
                PaymentModel.program == Program(program).value,
                PaymentModel.location_id == location_id,
                PaymentMethodModel.classification
                == PaymentClassification(classification).value,
            )
        )

    @staticmethod
    def _date_column(classification: PaymentClassification):
        if classification == PaymentClassification.CASH:
            return PaymentModel.fiscal_close_date
        return PaymentModel.transaction_date

    def find_pending(
        self,
        program: Program,
        date_range: DateRange,
        location_id: int,
        statuses: Sequence[MatchStatus] = RECONCILABLE_STATUSES,
        classification: PaymentClassification = PaymentClassification.POS,
    ) -> list[Payment]:
        date_col = self._date_column(classification)
        stmt = self._select(program, location_id, classification).where(
            date_col >= date_range.min_date,
            date_col <= date_range.max_date,
            PaymentModel.status.in_(_status_values(statuses)),
        )
        payments = [row.to_dto() for row in self.session.scalars(stmt)]
        key = (
            _cash_payment_sort_key
            if classification == PaymentClassification.CASH
            else _payment_sort_key
        )
        return sorted(payments, key=key)

    def find_aggregated_cash(
        self,
        program: Program,
        date_range: DateRange,
        location_id: int,
        statuses: Sequence[MatchStatus] = RECONCILABLE_STATUSES,
    ) -> list[AggregatedPayment]:
        payments = self.find_pending(
            program,
            date_range,
            location_id,
            statuses,
            PaymentClassification.CASH,
        )
        return [
            AggregatedPayment(
                match_date=close_date,
                method=PaymentClassification.CASH.value,
                members=tuple(members),
            )
            for close_date, members in groupby(
                payments, key=lambda p: p.transaction.fiscal_close_date
            )
        ]

    def update(self, payments: Iterable[Payment]) -> list[Payment]:
        return self._upsert(payments)

    def find_exception_candidates(
        self,
        program: Program,
        cutoff: date,
        location_id: int,
        classification: PaymentClassification,
    ) -> list[Payment]:
        date_col = self._date_column(classification)
        stmt = self._select(program, location_id, classification).where(
            date_col <= cutoff,
            PaymentModel.status.in_(_status_values(RECONCILABLE_STATUSES)),
        )
        payments = [row.to_dto() for row in self.session.scalars(stmt)]
        return sorted(payments, key=_payment_sort_key)


class SqlCashDepositStore(SqlStore[CashDepositModel]):
    """CashDepositStore backed by the ``cash_deposits`` table."""

    model = CashDepositModel

    @staticmethod
    def _sort_key(deposit: CashDeposit) -> tuple:
        return (deposit.deposit_date, str(deposit.id))

    def find_pending(
        self,
        program: Program,
        date_range: DateRange,
        pt_location_id: int,
        statuses: Sequence[MatchStatus] = RECONCILABLE_STATUSES,
    ) -> list[CashDeposit]:
        stmt = select(CashDepositModel).where(
            CashDepositModel.program == Program(program).value,
            CashDepositModel.pt_location_id == pt_location_id,
            CashDepositModel.deposit_date >= date_range.min_date,
            CashDepositModel.deposit_date <= date_range.max_date,
            CashDepositModel.status.in_(_status_values(statuses)),
        )
        deposits = [row.to_dto() for row in self.session.scalars(stmt)]
        return sorted(deposits, key=self._sort_key)

    def update(self, deposits: Iterable[CashDeposit]) -> list[CashDeposit]:
        return self._upsert(deposits)

    def find_exception_candidates(
        self,
        program: Program,
        cutoff: date,
        pt_location_id: int,
    ) -> list[CashDeposit]:
        stmt = select(CashDepositModel).where(
            CashDepositModel.program == Program(program).value,
            CashDepositModel.pt_location_id == pt_location_id,
            CashDepositModel.deposit_date <= cutoff,
            CashDepositModel.status.in_(_status_values(RECONCILABLE_STATUSES)),
        )
        deposits = [row.to_dto() for row in self.session.scalars(stmt)]
        return sorted(deposits, key=self._sort_key)


class SqlPosDepositStore(SqlStore[PosDepositModel]):
    """PosDepositStore backed by the ``pos_deposits`` table."""

    model = PosDepositModel

    @staticmethod
    def _sort_key(deposit: PosDeposit) -> tuple:
        return (
            deposit.transaction_date,
            deposit.transaction_time or time.min,
            str(deposit.id),
        )

    def find_pending(
        self,
        program: Program,
        date_range: DateRange,
        merchant_ids: Sequence[int],
        statuses: Sequence[MatchStatus] = RECONCILABLE_STATUSES,
    ) -> list[PosDeposit]:
        if not merchant_ids:
            return []
        stmt = select(PosDepositModel).where(
            PosDepositModel.program == Program(program).value,
            PosDepositModel.merchant_id.in_(list(merchant_ids)),
            PosDepositModel.transaction_date >= date_range.min_date,
            PosDepositModel.transaction_date <= date_range.max_date,
            PosDepositModel.status.in_(_status_values(statuses)),
        )
        deposits = [row.to_dto() for row in self.session.scalars(stmt)]
        return sorted(deposits, key=self._sort_key)

    def update(self, deposits: Iterable[PosDeposit]) -> list[PosDeposit]:
        return self._upsert(deposits)

    def find_exception_candidates(
        self,
        program: Program,
        cutoff: date,
        merchant_ids: Sequence[int],
    ) -> list[PosDeposit]:
        if not merchant_ids:
            return []
        stmt = select(PosDepositModel).where(
            PosDepositModel.program == Program(program).value,
            PosDepositModel.merchant_id.in_(list(merchant_ids)),
            PosDepositModel.transaction_date <= cutoff,
            PosDepositModel.status.in_(_status_values(RECONCILABLE_STATUSES)),
        )
        deposits = [row.to_dto() for row in self.session.scalars(stmt)]
        return sorted(deposits, key=self._sort_key)


class SqlLocationStore:
    """LocationStore backed by ``locations`` / ``location_merchants``."""

    def __init__(self, session: Session):
        self.session = session

    def find_by_program(self, program: Program) -> list[Location]:
        stmt = (
            select(LocationModel)
            .where(LocationModel.program == Program(program).value)
            .order_by(LocationModel.location_id)
        )
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def get(self, location_id: int, program: Program | None = None) -> Location:
        stmt = select(LocationModel).where(LocationModel.location_id == location_id)
        if program is not None:
            stmt = stmt.where(LocationModel.program == Program(program).value)
        row = self.session.scalars(stmt).first()
        if row is None:
            raise LocationNotFoundError(
                location_id, Program(program).value if program is not None else None
            )
        return row.to_dto()

    def add(self, location: Location) -> Location:
        """Insert location master data (seeding and tests)."""
        row = LocationModel.from_dto(location)
        self.session.add(row)
        self.session.flush()
        return row.to_dto()
