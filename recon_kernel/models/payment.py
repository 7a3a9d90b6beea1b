"""
Module: recon_kernel.models.payment
Responsibility: ORM persistence for payment methods and payments.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ (for DTO round-trips) only.

Invariants enforced:
    - amount is Numeric(38, 9); the engine normalizes to 2dp on comparison.
    - status holds a MatchStatus value; only the engine moves it.
    - Payments are never deleted by the engine.
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Date, ForeignKey, Index, Integer, String, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recon_kernel.db.base import TrackedBase, UUIDString
from recon_kernel.domain.status import HeuristicRound, MatchStatus
from recon_kernel.domain.types import (
    Payment,
    PaymentClassification,
    PaymentMethod,
    Program,
    Transaction,
)


class PaymentMethodModel(TrackedBase):
    """
    ORM model for ``PaymentMethod`` master data.

    Table: ``payment_methods``
    """

    __tablename__ = "payment_methods"

    __table_args__ = (
        UniqueConstraint("method", name="uq_payment_methods_method"),
    )

    method: Mapped[str] = mapped_column(String(10), nullable=False)
    description: Mapped[str] = mapped_column(String(50), default="")
    sbc_code: Mapped[str | None] = mapped_column(String(2), nullable=True)
    classification: Mapped[str] = mapped_column(String(10), nullable=False)

    def to_dto(self) -> PaymentMethod:
        return PaymentMethod(
            method=self.method,
            classification=PaymentClassification(self.classification),
            description=self.description or "",
            sbc_code=self.sbc_code,
        )

    @classmethod
    def from_dto(cls, dto: PaymentMethod) -> PaymentMethodModel:
        return cls(
            method=dto.method,
            classification=dto.classification.value,
            description=dto.description,
            sbc_code=dto.sbc_code,
        )

    def __repr__(self) -> str:
        return f"<PaymentMethodModel {self.method}: {self.classification}>"


class PaymentModel(TrackedBase):
    """
    ORM model for ``Payment`` -- one tender line of a reported transaction.

    The transaction reference is stored flat on the row.

    Table: ``payments``
    """

    __tablename__ = "payments"

    __table_args__ = (
        Index("idx_payments_location_date", "location_id", "transaction_date"),
        Index("idx_payments_status", "status"),
        Index("idx_payments_fiscal_close_date", "fiscal_close_date"),
    )

    # Transaction reference
    transaction_id: Mapped[str] = mapped_column(String(100), nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    transaction_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    location_id: Mapped[int] = mapped_column(Integer, nullable=False)
    fiscal_close_date: Mapped[date] = mapped_column(Date, nullable=False)
    program: Mapped[str] = mapped_column(String(20), nullable=False)

    amount: Mapped[Decimal]
    method: Mapped[str] = mapped_column(
        ForeignKey("payment_methods.method"),
        nullable=False,
    )

    # Reconciliation state
    status: Mapped[str] = mapped_column(
        String(20),
        default=MatchStatus.PENDING.value,
        nullable=False,
    )
    heuristic_match_round: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pos_deposit_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    cash_deposit_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    round_four_deposit_ids: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    reconciled_on: Mapped[date | None] = mapped_column(Date, nullable=True)
    in_progress_on: Mapped[date | None] = mapped_column(Date, nullable=True)

    payment_method: Mapped[PaymentMethodModel] = relationship(lazy="joined")

    def to_dto(self) -> Payment:
        return Payment(
            id=self.id,
            transaction=Transaction(
                transaction_id=self.transaction_id,
                transaction_date=self.transaction_date,
                transaction_time=self.transaction_time,
                location_id=self.location_id,
                fiscal_close_date=self.fiscal_close_date,
                program=Program(self.program),
            ),
            amount=Decimal(self.amount),
            payment_method=self.payment_method.to_dto(),
            status=MatchStatus(self.status),
            heuristic_match_round=(
                HeuristicRound(self.heuristic_match_round)
                if self.heuristic_match_round is not None
                else None
            ),
            pos_deposit_id=self.pos_deposit_id,
            cash_deposit_id=self.cash_deposit_id,
            round_four_deposit_ids=tuple(UUID(i) for i in self.round_four_deposit_ids or ()),
            reconciled_on=self.reconciled_on,
            in_progress_on=self.in_progress_on,
        )

    @classmethod
    def from_dto(cls, dto: Payment) -> PaymentModel:
        model = cls(id=dto.id, method=dto.method)
        model.apply(dto)
        txn = dto.transaction
        model.transaction_id = txn.transaction_id
        model.transaction_date = txn.transaction_date
        model.transaction_time = txn.transaction_time
        model.location_id = txn.location_id
        model.fiscal_close_date = txn.fiscal_close_date
        model.program = txn.program.value
        model.amount = dto.amount
        return model

    def apply(self, dto: Payment) -> None:
        """Copy the engine-owned fields of ``dto`` onto this row."""
        self.status = dto.status.value
        self.heuristic_match_round = (
            int(dto.heuristic_match_round)
            if dto.heuristic_match_round is not None
            else None
        )
        self.pos_deposit_id = dto.pos_deposit_id
        self.cash_deposit_id = dto.cash_deposit_id
        self.round_four_deposit_ids = [str(i) for i in dto.round_four_deposit_ids]
        self.reconciled_on = dto.reconciled_on
        self.in_progress_on = dto.in_progress_on

    def __repr__(self) -> str:
        return (
            f"<PaymentModel(id={self.id!r}, location_id={self.location_id!r}, "
            f"amount={self.amount!r}, status={self.status!r})>"
        )
