"""
Module: recon_kernel.models.deposit
Responsibility: ORM persistence for bank-reported cash and POS deposits.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - Cash deposits are addressed by (program, pt_location_id, deposit_date).
    - POS deposits are addressed by (program, merchant_id, transaction_date,
      method).
    - status holds a MatchStatus value; only the engine moves it.
    - Match links (payment_ids, round_four_payment_ids) are JSON arrays of
      UUID strings, unbounded in length.
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Date, ForeignKey, Index, Integer, String, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recon_kernel.db.base import TrackedBase, UUIDString
from recon_kernel.domain.status import HeuristicRound, MatchStatus
from recon_kernel.domain.types import CashDeposit, PosDeposit, Program
from recon_kernel.models.payment import PaymentMethodModel


# ---------------------------------------------------------------------------
# CashDepositModel
# ---------------------------------------------------------------------------

class CashDepositModel(TrackedBase):
    """
    ORM model for ``CashDeposit`` -- one cash-till deposit line.

    Table: ``cash_deposits``
    """

    __tablename__ = "cash_deposits"

    __table_args__ = (
        Index("idx_cash_deposits_location_date", "pt_location_id", "deposit_date"),
        Index("idx_cash_deposits_status", "status"),
    )

    program: Mapped[str] = mapped_column(String(20), nullable=False)
    pt_location_id: Mapped[int] = mapped_column(Integer, nullable=False)
    deposit_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal]

    status: Mapped[str] = mapped_column(
        String(20),
        default=MatchStatus.PENDING.value,
        nullable=False,
    )
    payment_ids: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    reconciled_on: Mapped[date | None] = mapped_column(Date, nullable=True)
    in_progress_on: Mapped[date | None] = mapped_column(Date, nullable=True)

    def to_dto(self) -> CashDeposit:
        return CashDeposit(
            id=self.id,
            program=Program(self.program),
            pt_location_id=self.pt_location_id,
            deposit_date=self.deposit_date,
            amount=Decimal(self.amount),
            status=MatchStatus(self.status),
            payment_ids=tuple(UUID(i) for i in self.payment_ids or ()),
            reconciled_on=self.reconciled_on,
            in_progress_on=self.in_progress_on,
        )

    @classmethod
    def from_dto(cls, dto: CashDeposit) -> CashDepositModel:
        model = cls(
            id=dto.id,
            program=dto.program.value,
            pt_location_id=dto.pt_location_id,
            deposit_date=dto.deposit_date,
            amount=dto.amount,
        )
        model.apply(dto)
        return model

    def apply(self, dto: CashDeposit) -> None:
        """Copy the engine-owned fields of ``dto`` onto this row."""
        self.status = dto.status.value
        self.payment_ids = [str(i) for i in dto.payment_ids]
        self.reconciled_on = dto.reconciled_on
        self.in_progress_on = dto.in_progress_on

    def __repr__(self) -> str:
        return (
            f"<CashDepositModel(id={self.id!r}, pt_location_id={self.pt_location_id!r}, "
            f"deposit_date={self.deposit_date!r}, status={self.status!r})>"
        )


# ---------------------------------------------------------------------------
# PosDepositModel
# ---------------------------------------------------------------------------

class PosDepositModel(TrackedBase):
    """
    ORM model for ``PosDeposit`` -- one card settlement batch.

    Table: ``pos_deposits``
    """

    __tablename__ = "pos_deposits"

    __table_args__ = (
        Index("idx_pos_deposits_merchant_date", "merchant_id", "transaction_date"),
        Index("idx_pos_deposits_status", "status"),
    )

    program: Mapped[str] = mapped_column(String(20), nullable=False)
    merchant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    transaction_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    amount: Mapped[Decimal]
    method: Mapped[str] = mapped_column(
        ForeignKey("payment_methods.method"),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=MatchStatus.PENDING.value,
        nullable=False,
    )
    heuristic_match_round: Mapped[int | None] = mapped_column(Integer, nullable=True)
    payment_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    round_four_payment_ids: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    reconciled_on: Mapped[date | None] = mapped_column(Date, nullable=True)
    in_progress_on: Mapped[date | None] = mapped_column(Date, nullable=True)

    payment_method: Mapped[PaymentMethodModel] = relationship(lazy="joined")

    def to_dto(self) -> PosDeposit:
        return PosDeposit(
            id=self.id,
            program=Program(self.program),
            merchant_id=self.merchant_id,
            transaction_date=self.transaction_date,
            transaction_time=self.transaction_time,
            amount=Decimal(self.amount),
            payment_method=self.payment_method.to_dto(),
            status=MatchStatus(self.status),
            heuristic_match_round=(
                HeuristicRound(self.heuristic_match_round)
                if self.heuristic_match_round is not None
                else None
            ),
            payment_id=self.payment_id,
            round_four_payment_ids=tuple(UUID(i) for i in self.round_four_payment_ids or ()),
            reconciled_on=self.reconciled_on,
            in_progress_on=self.in_progress_on,
        )

    @classmethod
    def from_dto(cls, dto: PosDeposit) -> PosDepositModel:
        model = cls(
            id=dto.id,
            program=dto.program.value,
            merchant_id=dto.merchant_id,
            transaction_date=dto.transaction_date,
            transaction_time=dto.transaction_time,
            amount=dto.amount,
            method=dto.method,
        )
        model.apply(dto)
        return model

    def apply(self, dto: PosDeposit) -> None:
        """Copy the engine-owned fields of ``dto`` onto this row."""
        self.status = dto.status.value
        self.heuristic_match_round = (
            int(dto.heuristic_match_round)
            if dto.heuristic_match_round is not None
            else None
        )
        self.payment_id = dto.payment_id
        self.round_four_payment_ids = [str(i) for i in dto.round_four_payment_ids]
        self.reconciled_on = dto.reconciled_on
        self.in_progress_on = dto.in_progress_on

    def __repr__(self) -> str:
        return (
            f"<PosDepositModel(id={self.id!r}, merchant_id={self.merchant_id!r}, "
            f"amount={self.amount!r}, status={self.status!r})>"
        )
