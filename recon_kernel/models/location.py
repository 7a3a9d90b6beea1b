"""
Module: recon_kernel.models.location
Responsibility: ORM persistence for business locations and the merchant
    ids their card settlements are reported under.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - (program, location_id) is unique.
    - Locations are read-only to the engine.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recon_kernel.db.base import TrackedBase
from recon_kernel.domain.types import Location, Program


class LocationModel(TrackedBase):
    """
    ORM model for ``Location``.

    Table: ``locations``
    """

    __tablename__ = "locations"

    __table_args__ = (
        UniqueConstraint("program", "location_id", name="uq_locations_program_location"),
    )

    location_id: Mapped[int] = mapped_column(Integer, nullable=False)
    program: Mapped[str] = mapped_column(String(20), nullable=False)
    pt_location_id: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(String(100), default="")

    merchants: Mapped[list[LocationMerchantModel]] = relationship(
        back_populates="location",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="LocationMerchantModel.merchant_id",
    )

    def to_dto(self) -> Location:
        return Location(
            location_id=self.location_id,
            program=Program(self.program),
            pt_location_id=self.pt_location_id,
            merchant_ids=tuple(m.merchant_id for m in self.merchants),
            description=self.description or "",
        )

    @classmethod
    def from_dto(cls, dto: Location) -> LocationModel:
        return cls(
            location_id=dto.location_id,
            program=dto.program.value,
            pt_location_id=dto.pt_location_id,
            description=dto.description,
            merchants=[
                LocationMerchantModel(merchant_id=m) for m in sorted(dto.merchant_ids)
            ],
        )

    def __repr__(self) -> str:
        return f"<LocationModel {self.program}:{self.location_id}>"


class LocationMerchantModel(TrackedBase):
    """
    Merchant id under which a location's card deposits settle.

    Table: ``location_merchants``
    """

    __tablename__ = "location_merchants"

    __table_args__ = (
        UniqueConstraint("location_ref", "merchant_id", name="uq_location_merchant"),
    )

    location_ref: Mapped[UUID] = mapped_column(
        ForeignKey("locations.id"),
        nullable=False,
    )
    merchant_id: Mapped[int] = mapped_column(Integer, nullable=False)

    location: Mapped[LocationModel] = relationship(back_populates="merchants")

    def __repr__(self) -> str:
        return f"<LocationMerchantModel {self.merchant_id}>"
