"""
Module: inventory_kernel.models.reference
Responsibility: ORM persistence for ledger reference data -- bases
    (installations) and equipment types.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Base.name and EquipmentType.name are unique (DB constraint, checked
      first by ReferenceDataService for a typed error).
    - EquipmentType rows are immutable once created (db/immutability.py).
    - A Base referenced by any balance or movement row cannot be deleted
      (ReferenceDataService + FK RESTRICT).
"""

from __future__ import annotations

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase


class MilitaryBase(TrackedBase):
    """
    A physical installation holding inventory.

    Contract:
        ``name`` and ``location`` are required.  Descriptive fields
        (location, commander, contacts) may be updated at any time.
    """

    __tablename__ = "bases"

    __table_args__ = (
        UniqueConstraint("name", name="uq_bases_name"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    location: Mapped[str] = mapped_column(String(500), nullable=False)

    commander_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    contact_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<MilitaryBase {self.name}>"


class EquipmentType(TrackedBase):
    """A category of trackable asset (e.g. "M4 Carbine").  Immutable."""

    __tablename__ = "equipment_types"

    __table_args__ = (
        UniqueConstraint("name", name="uq_equipment_types_name"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Free-form grouping used by dashboards (weapons, vehicles, ammunition...)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<EquipmentType {self.name}>"
