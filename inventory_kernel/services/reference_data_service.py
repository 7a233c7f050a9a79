"""
Service layer for reference data: bases and equipment types.

Bases carry descriptive fields that may change at any time.  Equipment
types are immutable once created.  Neither may be deleted while the ledger
still refers to it.

Returns BaseRecord / EquipmentTypeRecord DTOs, never ORM entities.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.authority import Actor
from inventory_kernel.domain.dtos import BaseRecord, EquipmentTypeRecord
from inventory_kernel.exceptions import (
    BaseNotFoundError,
    DuplicateNameError,
    EquipmentTypeNotFoundError,
    ReferencedEntityError,
    UnauthorizedError,
    ValidationError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models import (
    AssignmentModel,
    Balance,
    EquipmentType,
    Expenditure,
    InventoryMovement,
    MilitaryBase,
    Purchase,
    TransferModel,
)
from inventory_kernel.services.base import BaseService

logger = get_logger("services.reference_data")

_BASE_DESCRIPTIVE_FIELDS = ("location", "commander_name", "contact_email", "contact_phone")


def _clean(field: str, value: str | None, required: bool = False) -> str | None:
    if value is None:
        if required:
            raise ValidationError(field, "is required", value)
        return None
    if not isinstance(value, str):
        raise ValidationError(field, "must be text", value)
    value = value.strip()
    if required and not value:
        raise ValidationError(field, "is required", value)
    return value or None


class ReferenceDataService(BaseService[MilitaryBase]):
    """
    Bases and equipment types.

    Base administration (create, update, delete) is limited to admins.
    Equipment types may be registered by any actor.
    """

    @staticmethod
    def _require_admin(actor: Actor, action: str) -> None:
        if not actor.is_admin:
            raise UnauthorizedError(str(actor.actor_id), action)

    # -- lookups ----------------------------------------------------------

    def require_base(self, base_id: UUID) -> MilitaryBase:
        base = self.session.get(MilitaryBase, base_id)
        if base is None:
            raise BaseNotFoundError(str(base_id))
        return base

    def require_equipment_type(self, equipment_type_id: UUID) -> EquipmentType:
        equipment_type = self.session.get(EquipmentType, equipment_type_id)
        if equipment_type is None:
            raise EquipmentTypeNotFoundError(str(equipment_type_id))
        return equipment_type

    def get_base(self, base_id: UUID) -> BaseRecord:
        return BaseRecord.from_model(self.require_base(base_id))

    def get_equipment_type(self, equipment_type_id: UUID) -> EquipmentTypeRecord:
        return EquipmentTypeRecord.from_model(self.require_equipment_type(equipment_type_id))

    def list_bases(self, base_ids: frozenset[UUID] | None = None) -> list[BaseRecord]:
        """All bases by name, or only ``base_ids`` when given."""
        stmt = select(MilitaryBase).order_by(MilitaryBase.name)
        if base_ids is not None:
            if not base_ids:
                return []
            stmt = stmt.where(MilitaryBase.id.in_(list(base_ids)))
        return [BaseRecord.from_model(b) for b in self.session.execute(stmt).scalars()]

    def list_equipment_types(self) -> list[EquipmentTypeRecord]:
        stmt = select(EquipmentType).order_by(EquipmentType.name)
        return [
            EquipmentTypeRecord.from_model(t) for t in self.session.execute(stmt).scalars()
        ]

    # -- bases ------------------------------------------------------------

    def _base_name_taken(self, name: str, exclude_id: UUID | None = None) -> bool:
        stmt = select(MilitaryBase.id).where(MilitaryBase.name == name)
        if exclude_id is not None:
            stmt = stmt.where(MilitaryBase.id != exclude_id)
        return self.session.execute(stmt).first() is not None

    def create_base(
        self,
        actor: Actor,
        name: str,
        location: str,
        commander_name: str | None = None,
        contact_email: str | None = None,
        contact_phone: str | None = None,
    ) -> BaseRecord:
        """
        Register a base.

        Raises:
            UnauthorizedError: Actor is not an admin.
            ValidationError: Missing name or location.
            DuplicateNameError: Another base already uses ``name``.
        """
        self._require_admin(actor, "create base")
        name = _clean("name", name, required=True)
        location = _clean("location", location, required=True)
        if self._base_name_taken(name):
            raise DuplicateNameError("base", name)

        base = MilitaryBase(
            name=name,
            location=location,
            commander_name=_clean("commander_name", commander_name),
            contact_email=_clean("contact_email", contact_email),
            contact_phone=_clean("contact_phone", contact_phone),
            created_by_id=actor.actor_id,
        )
        self.session.add(base)
        self.session.flush()
        logger.info("base_created", extra={"base_id": str(base.id), "base_name": name})
        return BaseRecord.from_model(base)

    def update_base(self, actor: Actor, base_id: UUID, **changes: str | None) -> BaseRecord:
        """
        Change a base's name or descriptive fields.

        Only keys present in ``changes`` are touched; passing ``None`` for
        an optional field clears it.
        """
        self._require_admin(actor, "update base")
        unknown = set(changes) - {"name", *_BASE_DESCRIPTIVE_FIELDS}
        if unknown:
            raise ValidationError(sorted(unknown)[0], "is not an updatable base field")

        base = self.require_base(base_id)
        if "name" in changes:
            name = _clean("name", changes["name"], required=True)
            if self._base_name_taken(name, exclude_id=base.id):
                raise DuplicateNameError("base", name)
            base.name = name
        for field in _BASE_DESCRIPTIVE_FIELDS:
            if field in changes:
                setattr(base, field, _clean(field, changes[field], required=field == "location"))

        base.updated_by_id = actor.actor_id
        self.session.flush()
        logger.info(
            "base_updated",
            extra={"base_id": str(base.id), "fields": sorted(changes)},
        )
        return BaseRecord.from_model(base)

    def base_reference_count(self, base_id: UUID) -> int:
        """Ledger rows pointing at the base."""
        counts = [
            select(func.count()).select_from(Balance).where(Balance.base_id == base_id),
            select(func.count())
            .select_from(InventoryMovement)
            .where(InventoryMovement.base_id == base_id),
            select(func.count()).select_from(Purchase).where(Purchase.base_id == base_id),
            select(func.count())
            .select_from(TransferModel)
            .where((TransferModel.from_base_id == base_id) | (TransferModel.to_base_id == base_id)),
            select(func.count())
            .select_from(AssignmentModel)
            .where(AssignmentModel.base_id == base_id),
            select(func.count()).select_from(Expenditure).where(Expenditure.base_id == base_id),
        ]
        return sum(self.session.execute(stmt).scalar_one() for stmt in counts)

    def delete_base(self, actor: Actor, base_id: UUID) -> None:
        """
        Delete a base nothing refers to.

        Raises:
            ReferencedEntityError: Balances, journal rows or records exist.
        """
        self._require_admin(actor, "delete base")
        base = self.require_base(base_id)
        references = self.base_reference_count(base_id)
        if references:
            raise ReferencedEntityError("base", str(base_id), references)
        self.session.delete(base)
        self.session.flush()
        logger.info("base_deleted", extra={"base_id": str(base_id)})

    # -- equipment types --------------------------------------------------

    def create_equipment_type(
        self,
        actor: Actor,
        name: str,
        category: str | None = None,
    ) -> EquipmentTypeRecord:
        name = _clean("name", name, required=True)
        existing = self.session.execute(
            select(EquipmentType.id).where(EquipmentType.name == name)
        ).first()
        if existing is not None:
            raise DuplicateNameError("equipment_type", name)

        equipment_type = EquipmentType(
            name=name,
            category=_clean("category", category),
            created_by_id=actor.actor_id,
        )
        self.session.add(equipment_type)
        self.session.flush()
        logger.info(
            "equipment_type_created",
            extra={"equipment_type_id": str(equipment_type.id), "equipment_type_name": name},
        )
        return EquipmentTypeRecord.from_model(equipment_type)
