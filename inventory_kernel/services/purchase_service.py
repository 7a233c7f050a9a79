"""
PurchaseService -- records stock bought and received at a base.

A purchase creates the Purchase row, a ``purchase`` journal row and the
matching balance increment in the caller's transaction.  Purchases are
immutable and have no delete path.
"""

from __future__ import annotations

from inventory_kernel.domain.authority import Actor
from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.dtos import PurchaseRecord
from inventory_kernel.domain.requests import RecordPurchase
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models import MovementType, Purchase
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.journal import MovementJournal
from inventory_kernel.services.reference_data_service import ReferenceDataService

logger = get_logger("services.purchase")


class PurchaseService(BaseService[Purchase]):
    def __init__(self, session, clock: Clock, journal: MovementJournal | None = None):
        super().__init__(session)
        self._clock = clock
        self._journal = journal or MovementJournal(session, clock)
        self._reference = ReferenceDataService(session)

    def record_purchase(self, request: RecordPurchase, actor: Actor) -> PurchaseRecord:
        """
        Raises:
            BaseNotFoundError / EquipmentTypeNotFoundError: Unknown reference.
        """
        self._reference.require_base(request.base_id)
        self._reference.require_equipment_type(request.equipment_type_id)

        purchase = Purchase(
            base_id=request.base_id,
            equipment_type_id=request.equipment_type_id,
            quantity=request.quantity,
            unit_price=request.unit_price,
            total_amount=request.total_amount,
            supplier=request.supplier.strip(),
            purchase_date=request.purchase_date,
            invoice_number=request.invoice_number,
            notes=request.notes,
            created_by_id=actor.actor_id,
        )
        self.session.add(purchase)
        self.session.flush()

        self._journal.record(
            movement_type=MovementType.PURCHASE,
            base_id=request.base_id,
            equipment_type_id=request.equipment_type_id,
            quantity=request.quantity,
            movement_date=request.purchase_date,
            source_type="purchase",
            source_id=purchase.id,
            actor_id=actor.actor_id,
        )

        logger.info(
            "purchase_recorded",
            extra={
                "purchase_id": str(purchase.id),
                "base_id": str(request.base_id),
                "quantity": request.quantity,
                "total_amount": str(request.total_amount),
            },
        )
        return PurchaseRecord.from_model(purchase)
