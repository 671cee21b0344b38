from __future__ import annotations

from datetime import datetime

from asset_ledger import db
from asset_ledger.buisness.core.errors import ValidationError, storage_errors
from asset_ledger.buisness.core.retry import retry_once_on_conflict
from asset_ledger.buisness.stock.movement_log import MovementLog
from asset_ledger.buisness.stock.stock_ledger import StockLedger, as_quantity
from asset_ledger.data.core.tagged_types import MOVEMENT_TYPES, TaggedType
from asset_ledger.data.stock.movement import Movement
from asset_ledger.data.stock.stock_record import StockRecord
from asset_ledger.utils.logger import get_logger

logger = get_logger("asset_ledger.buisness.stock.inventory")


class InventoryManager:
    """
    Core fungible-stock operations.

    Responsibilities:
    - Keep StockRecord (per item and location) as the current state
    - Append exactly one Movement for every visible quantity change
    - Commit state and movement together; retry the pair once on conflict
    """

    def __init__(self):
        self.ledger = StockLedger()
        self.movements = MovementLog()

    def adjust_stock(
        self,
        *,
        item_id: int,
        location_id: int,
        delta,
        reason: str,
        actor: str | None = None,
        reserved_delta=0.0,
        unit_cost=None,
        reference_code: str | None = None,
    ) -> tuple[StockRecord, Movement | None]:
        """
        Adjust stock at one location and record an adjustment movement

        A reservation-only change (delta == 0) updates the record without a movement.

        Returns:
            (StockRecord, Movement or None)
        """
        delta = as_quantity(delta, "delta")

        def apply():
            record = self.ledger.adjust(item_id, location_id, delta, reserved_delta, commit=False)
            movement = None
            if delta != 0:
                movement = self.movements.append(
                    'adjustment', item_id, delta, reason, actor,
                    to_location_id=location_id,
                    unit_cost=unit_cost,
                    reference_code=reference_code,
                    commit=False,
                )
            self._commit("adjusting stock")
            return record, movement

        return retry_once_on_conflict(apply, f"adjusting item {item_id} at location {location_id}")

    def set_stock_level(
        self,
        *,
        item_id: int,
        location_id: int,
        quantity,
        reason: str,
        actor: str | None = None,
    ) -> tuple[StockRecord, Movement | None]:
        """
        Set an absolute on-hand quantity (stock count) and record the difference

        Returns:
            (StockRecord, Movement or None when the level was already correct)
        """
        quantity = as_quantity(quantity, "quantity")

        def apply():
            existing = self.ledger.get_stock(item_id, location_id)
            previous = existing.quantity if existing is not None else 0.0
            record = self.ledger.set_level(item_id, location_id, quantity, commit=False)
            movement = None
            difference = quantity - previous
            if difference != 0:
                movement = self.movements.append(
                    'adjustment', item_id, difference, reason, actor,
                    to_location_id=location_id,
                    commit=False,
                )
            self._commit("setting stock level")
            return record, movement

        return retry_once_on_conflict(apply, f"setting level of item {item_id} at location {location_id}")

    def record_movement(
        self,
        *,
        movement_type,
        item_id: int,
        quantity,
        reason: str,
        actor: str | None = None,
        from_location_id: int | None = None,
        to_location_id: int | None = None,
        unit_cost=None,
        reference_code: str | None = None,
        movement_date: datetime | None = None,
    ) -> Movement:
        """
        Append a movement and apply it to the ledger: decrement the source, increment the destination

        Raises:
            ValidationError: If quantity is not positive or source equals destination
        """
        quantity = as_quantity(quantity, "quantity")
        if quantity <= 0:
            raise ValidationError("quantity must be > 0")
        if from_location_id is not None and from_location_id == to_location_id:
            raise ValidationError("Source and destination locations must differ")
        try:
            TaggedType.parse(movement_type, MOVEMENT_TYPES)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        def apply():
            movement = self.movements.append(
                movement_type, item_id, quantity, reason, actor,
                from_location_id=from_location_id,
                to_location_id=to_location_id,
                unit_cost=unit_cost,
                reference_code=reference_code,
                movement_date=movement_date,
                commit=False,
            )
            if from_location_id is not None:
                self.ledger.adjust(item_id, from_location_id, -quantity, commit=False)
            if to_location_id is not None:
                self.ledger.adjust(item_id, to_location_id, quantity, commit=False)
            self._commit("recording movement")
            return movement

        return retry_once_on_conflict(apply, f"recording {movement_type} of item {item_id}")

    def transfer(
        self,
        *,
        item_id: int,
        from_location_id: int,
        to_location_id: int,
        quantity,
        reason: str = "Stock transfer",
        actor: str | None = None,
    ) -> Movement:
        """Move quantity between two locations as one transfer movement"""
        return self.record_movement(
            movement_type='transfer',
            item_id=item_id,
            quantity=quantity,
            reason=reason,
            actor=actor,
            from_location_id=from_location_id,
            to_location_id=to_location_id,
        )

    def reserve(self, *, item_id: int, location_id: int, quantity) -> StockRecord:
        """Reserve on-hand quantity; reservations do not move stock and write no movement"""
        quantity = as_quantity(quantity, "quantity")
        if quantity <= 0:
            raise ValidationError("quantity must be > 0")
        return self.ledger.adjust(item_id, location_id, 0.0, quantity)

    def release(self, *, item_id: int, location_id: int, quantity) -> StockRecord:
        """Release a reservation"""
        quantity = as_quantity(quantity, "quantity")
        if quantity <= 0:
            raise ValidationError("quantity must be > 0")
        return self.ledger.adjust(item_id, location_id, 0.0, -quantity)

    def _commit(self, action: str) -> None:
        with storage_errors(action):
            db.session.commit()
