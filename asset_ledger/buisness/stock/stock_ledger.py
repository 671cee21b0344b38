from __future__ import annotations

import math
from datetime import datetime

from asset_ledger import db
from asset_ledger.buisness.catalog.sku_registry import SkuRegistry
from asset_ledger.buisness.core.errors import ValidationError, storage_errors
from asset_ledger.buisness.core.retry import retry_once_on_conflict
from asset_ledger.buisness.locations.location_hierarchy import LocationHierarchy
from asset_ledger.data.stock.stock_record import StockRecord
from asset_ledger.utils.logger import get_logger

logger = get_logger("asset_ledger.buisness.stock.ledger")


def as_quantity(value, field: str) -> float:
    """Coerce a numeric input to float, rejecting booleans, NaN and non-numbers"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number, got {value!r}")
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        raise ValidationError(f"{field} must be a finite number")
    return value


class StockLedger:
    """
    Current-state projection of stock per (item, location).

    Responsibilities:
    - Upsert StockRecord rows; at most one per (item, location)
    - Track on-hand and reserved quantities and min/max thresholds

    The ledger never writes Movements. Callers pair every quantity change with a
    MovementLog.append (see InventoryManager).
    """

    def __init__(self):
        self.locations = LocationHierarchy()
        self.catalog = SkuRegistry()

    def get_stock(self, item_id: int, location_id: int) -> StockRecord | None:
        return StockRecord.query.filter_by(item_id=item_id, location_id=location_id).first()

    def _get_or_create_record(self, item_id: int, location_id: int) -> StockRecord:
        record = self.get_stock(item_id, location_id)
        if record is None:
            self.catalog.get(item_id)
            self.locations.get(location_id)
            record = StockRecord(
                item_id=item_id,
                location_id=location_id,
                quantity=0.0,
                reserved_quantity=0.0,
            )
            db.session.add(record)
        return record

    def _write(self, record: StockRecord, action: str, commit: bool) -> StockRecord:
        record.last_updated = datetime.utcnow()
        with storage_errors(action):
            db.session.flush()
            if commit:
                db.session.commit()
        return record

    def set_level(self, item_id: int, location_id: int, quantity, *, commit: bool = True) -> StockRecord:
        """
        Set the on-hand quantity for an item at a location, creating the record if needed

        Args:
            item_id: Catalog item ID
            location_id: Location ID
            quantity: New on-hand quantity (negative is accepted)
            commit: Whether to commit; when False a conflict is raised for the caller to retry

        Returns:
            The upserted StockRecord

        Raises:
            ValidationError: If quantity is not a number
            NotFoundError: If the item or location does not exist
            ConflictError: If a concurrent writer updated the record (after one retry)
        """
        quantity = as_quantity(quantity, "quantity")

        def apply():
            record = self._get_or_create_record(item_id, location_id)
            record.quantity = quantity
            return self._write(record, "setting stock level", commit)

        record = retry_once_on_conflict(apply, "setting stock level") if commit else apply()
        logger.info(f"Set stock item={item_id} location={location_id} to {quantity}",
                    extra={'item_id': item_id, 'location_id': location_id})
        return record

    def adjust(
        self,
        item_id: int,
        location_id: int,
        delta,
        reserved_delta=0.0,
        *,
        commit: bool = True,
    ) -> StockRecord:
        """
        Apply a signed change to on-hand and reserved quantity

        A missing record is created with ``delta`` as its initial quantity.
        Quantity may go negative and may drop below the reserved amount; the
        reserved amount itself may not go below zero.

        Args:
            item_id: Catalog item ID
            location_id: Location ID
            delta: Signed change to on-hand quantity
            reserved_delta: Signed change to reserved quantity
            commit: Whether to commit; when False a conflict is raised for the caller to retry

        Returns:
            The upserted StockRecord

        Raises:
            ValidationError: If the deltas are not numbers or reserved would go negative
            NotFoundError: If the item or location does not exist
            ConflictError: If a concurrent writer updated the record (after one retry)
        """
        delta = as_quantity(delta, "delta")
        reserved_delta = as_quantity(reserved_delta, "reserved_delta")

        def apply():
            record = self._get_or_create_record(item_id, location_id)
            new_reserved = (record.reserved_quantity or 0.0) + reserved_delta
            if new_reserved < 0:
                if record.id is None:
                    db.session.expunge(record)
                raise ValidationError(
                    f"Reserved quantity for item {item_id} at location {location_id} cannot go below zero"
                )
            record.quantity = (record.quantity or 0.0) + delta
            record.reserved_quantity = new_reserved
            return self._write(record, "adjusting stock", commit)

        record = retry_once_on_conflict(apply, "adjusting stock") if commit else apply()
        if record.reserved_quantity > record.quantity:
            logger.warning(
                f"Reserved {record.reserved_quantity} exceeds on-hand {record.quantity} "
                f"for item={item_id} location={location_id}",
                extra={'item_id': item_id, 'location_id': location_id},
            )
        logger.debug(f"Adjusted stock item={item_id} location={location_id} by {delta} (reserved {reserved_delta})")
        return record

    def set_thresholds(
        self,
        item_id: int,
        location_id: int,
        min_level=None,
        max_level=None,
        *,
        commit: bool = True,
    ) -> StockRecord:
        """
        Set the low/high stock thresholds for an item at a location

        Raises:
            ValidationError: If a threshold is not a number or min exceeds max
        """
        min_level = as_quantity(min_level, "min_level") if min_level is not None else None
        max_level = as_quantity(max_level, "max_level") if max_level is not None else None
        if min_level is not None and max_level is not None and min_level > max_level:
            raise ValidationError("min_level cannot exceed max_level")

        def apply():
            record = self._get_or_create_record(item_id, location_id)
            record.min_level = min_level
            record.max_level = max_level
            return self._write(record, "setting stock thresholds", commit)

        return retry_once_on_conflict(apply, "setting stock thresholds") if commit else apply()

    def available_quantity(self, item_id: int, location_id: int) -> float:
        """On-hand minus reserved, never below zero; zero when no record exists"""
        record = self.get_stock(item_id, location_id)
        if record is None:
            return 0.0
        return record.available_quantity

    def stock_levels(self, item_id: int) -> dict[int, float]:
        """Available quantity per location for one item"""
        records = StockRecord.query.filter_by(item_id=item_id).order_by(StockRecord.location_id).all()
        return {record.location_id: record.available_quantity for record in records}

    def total_on_hand(self, item_id: int) -> float:
        records = StockRecord.query.filter_by(item_id=item_id).all()
        return sum(record.quantity or 0.0 for record in records)

    def low_stock_records(self) -> list[StockRecord]:
        """Records at or below their min_level; records without a min_level are never low"""
        return (
            StockRecord.query
            .filter(StockRecord.min_level.isnot(None))
            .filter(StockRecord.quantity <= StockRecord.min_level)
            .order_by(StockRecord.item_id, StockRecord.location_id)
            .all()
        )
