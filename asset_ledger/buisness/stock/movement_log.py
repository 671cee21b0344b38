from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime

from asset_ledger import db
from asset_ledger.buisness.catalog.sku_registry import SkuRegistry
from asset_ledger.buisness.core.errors import ValidationError, storage_errors
from asset_ledger.buisness.locations.location_hierarchy import LocationHierarchy
from asset_ledger.buisness.stock.stock_ledger import as_quantity
from asset_ledger.data.core.tagged_types import MOVEMENT_TYPES, TaggedType
from asset_ledger.data.stock.movement import Movement
from asset_ledger.utils.logger import get_logger

logger = get_logger("asset_ledger.buisness.stock.movements")


def new_reference_code() -> str:
    """Short human-facing correlation code; not unique"""
    return uuid.uuid4().hex[:8]


class MovementLog:
    """
    Append-only evidence trail of quantity changes.

    Entries are never updated or deleted. Replaying every movement for an
    item reproduces the quantity the Stock Ledger should hold at each location.
    """

    def __init__(self):
        self.locations = LocationHierarchy()
        self.catalog = SkuRegistry()

    def append(
        self,
        movement_type,
        item_id: int,
        quantity,
        reason: str,
        actor: str | None = None,
        *,
        from_location_id: int | None = None,
        to_location_id: int | None = None,
        unit_cost=None,
        asset_id: int | None = None,
        reference_code: str | None = None,
        movement_date: datetime | None = None,
        commit: bool = True,
    ) -> Movement:
        """
        Append one movement

        Args:
            movement_type: Known type ("transfer", "Adjustment", ...) or free text kept as custom
            item_id: Catalog item ID
            quantity: Quantity moved; signed for single-sided adjustments
            reason: Why the change happened
            actor: Who made it; defaults to LEDGER_DEFAULT_ACTOR
            from_location_id: Source location, if any
            to_location_id: Destination location, if any
            unit_cost: Optional unit cost at the time of the movement
            asset_id: Serialized asset this movement concerns, if any
            reference_code: Correlation code (receipt, ticket); generated when omitted
            movement_date: Effective date; now when omitted
            commit: Whether to commit the transaction

        Returns:
            The appended Movement

        Raises:
            ValidationError: If the type, reason or actor is blank, quantity is not a
                number, or neither location is given
            NotFoundError: If the item or a location does not exist
        """
        try:
            kind = TaggedType.parse(movement_type, MOVEMENT_TYPES)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        quantity = as_quantity(quantity, "quantity")
        if unit_cost is not None:
            unit_cost = as_quantity(unit_cost, "unit_cost")
        if not reason or not str(reason).strip():
            raise ValidationError("Movement reason is required")
        if actor is None:
            from flask import current_app
            actor = current_app.config.get('LEDGER_DEFAULT_ACTOR', 'system')
        if not str(actor).strip():
            raise ValidationError("Movement actor is required")
        if from_location_id is None and to_location_id is None:
            raise ValidationError("Movement needs a source or a destination location")

        self.catalog.get(item_id)
        if from_location_id is not None:
            self.locations.get(from_location_id)
        if to_location_id is not None:
            self.locations.get(to_location_id)

        movement = Movement(
            reference_code=reference_code or new_reference_code(),
            item_id=item_id,
            asset_id=asset_id,
            from_location_id=from_location_id,
            to_location_id=to_location_id,
            quantity=quantity,
            unit_cost=unit_cost,
            reason=str(reason).strip(),
            actor=str(actor).strip(),
            movement_date=movement_date or datetime.utcnow(),
        )
        movement.movement_type, movement.custom_type = kind.to_columns()

        with storage_errors("appending movement"):
            db.session.add(movement)
            db.session.flush()
            if commit:
                db.session.commit()

        logger.info(
            f"Movement {movement.reference_code} {kind}: item={item_id} qty={quantity} "
            f"{from_location_id}->{to_location_id} by {movement.actor}",
            extra={'item_id': item_id, 'movement_id': movement.id, 'asset_id': asset_id},
        )
        return movement

    def find(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        movement_type=None,
        *,
        item_id: int | None = None,
        asset_id: int | None = None,
        location_id: int | None = None,
    ) -> list[Movement]:
        """
        Query movements by date range and/or type, oldest first

        Args:
            start: Inclusive lower bound on movement_date
            end: Inclusive upper bound on movement_date
            movement_type: Known tag or custom label to match
            item_id: Restrict to one item
            asset_id: Restrict to one asset
            location_id: Restrict to movements leaving or entering a location
        """
        query = Movement.query
        if start is not None:
            query = query.filter(Movement.movement_date >= start)
        if end is not None:
            query = query.filter(Movement.movement_date <= end)
        if movement_type is not None:
            try:
                tag, label = TaggedType.parse(movement_type, MOVEMENT_TYPES).to_columns()
            except ValueError as e:
                raise ValidationError(str(e)) from e
            query = query.filter(Movement.movement_type == tag)
            if label is not None:
                query = query.filter(Movement.custom_type == label)
        if item_id is not None:
            query = query.filter(Movement.item_id == item_id)
        if asset_id is not None:
            query = query.filter(Movement.asset_id == asset_id)
        if location_id is not None:
            query = query.filter(
                (Movement.from_location_id == location_id) | (Movement.to_location_id == location_id)
            )
        return query.order_by(Movement.movement_date, Movement.id).all()

    def replay(self, item_id: int) -> dict[int, float]:
        """
        Recompute per-location quantity for an item from its movements alone

        Returns:
            Mapping of location_id to the quantity the movements imply
        """
        totals: dict[int, float] = defaultdict(float)
        for movement in self.find(item_id=item_id):
            if movement.to_location_id is not None:
                totals[movement.to_location_id] += movement.quantity
            if movement.from_location_id is not None:
                totals[movement.from_location_id] -= movement.quantity
        return dict(totals)
