"""
Ledger Report Service

Read-only aggregations over stock records, movements and assets.
Valuation is available quantity (on hand minus reserved) times the catalog default cost.
"""

from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from asset_ledger import db
from asset_ledger.buisness.stock.movement_log import MovementLog
from asset_ledger.data.catalog.catalog_sku import CatalogSku
from asset_ledger.data.locations.location import Location
from asset_ledger.data.stock.movement import Movement
from asset_ledger.data.stock.stock_record import StockRecord

UNCATEGORIZED_LABEL = 'Uncategorized'


class LedgerReportService:
    """Service for ledger reports; never writes"""

    @staticmethod
    def _record_value(record: StockRecord) -> float:
        quantity = (record.quantity or 0.0) - (record.reserved_quantity or 0.0)
        return quantity * (record.item.unit_cost if record.item else 0.0)

    @staticmethod
    def valuation() -> float:
        """Total value of all stock"""
        records = StockRecord.query.all()
        return sum(LedgerReportService._record_value(record) for record in records)

    @staticmethod
    def by_category() -> Dict[str, float]:
        """Stock value grouped by catalog category"""
        totals: Dict[str, float] = defaultdict(float)
        for record in StockRecord.query.all():
            category = (record.item.category if record.item else None) or UNCATEGORIZED_LABEL
            totals[category] += LedgerReportService._record_value(record)
        return dict(totals)

    @staticmethod
    def location_value(location_id: int, include_descendants: bool = False) -> float:
        """
        Stock value held at a location

        Args:
            location_id: Location ID
            include_descendants: Also count every location below it in the tree
        """
        query = StockRecord.query
        if include_descendants:
            location = db.session.get(Location, location_id)
            if location is None:
                return 0.0
            prefix = location.path or f"/{location.id}/"
            query = query.join(Location, StockRecord.location_id == Location.id).filter(
                Location.path.like(f"{prefix}%")
            )
        else:
            query = query.filter(StockRecord.location_id == location_id)
        return sum(LedgerReportService._record_value(record) for record in query.all())

    @staticmethod
    def low_stock() -> List[Tuple[CatalogSku, float]]:
        """
        Items at or below their minimum level at any location

        Returns:
            List of (item, threshold) where threshold is the highest min_level among
            the item's low records, ordered by item name
        """
        thresholds: Dict[int, float] = {}
        items: Dict[int, CatalogSku] = {}
        low_records = (
            StockRecord.query
            .filter(StockRecord.min_level.isnot(None))
            .filter(StockRecord.quantity <= StockRecord.min_level)
            .all()
        )
        for record in low_records:
            items[record.item_id] = record.item
            thresholds[record.item_id] = max(thresholds.get(record.item_id, record.min_level), record.min_level)
        return sorted(
            ((items[item_id], thresholds[item_id]) for item_id in items),
            key=lambda pair: (pair[0].name, pair[0].id),
        )

    @staticmethod
    def movements_by_type(start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, float]:
        """Total movement quantity per movement type within the window"""
        totals: Dict[str, float] = defaultdict(float)
        for movement in MovementLog().find(start, end):
            totals[movement.type_label] += movement.quantity
        return dict(totals)

    @staticmethod
    def asset_history(
        asset_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Movement]:
        """Movements recorded for one asset within the window, oldest first"""
        return MovementLog().find(start, end, asset_id=asset_id)

    @staticmethod
    def reconcile(item_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Compare ledger quantities with the quantities implied by the movement log

        Args:
            item_id: Limit to one item; all items with stock or movements otherwise

        Returns:
            One dict per drifting (item, location) with ledger, replayed and drift values
        """
        log = MovementLog()
        if item_id is not None:
            item_ids = [item_id]
        else:
            stocked = {row.item_id for row in StockRecord.query.with_entities(StockRecord.item_id).distinct()}
            moved = {row.item_id for row in Movement.query.with_entities(Movement.item_id).distinct()}
            item_ids = sorted(stocked | moved)

        drift = []
        for current_item in item_ids:
            replayed = log.replay(current_item)
            ledger = {
                record.location_id: record.quantity or 0.0
                for record in StockRecord.query.filter_by(item_id=current_item).all()
            }
            for location_id in sorted(set(replayed) | set(ledger)):
                ledger_qty = ledger.get(location_id, 0.0)
                replayed_qty = replayed.get(location_id, 0.0)
                if abs(ledger_qty - replayed_qty) > 1e-9:
                    drift.append({
                        'item_id': current_item,
                        'location_id': location_id,
                        'ledger_quantity': ledger_qty,
                        'replayed_quantity': replayed_qty,
                        'drift': ledger_qty - replayed_qty,
                    })
        return drift
