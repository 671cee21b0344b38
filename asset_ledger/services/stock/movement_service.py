"""
Movement Service
Paged movement history and per-location stock summaries for callers that list data.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from flask_sqlalchemy.pagination import Pagination
from sqlalchemy import func, or_

from asset_ledger import db
from asset_ledger.data.core.tagged_types import LOCATION_TYPES, MOVEMENT_TYPES
from asset_ledger.data.stock.movement import Movement
from asset_ledger.data.stock.stock_record import StockRecord


class MovementService:
    """
    Service for movement listings.

    Provides methods for:
    - Building filtered movement queries
    - Paginating movement history
    - Summarising stock held at a location
    """

    @staticmethod
    def build_filtered_query(
        item_id: Optional[int] = None,
        location_id: Optional[int] = None,
        movement_type: Optional[str] = None,
        actor: Optional[str] = None,
        reference_code: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ):
        """
        Build a filtered movement query, most recent first.

        Args:
            item_id: Filter by item
            location_id: Filter by source or destination location
            movement_type: Filter by stored type tag (custom types by tag "custom")
            actor: Filter by actor (partial match)
            reference_code: Filter by reference code (exact)
            date_from: Filter by date from
            date_to: Filter by date to

        Returns:
            SQLAlchemy query object
        """
        query = Movement.query

        if item_id:
            query = query.filter(Movement.item_id == item_id)

        if location_id:
            query = query.filter(or_(Movement.from_location_id == location_id,
                                     Movement.to_location_id == location_id))

        if movement_type:
            query = query.filter(Movement.movement_type == movement_type.strip().lower())

        if actor:
            query = query.filter(Movement.actor.ilike(f'%{actor}%'))

        if reference_code:
            query = query.filter(Movement.reference_code == reference_code)

        if date_from:
            query = query.filter(Movement.movement_date >= date_from)

        if date_to:
            query = query.filter(Movement.movement_date <= date_to)

        return query.order_by(Movement.movement_date.desc(), Movement.id.desc())

    @staticmethod
    def get_list_data(page: int = 1, per_page: int = 20, **filters) -> Pagination:
        """
        Get paginated movements with filters (see build_filtered_query)

        Returns:
            Pagination object
        """
        query = MovementService.build_filtered_query(**filters)
        return query.paginate(page=page, per_page=per_page, error_out=False)

    @staticmethod
    def get_filter_options() -> Dict[str, Any]:
        return {
            'movement_types': sorted(MOVEMENT_TYPES),
            'location_types': sorted(LOCATION_TYPES),
        }

    @staticmethod
    def get_location_stock_summary(location_id: int) -> Dict[str, Any]:
        """
        Count and total quantity of stock records at a location

        Returns:
            Dictionary with record_count, total_quantity and total_reserved
        """
        summary = db.session.query(
            func.count(StockRecord.id).label('record_count'),
            func.sum(StockRecord.quantity).label('total_quantity'),
            func.sum(StockRecord.reserved_quantity).label('total_reserved'),
        ).filter(StockRecord.location_id == location_id).first()

        return {
            'location_id': location_id,
            'record_count': summary.record_count or 0,
            'total_quantity': float(summary.total_quantity or 0),
            'total_reserved': float(summary.total_reserved or 0),
        }
