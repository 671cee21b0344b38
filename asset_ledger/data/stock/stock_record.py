from __future__ import annotations

from datetime import datetime

from asset_ledger import db
from asset_ledger.data.core.ledger_base import LedgerBase


class StockRecord(LedgerBase):
    """
    Current on-hand and reserved quantity for one item at one location.

    Notes:
    - Exactly one row per (item_id, location_id); rows are upserted, never duplicated.
    - Quantity may be driven to zero or below; rows are not deleted.
    - ``version`` is an optimistic revision counter. A write against a stale
      revision raises StaleDataError at flush time.
    """

    __tablename__ = 'stock_records'

    item_id = db.Column(db.Integer, db.ForeignKey('catalog_skus.id'), nullable=False)
    location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=False)

    quantity = db.Column(db.Float, nullable=False, default=0.0)
    reserved_quantity = db.Column(db.Float, nullable=False, default=0.0)
    min_level = db.Column(db.Float, nullable=True)
    max_level = db.Column(db.Float, nullable=True)
    last_updated = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    version = db.Column(db.Integer, nullable=False)

    item = db.relationship('CatalogSku')
    location = db.relationship('Location')

    __mapper_args__ = {'version_id_col': version}

    __table_args__ = (
        db.UniqueConstraint('item_id', 'location_id', name='uix_stock_item_location'),
        db.Index('idx_stock_location', 'location_id'),
    )

    def __repr__(self):
        return (f'<StockRecord item={self.item_id} location={self.location_id} '
                f'qty={self.quantity} reserved={self.reserved_quantity}>')

    @property
    def available_quantity(self) -> float:
        # reserved may exceed quantity; available never goes below zero
        return max(0.0, (self.quantity or 0.0) - (self.reserved_quantity or 0.0))

    @property
    def is_low(self) -> bool:
        return self.min_level is not None and (self.quantity or 0.0) <= self.min_level
