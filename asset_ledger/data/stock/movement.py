from __future__ import annotations

from datetime import datetime

from asset_ledger import db
from asset_ledger.data.core.ledger_base import LedgerBase
from asset_ledger.data.core.tagged_types import TaggedType


class Movement(LedgerBase):
    """
    Immutable record of one quantity change.

    Notes:
    - Rows are appended by MovementLog and never updated or deleted.
    - ``quantity`` leaves ``from_location_id`` and arrives at ``to_location_id``;
      a single-sided adjustment sets only ``to_location_id`` and may be negative.
    - ``asset_id`` is a plain column so history outlives a deleted asset.
    """

    __tablename__ = 'movements'

    reference_code = db.Column(db.String(32), nullable=False, index=True)
    movement_type = db.Column(db.String(50), nullable=False)
    custom_type = db.Column(db.String(100), nullable=True)

    item_id = db.Column(db.Integer, db.ForeignKey('catalog_skus.id'), nullable=False)
    asset_id = db.Column(db.Integer, nullable=True, index=True)
    from_location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=True)
    to_location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=True)

    quantity = db.Column(db.Float, nullable=False)
    unit_cost = db.Column(db.Float, nullable=True)
    reason = db.Column(db.String(500), nullable=False)
    actor = db.Column(db.String(100), nullable=False)
    movement_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    item = db.relationship('CatalogSku')
    from_location = db.relationship('Location', foreign_keys=[from_location_id])
    to_location = db.relationship('Location', foreign_keys=[to_location_id])

    __table_args__ = (
        db.Index('idx_movement_item_date', 'item_id', 'movement_date'),
        db.Index('idx_movement_type_date', 'movement_type', 'movement_date'),
    )

    def __repr__(self):
        return (f'<Movement {self.reference_code} {self.kind} item={self.item_id} '
                f'qty={self.quantity} {self.from_location_id}->{self.to_location_id}>')

    @property
    def kind(self) -> TaggedType:
        return TaggedType.from_columns(self.movement_type, self.custom_type)

    @property
    def type_label(self) -> str:
        return str(self.kind)

    def effect_on(self, location_id: int) -> float:
        """Signed quantity change this movement applies at ``location_id``"""
        effect = 0.0
        if self.to_location_id == location_id:
            effect += self.quantity
        if self.from_location_id == location_id:
            effect -= self.quantity
        return effect

    @property
    def net_effect(self) -> float:
        """Signed change to the item's total quantity across all locations"""
        effect = 0.0
        if self.to_location_id is not None:
            effect += self.quantity
        if self.from_location_id is not None:
            effect -= self.quantity
        return effect
