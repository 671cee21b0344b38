from asset_ledger import db
from asset_ledger.data.core.ledger_base import LedgerBase
from asset_ledger.data.core.tagged_types import TERMINAL_ASSET_STATUSES


class Asset(LedgerBase):
    """A uniquely identified physical instance of a catalog item"""
    __tablename__ = 'assets'

    item_id = db.Column(db.Integer, db.ForeignKey('catalog_skus.id'), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    serial_number = db.Column(db.String(100), nullable=True, index=True)
    batch_number = db.Column(db.String(100), nullable=True)
    condition = db.Column(db.String(30), nullable=False, default='good')
    status = db.Column(db.String(30), nullable=False, default='available')

    # Source of truth for where the asset is right now; NULL means unassigned
    location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=True)

    cost = db.Column(db.Float, nullable=True)
    purchase_date = db.Column(db.Date, nullable=True)
    warranty_expiry = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    version = db.Column(db.Integer, nullable=False)

    item = db.relationship('CatalogSku')
    location = db.relationship('Location')

    __mapper_args__ = {'version_id_col': version}

    __table_args__ = (
        db.Index('idx_asset_location', 'location_id'),
        db.Index('idx_asset_item', 'item_id'),
        # Movements and edges keep asset_id after a delete; ids must never be reused
        {'sqlite_autoincrement': True},
    )

    def __repr__(self):
        return f'<Asset {self.id}: {self.name} at {self.location_id}>'

    @property
    def is_terminal(self):
        return self.status in TERMINAL_ASSET_STATUSES

    def is_under_warranty(self, as_of):
        return self.warranty_expiry is not None and as_of < self.warranty_expiry
