from asset_ledger import db
from asset_ledger.data.core.ledger_base import LedgerBase

# A catalog entry shared by every subsystem that refers to the same logical item.
# sku_key is derived by the SKU registry; nothing else should write it.


class CatalogSku(LedgerBase):
    __tablename__ = 'catalog_skus'

    sku_key = db.Column(db.String(400), unique=True, nullable=False)
    domain = db.Column(db.String(100), nullable=False)
    kind = db.Column(db.String(100), nullable=False, default='Item')
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(100), nullable=True)
    part_number = db.Column(db.String(100), nullable=True, index=True)

    description = db.Column(db.Text, nullable=True)
    unit_of_measure = db.Column(db.String(50), nullable=True, default='each')
    default_cost = db.Column(db.Float, nullable=True)
    default_price = db.Column(db.Float, nullable=True)
    supplier = db.Column(db.String(200), nullable=True)
    barcode = db.Column(db.String(100), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    def __repr__(self):
        return f'<CatalogSku {self.sku_key}: {self.name}>'

    @property
    def unit_cost(self):
        return self.default_cost or 0.0
