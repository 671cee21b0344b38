from asset_ledger.data.core.ledger_base import LedgerBase
from asset_ledger import db
from datetime import datetime
from sqlalchemy import Index


class InstallationEdge(LedgerBase):
    """
    Installation Edge - records that an asset was physically inside a container.

    Each record covers one interval: opened when the asset entered the container,
    closed (removed_at set) when it left. Edges are closed, never deleted.
    An edge is open while removed_at is NULL and is_valid is true.
    """
    __tablename__ = 'installation_edges'

    container_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=False)
    # Plain column: edge history outlives a deleted asset
    asset_id = db.Column(db.Integer, nullable=False)

    installed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    removed_at = db.Column(db.DateTime, nullable=True)  # NULL = currently installed
    is_valid = db.Column(db.Boolean, default=True, nullable=False)

    container = db.relationship('Location', foreign_keys=[container_id], lazy='select')

    __table_args__ = (
        Index('idx_installation_edge_asset_removed_at', 'asset_id', 'removed_at'),
        Index('idx_installation_edge_container_removed_at', 'container_id', 'removed_at'),
        Index('idx_installation_edge_asset_installed_at', 'asset_id', 'installed_at'),
    )

    @property
    def is_open(self):
        return self.removed_at is None and bool(self.is_valid)

    def __repr__(self):
        status = 'open' if self.is_open else 'closed'
        return f'<InstallationEdge {self.id}: Container {self.container_id} -> Asset {self.asset_id} ({status})>'
