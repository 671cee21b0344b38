"""
Location Model

A named container in the location tree (warehouse, shelf, vehicle, bin, ...).
The materialized path lists ancestor ids root-first, e.g. "/1/4/9/".
"""

from asset_ledger import db
from asset_ledger.data.core.ledger_base import LedgerBase
from asset_ledger.data.core.tagged_types import TaggedType


class Location(LedgerBase):
    """Node in the location hierarchy"""
    __tablename__ = 'locations'

    name = db.Column(db.String(200), nullable=False)
    location_type = db.Column(db.String(50), nullable=False, default='virtual')
    custom_type = db.Column(db.String(100), nullable=True)  # Set only when location_type == 'custom'
    description = db.Column(db.Text, nullable=True)
    capacity = db.Column(db.Integer, nullable=True)
    tags = db.Column(db.String(500), nullable=True)  # Comma-separated

    parent_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=True)
    path = db.Column(db.String(1000), nullable=True, index=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)

    parent = db.relationship('Location', remote_side='Location.id', backref=db.backref('children', lazy='dynamic'))

    __table_args__ = (
        db.Index('idx_location_parent_active', 'parent_id', 'is_active'),
    )

    def __repr__(self):
        return f'<Location {self.id}: {self.name} ({self.kind})>'

    @property
    def kind(self) -> TaggedType:
        return TaggedType.from_columns(self.location_type, self.custom_type)

    @kind.setter
    def kind(self, value: TaggedType):
        self.location_type, self.custom_type = value.to_columns()

    @property
    def tag_list(self):
        if not self.tags:
            return []
        return [tag.strip() for tag in self.tags.split(',') if tag.strip()]

    @tag_list.setter
    def tag_list(self, values):
        cleaned = [str(v).strip() for v in (values or []) if str(v).strip()]
        self.tags = ','.join(cleaned) if cleaned else None

    @property
    def path_ids(self):
        """Ancestor ids root-first, ending with this location's id"""
        if not self.path:
            return []
        return [int(part) for part in self.path.strip('/').split('/') if part]

    @property
    def is_root(self):
        return self.parent_id is None
