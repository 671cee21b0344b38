"""
Asset Service
Read-only queries over serialized assets and their installation history.

Handles:
- Lookups by container, category, part number and warranty
- Paged listing and free-text search
- Installation edge history for reporting
"""

from datetime import date, datetime
from typing import List, Optional, Tuple

from flask import current_app
from sqlalchemy import and_, func, or_

from asset_ledger.buisness.core.errors import ValidationError
from asset_ledger.data.assets.asset import Asset
from asset_ledger.data.assets.installation_edge import InstallationEdge
from asset_ledger.data.catalog.catalog_sku import CatalogSku
from asset_ledger.data.core.tagged_types import CUSTOM_TAG
from asset_ledger.data.locations.location import Location


class AssetService:
    """
    Service for asset queries.

    Current location always comes from Asset.location_id; installation edges are
    only read for history.
    """

    @staticmethod
    def _container_filter():
        container_types = sorted(current_app.config.get('INSTALLATION_CONTAINER_TYPES', {'vehicle'}))
        return or_(
            Location.location_type.in_(container_types),
            and_(Location.location_type == CUSTOM_TAG, func.lower(Location.custom_type).in_(container_types)),
        )

    @staticmethod
    def by_container(container_id: int) -> List[Asset]:
        """Assets currently at a container (e.g. installed on a vehicle)"""
        return Asset.query.filter(Asset.location_id == container_id).order_by(Asset.name).all()

    @staticmethod
    def installed() -> List[Asset]:
        """Assets currently located in any installation container"""
        return (
            Asset.query
            .join(Location, Asset.location_id == Location.id)
            .filter(AssetService._container_filter())
            .order_by(Asset.name)
            .all()
        )

    @staticmethod
    def in_storage() -> List[Asset]:
        """Assets not installed in a container, including unassigned ones"""
        return (
            Asset.query
            .outerjoin(Location, Asset.location_id == Location.id)
            .filter(or_(Asset.location_id.is_(None), ~AssetService._container_filter()))
            .order_by(Asset.name)
            .all()
        )

    @staticmethod
    def by_category(category: str) -> List[Asset]:
        """Assets whose catalog item has the given category (case-insensitive)"""
        return (
            Asset.query
            .join(CatalogSku, Asset.item_id == CatalogSku.id)
            .filter(func.lower(CatalogSku.category) == (category or '').strip().lower())
            .order_by(Asset.name)
            .all()
        )

    @staticmethod
    def by_part_number(part_number: str) -> List[Asset]:
        return (
            Asset.query
            .join(CatalogSku, Asset.item_id == CatalogSku.id)
            .filter(func.lower(CatalogSku.part_number) == (part_number or '').strip().lower())
            .order_by(Asset.name)
            .all()
        )

    @staticmethod
    def under_warranty(as_of: Optional[date] = None) -> List[Asset]:
        """
        Assets whose warranty has not expired on ``as_of``

        Args:
            as_of: Reference date (defaults to today, UTC)
        """
        if as_of is None:
            as_of = datetime.utcnow().date()
        elif isinstance(as_of, datetime):
            as_of = as_of.date()
        return (
            Asset.query
            .filter(Asset.warranty_expiry.isnot(None))
            .filter(Asset.warranty_expiry > as_of)
            .order_by(Asset.warranty_expiry)
            .all()
        )

    @staticmethod
    def get_paged(page: int = 1, per_page: int = 20) -> Tuple[List[Asset], int]:
        """
        Get one page of assets ordered by id

        Returns:
            Tuple of (assets on the page, total asset count)
        """
        if page < 1 or per_page < 1:
            raise ValidationError("page and per_page must be >= 1")
        pagination = Asset.query.order_by(Asset.id).paginate(page=page, per_page=per_page, error_out=False)
        return pagination.items, pagination.total

    @staticmethod
    def search(term: Optional[str]) -> List[Asset]:
        """
        Case-insensitive substring search over asset name, part number and category

        A blank term returns every asset.
        """
        query = Asset.query.join(CatalogSku, Asset.item_id == CatalogSku.id)
        term = (term or '').strip()
        if term:
            pattern = f'%{term}%'
            query = query.filter(or_(
                Asset.name.ilike(pattern),
                CatalogSku.part_number.ilike(pattern),
                CatalogSku.category.ilike(pattern),
            ))
        return query.order_by(Asset.name).all()

    @staticmethod
    def current_installation(asset_id: int) -> Optional[InstallationEdge]:
        """The open installation edge for an asset, if any (history lookup, not current location)"""
        return (
            InstallationEdge.query
            .filter_by(asset_id=asset_id, removed_at=None, is_valid=True)
            .order_by(InstallationEdge.installed_at.desc())
            .first()
        )

    @staticmethod
    def installation_history(
        asset_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[InstallationEdge]:
        """
        Installation edges for an asset that overlap the window, oldest first

        Args:
            asset_id: Asset ID
            start: Window start; edges removed before it are excluded
            end: Window end; edges installed after it are excluded
        """
        query = InstallationEdge.query.filter(InstallationEdge.asset_id == asset_id)
        if start is not None:
            query = query.filter(or_(InstallationEdge.removed_at.is_(None), InstallationEdge.removed_at >= start))
        if end is not None:
            query = query.filter(InstallationEdge.installed_at <= end)
        return query.order_by(InstallationEdge.installed_at, InstallationEdge.id).all()

    @staticmethod
    def container_history(container_id: int, at: datetime) -> List[int]:
        """IDs of assets installed in a container at a point in time"""
        edges = (
            InstallationEdge.query
            .filter(InstallationEdge.container_id == container_id)
            .filter(InstallationEdge.is_valid.is_(True))
            .filter(InstallationEdge.installed_at <= at)
            .filter(or_(InstallationEdge.removed_at.is_(None), InstallationEdge.removed_at > at))
            .order_by(InstallationEdge.asset_id)
            .all()
        )
        return [edge.asset_id for edge in edges]
