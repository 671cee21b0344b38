"""
Asset & Installation Sync
Keeps an asset's current location, its stock count, the movement log and the
installation edge history moving together.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional

from asset_ledger import db
from asset_ledger.buisness.assets.open_edge_policy import SingleOpenEdgeSpecification
from asset_ledger.buisness.catalog.sku_registry import SkuRegistry
from asset_ledger.buisness.core.errors import NotFoundError, ValidationError, storage_errors
from asset_ledger.buisness.core.retry import retry_once_on_conflict
from asset_ledger.buisness.locations.location_hierarchy import LocationHierarchy
from asset_ledger.buisness.stock.movement_log import MovementLog
from asset_ledger.buisness.stock.stock_ledger import StockLedger, as_quantity
from asset_ledger.data.assets.asset import Asset
from asset_ledger.data.assets.installation_edge import InstallationEdge
from asset_ledger.data.core.tagged_types import ASSET_CONDITIONS, ASSET_STATUSES, normalize_tag
from asset_ledger.data.locations.location import Location
from asset_ledger.utils.logger import get_logger

logger = get_logger("asset_ledger.buisness.assets.sync")

# Fields callers may set through create()/update()
ASSET_FIELDS = (
    'item_id', 'name', 'serial_number', 'batch_number', 'condition', 'status',
    'location_id', 'cost', 'purchase_date', 'warranty_expiry', 'notes',
)


class AssetInstallationSync:
    """
    Manager for serialized assets.

    Every location change of an asset:
    - updates Asset.location_id (the only answer to "where is it now")
    - moves one unit of stock from the old location to the new one
    - appends one transfer Movement
    - closes and/or opens an InstallationEdge when a container is left or entered

    All effects of one call commit together. References are validated before
    anything is written, so NotFound leaves no partial state.
    """

    def __init__(self):
        self.locations = LocationHierarchy()
        self.catalog = SkuRegistry()
        self.ledger = StockLedger()
        self.movements = MovementLog()

    def get(self, asset_id: int) -> Asset:
        """
        Raises:
            NotFoundError: If the asset does not exist
        """
        asset = db.session.get(Asset, asset_id) if asset_id is not None else None
        if asset is None:
            raise NotFoundError("Asset", asset_id)
        return asset

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(
        self,
        asset_data: Dict[str, Any],
        *,
        actor: Optional[str] = None,
        effective_date: Optional[datetime] = None,
    ) -> Asset:
        """
        Start tracking a physical instance

        When the asset has a location, one unit is added to stock there with a
        purchase movement, and an installation edge is opened if the location
        is a container.

        Args:
            asset_data: Asset fields; item_id and name are required
            actor: Who registered the asset
            effective_date: When it arrived (defaults to now)

        Returns:
            Created Asset

        Raises:
            ValidationError: If required fields are missing or enumerated fields are unknown
            NotFoundError: If the item or location does not exist
        """
        data = self._clean_fields(asset_data)
        if not data.get('name'):
            raise ValidationError("Asset name is required")
        if data.get('item_id') is None:
            raise ValidationError("Asset item_id is required")
        self.catalog.get(data['item_id'])
        location = self._resolve_location(data.get('location_id'))

        def apply():
            asset = Asset.from_dict(data)
            with storage_errors("creating asset"):
                db.session.add(asset)
                db.session.flush()

            if location is not None:
                self.ledger.adjust(asset.item_id, location.id, 1.0, commit=False)
                self.movements.append(
                    'purchase', asset.item_id, 1.0, "Asset registered", actor,
                    to_location_id=location.id,
                    unit_cost=asset.cost,
                    asset_id=asset.id,
                    movement_date=effective_date,
                    commit=False,
                )
                self._sync_installation(asset, None, location, effective_date)

            self._commit(asset, "creating asset")
            return asset

        asset = retry_once_on_conflict(apply, "creating asset")
        logger.info(f"Created asset {asset.id} '{asset.name}' at location {asset.location_id}",
                    extra={'asset_id': asset.id, 'item_id': asset.item_id})
        return asset

    def create_component(
        self,
        *,
        domain: str,
        name: str,
        category: Optional[str] = None,
        part_number: Optional[str] = None,
        kind: str = 'SerializedAsset',
        actor: Optional[str] = None,
        **asset_fields,
    ) -> Asset:
        """
        Register a domain component: resolve its catalog SKU, then create the asset

        Args:
            domain: Subsystem the component comes from, e.g. "garage"
            name: Component name
            category: Component category
            part_number: Optional part number
            kind: Catalog kind recorded on first resolution
            actor: Who registered the component
            **asset_fields: Remaining asset fields (location_id, serial_number, cost, ...)
        """
        sku = self.catalog.resolve(domain, part_number, category, name, kind=kind)
        data = dict(asset_fields)
        data['item_id'] = sku.id
        data['name'] = name
        return self.create(data, actor=actor)

    def relocate(
        self,
        asset_id: int,
        new_location_id: Optional[int],
        *,
        effective_date: Optional[datetime] = None,
        actor: Optional[str] = None,
        reason: str = "Asset transfer",
    ) -> Asset:
        """
        Move an asset to a new location (None unassigns it)

        Args:
            asset_id: Asset to move
            new_location_id: Destination location, or None
            effective_date: When the move took effect; used as installed_at for a new edge
            actor: Who moved the asset
            reason: Movement reason

        Returns:
            The updated Asset

        Raises:
            NotFoundError: If the asset or destination does not exist
            ValidationError: If the destination is inactive
            ConflictError: If the move conflicts again after one retry
        """
        self.get(asset_id)
        new_location = self._resolve_location(new_location_id)

        def apply():
            asset = self.get(asset_id)
            self._move(asset, new_location, effective_date, actor, reason)
            self._commit(asset, "relocating asset")
            return asset

        return retry_once_on_conflict(apply, f"relocating asset {asset_id}")

    def update(
        self,
        asset_id: int,
        changes: Dict[str, Any],
        *,
        effective_date: Optional[datetime] = None,
        actor: Optional[str] = None,
    ) -> Asset:
        """
        Update asset fields; a location change follows the same path as relocate()

        Raises:
            NotFoundError: If the asset or a new location does not exist
            ValidationError: If a field value is invalid or item_id would change
        """
        current = self.get(asset_id)
        data = self._clean_fields(changes)
        if 'name' in data and not data['name']:
            raise ValidationError("Asset name is required")
        if 'item_id' in data and data['item_id'] != current.item_id:
            raise ValidationError("An asset's catalog item cannot be changed")

        location_changing = 'location_id' in data
        new_location = self._resolve_location(data.get('location_id')) if location_changing else None
        field_changes = {k: v for k, v in data.items() if k not in ('location_id', 'item_id')}

        def apply():
            asset = self.get(asset_id)
            changed = asset.apply_dict(field_changes)
            if location_changing:
                self._move(asset, new_location, effective_date, actor, "Asset updated")
            self._commit(asset, "updating asset")
            if changed:
                logger.info(f"Updated asset {asset_id}: {', '.join(changed)}", extra={'asset_id': asset_id})
            return asset

        return retry_once_on_conflict(apply, f"updating asset {asset_id}")

    def delete(self, asset_id: int, *, actor: Optional[str] = None) -> bool:
        """
        Stop tracking an asset

        Closes its open installation edges and removes one unit of stock from its
        location with a disposal movement. Edge and movement history is kept.

        Returns:
            True if the asset was deleted, False if it does not exist
        """
        if db.session.get(Asset, asset_id) is None:
            return False

        def apply():
            asset = db.session.get(Asset, asset_id)
            if asset is None:
                return False
            now = datetime.utcnow()
            for edge in SingleOpenEdgeSpecification.find_open_edges(asset.id):
                edge.removed_at = now
            if asset.location_id is not None:
                self.ledger.adjust(asset.item_id, asset.location_id, -1.0, commit=False)
                self.movements.append(
                    'disposal', asset.item_id, 1.0, "Asset deleted", actor,
                    from_location_id=asset.location_id,
                    asset_id=asset.id,
                    commit=False,
                )
            with storage_errors("deleting asset"):
                db.session.delete(asset)
                db.session.commit()
            return True

        deleted = retry_once_on_conflict(apply, f"deleting asset {asset_id}")
        if deleted:
            logger.info(f"Deleted asset {asset_id}", extra={'asset_id': asset_id})
        return deleted

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _move(
        self,
        asset: Asset,
        new_location: Optional[Location],
        effective_date: Optional[datetime],
        actor: Optional[str],
        reason: str,
    ) -> None:
        old_location_id = asset.location_id
        new_location_id = new_location.id if new_location is not None else None
        if old_location_id == new_location_id:
            return

        old_location = db.session.get(Location, old_location_id) if old_location_id is not None else None
        asset.location_id = new_location_id

        if old_location_id is not None:
            self.ledger.adjust(asset.item_id, old_location_id, -1.0, commit=False)
        if new_location_id is not None:
            self.ledger.adjust(asset.item_id, new_location_id, 1.0, commit=False)
        self.movements.append(
            'transfer', asset.item_id, 1.0, reason, actor,
            from_location_id=old_location_id,
            to_location_id=new_location_id,
            asset_id=asset.id,
            movement_date=effective_date,
            commit=False,
        )
        self._sync_installation(asset, old_location, new_location, effective_date)
        logger.info(f"Asset {asset.id} moved {old_location_id} -> {new_location_id}",
                    extra={'asset_id': asset.id, 'location_id': new_location_id})

    def _sync_installation(
        self,
        asset: Asset,
        old_location: Optional[Location],
        new_location: Optional[Location],
        effective_date: Optional[datetime],
    ) -> None:
        """Drive edge transitions from the difference between the old and new location"""
        was_installed = self.locations.is_container(old_location)
        now_installed = self.locations.is_container(new_location)

        if was_installed:
            now = datetime.utcnow()
            open_edges = SingleOpenEdgeSpecification.find_open_edges(asset.id, container_id=old_location.id)
            if not open_edges:
                logger.warning(f"Asset {asset.id} left container {old_location.id} without an open edge",
                               extra={'asset_id': asset.id})
            for edge in open_edges:
                edge.removed_at = now

        if now_installed:
            edge = InstallationEdge(
                container_id=new_location.id,
                asset_id=asset.id,
                installed_at=effective_date or datetime.utcnow(),
                removed_at=None,
                is_valid=True,
            )
            db.session.add(edge)

    def _commit(self, asset: Asset, action: str) -> None:
        with storage_errors(action):
            db.session.flush()
            SingleOpenEdgeSpecification.check(asset.id)
            db.session.commit()

    def _resolve_location(self, location_id: Optional[int]) -> Optional[Location]:
        if location_id is None:
            return None
        location = self.locations.get(location_id)
        if not location.is_active:
            raise ValidationError(f"Location {location_id} is inactive")
        return location

    def _clean_fields(self, asset_data: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(asset_data, dict):
            raise ValidationError("Asset data must be a dictionary")
        unknown = set(asset_data) - set(ASSET_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown asset fields: {', '.join(sorted(unknown))}")

        data = dict(asset_data)
        if 'name' in data:
            data['name'] = (data['name'] or '').strip()
        for field, allowed in (('condition', ASSET_CONDITIONS), ('status', ASSET_STATUSES)):
            if field in data:
                value = normalize_tag(data[field] or '')
                if value not in allowed:
                    raise ValidationError(f"Unknown asset {field}: {data[field]!r}")
                data[field] = value
        for field in ('item_id', 'location_id'):
            value = data.get(field)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                raise ValidationError(f"Asset {field} must be an integer id, got {value!r}")
        for field in ('purchase_date', 'warranty_expiry'):
            value = data.get(field)
            if isinstance(value, datetime):
                data[field] = value.date()
            elif value is not None and not isinstance(value, date):
                raise ValidationError(f"Asset {field} must be a date, got {value!r}")
        if data.get('cost') is not None:
            data['cost'] = as_quantity(data['cost'], "cost")
        return data
