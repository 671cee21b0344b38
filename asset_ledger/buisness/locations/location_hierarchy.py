"""
Location Hierarchy

Business wrapper around the location tree: creation with materialized paths,
parent/child navigation, and soft deactivation.
"""

from __future__ import annotations

from typing import List, Optional

from asset_ledger import db
from asset_ledger.buisness.core.errors import NotFoundError, ValidationError, storage_errors
from asset_ledger.data.core.tagged_types import LOCATION_TYPES, TaggedType
from asset_ledger.data.locations.location import Location
from asset_ledger.utils.logger import get_logger

logger = get_logger("asset_ledger.buisness.locations")


class LocationHierarchy:
    """
    Manages the tree of locations.

    Children may only reference an already persisted parent, so the stored
    paths cannot form cycles. Path resolution still guards against damaged
    rows and never loops.
    """

    def get(self, location_id: int) -> Location:
        """
        Get a location by ID

        Raises:
            NotFoundError: If the location does not exist
        """
        location = db.session.get(Location, location_id) if location_id is not None else None
        if location is None:
            raise NotFoundError("Location", location_id)
        return location

    def create(
        self,
        name: str,
        location_type,
        parent_id: int | None = None,
        *,
        tags: list[str] | None = None,
        description: str | None = None,
        capacity: int | None = None,
        commit: bool = True,
    ) -> Location:
        """
        Create a location under an optional parent

        Args:
            name: Display name
            location_type: Known type tag ("shelf", "Vehicle", ...) or any free text,
                which is kept as a custom type
            parent_id: ID of an existing, active parent location
            tags: Optional list of tag strings
            description: Optional description
            capacity: Optional capacity hint
            commit: Whether to commit the transaction

        Returns:
            Created Location with its materialized path set

        Raises:
            ValidationError: If the name or type is blank, or the parent is inactive
            NotFoundError: If parent_id does not exist
        """
        if not name or not str(name).strip():
            raise ValidationError("Location name is required")
        try:
            kind = TaggedType.parse(location_type, LOCATION_TYPES)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        parent = None
        if parent_id is not None:
            parent = self.get(parent_id)
            if not parent.is_active:
                raise ValidationError(f"Parent location {parent_id} is inactive")

        location = Location(
            name=str(name).strip(),
            parent_id=parent.id if parent else None,
            description=description,
            capacity=capacity,
            is_active=True,
        )
        location.kind = kind
        location.tag_list = tags

        with storage_errors("creating location"):
            db.session.add(location)
            db.session.flush()
            parent_path = parent.path if parent and parent.path else (f"/{parent.id}/" if parent else "/")
            location.path = f"{parent_path}{location.id}/"
            if commit:
                db.session.commit()

        logger.info(f"Created location {location.id} '{location.name}' ({kind}) path={location.path}")
        return location

    def get_children(self, parent_id: int, include_inactive: bool = False) -> List[Location]:
        """Get the direct children of a location, ordered by name"""
        self.get(parent_id)
        query = Location.query.filter_by(parent_id=parent_id)
        if not include_inactive:
            query = query.filter_by(is_active=True)
        return query.order_by(Location.name).all()

    def get_roots(self, include_inactive: bool = False) -> List[Location]:
        """Get all locations without a parent, ordered by name"""
        query = Location.query.filter(Location.parent_id.is_(None))
        if not include_inactive:
            query = query.filter_by(is_active=True)
        return query.order_by(Location.name).all()

    def get_path(self, location_id: int) -> List[Location]:
        """
        Get the chain of locations from the root down to ``location_id``

        Walks parent pointers leaf to root, then reverses. A missing parent or a
        cycle truncates the result at the last resolvable ancestor.

        Returns:
            List of Location instances, root first, ending with the location itself

        Raises:
            NotFoundError: If location_id itself does not exist
        """
        current = self.get(location_id)
        chain = []
        visited = set()

        while current is not None:
            if current.id in visited:
                logger.warning(f"Cycle detected in location path of {location_id} at {current.id}; path truncated")
                break
            visited.add(current.id)
            chain.append(current)

            if current.parent_id is None:
                break
            parent = db.session.get(Location, current.parent_id)
            if parent is None:
                logger.warning(
                    f"Location {current.id} references missing parent {current.parent_id}; path truncated"
                )
            current = parent

        chain.reverse()
        return chain

    def get_descendants(self, location_id: int, include_inactive: bool = False) -> List[Location]:
        """Get every location below ``location_id`` using the materialized path"""
        location = self.get(location_id)
        prefix = location.path or f"/{location.id}/"
        query = Location.query.filter(Location.path.like(f"{prefix}%"), Location.id != location.id)
        if not include_inactive:
            query = query.filter_by(is_active=True)
        return query.order_by(Location.path).all()

    def deactivate(self, location_id: int, commit: bool = True) -> bool:
        """
        Soft-delete a location

        Returns:
            True if the location was found (and is now inactive), False if it does not exist
        """
        location = db.session.get(Location, location_id)
        if location is None:
            return False
        if location.is_active:
            location.is_active = False
            with storage_errors("deactivating location"):
                if commit:
                    db.session.commit()
            logger.info(f"Deactivated location {location_id}")
        return True

    def reactivate(self, location_id: int, commit: bool = True) -> Location:
        """
        Reactivate a soft-deleted location

        Raises:
            NotFoundError: If the location does not exist
            ValidationError: If its parent is still inactive
        """
        location = self.get(location_id)
        if location.parent is not None and not location.parent.is_active:
            raise ValidationError(f"Parent location {location.parent_id} is inactive")
        location.is_active = True
        with storage_errors("reactivating location"):
            if commit:
                db.session.commit()
        logger.info(f"Reactivated location {location_id}")
        return location

    def delete(self, location_id: int, commit: bool = True) -> bool:
        """
        Remove a location, or deactivate it while anything still references it

        Returns:
            True if the location was removed or deactivated, False if it does not exist
        """
        location = db.session.get(Location, location_id)
        if location is None:
            return False

        if self._is_referenced(location_id):
            logger.info(f"Location {location_id} is still referenced; deactivating instead of deleting")
            return self.deactivate(location_id, commit=commit)

        with storage_errors("deleting location"):
            db.session.delete(location)
            if commit:
                db.session.commit()
        logger.info(f"Deleted location {location_id}")
        return True

    def is_container(self, location: Optional[Location]) -> bool:
        """True when assets placed at ``location`` count as installed in it"""
        from flask import current_app

        if location is None:
            return False
        container_types = current_app.config.get('INSTALLATION_CONTAINER_TYPES', frozenset({'vehicle'}))
        kind = location.kind
        label = kind.label.strip().lower() if kind.is_custom and kind.label else kind.tag
        return label in container_types

    def _is_referenced(self, location_id: int) -> bool:
        from asset_ledger.data.assets.asset import Asset
        from asset_ledger.data.assets.installation_edge import InstallationEdge
        from asset_ledger.data.stock.movement import Movement
        from asset_ledger.data.stock.stock_record import StockRecord

        if Location.query.filter_by(parent_id=location_id).first() is not None:
            return True
        if StockRecord.query.filter_by(location_id=location_id).first() is not None:
            return True
        if Asset.query.filter_by(location_id=location_id).first() is not None:
            return True
        if InstallationEdge.query.filter_by(container_id=location_id).first() is not None:
            return True
        movement = Movement.query.filter(
            (Movement.from_location_id == location_id) | (Movement.to_location_id == location_id)
        ).first()
        return movement is not None
