#!/usr/bin/env python3
"""
Build orchestrator for the asset & stock ledger
Creates the ledger tables and optionally seeds a starter location tree
"""

from asset_ledger import db
from asset_ledger.utils.logger import get_logger

logger = get_logger("asset_ledger.build")

# Starter tree: (name, type, parent name)
DEFAULT_LOCATIONS = [
    ('Main Warehouse', 'warehouse', None),
    ('Receiving', 'bin', 'Main Warehouse'),
    ('Garage', 'garage', None),
]


def build_models():
    """
    Import every ledger model so it is registered with SQLAlchemy
    """
    import asset_ledger.data.locations.location
    import asset_ledger.data.catalog.catalog_sku
    import asset_ledger.data.stock.stock_record
    import asset_ledger.data.stock.movement
    import asset_ledger.data.assets.asset
    import asset_ledger.data.assets.installation_edge

    logger.debug("Ledger models registered")


def seed_default_locations():
    """
    Create the starter location tree when no locations exist yet

    Returns:
        int: Number of locations created
    """
    from asset_ledger.buisness.locations.location_hierarchy import LocationHierarchy
    from asset_ledger.data.locations.location import Location

    if Location.query.first() is not None:
        logger.info("Locations already present, skipping seed data")
        return 0

    hierarchy = LocationHierarchy()
    created = {}
    for name, location_type, parent_name in DEFAULT_LOCATIONS:
        parent_id = created[parent_name].id if parent_name else None
        created[name] = hierarchy.create(name, location_type, parent_id)

    logger.info(f"Seeded {len(created)} default locations")
    return len(created)


def build_database(seed_data=False):
    """
    Create all ledger tables (existing tables are left untouched)

    Must be called inside an application context.

    Args:
        seed_data (bool): Also create the starter location tree
    """
    logger.info("Building ledger database")
    build_models()
    db.create_all()
    logger.info("Ledger tables created")

    if seed_data:
        seed_default_locations()
