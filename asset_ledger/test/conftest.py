"""
Pytest configuration and fixtures for the ledger tests
"""
import pytest
from asset_ledger import create_app
from asset_ledger import db as _db


@pytest.fixture(scope='session')
def app():
    """Create Flask application backed by an in-memory SQLite database"""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'INSTALLATION_CONTAINER_TYPES': 'vehicle,trailer',
        'LEDGER_DEFAULT_ACTOR': 'system',
    })

    with app.app_context():
        yield app


@pytest.fixture(scope='function')
def db(app):
    """Fresh tables for every test"""
    _db.create_all()
    yield _db
    _db.session.remove()
    _db.drop_all()


@pytest.fixture
def hierarchy(db):
    from asset_ledger.buisness.locations.location_hierarchy import LocationHierarchy
    return LocationHierarchy()


@pytest.fixture
def registry(db):
    from asset_ledger.buisness.catalog.sku_registry import SkuRegistry
    return SkuRegistry()


@pytest.fixture
def ledger(db):
    from asset_ledger.buisness.stock.stock_ledger import StockLedger
    return StockLedger()


@pytest.fixture
def movement_log(db):
    from asset_ledger.buisness.stock.movement_log import MovementLog
    return MovementLog()


@pytest.fixture
def inventory(db):
    from asset_ledger.buisness.stock.inventory_manager import InventoryManager
    return InventoryManager()


@pytest.fixture
def sync(db):
    from asset_ledger.buisness.assets.asset_installation_sync import AssetInstallationSync
    return AssetInstallationSync()


@pytest.fixture
def site(hierarchy):
    """Warehouse with two shelves, a garage with two vehicles"""
    warehouse = hierarchy.create('Main Warehouse', 'warehouse')
    shelf_a = hierarchy.create('Shelf A', 'shelf', warehouse.id)
    shelf_b = hierarchy.create('Shelf B', 'shelf', warehouse.id)
    garage = hierarchy.create('Garage', 'garage')
    vehicle_x = hierarchy.create('Truck X', 'vehicle', garage.id)
    vehicle_y = hierarchy.create('Truck Y', 'Vehicle', garage.id)
    return {
        'warehouse': warehouse,
        'shelf_a': shelf_a,
        'shelf_b': shelf_b,
        'garage': garage,
        'vehicle_x': vehicle_x,
        'vehicle_y': vehicle_y,
    }


@pytest.fixture
def item(registry):
    """A catalog item with a unit cost"""
    return registry.resolve('garage', 'WH-100', 'Wheels', 'Steel Wheel', default_cost=25.0)
