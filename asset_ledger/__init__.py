from flask import Flask
from flask_sqlalchemy import SQLAlchemy
import os
from asset_ledger.utils.logger import get_logger

# Initialize extensions
db = SQLAlchemy()


def _env_flag(name, default='False'):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def create_app(config=None):
    """
    Application factory for the asset & stock ledger.

    Args:
        config (dict, optional): Configuration values that override the environment

    Returns:
        Flask: Configured application with the ledger models registered
    """
    from pathlib import Path

    app = Flask(__name__)

    logger = get_logger("asset_ledger")
    logger.info("Initializing ledger application")

    config = dict(config or {})
    ledger_env = os.environ.get('LEDGER_ENV', 'production').lower()
    app.config['TESTING'] = config.get('TESTING', ledger_env == 'testing')

    # SECRET_KEY must come from the environment outside development/testing
    app.config['SECRET_KEY'] = config.get('SECRET_KEY', os.environ.get('SECRET_KEY'))
    if not app.config['SECRET_KEY']:
        if app.config['TESTING'] or ledger_env == 'development':
            app.config['SECRET_KEY'] = 'dev-secret-key-DO-NOT-USE-IN-PRODUCTION'
        else:
            logger.critical("SECRET_KEY not set in environment! Application cannot start.")
            raise RuntimeError("SECRET_KEY environment variable is required")

    # Prefer an explicit DATABASE_URL; otherwise keep the SQLite file in instance/
    db_uri = config.get('SQLALCHEMY_DATABASE_URI', os.environ.get('DATABASE_URL'))
    if not db_uri:
        instance_dir = Path(__file__).parent.parent / 'instance'
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'asset_ledger.db'
        db_uri = f"sqlite:///{str(default_db_path.resolve())}"
    app.config['SQLALCHEMY_DATABASE_URI'] = db_uri
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SQLALCHEMY_ECHO'] = config.get('SQLALCHEMY_ECHO', _env_flag('SQLALCHEMY_ECHO'))

    # Location types whose members count as installation containers
    container_types = config.get(
        'INSTALLATION_CONTAINER_TYPES',
        os.environ.get('INSTALLATION_CONTAINER_TYPES', 'vehicle')
    )
    if isinstance(container_types, str):
        container_types = [t.strip().lower() for t in container_types.split(',') if t.strip()]
    app.config['INSTALLATION_CONTAINER_TYPES'] = frozenset(container_types)

    app.config['LEDGER_DEFAULT_ACTOR'] = config.get(
        'LEDGER_DEFAULT_ACTOR', os.environ.get('LEDGER_DEFAULT_ACTOR', 'system')
    )

    logger.debug(f"Database configured: {db_uri.split(':', 1)[0]}")

    db.init_app(app)

    # Import models to ensure they're registered with SQLAlchemy
    from asset_ledger.data.locations.location import Location
    from asset_ledger.data.catalog.catalog_sku import CatalogSku
    from asset_ledger.data.stock.stock_record import StockRecord
    from asset_ledger.data.stock.movement import Movement
    from asset_ledger.data.assets.asset import Asset
    from asset_ledger.data.assets.installation_edge import InstallationEdge

    logger.debug("Models imported and registered")
    logger.info("Ledger application initialization complete")

    return app
