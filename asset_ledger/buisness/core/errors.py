"""
Domain exceptions for the asset & stock ledger

These exceptions represent business rule violations and storage failures.
They are raised by the business layer and surfaced to callers unchanged.
"""

from contextlib import contextmanager

from sqlalchemy.exc import DisconnectionError, IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from asset_ledger import db


class LedgerError(Exception):
    """Base exception for all ledger domain errors"""
    pass


class NotFoundError(LedgerError):
    """Raised when a referenced item, location, asset or SKU does not exist"""

    def __init__(self, entity, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ValidationError(LedgerError):
    """Raised when input is malformed; nothing has been written"""
    pass


class ConflictError(LedgerError):
    """Raised when a write would violate an invariant or lost a concurrent update"""
    pass


class OpenEdgeConflictError(ConflictError):
    """Raised when an asset would end up with more than one open installation edge"""
    pass


class StorageUnavailable(LedgerError):
    """Raised when the persistence layer could not be reached"""
    pass


@contextmanager
def storage_errors(action):
    """
    Translate SQLAlchemy failures raised inside the block into ledger errors.

    StaleDataError and IntegrityError become ConflictError; connection-level
    OperationalError/DisconnectionError become StorageUnavailable. The session
    is rolled back before the ledger error propagates.
    """
    try:
        yield
    except StaleDataError as e:
        db.session.rollback()
        raise ConflictError(f"Concurrent update detected while {action}: {e}") from e
    except IntegrityError as e:
        db.session.rollback()
        raise ConflictError(f"Constraint violated while {action}: {e.orig}") from e
    except (OperationalError, DisconnectionError) as e:
        db.session.rollback()
        raise StorageUnavailable(f"Storage unavailable while {action}: {e}") from e
