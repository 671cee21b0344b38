from __future__ import annotations

from typing import Callable, TypeVar

from asset_ledger import db
from asset_ledger.buisness.core.errors import ConflictError
from asset_ledger.utils.logger import get_logger

logger = get_logger("asset_ledger.buisness.core.retry")

T = TypeVar("T")


def retry_once_on_conflict(operation: Callable[[], T], description: str) -> T:
    """
    Run ``operation``; on ConflictError roll back and run it exactly once more.

    The operation must re-read everything it needs, since the rollback expires
    all loaded instances. A second conflict is surfaced to the caller. Any other
    exception rolls the session back before it propagates.

    Args:
        operation: Zero-argument callable that performs and commits one unit of work
        description: Short text used in log messages

    Raises:
        ConflictError: If the retry conflicts as well
    """
    try:
        return operation()
    except ConflictError as e:
        db.session.rollback()
        logger.warning(f"Conflict while {description}, retrying once: {e}")
    except Exception:
        db.session.rollback()
        raise

    try:
        return operation()
    except ConflictError as e:
        db.session.rollback()
        logger.error(f"Conflict persisted while {description}: {e}")
        raise
    except Exception:
        db.session.rollback()
        raise
