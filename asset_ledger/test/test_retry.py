"""
Tests for the single conflict retry
"""

import pytest

from asset_ledger.buisness.core.errors import ConflictError, NotFoundError, OpenEdgeConflictError
from asset_ledger.buisness.core.retry import retry_once_on_conflict


class FlakyOperation:
    def __init__(self, failures, error=ConflictError):
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error("row changed underneath us")
        return 'done'


def test_success_runs_once(db):
    op = FlakyOperation(0)
    assert retry_once_on_conflict(op, 'testing') == 'done'
    assert op.calls == 1


def test_single_conflict_is_retried(db):
    op = FlakyOperation(1)
    assert retry_once_on_conflict(op, 'testing') == 'done'
    assert op.calls == 2


def test_open_edge_conflict_is_a_conflict(db):
    op = FlakyOperation(1, OpenEdgeConflictError)
    assert retry_once_on_conflict(op, 'testing') == 'done'


def test_second_conflict_is_surfaced(db):
    op = FlakyOperation(2)
    with pytest.raises(ConflictError):
        retry_once_on_conflict(op, 'testing')
    assert op.calls == 2


def test_other_errors_are_not_retried(db):
    op = FlakyOperation(1, lambda msg: NotFoundError("Asset", 7))
    with pytest.raises(NotFoundError):
        retry_once_on_conflict(op, 'testing')
    assert op.calls == 1


def test_unexpected_error_rolls_back_pending_work(db):
    from asset_ledger.data.locations.location import Location

    def half_done():
        db.session.add(Location(name='Pending', location_type='shelf'))
        raise TypeError("bad input reached the database layer")

    with pytest.raises(TypeError):
        retry_once_on_conflict(half_done, 'testing')
    assert not db.session.new
    assert Location.query.count() == 0
