"""
Tests for the append-only movement log
"""

from datetime import datetime, timedelta

import pytest

from asset_ledger.buisness.core.errors import NotFoundError, ValidationError
from asset_ledger.buisness.stock.movement_log import MovementLog, new_reference_code
from asset_ledger.data.stock.movement import Movement


def test_append_records_every_field(movement_log, item, site):
    before = datetime.utcnow()
    movement = movement_log.append(
        'Purchase', item.id, 4, 'PO 1182 received', 'alice',
        to_location_id=site['shelf_a'].id,
        unit_cost=25.0,
        reference_code='PO-1182',
    )
    after = datetime.utcnow()

    assert movement.id is not None
    assert movement.movement_type == 'purchase'
    assert movement.custom_type is None
    assert movement.quantity == 4.0
    assert movement.unit_cost == 25.0
    assert movement.reason == 'PO 1182 received'
    assert movement.actor == 'alice'
    assert movement.reference_code == 'PO-1182'
    assert before <= movement.movement_date <= after


def test_append_generates_short_reference_and_default_actor(movement_log, item, site):
    movement = movement_log.append('adjustment', item.id, 1, 'count', to_location_id=site['shelf_a'].id)
    assert len(movement.reference_code) == 8
    assert movement.actor == 'system'


def test_reference_code_is_not_unique(movement_log, item, site):
    for _ in range(2):
        movement_log.append('adjustment', item.id, 1, 'count', 'bob',
                            to_location_id=site['shelf_a'].id, reference_code='TICKET-1')
    assert Movement.query.filter_by(reference_code='TICKET-1').count() == 2


def test_new_reference_code_is_hex():
    code = new_reference_code()
    assert len(code) == 8
    int(code, 16)


def test_custom_movement_type_keeps_label(movement_log, item, site):
    movement = movement_log.append('Loaned Out', item.id, 1, 'lent to neighbour', 'bob',
                                   from_location_id=site['shelf_a'].id)
    assert movement.movement_type == 'custom'
    assert movement.custom_type == 'Loaned Out'
    assert movement.type_label == 'custom:Loaned Out'


@pytest.mark.parametrize('kwargs', [
    {'reason': ''},
    {'actor': '   '},
    {'movement_type': ''},
    {'quantity': 'ten'},
    {'to_location_id': None},
])
def test_append_validation(movement_log, item, site, kwargs):
    params = {
        'movement_type': 'adjustment',
        'item_id': item.id,
        'quantity': 1,
        'reason': 'count',
        'actor': 'bob',
        'to_location_id': site['shelf_a'].id,
    }
    params.update(kwargs)
    with pytest.raises(ValidationError):
        movement_log.append(**params)
    assert Movement.query.count() == 0


def test_append_unknown_references(movement_log, item, site):
    with pytest.raises(NotFoundError):
        movement_log.append('adjustment', 999, 1, 'count', 'bob', to_location_id=site['shelf_a'].id)
    with pytest.raises(NotFoundError):
        movement_log.append('transfer', item.id, 1, 'move', 'bob',
                            from_location_id=site['shelf_a'].id, to_location_id=999)
    assert Movement.query.count() == 0


def test_log_has_no_update_or_delete():
    assert not hasattr(MovementLog, 'update')
    assert not hasattr(MovementLog, 'delete')


def test_find_by_date_range_and_type(movement_log, item, site):
    start = datetime(2026, 1, 1, 12, 0)
    loc = site['shelf_a'].id
    movement_log.append('purchase', item.id, 10, 'buy', 'a', to_location_id=loc, movement_date=start)
    movement_log.append('sale', item.id, 2, 'sell', 'a', from_location_id=loc,
                        movement_date=start + timedelta(days=1))
    movement_log.append('sale', item.id, 3, 'sell', 'a', from_location_id=loc,
                        movement_date=start + timedelta(days=5))

    in_window = movement_log.find(start, start + timedelta(days=2))
    assert [m.quantity for m in in_window] == [10.0, 2.0]

    sales = movement_log.find(movement_type='Sale')
    assert [m.quantity for m in sales] == [2.0, 3.0]

    late_sales = movement_log.find(start + timedelta(days=2), None, 'sale')
    assert [m.quantity for m in late_sales] == [3.0]


def test_find_custom_type_by_label(movement_log, item, site):
    loc = site['shelf_a'].id
    movement_log.append('Loaned Out', item.id, 1, 'x', 'a', from_location_id=loc)
    movement_log.append('Scrapped', item.id, 1, 'x', 'a', from_location_id=loc)

    assert len(movement_log.find(movement_type='loaned out')) == 0, "Custom labels match exactly"
    assert len(movement_log.find(movement_type='Loaned Out')) == 1


def test_replay_reconstructs_location_quantities(movement_log, item, site):
    a, b = site['shelf_a'].id, site['shelf_b'].id
    movement_log.append('purchase', item.id, 10, 'buy', 'x', to_location_id=a)
    movement_log.append('transfer', item.id, 4, 'move', 'x', from_location_id=a, to_location_id=b)
    movement_log.append('adjustment', item.id, -1, 'shrink', 'x', to_location_id=b)

    assert movement_log.replay(item.id) == {a: 6.0, b: 3.0}


def test_movement_effects(movement_log, item, site):
    a, b = site['shelf_a'].id, site['shelf_b'].id
    transfer = movement_log.append('transfer', item.id, 4, 'move', 'x', from_location_id=a, to_location_id=b)
    assert transfer.effect_on(a) == -4.0
    assert transfer.effect_on(b) == 4.0
    assert transfer.net_effect == 0.0
