"""
Tests for ledger reports: valuation, low stock, movement totals and reconciliation
"""

from datetime import datetime

import pytest

from asset_ledger.services.reporting.ledger_report_service import LedgerReportService


@pytest.fixture
def bolt(registry):
    return registry.resolve('inventory', 'BOLT-1', None, 'Bolt', default_cost=4.0)


@pytest.fixture
def stocked(inventory, item, bolt, site):
    inventory.adjust_stock(item_id=item.id, location_id=site['shelf_a'].id, delta=10, reserved_delta=2,
                           reason='count')
    inventory.adjust_stock(item_id=bolt.id, location_id=site['shelf_b'].id, delta=5, reason='count')


def test_valuation_uses_available_quantity(stocked):
    assert LedgerReportService.valuation() == pytest.approx(8 * 25.0 + 5 * 4.0)


def test_valuation_empty(db):
    assert LedgerReportService.valuation() == 0.0


def test_by_category(stocked):
    assert LedgerReportService.by_category() == {'Wheels': pytest.approx(200.0), 'Uncategorized': pytest.approx(20.0)}


def test_location_value(stocked, site):
    assert LedgerReportService.location_value(site['shelf_a'].id) == pytest.approx(200.0)
    assert LedgerReportService.location_value(site['warehouse'].id) == 0.0
    assert LedgerReportService.location_value(site['warehouse'].id, include_descendants=True) == pytest.approx(220.0)
    assert LedgerReportService.location_value(999, include_descendants=True) == 0.0


def test_low_stock_reports_highest_threshold(ledger, stocked, item, bolt, site):
    ledger.set_thresholds(item.id, site['shelf_a'].id, min_level=12)
    ledger.adjust(item.id, site['shelf_b'].id, 1)
    ledger.set_thresholds(item.id, site['shelf_b'].id, min_level=5)
    ledger.set_thresholds(bolt.id, site['shelf_b'].id, min_level=1)

    assert LedgerReportService.low_stock() == [(item, 12.0)]


def test_movements_by_type(inventory, item, site):
    loc = site['shelf_a'].id
    inventory.record_movement(movement_type='purchase', item_id=item.id, quantity=10, reason='PO',
                              to_location_id=loc, movement_date=datetime(2026, 4, 1))
    inventory.record_movement(movement_type='sale', item_id=item.id, quantity=3, reason='invoice',
                              from_location_id=loc, movement_date=datetime(2026, 4, 2))
    inventory.record_movement(movement_type='Loaned Out', item_id=item.id, quantity=1, reason='lent',
                              from_location_id=loc, movement_date=datetime(2026, 4, 3))
    inventory.record_movement(movement_type='sale', item_id=item.id, quantity=2, reason='invoice',
                              from_location_id=loc, movement_date=datetime(2026, 5, 1))

    totals = LedgerReportService.movements_by_type()
    assert totals == {'purchase': 10.0, 'sale': 5.0, 'custom:Loaned Out': 1.0}

    april = LedgerReportService.movements_by_type(datetime(2026, 4, 2), datetime(2026, 4, 30))
    assert april == {'sale': 3.0, 'custom:Loaned Out': 1.0}


def test_asset_history(sync, item, site):
    asset = sync.create({'item_id': item.id, 'name': 'Wheel', 'location_id': site['shelf_a'].id},
                        effective_date=datetime(2026, 1, 1))
    sync.relocate(asset.id, site['vehicle_x'].id, effective_date=datetime(2026, 2, 1))
    sync.create({'item_id': item.id, 'name': 'Other', 'location_id': site['shelf_a'].id})

    history = LedgerReportService.asset_history(asset.id)
    assert [m.movement_type for m in history] == ['purchase', 'transfer']
    recent = LedgerReportService.asset_history(asset.id, start=datetime(2026, 1, 15))
    assert [m.movement_type for m in recent] == ['transfer']


def test_reconcile_clean_ledger(stocked, inventory, item, site):
    inventory.transfer(item_id=item.id, from_location_id=site['shelf_a'].id,
                       to_location_id=site['shelf_b'].id, quantity=3)
    assert LedgerReportService.reconcile() == []


def test_reconcile_reports_drift(stocked, ledger, item, site):
    # A ledger-only write has no movement behind it
    ledger.adjust(item.id, site['shelf_a'].id, 2)

    drift = LedgerReportService.reconcile()
    assert drift == [{
        'item_id': item.id,
        'location_id': site['shelf_a'].id,
        'ledger_quantity': 12.0,
        'replayed_quantity': 10.0,
        'drift': 2.0,
    }]
    assert LedgerReportService.reconcile(item_id=item.id) == drift
