"""
Tests for asset queries and installation history lookups
"""

from datetime import date, datetime, timedelta

import pytest

from asset_ledger.buisness.core.errors import ValidationError
from asset_ledger.services.assets.asset_service import AssetService


@pytest.fixture
def fleet(sync, registry, item, site):
    """Three wheels and a brake pad spread over shelves and vehicles"""
    pad = registry.resolve('garage', 'BP-22', 'Brakes', 'Brake Pad')
    assets = {
        'wheel_1': sync.create({'item_id': item.id, 'name': 'Wheel 1', 'location_id': site['vehicle_x'].id,
                                'warranty_expiry': date(2027, 1, 1)}),
        'wheel_2': sync.create({'item_id': item.id, 'name': 'Wheel 2', 'location_id': site['shelf_a'].id,
                                'warranty_expiry': date(2026, 1, 1)}),
        'wheel_3': sync.create({'item_id': item.id, 'name': 'Wheel 3'}),
        'pad': sync.create({'item_id': pad.id, 'name': 'Front Pad', 'location_id': site['vehicle_y'].id}),
    }
    return assets


def _names(assets):
    return [a.name for a in assets]


def test_by_container(fleet, site):
    assert _names(AssetService.by_container(site['vehicle_x'].id)) == ['Wheel 1']
    assert AssetService.by_container(site['shelf_b'].id) == []


def test_installed_and_in_storage(fleet):
    assert _names(AssetService.installed()) == ['Front Pad', 'Wheel 1']
    assert _names(AssetService.in_storage()) == ['Wheel 2', 'Wheel 3']


def test_custom_container_type_counts_as_installed(sync, hierarchy, item):
    trailer = hierarchy.create('Flatbed', 'Trailer')
    assert trailer.location_type == 'custom'
    sync.create({'item_id': item.id, 'name': 'Spare', 'location_id': trailer.id})
    assert _names(AssetService.installed()) == ['Spare']


def test_by_category_and_part_number(fleet):
    assert _names(AssetService.by_category('WHEELS')) == ['Wheel 1', 'Wheel 2', 'Wheel 3']
    assert _names(AssetService.by_part_number('bp-22')) == ['Front Pad']
    assert AssetService.by_category('Tyres') == []


def test_under_warranty(fleet):
    assert _names(AssetService.under_warranty(date(2026, 6, 1))) == ['Wheel 1']
    assert _names(AssetService.under_warranty(datetime(2025, 6, 1, 12, 0))) == ['Wheel 2', 'Wheel 1']
    assert AssetService.under_warranty(date(2027, 1, 1)) == [], "Expiry day itself is out of warranty"


def test_under_warranty_defaults_to_today(sync, item):
    today = datetime.utcnow().date()
    sync.create({'item_id': item.id, 'name': 'Expires today', 'warranty_expiry': today})
    sync.create({'item_id': item.id, 'name': 'Expires tomorrow', 'warranty_expiry': today + timedelta(days=1)})
    assert _names(AssetService.under_warranty()) == ['Expires tomorrow']


def test_get_paged(fleet):
    items, total = AssetService.get_paged(page=1, per_page=3)
    assert total == 4
    assert len(items) == 3
    items, total = AssetService.get_paged(page=2, per_page=3)
    assert _names(items) == ['Front Pad']
    items, _ = AssetService.get_paged(page=9, per_page=3)
    assert items == []
    with pytest.raises(ValidationError):
        AssetService.get_paged(page=0)


def test_search(fleet):
    assert _names(AssetService.search('wheel')) == ['Wheel 1', 'Wheel 2', 'Wheel 3']
    assert _names(AssetService.search('BRAKES')) == ['Front Pad']
    assert _names(AssetService.search('wh-100')) == ['Wheel 1', 'Wheel 2', 'Wheel 3']
    assert len(AssetService.search('  ')) == 4
    assert AssetService.search('nothing-like-this') == []


def test_installation_history_and_current(sync, item, site):
    x, y = site['vehicle_x'].id, site['vehicle_y'].id
    asset = sync.create({'item_id': item.id, 'name': 'Wheel'})
    sync.relocate(asset.id, x, effective_date=datetime(2020, 1, 1))
    sync.relocate(asset.id, y, effective_date=datetime(2020, 2, 1))

    history = AssetService.installation_history(asset.id)
    assert [e.container_id for e in history] == [x, y]
    assert AssetService.current_installation(asset.id).container_id == y

    tomorrow = datetime.utcnow() + timedelta(days=1)
    later = AssetService.installation_history(asset.id, start=tomorrow)
    assert [e.container_id for e in later] == [y]
    earlier = AssetService.installation_history(asset.id, end=datetime(2020, 1, 15))
    assert [e.container_id for e in earlier] == [x]


def test_container_history(sync, item, site):
    x = site['vehicle_x'].id
    first = sync.create({'item_id': item.id, 'name': 'First'})
    second = sync.create({'item_id': item.id, 'name': 'Second'})
    sync.relocate(first.id, x, effective_date=datetime(2020, 1, 1))
    sync.relocate(second.id, x, effective_date=datetime(2020, 1, 10))
    sync.relocate(first.id, site['shelf_a'].id)

    assert AssetService.container_history(x, datetime(2020, 1, 5)) == [first.id]
    assert AssetService.container_history(x, datetime(2020, 1, 15)) == [first.id, second.id]
    tomorrow = datetime.utcnow() + timedelta(days=1)
    assert AssetService.container_history(x, tomorrow) == [second.id]
    assert AssetService.current_installation(first.id) is None
