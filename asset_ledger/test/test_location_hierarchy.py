"""
Tests for the location tree: materialized paths, navigation and soft deletion
"""

import pytest
from sqlalchemy import text

from asset_ledger import db
from asset_ledger.buisness.core.errors import NotFoundError, ValidationError
from asset_ledger.data.locations.location import Location


def test_create_builds_materialized_path(hierarchy):
    warehouse = hierarchy.create('Warehouse', 'warehouse')
    aisle = hierarchy.create('Aisle 1', 'aisle', warehouse.id)
    bin_ = hierarchy.create('Bin 7', 'bin', aisle.id)

    assert warehouse.path == f"/{warehouse.id}/"
    assert aisle.path == f"/{warehouse.id}/{aisle.id}/"
    assert bin_.path == f"/{warehouse.id}/{aisle.id}/{bin_.id}/"
    assert bin_.path_ids == [warehouse.id, aisle.id, bin_.id]


def test_unknown_type_is_kept_as_custom(hierarchy):
    crib = hierarchy.create('Crib', 'Tool Crib')
    locker = hierarchy.create('Locker', 'locker')

    assert crib.location_type == 'custom'
    assert crib.custom_type == 'Tool Crib'
    assert locker.custom_type == 'locker'
    assert crib.kind != locker.kind, "Distinct custom types must not collapse"
    assert str(crib.kind) == 'custom:Tool Crib'


def test_known_type_is_case_insensitive(hierarchy):
    truck = hierarchy.create('Truck', 'VEHICLE')
    assert truck.location_type == 'vehicle'
    assert truck.custom_type is None


def test_create_validation(hierarchy):
    with pytest.raises(ValidationError):
        hierarchy.create('   ', 'shelf')
    with pytest.raises(ValidationError):
        hierarchy.create('Shelf', '')
    with pytest.raises(NotFoundError):
        hierarchy.create('Orphan', 'shelf', parent_id=999)
    assert Location.query.count() == 0, "Rejected creates must not write"


def test_cannot_create_under_inactive_parent(hierarchy):
    parent = hierarchy.create('Old Shed', 'shed')
    hierarchy.deactivate(parent.id)
    with pytest.raises(ValidationError):
        hierarchy.create('Shelf', 'shelf', parent.id)


def test_get_path_is_root_to_leaf(site, hierarchy):
    path = hierarchy.get_path(site['shelf_a'].id)

    assert [loc.id for loc in path] == [site['warehouse'].id, site['shelf_a'].id]
    assert path[0].is_root
    assert not path[-1].is_root
    assert path[-1].id == site['shelf_a'].id


def test_get_path_for_root(site, hierarchy):
    path = hierarchy.get_path(site['garage'].id)
    assert [loc.id for loc in path] == [site['garage'].id]


def test_get_path_of_every_location_has_unique_ids(site, hierarchy):
    for location in Location.query.all():
        path = hierarchy.get_path(location.id)
        ids = [loc.id for loc in path]
        assert path[0].parent_id is None
        assert ids[-1] == location.id
        assert len(ids) == len(set(ids))


def test_get_path_truncates_on_cycle(hierarchy):
    a = hierarchy.create('A', 'room')
    b = hierarchy.create('B', 'room', a.id)
    # Damage the data: make A a child of B
    a.parent_id = b.id
    db.session.commit()

    path = hierarchy.get_path(b.id)
    ids = [loc.id for loc in path]
    assert len(ids) == len(set(ids)), "Path walk must not loop"
    assert ids[-1] == b.id


def test_get_path_truncates_on_missing_parent(hierarchy):
    a = hierarchy.create('A', 'room')
    b = hierarchy.create('B', 'room', a.id)
    db.session.execute(text("UPDATE locations SET parent_id = 4242 WHERE id = :id"), {'id': a.id})
    db.session.commit()
    db.session.expire_all()

    path = hierarchy.get_path(b.id)
    assert [loc.id for loc in path] == [a.id, b.id]


def test_get_path_unknown_location(hierarchy):
    with pytest.raises(NotFoundError):
        hierarchy.get_path(12345)


def test_children_and_roots(site, hierarchy):
    children = hierarchy.get_children(site['warehouse'].id)
    assert [c.name for c in children] == ['Shelf A', 'Shelf B']

    roots = hierarchy.get_roots()
    assert {r.name for r in roots} == {'Main Warehouse', 'Garage'}


def test_deactivate_hides_from_navigation(site, hierarchy):
    assert hierarchy.deactivate(site['shelf_b'].id) is True

    children = hierarchy.get_children(site['warehouse'].id)
    assert [c.name for c in children] == ['Shelf A']
    all_children = hierarchy.get_children(site['warehouse'].id, include_inactive=True)
    assert len(all_children) == 2

    hierarchy.reactivate(site['shelf_b'].id)
    assert len(hierarchy.get_children(site['warehouse'].id)) == 2


def test_deactivate_missing_returns_false(hierarchy):
    assert hierarchy.deactivate(999) is False


def test_descendants_use_path(site, hierarchy):
    bin_ = hierarchy.create('Bin 1', 'bin', site['shelf_a'].id)
    names = {loc.name for loc in hierarchy.get_descendants(site['warehouse'].id)}
    assert names == {'Shelf A', 'Shelf B', 'Bin 1'}
    assert bin_.id not in {loc.id for loc in hierarchy.get_descendants(site['garage'].id)}


def test_delete_unreferenced_location_removes_it(hierarchy):
    loc = hierarchy.create('Temp', 'virtual')
    assert hierarchy.delete(loc.id) is True
    assert db.session.get(Location, loc.id) is None


def test_delete_referenced_location_only_deactivates(site, hierarchy):
    assert hierarchy.delete(site['warehouse'].id) is True
    warehouse = db.session.get(Location, site['warehouse'].id)
    assert warehouse is not None
    assert warehouse.is_active is False


def test_delete_missing_location_returns_false(hierarchy):
    assert hierarchy.delete(31337) is False


def test_is_container_uses_configured_types(site, hierarchy):
    trailer = hierarchy.create('Flatbed', 'Trailer')
    assert hierarchy.is_container(site['vehicle_x']) is True
    assert hierarchy.is_container(trailer) is True, "Custom types can be configured as containers"
    assert hierarchy.is_container(site['shelf_a']) is False
    assert hierarchy.is_container(None) is False


def test_tags_round_trip(hierarchy):
    loc = hierarchy.create('Cold Room', 'room', tags=['cold', ' food ', ''])
    assert loc.tags == 'cold,food'
    assert loc.tag_list == ['cold', 'food']
