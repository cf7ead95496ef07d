from __future__ import annotations

import pytest

from squirrel.database import transaction
from squirrel.pagination import Filters
from squirrel.apps.inventory import items as item_store
from squirrel.apps.inventory import models, services
from squirrel.apps.inventory.errors import DuplicateName, EditConflict, InvalidInput, NotFound
from squirrel.apps.inventory.items import ITEM_SORT_SAFELIST, StockDirection


def _item(db, name="Widget", quantity=10, remarks=""):
    item = models.Item(name=name, quantity=quantity, remarks=remarks)
    with transaction(db):
        item_store.insert_item(db, item)
    return item


def _filters(**kwargs):
    kwargs.setdefault("sort_safelist", ITEM_SORT_SAFELIST)
    return Filters(**kwargs).validate()


def test_insert_sets_remaining_and_initial_version(db_session):
    item = _item(db_session, quantity=7)

    stored = item_store.get_item(db_session, item.id)
    assert stored.remaining == 7
    assert stored.quantity == 7
    assert stored.version == models.ITEM_INITIAL_VERSION
    assert stored.remarks == ""
    assert stored.created_at is not None


@pytest.mark.parametrize("item_id", [0, -1, -100])
def test_get_item_rejects_non_positive_ids(db_session, item_id):
    with pytest.raises(NotFound):
        item_store.get_item(db_session, item_id)


def test_get_item_missing_row(db_session):
    with pytest.raises(NotFound):
        item_store.get_item(db_session, 999)


def test_get_item_is_repeatable(db_session):
    item = _item(db_session)
    first = item_store.get_item(db_session, item.id)
    snapshot = (first.remaining, first.version, first.name)
    second = item_store.get_item(db_session, item.id)
    assert (second.remaining, second.version, second.name) == snapshot


def test_apply_delta_moves_remaining_and_bumps_version(db_session):
    item = _item(db_session, quantity=10)

    with transaction(db_session):
        version = item_store.apply_delta(
            db_session, item.id, 4, direction=StockDirection.DECREASE, expected_version=1
        )
    assert version == 2

    with transaction(db_session):
        version = item_store.apply_delta(
            db_session, item.id, 5, direction=StockDirection.INCREASE, expected_version=2
        )
    assert version == 3

    stored = item_store.get_item(db_session, item.id)
    assert stored.remaining == 11
    assert stored.version == 3
    # lifetime quantity is never touched by movements
    assert stored.quantity == 10


def test_apply_delta_with_stale_version_changes_nothing(db_session):
    item = _item(db_session, quantity=10)

    with pytest.raises(EditConflict):
        with transaction(db_session):
            item_store.apply_delta(
                db_session, item.id, 3, direction=StockDirection.DECREASE, expected_version=5
            )

    stored = item_store.get_item(db_session, item.id)
    assert stored.remaining == 10
    assert stored.version == 1


def test_apply_delta_on_missing_item_is_a_conflict(db_session):
    with pytest.raises(EditConflict):
        with transaction(db_session):
            item_store.apply_delta(
                db_session, 404, 1, direction=StockDirection.INCREASE, expected_version=1
            )


def test_apply_delta_rejects_negative_magnitude(db_session):
    item = _item(db_session)
    with pytest.raises(InvalidInput):
        item_store.apply_delta(
            db_session, item.id, -3, direction=StockDirection.INCREASE, expected_version=1
        )


def test_update_item_overrides_remaining(db_session):
    item = _item(db_session, quantity=10)

    with transaction(db_session):
        version = item_store.update_item(db_session, item.id, remaining=42, expected_version=1)

    stored = item_store.get_item(db_session, item.id)
    assert version == 2
    assert stored.remaining == 42
    assert stored.version == 2


def test_update_item_guards_version_and_sign(db_session):
    item = _item(db_session)

    with pytest.raises(EditConflict):
        with transaction(db_session):
            item_store.update_item(db_session, item.id, remaining=1, expected_version=9)
    with pytest.raises(InvalidInput):
        item_store.update_item(db_session, item.id, remaining=-1, expected_version=1)
    with pytest.raises(NotFound):
        item_store.update_item(db_session, 0, remaining=1, expected_version=1)


def test_delete_item_cascades_to_ledgers(db_session):
    item = services.create_item(db_session, name="Gloves", quantity=10)
    services.record_issue(db_session, item_id=item.id, quantity=2, issued_to="Bay 4")

    with transaction(db_session):
        item_store.delete_item(db_session, item.id)

    with pytest.raises(NotFound):
        item_store.get_item(db_session, item.id)
    assert db_session.query(models.Addition).count() == 0
    assert db_session.query(models.Issue).count() == 0


def test_delete_missing_item(db_session):
    with pytest.raises(NotFound):
        with transaction(db_session):
            item_store.delete_item(db_session, 12345)


def test_duplicate_names_are_rejected(db_session):
    services.create_item(db_session, name="Hammer", quantity=1)
    with pytest.raises(DuplicateName):
        services.create_item(db_session, name="Hammer", quantity=2)

    assert db_session.query(models.Item).count() == 1
    assert db_session.query(models.Addition).count() == 1


def test_list_items_filters_sorts_and_paginates(db_session):
    for name, remarks in [
        ("Bolt M6", "rack A"),
        ("bolt M8", "rack B"),
        ("Washer", "rack A"),
        ("Anchor bolt", "100% steel"),
    ]:
        _item(db_session, name=name, remarks=remarks)

    rows, metadata = item_store.list_items(db_session, name="BOLT", filters=_filters(sort="-name"))
    assert [r.name for r in rows] == ["bolt M8", "Bolt M6", "Anchor bolt"]
    assert metadata.total_records == 3

    rows, _ = item_store.list_items(db_session, remarks="rack a", filters=_filters())
    assert {r.name for r in rows} == {"Bolt M6", "Washer"}

    # LIKE wildcards in the filter are matched literally
    rows, _ = item_store.list_items(db_session, remarks="100%", filters=_filters())
    assert [r.name for r in rows] == ["Anchor bolt"]
    rows, _ = item_store.list_items(db_session, remarks="%", filters=_filters())
    assert [r.name for r in rows] == ["Anchor bolt"]

    rows, metadata = item_store.list_items(db_session, filters=_filters(page=2, page_size=3))
    assert [r.name for r in rows] == ["Anchor bolt"]
    assert metadata.current_page == 2
    assert metadata.last_page == 2
    assert metadata.total_records == 4


def test_list_items_empty_result_has_zero_metadata(db_session):
    rows, metadata = item_store.list_items(db_session, name="nothing", filters=_filters())
    assert rows == []
    assert metadata.total_records == 0
    assert metadata.last_page == 0
