"""
Element Service Tests
=====================

Element reads and writes that combine the element and timeline stores.
"""
import pytest

from chronomap.core.errors import NotFoundError, StoreIOError, ValidationError
from chronomap.schemas import ElementIn, ElementKind, Epoch, TimelineDocument
from chronomap.schemas.timeline import KindIds
from chronomap.services import element_service, timeline_service
from chronomap.services.json_store import JSONElementStore, JSONTimelineStore

from factories import make_entry

LOCATION = ElementKind.LOCATION
REGION = ElementKind.REGION


@pytest.fixture
def town(element_store):
    return element_store.put(LOCATION, {
        "id": "loc1", "elementType": "location", "creationYear": 0,
        "name": "New Town", "x": 10, "labelCollisionStrategy": "None",
    })


class TestListElements:

    def test_current_records_without_year(self, element_store, timeline_store, town):
        result = element_service.list_elements(element_store, timeline_store, LOCATION)

        assert result.items == [town]
        assert result.year is None

    def test_reconstructed_for_year(self, element_store, timeline_store, town):
        element_store.put(LOCATION, {"id": "loc2", "creationYear": 8, "name": "Late"})
        timeline_store.save(TimelineDocument(entries=[make_entry(3, locations={"loc1": {"name": "Old Town"}})]))

        result = element_service.list_elements(element_store, timeline_store, LOCATION, year=5)

        assert [item["name"] for item in result.items] == ["Old Town"]
        assert result.total == 2
        assert result.fallback is False

    def test_falls_back_to_current_records_when_nothing_exists(self, element_store, timeline_store, town):
        timeline_store.save(TimelineDocument(entries=[make_entry(1, deleted_locations=["loc1"])]))

        result = element_service.list_elements(element_store, timeline_store, LOCATION, year=5)

        assert result.fallback is True
        assert result.items == [town]

    def test_empty_store_is_not_a_fallback(self, element_store, timeline_store):
        result = element_service.list_elements(element_store, timeline_store, REGION, year=5)

        assert result.items == []
        assert result.fallback is False

    def test_failures_are_reported(self, element_store, timeline_store, town):
        element_store.put(LOCATION, {"id": "loc2", "name": "Broken"})
        timeline_store.save(TimelineDocument(entries=[make_entry(1, locations={"loc2": "garbage"})]))

        result = element_service.list_elements(element_store, timeline_store, LOCATION, year=5)

        assert [item["id"] for item in result.items] == ["loc1"]
        assert [failure.element_id for failure in result.failures] == ["loc2"]


class TestGetElement:

    def test_missing_element(self, element_store, timeline_store):
        with pytest.raises(NotFoundError):
            element_service.get_element(element_store, timeline_store, LOCATION, "nope")

    def test_absent_in_year(self, element_store, timeline_store):
        element_store.put(LOCATION, {"id": "loc2", "creationYear": 8})

        with pytest.raises(NotFoundError, match="does not exist in year 3"):
            element_service.get_element(element_store, timeline_store, LOCATION, "loc2", year=3)


class TestCreateElement:

    def test_defaults_applied(self, element_store):
        record = element_service.create_element(
            element_store, REGION, ElementIn(id="reg1", name="Marsh"), "Hide",
        )

        assert record == {
            "id": "reg1", "name": "Marsh", "elementType": "region",
            "creationYear": 0, "labelCollisionStrategy": "Hide",
        }
        assert element_store.get(REGION, "reg1") == record

    def test_camel_case_creation_year(self, element_store):
        record = element_service.create_element(
            element_store, LOCATION, ElementIn.model_validate({"id": "loc5", "creationYear": 12}), "None",
        )

        assert record["creationYear"] == 12

    def test_duplicate_rejected(self, element_store, town):
        with pytest.raises(ValidationError):
            element_service.create_element(element_store, LOCATION, ElementIn(id="loc1"), "None")


class TestUpdateElement:

    def test_replaces_current_record(self, element_store, timeline_store, town):
        payload = ElementIn(id="loc1", name="Renamed", x=10)

        record = element_service.update_element(element_store, timeline_store, LOCATION, "loc1", payload)

        assert record["name"] == "Renamed"
        assert record["creationYear"] == 0
        assert timeline_store.load().entries == []

    def test_record_year_stores_minimal_patch(self, element_store, timeline_store, town):
        payload = ElementIn(id="loc1", name="Old Town", x=10, labelCollisionStrategy="None")

        state = element_service.update_element(
            element_store, timeline_store, LOCATION, "loc1", payload, record_year=3,
        )

        assert state["name"] == "Old Town"
        assert element_store.get(LOCATION, "loc1")["name"] == "New Town"
        entry = timeline_store.load().entries[0]
        assert entry.year == 3
        assert entry.changes.modified.locations == {"loc1": {"name": "Old Town"}}

    def test_record_year_before_creation_rejected(self, element_store, timeline_store):
        element_store.put(LOCATION, {"id": "loc2", "creationYear": 8})

        with pytest.raises(ValidationError):
            element_service.update_element(
                element_store, timeline_store, LOCATION, "loc2", ElementIn(id="loc2"), record_year=2,
            )

    def test_id_mismatch(self, element_store, timeline_store, town):
        with pytest.raises(ValidationError, match="ID mismatch"):
            element_service.update_element(element_store, timeline_store, LOCATION, "loc1", ElementIn(id="x"))

    def test_null_clears_field_in_that_year(self, element_store, timeline_store, town):
        element_store.put(LOCATION, {**town, "icon": "castle"})

        state = element_service.update_element(
            element_store, timeline_store, LOCATION, "loc1", ElementIn(id="loc1", icon=None), record_year=3,
        )

        assert state["icon"] is None
        assert timeline_store.load().entries[0].changes.modified.locations == {"loc1": {"icon": None}}
        earlier = element_service.get_element(element_store, timeline_store, LOCATION, "loc1", year=2)
        assert earlier["icon"] == "castle"

    def test_unchanged_edit_records_nothing(self, element_store, timeline_store, town):
        payload = ElementIn.model_validate(town)

        state = element_service.update_element(
            element_store, timeline_store, LOCATION, "loc1", payload, record_year=3,
        )

        assert state == town
        assert timeline_store.load().entries == []
        assert timeline_service.future_changes(timeline_store, "loc1", LOCATION, 0).has_changes is False


class TestDeleteElement:

    def test_purges_history(self, element_store, timeline_store, town):
        timeline_store.save(TimelineDocument(entries=[
            make_entry(1, locations={"loc1": {"name": "A"}}),
            make_entry(2, locations={"loc1": {"name": "B"}}, age="Kept"),
        ]))

        result = element_service.delete_element(element_store, timeline_store, LOCATION, "loc1")

        assert result.updated_entries == 2
        assert result.removed_entries == 1
        assert element_store.get(LOCATION, "loc1") is None
        assert [entry.year for entry in timeline_store.load().entries] == [2]

    def test_missing_element(self, element_store, timeline_store):
        with pytest.raises(NotFoundError):
            element_service.delete_element(element_store, timeline_store, LOCATION, "loc1")

    def test_failed_purge_keeps_element(self, element_store, tmp_path, town):
        class BrokenTimelineStore(JSONTimelineStore):
            def update(self, mutation):
                raise StoreIOError("disk full")

        with pytest.raises(StoreIOError):
            element_service.delete_element(element_store, BrokenTimelineStore(tmp_path), LOCATION, "loc1")

        assert element_store.get(LOCATION, "loc1") == town

    def test_failed_element_delete_reports_purged_history(self, timeline_store, tmp_path, town):
        class BrokenElementStore(JSONElementStore):
            def delete(self, kind, element_id):
                raise StoreIOError("disk full")

        timeline_store.save(TimelineDocument(entries=[make_entry(1, locations={"loc1": {"name": "A"}})]))

        with pytest.raises(StoreIOError, match="was purged but the element was not deleted"):
            element_service.delete_element(BrokenElementStore(tmp_path), timeline_store, LOCATION, "loc1")

        assert timeline_store.load().entries == []


class TestMigrations:

    def test_creation_year_migration_is_idempotent(self, element_store, timeline_store):
        element_store.replace_all(LOCATION, [{"id": "loc1"}, {"id": "loc2", "creationYear": 4}])
        legacy = make_entry(6, age="Founding")
        legacy.changes = make_entry(6, locations={"x": {}}).changes
        legacy.changes.created = KindIds(locations=["loc1"])
        timeline_store.save(TimelineDocument(entries=[legacy]))

        first = element_service.migrate_creation_year(element_store, timeline_store)
        after_first = element_store.get_all(LOCATION)
        second = element_service.migrate_creation_year(element_store, timeline_store)

        assert first.repaired == 1
        assert second.repaired == 0
        assert element_store.get_all(LOCATION) == after_first
        assert after_first == [{"id": "loc1", "creationYear": 6}, {"id": "loc2", "creationYear": 4}]

    def test_label_collision_migration(self, element_store, town):
        element_store.put(REGION, {"id": "reg1"})

        result = element_service.migrate_label_collision(element_store, "None")

        assert result.repaired == 1
        assert element_store.get(REGION, "reg1")["labelCollisionStrategy"] == "None"


class TestFutureChanges:

    def test_years_use_epoch_labels(self, timeline_store):
        timeline_store.save(TimelineDocument(
            entries=[
                make_entry(3, locations={"loc1": {"a": 1}}),
                make_entry(12, deleted_locations=["loc1"]),
            ],
            epochs=[Epoch(id="e", name="Second Age", start_year=10, end_year=20,
                          restart_at_zero=True, year_prefix="SA")],
        ))

        result = timeline_service.future_changes(timeline_store, "loc1", LOCATION, 1)

        assert result.has_changes is True
        assert result.years == ["3", "SA 3"]
