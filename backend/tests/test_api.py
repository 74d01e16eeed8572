"""
API Tests
=========

End-to-end requests against JSON stores in a temporary directory.
"""
import json

API = "/api/v1"


def create_town(client, **fields):
    body = {"id": "loc1", "name": "New Town", "x": 10}
    body.update(fields)
    response = client.post(f"{API}/elements/location", json=body)
    assert response.status_code == 201
    return response.json()


class TestService:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_root(self, client):
        assert client.get("/").json()["status"] == "operational"


class TestElementsAPI:

    def test_create_and_list(self, client):
        created = create_town(client)

        assert created["elementType"] == "location"
        assert created["creationYear"] == 0
        assert created["labelCollisionStrategy"] == "None"

        listing = client.get(f"{API}/elements/location").json()
        assert listing["total"] == 1
        assert listing["items"][0]["name"] == "New Town"
        assert listing["fallback"] is False

    def test_unknown_kind_is_rejected(self, client):
        assert client.get(f"{API}/elements/river").status_code == 422

    def test_malformed_record_does_not_break_listing(self, client, tmp_path):
        (tmp_path / "locations.json").write_text(
            json.dumps([{"id": "loc1", "creationYear": 0, "name": "New Town"}, None]), encoding="utf-8",
        )

        by_year = client.get(f"{API}/elements/location", params={"year": 3})
        current = client.get(f"{API}/elements/location")

        assert by_year.status_code == 200
        assert [item["id"] for item in by_year.json()["items"]] == ["loc1"]
        assert by_year.json()["failures"][0]["elementId"] is None
        assert current.json()["items"] == [{"id": "loc1", "creationYear": 0, "name": "New Town"}]

    def test_record_year_edit_and_reconstruct(self, client):
        create_town(client)

        response = client.put(
            f"{API}/elements/location/loc1",
            params={"recordYear": 3},
            json={"id": "loc1", "name": "Old Town", "x": 10},
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Old Town"

        at_two = client.get(f"{API}/elements/location/loc1", params={"year": 2}).json()
        at_three = client.get(f"{API}/elements/location", params={"year": 3}).json()
        current = client.get(f"{API}/elements/location/loc1").json()

        assert at_two["name"] == "New Town"
        assert at_three["items"][0]["name"] == "Old Town"
        assert at_three["year"] == 3
        assert current["name"] == "New Town"

    def test_not_yet_created_is_not_found(self, client):
        create_town(client, creationYear=10)

        response = client.get(f"{API}/elements/location/loc1", params={"year": 5})

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_duplicate_is_validation_error(self, client):
        create_town(client)

        response = client.post(f"{API}/elements/location", json={"id": "loc1"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_malformed_history_is_consistency_error(self, client):
        create_town(client)
        client.post(f"{API}/timeline/entries", json={
            "year": 2,
            "changes": {"modified": {"locations": {"loc1": "oops"}}},
        })

        response = client.get(f"{API}/elements/location/loc1", params={"year": 4})

        assert response.status_code == 409
        assert response.json()["error"] == "consistency_error"

    def test_delete_purges_history(self, client):
        create_town(client)
        client.put(f"{API}/elements/location/loc1", params={"recordYear": 3},
                   json={"id": "loc1", "name": "Old Town"})

        response = client.delete(f"{API}/elements/location/loc1")

        assert response.status_code == 200
        assert response.json()["removedEntries"] == 1
        assert client.get(f"{API}/timeline/entries").json() == []

    def test_future_changes(self, client):
        create_town(client)
        client.post(f"{API}/timeline/changes", json={
            "year": 7, "elementId": "loc1", "elementType": "location", "changeType": "deleted",
        })

        body = client.get(f"{API}/elements/location/loc1/future-changes", params={"year": 2}).json()

        assert body == {"elementId": "loc1", "elementType": "location", "hasChanges": True, "years": ["7"]}


class TestTimelineAPI:

    def record(self, client, year, element_id="reg1", element_type="region", change_type="updated", **patch):
        return client.post(f"{API}/timeline/changes", json={
            "year": year,
            "elementId": element_id,
            "elementType": element_type,
            "changeType": change_type,
            "changes": patch,
        })

    def test_record_change(self, client):
        response = self.record(client, 3, "loc1", "location", name="Old Town")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["entry"]["changes"]["modified"]["locations"] == {"loc1": {"name": "Old Town"}}

    def test_delete_after(self, client):
        for year, color in [(2, "a"), (5, "b"), (8, "c")]:
            self.record(client, year, color=color)

        response = client.delete(
            f"{API}/timeline/changes/reg1", params={"elementType": "region", "afterYear": 5}
        )

        assert response.status_code == 200
        assert response.json()["updatedEntries"] == 1
        entries = client.get(f"{API}/timeline/entries").json()
        assert [entry["year"] for entry in entries] == [2, 5, 8]
        assert "changes" not in entries[2]

    def test_remove_single_change(self, client):
        self.record(client, 2, color="a")

        response = client.delete(f"{API}/timeline/changes/2/region/reg1")
        missing = client.delete(f"{API}/timeline/changes/2/region/reg1")

        assert response.status_code == 200
        assert missing.status_code == 404

    def test_purge(self, client):
        self.record(client, 2, color="a")
        self.record(client, 4, change_type="deleted")

        response = client.post(f"{API}/timeline/purge", json={"elementId": "reg1", "elementType": "region"})

        assert response.json()["removedEntries"] == 2
        assert client.get(f"{API}/timeline").json()["entries"] == []

    def test_entry_crud(self, client):
        created = client.post(f"{API}/timeline/entries", json={
            "year": 10, "age": "Iron", "notes": [{"title": "War", "description": "<p>Begins</p>"}],
        })
        assert created.status_code == 201
        assert created.json()["notes"][0]["title"] == "War"

        assert client.post(f"{API}/timeline/entries", json={"year": 10}).status_code == 400

        updated = client.put(f"{API}/timeline/entries/10", json={"age": "Bronze"})
        assert updated.json() == {"year": 10, "age": "Bronze"}

        assert client.delete(f"{API}/timeline/entries/10").status_code == 200
        assert client.delete(f"{API}/timeline/entries/10").status_code == 404

    def test_consolidate(self, client):
        client.post(f"{API}/timeline/entries", json={
            "year": 1,
            "changes": {
                "modified": {"locations": {"id1": {"name": "A"}}},
                "created": {"locations": ["id1"]},
            },
        })

        response = client.post(f"{API}/timeline/consolidate")

        assert response.json()["updatedEntries"] == 1
        entry = client.get(f"{API}/timeline/entries").json()[0]
        assert "created" not in entry["changes"]

    def test_migrations(self, client):
        client.post(f"{API}/elements/region", json={"id": "reg1", "creationYear": 3, "labelCollisionStrategy": "Hide"})

        creation = client.post(f"{API}/timeline/migrations/creation-year").json()
        labels = client.post(f"{API}/timeline/migrations/label-collision").json()

        assert creation["repaired"] == 0
        assert labels["repaired"] == 0

    def test_unreadable_store_is_service_unavailable(self, client, tmp_path):
        (tmp_path / "timeline.json").write_text("[broken", encoding="utf-8")

        response = client.get(f"{API}/timeline")

        assert response.status_code == 503
        assert response.json()["error"] == "store_io_error"


class TestEpochsAPI:

    def create(self, client, name, start, end, **fields):
        return client.post(f"{API}/timeline/epochs", json={
            "name": name, "startYear": start, "endYear": end, **fields,
        })

    def test_overlap_rejected_and_sorted(self, client):
        assert self.create(client, "A", 5, 10).status_code == 201

        clash = self.create(client, "B", 8, 12)
        assert clash.status_code == 400
        assert "overlaps" in clash.json()["detail"]

        assert self.create(client, "C", 11, 15).status_code == 201
        listed = client.get(f"{API}/timeline/epochs").json()
        assert [(epoch["startYear"], epoch["endYear"]) for epoch in listed] == [(5, 10), (11, 15)]

    def test_update_and_delete(self, client):
        epoch = self.create(client, "A", 5, 10, showEndDate=False).json()
        assert epoch["showEndDate"] is False
        assert epoch["color"] == "#3B82F6"

        updated = client.put(f"{API}/timeline/epochs/{epoch['id']}", json={"name": "Renamed"}).json()
        assert updated["name"] == "Renamed"
        assert updated["startYear"] == 5

        deleted = client.delete(f"{API}/timeline/epochs/{epoch['id']}").json()
        assert deleted["success"] is True
        assert deleted["deleted"]["id"] == epoch["id"]

        assert client.delete(f"{API}/timeline/epochs/{epoch['id']}").status_code == 404
