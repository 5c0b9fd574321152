"""Tests for the onboarding HTTP routes.

The store dependency is overridden with the in-memory store; the app is
used without its lifespan so no database is touched.
"""

import pytest
from fakes import FakeChecklistStore, make_record
from fastapi.testclient import TestClient

from gc_onboarding.api.dependencies import get_checklist_store
from gc_onboarding.checklist.types import Member, MemberPlan, ProgressStatus
from gc_onboarding.config.settings import settings
from gc_onboarding.main import app

TRIAL = {"X-Member-Id": "member-trial"}
FULL = {"X-Member-Id": "member-full"}
ADMIN = {"X-Member-Id": "member-admin"}
NOT_STARTED = {"seen_status": "Not Started"}
COMPLETE = {"seen_status": "Complete"}


@pytest.fixture
def api_store(catalog_items) -> FakeChecklistStore:
    return FakeChecklistStore(
        items=catalog_items,
        members=[
            Member(id="member-trial", plan=MemberPlan.TRIAL),
            Member(id="member-full", plan=MemberPlan.FULL),
            Member(id="member-admin", plan=MemberPlan.FULL),
        ],
    )


@pytest.fixture
def client(api_store, monkeypatch):
    monkeypatch.setattr(settings, "admin_member_ids", "member-admin, someone-else")
    app.dependency_overrides[get_checklist_store] = lambda: api_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _item(view: dict, item_id: str) -> dict | None:
    for category in view["categories"]:
        for item in category["items"]:
            if item["id"] == item_id:
                return item
    return None


class TestMemberIdentity:
    def test_missing_header_is_unauthorized(self, client):
        response = client.get("/api/onboarding")
        assert response.status_code == 401

    def test_unknown_member_is_not_found(self, client):
        response = client.get("/api/onboarding", headers={"X-Member-Id": "ghost"})
        assert response.status_code == 404

    def test_member_store_outage_is_unavailable(self, client, api_store):
        api_store.fail_on("fetch_member")
        response = client.get("/api/onboarding", headers=TRIAL)
        assert response.status_code == 503


class TestMemberRoutes:
    def test_trial_view_hides_full_only_items(self, client):
        response = client.get("/api/onboarding", headers=TRIAL)

        assert response.status_code == 200
        view = response.json()
        assert [category["name"] for category in view["categories"]] == ["Before Kickoff", "Week 1", "Ongoing"]
        assert _item(view, "w1-b") is None
        assert view["total_progress"] == 0

    def test_full_view_includes_full_only_items(self, client):
        view = client.get("/api/onboarding", headers=FULL).json()
        assert _item(view, "w1-b") is not None

    def test_toggle_completes_item(self, client, api_store):
        response = client.post("/api/onboarding/items/w1-a/toggle", json=NOT_STARTED, headers=TRIAL)

        assert response.status_code == 200
        view = response.json()
        assert _item(view, "w1-a")["progress_status"] == "Complete"
        assert view["total_progress"] == 20
        assert api_store.records[("member-trial", "w1-a")].status == ProgressStatus.COMPLETE

    def test_toggle_complete_item_resets_it(self, client, api_store):
        api_store.records[("member-trial", "w1-a")] = make_record("member-trial", "w1-a")

        view = client.post("/api/onboarding/items/w1-a/toggle", json=COMPLETE, headers=TRIAL).json()

        assert _item(view, "w1-a")["progress_status"] == "Not Started"
        assert _item(view, "w1-a")["completed_date"] is None

    def test_toggle_hidden_item_is_not_found(self, client):
        response = client.post("/api/onboarding/items/w1-b/toggle", json=NOT_STARTED, headers=TRIAL)
        assert response.status_code == 404

    def test_repeated_toggle_of_same_click_stays_complete(self, client, api_store):
        """Two requests carrying the same seen status both land on Complete."""
        first = client.post("/api/onboarding/items/w1-a/toggle", json=NOT_STARTED, headers=TRIAL)
        second = client.post("/api/onboarding/items/w1-a/toggle", json=NOT_STARTED, headers=TRIAL)

        assert first.status_code == second.status_code == 200
        assert _item(second.json(), "w1-a")["progress_status"] == "Complete"
        assert api_store.records[("member-trial", "w1-a")].status == ProgressStatus.COMPLETE
        upserts = [args[2] for name, args in api_store.calls if name == "upsert_progress"]
        assert upserts == [ProgressStatus.COMPLETE, ProgressStatus.COMPLETE]

    def test_toggle_without_seen_status_is_rejected(self, client, api_store):
        response = client.post("/api/onboarding/items/w1-a/toggle", headers=TRIAL)

        assert response.status_code == 422
        assert not any(name == "upsert_progress" for name, _ in api_store.calls)

    def test_failed_write_is_unavailable_and_persists_nothing(self, client, api_store):
        api_store.fail_on("upsert_progress")

        response = client.post("/api/onboarding/items/w1-a/toggle", json=NOT_STARTED, headers=TRIAL)

        assert response.status_code == 503
        assert ("member-trial", "w1-a") not in api_store.records

    def test_set_status_with_notes(self, client, api_store):
        response = client.put(
            "/api/onboarding/items/w1-c/status",
            headers=TRIAL,
            json={"status": "Blocked", "notes": "Need LinkedIn admin access"},
        )

        assert response.status_code == 200
        item = _item(response.json(), "w1-c")
        assert item["progress_status"] == "Blocked"
        assert item["progress_notes"] == "Need LinkedIn admin access"

    def test_set_unknown_status_is_unprocessable(self, client, api_store):
        response = client.put("/api/onboarding/items/w1-c/status", headers=TRIAL, json={"status": "Almost"})

        assert response.status_code == 422
        assert not api_store.records


class TestAdminRoutes:
    def test_non_admin_is_forbidden(self, client, api_store):
        response = client.post(
            "/api/admin/onboarding/items",
            headers=FULL,
            json={"text": "Sneaky", "category": "Week 1"},
        )

        assert response.status_code == 403
        assert len(api_store.items) == 6

    def test_list_catalog_grouped(self, client):
        response = client.get("/api/admin/onboarding/items", headers=ADMIN)

        assert response.status_code == 200
        groups = response.json()
        week_1 = next(group for group in groups if group["name"] == "Week 1")
        assert [item["id"] for item in week_1["items"]] == ["w1-a", "w1-b", "w1-c"]

    def test_create_appends(self, client):
        response = client.post(
            "/api/admin/onboarding/items",
            headers=ADMIN,
            json={"text": "Record Loom intro", "category": "Week 1", "support_type": "Review on Call"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["order"] == 4
        assert body["support_type"] == "Review on Call"

    def test_create_with_taken_order_is_unprocessable(self, client):
        response = client.post(
            "/api/admin/onboarding/items",
            headers=ADMIN,
            json={"text": "Clash", "category": "Week 1", "order": 1},
        )
        assert response.status_code == 422

    def test_patch_text(self, client):
        response = client.patch("/api/admin/onboarding/items/w1-a", headers=ADMIN, json={"text": "Finish ICP"})

        assert response.status_code == 200
        assert response.json()["text"] == "Finish ICP"

    def test_patch_order_is_unprocessable(self, client, api_store):
        response = client.patch("/api/admin/onboarding/items/w1-a", headers=ADMIN, json={"order": 9})

        assert response.status_code == 422
        assert api_store.items["w1-a"].order == 1

    def test_patch_unknown_item_is_not_found(self, client):
        response = client.patch("/api/admin/onboarding/items/missing", headers=ADMIN, json={"text": "x"})
        assert response.status_code == 404

    def test_delete_referenced_item_needs_confirmation(self, client, api_store):
        api_store.records[("member-trial", "w1-a")] = make_record("member-trial", "w1-a")

        references = client.get("/api/admin/onboarding/items/w1-a/references", headers=ADMIN).json()
        refused = client.delete("/api/admin/onboarding/items/w1-a", headers=ADMIN)

        assert references["reference_count"] == 1
        assert refused.status_code == 409
        assert refused.json()["detail"]["reference_count"] == 1
        assert "w1-a" in api_store.items

        confirmed = client.delete("/api/admin/onboarding/items/w1-a", headers=ADMIN, params={"confirm": "true"})

        assert confirmed.status_code == 200
        assert confirmed.json() == {"item_id": "w1-a", "removed_progress": 1}
        assert "w1-a" not in api_store.items

    def test_reorder_down(self, client, api_store):
        response = client.post("/api/admin/onboarding/items/w1-a/reorder", headers=ADMIN, json={"direction": "down"})

        assert response.status_code == 200
        body = response.json()
        assert body["moved"] is True
        assert body["swapped_with"] == "w1-b"
        assert body["warning"] is None
        assert (api_store.items["w1-a"].order, api_store.items["w1-b"].order) == (2, 1)

    def test_reorder_past_end_is_noop(self, client):
        response = client.post("/api/admin/onboarding/items/w1-c/reorder", headers=ADMIN, json={"direction": "down"})

        assert response.status_code == 200
        assert response.json()["moved"] is False

    def test_reorder_partial_failure_reports_warning(self, client, api_store):
        api_store.fail_on("update_item", times=1, skip=1)

        response = client.post("/api/admin/onboarding/items/w1-a/reorder", headers=ADMIN, json={"direction": "down"})

        assert response.status_code == 200
        assert "Partial reorder" in response.json()["warning"]

    def test_reorder_bad_direction_is_unprocessable(self, client):
        response = client.post("/api/admin/onboarding/items/w1-a/reorder", headers=ADMIN, json={"direction": "left"})
        assert response.status_code == 422


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
