"""Tests for SqlChecklistStore against an in-memory SQLite database."""

from datetime import date
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gc_onboarding.checklist.errors import ItemNotFoundError, TransportError
from gc_onboarding.checklist.repository import SqlChecklistStore
from gc_onboarding.checklist.service import OnboardingService
from gc_onboarding.checklist.types import (
    Category,
    MemberContext,
    MemberPlan,
    PlanRequired,
    ProgressRecord,
    ProgressStatus,
    SupportType,
)
from gc_onboarding.db.models import Member as MemberRow
from gc_onboarding.db.models import MemberProgress, OnboardingChecklistItem


def _item_data(text: str, category: Category = Category.WEEK_1, order: int = 1, **overrides) -> dict:
    data = {
        "text": text,
        "category": category,
        "support_type": SupportType.SELF_SERVICE,
        "plan_required": PlanRequired.ALL_PLANS,
        "order": order,
        "description": None,
        "doc_link": None,
    }
    data.update(overrides)
    return data


class TestCatalogPersistence:
    def test_create_and_fetch_item(self, sql_store):
        created = sql_store.create_item(
            _item_data("Complete ICP worksheet", doc_link="https://docs.example.com/icp")
        )

        fetched = sql_store.fetch_item(created.id)

        assert fetched == created
        assert fetched.text == "Complete ICP worksheet"
        assert fetched.order == 1
        assert fetched.category == Category.WEEK_1

    def test_fetch_catalog_returns_all_items(self, sql_store):
        sql_store.create_item(_item_data("B", order=2))
        sql_store.create_item(_item_data("A", order=1))
        sql_store.create_item(_item_data("K", category=Category.BEFORE_KICKOFF, order=1))

        catalog = sql_store.fetch_catalog()

        assert sorted(item.text for item in catalog) == ["A", "B", "K"]

    def test_update_maps_order_to_sort_order(self, sql_store, sqlite_session_factory):
        created = sql_store.create_item(_item_data("Task"))

        updated = sql_store.update_item(created.id, {"order": 7, "text": "Renamed"})

        assert updated.order == 7
        assert updated.text == "Renamed"
        with sqlite_session_factory() as db:
            row = db.get(OnboardingChecklistItem, created.id)
            assert (row.sort_order, row.item) == (7, "Renamed")

    def test_fetch_unknown_item_raises(self, sql_store):
        with pytest.raises(ItemNotFoundError):
            sql_store.fetch_item("missing")

    def test_update_unknown_item_raises(self, sql_store):
        with pytest.raises(ItemNotFoundError):
            sql_store.update_item("missing", {"text": "x"})

    def test_duplicate_item_id_surfaces_as_transport_error(self, sql_store):
        sql_store.create_item(_item_data("First", id="item-1"))

        with pytest.raises(TransportError, match="create_item"):
            sql_store.create_item(_item_data("Second", id="item-1"))

        assert [item.text for item in sql_store.fetch_catalog()] == ["First"]


class TestProgressPersistence:
    def test_upsert_creates_then_updates_single_row(self, sql_store, sqlite_session_factory):
        item = sql_store.create_item(_item_data("Task"))

        first = sql_store.upsert_progress("member-1", item.id, ProgressStatus.IN_PROGRESS, notes="started")
        second = sql_store.upsert_progress("member-1", item.id, ProgressStatus.COMPLETE)

        assert first.id == second.id
        assert second.status == ProgressStatus.COMPLETE
        assert second.completed_date == date.today()
        assert second.notes == "started"
        with sqlite_session_factory() as db:
            rows = db.execute(select(MemberProgress)).scalars().all()
            assert len(rows) == 1

    def test_leaving_complete_clears_completed_date(self, sql_store):
        item = sql_store.create_item(_item_data("Task"))
        sql_store.upsert_progress("member-1", item.id, ProgressStatus.COMPLETE)

        record = sql_store.upsert_progress("member-1", item.id, ProgressStatus.NOT_STARTED)

        assert record.completed_date is None

    def test_fetch_progress_is_per_member(self, sql_store):
        item = sql_store.create_item(_item_data("Task"))
        sql_store.upsert_progress("member-1", item.id, ProgressStatus.COMPLETE)
        sql_store.upsert_progress("member-2", item.id, ProgressStatus.BLOCKED)

        records = sql_store.fetch_progress("member-1")

        assert [record.status for record in records] == [ProgressStatus.COMPLETE]

    def test_upsert_for_unknown_item_raises(self, sql_store):
        with pytest.raises(ItemNotFoundError):
            sql_store.upsert_progress("member-1", "missing", ProgressStatus.COMPLETE)

    def test_concurrent_insert_retried_as_update(self, sql_store):
        record = ProgressRecord(id="p1", member_id="m", checklist_item_id="i", status=ProgressStatus.COMPLETE)
        duplicate = IntegrityError("INSERT INTO member_progress", {}, Exception("UNIQUE constraint failed"))

        with patch.object(sql_store, "_write_progress", side_effect=[duplicate, record]) as write:
            result = sql_store.upsert_progress("m", "i", ProgressStatus.COMPLETE)

        assert result == record
        assert write.call_count == 2

    def test_delete_cascades_progress(self, sql_store):
        item = sql_store.create_item(_item_data("Task"))
        other = sql_store.create_item(_item_data("Other", order=2))
        sql_store.upsert_progress("member-1", item.id, ProgressStatus.COMPLETE)
        sql_store.upsert_progress("member-2", item.id, ProgressStatus.COMPLETE)
        sql_store.upsert_progress("member-1", other.id, ProgressStatus.COMPLETE)

        assert sql_store.count_progress_referencing(item.id) == 2
        removed = sql_store.delete_item(item.id)

        assert removed == 2
        assert sql_store.count_progress_referencing(item.id) == 0
        assert [record.checklist_item_id for record in sql_store.fetch_progress("member-1")] == [other.id]
        with pytest.raises(ItemNotFoundError):
            sql_store.fetch_item(item.id)


class TestMembers:
    def test_fetch_member_plan(self, sql_store, sqlite_session_factory):
        with sqlite_session_factory() as db:
            db.add(MemberRow(id="m-full", email="full@example.com", plan="Full ($1000/mo)"))
            db.commit()

        member = sql_store.fetch_member("m-full")

        assert member.plan == MemberPlan.FULL
        assert member.email == "full@example.com"

    def test_unknown_plan_treated_as_trial(self, sql_store, sqlite_session_factory):
        with sqlite_session_factory() as db:
            db.add(MemberRow(id="m-legacy", plan="Enterprise"))
            db.commit()

        assert sql_store.fetch_member("m-legacy").plan == MemberPlan.TRIAL

    def test_unknown_member_raises(self, sql_store):
        with pytest.raises(ItemNotFoundError):
            sql_store.fetch_member("nobody")


def test_database_failure_surfaces_as_transport_error():
    """A missing schema is a driver failure, not a missing item."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    store = SqlChecklistStore(sessionmaker(bind=engine))

    with pytest.raises(TransportError, match="fetch_catalog"):
        store.fetch_catalog()

    engine.dispose()


def test_service_end_to_end_on_sqlite(sql_store):
    """Admin builds a catalog, a Trial member completes the visible item."""
    service = OnboardingService(sql_store)
    admin = MemberContext(member_id="admin", plan=MemberPlan.FULL, is_admin=True)
    member = MemberContext(member_id="member-1", plan=MemberPlan.TRIAL)

    visible_item = service.create_item(admin, {"text": "Complete ICP worksheet", "category": "Week 1"})
    service.create_item(admin, {"text": "Set up Clay", "category": "Week 1", "plan_required": "Full Only"})
    second = service.create_item(admin, {"text": "Connect LinkedIn", "category": "Week 1"})
    assert (visible_item.order, second.order) == (1, 3)

    view = service.toggle_item(member, visible_item.id)

    assert view.total_progress == 50
    assert [item.text for item in view.categories[0].items] == ["Complete ICP worksheet", "Connect LinkedIn"]

    result = service.reorder_item(admin, second.id, "up")
    assert result.moved is True
    orders = sorted(item.order for item in sql_store.fetch_catalog())
    assert orders == [1, 2, 3]
