"""Root conftest for all tests.

Provides the in-memory ChecklistStore, an in-memory SQLite store, and
catalog/member fixtures shared by the test modules.
"""

import pytest
from fakes import FakeChecklistStore, make_item
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gc_onboarding.checklist.repository import SqlChecklistStore
from gc_onboarding.checklist.types import (
    Category,
    ChecklistItem,
    MemberContext,
    MemberPlan,
    PlanRequired,
    SupportType,
)
from gc_onboarding.db.models import Base


@pytest.fixture
def catalog_items() -> list[ChecklistItem]:
    """Small catalog spanning three categories, one Full-only item."""
    return [
        make_item("kickoff-1", Category.BEFORE_KICKOFF, 1, text="Sign agreement"),
        make_item("kickoff-2", Category.BEFORE_KICKOFF, 2, text="Book kickoff call"),
        make_item("w1-a", Category.WEEK_1, 1, text="Complete ICP worksheet"),
        make_item(
            "w1-b",
            Category.WEEK_1,
            2,
            plan_required=PlanRequired.FULL_ONLY,
            support_type=SupportType.INITIAL_SETUP_HELP,
            text="Set up Clay account",
        ),
        make_item("w1-c", Category.WEEK_1, 3, text="Connect LinkedIn"),
        make_item("ongoing-1", Category.ONGOING, 1, text="Weekly office hours"),
    ]


@pytest.fixture
def trial_member() -> MemberContext:
    return MemberContext(member_id="member-trial", plan=MemberPlan.TRIAL)


@pytest.fixture
def full_member() -> MemberContext:
    return MemberContext(member_id="member-full", plan=MemberPlan.FULL)


@pytest.fixture
def admin_member() -> MemberContext:
    return MemberContext(member_id="member-admin", plan=MemberPlan.FULL, is_admin=True)


@pytest.fixture
def store(catalog_items: list[ChecklistItem]) -> FakeChecklistStore:
    return FakeChecklistStore(items=catalog_items)


@pytest.fixture
def sqlite_session_factory():
    """Session factory bound to a fresh in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def sql_store(sqlite_session_factory) -> SqlChecklistStore:
    return SqlChecklistStore(sqlite_session_factory)
