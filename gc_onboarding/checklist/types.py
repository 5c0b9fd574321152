"""Onboarding checklist types.

Closed enumerations for every dimension of a checklist item plus the
pydantic models exchanged between the store, the aggregator and the UI.
Enum values are the exact strings persisted in the relational store.
"""

from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Category(StrEnum):
    """Onboarding phase a task belongs to."""

    BEFORE_KICKOFF = "Before Kickoff"
    WEEK_1 = "Week 1"
    WEEK_2 = "Week 2"
    WEEK_3_4 = "Week 3-4"
    ONGOING = "Ongoing"


# Canonical display order (chronological, not alphabetical)
CATEGORY_ORDER: tuple[Category, ...] = (
    Category.BEFORE_KICKOFF,
    Category.WEEK_1,
    Category.WEEK_2,
    Category.WEEK_3_4,
    Category.ONGOING,
)


class SupportType(StrEnum):
    """Who executes the task and how much help the member gets."""

    SELF_SERVICE = "Self-Service"
    DOC_TEMPLATE = "Doc/Template Provided"
    REVIEW_ON_CALL = "Review on Call"
    STRATEGY_GUIDANCE = "Strategy Guidance"
    INITIAL_SETUP_HELP = "Initial Setup Help"


class PlanRequired(StrEnum):
    ALL_PLANS = "All Plans"
    FULL_ONLY = "Full Only"


class MemberPlan(StrEnum):
    TRIAL = "Trial"
    PARTIAL = "Partial ($600/mo)"
    FULL = "Full ($1000/mo)"


class ProgressStatus(StrEnum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETE = "Complete"
    BLOCKED = "Blocked"


class ReorderDirection(StrEnum):
    UP = "up"
    DOWN = "down"


class ChecklistItem(BaseModel):
    """A catalog task definition."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str = Field(description="Task label shown to members")
    category: Category
    support_type: SupportType
    plan_required: PlanRequired = PlanRequired.ALL_PLANS
    order: int = Field(description="Position within the category; unique per category")
    description: str | None = None
    doc_link: str | None = None


class ChecklistItemCreate(BaseModel):
    """Admin request to add a catalog item.

    order is optional: when omitted the item is appended to its category.
    """

    model_config = ConfigDict(extra="forbid")

    text: str = Field(min_length=1)
    category: Category
    support_type: SupportType = SupportType.SELF_SERVICE
    plan_required: PlanRequired = PlanRequired.ALL_PLANS
    order: int | None = Field(default=None, ge=0)
    description: str | None = None
    doc_link: str | None = None


class ChecklistItemUpdate(BaseModel):
    """Admin patch for a catalog item.

    Deliberately has no order field; extra="forbid" rejects one.
    Ordering changes go through ReorderService only.
    """

    model_config = ConfigDict(extra="forbid")

    text: str | None = Field(default=None, min_length=1)
    category: Category | None = None
    support_type: SupportType | None = None
    plan_required: PlanRequired | None = None
    description: str | None = None
    doc_link: str | None = None


class ProgressRecord(BaseModel):
    """Durable per-(member, item) completion state.

    id is None for a pair that was never persisted.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    member_id: str
    checklist_item_id: str
    status: ProgressStatus = ProgressStatus.NOT_STARTED
    completed_date: date | None = None
    notes: str | None = None


class ProgressItem(ChecklistItem):
    """Checklist item joined with one member's progress."""

    progress_id: str | None = None
    progress_status: ProgressStatus = ProgressStatus.NOT_STARTED
    completed_date: date | None = None
    progress_notes: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.progress_status == ProgressStatus.COMPLETE


class CategoryGroup(BaseModel):
    """Derived aggregate of one category's visible items. Never persisted."""

    name: Category
    items: list[ProgressItem]
    completed_count: int
    total_count: int


class AggregatedView(BaseModel):
    categories: list[CategoryGroup] = Field(default_factory=list)
    total_progress: int = Field(default=0, ge=0, le=100)

    def find_item(self, item_id: str) -> ProgressItem | None:
        for group in self.categories:
            for item in group.items:
                if item.id == item_id:
                    return item
        return None


class CatalogGroup(BaseModel):
    """Admin-side grouping of raw catalog items (no progress, no visibility)."""

    name: Category
    items: list[ChecklistItem]


class Member(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    plan: MemberPlan = MemberPlan.TRIAL
    email: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class MemberContext:
    """Explicit per-request member context.

    Passed into the tracker and service instead of reading a session from
    ambient storage.
    """

    member_id: str
    plan: MemberPlan
    is_admin: bool = False


class DeleteCheck(BaseModel):
    item_id: str
    reference_count: int

    @property
    def requires_confirmation(self) -> bool:
        return self.reference_count > 0


class DeleteResult(BaseModel):
    item_id: str
    removed_progress: int = 0
