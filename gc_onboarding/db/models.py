from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class Member(Base):
    """Dashboard member, as far as onboarding cares about one.

    Stores:
    - id: Member ID (string UUID format)
    - email / name: Display fields
    - plan: Subscription tier string (see MemberPlan); drives checklist visibility
    """

    __tablename__ = "members"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email: Mapped[str | None] = mapped_column(String, nullable=True, unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    plan: Mapped[str] = mapped_column(String, nullable=False, default="Trial")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))


class OnboardingChecklistItem(Base):
    """Shared onboarding task definition.

    sort_order is unique within a category by convention, not by constraint:
    reordering swaps two values with two independent writes, so the
    intermediate state briefly holds a duplicate.
    """

    __tablename__ = "onboarding_checklist"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    item: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False, index=True)
    support_type: Mapped[str] = mapped_column(String, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    plan_required: Mapped[str] = mapped_column(String, nullable=False, default="All Plans")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    doc_link: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (Index("idx_onboarding_checklist_category_order", "category", "sort_order"),)


class MemberProgress(Base):
    """Per-member completion state for one checklist item.

    Created lazily on the first status change. A missing row means
    "Not Started". completed_date is set iff status is "Complete".
    """

    __tablename__ = "member_progress"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    member_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    checklist_item_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("onboarding_checklist.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="Not Started")
    completed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (UniqueConstraint("member_id", "checklist_item_id", name="uq_member_progress_member_item"),)
