"""SQLAlchemy implementation of the checklist persistence collaborator.

Each call runs in its own session and commits on its own, so two calls are
never atomic together. Driver and connection failures are re-raised as
TransportError, as are constraint violations outside the progress upsert
retry; missing rows as ItemNotFoundError.
"""

from collections.abc import Generator
from contextlib import contextmanager
from datetime import date
from enum import Enum
from typing import Any

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from gc_onboarding.checklist.errors import ItemNotFoundError, TransportError
from gc_onboarding.checklist.types import (
    Category,
    ChecklistItem,
    Member,
    MemberPlan,
    PlanRequired,
    ProgressRecord,
    ProgressStatus,
    SupportType,
)
from gc_onboarding.db.models import Member as MemberRow
from gc_onboarding.db.models import MemberProgress, OnboardingChecklistItem
from gc_onboarding.db.session import get_session, get_session_factory

# Domain field name -> column name, where they differ
_COLUMN_NAMES = {"text": "item", "order": "sort_order"}


def _columns(data: dict[str, Any]) -> dict[str, Any]:
    """Map domain field names to column names and enum members to their stored strings."""
    return {
        _COLUMN_NAMES.get(key, key): value.value if isinstance(value, Enum) else value
        for key, value in data.items()
    }


def _to_item(row: OnboardingChecklistItem) -> ChecklistItem:
    return ChecklistItem(
        id=row.id,
        text=row.item,
        category=Category(row.category),
        support_type=SupportType(row.support_type),
        plan_required=PlanRequired(row.plan_required or PlanRequired.ALL_PLANS),
        order=row.sort_order or 0,
        description=row.description,
        doc_link=row.doc_link,
    )


def _to_record(row: MemberProgress) -> ProgressRecord:
    return ProgressRecord(
        id=row.id,
        member_id=row.member_id,
        checklist_item_id=row.checklist_item_id,
        status=ProgressStatus(row.status or ProgressStatus.NOT_STARTED),
        completed_date=row.completed_date,
        notes=row.notes,
    )


def _to_member(row: MemberRow) -> Member:
    plan = MemberPlan.TRIAL
    if row.plan in {p.value for p in MemberPlan}:
        plan = MemberPlan(row.plan)
    elif row.plan:
        logger.warning("Unknown member plan, treating as Trial", member_id=row.id, plan=row.plan)
    return Member(id=row.id, plan=plan, email=row.email, name=row.name)


class SqlChecklistStore:
    """Relational ChecklistStore backed by SQLAlchemy sessions."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory or get_session_factory()

    @contextmanager
    def _session(self, operation: str, retry_on_conflict: bool = False) -> Generator[Session, None, None]:
        """Session for one store call; IntegrityError escapes only for callers that retry."""
        try:
            with get_session(self._session_factory) as db:
                yield db
        except IntegrityError as e:
            if retry_on_conflict:
                raise
            logger.error(f"Checklist store constraint violated: {operation}: {e}")
            raise TransportError(f"{operation} failed: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Checklist store operation failed: {operation}: {e}")
            raise TransportError(f"{operation} failed: {e}") from e

    def _get_item_row(self, db: Session, item_id: str) -> OnboardingChecklistItem:
        row = db.get(OnboardingChecklistItem, item_id)
        if row is None:
            raise ItemNotFoundError("Checklist item", item_id)
        return row

    def fetch_catalog(self) -> list[ChecklistItem]:
        with self._session("fetch_catalog") as db:
            rows = db.execute(
                select(OnboardingChecklistItem).order_by(OnboardingChecklistItem.sort_order)
            ).scalars().all()
            return [_to_item(row) for row in rows]

    def fetch_item(self, item_id: str) -> ChecklistItem:
        with self._session("fetch_item") as db:
            return _to_item(self._get_item_row(db, item_id))

    def fetch_progress(self, member_id: str) -> list[ProgressRecord]:
        with self._session("fetch_progress") as db:
            rows = db.execute(select(MemberProgress).where(MemberProgress.member_id == member_id)).scalars().all()
            return [_to_record(row) for row in rows]

    def upsert_progress(
        self,
        member_id: str,
        item_id: str,
        status: ProgressStatus,
        notes: str | None = None,
    ) -> ProgressRecord:
        """Create or update the (member, item) progress record.

        completed_date is stamped with today's date for Complete and cleared
        otherwise. Notes are only overwritten when provided. A concurrent
        insert of the same pair loses to the unique constraint; the write is
        then retried once as an update of the winning row.
        """
        try:
            return self._write_progress(member_id, item_id, status, notes)
        except IntegrityError:
            logger.warning(
                "Concurrent progress insert detected, retrying as update",
                member_id=member_id,
                item_id=item_id,
            )
        try:
            return self._write_progress(member_id, item_id, status, notes)
        except IntegrityError as e:
            raise TransportError(f"upsert_progress failed: {e}") from e

    def _write_progress(
        self,
        member_id: str,
        item_id: str,
        status: ProgressStatus,
        notes: str | None,
    ) -> ProgressRecord:
        with self._session("upsert_progress", retry_on_conflict=True) as db:
            row = db.execute(
                select(MemberProgress).where(
                    MemberProgress.member_id == member_id,
                    MemberProgress.checklist_item_id == item_id,
                )
            ).scalar_one_or_none()

            if row is None:
                self._get_item_row(db, item_id)
                row = MemberProgress(member_id=member_id, checklist_item_id=item_id)
                db.add(row)

            row.status = status.value
            row.completed_date = date.today() if status == ProgressStatus.COMPLETE else None
            if notes is not None:
                row.notes = notes
            db.flush()

            logger.debug("Progress written", member_id=member_id, item_id=item_id, status=status.value)
            return _to_record(row)

    def create_item(self, data: dict[str, Any]) -> ChecklistItem:
        with self._session("create_item") as db:
            row = OnboardingChecklistItem(**_columns(data))
            db.add(row)
            db.flush()
            logger.info("Checklist item created", item_id=row.id, category=row.category)
            return _to_item(row)

    def update_item(self, item_id: str, changes: dict[str, Any]) -> ChecklistItem:
        with self._session("update_item") as db:
            row = self._get_item_row(db, item_id)
            for column, value in _columns(changes).items():
                setattr(row, column, value)
            db.flush()
            return _to_item(row)

    def delete_item(self, item_id: str) -> int:
        with self._session("delete_item") as db:
            row = self._get_item_row(db, item_id)
            removed = db.execute(delete(MemberProgress).where(MemberProgress.checklist_item_id == item_id)).rowcount
            db.delete(row)
            logger.info("Checklist item deleted", item_id=item_id, removed_progress=removed)
            return removed or 0

    def count_progress_referencing(self, item_id: str) -> int:
        with self._session("count_progress_referencing") as db:
            count = db.execute(
                select(func.count(MemberProgress.id)).where(MemberProgress.checklist_item_id == item_id)
            ).scalar()
            return count or 0

    def fetch_member(self, member_id: str) -> Member:
        with self._session("fetch_member") as db:
            row = db.get(MemberRow, member_id)
            if row is None:
                raise ItemNotFoundError("Member", member_id)
            return _to_member(row)
