"""Member-side progress tracking.

Status changes are the only writers of status/completed_date and always go
through the optimistic coordinator.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from gc_onboarding.checklist.errors import ConflictError, ItemNotFoundError, ValidationError
from gc_onboarding.checklist.optimistic import Mutation, OptimisticCoordinator
from gc_onboarding.checklist.store import ChecklistStore
from gc_onboarding.checklist.types import (
    CATEGORY_ORDER,
    AggregatedView,
    Category,
    MemberContext,
    ProgressItem,
    ProgressRecord,
    ProgressStatus,
)
from gc_onboarding.checklist.views import ProgressView


@dataclass(frozen=True)
class StatusChange:
    item_id: str
    status: ProgressStatus
    notes: str | None = None


class ProgressTracker:
    """One member's checklist view plus the operations that change it."""

    def __init__(
        self,
        store: ChecklistStore,
        member: MemberContext,
        category_order: Sequence[Category] = CATEGORY_ORDER,
    ) -> None:
        self._store = store
        self._member = member
        self._view = ProgressView(store, member, category_order)
        self._coordinator: OptimisticCoordinator[AggregatedView] = OptimisticCoordinator(
            self._view, name=f"progress:{member.member_id}"
        )

    @property
    def view(self) -> AggregatedView:
        return self._view.state

    @property
    def is_active(self) -> bool:
        return self._view.is_active

    def load(self) -> AggregatedView:
        self._view.refresh()
        return self._view.state

    def close(self) -> None:
        self._view.close()

    def toggle_item(
        self,
        item: ProgressItem | str,
        seen_status: ProgressStatus | str | None = None,
    ) -> Mutation[StatusChange, AggregatedView]:
        """Flip an item between Complete and Not Started.

        The target status comes from the item as the member saw it, so a
        repeated click on the same presented item asks for the same status
        again instead of flipping it back. Callers that hold only an id pass
        ``seen_status``; without it the current view is used.
        """
        presented = item if isinstance(item, ProgressItem) else self._require_item(item)
        if seen_status is None:
            seen_complete = presented.is_complete
        else:
            try:
                seen_complete = ProgressStatus(seen_status) == ProgressStatus.COMPLETE
            except ValueError as e:
                raise ValidationError(f"Unknown progress status: {seen_status!r}") from e
        target = ProgressStatus.NOT_STARTED if seen_complete else ProgressStatus.COMPLETE
        return self._change(StatusChange(item_id=presented.id, status=target))

    def set_status(
        self,
        item_id: str,
        status: ProgressStatus | str,
        notes: str | None = None,
    ) -> Mutation[StatusChange, AggregatedView]:
        try:
            status = ProgressStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown progress status: {status!r}") from e
        self._require_item(item_id)
        return self._change(StatusChange(item_id=item_id, status=status, notes=notes))

    def _require_item(self, item_id: str) -> ProgressItem:
        item = self._view.find_item(item_id)
        if item is None:
            raise ItemNotFoundError("Checklist item", item_id)
        return item

    def _change(self, change: StatusChange) -> Mutation[StatusChange, AggregatedView]:
        logger.info(
            "Updating progress",
            member_id=self._member.member_id,
            item_id=change.item_id,
            status=change.status.value,
        )
        return self._coordinator.run(
            change.item_id,
            change,
            apply=lambda c: self._view.apply_status(c.item_id, c.status, c.notes),
            write=self._write,
        )

    def _write(self, change: StatusChange) -> ProgressRecord:
        record = self._store.upsert_progress(self._member.member_id, change.item_id, change.status, change.notes)
        if record.status != change.status:
            raise ConflictError(
                f"Progress for {change.item_id} stored as {record.status.value}, expected {change.status.value}"
            )
        return record
