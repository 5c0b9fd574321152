"""Onboarding service facade.

Entry point for the UI layer: aggregated member views, status changes,
catalog edits and reordering. The member is always passed in explicitly.
"""

from collections.abc import Sequence
from typing import Any

from loguru import logger

from gc_onboarding.checklist.aggregator import aggregate
from gc_onboarding.checklist.catalog import ChecklistCatalog
from gc_onboarding.checklist.errors import PermissionDeniedError
from gc_onboarding.checklist.progress import ProgressTracker
from gc_onboarding.checklist.reorder import ReorderResult, ReorderService
from gc_onboarding.checklist.store import ChecklistStore
from gc_onboarding.checklist.types import (
    CATEGORY_ORDER,
    AggregatedView,
    CatalogGroup,
    Category,
    ChecklistItem,
    ChecklistItemCreate,
    ChecklistItemUpdate,
    DeleteCheck,
    DeleteResult,
    MemberContext,
    ProgressStatus,
    ReorderDirection,
)


def _require_admin(member: MemberContext) -> None:
    if not member.is_admin:
        logger.warning("Catalog edit denied for non-admin member", member_id=member.member_id)
        raise PermissionDeniedError(f"Member {member.member_id} may not edit the onboarding catalog")


class OnboardingService:
    def __init__(self, store: ChecklistStore, category_order: Sequence[Category] = CATEGORY_ORDER) -> None:
        self._store = store
        self._category_order = category_order
        self._catalog = ChecklistCatalog(store, category_order)
        self._reorder = ReorderService(store, category_order)

    def tracker(self, member: MemberContext) -> ProgressTracker:
        return ProgressTracker(self._store, member, self._category_order)

    def get_aggregated_view(self, member: MemberContext) -> AggregatedView:
        """Read-only view; no coordinator involved."""
        return aggregate(
            self._store.fetch_catalog(),
            self._store.fetch_progress(member.member_id),
            member.plan,
            self._category_order,
        )

    def toggle_item(
        self,
        member: MemberContext,
        item_id: str,
        seen_status: ProgressStatus | str | None = None,
    ) -> AggregatedView:
        tracker = self.tracker(member)
        tracker.load()
        tracker.toggle_item(item_id, seen_status)
        return tracker.view

    def set_status(
        self,
        member: MemberContext,
        item_id: str,
        status: ProgressStatus | str,
        notes: str | None = None,
    ) -> AggregatedView:
        tracker = self.tracker(member)
        tracker.load()
        tracker.set_status(item_id, status, notes)
        return tracker.view

    def reorder_item(
        self,
        member: MemberContext,
        item_id: str,
        direction: ReorderDirection | str,
    ) -> ReorderResult:
        _require_admin(member)
        self._reorder.load()
        return self._reorder.reorder(item_id, direction)

    def list_catalog(self, member: MemberContext) -> list[CatalogGroup]:
        _require_admin(member)
        return self._catalog.grouped()

    def create_item(self, member: MemberContext, item: ChecklistItemCreate | dict[str, Any]) -> ChecklistItem:
        _require_admin(member)
        return self._catalog.create(item)

    def update_item(
        self,
        member: MemberContext,
        item_id: str,
        patch: ChecklistItemUpdate | dict[str, Any],
    ) -> ChecklistItem:
        _require_admin(member)
        return self._catalog.update(item_id, patch)

    def check_delete(self, member: MemberContext, item_id: str) -> DeleteCheck:
        _require_admin(member)
        return self._catalog.check_delete(item_id)

    def delete_item(self, member: MemberContext, item_id: str, confirm: bool = False) -> DeleteResult:
        _require_admin(member)
        return self._catalog.delete(item_id, confirm=confirm)
