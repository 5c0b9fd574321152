"""Live in-memory views driven by the optimistic coordinator.

ProgressView is one member's aggregated checklist; CatalogView is the admin's
grouped catalog. Both follow the LiveView protocol: snapshot/restore with deep
copies, refresh from the store, and close() to mark the view unmounted.
"""

from collections.abc import Sequence
from datetime import date

from gc_onboarding.checklist.aggregator import aggregate, group_catalog, recount
from gc_onboarding.checklist.store import ChecklistStore
from gc_onboarding.checklist.types import (
    CATEGORY_ORDER,
    AggregatedView,
    CatalogGroup,
    Category,
    CategoryGroup,
    ChecklistItem,
    MemberContext,
    ProgressItem,
    ProgressStatus,
)


class ProgressView:
    def __init__(
        self,
        store: ChecklistStore,
        member: MemberContext,
        category_order: Sequence[Category] = CATEGORY_ORDER,
    ) -> None:
        self._store = store
        self._member = member
        self._category_order = category_order
        self._state = AggregatedView()
        self._active = True

    @property
    def state(self) -> AggregatedView:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._active

    def close(self) -> None:
        self._active = False

    def snapshot(self) -> AggregatedView:
        return self._state.model_copy(deep=True)

    def restore(self, snapshot: AggregatedView) -> None:
        self._state = snapshot.model_copy(deep=True)

    def refresh(self) -> None:
        catalog = self._store.fetch_catalog()
        progress = self._store.fetch_progress(self._member.member_id)
        self._state = aggregate(catalog, progress, self._member.plan, self._category_order)

    def find_item(self, item_id: str) -> ProgressItem | None:
        return self._state.find_item(item_id)

    def apply_status(self, item_id: str, status: ProgressStatus, notes: str | None = None) -> None:
        """Set one item's status locally and recompute counts from scratch.

        total_progress computed here is a transient hint; the refresh that
        follows the write replaces it.
        """
        groups = []
        for group in self._state.categories:
            items = [
                self._patched(item, status, notes) if item.id == item_id else item
                for item in group.items
            ]
            groups.append(CategoryGroup(name=group.name, items=items, completed_count=0, total_count=len(items)))
        self._state = recount(groups)

    @staticmethod
    def _patched(item: ProgressItem, status: ProgressStatus, notes: str | None) -> ProgressItem:
        update = {
            "progress_status": status,
            "completed_date": date.today() if status == ProgressStatus.COMPLETE else None,
        }
        if notes is not None:
            update["progress_notes"] = notes
        return item.model_copy(update=update)


class CatalogView:
    def __init__(self, store: ChecklistStore, category_order: Sequence[Category] = CATEGORY_ORDER) -> None:
        self._store = store
        self._category_order = category_order
        self._groups: list[CatalogGroup] = []
        self._loaded = False
        self._active = True

    @property
    def groups(self) -> list[CatalogGroup]:
        return self._groups

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def is_active(self) -> bool:
        return self._active

    def close(self) -> None:
        self._active = False

    def snapshot(self) -> list[CatalogGroup]:
        return [group.model_copy(deep=True) for group in self._groups]

    def restore(self, snapshot: list[CatalogGroup]) -> None:
        self._groups = [group.model_copy(deep=True) for group in snapshot]

    def refresh(self) -> None:
        self._groups = group_catalog(self._store.fetch_catalog(), self._category_order)
        self._loaded = True

    def find(self, item_id: str) -> ChecklistItem | None:
        for group in self._groups:
            for item in group.items:
                if item.id == item_id:
                    return item
        return None

    def category_items(self, category: Category) -> list[ChecklistItem]:
        for group in self._groups:
            if group.name == category:
                return list(group.items)
        return []

    def apply_orders(self, orders: dict[str, int]) -> None:
        """Overwrite order values for the given items and re-sort their groups."""
        groups = []
        for group in self._groups:
            items = [
                item.model_copy(update={"order": orders[item.id]}) if item.id in orders else item
                for item in group.items
            ]
            groups.append(CatalogGroup(name=group.name, items=sorted(items, key=lambda i: i.order)))
        self._groups = groups
