"""Progress aggregation.

Joins the catalog with one member's progress records, trims it to what the
member's plan may see, and groups it into categories with completion counts.

Rules:
- Categories follow the caller-supplied canonical order, never alphabetical
- Items within a category are sorted by order ascending
- Categories with no visible items are omitted
- total_progress uses round-half-up and is 0 for an empty view
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from gc_onboarding.checklist.types import (
    CATEGORY_ORDER,
    AggregatedView,
    CatalogGroup,
    Category,
    CategoryGroup,
    ChecklistItem,
    MemberPlan,
    ProgressItem,
    ProgressRecord,
    ProgressStatus,
)
from gc_onboarding.checklist.visibility import filter_visible


def percent(completed: int, total: int) -> int:
    """Completion percentage rounded half-up; 0 when there is nothing to complete."""
    if total <= 0:
        return 0
    ratio = Decimal(100 * completed) / Decimal(total)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def join_progress(items: Iterable[ChecklistItem], records: Iterable[ProgressRecord]) -> list[ProgressItem]:
    """Left-join items with progress records on checklist_item_id.

    Items without a record are Not Started. Records for unknown items are ignored.
    """
    by_item = {record.checklist_item_id: record for record in records}
    joined = []
    for item in items:
        record = by_item.get(item.id)
        joined.append(
            ProgressItem(
                **item.model_dump(include=set(ChecklistItem.model_fields)),
                progress_id=record.id if record else None,
                progress_status=record.status if record else ProgressStatus.NOT_STARTED,
                completed_date=record.completed_date if record else None,
                progress_notes=record.notes if record else None,
            )
        )
    return joined


def _group_by_category(items: Iterable, category_order: Sequence[Category]) -> list[tuple[Category, list]]:
    buckets: dict[Category, list] = defaultdict(list)
    for item in items:
        buckets[item.category].append(item)
    return [
        (category, sorted(buckets[category], key=lambda i: i.order))
        for category in category_order
        if buckets.get(category)
    ]


def recount(categories: Iterable[CategoryGroup]) -> AggregatedView:
    """Rebuild counts and total progress from the item statuses.

    Counts are always derived from the items themselves, so applying the same
    status change twice yields the same numbers.
    """
    groups = []
    completed_total = 0
    item_total = 0
    for group in categories:
        completed = sum(1 for item in group.items if item.is_complete)
        groups.append(
            CategoryGroup(
                name=group.name,
                items=list(group.items),
                completed_count=completed,
                total_count=len(group.items),
            )
        )
        completed_total += completed
        item_total += len(group.items)

    return AggregatedView(categories=groups, total_progress=percent(completed_total, item_total))


def aggregate(
    catalog_items: Iterable[ChecklistItem],
    progress_records: Iterable[ProgressRecord],
    plan: MemberPlan,
    category_order: Sequence[Category] = CATEGORY_ORDER,
) -> AggregatedView:
    """Build the member-facing grouped view with completion percentages.

    Args:
        catalog_items: Full catalog, in any order
        progress_records: The member's persisted progress records
        plan: Member plan, the only visibility input
        category_order: Canonical category display order

    Returns:
        AggregatedView with visible, non-empty categories and total_progress
    """
    visible_items = filter_visible(catalog_items, plan)
    joined = join_progress(visible_items, progress_records)
    groups = [
        CategoryGroup(name=category, items=items, completed_count=0, total_count=len(items))
        for category, items in _group_by_category(joined, category_order)
    ]
    return recount(groups)


def group_catalog(
    catalog_items: Iterable[ChecklistItem],
    category_order: Sequence[Category] = CATEGORY_ORDER,
) -> list[CatalogGroup]:
    """Group raw catalog items for the admin view (no visibility, no progress)."""
    return [
        CatalogGroup(name=category, items=items)
        for category, items in _group_by_category(catalog_items, category_order)
    ]
