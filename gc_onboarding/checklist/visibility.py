"""Plan-tier visibility for checklist items."""

from collections.abc import Iterable
from typing import TypeVar

from gc_onboarding.checklist.types import ChecklistItem, MemberPlan, PlanRequired

T = TypeVar("T", bound=ChecklistItem)

# Every (requirement, plan) pair is listed; there is no fallback decision.
VISIBILITY_MATRIX: dict[tuple[PlanRequired, MemberPlan], bool] = {
    (PlanRequired.ALL_PLANS, MemberPlan.TRIAL): True,
    (PlanRequired.ALL_PLANS, MemberPlan.PARTIAL): True,
    (PlanRequired.ALL_PLANS, MemberPlan.FULL): True,
    (PlanRequired.FULL_ONLY, MemberPlan.TRIAL): False,
    (PlanRequired.FULL_ONLY, MemberPlan.PARTIAL): False,
    (PlanRequired.FULL_ONLY, MemberPlan.FULL): True,
}


def visible(item: ChecklistItem, plan: MemberPlan) -> bool:
    """Return True if a member on ``plan`` may see ``item``.

    Pure lookup: an item is visible when it is required for all plans or
    the member is on the Full tier.
    """
    return VISIBILITY_MATRIX[(item.plan_required, plan)]


def filter_visible(items: Iterable[T], plan: MemberPlan) -> list[T]:
    return [item for item in items if visible(item, plan)]
