"""Member onboarding API routes.

HTTP boundary for the member checklist. Contains only FastAPI routing logic.
All business logic lives in gc_onboarding.checklist.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from loguru import logger

from gc_onboarding.api.dependencies import get_member_context, get_onboarding_service
from gc_onboarding.api.errors import http_error
from gc_onboarding.api.schemas import StatusUpdateRequest, ToggleRequest
from gc_onboarding.checklist.errors import ChecklistError
from gc_onboarding.checklist.service import OnboardingService
from gc_onboarding.checklist.types import AggregatedView, MemberContext

router = APIRouter(prefix="/api/onboarding", tags=["onboarding"])


@router.get("", response_model=AggregatedView)
def get_onboarding(
    member: MemberContext = Depends(get_member_context),
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Get the member's checklist grouped by category with completion percentages."""
    try:
        return service.get_aggregated_view(member)
    except ChecklistError as e:
        logger.error(f"Failed to load onboarding for member_id={member.member_id}: {e}")
        raise http_error(e) from e


@router.post("/items/{item_id}/toggle", response_model=AggregatedView)
def toggle_item(
    item_id: str,
    request: ToggleRequest,
    member: MemberContext = Depends(get_member_context),
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Toggle an item between Complete and Not Started.

    The target is derived from ``seen_status``, so a repeated request for
    the same click lands on the same status. Returns the refreshed view. A
    failed write returns 503 and leaves the member's progress unchanged.
    """
    logger.info(f"Toggle requested: member_id={member.member_id}, item_id={item_id}")
    try:
        return service.toggle_item(member, item_id, request.seen_status)
    except ChecklistError as e:
        raise http_error(e) from e


@router.put("/items/{item_id}/status", response_model=AggregatedView)
def update_item_status(
    item_id: str,
    request: StatusUpdateRequest,
    member: MemberContext = Depends(get_member_context),
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Set an explicit status (e.g. In Progress, Blocked) with optional notes."""
    try:
        return service.set_status(member, item_id, request.status, request.notes)
    except ChecklistError as e:
        raise http_error(e) from e
