"""Admin routes for the shared onboarding catalog."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from loguru import logger

from gc_onboarding.api.dependencies import get_member_context, get_onboarding_service
from gc_onboarding.api.errors import http_error
from gc_onboarding.api.schemas import ReorderRequest, ReorderResponse
from gc_onboarding.checklist.errors import ChecklistError
from gc_onboarding.checklist.service import OnboardingService
from gc_onboarding.checklist.types import (
    CatalogGroup,
    ChecklistItem,
    ChecklistItemCreate,
    DeleteCheck,
    DeleteResult,
    MemberContext,
)

router = APIRouter(prefix="/api/admin/onboarding", tags=["admin"])


@router.get("/items", response_model=list[CatalogGroup])
def list_items(
    member: MemberContext = Depends(get_member_context),
    service: OnboardingService = Depends(get_onboarding_service),
):
    try:
        return service.list_catalog(member)
    except ChecklistError as e:
        raise http_error(e) from e


@router.post("/items", response_model=ChecklistItem, status_code=status.HTTP_201_CREATED)
def create_item(
    request: ChecklistItemCreate,
    member: MemberContext = Depends(get_member_context),
    service: OnboardingService = Depends(get_onboarding_service),
):
    try:
        return service.create_item(member, request)
    except ChecklistError as e:
        raise http_error(e) from e


@router.patch("/items/{item_id}", response_model=ChecklistItem)
def update_item(
    item_id: str,
    patch: dict,
    member: MemberContext = Depends(get_member_context),
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Partially update an item.

    The raw body is validated by the catalog so that an order field or an
    unknown enum value is rejected the same way for every caller.
    """
    try:
        return service.update_item(member, item_id, patch)
    except ChecklistError as e:
        raise http_error(e) from e


@router.get("/items/{item_id}/references", response_model=DeleteCheck)
def get_item_references(
    item_id: str,
    member: MemberContext = Depends(get_member_context),
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Count member progress records that deleting this item would remove."""
    try:
        return service.check_delete(member, item_id)
    except ChecklistError as e:
        raise http_error(e) from e


@router.delete("/items/{item_id}", response_model=DeleteResult)
def delete_item(
    item_id: str,
    confirm: bool = False,
    member: MemberContext = Depends(get_member_context),
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Delete an item.

    Returns 409 with the reference count when members have progress on the
    item and confirm is not set.
    """
    try:
        return service.delete_item(member, item_id, confirm=confirm)
    except ChecklistError as e:
        raise http_error(e) from e


@router.post("/items/{item_id}/reorder", response_model=ReorderResponse)
def reorder_item(
    item_id: str,
    request: ReorderRequest,
    member: MemberContext = Depends(get_member_context),
    service: OnboardingService = Depends(get_onboarding_service),
):
    try:
        result = service.reorder_item(member, item_id, request.direction)
    except ChecklistError as e:
        raise http_error(e) from e

    if result.warning is not None:
        logger.warning(f"Reorder of item_id={item_id} needed reconciliation: {result.warning}")
    return ReorderResponse.from_result(result)
