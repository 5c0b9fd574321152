"""FastAPI dependencies for onboarding routes.

The calling member is identified by the X-Member-Id header set by the
dashboard's auth layer; this module only resolves that ID to a plan and an
admin flag.
"""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status
from loguru import logger

from gc_onboarding.checklist.errors import ItemNotFoundError, TransportError
from gc_onboarding.checklist.repository import SqlChecklistStore
from gc_onboarding.checklist.service import OnboardingService
from gc_onboarding.checklist.store import ChecklistStore
from gc_onboarding.checklist.types import MemberContext
from gc_onboarding.config.settings import settings


def get_checklist_store() -> ChecklistStore:
    return SqlChecklistStore()


def get_onboarding_service(store: ChecklistStore = Depends(get_checklist_store)) -> OnboardingService:
    return OnboardingService(store)


def get_member_context(
    x_member_id: str | None = Header(default=None),
    store: ChecklistStore = Depends(get_checklist_store),
) -> MemberContext:
    """Resolve the calling member.

    Raises:
        HTTPException: 401 if the header is missing
        HTTPException: 404 if the member does not exist
        HTTPException: 503 if the member store is unreachable
    """
    if not x_member_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Member identity required")

    try:
        member = store.fetch_member(x_member_id)
    except ItemNotFoundError as e:
        logger.warning(f"Unknown member_id={x_member_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found") from e
    except TransportError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e

    return MemberContext(
        member_id=member.id,
        plan=member.plan,
        is_admin=member.id in settings.admin_member_id_list,
    )
