"""Mapping from checklist errors to HTTP responses."""

from fastapi import HTTPException, status

from gc_onboarding.checklist.errors import (
    ChecklistError,
    DeleteConfirmationRequired,
    ItemNotFoundError,
    PermissionDeniedError,
    TransportError,
    ValidationError,
)


def http_error(error: ChecklistError) -> HTTPException:
    if isinstance(error, ValidationError):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, ItemNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, DeleteConfirmationRequired):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(error),
                "item_id": error.item_id,
                "reference_count": error.reference_count,
            },
        )
    if isinstance(error, TransportError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))
