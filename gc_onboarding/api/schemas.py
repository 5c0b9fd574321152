"""Pydantic request/response models for the onboarding HTTP routes."""

from pydantic import BaseModel, Field

from gc_onboarding.checklist.reorder import ReorderResult
from gc_onboarding.checklist.types import ProgressStatus, ReorderDirection


class ToggleRequest(BaseModel):
    seen_status: ProgressStatus = Field(description="Status the member saw when clicking")


class StatusUpdateRequest(BaseModel):
    status: ProgressStatus = Field(description="New progress status")
    notes: str | None = Field(default=None, description="Optional member notes", max_length=2000)


class ReorderRequest(BaseModel):
    direction: ReorderDirection = Field(description="Move the item one slot up or down within its category")


class ReorderResponse(BaseModel):
    item_id: str
    direction: ReorderDirection
    moved: bool
    swapped_with: str | None = None
    orders: dict[str, int] = Field(default_factory=dict)
    warning: str | None = Field(default=None, description="Set when a partial write was reconciled")

    @classmethod
    def from_result(cls, result: ReorderResult) -> "ReorderResponse":
        return cls(
            item_id=result.item_id,
            direction=result.direction,
            moved=result.moved,
            swapped_with=result.swapped_with,
            orders=result.orders,
            warning=str(result.warning) if result.warning else None,
        )
