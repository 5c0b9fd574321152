"""Admin CRUD over the shared onboarding catalog.

Input is validated before any store call, so an invalid request never
produces a partial write. Order values are assigned here on create (append
to the category) and on a category move; every other order change belongs
to ReorderService.
"""

from collections.abc import Sequence
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from gc_onboarding.checklist.aggregator import group_catalog
from gc_onboarding.checklist.errors import DeleteConfirmationRequired, ValidationError
from gc_onboarding.checklist.store import ChecklistStore
from gc_onboarding.checklist.types import (
    CATEGORY_ORDER,
    CatalogGroup,
    Category,
    ChecklistItem,
    ChecklistItemCreate,
    ChecklistItemUpdate,
    DeleteCheck,
    DeleteResult,
)

M = TypeVar("M", bound=BaseModel)

# Fields a patch may not clear
_REQUIRED_FIELDS = ("text", "category", "support_type", "plan_required")


def _validate(model: type[M], data: M | dict[str, Any]) -> M:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in e.errors())
        raise ValidationError(f"Invalid checklist item ({fields}): {e.error_count()} error(s)") from e


class ChecklistCatalog:
    def __init__(self, store: ChecklistStore, category_order: Sequence[Category] = CATEGORY_ORDER) -> None:
        self._store = store
        self._category_order = category_order

    def list_items(self) -> list[ChecklistItem]:
        rank = {category: index for index, category in enumerate(self._category_order)}
        return sorted(
            self._store.fetch_catalog(),
            key=lambda item: (rank.get(item.category, len(rank)), item.order),
        )

    def grouped(self) -> list[CatalogGroup]:
        return group_catalog(self._store.fetch_catalog(), self._category_order)

    def get(self, item_id: str) -> ChecklistItem:
        return self._store.fetch_item(item_id)

    def _orders_in(self, category: Category, exclude: str | None = None) -> set[int]:
        return {
            item.order
            for item in self._store.fetch_catalog()
            if item.category == category and item.id != exclude
        }

    def create(self, item: ChecklistItemCreate | dict[str, Any]) -> ChecklistItem:
        """Add an item to the catalog.

        Raises:
            ValidationError: Bad enum value, empty text, or an explicit order
                already used in the category
        """
        request = _validate(ChecklistItemCreate, item)
        taken = self._orders_in(request.category)

        if request.order is None:
            order = max(taken, default=0) + 1
        elif request.order in taken:
            raise ValidationError(f"Order {request.order} is already used in category {request.category.value}")
        else:
            order = request.order

        data = request.model_dump()
        data["order"] = order
        created = self._store.create_item(data)
        logger.info("Catalog item added", item_id=created.id, category=created.category.value, order=created.order)
        return created

    def update(self, item_id: str, patch: ChecklistItemUpdate | dict[str, Any]) -> ChecklistItem:
        """Apply a partial edit. Moving to another category appends the item there.

        Raises:
            ValidationError: Bad enum value, an order field, or clearing a required field
            ItemNotFoundError: Unknown item
        """
        request = _validate(ChecklistItemUpdate, patch)
        changes = request.model_dump(exclude_unset=True)
        cleared = [name for name in _REQUIRED_FIELDS if name in changes and changes[name] is None]
        if cleared:
            raise ValidationError(f"Cannot clear required field(s): {', '.join(cleared)}")

        current = self._store.fetch_item(item_id)
        if not changes:
            return current

        new_category = changes.get("category")
        if new_category is not None and new_category != current.category:
            changes["order"] = max(self._orders_in(new_category, exclude=item_id), default=0) + 1
            logger.info(
                "Catalog item moved between categories",
                item_id=item_id,
                from_category=current.category.value,
                to_category=new_category.value,
                order=changes["order"],
            )

        return self._store.update_item(item_id, changes)

    def check_delete(self, item_id: str) -> DeleteCheck:
        self._store.fetch_item(item_id)
        return DeleteCheck(item_id=item_id, reference_count=self._store.count_progress_referencing(item_id))

    def delete(self, item_id: str, confirm: bool = False) -> DeleteResult:
        """Delete an item, refusing to drop member progress without confirmation.

        Raises:
            DeleteConfirmationRequired: Progress records reference the item and confirm is False
            ItemNotFoundError: Unknown item
        """
        check = self.check_delete(item_id)
        if check.requires_confirmation and not confirm:
            raise DeleteConfirmationRequired(item_id, check.reference_count)

        removed = self._store.delete_item(item_id)
        logger.info("Catalog item deleted", item_id=item_id, removed_progress=removed)
        return DeleteResult(item_id=item_id, removed_progress=removed)
