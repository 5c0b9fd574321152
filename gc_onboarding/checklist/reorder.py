"""Catalog reordering via pairwise order swaps.

Hard rules:
- Reordering stays inside the item's category
- Moving past either end of the category is a no-op, not an error
- The swap is two independent writes; any failure of the second write is compensated,
  both items are re-fetched and the result carries a ConsistencyWarning
- This service is the only writer of order values
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger

from gc_onboarding.checklist.errors import ConsistencyWarning, ItemNotFoundError, ValidationError
from gc_onboarding.checklist.optimistic import OptimisticCoordinator
from gc_onboarding.checklist.store import ChecklistStore
from gc_onboarding.checklist.types import CATEGORY_ORDER, CatalogGroup, Category, ReorderDirection
from gc_onboarding.checklist.views import CatalogView


@dataclass(frozen=True)
class OrderSwap:
    direction: ReorderDirection
    item_id: str
    item_order: int
    neighbour_id: str
    neighbour_order: int

    def swapped(self) -> dict[str, int]:
        return {self.item_id: self.neighbour_order, self.neighbour_id: self.item_order}


@dataclass
class ReorderResult:
    """Outcome of a reorder call.

    Attributes:
        item_id: Item the caller asked to move
        direction: Requested direction
        moved: True when the persisted orders reflect the swap
        swapped_with: Neighbour item ID, None for a no-op
        orders: Order values of both items after the call
        warning: Set when a partial write had to be reconciled
    """

    item_id: str
    direction: ReorderDirection
    moved: bool
    swapped_with: str | None = None
    orders: dict[str, int] = field(default_factory=dict)
    warning: ConsistencyWarning | None = None


class ReorderService:
    def __init__(
        self,
        store: ChecklistStore,
        category_order: Sequence[Category] = CATEGORY_ORDER,
    ) -> None:
        self._store = store
        self._view = CatalogView(store, category_order)
        self._coordinator: OptimisticCoordinator[list[CatalogGroup]] = OptimisticCoordinator(
            self._view, name="catalog"
        )

    @property
    def view(self) -> CatalogView:
        return self._view

    def load(self) -> list[CatalogGroup]:
        self._view.refresh()
        return self._view.groups

    def reorder(self, item_id: str, direction: ReorderDirection | str) -> ReorderResult:
        """Swap an item's order with its neighbour above or below.

        Args:
            item_id: Item to move
            direction: "up" or "down"

        Returns:
            ReorderResult; moved=False for an out-of-bounds move

        Raises:
            ValidationError: Unknown direction
            ItemNotFoundError: Item not in the catalog
            Exception: Whatever the first write raised (view rolled back)
        """
        try:
            direction = ReorderDirection(direction)
        except ValueError as e:
            raise ValidationError(f"Unknown reorder direction: {direction!r}") from e

        if not self._view.loaded:
            self._view.refresh()

        item = self._view.find(item_id)
        if item is None:
            raise ItemNotFoundError("Checklist item", item_id)

        siblings = self._view.category_items(item.category)
        position = next(i for i, sibling in enumerate(siblings) if sibling.id == item_id)
        target = position - 1 if direction == ReorderDirection.UP else position + 1

        if target < 0 or target >= len(siblings):
            logger.debug("Reorder out of bounds, nothing to do", item_id=item_id, direction=direction.value)
            return ReorderResult(item_id=item_id, direction=direction, moved=False, orders={item_id: item.order})

        neighbour = siblings[target]
        if neighbour.order == item.order:
            logger.warning(
                "Adjacent items share an order value, swap has no effect",
                item_id=item_id,
                neighbour_id=neighbour.id,
                order=item.order,
            )

        swap = OrderSwap(
            direction=direction,
            item_id=item.id,
            item_order=item.order,
            neighbour_id=neighbour.id,
            neighbour_order=neighbour.order,
        )
        mutation = self._coordinator.run(
            f"reorder:{item.category.value}",
            swap,
            apply=lambda s: self._view.apply_orders(s.swapped()),
            write=self._write_swap,
        )
        if mutation.payload is not swap:
            logger.info("Reorder already in flight for category", category=item.category.value)
            return ReorderResult(item_id=item_id, direction=direction, moved=False)

        result: ReorderResult = mutation.result
        if result.warning is not None and self._view.is_active:
            self._view.apply_orders(result.orders)
        return result

    def _write_swap(self, swap: OrderSwap) -> ReorderResult:
        # A failure here leaves both items untouched; let the coordinator roll back.
        self._store.update_item(swap.item_id, {"order": swap.neighbour_order})

        try:
            self._store.update_item(swap.neighbour_id, {"order": swap.item_order})
        except Exception as e:
            logger.error(
                "Second half of reorder failed",
                item_id=swap.item_id,
                neighbour_id=swap.neighbour_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return self._reconcile_partial(swap)

        return ReorderResult(
            item_id=swap.item_id,
            direction=swap.direction,
            moved=True,
            swapped_with=swap.neighbour_id,
            orders=swap.swapped(),
        )

    def _reconcile_partial(self, swap: OrderSwap) -> ReorderResult:
        """Undo the half that landed, then trust only what the store reports."""
        try:
            self._store.update_item(swap.item_id, {"order": swap.item_order})
        except Exception as e:
            logger.error("Compensating reorder write failed", item_id=swap.item_id, error=str(e))

        orders: dict[str, int] = {}
        for item_id in (swap.item_id, swap.neighbour_id):
            try:
                orders[item_id] = self._store.fetch_item(item_id).order
            except Exception as e:
                logger.error("Could not re-fetch order after partial reorder", item_id=item_id, error=str(e))

        collision = len(orders) == 2 and orders[swap.item_id] == orders[swap.neighbour_id]
        warning = ConsistencyWarning((swap.item_id, swap.neighbour_id), orders, collision)
        logger.warning(str(warning))

        return ReorderResult(
            item_id=swap.item_id,
            direction=swap.direction,
            moved=orders.get(swap.item_id) == swap.neighbour_order,
            swapped_with=swap.neighbour_id,
            orders=orders,
            warning=warning,
        )
