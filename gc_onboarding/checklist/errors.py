"""Error types for the onboarding checklist engine.

Propagation rules:
- ValidationError is raised before any write and never reaches the
  optimistic layer.
- TransportError triggers rollback in the coordinator and is re-raised.
- ConflictError is absorbed by the coordinator with a forced refresh.
- ConsistencyWarning is reported on reorder results, not raised.
"""


class ChecklistError(Exception):
    """Base exception for all checklist errors."""

    pass


class ValidationError(ChecklistError):
    """Raised for bad enum values or malformed input, before any write."""

    pass


class ItemNotFoundError(ChecklistError, LookupError):
    """Raised when a checklist item or member does not exist."""

    def __init__(self, kind: str, identifier: str) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class TransportError(ChecklistError):
    """Raised when the persistence collaborator fails (network or server)."""

    pass


class ConflictError(ChecklistError):
    """Raised when a write landed but local state had diverged from it."""

    pass


class PermissionDeniedError(ChecklistError):
    """Raised when a catalog edit is attempted without admin context."""

    pass


class DeleteConfirmationRequired(ChecklistError):
    """Raised when deleting an item that member progress still references.

    Attributes:
        item_id: Item the caller tried to delete
        reference_count: Number of progress records that would be removed
    """

    def __init__(self, item_id: str, reference_count: int) -> None:
        self.item_id = item_id
        self.reference_count = reference_count
        super().__init__(
            f"{reference_count} member(s) have progress records for item {item_id}; "
            "deleting will remove their progress"
        )


class ConsistencyWarning(UserWarning):
    """A reorder left the two swapped items in a state that had to be re-fetched."""

    def __init__(self, item_ids: tuple[str, str], orders: dict[str, int], collision: bool) -> None:
        self.item_ids = item_ids
        self.orders = orders
        self.collision = collision
        detail = "order values collide" if collision else "order values re-fetched"
        super().__init__(f"Partial reorder of {item_ids[0]} and {item_ids[1]}: {detail} ({orders})")
