"""Optimistic mutation coordinator.

Wraps a state-changing operation in a small state machine:

    IDLE -> PENDING -> COMMITTED
                    -> ROLLED_BACK

Flow:
1. Snapshot the live view (deep copy)
2. Apply the change to the live view before the durable write goes out
3. Issue the durable write
4. Success (or ConflictError): refresh the view from the store
5. Any other write error: restore the snapshot, try to refresh, re-raise

Only one mutation per key may be pending; a duplicate request for a pending
key returns the in-flight mutation without applying anything. A view that
has been closed receives no patch, restore or refresh, but the write is
still issued.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, Protocol, TypeVar

from loguru import logger

from gc_onboarding.checklist.errors import ConflictError, TransportError

S = TypeVar("S")
P = TypeVar("P")


class MutationState(StrEnum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


_TRANSITIONS: dict[MutationState, frozenset[MutationState]] = {
    MutationState.IDLE: frozenset({MutationState.PENDING}),
    MutationState.PENDING: frozenset({MutationState.COMMITTED, MutationState.ROLLED_BACK}),
    MutationState.COMMITTED: frozenset(),
    MutationState.ROLLED_BACK: frozenset(),
}


class LiveView(Protocol[S]):
    """An in-memory view the coordinator can snapshot, patch and refresh."""

    @property
    def is_active(self) -> bool: ...

    def snapshot(self) -> S: ...

    def restore(self, snapshot: S) -> None: ...

    def refresh(self) -> None: ...


@dataclass
class Mutation(Generic[P, S]):
    """One optimistic mutation and everything needed to undo it.

    Attributes:
        key: Resource key; at most one pending mutation per key
        payload: Caller-defined description of the change
        state: Current state machine position
        snapshot: View state captured on entry to PENDING
        result: Value returned by the durable write
        error: Write error that caused the rollback, if any
        conflict: True when the write landed but diverged from the local patch
    """

    key: str
    payload: P
    state: MutationState = MutationState.IDLE
    snapshot: S | None = None
    result: Any = None
    error: Exception | None = None
    conflict: bool = False
    history: list[MutationState] = field(default_factory=list)

    def transition(self, new_state: MutationState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal mutation transition {self.state} -> {new_state} for {self.key}")
        self.history.append(self.state)
        logger.debug("Mutation transition", key=self.key, from_state=self.state.value, to_state=new_state.value)
        self.state = new_state


class OptimisticCoordinator(Generic[S]):
    """Single mutation entry point for one live view."""

    def __init__(self, view: LiveView[S], name: str = "view") -> None:
        self._view = view
        self._name = name
        self._pending: dict[str, Mutation[Any, S]] = {}

    @property
    def view(self) -> LiveView[S]:
        return self._view

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def run(
        self,
        key: str,
        payload: P,
        *,
        apply: Callable[[P], None],
        write: Callable[[P], Any],
    ) -> Mutation[P, S]:
        """Apply ``payload`` optimistically, persist it, then reconcile.

        Args:
            key: Resource key used for the duplicate guard
            payload: The intended change
            apply: Patches the live view in place; must not do I/O
            write: Performs the durable write; ConflictError means it landed but diverged

        Returns:
            The mutation, COMMITTED, or the already pending mutation for ``key``

        Raises:
            Exception: Whatever the write raised, after the snapshot has been restored
        """
        in_flight = self._pending.get(key)
        if in_flight is not None:
            logger.info("Duplicate mutation ignored while pending", view=self._name, key=key)
            return in_flight

        mutation: Mutation[P, S] = Mutation(key=key, payload=payload)
        mutation.snapshot = self._view.snapshot()
        mutation.transition(MutationState.PENDING)
        self._pending[key] = mutation

        try:
            if self._view.is_active:
                apply(payload)
            else:
                logger.debug("View closed, optimistic patch skipped", view=self._name, key=key)

            try:
                mutation.result = write(payload)
            except ConflictError as e:
                mutation.conflict = True
                logger.warning("Write landed with divergent state, forcing refresh", view=self._name, key=key, detail=str(e))
            except Exception as e:
                mutation.error = e
                self._rollback(mutation)
                mutation.transition(MutationState.ROLLED_BACK)
                logger.error(
                    "Mutation rolled back",
                    view=self._name,
                    key=key,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise

            mutation.transition(MutationState.COMMITTED)
            self._converge(key)
            logger.info("Mutation committed", view=self._name, key=key, conflict=mutation.conflict)
            return mutation
        finally:
            self._pending.pop(key, None)

    def _rollback(self, mutation: Mutation[Any, S]) -> None:
        if not self._view.is_active:
            return
        if mutation.snapshot is not None:
            self._view.restore(mutation.snapshot)
        self._converge(mutation.key)

    def _converge(self, key: str) -> None:
        """Re-pull authoritative state; a failed re-pull keeps the current view."""
        if not self._view.is_active:
            return
        try:
            self._view.refresh()
        except TransportError as e:
            logger.warning("Refresh after mutation failed, keeping local state", view=self._name, key=key, error=str(e))
