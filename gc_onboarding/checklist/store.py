"""Persistence collaborator contract for the checklist engine.

Every call is assumed to be network-latent and fallible (failures surface as
TransportError) and none is atomic across more than one record.
"""

from typing import Any, Protocol

from gc_onboarding.checklist.types import ChecklistItem, Member, ProgressRecord, ProgressStatus


class ChecklistStore(Protocol):
    def fetch_catalog(self) -> list[ChecklistItem]: ...

    def fetch_item(self, item_id: str) -> ChecklistItem: ...

    def fetch_progress(self, member_id: str) -> list[ProgressRecord]: ...

    def upsert_progress(
        self,
        member_id: str,
        item_id: str,
        status: ProgressStatus,
        notes: str | None = None,
    ) -> ProgressRecord:
        """Create the (member, item) record if absent, else update it in place."""
        ...

    def create_item(self, data: dict[str, Any]) -> ChecklistItem: ...

    def update_item(self, item_id: str, changes: dict[str, Any]) -> ChecklistItem: ...

    def delete_item(self, item_id: str) -> int:
        """Delete an item and its progress records; return how many records went with it."""
        ...

    def count_progress_referencing(self, item_id: str) -> int: ...

    def fetch_member(self, member_id: str) -> Member: ...
