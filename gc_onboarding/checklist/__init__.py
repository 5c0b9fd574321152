"""Onboarding checklist engine.

This package provides:
- The shared, ordered checklist catalog and its admin CRUD surface
- Plan-tier visibility and per-member progress aggregation
- Optimistic status changes with rollback on failed writes
- Order-preserving reordering within a category

Persistence is reached only through the ChecklistStore protocol.
"""

from gc_onboarding.checklist.aggregator import aggregate, percent
from gc_onboarding.checklist.catalog import ChecklistCatalog
from gc_onboarding.checklist.optimistic import Mutation, MutationState, OptimisticCoordinator
from gc_onboarding.checklist.progress import ProgressTracker
from gc_onboarding.checklist.reorder import ReorderResult, ReorderService
from gc_onboarding.checklist.service import OnboardingService
from gc_onboarding.checklist.store import ChecklistStore
from gc_onboarding.checklist.visibility import visible

__all__ = [
    "ChecklistCatalog",
    "ChecklistStore",
    "Mutation",
    "MutationState",
    "OnboardingService",
    "OptimisticCoordinator",
    "ProgressTracker",
    "ReorderResult",
    "ReorderService",
    "aggregate",
    "percent",
    "visible",
]
