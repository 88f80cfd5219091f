"""Progression engine: collect, purchase and reconcile over PlayerState values."""

from seedfarm.modules.progression.engine import (
    CollectOutcome,
    ProgressionEngine,
    PurchaseOutcome,
    ReconcileOutcome,
)

__all__ = ["CollectOutcome", "ProgressionEngine", "PurchaseOutcome", "ReconcileOutcome"]
