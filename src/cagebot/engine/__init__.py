"""Adventure engine: the caging state machine and its accounting.

Modules:
    classifier: Maps adventure pages to symbolic encounters.
    diet: ResourceLedger, which keeps adventures above the diet floor.
    budget: TurnBudgetTracker, which reconciles spend against the server.
    lifecycle: CageTaskLifecycle, owner of the caged flag and cage task.
    loop: AdventureLoop, the state machine tying them together.
"""

from cagebot.engine.budget import Checkpoint, TurnBudgetTracker
from cagebot.engine.classifier import (
    Encounter,
    EventKind,
    classify_adventure,
    classify_confirmation,
    is_mid_encounter,
)
from cagebot.engine.diet import (
    DietIssue,
    ReplenishOutcome,
    ReplenishResult,
    ResourceLedger,
)
from cagebot.engine.lifecycle import (
    CageTaskLifecycle,
    ReleaseDecision,
    ReleaseOutcome,
    TaskPhase,
    chew_out,
)
from cagebot.engine.loop import AdventureLoop, LoopAccounting, LoopState, LoopSummary


__all__ = [
    # Classification
    "EventKind",
    "Encounter",
    "classify_adventure",
    "classify_confirmation",
    "is_mid_encounter",
    # Diet
    "ResourceLedger",
    "ReplenishOutcome",
    "ReplenishResult",
    "DietIssue",
    # Budget
    "Checkpoint",
    "TurnBudgetTracker",
    # Lifecycle
    "CageTaskLifecycle",
    "TaskPhase",
    "ReleaseDecision",
    "ReleaseOutcome",
    "chew_out",
    # Loop
    "AdventureLoop",
    "LoopAccounting",
    "LoopState",
    "LoopSummary",
]
