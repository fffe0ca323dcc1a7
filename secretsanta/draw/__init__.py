"""Gift-assignment draw: strategies, validation, persistence and reveal state."""

from .engine import DrawEngine, DrawOutcome
from .reveal import RevealState
from .stores import AssignmentStore, RestAssignmentStore, SqlAlchemyAssignmentStore
from .strategies import (
    AssignmentStrategy,
    DEFAULT_STRATEGY_KEY,
    DEFAULT_STRATEGY_REGISTRY,
    StrategyRegistry,
    fisher_yates_shuffle,
)
from .validation import follow_cycle, validate_assignments

__all__ = [
    "AssignmentStore",
    "AssignmentStrategy",
    "DEFAULT_STRATEGY_KEY",
    "DEFAULT_STRATEGY_REGISTRY",
    "DrawEngine",
    "DrawOutcome",
    "RestAssignmentStore",
    "RevealState",
    "SqlAlchemyAssignmentStore",
    "StrategyRegistry",
    "fisher_yates_shuffle",
    "follow_cycle",
    "validate_assignments",
]
