"""Service layer exports."""

from .errors import SnapshotError, StepBudgetExceeded
from .evaluator import HALT, ContentEvaluator, EvalResult, GotoAction, HaltAction
from .interpreter import Interpreter
from .snapshot_service import SnapshotService
from .story_validator import Issue, format_issue, validate_story

__all__ = [
    "HALT",
    "ContentEvaluator",
    "EvalResult",
    "GotoAction",
    "HaltAction",
    "Interpreter",
    "Issue",
    "SnapshotError",
    "SnapshotService",
    "StepBudgetExceeded",
    "format_issue",
    "validate_story",
]
