"""Lift: an interactive-fiction story engine."""
from __future__ import annotations

from lift.core.value import Value
from lift.data.errors import StoryError
from lift.data.story_loader import build_story, load_story
from lift.domain.story import Story
from lift.services.errors import SnapshotError, StepBudgetExceeded
from lift.services.interpreter import Interpreter

__version__ = "0.1.0"

__all__ = [
    "Interpreter",
    "SnapshotError",
    "StepBudgetExceeded",
    "Story",
    "StoryError",
    "Value",
    "build_story",
    "load_story",
]
