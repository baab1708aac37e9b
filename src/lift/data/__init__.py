"""Data layer: story source loading, page parsing and the expression language."""

from .errors import (
    ContentError,
    DuplicatePageError,
    ExpressionError,
    ExpressionSyntaxError,
    PageParseError,
    StoryError,
    StoryLoadError,
)

__all__ = [
    "ContentError",
    "DuplicatePageError",
    "ExpressionError",
    "ExpressionSyntaxError",
    "PageParseError",
    "StoryError",
    "StoryLoadError",
]
