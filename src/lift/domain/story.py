"""Immutable page registry shared by every session."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from lift.domain.defs import ContentSeq, Page, PageAction


@dataclass(frozen=True)
class Story:
    """Parsed pages keyed by title plus the entry page title."""

    first_page: str
    pages: Mapping[str, Page] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pages", MappingProxyType(dict(self.pages)))

    @classmethod
    def from_source(cls, source: str) -> "Story":
        """Build a story from raw source text (see ``lift.data.story_loader``)."""
        from lift.data.story_loader import build_story

        return build_story(source)

    def get_page(self, title: str) -> Page | None:
        return self.pages.get(title)

    def get_action(self, action: PageAction) -> ContentSeq | None:
        page = self.pages.get(action.page)
        if page is None:
            return None
        return page.get_action(action.index)

    def titles(self) -> list[str]:
        return list(self.pages.keys())
