"""Content AST structures produced by the page parser."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from lift.data.expression import Expression, Template


@dataclass(frozen=True, slots=True)
class PageAction:
    """Stable reference to one action block of a page."""

    page: str
    index: int


@dataclass(frozen=True, slots=True)
class NormalAction:
    title: Template
    destination: Template


@dataclass(frozen=True, slots=True)
class ContentAction:
    title: Template
    action: PageAction


@dataclass(frozen=True, slots=True)
class JumpAction:
    title: Template
    destination: Template
    action: PageAction


@dataclass(frozen=True, slots=True)
class InputAction:
    variable: str
    action: PageAction


Action = Union[NormalAction, ContentAction, JumpAction, InputAction]


@dataclass(frozen=True, slots=True)
class Text:
    template: Template


@dataclass(frozen=True, slots=True)
class Link:
    action: Action


@dataclass(frozen=True, slots=True)
class Goto:
    destination: Template


@dataclass(frozen=True, slots=True)
class Import:
    page: Template


@dataclass(frozen=True, slots=True)
class Set:
    local: bool
    variable: str
    indices: Tuple[Expression, ...]
    expression: Expression


@dataclass(frozen=True, slots=True)
class Branch:
    condition: Expression
    body: "ContentSeq"


@dataclass(frozen=True, slots=True)
class Conditional:
    """An ``if``/``elif``/``else`` chain; the first true branch runs."""

    branches: Tuple[Branch, ...]
    else_body: "ContentSeq | None" = None


@dataclass(frozen=True, slots=True)
class For:
    index: str | None
    variable: str
    expression: Expression
    body: "ContentSeq"


@dataclass(frozen=True, slots=True)
class While:
    expression: Expression
    body: "ContentSeq"


@dataclass(frozen=True, slots=True)
class Error:
    message: str


Content = Union[Text, Link, Goto, Import, Set, Conditional, For, While, Error]
ContentSeq = Tuple[Content, ...]


@dataclass(frozen=True, slots=True)
class Page:
    """A parsed page: its body plus the blocks bound to its interactive links."""

    title: str
    content: ContentSeq
    actions: Tuple[ContentSeq, ...] = ()

    def get_action(self, index: int) -> ContentSeq | None:
        if 0 <= index < len(self.actions):
            return self.actions[index]
        return None
