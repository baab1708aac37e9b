"""Domain definition exports."""

from .content_def import (
    Action,
    Branch,
    Conditional,
    Content,
    ContentAction,
    ContentSeq,
    Error,
    For,
    Goto,
    Import,
    InputAction,
    JumpAction,
    Link,
    NormalAction,
    Page,
    PageAction,
    Set,
    Text,
    While,
)

__all__ = [
    "Action",
    "Branch",
    "Conditional",
    "Content",
    "ContentAction",
    "ContentSeq",
    "Error",
    "For",
    "Goto",
    "Import",
    "InputAction",
    "JumpAction",
    "Link",
    "NormalAction",
    "Page",
    "PageAction",
    "Set",
    "Text",
    "While",
]
