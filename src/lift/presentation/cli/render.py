"""Shared CLI rendering helpers."""
from __future__ import annotations

import os
import textwrap
from typing import Iterable, List, Sequence

from lift.domain.elements import (
    ContentLinkElement,
    Element,
    ErrorElement,
    InputElement,
    JumpLinkElement,
    LinkElement,
    TextElement,
    is_interactive,
)

DEFAULT_WIDTH = 78


def debug_enabled() -> bool:
    """Return True only when LIFT_DEBUG is explicitly set to '1'."""
    return os.getenv("LIFT_DEBUG") == "1"


def wrap_text(text: str, width: int = DEFAULT_WIDTH) -> list[str]:
    """Wrap prose on word boundaries; empty text yields a single empty line."""
    if not text or width <= 0:
        return [text] if text else [""]
    return textwrap.wrap(text, width=width, break_long_words=False, break_on_hyphens=False) or [""]


def interactive_indices(elements: Sequence[Element]) -> List[int]:
    """Output positions of the elements a player can select, in display order."""
    return [index for index, element in enumerate(elements) if is_interactive(element)]


def format_element(element: Element) -> str:
    """One-line label for an element."""
    if isinstance(element, TextElement):
        return element.text
    if isinstance(element, ErrorElement):
        return f"[error] {element.message}"
    if isinstance(element, InputElement):
        return f"Enter {element.variable}"
    if isinstance(element, (LinkElement, ContentLinkElement, JumpLinkElement)):
        label = element.title
        if debug_enabled() and isinstance(element, (LinkElement, JumpLinkElement)):
            label = f"{label} -> {element.destination}"
        return label
    return str(element)


def render_heading(title: str) -> None:
    """Print a consistent section heading."""
    print(f"\n=== {title} ===")


def render_elements(elements: Sequence[Element], *, width: int = DEFAULT_WIDTH) -> List[int]:
    """Print the output buffer, numbering choices; returns their output indices."""
    choices = interactive_indices(elements)
    numbers = {index: number for number, index in enumerate(choices, start=1)}
    for index, element in enumerate(elements):
        if index in numbers:
            print(f"  {numbers[index]}. {format_element(element)}")
        else:
            for line in wrap_text(format_element(element), width):
                print(line)
    return choices


def render_bullet_lines(lines: Iterable[str]) -> None:
    """Print bullet-prefixed lines."""
    for line in lines:
        print(f"- {line}")
