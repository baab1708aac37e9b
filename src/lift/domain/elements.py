"""Rendered output elements shown to the player."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union

from lift.domain.defs import PageAction


@dataclass(frozen=True, slots=True)
class TextElement:
    text: str


@dataclass(frozen=True, slots=True)
class LinkElement:
    title: str
    destination: str


@dataclass(frozen=True, slots=True)
class ContentLinkElement:
    title: str
    action: PageAction


@dataclass(frozen=True, slots=True)
class JumpLinkElement:
    title: str
    destination: str
    action: PageAction


@dataclass(frozen=True, slots=True)
class InputElement:
    variable: str
    action: PageAction


@dataclass(frozen=True, slots=True)
class ErrorElement:
    message: str


Element = Union[
    TextElement,
    LinkElement,
    ContentLinkElement,
    JumpLinkElement,
    InputElement,
    ErrorElement,
]

INTERACTIVE_ELEMENTS = (LinkElement, ContentLinkElement, JumpLinkElement, InputElement)


def is_interactive(element: Element) -> bool:
    return isinstance(element, INTERACTIVE_ELEMENTS)


def element_to_payload(element: Element) -> Dict[str, Any]:
    """Encode an element as ``{"type": ..., "value": ...}``."""
    if isinstance(element, TextElement):
        return {"type": "Text", "value": element.text}
    if isinstance(element, LinkElement):
        return {"type": "Link", "value": [element.title, element.destination]}
    if isinstance(element, ContentLinkElement):
        return {"type": "ContentLink", "value": [element.title, _action_payload(element.action)]}
    if isinstance(element, JumpLinkElement):
        return {
            "type": "JumpLink",
            "value": [element.title, element.destination, _action_payload(element.action)],
        }
    if isinstance(element, InputElement):
        return {"type": "Input", "value": [element.variable, _action_payload(element.action)]}
    if isinstance(element, ErrorElement):
        return {"type": "Error", "value": element.message}
    raise TypeError(f"Unknown element type: {type(element).__name__}")


def element_from_payload(payload: object) -> Element:
    """Decode a tagged element, raising ValueError on malformed input."""
    if not isinstance(payload, dict):
        raise ValueError("Element must be an object.")
    tag = payload.get("type")
    value = payload.get("value")
    if tag == "Text":
        return TextElement(_require_str(value, "Text"))
    if tag == "Error":
        return ErrorElement(_require_str(value, "Error"))
    if tag == "Link":
        title, destination = _require_fields(value, 2, tag)
        return LinkElement(_require_str(title, tag), _require_str(destination, tag))
    if tag == "ContentLink":
        title, action = _require_fields(value, 2, tag)
        return ContentLinkElement(_require_str(title, tag), _action_from_payload(action))
    if tag == "JumpLink":
        title, destination, action = _require_fields(value, 3, tag)
        return JumpLinkElement(
            _require_str(title, tag),
            _require_str(destination, tag),
            _action_from_payload(action),
        )
    if tag == "Input":
        variable, action = _require_fields(value, 2, tag)
        return InputElement(_require_str(variable, tag), _action_from_payload(action))
    raise ValueError(f"Unknown element type: {tag!r}")


def _action_payload(action: PageAction) -> Dict[str, Any]:
    return {"page": action.page, "index": action.index}


def _action_from_payload(payload: object) -> PageAction:
    if not isinstance(payload, dict):
        raise ValueError("Page action must be an object.")
    page = payload.get("page")
    index = payload.get("index")
    if not isinstance(page, str) or not isinstance(index, int) or isinstance(index, bool):
        raise ValueError("Page action requires a string page and an integer index.")
    return PageAction(page=page, index=index)


def _require_fields(value: object, count: int, tag: str) -> list:
    if not isinstance(value, list) or len(value) != count:
        raise ValueError(f"{tag} element expects {count} fields.")
    return value


def _require_str(value: object, tag: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{tag} element fields must be strings.")
    return value
