"""Recursive evaluation of page content against session state."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Union

from lift.data.errors import ExpressionError
from lift.domain.defs import (
    Conditional,
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
    Set,
    Text,
    While,
)
from lift.domain.elements import (
    ContentLinkElement,
    Element,
    ErrorElement,
    InputElement,
    JumpLinkElement,
    LinkElement,
    TextElement,
)
from lift.domain.state import SessionState
from lift.domain.story import Story
from lift.services.errors import StepBudgetExceeded

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HaltAction:
    """Rendering finished; wait for the player."""


@dataclass(frozen=True, slots=True)
class GotoAction:
    """Rendering must continue on another page."""

    page: str


HALT = HaltAction()
PendingAction = Union[HaltAction, GotoAction]


@dataclass(slots=True)
class EvalResult:
    """Elements produced by one evaluation plus its pending action."""

    output: List[Element] = field(default_factory=list)
    action: PendingAction = HALT

    @property
    def is_goto(self) -> bool:
        return isinstance(self.action, GotoAction)

    def push(self, element: Element) -> None:
        self.output.append(element)

    def combine(self, other: "EvalResult") -> None:
        """Append ``other``'s output and take over its pending action."""
        self.output.extend(other.output)
        self.action = other.action


class ContentEvaluator:
    """Walks content sequences, writing variables into the session state.

    ``step_budget`` is an optional host-imposed limit: every node visit and
    loop iteration costs one step and exceeding it raises StepBudgetExceeded.
    Without a budget evaluation is unbounded.
    """

    def __init__(self, story: Story, state: SessionState, *, step_budget: int | None = None) -> None:
        self._story = story
        self._state = state
        self._step_budget = step_budget
        self._steps = 0

    @property
    def steps(self) -> int:
        return self._steps

    def evaluate(self, content: ContentSeq) -> EvalResult:
        """Evaluate ``content`` until it ends or a node requests a goto."""
        result = EvalResult()
        for node in content:
            self._step()
            try:
                self._eval_node(node, result)
            except ExpressionError as exc:
                result.push(ErrorElement(str(exc)))
            if result.is_goto:
                break
        return result

    def _eval_node(self, node: object, result: EvalResult) -> None:
        state = self._state
        if isinstance(node, Text):
            result.push(TextElement(node.template.eval_text(state)))
        elif isinstance(node, Link):
            result.push(self._link_element(node))
        elif isinstance(node, Goto):
            result.action = GotoAction(node.destination.eval_text(state))
        elif isinstance(node, Import):
            title = node.page.eval_text(state)
            page = self._story.get_page(title)
            if page is None:
                logger.debug("Ignoring import of unknown page %r", title)
                return
            result.combine(self.evaluate(page.content))
        elif isinstance(node, Set):
            value = node.expression.eval(state)
            indices = [index.eval(state) for index in node.indices]
            if node.local:
                state.write_local_indexed(node.variable, indices, value)
            else:
                state.write_global_indexed(node.variable, indices, value)
        elif isinstance(node, Conditional):
            self._eval_conditional(node, result)
        elif isinstance(node, For):
            self._eval_for(node, result)
        elif isinstance(node, While):
            self._eval_while(node, result)
        elif isinstance(node, Error):
            result.push(ErrorElement(node.message))
        else:
            raise TypeError(f"Unknown content node: {type(node).__name__}")

    def _link_element(self, node: Link) -> Element:
        state = self._state
        action = node.action
        if isinstance(action, NormalAction):
            return LinkElement(action.title.eval_text(state), action.destination.eval_text(state))
        if isinstance(action, ContentAction):
            return ContentLinkElement(action.title.eval_text(state), action.action)
        if isinstance(action, JumpAction):
            return JumpLinkElement(
                action.title.eval_text(state),
                action.destination.eval_text(state),
                action.action,
            )
        if isinstance(action, InputAction):
            return InputElement(action.variable, action.action)
        raise TypeError(f"Unknown link action: {type(action).__name__}")

    def _eval_conditional(self, node: Conditional, result: EvalResult) -> None:
        for branch in node.branches:
            if branch.condition.eval(self._state).is_true():
                result.combine(self.evaluate(branch.body))
                return
        if node.else_body is not None:
            result.combine(self.evaluate(node.else_body))

    def _eval_for(self, node: For, result: EvalResult) -> None:
        iterable = node.expression.eval(self._state)
        for key, value in iterable.iter():
            self._step()
            if node.index is not None:
                self._state.write_local(node.index, key)
            self._state.write_local(node.variable, value)
            result.combine(self.evaluate(node.body))
            if result.is_goto:
                break

    def _eval_while(self, node: While, result: EvalResult) -> None:
        while node.expression.eval(self._state).is_true():
            self._step()
            result.combine(self.evaluate(node.body))
            if result.is_goto:
                break

    def _step(self) -> None:
        self._steps += 1
        if self._step_budget is not None and self._steps > self._step_budget:
            raise StepBudgetExceeded(self._step_budget)
