"""Interactive story session: full renders and in-place continuations."""
from __future__ import annotations

import logging
from typing import Sequence

from lift.core.value import Value
from lift.domain.elements import (
    ContentLinkElement,
    Element,
    ErrorElement,
    InputElement,
    JumpLinkElement,
    LinkElement,
)
from lift.domain.defs import PageAction
from lift.domain.state import SessionState
from lift.domain.story import Story
from lift.services.evaluator import ContentEvaluator, EvalResult, GotoAction
from lift.services.snapshot_service import SnapshotService

logger = logging.getLogger(__name__)


class Interpreter:
    """Drives one player's session over a shared, read-only Story."""

    def __init__(
        self,
        story: Story,
        *,
        step_budget: int | None = None,
        snapshot_service: SnapshotService | None = None,
    ) -> None:
        self._story = story
        self._state = SessionState(current_page=story.first_page)
        self._step_budget = step_budget
        self._snapshot_service = snapshot_service or SnapshotService()

    @property
    def story(self) -> Story:
        return self._story

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_page(self) -> str:
        return self._state.current_page

    def output(self) -> Sequence[Element]:
        """Read-only view of the last rendered output."""
        return tuple(self._state.output)

    def reset(self) -> None:
        """Discard all progress and render the entry page again."""
        self._state = SessionState(current_page=self._story.first_page)
        self.play()

    def goto(self, page: str) -> None:
        """Move to ``page`` and render it from scratch."""
        self._state.current_page = page
        self.play()

    def play(self) -> None:
        """Render the current page, following redirects until a page halts."""
        state = self._state
        state.output.clear()
        evaluator = self._evaluator()
        while True:
            page = self._story.get_page(state.current_page)
            if page is None:
                logger.debug("Cannot render missing page %r", state.current_page)
                state.output.append(ErrorElement(f"Invalid page: '{state.current_page}'"))
                return
            result = evaluator.evaluate(page.content)
            state.output.extend(result.output)
            if not isinstance(result.action, GotoAction):
                return
            logger.debug("Redirecting from %r to %r", state.current_page, result.action.page)
            state.output.clear()
            state.current_page = result.action.page

    def send(self, index: int, value: object = None) -> None:
        """Act on the interactive element at ``index`` of the current output.

        ``value`` is only used by input elements. Indices that are out of range
        or point at non-interactive elements are ignored.
        """
        if not 0 <= index < len(self._state.output):
            logger.debug("Ignoring send to out-of-range index %d", index)
            return
        element = self._state.output[index]
        if isinstance(element, LinkElement):
            self.goto(element.destination)
        elif isinstance(element, ContentLinkElement):
            result = self._eval_action(element.action)
            if result is not None:
                self._process_result(result, index)
        elif isinstance(element, JumpLinkElement):
            result = self._eval_action(element.action)
            if result is not None:
                result.action = GotoAction(element.destination)
                self._process_result(result, index)
        elif isinstance(element, InputElement):
            content = self._story.get_action(element.action)
            if content is not None:
                self._state.write_local(element.variable, Value.coerce(value))
                result = self._evaluator().evaluate(content)
                self._process_result(result, index)
        else:
            logger.debug("Ignoring send to non-interactive element at index %d", index)

    def snapshot(self) -> str | None:
        """Serialize the full session state, or None if it cannot be encoded."""
        return self._snapshot_service.dumps(self._state)

    def restore(self, data: str) -> None:
        """Replace the session state; raises SnapshotError and keeps the old state on failure."""
        self._state = self._snapshot_service.loads(data)

    def _eval_action(self, action: PageAction) -> EvalResult | None:
        content = self._story.get_action(action)
        if content is None:
            logger.debug("Ignoring stale action reference %s", action)
            return None
        return self._evaluator().evaluate(content)

    def _process_result(self, result: EvalResult, index: int) -> None:
        if isinstance(result.action, GotoAction):
            self.goto(result.action.page)
            self._state.output[0:0] = result.output
        else:
            self._state.output[index : index + 1] = result.output

    def _evaluator(self) -> ContentEvaluator:
        return ContentEvaluator(self._story, self._state, step_budget=self._step_budget)
