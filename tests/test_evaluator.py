import pytest

from lift.core.value import Value
from lift.data.story_loader import build_story
from lift.domain.defs import PageAction
from lift.domain.elements import (
    ContentLinkElement,
    ErrorElement,
    InputElement,
    JumpLinkElement,
    LinkElement,
    TextElement,
)
from lift.domain.state import SessionState
from lift.services.errors import StepBudgetExceeded
from lift.services.evaluator import HALT, ContentEvaluator, GotoAction


def _make_evaluator(source: str, page: str = "Start", step_budget: int | None = None):
    story = build_story(source)
    state = SessionState(current_page=page)
    return ContentEvaluator(story, state, step_budget=step_budget), story, state


def _evaluate(source: str, page: str = "Start", step_budget: int | None = None):
    evaluator, story, state = _make_evaluator(source, page, step_budget)
    return evaluator.evaluate(story.get_page(page).content), state


def _texts(result) -> list:
    return [element.text for element in result.output]


def test_text_interpolates_variables() -> None:
    result, _ = _evaluate("# Start\n@set n = 2\nYou have {n} coins.\n")

    assert result.output == [TextElement("You have 2 coins.")]
    assert result.action == HALT


def test_set_writes_local_and_global_scopes() -> None:
    _, state = _evaluate("# Start\n@set hp = 3\n@global score = 10\n")

    assert state.local_vars["Start"]["hp"] == Value.number(3)
    assert state.global_vars["score"] == Value.number(10)


def test_goto_stops_remaining_siblings() -> None:
    result, _ = _evaluate("# Start\nBefore\n@goto Other\nAfter\n# Other\nX\n")

    assert _texts(result) == ["Before"]
    assert result.action == GotoAction("Other")


def test_import_merges_output_in_place() -> None:
    result, _ = _evaluate("# Start\nA\n@import Shared\nB\n# Shared\nS\n")

    assert _texts(result) == ["A", "S", "B"]
    assert result.action == HALT


def test_import_of_missing_page_is_ignored() -> None:
    result, _ = _evaluate("# Start\n@import Nowhere\nStill here\n")

    assert _texts(result) == ["Still here"]


def test_goto_inside_imported_page_propagates() -> None:
    result, _ = _evaluate("# Start\n@import Hub\nAfter\n# Hub\nH\n@goto End\n# End\n")

    assert _texts(result) == ["H"]
    assert result.action == GotoAction("End")


def test_imported_content_writes_into_current_page_scope() -> None:
    _, state = _evaluate("# Start\n@import Lib\n# Lib\n@set flag = true\n")

    assert state.read("Start", "flag") == Value.boolean(True)
    assert state.read("Lib", "flag") is None


@pytest.mark.parametrize(
    "x, expected",
    [(1, "one"), (2, "two"), (3, "big"), (0, "other")],
)
def test_conditional_picks_first_true_branch(x, expected) -> None:
    source = (
        f"# Start\n@set x = {x}\n@if x == 1\none\n@elif x == 2\ntwo\n"
        "@elif x > 1\nbig\n@else\nother\n@end\n"
    )

    result, _ = _evaluate(source)

    assert _texts(result) == [expected]


def test_conditional_without_match_or_else_emits_nothing() -> None:
    result, _ = _evaluate("# Start\n@if false\nhidden\n@end\n")

    assert result.output == []


def test_for_binds_index_and_value() -> None:
    result, state = _evaluate('# Start\n@for i, v in ["a", "b"]\n{i}:{v}\n@end\n')

    assert _texts(result) == ["0:a", "1:b"]
    assert state.read("Start", "v") == Value.string("b")


def test_for_over_map_uses_insertion_order() -> None:
    result, _ = _evaluate('# Start\n@for k, v in {"z": 1, "a": 2}\n{k}={v}\n@end\n')

    assert _texts(result) == ["z=1", "a=2"]


def test_for_stops_on_goto() -> None:
    source = "# Start\n@for v in [1, 2, 3]\n{v}\n@if v == 2\n@goto Done\n@end\n@end\nafter\n# Done\n"

    result, _ = _evaluate(source)

    assert _texts(result) == ["1", "2"]
    assert result.action == GotoAction("Done")


def test_while_runs_until_condition_fails() -> None:
    result, _ = _evaluate("# Start\n@set n = 0\n@while n < 3\n@set n = n + 1\nTick {n}\n@end\n")

    assert _texts(result) == ["Tick 1", "Tick 2", "Tick 3"]


def test_long_loops_are_not_capped_without_budget() -> None:
    evaluator, story, state = _make_evaluator("# Start\n@set n = 0\n@while n < 5000\n@set n = n + 1\n@end\n")

    evaluator.evaluate(story.get_page("Start").content)

    assert state.get("n") == Value.number(5000)
    assert evaluator.steps > 5000


def test_step_budget_stops_runaway_loop() -> None:
    with pytest.raises(StepBudgetExceeded) as excinfo:
        _evaluate("# Start\n@while true\nagain\n@end\n", step_budget=100)

    assert excinfo.value.budget == 100


def test_error_nodes_render_and_evaluation_continues() -> None:
    result, _ = _evaluate("# Start\n@dance\nStill here\n")

    assert result.output == [ErrorElement("Unknown command '@dance'"), TextElement("Still here")]


def test_runtime_expression_error_renders_error_element() -> None:
    result, state = _evaluate('# Start\n@set x = 1 - "a"\nNext\n')

    assert isinstance(result.output[0], ErrorElement)
    assert result.output[1] == TextElement("Next")
    assert state.get("x") is None


def test_links_render_as_elements() -> None:
    source = "# Start\n[[Go|Next]]\n@link Look\nYou look.\n@end\n@jump Run -> Away\n@end\n@input name\n@end\n"

    result, _ = _evaluate(source)

    assert result.output == [
        LinkElement("Go", "Next"),
        ContentLinkElement("Look", PageAction("Start", 0)),
        JumpLinkElement("Run", "Away", PageAction("Start", 1)),
        InputElement("name", PageAction("Start", 2)),
    ]


INFINITE = "1" + "0" * 400 + ".0"


def test_int_of_infinite_number_renders_error() -> None:
    result, _ = _evaluate(f"# Start\nValue {{int({INFINITE})}}\nafter\n")

    assert isinstance(result.output[0], ErrorElement)
    assert result.output[1] == TextElement("after")


def test_for_over_infinite_number_iterates_nothing() -> None:
    result, _ = _evaluate(f"# Start\n@for i in {INFINITE}\nloop\n@end\nDone\n")

    assert _texts(result) == ["Done"]


def test_huge_integers_degrade_to_error_elements() -> None:
    source = "# Start\n@set x = 10\n@for i in 15\n@set x = x * x\n@end\n@set y = x / 3\n{x}\nafter\n"

    result, state = _evaluate(source)

    assert isinstance(result.output[0], ErrorElement)
    assert result.output[-1] == TextElement("after")
    assert state.get("y") is None
