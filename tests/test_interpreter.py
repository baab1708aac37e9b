import pytest

from lift.core.value import Value
from lift.data.story_loader import build_story
from lift.domain.elements import ContentLinkElement, ErrorElement, LinkElement, TextElement
from lift.services.errors import StepBudgetExceeded
from lift.services.interpreter import Interpreter

SOURCE = "# Start\nHello {name}!\n[[Go|Next]]\n# Next\nBye.\n"


def _make_interpreter(source: str, **kwargs) -> Interpreter:
    interpreter = Interpreter(build_story(source), **kwargs)
    interpreter.play()
    return interpreter


def test_play_renders_entry_page() -> None:
    interpreter = _make_interpreter(SOURCE)

    assert interpreter.current_page == "Start"
    assert interpreter.output() == (TextElement("Hello !"), LinkElement("Go", "Next"))


def test_send_link_moves_to_destination() -> None:
    interpreter = _make_interpreter(SOURCE)

    interpreter.send(1)

    assert interpreter.current_page == "Next"
    assert interpreter.output() == (TextElement("Bye."),)


def test_play_is_idempotent() -> None:
    interpreter = _make_interpreter("# Start\n@set n = 1\nValue {n}\n")
    first = interpreter.output()

    interpreter.play()

    assert interpreter.output() == first


def test_redirect_chain_shows_only_final_page() -> None:
    interpreter = _make_interpreter("# A\nhidden a\n@goto B\n# B\nhidden b\n@goto C\n# C\nfinal\n")

    assert interpreter.current_page == "C"
    assert interpreter.output() == (TextElement("final"),)


def test_missing_page_renders_error() -> None:
    interpreter = _make_interpreter("# A\n@goto Missing\n")

    assert interpreter.current_page == "Missing"
    assert interpreter.output() == (ErrorElement("Invalid page: 'Missing'"),)


def test_empty_story_renders_error() -> None:
    interpreter = _make_interpreter("")

    assert interpreter.output() == (ErrorElement("Invalid page: ''"),)


def test_content_link_expands_in_place() -> None:
    interpreter = _make_interpreter("# Room\nBefore\n@link Look\nYou see a key.\nA door.\n@end\nAfter\n")
    assert isinstance(interpreter.output()[1], ContentLinkElement)

    interpreter.send(1)

    assert interpreter.current_page == "Room"
    assert interpreter.output() == (
        TextElement("Before"),
        TextElement("You see a key."),
        TextElement("A door."),
        TextElement("After"),
    )


def test_content_link_with_goto_prepends_its_output() -> None:
    interpreter = _make_interpreter("# Room\nIntro\n@link Leave\nYou leave.\n@goto Hall\n@end\n# Hall\nHall text\n")

    interpreter.send(1)

    assert interpreter.current_page == "Hall"
    assert interpreter.output() == (TextElement("You leave."), TextElement("Hall text"))


def test_jump_link_always_moves_to_its_destination() -> None:
    source = "# Room\n@jump Run -> Hall\n@global ran = true\nYou run.\n@goto Cellar\n@end\n# Hall\nRan: {ran}\n# Cellar\nDark.\n"
    interpreter = _make_interpreter(source)

    interpreter.send(0)

    assert interpreter.current_page == "Hall"
    assert interpreter.output() == (TextElement("You run."), TextElement("Ran: true"))


def test_input_stores_value_before_running_block() -> None:
    interpreter = _make_interpreter("# Ask\nWho are you?\n@input name\nNice to meet you, {name}.\n@end\n")

    interpreter.send(1, "Ada")

    assert interpreter.state.read("Ask", "name") == Value.string("Ada")
    assert interpreter.output() == (TextElement("Who are you?"), TextElement("Nice to meet you, Ada."))


def test_send_ignores_bad_indices() -> None:
    interpreter = _make_interpreter(SOURCE)
    before = interpreter.output()

    interpreter.send(0)
    interpreter.send(7)
    interpreter.send(-1)

    assert interpreter.output() == before
    assert interpreter.current_page == "Start"


def test_local_variables_stay_on_their_page() -> None:
    interpreter = _make_interpreter("# A\n@set secret = 1\n[[Go|B]]\n# B\nSecret: {secret}\n")

    interpreter.send(0)

    assert interpreter.output() == (TextElement("Secret: "),)


def test_sessions_sharing_a_story_are_independent() -> None:
    story = build_story(SOURCE)
    first = Interpreter(story)
    second = Interpreter(story)
    first.play()
    second.play()

    first.send(1)

    assert first.current_page == "Next"
    assert second.current_page == "Start"


def test_step_budget_applies_to_play() -> None:
    interpreter = Interpreter(build_story("# Loop\n@while true\nx\n@end\n"), step_budget=50)

    with pytest.raises(StepBudgetExceeded):
        interpreter.play()


def test_reset_returns_to_entry_page_with_fresh_state() -> None:
    interpreter = _make_interpreter("# Start\n@global visits = 1\n[[On|End]]\n# End\nDone.\n")
    interpreter.send(0)

    interpreter.reset()

    assert interpreter.current_page == "Start"
    assert interpreter.output() == (LinkElement("On", "End"),)
    assert interpreter.state.local_vars == {}
