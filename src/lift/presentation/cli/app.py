"""Console-driven play loop for Lift stories."""
from __future__ import annotations

import argparse
import logging
from typing import List, Literal, Sequence

from lift.data.errors import StoryError
from lift.data.story_loader import load_story
from lift.domain.elements import InputElement
from lift.domain.story import Story
from lift.presentation.cli import config
from lift.presentation.cli.render import debug_enabled, render_bullet_lines, render_elements, render_heading
from lift.presentation.cli.save_slots import SaveSlotStore
from lift.services.errors import SnapshotError, StepBudgetExceeded
from lift.services.interpreter import Interpreter
from lift.services.story_validator import format_issue, validate_story

CommandResult = Literal["continue", "quit"]

_HELP_LINES = (
    "<number>  choose a numbered option",
    "save N    save to slot N",
    "load N    load slot N",
    "slots     list save slots",
    "restart   start the story over",
    "quit      leave the game",
)


def main(argv: Sequence[str] | None = None) -> int:
    """Start the interactive CLI session."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if debug_enabled() else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        story = load_story(args.story)
    except StoryError as exc:
        print(f"Could not load story: {exc}")
        return 1
    _report_issues(story)

    if args.step_budget is not None:
        config.save_config({"step_budget": args.step_budget})
    step_budget = config.load_config().get("step_budget")
    store = SaveSlotStore(args.save_dir, slot_count=args.slots)
    interpreter = Interpreter(story, step_budget=step_budget)
    _safe_render(interpreter, interpreter.play)
    run_story_loop(interpreter, store)
    print("Goodbye!")
    return 0


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="lift", description="Play a Lift story in the terminal.")
    parser.add_argument("story", help="Path to the story source file.")
    parser.add_argument("--slots", type=int, default=3, help="Number of save slots.")
    parser.add_argument("--save-dir", default=None, help="Directory for save slots.")
    parser.add_argument(
        "--step-budget",
        type=int,
        default=None,
        help="Abort any single render that takes more than this many steps (remembered).",
    )
    return parser.parse_args(argv)


def _report_issues(story: Story) -> None:
    issues = validate_story(story)
    shown = [issue for issue in issues if issue.severity == "ERROR" or debug_enabled()]
    if shown:
        render_heading("Story Issues")
        render_bullet_lines(format_issue(issue) for issue in shown)


def run_story_loop(interpreter: Interpreter, store: SaveSlotStore) -> None:
    """Render, read a command, dispatch it; repeat until the player quits."""
    while True:
        print()
        choices = render_elements(interpreter.output())
        if not choices:
            print("(The End. Type 'restart', 'load N' or 'quit'.)")
        raw = input("> ").strip()
        if not raw:
            continue
        if handle_command(raw, interpreter, store, choices) == "quit":
            return


def handle_command(
    raw: str, interpreter: Interpreter, store: SaveSlotStore, choices: List[int]
) -> CommandResult:
    """Apply one line of player input to the session."""
    command, _, argument = raw.partition(" ")
    command = command.lower()
    if command in ("quit", "q", "exit"):
        return "quit"
    if command in ("help", "?"):
        render_bullet_lines(_HELP_LINES)
    elif command == "restart":
        _safe_render(interpreter, interpreter.reset)
    elif command == "slots":
        _print_slots(store)
    elif command in ("save", "load"):
        slot = _parse_slot(argument, store)
        if slot is not None:
            if command == "save":
                _save(interpreter, store, slot)
            else:
                _load(interpreter, store, slot)
    elif command.isdigit():
        _choose(interpreter, choices, int(command))
    else:
        print("Unknown command. Type 'help' for a list of commands.")
    return "continue"


def _choose(interpreter: Interpreter, choices: List[int], number: int) -> None:
    if not 1 <= number <= len(choices):
        print(f"Please enter a value between 1 and {len(choices)}." if choices else "Nothing to choose.")
        return
    index = choices[number - 1]
    element = interpreter.output()[index]
    value = None
    if isinstance(element, InputElement):
        value = input(f"{element.variable}: ")
    _safe_render(interpreter, lambda: interpreter.send(index, value))


def _safe_render(interpreter: Interpreter, action) -> None:
    """Run a render, rolling back if it exceeds the step budget or recurses too deeply."""
    checkpoint = interpreter.snapshot()
    try:
        action()
    except (StepBudgetExceeded, RecursionError) as exc:
        print(f"The story got stuck: {exc}")
        if checkpoint is not None:
            interpreter.restore(checkpoint)


def _parse_slot(argument: str, store: SaveSlotStore) -> int | None:
    try:
        slot = int(argument)
    except ValueError:
        print(f"Please give a slot number between 1 and {store.slot_count}.")
        return None
    if not 1 <= slot <= store.slot_count:
        print(f"Please give a slot number between 1 and {store.slot_count}.")
        return None
    return slot


def _save(interpreter: Interpreter, store: SaveSlotStore, slot: int) -> None:
    snapshot = interpreter.snapshot()
    if snapshot is None:
        print("The game could not be saved.")
        return
    store.write_slot(slot, snapshot)
    print(f"Saved to slot {slot}.")


def _load(interpreter: Interpreter, store: SaveSlotStore, slot: int) -> None:
    if not store.slot_exists(slot):
        print(f"Slot {slot} is empty.")
        return
    try:
        interpreter.restore(store.read_slot(slot))
    except (OSError, SnapshotError) as exc:
        print(f"Slot {slot} could not be loaded: {exc}")
        return
    print(f"Loaded slot {slot}.")


def _print_slots(store: SaveSlotStore) -> None:
    render_heading("Save Slots")
    for slot in store.list_slots():
        if not slot.exists:
            label = "empty"
        elif slot.is_corrupt or slot.metadata is None:
            label = "corrupt"
        else:
            label = f"page '{slot.metadata['current_page']}'"
        print(f"{slot.slot}. {label}")
