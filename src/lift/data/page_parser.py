"""Parser that turns a page body into content nodes and action blocks.

Page bodies are line oriented. Plain lines are text (with ``{expr}``
interpolation and inline ``[[title|destination]]`` links); lines starting with
``@`` are commands::

    @set name[index] = expression      page-local assignment
    @global name = expression          global assignment
    @goto Page title                   redirect (templated)
    @import Page title                 inline another page (templated)
    @if cond / @elif cond / @else / @end
    @for value in expr / @for key, value in expr / @end
    @while cond / @end
    @link Title / @end                 expands in place when chosen
    @jump Title -> Destination / @end  runs the block, then moves on
    @input variable / @end             stores the player's answer first

Blank lines and ``//`` comments are skipped; ``\\@`` escapes a leading ``@``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List

from lift.data.errors import ContentError, ExpressionSyntaxError
from lift.data.expression import Expression, parse_assignment, parse_expression, parse_template
from lift.domain.defs import (
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

_COMMAND_RE = re.compile(r"^@(?P<name>\w+)\s*(?P<arg>.*)$")
_FOR_RE = re.compile(
    r"^(?:(?P<index>[A-Za-z_]\w*)\s*,\s*)?(?P<value>[A-Za-z_]\w*)\s+in\s+(?P<expr>\S.*)$"
)
_NAME_RE = re.compile(r"^[A-Za-z_]\w*$")
_LINK_RE = re.compile(r"\[\[(?P<inner>.+?)\]\]")
_BLOCK_COMMANDS = {"if", "for", "while", "link", "jump", "input"}


@dataclass
class _Frame:
    kind: str
    offset: int
    items: List[Content] = field(default_factory=list)
    condition: Expression | None = None
    branches: List[Branch] = field(default_factory=list)
    in_else: bool = False
    node: object = None


def parse_page(title: str, body: str) -> Page:
    """Parse one page body; raises ContentError with the failing offset."""
    return _PageParser(title).parse(body)


class _PageParser:
    def __init__(self, title: str) -> None:
        self._title = title
        self._actions: List[ContentSeq | None] = []
        self._stack: List[_Frame] = [_Frame(kind="root", offset=0)]

    def parse(self, body: str) -> Page:
        offset = 0
        for raw_line in body.split("\n"):
            line_offset = offset
            offset += len(raw_line) + 1
            stripped = raw_line.strip()
            if not stripped or stripped.startswith("//"):
                continue
            start = line_offset + len(raw_line) - len(raw_line.lstrip())
            if stripped.startswith("@"):
                self._parse_command(stripped, start)
            elif stripped.startswith("\\@"):
                self._parse_text(stripped[1:], start + 1)
            else:
                self._parse_text(stripped, start)
        if len(self._stack) > 1:
            frame = self._stack[-1]
            raise ContentError(f"Missing @end for @{frame.kind}.", frame.offset)
        actions = tuple(action or () for action in self._actions)
        return Page(title=self._title, content=tuple(self._stack[0].items), actions=actions)

    @property
    def _top(self) -> _Frame:
        return self._stack[-1]

    def _emit(self, node: Content) -> None:
        self._top.items.append(node)

    def _parse_text(self, line: str, offset: int) -> None:
        nodes: List[Content] = []
        position = 0
        try:
            for match in _LINK_RE.finditer(line):
                self._append_text(nodes, line[position : match.start()], offset + position)
                nodes.append(self._inline_link(match, offset))
                position = match.end()
            self._append_text(nodes, line[position:], offset + position)
        except ExpressionSyntaxError as exc:
            self._emit(Error(f"Invalid text: {exc.message}"))
            return
        for node in nodes:
            self._emit(node)

    @staticmethod
    def _append_text(nodes: List[Content], text: str, offset: int) -> None:
        if text.strip():
            nodes.append(Text(parse_template(text, offset)))

    @staticmethod
    def _inline_link(match: re.Match, offset: int) -> Link:
        inner = match.group("inner")
        inner_offset = offset + match.start("inner")
        title, separator, destination = inner.rpartition("|")
        if not separator:
            title = destination = inner
        dest_offset = inner_offset + len(title) + len(separator)
        return Link(
            NormalAction(
                title=parse_template(title.strip(), inner_offset),
                destination=parse_template(destination.strip(), dest_offset),
            )
        )

    def _parse_command(self, line: str, offset: int) -> None:
        match = _COMMAND_RE.match(line)
        if match is None:
            self._emit(Error(f"Invalid command '{line}'"))
            return
        name = match.group("name")
        arg = match.group("arg").strip()
        arg_offset = offset + match.start("arg")
        try:
            self._dispatch(name, arg, arg_offset, offset)
        except ExpressionSyntaxError as exc:
            raise ContentError(f"@{name}: {exc.message}", exc.offset) from exc

    def _dispatch(self, name: str, arg: str, arg_offset: int, offset: int) -> None:
        if name in ("set", "global"):
            variable, indices, expression = parse_assignment(arg, arg_offset)
            self._emit(Set(local=name == "set", variable=variable, indices=indices, expression=expression))
        elif name == "goto":
            self._emit(Goto(parse_template(self._require_arg(name, arg, offset), arg_offset)))
        elif name == "import":
            self._emit(Import(parse_template(self._require_arg(name, arg, offset), arg_offset)))
        elif name in _BLOCK_COMMANDS:
            self._open_block(name, arg, arg_offset, offset)
        elif name == "elif":
            frame = self._require_open_if(name, offset)
            frame.branches.append(Branch(frame.condition, tuple(frame.items)))
            frame.condition = parse_expression(self._require_arg(name, arg, offset), arg_offset)
            frame.items = []
        elif name == "else":
            frame = self._require_open_if(name, offset)
            if arg:
                raise ContentError("@else takes no argument.", arg_offset)
            frame.branches.append(Branch(frame.condition, tuple(frame.items)))
            frame.in_else = True
            frame.items = []
        elif name == "end":
            if arg:
                raise ContentError("@end takes no argument.", arg_offset)
            self._close_block(offset)
        else:
            self._emit(Error(f"Unknown command '@{name}'"))

    def _open_block(self, name: str, arg: str, arg_offset: int, offset: int) -> None:
        frame = _Frame(kind=name, offset=offset)
        if name in ("if", "while"):
            frame.condition = parse_expression(self._require_arg(name, arg, offset), arg_offset)
        elif name == "for":
            match = _FOR_RE.match(arg)
            if match is None:
                raise ContentError("@for expects 'value in expression'.", offset)
            frame.node = (match.group("index"), match.group("value"))
            frame.condition = parse_expression(match.group("expr"), arg_offset + match.start("expr"))
        elif name == "link":
            title = parse_template(self._require_arg(name, arg, offset), arg_offset)
            frame.node = ContentAction(title=title, action=self._reserve_action())
        elif name == "jump":
            title, separator, destination = arg.rpartition("->")
            if not separator or not title.strip() or not destination.strip():
                raise ContentError("@jump expects 'title -> destination'.", offset)
            frame.node = JumpAction(
                title=parse_template(title.strip(), arg_offset),
                destination=parse_template(destination.strip(), arg_offset + len(title) + 2),
                action=self._reserve_action(),
            )
        else:
            if not _NAME_RE.match(arg):
                raise ContentError("@input expects a variable name.", arg_offset)
            frame.node = InputAction(variable=arg, action=self._reserve_action())
        self._stack.append(frame)

    def _close_block(self, offset: int) -> None:
        if len(self._stack) == 1:
            raise ContentError("@end without an open block.", offset)
        frame = self._stack.pop()
        body = tuple(frame.items)
        if frame.kind == "if":
            if frame.in_else:
                node: Content = Conditional(tuple(frame.branches), else_body=body)
            else:
                branches = frame.branches + [Branch(frame.condition, body)]
                node = Conditional(tuple(branches))
        elif frame.kind == "for":
            index, variable = frame.node
            node = For(index=index, variable=variable, expression=frame.condition, body=body)
        elif frame.kind == "while":
            node = While(expression=frame.condition, body=body)
        else:
            self._actions[frame.node.action.index] = body
            node = Link(frame.node)
        self._emit(node)

    def _reserve_action(self) -> PageAction:
        self._actions.append(None)
        return PageAction(page=self._title, index=len(self._actions) - 1)

    def _require_open_if(self, name: str, offset: int) -> _Frame:
        frame = self._top
        if frame.kind != "if":
            raise ContentError(f"@{name} without a matching @if.", offset)
        if frame.in_else:
            raise ContentError(f"@{name} after @else.", offset)
        return frame

    @staticmethod
    def _require_arg(name: str, arg: str, offset: int) -> str:
        if not arg:
            raise ContentError(f"@{name} requires an argument.", offset)
        return arg
