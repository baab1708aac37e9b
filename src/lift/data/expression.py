"""Expression language and text templates evaluated against story state."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, NoReturn, Protocol, Tuple

from lift.core.value import Value, ValueKind
from lift.data.errors import ExpressionError, ExpressionSyntaxError

_KEYWORDS = {"and", "or", "not", "true", "false", "none"}
_TWO_CHAR_OPS = {"==", "!=", "<=", ">="}
_ONE_CHAR_OPS = set("+-*/%<>()[]{},:=")
_COMPARISON_OPS = {"==", "!=", "<", "<=", ">", ">="}
_BUILTINS = {"len", "str", "int"}
_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "'": "'", "\\": "\\"}


class StateReader(Protocol):
    """Anything expressions can resolve variable names through."""

    def get(self, variable: str) -> Value | None:
        ...


@dataclass(frozen=True, slots=True)
class Token:
    kind: str
    text: str
    offset: int


def tokenize(source: str) -> List[Token]:
    """Split expression source into tokens, ending with an ``end`` token."""
    tokens: List[Token] = []
    index = 0
    length = len(source)
    while index < length:
        char = source[index]
        if char.isspace():
            index += 1
            continue
        start = index
        if char.isdigit():
            while index < length and source[index].isdigit():
                index += 1
            if index + 1 < length and source[index] == "." and source[index + 1].isdigit():
                index += 1
                while index < length and source[index].isdigit():
                    index += 1
            tokens.append(Token("number", source[start:index], start))
            continue
        if char.isalpha() or char == "_":
            while index < length and (source[index].isalnum() or source[index] == "_"):
                index += 1
            word = source[start:index]
            tokens.append(Token("keyword" if word in _KEYWORDS else "name", word, start))
            continue
        if char in "\"'":
            text, index = _read_string(source, index)
            tokens.append(Token("string", text, start))
            continue
        pair = source[index : index + 2]
        if pair in _TWO_CHAR_OPS:
            tokens.append(Token("op", pair, start))
            index += 2
            continue
        if char in _ONE_CHAR_OPS:
            tokens.append(Token("op", char, start))
            index += 1
            continue
        raise ExpressionSyntaxError(f"Unexpected character '{char}'.", start)
    tokens.append(Token("end", "", length))
    return tokens


def _read_string(source: str, start: int) -> tuple[str, int]:
    quote = source[start]
    index = start + 1
    chunks: List[str] = []
    while index < len(source):
        char = source[index]
        if char == "\\" and index + 1 < len(source):
            chunks.append(_ESCAPES.get(source[index + 1], source[index + 1]))
            index += 2
            continue
        if char == quote:
            return "".join(chunks), index + 1
        chunks.append(char)
        index += 1
    raise ExpressionSyntaxError("Unterminated string literal.", start)


class Expression:
    """Base class for expression nodes."""

    def eval(self, reader: StateReader) -> Value:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class Literal(Expression):
    value: Value

    def eval(self, reader: StateReader) -> Value:
        return self.value.copy()


@dataclass(frozen=True, slots=True)
class ListExpr(Expression):
    items: Tuple[Expression, ...]

    def eval(self, reader: StateReader) -> Value:
        return Value.list_of([item.eval(reader) for item in self.items])


@dataclass(frozen=True, slots=True)
class MapExpr(Expression):
    entries: Tuple[Tuple[Expression, Expression], ...]

    def eval(self, reader: StateReader) -> Value:
        result: dict[str, Value] = {}
        for key_expr, value_expr in self.entries:
            key = key_expr.eval(reader)
            if key.kind is not ValueKind.STRING:
                raise ExpressionError(f"Map keys must be strings, got {key.kind.value}.")
            result[key.data] = value_expr.eval(reader)
        return Value.map_of(result)


@dataclass(frozen=True, slots=True)
class Variable(Expression):
    name: str

    def eval(self, reader: StateReader) -> Value:
        value = reader.get(self.name)
        if value is None:
            return Value.none()
        return value


@dataclass(frozen=True, slots=True)
class Defined(Expression):
    """True when the variable resolves in any visible scope, even to none."""

    name: str

    def eval(self, reader: StateReader) -> Value:
        return Value.boolean(reader.get(self.name) is not None)


@dataclass(frozen=True, slots=True)
class Index(Expression):
    target: Expression
    index: Expression

    def eval(self, reader: StateReader) -> Value:
        target = self.target.eval(reader)
        index = self.index.eval(reader)
        if target.kind is ValueKind.STRING:
            for position, char in target.iter():
                if position == index:
                    return char
            return Value.none()
        if target.kind not in (ValueKind.LIST, ValueKind.MAP):
            raise ExpressionError(f"Cannot index into a {target.kind.value}.")
        found = target.child(index)
        return Value.none() if found is None else found


@dataclass(frozen=True, slots=True)
class Unary(Expression):
    op: str
    operand: Expression

    def eval(self, reader: StateReader) -> Value:
        value = self.operand.eval(reader)
        if self.op == "not":
            return Value.boolean(not value.is_true())
        if value.kind is not ValueKind.NUMBER:
            raise ExpressionError(f"Cannot negate a {value.kind.value}.")
        return Value.number(-value.data)


@dataclass(frozen=True, slots=True)
class Logical(Expression):
    op: str
    left: Expression
    right: Expression

    def eval(self, reader: StateReader) -> Value:
        left = self.left.eval(reader).is_true()
        if self.op == "and" and not left:
            return Value.boolean(False)
        if self.op == "or" and left:
            return Value.boolean(True)
        return Value.boolean(self.right.eval(reader).is_true())


@dataclass(frozen=True, slots=True)
class Binary(Expression):
    op: str
    left: Expression
    right: Expression

    def eval(self, reader: StateReader) -> Value:
        return apply_binary(self.op, self.left.eval(reader), self.right.eval(reader))


@dataclass(frozen=True, slots=True)
class Call(Expression):
    name: str
    args: Tuple[Expression, ...]

    def eval(self, reader: StateReader) -> Value:
        args = [arg.eval(reader) for arg in self.args]
        if len(args) != 1:
            raise ExpressionError(f"{self.name}() takes exactly one argument.")
        arg = args[0]
        if self.name == "len":
            if arg.kind not in (ValueKind.STRING, ValueKind.LIST, ValueKind.MAP):
                raise ExpressionError(f"len() is not defined for a {arg.kind.value}.")
            return Value.number(len(arg.data))
        if self.name == "str":
            return Value.string(arg.to_text())
        if arg.kind is ValueKind.NUMBER:
            if isinstance(arg.data, float) and not math.isfinite(arg.data):
                raise ExpressionError(f"Cannot convert {arg.to_text()} to an integer.")
            return Value.number(int(arg.data))
        if arg.kind is ValueKind.BOOL:
            return Value.number(int(arg.data))
        if arg.kind is ValueKind.STRING:
            try:
                return Value.number(int(arg.data.strip()))
            except ValueError as exc:
                raise ExpressionError(f"Cannot convert '{arg.data}' to a number.") from exc
        raise ExpressionError(f"int() is not defined for a {arg.kind.value}.")


def apply_binary(op: str, left: Value, right: Value) -> Value:
    """Evaluate an arithmetic or comparison operator."""
    if op == "==":
        return Value.boolean(left == right)
    if op == "!=":
        return Value.boolean(left != right)
    if op in _COMPARISON_OPS:
        return Value.boolean(_compare(op, left, right))
    if op == "+":
        if left.kind is ValueKind.STRING or right.kind is ValueKind.STRING:
            return Value.string(left.to_text() + right.to_text())
        if left.kind is ValueKind.LIST and right.kind is ValueKind.LIST:
            return Value.list_of([item.copy() for item in left.data + right.data])
    if left.kind is not ValueKind.NUMBER or right.kind is not ValueKind.NUMBER:
        raise ExpressionError(
            f"Unsupported operands for '{op}': {left.kind.value} and {right.kind.value}."
        )
    try:
        return Value.number(_arithmetic(op, left.data, right.data))
    except OverflowError as exc:
        raise ExpressionError(f"Result of '{op}' is too large.") from exc


def _arithmetic(op: str, a, b):
    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if b == 0:
        raise ExpressionError("Division by zero.")
    if op == "%":
        return a % b
    if isinstance(a, int) and isinstance(b, int) and a % b == 0:
        return a // b
    return a / b


def _compare(op: str, left: Value, right: Value) -> bool:
    comparable = left.kind is right.kind and left.kind in (ValueKind.NUMBER, ValueKind.STRING)
    if not comparable:
        raise ExpressionError(f"Cannot compare {left.kind.value} with {right.kind.value}.")
    a, b = left.data, right.data
    if op == "<":
        return a < b
    if op == "<=":
        return a <= b
    if op == ">":
        return a > b
    return a >= b


class ExpressionParser:
    """Recursive-descent parser over a token list.

    Precedence, loosest first: ``or``, ``and``, ``not``, comparisons,
    ``+ -``, ``* / %``, unary minus, postfix indexing.
    """

    def __init__(self, source: str, base_offset: int = 0) -> None:
        self._base_offset = base_offset
        try:
            self._tokens = tokenize(source)
        except ExpressionSyntaxError as exc:
            raise ExpressionSyntaxError(exc.message, exc.offset + base_offset) from exc
        self._pos = 0

    @property
    def current(self) -> Token:
        return self._tokens[self._pos]

    def advance(self) -> Token:
        token = self.current
        self._pos += 1
        return token

    def at_end(self) -> bool:
        return self.current.kind == "end"

    def check(self, text: str) -> bool:
        token = self.current
        return token.kind in ("op", "keyword") and token.text == text

    def expect(self, text: str) -> Token:
        if not self.check(text):
            self.fail(f"Expected '{text}'")
        return self.advance()

    def expect_end(self) -> None:
        if not self.at_end():
            self.fail("Unexpected trailing input")

    def fail(self, message: str) -> NoReturn:
        token = self.current
        found = "end of expression" if token.kind == "end" else f"'{token.text}'"
        raise ExpressionSyntaxError(f"{message}, found {found}.", token.offset + self._base_offset)

    def parse_expression(self) -> Expression:
        return self._parse_or()

    def _parse_or(self) -> Expression:
        left = self._parse_and()
        while self.check("or"):
            self.advance()
            left = Logical("or", left, self._parse_and())
        return left

    def _parse_and(self) -> Expression:
        left = self._parse_not()
        while self.check("and"):
            self.advance()
            left = Logical("and", left, self._parse_not())
        return left

    def _parse_not(self) -> Expression:
        if self.check("not"):
            self.advance()
            return Unary("not", self._parse_not())
        return self._parse_comparison()

    def _parse_comparison(self) -> Expression:
        left = self._parse_sum()
        while self.current.kind == "op" and self.current.text in _COMPARISON_OPS:
            op = self.current.text
            self.advance()
            left = Binary(op, left, self._parse_sum())
        return left

    def _parse_sum(self) -> Expression:
        left = self._parse_product()
        while self.check("+") or self.check("-"):
            op = self.current.text
            self.advance()
            left = Binary(op, left, self._parse_product())
        return left

    def _parse_product(self) -> Expression:
        left = self._parse_unary()
        while self.check("*") or self.check("/") or self.check("%"):
            op = self.current.text
            self.advance()
            left = Binary(op, left, self._parse_unary())
        return left

    def _parse_unary(self) -> Expression:
        if self.check("-"):
            self.advance()
            return Unary("-", self._parse_unary())
        return self._parse_postfix()

    def _parse_postfix(self) -> Expression:
        expr = self._parse_primary()
        while self.check("["):
            self.advance()
            index = self.parse_expression()
            self.expect("]")
            expr = Index(expr, index)
        return expr

    def _parse_primary(self) -> Expression:
        token = self.current
        if token.kind == "number":
            try:
                number = float(token.text) if "." in token.text else int(token.text)
            except ValueError:
                self.fail("Number literal is too long")
            self.advance()
            return Literal(Value.number(number))
        if token.kind == "string":
            self.advance()
            return Literal(Value.string(token.text))
        if token.kind == "keyword" and token.text in ("true", "false"):
            self.advance()
            return Literal(Value.boolean(token.text == "true"))
        if token.kind == "keyword" and token.text == "none":
            self.advance()
            return Literal(Value.none())
        if token.kind == "name":
            self.advance()
            if self.check("("):
                return self._parse_call(token)
            return Variable(token.text)
        if self.check("("):
            self.advance()
            expr = self.parse_expression()
            self.expect(")")
            return expr
        if self.check("["):
            self.advance()
            items = self._parse_items("]", self.parse_expression)
            return ListExpr(tuple(items))
        if self.check("{"):
            self.advance()
            entries = self._parse_items("}", self._parse_entry)
            return MapExpr(tuple(entries))
        self.fail("Expected a value")

    def _parse_call(self, name: Token) -> Expression:
        self.expect("(")
        if name.text == "defined":
            target = self.current
            if target.kind != "name":
                self.fail("defined() expects a variable name")
            self.advance()
            self.expect(")")
            return Defined(target.text)
        if name.text not in _BUILTINS:
            raise ExpressionSyntaxError(
                f"Unknown function '{name.text}'.", name.offset + self._base_offset
            )
        args = self._parse_items(")", self.parse_expression)
        return Call(name.text, tuple(args))

    def _parse_entry(self) -> Tuple[Expression, Expression]:
        key = self.parse_expression()
        self.expect(":")
        return key, self.parse_expression()

    def _parse_items(self, closer: str, parse_item):
        items = []
        if self.check(closer):
            self.advance()
            return items
        while True:
            items.append(parse_item())
            if self.check(","):
                self.advance()
                continue
            self.expect(closer)
            return items


def parse_expression(source: str, base_offset: int = 0) -> Expression:
    """Parse a complete expression; trailing input is a syntax error."""
    parser = ExpressionParser(source, base_offset)
    if parser.at_end():
        parser.fail("Expected an expression")
    expr = parser.parse_expression()
    parser.expect_end()
    return expr


def parse_assignment(
    source: str, base_offset: int = 0
) -> Tuple[str, Tuple[Expression, ...], Expression]:
    """Parse ``name[index]... = expression`` into its three parts."""
    parser = ExpressionParser(source, base_offset)
    target = parser.current
    if target.kind != "name":
        parser.fail("Expected a variable name")
    parser.advance()
    indices: List[Expression] = []
    while parser.check("["):
        parser.advance()
        indices.append(parser.parse_expression())
        parser.expect("]")
    parser.expect("=")
    expr = parser.parse_expression()
    parser.expect_end()
    return target.text, tuple(indices), expr


@dataclass(frozen=True, slots=True)
class Template:
    """Text with ``{expression}`` interpolations."""

    parts: Tuple[str | Expression, ...]

    def eval_text(self, reader: StateReader) -> str:
        chunks: List[str] = []
        for part in self.parts:
            if isinstance(part, str):
                chunks.append(part)
            else:
                chunks.append(part.eval(reader).to_text())
        return "".join(chunks)

    @property
    def literal(self) -> str | None:
        """The template text when it has no interpolations."""
        if all(isinstance(part, str) for part in self.parts):
            return "".join(self.parts)
        return None


def parse_template(text: str, base_offset: int = 0) -> Template:
    parts: List[str | Expression] = []
    buffer: List[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char in "{}" and text[index : index + 2] == char * 2:
            buffer.append(char)
            index += 2
            continue
        if char != "{":
            buffer.append(char)
            index += 1
            continue
        close = _matching_brace(text, index)
        if close is None:
            raise ExpressionSyntaxError("Unclosed '{' in text.", base_offset + index)
        if buffer:
            parts.append("".join(buffer))
            buffer = []
        parts.append(parse_expression(text[index + 1 : close], base_offset + index + 1))
        index = close + 1
    if buffer:
        parts.append("".join(buffer))
    return Template(tuple(parts))


def literal_template(text: str) -> Template:
    return Template((text,) if text else ())


def _matching_brace(text: str, start: int) -> int | None:
    depth = 0
    quote: str | None = None
    index = start
    while index < len(text):
        char = text[index]
        if quote:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return None


__all__ = [
    "Expression",
    "ExpressionParser",
    "StateReader",
    "Template",
    "apply_binary",
    "literal_template",
    "parse_assignment",
    "parse_expression",
    "parse_template",
    "tokenize",
]
