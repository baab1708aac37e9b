import pytest

from lift.core.value import Value
from lift.data.errors import ExpressionError, ExpressionSyntaxError
from lift.data.expression import parse_assignment, parse_expression, parse_template


class _Reader:
    def __init__(self, **values) -> None:
        self._values = {name: Value.coerce(raw) for name, raw in values.items()}

    def get(self, variable: str) -> Value | None:
        return self._values.get(variable)


def _eval(source: str, **values) -> Value:
    return parse_expression(source).eval(_Reader(**values))


@pytest.mark.parametrize(
    "source, expected",
    [
        ("1 + 2 * 3", 7),
        ("(1 + 2) * 3", 9),
        ("7 / 2", 3.5),
        ("6 / 3", 2),
        ("7 % 3", 1),
        ("-4 + 1", -3),
        ("1.5 * 2", 3.0),
    ],
)
def test_arithmetic_follows_precedence(source, expected) -> None:
    assert _eval(source) == Value.number(expected)


def test_exact_integer_division_stays_integral() -> None:
    assert isinstance(_eval("6 / 3").data, int)


def test_string_concatenation_renders_other_operand() -> None:
    assert _eval('"gold: " + 5') == Value.string("gold: 5")


def test_list_concatenation() -> None:
    assert _eval("[1, 2] + [3]") == Value.coerce([1, 2, 3])


def test_comparisons_and_logic() -> None:
    assert _eval("3 > 2 and not false").is_true()
    assert _eval('"a" < "b"').is_true()
    assert _eval("1 == 1.0").is_true()
    assert not _eval("1 == true").is_true()
    assert _eval("none or 0 or 2 >= 2").is_true()


def test_logical_operators_short_circuit() -> None:
    assert _eval("false and (1 / 0)") == Value.boolean(False)
    assert _eval("true or missing[0]") == Value.boolean(True)


def test_unset_variable_reads_as_none() -> None:
    assert _eval("ghost") == Value.none()


def test_defined_distinguishes_unset_from_none() -> None:
    assert _eval("defined(ghost)") == Value.boolean(False)
    assert _eval("defined(empty)", empty=None) == Value.boolean(True)


def test_indexing_lists_maps_and_strings() -> None:
    assert _eval("items[1]", items=[10, 20]) == Value.number(20)
    assert _eval('bag["key"]', bag={"key": "brass"}) == Value.string("brass")
    assert _eval("word[0]", word="lift") == Value.string("l")
    assert _eval("items[5]", items=[10]) == Value.none()
    assert _eval('bag["nope"]', bag={}) == Value.none()


def test_map_literal_builds_map() -> None:
    assert _eval('{"hp": 3, "name": "rat"}') == Value.coerce({"hp": 3, "name": "rat"})


def test_builtin_functions() -> None:
    assert _eval('len("abc")') == Value.number(3)
    assert _eval("len(items)", items=[1, 2]) == Value.number(2)
    assert _eval('int(" 42 ")') == Value.number(42)
    assert _eval("int(2.9)") == Value.number(2)
    assert _eval("str(3)") == Value.string("3")


@pytest.mark.parametrize(
    "source",
    [
        '1 - "a"',
        "1 / 0",
        "5 % 0",
        '"a" < 1',
        "-true",
        "count[0]",
        "{1: 2}",
        "len(5)",
        'int("many")',
    ],
)
def test_runtime_errors_raise_expression_error(source) -> None:
    with pytest.raises(ExpressionError):
        _eval(source, count=3)


@pytest.mark.parametrize("source", ["", "1 +", "1 2", "(1", "frobnicate(1)", "defined(1)", '"open'])
def test_syntax_errors_raise(source) -> None:
    with pytest.raises(ExpressionSyntaxError):
        parse_expression(source)


def test_syntax_error_offset_includes_base_offset() -> None:
    with pytest.raises(ExpressionSyntaxError) as excinfo:
        parse_expression("1 +", base_offset=10)

    assert excinfo.value.offset == 13


def test_parse_assignment_splits_target_and_indices() -> None:
    name, indices, expr = parse_assignment('inv["bag"][0] = 1 + 1')

    assert name == "inv"
    assert len(indices) == 2
    assert expr.eval(_Reader()) == Value.number(2)


def test_parse_assignment_requires_equals() -> None:
    with pytest.raises(ExpressionSyntaxError):
        parse_assignment("x 5")


def test_template_interpolates_and_escapes() -> None:
    reader = _Reader(name="Ada")

    assert parse_template("Hello {name}!").eval_text(reader) == "Hello Ada!"
    assert parse_template("Hello {ghost}!").eval_text(reader) == "Hello !"
    assert parse_template("{{braces}}").eval_text(reader) == "{braces}"
    assert parse_template('{"}" + name}').eval_text(reader) == "}Ada"


def test_template_literal_property() -> None:
    assert parse_template("Cellar").literal == "Cellar"
    assert parse_template("Room {n}").literal is None


def test_template_rejects_unclosed_brace() -> None:
    with pytest.raises(ExpressionSyntaxError):
        parse_template("oops {name")
