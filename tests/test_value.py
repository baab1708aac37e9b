import pytest

from lift.core.value import Value, ValueKind


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, False),
        (False, False),
        (True, True),
        (0, False),
        (3, True),
        ("", False),
        ("x", True),
        ([], False),
        ([0], True),
        ({}, False),
        ({"a": 1}, True),
    ],
)
def test_truthiness(raw, expected) -> None:
    assert Value.coerce(raw).is_true() is expected


def test_list_iteration_yields_index_value_pairs() -> None:
    pairs = list(Value.coerce(["a", "b"]).iter())

    assert pairs == [
        (Value.number(0), Value.string("a")),
        (Value.number(1), Value.string("b")),
    ]


def test_map_iteration_keeps_insertion_order() -> None:
    value = Value.coerce({"zeta": 1, "alpha": 2})

    keys = [key.data for key, _ in value.iter()]

    assert keys == ["zeta", "alpha"]


def test_number_iterates_as_range() -> None:
    values = [item.data for _, item in Value.number(3).iter()]

    assert values == [0, 1, 2]


def test_scalars_without_items_iterate_empty() -> None:
    assert list(Value.none().iter()) == []
    assert list(Value.boolean(True).iter()) == []


def test_resolve_path_returns_list_slot() -> None:
    value = Value.coerce([1, 2, 3])

    slot = value.resolve_path([Value.number(1)])
    assert slot is not None
    slot.set(Value.number(20))

    assert value.to_json() == [1, 20, 3]


def test_resolve_path_walks_nested_containers() -> None:
    value = Value.coerce({"bag": [{"name": "key"}]})

    slot = value.resolve_path([Value.string("bag"), Value.number(0), Value.string("name")])
    assert slot is not None
    slot.set(Value.string("coin"))

    assert value.to_json() == {"bag": [{"name": "coin"}]}


def test_resolve_path_allows_new_map_key_at_last_step() -> None:
    value = Value.coerce({})

    slot = value.resolve_path([Value.string("gold")])
    assert slot is not None
    assert slot.get() is None
    slot.set(Value.number(5))

    assert value.to_json() == {"gold": 5}


@pytest.mark.parametrize(
    "raw, path",
    [
        ([1, 2], [Value.number(2)]),
        ([1, 2], [Value.number(-1)]),
        ([1, 2], [Value.string("0")]),
        ({"a": {}}, [Value.string("missing"), Value.string("x")]),
        ({"a": 1}, [Value.number(0)]),
        (5, [Value.number(0)]),
        ("text", [Value.number(0)]),
        ([1], []),
    ],
)
def test_resolve_path_rejects_unresolvable_targets(raw, path) -> None:
    assert Value.coerce(raw).resolve_path(path) is None


def test_to_text_formats_values_for_display() -> None:
    assert Value.none().to_text() == ""
    assert Value.boolean(False).to_text() == "false"
    assert Value.number(3.0).to_text() == "3"
    assert Value.number(2.5).to_text() == "2.5"
    assert Value.coerce([1, "a"]).to_text() == '[1, "a"]'
    assert Value.coerce({"k": None}).to_text() == '{"k": none}'


def test_json_round_trip_preserves_structure() -> None:
    raw = {"n": 1, "f": 1.5, "s": "x", "b": True, "z": None, "l": [1, [2]], "m": {"k": "v"}}

    value = Value.from_json(raw)

    assert value.kind is ValueKind.MAP
    assert value.to_json() == raw
    assert isinstance(value.to_json()["n"], int)


def test_from_json_rejects_non_json_objects() -> None:
    with pytest.raises(ValueError):
        Value.from_json({"bad": object()})
    with pytest.raises(ValueError):
        Value.from_json(float("nan"))


def test_coerce_rejects_unknown_types() -> None:
    with pytest.raises(TypeError):
        Value.coerce({1, 2})


def test_copy_is_deep() -> None:
    original = Value.coerce({"items": [1]})

    duplicate = original.copy()
    duplicate.data["items"].data.append(Value.number(2))

    assert original.to_json() == {"items": [1]}
