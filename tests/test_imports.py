def test_import_lift_package() -> None:
    import importlib

    module = importlib.import_module("lift")
    assert module is not None
    assert hasattr(module, "Interpreter")
    assert hasattr(module, "build_story")


def test_import_value_no_side_effects() -> None:
    from lift.core.value import Value

    assert Value.number(1).is_true()
