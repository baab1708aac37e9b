import json

from lift.presentation.cli import config


def test_missing_config_returns_defaults(tmp_path) -> None:
    assert config.load_config(tmp_path / "config.json") == {"step_budget": None}


def test_save_and_load_round_trip(tmp_path) -> None:
    path = tmp_path / "nested" / "config.json"

    config.save_config({"step_budget": 500}, path)

    assert config.load_config(path) == {"step_budget": 500}


def test_invalid_step_budget_is_normalized(tmp_path) -> None:
    path = tmp_path / "config.json"
    for raw in (-1, 0, True, "10", 2.5):
        path.write_text(json.dumps({"step_budget": raw}), encoding="utf-8")
        assert config.load_config(path) == {"step_budget": None}


def test_malformed_config_returns_defaults(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[1, 2", encoding="utf-8")

    assert config.load_config(path) == {"step_budget": None}


def test_save_dir_lives_under_user_data_dir() -> None:
    assert config.get_save_dir().parent == config.get_user_data_dir()
