from __future__ import annotations

from pathlib import Path

from tasknest.config import get_default_columns, get_drag_config, get_logging_config, load_config


def _write_config(project_dir: Path, text: str) -> None:
    root = project_dir / ".tasknest"
    root.mkdir(parents=True, exist_ok=True)
    (root / "config.yaml").write_text(text, encoding="utf-8")


def test_missing_config_returns_empty(tmp_path: Path) -> None:
    assert load_config(tmp_path) == ({}, None)


def test_invalid_yaml_reports_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "drag: [oops\n")
    config, err = load_config(tmp_path)
    assert config == {}
    assert err is not None and "YAMLError" in err


def test_non_mapping_reports_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "- just\n- a list\n")
    config, err = load_config(tmp_path)
    assert config == {}
    assert "expected mapping" in err


def test_accessors_apply_defaults() -> None:
    assert get_drag_config({}) == {"rollback_on_cancel": False}
    assert get_default_columns({}) == ["To Do", "In Progress", "Done"]
    assert get_logging_config({}) == {"level": "INFO", "file": None}


def test_accessors_read_values(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        "drag:\n  rollback_on_cancel: true\n"
        "board:\n  default_columns: [Backlog, '  ', Doing]\n"
        "logging:\n  level: debug\n  file: tasknest.log\n",
    )
    config, err = load_config(tmp_path)
    assert err is None
    assert get_drag_config(config)["rollback_on_cancel"] is True
    assert get_default_columns(config) == ["Backlog", "Doing"]
    assert get_logging_config(config) == {"level": "DEBUG", "file": "tasknest.log"}


def test_wrong_types_fall_back() -> None:
    config = {"drag": "yes", "board": {"default_columns": "Todo"}, "logging": {"level": 3}}
    assert get_drag_config(config) == {"rollback_on_cancel": False}
    assert get_default_columns(config) == ["To Do", "In Progress", "Done"]
    assert get_logging_config(config)["level"] == "INFO"
