"""Tests for conveyor.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from conveyor.config import (
    CONFIG_FILE_NAME,
    MAIN_CONFIG_KEY,
    drop_modules,
    load_config,
    merge_config,
)
from conveyor.errors import ConfigError


def test_load_config_resolves_directory(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILE_NAME).write_text(
        """
$:
  emit:
    pattern: ["*.py"]
app:
  root: src
""",
        encoding="utf-8",
    )

    loaded = load_config(tmp_path)

    assert loaded.file == (tmp_path / CONFIG_FILE_NAME).resolve()
    assert loaded.main == {"emit": {"pattern": ["*.py"]}}
    assert loaded.module_keys == ["app"]


def test_load_config_merges_extra_files_in_order(tmp_path: Path) -> None:
    main = tmp_path / CONFIG_FILE_NAME
    main.write_text("$:\n  emit:\n    pattern: ['*.py']\n    ignore: ['build/']\n", encoding="utf-8")
    first = tmp_path / "first.yml"
    first.write_text("$:\n  e2e:\n    command: ['first']\n", encoding="utf-8")
    second = tmp_path / "second.yml"
    second.write_text("$:\n  e2e:\n    command: ['second']\n  emit:\n    ignore: []\n", encoding="utf-8")

    loaded = load_config(main, first, second)

    assert loaded.main["e2e"] == {"command": ["second"]}
    assert loaded.main["emit"] == {"pattern": ["*.py"], "ignore": []}
    assert loaded.extra_files == [first.resolve(), second.resolve()]


def test_load_config_missing_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path)


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILE_NAME).write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        load_config(tmp_path)


def test_load_config_reports_yaml_errors(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILE_NAME).write_text("$: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)


def test_empty_config_file_loads_as_empty(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILE_NAME).write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).data == {}


def test_merge_config_is_recursive_and_does_not_mutate() -> None:
    base = {"a": {"b": 1, "c": [1]}}
    merged = merge_config(base, {"a": {"c": [2], "d": 3}})

    assert merged == {"a": {"b": 1, "c": [2], "d": 3}}
    assert base == {"a": {"b": 1, "c": [1]}}


def test_drop_modules_keeps_main_section() -> None:
    data = {MAIN_CONFIG_KEY: {}, "app": {}, "lib": {}}

    assert list(drop_modules(data, ["lib", MAIN_CONFIG_KEY])) == [MAIN_CONFIG_KEY, "app"]
