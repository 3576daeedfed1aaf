"""
tests/test_config.py
Tests for crudgen.config and the GenerationConfig model: file loading,
layer precedence, key aliases and validation errors.
"""

from __future__ import annotations

import json
import pathlib

import pytest
import yaml

from crudgen.config import CONN_ENV_VAR, build_config, load_config_file
from crudgen.exceptions import ConfigurationError
from crudgen.models import GenerationConfig, GenerationLevel, OverwritePolicy


class TestLoadConfigFile:
    def test_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "crudgen.yaml"
        path.write_text(yaml.safe_dump({"driver": "postgres", "level": 4}))
        assert load_config_file(path) == {"driver": "postgres", "level": 4}

    def test_json(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "crudgen.json"
        path.write_text(json.dumps({"conn": "x"}))
        assert load_config_file(path) == {"conn": "x"}

    def test_empty_file(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_config_file(path) == {}

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_config_file(tmp_path / "nope.yaml")

    def test_not_a_mapping(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config_file(path)

    def test_bad_json(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{nope")
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_config_file(path)


class TestBuildConfig:
    def test_defaults(self) -> None:
        config = build_config(environ={})
        assert config.driver == "mysql"
        assert config.level == 3
        assert config.connection == ""
        assert config.overwrite == OverwritePolicy.ASK.value
        assert config.api_version == "v1"
        assert config.generation_level == (
            GenerationLevel.MODEL | GenerationLevel.CONTROLLER | GenerationLevel.ROUTER
        )

    def test_aliases(self) -> None:
        config = build_config(
            {"conn": "dsn", "app": "out", "package": "example.com/out"}, environ={}
        )
        assert config.connection == "dsn"
        assert config.app_path == pathlib.Path("out")
        assert config.package_path == "example.com/out"

    def test_env_fills_missing_connection(self) -> None:
        config = build_config({}, environ={CONN_ENV_VAR: "from-env"})
        assert config.connection == "from-env"

    def test_file_connection_beats_env(self) -> None:
        config = build_config({"conn": "from-file"}, environ={CONN_ENV_VAR: "from-env"})
        assert config.connection == "from-file"

    def test_overrides_beat_file(self) -> None:
        config = build_config(
            {"level": 1, "driver": "postgres"},
            {"level": "4", "driver": None},
            environ={},
        )
        assert config.level == 4
        assert config.driver == "postgres"

    def test_tables_from_string(self) -> None:
        config = build_config({"tables": "users, orders,,users"}, environ={})
        assert config.tables == ["users", "orders"]

    def test_tables_from_list(self) -> None:
        config = build_config({"tables": ["a", "b", "a"]}, environ={})
        assert config.tables == ["a", "b"]

    def test_invalid_level(self) -> None:
        with pytest.raises(ConfigurationError, match="level"):
            build_config({"level": 5}, environ={})

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigurationError, match="colour"):
            build_config({"colour": "blue"}, environ={})

    def test_dashed_keys(self) -> None:
        config = build_config({"app-path": "x", "format-source": False}, environ={})
        assert config.app_path == pathlib.Path("x")
        assert config.format_source is False


class TestGenerationLevel:
    @pytest.mark.parametrize(
        "level, has_ui, has_router, has_controller",
        [(1, False, False, False), (2, False, False, True), (3, False, True, True), (4, True, True, True)],
    )
    def test_levels(self, level: int, has_ui: bool, has_router: bool, has_controller: bool) -> None:
        flags = GenerationLevel.from_level(level)
        assert bool(flags & GenerationLevel.MODEL)
        assert bool(flags & GenerationLevel.UI) is has_ui
        assert bool(flags & GenerationLevel.ROUTER) is has_router
        assert bool(flags & GenerationLevel.CONTROLLER) is has_controller

    def test_invalid(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid level value"):
            GenerationLevel.from_level("5")

    def test_driver_normalised(self) -> None:
        assert GenerationConfig(driver=" MySQL ").driver == "mysql"
