"""
tests/test_validators.py
Unit tests for crudgen.validators.

Tests cover:
- ValidationResult bookkeeping and report formatting
- Pre-connection configuration checks (driver, connection, paths)
- Post-read table warnings (keys, renamed id columns, degraded FKs)
"""

from __future__ import annotations

import pathlib
from typing import Dict

from crudgen.models import Table
from crudgen.validators import ValidationResult, validate_config, validate_tables


# ===========================================================================
# ValidationResult
# ===========================================================================


class TestValidationResult:
    def test_empty_is_valid(self) -> None:
        result = ValidationResult()
        assert result.is_valid
        assert bool(result)
        assert len(result) == 0

    def test_error_and_warning(self) -> None:
        result = ValidationResult()
        result.add_warning("W1", "careful")
        result.add_error("E1", "broken", {"table": "x"})
        assert not result.is_valid
        assert not bool(result)
        assert result.codes() == ["W1", "E1"]
        assert [e.code for e in result.errors] == ["E1"]
        assert result.errors[0].context == {"table": "x"}
        report = result.format_report()
        assert "1 error(s), 1 warning(s)" in report
        assert "[E1] broken" in report


# ===========================================================================
# validate_config
# ===========================================================================


class TestValidateConfig:
    def test_valid(self, make_config) -> None:
        assert validate_config(make_config()).codes() == []

    def test_sqlite(self, make_config) -> None:
        result = validate_config(make_config(driver="sqlite"))
        assert result.codes() == ["UNSUPPORTED_DRIVER"]
        assert "not supported yet" in result.errors[0].message

    def test_unknown_driver(self, make_config) -> None:
        assert validate_config(make_config(driver="mssql")).codes() == ["UNKNOWN_DRIVER"]

    def test_missing_connection(self, make_config) -> None:
        assert "MISSING_CONNECTION" in validate_config(make_config(connection=" ")).codes()

    def test_app_path_is_a_file(self, make_config, tmp_path: pathlib.Path) -> None:
        target = tmp_path / "file.txt"
        target.write_text("x")
        result = validate_config(make_config(app_path=target))
        assert result.codes() == ["APP_PATH_NOT_DIRECTORY"]
        assert result.has_errors

    def test_app_path_missing_is_a_warning(self, make_config, tmp_path: pathlib.Path) -> None:
        result = validate_config(make_config(app_path=tmp_path / "later"))
        assert result.codes() == ["APP_PATH_CREATED"]
        assert result.is_valid

    def test_template_dir_missing(self, make_config, tmp_path: pathlib.Path) -> None:
        result = validate_config(make_config(template_dir=tmp_path / "tpl"))
        assert result.codes() == ["TEMPLATE_DIR_NOT_FOUND"]


# ===========================================================================
# validate_tables
# ===========================================================================


class TestValidateTables:
    def test_fixture_catalog(self, mysql_tables: Dict[str, Table]) -> None:
        result = validate_tables(list(mysql_tables.values()))
        assert result.is_valid
        assert sorted(result.codes()) == sorted([
            "NO_USABLE_PRIMARY_KEY",  # post_tags
            "NO_USABLE_PRIMARY_KEY",  # audits
            "ID_COLUMN_RENAMED",      # comments.id
            "FOREIGN_KEY_DEGRADED",   # comments.tag_ref
        ])

    def test_table_without_columns(self) -> None:
        result = validate_tables([Table(name="ghost")])
        assert result.codes() == ["TABLE_NOT_FOUND"]

    def test_clean_table(self, mysql_tables: Dict[str, Table]) -> None:
        assert validate_tables([mysql_tables["users"]]).codes() == []
