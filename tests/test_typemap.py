"""
tests/test_typemap.py
Unit tests for crudgen.typemap: per-driver type tables, predicates and the
column-type extractors.
"""

from __future__ import annotations

import pytest

from crudgen.exceptions import ConfigurationError, ExtractionError, TypeMappingError
from crudgen.typemap import (
    MYSQL_TYPES,
    POSTGRES_TYPES,
    extract_col_size,
    extract_decimal,
    extract_int_signedness,
    get_go_type,
    is_binary_type,
    is_bit_type,
    is_decimal_type,
    is_opaque_type,
    is_signed_int_type,
    is_string_type,
    is_temporal_type,
    require_match,
)


class TestGetGoType:
    @pytest.mark.parametrize(
        "sql_type, go_type",
        [
            ("int", "int"),
            ("tinyint", "int8"),
            ("bigint unsigned", "uint64"),
            ("bit", "uint64"),
            ("varchar", "string"),
            ("longblob", "string"),
            ("datetime", "time.Time"),
            ("float", "float32"),
            ("decimal", "float64"),
            ("year", "int16"),
        ],
    )
    def test_mysql(self, sql_type: str, go_type: str) -> None:
        assert get_go_type("mysql", sql_type) == go_type

    @pytest.mark.parametrize(
        "sql_type, go_type",
        [
            ("integer", "int"),
            ("big serial", "int64"),
            ("character varying", "string"),
            ("timestamp with time zone", "time.Time"),
            ("double precision", "float64"),
            ("money", "float64"),
            ("ARRAY", "string"),
            ("USER-DEFINED", "string"),
        ],
    )
    def test_postgres(self, sql_type: str, go_type: str) -> None:
        assert get_go_type("postgres", sql_type) == go_type

    def test_unknown_type_names_the_type(self) -> None:
        with pytest.raises(TypeMappingError) as info:
            get_go_type("mysql", "geometry")
        assert "geometry" in str(info.value)

    def test_lookup_is_case_sensitive(self) -> None:
        with pytest.raises(TypeMappingError):
            get_go_type("mysql", "VARCHAR")

    def test_types_do_not_leak_between_drivers(self) -> None:
        assert "jsonb" in POSTGRES_TYPES
        with pytest.raises(TypeMappingError):
            get_go_type("mysql", "jsonb")

    def test_unknown_driver(self) -> None:
        with pytest.raises(ConfigurationError):
            get_go_type("oracle", "int")

    def test_every_mapping_targets_a_go_type(self) -> None:
        allowed = {
            "int", "int8", "int16", "int32", "int64",
            "uint", "uint8", "uint16", "uint32", "uint64",
            "float32", "float64", "bool", "string", "time.Time",
        }
        assert set(MYSQL_TYPES.values()) <= allowed
        assert set(POSTGRES_TYPES.values()) <= allowed


class TestPredicates:
    def test_temporal(self) -> None:
        assert all(is_temporal_type(t) for t in ("date", "datetime", "timestamp", "time"))
        assert not is_temporal_type("year")

    def test_string(self) -> None:
        assert is_string_type("varchar") and is_string_type("char")
        assert not is_string_type("text")

    def test_signed_int(self) -> None:
        assert is_signed_int_type("mediumint")
        assert not is_signed_int_type("integer")

    def test_misc(self) -> None:
        assert is_decimal_type("decimal") and not is_decimal_type("numeric")
        assert is_binary_type("varbinary") and not is_binary_type("blob")
        assert is_bit_type("bit")
        assert is_opaque_type("uuid") and not is_opaque_type("jsonb")


class TestExtractors:
    def test_col_size(self) -> None:
        assert extract_col_size("varchar(255)") == "255"
        assert extract_col_size("bit(1)") == "1"

    def test_col_size_no_match(self) -> None:
        assert extract_col_size("text") is None
        assert extract_col_size("varchar(255) binary") is None

    def test_decimal(self) -> None:
        assert extract_decimal("decimal(10,2)") == ("10", "2")
        assert extract_decimal("decimal(10,2) unsigned") == ("10", "2")
        assert extract_decimal("decimal") is None

    @pytest.mark.parametrize(
        "column_type, qualifier",
        [
            ("int(11) unsigned", "unsigned"),
            ("tinyint(1)", ""),
            ("int unsigned", "unsigned"),
            ("bigint(20) unsigned zerofill", "unsigned zerofill"),
        ],
    )
    def test_int_signedness(self, column_type: str, qualifier: str) -> None:
        assert extract_int_signedness(column_type) == qualifier

    def test_int_signedness_no_match(self) -> None:
        assert extract_int_signedness("varchar(10)") is None

    def test_require_match(self) -> None:
        assert require_match("8", "size", "char(8)") == "8"
        with pytest.raises(ExtractionError) as info:
            require_match(None, "size", "varchar", "title")
        message = str(info.value)
        assert "varchar" in message and "title" in message
