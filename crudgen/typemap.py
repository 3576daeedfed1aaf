# File: crudgen/typemap.py
"""
crudgen - SQL to Go Type Mapping
================================
Static per-driver lookup tables from a catalog ``data_type`` to a Go type
name, the classification predicates the schema reader branches on, and the
regex-based extractors that pull sizes, precision and signedness out of a
full column type string such as ``decimal(10,2)``.

Extractors never index into a failed match: they return ``None`` and the
caller decides whether that is fatal (``require_match``).
"""

from __future__ import annotations

import logging
import re
from typing import Dict, FrozenSet, List, Optional, Tuple, TypeVar

from crudgen.exceptions import ConfigurationError, ExtractionError, TypeMappingError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.typemap")

# ---------------------------------------------------------------------------
# Type tables
# ---------------------------------------------------------------------------

MYSQL_TYPES: Dict[str, str] = {
    # signed integers
    "int": "int",
    "integer": "int",
    "tinyint": "int8",
    "smallint": "int16",
    "mediumint": "int32",
    "bigint": "int64",
    # unsigned integers
    "int unsigned": "uint",
    "integer unsigned": "uint",
    "tinyint unsigned": "uint8",
    "smallint unsigned": "uint16",
    "mediumint unsigned": "uint32",
    "bigint unsigned": "uint64",
    "bit": "uint64",
    "bool": "bool",
    "enum": "string",
    "set": "string",
    # text
    "varchar": "string",
    "char": "string",
    "tinytext": "string",
    "mediumtext": "string",
    "text": "string",
    "longtext": "string",
    # blobs
    "blob": "string",
    "tinyblob": "string",
    "mediumblob": "string",
    "longblob": "string",
    # temporal
    "date": "time.Time",
    "datetime": "time.Time",
    "timestamp": "time.Time",
    "time": "time.Time",
    # floating point
    "float": "float32",
    "double": "float64",
    "decimal": "float64",
    "binary": "string",
    "varbinary": "string",
    "year": "int16",
    "json": "string",
}

POSTGRES_TYPES: Dict[str, str] = {
    "serial": "int",
    "big serial": "int64",
    "smallint": "int16",
    "integer": "int",
    "bigint": "int64",
    "boolean": "bool",
    "char": "string",
    "character": "string",
    "character varying": "string",
    "varchar": "string",
    "text": "string",
    "date": "time.Time",
    "time": "time.Time",
    "timestamp": "time.Time",
    "timestamp without time zone": "time.Time",
    "timestamp with time zone": "time.Time",
    "interval": "string",
    "real": "float32",
    "double precision": "float64",
    "decimal": "float64",
    "numeric": "float64",
    "money": "float64",
    "bytea": "string",
    "tsvector": "string",
    "ARRAY": "string",
    "USER-DEFINED": "string",
    "uuid": "string",
    "json": "string",
    "jsonb": "string",
    "inet": "string",
}

_TYPE_TABLES: Dict[str, Dict[str, str]] = {
    "mysql": MYSQL_TYPES,
    "postgres": POSTGRES_TYPES,
}

# Go-side families, used by the emitters.
GO_INTEGER_TYPES: FrozenSet[str] = frozenset({
    "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64",
})
GO_FLOAT_TYPES: FrozenSet[str] = frozenset({"float32", "float64"})
GO_TIME_TYPE: str = "time.Time"


def get_go_type(driver: str, sql_type: str) -> str:
    """
    Map a catalog data type to a Go type for *driver*.

    Raises:
        TypeMappingError: the type has no entry (message names the type).
        ConfigurationError: the driver has no type table.
    """
    table: Optional[Dict[str, str]] = _TYPE_TABLES.get(driver)
    if table is None:
        raise ConfigurationError(f"No type mapping for database driver '{driver}'.")
    try:
        return table[sql_type]
    except KeyError:
        raise TypeMappingError(sql_type) from None


# ---------------------------------------------------------------------------
# Classification predicates (on the catalog data_type)
# ---------------------------------------------------------------------------

_TEMPORAL: FrozenSet[str] = frozenset({"date", "datetime", "timestamp", "time"})
_STRING: FrozenSet[str] = frozenset({"char", "varchar"})
_SIGNED_INT: FrozenSet[str] = frozenset({"int", "tinyint", "smallint", "mediumint", "bigint"})
_BINARY: FrozenSet[str] = frozenset({"binary", "varbinary"})
_OPAQUE: FrozenSet[str] = frozenset({"interval", "uuid", "json"})


def is_temporal_type(t: str) -> bool:
    return t in _TEMPORAL


def is_string_type(t: str) -> bool:
    return t in _STRING


def is_signed_int_type(t: str) -> bool:
    return t in _SIGNED_INT


def is_decimal_type(t: str) -> bool:
    return t == "decimal"


def is_binary_type(t: str) -> bool:
    return t in _BINARY


def is_bit_type(t: str) -> bool:
    return t == "bit"


def is_opaque_type(t: str) -> bool:
    """PostgreSQL types kept verbatim in the tag (mapped to a Go string)."""
    return t in _OPAQUE


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------

_SIZE_RE: re.Pattern[str] = re.compile(r"^[a-z]+\(([0-9]+)\)$")
_DECIMAL_RE: re.Pattern[str] = re.compile(r"decimal\(([0-9]+),([0-9]+)\)")
# Display width is optional: MySQL 8 reports plain "int unsigned".
_INT_SIGN_RE: re.Pattern[str] = re.compile(
    r"(?:tiny|small|medium|big)?int(?:eger)?(?:\([0-9]+\))?(.*)"
)


def extract_col_size(col_type: str) -> Optional[str]:
    """``varchar(255)`` -> ``"255"``; ``None`` when there is no size."""
    match: Optional[re.Match[str]] = _SIZE_RE.match(col_type)
    return match.group(1) if match else None


def extract_decimal(col_type: str) -> Optional[Tuple[str, str]]:
    """``decimal(10,2)`` -> ``("10", "2")``."""
    match: Optional[re.Match[str]] = _DECIMAL_RE.search(col_type)
    return (match.group(1), match.group(2)) if match else None


def extract_int_signedness(col_type: str) -> Optional[str]:
    """
    Return the qualifier text after an integer type, trimmed.

    ``int(11) unsigned`` -> ``"unsigned"``, ``tinyint(1)`` -> ``""``.
    """
    match: Optional[re.Match[str]] = _INT_SIGN_RE.search(col_type)
    return match.group(1).strip() if match else None


_T = TypeVar("_T")


def require_match(value: Optional[_T], what: str, col_type: str, column: str = "") -> _T:
    """Turn a failed extraction into an ``ExtractionError``."""
    if value is None:
        raise ExtractionError(what, col_type, column)
    return value


__all__: List[str] = [
    "MYSQL_TYPES",
    "POSTGRES_TYPES",
    "GO_INTEGER_TYPES",
    "GO_FLOAT_TYPES",
    "GO_TIME_TYPE",
    "get_go_type",
    "is_temporal_type",
    "is_string_type",
    "is_signed_int_type",
    "is_decimal_type",
    "is_binary_type",
    "is_bit_type",
    "is_opaque_type",
    "extract_col_size",
    "extract_decimal",
    "extract_int_signedness",
    "require_match",
]

logger.debug("crudgen.typemap loaded.")
