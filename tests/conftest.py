"""
tests/conftest.py
Shared fixtures for the crudgen test suite.

No database server is needed: ``FakeCatalogConnection`` stands in for a
SQLAlchemy ``Connection`` and answers the three catalog queries from
in-memory rows. Generated files are written into pytest's ``tmp_path``.
"""

from __future__ import annotations

import logging
import pathlib
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import pytest

from crudgen.introspection import MySQLTransformer, PostgresTransformer, read_tables
from crudgen.models import GenerationConfig, Table
from crudgen.templates import TemplateGenerator, create_template_env


# ---------------------------------------------------------------------------
# Fake catalog connection
# ---------------------------------------------------------------------------


class FakeResult:
    def __init__(self, rows: Sequence[Tuple[Any, ...]]) -> None:
        self._rows: List[Tuple[Any, ...]] = list(rows)

    def fetchall(self) -> List[Tuple[Any, ...]]:
        return list(self._rows)


class FakeCatalogConnection:
    """
    Minimal stand-in for ``sqlalchemy.engine.Connection``.

    Dispatches on the statement text: constraint queries mention
    ``key_column_usage``, column queries ``information_schema.columns``,
    anything else is treated as the table listing. Every call is recorded
    in ``queries`` as ``(kind, table_name)``.
    """

    def __init__(
        self,
        tables: Sequence[str],
        constraints: Dict[str, List[Tuple[Any, ...]]],
        columns: Dict[str, List[Tuple[Any, ...]]],
    ) -> None:
        self.tables: List[str] = list(tables)
        self.constraints: Dict[str, List[Tuple[Any, ...]]] = constraints
        self.columns: Dict[str, List[Tuple[Any, ...]]] = columns
        self.queries: List[Tuple[str, Optional[str]]] = []

    def execute(self, statement: Any, params: Optional[Dict[str, Any]] = None) -> FakeResult:
        sql: str = str(statement)
        table: Optional[str] = (params or {}).get("table_name")
        if "key_column_usage" in sql:
            self.queries.append(("constraints", table))
            return FakeResult(self.constraints.get(table, []))
        if "information_schema.columns" in sql:
            self.queries.append(("columns", table))
            return FakeResult(self.columns.get(table, []))
        self.queries.append(("tables", None))
        return FakeResult([(name,) for name in self.tables])


# ---------------------------------------------------------------------------
# MySQL catalog fixture
# ---------------------------------------------------------------------------

# (constraint_type, column, ref_schema, ref_table, ref_column, ordinal)
MYSQL_CONSTRAINTS: Dict[str, List[Tuple[Any, ...]]] = {
    "users": [
        ("PRIMARY KEY", "id", None, None, None, 1),
        ("UNIQUE", "email", None, None, None, 1),
    ],
    "posts": [
        ("PRIMARY KEY", "id", None, None, None, 1),
        ("FOREIGN KEY", "user_id", "shop", "users", "id", 1),
    ],
    # composite key, second column reported first
    "post_tags": [
        ("PRIMARY KEY", "tag_id", None, None, None, 2),
        ("PRIMARY KEY", "post_id", None, None, None, 1),
        ("FOREIGN KEY", "post_id", "shop", "posts", "id", 1),
    ],
    "comments": [
        ("PRIMARY KEY", "comment_no", None, None, None, 1),
        ("FOREIGN KEY", "tag_ref", "shop", "post_tags", "tag_id", 1),
    ],
    "audits": [],
}

# (name, data_type, column_type, is_nullable, default, extra, comment)
MYSQL_COLUMNS: Dict[str, List[Tuple[Any, ...]]] = {
    "users": [
        ("id", "int", "int(11)", "NO", None, "auto_increment", ""),
        ("user_name", "varchar", "varchar(64)", "NO", None, "", "Login name"),
        ("email", "varchar", "varchar(128)", "YES", None, "", ""),
        ("age", "tinyint", "tinyint(3) unsigned", "YES", None, "", ""),
        ("balance", "decimal", "decimal(10,2)", "NO", "0.00", "", ""),
        ("created_at", "timestamp", "timestamp", "NO", "CURRENT_TIMESTAMP", "", ""),
        (
            "updated_at", "datetime", "datetime", "NO", "current_timestamp()",
            "on update current_timestamp()", "",
        ),
        ("created_by", "int", "int(11)", "NO", None, "", ""),
    ],
    "posts": [
        ("id", "int", "int(10) unsigned", "NO", None, "auto_increment", ""),
        ("user_id", "int", "int(11)", "NO", None, "", ""),
        ("title", "varchar", "varchar(255)", "NO", None, "", "Title"),
        ("body", "text", "text", "YES", None, "", ""),
        ("rating", "float", "float", "YES", None, "", ""),
        ("created_at", "int", "int(11)", "NO", "0", "", ""),
        ("updated_by", "bigint", "bigint(20)", "YES", None, "", ""),
    ],
    "post_tags": [
        ("post_id", "int", "int(11)", "NO", None, "", ""),
        ("tag_id", "int", "int(11)", "NO", None, "", ""),
    ],
    "comments": [
        ("comment_no", "int", "int(11)", "NO", None, "", ""),
        ("id", "int", "int(11)", "YES", None, "", ""),
        ("tag_ref", "int", "int(11)", "NO", None, "", ""),
        ("content", "text", "text", "NO", None, "", ""),
    ],
    "audits": [
        ("message", "varchar", "varchar(255)", "NO", None, "", ""),
        ("logged_at", "datetime", "datetime", "YES", None, "", ""),
    ],
}

MYSQL_TABLES: List[str] = ["users", "posts", "post_tags", "comments", "audits"]


# ---------------------------------------------------------------------------
# PostgreSQL catalog fixture
# ---------------------------------------------------------------------------

PG_CONSTRAINTS: Dict[str, List[Tuple[Any, ...]]] = {
    "accounts": [
        ("PRIMARY KEY", "id", "bank", "accounts", "id", 1),
    ],
}

PG_COLUMNS: Dict[str, List[Tuple[Any, ...]]] = {
    "accounts": [
        (
            "id", "integer", "integer", "NO",
            "nextval('accounts_id_seq'::regclass)", "auto_increment", None,
        ),
        ("name", "character varying", "character varying", "NO", None, "", "Holder"),
        ("balance", "numeric", "numeric(12,2)", "NO", None, "", None),
        (
            "opened", "timestamp without time zone", "timestamp without time zone",
            "YES", None, "", None,
        ),
        ("token", "uuid", "uuid", "YES", None, "", None),
    ],
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mysql_connection() -> FakeCatalogConnection:
    return FakeCatalogConnection(MYSQL_TABLES, MYSQL_CONSTRAINTS, MYSQL_COLUMNS)


@pytest.fixture()
def postgres_connection() -> FakeCatalogConnection:
    return FakeCatalogConnection(["accounts"], PG_CONSTRAINTS, PG_COLUMNS)


@pytest.fixture()
def mysql_tables(mysql_connection: FakeCatalogConnection) -> Dict[str, Table]:
    """Every MySQL fixture table, read through the real schema reader."""
    tables: List[Table] = read_tables(mysql_connection, MySQLTransformer())
    return {t.name: t for t in tables}


@pytest.fixture()
def postgres_tables(postgres_connection: FakeCatalogConnection) -> Dict[str, Table]:
    tables: List[Table] = read_tables(postgres_connection, PostgresTransformer())
    return {t.name: t for t in tables}


@pytest.fixture()
def app_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "shop"
    path.mkdir()
    return path


@pytest.fixture()
def make_config(app_dir: pathlib.Path):
    """Factory for a ``GenerationConfig`` rooted at ``app_dir``."""

    def _factory(**overrides: Any) -> GenerationConfig:
        values: Dict[str, Any] = {
            "driver": "mysql",
            "connection": "root:secret@tcp(127.0.0.1:3306)/shop",
            "level": 4,
            "app_path": app_dir,
            "package_path": "github.com/acme/shop",
            "overwrite": "always",
            "format_source": False,
        }
        values.update(overrides)
        return GenerationConfig(**values)

    return _factory


@pytest.fixture()
def generator(make_config) -> TemplateGenerator:
    config: GenerationConfig = make_config()
    return TemplateGenerator(config, create_template_env(), config.package_path or "")


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """Undo the process-wide logging changes ``cli_main`` makes."""
    yield
    logging.disable(logging.NOTSET)
    root_logger = logging.getLogger("crudgen")
    root_logger.handlers.clear()
    root_logger.propagate = True
    root_logger.setLevel(logging.NOTSET)


@pytest.fixture()
def fake_catalog():
    """The ``FakeCatalogConnection`` class, for tests that build their own catalog."""
    return FakeCatalogConnection
