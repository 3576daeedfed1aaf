# File: crudgen/introspection.py
"""
crudgen - Schema Reader
=======================
Reads catalog metadata from a live MySQL or PostgreSQL database through a
SQLAlchemy ``Connection`` and turns it into ``Table`` descriptors.

Each backend is a ``DbTransformer``: it knows its catalog query text and
the driver-specific column refinements, and shares the constraint and
column resolution rules with the other backend.

Reading happens in two phases and the order is load-bearing:

    1. constraints for *every* table (fills the blacklist of tables with an
       absent or composite primary key);
    2. columns for every table (a foreign key to a blacklisted table
       degrades to a plain scalar column).
"""

from __future__ import annotations

import abc
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple
from urllib.parse import quote_plus

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from crudgen.exceptions import (
    CatalogQueryError,
    ConfigurationError,
    DatabaseConnectionError,
)
from crudgen.models import Column, DatabaseDriver, ForeignKey, OrmTag, Table
from crudgen.typemap import (
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
from crudgen.utils import camel_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.introspection")

# MariaDB reports current_timestamp(), fractional columns CURRENT_TIMESTAMP(3)
_CURRENT_TIMESTAMP_RE: re.Pattern[str] = re.compile(r"current_timestamp(\(\d*\))?", re.IGNORECASE)


def _as_str(value: Any) -> str:
    """Normalise a catalog cell: NULL -> "", bytes decoded, numbers as text."""
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8")
    return str(value)


def _is_current_timestamp(default: str) -> bool:
    return _CURRENT_TIMESTAMP_RE.fullmatch(default.strip()) is not None


# ---------------------------------------------------------------------------
# Capability interface
# ---------------------------------------------------------------------------


class DbTransformer(abc.ABC):
    """Reverse-engineers one database flavour into ``Table`` descriptors."""

    driver: str = ""
    TABLES_SQL: str = ""
    CONSTRAINTS_SQL: str = ""
    COLUMNS_SQL: str = ""

    # -- catalog queries ----------------------------------------------------

    def _query(
        self,
        connection: Connection,
        sql: str,
        params: Optional[Dict[str, Any]] = None,
        table: Optional[str] = None,
    ) -> List[Tuple[str, ...]]:
        try:
            result = connection.execute(text(sql), params or {})
            return [tuple(_as_str(v) for v in row) for row in result.fetchall()]
        except SQLAlchemyError as exc:
            where: str = f" for table '{table}'" if table else ""
            raise CatalogQueryError(
                f"Could not query the {self.driver} catalog{where}: {exc}", table=table
            ) from exc

    def get_table_names(self, connection: Connection) -> List[str]:
        """Every base table visible to the connection."""
        return [row[0] for row in self._query(connection, self.TABLES_SQL)]

    def get_constraints(
        self,
        connection: Connection,
        table: Table,
        blacklist: Set[str],
    ) -> None:
        """
        Fill primary, unique and foreign keys of *table*.

        A primary key column with ordinal position other than 1 means the
        key is composite: the table is blacklisted and keeps no PK, whatever
        order the rows arrive in. A table left without a PK is blacklisted
        as well.
        """
        rows = self._query(
            connection, self.CONSTRAINTS_SQL, {"table_name": table.name}, table.name
        )
        for constraint_type, column_name, ref_schema, ref_table, ref_column, ordinal in rows:
            if constraint_type == "PRIMARY KEY":
                if ordinal == "1":
                    table.primary_key = column_name
                else:
                    blacklist.add(table.name)
            elif constraint_type == "UNIQUE":
                table.unique_keys.append(column_name)
            elif constraint_type == "FOREIGN KEY":
                table.foreign_keys[column_name] = ForeignKey(
                    name=column_name,
                    ref_schema=ref_schema,
                    ref_table=ref_table,
                    ref_column=ref_column,
                )

        if table.name in blacklist or not table.primary_key:
            table.primary_key = ""
            blacklist.add(table.name)
            logger.info("Table '%s' has no usable primary key; model only.", table.name)

    def get_columns(
        self,
        connection: Connection,
        table: Table,
        blacklist: Set[str],
    ) -> None:
        """Append one ``Column`` per catalog column, in declaration order."""
        rows = self._query(
            connection, self.COLUMNS_SQL, {"table_name": table.name}, table.name
        )
        for row in rows:
            table.columns.append(self._resolve_column(table, row, blacklist))

    def get_go_type(self, sql_type: str) -> str:
        return get_go_type(self.driver, sql_type)

    # -- column resolution --------------------------------------------------

    def _resolve_column(
        self,
        table: Table,
        row: Sequence[str],
        blacklist: Set[str],
    ) -> Column:
        col_name, data_type, column_type, is_nullable, default, extra = row[:6]
        comment: str = row[6] if len(row) > 6 else ""

        go_name: str = camel_case(col_name)
        go_type: str = self.get_go_type(data_type)
        tag: OrmTag = OrmTag(column=col_name, comment=comment)

        if col_name == table.primary_key:
            go_name, go_type = "Id", "int"
            if "auto_increment" in extra:
                tag.auto = True
            else:
                tag.pk = True
            return Column(name=go_name, type=go_type, tag=tag)

        fk: Optional[ForeignKey] = table.foreign_keys.get(col_name)
        if fk is not None and fk.ref_table not in blacklist:
            tag.rel_fk = True
            return Column(name=go_name, type="*" + camel_case(fk.ref_table), tag=tag)

        if fk is not None:
            logger.debug(
                "%s.%s references blacklisted table '%s'; kept as scalar.",
                table.name, col_name, fk.ref_table,
            )
        if col_name == "id":
            go_name = "Id_RENAME"
        if is_nullable == "YES":
            tag.null = True
        go_type = self.refine_plain_column(
            table, tag, go_type, data_type, column_type, default, extra
        )
        return Column(name=go_name, type=go_type, tag=tag)

    @abc.abstractmethod
    def refine_plain_column(
        self,
        table: Table,
        tag: OrmTag,
        go_type: str,
        data_type: str,
        column_type: str,
        default: str,
        extra: str,
    ) -> str:
        """Apply size/precision/temporal rules; return the final Go type."""

    # -- shared refinements -------------------------------------------------

    @staticmethod
    def _apply_size(tag: OrmTag, column_type: str) -> None:
        tag.size = require_match(extract_col_size(column_type), "size", column_type, tag.column)

    @staticmethod
    def _apply_decimal(tag: OrmTag, column_type: str) -> None:
        digits, decimals = require_match(
            extract_decimal(column_type), "digits/decimals", column_type, tag.column
        )
        tag.digits = digits
        tag.decimals = decimals

    @staticmethod
    def _apply_temporal(table: Table, tag: OrmTag, data_type: str, default: str, extra: str) -> None:
        tag.type = data_type
        if _is_current_timestamp(default):
            if "on update current_timestamp" in extra.lower():
                tag.auto_now = True
            else:
                tag.auto_now_add = True
        table.imports_time = True


# ---------------------------------------------------------------------------
# MySQL
# ---------------------------------------------------------------------------


class MySQLTransformer(DbTransformer):
    """MySQL / MariaDB catalog reader."""

    driver = DatabaseDriver.MYSQL.value

    TABLES_SQL = "SHOW TABLES"

    CONSTRAINTS_SQL = """
        SELECT
            c.constraint_type, u.column_name, u.referenced_table_schema,
            u.referenced_table_name, u.referenced_column_name, u.ordinal_position
        FROM
            information_schema.table_constraints c
        INNER JOIN
            information_schema.key_column_usage u ON c.constraint_name = u.constraint_name
        WHERE
            c.table_schema = database() AND c.table_name = :table_name
            AND u.table_schema = database() AND u.table_name = :table_name
    """

    COLUMNS_SQL = """
        SELECT
            column_name, data_type, column_type, is_nullable, column_default,
            extra, column_comment
        FROM
            information_schema.columns
        WHERE
            table_schema = database() AND table_name = :table_name
        ORDER BY ordinal_position
    """

    def refine_plain_column(
        self,
        table: Table,
        tag: OrmTag,
        go_type: str,
        data_type: str,
        column_type: str,
        default: str,
        extra: str,
    ) -> str:
        if is_signed_int_type(data_type):
            sign: str = require_match(
                extract_int_signedness(column_type), "signedness", column_type, tag.column
            )
            if "unsigned" in sign.split() and "auto_increment" not in extra:
                go_type = self.get_go_type(f"{data_type} unsigned")
        if is_string_type(data_type):
            self._apply_size(tag, column_type)
        if is_temporal_type(data_type):
            self._apply_temporal(table, tag, data_type, default, extra)
        if is_decimal_type(data_type):
            self._apply_decimal(tag, column_type)
        if is_binary_type(data_type) or is_bit_type(data_type):
            self._apply_size(tag, column_type)
        return go_type


# ---------------------------------------------------------------------------
# PostgreSQL
# ---------------------------------------------------------------------------


class PostgresTransformer(DbTransformer):
    """PostgreSQL catalog reader (system schemas excluded)."""

    driver = DatabaseDriver.POSTGRES.value

    TABLES_SQL = """
        SELECT table_name FROM information_schema.tables
        WHERE table_catalog = current_database()
            AND table_type = 'BASE TABLE'
            AND table_schema NOT IN ('pg_catalog', 'information_schema')
        ORDER BY table_name
    """

    CONSTRAINTS_SQL = """
        SELECT
            c.constraint_type,
            u.column_name,
            cu.table_catalog AS referenced_table_catalog,
            cu.table_name AS referenced_table_name,
            cu.column_name AS referenced_column_name,
            u.ordinal_position
        FROM
            information_schema.table_constraints c
        INNER JOIN
            information_schema.key_column_usage u ON c.constraint_name = u.constraint_name
        INNER JOIN
            information_schema.constraint_column_usage cu ON cu.constraint_name = c.constraint_name
        WHERE
            c.table_catalog = current_database()
            AND c.table_schema NOT IN ('pg_catalog', 'information_schema')
            AND c.table_name = :table_name
            AND u.table_catalog = current_database()
            AND u.table_schema NOT IN ('pg_catalog', 'information_schema')
            AND u.table_name = :table_name
    """

    COLUMNS_SQL = """
        SELECT
            column_name,
            data_type,
            data_type ||
            CASE
                WHEN data_type = 'character' THEN '(' || character_maximum_length || ')'
                WHEN data_type = 'numeric' THEN '(' || numeric_precision || ',' || numeric_scale || ')'
                ELSE ''
            END AS column_type,
            is_nullable,
            column_default,
            CASE
                WHEN left(column_default, 8) = 'nextval(' OR is_identity = 'YES' THEN 'auto_increment'
                ELSE ''
            END AS extra,
            col_description(
                (quote_ident(table_schema) || '.' || quote_ident(table_name))::regclass::oid,
                ordinal_position
            ) AS column_comment
        FROM
            information_schema.columns
        WHERE
            table_catalog = current_database()
            AND table_schema NOT IN ('pg_catalog', 'information_schema')
            AND table_name = :table_name
        ORDER BY ordinal_position
    """

    def refine_plain_column(
        self,
        table: Table,
        tag: OrmTag,
        go_type: str,
        data_type: str,
        column_type: str,
        default: str,
        extra: str,
    ) -> str:
        if is_string_type(data_type):
            self._apply_size(tag, column_type)
        if is_temporal_type(data_type) or data_type.startswith("timestamp"):
            self._apply_temporal(table, tag, data_type, default, extra)
        if is_decimal_type(data_type):
            self._apply_decimal(tag, column_type)
        if is_binary_type(data_type):
            self._apply_size(tag, column_type)
        if is_opaque_type(data_type):
            tag.type = data_type
        return go_type


_TRANSFORMERS: Dict[str, type] = {
    DatabaseDriver.MYSQL.value: MySQLTransformer,
    DatabaseDriver.POSTGRES.value: PostgresTransformer,
}


def get_transformer(driver: str) -> DbTransformer:
    """Select the backend once, before any query is issued."""
    name: str = driver.strip().lower()
    if name == DatabaseDriver.SQLITE.value:
        raise ConfigurationError(
            "Generating app code from SQLite database is not supported yet."
        )
    cls: Optional[type] = _TRANSFORMERS.get(name)
    if cls is None:
        raise ConfigurationError(
            'Unknown database driver. Must be either "mysql", "postgres" or "sqlite"'
        )
    return cls()


# ---------------------------------------------------------------------------
# Two-phase read
# ---------------------------------------------------------------------------


def _dedupe(names: Iterable[str]) -> List[str]:
    ordered: Dict[str, None] = {}
    for name in names:
        name = name.strip()
        if name:
            ordered.setdefault(name, None)
    return list(ordered)


def read_tables(
    connection: Connection,
    transformer: DbTransformer,
    selected: Optional[Sequence[str]] = None,
) -> List[Table]:
    """
    Build fully populated ``Table`` descriptors.

    Args:
        connection: Open SQLAlchemy connection (used serially).
        transformer: Backend chosen by ``get_transformer``.
        selected: Optional allow-list; order kept, duplicates dropped.

    Returns:
        Tables in allow-list order, or catalog order when no list is given.

    Raises:
        CatalogQueryError, TypeMappingError, ExtractionError: fatal for the run.
    """
    names: List[str] = _dedupe(selected) if selected else transformer.get_table_names(connection)
    logger.info("Analyzing %d database table(s)...", len(names))

    blacklist: Set[str] = set()
    tables: List[Table] = []
    for name in names:
        table: Table = Table(name=name)
        transformer.get_constraints(connection, table, blacklist)
        tables.append(table)

    for table in tables:
        transformer.get_columns(connection, table, blacklist)
        logger.debug("Read %r.", table)

    return tables


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

# user:pass@tcp(host:port)/dbname?param=value
_GO_MYSQL_DSN_RE: re.Pattern[str] = re.compile(
    r"^(?:(?P<user>[^:@]*)(?::(?P<password>[^@]*))?@)?"
    r"(?:(?P<proto>[a-z]+)\((?P<addr>[^)]*)\))?"
    r"/(?P<db>[^?]*)(?:\?(?P<params>.*))?$"
)
_LIBPQ_PAIR_RE: re.Pattern[str] = re.compile(r"(\w+)\s*=\s*('(?:[^'\\]|\\.)*'|\S+)")


def _mysql_url_from_dsn(dsn: str) -> str:
    match: Optional[re.Match[str]] = _GO_MYSQL_DSN_RE.match(dsn)
    if match is None:
        raise ConfigurationError(f"Unrecognised MySQL connection string: '{dsn}'")
    user: str = match.group("user") or ""
    password: Optional[str] = match.group("password")
    addr: str = match.group("addr") or "127.0.0.1:3306"
    auth: str = quote_plus(user)
    if password is not None:
        auth += ":" + quote_plus(password)
    if auth:
        auth += "@"
    params: str = match.group("params") or ""
    kept: List[str] = [
        p for p in params.split("&")
        if p.split("=", 1)[0] == "charset"
    ]
    query: str = ("?" + "&".join(kept)) if kept else ""
    return f"mysql+pymysql://{auth}{addr}/{match.group('db')}{query}"


def _postgres_url_from_keywords(conninfo: str) -> str:
    pairs: Dict[str, str] = {
        key: value.strip("'") for key, value in _LIBPQ_PAIR_RE.findall(conninfo)
    }
    if not pairs:
        raise ConfigurationError(f"Unrecognised PostgreSQL connection string: '{conninfo}'")
    user: str = quote_plus(pairs.pop("user", ""))
    password: str = pairs.pop("password", "")
    host: str = pairs.pop("host", "localhost")
    port: str = pairs.pop("port", "")
    dbname: str = pairs.pop("dbname", "")
    auth: str = user + (":" + quote_plus(password) if password else "")
    netloc: str = (auth + "@" if auth else "") + host + (":" + port if port else "")
    query: str = "&".join(f"{k}={quote_plus(v)}" for k, v in pairs.items())
    return f"postgresql+psycopg2://{netloc}/{dbname}" + ("?" + query if query else "")


def build_sqlalchemy_url(driver: str, connection_string: str) -> str:
    """
    Accept the connection string forms users bring from Go tooling.

    - SQLAlchemy URLs are returned unchanged.
    - ``mysql://`` / ``postgres://`` / ``postgresql://`` get an explicit DBAPI.
    - Go MySQL DSNs ``user:pass@tcp(host:port)/db?charset=utf8``.
    - libpq keyword strings ``host=... user=... dbname=...``.
    """
    conn: str = connection_string.strip()
    if not conn:
        raise ConfigurationError("Empty connection string.")
    if driver == DatabaseDriver.MYSQL.value:
        if conn.startswith("mysql+"):
            return conn
        if conn.startswith("mysql://"):
            return "mysql+pymysql://" + conn[len("mysql://"):]
        return _mysql_url_from_dsn(conn)
    if driver == DatabaseDriver.POSTGRES.value:
        if conn.startswith("postgresql+"):
            return conn
        for prefix in ("postgres://", "postgresql://"):
            if conn.startswith(prefix):
                return "postgresql+psycopg2://" + conn[len(prefix):]
        return _postgres_url_from_keywords(conn)
    raise ConfigurationError(f"Unsupported database driver '{driver}'.")


def open_engine(driver: str, connection_string: str) -> Engine:
    """Create the engine for a run and check the database is reachable."""
    url: str = build_sqlalchemy_url(driver, connection_string)
    try:
        engine: Engine = create_engine(url, pool_pre_ping=True)
        with engine.connect():
            pass
    except ArgumentError as exc:
        raise ConfigurationError(f"Invalid connection string: {exc}") from exc
    except SQLAlchemyError as exc:
        safe: str = make_url(url).render_as_string(hide_password=True)
        raise DatabaseConnectionError(
            f"Could not connect to '{driver}' database using '{safe}': {exc}"
        ) from exc
    logger.info("Connected to %s database.", driver)
    return engine


__all__: List[str] = [
    "DbTransformer",
    "MySQLTransformer",
    "PostgresTransformer",
    "get_transformer",
    "read_tables",
    "build_sqlalchemy_url",
    "open_engine",
]

logger.debug("crudgen.introspection loaded.")
