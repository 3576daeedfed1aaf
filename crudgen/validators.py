# File: crudgen/validators.py
"""
crudgen - Configuration & Schema Validators
===========================================
Semantic checks on top of pydantic's structural validation.

``validate_config`` runs before any query is issued; its errors stop the
run. ``validate_tables`` runs on the descriptors read from the catalog and
only produces warnings (things the user will want to fix by hand in the
generated code).

Usage by downstream modules:
    from crudgen.validators import validate_config
    result = validate_config(config)
    if result.has_errors:
        raise ConfigurationError(result.format_report())
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from crudgen.models import DatabaseDriver, GenerationConfig, Table

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight issue descriptor (no pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_warning]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    def summary(self) -> str:
        return (
            f"Validation: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s)."
        )

    def format_report(self) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary()]
        for item in self._items:
            prefix: str = "✗" if item.is_error else "!"
            lines.append(f"  {prefix} [{item.code}] {item.message}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

_SUPPORTED_DRIVERS = (DatabaseDriver.MYSQL.value, DatabaseDriver.POSTGRES.value)


def validate_config(config: GenerationConfig) -> ValidationResult:
    """Checks that must pass before the database is touched."""
    result: ValidationResult = ValidationResult()

    if config.driver == DatabaseDriver.SQLITE.value:
        result.add_error(
            "UNSUPPORTED_DRIVER",
            "Generating app code from SQLite database is not supported yet.",
            {"driver": config.driver},
        )
    elif config.driver not in _SUPPORTED_DRIVERS:
        result.add_error(
            "UNKNOWN_DRIVER",
            'Unknown database driver. Must be either "mysql", "postgres" or "sqlite"',
            {"driver": config.driver},
        )

    if not config.connection.strip():
        result.add_error(
            "MISSING_CONNECTION",
            "No connection string given (use --conn, the config file or CRUDGEN_CONN).",
        )

    if config.app_path.exists() and not config.app_path.is_dir():
        result.add_error(
            "APP_PATH_NOT_DIRECTORY",
            f"Application path '{config.app_path}' exists but is not a directory.",
            {"app_path": str(config.app_path)},
        )
    elif not config.app_path.exists():
        result.add_warning(
            "APP_PATH_CREATED",
            f"Application path '{config.app_path}' does not exist; it will be created.",
            {"app_path": str(config.app_path)},
        )

    if config.template_dir is not None and not config.template_dir.is_dir():
        result.add_error(
            "TEMPLATE_DIR_NOT_FOUND",
            f"Template directory '{config.template_dir}' does not exist.",
        )

    logger.debug("Config validation: %s", result.summary())
    return result


# ---------------------------------------------------------------------------
# Tables read from the catalog
# ---------------------------------------------------------------------------


def validate_tables(tables: Sequence[Table]) -> ValidationResult:
    """
    Warn about tables that will be generated in a reduced form.

    - tables without a usable primary key (model only)
    - allow-listed tables the catalog did not return any columns for
    - a plain column named ``id`` (emitted as ``Id_RENAME``)
    - foreign keys to keyless tables (emitted as scalar columns)
    """
    result: ValidationResult = ValidationResult()

    for table in tables:
        ctx: Dict[str, Any] = {"table": table.name}

        if not table.columns:
            result.add_warning(
                "TABLE_NOT_FOUND",
                f"Table '{table.name}' has no columns; does it exist?",
                ctx,
            )
            continue

        if not table.has_primary_key:
            result.add_warning(
                "NO_USABLE_PRIMARY_KEY",
                f"Table '{table.name}' has no single-column primary key; "
                f"only a model struct is generated.",
                ctx,
            )

        for col in table.columns:
            if col.name == "Id_RENAME":
                result.add_warning(
                    "ID_COLUMN_RENAMED",
                    f"Column 'id' in table '{table.name}' is not the primary key "
                    f"and was emitted as 'Id_RENAME'.",
                    {"table": table.name, "column": col.tag.column},
                )
            fk = table.foreign_keys.get(col.tag.column)
            if fk is not None and not col.tag.rel_fk and col.tag.column != table.primary_key:
                result.add_warning(
                    "FOREIGN_KEY_DEGRADED",
                    f"{table.name}.{col.tag.column} references '{fk.ref_table}', "
                    f"which has no usable primary key; emitted as a plain column.",
                    {"table": table.name, "column": col.tag.column},
                )

    logger.debug("Table validation: %s", result.summary())
    return result


__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "validate_config",
    "validate_tables",
]

logger.debug("crudgen.validators loaded.")
