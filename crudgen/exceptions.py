# File: crudgen/exceptions.py
"""
crudgen - Error Hierarchy
=========================
Every failure the generator can report derives from ``CrudgenError`` so
callers (and the CLI) can map them onto exit codes without string matching.

Nothing here is retried: a raised error aborts the run, and files already
written for earlier tables stay on disk.
"""

from __future__ import annotations

import logging
from typing import List, Optional

logger: logging.Logger = logging.getLogger("crudgen.exceptions")


class CrudgenError(Exception):
    """Base class for all generator errors."""


class ConfigurationError(CrudgenError):
    """Unsupported driver, bad level, unresolved package path, bad config file."""


class DatabaseConnectionError(CrudgenError):
    """The catalog database could not be reached."""


class CatalogQueryError(CrudgenError):
    """A catalog query failed part-way through introspection."""

    def __init__(self, message: str, table: Optional[str] = None) -> None:
        super().__init__(message)
        self.table: Optional[str] = table


class TypeMappingError(CrudgenError):
    """A catalog data type has no entry in the driver's type table."""

    def __init__(self, sql_type: str) -> None:
        super().__init__(f"data type '{sql_type}' not found")
        self.sql_type: str = sql_type


class ExtractionError(CrudgenError):
    """A full column type string did not have the shape a refinement needs."""

    def __init__(self, what: str, column_type: str, column: str = "") -> None:
        where: str = f" (column '{column}')" if column else ""
        super().__init__(
            f"could not extract {what} from column type '{column_type}'{where}"
        )
        self.what: str = what
        self.column_type: str = column_type
        self.column: str = column


class ExportError(CrudgenError):
    """A generated file that must exist could not be written."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path: str = path


__all__: List[str] = [
    "CrudgenError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "CatalogQueryError",
    "TypeMappingError",
    "ExtractionError",
    "ExportError",
]

logger.debug("crudgen.exceptions loaded.")
