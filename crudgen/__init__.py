# File: crudgen/__init__.py
"""
crudgen: CRUD Scaffolding from a Live Database
==============================================

Reads table, column and key metadata from a MySQL or PostgreSQL catalog
and writes a beego/gorm backend (models, controllers, input filters, a
namespaced router) plus Vue admin pages for every table.

Architecture overview::

    ┌──────────────┐     ┌──────────────────┐     ┌───────────────────┐
    │  CLI / Entry │────▶│ AppCodeGenerator │────▶│ TemplateGenerator │
    │   (cli.py)   │     │  (generator.py)  │     │  (templates.py)   │
    └──────────────┘     └────────┬─────────┘     └───────────────────┘
                                  │
                 ┌────────────────┼────────────────┐
                 ▼                ▼                ▼
         ┌───────────────┐  ┌───────────┐  ┌───────────┐
         │ introspection │  │  models   │  │ exporters │
         │  + typemap    │  │  (.py)    │  │  (.py)    │
         └───────────────┘  └───────────┘  └───────────┘

Usage::

    # As a library
    from crudgen import AppCodeGenerator, GenerationConfig
    config = GenerationConfig(driver="mysql", connection=dsn, level=4)
    print(AppCodeGenerator(config).run().summary())

    # From the command line
    crudgen --driver mysql --conn "$DSN" --level 4 --app-path ./shop
"""

from __future__ import annotations

__version__: str = "1.0.0"

from crudgen.exceptions import (
    CatalogQueryError,
    ConfigurationError,
    CrudgenError,
    DatabaseConnectionError,
    ExportError,
    ExtractionError,
    TypeMappingError,
)
from crudgen.models import (
    Column,
    ForeignKey,
    GenerationConfig,
    GenerationLevel,
    OrmTag,
    OverwritePolicy,
    Table,
)
from crudgen.introspection import (
    DbTransformer,
    MySQLTransformer,
    PostgresTransformer,
    get_transformer,
    read_tables,
)
from crudgen.templates import TemplateGenerator, create_template_env
from crudgen.exporters import ExportResult, FileRecord, ProjectExporter
from crudgen.generator import AppCodeGenerator, GenerationReport, resolve_package_path
from crudgen.config import build_config, load_config_file

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    # Orchestrator
    "AppCodeGenerator",
    "GenerationReport",
    "resolve_package_path",
    # Models
    "Column",
    "ForeignKey",
    "GenerationConfig",
    "GenerationLevel",
    "OrmTag",
    "OverwritePolicy",
    "Table",
    # Schema reader
    "DbTransformer",
    "MySQLTransformer",
    "PostgresTransformer",
    "get_transformer",
    "read_tables",
    # Templates & export
    "TemplateGenerator",
    "create_template_env",
    "ProjectExporter",
    "ExportResult",
    "FileRecord",
    # Configuration
    "build_config",
    "load_config_file",
    # Errors
    "CrudgenError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "CatalogQueryError",
    "TypeMappingError",
    "ExtractionError",
    "ExportError",
]
