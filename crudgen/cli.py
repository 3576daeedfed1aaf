# File: crudgen/cli.py
"""
crudgen - Command-Line Interface
================================

Thin ``argparse`` front end over ``AppCodeGenerator``.

Usage examples::

    # Models, controllers, filters and router for every table
    crudgen --driver mysql --conn "root:secret@tcp(127.0.0.1:3306)/shop"

    # Everything including the Vue admin pages, two tables only
    crudgen --conn "$DSN" --tables users,orders --level 4 --app-path ./shop

    # Settings from a file, never overwrite existing files
    crudgen --config crudgen.yaml --no

Exit codes:
    0 - success
    1 - configuration error
    2 - database error (connection, catalog query, type mapping, extraction)
    3 - export error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from crudgen.exceptions import (
    CatalogQueryError,
    ConfigurationError,
    DatabaseConnectionError,
    ExportError,
    ExtractionError,
    TypeMappingError,
)

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_CONFIG_ERROR: int = 1
EXIT_DATABASE_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root crudgen logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("crudgen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from crudgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="crudgen",
        description=(
            "crudgen: CRUD scaffolding from a live database.\n\n"
            "Reads the table catalog of a MySQL or PostgreSQL database and "
            "writes beego/gorm models, controllers, input filters, a router "
            "and Vue admin pages."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Levels:\n"
            "  1  models\n"
            "  2  models, controllers, filters\n"
            "  3  models, controllers, filters, router (default)\n"
            "  4  everything plus Vue components\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    source_group = parser.add_argument_group("database")
    source_group.add_argument(
        "--driver",
        default=None,
        help='Database driver: "mysql" (default) or "postgres".',
    )
    source_group.add_argument(
        "--conn",
        default=None,
        help="Connection string (Go DSN, libpq keywords or URL). "
        "Falls back to $CRUDGEN_CONN.",
    )
    source_group.add_argument(
        "--tables",
        default=None,
        help="Comma-separated list of tables to generate (default: all).",
    )

    output_group = parser.add_argument_group("output")
    output_group.add_argument(
        "--level",
        choices=("1", "2", "3", "4"),
        default=None,
        help="Which artifacts to generate (see below).",
    )
    output_group.add_argument(
        "--app-path",
        default=None,
        help="Application root the files are written under (default: cwd).",
    )
    output_group.add_argument(
        "--package-path",
        default=None,
        help="Go import path of the application (default: from go.mod or GOPATH).",
    )
    output_group.add_argument(
        "--template-dir",
        default=None,
        help="Directory with *.tpl files overriding the bundled templates.",
    )
    output_group.add_argument(
        "--config",
        default=None,
        help="YAML or JSON file with any of the settings above.",
    )

    behaviour_group = parser.add_argument_group("behaviour flags")
    overwrite = behaviour_group.add_mutually_exclusive_group()
    overwrite.add_argument(
        "--yes",
        dest="overwrite",
        action="store_const",
        const="always",
        help="Overwrite existing files without asking.",
    )
    overwrite.add_argument(
        "--no",
        dest="overwrite",
        action="store_const",
        const="never",
        help="Never overwrite existing files.",
    )
    behaviour_group.add_argument(
        "--no-format",
        action="store_true",
        default=False,
        help="Do not run gofmt on generated Go files.",
    )

    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all log output.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Map parsed flags onto config keys; unset flags are left out."""
    overrides: Dict[str, Any] = {
        "driver": args.driver,
        "connection": args.conn,
        "tables": args.tables,
        "level": args.level,
        "app_path": args.app_path,
        "package_path": args.package_path,
        "template_dir": args.template_dir,
        "overwrite": args.overwrite,
    }
    if args.no_format:
        overrides["format_source"] = False
    return {k: v for k, v in overrides.items() if v is not None}


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def _run_generation(args: argparse.Namespace) -> int:
    """Run the full pipeline and return the exit code."""
    from crudgen.config import build_config, load_config_file
    from crudgen.generator import AppCodeGenerator, GenerationReport

    try:
        file_data: Dict[str, Any] = (
            load_config_file(Path(args.config)) if args.config else {}
        )
        config = build_config(file_data, _build_config_overrides(args))
        logger.info("Driver:  %s", config.driver)
        logger.info("Level:   %s", config.level)
        logger.info("Output:  %s", config.app_path)
        report: GenerationReport = AppCodeGenerator(config).run()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR
    except (DatabaseConnectionError, CatalogQueryError, TypeMappingError, ExtractionError) as exc:
        logger.error("%s", exc)
        return EXIT_DATABASE_ERROR
    except ExportError as exc:
        logger.error("%s", exc)
        return EXIT_EXPORT_ERROR

    if not args.quiet:
        print(report.summary())

    if not report.success:
        return EXIT_EXPORT_ERROR
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
        logging.disable(logging.CRITICAL)
    else:
        verbosity = args.verbose

    _setup_logging(verbosity)

    exit_code: int = _run_generation(args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_CONFIG_ERROR",
    "EXIT_DATABASE_ERROR",
    "EXIT_EXPORT_ERROR",
]

logger.debug("crudgen.cli loaded.")
