# File: crudgen/generator.py
"""
crudgen - Generation Pipeline (Orchestrator)
============================================

Connects every phase together:

    Config check → Catalog read → Template rendering → File export

Workflow::

    1. Validate the configuration (validators.py); errors stop the run.
    2. Pick the backend and open the database (introspection.py).
    3. Read every selected table, constraints first, then columns.
    4. Close the connection.
    5. Per table, in order: model, controller, filter, router namespace,
       Vue components (templates.py → exporters.py).
    6. Write ``routers/router.go`` unless it already exists.
    7. Log the manual follow-up notices and return a ``GenerationReport``.

Error handling strategy:
    - Configuration, connection, catalog, type-mapping and extraction
      errors are raised and abort the run.
    - A failed model write raises ``ExportError``; other failed writes are
      recorded in the report and the run goes on.
    - Files written before an abort stay on disk.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from jinja2 import Environment
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from crudgen.exceptions import ConfigurationError, DatabaseConnectionError
from crudgen.exporters import (
    CONTROLLERS_DIR,
    FILTERS_DIR,
    MODELS_DIR,
    ROUTER_FILE,
    VUE_COMPONENTS_DIR,
    ConfirmFunc,
    ExportResult,
    FileRecord,
    ProjectExporter,
)
from crudgen.introspection import DbTransformer, get_transformer, open_engine, read_tables
from crudgen.models import GenerationConfig, GenerationLevel, Table
from crudgen.templates import TemplateGenerator, create_template_env
from crudgen.utils import Timer, go_file_stem
from crudgen.validators import ValidationResult, validate_config, validate_tables

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.generator")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Outcome of one ``AppCodeGenerator`` run."""

    success: bool = False
    app_path: str = ""
    package_path: str = ""
    level: int = 0

    tables_processed: List[str] = field(default_factory=list)
    skipped_tables: List[str] = field(default_factory=list)
    files_written: List[FileRecord] = field(default_factory=list)
    files_skipped: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)

    total_elapsed_seconds: float = 0.0
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files_written)

    @property
    def total_lines(self) -> int:
        return sum(f.line_count for f in self.files_written)

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✓ SUCCESS" if self.success else "✗ FAILED"
        lines.append("=" * 60)
        lines.append("  crudgen: Generation Report")
        lines.append("=" * 60)
        lines.append(f"  Status:           {status}")
        lines.append(f"  App path:         {self.app_path}")
        if self.package_path:
            lines.append(f"  Package:          {self.package_path}")
        lines.append(f"  Level:            {self.level}")
        lines.append(f"  Tables processed: {len(self.tables_processed)}")
        lines.append(f"  Files written:    {len(self.files_written)}")
        lines.append(f"  Files skipped:    {len(self.files_skipped)}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")

        if self.step_metrics:
            lines.append("─" * 60)
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<20s} "
                    f"{step.elapsed_seconds:>7.3f}s  {step.detail}"
                )

        if self.skipped_tables:
            lines.append("─" * 60)
            lines.append(f"  Model-only tables ({len(self.skipped_tables)}):")
            for name in self.skipped_tables:
                lines.append(f"    ⊘ {name}")

        if self.warnings:
            lines.append("─" * 60)
            lines.append(f"  Warnings ({len(self.warnings)}):")
            for warn in self.warnings:
                lines.append(f"    ! {warn}")

        if self.export_errors:
            lines.append("─" * 60)
            lines.append(f"  Export Errors ({len(self.export_errors)}):")
            for err in self.export_errors:
                lines.append(f"    ✗ {err}")

        lines.append("=" * 60)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Go package path
# ---------------------------------------------------------------------------


def _module_from_go_mod(go_mod: Path) -> Optional[str]:
    for line in go_mod.read_text(encoding="utf-8").splitlines():
        parts: List[str] = line.strip().split()
        if len(parts) >= 2 and parts[0] == "module":
            return parts[1].strip('"')
    return None


def resolve_package_path(
    config: GenerationConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Go import path of the generated application.

    Resolution order:
        1. ``config.package_path`` when given;
        2. the ``module`` line of the nearest ``go.mod`` at or above
           ``app_path`` (plus the sub-directory, if any);
        3. ``app_path`` relative to ``$GOPATH/src``.

    Raises:
        ConfigurationError: none of the above applies.
    """
    if config.package_path:
        return config.package_path.strip().strip("/")

    app: Path = config.app_path.resolve()
    for directory in (app, *app.parents):
        go_mod: Path = directory / "go.mod"
        if go_mod.is_file():
            module: Optional[str] = _module_from_go_mod(go_mod)
            if module:
                rel: Path = app.relative_to(directory)
                return "/".join((module, *rel.parts))

    env: Mapping[str, str] = os.environ if environ is None else environ
    gopath: str = env.get("GOPATH", "")
    if not gopath:
        raise ConfigurationError(
            "GOPATH environment variable is not set or empty "
            "(or pass --package-path, or add a go.mod)"
        )
    logger.debug("GOPATH: %s", gopath)

    for entry in gopath.split(os.pathsep):
        if not entry:
            continue
        src: Path = Path(entry, "src").resolve()
        try:
            rel = app.relative_to(src)
        except ValueError:
            continue
        if not rel.parts:
            raise ConfigurationError(
                "Cannot generate application code outside of application path"
            )
        return "/".join(rel.parts)

    raise ConfigurationError(
        f"Cannot generate application code outside of GOPATH '{gopath}' "
        f"compare with CWD '{app}'"
    )


# ---------------------------------------------------------------------------
# Main generator class
# ---------------------------------------------------------------------------


class AppCodeGenerator:
    """
    Top-level orchestrator for the scaffolding pipeline.

    Usage::

        config = GenerationConfig(driver="mysql", connection=dsn, level=4)
        report = AppCodeGenerator(config).run()
        print(report.summary())
    """

    def __init__(
        self,
        config: GenerationConfig,
        *,
        confirm: Optional[ConfirmFunc] = None,
        env: Optional[Environment] = None,
    ) -> None:
        self._config: GenerationConfig = config
        self._confirm: Optional[ConfirmFunc] = confirm
        self._env: Optional[Environment] = env
        logger.debug(
            "AppCodeGenerator initialised (driver=%s, level=%s).",
            config.driver,
            config.level,
        )

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def run(self) -> GenerationReport:
        """Validate, read the catalog over a fresh connection, generate."""
        metrics: List[GenerationStepMetric] = []

        with Timer("validate") as t_val:
            check: ValidationResult = validate_config(self._config)
        for issue in check.warnings:
            logger.warning(issue.message)
        if check.has_errors:
            raise ConfigurationError(check.format_report())
        metrics.append(GenerationStepMetric("validate config", True, t_val.elapsed))

        transformer: DbTransformer = get_transformer(self._config.driver)
        with Timer("read schema") as t_read:
            engine: Engine = open_engine(self._config.driver, self._config.connection)
            try:
                with engine.connect() as conn:
                    tables: List[Table] = read_tables(
                        conn, transformer, self._config.tables or None
                    )
            except SQLAlchemyError as exc:
                raise DatabaseConnectionError(
                    f"Could not connect to '{self._config.driver}' database: {exc}"
                ) from exc
            finally:
                engine.dispose()
        metrics.append(GenerationStepMetric(
            "read schema", True, t_read.elapsed, f"{len(tables)} table(s)"
        ))

        report: GenerationReport = self.generate(tables)
        report.step_metrics[:0] = metrics
        report.total_elapsed_seconds += t_val.elapsed + t_read.elapsed
        return report

    def generate_from_connection(self, connection: Connection) -> GenerationReport:
        """Read the catalog through a caller-owned connection, then generate."""
        transformer: DbTransformer = get_transformer(self._config.driver)
        with Timer("read schema") as t_read:
            tables: List[Table] = read_tables(
                connection, transformer, self._config.tables or None
            )
        report: GenerationReport = self.generate(tables)
        report.step_metrics.insert(0, GenerationStepMetric(
            "read schema", True, t_read.elapsed, f"{len(tables)} table(s)"
        ))
        report.total_elapsed_seconds += t_read.elapsed
        return report

    def generate(self, tables: Sequence[Table]) -> GenerationReport:
        """Render and write every artifact the configured level selects."""
        start: float = time.perf_counter()
        config: GenerationConfig = self._config
        level: GenerationLevel = config.generation_level

        package_path: str = config.package_path or ""
        if level & (GenerationLevel.CONTROLLER | GenerationLevel.ROUTER):
            package_path = resolve_package_path(config)

        report: GenerationReport = GenerationReport(
            app_path=str(config.app_path),
            package_path=package_path,
            level=config.level,
        )

        table_check: ValidationResult = validate_tables(tables)
        for issue in table_check.warnings:
            logger.warning(issue.message)
            report.warnings.append(issue.message)

        templates: TemplateGenerator = TemplateGenerator(
            config,
            self._env or create_template_env(config.template_dir),
            package_path,
        )
        exporter: ProjectExporter = ProjectExporter(
            config.app_path,
            overwrite=config.overwrite,
            confirm=self._confirm,
            format_source=config.format_source,
        )
        exporter.prepare_directories(level)

        operate_list: List[str] = []
        namespaces: List[str] = []
        vue_routes: List[str] = []
        vue_menus: List[str] = []

        with Timer("write files") as t_write:
            for table in tables:
                stem: str = go_file_stem(table.name)
                report.tables_processed.append(table.name)

                if level & GenerationLevel.MODEL:
                    exporter.write(
                        f"{MODELS_DIR}/{stem}Model.go",
                        templates.generate_model(table),
                        category="model",
                    )

                if not table.has_primary_key:
                    report.skipped_tables.append(table.name)
                    continue

                if level & GenerationLevel.CONTROLLER:
                    exporter.write(
                        f"{CONTROLLERS_DIR}/{stem}Controller.go",
                        templates.generate_controller(table),
                        category="controller",
                    )
                    operate_list.append(templates.operate_list_snippet(table))
                    exporter.write(
                        f"{FILTERS_DIR}/{stem}Filter.go",
                        templates.generate_filter(table),
                        category="filter",
                    )

                if level & GenerationLevel.ROUTER:
                    namespaces.append(templates.namespace_snippet(table))

                if level & GenerationLevel.UI:
                    for filename, content in templates.generate_ui(table):
                        exporter.write(
                            f"{VUE_COMPONENTS_DIR}/{table.component_dir}/{filename}",
                            content,
                            category="ui",
                        )
                    vue_routes.append(templates.vue_route_snippet(table))
                    vue_menus.append(templates.vue_menu_snippet(table))

            router_written: bool = True
            if level & GenerationLevel.ROUTER:
                router_written = exporter.write_router(templates.generate_router(namespaces))

        if operate_list:
            report.notices.append("add to operate list:\n" + "".join(operate_list))
        if not router_written and namespaces:
            report.notices.append(f"add to {ROUTER_FILE} \n" + "".join(namespaces))
        if vue_routes:
            report.notices.append("add to vue vue/src/router/index.js \n" + "".join(vue_routes))
        if vue_menus:
            report.notices.append("add to vue menu \n" + "".join(vue_menus))
        if report.notices:
            logger.warning("add to file this route \n %s\n", "\n".join(report.notices))

        result: ExportResult = exporter.result()
        report.files_written = list(result.written)
        report.files_skipped = list(result.skipped)
        report.export_errors = list(result.errors)
        report.warnings.extend(result.warnings)
        report.success = result.success
        report.step_metrics.append(GenerationStepMetric(
            "write files",
            result.success,
            t_write.elapsed,
            f"{len(result.written)} written, {len(result.skipped)} skipped",
        ))
        report.total_elapsed_seconds = time.perf_counter() - start

        logger.info(
            "Generated %d file(s) for %d table(s) in %.3fs.",
            len(report.files_written),
            len(report.tables_processed),
            report.total_elapsed_seconds,
        )
        return report


__all__: List[str] = [
    "AppCodeGenerator",
    "GenerationReport",
    "GenerationStepMetric",
    "resolve_package_path",
]

logger.debug("crudgen.generator loaded.")
