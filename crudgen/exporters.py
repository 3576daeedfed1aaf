# File: crudgen/exporters.py
"""
crudgen - Project Exporter (File-System Manager)
================================================

Responsible for:
    1. Creating the output directories for the selected artifact categories.
    2. Applying the overwrite policy (ask / always / never) to existing files.
    3. Writing each file atomically (write-to-temp then rename).
    4. Optionally running ``gofmt -w`` on written Go sources.
    5. Recording a ``FileRecord`` (size, lines, checksum) per written file.

Model files are required by everything downstream, so a failed model write
raises ``ExportError``. Failures in the other categories are logged and
recorded and the run goes on. Nothing already written is rolled back.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, TextIO, Tuple

from crudgen.exceptions import ExportError
from crudgen.models import GenerationLevel, OverwritePolicy
from crudgen.utils import ask_for_confirmation, count_lines, print_status, sha256_hex

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.exporters")

ConfirmFunc = Callable[[Path], bool]

# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single written file."""

    relative_path: str
    absolute_path: str
    category: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Everything the exporter did during one run."""

    written: Tuple[FileRecord, ...]
    skipped: Tuple[str, ...]
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]

    @property
    def success(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# Directory layout
# ---------------------------------------------------------------------------

MODELS_DIR: str = "models"
CONTROLLERS_DIR: str = "controllers"
FILTERS_DIR: str = "filters"
ROUTERS_DIR: str = "routers"
VUE_COMPONENTS_DIR: str = "vue/src/components"
ROUTER_FILE: str = f"{ROUTERS_DIR}/router.go"


def default_confirm(path: Path) -> bool:
    """Ask on stdin whether *path* may be overwritten."""
    return ask_for_confirmation(
        f"'{path}' already exists. Do you want to overwrite it? [Yes|No] "
    )


class ProjectExporter:
    """
    Writes generated files under the application root.

    Usage::

        exporter = ProjectExporter(Path("./myapp"), overwrite=OverwritePolicy.ASK)
        exporter.prepare_directories(GenerationLevel.from_level(3))
        exporter.write("models/UserModel.go", source, category="model")
        result = exporter.result()

    Not thread-safe. Use one exporter per run.
    """

    def __init__(
        self,
        app_path: Path,
        *,
        overwrite: OverwritePolicy = OverwritePolicy.ASK,
        confirm: Optional[ConfirmFunc] = None,
        format_source: bool = True,
        stream: Optional[TextIO] = None,
    ) -> None:
        self._root: Path = Path(app_path).resolve()
        self._overwrite: OverwritePolicy = OverwritePolicy(overwrite)
        self._confirm: ConfirmFunc = confirm or default_confirm
        self._stream: Optional[TextIO] = stream
        self._gofmt: Optional[str] = shutil.which("gofmt") if format_source else None
        if format_source and self._gofmt is None:
            logger.info("gofmt not found on PATH; Go sources are left unformatted.")

        self._written: List[FileRecord] = []
        self._skipped: List[str] = []
        self._errors: List[str] = []
        self._warnings: List[str] = []

        logger.debug(
            "ProjectExporter initialised: root=%s, overwrite=%s.",
            self._root,
            self._overwrite.value,
        )

    @property
    def root(self) -> Path:
        return self._root

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def prepare_directories(self, level: GenerationLevel) -> None:
        """Create the category directories the selected level writes into."""
        wanted: List[Tuple[str, str]] = []
        if level & GenerationLevel.MODEL:
            wanted.append((MODELS_DIR, "model"))
        if level & GenerationLevel.CONTROLLER:
            wanted.extend([(CONTROLLERS_DIR, "controller"), (FILTERS_DIR, "filter")])
        if level & GenerationLevel.ROUTER:
            wanted.append((ROUTERS_DIR, "router"))
        if level & GenerationLevel.UI:
            wanted.append((VUE_COMPONENTS_DIR, "ui"))

        for rel_dir, category in wanted:
            dir_path: Path = self._root / rel_dir
            try:
                dir_path.mkdir(parents=True, exist_ok=True)
                logger.debug("Created directory: %s", dir_path)
            except OSError as exc:
                self._fail(f"Failed to create directory {dir_path}: {exc}", category, dir_path)

    def write(self, rel_path: str, content: str, *, category: str) -> Optional[FileRecord]:
        """
        Write one generated file, honouring the overwrite policy.

        Returns:
            The ``FileRecord``, or ``None`` when the file was skipped or a
            non-model write failed.

        Raises:
            ExportError: a model file could not be written.
        """
        target: Path = self._root / rel_path
        if target.exists() and not self._may_overwrite(target):
            logger.warning("Skipped create file '%s'", target)
            self._skipped.append(rel_path)
            return None

        encoded: bytes = content.encode("utf-8")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            self._atomic_write(target, encoded)
        except OSError as exc:
            self._fail(f"Could not write {category} file to '{target}': {exc}", category, target)
            return None

        record: FileRecord = FileRecord(
            relative_path=rel_path,
            absolute_path=str(target),
            category=category,
            size_bytes=len(encoded),
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )
        self._written.append(record)
        print_status("create", str(target), self._stream)
        logger.debug("Wrote file: %s (%d bytes, %d lines).", rel_path, record.size_bytes, record.line_count)

        if target.suffix == ".go":
            self._format(target)
        return record

    def write_router(self, content: str) -> bool:
        """
        Write ``routers/router.go`` unless it already exists.

        An existing router file is never overwritten and never prompted for;
        the caller turns the namespaces into a notice instead.
        """
        target: Path = self._root / ROUTER_FILE
        if target.exists():
            logger.warning("Skipped create file '%s'", target)
            self._skipped.append(ROUTER_FILE)
            return False
        return self.write(ROUTER_FILE, content, category="router") is not None

    def result(self) -> ExportResult:
        return ExportResult(
            written=tuple(self._written),
            skipped=tuple(self._skipped),
            errors=tuple(self._errors),
            warnings=tuple(self._warnings),
        )

    # -----------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------

    def _may_overwrite(self, target: Path) -> bool:
        if self._overwrite == OverwritePolicy.ALWAYS:
            return True
        if self._overwrite == OverwritePolicy.NEVER:
            return False
        return self._confirm(target)

    def _fail(self, message: str, category: str, path: Path) -> None:
        if category == "model":
            logger.error(message)
            raise ExportError(message, path=str(path))
        self._errors.append(message)
        logger.error(message)

    def _format(self, target: Path) -> None:
        if self._gofmt is None:
            return
        try:
            proc = subprocess.run(
                [self._gofmt, "-w", str(target)],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            self._warn(f"gofmt could not run on '{target}': {exc}")
            return
        if proc.returncode != 0:
            self._warn(f"gofmt failed on '{target}': {proc.stderr.strip()}")

    def _warn(self, message: str) -> None:
        self._warnings.append(message)
        logger.warning(message)

    @staticmethod
    def _atomic_write(target_path: Path, data: bytes) -> None:
        """
        Write data to target_path atomically using a temporary file.

        The temp file lives in the target's directory so ``os.replace`` stays
        on one filesystem. The original file is untouched if anything fails.
        """
        fd: int = -1
        tmp_path: str = ""
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(target_path.parent),
                prefix=f".{target_path.name}.",
                suffix=".tmp",
            )
            os.write(fd, data)
            os.fchmod(fd, 0o644)
            os.fsync(fd)
            os.close(fd)
            fd = -1
            os.replace(tmp_path, str(target_path))
        except OSError:
            if fd >= 0:
                os.close(fd)
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


__all__: List[str] = [
    "FileRecord",
    "ExportResult",
    "ProjectExporter",
    "default_confirm",
    "MODELS_DIR",
    "CONTROLLERS_DIR",
    "FILTERS_DIR",
    "ROUTERS_DIR",
    "VUE_COMPONENTS_DIR",
    "ROUTER_FILE",
]

logger.debug("crudgen.exporters loaded.")
