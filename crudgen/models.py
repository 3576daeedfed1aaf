# File: crudgen/models.py
"""
crudgen - Core Data Models
==========================
Pydantic V2 models for the in-memory schema descriptors (``Table``,
``Column``, ``ForeignKey``, ``OrmTag``) and the run configuration
(``GenerationConfig``).

Descriptors are built once per run by the schema reader, consumed by the
template emitter and then discarded. Column order is catalog declaration
order and is never re-sorted.
"""

from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from crudgen.exceptions import ConfigurationError
from crudgen.utils import camel_case, lower_camel_case, url_style

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class DatabaseDriver(str, enum.Enum):
    """Driver names accepted on the command line."""

    MYSQL = "mysql"
    POSTGRES = "postgres"
    SQLITE = "sqlite"


class OverwritePolicy(str, enum.Enum):
    """What to do when a generated file already exists."""

    ASK = "ask"
    ALWAYS = "always"
    NEVER = "never"


class GenerationLevel(enum.IntFlag):
    """Bitmask of artifact categories to emit."""

    MODEL = 1
    CONTROLLER = 2  # controller + filter
    ROUTER = 4
    UI = 8

    @classmethod
    def from_level(cls, level: object) -> "GenerationLevel":
        """
        Map the user-facing level selector onto the bitmask.

        ``1`` = model, ``2`` = +controller, ``3`` = +router, ``4`` = +UI.
        """
        key: str = str(level).strip()
        if key not in _LEVELS:
            raise ConfigurationError(
                f"Invalid level value '{level}'. Must be either \"1\", \"2\", \"3\" or \"4\""
            )
        return _LEVELS[key]


_LEVELS: Dict[str, GenerationLevel] = {
    "1": GenerationLevel.MODEL,
    "2": GenerationLevel.MODEL | GenerationLevel.CONTROLLER,
    "3": GenerationLevel.MODEL | GenerationLevel.CONTROLLER | GenerationLevel.ROUTER,
    "4": GenerationLevel.MODEL
    | GenerationLevel.CONTROLLER
    | GenerationLevel.ROUTER
    | GenerationLevel.UI,
}

# Columns the generated controllers fill in server-side.
AUDIT_COLUMNS: FrozenSet[str] = frozenset({"CreatedAt", "CreatedBy", "UpdatedAt", "UpdatedBy"})

# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)

# ---------------------------------------------------------------------------
# Schema descriptors
# ---------------------------------------------------------------------------


class OrmTag(BaseModel):
    """
    ORM annotation attached to a generated struct field.

    Rendered as a Go struct tag carrying ``json`` and ``gorm`` keys, plus a
    ``description`` key when the catalog column has a comment.
    """

    model_config = _SHARED_CONFIG

    column: str = Field(default="", description="Catalog column name.")
    auto: bool = Field(default=False, description="Auto-increment primary key.")
    pk: bool = Field(default=False, description="Caller-supplied primary key.")
    null: bool = Field(default=False, description="Column accepts NULL.")
    index: bool = False
    unique: bool = False
    size: str = Field(default="", description="Length for char/varchar/binary/bit.")
    digits: str = ""
    decimals: str = ""
    auto_now: bool = Field(default=False, description="Refreshed on every save.")
    auto_now_add: bool = Field(default=False, description="Set once on insert.")
    type: str = Field(default="", description="Explicit database type name.")
    default: str = ""
    rel_one: bool = False
    reverse_one: bool = False
    rel_fk: bool = Field(default=False, description="Column is a usable foreign key.")
    reverse_many: bool = False
    rel_m2m: bool = False
    comment: str = Field(default="", description="Catalog column comment.")

    def options(self) -> List[str]:
        """Return the gorm options in their fixed emission order."""
        opts: List[str] = []
        if self.column:
            opts.append(f"column:{self.column}")
        if self.auto:
            opts.append("auto")
        if self.size:
            opts.append(f"size:{self.size}")
        if self.type:
            opts.append(f"type:{self.type}")
        if self.null:
            opts.append("null")
        if self.auto_now:
            opts.append("auto_now")
        if self.auto_now_add:
            opts.append("auto_now_add")
        if self.decimals:
            opts.append(f"digits:{self.digits};decimals:{self.decimals}")
        if self.rel_fk:
            opts.append("rel:fk")
        if self.rel_one:
            opts.append("rel:one")
        if self.reverse_one:
            opts.append("reverse:one")
        if self.reverse_many:
            opts.append("reverse:many")
        if self.rel_m2m:
            opts.append("rel:m2m")
        if self.pk:
            opts.append("pk")
        if self.unique:
            opts.append("unique")
        if self.default:
            opts.append(f"default:{self.default}")
        return opts

    def render(self) -> str:
        opts: List[str] = self.options()
        if not opts:
            return ""
        gorm: str = ";".join(opts)
        if self.comment:
            comment: str = self.comment.replace('"', '\\"')
            return f'`json:"{self.column}" gorm:"{gorm}" description:"{comment}"`'
        return f'`json:"{self.column}" gorm:"{gorm}"`'


class Column(BaseModel):
    """One struct field derived from a catalog column."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Go identifier.")
    type: str = Field(..., min_length=1, description="Go type name.")
    tag: OrmTag = Field(default_factory=OrmTag)

    @computed_field  # type: ignore[misc]
    @property
    def is_audit(self) -> bool:
        return self.name in AUDIT_COLUMNS

    def render(self) -> str:
        return f"{self.name} {self.type} {self.tag.render()}"

    def __repr__(self) -> str:
        return f"<Column {self.name} {self.type}>"


class ForeignKey(BaseModel):
    """Single-column foreign key. Composite keys are not modelled."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., description="Local column name.")
    ref_schema: str = ""
    ref_table: str = ""
    ref_column: str = ""

    def __repr__(self) -> str:
        return f"<ForeignKey {self.name} -> {self.ref_table}.{self.ref_column}>"


class Table(BaseModel):
    """
    A catalog table mirrored into generated code.

    ``primary_key`` is empty when the table has no primary key or a
    composite one; such a table only ever gets a model file.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Catalog table name.")
    primary_key: str = Field(default="", description="Single-column PK or empty.")
    unique_keys: List[str] = Field(default_factory=list)
    foreign_keys: Dict[str, ForeignKey] = Field(default_factory=dict)
    columns: List[Column] = Field(default_factory=list)
    imports_time: bool = Field(
        default=False, description="A column needs the Go time package."
    )

    @computed_field  # type: ignore[misc]
    @property
    def class_name(self) -> str:
        return camel_case(self.name)

    @computed_field  # type: ignore[misc]
    @property
    def url_name(self) -> str:
        return url_style(self.name)

    @computed_field  # type: ignore[misc]
    @property
    def component_dir(self) -> str:
        return lower_camel_case(self.name)

    @computed_field  # type: ignore[misc]
    @property
    def has_primary_key(self) -> bool:
        return bool(self.primary_key)

    def get_column(self, go_name: str) -> Optional[Column]:
        for col in self.columns:
            if col.name == go_name:
                return col
        return None

    def render_struct(self) -> str:
        """Return the Go ``type X struct { ... }`` declaration."""
        lines: List[str] = [f"type {self.class_name} struct {{"]
        lines.extend(col.render() for col in self.columns)
        lines.append("}")
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        pk: str = self.primary_key or "-"
        return f"<Table {self.name} pk={pk} columns={len(self.columns)}>"


# ---------------------------------------------------------------------------
# Run configuration
# ---------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """Settings for one generation run."""

    model_config = _SHARED_CONFIG

    driver: str = Field(..., description="mysql, postgres (sqlite is rejected).")
    connection: str = Field(default="", description="Connection string or URL.")
    tables: List[str] = Field(
        default_factory=list, description="Allow-list; empty means every table."
    )
    level: int = Field(default=3, ge=1, le=4, description="1=model .. 4=+UI.")
    app_path: Path = Field(default=Path("."), description="Output root.")
    package_path: Optional[str] = Field(
        default=None, description="Go import path of the generated app."
    )
    runtime_package: str = Field(
        default="github.com/yimishiji/bee/pkg",
        description="Import path of the base/db/filters/structs helper packages.",
    )
    api_version: str = Field(default="v1", min_length=1)
    overwrite: OverwritePolicy = OverwritePolicy.ASK
    format_source: bool = Field(default=True, description="Run gofmt when available.")
    template_dir: Optional[Path] = Field(
        default=None, description="Directory whose templates override the bundled ones."
    )

    @field_validator("driver")
    @classmethod
    def _normalise_driver(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("tables", mode="before")
    @classmethod
    def _split_tables(cls, v: object) -> object:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            seen: Dict[str, None] = {}
            for item in v:
                name: str = str(item).strip()
                if name:
                    seen.setdefault(name, None)
            return list(seen)
        return v

    @property
    def generation_level(self) -> GenerationLevel:
        return GenerationLevel.from_level(self.level)


__all__: List[str] = [
    "AUDIT_COLUMNS",
    "Column",
    "DatabaseDriver",
    "ForeignKey",
    "GenerationConfig",
    "GenerationLevel",
    "OrmTag",
    "OverwritePolicy",
    "Table",
]

logger.debug("crudgen.models loaded.")
