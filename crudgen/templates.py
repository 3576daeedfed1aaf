# File: crudgen/templates.py
"""
crudgen - Code Template Engine
==============================
Turns ``Table`` descriptors into Go (beego + gorm) and Vue source text.

Template text lives in ``crudgen/template_files/*.tpl`` and is rendered
with Jinja2. A ``--template-dir`` directory is searched first, so single
templates can be overridden while the rest come from the package. Every
``{{slot}}`` must be supplied (``StrictUndefined``); Vue mustache
expressions in the bundled templates are kept inside ``{% raw %}`` blocks.

Outputs per table (tables with a single-column primary key):
    1. Go model (struct + CRUD helpers; struct only for keyless tables)
    2. Go controller with audit-column auto-population
    3. Go input filter with ``Required`` validation rules
    4. Router namespace snippet
    5. Vue Index / Create / Edit / ColSetting components
    6. Notice snippets (operate list, Vue route, Vue menu)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional, Set, Tuple

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
)

from crudgen.exceptions import ConfigurationError
from crudgen.models import Column, GenerationConfig, Table
from crudgen.typemap import GO_FLOAT_TYPES, GO_INTEGER_TYPES, GO_TIME_TYPE

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_TEMPLATE_SUFFIX: str = ".tpl"

# Columns beyond this index start hidden in the list view.
_MAX_VISIBLE_INDEX: int = 6


def _as_file(text: str) -> str:
    return text.rstrip("\n") + "\n"


# ---------------------------------------------------------------------------
# Jinja environment
# ---------------------------------------------------------------------------


def create_template_env(template_dir: Optional[Path] = None) -> Environment:
    """
    Build the Jinja2 environment used for every artifact.

    Templates in *template_dir* shadow the bundled ones of the same name.
    The single trailing newline of each file is dropped so fragment
    templates can be joined without doubling line breaks.

    Raises:
        ConfigurationError: *template_dir* is given but is not a directory.
    """
    loaders: List[Any] = []
    if template_dir is not None:
        override: Path = Path(template_dir)
        if not override.is_dir():
            raise ConfigurationError(f"Template directory '{override}' does not exist.")
        loaders.append(FileSystemLoader(str(override)))
        logger.debug("Template overrides enabled from %s.", override)
    loaders.append(PackageLoader("crudgen", "template_files"))

    return Environment(
        loader=ChoiceLoader(loaders),
        undefined=StrictUndefined,
        keep_trailing_newline=False,
        autoescape=False,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _import_lines(packages: Set[str]) -> str:
    return "".join(f'\n\t"{pkg}"' for pkg in sorted(packages))


def _timestamp_statement(col: Column) -> Optional[str]:
    if col.type == GO_TIME_TYPE:
        return f"v.{col.name} = time.Now()"
    if col.type in GO_INTEGER_TYPES:
        return f"v.{col.name} = {col.type}(time.Now().Unix())"
    return None


def _user_statement(col: Column) -> Tuple[str, bool]:
    """Return the statement and whether it needs ``strconv``."""
    if col.type == "int":
        return f"v.{col.name}, _ = strconv.Atoi(c.User.GetId())", True
    if col.type in GO_INTEGER_TYPES:
        return (
            f"if uid, err := strconv.Atoi(c.User.GetId()); err == nil {{\n"
            f"\t\t\tv.{col.name} = {col.type}(uid)\n"
            f"\t\t}}"
        ), True
    return f"v.{col.name} = c.User.GetId()", False


def _is_numeric(col: Column) -> bool:
    return col.type in GO_INTEGER_TYPES or col.type in GO_FLOAT_TYPES


def _label(col: Column) -> str:
    return (col.tag.comment or col.name).replace("'", "\\'").replace('"', '\\"')


class _UiParts:
    """Fragments shared by the four Vue components of one table."""

    __slots__ = (
        "list_columns", "list_columns_shown", "select_options",
        "create_fields", "create_form", "create_rules", "create_submit_fix",
        "edit_items", "edit_form", "edit_rules", "edit_submit",
        "index_modify_rows",
    )

    def __init__(self) -> None:
        for name in self.__slots__:
            setattr(self, name, [])


# ---------------------------------------------------------------------------
# TemplateGenerator class
# ---------------------------------------------------------------------------


class TemplateGenerator:
    """
    Renders every artifact for a table. Each ``generate_*`` method returns a
    complete file body ending in exactly one newline; ``*_snippet`` methods
    return fragments meant for the end-of-run notices.
    """

    def __init__(
        self,
        config: GenerationConfig,
        env: Optional[Environment] = None,
        package_path: str = "",
    ) -> None:
        self._config: GenerationConfig = config
        self._env: Environment = env or create_template_env(config.template_dir)
        self._package_path: str = package_path or (config.package_path or "")
        logger.debug(
            "TemplateGenerator initialised (package=%s, runtime=%s).",
            self._package_path or "-",
            config.runtime_package,
        )

    @property
    def package_path(self) -> str:
        return self._package_path

    def _render(self, name: str, slots: Mapping[str, str]) -> str:
        filename: str = name + _TEMPLATE_SUFFIX
        try:
            return self._env.get_template(filename).render(slots)
        except TemplateNotFound as exc:
            raise ConfigurationError(f"Unknown template '{name}'.") from exc
        except TemplateError as exc:
            raise ConfigurationError(f"Template '{filename}' failed to render: {exc}") from exc

    # ===================================================================
    # 1. Model
    # ===================================================================

    def generate_model(self, table: Table) -> str:
        """Struct plus CRUD helpers, or the bare struct for keyless tables."""
        struct: str = table.render_struct()
        if not table.has_primary_key:
            return _as_file(self._render("struct_model.go", {
                "importTimePkg": '\nimport "time"\n' if table.imports_time else "",
                "modelStruct": struct,
            }))
        return _as_file(self._render("model.go", {
            "timePkg": '\n\t"time"' if table.imports_time else "",
            "runtimePkg": self._config.runtime_package,
            "modelName": table.class_name,
            "tableName": table.name,
            "modelStruct": struct,
        }))

    # ===================================================================
    # 2. Controller
    # ===================================================================

    def audit_statements(self, table: Table) -> Tuple[List[str], List[str], Set[str]]:
        """
        Server-side population of the audit columns.

        Returns:
            (create statements, update statements, std packages needed)
        """
        create: List[str] = []
        update: List[str] = []
        packages: Set[str] = set()

        for col in table.columns:
            if col.name in ("CreatedAt", "UpdatedAt"):
                stmt: Optional[str] = _timestamp_statement(col)
                if stmt is None:
                    logger.debug(
                        "%s.%s has type %s; not auto-populated.",
                        table.name, col.name, col.type,
                    )
                    continue
                create.append(stmt)
                if col.name == "UpdatedAt":
                    update.append(stmt)
                packages.add("time")
            elif col.name in ("CreatedBy", "UpdatedBy"):
                stmt, needs_strconv = _user_statement(col)
                if col.name == "CreatedBy":
                    create.append(stmt)
                else:
                    update.append(stmt)
                if needs_strconv:
                    packages.add("strconv")

        return create, update, packages

    def generate_controller(self, table: Table) -> str:
        create, update, packages = self.audit_statements(table)
        pkg: str = _import_lines(packages)
        return _as_file(self._render("controller.go", {
            "pkg": pkg + "\n" if pkg else "",
            "pkgPath": self._package_path,
            "runtimePkg": self._config.runtime_package,
            "ctrlName": table.class_name,
            "createAuto": "".join("\n\t\t" + s for s in create),
            "updateAuto": "".join("\n\t\t" + s for s in update),
        }))

    def operate_list_snippet(self, table: Table) -> str:
        """Role-right entries to paste into the operate list."""
        return self._render("operate_list", {
            "ctrlName": table.class_name,
            "pageUrl": table.url_name,
        })

    # ===================================================================
    # 3. Filter
    # ===================================================================

    def required_columns(self, table: Table) -> List[Column]:
        return [
            col for col in table.columns
            if not col.tag.null
            and col.tag.column != table.primary_key
            and not col.is_audit
        ]

    def input_columns(self, table: Table) -> List[Column]:
        return [
            col for col in table.columns
            if col.tag.column != table.primary_key and not col.is_audit
        ]

    def generate_filter(self, table: Table) -> str:
        rules: List[str] = [
            self._render("filter_rule", {
                "validFunc": "Required",
                "colName": col.name,
                "colColumn": col.tag.column,
                "msg": f"{col.tag.column} is required",
            })
            for col in self.required_columns(table)
        ]
        inputs: List[Column] = self.input_columns(table)
        packages: Set[str] = {"time"} if any(c.type == GO_TIME_TYPE for c in inputs) else set()
        return _as_file(self._render("filter.go", {
            "pkg": _import_lines(packages),
            "runtimePkg": self._config.runtime_package,
            "modelName": table.class_name,
            "validRules": "".join(rules),
            "inputFields": "\n\t".join(col.render() for col in inputs),
        }))

    # ===================================================================
    # 4. Router
    # ===================================================================

    def namespace_snippet(self, table: Table) -> str:
        return self._render("namespace", {
            "nameSpace": table.url_name,
            "ctrlName": table.class_name,
        })

    def generate_router(self, namespaces: List[str]) -> str:
        app_name: str = self._package_path.rstrip("/").rsplit("/", 1)[-1] or "app"
        return _as_file(self._render("router.go", {
            "appName": app_name,
            "pkgPath": self._package_path,
            "apiVersion": self._config.api_version,
            "nameSpaces": "".join(namespaces),
        }))

    # ===================================================================
    # 5. Vue components
    # ===================================================================

    def _ui_parts(self, table: Table) -> _UiParts:
        parts: _UiParts = _UiParts()
        for index, col in enumerate(table.columns):
            field: str = col.tag.column
            label: str = _label(col)
            is_pk: bool = field == table.primary_key
            editable: bool = not is_pk and not col.is_audit

            visible: bool = index <= _MAX_VISIBLE_INDEX
            list_col: str = self._render("vue_index_list_column", {
                "fieldComment": label,
                "fieldName": field,
                "show": "true" if visible else "false",
            })
            parts.list_columns.append(list_col)
            if visible:
                parts.list_columns_shown.append(list_col)

            parts.select_options.append(self._render("vue_index_select_option", {
                "fieldName": field,
                "fieldComment": label,
            }))

            if col.name in ("CreatedAt", "UpdatedAt") and col.type in GO_INTEGER_TYPES:
                parts.index_modify_rows.append(
                    f"\n                            list[i].{field} = this.format(list[i].{field});"
                )

            form_field: str = self._render("vue_create_form_field", {
                "fieldName": field,
                "fieldDefault": col.tag.default,
            })
            parts.edit_form.append(form_field)

            if not is_pk:
                rule: str = self._render("vue_create_rule", {
                    "fieldName": field,
                    "fieldComment": label,
                    "required": "false" if col.tag.null else "true",
                    "length": f"length: {col.tag.size}, " if col.tag.size else "",
                    "type": "number" if _is_numeric(col) else "",
                })
                parts.edit_rules.append(rule)
                if not col.is_audit:
                    parts.create_form.append(form_field)
                    parts.create_rules.append(rule)

            parts.edit_items.append(self._render("vue_edit_form_item", {
                "fieldComment": label,
                "fieldName": field,
                "disabled": "" if editable else " disabled",
            }))

            if editable:
                parts.create_fields.append(self._render("vue_create_field", {
                    "fieldComment": label,
                    "fieldName": field,
                }))
                value: str = f"this.customForm.{field}"
                if col.type in GO_INTEGER_TYPES:
                    value = f"parseInt({value})"
                    parts.create_submit_fix.append(
                        f"\n                      params['{field}'] = parseInt(params['{field}']);"
                    )
                elif col.type in GO_FLOAT_TYPES:
                    value = f"parseFloat({value})"
                    parts.create_submit_fix.append(
                        f"\n                      params['{field}'] = parseFloat(params['{field}']);"
                    )
                parts.edit_submit.append(self._render("vue_edit_submit_item", {
                    "fieldName": field,
                    "fieldValue": value,
                }))
        return parts

    def generate_vue_index(self, table: Table, parts: Optional[_UiParts] = None) -> str:
        parts = parts or self._ui_parts(table)
        col_modify: str = ""
        if parts.index_modify_rows:
            col_modify = self._render("vue_index_col_modify", {
                "indexModifyRows": "".join(parts.index_modify_rows),
            })
        return _as_file(self._render("vue_index.vue", {
            "apiVersion": self._config.api_version,
            "pageUrl": table.url_name,
            "tbName": table.name,
            "tbPk": table.primary_key,
            "selectOptions": "".join(parts.select_options),
            "listColumnShow": "".join(parts.list_columns_shown),
            "listColumn": "".join(parts.list_columns),
            "colModifyStr": col_modify,
        }))

    def generate_vue_create(self, table: Table, parts: Optional[_UiParts] = None) -> str:
        parts = parts or self._ui_parts(table)
        return _as_file(self._render("vue_create.vue", {
            "apiVersion": self._config.api_version,
            "pageUrl": table.url_name,
            "tbName": table.name,
            "formFields": "".join(parts.create_fields),
            "customField": "".join(parts.create_form),
            "customRules": "".join(parts.create_rules),
            "createSubmitDataFix": "".join(parts.create_submit_fix),
        }))

    def generate_vue_edit(self, table: Table, parts: Optional[_UiParts] = None) -> str:
        parts = parts or self._ui_parts(table)
        return _as_file(self._render("vue_edit.vue", {
            "apiVersion": self._config.api_version,
            "pageUrl": table.url_name,
            "tbPk": table.primary_key,
            "formFields": "".join(parts.edit_items),
            "customField": "".join(parts.edit_form),
            "customRules": "".join(parts.edit_rules),
            "editSubmitItems": "".join(parts.edit_submit),
        }))

    def generate_vue_col_setting(self, table: Table) -> str:
        return _as_file(self._render("vue_col_setting.vue", {"ctrlName": table.class_name}))

    def generate_ui(self, table: Table) -> List[Tuple[str, str]]:
        """All four components as ``(file name, content)`` pairs."""
        parts: _UiParts = self._ui_parts(table)
        return [
            ("Index.vue", self.generate_vue_index(table, parts)),
            ("CreateComponent.vue", self.generate_vue_create(table, parts)),
            ("EditComponent.vue", self.generate_vue_edit(table, parts)),
            ("ColSettingComponent.vue", self.generate_vue_col_setting(table)),
        ]

    def vue_route_snippet(self, table: Table) -> str:
        return self._render("vue_route", {
            "pageUrl": table.url_name,
            "componentDir": table.component_dir,
        })

    def vue_menu_snippet(self, table: Table) -> str:
        return self._render("vue_menu", {
            "ctrlName": table.class_name,
            "pageUrl": table.url_name,
        })


__all__: List[str] = [
    "TemplateGenerator",
    "create_template_env",
]

logger.debug("crudgen.templates loaded.")
