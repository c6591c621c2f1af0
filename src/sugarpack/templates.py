"""Per-module template expansion.

``configuration/templates.php`` declares template groups::

    $templates['record_view'] = array(
        'directory_pattern' => 'custom/Extension/modules/{MODULENAME}/Ext',
        'modules' => array(
            'Contacts' => array('singular' => 'Contact'),
            'Accounts' => array('singular' => 'Account'),
        ),
    );

Every file under ``templates/record_view/`` is rendered once per module with
jinja2 and written below ``pkg/<directory_pattern>``, with ``{MODULENAME}``
replaced by the module name. Rendered content additionally has the legacy
``{MODULENAME}`` and ``{OBJECTNAME}`` tokens replaced by the module name and
its singular name.
"""

import os
from collections.abc import Callable, Mapping
from pathlib import Path, PurePosixPath
from typing import Any, Literal, Protocol

from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateNotFound, TemplateSyntaxError
from pydantic import BaseModel, Field, ValidationError, field_validator

from sugarpack import cli_logger
from sugarpack.config import PackageConfiguration
from sugarpack.config_files import load_variable
from sugarpack.errors import IllegalStateError, format_validation_errors
from sugarpack.storage import LocalStorage, Storage
from sugarpack.validation import ValidationResult

MODULE_PLACEHOLDER = "{MODULENAME}"
OBJECT_PLACEHOLDER = "{OBJECTNAME}"

FailureKind = Literal["loader", "syntax", "runtime"]


class TemplateGenerationError(Exception):
    """Raised when a template cannot be rendered."""

    def __init__(self, template_name: str, kind: FailureKind, cause: Exception) -> None:
        """Initialize with the template name, failure kind and underlying error."""
        self.template_name = template_name
        self.kind = kind
        self.cause = cause
        super().__init__(f"Failed to render template '{template_name}' ({kind} error): {cause}")


class TemplateGroup(BaseModel):
    """A template source directory expanded once per module."""

    directory_pattern: str = Field(
        min_length=1,
        description=f"Destination path below pkg/, containing {MODULE_PLACEHOLDER}",
    )
    modules: dict[str, str | dict[str, Any]] = Field(
        min_length=1,
        description="Module name to rendering context (or a singular-name alias)",
    )

    @field_validator("modules", mode="before")
    @classmethod
    def empty_contexts_as_mappings(cls, v: Any) -> Any:
        """Treat empty arrays as empty contexts.

        PHP's ``array()`` carries no key type, so an empty context loads as an
        empty list.
        """
        if isinstance(v, Mapping):
            return {module: {} if context == [] else context for module, context in v.items()}
        return v


class TemplateRenderer(Protocol):
    """Renders a template file from a source directory."""

    def render(self, source_dir: Path, template_name: str, context: Mapping[str, Any]) -> str: ...


class JinjaRenderer:
    """Template renderer backed by jinja2.

    Undefined variables render as empty strings, so one template can serve
    modules whose contexts define different keys.
    """

    def __init__(self) -> None:
        self._environments: dict[Path, Environment] = {}

    def _environment(self, source_dir: Path) -> Environment:
        if source_dir not in self._environments:
            self._environments[source_dir] = Environment(
                loader=FileSystemLoader(str(source_dir)),
                keep_trailing_newline=True,
                autoescape=False,
            )
        return self._environments[source_dir]

    def render(self, source_dir: Path, template_name: str, context: Mapping[str, Any]) -> str:
        """Render ``template_name`` (relative to source_dir) against context.

        Raises:
            TemplateGenerationError: If the template cannot be loaded, parsed
                or rendered.
        """
        try:
            template = self._environment(source_dir).get_template(template_name)
            return template.render(context)
        except TemplateNotFound as e:
            raise TemplateGenerationError(template_name, "loader", e) from e
        except TemplateSyntaxError as e:
            raise TemplateGenerationError(template_name, "syntax", e) from e
        except TemplateError as e:
            raise TemplateGenerationError(template_name, "runtime", e) from e


def validate_template_groups(
    raw_groups: Mapping[Any, Any], templates_root: Path, storage: Storage
) -> tuple[dict[str, TemplateGroup], ValidationResult]:
    """Validate declared template groups against the templates directory.

    Each group needs a non-empty ``directory_pattern`` and ``modules``, and a
    source directory of the same name under ``templates_root``.
    """
    groups: dict[str, TemplateGroup] = {}
    errors: list[str] = []

    for name, values in raw_groups.items():
        name = str(name)
        try:
            groups[name] = TemplateGroup.model_validate(values)
        except ValidationError as e:
            errors.append(f"Template group '{name}': {format_validation_errors(e)}")

        source_dir = storage.resolve_path(templates_root / name)
        if source_dir is None or not source_dir.is_dir():
            errors.append(f"Template group '{name}': directory {templates_root / name} does not exist")

    return groups, ValidationResult(is_valid=len(errors) == 0, errors=errors)


def load_template_configuration(
    path: Path, templates_root: Path, *, storage: Storage | None = None
) -> dict[str, TemplateGroup] | None:
    """Load and validate the template groups declared in ``path``.

    Args:
        path: Path to ``templates.php`` (or ``templates.yaml``).
        templates_root: Directory holding one subdirectory per group.
        storage: Filesystem access used to read the file and resolve group
            directories.

    Returns:
        Template groups by source directory name, or None when the file does
        not exist or declares no groups.

    Raises:
        IllegalStateError: If any declared group is invalid.
    """
    storage = storage or LocalStorage()
    if not storage.exists(path):
        return None

    raw_groups = load_variable(path, "templates", storage=storage)
    if not raw_groups:
        return None
    if not isinstance(raw_groups, dict):
        msg = f"Invalid template configuration in {path}: 'templates' must be a mapping"
        raise IllegalStateError(msg)

    groups, result = validate_template_groups(raw_groups, templates_root, storage)
    if not result.is_valid:
        msg = f"Invalid template configuration in {path}:{result.summary()}"
        raise IllegalStateError(msg)
    return groups


def module_context(module: str, context: str | Mapping[str, Any]) -> dict[str, Any]:
    """Build the rendering context for one module.

    A string context is the legacy singular-name alias and becomes
    ``{'singular': context}``. ``module`` is always set to the module name.
    """
    values = {"singular": context} if isinstance(context, str) else dict(context)
    values["module"] = module
    return values


def module_destination(directory_pattern: str, module: str, pkg_dir: Path) -> Path:
    """Directory below pkg_dir that receives one module's rendered templates.

    Leading separators are dropped, so absolute-looking patterns stay inside
    the staging area.

    Raises:
        IllegalStateError: If the pattern climbs out of pkg_dir with ``..``.
    """
    relative = directory_pattern.replace("/", os.sep).replace(MODULE_PLACEHOLDER, module)
    destination = pkg_dir / relative.lstrip("/\\")
    if not Path(os.path.normpath(destination)).is_relative_to(os.path.normpath(pkg_dir)):
        msg = f"Template directory pattern '{directory_pattern}' resolves outside {pkg_dir}"
        raise IllegalStateError(msg)
    return destination


def replace_tokens(content: str, module: str, values: Mapping[str, Any]) -> str:
    """Substitute the plain-text ``{MODULENAME}`` and ``{OBJECTNAME}`` tokens.

    ``{OBJECTNAME}`` is left alone when the module has no singular name.
    """
    content = content.replace(MODULE_PLACEHOLDER, module)
    singular = values.get("singular")
    if singular is not None:
        content = content.replace(OBJECT_PLACEHOLDER, str(singular))
    return content


def expand_templates(
    groups: Mapping[str, TemplateGroup],
    config: PackageConfiguration,
    *,
    storage: Storage | None = None,
    renderer: TemplateRenderer | None = None,
    emit: Callable[[str], None] = cli_logger.message,
) -> None:
    """Render every template group into the pkg/ staging directory.

    Raises:
        IllegalStateError: If the templates directory or a group's source
            directory does not exist, or a destination falls outside pkg/.
        TemplateGenerationError: If a template fails to render.
    """
    storage = storage or LocalStorage()
    renderer = renderer or JinjaRenderer()

    templates_root = storage.resolve_path(config.templates_dir)
    if templates_root is None:
        msg = f"Templates directory {config.templates_dir} does not exist"
        raise IllegalStateError(msg)

    for source_name, group in groups.items():
        source_dir = storage.resolve_path(templates_root / source_name)
        if source_dir is None:
            msg = (
                f"Template directory '{source_name}' was not found in {templates_root}. "
                f"Add the directory or remove '{source_name}' from {config.templates_config_path}"
            )
            raise IllegalStateError(msg)

        template_files = storage.list_files(source_dir, config.files_to_remove_from_zip)
        if not template_files:
            emit(f"* No template files found in {source_dir}")
            continue

        for module, context in group.modules.items():
            emit(f"* Generating template files for module: {module}")
            values = module_context(module, context)
            destination = module_destination(group.directory_pattern, module, config.pkg_dir)

            for relative in template_files:
                relative_path = PurePosixPath(relative)
                destination_dir = destination / relative_path.parent
                target = destination_dir / relative_path.name
                emit(f"* Generating {target}")

                storage.create_directory(destination_dir)
                content = renderer.render(source_dir, relative, values)
                # TODO: replace with an explicit existence check so templates
                # that legitimately render empty are still written.
                if content == "":
                    emit(f"* Template {relative} rendered no content, stopping template generation")
                    return
                storage.write_file(target, replace_tokens(content, module, values))
