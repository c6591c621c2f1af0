"""Build orchestration for module packages.

A build runs these steps in order, stopping at the first failure:

1. check the version string (an empty version only prints usage guidance)
2. create the package directories
3. load the manifest, or scaffold one for the author to fill in
4. stop if the release archive already exists
5. wipe pkg/ and copy src/ into it
6. expand configured templates into pkg/
7. build install definitions from the staged files
8. serialize the manifest and write the release archive

Nothing destructive happens before step 5, so re-running a build whose
release already exists leaves the package tree untouched.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sugarpack import cli_logger
from sugarpack.archive import assemble_archive
from sugarpack.config import PackageConfiguration
from sugarpack.errors import IllegalStateError
from sugarpack.installdefs import build_install_directives
from sugarpack.manifest import (
    ManifestAbsentError,
    load_manifest,
    scaffold_manifest,
    serialize_manifest,
)
from sugarpack.storage import LocalStorage, Storage
from sugarpack.templates import TemplateRenderer, expand_templates, load_template_configuration


@dataclass(frozen=True)
class BuildMissingVersion:
    """No version was given; nothing was done."""


@dataclass(frozen=True)
class BuildAlreadyExists:
    """The release archive for this id and version is already built."""

    zip_path: Path


@dataclass
class BuildSuccess:
    """The release archive was written."""

    zip_path: Path
    files: dict[str, Path] = field(default_factory=dict)
    installdefs: dict[str, Any] = field(default_factory=dict)


BuildResult = BuildMissingVersion | BuildAlreadyExists | BuildSuccess


def create_package_directories(config: PackageConfiguration, storage: Storage) -> None:
    """Create releases/, configuration/, src/, pkg/ and templates/ if missing."""
    for directory in config.package_directories:
        storage.create_directory(directory)


def resolve_manifest(config: PackageConfiguration, storage: Storage) -> dict[str, Any]:
    """Load the manifest, writing a skeleton first if none exists.

    Raises:
        ManifestIncompleteError: If the manifest lacks required details,
            which is always the case right after scaffolding.
    """
    try:
        return load_manifest(config.manifest_path, config.version, storage=storage)
    except ManifestAbsentError:
        return scaffold_manifest(config.manifest_path, config, storage=storage)


def build_package(
    config: PackageConfiguration,
    *,
    storage: Storage | None = None,
    renderer: TemplateRenderer | None = None,
    emit: Callable[[str], None] = cli_logger.message,
) -> BuildResult:
    """Build the release archive for ``config.version``.

    Assumes exclusive use of the pkg/ directory for the duration of the call.

    Args:
        config: Build configuration, including the version to package.
        storage: Filesystem access (defaults to the local filesystem).
        renderer: Template renderer (defaults to jinja2).
        emit: Message sink for progress lines.

    Returns:
        BuildMissingVersion, BuildAlreadyExists or BuildSuccess.

    Raises:
        ManifestIncompleteError: If the manifest lacks required details.
        IllegalStateError: If the templates setup is inconsistent.
        TemplateGenerationError: If a template fails to render.
        OSError: If a filesystem operation fails.
    """
    storage = storage or LocalStorage()

    if not config.version:
        emit("Provide version number")
        return BuildMissingVersion()

    create_package_directories(config, storage)

    manifest = resolve_manifest(config, storage)
    if not manifest:
        msg = f"Manifest {config.manifest_path} resolved to an empty manifest"
        raise IllegalStateError(msg)

    zip_path = config.zip_path(manifest["id"])
    if storage.exists(zip_path):
        emit(f"Release {zip_path} already exists!")
        return BuildAlreadyExists(zip_path=zip_path)

    storage.wipe_directory(config.pkg_dir)
    storage.copy_directory(config.src_dir, config.pkg_dir, config.files_to_remove_from_zip)

    groups = load_template_configuration(
        config.templates_config_path, config.templates_dir, storage=storage
    )
    if groups:
        expand_templates(groups, config, storage=storage, renderer=renderer, emit=emit)

    files = storage.list_files(config.pkg_dir, config.files_to_remove_from_zip)
    installdefs = build_install_directives(
        files,
        manifest["id"],
        config.installdefs_config_path,
        storage=storage,
        emit=emit,
        removal_names=config.files_to_remove_from_manifest_copy,
        hook_keys=config.lifecycle_hook_keys,
    )

    manifest_text = serialize_manifest(manifest, installdefs)
    assemble_archive(manifest_text, zip_path, files, config, storage=storage, emit=emit)

    return BuildSuccess(zip_path=zip_path, files=files, installdefs=installdefs)
