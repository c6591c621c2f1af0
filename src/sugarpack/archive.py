"""Release archive assembly."""

import zipfile
from collections.abc import Callable, Mapping
from pathlib import Path

from sugarpack import cli_logger
from sugarpack.config import PackageConfiguration
from sugarpack.storage import LocalStorage, Storage


def assemble_archive(
    manifest_text: str,
    zip_path: Path,
    file_list: Mapping[str, Path],
    config: PackageConfiguration,
    *,
    storage: Storage | None = None,
    emit: Callable[[str], None] = cli_logger.message,
) -> Path:
    """Write the release zip: every staged file plus the generated manifest.

    The manifest is also written to pkg/ for reference. The archive is
    closed on every exit path; a failure part-way leaves a partial zip on
    disk.

    Args:
        manifest_text: Serialized ``manifest.php`` content.
        zip_path: Archive to create (truncated if it exists).
        file_list: Staged files, archive entry name to absolute path.
        config: Build configuration.
        storage: Filesystem access for the reference manifest copy.
        emit: Message sink.

    Returns:
        The path of the written archive.
    """
    storage = storage or LocalStorage()
    emit(f"Creating {zip_path}...")

    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for relative, absolute in file_list.items():
            archive.write(absolute, arcname=relative)

        storage.write_file(config.pkg_dir / config.package_manifest_file, manifest_text)
        archive.writestr(config.package_manifest_file, manifest_text)

    emit(f"{config.software_info} successfully packaged {zip_path}")
    return zip_path
