"""Install definitions for the SugarCRM module installer.

``$installdefs`` tells the installer what to do with the package payload.
Authors can hand-write entries (beans, language files, lifecycle scripts) in
``configuration/installdefs.php``; the packager adds a ``copy`` directive for
every staged file that is not otherwise handled.
"""

from collections.abc import Callable, Collection, Mapping
from pathlib import Path, PurePosixPath
from typing import Any

from sugarpack import cli_logger
from sugarpack.config import FILES_TO_REMOVE_FROM_MANIFEST_COPY, LIFECYCLE_HOOK_KEYS
from sugarpack.config_files import load_variable
from sugarpack.merge import deep_merge
from sugarpack.storage import LocalStorage, Storage

BASEPATH_PREFIX = "<basepath>/"


def _hook_sources(entries: Any) -> list[str]:
    """Extract source paths from a lifecycle-hook list.

    The installer accepts plain script paths as well as copy-style
    ``{'from': ..., 'to': ...}`` records.
    """
    if isinstance(entries, Mapping):
        entries = list(entries.values())
    if not isinstance(entries, list):
        return []

    sources = []
    for entry in entries:
        if isinstance(entry, str):
            sources.append(entry)
        elif isinstance(entry, Mapping) and isinstance(entry.get("from"), str):
            sources.append(entry["from"])
    return sources


def should_copy(
    relative_path: str,
    directives: Mapping[str, Any],
    *,
    removal_names: Collection[str] = FILES_TO_REMOVE_FROM_MANIFEST_COPY,
    hook_keys: Collection[str] = LIFECYCLE_HOOK_KEYS,
) -> bool:
    """Decide whether a staged file needs a copy directive.

    Returns False for license/readme files and for files already referenced
    by a lifecycle hook (``pre_execute``, ``post_execute``, ``pre_uninstall``,
    ``post_uninstall``), since the installer runs those scripts itself.
    """
    if PurePosixPath(relative_path).name in removal_names:
        return False

    for key in hook_keys:
        for source in _hook_sources(directives.get(key)):
            if source.removeprefix(BASEPATH_PREFIX) == relative_path:
                return False
    return True


def load_custom_directives(path: Path | None, *, storage: Storage | None = None) -> dict[str, Any]:
    """Load hand-written install definitions, or an empty mapping if none exist.

    Raises:
        ValueError: If the file defines ``installdefs`` as something other
            than a mapping.
    """
    storage = storage or LocalStorage()
    if path is None or not storage.exists(path):
        return {}

    directives = load_variable(path, "installdefs", storage=storage)
    if directives is None:
        return {}
    if not isinstance(directives, dict):
        msg = f"Invalid install definitions '{path}': 'installdefs' must be a mapping"
        raise ValueError(msg)
    return directives


def build_install_directives(
    file_list: Mapping[str, Path],
    package_id: str,
    custom_path: Path | None = None,
    *,
    storage: Storage | None = None,
    emit: Callable[[str], None] = cli_logger.message,
    removal_names: Collection[str] = FILES_TO_REMOVE_FROM_MANIFEST_COPY,
    hook_keys: Collection[str] = LIFECYCLE_HOOK_KEYS,
) -> dict[str, Any]:
    """Build the install definitions for a staged package.

    Merge order is ``{'id': package_id}``, then the custom definitions, then
    the generated ``copy`` list, which always replaces any custom ``copy``.

    Args:
        file_list: Staged files, relative path to absolute path.
        package_id: Manifest id of the package.
        custom_path: Optional ``installdefs.php`` with hand-written entries.
        storage: Filesystem access used to read custom_path.
        emit: Message sink, one line per file.
        removal_names: File names that never get a copy directive.
        hook_keys: Installdefs keys holding lifecycle scripts.

    Returns:
        The complete install definitions.
    """
    custom = load_custom_directives(custom_path, storage=storage)

    copy: list[dict[str, str]] = []
    for relative in file_list:
        if should_copy(relative, custom, removal_names=removal_names, hook_keys=hook_keys):
            copy.append({"from": f"{BASEPATH_PREFIX}{relative}", "to": relative})
            emit(f"* Automatically added manifest copy directive for {relative}")
        else:
            emit(f"* Skipped manifest copy directive for {relative}")

    return deep_merge({"id": package_id}, custom, {"copy": copy})
