"""Recursive file discovery for package trees."""

from collections.abc import Callable, Collection
from pathlib import Path


def resolve_existing(path: Path) -> Path | None:
    """Resolve a path to its canonical absolute form, or None if it does not exist."""
    try:
        return path.resolve(strict=True)
    except (FileNotFoundError, NotADirectoryError):
        return None


def list_files(
    root: Path,
    exclude_names: Collection[str] = (),
    *,
    strict: bool = False,
    resolve: Callable[[Path], Path | None] = resolve_existing,
) -> dict[str, Path]:
    """List all regular files under root, keyed by their path relative to root.

    Files whose bare name is in ``exclude_names`` are skipped. Directories are
    walked but never listed. Entries are ordered by sorted path so the result
    is deterministic across platforms.

    Args:
        root: Directory to walk.
        exclude_names: File names (not paths) to skip, e.g. ``.DS_Store``.
        strict: Raise instead of returning an empty mapping when root
            cannot be resolved.
        resolve: Path resolver; returns None for paths that do not exist.

    Returns:
        Mapping of POSIX-style relative path to absolute path.

    Raises:
        FileNotFoundError: If strict is True and root cannot be resolved.
    """
    resolved_root = resolve(root)
    if resolved_root is None:
        if strict:
            msg = f"Directory '{root}' does not exist"
            raise FileNotFoundError(msg)
        return {}

    files: dict[str, Path] = {}
    for path in sorted(resolved_root.rglob("*")):
        if not path.is_file() or path.name in exclude_names:
            continue
        files[path.relative_to(resolved_root).as_posix()] = path
    return files
