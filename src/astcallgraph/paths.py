from __future__ import annotations

import os
from pathlib import Path, PurePath

from .errors import ManifestNotFoundError, PathDerivationError
from .modfile import MODFILE_NAME, find_module_root


def default_modfile_path(directory: Path | str) -> Path:
    """Return the go.mod used when the caller does not name one.

    Override with `ASTCALLGRAPH_MODFILE`. Otherwise the nearest go.mod at or above
    `directory` wins, then go.mod in the working directory.
    """
    override = os.environ.get("ASTCALLGRAPH_MODFILE")
    if override:
        return Path(override)

    try:
        return find_module_root(Path(directory)) / MODFILE_NAME
    except ManifestNotFoundError:
        return Path.cwd() / MODFILE_NAME


def derive_package_path(*, root_pkg: str, module_dir: PurePath, file_path: PurePath) -> str:
    """Map a source file to its package import path.

    Both paths must use the same flavour (and be resolved by the caller); the
    relative directory is always joined with "/".
    """
    try:
        rel = file_path.parent.relative_to(module_dir)
    except ValueError as e:
        raise PathDerivationError(f"{file_path} is not under module root {module_dir}") from e
    if not rel.parts:
        return root_pkg
    return f"{root_pkg}/{'/'.join(rel.parts)}"


def relative_file(module_dir: PurePath, file_path: PurePath) -> str:
    try:
        rel = file_path.relative_to(module_dir)
    except ValueError as e:
        raise PathDerivationError(f"{file_path} is not under module root {module_dir}") from e
    return "/".join(rel.parts)


def is_first_party(pkg: str, root_pkg: str) -> bool:
    return pkg == root_pkg or pkg.startswith(root_pkg + "/")
