from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from .errors import DirectoryError

# Same directories the go command leaves out of `./...`.
_SKIP_DIRS = {"vendor", "testdata"}


def iter_go_files(root: Path) -> Iterator[Path]:
    """Yield non-test .go files under `root` in a stable, sorted order."""
    root = Path(root)
    if not root.is_dir():
        raise DirectoryError(f"not a directory: {root}")

    def on_error(e: OSError) -> None:
        raise DirectoryError(f"cannot traverse {e.filename}: {e.strerror}") from e

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames[:] = sorted(d for d in dirnames if not _skip_dir(d))
        for fn in sorted(filenames):
            if fn.endswith(".go") and not fn.endswith("_test.go"):
                yield Path(dirpath) / fn


def _skip_dir(name: str) -> bool:
    return name in _SKIP_DIRS or name.startswith((".", "_"))
