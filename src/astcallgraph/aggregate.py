"""Directory-level analysis: per-file pipeline and module-wide aggregation."""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path

from .discovery import iter_go_files
from .errors import AstCallGraphError, PathDerivationError
from .extract.filetable import build_file_table
from .extract.funcs import extract_funcs
from .extract.structs import extract_structs
from .extract.symbols import FuncInfo, StructInfo
from .modfile import Module, read_modfile
from .paths import default_modfile_path, derive_package_path, relative_file
from .syntax import parse_file
from .typeexpr import split_qualified

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileResult:
    structs: list[StructInfo]
    funcs: list[FuncInfo]


@dataclass(frozen=True)
class FileError:
    file: str
    error: str


@dataclass(frozen=True)
class AnalysisResult:
    root_pkg: str
    module: Module
    # pkg -> descriptors, in file-visitation order
    structs: dict[str, list[StructInfo]] = field(default_factory=dict)
    funcs: dict[str, list[FuncInfo]] = field(default_factory=dict)
    errors: list[FileError] = field(default_factory=list)


def default_jobs() -> int:
    """Worker count when the caller passes none. Override with `ASTCALLGRAPH_JOBS`."""
    raw = os.environ.get("ASTCALLGRAPH_JOBS")
    if not raw:
        return 1
    try:
        return max(1, int(raw))
    except ValueError:
        raise AstCallGraphError(f"ASTCALLGRAPH_JOBS must be an integer, got {raw!r}") from None


def analyze_file(path: Path, module: Module) -> FileResult:
    """Parse one file and run both extraction passes over it."""
    module_dir = module.module_dir
    path = Path(path).resolve()
    pkg = derive_package_path(root_pkg=module.path, module_dir=module_dir, file_path=path)
    rel = relative_file(module_dir, path)

    src = parse_file(path)
    table = build_file_table(src, root_pkg=module.path, current_pkg=pkg)
    return FileResult(
        structs=extract_structs(src, table, file=rel),
        funcs=extract_funcs(src, table, file=rel),
    )


def analyze_directory(
    directory: Path | str,
    *,
    modfile: Path | str | None = None,
    jobs: int | None = None,
    keep_going: bool = False,
) -> AnalysisResult:
    """Analyze every non-test Go file under `directory`.

    The manifest is read before any source file is touched. With `keep_going`
    unset, the first file that fails aborts the run; otherwise failures are
    collected in `AnalysisResult.errors` and the remaining files are analyzed.
    Results are merged in discovery order regardless of `jobs`.
    """
    started = time.monotonic()
    directory = Path(directory)
    modfile_path = Path(modfile) if modfile is not None else default_modfile_path(directory)
    module = read_modfile(modfile_path)
    jobs = default_jobs() if jobs is None else max(1, jobs)

    files = list(iter_go_files(directory))
    logger.info("analyzing %d files under %s (module %s, jobs=%d)", len(files), directory, module.path, jobs)

    result = AnalysisResult(root_pkg=module.path, module=module)
    if jobs == 1:
        for path in files:
            _merge(result, _run_one(path, module, keep_going))
    else:
        with ThreadPoolExecutor(max_workers=jobs) as executor:
            futures = [executor.submit(_run_one, path, module, keep_going) for path in files]
            try:
                for future in futures:
                    _merge(result, future.result())
            except BaseException:
                for f in futures:
                    f.cancel()
                raise

    linked = link_callees(result)
    logger.info(
        "analyzed %d files: %d structs, %d funcs, %d errors in %.2fs",
        len(files),
        sum(len(v) for v in linked.structs.values()),
        sum(len(v) for v in linked.funcs.values()),
        len(linked.errors),
        time.monotonic() - started,
    )
    return linked


def _run_one(path: Path, module: Module, keep_going: bool) -> FileResult | FileError:
    logger.debug("analyzing %s", path)
    try:
        return analyze_file(path, module)
    except AstCallGraphError as e:
        if not keep_going:
            raise
        logger.warning("skipping %s: %s", path, e)
        return FileError(file=_display_path(module, path), error=str(e))


def _display_path(module: Module, path: Path) -> str:
    try:
        return relative_file(module.module_dir, Path(path).resolve())
    except PathDerivationError:
        return str(path)


def _merge(result: AnalysisResult, item: FileResult | FileError) -> None:
    if isinstance(item, FileError):
        result.errors.append(item)
        return
    for s in item.structs:
        result.structs.setdefault(s.pkg, []).append(s)
    for f in item.funcs:
        result.funcs.setdefault(f.pkg, []).append(f)


def link_callees(result: AnalysisResult) -> AnalysisResult:
    """Fill `CalleeInfo.file` for callees declared somewhere in the module."""
    exact: dict[tuple[str, str, str | None], str] = {}
    by_name: dict[tuple[str, str], set[str]] = {}
    for funcs in result.funcs.values():
        for fn in funcs:
            recv = split_qualified(fn.recv.type)[1] if fn.recv is not None else None
            exact.setdefault((fn.pkg, fn.name, recv), fn.file)
            by_name.setdefault((fn.pkg, fn.name), set()).add(fn.file)

    def target_file(pkg: str, name: str, receiver: str | None) -> str:
        recv = split_qualified(receiver)[1] if receiver else None
        hit = exact.get((pkg, name, recv))
        if hit is not None:
            return hit
        files = by_name.get((pkg, name), set())
        return next(iter(files)) if len(files) == 1 else ""

    funcs_out: dict[str, list[FuncInfo]] = {}
    for pkg, funcs in result.funcs.items():
        funcs_out[pkg] = [
            replace(
                fn,
                callees=[replace(c, file=target_file(c.pkg, c.name, c.receiver)) for c in fn.callees],
            )
            for fn in funcs
        ]
    return replace(result, funcs=funcs_out)
