"""go.mod parsing (module path, go directive and requirements)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ManifestNotFoundError, ManifestParseError

logger = logging.getLogger(__name__)

MODFILE_NAME = "go.mod"

# Directives accepted by `go mod edit`; anything else is a parse error.
_DIRECTIVES = {"module", "go", "toolchain", "godebug", "require", "replace", "exclude", "retract"}


@dataclass(frozen=True)
class Dependency:
    path: str
    version: str
    indirect: bool = False


@dataclass(frozen=True)
class Module:
    path: str
    modfile: Path
    go_version: str | None = None
    dependencies: list[Dependency] = field(default_factory=list)

    @property
    def module_dir(self) -> Path:
        return self.modfile.parent


def find_module_root(start: Path) -> Path:
    """Nearest directory at or above `start` that holds a go.mod."""
    here = Path(start).resolve()
    for candidate in (here, *here.parents):
        if (candidate / MODFILE_NAME).is_file():
            return candidate
    raise ManifestNotFoundError(f"no {MODFILE_NAME} at or above {start}")


def read_modfile(path: Path | str) -> Module:
    """Read and parse a go.mod file.

    The returned `Module.modfile` is the resolved manifest path; its parent is
    the module root directory that package paths are derived from.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestNotFoundError(f"cannot read {path}: {e}") from e
    module = parse_modfile(text, path=path.resolve())
    logger.debug("read %s: module %s, %d requirements", path, module.path, len(module.dependencies))
    return module


def parse_modfile(text: str, *, path: Path) -> Module:
    module_path: str | None = None
    go_version: str | None = None
    deps: list[Dependency] = []

    block: str | None = None
    block_line = 0
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line, comment = _split_comment(raw)
        if not line:
            continue
        tokens = line.split()

        if block is not None:
            if tokens == [")"]:
                block = None
                continue
            if block == "require":
                deps.append(_require_entry(tokens, comment, path=path, line=lineno))
            continue

        verb, args = tokens[0], tokens[1:]
        if verb not in _DIRECTIVES:
            raise ManifestParseError(f"unknown directive: {verb}", path=str(path), line=lineno)

        if args == ["("]:
            block = verb
            block_line = lineno
            continue

        if verb == "module":
            if module_path is not None:
                raise ManifestParseError("repeated module statement", path=str(path), line=lineno)
            if len(args) != 1:
                raise ManifestParseError("usage: module module/path", path=str(path), line=lineno)
            module_path = _unquote(args[0])
        elif verb == "go":
            if len(args) != 1:
                raise ManifestParseError("usage: go 1.23", path=str(path), line=lineno)
            go_version = args[0]
        elif verb == "require":
            deps.append(_require_entry(args, comment, path=path, line=lineno))
        elif not args:
            raise ManifestParseError(f"usage: {verb} arguments", path=str(path), line=lineno)

    if block is not None:
        raise ManifestParseError(f"unterminated {block} block", path=str(path), line=block_line)
    if not module_path:
        raise ManifestParseError("no module directive found", path=str(path))

    return Module(path=module_path, modfile=path, go_version=go_version, dependencies=deps)


def _require_entry(tokens: list[str], comment: str, *, path: Path, line: int) -> Dependency:
    if len(tokens) != 2:
        raise ManifestParseError("usage: require module/path v1.2.3", path=str(path), line=line)
    return Dependency(
        path=_unquote(tokens[0]),
        version=_unquote(tokens[1]),
        indirect=comment.split() == ["indirect"] or comment.startswith("indirect;"),
    )


def _split_comment(raw: str) -> tuple[str, str]:
    # Module paths never contain "//", so a plain split is enough here.
    code, sep, comment = raw.partition("//")
    return code.strip(), comment.strip() if sep else ""


def _unquote(tok: str) -> str:
    if len(tok) >= 2 and tok[0] == tok[-1] and tok[0] in ('"', "`"):
        return tok[1:-1]
    return tok
