"""Go syntax trees via tree-sitter-go."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterator

import tree_sitter
import tree_sitter_go

from .errors import FileReadError, GoSyntaxError


@dataclass(frozen=True)
class Position:
    line: int  # 1-based
    column: int  # 1-based, in bytes
    offset: int  # 0-based byte offset


@lru_cache(maxsize=1)
def _go_language() -> tree_sitter.Language:
    return tree_sitter.Language(tree_sitter_go.language())


def _get_go_parser() -> tree_sitter.Parser:
    # Parsers are not shareable across threads; languages are.
    return tree_sitter.Parser(_go_language())


@dataclass(frozen=True)
class SourceFile:
    path: Path
    source: bytes
    lines: list[str]
    tree: tree_sitter.Tree

    @property
    def root(self) -> tree_sitter.Node:
        return self.tree.root_node

    def text(self, node: tree_sitter.Node | None) -> str:
        if node is None:
            return ""
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def position(self, node: tree_sitter.Node) -> Position:
        row, col = node.start_point
        return Position(line=row + 1, column=col + 1, offset=node.start_byte)

    def end_position(self, node: tree_sitter.Node) -> Position:
        row, col = node.end_point
        return Position(line=row + 1, column=col + 1, offset=node.end_byte)

    def line_span(self, start_line: int, end_line: int) -> str:
        """Return source lines `start_line..end_line` (1-based, inclusive)."""
        return "\n".join(self.lines[start_line - 1 : end_line])


def parse_file(path: Path) -> SourceFile:
    path = Path(path)
    try:
        source = path.read_bytes()
    except OSError as e:
        raise FileReadError(f"cannot read {path}: {e}") from e
    return parse_source(source, path=path)


def parse_source(source: bytes, *, path: Path) -> SourceFile:
    tree = _get_go_parser().parse(source)
    if tree.root_node.has_error:
        bad = _first_error(tree.root_node)
        row, col = bad.start_point if bad is not None else (0, 0)
        what = "missing " + bad.type if bad is not None and bad.is_missing else "unexpected input"
        raise GoSyntaxError(what, path=str(path), line=row + 1, column=col + 1)

    # Keep line boundaries identical to the byte view; tree-sitter rows count "\n" only.
    lines = source.decode("utf-8", errors="replace").split("\n")
    return SourceFile(path=path, source=source, lines=lines, tree=tree)


def _first_error(node: tree_sitter.Node) -> tree_sitter.Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def walk(node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Pre-order traversal (document order)."""
    stack = [node]
    while stack:
        n = stack.pop()
        yield n
        stack.extend(reversed(n.children))


def named_children(node: tree_sitter.Node | None, *types: str) -> list[tree_sitter.Node]:
    if node is None:
        return []
    return [c for c in node.named_children if not types or c.type in types]
