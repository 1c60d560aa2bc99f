from __future__ import annotations

import tree_sitter

from ..syntax import SourceFile, named_children, walk
from ..typeexpr import base_named, split_qualified, type_expr
from .filetable import FileTable
from .symbols import StructInfo, TypeRef


def extract_structs(src: SourceFile, table: FileTable, *, file: str) -> list[StructInfo]:
    """Collect every struct type declared in the file, local declarations included."""
    out: list[StructInfo] = []
    for node in walk(src.root):
        if node.type != "type_spec":
            continue
        body = node.child_by_field_name("type")
        if body is None or body.type != "struct_type":
            continue
        name = src.text(node.child_by_field_name("name"))
        start_line = node.start_point[0] + 1
        end_line = node.end_point[0] + 1
        out.append(
            StructInfo(
                repo=table.root_pkg,
                pkg=table.current_pkg,
                file=file,
                name=name,
                type_name=f"{table.current_pkg}.{name}",
                start_line=start_line,
                end_line=end_line,
                content=src.line_span(start_line, end_line),
                deps=_struct_deps(body, src, table),
            )
        )
    return out


def _struct_deps(struct: tree_sitter.Node, src: SourceFile, table: FileTable) -> dict[str, dict[str, TypeRef]]:
    deps: dict[str, dict[str, TypeRef]] = {}
    for fields in named_children(struct, "field_declaration_list"):
        for f in named_children(fields, "field_declaration"):
            named = base_named(type_expr(f.child_by_field_name("type"), src))
            if named is None:
                continue
            pkg, _ = split_qualified(table.qualify(named.package, named.name))
            deps.setdefault(pkg, {})[named.name] = TypeRef(pkg=pkg, name=named.name)
    return deps

