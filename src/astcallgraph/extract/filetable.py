"""First pass over a file: import aliases, package-level globals, declared funcs."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

import tree_sitter

from ..syntax import SourceFile, named_children
from ..typeexpr import NamedType, base_named, qualify, type_expr
from .symbols import Var


@dataclass(frozen=True)
class FileTable:
    root_pkg: str
    current_pkg: str
    # alias -> import path
    imports: dict[str, str] = field(default_factory=dict)
    # package-level var name -> binding
    globals: dict[str, Var] = field(default_factory=dict)
    funcs: frozenset[str] = frozenset()
    # receiver base type name -> method names
    methods: dict[str, frozenset[str]] = field(default_factory=dict)

    def qualify(self, short_pkg: str, name: str, *, receiver: bool = False) -> str:
        return qualify(short_pkg, name, imports=self.imports, current_pkg=self.current_pkg, receiver=receiver)


def build_file_table(src: SourceFile, *, root_pkg: str, current_pkg: str) -> FileTable:
    imports: dict[str, str] = {}
    global_specs: list[tree_sitter.Node] = []
    funcs: set[str] = set()
    methods: dict[str, set[str]] = {}

    for decl in src.root.named_children:
        if decl.type == "import_declaration":
            for spec in _specs(decl, "import_spec", "import_spec_list"):
                alias, path = _import_alias(spec, src)
                if path:
                    imports[alias] = path
        elif decl.type == "var_declaration":
            global_specs.extend(_specs(decl, "var_spec", "var_spec_list"))
        elif decl.type == "function_declaration":
            funcs.add(src.text(decl.child_by_field_name("name")))
        elif decl.type == "method_declaration":
            recv_type = receiver_base_name(decl, src)
            if recv_type:
                methods.setdefault(recv_type, set()).add(src.text(decl.child_by_field_name("name")))

    table = FileTable(
        root_pkg=root_pkg,
        current_pkg=current_pkg,
        imports=imports,
        funcs=frozenset(funcs),
        methods={k: frozenset(v) for k, v in methods.items()},
    )
    # Globals are qualified through the finished import table (imports may follow vars).
    globals_: dict[str, Var] = {}
    for spec in global_specs:
        globals_.update(_global_bindings(spec, src, table))
    return replace(table, globals=globals_)


def _specs(decl: tree_sitter.Node, spec_type: str, list_type: str) -> list[tree_sitter.Node]:
    out: list[tree_sitter.Node] = []
    for child in decl.named_children:
        if child.type == spec_type:
            out.append(child)
        elif child.type == list_type:
            out.extend(named_children(child, spec_type))
    return out


def _import_alias(spec: tree_sitter.Node, src: SourceFile) -> tuple[str, str]:
    path = src.text(spec.child_by_field_name("path")).strip("\"`")
    name = spec.child_by_field_name("name")
    if name is not None:
        return src.text(name), path
    return path.rsplit("/", 1)[-1], path


def literal_type(node: tree_sitter.Node | None, src: SourceFile) -> tuple[NamedType, bool] | None:
    """Named type of a composite literal `T{}` / `p.T{}` / `&T{}`, with the `&` flag."""
    if node is None:
        return None
    pointer = False
    if node.type == "unary_expression" and src.text(node.child_by_field_name("operator")) == "&":
        node = node.child_by_field_name("operand")
        pointer = True
    if node is None or node.type != "composite_literal":
        return None
    t = type_expr(node.child_by_field_name("type"), src)
    if not isinstance(t, NamedType) or not t.name:
        return None
    return t, pointer


def _global_bindings(spec: tree_sitter.Node, src: SourceFile, table: FileTable) -> dict[str, Var]:
    names = spec.children_by_field_name("name")
    values = named_children(spec.child_by_field_name("value"))
    values = [v for v in values if v.type != "comment"]
    if len(values) != len(names):
        return {}
    out: dict[str, Var] = {}
    for name, value in zip(names, values):
        lit = literal_type(value, src)
        if lit is None:
            continue
        t, pointer = lit
        type_name = table.qualify(t.package, t.name)
        out[src.text(name)] = Var(
            type=("*" if pointer else "") + type_name,
            name=src.text(name),
            is_pointer=pointer,
            start=name.start_byte,
            end=name.end_byte,
            typed=True,
        )
    return out


def receiver_base_name(method: tree_sitter.Node, src: SourceFile) -> str | None:
    for param in named_children(method.child_by_field_name("receiver"), "parameter_declaration"):
        named = base_named(type_expr(param.child_by_field_name("type"), src))
        return named.name if named is not None else None
    return None
