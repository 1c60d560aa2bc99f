"""Type expressions and the type-qualification rule.

Go type syntax is folded into a handful of variants so the extractors can
dispatch on shape without looking at tree-sitter node kinds.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Union

import tree_sitter

from .syntax import SourceFile

PREDECLARED_TYPES = frozenset(
    {
        "bool",
        "string",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
        "float32",
        "float64",
        "complex64",
        "complex128",
        "byte",
        "rune",
        "error",
        "any",
    }
)


@dataclass(frozen=True)
class NamedType:
    package: str  # short package alias; "" when unqualified
    name: str


@dataclass(frozen=True)
class PointerType:
    elem: "TypeExpr"


@dataclass(frozen=True)
class SliceType:
    elem: "TypeExpr"


@dataclass(frozen=True)
class ArrayType:
    elem: "TypeExpr"
    length: str


@dataclass(frozen=True)
class MapType:
    key: "TypeExpr"
    value: "TypeExpr"
    key_text: str


@dataclass(frozen=True)
class UnknownType:
    kind: str


TypeExpr = Union[NamedType, PointerType, SliceType, ArrayType, MapType, UnknownType]


def type_expr(node: tree_sitter.Node | None, src: SourceFile) -> TypeExpr:
    if node is None:
        return UnknownType(kind="missing")
    kind = node.type
    if kind in ("type_identifier", "identifier"):
        return NamedType(package="", name=src.text(node))
    if kind == "qualified_type":
        return NamedType(
            package=src.text(node.child_by_field_name("package")),
            name=src.text(node.child_by_field_name("name")),
        )
    if kind == "generic_type":
        return type_expr(node.child_by_field_name("type"), src)
    if kind in ("parenthesized_type", "pointer_type"):
        inner = next((c for c in node.named_children if c.type != "comment"), None)
        if kind == "parenthesized_type":
            return type_expr(inner, src)
        return PointerType(elem=type_expr(inner, src))
    if kind == "slice_type":
        return SliceType(elem=type_expr(node.child_by_field_name("element"), src))
    if kind == "array_type":
        return ArrayType(
            elem=type_expr(node.child_by_field_name("element"), src),
            length=src.text(node.child_by_field_name("length")),
        )
    if kind == "implicit_length_array_type":
        return ArrayType(elem=type_expr(node.child_by_field_name("element"), src), length="...")
    if kind == "map_type":
        key = node.child_by_field_name("key")
        return MapType(
            key=type_expr(key, src),
            value=type_expr(node.child_by_field_name("value"), src),
            key_text=src.text(key),
        )
    return UnknownType(kind=kind)


def base_named(expr: TypeExpr) -> NamedType | None:
    """Strip pointer, slice/array and map-value wrappers down to a named type."""
    while True:
        if isinstance(expr, NamedType):
            return expr if expr.name else None
        if isinstance(expr, (PointerType, SliceType, ArrayType)):
            expr = expr.elem
        elif isinstance(expr, MapType):
            expr = expr.value
        else:
            return None


def qualify(
    short_pkg: str,
    name: str,
    *,
    imports: Mapping[str, str],
    current_pkg: str,
    receiver: bool = False,
) -> str:
    if receiver:
        return f"{current_pkg}.{name}"
    if short_pkg and short_pkg in imports:
        return f"{imports[short_pkg]}.{name}"
    if name in PREDECLARED_TYPES:
        return name
    return f"{current_pkg}.{name}"


def split_qualified(type_name: str) -> tuple[str, str]:
    """Split `*example.com/mod/p.T` into ("example.com/mod/p", "T")."""
    t = type_name.lstrip("*")
    pkg, _, name = t.rpartition(".")
    return pkg, name


def render(
    expr: TypeExpr,
    *,
    imports: Mapping[str, str],
    current_pkg: str,
    receiver: bool = False,
) -> str:
    def r(e: TypeExpr) -> str:
        if isinstance(e, NamedType):
            if not e.name:
                return "unknown"
            return qualify(e.package, e.name, imports=imports, current_pkg=current_pkg, receiver=receiver)
        if isinstance(e, PointerType):
            return "*" + r(e.elem)
        if isinstance(e, SliceType):
            return "[]" + r(e.elem)
        if isinstance(e, ArrayType):
            return f"[{e.length}]" + r(e.elem)
        if isinstance(e, MapType):
            key = e.key_text if isinstance(e.key, NamedType) else ""
            return f"map[{key}]" + r(e.value)
        return "unknown"

    return r(expr)
