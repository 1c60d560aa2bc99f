"""Second pass over a file: function descriptors and call-site classification.

Every function declaration, method declaration and function literal becomes a
`FuncInfo`. Calls are resolved lexically; nothing here knows the type of an
arbitrary expression, so a selector call is only resolved when its operand is
the receiver, a typed local, a first-party import alias, a typed package-level
variable or a parameter. References to packages outside the module are never
recorded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

import tree_sitter

from ..paths import is_first_party
from ..syntax import SourceFile, named_children
from ..typeexpr import NamedType, PointerType, render, split_qualified, type_expr
from .filetable import FileTable, literal_type
from .symbols import CalleeInfo, FuncInfo, Var

KEYWORDS = frozenset(
    {
        "break", "case", "chan", "const", "continue", "default", "defer", "else",
        "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
        "map", "package", "range", "return", "select", "struct", "switch", "type", "var",
    }
)

BUILTIN_FUNCS = frozenset(
    {
        "append", "cap", "clear", "close", "complex", "copy", "delete", "imag", "len",
        "make", "max", "min", "new", "panic", "print", "println", "real", "recover",
    }
)

CONVERSIONS = frozenset(
    {
        "bool", "byte", "complex64", "complex128", "float32", "float64", "int", "int8",
        "int16", "int32", "int64", "rune", "string", "uint", "uint8", "uint16",
        "uint32", "uint64", "uintptr",
    }
)

_FUNC_NODES = ("function_declaration", "method_declaration", "func_literal")


@dataclass
class _Scope:
    name: str
    node: tree_sitter.Node
    recv: Var | None
    params: list[Var]
    results: list[Var]
    parent: "_Scope | None"
    callees: list[CalleeInfo] = field(default_factory=list)
    locals: dict[str, Var] = field(default_factory=dict)
    literals: int = 0

    def chain(self) -> Iterator["_Scope"]:
        s: _Scope | None = self
        while s is not None:
            yield s
            s = s.parent

    def receiver(self) -> Var | None:
        return next((s.recv for s in self.chain() if s.recv is not None), None)


def extract_funcs(src: SourceFile, table: FileTable, *, file: str) -> list[FuncInfo]:
    return _FuncExtractor(src, table, file).run()


class _FuncExtractor:
    def __init__(self, src: SourceFile, table: FileTable, file: str):
        self.src = src
        self.table = table
        self.file = file
        self._scopes: list[_Scope] = []
        self._inits = 0
        self._globs = 0

    def run(self) -> list[FuncInfo]:
        # Explicit stack: expression trees can nest deeper than the recursion limit.
        stack: list[tuple[tree_sitter.Node, _Scope | None]] = [(self.src.root, None)]
        while stack:
            node, scope = stack.pop()
            if node.type in _FUNC_NODES:
                scope = self._open(node, scope)
                body = node.child_by_field_name("body")
                if body is not None:
                    stack.append((body, scope))
                continue
            if scope is not None:
                if node.type == "call_expression":
                    self._call(node, scope)
                elif node.type in ("short_var_declaration", "assignment_statement"):
                    self._assign(node, scope)
                elif node.type == "var_declaration":
                    self._var_decl(node, scope)
            stack.extend((c, scope) for c in reversed(node.children))
        return [self._finish(s) for s in self._scopes]

    # -- declarations -------------------------------------------------------

    def _open(self, node: tree_sitter.Node, parent: _Scope | None) -> _Scope:
        recv: Var | None = None
        if node.type == "func_literal":
            if parent is None:
                self._globs += 1
                name = f"glob.func{self._globs}"
            else:
                parent.literals += 1
                name = f"{parent.name}.func{parent.literals}"
        else:
            name = self.src.text(node.child_by_field_name("name"))
            if node.type == "function_declaration" and name == "init":
                name = f"init#{self._inits}"
                self._inits += 1
            if node.type == "method_declaration":
                recvs = self._field_vars(node.child_by_field_name("receiver"), receiver=True)
                recv = recvs[0] if recvs else None

        params = self._field_vars(node.child_by_field_name("parameters"))
        results = self._results(node.child_by_field_name("result"))
        scope = _Scope(name=name, node=node, recv=recv, params=params, results=results, parent=parent)
        self._scopes.append(scope)
        return scope

    def _field_vars(self, plist: tree_sitter.Node | None, *, receiver: bool = False) -> list[Var]:
        out: list[Var] = []
        for decl in named_children(plist, "parameter_declaration", "variadic_parameter_declaration"):
            type_str = render(
                type_expr(decl.child_by_field_name("type"), self.src),
                imports=self.table.imports,
                current_pkg=self.table.current_pkg,
                receiver=receiver,
            )
            if decl.type == "variadic_parameter_declaration":
                type_str = "..." + type_str
            names = decl.children_by_field_name("name")
            for n in names or [None]:
                out.append(
                    Var(
                        type=type_str,
                        name=self.src.text(n) if n is not None else None,
                        is_pointer=type_str.startswith("*"),
                        start=decl.start_byte,
                        end=decl.end_byte,
                    )
                )
        return out

    def _results(self, result: tree_sitter.Node | None) -> list[Var]:
        if result is None:
            return []
        if result.type == "parameter_list":
            raw = self._field_vars(result)
        else:
            type_str = render(
                type_expr(result, self.src), imports=self.table.imports, current_pkg=self.table.current_pkg
            )
            raw = [
                Var(
                    type=type_str,
                    name=None,
                    is_pointer=type_str.startswith("*"),
                    start=result.start_byte,
                    end=result.end_byte,
                )
            ]
        out: list[Var] = []
        anon = 0
        for v in raw:
            if v.name is None:
                v = Var(type=v.type, name=f"rt{anon}", is_pointer=v.is_pointer, start=v.start, end=v.end)
                anon += 1
            out.append(v)
        return out

    def _finish(self, scope: _Scope) -> FuncInfo:
        return FuncInfo(
            repo=self.table.root_pkg,
            pkg=self.table.current_pkg,
            file=self.file,
            name=scope.name,
            recv=scope.recv,
            params=scope.params,
            results=scope.results,
            begin=self.src.position(scope.node),
            end=self.src.end_position(scope.node),
            content=self.src.text(scope.node),
            callees=scope.callees,
            locals=scope.locals,
        )

    # -- local bindings -----------------------------------------------------

    def _bind(self, scope: _Scope, name_node: tree_sitter.Node, var: Var) -> None:
        scope.locals[self.src.text(name_node)] = var

    def _assign(self, node: tree_sitter.Node, scope: _Scope) -> None:
        if node.type == "assignment_statement" and self.src.text(node.child_by_field_name("operator")) != "=":
            return
        left = [n for n in named_children(node.child_by_field_name("left")) if n.type != "comment"]
        right = [n for n in named_children(node.child_by_field_name("right")) if n.type != "comment"]
        if len(left) != len(right):
            return
        for lhs, rhs in zip(left, right):
            if lhs.type != "identifier" or self.src.text(lhs) == "_":
                continue
            var = self._binding_from_value(lhs, rhs)
            if var is not None:
                self._bind(scope, lhs, var)

    def _var_decl(self, node: tree_sitter.Node, scope: _Scope) -> None:
        specs: list[tree_sitter.Node] = []
        for child in node.named_children:
            if child.type == "var_spec":
                specs.append(child)
            elif child.type == "var_spec_list":
                specs.extend(named_children(child, "var_spec"))
        for spec in specs:
            names = spec.children_by_field_name("name")
            values = [v for v in named_children(spec.child_by_field_name("value")) if v.type != "comment"]
            if values:
                if len(values) != len(names):
                    continue
                for name, value in zip(names, values):
                    var = self._binding_from_value(name, value)
                    if var is not None:
                        self._bind(scope, name, var)
                continue
            declared = type_expr(spec.child_by_field_name("type"), self.src)
            inner = declared.elem if isinstance(declared, PointerType) else declared
            if not isinstance(inner, NamedType) or not inner.name:
                continue
            type_str = render(declared, imports=self.table.imports, current_pkg=self.table.current_pkg)
            for name in names:
                self._bind(
                    scope,
                    name,
                    Var(
                        type=type_str,
                        name=self.src.text(name),
                        is_pointer=type_str.startswith("*"),
                        start=name.start_byte,
                        end=name.end_byte,
                        typed=True,
                    ),
                )

    def _binding_from_value(self, name: tree_sitter.Node, value: tree_sitter.Node) -> Var | None:
        lit = literal_type(value, self.src)
        if lit is not None:
            t, pointer = lit
            type_str = ("*" if pointer else "") + self.table.qualify(t.package, t.name)
            typed = True
        elif value.type == "selector_expression":
            operand = value.child_by_field_name("operand")
            if operand is None or operand.type != "identifier":
                return None
            type_str = self.table.qualify(self.src.text(operand), self.src.text(value.child_by_field_name("field")))
            pointer = False
            typed = False
        else:
            return None
        return Var(
            type=type_str,
            name=self.src.text(name),
            is_pointer=pointer,
            start=name.start_byte,
            end=name.end_byte,
            typed=typed,
        )

    # -- calls --------------------------------------------------------------

    def _call(self, call: tree_sitter.Node, scope: _Scope) -> None:
        fn = call.child_by_field_name("function")
        if fn is not None:
            if fn.type == "identifier":
                self._ident_ref(fn, scope)
            elif fn.type == "selector_expression":
                self._selector_ref(fn, scope)
        self._func_args(call, scope)

    def _func_args(self, call: tree_sitter.Node, scope: _Scope) -> None:
        for arg in named_children(call.child_by_field_name("arguments")):
            if arg.type == "identifier":
                name = self.src.text(arg)
                if name in self.table.funcs and not self._shadowed(name, scope):
                    self._ident_ref(arg, scope)
            elif arg.type == "selector_expression":
                operand = arg.child_by_field_name("operand")
                recv = scope.receiver()
                if operand is None or operand.type != "identifier" or recv is None:
                    continue
                if recv.name != self.src.text(operand):
                    continue
                _, recv_type = split_qualified(recv.type)
                if self.src.text(arg.child_by_field_name("field")) in self.table.methods.get(recv_type, ()):
                    self._selector_ref(arg, scope)

    def _shadowed(self, name: str, scope: _Scope) -> bool:
        for s in scope.chain():
            if name in s.locals or any(p.name == name for p in s.params):
                return True
            if s.recv is not None and s.recv.name == name:
                return True
        return False

    def _ident_ref(self, ident: tree_sitter.Node, scope: _Scope) -> None:
        name = self.src.text(ident)
        if name in KEYWORDS or name in BUILTIN_FUNCS or name in CONVERSIONS:
            return
        self._record(scope, ident, pkg=self.table.current_pkg, name=name, receiver=None)

    def _selector_ref(self, sel: tree_sitter.Node, scope: _Scope) -> None:
        operand = sel.child_by_field_name("operand")
        if operand is None or operand.type != "identifier":
            return
        x = self.src.text(operand)
        name = self.src.text(sel.child_by_field_name("field"))
        root = self.table.root_pkg

        # Innermost function first; a name bound in one scope hides the same
        # name in the scopes around it.
        package_level = x in self.table.imports or x in self.table.globals
        for s in scope.chain():
            if s.recv is not None and s.recv.name == x:
                self._record(scope, sel, pkg=self.table.current_pkg, name=name, receiver=s.recv.type or None)
                return
            local = s.locals.get(x)
            if local is not None:
                pkg, _ = split_qualified(local.type)
                if local.typed and is_first_party(pkg, root):
                    self._record(scope, sel, pkg=pkg, name=name, receiver=local.type)
                return
            matches = [p for p in s.params if p.name == x]
            if matches:
                # Import aliases and globals take precedence over parameters.
                if package_level:
                    break
                for _ in matches:
                    self._record(scope, sel, pkg=self.table.current_pkg, name=name, receiver=None)
                return

        if x in self.table.imports:
            pkg = self.table.imports[x]
            if is_first_party(pkg, root):
                self._record(scope, sel, pkg=pkg, name=name, receiver=None)
            return

        glob = self.table.globals.get(x)
        if glob is not None:
            pkg, _ = split_qualified(glob.type)
            if is_first_party(pkg, root):
                self._record(scope, sel, pkg=pkg, name=name, receiver=glob.type)

    def _record(self, scope: _Scope, node: tree_sitter.Node, *, pkg: str, name: str, receiver: str | None) -> None:
        info = CalleeInfo(
            pkg=pkg,
            file="",
            name=name,
            receiver=receiver,
            begin=self.src.position(node),
            end=self.src.end_position(node),
        )
        for s in scope.chain():
            s.callees.append(info)

