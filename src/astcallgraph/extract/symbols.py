from __future__ import annotations

from dataclasses import dataclass, field

from ..syntax import Position


@dataclass(frozen=True)
class TypeRef:
    pkg: str  # "" for predeclared types
    name: str


@dataclass(frozen=True)
class StructInfo:
    repo: str
    pkg: str
    file: str
    name: str
    type_name: str  # pkg + "." + name
    start_line: int
    end_line: int
    content: str
    # referenced pkg -> short name -> ref
    deps: dict[str, dict[str, TypeRef]] = field(default_factory=dict)


@dataclass(frozen=True)
class Var:
    type: str
    name: str | None  # None for anonymous params/results
    is_pointer: bool = False
    start: int = 0  # byte offsets of the declaring field
    end: int = 0
    typed: bool = False  # type known from a composite literal or an explicit declaration


@dataclass(frozen=True)
class CalleeInfo:
    pkg: str
    file: str
    name: str
    receiver: str | None
    begin: Position
    end: Position


@dataclass(frozen=True)
class FuncInfo:
    repo: str
    pkg: str
    file: str
    name: str
    recv: Var | None
    params: list[Var]
    results: list[Var]
    begin: Position
    end: Position
    content: str
    callees: list[CalleeInfo] = field(default_factory=list)
    locals: dict[str, Var] = field(default_factory=dict)

    @property
    def is_method(self) -> bool:
        return self.recv is not None
