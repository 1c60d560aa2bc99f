"""Machine-readable encodings of an analysis result (JSON and MessagePack)."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

import msgpack

from .aggregate import AnalysisResult
from .errors import DecodeError
from .extract.symbols import FuncInfo, StructInfo

DOCUMENT_VERSION = 1


def to_document(result: AnalysisResult) -> dict[str, Any]:
    module = result.module
    return {
        "version": DOCUMENT_VERSION,
        "root_package": result.root_pkg,
        "module": {
            "path": module.path,
            "modfile": str(module.modfile),
            "go_version": module.go_version,
            "dependencies": [asdict(d) for d in module.dependencies],
        },
        "packages": {pkg: [_struct(s) for s in result.structs[pkg]] for pkg in sorted(result.structs)},
        "functions": {pkg: [_func(f) for f in result.funcs[pkg]] for pkg in sorted(result.funcs)},
        "errors": [asdict(e) for e in result.errors],
    }


def _struct(s: StructInfo) -> dict[str, Any]:
    return {
        "repo": s.repo,
        "pkg": s.pkg,
        "file": s.file,
        "name": s.name,
        "type_name": s.type_name,
        "start_line": s.start_line,
        "end_line": s.end_line,
        "content": s.content,
        "deps": {
            pkg: {name: asdict(ref) for name, ref in sorted(refs.items())}
            for pkg, refs in sorted(s.deps.items())
        },
    }


def _func(f: FuncInfo) -> dict[str, Any]:
    return {
        "repo": f.repo,
        "pkg": f.pkg,
        "file": f.file,
        "name": f.name,
        "recv": asdict(f.recv) if f.recv is not None else None,
        "params": [asdict(v) for v in f.params],
        "results": [asdict(v) for v in f.results],
        "begin": asdict(f.begin),
        "end": asdict(f.end),
        "content": f.content,
        "callees": [asdict(c) for c in f.callees],
        "locals": {name: asdict(v) for name, v in sorted(f.locals.items())},
    }


def encode_json(result: AnalysisResult, *, indent: int | None = 2) -> str:
    return json.dumps(to_document(result), indent=indent, ensure_ascii=False)


def encode_msgpack(result: AnalysisResult) -> bytes:
    return msgpack.packb(to_document(result), use_bin_type=True)


def decode_msgpack(payload: bytes) -> dict[str, Any]:
    try:
        obj = msgpack.unpackb(payload, raw=False)
    except Exception as e:  # noqa: BLE001 - boundary decoding error
        raise DecodeError(str(e)) from e

    if not isinstance(obj, dict) or "root_package" not in obj:
        raise DecodeError("invalid analysis document")
    if obj.get("version") != DOCUMENT_VERSION:
        raise DecodeError(f"unsupported document version: {obj.get('version')!r}")
    return obj
