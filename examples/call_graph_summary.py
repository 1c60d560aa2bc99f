from __future__ import annotations

import sys
from collections import Counter

import astcallgraph


def main() -> None:
    # Point at any Go module checkout (defaults to the current directory).
    # - go.mod is located by walking up from the directory
    # - No Go toolchain is needed; sources are parsed with tree-sitter
    #
    # Pass `keep_going=True` to skip files that fail to parse instead of aborting.
    directory = sys.argv[1] if len(sys.argv) > 1 else "."
    result = astcallgraph.analyze_directory(directory, jobs=4, keep_going=True)

    print("module ->", result.root_pkg)

    # --- struct dependency graph ---
    for pkg, structs in sorted(result.structs.items()):
        for s in structs:
            deps = sorted(f"{dep_pkg}.{name}" if dep_pkg else name for dep_pkg, refs in s.deps.items() for name in refs)
            print(f"{s.type_name} ({s.file}:{s.start_line}) ->", ", ".join(deps) or "-")

    # --- most-called functions inside the module ---
    calls: Counter[str] = Counter()
    for funcs in result.funcs.values():
        for fn in funcs:
            for c in fn.callees:
                calls[f"{c.receiver or c.pkg}.{c.name}"] += 1
    print("top callees ->")
    for name, n in calls.most_common(10):
        print(f"  {n:4d}  {name}")

    for err in result.errors:
        print("skipped ->", err.file, err.error)


if __name__ == "__main__":
    main()
