from __future__ import annotations

import argparse
import importlib.metadata
import logging
import os
import sys
from pathlib import Path

from .errors import AstCallGraphError

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="astcallgraph")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version", help="Print astcallgraph version.")

    p_an = sub.add_parser("analyze", help="Build struct dependency and call graphs for a Go module directory.")
    p_an.add_argument("directory", help="Directory to analyze (the module root or a directory inside it).")
    p_an.add_argument(
        "--modfile",
        default=None,
        help="Path to go.mod (default: ASTCALLGRAPH_MODFILE, nearest go.mod above DIRECTORY, then ./go.mod).",
    )
    p_an.add_argument("--format", choices=["json", "msgpack"], default="json", help="Output encoding.")
    p_an.add_argument("--out", default=None, help="Output file (default: stdout).")
    p_an.add_argument(
        "--jobs",
        type=int,
        default=None,
        help="Number of files analyzed in parallel (default: ASTCALLGRAPH_JOBS or 1).",
    )
    p_an.add_argument(
        "--keep-going",
        action="store_true",
        help="Skip files that fail to read or parse and report them under `errors` instead of aborting.",
    )
    p_an.add_argument("-v", "--verbose", action="store_true", help="Log per-file progress to stderr.")

    args = parser.parse_args(argv)
    if args.cmd == "version":
        try:
            print(importlib.metadata.version("astcallgraph"))
        except importlib.metadata.PackageNotFoundError:
            print("0.0.0")
        return 0

    _configure_logging(verbose=args.verbose)

    if args.cmd == "analyze":
        from .aggregate import analyze_directory
        from .encode import encode_json, encode_msgpack

        try:
            result = analyze_directory(
                args.directory,
                modfile=args.modfile,
                jobs=args.jobs,
                keep_going=args.keep_going,
            )
        except AstCallGraphError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1

        if args.format == "msgpack":
            payload = encode_msgpack(result)
            if args.out:
                Path(args.out).write_bytes(payload)
            else:
                sys.stdout.buffer.write(payload)
                sys.stdout.flush()
        else:
            text = encode_json(result)
            if args.out:
                Path(args.out).write_text(text + "\n", encoding="utf-8")
            else:
                print(text)
        if args.out:
            logger.info("wrote %s", args.out)
        return 0

    return 2


def _configure_logging(*, verbose: bool) -> None:
    name = "DEBUG" if verbose else os.environ.get("ASTCALLGRAPH_LOG_LEVEL", "WARNING").upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


if __name__ == "__main__":
    raise SystemExit(main())
