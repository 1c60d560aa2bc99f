from pathlib import Path

import pytest


def test_iter_go_files_is_sorted_and_skips_tests_and_ignored_dirs(tmp_path: Path):
    from astcallgraph.discovery import iter_go_files

    for rel in [
        "b.go",
        "a.go",
        "a_test.go",
        "README.md",
        "svc/z.go",
        "svc/impl/y.go",
        "vendor/github.com/x/x.go",
        "testdata/fixture.go",
        ".git/hooks.go",
        "_scratch/tmp.go",
    ]:
        p = tmp_path / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text("package x\n", encoding="utf-8")

    got = [p.relative_to(tmp_path).as_posix() for p in iter_go_files(tmp_path)]
    assert got == ["a.go", "b.go", "svc/z.go", "svc/impl/y.go"]


def test_iter_go_files_missing_root(tmp_path: Path):
    from astcallgraph.discovery import iter_go_files
    from astcallgraph.errors import DirectoryError

    with pytest.raises(DirectoryError, match=r"not a directory"):
        list(iter_go_files(tmp_path / "nope"))
