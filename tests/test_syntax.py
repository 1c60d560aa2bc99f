from pathlib import Path

import pytest

SRC = b"""package p

func Hello() string {
\treturn "hi"
}
"""


def test_parse_source_positions_and_text():
    from astcallgraph.syntax import parse_source

    src = parse_source(SRC, path=Path("p.go"))
    fn = next(n for n in src.root.named_children if n.type == "function_declaration")

    assert src.text(fn.child_by_field_name("name")) == "Hello"
    begin = src.position(fn)
    end = src.end_position(fn)
    assert (begin.line, begin.column, begin.offset) == (3, 1, SRC.index(b"func"))
    assert end.line == 5
    assert src.line_span(3, 5) == 'func Hello() string {\n\treturn "hi"\n}'


def test_parse_source_reports_syntax_errors():
    from astcallgraph.errors import GoSyntaxError
    from astcallgraph.syntax import parse_source

    with pytest.raises(GoSyntaxError) as exc:
        parse_source(b"package p\n\nfunc Broken( {\n", path=Path("bad.go"))
    assert exc.value.path == "bad.go"
    assert exc.value.line >= 3
    assert str(exc.value).startswith("bad.go:")


def test_parse_file_unreadable(tmp_path: Path):
    from astcallgraph.errors import FileReadError
    from astcallgraph.syntax import parse_file

    with pytest.raises(FileReadError, match=r"cannot read"):
        parse_file(tmp_path / "missing.go")
