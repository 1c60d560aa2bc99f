from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _clear_astcallgraph_env(monkeypatch: pytest.MonkeyPatch):
    # Environment overrides would otherwise leak from the developer's shell into tests.
    for name in ("ASTCALLGRAPH_MODFILE", "ASTCALLGRAPH_JOBS", "ASTCALLGRAPH_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def go_module(tmp_path: Path):
    """Write a Go module into tmp_path: `go_module({"a.go": "...", "svc/b.go": "..."})`."""

    def make(files: dict[str, str], *, module: str = "example.com/mod") -> Path:
        (tmp_path / "go.mod").write_text(f"module {module}\n\ngo 1.22\n", encoding="utf-8")
        for rel, text in files.items():
            p = tmp_path / rel
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(text, encoding="utf-8")
        return tmp_path

    return make
