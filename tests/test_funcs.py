from pathlib import Path

ROOT = "example.com/mod"
PKG = "example.com/mod/svc"


def _funcs(code: str, *, pkg: str = PKG):
    from astcallgraph.extract.filetable import build_file_table
    from astcallgraph.extract.funcs import extract_funcs
    from astcallgraph.syntax import parse_source

    src = parse_source(code.encode("utf-8"), path=Path("svc.go"))
    table = build_file_table(src, root_pkg=ROOT, current_pkg=pkg)
    return {f.name: f for f in extract_funcs(src, table, file="svc/svc.go")}


def _calls(fn):
    return [(c.pkg, c.name, c.receiver) for c in fn.callees]


def test_receiver_call_and_bare_helper_call():
    funcs = _funcs(
        """package svc

type Server struct{}

func (s *Server) Start() {
	s.Stop()
	helper()
}
"""
    )
    start = funcs["Start"]
    assert start.recv is not None
    assert start.recv.name == "s"
    assert start.recv.type == "*example.com/mod/svc.Server"
    assert start.recv.is_pointer is True
    assert start.is_method
    assert _calls(start) == [
        (PKG, "Stop", "*example.com/mod/svc.Server"),
        (PKG, "helper", None),
    ]


def test_callee_span_covers_the_callee_expression():
    code = "package svc\n\ntype T struct{}\n\nfunc (r T) M() {\n\tr.N()\n}\n"
    (c,) = _funcs(code)["M"].callees
    assert c.receiver == "example.com/mod/svc.T"
    assert (c.begin.line, c.begin.column) == (6, 2)
    assert (c.end.line, c.end.column) == (6, 5)
    assert code.encode()[c.begin.offset : c.end.offset] == b"r.N"


def test_external_package_calls_are_not_recorded():
    funcs = _funcs(
        """package svc

import (
	"fmt"
	"strings"
	other "example.com/modx/util"
	"example.com/mod/store"
)

func Run() {
	fmt.Println(strings.ToUpper("x"))
	other.Do()
	store.Save()
}
"""
    )
    assert _calls(funcs["Run"]) == [("example.com/mod/store", "Save", None)]


def test_builtins_keywords_and_conversions_are_suppressed():
    funcs = _funcs(
        """package svc

func Run(xs []int) {
	ys := make([]int, len(xs))
	ys = append(ys, int(3))
	_ = string(rune(65))
	panic(compute())
}
"""
    )
    assert _calls(funcs["Run"]) == [(PKG, "compute", None)]


def test_global_variable_receiver():
    funcs = _funcs(
        """package svc

import (
	"strings"

	"example.com/mod/cache"
)

var defaultCache = cache.Store{}
var local = &Registry{}
var ext = strings.Builder{}

func Get() {
	defaultCache.Load()
	local.Lookup()
	ext.WriteString("x")
}
"""
    )
    assert _calls(funcs["Get"]) == [
        ("example.com/mod/cache", "Load", "example.com/mod/cache.Store"),
        (PKG, "Lookup", "*example.com/mod/svc.Registry"),
    ]


def test_parameter_name_match_resolves_to_current_package():
    funcs = _funcs(
        """package svc

func Handle(repo Repository, n int) {
	repo.Find(n)
	unknown.Thing()
}
"""
    )
    handle = funcs["Handle"]
    assert _calls(handle) == [(PKG, "Find", None)]
    assert [(p.name, p.type) for p in handle.params] == [
        ("repo", "example.com/mod/svc.Repository"),
        ("n", "int"),
    ]


def test_typed_locals_resolve_selector_calls():
    funcs = _funcs(
        """package svc

import (
	"bytes"
	"example.com/mod/model"
)

func Build() {
	u := &model.User{}
	u.Validate()
	var w Writer
	w.Flush()
	b := bytes.Buffer{}
	b.WriteString("x")
	name := model.DefaultName
	name.Len()
}
"""
    )
    build = funcs["Build"]
    assert _calls(build) == [
        ("example.com/mod/model", "Validate", "*example.com/mod/model.User"),
        (PKG, "Flush", "example.com/mod/svc.Writer"),
    ]
    assert build.locals["u"].type == "*example.com/mod/model.User"
    assert build.locals["u"].typed is True
    assert build.locals["w"].type == "example.com/mod/svc.Writer"
    assert build.locals["b"].type == "bytes.Buffer"
    assert build.locals["name"].type == "example.com/mod/model.DefaultName"
    assert build.locals["name"].typed is False


def test_function_valued_arguments_are_references():
    funcs = _funcs(
        """package svc

type Pool struct{}

func worker() {}

func spawn(f func()) { f() }

func (p *Pool) handle() {}

func (p *Pool) Serve() {
	spawn(worker)
	spawn(p.handle)
	spawn(notDeclaredHere)
}

func Shadow(worker func()) {
	spawn(worker)
}
"""
    )
    assert _calls(funcs["Serve"]) == [
        (PKG, "spawn", None),
        (PKG, "worker", None),
        (PKG, "spawn", None),
        (PKG, "handle", "*example.com/mod/svc.Pool"),
        (PKG, "spawn", None),
    ]
    assert _calls(funcs["spawn"]) == [(PKG, "f", None)]
    assert _calls(funcs["Shadow"]) == [(PKG, "spawn", None)]


def test_init_functions_get_distinct_names():
    funcs = _funcs(
        """package svc

func init() { setupA() }

func init() { setupB() }
"""
    )
    assert _calls(funcs["init#0"]) == [(PKG, "setupA", None)]
    assert _calls(funcs["init#1"]) == [(PKG, "setupB", None)]


def test_signature_bindings():
    funcs = _funcs(
        """package svc

import "example.com/mod/model"

func Query(ctx Context, ids []int64, opts ...Option) (*model.User, map[string]model.Role, error) {
	return nil, nil, nil
}

func Named() (n int, err error) { return }

func Single() model.User { return model.User{} }
"""
    )
    q = funcs["Query"]
    assert [(p.name, p.type) for p in q.params] == [
        ("ctx", "example.com/mod/svc.Context"),
        ("ids", "[]int64"),
        ("opts", "...example.com/mod/svc.Option"),
    ]
    assert [(r.name, r.type, r.is_pointer) for r in q.results] == [
        ("rt0", "*example.com/mod/model.User", True),
        ("rt1", "map[string]example.com/mod/model.Role", False),
        ("rt2", "error", False),
    ]
    assert [(r.name, r.type) for r in funcs["Named"].results] == [("n", "int"), ("err", "error")]
    assert [(r.name, r.type) for r in funcs["Single"].results] == [("rt0", "example.com/mod/model.User")]
    assert funcs["Query"].content.startswith("func Query(")
    assert funcs["Query"].begin.line == 5


def test_function_literals_are_descriptors_and_share_calls():
    funcs = _funcs(
        """package svc

var onStart = func() { boot() }

type Server struct{}

func (s *Server) Run() {
	go func() {
		s.loop()
		work()
	}()
	defer func(x Task) { x.Done() }(nil)
}
"""
    )
    assert _calls(funcs["glob.func1"]) == [(PKG, "boot", None)]
    assert _calls(funcs["Run.func1"]) == [
        (PKG, "loop", "*example.com/mod/svc.Server"),
        (PKG, "work", None),
    ]
    assert funcs["Run.func1"].recv is None
    assert _calls(funcs["Run.func2"]) == [(PKG, "Done", None)]
    assert _calls(funcs["Run"]) == [
        (PKG, "loop", "*example.com/mod/svc.Server"),
        (PKG, "work", None),
        (PKG, "Done", None),
    ]


def test_literal_locals_stay_inside_the_literal():
    funcs = _funcs(
        """package svc

import "example.com/mod/model"

func Run(s Service) {
	func() {
		s := model.User{}
		s.Validate()
	}()
	s.Stop()
}
"""
    )
    run = funcs["Run"]
    assert run.locals == {}
    assert list(funcs["Run.func1"].locals) == ["s"]
    assert _calls(funcs["Run.func1"]) == [
        ("example.com/mod/model", "Validate", "example.com/mod/model.User"),
    ]
    assert _calls(run) == [
        ("example.com/mod/model", "Validate", "example.com/mod/model.User"),
        (PKG, "Stop", None),
    ]


def test_sibling_literal_parameter_is_not_hidden_by_earlier_literal_local():
    funcs = _funcs(
        """package svc

import "example.com/mod/model"

func Run() {
	go func() {
		u := model.User{}
		_ = u
	}()
	go func(u Task) {
		u.Done()
	}(nil)
}
"""
    )
    assert _calls(funcs["Run.func2"]) == [(PKG, "Done", None)]


def test_inner_parameter_hides_enclosing_typed_local():
    funcs = _funcs(
        """package svc

import "example.com/mod/model"

func Run() {
	u := &model.User{}
	each(func(u Task) {
		u.Done()
	})
	u.Validate()
}
"""
    )
    assert _calls(funcs["Run.func1"]) == [(PKG, "Done", None)]
    assert _calls(funcs["Run"]) == [
        (PKG, "each", None),
        (PKG, "Done", None),
        ("example.com/mod/model", "Validate", "*example.com/mod/model.User"),
    ]
