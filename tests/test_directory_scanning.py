import pytest

from goimpl.config import Settings
from goimpl.errors import ImplError
from goimpl.implement import implement, list_workspace_interfaces
from goimpl.inputs.directory_scanning import (
    PackageLocator,
    escape_module_path,
    go_files,
    load_program,
    parse_go_mod,
)


def _settings(root, **kw):
    return Settings(workdir=root, goroot=root.parent / "goroot", gomodcache=root.parent / "modcache", **kw)


def test_parse_go_mod(tmp_path):
    (tmp_path / "go.mod").write_text("""module example.com/app // main

go 1.21

require github.com/Foo/bar v1.2.3

require (
	golang.org/x/text v0.14.0 // indirect
	example.com/local v0.0.0
)

replace example.com/local => ./local
replace (
	github.com/Foo/bar v1.2.3 => github.com/fork/bar v1.2.4
)
""")
    mod = parse_go_mod(tmp_path / "go.mod")
    assert mod.path == "example.com/app"
    assert mod.requires == {
        "github.com/Foo/bar": "v1.2.3",
        "golang.org/x/text": "v0.14.0",
        "example.com/local": "v0.0.0",
    }
    assert mod.replaces["example.com/local"] == str((tmp_path / "local").resolve())
    assert mod.replaces["github.com/Foo/bar"] == "github.com/fork/bar@v1.2.4"


def test_escape_module_path():
    assert escape_module_path("github.com/BurntSushi/toml@v1.0.0") == "github.com/!burnt!sushi/toml@v1.0.0"


def test_go_files_skip_tests_and_ignored(tmp_path):
    (tmp_path / "a.go").write_text("package a\n")
    (tmp_path / "a_test.go").write_text("package a\n")
    (tmp_path / "gen.go").write_text("//go:build ignore\n\npackage main\n")
    assert [p.name for p in go_files(tmp_path)] == ["a.go"]


def test_package_dir_sources(go_workspace):
    cache = go_workspace.parent / "modcache" / "github.com" / "!foo" / "bar@v1.2.3" / "baz"
    cache.mkdir(parents=True)
    (cache / "baz.go").write_text("package baz\n")
    with open(go_workspace / "go.mod", "a") as f:
        f.write("\nrequire github.com/Foo/bar v1.2.3\n")

    locator = PackageLocator(_settings(go_workspace))
    assert locator.package_dir("example.com/app/goer") == go_workspace / "goer"
    assert locator.package_dir("io") == go_workspace.parent / "goroot" / "src" / "io"
    assert locator.package_dir("github.com/Foo/bar/baz") == cache
    assert locator.package_dir("example.com/app/nothing") is None


def test_expand_pattern(go_workspace):
    locator = PackageLocator(_settings(go_workspace))
    assert locator.default_pattern() == "example.com/app/..."
    assert locator.expand_pattern("example.com/app/...") == ["example.com/app/goer", "example.com/app/models"]
    assert locator.expand_pattern("io") == ["io"]


def test_default_pattern_needs_a_module(tmp_path):
    locator = PackageLocator(Settings(workdir=tmp_path))
    locator.module = None
    with pytest.raises(ImplError):
        locator.default_pattern()


def test_load_program_records_missing_imports(go_workspace):
    (go_workspace / "goer" / "extra.go").write_text('package goer\n\nimport "example.com/elsewhere"\n')
    program = load_program(PackageLocator(_settings(go_workspace)), ["example.com/app/goer"])
    assert "example.com/app/goer" in program.packages
    assert program.missing == {"example.com/elsewhere"}


def test_implement_writes_back(go_workspace):
    impl = implement(_settings(go_workspace), "io.Closer", "example.com/app/goer.Goer", write_back=True)
    written = (go_workspace / "goer" / "goer.go").read_text()
    assert written == impl.file_content
    assert "func (*Goer) Close() error {" in written
    # Second run: nothing left to add.
    assert implement(_settings(go_workspace), "io.Closer", "example.com/app/goer.Goer") is None


def test_list_workspace_interfaces(go_workspace):
    assert list_workspace_interfaces(_settings(go_workspace)) == []
    names = list_workspace_interfaces(_settings(go_workspace), "io")
    assert names[:2] == ["io.Reader", "io.Writer"]
