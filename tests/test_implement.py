import json

import pytest

from goimpl.errors import (
    DeclarationNotFound,
    DependencyMissing,
    InvalidReference,
    NotAnInterface,
    PackageNotFound,
    SignatureMismatch,
)
from goimpl.implement import generate_stubs, list_interfaces, split_ref, write_implementation
from goimpl.indexer import index_sources
from goimpl.models.ast_models import ImportSpec
from goimpl.outputs.output import summary, to_json

from go_fixtures import (
    CROWD,
    DOTTER,
    GOER,
    GOER_SRC,
    MODELS,
    PARTIER,
    RIOTER,
    SIMPLE,
    SOURCES,
    UNDERSCORE,
    build,
)


def _stub(receiver, name, signature, interface):
    return (
        f"// {name} implements {interface}\n"
        f"func (*{receiver}) {name}{signature} {{\n"
        f"\tpanic(\"unimplemented\")\n"
        f"}}\n"
    )


def _stubs(receiver, interface, *methods):
    return "\n".join(_stub(receiver, name, sig, interface) for name, sig in methods)


def test_split_ref():
    assert split_ref("io.Writer") == ("io", "Writer")
    assert split_ref(f"{GOER}.Goer") == (GOER, "Goer")
    for bad in ("Goer", "io.", ".Writer", "marwan.io/impl"):
        with pytest.raises(InvalidReference):
            split_ref(bad)


def test_writer_needs_no_imports(program):
    impl = generate_stubs(program, "io.Writer", f"{GOER}.Goer")
    assert impl.file_content == GOER_SRC + "\n" + _stubs(
        "Goer", "Writer", ("Write", "(p []byte) (n int, err error)"),
    )
    assert impl.added_imports == []
    assert impl.error is None


def test_partier_golden(program):
    impl = generate_stubs(program, f"{PARTIER}.Partier", f"{GOER}.Goer")
    methods = _stubs(
        "Goer", "Partier",
        ("Sing", "(c *crowd.Crowd) error"),
        ("Read", "(p []byte) (n int, err error)"),
        ("Close", "() error"),
        ("Write", "(p []byte) (n int, err error)"),
        ("Drink", "(models.Beverage) error"),
        ("BrowsePartyThemes", "(themes map[models.Theme]struct{}) error"),
        ("FavoritePerson", "() *models.Person"),
        ("SendBeverage", "(chan models.Beverage)"),
        ("GoWith", "(p *models.Person) (err error)"),
        ("Fight", "(reason string) []*partier.Problem"),
        ("Hammered", "(interface{ DrinkMore(interface{ partier.Singer; Fight(reason string) "
                     "[]*partier.Problem }) partier.Partier }) partier.Partier"),
    )
    expected = (
        "package goer\n\n"
        "import (\n"
        f"\t\"{CROWD}\"\n"
        f"\t\"{MODELS}\"\n"
        f"\t\"{PARTIER}\"\n"
        ")\n\n"
        "// Goer goes\n"
        "type Goer struct{}\n\n"
    ) + methods
    assert impl.file_content == expected
    assert impl.methods == methods
    assert impl.added_imports == [ImportSpec(None, CROWD), ImportSpec(None, MODELS), ImportSpec(None, PARTIER)]
    assert impl.all_imports == impl.added_imports


def test_output_is_a_fixed_point(program):
    impl = generate_stubs(program, f"{PARTIER}.Partier", f"{GOER}.Goer")
    again = build(goer={"goer.go": impl.file_content})
    assert generate_stubs(again, f"{PARTIER}.Partier", f"{GOER}.Goer") is None


def test_stubs_into_the_package_they_reference(program):
    impl = generate_stubs(program, f"{RIOTER}.Rioter", f"{CROWD}.Crowd")
    assert impl.file_content == SOURCES[CROWD]["crowd.go"] + "\n" + _stubs(
        "Crowd", "Rioter",
        ("Riot", "(c *Crowd) error"),
        ("Leader", "() *Crowd"),
    )
    assert impl.added_imports == []


@pytest.mark.parametrize("iface", [f"{DOTTER}.Interface", f"{SIMPLE}.Interface"])
def test_blank_import_does_not_count(program, iface):
    impl = generate_stubs(program, iface, f"{UNDERSCORE}.Underscore")
    assert impl.file_content == (
        "package underscore\n\n"
        "import (\n"
        f"\t\"{MODELS}\"\n"
        f"\t_ \"{MODELS}\"\n"
        ")\n\n"
        "// Underscore has a blank import\n"
        "type Underscore struct{}\n\n"
    ) + _stubs("Underscore", "Interface", ("Drink", "(models.Beverage) error"))


def test_new_import_joins_the_existing_block():
    program = build(goer={"goer.go": """package goer

import (
	"fmt"
)

// Goer goes
type Goer struct{}

func (*Goer) String() string { return fmt.Sprint("goer") }
"""})
    impl = generate_stubs(program, f"{SIMPLE}.Interface", f"{GOER}.Goer")
    assert impl.file_content.startswith(f"package goer\n\nimport (\n\t\"fmt\"\n\t\"{MODELS}\"\n)\n")
    assert [s.path for s in impl.all_imports] == ["fmt", MODELS]


def test_destination_alias_is_reused():
    program = build(goer={"goer.go": f"""package goer

import m "{MODELS}"

// Goer goes
type Goer struct{{ p m.Person }}
"""})
    impl = generate_stubs(program, f"{SIMPLE}.Interface", f"{GOER}.Goer")
    assert impl.added_imports == []
    assert impl.methods == _stubs("Goer", "Interface", ("Drink", "(m.Beverage) error"))


def test_qualifier_collision_gets_a_fresh_alias():
    program = build(goer={"goer.go": """package goer

import "example.com/other/models"

// Goer goes
type Goer struct{ p models.Person }
"""})
    impl = generate_stubs(program, f"{SIMPLE}.Interface", f"{GOER}.Goer")
    assert impl.added_imports == [ImportSpec("models2", MODELS)]
    assert f"\tmodels2 \"{MODELS}\"\n" in impl.file_content
    assert "Drink(models2.Beverage) error" in impl.methods


def test_generic_receiver_keeps_type_parameters():
    program = build(goer={"goer.go": """package goer

// Box holds one value
type Box[T any] struct{ v T }
"""})
    impl = generate_stubs(program, "io.Closer", f"{GOER}.Box")
    assert "func (*Box[T]) Close() error {" in impl.methods


def test_satisfied_type_returns_nothing():
    program = build(goer={"goer.go": """package goer

type Goer struct{}

func (Goer) Close() error { return nil }
"""})
    assert generate_stubs(program, "io.Closer", f"{GOER}.Goer") is None


def test_signature_mismatch_produces_no_output():
    program = build(goer={"goer.go": """package goer

type Goer struct{}

func (*Goer) Write(p []byte) string { return "" }
"""})
    with pytest.raises(SignatureMismatch) as exc:
        generate_stubs(program, "io.Writer", f"{GOER}.Goer")
    assert str(exc.value) == (
        "mismatched 'Write' function signatures:\n"
        "have: func([]uint8) (string)\n"
        "want: func([]uint8) (int, error)"
    )


def test_lookup_errors(program):
    with pytest.raises(PackageNotFound):
        generate_stubs(program, "example.com/nope.Thing", f"{GOER}.Goer")
    with pytest.raises(DeclarationNotFound):
        generate_stubs(program, "io.Flusher", f"{GOER}.Goer")
    with pytest.raises(DeclarationNotFound):
        generate_stubs(program, "io.Writer", f"{GOER}.Missing")
    with pytest.raises(NotAnInterface):
        generate_stubs(program, f"{MODELS}.Person", f"{GOER}.Goer")


def test_missing_dependency_is_reported():
    program = build(extra={"example.com/p": {"p.go": """package p

import "example.com/gone"

type I interface {
	gone.Thing
	Do()
}
"""}})
    with pytest.raises(DependencyMissing):
        generate_stubs(program, "example.com/p.I", f"{GOER}.Goer")


def test_embed_through_unloaded_dot_import_is_not_dropped():
    program = build(extra={"example.com/p": {"p.go": """package p

import . "example.com/gone"

type I interface {
	Thing
	Do()
}
"""}})
    with pytest.raises(DependencyMissing):
        generate_stubs(program, "example.com/p.I", f"{GOER}.Goer")


def test_interface_alias_is_followed():
    program = build(extra={"example.com/p": {"p.go": """package p

import "io"

type Closer = io.Closer
"""}})
    impl = generate_stubs(program, "example.com/p.Closer", f"{GOER}.Goer")
    assert impl.methods == _stubs("Goer", "Closer", ("Close", "() error"))


def test_format_failure_is_reported_not_raised(program):
    impl = generate_stubs(program, "io.Closer", f"{GOER}.Goer", gofmt="false")
    assert impl.error is not None
    assert "Close() error" in impl.file_content
    assert "could not format" in to_json_error(impl)


def to_json_error(impl):
    return json.loads(to_json(impl))["error"]


def test_write_back(tmp_path):
    path = tmp_path / "goer.go"
    path.write_text(GOER_SRC)
    sources = {p: dict(files) for p, files in SOURCES.items()}
    sources[GOER] = {str(path): GOER_SRC}
    program = index_sources(sources)

    impl = generate_stubs(program, "io.Closer", f"{GOER}.Goer", write_back=True)
    assert path.read_text() == impl.file_content

    failed = generate_stubs(program, "io.Writer", f"{GOER}.Goer", gofmt="false")
    assert write_implementation(failed) is False
    assert path.read_text() == impl.file_content


def test_json_and_summary(program):
    assert json.loads(to_json(None)) == {}
    impl = generate_stubs(program, f"{SIMPLE}.Interface", f"{GOER}.Goer")
    out = json.loads(to_json(impl))
    assert set(out) == {"file", "fileContent", "methods", "addedImports", "allImports", "error"}
    assert out["file"] == "goer.go"
    assert out["addedImports"] == [{"name": "", "path": MODELS}]
    assert out["error"] is None
    assert impl.stub_count == 1
    assert summary(impl) == f"goer.go: 1 method stub(s)\n  + import \"{MODELS}\""


def test_list_interfaces(program):
    assert list_interfaces(program) == [
        "io.Reader",
        "io.Writer",
        "io.Closer",
        "io.ReadCloser",
        "io.WriteCloser",
        f"{DOTTER}.Interface",
        f"{PARTIER}.Partier",
        f"{PARTIER}.Singer",
        f"{RIOTER}.Rioter",
        f"{SIMPLE}.Interface",
    ]


def test_list_interfaces_unexported():
    program = index_sources({"example.com/p": {"p.go": "package p\n\ntype hidden interface{}\n\ntype Shown interface{}\n"}})
    assert list_interfaces(program) == ["example.com/p.Shown"]
    assert list_interfaces(program, exported_only=False) == ["example.com/p.hidden", "example.com/p.Shown"]
