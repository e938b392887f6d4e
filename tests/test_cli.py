import json

import pytest
from typer.testing import CliRunner

from goimpl.main import app

runner = CliRunner()


@pytest.fixture
def workspace(go_workspace, monkeypatch):
    monkeypatch.setenv("GOROOT", str(go_workspace.parent / "goroot"))
    monkeypatch.setenv("GOMODCACHE", str(go_workspace.parent / "modcache"))
    monkeypatch.delenv("GOIMPL_GOFMT", raising=False)
    return go_workspace


def test_implement_prints_the_file(workspace):
    result = runner.invoke(app, [
        "implement", "--iface", "io.Closer", "--impl", "example.com/app/goer.Goer", "--workdir", str(workspace),
    ])
    assert result.exit_code == 0
    assert "// Close implements Closer\nfunc (*Goer) Close() error {" in result.stdout
    # Printing leaves the file alone.
    assert "Close" not in (workspace / "goer" / "goer.go").read_text()


def test_implement_json(workspace):
    result = runner.invoke(app, [
        "implement", "--iface", "io.Writer", "--impl", "example.com/app/goer.Goer",
        "--json", "--workdir", str(workspace),
    ])
    assert result.exit_code == 0
    out = json.loads(result.stdout)
    assert out["file"].endswith("goer.go")
    assert out["addedImports"] == []


def test_implement_write(workspace):
    result = runner.invoke(app, [
        "implement", "--iface", "io.Closer", "--impl", "example.com/app/goer.Goer", "-w",
        "--workdir", str(workspace),
    ])
    assert result.exit_code == 0
    assert "func (*Goer) Close() error {" in (workspace / "goer" / "goer.go").read_text()


def test_implement_reports_errors(workspace):
    result = runner.invoke(app, [
        "implement", "--iface", "io.Flusher", "--impl", "example.com/app/goer.Goer", "--workdir", str(workspace),
    ])
    assert result.exit_code == 1
    assert "could not find type declaration (Flusher) in io" in result.output

    result = runner.invoke(app, ["implement", "--iface", "Closer", "--impl", "goer.Goer", "--workdir", str(workspace)])
    assert result.exit_code == 1
    assert "invalid type reference" in result.output


def test_list(workspace):
    result = runner.invoke(app, ["list", "--path", "io", "--json", "--workdir", str(workspace)])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == ["io.Reader", "io.Writer", "io.Closer", "io.ReadCloser", "io.WriteCloser"]

    result = runner.invoke(app, ["list", "--workdir", str(workspace)])
    assert result.exit_code == 0
    assert result.stdout == ""
