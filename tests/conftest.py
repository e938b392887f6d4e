import pytest

from go_fixtures import GOER_SRC, IO_SRC, MODELS_SRC, build


@pytest.fixture
def program():
    return build()


@pytest.fixture
def go_workspace(tmp_path):
    """
    A module on disk plus a fake GOROOT beside it holding an `io` package, so
    the loader can be exercised without a Go toolchain. Returns the module root.
    """
    root = tmp_path / "app"
    (root / "goer").mkdir(parents=True)
    (root / "go.mod").write_text("module example.com/app\n\ngo 1.21\n")
    (root / "goer" / "goer.go").write_text(GOER_SRC)
    (root / "models").mkdir()
    (root / "models" / "models.go").write_text(MODELS_SRC)
    (root / "models" / "models_test.go").write_text("package models\n\ntype Ignored interface{}\n")
    goroot = tmp_path / "goroot"
    (goroot / "src" / "io").mkdir(parents=True)
    (goroot / "src" / "io" / "io.go").write_text(IO_SRC)
    return root.resolve()
