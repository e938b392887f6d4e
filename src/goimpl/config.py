import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)


@dataclass
class Settings:
    workdir: Path
    goroot: Optional[Path] = None
    gomodcache: Optional[Path] = None
    gofmt: Optional[str] = None  # extra formatter command run over generated files

    @classmethod
    def from_env(cls, workdir: Optional[Path] = None) -> "Settings":
        return cls(
            workdir=Path(workdir or Path.cwd()).resolve(),
            goroot=_goroot(),
            gomodcache=_gomodcache(),
            gofmt=os.environ.get("GOIMPL_GOFMT") or None,
        )


def _goroot() -> Optional[Path]:
    env = os.environ.get("GOROOT")
    if env:
        return Path(env)
    go = shutil.which("go")
    if go is None:
        return None
    try:
        out = subprocess.run([go, "env", "GOROOT"], capture_output=True, text=True, check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        log.warning(f"Could not ask the go tool for GOROOT: {e}")
        return None
    return Path(out.stdout.strip()) if out.stdout.strip() else None


def _gomodcache() -> Path:
    env = os.environ.get("GOMODCACHE")
    if env:
        return Path(env)
    gopath = os.environ.get("GOPATH")
    if gopath:
        # GOPATH is a list; the module cache lives under the first entry.
        return Path(gopath.split(os.pathsep)[0]) / "pkg" / "mod"
    return Path.home() / "go" / "pkg" / "mod"
