"""
Finds Go packages on disk and loads the dependency closure of a set of import
paths into a Program.

Import paths are located the way the go tool would find them in module mode:
the main module (go.mod), its vendor directory, local `replace` targets, the
module cache for `require`d modules, and finally GOROOT for the standard
library.
"""
import logging
import os
import re
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from goimpl.config import Settings
from goimpl.errors import ImplError
from goimpl.indexer import GoIndexer
from goimpl.models.ast_models import Program

log = logging.getLogger(__name__)

_SKIP_DIRS = {"testdata", "vendor"}
_BUILD_IGNORE = re.compile(r"^//\s*(go:build|\+build)\s.*\bignore\b", re.MULTILINE)


def read_text(path: Path) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


@dataclass
class GoModule:
    path: str
    root: Path
    requires: dict[str, str] = field(default_factory=dict)  # module -> version
    replaces: dict[str, str] = field(default_factory=dict)  # module -> dir, or "module@version"


def find_go_mod(start: Path) -> Optional[Path]:
    current = start.resolve()
    while True:
        candidate = current / "go.mod"
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def parse_go_mod(go_mod: Path) -> GoModule:
    module = GoModule(path="", root=go_mod.parent)
    block = None
    for raw in read_text(go_mod).splitlines():
        line = raw.split("//", 1)[0].strip()
        if not line:
            continue
        if block is not None:
            if line == ")":
                block = None
            else:
                _go_mod_directive(module, block, line)
            continue
        verb, _, rest = line.partition(" ")
        rest = rest.strip()
        if rest == "(":
            block = verb
        elif verb == "module":
            module.path = rest.strip('"')
        else:
            _go_mod_directive(module, verb, rest)
    return module


def _go_mod_directive(module: GoModule, verb: str, rest: str):
    if verb == "require":
        parts = rest.split()
        if len(parts) >= 2:
            module.requires[parts[0]] = parts[1]
    elif verb == "replace":
        old, _, new = rest.partition("=>")
        old_path = old.split()[0] if old.split() else ""
        target = new.split()
        if not old_path or not target:
            return
        if target[0].startswith((".", "/")):
            module.replaces[old_path] = str((module.root / target[0]).resolve())
        elif len(target) >= 2:
            module.replaces[old_path] = f"{target[0]}@{target[1]}"


def escape_module_path(path: str) -> str:
    """Module cache paths spell each capital letter as `!` plus its lower case."""
    return re.sub(r"[A-Z]", lambda m: "!" + m.group(0).lower(), path)


def _longest_prefix(import_path: str, modules: dict[str, str]) -> Optional[str]:
    best = None
    for mod in modules:
        if import_path == mod or import_path.startswith(mod + "/"):
            if best is None or len(mod) > len(best):
                best = mod
    return best


def go_files(directory: Path) -> list[Path]:
    """Non-test .go files, skipping the ones excluded with `//go:build ignore`."""
    files = []
    for p in sorted(directory.glob("*.go")):
        if p.name.endswith("_test.go") or not p.is_file():
            continue
        head = read_text(p).split("\npackage ", 1)[0]
        if _BUILD_IGNORE.search(head):
            continue
        files.append(p)
    return files


class PackageLocator:
    def __init__(self, settings: Settings):
        self.settings = settings
        go_mod = find_go_mod(settings.workdir)
        self.module: Optional[GoModule] = parse_go_mod(go_mod) if go_mod else None

    def package_dir(self, import_path: str) -> Optional[Path]:
        for candidate in self._candidates(import_path):
            if candidate.is_dir() and go_files(candidate):
                return candidate
        return None

    def _candidates(self, import_path: str):
        m = self.module
        if m is not None and m.path:
            if import_path == m.path or import_path.startswith(m.path + "/"):
                yield m.root / import_path[len(m.path):].lstrip("/")
                return
            yield m.root / "vendor" / import_path
            replaced = _longest_prefix(import_path, m.replaces)
            if replaced is not None:
                rest = import_path[len(replaced):].lstrip("/")
                target = m.replaces[replaced]
                if "@" in target and not os.path.isabs(target):
                    yield from self._in_mod_cache(target, rest)
                else:
                    yield Path(target) / rest
            required = _longest_prefix(import_path, m.requires)
            if required is not None:
                rest = import_path[len(required):].lstrip("/")
                yield from self._in_mod_cache(f"{required}@{m.requires[required]}", rest)
        goroot = self.settings.goroot
        if goroot is not None:
            yield goroot / "src" / import_path
            yield goroot / "src" / "vendor" / import_path

    def _in_mod_cache(self, module_at_version: str, rest: str):
        cache = self.settings.gomodcache
        if cache is not None:
            yield cache / escape_module_path(module_at_version) / rest

    def default_pattern(self) -> str:
        if self.module is None or not self.module.path:
            raise ImplError(f"no go.mod found from {self.settings.workdir}, pass a path pattern")
        return self.module.path + "/..."

    def expand_pattern(self, pattern: str) -> list[str]:
        """`a/b/...` becomes every package at or below a/b; anything else is itself."""
        if not pattern.endswith("/..."):
            return [pattern]
        base = pattern[:-len("/...")]
        base_dir = next((c for c in self._candidates(base) if c.is_dir()), None)
        if base_dir is None:
            log.warning(f"Could not locate {base}")
            return []
        found = []
        for dirpath, dirnames, _ in os.walk(base_dir):
            dirnames[:] = sorted(
                d for d in dirnames if d not in _SKIP_DIRS and not d.startswith((".", "_"))
            )
            here = Path(dirpath)
            if go_files(here):
                rel = here.relative_to(base_dir).as_posix()
                found.append(base if rel == "." else f"{base}/{rel}")
        return found


def load_program(locator: PackageLocator, roots: list[str]) -> Program:
    """
    Indexes `roots` and everything they import, transitively. Imports that
    cannot be located are recorded on the program instead of failing here;
    the engine decides whether it needed them.
    """
    indexer = GoIndexer()
    missing: set[str] = set()
    seen: set[str] = set()
    queue = deque(roots)
    while queue:
        path = queue.popleft()
        if path in seen or path == "C":
            continue
        seen.add(path)
        directory = locator.package_dir(path)
        if directory is None:
            log.warning(f"Could not locate package {path}")
            missing.add(path)
            continue
        for go_file in go_files(directory):
            try:
                source = go_file.read_bytes()
            except OSError as e:
                log.warning(f"Failed to read {go_file}: {e}")
                continue
            indexer.index_source(source, str(go_file), path, str(directory))
        pkg = indexer.packages.get(path)
        if pkg is not None:
            queue.extend(p for p in pkg.imported_paths() if p not in seen)
    log.debug(f"loaded {len(indexer.packages)} packages, {len(missing)} missing")
    program = indexer.program()
    program.missing = missing
    return program
