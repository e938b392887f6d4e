"""
What the indexer knows about a set of Go packages: per package a symbol table of
type declarations, the methods declared on each receiver, and per file the
import table plus the byte offsets needed to splice new imports in.
"""
import re
from dataclasses import dataclass, field, replace
from typing import Iterator, Optional

from goimpl.models.type_exprs import InterfaceLit, Signature, TypeExpr

BLANK = "_"
DOT = "."

# Predeclared identifiers live in a package with an empty path; nothing can import it.
UNIVERSE_PATH = ""


@dataclass(frozen=True)
class ImportSpec:
    """One import line. `name` is None for the default binding."""
    name: Optional[str]
    path: str

    @property
    def usable(self) -> bool:
        """Blank and dot imports never provide a qualifier."""
        return self.name not in (BLANK, DOT)

    def render(self) -> str:
        return f'{self.name} "{self.path}"' if self.name else f'"{self.path}"'


@dataclass
class ImportTable:
    specs: list[ImportSpec] = field(default_factory=list)

    def __iter__(self) -> Iterator[ImportSpec]:
        return iter(self.specs)

    def __len__(self) -> int:
        return len(self.specs)

    def find(self, path: str) -> Optional[ImportSpec]:
        """First import of `path` that can be used as a qualifier."""
        for spec in self.specs:
            if spec.path == path and spec.usable:
                return spec
        return None

    def dot_imports(self) -> list[str]:
        return [s.path for s in self.specs if s.name == DOT]

    def add(self, name: Optional[str], path: str) -> bool:
        """Appends `name "path"` unless that exact spec is already present."""
        spec = ImportSpec(name, path)
        if spec in self.specs:
            return False
        self.specs.append(spec)
        return True

    def copy(self) -> "ImportTable":
        return ImportTable(list(self.specs))


@dataclass(frozen=True)
class ImportDecl:
    """Byte span of one `import` declaration in its file."""
    start: int
    end: int
    close_paren: Optional[int]  # offset of `)` for the parenthesized form
    spec_texts: tuple[str, ...]


@dataclass
class TypeDecl:
    name: str
    package_path: str
    file_path: str
    type: TypeExpr
    alias: bool = False  # `type A = B`
    type_params: list[str] = field(default_factory=list)

    @property
    def is_interface(self) -> bool:
        return isinstance(self.type, InterfaceLit)


@dataclass
class MethodDecl:
    name: str
    receiver: str  # receiver base type name, without `*` or type arguments
    pointer_receiver: bool
    sig: Signature
    file_path: str


@dataclass
class SourceFile:
    path: str
    package_name: str
    source: bytes
    imports: ImportTable
    package_clause_end: int
    import_decls: list[ImportDecl] = field(default_factory=list)

    @property
    def text(self) -> str:
        return self.source.decode("utf-8", errors="replace")

    def copy(self) -> "SourceFile":
        """A working copy whose import table can be extended independently."""
        return replace(self, imports=self.imports.copy())


@dataclass
class Package:
    path: str
    name: str
    dir: Optional[str] = None
    files: dict[str, SourceFile] = field(default_factory=dict)
    decls: dict[str, TypeDecl] = field(default_factory=dict)  # first declaration wins
    methods: dict[str, list[MethodDecl]] = field(default_factory=dict)  # receiver -> methods

    def file_of(self, decl: TypeDecl) -> SourceFile:
        return self.files[decl.file_path]

    def imported_paths(self) -> list[str]:
        seen: dict[str, None] = {}
        for f in self.files.values():
            for spec in f.imports:
                seen.setdefault(spec.path)
        return list(seen)


@dataclass
class Program:
    """The loaded dependency closure. Read-only once built."""
    packages: dict[str, Package] = field(default_factory=dict)
    missing: set[str] = field(default_factory=set)  # imports that could not be located

    def package(self, path: str) -> Optional[Package]:
        return self.packages.get(path)

    def package_name(self, path: str) -> str:
        pkg = self.packages.get(path)
        return pkg.name if pkg else assumed_package_name(path)


_MAJOR_VERSION = re.compile(r"^v[0-9]+$")
_NOT_IDENT = re.compile(r"[^A-Za-z0-9_].*$")


def assumed_package_name(path: str) -> str:
    """
    Guesses a package name from its import path the way goimports does:
    drop a `/vN` suffix and a `go-` prefix, then cut at the first character
    that cannot appear in an identifier.
    """
    parts = path.split("/")
    name = parts[-1]
    if _MAJOR_VERSION.match(name) and len(parts) > 1:
        name = parts[-2]
    if name.startswith("go-"):
        name = name[3:]
    return _NOT_IDENT.sub("", name) or name
