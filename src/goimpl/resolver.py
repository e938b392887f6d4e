"""
Name resolution over the program model.

A Scope is "this file of this package": the place a type expression was written.
Resolving a name walks the same chain the Go compiler does for type names:
the package block, then dot-imported packages, then the universe.
"""
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from goimpl.indexer import GoIndexer
from goimpl.models.ast_models import UNIVERSE_PATH, Package, Program, SourceFile, TypeDecl
from goimpl.models.type_exprs import (
    Array,
    Chan,
    FuncType,
    Generic,
    Ident,
    InterfaceLit,
    Map,
    MethodElem,
    Paren,
    Pointer,
    Qualified,
    Raw,
    Signature,
    Slice,
    StructLit,
    TypeExpr,
)

log = logging.getLogger(__name__)

# Only the predeclared names that matter for identity: `error` has a method set,
# the aliases must compare equal to what they stand for.
UNIVERSE_SOURCE = """package builtin

type error interface {
	Error() string
}

type any = interface{}

type byte = uint8

type rune = int32
"""

# Predeclared names with no method set; they stand for themselves.
PREDECLARED = frozenset({
    "bool", "string", "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
    "float32", "float64", "complex64", "complex128", "comparable",
})

_MAX_ALIAS_DEPTH = 32


@lru_cache(maxsize=1)
def universe() -> Package:
    indexer = GoIndexer()
    indexer.index_source(UNIVERSE_SOURCE, "<universe>", UNIVERSE_PATH)
    return indexer.packages[UNIVERSE_PATH]


@dataclass(frozen=True)
class Scope:
    program: Program
    package: Package
    file: SourceFile
    type_params: tuple[str, ...] = ()

    @classmethod
    def of(cls, program: Program, package: Package, decl: TypeDecl) -> "Scope":
        """The scope a declaration's own type expression was written in."""
        return cls(program, package, package.file_of(decl), tuple(decl.type_params))

    def qualifier_path(self, qualifier: str) -> Optional[str]:
        """Import path bound to `qualifier` in this file, if any."""
        for spec in self.file.imports:
            if not spec.usable:
                continue
            if (spec.name or self.program.package_name(spec.path)) == qualifier:
                return spec.path
        return None

    def lookup_bare(self, name: str) -> Optional[tuple[Package, TypeDecl]]:
        if name in self.type_params:
            return None
        decl = self.package.decls.get(name)
        if decl is not None:
            return self.package, decl
        for path in self.file.imports.dot_imports():
            dep = self.program.package(path)
            if dep is not None and name in dep.decls:
                return dep, dep.decls[name]
        u = universe()
        if name in u.decls:
            return u, u.decls[name]
        return None

    def lookup(self, expr: TypeExpr) -> Optional[tuple[Package, TypeDecl]]:
        """The named declaration `expr` refers to, without following aliases."""
        if isinstance(expr, Ident):
            return self.lookup_bare(expr.name)
        if isinstance(expr, Qualified):
            path = self.qualifier_path(expr.package)
            dep = self.program.package(path) if path is not None else None
            if dep is not None and expr.name in dep.decls:
                return dep, dep.decls[expr.name]
            return None
        if isinstance(expr, (Generic, Paren)):
            return self.lookup(expr.base if isinstance(expr, Generic) else expr.elem)
        return None

    def resolve(self, expr: TypeExpr) -> Optional[tuple["Scope", TypeDecl]]:
        """
        Like lookup, but follows `type A = B` chains to the declaration that
        actually defines the type. Returns that declaration's own scope.
        """
        scope, current = self, expr
        for _ in range(_MAX_ALIAS_DEPTH):
            found = scope.lookup(current)
            if found is None:
                return None
            pkg, decl = found
            scope = Scope.of(scope.program, pkg, decl)
            if not decl.alias:
                return scope, decl
            current = decl.type
        log.warning(f"alias chain too deep resolving {expr!r}")
        return None

    # -- Identity -------------------------------------------------------------

    def canonical(self, expr: TypeExpr, depth: int = 0) -> str:
        """
        A string that is equal for two type expressions iff they denote the same
        type, wherever each was written: names are keyed by import path and
        aliases are expanded. Parameter names never take part.
        """
        if isinstance(expr, (Ident, Qualified)):
            return self._canonical_name(expr, depth)
        if isinstance(expr, Pointer):
            return "*" + self.canonical(expr.elem, depth)
        if isinstance(expr, Slice):
            return "[]" + self.canonical(expr.elem, depth)
        if isinstance(expr, Array):
            return f"[{_array_length(expr.length)}]" + self.canonical(expr.elem, depth)
        if isinstance(expr, Map):
            return f"map[{self.canonical(expr.key, depth)}]{self.canonical(expr.value, depth)}"
        if isinstance(expr, Chan):
            return f"{expr.dir.value} {self.canonical(expr.elem, depth)}"
        if isinstance(expr, FuncType):
            return "func" + self.canonical_signature(expr.sig, depth)
        if isinstance(expr, InterfaceLit):
            parts = [
                e.name + self.canonical_signature(e.sig, depth) if isinstance(e, MethodElem)
                else self.canonical(e.type, depth)
                for e in expr.elems
            ]
            return "interface{" + "; ".join(parts) + "}"
        if isinstance(expr, StructLit):
            fields = []
            for f in expr.fields:
                t = self.canonical(f.type, depth)
                fields.append(t if f.embedded else f"{','.join(f.names)} {t}")
            return "struct{" + "; ".join(fields) + "}"
        if isinstance(expr, Generic):
            return self.canonical(expr.base, depth) + "[" + \
                ", ".join(self.canonical(a, depth) for a in expr.args) + "]"
        if isinstance(expr, Paren):
            return self.canonical(expr.elem, depth)
        if isinstance(expr, Raw):
            return expr.text
        raise TypeError(f"not a type expression: {expr!r}")

    def canonical_signature(self, sig: Signature, depth: int = 0) -> str:
        params = [self.canonical(t, depth) for t in sig.param_types()]
        if sig.variadic:
            params[-1] = "..." + params[-1]
        out = "(" + ", ".join(params) + ")"
        results = [self.canonical(t, depth) for t in sig.result_types()]
        if results:
            out += " (" + ", ".join(results) + ")"
        return out

    def _canonical_name(self, expr, depth: int) -> str:
        found = self.lookup(expr)
        if found is None:
            if isinstance(expr, Qualified):
                path = self.qualifier_path(expr.package)
                return f"{path or expr.package}.{expr.name}"
            return expr.name
        pkg, decl = found
        if decl.alias and depth < _MAX_ALIAS_DEPTH:
            scope = Scope(self.program, pkg, pkg.file_of(decl), tuple(decl.type_params))
            return scope.canonical(decl.type, depth + 1)
        return f"{pkg.path}.{decl.name}" if pkg.path != UNIVERSE_PATH else decl.name


def _array_length(text: str) -> str:
    """Integer literals compare by value (`0x20` is `32`); constant names stay as written."""
    digits = text.replace("_", "")
    try:
        return str(int(digits, 0))
    except ValueError:
        pass
    if digits.isdigit():
        # Legacy octal, `040`.
        return str(int(digits, 8))
    return text
