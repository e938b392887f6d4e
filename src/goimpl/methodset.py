"""
The destination side: a concrete type's method set, and the comparison that
sorts every interface method into present, mismatched (fatal) or missing.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from goimpl.errors import SignatureMismatch
from goimpl.expander import MethodGroup, expand
from goimpl.models.ast_models import Package, Program, SourceFile, TypeDecl
from goimpl.models.type_exprs import Pointer, Signature, StructLit
from goimpl.resolver import Scope

log = logging.getLogger(__name__)


@dataclass
class MethodEntry:
    name: str
    sig: Signature
    scope: Scope  # where this signature was written
    depth: int = 0  # 0 for declared methods, n for promotion through n embeddings


@dataclass
class ConcreteType:
    """The destination type that will receive the stubs."""
    package: Package
    decl: TypeDecl
    file: SourceFile
    method_set: dict[str, MethodEntry] = field(default_factory=dict)

    @classmethod
    def build(cls, program: Program, package: Package, decl: TypeDecl) -> "ConcreteType":
        return cls(
            package=package,
            decl=decl,
            file=package.file_of(decl),
            method_set=method_set(program, package, decl),
        )

    def lookup(self, name: str) -> Optional[MethodEntry]:
        return self.method_set.get(name)


def method_set(program: Program, package: Package, decl: TypeDecl) -> dict[str, MethodEntry]:
    """
    Methods callable on a value or a pointer of `decl`: both receiver kinds are
    merged. Methods promoted through embedded fields are added breadth-first;
    a shallower method hides deeper ones, and a name found twice at the same
    depth is ambiguous and hides itself too.
    """
    result: dict[str, MethodEntry] = {}
    hidden: set[str] = set()
    # Depth each embedded type was first reached at. A type reached again at
    # the same depth contributes its methods again, which makes them ambiguous.
    seen: dict[tuple[str, str], int] = {}
    level = [(Scope.of(program, package, decl), decl)]
    depth = 0
    while level:
        found: dict[str, list[MethodEntry]] = {}
        next_level = []
        for scope, current in level:
            key = (scope.package.path, current.name)
            if seen.setdefault(key, depth) < depth:
                continue
            for entry in _declared_methods(scope, current, depth):
                found.setdefault(entry.name, []).append(entry)
            next_level.extend(_embedded_fields(scope, current))

        for name, entries in found.items():
            if name in result or name in hidden:
                continue
            if len(entries) > 1:
                log.debug(f"{name} is ambiguous at depth {depth}")
                hidden.add(name)
                continue
            result[name] = entries[0]
        level = next_level
        depth += 1
    return result


def _declared_methods(scope: Scope, decl: TypeDecl, depth: int) -> list[MethodEntry]:
    if decl.is_interface:
        groups, _ = expand(scope.program, scope.package, decl)
        return [
            MethodEntry(m.name, m.sig, g.scope, depth)
            for g in groups
            for m in g.methods
        ]
    pkg = scope.package
    return [
        MethodEntry(m.name, m.sig, Scope(scope.program, pkg, pkg.files[m.file_path]), depth)
        for m in pkg.methods.get(decl.name, [])
    ]


def _embedded_fields(scope: Scope, decl: TypeDecl) -> list[tuple[Scope, TypeDecl]]:
    if not isinstance(decl.type, StructLit):
        return []
    out = []
    for f in decl.type.fields:
        if not f.embedded:
            continue
        target = f.type.elem if isinstance(f.type, Pointer) else f.type
        resolved = scope.resolve(target)
        if resolved is not None:
            out.append(resolved)
    return out


def missing_methods(concrete: ConcreteType, groups: list[MethodGroup]) -> list[MethodGroup]:
    """
    Keeps, per group, only the methods the concrete type lacks. A method that
    exists with a different signature aborts the whole run.
    """
    out = []
    for group in groups:
        missing = []
        for method in group.methods:
            have = concrete.lookup(method.name)
            if have is None:
                missing.append(method)
                continue
            if not equal_signatures(group.scope, method.sig, have.scope, have.sig):
                raise SignatureMismatch(
                    name=method.name,
                    want=group.scope.canonical_signature(method.sig),
                    have=have.scope.canonical_signature(have.sig),
                )
        if missing:
            log.debug(f"{group.interface.name}: missing {', '.join(m.name for m in missing)}")
            out.append(MethodGroup(group.interface, group.scope, missing))
    return out


def equal_signatures(want_scope: Scope, want: Signature, have_scope: Scope, have: Signature) -> bool:
    if want.variadic != have.variadic:
        return False
    return _equal_types(want_scope, want.param_types(), have_scope, have.param_types()) and \
        _equal_types(want_scope, want.result_types(), have_scope, have.result_types())


def _equal_types(want_scope: Scope, want: list, have_scope: Scope, have: list) -> bool:
    if len(want) != len(have):
        return False
    return all(
        want_scope.canonical(w) == have_scope.canonical(h)
        for w, h in zip(want, have)
    )
