"""
Interface expansion: flattens an interface and everything it embeds into
ordered method groups, each tied to the file its methods were written in.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from goimpl.errors import DeclarationNotFound, DependencyMissing
from goimpl.models.ast_models import Package, Program, TypeDecl
from goimpl.models.type_exprs import Generic, Ident, InterfaceLit, MethodElem, Qualified, TypeExpr, render
from goimpl.resolver import PREDECLARED, Scope

log = logging.getLogger(__name__)


@dataclass
class MethodGroup:
    """Methods claimed by one interface declaration during expansion."""
    interface: TypeDecl
    scope: Scope  # where the method signatures were written
    methods: list[MethodElem]


def expand(program: Program, package: Package, decl: TypeDecl,
           visited: frozenset = frozenset(),
           _stack: tuple = ()) -> tuple[list[MethodGroup], frozenset]:
    """
    Depth-first over embedded interfaces (declaration order), then the
    interface's own methods. A method name is owned by the first group that
    reaches it; `visited` carries the names claimed so far and the updated set
    is returned alongside the groups.
    """
    key = (package.path, decl.name)
    if key in _stack:
        log.warning(f"{package.path}.{decl.name} embeds itself, skipping")
        return [], visited
    _stack = _stack + (key,)

    scope = Scope.of(program, package, decl)
    iface: InterfaceLit = decl.type
    groups: list[MethodGroup] = []
    for embedded in iface.embeds:
        target = _embedded_interface(scope, embedded.type)
        if target is None:
            continue
        sub_scope, sub_decl = target
        sub_groups, visited = expand(program, sub_scope.package, sub_decl, visited, _stack)
        groups.extend(sub_groups)

    methods = []
    for method in iface.methods:
        if method.name in visited:
            log.debug(f"{method.name} of {decl.name} already claimed, skipping")
            continue
        visited = visited | {method.name}
        methods.append(method)
    if methods:
        groups.append(MethodGroup(decl, scope, methods))
    return groups, visited


def _embedded_interface(scope: Scope, expr: TypeExpr) -> Optional[tuple[Scope, TypeDecl]]:
    if isinstance(expr, Generic):
        expr = expr.base
    if isinstance(expr, Qualified):
        path = scope.qualifier_path(expr.package)
        if path is None or scope.program.package(path) is None:
            raise DependencyMissing(render(expr), path or expr.package)
        if expr.name not in scope.program.package(path).decls:
            raise DeclarationNotFound(expr.name, path)
    elif isinstance(expr, Ident):
        if scope.lookup_bare(expr.name) is None:
            if expr.name in PREDECLARED or expr.name in scope.type_params:
                log.debug(f"embedded {expr.name} in {scope.package.path} is not a named type")
                return None
            # The name may live in a dot-imported package that was never loaded.
            for path in scope.file.imports.dot_imports():
                if scope.program.package(path) is None:
                    raise DependencyMissing(expr.name, path)
            raise DeclarationNotFound(expr.name, scope.package.path)
    else:
        return None

    resolved = scope.resolve(expr)
    if resolved is None or not resolved[1].is_interface:
        return None
    return resolved
