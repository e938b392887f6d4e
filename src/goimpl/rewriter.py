"""
Rewrites the type references of a signature written in one file so that it
compiles when pasted into another package's file.

Three rules run in order at every node; the first one that answers wins and
the node is not descended into further:

  drop_self_qualifier   models.User -> User when the destination *is* models
  reconcile_or_import   models.User -> m.User when the destination imports it as m,
                        otherwise import it
  qualify_bare          User -> models.User when User lives in the interface's
                        package (or arrived through a dot import)
"""
import copy
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from goimpl.models.ast_models import UNIVERSE_PATH, ImportSpec, Package, Program, SourceFile
from goimpl.models.type_exprs import Ident, Qualified, Replace, Signal, Signature, TypeExpr, transform_signature
from goimpl.resolver import Scope

log = logging.getLogger(__name__)


@dataclass
class RewriteContext:
    origin: Scope  # where the signature was written
    dest_package: Package
    dest_file: SourceFile  # working copy, its import table grows as we go
    added: list[ImportSpec] = field(default_factory=list)

    @property
    def program(self) -> Program:
        return self.origin.program

    def local_name(self, path: str) -> Optional[str]:
        """Qualifier the destination file already uses for `path`."""
        spec = self.dest_file.imports.find(path)
        if spec is None:
            return None
        return spec.name or self.program.package_name(path)

    def add_import(self, path: str, alias: Optional[str] = None) -> str:
        """
        Imports `path` into the destination file and returns the qualifier to
        use. A name already bound to another path gets a numeric suffix.
        """
        pkg_name = self.program.package_name(path)
        local = self._free_name(alias or pkg_name, path)
        spec = ImportSpec(local if local != pkg_name else None, path)
        if self.dest_file.imports.add(spec.name, spec.path):
            log.debug(f"adding import {spec.render()} to {self.dest_file.path}")
            self.added.append(spec)
        return local

    def _free_name(self, wanted: str, path: str) -> str:
        taken = {
            spec.name or self.program.package_name(spec.path): spec.path
            for spec in self.dest_file.imports
            if spec.usable
        }
        candidate, n = wanted, 2
        while taken.get(candidate, path) != path:
            candidate = f"{wanted}{n}"
            n += 1
        return candidate


Rule = Callable[[TypeExpr, RewriteContext], Optional[Replace]]


def drop_self_qualifier(node: TypeExpr, ctx: RewriteContext) -> Optional[Replace]:
    if not isinstance(node, Qualified):
        return None
    if ctx.origin.qualifier_path(node.package) == ctx.dest_package.path:
        return Replace(Ident(node.name))
    return None


def reconcile_or_import(node: TypeExpr, ctx: RewriteContext) -> Optional[Replace]:
    if not isinstance(node, Qualified):
        return None
    path = ctx.origin.qualifier_path(node.package)
    if path is None:
        log.debug(f"qualifier {node.package} is not imported in {ctx.origin.file.path}")
        return None
    local = ctx.local_name(path)
    if local is None:
        # Keep a deliberate rename from the interface's file; a spelled-out
        # default name (`models "x/models"`) is not one.
        spec = ctx.origin.file.imports.find(path)
        renamed = spec.name if spec.name and spec.name != ctx.program.package_name(path) else None
        local = ctx.add_import(path, renamed)
    return Replace(Qualified(local, node.name))


def qualify_bare(node: TypeExpr, ctx: RewriteContext) -> Optional[Replace]:
    if not isinstance(node, Ident):
        return None
    found = ctx.origin.lookup_bare(node.name)
    if found is None:
        return None
    home, _ = found
    if home.path in (UNIVERSE_PATH, ctx.dest_package.path):
        return None
    local = ctx.local_name(home.path) or ctx.add_import(home.path)
    return Replace(Qualified(local, node.name))


RULES: tuple[Rule, ...] = (drop_self_qualifier, reconcile_or_import, qualify_bare)


def rewrite_signature(sig: Signature, ctx: RewriteContext, rules: tuple[Rule, ...] = RULES) -> Signature:
    """Returns a rewritten copy of `sig`; the program model is left as it was."""

    def visit(node: TypeExpr):
        for rule in rules:
            outcome = rule(node, ctx)
            if outcome is not None:
                return outcome
        return Signal.CONTINUE

    return transform_signature(copy.deepcopy(sig), visit)
