"""
The two operations the tool offers: generate stubs for the methods a type is
missing from an interface, and list the interfaces available in a workspace.
"""
import logging
from pathlib import Path
from typing import Optional

from goimpl.config import Settings
from goimpl.emitter import Implementation, StubEmitter
from goimpl.errors import DeclarationNotFound, InvalidReference, NotAnInterface, PackageNotFound
from goimpl.expander import expand
from goimpl.inputs.directory_scanning import PackageLocator, load_program
from goimpl.methodset import ConcreteType, missing_methods
from goimpl.models.ast_models import Package, Program, TypeDecl
from goimpl.models.type_exprs import Ident
from goimpl.resolver import Scope

log = logging.getLogger(__name__)


def split_ref(ref: str) -> tuple[str, str]:
    """`marwan.io/impl/goer.Goer` -> (`marwan.io/impl/goer`, `Goer`)."""
    idx = ref.rfind(".")
    if idx <= 0 or idx == len(ref) - 1 or "/" in ref[idx:]:
        raise InvalidReference(ref)
    return ref[:idx], ref[idx + 1:]


def generate_stubs(program: Program, iface_ref: str, impl_ref: str,
                   write_back: bool = False, gofmt: Optional[str] = None) -> Optional[Implementation]:
    """
    Works out which methods of `iface_ref` the type `impl_ref` lacks and
    returns its file with stubs for them appended. Returns None, leaving the
    file alone, when nothing is missing. Every error except a formatting
    failure is raised before any output is produced.
    """
    iface_path, iface_name = split_ref(iface_ref)
    impl_path, impl_name = split_ref(impl_ref)
    iface_pkg, iface_decl = _declaration(program, _package(program, iface_path), iface_name)
    if not iface_decl.is_interface:
        raise NotAnInterface(iface_name, iface_path)
    impl_pkg, impl_decl = _declaration(program, _package(program, impl_path), impl_name)

    concrete = ConcreteType.build(program, impl_pkg, impl_decl)
    groups, _ = expand(program, iface_pkg, iface_decl)
    missing = missing_methods(concrete, groups)
    if not missing:
        log.info(f"{impl_ref} already implements {iface_ref}")
        return None

    impl = StubEmitter(concrete, iface_name, gofmt).emit(missing)
    if write_back:
        write_implementation(impl)
    return impl


def write_implementation(impl: Implementation) -> bool:
    """Persists the generated file. Content that failed formatting is never written."""
    if impl.error is not None:
        log.error(f"Not writing {impl.file}: {impl.error}")
        return False
    Path(impl.file).write_text(impl.file_content, encoding="utf-8")
    log.info(f"wrote {impl.file}")
    return True


def list_interfaces(program: Program, exported_only: bool = True) -> list[str]:
    """Fully-qualified interface names, packages sorted by path, declarations in source order."""
    names = []
    for path in sorted(program.packages):
        for decl in program.packages[path].decls.values():
            if not decl.is_interface:
                continue
            if exported_only and not decl.name[:1].isupper():
                continue
            names.append(f"{path}.{decl.name}")
    return names


# --- Workspace entry points --------------------------------------------------

def implement(settings: Settings, iface_ref: str, impl_ref: str,
              write_back: bool = False) -> Optional[Implementation]:
    iface_path, _ = split_ref(iface_ref)
    impl_path, _ = split_ref(impl_ref)
    program = load_program(PackageLocator(settings), [iface_path, impl_path])
    return generate_stubs(program, iface_ref, impl_ref, write_back=write_back, gofmt=settings.gofmt)


def list_workspace_interfaces(settings: Settings, pattern: Optional[str] = None) -> list[str]:
    locator = PackageLocator(settings)
    roots = locator.expand_pattern(pattern or locator.default_pattern())
    if not roots:
        raise PackageNotFound(pattern or locator.default_pattern())
    return list_interfaces(load_program(locator, roots))


# --- Lookups -------------------------------------------------------------------

def _package(program: Program, path: str) -> Package:
    pkg = program.package(path)
    if pkg is None:
        raise PackageNotFound(path)
    return pkg


def _declaration(program: Program, pkg: Package, name: str) -> tuple[Package, TypeDecl]:
    decl = pkg.decls.get(name)
    if decl is None:
        raise DeclarationNotFound(name, pkg.path)
    if not decl.alias:
        return pkg, decl
    resolved = Scope.of(program, pkg, decl).resolve(Ident(name))
    if resolved is None:
        raise DeclarationNotFound(name, pkg.path)
    scope, target = resolved
    return scope.package, target
