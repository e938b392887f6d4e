"""
Stub emission: renders each missing method against the destination type,
splices any new imports into the destination file and appends the stubs.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from goimpl.errors import FormatError
from goimpl.expander import MethodGroup
from goimpl.methodset import ConcreteType
from goimpl.models.ast_models import ImportSpec, SourceFile
from goimpl.models.type_exprs import render_signature
from goimpl.outputs.formatting import format_source
from goimpl.rewriter import RewriteContext, rewrite_signature

log = logging.getLogger(__name__)

STUB_TEMPLATE = """// {name} implements {interface}
func (*{receiver}) {name}{signature} {{
	panic("unimplemented")
}}
"""


@dataclass
class Implementation:
    """What one run produced for the destination file."""
    file: str  # path of the file declaring the concrete type
    file_content: str  # that file plus new imports and the stubs at the bottom
    methods: str  # only the stubs, for callers that place them elsewhere
    added_imports: list[ImportSpec] = field(default_factory=list)
    all_imports: list[ImportSpec] = field(default_factory=list)  # the file's imports after the run
    error: Optional[FormatError] = None  # set when file_content could not be formatted
    stub_count: int = 0


class StubEmitter:
    def __init__(self, concrete: ConcreteType, interface_name: str, gofmt: Optional[str] = None):
        self.concrete = concrete
        self.interface_name = interface_name
        self.gofmt = gofmt
        # Only this copy is touched; the program model stays as loaded.
        self.dest: SourceFile = concrete.file.copy()

    @property
    def receiver(self) -> str:
        decl = self.concrete.decl
        if decl.type_params:
            return f"{decl.name}[{', '.join(decl.type_params)}]"
        return decl.name

    def emit(self, groups: list[MethodGroup]) -> Implementation:
        stubs: list[str] = []
        added: list[ImportSpec] = []
        for group in groups:
            ctx = RewriteContext(origin=group.scope, dest_package=self.concrete.package, dest_file=self.dest)
            for method in group.methods:
                sig = rewrite_signature(method.sig, ctx)
                stubs.append(STUB_TEMPLATE.format(
                    name=method.name,
                    interface=self.interface_name,
                    receiver=self.receiver,
                    signature=render_signature(sig),
                ))
            added.extend(ctx.added)

        methods = "\n".join(stubs)
        content = splice_imports(self.dest, added).rstrip("\n") + "\n\n" + methods
        error = None
        try:
            content = format_source(content, self.gofmt)
        except FormatError as e:
            log.error(f"{self.dest.path}: {e}")
            error = e
        return Implementation(
            file=self.dest.path,
            file_content=content,
            methods=methods,
            stub_count=len(stubs),
            added_imports=added,
            all_imports=list(self.dest.imports),
            error=error,
        )


def splice_imports(file: SourceFile, added: list[ImportSpec]) -> str:
    """
    Inserts `added` into the file text: into the last parenthesized import
    block, else by turning the last single import into a block, else as a new
    declaration right after the package clause.
    """
    src = file.source
    if not added:
        return file.text
    new_lines = "".join(f"\t{spec.render()}\n" for spec in added)

    blocks = [d for d in file.import_decls if d.close_paren is not None]
    if blocks:
        at = blocks[-1].close_paren
        line_start = src.rfind(b"\n", 0, at) + 1
        if src[line_start:at].strip():
            insert = "\n" + new_lines
        else:
            insert, at = new_lines, line_start
        return (src[:at] + insert.encode("utf-8") + src[at:]).decode("utf-8")

    if file.import_decls:
        decl = file.import_decls[-1]
        specs = "".join(f"\t{text}\n" for text in decl.spec_texts) + new_lines
        block = f"import (\n{specs})"
        return (src[:decl.start] + block.encode("utf-8") + src[decl.end:]).decode("utf-8")

    if len(added) == 1:
        block = f"import {added[0].render()}"
    else:
        block = f"import (\n{new_lines})"
    at = file.package_clause_end
    return (src[:at] + b"\n\n" + block.encode("utf-8") + src[at:]).decode("utf-8")
