import logging
from typing import Optional

from tree_sitter import Node, Tree

from goimpl.models.ast_models import (
    ImportDecl,
    ImportSpec,
    ImportTable,
    MethodDecl,
    Package,
    Program,
    SourceFile,
    TypeDecl,
)
from goimpl.models.type_exprs import (
    Array,
    Chan,
    ChanDir,
    EmbeddedElem,
    FuncType,
    Generic,
    Ident,
    InterfaceLit,
    Map,
    MethodElem,
    Param,
    Paren,
    Pointer,
    Qualified,
    Raw,
    Signature,
    Slice,
    StructField,
    StructLit,
    TypeExpr,
)
from goimpl.tree_sitter_helpers import field_or_last, make_parser, named, node_point, node_text

log = logging.getLogger(__name__)


# --- The Indexer -------------------------------------------------------------

class GoIndexer:
    """
    Walks Tree-sitter Go trees to build the program model:
    packages -> files (imports) -> type declarations and receiver methods.
    """

    def __init__(self):
        self.parser = make_parser()

        # In-memory index
        self.packages: dict[str, Package] = {}

    def parse(self, source: bytes) -> Tree:
        return self.parser.parse(source)

    def index_source(self, source, file_path: str, package_path: str,
                     package_dir: Optional[str] = None) -> SourceFile:
        """
        Parses & indexes one Go file as part of the package at `package_path`.
        """
        source_bytes = source.encode("utf-8") if isinstance(source, str) else source
        tree = self.parse(source_bytes)
        root: Node = tree.root_node
        if root.has_error:
            # Tree-sitter recovers; whatever parsed cleanly is still indexed.
            log.warning(f"Syntax errors in {file_path}, indexing what parsed")

        pkg_name, clause_end = self._find_package(source_bytes, root)
        imports, import_decls = self._index_imports(source_bytes, root)
        sf = SourceFile(
            path=file_path,
            package_name=pkg_name,
            source=source_bytes,
            imports=imports,
            package_clause_end=clause_end,
            import_decls=import_decls,
        )

        pkg = self.packages.get(package_path)
        if pkg is None:
            pkg = Package(path=package_path, name=pkg_name, dir=package_dir)
            self.packages[package_path] = pkg
        pkg.files[file_path] = sf

        for child in root.named_children:
            if child.type == "type_declaration":
                for spec in named(child):
                    if spec.type in ("type_spec", "type_alias"):
                        decl = self._type_decl(source_bytes, spec, package_path, file_path)
                        pkg.decls.setdefault(decl.name, decl)
            elif child.type == "method_declaration":
                method = self._method_decl(source_bytes, child, file_path)
                if method is not None:
                    pkg.methods.setdefault(method.receiver, []).append(method)
        return sf

    def program(self) -> Program:
        return Program(packages=dict(self.packages))

    # -- File-level helpers ---------------------------------------------------

    def _find_package(self, source_bytes: bytes, root: Node) -> tuple[str, int]:
        """
        Grabs the package name from the 'package_clause' node, and where it ends.
        """
        for child in root.children:
            if child.type == "package_clause":
                ids = named(child)
                name = node_text(source_bytes, ids[0]) if ids else ""
                return name, child.end_byte
        return "", 0

    def _index_imports(self, source_bytes: bytes, root: Node) -> tuple[ImportTable, list[ImportDecl]]:
        table = ImportTable()
        decls: list[ImportDecl] = []
        for child in root.children:
            if child.type != "import_declaration":
                continue
            close_paren = None
            spec_nodes = []
            for sub in child.children:
                if sub.type == "import_spec":
                    spec_nodes.append(sub)
                elif sub.type == "import_spec_list":
                    spec_nodes.extend(s for s in sub.children if s.type == "import_spec")
                    close_paren = next(
                        (s.start_byte for s in reversed(sub.children) if s.type == ")"), None
                    )
            for spec_node in spec_nodes:
                table.specs.append(self._import_spec(source_bytes, spec_node))
            decls.append(ImportDecl(
                start=child.start_byte,
                end=child.end_byte,
                close_paren=close_paren,
                spec_texts=tuple(node_text(source_bytes, s) for s in spec_nodes),
            ))
        return table, decls

    def _import_spec(self, source_bytes: bytes, node: Node) -> ImportSpec:
        name_node = node.child_by_field_name("name")
        path_node = node.child_by_field_name("path")
        path = node_text(source_bytes, path_node)[1:-1] if path_node else ""
        name = node_text(source_bytes, name_node) if name_node else None
        return ImportSpec(name=name, path=path)

    # -- Declarations ---------------------------------------------------------

    def _type_decl(self, source_bytes: bytes, node: Node, package_path: str, file_path: str) -> TypeDecl:
        name = node_text(source_bytes, node.child_by_field_name("name"))
        type_node = node.child_by_field_name("type")
        type_params = []
        tp_node = node.child_by_field_name("type_parameters")
        if tp_node is not None:
            for tp in named(tp_node):
                type_params.extend(node_text(source_bytes, n) for n in tp.children_by_field_name("name"))
        return TypeDecl(
            name=name,
            package_path=package_path,
            file_path=file_path,
            type=self.type_expr(source_bytes, type_node),
            alias=node.type == "type_alias",
            type_params=type_params,
        )

    def _method_decl(self, source_bytes: bytes, node: Node, file_path: str) -> Optional[MethodDecl]:
        """
        Pulls out a method's name, its receiver base type and its signature.
        """
        receivers = named(node.child_by_field_name("receiver"))
        if not receivers:
            return None
        recv_type = receivers[0].child_by_field_name("type")
        pointer = False
        while recv_type is not None and recv_type.type in ("pointer_type", "parenthesized_type"):
            pointer = pointer or recv_type.type == "pointer_type"
            recv_type = field_or_last(recv_type, "type")
        if recv_type is not None and recv_type.type == "generic_type":
            recv_type = recv_type.child_by_field_name("type")
        if recv_type is None:
            return None
        line, _ = node_point(node)
        name = node_text(source_bytes, node.child_by_field_name("name"))
        log.debug(f"method {name} on {node_text(source_bytes, recv_type)} at {file_path}:{line + 1}")
        return MethodDecl(
            name=name,
            receiver=node_text(source_bytes, recv_type),
            pointer_receiver=pointer,
            sig=self.signature(source_bytes, node),
            file_path=file_path,
        )

    # -- Type expressions -----------------------------------------------------

    def signature(self, source_bytes: bytes, node: Node) -> Signature:
        """
        Reads the 'parameters' and 'result' fields shared by method_elem,
        function_type and method_declaration.
        """
        sig = Signature(params=self._params(source_bytes, node.child_by_field_name("parameters")))
        result = node.child_by_field_name("result")
        if result is not None:
            if result.type == "parameter_list":
                sig.results = self._params(source_bytes, result)
            else:
                sig.results = [Param([], self.type_expr(source_bytes, result))]
        return sig

    def _params(self, source_bytes: bytes, list_node: Optional[Node]) -> list[Param]:
        if list_node is None:
            return []
        params = []
        for p in named(list_node):
            if p.type not in ("parameter_declaration", "variadic_parameter_declaration"):
                continue
            params.append(Param(
                names=[node_text(source_bytes, n) for n in p.children_by_field_name("name")],
                type=self.type_expr(source_bytes, p.child_by_field_name("type")),
                variadic=p.type == "variadic_parameter_declaration",
            ))
        return params

    def type_expr(self, source_bytes: bytes, node: Node) -> TypeExpr:
        t = node.type
        if t in ("type_identifier", "identifier", "package_identifier"):
            return Ident(node_text(source_bytes, node))
        if t == "qualified_type":
            return Qualified(
                package=node_text(source_bytes, node.child_by_field_name("package")),
                name=node_text(source_bytes, node.child_by_field_name("name")),
            )
        if t == "pointer_type":
            return Pointer(self.type_expr(source_bytes, field_or_last(node, "type")))
        if t == "slice_type":
            return Slice(self.type_expr(source_bytes, field_or_last(node, "element")))
        if t in ("array_type", "implicit_length_array_type"):
            length = node.child_by_field_name("length")
            return Array(
                length=node_text(source_bytes, length) if length is not None else "...",
                elem=self.type_expr(source_bytes, field_or_last(node, "element")),
            )
        if t == "map_type":
            return Map(
                key=self.type_expr(source_bytes, node.child_by_field_name("key")),
                value=self.type_expr(source_bytes, node.child_by_field_name("value")),
            )
        if t == "channel_type":
            return Chan(self.type_expr(source_bytes, field_or_last(node, "value")), self._chan_dir(node))
        if t == "function_type":
            return FuncType(self.signature(source_bytes, node))
        if t == "interface_type":
            return self._interface(source_bytes, node)
        if t == "struct_type":
            return self._struct(source_bytes, node)
        if t == "generic_type":
            args = node.child_by_field_name("type_arguments")
            return Generic(
                base=self.type_expr(source_bytes, node.child_by_field_name("type")),
                args=[self.type_expr(source_bytes, a) for a in named(args)] if args else [],
            )
        if t == "parenthesized_type":
            return Paren(self.type_expr(source_bytes, named(node)[0]))
        if t in ("type_elem", "constraint_elem"):
            terms = named(node)
            if len(terms) == 1:
                return self.type_expr(source_bytes, terms[0])
        return Raw(node_text(source_bytes, node))

    def _chan_dir(self, node: Node) -> ChanDir:
        tokens = [c.type for c in node.children if not c.is_named]
        if tokens and tokens[0] == "<-":
            return ChanDir.RECV
        if "<-" in tokens:
            return ChanDir.SEND
        return ChanDir.BOTH

    def _interface(self, source_bytes: bytes, node: Node) -> InterfaceLit:
        elems = []
        children = named(node)
        # Older grammars wrap the elements in a method_spec_list.
        if len(children) == 1 and children[0].type == "method_spec_list":
            children = named(children[0])
        for child in children:
            if child.type in ("method_elem", "method_spec"):
                name = node_text(source_bytes, child.child_by_field_name("name"))
                elems.append(MethodElem(name, self.signature(source_bytes, child)))
            else:
                elems.append(EmbeddedElem(self.type_expr(source_bytes, child)))
        return InterfaceLit(elems)

    def _struct(self, source_bytes: bytes, node: Node) -> StructLit:
        fields = []
        for fdl in named(node):
            for fd in named(fdl):
                if fd.type != "field_declaration":
                    continue
                ftype = self.type_expr(source_bytes, fd.child_by_field_name("type"))
                names = [node_text(source_bytes, n) for n in fd.children_by_field_name("name")]
                if not names and any(c.type == "*" for c in fd.children):
                    ftype = Pointer(ftype)
                tag = fd.child_by_field_name("tag")
                fields.append(StructField(
                    names=names,
                    type=ftype,
                    tag=node_text(source_bytes, tag) if tag is not None else None,
                ))
        return StructLit(fields)


def index_sources(packages: dict[str, dict[str, str]]) -> Program:
    """
    Builds a program straight from source text: {import path: {file name: source}}.
    """
    indexer = GoIndexer()
    for package_path, files in packages.items():
        for file_path, source in files.items():
            indexer.index_source(source, file_path, package_path)
    return indexer.program()
