# --- Tree-sitter plumbing ----------------------------------------------------
from functools import lru_cache

from tree_sitter import Language, Node, Parser


@lru_cache(maxsize=1)
def load_go_language() -> Language:
    """
    Loads the Tree-sitter Go grammar for the Python bindings.
    The grammar ships as its own wheel (tree-sitter-go), so there is no build step.
    """
    try:
        import tree_sitter_go
    except ImportError as exc:
        raise RuntimeError(
            "Could not load the Go grammar.\n"
            "- Install `tree-sitter-go` (pip install tree-sitter-go)."
        ) from exc
    return Language(tree_sitter_go.language())


def make_parser() -> Parser:
    return Parser(load_go_language())


def node_text(source_bytes: bytes, node) -> str:
    """
    Converts a node's [start_byte:end_byte] into the corresponding string.
    Tree-sitter nodes only store byte offsets, so we slice the original source.
    """
    return source_bytes[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def node_point(node) -> tuple[int, int]:
    """
    Returns the (line, column) of a node's start in 0-based coordinates.
    """
    return (node.start_point[0], node.start_point[1])


def named(node: Node) -> list[Node]:
    """Named children without comments, which tree-sitter interleaves anywhere."""
    return [c for c in node.named_children if c.type != "comment"]


def field_or_last(node: Node, field: str):
    """
    Child under `field`, falling back to the last named child. Older Go grammars
    leave some element types (e.g. pointer targets) without a field name.
    """
    child = node.child_by_field_name(field)
    if child is not None:
        return child
    children = named(node)
    return children[-1] if children else None
