# --- Type expressions ---------------------------------------------------------
"""
A small, tree-sitter independent model of Go type expressions.

Signatures pulled out of an interface are converted into these nodes once, so
the rewriter can replace references in place and the emitter can print them
back without touching the original source text.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Union


@dataclass
class Ident:
    """A bare type name: `int`, `Problem`, a type parameter."""
    name: str


@dataclass
class Qualified:
    """A package-qualified type name: `models.Person`."""
    package: str  # qualifier text as written in the file
    name: str


@dataclass
class Pointer:
    elem: "TypeExpr"


@dataclass
class Slice:
    elem: "TypeExpr"


@dataclass
class Array:
    length: str  # length expression, kept verbatim
    elem: "TypeExpr"


@dataclass
class Map:
    key: "TypeExpr"
    value: "TypeExpr"


class ChanDir(Enum):
    BOTH = "chan"
    SEND = "chan<-"
    RECV = "<-chan"


@dataclass
class Chan:
    elem: "TypeExpr"
    dir: ChanDir = ChanDir.BOTH


@dataclass
class Param:
    """One parameter group: `a, b int` has two names and one type."""
    names: list[str]
    type: "TypeExpr"
    variadic: bool = False

    @property
    def arity(self) -> int:
        return max(1, len(self.names))


@dataclass
class Signature:
    params: list[Param] = field(default_factory=list)
    results: list[Param] = field(default_factory=list)

    @property
    def variadic(self) -> bool:
        return bool(self.params) and self.params[-1].variadic

    def param_types(self) -> list["TypeExpr"]:
        """Parameter types, one entry per position (`a, b int` counts twice)."""
        return [p.type for p in self.params for _ in range(p.arity)]

    def result_types(self) -> list["TypeExpr"]:
        return [r.type for r in self.results for _ in range(r.arity)]


@dataclass
class FuncType:
    sig: Signature


@dataclass
class MethodElem:
    name: str
    sig: Signature


@dataclass
class EmbeddedElem:
    type: "TypeExpr"


@dataclass
class InterfaceLit:
    elems: list[Union[MethodElem, EmbeddedElem]] = field(default_factory=list)

    @property
    def methods(self) -> list[MethodElem]:
        return [e for e in self.elems if isinstance(e, MethodElem)]

    @property
    def embeds(self) -> list[EmbeddedElem]:
        return [e for e in self.elems if isinstance(e, EmbeddedElem)]


@dataclass
class StructField:
    names: list[str]
    type: "TypeExpr"
    tag: Optional[str] = None

    @property
    def embedded(self) -> bool:
        return not self.names


@dataclass
class StructLit:
    fields: list[StructField] = field(default_factory=list)


@dataclass
class Generic:
    """An instantiated generic type: `Box[int]`, `maps.Map[K, V]`."""
    base: "TypeExpr"
    args: list["TypeExpr"]


@dataclass
class Paren:
    elem: "TypeExpr"


@dataclass
class Raw:
    """Syntax we carry through untouched (union and `~T` constraint terms)."""
    text: str


TypeExpr = Union[
    Ident, Qualified, Pointer, Slice, Array, Map, Chan, FuncType,
    InterfaceLit, StructLit, Generic, Paren, Raw,
]


# --- Visiting ----------------------------------------------------------------

class Signal(Enum):
    CONTINUE = "continue"  # keep the node, descend into its children
    SKIP = "skip"  # keep the node, leave its children alone


@dataclass
class Replace:
    """Swap the visited node for `node`; the replacement is not descended into."""
    node: TypeExpr


Visitor = Callable[[TypeExpr], Union[Signal, Replace]]


def transform(expr: TypeExpr, visit: Visitor) -> TypeExpr:
    """
    Pre-order rewrite. `visit` decides per node; children are rebuilt in place,
    so callers that need the original intact must hand in a copy.
    """
    outcome = visit(expr)
    if isinstance(outcome, Replace):
        return outcome.node
    if outcome is Signal.SKIP:
        return expr
    _map_children(expr, lambda child: transform(child, visit))
    return expr


def transform_signature(sig: Signature, visit: Visitor) -> Signature:
    _map_signature(sig, lambda child: transform(child, visit))
    return sig


def _map_signature(sig: Signature, fn):
    for p in sig.params:
        p.type = fn(p.type)
    for r in sig.results:
        r.type = fn(r.type)


def _map_children(expr: TypeExpr, fn):
    if isinstance(expr, (Pointer, Slice, Array, Chan, Paren)):
        expr.elem = fn(expr.elem)
    elif isinstance(expr, Map):
        expr.key = fn(expr.key)
        expr.value = fn(expr.value)
    elif isinstance(expr, FuncType):
        _map_signature(expr.sig, fn)
    elif isinstance(expr, InterfaceLit):
        for elem in expr.elems:
            if isinstance(elem, MethodElem):
                _map_signature(elem.sig, fn)
            else:
                elem.type = fn(elem.type)
    elif isinstance(expr, StructLit):
        for f in expr.fields:
            f.type = fn(f.type)
    elif isinstance(expr, Generic):
        expr.base = fn(expr.base)
        expr.args = [fn(a) for a in expr.args]


# --- Printing ----------------------------------------------------------------

def render(expr: TypeExpr) -> str:
    """Prints a type expression the way gofmt lays out a single-line type."""
    if isinstance(expr, Ident):
        return expr.name
    if isinstance(expr, Qualified):
        return f"{expr.package}.{expr.name}"
    if isinstance(expr, Pointer):
        return "*" + render(expr.elem)
    if isinstance(expr, Slice):
        return "[]" + render(expr.elem)
    if isinstance(expr, Array):
        return f"[{expr.length}]" + render(expr.elem)
    if isinstance(expr, Map):
        return f"map[{render(expr.key)}]{render(expr.value)}"
    if isinstance(expr, Chan):
        return f"{expr.dir.value} {render(expr.elem)}"
    if isinstance(expr, FuncType):
        return "func" + render_signature(expr.sig)
    if isinstance(expr, InterfaceLit):
        if not expr.elems:
            return "interface{}"
        parts = [
            e.name + render_signature(e.sig) if isinstance(e, MethodElem) else render(e.type)
            for e in expr.elems
        ]
        return "interface{ " + "; ".join(parts) + " }"
    if isinstance(expr, StructLit):
        if not expr.fields:
            return "struct{}"
        return "struct{ " + "; ".join(_render_field(f) for f in expr.fields) + " }"
    if isinstance(expr, Generic):
        return render(expr.base) + "[" + ", ".join(render(a) for a in expr.args) + "]"
    if isinstance(expr, Paren):
        return "(" + render(expr.elem) + ")"
    if isinstance(expr, Raw):
        return expr.text
    raise TypeError(f"not a type expression: {expr!r}")


def _render_field(f: StructField) -> str:
    out = render(f.type) if f.embedded else f"{', '.join(f.names)} {render(f.type)}"
    return f"{out} {f.tag}" if f.tag else out


def render_param(p: Param) -> str:
    t = ("..." if p.variadic else "") + render(p.type)
    return f"{', '.join(p.names)} {t}" if p.names else t


def render_signature(sig: Signature) -> str:
    """`(p []byte) (n int, err error)`; a lone unnamed result is not parenthesized."""
    out = "(" + ", ".join(render_param(p) for p in sig.params) + ")"
    if not sig.results:
        return out
    if len(sig.results) == 1 and not sig.results[0].names:
        return out + " " + render(sig.results[0].type)
    return out + " (" + ", ".join(render_param(r) for r in sig.results) + ")"
