# --- Canonical formatting pass ----------------------------------------------
import logging
import shlex
import subprocess
from typing import Optional

from tree_sitter import Node

from goimpl.errors import FormatError
from goimpl.tree_sitter_helpers import make_parser, node_point, node_text

log = logging.getLogger(__name__)


def format_source(content: str, gofmt: Optional[str] = None) -> str:
    """
    Deterministic clean-up of a generated Go file:
      - the file must re-parse without syntax errors,
      - each run of adjacent import lines is sorted by path (duplicates dropped),
      - line endings are LF and the file ends with exactly one newline,
      - optionally, an external formatter command (`gofmt`) gets the last word.
    Raises FormatError carrying the unformatted content on failure.
    """
    text = content.replace("\r\n", "\n")
    source = text.encode("utf-8")
    root = make_parser().parse(source).root_node
    if root.has_error:
        raise FormatError(_describe_error(root), content)

    lines = source.split(b"\n")
    for decl in (c for c in root.children if c.type == "import_declaration"):
        for spec_list in (c for c in decl.children if c.type == "import_spec_list"):
            _sort_import_runs(source, spec_list, lines)
    lines = [line for line in lines if line is not None]
    text = b"\n".join(lines).decode("utf-8").rstrip("\n") + "\n"

    if gofmt:
        text = _run_external(gofmt, text, content)
    return text


def _describe_error(root: Node) -> str:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            line, col = node_point(node)
            return f"syntax error at {line + 1}:{col + 1}"
        stack.extend(reversed(node.children))
    return "syntax error"


def _sort_import_runs(source: bytes, spec_list: Node, lines: list[bytes]):
    specs = [c for c in spec_list.children if c.type == "import_spec"]
    rows = [s.start_point[0] for s in specs]
    if len(set(rows)) != len(rows) or any(s.end_point[0] != s.start_point[0] for s in specs):
        # Several specs share a line; leave the block as written.
        return

    runs: list[list[Node]] = []
    for spec in specs:
        if runs and spec.start_point[0] == runs[-1][-1].start_point[0] + 1:
            runs[-1].append(spec)
        else:
            runs.append([spec])

    for run in runs:
        first_row = run[0].start_point[0]
        keyed = {}
        for spec in run:
            keyed.setdefault(_sort_key(source, spec), lines[spec.start_point[0]])
        ordered = [keyed[k] for k in sorted(keyed)]
        # Rows freed by dropped duplicates are removed once all blocks are done.
        ordered += [None] * (len(run) - len(ordered))
        for offset, line in enumerate(ordered):
            lines[first_row + offset] = line


def _sort_key(source: bytes, spec: Node) -> tuple[str, str]:
    path_node = spec.child_by_field_name("path")
    name_node = spec.child_by_field_name("name")
    path = node_text(source, path_node)[1:-1] if path_node else ""
    name = node_text(source, name_node) if name_node else ""
    return path, name


def _run_external(command: str, text: str, original: str) -> str:
    log.debug(f"running {command} over generated source")
    try:
        proc = subprocess.run(
            shlex.split(command),
            input=text,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        raise FormatError(f"{command}: {e}", original) from e
    if proc.returncode != 0:
        raise FormatError(proc.stderr.strip() or f"{command} exited {proc.returncode}", original)
    return proc.stdout
