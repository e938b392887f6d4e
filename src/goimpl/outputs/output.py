import json
from typing import Optional

from goimpl.emitter import Implementation
from goimpl.models.ast_models import ImportSpec


# --- Pretty printing & JSON export ------------------------------------------

def summary(impl: Implementation) -> str:
    """
    Human-friendly account of a run, printed after a write-back.
    """
    lines = [f"{impl.file}: {impl.stub_count} method stub(s)"]
    for spec in impl.added_imports:
        lines.append(f"  + import {spec.render()}")
    if impl.error is not None:
        lines.append(f"  ! {impl.error}")
    return "\n".join(lines)


def _imports(specs: list[ImportSpec]) -> list[dict]:
    return [{"name": spec.name or "", "path": spec.path} for spec in specs]


def to_json(impl: Optional[Implementation]) -> str:
    """
    Serializes a run for editor integrations. An empty object means nothing was missing.
    """
    if impl is None:
        return json.dumps({}, indent=2)
    out = {
        "file": impl.file,
        "fileContent": impl.file_content,
        "methods": impl.methods,
        "addedImports": _imports(impl.added_imports),
        "allImports": _imports(impl.all_imports),
        "error": str(impl.error) if impl.error is not None else None,
    }
    return json.dumps(out, indent=2)


def interfaces_to_json(names: list[str]) -> str:
    return json.dumps(names, indent=2)
