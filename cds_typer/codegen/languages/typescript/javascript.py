"""
Runtime stubs (``index.js``) accompanying the declaration files.

The stub re-exports the runtime entities under every singular, plural and
original name, and defines the values of enums, operation names and events.
Two renderings exist:

* direct: aliases are read from ``cds.entities(<namespace>)`` when the stub
  is loaded.
* lazy binding (``use_entities_proxy``): every alias is a getter backed by a
  lookup table which resolves the entity on first access, so the stub can
  be loaded before the runtime model is available.
"""

from pathlib import Path
from typing import Any, Dict, List, Tuple

from ...core.templates import TemplateEngine, create_template_engine
from .enum import enum_object_literal
from .file import AUTO_GEN_NOTE, SourceFile

TEMPLATE_DIRECTORY = Path(__file__).parent / "templates"

DIRECT_TEMPLATE = "index.js.j2"
LAZY_TEMPLATE = "index.proxy.js.j2"


def collect_aliases(file: SourceFile) -> List[Dict[str, str]]:
    """
    Distinct export names of a file with the entity each stands for.

    Names are ordered by nesting depth so parents (``Books``) are exported
    before their children (``Books.text``).
    """
    ordered = sorted(file.inflections, key=lambda inflection: inflection[0].count("."))
    aliases: List[Dict[str, str]] = []
    seen: set[str] = set()
    for singular, plural, original in ordered:
        for name in (singular, plural, original):
            if name not in seen:
                seen.add(name)
                aliases.append({"name": name, "original": original})
    return aliases


def _children(aliases: List[Dict[str, str]]) -> Dict[str, List[List[str]]]:
    children: Dict[str, List[List[str]]] = {}
    for alias in aliases:
        if "." in alias["name"]:
            parent, _, child = alias["name"].rpartition(".")
            children.setdefault(parent, []).append([child, alias["original"]])
    return children


def _extras(file: SourceFile) -> List[Tuple[str, List[Tuple[str, str]]]]:
    grouped: Dict[str, List[Tuple[str, str]]] = {}
    for entity, prop, pairs in file.inline_enum_records:
        grouped.setdefault(entity, []).append((prop, enum_object_literal(pairs)))
    return list(grouped.items())


def build_context(file: SourceFile) -> Dict[str, Any]:
    """Template variables describing a file's runtime exports."""
    namespace = file.namespace
    aliases = collect_aliases(file)
    return {
        "banner": AUTO_GEN_NOTE,
        "namespace": namespace,
        "prefix": f"{namespace}." if namespace else "",
        "aliases": aliases,
        "children": _children(aliases),
        "extras": _extras(file),
        "inline_enums": [
            (entity, prop, enum_object_literal(pairs))
            for entity, prop, pairs in file.inline_enum_records
        ],
        "enums": [(name, enum_object_literal(pairs)) for name, pairs in file.enum_records],
        "events": file.event_names,
        "operations": file.operation_names,
        "service": file.service,
    }


class RuntimeStubPrinter:
    """Renders the ``index.js`` of source files."""

    def __init__(self, use_entities_proxy: bool = False, engine: TemplateEngine | None = None):
        self.use_entities_proxy = use_entities_proxy
        self.engine = engine or create_template_engine(TEMPLATE_DIRECTORY)

    @property
    def template_name(self) -> str:
        return LAZY_TEMPLATE if self.use_entities_proxy else DIRECT_TEMPLATE

    def print(self, file: SourceFile) -> str:
        return self.engine.render_template(self.template_name, build_context(file))
