"""
Emission model for TypeScript output.

A :class:`SourceFile` collects everything emitted for one namespace into
named :class:`Buffer` sections and renders them in a fixed order. Namespaces
are addressed through immutable :class:`Path` objects; hand-written type
modules are represented by :class:`Library`.
"""

import os
import posixpath
import re
from pathlib import Path as FsPath
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ...core.errors import EmissionError
from .enum import EnumPairs, enum_value_union, print_enum
from .wrappers import docify

AUTO_GEN_NOTE = (
    "// This is an automatically generated file. Please do not change its contents manually!"
)

DEFAULT_INDENTATION = "  "


class Buffer:
    """Ordered lines of text with indentation tracking."""

    def __init__(self, indentation: str = DEFAULT_INDENTATION):
        self.parts: List[str] = []
        self.indentation = indentation
        self.current_indent = ""
        self.closed = False

    def indent(self):
        self.current_indent += self.indentation

    def outdent(self):
        """
        Remove one level of indentation.

        Raises:
            EmissionError: If the buffer is not indented
        """
        if not self.current_indent:
            raise EmissionError(
                "Can not outdent buffer further. There are unmatched brackets."
            )
        self.current_indent = self.current_indent[: -len(self.indentation)]

    def add(self, part: str):
        self.parts.append(self.current_indent + part)

    def add_all(self, parts: Iterable[str]):
        for part in parts:
            self.add(part)

    def join(self, glue: str = "\n") -> str:
        return glue.join(self.parts)

    def clear(self):
        self.parts = []

    def __len__(self) -> int:
        return len(self.parts)


class Path:
    """Immutable sequence of namespace segments."""

    def __init__(self, parts: Iterable[str] = ()):
        self._parts: Tuple[str, ...] = tuple(p for p in parts if p)

    @classmethod
    def from_namespace(cls, namespace: str) -> "Path":
        return cls(namespace.split("."))

    @property
    def parts(self) -> List[str]:
        return list(self._parts)

    def get_parent(self) -> "Path":
        return Path(self._parts[:-1])

    def as_namespace(self) -> str:
        return ".".join(self._parts)

    def as_identifier(self) -> str:
        return "_" + "_".join(self._parts)

    def as_directory(
        self, relative: Optional[str] = None, local: bool = True, posix: bool = True
    ) -> str:
        """
        Render the path as a directory.

        Args:
            relative: Directory the result is made relative to
            local: Prefix the result with ``./``
            posix: Always use ``/`` as separator, independent of the host

        Returns:
            Directory string
        """
        module = posixpath if posix else os.path
        absolute = module.join(*self._parts) if self._parts else "."
        if relative:
            result = module.relpath(absolute, relative)
            if result == ".":
                result = ""
        else:
            result = absolute
        prefix = f".{module.sep}" if local else ""
        return prefix + result

    def is_cwd(self, relative: Optional[str] = None) -> bool:
        if not relative:
            return not self._parts
        return self.as_directory(relative) == "./"

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Path) and self._parts == other._parts

    def __hash__(self) -> int:
        return hash(self._parts)

    def __len__(self) -> int:
        return len(self._parts)

    def __repr__(self) -> str:
        return f"Path({self.as_namespace()!r})"


class Library:
    """
    Hand-written type module for a vendor namespace.

    The first line of the file declares the namespace it provides
    (``// cds-namespace: cds.hana``); the classes it exports are the
    type names it offers. A library is only emitted once referenced.
    """

    _NAMESPACE_MARKER = re.compile(r"^//\s*cds-namespace:\s*([\w.]+)")
    _EXPORTED_CLASS = re.compile(r"^export\s+class\s+(\w+)", re.MULTILINE)

    def __init__(self, file: FsPath | str):
        self.file = FsPath(file)
        self.contents = self.file.read_text(encoding="utf-8")
        first_line = self.contents.split("\n", 1)[0]
        match = self._NAMESPACE_MARKER.match(first_line)
        if not match:
            raise EmissionError(f"Library file {self.file} declares no cds-namespace")
        self.namespace = match.group(1)
        self.path = Path.from_namespace(self.namespace)
        self.entities = set(self._EXPORTED_CLASS.findall(self.contents))
        self.referenced = False

    def offers(self, fq_name: str) -> bool:
        """Whether this library provides the type ``fq_name``."""
        prefix = f"{self.namespace}."
        return fq_name.startswith(prefix) and fq_name[len(prefix):] in self.entities

    def to_type_defs(self) -> str:
        return self.contents

    def to_js_exports(self) -> str:
        return AUTO_GEN_NOTE + "\n"


class SourceFile:
    """All declarations emitted for a single namespace."""

    def __init__(self, path: "str | Path", indentation: str = DEFAULT_INDENTATION):
        self.path = path if isinstance(path, Path) else Path.from_namespace(path)
        self.indentation = indentation
        self.imports: Dict[str, Path] = {}
        self.preamble = Buffer(indentation)
        self.types = Buffer(indentation)
        self.enums = Buffer(indentation)
        self.classes = Buffer(indentation)
        self.aspects = Buffer(indentation)
        self.events = Buffer(indentation)
        self.actions = Buffer(indentation)
        self.services = Buffer(indentation)
        self.namespaces: Dict[str, Buffer] = {}

        # bookkeeping for the runtime stub and collision checks
        self.class_names: Dict[str, str] = {}
        self.type_names: Dict[str, str] = {}
        self.inflections: List[Tuple[str, str, str]] = []
        self.enum_records: List[Tuple[str, EnumPairs]] = []
        self.inline_enum_records: List[Tuple[str, str, EnumPairs]] = []
        self.operation_names: List[str] = []
        self.event_names: List[Tuple[str, str]] = []
        self.service: Optional[Tuple[str, str]] = None

    @property
    def namespace(self) -> str:
        return self.path.as_namespace()

    def add_preamble(self, code: str):
        self.preamble.add(code)

    def add_import(self, path: Path):
        """
        Register an import of another namespace, once per directory.

        Imports of the file's own directory are ignored.
        """
        own_dir = self.path.as_directory()
        if path.is_cwd(own_dir):
            return
        directory = path.as_directory(own_dir)
        if directory not in self.imports:
            self.imports[directory] = path

    def get_imports(self) -> Buffer:
        buffer = Buffer(self.indentation)
        for directory, path in self.imports.items():
            buffer.add(f"import * as {path.as_identifier()} from '{directory}';")
        return buffer

    def get_sub_namespace(self, name: str) -> Buffer:
        """
        Buffer of the nested ``export namespace <name>`` block.

        Raises:
            EmissionError: If the namespace was already closed off
        """
        if name not in self.namespaces:
            buffer = Buffer(self.indentation)
            buffer.add(f"export namespace {name} {{")
            buffer.indent()
            self.namespaces[name] = buffer
        buffer = self.namespaces[name]
        if buffer.closed:
            raise EmissionError(
                f"Tried to add content to namespace buffer '{name}' that was already closed."
            )
        return buffer

    def add_enum(self, fq: str, name: str, pairs: EnumPairs, doc: Optional[str] = None):
        self.enums.add_all(docify(doc))
        print_enum(self.enums, name, pairs)
        self.type_names[name] = fq
        self.enum_records.append((name, pairs))

    def add_inline_enum(self, entity: str, prop: str, enum_name: str, pairs: EnumPairs):
        """
        Declare the value type of an enum defined inline on ``entity.prop``.

        The constant object lives on the entity class itself, see the visitor.
        """
        self.enums.add(f"// enum {entity}.{prop}")
        self.enums.add(f"export type {enum_name} = {enum_value_union(pairs)}")
        self.enums.add("")
        self.inline_enum_records.append((entity, prop, pairs))

    def add_type(self, fq: str, name: str, rhs: str, doc: Optional[str] = None):
        self.types.add_all(docify(doc))
        self.types.add(f"export type {name} = {rhs};")
        self.type_names[name] = fq

    def add_class(self, name: str, fq: str):
        self.class_names[name] = fq

    def add_event(self, name: str, fq: str):
        self.event_names.append((name, fq))

    def add_inflection(self, singular: str, plural: str, original: str):
        self.inflections.append((singular, plural, original))

    def add_operation(
        self,
        name: str,
        signature: str,
        kind: str,
        doc: Optional[str] = None,
    ):
        self.actions.add(f"// {kind}")
        self.actions.add_all(docify(doc))
        self.actions.add(f"export declare const {name}: {signature};")
        self.operation_names.append(name)

    def add_service(self, name: str, fq: str, operations: List[str], doc: Optional[str] = None):
        self.services.add_all(docify(doc))
        self.services.add(f"export default class {name} {{")
        self.services.indent()
        for op in operations:
            self.services.add(f"declare static readonly {op}: typeof {op};")
        self.services.outdent()
        self.services.add("}")
        self.service = (name, fq)

    def _close_namespaces(self) -> List[str]:
        rendered = []
        for buffer in self.namespaces.values():
            if not buffer.closed:
                buffer.outdent()
                buffer.add("}")
                buffer.closed = True
            rendered.append(buffer.join())
        return rendered

    def to_type_defs(self) -> str:
        """
        Render the full declaration file.

        Aspects precede classes as classes mix them in.
        """
        sections = [
            AUTO_GEN_NOTE,
            self.get_imports().join(),
            self.preamble.join(),
            self.types.join(),
            self.enums.join(),
            *self._close_namespaces(),
            self.aspects.join(),
            self.classes.join(),
            self.events.join(),
            self.actions.join(),
            self.services.join(),
        ]
        return "\n".join(s for s in sections if s) + "\n"

