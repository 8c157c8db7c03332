"""
Inline declaration strategies.

Elements can be typed with anonymous structures (``x: { a: Integer }``).
How those are printed is configurable:

* flat: every leaf becomes a property of its own, named by joining the path
  with ``_`` (``x_a``).
* structured: the structure is kept as a nested object literal.

Both strategies share the depth bookkeeping: only the outermost element of
a (possibly deeply nested) structure prints into the target buffer, nested
members are only resolved.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from ...logging_config import get_logger
from ..core.errors import ResolutionError
from ..core.naming import sanitize_property_name
from ..languages.typescript.file import Buffer, SourceFile
from ..languages.typescript.wrappers import docify
from .types import InlineDeclarationTypeInfo, ResolvedType

if TYPE_CHECKING:
    from ..languages.typescript.visitor import Visitor

logger = get_logger(__name__)

Element = Dict[str, Any]

MAX_INLINE_DEPTH = 32

DEFAULT_MODIFIERS = ("declare",)


class InlineDeclarationResolver(ABC):
    """Base class of the inline declaration strategies."""

    name: str = ""

    def __init__(self, visitor: "Visitor"):
        self.visitor = visitor
        self.config = visitor.session.config
        self.depth = 0

    @property
    def resolver(self):
        return self.visitor.resolver

    def _enter(self):
        if self.depth >= MAX_INLINE_DEPTH:
            raise ResolutionError(
                f"Inline declarations nested deeper than {MAX_INLINE_DEPTH} levels."
            )
        self.depth += 1

    def _exit(self):
        self.depth -= 1

    def _optional(self, optional: Optional[bool]) -> bool:
        return self.config.properties_optional if optional is None else optional

    def get_property_type_modifier(self, optional: bool) -> str:
        return "?:" if optional else ":"

    def get_property_datatype(self, resolved: ResolvedType) -> str:
        """Type of a property, nullable unless not-null or an array."""
        info = resolved.type_info
        if info.is_not_null or info.is_array:
            return resolved.type_name
        return f"{resolved.type_name} | null"

    def resolve_inline_declaration(self, items: Dict[str, Element],
                                   relative_to: SourceFile) -> InlineDeclarationTypeInfo:
        """
        Resolve the members of an anonymous structure.

        Members are resolved against a throwaway file at the location of
        ``relative_to``; the imports they need are carried on the result.

        Args:
            items: Member elements by name
            relative_to: File the structure is printed into

        Returns:
            Inline declaration state with its resolved members
        """
        scratch = SourceFile(relative_to.path, relative_to.indentation)
        structured: Dict[str, ResolvedType] = {}
        self._enter()
        try:
            for name, element in items.items():
                structured[name] = self.visit_element(name, element, scratch)
        finally:
            self._exit()
        return InlineDeclarationTypeInfo(
            structured_type=structured, imports=tuple(scratch.imports.values())
        )

    def visit_element(
        self,
        name: str,
        element: Element,
        file: SourceFile,
        buffer: Optional[Buffer] = None,
        optional: Optional[bool] = None,
        modifiers: Sequence[str] = DEFAULT_MODIFIERS,
    ) -> ResolvedType:
        """
        Resolve an element and print it as property, unless nested.

        Args:
            name: Property name
            element: Element to resolve
            file: File the property belongs to
            buffer: Buffer to print into, the file's classes by default
            optional: Print as optional property, the configured default if None
            modifiers: Keywords in front of the property

        Returns:
            The resolved type of the element
        """
        self._enter()
        try:
            resolved = self.resolver.resolve_and_require(element, file)
        finally:
            self._exit()
        if self.depth == 0:
            target = buffer if buffer is not None else file.classes
            target.add_all(docify(element.get("doc")))
            self.print_inline_type(
                name, resolved, target, self._optional(optional), modifiers
            )
        return resolved

    @abstractmethod
    def print_inline_type(self, name: str, resolved: ResolvedType, buffer: Buffer,
                          optional: bool, modifiers: Sequence[str] = DEFAULT_MODIFIERS):
        """Print a property declaration of a resolved type."""
        pass

    @abstractmethod
    def get_type_lookup(self, members: List[str]) -> str:
        """Indexed access into a type following a property path."""
        pass

    @abstractmethod
    def stringify(self, info: InlineDeclarationTypeInfo, optional: Optional[bool] = None) -> str:
        """Single line type expression of an anonymous structure."""
        pass


def _modifier_prefix(modifiers: Sequence[str]) -> str:
    return "".join(f"{m} " for m in modifiers)


def _is_structure(resolved: ResolvedType) -> bool:
    info = resolved.type_info
    return isinstance(info, InlineDeclarationTypeInfo) and bool(info.structured_type)


class FlatInlineDeclarationResolver(InlineDeclarationResolver):
    """
    Flattens structures into ``_`` separated properties.

    ``x: { a: { b: Integer } }`` becomes ``x_a_b: number | null``.
    """

    name = "flat"

    def flatten(self, prefix: str, resolved: ResolvedType, optional: bool) -> List[str]:
        if _is_structure(resolved):
            lines: List[str] = []
            for member, sub in resolved.type_info.structured_type.items():
                lines.extend(self.flatten(f"{prefix}_{member}", sub, optional))
            return lines
        modifier = self.get_property_type_modifier(optional)
        return [f"{sanitize_property_name(prefix)}{modifier} {self.get_property_datatype(resolved)}"]

    def print_inline_type(self, name, resolved, buffer, optional, modifiers=DEFAULT_MODIFIERS):
        prefix = _modifier_prefix(modifiers)
        for line in self.flatten(name, resolved, optional):
            buffer.add(f"{prefix}{line};")

    def get_type_lookup(self, members: List[str]) -> str:
        return f"['{'_'.join(members)}']"

    def stringify(self, info, optional=None):
        optional = self._optional(optional)
        lines: List[str] = []
        for member, sub in info.structured_type.items():
            lines.extend(self.flatten(member, sub, optional))
        return f"{{ {'; '.join(lines)} }}" if lines else "{}"


class StructuredInlineDeclarationResolver(InlineDeclarationResolver):
    """
    Keeps structures as nested object literal types.

    ``x: { a: { b: Integer } }`` becomes ``x: { a: { b: number | null } | null } | null``.
    """

    name = "structured"

    def _print_member(self, name: str, resolved: ResolvedType, buffer: Buffer,
                      optional: bool, prefix: str, line_end: str):
        modifier = self.get_property_type_modifier(optional)
        key = sanitize_property_name(name)
        info = resolved.type_info
        if not _is_structure(resolved):
            buffer.add(f"{prefix}{key}{modifier} {self.get_property_datatype(resolved)}{line_end}")
            return
        buffer.add(f"{prefix}{key}{modifier} {{")
        buffer.indent()
        for member, sub in info.structured_type.items():
            self._print_member(member, sub, buffer, optional, "", ",")
        buffer.outdent()
        nullable = "" if info.is_not_null else " | null"
        buffer.add(f"}}{nullable}{line_end}")

    def print_inline_type(self, name, resolved, buffer, optional, modifiers=DEFAULT_MODIFIERS):
        self._print_member(name, resolved, buffer, optional, _modifier_prefix(modifiers), ";")

    def get_type_lookup(self, members: List[str]) -> str:
        return "".join(f"['{m}']" for m in members)

    def stringify(self, info, optional=None):
        modifier = self.get_property_type_modifier(self._optional(optional))
        members = [
            f"{sanitize_property_name(member)}{modifier} {self.get_property_datatype(sub)}"
            for member, sub in info.structured_type.items()
        ]
        return f"{{ {', '.join(members)} }}" if members else "{}"
