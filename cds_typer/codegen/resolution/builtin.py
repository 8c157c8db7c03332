"""
Builtin type table.

Maps the primitive ``cds.*`` types onto TypeScript types.
"""

from types import MappingProxyType
from typing import List, Mapping, Optional, Union

# IEEE754 compatible clients may receive these as strings to avoid precision loss
IEEE754_WIDENED = ("Decimal", "DecimalFloat", "Float", "Double")
WIDENED_NUMBER = "(number | string)"

LARGE_BINARY = (
    "Buffer | string | {value: import(\"stream\").Readable, $mediaContentType: string, "
    "$mediaContentDispositionFilename?: string, $mediaContentDispositionType?: string}"
)

BUILTINS = {
    "UUID": "string",
    "String": "string",
    "Binary": "string",
    "LargeString": "string",
    "LargeBinary": LARGE_BINARY,
    "Vector": "string",
    "Integer": "number",
    "UInt8": "number",
    "Int16": "number",
    "Int32": "number",
    "Int64": "number",
    "Integer64": "number",
    "Decimal": "number",
    "DecimalFloat": "number",
    "Float": "number",
    "Double": "number",
    "Boolean": "boolean",
    # dates are strings at runtime
    "Date": "__.CdsDate",
    "DateTime": "__.CdsDateTime",
    "Time": "__.CdsTime",
    "Timestamp": "__.CdsTimestamp",
    # containers, the resolver wraps their targets
    "Composition": "Array",
    "Association": "Array",
}


class BuiltinResolver:
    """Resolves ``cds.<Name>`` to the corresponding TypeScript type."""

    def __init__(self, ieee754_compatible: bool = False):
        builtins = dict(BUILTINS)
        if ieee754_compatible:
            for name in IEEE754_WIDENED:
                builtins[name] = WIDENED_NUMBER
        self._builtins: Mapping[str, str] = MappingProxyType(builtins)

    @property
    def builtins(self) -> Mapping[str, str]:
        return self._builtins

    @staticmethod
    def _split(t: Union[str, List[str]]) -> Optional[List[str]]:
        if isinstance(t, list):
            return t
        if isinstance(t, str):
            return t.split(".")
        return None

    def looks_builtin(self, t: Union[str, List[str]]) -> bool:
        """Whether ``t`` is shaped like a builtin (``cds.<Name>``), known or not."""
        path = self._split(t)
        return path is not None and len(path) == 2 and path[0] == "cds"

    def resolve_builtin(self, t: Union[str, List[str]]) -> Optional[str]:
        """
        Resolve a builtin type name.

        Args:
            t: Fully qualified type name or its segments

        Returns:
            TypeScript type, or None if ``t`` is not a known builtin
        """
        if not self.looks_builtin(t):
            return None
        return self._builtins.get(self._split(t)[1])
