"""
Enum emission.

CDS enums may carry booleans or numbers as values, which TypeScript enums
can't express. An enum is therefore emitted as a constant object plus a
type of all its distinct values; since TypeScript types are structural,
the pair behaves like an enum for callers::

    type E: String enum { a = 'A'; b = 'B'; }

becomes::

    export const E = { a: "A", b: "B" } as const;
    export type E = "A" | "B"
"""

import json
from typing import Any, Dict, List, Tuple

EnumPairs = List[Tuple[str, Any]]


def enum_value(key: str, value: Any, base_type: str | None) -> Any:
    """String enums fall back to their key when no value is given."""
    if base_type == "cds.String" and value is None:
        return key
    return value


def csn_to_enum_pairs(enum_csn: Dict[str, Any], base_type: str | None) -> EnumPairs:
    """
    Flatten the ``enum`` dict of a definition into (key, value) pairs.

    Args:
        enum_csn: The ``enum`` property, ``{key: {"val": value}}``
        base_type: Primitive type the enum is declared on

    Returns:
        Pairs in declaration order
    """
    return [
        (key, enum_value(key, (entry or {}).get("val"), base_type))
        for key, entry in enum_csn.items()
    ]


def stringify_enum_value(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def enum_value_union(pairs: EnumPairs) -> str:
    """Union of the distinct values of an enum, in declaration order."""
    values = list(dict.fromkeys(stringify_enum_value(v) for _, v in pairs))
    return " | ".join(values) if values else "never"


def _enum_key(key: str) -> str:
    return key if key.isidentifier() else json.dumps(key)


def enum_object_literal(pairs: EnumPairs) -> str:
    """Single line ``{ key: value, ... }`` object for the enum constant."""
    members = ", ".join(f"{_enum_key(k)}: {stringify_enum_value(v)}" for k, v in pairs)
    return f"{{ {members} }}" if members else "{}"


def print_enum(buffer, name: str, pairs: EnumPairs, export: bool = True) -> None:
    """
    Print an enum (constant object and value type) into a buffer.

    Args:
        buffer: Buffer to write into
        name: Local name of the enum
        pairs: Key/value pairs of the enum
        export: Whether the declarations are exported
    """
    prefix = "export " if export else ""
    buffer.add("// enum")
    buffer.add(f"{prefix}const {name} = {{")
    buffer.indent()
    for key, value in pairs:
        buffer.add(f"{_enum_key(key)}: {stringify_enum_value(value)},")
    buffer.outdent()
    buffer.add("} as const;")
    buffer.add(f"{prefix}type {name} = {enum_value_union(pairs)}")
    buffer.add("")
