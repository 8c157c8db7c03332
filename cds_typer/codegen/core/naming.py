"""
Naming utilities for generated declarations.

Handles identifier sanitization, case conversions between the camelCase
spelling of the original tool and Python's snake_case, and the English
noun inflection used to derive singular and plural class names from
model definitions.
"""

import json
import re
from typing import Any, Dict, Optional, Union
from enum import Enum


class NamingCase(Enum):
    """Case styles understood by the case converters."""
    SNAKE_CASE = "snake"      # properties_optional
    CAMEL_CASE = "camel"      # propertiesOptional


ANNOTATION_SINGULAR = "@singular"
ANNOTATION_PLURAL = "@plural"

# appended to a plural that would otherwise equal its singular
DISAMBIGUATION_SUFFIX = "_"

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_LAST_WORD = re.compile(r"\w+$")
_LOCALIZED = re.compile(r"^\{i18n>(.*)\}$")

# (pattern, replacement) pairs, first match wins
_SINGULAR_RULES = [
    (re.compile(r"(species|news)$", re.IGNORECASE), None),
    (re.compile(r"ess$"), None),
    (re.compile(r"ees$"), lambda n: n[:-1]),
    (re.compile(r"[sz]es$"), lambda n: n[:-2]),
    (re.compile(r"[^aeiou]ies$"), lambda n: n[:-3] + "y"),
    (re.compile(r"s$"), lambda n: n[:-1]),
    (re.compile(r"_$"), lambda n: n[:-1]),
]

_PLURAL_RULES = [
    (re.compile(r"(analysis|status|species|news)$", re.IGNORECASE), None),
    (re.compile(r"[^aeiou]y$"), lambda n: n[:-1] + "ies"),
    (re.compile(r"(s|x|z|ch|sh)$"), lambda n: n + "es"),
]

Nameable = Union[str, Dict[str, Any]]


def camel_to_snake(name: str) -> str:
    """Convert camelCase (or PascalCase) to snake_case."""
    name = name.replace("-", "_")
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    return re.sub(r"_+", "_", name.lower()).strip("_")


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    parts = [p for p in name.split("_") if p]
    if not parts:
        return name
    return parts[0].lower() + "".join(p.capitalize() for p in parts[1:])


def convert_case(name: str, target_case: NamingCase) -> str:
    """Convert a name to the requested case style."""
    if target_case == NamingCase.SNAKE_CASE:
        return camel_to_snake(name)
    elif target_case == NamingCase.CAMEL_CASE:
        return snake_to_camel(camel_to_snake(name))
    return name


def is_identifier(name: str) -> bool:
    """Whether a name can be used verbatim as a TypeScript identifier."""
    return bool(_IDENTIFIER.match(name))


def sanitize_property_name(name: str) -> str:
    """
    Make a property name safe for use in a class or object type body.

    Delimited identifiers (containing spaces, dashes, etc.) are quoted.

    Args:
        name: Raw element name from the model

    Returns:
        Name usable as property key
    """
    return name if is_identifier(name) else json.dumps(name)


def last_segment(name: str) -> str:
    """Last dot-separated segment of a fully qualified name."""
    return name.split(".")[-1]


def _name_of(dn: Nameable) -> str:
    return dn if isinstance(dn, str) else dn.get("name", "")


def _strip(name: str) -> str:
    match = _LAST_WORD.search(name)
    return match.group(0) if match else last_segment(name)


def get_singular_annotation(definition: Dict[str, Any]) -> Optional[str]:
    return definition.get(ANNOTATION_SINGULAR)


def get_plural_annotation(definition: Dict[str, Any]) -> Optional[str]:
    return definition.get(ANNOTATION_PLURAL)


def singular4(dn: Nameable, stripped: bool = False) -> str:
    """
    Derive the singular form of a definition's name.

    An ``@singular`` annotation on the definition takes precedence over
    the grammar rules.

    Args:
        dn: Definition (with ``name``) or plain name
        stripped: Only consider the trailing word of the name

    Returns:
        Singular name
    """
    if not isinstance(dn, str):
        annotated = get_singular_annotation(dn)
        if annotated:
            return annotated

    name = _name_of(dn)
    if stripped:
        name = _strip(name)

    for pattern, rule in _SINGULAR_RULES:
        if pattern.search(name):
            return name if rule is None else rule(name)
    return name


def plural4(dn: Nameable, stripped: bool = False) -> str:
    """
    Derive the plural form of a definition's name.

    An ``@plural`` annotation on the definition takes precedence over
    the grammar rules.

    Args:
        dn: Definition (with ``name``) or plain name
        stripped: Only consider the trailing word of the name

    Returns:
        Plural name
    """
    if not isinstance(dn, str):
        annotated = get_plural_annotation(dn)
        if annotated:
            return annotated

    name = _name_of(dn)
    if stripped:
        name = _strip(name)

    for pattern, rule in _PLURAL_RULES:
        if pattern.search(name):
            return name if rule is None else rule(name)
    return name + "s"


def unlocalize(name: str) -> str:
    """Strip an ``{i18n>...}`` localization wrapper from a name."""
    match = _LOCALIZED.match(name)
    return match.group(1) if match else name


def inline_enum_name(entity: str, prop: str) -> str:
    """Synthesized name of an enum declared inline on an element."""
    return f"{entity}_{prop}"
