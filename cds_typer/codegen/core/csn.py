"""
Helpers for reading CSN (the compiled, linked data model).

A CSN model is a plain JSON document: ``{"definitions": {fq_name: definition}}``.
These helpers answer the structural questions the resolver and visitor ask
about definitions and elements.
"""

import copy
import math
from typing import Any, Dict, Optional

DRAFT_ANNOTATION = "@odata.draft.enabled"

ASSOCIATION = "cds.Association"
COMPOSITION = "cds.Composition"

# kinds that carry elements and therefore can be the owner of a property
STRUCTURED_KINDS = ("entity", "type", "aspect", "event")
NAMESPACE_KINDS = ("context", "service")
OPERATION_KINDS = ("action", "function")

# element key recording the fully qualified name of the owning definition
OWNER_KEY = "$owner"

CSN = Dict[str, Any]
Definition = Dict[str, Any]


def definitions(csn: CSN) -> Dict[str, Definition]:
    return csn.get("definitions", {})


def is_entity(definition: Optional[Definition]) -> bool:
    return bool(definition) and definition.get("kind") == "entity"


def is_unresolved(definition: Definition) -> bool:
    return definition.get("_unresolved") is True


def is_draft_enabled(definition: Optional[Definition]) -> bool:
    return bool(definition) and definition.get(DRAFT_ANNOTATION) is True


def is_association(element: Dict[str, Any]) -> bool:
    return element.get("type") == ASSOCIATION


def is_composition(element: Dict[str, Any]) -> bool:
    return element.get("type") == COMPOSITION


def is_association_or_composition(element: Dict[str, Any]) -> bool:
    return is_association(element) or is_composition(element)


def is_managed_to_one(element: Dict[str, Any]) -> bool:
    """Managed to-one relations are the ones backed by foreign key elements."""
    return (
        is_association_or_composition(element)
        and isinstance(element.get("target"), str)
        and "on" not in element
        and get_max_cardinality(element) <= 1
    )


def is_inline_enum_type(element: Dict[str, Any], csn: CSN) -> bool:
    """
    An inline enum carries ``enum`` while its type is a primitive.

    Enums whose type is a model definition refer to a named enum type,
    which is declared on its own.
    """
    type_ = element.get("type")
    return (
        "enum" in element
        and isinstance(type_, (str, type(None)))
        and type_ not in definitions(csn)
    )


def get_max_cardinality(element: Dict[str, Any]) -> float:
    """
    Max cardinality of an element.

    Elements without cardinality have a max of 1, ``*`` is unbounded.
    """
    cardinality = (element.get("cardinality") or {}).get("max", 1)
    if cardinality == "*":
        return math.inf
    return int(cardinality)


def link_csn(csn: CSN) -> CSN:
    """
    Return a copy of ``csn`` with names attached to definitions and elements.

    Every definition receives its fully qualified ``name``, every direct
    element of a structured definition its ``name`` and the name of its
    owner (under ``$owner``). The input model is not modified.

    Args:
        csn: Compiled model as loaded from JSON

    Returns:
        Linked copy of the model
    """
    linked = copy.deepcopy(csn)
    linked.setdefault("definitions", {})
    for fq_name, definition in linked["definitions"].items():
        definition.setdefault("name", fq_name)
        if definition.get("kind") not in STRUCTURED_KINDS:
            continue
        for element_name, element in (definition.get("elements") or {}).items():
            element.setdefault("name", element_name)
            element[OWNER_KEY] = fq_name
    return linked
