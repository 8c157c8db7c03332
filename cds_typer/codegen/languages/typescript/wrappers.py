"""Textual wrappers around TypeScript type expressions."""

from typing import List, Optional

# namespace the base definitions are imported as
BASE = "__"


def create_to_one_association(t: str) -> str:
    return f"{BASE}.Association.to<{t}>"


def create_to_many_association(t: str) -> str:
    return f"{BASE}.Association.to.many<{t}>"


def create_composition_of_one(t: str) -> str:
    return f"{BASE}.Composition.of<{t}>"


def create_composition_of_many(t: str) -> str:
    return f"{BASE}.Composition.of.many<{t}>"


def create_array_of(t: str) -> str:
    return f"Array<{t}>"


def create_key(t: str) -> str:
    return f"{BASE}.Key<{t}>"


def create_keys_of(t: str) -> str:
    return f"{BASE}.KeysOf<{t}>"


def create_elements_of(t: str) -> str:
    return f"{BASE}.ElementsOf<{t}>"


def create_promise_of(t: str) -> str:
    return f"Promise<{t}>"


def create_union_of(*types: str) -> str:
    return " | ".join(types)


def create_intersection_of(*types: str) -> str:
    return " & ".join(types)


def deep_require(t: str, lookup: str = "") -> str:
    return f"{BASE}.DeepRequired<{t}>{lookup}"


def docify(doc: Optional[str]) -> List[str]:
    """
    Turn a doc string into the lines of a JSDoc comment.

    Args:
        doc: Documentation attached to a definition, may be None

    Returns:
        Comment lines (empty if there is no documentation)
    """
    if not doc:
        return []
    # a literal end marker would terminate the comment early
    lines = doc.replace("*/", "*\\/").split("\n")
    if len(lines) == 1:
        return [f"/** {lines[0]} */"]
    return ["/**", *(f" * {line}" for line in lines), " */"]
