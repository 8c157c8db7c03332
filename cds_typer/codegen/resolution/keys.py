"""
Key propagation.

Foreign key properties of a managed association mirror the keys of its
target. Those keys include

(a) elements the target declares as key,
(b) keys inherited from the aspects the target includes, and
(c) keys of entities the target references through key associations,
    prefixed with the association name (``b_ID`` for ``key b: Association to B``).

Given ``entity A: cuid { key name: String }`` and
``entity B { ref: Association to one A }``, B receives ``ref_ID`` and
``ref_name``.
"""

from typing import Any, Dict, List, Tuple

from ...logging_config import get_logger
from ..core.csn import CSN, definitions, is_association_or_composition

logger = get_logger(__name__)

Element = Dict[str, Any]


class KeyPropagator:
    """Lazily computes and caches the transitive keys of definitions."""

    def __init__(self, csn: CSN):
        self.csn = csn
        self._cache: Dict[str, Dict[str, Element]] = {}
        self._in_progress: set[str] = set()

    def keys_of(self, fq_name: str) -> Dict[str, Element]:
        """
        All keys of a definition, own, inherited and remote.

        Keys that are associations themselves are left out, their foreign
        keys are part of the result instead.

        Args:
            fq_name: Fully qualified name of the definition

        Returns:
            Mapping of key name to key element, in declaration order
        """
        if fq_name in self._cache:
            return self._cache[fq_name]
        if fq_name in self._in_progress:
            logger.debug("Cyclic key reference through '%s', stopping", fq_name)
            return {}

        definition = definitions(self.csn).get(fq_name)
        if definition is None:
            return {}

        self._in_progress.add(fq_name)
        try:
            pairs: List[Tuple[str, Element]] = []
            elements = definition.get("elements") or {}
            pairs.extend((n, e) for n, e in elements.items() if e.get("key") is True)
            for parent in definition.get("includes") or []:
                pairs.extend(self.keys_of(parent).items())
            for name, element in elements.items():
                if not (element.get("key") and is_association_or_composition(element)):
                    continue
                target = element.get("target")
                if not isinstance(target, str):
                    continue
                pairs.extend(
                    (f"{name}_{key_name}", key)
                    for key_name, key in self.keys_of(target).items()
                )
        finally:
            self._in_progress.discard(fq_name)

        keys: Dict[str, Element] = {}
        for name, element in pairs:
            if element.get("target"):
                continue
            keys.setdefault(name, element)
        self._cache[fq_name] = keys
        return keys
