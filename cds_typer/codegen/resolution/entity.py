"""
Entity repository.

Decomposes fully qualified names into namespace, scope, name and trailing
property access once, and caches the result together with the derived
inflection for the remainder of a compilation.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..core.csn import definitions, is_entity
from ..core.errors import ResolutionError
from ..languages.typescript.file import Path
from .types import Inflection, UserDefinedTypeInfo

if TYPE_CHECKING:
    from .resolver import Resolver


@dataclass(frozen=True)
class UntangledName:
    """Parts of a fully qualified name."""

    namespace: Path
    scope: List[str] = field(default_factory=list)
    name: str = ""
    property_access: List[str] = field(default_factory=list)


class EntityInfo:
    """Cached facts about one fully qualified name of the model."""

    def __init__(self, fully_qualified_name: str, repository: "EntityRepository",
                 resolver: "Resolver"):
        untangled = resolver.untangle(fully_qualified_name)
        self.fully_qualified_name = fully_qualified_name
        self.namespace: Path = untangled.namespace
        self.scope: List[str] = untangled.scope
        self.entity_name: str = untangled.name
        self.property_access: List[str] = untangled.property_access
        self._repository = repository
        self._resolver = resolver
        self._inflection: Optional[Inflection] = None
        self._parent_resolved = False
        self._parent: Optional["EntityInfo"] = None

    @property
    def csn(self) -> Optional[Dict[str, Any]]:
        return definitions(self._resolver.csn).get(self.fully_qualified_name)

    @property
    def without_namespace(self) -> str:
        """Name relative to the namespace, scope included (``Books.texts``)."""
        return ".".join([*self.scope, self.entity_name])

    @property
    def inflection(self) -> Inflection:
        if self._inflection is None:
            info = UserDefinedTypeInfo(
                type=self.fully_qualified_name,
                plain_name=self.without_namespace,
                path=self.namespace,
                csn=self.csn or {"name": self.fully_qualified_name},
            )
            self._inflection = self._resolver.inflect(info, self.namespace.as_namespace())
        return self._inflection

    @property
    def parent(self) -> Optional["EntityInfo"]:
        """Entity this one is scoped under (``Books`` for ``Books.texts``)."""
        if not self._parent_resolved:
            self._parent_resolved = True
            if self.scope:
                parent_fq = ".".join([*self.namespace.parts, *self.scope])
                if is_entity(definitions(self._resolver.csn).get(parent_fq)):
                    self._parent = self._repository.get_by_fq(parent_fq)
        return self._parent

    def __repr__(self) -> str:
        return f"EntityInfo({self.fully_qualified_name!r})"


class EntityRepository:
    """Memoizing lookup of :class:`EntityInfo` objects by fully qualified name."""

    def __init__(self, resolver: "Resolver"):
        self._resolver = resolver
        self._cache: Dict[str, Optional[EntityInfo]] = {}

    def is_part_of_model(self, fq_name: str) -> bool:
        """
        Whether ``fq_name`` denotes a builtin, a definition, or a property of one.
        """
        resolver = self._resolver
        if resolver.builtin_resolver.resolve_builtin(fq_name) is not None:
            return True
        if fq_name in definitions(resolver.csn):
            return True
        access = resolver.find_property_access(fq_name)
        if not access:
            return False
        base = fq_name[: -(len(".".join(access)) + 1)]
        return base in definitions(resolver.csn)

    def get_by_fq(self, fq_name: str) -> Optional[EntityInfo]:
        """
        Look up (and cache) the info for a name.

        Returns:
            EntityInfo, or None if the name is not part of the model
        """
        if fq_name not in self._cache:
            self._cache[fq_name] = (
                EntityInfo(fq_name, self, self._resolver)
                if self.is_part_of_model(fq_name)
                else None
            )
        return self._cache[fq_name]

    def get_by_fq_or_throw(self, fq_name: str) -> EntityInfo:
        info = self.get_by_fq(fq_name)
        if info is None:
            raise ResolutionError(f"Failed to retrieve entity info for '{fq_name}'")
        return info

    def clear(self):
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
