"""
Draft-enabled entity collection.

Entities annotated with ``@odata.draft.enabled`` inside a service are draft
roots. Draft enablement spreads from a root along its compositions to every
service entity it (transitively) composes. An entity that is reached this way
but is annotated as a draft root itself is a conflict; all conflicts are
reported together after the traversal.
"""

from typing import Dict, List, Optional

from ...logging_config import get_logger
from ..core.csn import definitions, is_composition, is_draft_enabled, is_entity
from ..core.errors import DraftConflictError
from ..core.session import CompilationSession

logger = get_logger(__name__)


class DraftEnabledCollector:
    """Computes the set of draft-enabled entities of a session's model."""

    def __init__(self, session: CompilationSession):
        self.session = session
        self._definitions = definitions(session.csn)
        self._services = [
            name for name, d in self._definitions.items() if d.get("kind") == "service"
        ]

    def service_of(self, fq_name: str) -> Optional[str]:
        """Service a definition belongs to, if any."""
        for service in self._services:
            if fq_name.startswith(f"{service}."):
                return service
        return None

    def roots(self) -> List[str]:
        return [
            name
            for name, definition in self._definitions.items()
            if is_entity(definition)
            and is_draft_enabled(definition)
            and self.service_of(name)
        ]

    def collect(self) -> set[str]:
        """
        Populate ``session.draft_enabled``.

        Returns:
            The draft-enabled entity names

        Raises:
            DraftConflictError: If a root composes another draft root
        """
        roots = self.roots()
        reached: Dict[str, List[str]] = {}
        conflicted: set[str] = set()
        conflicts: List[str] = []

        for root in roots:
            reached[root] = self._traverse(root, conflicted, conflicts)

        enabled: Dict[str, None] = {}
        for root in roots:
            if root in conflicted:
                continue
            for name in reached[root]:
                enabled[name] = None

        self.session.draft_enabled = set(enabled)
        logger.debug("Draft-enabled entities: %s", sorted(enabled))

        if conflicts:
            for conflict in conflicts:
                logger.error(conflict)
            raise DraftConflictError(conflicts)
        return self.session.draft_enabled

    def _traverse(self, root: str, conflicted: set[str], conflicts: List[str]) -> List[str]:
        reached = [root]
        visited = {root}
        stack = [root]
        while stack:
            current = stack.pop()
            elements = (self._definitions.get(current) or {}).get("elements") or {}
            # reversed so the first composition is explored first
            for element_name, element in reversed(list(elements.items())):
                if not is_composition(element):
                    continue
                target = element.get("target")
                if not isinstance(target, str) or target in visited:
                    continue
                visited.add(target)
                target_definition = self._definitions.get(target)
                if target_definition is None:
                    continue
                if not self.service_of(target):
                    self.session.warn(
                        f"Composition target '{target}' of draft root '{root}' "
                        "does not belong to any service and is not draft-enabled"
                    )
                    continue
                if is_draft_enabled(target_definition):
                    conflicted.add(target)
                    conflicts.append(
                        f"Entity '{target}' is composed by draft root '{root}' "
                        f"(via '{current}.{element_name}') but is annotated with "
                        "@odata.draft.enabled itself"
                    )
                    continue
                reached.append(target)
                stack.append(target)
        return reached
