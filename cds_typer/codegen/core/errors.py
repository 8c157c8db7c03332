"""
Exceptions raised while compiling a model.

Every condition that aborts a compilation derives from :class:`TyperError`.
"""


class TyperError(Exception):
    """Base exception for all compilation errors."""

    pass


class ResolutionError(TyperError):
    """A type reference could not be resolved."""

    pass


class NameCollisionError(TyperError):
    """A derived class name collides with a distinct model definition."""

    pass


class DraftConflictError(TyperError):
    """Draft propagation reached entities that are draft roots of their own."""

    def __init__(self, conflicts: list[str]):
        self.conflicts = list(conflicts)
        super().__init__(
            "Draft propagation failed with "
            f"{len(self.conflicts)} conflict(s):\n" + "\n".join(self.conflicts)
        )


class EmissionError(TyperError):
    """Misuse of the emission model (buffers, namespaces)."""

    pass
