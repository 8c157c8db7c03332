"""
Resolution states of model element types.

A resolved element type is in exactly one of the states modelled by the
subclasses of :class:`TypeResolveInfo`. Records are immutable; the resolver
derives new records with :meth:`TypeResolveInfo.evolve` as resolution
progresses. Consumers dispatch on the concrete class and call
:func:`unhandled_state` for anything they don't know.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Dict, NoReturn, Optional, Tuple

from ..languages.typescript.file import Path


class TypeState(Enum):
    """Discriminator of the resolution states."""

    BUILTIN = "builtin"
    USER_DEFINED = "user_defined"
    INLINE_DECLARATION = "inline_declaration"
    INLINE_ENUM = "inline_enum"
    ARRAY = "array"


@dataclass(frozen=True)
class Inflection:
    """Grammatical forms a type is printed under."""

    type_name: str
    singular: str
    plural: str


@dataclass(frozen=True, kw_only=True)
class TypeResolveInfo:
    """Shared part of all resolution states."""

    is_not_null: bool = False
    is_foreign_key_reference: bool = False
    is_deep_require: bool = False
    inflection: Optional[Inflection] = None

    state: ClassVar[TypeState]

    @property
    def is_builtin(self) -> bool:
        return self.state == TypeState.BUILTIN

    @property
    def is_inline_declaration(self) -> bool:
        return self.state in (TypeState.INLINE_DECLARATION, TypeState.INLINE_ENUM)

    @property
    def is_array(self) -> bool:
        return self.state == TypeState.ARRAY

    def evolve(self, **changes: Any) -> "TypeResolveInfo":
        return replace(self, **changes)


@dataclass(frozen=True, kw_only=True)
class BuiltinTypeInfo(TypeResolveInfo):
    """A primitive; ``plain_name`` is only set for ``$self``."""

    type: str
    plain_name: Optional[str] = None

    state: ClassVar[TypeState] = TypeState.BUILTIN


@dataclass(frozen=True, kw_only=True)
class UserDefinedTypeInfo(TypeResolveInfo):
    """
    A named definition of the model or of a library.

    With ``is_foreign_key_reference`` set, the type is referenced
    through ``typeof`` semantics (a ``ref`` into another definition).
    """

    type: str
    plain_name: str
    path: Path
    csn: Dict[str, Any] = field(default_factory=dict)
    is_library: bool = False

    state: ClassVar[TypeState] = TypeState.USER_DEFINED


@dataclass(frozen=True, kw_only=True)
class InlineDeclarationTypeInfo(TypeResolveInfo):
    """Anonymous structure, members resolved recursively."""

    structured_type: Dict[str, "ResolvedType"] = field(default_factory=dict)
    imports: Tuple[Path, ...] = ()
    type: str = "{}"

    state: ClassVar[TypeState] = TypeState.INLINE_DECLARATION


@dataclass(frozen=True, kw_only=True)
class InlineEnumTypeInfo(TypeResolveInfo):
    """Enum declared directly on an element, under a synthesized name."""

    enum_name: str
    type: str

    state: ClassVar[TypeState] = TypeState.INLINE_ENUM


@dataclass(frozen=True, kw_only=True)
class ArrayTypeInfo(TypeResolveInfo):
    """Multiplicity > 1 around an inner type."""

    inner: TypeResolveInfo
    type: str = "Array"

    state: ClassVar[TypeState] = TypeState.ARRAY


@dataclass(frozen=True)
class ResolvedType:
    """Printable type name together with the record it was derived from."""

    type_name: str
    type_info: TypeResolveInfo


def unhandled_state(info: TypeResolveInfo) -> NoReturn:
    raise TypeError(f"Unhandled type resolution state: {type(info).__name__}")
