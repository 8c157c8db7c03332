"""
Type resolution.

Turns the type references found on elements, parameters and definitions
into printable TypeScript type names. Resolution runs in two steps:

1. :meth:`Resolver.resolve_type` classifies a reference into one of the
   :mod:`~cds_typer.codegen.resolution.types` states.
2. :meth:`Resolver.resolve_and_require` turns that state into a type name
   relative to the file being emitted, registering the imports it needs
   and wrapping associations, compositions, arrays and keys.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

from ...logging_config import get_logger
from ..core.csn import (
    NAMESPACE_KINDS,
    OWNER_KEY,
    STRUCTURED_KINDS,
    definitions,
    get_max_cardinality,
    is_association_or_composition,
    is_composition,
    is_entity,
    is_inline_enum_type,
)
from ..core.errors import ResolutionError
from ..core.naming import (
    DISAMBIGUATION_SUFFIX,
    get_plural_annotation,
    get_singular_annotation,
    inline_enum_name,
    last_segment,
    plural4,
    singular4,
    unlocalize,
)
from ..languages.typescript.basedefs import BASE_PATH
from ..languages.typescript.file import Path, SourceFile
from ..languages.typescript.wrappers import (
    create_array_of,
    create_composition_of_many,
    create_composition_of_one,
    create_key,
    create_to_many_association,
    create_to_one_association,
    deep_require,
)
from .builtin import BuiltinResolver
from .entity import EntityRepository, UntangledName
from .types import (
    ArrayTypeInfo,
    BuiltinTypeInfo,
    InlineDeclarationTypeInfo,
    InlineEnumTypeInfo,
    Inflection,
    ResolvedType,
    TypeResolveInfo,
    UserDefinedTypeInfo,
    unhandled_state,
)

if TYPE_CHECKING:
    from ..languages.typescript.visitor import Visitor

logger = get_logger(__name__)

Element = Dict[str, Any]

# type T1: T2; type T2: T3; ... chains longer than this are considered cyclic
MAX_ALIAS_DEPTH = 10

SELF = "$self"


class Resolver:
    """Resolves type references of one compilation."""

    def __init__(self, visitor: "Visitor"):
        self.visitor = visitor
        self.session = visitor.session
        self.csn = self.session.csn
        self.config = self.session.config
        self.builtin_resolver = BuiltinResolver(self.config.ieee754_compatible)
        self.repository = EntityRepository(self)

    @property
    def definitions(self) -> Dict[str, Element]:
        return definitions(self.csn)

    @property
    def inline_resolver(self):
        return self.visitor.inline_declaration_resolver

    # Namespaces

    def resolve_namespace(self, parts: Union[str, List[str]]) -> str:
        """
        Namespace part of a fully qualified name.

        Segments are dropped from the right for as long as they denote a
        definition that is not a namespace of its own (services and contexts
        are). Whatever remains is the namespace.

        Args:
            parts: Fully qualified name or its segments

        Returns:
            Namespace, possibly empty
        """
        parts = parts.split(".") if isinstance(parts, str) else list(parts)
        defs = self.definitions
        while parts:
            qualifier = ".".join(parts)
            definition = defs.get(qualifier)
            if definition is None or definition.get("kind") in NAMESPACE_KINDS:
                return qualifier
            parts.pop()
        return ""

    def trim_namespace(self, p: str) -> str:
        """
        Strip the namespace off a fully qualified name.

        ``a.b.Books`` becomes ``Books``, ``a.b.Books.texts`` becomes
        ``Books.texts`` when both ``Books`` and ``Books.texts`` are entities.
        """
        namespace = self.resolve_namespace(p)
        if not namespace:
            return p
        if namespace == p:
            # not a definition, or a namespace of its own
            return last_segment(p)
        return p[len(namespace) + 1:]

    def find_property_access(self, p: str) -> List[str]:
        """
        Trailing segments of ``p`` that address properties of a definition.

        ``a.b.Books.author.name`` yields ``['author', 'name']``, as used by
        ``typeof``-style references. Names that denote a definition yield
        an empty list.
        """
        defs = self.definitions
        if p in defs:
            return []
        parts = p.split(".")

        def structured(qualifier: str) -> bool:
            definition = defs.get(qualifier)
            return definition is not None and definition.get("kind") in STRUCTURED_KINDS

        def has_property(qualifier: str, prop: str) -> bool:
            return prop in ((defs.get(qualifier) or {}).get("elements") or {})

        qualifier = parts.pop(0)
        while not structured(qualifier) and parts:
            qualifier = f"{qualifier}.{parts.pop(0)}"
        # scoped definitions (Books.texts) are not property accesses
        while parts and structured(f"{qualifier}.{parts[0]}"):
            qualifier = f"{qualifier}.{parts.pop(0)}"

        if parts and structured(qualifier) and has_property(qualifier, parts[0]):
            return parts
        return []

    def untangle(self, fq: str) -> UntangledName:
        """Split a fully qualified name into namespace, scope, name and property access."""
        builtin = self.builtin_resolver.resolve_builtin(fq)
        if builtin is not None:
            return UntangledName(namespace=Path(), name=builtin)

        access = self.find_property_access(fq)
        base = fq[: -(len(".".join(access)) + 1)] if access else fq
        namespace = self.resolve_namespace(base)
        name_path = base[len(namespace) + 1:] if namespace else base
        *scope, name = name_path.split(".")
        return UntangledName(
            namespace=Path.from_namespace(namespace),
            scope=scope,
            name=name,
            property_access=access,
        )

    def is_self_reference(self, target: str) -> bool:
        """Whether ``target`` is the definition currently being printed."""
        contexts = self.visitor.contexts
        return bool(contexts) and contexts[-1] == target

    # Inflection

    def inflect(self, type_info: TypeResolveInfo, namespace: Optional[str] = None) -> Inflection:
        """
        Derive the names a resolved type is printed under.

        Entities are pluralized following their name (or ``@plural``) and
        singularized following the grammar rules (or ``@singular``). Types
        have no grammatical number, so all three forms coincide.

        Args:
            type_info: Resolved type
            namespace: Namespace to strip off the derived names

        Returns:
            Inflection of the type
        """
        if isinstance(type_info, BuiltinTypeInfo):
            name = type_info.plain_name or type_info.type
            return Inflection(name, name, name)
        elif isinstance(type_info, InlineEnumTypeInfo):
            return Inflection(type_info.enum_name, type_info.enum_name, type_info.enum_name)
        elif isinstance(type_info, InlineDeclarationTypeInfo):
            name = self.inline_resolver.stringify(type_info)
            return Inflection(name, name, create_array_of(name))
        elif isinstance(type_info, ArrayTypeInfo):
            inner = self.inflect(type_info.inner, namespace)
            name = create_array_of(inner.singular)
            return Inflection(name, name, name)
        elif not isinstance(type_info, UserDefinedTypeInfo):
            unhandled_state(type_info)

        csn = type_info.csn
        type_name = type_info.plain_name
        if csn.get("kind") == "type":
            return Inflection(type_name, type_name, type_name)

        plural = unlocalize(plural4(csn) if get_plural_annotation(csn) else type_name)
        singular = unlocalize(
            get_singular_annotation(csn) or singular4(csn, stripped=True)
        )
        if namespace:
            prefix = f"{namespace}."
            if singular.startswith(prefix):
                singular = singular[len(prefix):]
            if plural.startswith(prefix):
                plural = plural[len(prefix):]
        # scoped plurals (Books.texts) are printed by their last segment
        if singular == last_segment(plural):
            plural += DISAMBIGUATION_SUFFIX
            self.session.warn(
                f"Derived singular and plural forms for '{singular}' are the same. This usually "
                "happens when entities are named in singular. Consider naming them in plural or "
                "adding '@singular' / '@plural' annotations. The plural form is renamed to "
                f"'{plural}'."
            )
        if not singular or not plural:
            self.session.warn(
                f"Singular ('{singular}') or plural ('{plural}') for '{type_name}' is empty."
            )
        return Inflection(type_name, singular, plural)

    # Resolution

    def chase_type_alias(self, name: str) -> str:
        """
        Follow ``type A: B`` aliases until a non-alias is reached.

        Raises:
            ResolutionError: If the chain is longer than MAX_ALIAS_DEPTH
        """
        current = name
        for _ in range(MAX_ALIAS_DEPTH + 1):
            definition = self.definitions.get(current)
            if (
                definition is None
                or definition.get("kind") != "type"
                or "elements" in definition
                or not isinstance(definition.get("type"), str)
            ):
                return current
            current = definition["type"]
        raise ResolutionError(
            f"Type alias chain starting at '{name}' exceeds {MAX_ALIAS_DEPTH} steps. "
            "Does it contain a cycle?"
        )

    def enum_base_type(self, definition: Element) -> Optional[str]:
        """Primitive an enum definition or element is declared on."""
        type_ = definition.get("type")
        return self.chase_type_alias(type_) if isinstance(type_, str) else None

    def resolve_type_name(self, t: str) -> TypeResolveInfo:
        """
        Resolve a named type reference.

        Lookup order is builtins, model definitions, ``$self``, property
        accesses into definitions, and finally bundled libraries.

        Raises:
            ResolutionError: If the name denotes nothing known
        """
        if not isinstance(t, str):
            raise ResolutionError(f"Unexpected type reference {t!r}")

        builtin = self.builtin_resolver.resolve_builtin(t)
        if builtin is not None:
            return BuiltinTypeInfo(type=builtin)
        if self.builtin_resolver.looks_builtin(t):
            self.session.error(f"Unknown builtin type '{t}'.")

        if t in self.definitions:
            info = self.repository.get_by_fq_or_throw(t)
            return UserDefinedTypeInfo(
                type=t,
                plain_name=info.without_namespace,
                path=info.namespace,
                csn=self.definitions[t],
            )

        if t == SELF:
            return BuiltinTypeInfo(type="this", plain_name="this")

        info = self.repository.get_by_fq(t)
        if info is not None and info.property_access:
            base = t[: -(len(".".join(info.property_access)) + 1)]
            return self.resolve_type_name(base).evolve(is_foreign_key_reference=True)

        for library in self.session.libraries:
            if library.offers(t):
                library.referenced = True
                logger.debug("Resolved '%s' from library %s", t, library.namespace)
                return UserDefinedTypeInfo(
                    type=t,
                    plain_name=last_segment(t),
                    path=library.path,
                    csn={"name": t, "kind": "type"},
                    is_library=True,
                )

        raise ResolutionError(
            f"Can not resolve '{t}' to any builtin, library-, or user defined type."
        )

    def resolve_type(self, element: Element, file: SourceFile) -> TypeResolveInfo:
        """
        Classify the type of an element.

        Args:
            element: Element, parameter or definition carrying a type
            file: File the type is printed into

        Returns:
            Resolution state of the element's type
        """
        is_not_null = bool(
            element.get("key") or element.get("notNull") or get_max_cardinality(element) > 1
        )
        type_ = element.get("type")

        if type_ is None:
            if "items" in element:
                inner = self.resolve_type(element["items"], file)
                return ArrayTypeInfo(inner=inner, is_not_null=True)
            if element.get("elements") is not None:
                info = self.inline_resolver.resolve_inline_declaration(element["elements"], file)
                return info.evolve(is_not_null=is_not_null)
            if "enum" not in element:
                return InlineDeclarationTypeInfo(is_not_null=is_not_null)

        if is_inline_enum_type(element, self.csn) and element.get(OWNER_KEY):
            base = self.enum_base_type(element)
            builtin = self.builtin_resolver.resolve_builtin(base) if base else None
            return InlineEnumTypeInfo(
                enum_name=self.inline_enum_name_of(element),
                type=builtin or "string",
                is_not_null=is_not_null,
            )

        if isinstance(type_, dict) and "ref" in type_:
            ref = type_["ref"]
            if not ref:
                raise ResolutionError(f"Empty type reference on '{element.get('name')}'")
            info = self.resolve_type_name(ref[0])
            return info.evolve(is_foreign_key_reference=True, is_not_null=is_not_null)

        if isinstance(type_, str):
            return self.resolve_type_name(type_).evolve(is_not_null=is_not_null)

        if type_ is None:
            # enum without any type, its values are strings
            return BuiltinTypeInfo(type="string", is_not_null=is_not_null)

        raise ResolutionError(f"Unexpected type reference {type_!r} on '{element.get('name')}'")

    def inline_enum_name_of(self, element: Element) -> str:
        """Name of the enum declared inline on an element, ``<Owner>_<element>``."""
        owner = self.definitions.get(element[OWNER_KEY]) or {"name": element[OWNER_KEY]}
        if is_entity(owner):
            owner_name = singular4(owner, stripped=True)
        else:
            owner_name = last_segment(self.trim_namespace(owner["name"]))
        return inline_enum_name(owner_name, element["name"])

    def resolve_and_require(self, element: Element, file: SourceFile) -> ResolvedType:
        """
        Resolve an element's type and make it usable in ``file``.

        Args:
            element: Element, parameter or definition carrying a type
            file: File the type is printed into

        Returns:
            Printable type name and its resolution state
        """
        type_info = self.resolve_type(element, file)
        return self.require(type_info, element, file)

    def require(self, type_info: TypeResolveInfo, element: Element,
                file: SourceFile) -> ResolvedType:
        """Turn a resolution state into a type name relative to ``file``."""
        inflection: Optional[Inflection] = None

        if isinstance(type_info, ArrayTypeInfo):
            inner = self.require(type_info.inner, element["items"], file)
            inner_info = inner.type_info
            singular = (
                inner.type_name
                if inner_info.is_deep_require or inner_info.inflection is None
                else inner_info.inflection.singular
            )
            type_name = create_array_of(singular)
            type_info = type_info.evolve(inner=inner_info)

        elif isinstance(type_info, BuiltinTypeInfo):
            if is_association_or_composition(element):
                type_name = self._require_target(element, file)
            else:
                type_name = type_info.plain_name or type_info.type

        elif isinstance(type_info, UserDefinedTypeInfo):
            inflection = self._qualified_inflection(type_info, file)
            type_name = inflection.type_name
            members = self._property_access_of(element)
            if type_info.is_foreign_key_reference and members:
                type_name = deep_require(
                    inflection.singular, self.inline_resolver.get_type_lookup(members)
                )
                type_info = type_info.evolve(is_deep_require=True)
                file.add_import(BASE_PATH)

        elif isinstance(type_info, InlineDeclarationTypeInfo):
            for path in type_info.imports:
                file.add_import(path)
            inflection = self.inflect(type_info)
            type_name = inflection.type_name

        elif isinstance(type_info, InlineEnumTypeInfo):
            type_name = type_info.enum_name

        else:
            unhandled_state(type_info)

        if inflection is None:
            inflection = Inflection(type_name, type_name, type_name)

        if element.get("key"):
            type_name = create_key(type_name)
            file.add_import(BASE_PATH)

        return ResolvedType(type_name, type_info.evolve(inflection=inflection))

    def _qualified_inflection(self, type_info: UserDefinedTypeInfo,
                              file: SourceFile) -> Inflection:
        """Inflection of a named type, prefixed with its import alias where needed."""
        path = type_info.path
        info = None if type_info.is_library else self.repository.get_by_fq(type_info.type)
        inflection = (
            info.inflection if info is not None else self.inflect(type_info, path.as_namespace())
        )
        singular, plural, type_name = inflection.singular, inflection.plural, inflection.type_name

        # the singular is derived from the last segment only, put the scope back
        if info is not None and info.scope and "." not in singular:
            singular = ".".join([*info.scope, singular])

        if not path.is_cwd(file.path.as_directory()):
            file.add_import(path)
            prefix = f"{path.as_identifier()}."
            singular, plural, type_name = (prefix + singular, prefix + plural, prefix + type_name)
        return Inflection(type_name, singular, plural)

    def _property_access_of(self, element: Element) -> List[str]:
        type_ = element.get("type")
        if isinstance(type_, dict):
            return list((type_.get("ref") or [])[1:])
        if isinstance(type_, str):
            info = self.repository.get_by_fq(type_)
            return list(info.property_access) if info is not None else []
        return []

    def _target_element(self, element: Element) -> Element:
        target = element.get("target")
        aspect = element.get("targetAspect")
        if isinstance(target, str):
            return {"type": target, "notNull": True}
        if isinstance(target, dict):
            return {**target, "notNull": True}
        if isinstance(aspect, dict):
            return {"elements": aspect.get("elements") or {}, "notNull": True}
        if isinstance(aspect, str):
            return {"type": aspect, "notNull": True}
        raise ResolutionError(
            f"Association or composition '{element.get('name')}' has no target."
        )

    def _require_target(self, element: Element, file: SourceFile) -> str:
        """Wrap the target of an association or composition."""
        target = self._target_element(element)
        resolved = self.resolve_and_require(target, file)
        info = resolved.type_info
        many = get_max_cardinality(element) > 1

        if is_composition(element):
            to_one, to_many = create_composition_of_one, create_composition_of_many
        else:
            to_one, to_many = create_to_one_association, create_to_many_association
        file.add_import(BASE_PATH)

        if info.is_deep_require or info.inflection is None:
            return (to_many if many else to_one)(resolved.type_name)

        singular, plural = info.inflection.singular, info.inflection.plural
        if many:
            # types have no plural of their own
            if plural == singular:
                plural = create_array_of(singular)
            return to_many(plural)
        if isinstance(element.get("target"), str) and self.is_self_reference(element["target"]):
            return to_one("this")
        return to_one(singular)

    def explicit_foreign_keys(self, element: Element) -> List[Tuple[str, Element]]:
        """
        Foreign keys of an association with an explicit ``keys`` list.

        Each ref has one segment (an element of the target) or two segments
        (an association of the target and one of its keys).

        Returns:
            Pairs of (foreign key name, key element)

        Raises:
            ResolutionError: For refs of more than two segments
        """
        target = element.get("target")
        target_definition = self.definitions.get(target) if isinstance(target, str) else None
        if target_definition is None:
            return []
        target_elements = target_definition.get("elements") or {}
        result: List[Tuple[str, Element]] = []

        for key in element.get("keys") or []:
            ref = key.get("ref") or []
            if len(ref) == 1:
                key_element = target_elements.get(ref[0])
                if key_element is None:
                    self.session.error(
                        f"Foreign key '{ref[0]}' of '{element.get('name')}' "
                        f"does not exist on '{target}'."
                    )
                    continue
                result.append((f"{element['name']}_{key.get('as', ref[0])}", key_element))
            elif len(ref) == 2:
                association = target_elements.get(ref[0]) or {}
                remote = association.get("target")
                remote_keys = self.visitor.key_propagator.keys_of(remote) if remote else {}
                key_element = remote_keys.get(ref[1])
                if key_element is None:
                    self.session.error(
                        f"Foreign key '{'.'.join(ref)}' of '{element.get('name')}' "
                        f"does not exist on '{target}'."
                    )
                    continue
                name = key.get("as", "_".join(ref))
                result.append((f"{element['name']}_{name}", key_element))
            else:
                raise ResolutionError(
                    f"Malformed reference path '{'.'.join(ref)}' in keys of "
                    f"'{element.get('name')}'. Expected at most two segments."
                )
        return result
