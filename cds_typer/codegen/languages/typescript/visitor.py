"""
Model traversal.

The :class:`Visitor` walks all definitions of a model once and prints them
into one :class:`SourceFile` per namespace. Entities, aspects and structured
types become *aspect functions* (mixins) plus the classes built from them:

.. code-block:: typescript

    export function _BookAspect<TBase extends new (...args: any[]) => object>(Base: TBase) {
      return class Book extends Base {
        declare ID?: string | null;
        ...
      };
    }
    export class Book extends _BookAspect(_cuidAspect(__.Entity)) {}
    export class Books extends Array<Book> {
      $count?: number;
    }
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...core.csn import (
    OPERATION_KINDS,
    definitions,
    is_entity,
    is_managed_to_one,
    is_unresolved,
)
from ...core.errors import NameCollisionError
from ...core.naming import last_segment, sanitize_property_name
from ...core.session import CompilationSession
from ...core.templates import TemplateEngine, create_template_engine
from ...registry import get_inline_strategy
from ...resolution.entity import EntityInfo
from ...resolution.keys import KeyPropagator
from ...resolution.resolver import SELF, Resolver
from ...resolution.types import InlineEnumTypeInfo, ResolvedType
from ....logging_config import get_logger
from .basedefs import BASE_PATH, create_base_definitions
from .enum import csn_to_enum_pairs, enum_object_literal
from .file import Buffer, SourceFile
from .javascript import TEMPLATE_DIRECTORY
from .wrappers import (
    BASE,
    create_elements_of,
    create_keys_of,
    create_promise_of,
    create_union_of,
    docify,
)

logger = get_logger(__name__)

Element = Dict[str, Any]

FOREIGN_KEY_ANNOTATION = "@odata.foreignKey4"
RFC_ANNOTATION_PREFIX = "@RFC."

ASPECT_SIGNATURE = "<TBase extends new (...args: any[]) => object>(Base: TBase)"


def aspect_name(name: str) -> str:
    """Name of the mixin function of a class."""
    return f"_{name}Aspect"


def _is_binding_parameter(param: Element) -> bool:
    return param.get("type") == SELF or (param.get("items") or {}).get("type") == SELF


def _is_rfc(operation: Element) -> bool:
    """RFC-style operations categorize their parameters with ``@RFC.*`` annotations."""
    return any(
        key.startswith(RFC_ANNOTATION_PREFIX)
        for param in (operation.get("params") or {}).values()
        for key in param
    )


class Visitor:
    """Prints all definitions of a session's model into source files."""

    def __init__(self, session: CompilationSession, engine: Optional[TemplateEngine] = None):
        self.session = session
        self.csn = session.csn
        self.config = session.config
        self.engine = engine or create_template_engine(TEMPLATE_DIRECTORY)

        # definitions currently being aspectified, innermost last
        self.contexts: List[str] = []

        self.resolver = Resolver(self)
        self.inline_declaration_resolver = get_inline_strategy(self.config.inline_declarations)(self)
        self.key_propagator = KeyPropagator(self.csn)

        self.base_definitions = create_base_definitions(self.engine, self.config.indentation)
        self.files: Dict[str, SourceFile] = {}

    @property
    def repository(self):
        return self.resolver.repository

    def get_namespace_file(self, namespace: str) -> SourceFile:
        """File of a namespace, created on first use."""
        if namespace not in self.files:
            self.files[namespace] = SourceFile(namespace, self.config.indentation)
        return self.files[namespace]

    def get_files(self) -> List[SourceFile]:
        """Base definitions first, then namespaces in the order they were encountered."""
        return [self.base_definitions, *self.files.values()]

    def visit_definitions(self):
        for name, definition in definitions(self.csn).items():
            if is_unresolved(definition):
                self.session.error(f"Skipping unresolved definition '{name}'.")
                continue
            self.visit_definition(name, definition)

    def visit_definition(self, name: str, definition: Element):
        """Dispatch a single definition by its kind."""
        kind = definition.get("kind")
        if kind == "entity":
            self._print_entity(name, definition)
        elif kind == "type":
            if "elements" in definition and "type" not in definition:
                self._print_structured_type(name, definition)
            else:
                self._print_type(name, definition)
        elif kind == "aspect":
            self._print_aspect(name, definition)
        elif kind in OPERATION_KINDS:
            self._print_operation(name, definition)
        elif kind == "event":
            self._print_event(name, definition)
        elif kind == "service":
            self._print_service(name, definition)
        elif kind == "context":
            logger.debug("Context '%s' only opens a namespace", name)
        else:
            self.session.error(f"Unhandled kind '{kind}' of definition '{name}'.")

    def visit_element(self, name: str, element: Element, file: SourceFile,
                      buffer: Optional[Buffer] = None, optional: Optional[bool] = None,
                      modifiers: Sequence[str] = ("declare",)) -> ResolvedType:
        return self.inline_declaration_resolver.visit_element(
            name, element, file, buffer, optional=optional, modifiers=modifiers
        )

    # Naming

    def class_name_of(self, info: EntityInfo) -> str:
        """Local class name of a definition: the singular for entities, the name otherwise."""
        if is_entity(info.csn):
            return info.inflection.singular
        return info.entity_name

    def _class_reference(self, info: EntityInfo, file: SourceFile) -> Tuple[str, str]:
        """Mixin function and class of a definition as seen from ``file``."""
        local = self.class_name_of(info)
        scoped = ".".join([*info.scope, local])
        if info.namespace.is_cwd(file.path.as_directory()):
            prefix = ""
        else:
            file.add_import(info.namespace)
            prefix = f"{info.namespace.as_identifier()}."
        return f"{prefix}{aspect_name(local)}", f"{prefix}{scoped}"

    def _check_collisions(self, name: str, info: EntityInfo, file: SourceFile,
                          singular: str, plural: str):
        defs = definitions(self.csn)
        candidate = ".".join([*info.namespace.parts, *info.scope, singular])
        if candidate != name and candidate in defs:
            raise NameCollisionError(
                f"Derived singular '{singular}' for your entity '{name}' already exists as "
                f"'{candidate}'. Use '@singular' / '@plural' annotations to resolve this collision."
            )
        scoped_singular = ".".join([*info.scope, singular])
        for class_name in (scoped_singular, plural):
            owner = file.class_names.get(class_name)
            if owner is not None and owner != name:
                self.session.error(
                    f"Derived name '{class_name}' of '{name}' is already used by '{owner}'."
                )

    # Aspects

    def _foreign_keys(self, element_name: str, element: Element) -> List[Tuple[str, Element]]:
        if element.get("keys"):
            return self.resolver.explicit_foreign_keys(element)
        return [
            (f"{element_name}_{key_name}", key)
            for key_name, key in self.key_propagator.keys_of(element["target"]).items()
        ]

    @staticmethod
    def _foreign_key_element(association: Element, key: Element) -> Element:
        """Element of a foreign key, typed like the key it mirrors."""
        fk = {
            k: v
            for k, v in key.items()
            if k not in ("enum", "key", "notNull", "name", "doc") and not k.startswith("$")
        }
        if association.get("key"):
            fk["key"] = True
        if association.get("notNull"):
            fk["notNull"] = True
        return fk

    def _print_foreign_keys(self, element_name: str, element: Element, elements: Element,
                            file: SourceFile, buffer: Buffer):
        for fk_name, key in self._foreign_keys(element_name, element):
            if key.get("target"):
                continue
            if fk_name in elements:
                if elements[fk_name].get(FOREIGN_KEY_ANNOTATION) != element_name:
                    self.session.error(
                        f"Foreign key '{fk_name}' of association '{element_name}' collides "
                        "with a declared element of the same name and is skipped."
                    )
                continue
            self.visit_element(fk_name, self._foreign_key_element(element, key), file, buffer)

    def _print_inline_enums(self, owner: str, inline_enums: List[Tuple[str, Element, ResolvedType]],
                            file: SourceFile, buffer: Optional[Buffer]):
        for prop, element, resolved in inline_enums:
            pairs = csn_to_enum_pairs(element["enum"], self.resolver.enum_base_type(element))
            if buffer is not None:
                buffer.add(
                    f"static readonly {sanitize_property_name(prop)} = "
                    f"{enum_object_literal(pairs)} as const;"
                )
            file.add_inline_enum(owner, prop, resolved.type_info.enum_name, pairs)

    def _aspectify(self, name: str, definition: Element, buffer: Buffer, clean: str,
                   class_buffer: Optional[Buffer] = None):
        """
        Print the mixin function of a definition and the class built from it.

        Args:
            name: Fully qualified name of the definition
            definition: The definition
            buffer: Buffer receiving the mixin function
            clean: Local class name
            class_buffer: Buffer receiving the class, ``buffer`` if None
        """
        info = self.repository.get_by_fq_or_throw(name)
        file = self.get_namespace_file(info.namespace.as_namespace())
        class_buffer = class_buffer if class_buffer is not None else buffer
        file.add_import(BASE_PATH)

        parents = []
        for parent in definition.get("includes") or []:
            parent_info = self.repository.get_by_fq(parent)
            if parent_info is None:
                self.session.error(f"Included definition '{parent}' of '{name}' is unknown.")
                continue
            parents.append(self._class_reference(parent_info, file))

        self.contexts.append(name)
        try:
            buffer.add(f"export function {aspect_name(clean)}{ASPECT_SIGNATURE} {{")
            buffer.indent()
            buffer.add(f"return class {clean} extends Base {{")
            buffer.indent()

            elements = definition.get("elements") or {}
            inline_enums = []
            for element_name, element in elements.items():
                resolved = self.visit_element(element_name, element, file, buffer)
                if isinstance(resolved.type_info, InlineEnumTypeInfo):
                    inline_enums.append((element_name, element, resolved))
                if is_managed_to_one(element):
                    self._print_foreign_keys(element_name, element, elements, file, buffer)
            self._print_inline_enums(info.without_namespace, inline_enums, file, buffer)

            parent_classes = [cls for _, cls in parents]
            for descriptor, own in (("keys", create_keys_of(clean)),
                                    ("elements", create_elements_of(clean))):
                inherited = [f"typeof {cls}.{descriptor}" for cls in parent_classes]
                buffer.add(
                    f"declare static readonly {descriptor}: {' & '.join([own, *inherited])};"
                )
            self._print_bound_actions(definition, parent_classes, file, buffer)

            buffer.outdent()
            buffer.add("};")
            buffer.outdent()
            buffer.add("}")
        finally:
            self.contexts.pop()

        chain = f"{BASE}.Entity"
        for function, _ in parents:
            chain = f"{function}({chain})"
        chain = f"{aspect_name(clean)}({chain})"

        class_buffer.add_all(docify(definition.get("doc")))
        statics = []
        if name in self.session.draft_enabled:
            statics.append(f"declare static readonly drafts: typeof {clean};")
        self._print_class(class_buffer, f"export class {clean} extends {chain}", statics)

    def _print_class(self, buffer: Buffer, head: str, members: List[str]):
        if not members:
            buffer.add(f"{head} {{}}")
            return
        buffer.add(f"{head} {{")
        buffer.indent()
        buffer.add_all(members)
        buffer.outdent()
        buffer.add("}")

    def _print_bound_actions(self, definition: Element, parent_classes: List[str],
                             file: SourceFile, buffer: Buffer):
        inherited = "".join(f"typeof {cls}.actions & " for cls in parent_classes)
        actions = definition.get("actions") or {}
        if not actions:
            buffer.add(f"declare static readonly actions: {inherited}Record<never, never>;")
            return
        buffer.add(f"declare static readonly actions: {inherited}{{")
        buffer.indent()
        for action_name, action in actions.items():
            buffer.add_all(docify(action.get("doc")))
            signature = self.operation_signature(action, file)
            buffer.add(f"{sanitize_property_name(action_name)}: {signature};")
        buffer.outdent()
        buffer.add("};")

    # Definitions

    def _print_entity(self, name: str, entity: Element):
        info = self.repository.get_by_fq_or_throw(name)
        file = self.get_namespace_file(info.namespace.as_namespace())
        clean = info.without_namespace
        inflection = info.inflection
        singular = inflection.singular
        # plural keeps the scope (Books.texts), singular does not (text)
        plural = inflection.plural
        self._check_collisions(name, info, file, singular, plural)

        scoped_singular = ".".join([*info.scope, singular])
        file.add_class(scoped_singular, name)
        file.add_class(plural, name)
        file.add_inflection(scoped_singular, plural, clean)

        parent = info.parent
        buffer = (
            file.get_sub_namespace(parent.without_namespace) if parent is not None else file.classes
        )
        self._aspectify(name, entity, file.classes, singular, class_buffer=buffer)

        members = ["$count?: number;"]
        if name in self.session.draft_enabled:
            members.append(f"declare static readonly drafts: typeof {singular};")
        self._print_class(
            buffer, f"export class {last_segment(plural)} extends Array<{singular}>", members
        )
        buffer.add("")

    def _print_structured_type(self, name: str, definition: Element):
        info = self.repository.get_by_fq_or_throw(name)
        file = self.get_namespace_file(info.namespace.as_namespace())
        file.add_class(info.entity_name, name)
        self._aspectify(name, definition, file.classes, info.entity_name)
        file.classes.add("")

    def _print_type(self, name: str, definition: Element):
        logger.debug("Printing type %s", name)
        info = self.repository.get_by_fq_or_throw(name)
        file = self.get_namespace_file(info.namespace.as_namespace())
        clean = info.entity_name
        if "enum" in definition:
            pairs = csn_to_enum_pairs(definition["enum"], self.resolver.enum_base_type(definition))
            file.add_enum(name, clean, pairs, definition.get("doc"))
        else:
            resolved = self.resolver.resolve_and_require(definition, file)
            file.add_type(name, clean, resolved.type_name, definition.get("doc"))

    def _print_aspect(self, name: str, aspect: Element):
        logger.debug("Printing aspect %s", name)
        info = self.repository.get_by_fq_or_throw(name)
        file = self.get_namespace_file(info.namespace.as_namespace())
        clean = info.entity_name
        file.add_class(clean, name)
        file.aspects.add(f"// the following represents the CDS aspect '{clean}'")
        self._aspectify(name, aspect, file.aspects, clean)
        file.aspects.add("")

    def _print_event(self, name: str, event: Element):
        logger.debug("Printing event %s", name)
        info = self.repository.get_by_fq_or_throw(name)
        file = self.get_namespace_file(info.namespace.as_namespace())
        clean = info.entity_name
        file.add_event(clean, name)

        buffer = file.events
        buffer.add("// event")
        buffer.add_all(docify(event.get("doc")))
        buffer.add(f"export declare class {clean} {{")
        buffer.indent()
        inline_enums = []
        for element_name, element in (event.get("elements") or {}).items():
            # events are always fully populated
            resolved = self.visit_element(
                element_name, element, file, buffer, optional=False, modifiers=()
            )
            if isinstance(resolved.type_info, InlineEnumTypeInfo):
                inline_enums.append((element_name, element, resolved))
        buffer.outdent()
        buffer.add("}")
        buffer.add("")
        self._print_inline_enums(info.without_namespace, inline_enums, file, None)

    def _print_operation(self, name: str, operation: Element):
        logger.debug("Printing %s %s", operation.get("kind"), name)
        namespace = self.resolver.resolve_namespace(name)
        file = self.get_namespace_file(namespace)
        signature = self.operation_signature(operation, file)
        file.add_operation(
            last_segment(name), signature, operation.get("kind", "action"), operation.get("doc")
        )

    def _print_service(self, name: str, service: Element):
        logger.debug("Printing service %s", name)
        file = self.get_namespace_file(name)
        operations = [
            last_segment(fq)
            for fq, definition in definitions(self.csn).items()
            if definition.get("kind") in OPERATION_KINDS
            and fq.startswith(f"{name}.")
            and "." not in fq[len(name) + 1:]
        ]
        file.add_service(last_segment(name), name, operations, service.get("doc"))

    # Operations

    def _parameters(self, operation: Element, file: SourceFile) -> List[Tuple[str, str, bool]]:
        """(name, type, required) of all parameters, binding parameters left out."""
        result = []
        for param_name, param in (operation.get("params") or {}).items():
            if _is_binding_parameter(param):
                continue
            resolved = self.resolver.resolve_and_require(param, file)
            required = bool(param.get("notNull") or param.get("@mandatory"))
            type_name = resolved.type_name if required else f"{resolved.type_name} | null"
            result.append((sanitize_property_name(param_name), type_name, required))
        return result

    def operation_signature(self, operation: Element, file: SourceFile) -> str:
        """
        Callable type of an action or function.

        The type offers a positional and a named call form, the latter being
        the only one for RFC-style operations, and exposes parameter and
        return types as ``__parameters`` and ``__returns``.
        """
        params = self._parameters(operation, file)
        returns = operation.get("returns")
        return_type = (
            self.resolver.resolve_and_require(returns, file).type_name if returns else "void"
        )
        result = create_union_of(return_type, create_promise_of(return_type))

        named = ", ".join(f"{n}{'' if required else '?'}: {t}" for n, t, required in params)
        named = f"{{{named}}}"

        forms = []
        if not _is_rfc(operation):
            positional = []
            # an optional parameter must not precede a required one
            trailing_optional = True
            for n, t, required in reversed(params):
                trailing_optional = trailing_optional and not required
                positional.append(f"{n}{'?' if trailing_optional else ''}: {t}")
            forms.append(f"({', '.join(reversed(positional))}): {result}")
        if params or not forms:
            forms.append(f"(params: {named}): {result}")

        members = [
            *forms,
            f"__parameters: {named}",
            f"__returns: {return_type}",
            f"kind: '{operation.get('kind', 'action')}'",
        ]
        return f"{{ {', '.join(members)} }}"
