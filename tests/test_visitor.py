"""Tests for languages/typescript/visitor.py.

Covers:
- entities: aspect functions, singular and plural classes, keys
- associations within and across namespaces, self references
- foreign key properties and their collisions
- enums, inline enums, type aliases and structured types
- scoped entities
- draft-enabled entities
- operations, services and events
- libraries
- error reporting and determinism
"""

from __future__ import annotations

import copy
from typing import Any, Dict

import pytest

from cds_typer.codegen.core.errors import NameCollisionError

ASPECT_SIGNATURE = "<TBase extends new (...args: any[]) => object>(Base: TBase)"


def _lines(text: str) -> list[str]:
    return text.split("\n")


def _entity(**elements: Any) -> Dict[str, Any]:
    return {"kind": "entity", "elements": elements}


class TestEntities:
    """Tests for entity printing."""

    def test_aspect_function_and_classes(self, bookshop_csn, compile_csn) -> None:
        ts = compile_csn(bookshop_csn)["bookshop"].type_definitions
        lines = _lines(ts)
        assert f"export function _BookAspect{ASPECT_SIGNATURE} {{" in lines
        assert "  return class Book extends Base {" in lines
        assert "    declare ID?: __.Key<string>;" in lines
        assert "    declare title?: string | null;" in lines
        assert "    declare static readonly keys: __.KeysOf<Book>;" in lines
        assert "    declare static readonly elements: __.ElementsOf<Book>;" in lines
        assert "    declare static readonly actions: Record<never, never>;" in lines
        assert "export class Book extends _BookAspect(__.Entity) {}" in lines
        assert "export class Books extends Array<Book> {\n  $count?: number;\n}" in ts

    def test_imports_base_definitions(self, bookshop_csn, compile_csn) -> None:
        ts = compile_csn(bookshop_csn)["bookshop"].type_definitions
        assert "import * as __ from './../_';" in _lines(ts)

    def test_associations_in_same_namespace(self, bookshop_csn, compile_csn) -> None:
        lines = _lines(compile_csn(bookshop_csn)["bookshop"].type_definitions)
        assert "    declare author?: __.Association.to<Author> | null;" in lines
        assert "    declare books?: __.Association.to.many<Books>;" in lines

    def test_managed_association_gets_foreign_key(self, bookshop_csn, compile_csn) -> None:
        lines = _lines(compile_csn(bookshop_csn)["bookshop"].type_definitions)
        assert "    declare author_ID?: string | null;" in lines
        # unmanaged (on condition) to-many associations have none
        assert not any("books_ID" in line for line in lines)

    def test_association_across_namespaces(self, bookshop_csn, compile_csn) -> None:
        definitions = bookshop_csn["definitions"]
        definitions["people"] = {"kind": "context"}
        definitions["people.Authors"] = definitions.pop("bookshop.Authors")
        definitions["people.Authors"]["elements"].pop("books")
        definitions["bookshop.Books"]["elements"]["author"]["target"] = "people.Authors"

        files = compile_csn(bookshop_csn)
        lines = _lines(files["bookshop"].type_definitions)
        assert "import * as _people from './../people';" in lines
        assert "    declare author?: __.Association.to<_people.Author> | null;" in lines
        assert "    declare author_ID?: string | null;" in lines
        assert list(files) == ["_", "bookshop", "people"]

    def test_self_reference(self, compile_csn) -> None:
        csn = {
            "definitions": {
                "TreeNode": _entity(
                    ID={"key": True, "type": "cds.Integer"},
                    parent={"type": "cds.Association", "target": "TreeNode"},
                )
            }
        }
        files = compile_csn(csn)
        lines = _lines(files[""].type_definitions)
        assert "    declare parent?: __.Association.to<this> | null;" in lines
        assert "    declare parent_ID?: number | null;" in lines
        assert "export class TreeNode_ extends Array<TreeNode> {" in lines
        assert "import * as __ from './_';" in lines
        assert any("TreeNode_" in w for w in compile_csn.session.warnings)

    def test_delimited_element_names_are_quoted(self, compile_csn) -> None:
        csn = {"definitions": {"Books": _entity(**{"first name": {"type": "cds.String"}})}}
        lines = _lines(compile_csn(csn)[""].type_definitions)
        assert '    declare "first name"?: string | null;' in lines

    def test_documentation(self, compile_csn) -> None:
        csn = {
            "definitions": {
                "Books": {
                    "kind": "entity",
                    "doc": "All books",
                    "elements": {"title": {"type": "cds.String", "doc": "The title"}},
                }
            }
        }
        lines = _lines(compile_csn(csn)[""].type_definitions)
        assert "    /** The title */" in lines
        index = lines.index("export class Book extends _BookAspect(__.Entity) {}")
        assert lines[index - 1] == "/** All books */"


class TestForeignKeys:
    """Tests for foreign key propagation into entities."""

    @pytest.fixture
    def csn(self) -> Dict[str, Any]:
        return {
            "definitions": {
                "cuid": {
                    "kind": "aspect",
                    "elements": {"ID": {"key": True, "type": "cds.UUID"}},
                },
                "Authors": {
                    "kind": "entity",
                    "includes": ["cuid"],
                    "elements": {
                        "ID": {"key": True, "type": "cds.UUID"},
                        "name": {"key": True, "type": "cds.String"},
                    },
                },
                "Books": _entity(
                    ID={"key": True, "type": "cds.Integer"},
                    ref={"type": "cds.Association", "target": "Authors"},
                ),
            }
        }

    def test_inherited_and_own_keys(self, csn, compile_csn) -> None:
        lines = _lines(compile_csn(csn)[""].type_definitions)
        assert "    declare ref_ID?: string | null;" in lines
        assert "    declare ref_name?: string | null;" in lines

    def test_includes_are_mixed_in(self, csn, compile_csn) -> None:
        ts = compile_csn(csn)[""].type_definitions
        lines = _lines(ts)
        assert "export class Author extends _AuthorAspect(_cuidAspect(__.Entity)) {}" in lines
        assert "    declare static readonly keys: __.KeysOf<Author> & typeof cuid.keys;" in lines
        assert "// the following represents the CDS aspect 'cuid'" in lines
        assert "export class cuid extends _cuidAspect(__.Entity) {}" in lines
        # aspects are declared before the classes using them
        assert ts.index("export class cuid") < ts.index("export class Author ")

    def test_collision_is_reported_and_skipped(self, csn, compile_csn) -> None:
        csn["definitions"]["Books"]["elements"]["ref_ID"] = {"type": "cds.String"}
        lines = _lines(compile_csn(csn)[""].type_definitions)
        assert [line for line in lines if "ref_ID" in line] == [
            "    declare ref_ID?: string | null;"
        ]
        assert "    declare ref_name?: string | null;" in lines
        assert any(
            "Foreign key 'ref_ID'" in w and w.startswith("[error]")
            for w in compile_csn.session.warnings
        )

    def test_annotated_foreign_key_is_not_a_collision(self, csn, compile_csn) -> None:
        csn["definitions"]["Books"]["elements"]["ref_ID"] = {
            "type": "cds.UUID",
            "@odata.foreignKey4": "ref",
        }
        compile_csn(csn)
        assert not any("ref_ID" in w for w in compile_csn.session.warnings)

    def test_explicit_keys(self, csn, compile_csn) -> None:
        csn["definitions"]["Books"]["elements"]["ref"]["keys"] = [{"ref": ["name"]}]
        lines = _lines(compile_csn(csn)[""].type_definitions)
        assert "    declare ref_name?: string | null;" in lines
        assert not any("ref_ID" in line for line in lines)

    def test_not_null_association_makes_required_keys(self, csn, compile_csn) -> None:
        csn["definitions"]["Books"]["elements"]["ref"]["notNull"] = True
        lines = _lines(compile_csn(csn)[""].type_definitions)
        assert "    declare ref?: __.Association.to<Author>;" in lines
        assert "    declare ref_ID?: string;" in lines


class TestEnumsAndTypes:
    """Tests for enum, alias and structured type printing."""

    @pytest.fixture
    def csn(self, bookshop_csn) -> Dict[str, Any]:
        definitions = bookshop_csn["definitions"]
        definitions["bookshop.Status"] = {
            "kind": "type",
            "type": "cds.Integer",
            "enum": {"open": {"val": 1}, "closed": {"val": 2}},
        }
        definitions["bookshop.Price"] = {"kind": "type", "type": "cds.Decimal"}
        definitions["bookshop.Address"] = {
            "kind": "type",
            "elements": {"street": {"type": "cds.String"}},
        }
        elements = definitions["bookshop.Books"]["elements"]
        elements["genre"] = {
            "type": "cds.String",
            "enum": {"fiction": {}, "poetry": {"val": "poem"}},
        }
        elements["status"] = {"type": "bookshop.Status"}
        elements["price"] = {"type": "bookshop.Price"}
        elements["address"] = {"type": "bookshop.Address"}
        return bookshop_csn

    def test_named_enum(self, csn, compile_csn) -> None:
        emitted = compile_csn(csn)["bookshop"]
        assert (
            "export const Status = {\n  open: 1,\n  closed: 2,\n} as const;\n"
            "export type Status = 1 | 2"
        ) in emitted.type_definitions
        assert "    declare status?: Status | null;" in _lines(emitted.type_definitions)
        assert "module.exports.Status = { open: 1, closed: 2 }" in emitted.runtime_stub

    def test_inline_enum(self, csn, compile_csn) -> None:
        emitted = compile_csn(csn)["bookshop"]
        lines = _lines(emitted.type_definitions)
        assert "    declare genre?: Book_genre | null;" in lines
        assert (
            '    static readonly genre = { fiction: "fiction", poetry: "poem" } as const;'
            in lines
        )
        assert "// enum Books.genre" in lines
        assert 'export type Book_genre = "fiction" | "poem"' in lines
        assert (
            'if (csn["Books"]) csn["Books"].genre ??= { fiction: "fiction", poetry: "poem" }'
            in emitted.runtime_stub
        )

    def test_type_alias(self, csn, compile_csn) -> None:
        emitted = compile_csn(csn)["bookshop"]
        lines = _lines(emitted.type_definitions)
        assert "export type Price = number;" in lines
        assert "    declare price?: Price | null;" in lines

    def test_ieee754_compatible_alias(self, csn, compile_csn) -> None:
        lines = _lines(compile_csn(csn, ieee754_compatible=True)["bookshop"].type_definitions)
        assert "export type Price = (number | string);" in lines

    def test_structured_type(self, csn, compile_csn) -> None:
        lines = _lines(compile_csn(csn)["bookshop"].type_definitions)
        assert "export class Address extends _AddressAspect(__.Entity) {}" in lines
        assert "    declare street?: string | null;" in lines
        assert "    declare address?: Address | null;" in lines


class TestScopedEntities:
    """Tests for entities nested in other entities (Books.texts)."""

    @pytest.fixture
    def csn(self, bookshop_csn) -> Dict[str, Any]:
        definitions = bookshop_csn["definitions"]
        definitions["bookshop.Books"]["elements"]["texts"] = {
            "type": "cds.Composition",
            "target": "bookshop.Books.texts",
            "cardinality": {"max": "*"},
            "on": [{"ref": ["texts", "ID"]}, "=", {"ref": ["ID"]}],
        }
        definitions["bookshop.Books.texts"] = _entity(
            locale={"key": True, "type": "cds.String"},
            ID={"key": True, "type": "cds.UUID"},
            title={"type": "cds.String"},
        )
        return bookshop_csn

    def test_nested_namespace(self, csn, compile_csn) -> None:
        ts = compile_csn(csn)["bookshop"].type_definitions
        lines = _lines(ts)
        assert "export namespace Books {" in lines
        assert "  export class text extends _textAspect(__.Entity) {}" in lines
        assert "  export class texts extends Array<text> {" in lines
        assert f"export function _textAspect{ASPECT_SIGNATURE} {{" in lines
        assert "    declare texts?: __.Composition.of.many<Books.texts>;" in lines
        # namespaces precede the classes
        assert ts.index("export namespace Books {") < ts.index("export class Book ")

    def test_nested_runtime_aliases(self, csn, compile_csn) -> None:
        js = compile_csn(csn)["bookshop"].runtime_stub
        lines = _lines(js)
        assert 'module.exports.Books = csn["Books"]' in lines
        assert 'module.exports.Books.text = csn["Books.texts"]' in lines
        assert lines.index('module.exports.Books = csn["Books"]') < lines.index(
            'module.exports.Books.text = csn["Books.texts"]'
        )

    def test_singular_named_scoped_entity(self, bookshop_csn, compile_csn) -> None:
        definitions = bookshop_csn["definitions"]
        definitions["bookshop.Books.edition"] = _entity(ID={"key": True, "type": "cds.UUID"})
        lines = _lines(compile_csn(bookshop_csn)["bookshop"].type_definitions)
        assert "  export class edition extends _editionAspect(__.Entity) {}" in lines
        assert "  export class edition_ extends Array<edition> {" in lines
        assert "  export class edition extends Array<edition> {" not in lines


class TestDrafts:
    """Tests for draft-enabled entities."""

    def test_drafts_static(self, compile_csn) -> None:
        csn = {
            "definitions": {
                "S": {"kind": "service"},
                "S.Orders": {
                    "kind": "entity",
                    "@odata.draft.enabled": True,
                    "elements": {
                        "ID": {"key": True, "type": "cds.UUID"},
                        "items": {
                            "type": "cds.Composition",
                            "target": "S.Items",
                            "cardinality": {"max": "*"},
                            "on": [],
                        },
                    },
                },
                "S.Items": _entity(ID={"key": True, "type": "cds.UUID"}),
            }
        }
        ts = compile_csn(csn)["S"].type_definitions
        assert (
            "export class Order extends _OrderAspect(__.Entity) {\n"
            "  declare static readonly drafts: typeof Order;\n}"
        ) in ts
        assert (
            "export class Orders extends Array<Order> {\n  $count?: number;\n"
            "  declare static readonly drafts: typeof Order;\n}"
        ) in ts
        assert "  declare static readonly drafts: typeof Item;\n}" in ts
        assert "    declare items?: __.Composition.of.many<Items>;" in _lines(ts)
        assert "export default class S {" in _lines(ts)


class TestOperations:
    """Tests for actions, functions, services and events."""

    def test_unbound_action(self, catalog_csn, compile_csn) -> None:
        lines = _lines(compile_csn(catalog_csn)["CatalogService"].type_definitions)
        assert (
            "export declare const submitOrder: { "
            "(book: number, quantity?: number | null): string | Promise<string>, "
            "(params: {book: number, quantity?: number | null}): string | Promise<string>, "
            "__parameters: {book: number, quantity?: number | null}, "
            "__returns: string, kind: 'action' };"
        ) in lines

    def test_function_without_parameters(self, catalog_csn, compile_csn) -> None:
        lines = _lines(compile_csn(catalog_csn)["CatalogService"].type_definitions)
        assert "// function" in lines
        assert (
            "export declare const ping: { (): void | Promise<void>, "
            "__parameters: {}, __returns: void, kind: 'function' };"
        ) in lines

    def test_optional_parameter_before_required_one(self, catalog_csn, compile_csn) -> None:
        params = catalog_csn["definitions"]["CatalogService.submitOrder"]["params"]
        params["quantity"], params["book"] = params.pop("quantity"), params.pop("book")
        ts = compile_csn(catalog_csn)["CatalogService"].type_definitions
        assert "(quantity: number | null, book: number): string | Promise<string>" in ts

    def test_rfc_action_has_named_form_only(self, catalog_csn, compile_csn) -> None:
        params = catalog_csn["definitions"]["CatalogService.submitOrder"]["params"]
        params["book"]["@RFC.ParamCategory"] = "importing"
        ts = compile_csn(catalog_csn)["CatalogService"].type_definitions
        assert "export declare const submitOrder: { (params: {book: number" in ts
        assert "(book: number, quantity" not in ts

    def test_service_class(self, catalog_csn, compile_csn) -> None:
        emitted = compile_csn(catalog_csn)["CatalogService"]
        assert (
            "export default class CatalogService {\n"
            "  declare static readonly submitOrder: typeof submitOrder;\n"
            "  declare static readonly ping: typeof ping;\n}"
        ) in emitted.type_definitions
        assert emitted.directory == "CatalogService"
        js = _lines(emitted.runtime_stub)
        assert 'module.exports.submitOrder = "submitOrder"' in js
        assert 'module.exports.default = { name: "CatalogService" }' in js

    def test_event(self, catalog_csn, compile_csn) -> None:
        emitted = compile_csn(catalog_csn)["CatalogService"]
        lines = _lines(emitted.type_definitions)
        assert "// event" in lines
        assert "export declare class OrderedBook {" in lines
        assert "  book: number | null;" in lines
        assert 'module.exports.OrderedBook = "OrderedBook"' in _lines(emitted.runtime_stub)

    def test_bound_action(self, compile_csn) -> None:
        csn = {
            "definitions": {
                "Orders": {
                    "kind": "entity",
                    "elements": {"ID": {"key": True, "type": "cds.Integer"}},
                    "actions": {
                        "cancel": {
                            "kind": "action",
                            "params": {
                                "in": {"type": "$self"},
                                "reason": {"type": "cds.String"},
                            },
                        }
                    },
                }
            }
        }
        lines = _lines(compile_csn(csn)[""].type_definitions)
        assert "    declare static readonly actions: {" in lines
        assert (
            "      cancel: { (reason?: string | null): void | Promise<void>, "
            "(params: {reason?: string | null}): void | Promise<void>, "
            "__parameters: {reason?: string | null}, __returns: void, kind: 'action' };"
        ) in lines


class TestLibraries:
    """Tests for library types."""

    def test_referenced_library_is_emitted(self, compile_csn) -> None:
        csn = {
            "definitions": {
                "bookshop.Books": _entity(small={"type": "cds.hana.TINYINT"}),
            }
        }
        files = compile_csn(csn)
        lines = _lines(files["bookshop"].type_definitions)
        assert "import * as _cds_hana from './../cds/hana';" in lines
        assert "    declare small?: _cds_hana.TINYINT | null;" in lines
        assert files["cds.hana"].directory == "cds/hana"
        assert "export class TINYINT extends Number {};" in files["cds.hana"].type_definitions

    def test_unreferenced_library_is_not_emitted(self, bookshop_csn, compile_csn) -> None:
        assert "cds.hana" not in compile_csn(bookshop_csn)


class TestDiagnostics:
    """Tests for error handling and stability."""

    def test_name_collision_aborts(self, compile_csn) -> None:
        csn = {
            "definitions": {
                "bookshop.Books": _entity(ID={"key": True, "type": "cds.Integer"}),
                "bookshop.Book": _entity(ID={"key": True, "type": "cds.Integer"}),
            }
        }
        with pytest.raises(NameCollisionError, match="'bookshop.Book'"):
            compile_csn(csn)

    def test_unresolved_and_unknown_kinds_are_skipped(self, bookshop_csn, compile_csn) -> None:
        definitions = bookshop_csn["definitions"]
        definitions["bookshop.Broken"] = {"kind": "entity", "_unresolved": True}
        definitions["bookshop.note"] = {"kind": "annotation"}
        files = compile_csn(bookshop_csn)
        assert "Broken" not in files["bookshop"].type_definitions
        warnings = compile_csn.session.warnings
        assert any("unresolved definition 'bookshop.Broken'" in w for w in warnings)
        assert any("Unhandled kind 'annotation'" in w for w in warnings)

    def test_input_is_not_modified(self, bookshop_csn, compile_csn) -> None:
        original = copy.deepcopy(bookshop_csn)
        compile_csn(bookshop_csn)
        assert bookshop_csn == original

    def test_output_is_deterministic(self, bookshop_csn, compile_csn) -> None:
        first = compile_csn(copy.deepcopy(bookshop_csn))
        second = compile_csn(copy.deepcopy(bookshop_csn))
        assert first == second

    def test_base_definitions_come_first(self, bookshop_csn, compile_csn) -> None:
        files = compile_csn(bookshop_csn)
        base = list(files.values())[0]
        assert base.namespace == "_"
        assert "export class Entity {" in base.type_definitions
        assert "export type Key<T> = T & {[key]?: true}" in base.type_definitions
