"""Tests for codegen/core/naming.py.

Covers:
- singular4() / plural4() grammar rules and annotations
- case conversion helpers
- property name sanitization
- unlocalize()
"""

from __future__ import annotations

import pytest

from cds_typer.codegen.core.naming import (
    NamingCase,
    camel_to_snake,
    convert_case,
    inline_enum_name,
    is_identifier,
    last_segment,
    plural4,
    sanitize_property_name,
    singular4,
    snake_to_camel,
    unlocalize,
)


class TestSingular:
    """Tests for singular4."""

    @pytest.mark.parametrize(
        ("plural", "singular"),
        [
            ("Books", "Book"),
            ("Stories", "Story"),
            ("Employees", "Employee"),
            ("Addresses", "Address"),
            ("Address", "Address"),
            ("News", "News"),
            ("Species", "Species"),
            ("Keys", "Key"),
            ("Item_", "Item"),
            ("Foo", "Foo"),
        ],
    )
    def test_grammar_rules(self, plural: str, singular: str) -> None:
        """Applies the first matching rule."""
        assert singular4(plural) == singular

    def test_annotation_wins(self) -> None:
        """@singular overrides the rules."""
        definition = {"name": "bookshop.People", "@singular": "Person"}
        assert singular4(definition) == "Person"

    def test_stripped_uses_trailing_word(self) -> None:
        """Only the last word is considered when stripped."""
        assert singular4({"name": "bookshop.Books"}, stripped=True) == "Book"
        assert singular4("bookshop.Books.texts", stripped=True) == "text"

    def test_unstripped_keeps_qualifier(self) -> None:
        assert singular4("bookshop.Books") == "bookshop.Book"


class TestPlural:
    """Tests for plural4."""

    @pytest.mark.parametrize(
        ("singular", "plural"),
        [
            ("Book", "Books"),
            ("Story", "Stories"),
            ("Day", "Days"),
            ("Box", "Boxes"),
            ("Match", "Matches"),
            ("Status", "Status"),
            ("Analysis", "Analysis"),
        ],
    )
    def test_grammar_rules(self, singular: str, plural: str) -> None:
        assert plural4(singular) == plural

    def test_annotation_wins(self) -> None:
        assert plural4({"name": "Person", "@plural": "People"}) == "People"


class TestCaseConversion:
    """Tests for the case converters."""

    def test_camel_to_snake(self) -> None:
        assert camel_to_snake("propertiesOptional") == "properties_optional"
        assert camel_to_snake("useEntitiesProxy") == "use_entities_proxy"
        assert camel_to_snake("output-directory") == "output_directory"

    def test_snake_to_camel(self) -> None:
        assert snake_to_camel("inline_declarations") == "inlineDeclarations"

    def test_convert_case(self) -> None:
        assert convert_case("jsConfigPath", NamingCase.SNAKE_CASE) == "js_config_path"
        assert convert_case("js_config_path", NamingCase.CAMEL_CASE) == "jsConfigPath"


class TestPropertyNames:
    """Tests for identifier handling."""

    def test_identifiers_pass_through(self) -> None:
        assert is_identifier("$count")
        assert sanitize_property_name("title") == "title"

    def test_delimited_identifiers_are_quoted(self) -> None:
        assert not is_identifier("first name")
        assert sanitize_property_name("first name") == '"first name"'
        assert sanitize_property_name("1st") == '"1st"'


class TestMisc:
    """Tests for the remaining helpers."""

    def test_unlocalize(self) -> None:
        assert unlocalize("{i18n>Books}") == "Books"
        assert unlocalize("Books") == "Books"

    def test_last_segment(self) -> None:
        assert last_segment("a.b.Books") == "Books"
        assert last_segment("Books") == "Books"

    def test_inline_enum_name(self) -> None:
        assert inline_enum_name("Book", "genre") == "Book_genre"
