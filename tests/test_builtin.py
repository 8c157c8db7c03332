"""Tests for resolution/builtin.py."""

from __future__ import annotations

import pytest

from cds_typer.codegen.resolution.builtin import (
    LARGE_BINARY,
    WIDENED_NUMBER,
    BuiltinResolver,
)


class TestBuiltinResolver:
    """Tests for BuiltinResolver."""

    def test_primitives(self) -> None:
        resolver = BuiltinResolver()
        assert resolver.resolve_builtin("cds.String") == "string"
        assert resolver.resolve_builtin("cds.Integer") == "number"
        assert resolver.resolve_builtin("cds.Boolean") == "boolean"
        assert resolver.resolve_builtin("cds.Date") == "__.CdsDate"
        assert resolver.resolve_builtin("cds.LargeBinary") == LARGE_BINARY

    def test_accepts_segments(self) -> None:
        assert BuiltinResolver().resolve_builtin(["cds", "UUID"]) == "string"

    def test_non_builtins(self) -> None:
        resolver = BuiltinResolver()
        assert resolver.resolve_builtin("bookshop.Books") is None
        assert resolver.resolve_builtin("cds.hana.TINYINT") is None
        assert resolver.resolve_builtin("cds.Unknown") is None
        assert resolver.looks_builtin("cds.Unknown")
        assert not resolver.looks_builtin("cds.hana.TINYINT")

    def test_ieee754_widens_decimals(self) -> None:
        """Decimals may be strings for IEEE754 compatible clients."""
        resolver = BuiltinResolver(ieee754_compatible=True)
        assert resolver.resolve_builtin("cds.Decimal") == WIDENED_NUMBER
        assert resolver.resolve_builtin("cds.Double") == WIDENED_NUMBER
        assert resolver.resolve_builtin("cds.Integer") == "number"

    def test_table_is_read_only(self) -> None:
        resolver = BuiltinResolver()
        with pytest.raises(TypeError):
            resolver.builtins["String"] = "any"  # type: ignore[index]
        assert resolver.resolve_builtin("cds.String") == "string"
