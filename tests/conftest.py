"""Shared fixtures: small CSN models and compile helpers."""

from __future__ import annotations

import copy
from typing import Any, Callable, Dict

import pytest

from cds_typer.codegen.core.config import TyperConfig
from cds_typer.codegen.core.generator import EmittedFile, compile_session
from cds_typer.codegen.core.session import CompilationSession
from cds_typer.codegen.languages.typescript.visitor import Visitor

CSN = Dict[str, Any]

BOOKSHOP: CSN = {
    "definitions": {
        "bookshop": {"kind": "context"},
        "bookshop.Books": {
            "kind": "entity",
            "elements": {
                "ID": {"key": True, "type": "cds.UUID"},
                "title": {"type": "cds.String"},
                "author": {"type": "cds.Association", "target": "bookshop.Authors"},
            },
        },
        "bookshop.Authors": {
            "kind": "entity",
            "elements": {
                "ID": {"key": True, "type": "cds.UUID"},
                "name": {"type": "cds.String"},
                "books": {
                    "type": "cds.Association",
                    "target": "bookshop.Books",
                    "cardinality": {"max": "*"},
                    "on": [{"ref": ["books", "author"]}, "=", {"ref": ["$self"]}],
                },
            },
        },
    }
}

CATALOG: CSN = {
    "definitions": {
        "CatalogService": {"kind": "service"},
        "CatalogService.submitOrder": {
            "kind": "action",
            "params": {
                "book": {"type": "cds.Integer", "@mandatory": True},
                "quantity": {"type": "cds.Integer"},
            },
            "returns": {"type": "cds.String"},
        },
        "CatalogService.ping": {"kind": "function"},
        "CatalogService.OrderedBook": {
            "kind": "event",
            "elements": {
                "book": {"type": "cds.Integer"},
                "quantity": {"type": "cds.Integer"},
            },
        },
    }
}


@pytest.fixture
def bookshop_csn() -> CSN:
    return copy.deepcopy(BOOKSHOP)


@pytest.fixture
def catalog_csn() -> CSN:
    return copy.deepcopy(CATALOG)


@pytest.fixture
def make_session() -> Callable[..., CompilationSession]:
    """Build a session from a model and config overrides."""

    def _make(csn: CSN, **options: Any) -> CompilationSession:
        return CompilationSession(csn, TyperConfig(**options))

    return _make


@pytest.fixture
def make_visitor(make_session) -> Callable[..., Visitor]:
    """Build a visitor (and with it a resolver) without visiting anything yet."""

    def _make(csn: CSN, **options: Any) -> Visitor:
        return Visitor(make_session(csn, **options))

    return _make


@pytest.fixture
def compile_csn(make_session) -> Callable[..., Dict[str, EmittedFile]]:
    """Compile a model, returning the emitted files by namespace.

    The session is available as ``compile_csn.session`` after each call.
    """

    def _compile(csn: CSN, **options: Any) -> Dict[str, EmittedFile]:
        session = make_session(csn, **options)
        _compile.session = session
        return {f.namespace: f for f in compile_session(session)}

    _compile.session = None
    return _compile
