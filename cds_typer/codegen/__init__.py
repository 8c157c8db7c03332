"""
cds-typer code generation module.

Resolves the types of a CSN model and prints them as TypeScript.
"""

from .core.config import ConfigManager, TyperConfig, load_config
from .core.errors import (
    DraftConflictError,
    EmissionError,
    NameCollisionError,
    ResolutionError,
    TyperError,
)
from .core.generator import (
    CompilationResult,
    EmittedFile,
    WriteoutError,
    compile_from_csn,
    compile_model,
    write_js_config,
    writeout,
)
from .core.session import CompilationSession
from .registry import get_inline_strategy, list_inline_strategies

__all__ = [
    "CompilationResult",
    "CompilationSession",
    "ConfigManager",
    "DraftConflictError",
    "EmissionError",
    "EmittedFile",
    "NameCollisionError",
    "ResolutionError",
    "TyperConfig",
    "TyperError",
    "WriteoutError",
    "compile_from_csn",
    "compile_model",
    "get_inline_strategy",
    "list_inline_strategies",
    "load_config",
    "write_js_config",
    "writeout",
]
