"""
cds-typer: TypeScript declarations for compiled CDS models.

Turns a CSN model into one ``index.ts`` declaration file and one ``index.js``
runtime stub per namespace.
"""

__version__ = "0.1.0"

from .codegen import (
    CompilationResult,
    EmittedFile,
    TyperConfig,
    TyperError,
    compile_from_csn,
    compile_model,
    load_config,
    write_js_config,
    writeout,
)
from .utils import CSNLoaderError, load_csn

__all__ = [
    "CSNLoaderError",
    "CompilationResult",
    "EmittedFile",
    "TyperConfig",
    "TyperError",
    "__version__",
    "compile_from_csn",
    "compile_model",
    "load_config",
    "load_csn",
    "write_js_config",
    "writeout",
]
