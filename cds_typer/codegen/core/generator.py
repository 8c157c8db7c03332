"""
Compilation driver.

Runs the stages of a compilation over a fresh :class:`CompilationSession`:

1. draft-enabled entity collection,
2. the visitor pass over all definitions,
3. rendering of declaration files and runtime stubs.

The result can be written to disk with :func:`writeout`.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ...logging_config import get_logger
from ..languages.typescript.file import Library, SourceFile
from ..languages.typescript.javascript import RuntimeStubPrinter
from ..languages.typescript.visitor import Visitor
from ..resolution.drafts import DraftEnabledCollector
from .config import TyperConfig, load_config
from .csn import CSN
from .errors import TyperError
from .session import CompilationSession

logger = get_logger(__name__)

TYPE_DEFINITIONS_FILE = "index.ts"
RUNTIME_STUB_FILE = "index.js"
JS_CONFIG_FILE = "jsconfig.json"


class WriteoutError(Exception):
    """Exception raised when generated files can not be written."""

    pass


@dataclass(frozen=True)
class EmittedFile:
    """Output of one namespace."""

    namespace: str
    directory: str
    type_definitions: str
    runtime_stub: str


class CompilationResult:
    """Container for compilation results and metadata."""

    def __init__(
        self,
        files: List[EmittedFile] = None,
        warnings: List[str] = None,
        metadata: Dict[str, Any] = None,
    ):
        """
        Initialize compilation result.

        Args:
            files: Emitted files, base definitions first
            warnings: Diagnostics recorded while compiling
            metadata: Additional metadata about the compilation
        """
        self.files = files or []
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.success = True
        self.error_message: Optional[str] = None
        self.exception: Optional[Exception] = None

    @classmethod
    def error(cls, message: str, exception: Exception = None,
              warnings: List[str] = None) -> "CompilationResult":
        """Create a failed compilation result."""
        result = cls(warnings=warnings)
        result.success = False
        result.error_message = message
        result.exception = exception
        return result

    @property
    def directories(self) -> List[str]:
        return [f.directory for f in self.files]


def _emit_source_file(file: SourceFile, printer: RuntimeStubPrinter) -> EmittedFile:
    return EmittedFile(
        namespace=file.namespace,
        directory=file.path.as_directory(local=False),
        type_definitions=file.to_type_defs(),
        runtime_stub=printer.print(file),
    )


def _emit_library(library: Library) -> EmittedFile:
    return EmittedFile(
        namespace=library.namespace,
        directory=library.path.as_directory(local=False),
        type_definitions=library.to_type_defs(),
        runtime_stub=library.to_js_exports(),
    )


def compile_session(session: CompilationSession) -> List[EmittedFile]:
    """
    Compile the model of a session.

    Raises:
        TyperError: If the compilation has to be aborted
    """
    DraftEnabledCollector(session).collect()

    visitor = Visitor(session)
    visitor.visit_definitions()

    printer = RuntimeStubPrinter(session.config.use_entities_proxy, visitor.engine)
    files = [_emit_source_file(file, printer) for file in visitor.get_files()]
    files.extend(_emit_library(library) for library in session.referenced_libraries())
    logger.info("Compiled %d file(s)", len(files))
    return files


def compile_from_csn(csn: CSN, config: Optional[TyperConfig] = None) -> List[EmittedFile]:
    """
    Compile a model into declaration files and runtime stubs.

    Args:
        csn: Compiled model with ``definitions``
        config: Options, defaults if None

    Returns:
        Emitted files: base definitions, namespaces in the order they were
        first encountered, then referenced libraries

    Raises:
        TyperError: If the compilation has to be aborted
    """
    return compile_session(CompilationSession(csn, config))


def compile_model(
    csn: CSN,
    config: Optional[Union[TyperConfig, Dict[str, Any], str, Path]] = None,
) -> CompilationResult:
    """
    Compile a model with error handling.

    Args:
        csn: Compiled model with ``definitions``
        config: Options as TyperConfig, dict of overrides, or config file path

    Returns:
        CompilationResult with files, warnings and metadata
    """
    session = None
    try:
        if isinstance(config, TyperConfig):
            final_config = config
        elif isinstance(config, (str, Path)):
            final_config = load_config(config_file=config)
        else:
            final_config = load_config(custom_config=config)

        session = CompilationSession(csn, final_config)
        files = compile_session(session)

        metadata = {
            "definition_count": len(session.csn.get("definitions", {})),
            "namespace_count": len(files),
            "draft_enabled": sorted(session.draft_enabled),
            "libraries": [lib.namespace for lib in session.referenced_libraries()],
            "inline_declarations": final_config.inline_declarations,
            "use_entities_proxy": final_config.use_entities_proxy,
        }
        return CompilationResult(files, session.warnings, metadata)

    except TyperError as e:
        warnings = session.warnings if session is not None else []
        return CompilationResult.error(f"Compilation failed: {e}", exception=e, warnings=warnings)
    except Exception as e:
        logger.exception("Unexpected error during compilation")
        warnings = session.warnings if session is not None else []
        return CompilationResult.error(
            f"Compilation failed unexpectedly: {e}", exception=e, warnings=warnings
        )


def writeout(root: Union[str, Path], files: List[EmittedFile]) -> List[Path]:
    """
    Write emitted files below ``root``.

    Every file becomes ``<root>/<directory>/index.ts`` and ``index.js``.

    Returns:
        The directories written to

    Raises:
        WriteoutError: If a file can not be written
    """
    root = Path(root)
    written = []
    for emitted in files:
        directory = root / emitted.directory
        try:
            directory.mkdir(parents=True, exist_ok=True)
            (directory / TYPE_DEFINITIONS_FILE).write_text(
                emitted.type_definitions, encoding="utf-8"
            )
            (directory / RUNTIME_STUB_FILE).write_text(emitted.runtime_stub, encoding="utf-8")
        except OSError as e:
            raise WriteoutError(f"Failed to write {directory}: {e}") from e
        logger.debug("Wrote %s", directory)
        written.append(directory)
    return written


def _deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value
    return target


def write_js_config(path: Union[str, Path]) -> Path:
    """
    Write a ``jsconfig.json`` enabling type checks of JavaScript files.

    An existing file is merged into rather than replaced.

    Args:
        path: File path, or a directory to place ``jsconfig.json`` in

    Returns:
        Path of the written file

    Raises:
        WriteoutError: If the file can not be read or written
    """
    path = Path(path)
    if path.is_dir():
        path = path / JS_CONFIG_FILE

    values: Dict[str, Any] = {"compilerOptions": {"checkJs": True}}
    if path.exists():
        logger.warning("%s already exists, merging the type checking options into it", path)
        try:
            existing = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise WriteoutError(f"Failed to read existing {path}: {e}") from e
        if isinstance(existing, dict):
            values = _deep_merge(existing, values)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(values, indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        raise WriteoutError(f"Failed to write {path}: {e}") from e
    return path


__all__ = [
    "CompilationResult",
    "CompilationSession",
    "EmittedFile",
    "WriteoutError",
    "compile_from_csn",
    "compile_model",
    "compile_session",
    "write_js_config",
    "writeout",
]
