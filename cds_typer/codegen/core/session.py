"""
Per-compilation state.

Everything that would otherwise be process-wide (the draft-enabled set,
library "referenced" flags, diagnostics) lives on a session that is created
fresh for every compilation.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...logging_config import get_logger
from ..languages.typescript.file import Library
from .config import TyperConfig
from .csn import CSN, link_csn

logger = get_logger(__name__)

LIBRARY_DIRECTORY = Path(__file__).parent.parent / "languages" / "typescript" / "library"


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem found while compiling."""

    level: str
    message: str

    def __str__(self) -> str:
        return f"[{self.level}] {self.message}"


def load_libraries(directory: Path = LIBRARY_DIRECTORY) -> List[Library]:
    """Load all bundled ``*.ts`` libraries, sorted by file name."""
    return [Library(file) for file in sorted(directory.glob("*.ts"))]


class CompilationSession:
    """State shared by all components during one compilation."""

    def __init__(self, csn: CSN, config: Optional[TyperConfig] = None,
                 libraries: Optional[List[Library]] = None):
        self.config = config or TyperConfig()
        self.csn: Dict[str, Any] = link_csn(csn)
        self.libraries = libraries if libraries is not None else load_libraries()
        self.draft_enabled: set[str] = set()
        self.diagnostics: List[Diagnostic] = []

    def warn(self, message: str):
        logger.warning(message)
        self.diagnostics.append(Diagnostic("warning", message))

    def error(self, message: str):
        """Record a recoverable error; compilation continues."""
        logger.error(message)
        self.diagnostics.append(Diagnostic("error", message))

    @property
    def warnings(self) -> List[str]:
        return [str(d) for d in self.diagnostics]

    def referenced_libraries(self) -> List[Library]:
        return [lib for lib in self.libraries if lib.referenced]
