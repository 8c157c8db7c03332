"""
Base definitions shared by all generated files.

Emitted into the namespace ``_`` and imported everywhere as ``__``
(associations, compositions, the ``Entity`` base class, key markers,
date and time string types).
"""

from ...core.templates import TemplateEngine, create_template_engine
from .file import Path, SourceFile
from .javascript import TEMPLATE_DIRECTORY

BASE_NAMESPACE = "_"
BASE_PATH = Path([BASE_NAMESPACE])

DATE_PATTERN = "`${number}${number}${number}${number}-${number}${number}-${number}${number}`"
TIME_PATTERN = "`${number}${number}:${number}${number}:${number}${number}`"


def create_base_definitions(engine: TemplateEngine | None = None,
                            indentation: str = "  ") -> SourceFile:
    """
    Build the source file holding the base definitions.

    Args:
        engine: Template engine to render with
        indentation: Indentation unit of the file's buffers

    Returns:
        SourceFile for namespace ``_``
    """
    engine = engine or create_template_engine(TEMPLATE_DIRECTORY)
    file = SourceFile(BASE_PATH, indentation)
    file.add_preamble(
        engine.render_template(
            "base.ts.j2", {"date_pattern": DATE_PATTERN, "time_pattern": TIME_PATTERN}
        ).rstrip("\n")
    )
    return file
