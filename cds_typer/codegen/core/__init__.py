"""
Core compilation components.

Provides the configuration, naming, model access and template utilities
shared by the resolution and emission layers.
"""

from .config import ConfigError, ConfigManager, TyperConfig, load_config
from .errors import (
    DraftConflictError,
    EmissionError,
    NameCollisionError,
    ResolutionError,
    TyperError,
)
from .naming import NamingCase, plural4, singular4
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Configuration system
    "ConfigError",
    "ConfigManager",
    "TyperConfig",
    "load_config",
    # Errors
    "DraftConflictError",
    "EmissionError",
    "NameCollisionError",
    "ResolutionError",
    "TyperError",
    # Naming
    "NamingCase",
    "plural4",
    "singular4",
    # Template system
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
