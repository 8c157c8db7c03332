"""
Configuration management for type generation.

Handles loading and merging configuration from JSON files, providing
defaults and validation. Option names are accepted in the camelCase
spelling used by CAP projects (``propertiesOptional``) as well as in
snake_case (``properties_optional``).
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union
from dataclasses import dataclass, field, fields, asdict

from .naming import camel_to_snake


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""
    pass


INLINE_DECLARATION_STYLES = ("flat", "structured")


@dataclass
class TyperConfig:
    """Options consumed by the compiler."""

    # Output settings
    output_directory: str = "@cds-models"
    js_config_path: Optional[str] = None

    # Type layer
    inline_declarations: str = "flat"  # flat, structured
    properties_optional: bool = True
    ieee754_compatible: bool = False

    # Runtime stub
    use_entities_proxy: bool = False

    # Diagnostics
    log_level: str = "WARNING"

    # Code style
    indentation: str = "  "

    # Unknown options are kept here
    custom: Dict[str, Any] = field(default_factory=dict)


# spellings that a plain camelCase conversion does not produce
_KEY_ALIASES = {
    "ieee754compatible": "ieee754_compatible",
    "root_dir": "output_directory",
    "root_directory": "output_directory",
    "loglevel": "log_level",
}


def normalize_key(key: str) -> str:
    """Map a camelCase or snake_case option name onto a TyperConfig field."""
    snake = camel_to_snake(key)
    return _KEY_ALIASES.get(snake, _KEY_ALIASES.get(snake.replace("_", ""), snake))


def _to_bool(value: Any) -> Any:
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    return value


class ConfigManager:
    """Manages configuration loading and merging."""

    def __init__(self):
        """Initialize configuration manager."""
        self._defaults: Dict[str, Any] = asdict(TyperConfig())

    def get_config(self, custom_config: Optional[Dict[str, Any]] = None,
                   config_file: Optional[Union[str, Path]] = None) -> TyperConfig:
        """
        Get the complete configuration.

        Args:
            custom_config: Configuration overrides
            config_file: Path to JSON configuration file

        Returns:
            Merged configuration
        """
        base_config = dict(self._defaults)
        base_config["custom"] = {}

        if config_file:
            file_config = self._load_config_file(config_file)
            base_config.update(self._normalize(file_config))

        if custom_config:
            base_config.update(self._normalize(custom_config))

        return self._dict_to_config(base_config)

    def _normalize(self, config: Dict[str, Any]) -> Dict[str, Any]:
        return {normalize_key(k): v for k, v in config.items() if v is not None}

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load configuration from a JSON file.

        The options may be nested under ``cds.typer`` or ``typer``, so a
        project's ``package.json`` or ``.cdsrc.json`` can be used directly.
        """
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.suffix.lower() == '.json':
            raise ConfigError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {path}: {str(e)}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load configuration file {path}: {str(e)}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {path}")

        if isinstance(config.get("cds"), dict) and isinstance(config["cds"].get("typer"), dict):
            return config["cds"]["typer"]
        if isinstance(config.get("typer"), dict):
            return config["typer"]
        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> TyperConfig:
        """Convert dictionary to TyperConfig instance."""
        known_fields = {f.name for f in fields(TyperConfig)}

        config_args = {}
        custom_args = {}

        for key, value in config_dict.items():
            if key in known_fields:
                config_args[key] = _to_bool(value)
            else:
                custom_args[key] = value

        if custom_args:
            existing_custom = dict(config_args.get('custom') or {})
            existing_custom.update(custom_args)
            config_args['custom'] = existing_custom

        return TyperConfig(**config_args)

    def save_config(self, config: TyperConfig, output_path: Union[str, Path]):
        """Save configuration to JSON file."""
        path = Path(output_path)

        config_dict = asdict(config)
        custom = config_dict.pop("custom")
        config_dict.update(custom)

        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(config_dict, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration to {path}: {str(e)}") from e

    def validate_config(self, config: TyperConfig) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation warnings/errors
        """
        warnings = []

        if config.inline_declarations not in INLINE_DECLARATION_STYLES:
            warnings.append(f"Invalid inline_declarations: {config.inline_declarations}")

        for flag in ("properties_optional", "ieee754_compatible", "use_entities_proxy"):
            if not isinstance(getattr(config, flag), bool):
                warnings.append(f"Option {flag} must be a boolean: {getattr(config, flag)!r}")

        if config.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "SILENT"):
            warnings.append(f"Invalid log_level: {config.log_level}")

        if not config.indentation or config.indentation.strip():
            warnings.append(f"Indentation must be whitespace: {config.indentation!r}")

        if config.custom:
            warnings.append(f"Unknown options: {', '.join(sorted(config.custom))}")

        return warnings


# Global configuration manager instance
_config_manager = None

def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(custom_config: Optional[Dict[str, Any]] = None,
                config_file: Optional[Union[str, Path]] = None,
                strict: bool = False) -> TyperConfig:
    """
    Convenience function to load configuration.

    Args:
        custom_config: Configuration overrides
        config_file: Path to JSON configuration file
        strict: Raise instead of returning a config with invalid options

    Returns:
        Merged configuration

    Raises:
        ConfigError: In strict mode, if validation reports problems
    """
    manager = get_config_manager()
    config = manager.get_config(custom_config, config_file)
    if strict:
        problems = manager.validate_config(config)
        if problems:
            raise ConfigError("; ".join(problems))
    return config


EXAMPLE_CONFIG = {
    "outputDirectory": "@cds-models",
    "inlineDeclarations": "structured",
    "propertiesOptional": False,
    "IEEE754Compatible": True,
    "useEntitiesProxy": False,
}
