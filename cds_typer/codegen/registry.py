"""
Registry of inline declaration strategies.

Maps the ``inline_declarations`` option onto the strategy class printing
anonymous structures. Strategies register under a primary name and any
number of aliases.
"""

from typing import Dict, List, Optional, Type

from .resolution.inline import (
    FlatInlineDeclarationResolver,
    InlineDeclarationResolver,
    StructuredInlineDeclarationResolver,
)


class RegistryError(Exception):
    """Exception raised for registry-related errors."""

    pass


class InlineStrategyRegistry:
    """Registry for the available inline declaration strategies."""

    def __init__(self):
        self._strategies: Dict[str, Type[InlineDeclarationResolver]] = {}
        self._aliases: Dict[str, str] = {}

    def register(
        self,
        name: str,
        strategy_class: Type[InlineDeclarationResolver],
        aliases: Optional[List[str]] = None,
        replace: bool = False,
    ):
        """
        Register a strategy.

        Args:
            name: Primary name (e.g., 'flat')
            strategy_class: Class implementing InlineDeclarationResolver
            aliases: Alternative names for this strategy
            replace: If True, replace existing registration. If False, skip if exists.

        Raises:
            RegistryError: If the class is invalid or an alias conflicts
        """
        if not (isinstance(strategy_class, type)
                and issubclass(strategy_class, InlineDeclarationResolver)):
            raise RegistryError("Strategy class must inherit from InlineDeclarationResolver")

        key = name.lower()
        if key in self._strategies and not replace:
            return

        self._strategies[key] = strategy_class

        for alias in aliases or []:
            alias_key = alias.lower()
            if alias_key == key:
                continue
            if not replace:
                if alias_key in self._strategies:
                    raise RegistryError(f"Alias '{alias}' conflicts with existing strategy")
                if alias_key in self._aliases and self._aliases[alias_key] != key:
                    raise RegistryError(
                        f"Alias '{alias}' already points to '{self._aliases[alias_key]}'"
                    )
            self._aliases[alias_key] = key

    def get(self, name: str) -> Type[InlineDeclarationResolver]:
        """
        Get the strategy class for a name or alias.

        Raises:
            RegistryError: If nothing is registered under the name
        """
        key = name.lower()
        if key in self._strategies:
            return self._strategies[key]
        if key in self._aliases:
            return self._strategies[self._aliases[key]]
        raise RegistryError(
            f"No inline declaration strategy registered for: {name}. "
            f"Available: {', '.join(self.list_strategies())}"
        )

    def list_strategies(self) -> List[str]:
        """Registered primary names."""
        return sorted(self._strategies)


_global_registry: Optional[InlineStrategyRegistry] = None


def get_registry() -> InlineStrategyRegistry:
    """Get the global strategy registry, initializing if needed."""
    global _global_registry
    if _global_registry is None:
        _global_registry = InlineStrategyRegistry()
        _auto_register_strategies()
    return _global_registry


def _auto_register_strategies():
    _global_registry.register("flat", FlatInlineDeclarationResolver, aliases=["flatten"])
    _global_registry.register(
        "structured", StructuredInlineDeclarationResolver, aliases=["nested"]
    )


def get_inline_strategy(name: str) -> Type[InlineDeclarationResolver]:
    """Strategy class registered under ``name`` in the global registry."""
    return get_registry().get(name)


def list_inline_strategies() -> List[str]:
    return get_registry().list_strategies()
