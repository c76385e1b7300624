"""Strategy registry mapping configuration names to constructors.

Strategies register themselves with a decorator when their module is
imported, so experiment configurations can refer to them by name. Names are
resolved once, when a configuration is turned into an experiment.

Example:
    ```python
    @register_strategy(StrategyKind.PROCESSOR, "zscore")
    class ZScoreNormalization:
        ...

    processor = create_strategy(StrategyKind.PROCESSOR, "zscore", {})
    ```
"""

from __future__ import annotations

import enum
from typing import Any, Callable, TypeVar

from sdp_experiments.core.errors import ConfigurationError

T = TypeVar("T", bound=Callable[..., Any])


class StrategyKind(enum.StrEnum):
    """Roles a registered strategy can play in an experiment."""

    LOADER = "loader"
    VERSION_FILTER = "version_filter"
    TRAINING_POLICY = "training_policy"
    SETWISE_PROCESSOR = "setwise_processor"
    SETWISE_SELECTOR = "setwise_selector"
    SETWISE_TRAINER = "setwise_trainer"
    SETWISE_TESTAWARE_TRAINER = "setwise_testaware_trainer"
    PROCESSOR = "processor"
    POINTWISE_SELECTOR = "pointwise_selector"
    TRAINER = "trainer"
    TESTAWARE_TRAINER = "testaware_trainer"
    EVALUATOR = "evaluator"
    RESULT_STORE = "result_store"


# Global registry mapping strategy kinds to name -> constructor tables
_STRATEGY_REGISTRY: dict[StrategyKind, dict[str, Callable[..., Any]]] = {
    kind: {} for kind in StrategyKind
}


def register_strategy(kind: StrategyKind, name: str) -> Callable[[T], T]:
    """Decorator to register a strategy constructor under a name.

    The same class may be registered for several kinds by stacking the
    decorator.

    Args:
        kind: The role of the strategy.
        name: The name used in experiment configurations.

    Returns:
        The decorator function.

    Raises:
        ValueError: If the name is already registered for the kind.
    """

    def decorator(constructor: T) -> T:
        table = _STRATEGY_REGISTRY[kind]
        if name in table:
            raise ValueError(
                f"Strategy already registered as {kind.value} '{name}': "
                f"{getattr(table[name], '__name__', table[name])}"
            )
        table[name] = constructor
        return constructor

    return decorator


def get_strategy(kind: StrategyKind, name: str) -> Callable[..., Any]:
    """Get the constructor registered under a name.

    Args:
        kind: The role of the strategy.
        name: The registered name.

    Returns:
        The registered constructor (a class or a plain function).

    Raises:
        ConfigurationError: If nothing is registered under the name.
    """
    table = _STRATEGY_REGISTRY[kind]
    try:
        return table[name]
    except KeyError:
        available = ", ".join(sorted(table)) or "none"
        raise ConfigurationError(
            f"Unknown {kind.value} '{name}'. Available: {available}"
        ) from None


def create_strategy(kind: StrategyKind, name: str, params: dict[str, Any] | None = None) -> Any:
    """Instantiate a registered strategy with keyword parameters.

    Raises:
        ConfigurationError: If the name is unknown or the parameters are rejected.
    """
    constructor = get_strategy(kind, name)
    try:
        return constructor(**(params or {}))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid parameters for {kind.value} '{name}': {exc}") from exc


def get_strategy_registry() -> dict[StrategyKind, dict[str, Callable[..., Any]]]:
    """Get a copy of the current registry."""
    return {kind: table.copy() for kind, table in _STRATEGY_REGISTRY.items()}


__all__ = [
    "StrategyKind",
    "register_strategy",
    "get_strategy",
    "create_strategy",
    "get_strategy_registry",
]
