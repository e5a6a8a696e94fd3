"""Central registry for column aggregate functions."""

from __future__ import annotations

from typing import Any, Callable


_AGGREGATE_FUNCTIONS: dict[str, Callable[..., Any]] = {}


def register_aggregate(name: str) -> Callable:
    """Decorator that registers an aggregate function by name.

    Args:
        name: The lookup name for this function (uppercase).

    Returns:
        The original function, unmodified.
    """

    def decorator(fn: Callable) -> Callable:
        _AGGREGATE_FUNCTIONS[name] = fn
        return fn

    return decorator


def get_aggregate_fn(name: str) -> Callable:
    """Look up a registered aggregate function.

    Args:
        name: The function name.

    Returns:
        The callable.

    Raises:
        KeyError: If no function is registered under *name*.
    """
    if name not in _AGGREGATE_FUNCTIONS:
        raise KeyError(f"Unknown aggregate function: {name!r}")
    return _AGGREGATE_FUNCTIONS[name]


def list_aggregates() -> list[str]:
    """Return the names of all registered aggregate functions, sorted."""
    return sorted(_AGGREGATE_FUNCTIONS)
