"""Small helpers shared by the builder and the rules."""

import inspect
import re
from typing import Any, Callable

_PASCAL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def split_pascal_case(name: str | None) -> str | None:
    """Turn a member name into a display name: ``first_name`` -> ``First Name``.

    Dotted paths keep every segment: ``address.zip_code`` -> ``Address Zip Code``.
    """
    if not name:
        return name
    words = []
    for part in name.replace("_", " ").replace(".", " ").split():
        words.extend(_PASCAL_BOUNDARY.split(part))
    return " ".join(w[:1].upper() + w[1:] for w in words if w)


def positional_arity(func: Callable, maximum: int) -> int:
    """Number of positional arguments ``func`` accepts, capped at ``maximum``."""
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return 1

    count = 0
    for param in signature.parameters.values():
        if param.kind == param.VAR_POSITIONAL:
            return maximum
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            count += 1
    return min(count, maximum)


def value_predicate(func: Callable[..., Any]) -> Callable[[Any, Any, Any], Any]:
    """Normalise a ``must``-style callback to ``(instance, value, context)``.

    Accepted shapes are ``(value)``, ``(instance, value)`` and
    ``(instance, value, context)``.
    """
    if func is None:
        raise ValueError("Cannot pass None as a predicate")
    arity = positional_arity(func, 3)
    if arity <= 1:
        return lambda instance, value, context: func(value)
    if arity == 2:
        return lambda instance, value, context: func(instance, value)
    return func


def value_transformer(func: Callable[..., Any]) -> Callable[[Any, Any], Any]:
    """Normalise a ``transform`` callback, given ``(value)`` or ``(instance, value)``."""
    if func is None:
        raise ValueError("Cannot pass None as a transformer")
    if positional_arity(func, 2) <= 1:
        return lambda instance, value: func(value)
    return func


def instance_predicate(func: Callable[..., Any]) -> Callable[[Any, Any], Any]:
    """Normalise a condition to ``(instance, context)``; ``(instance)`` is also accepted."""
    if func is None:
        raise ValueError("Cannot pass None as a condition")
    if positional_arity(func, 2) <= 1:
        return lambda instance, context: func(instance)
    return func
