"""Presence, emptiness, predicate and custom checks."""

import inspect
from collections.abc import Iterable, Sized
from typing import Any, Awaitable, Callable

_UNSET = object()


def is_empty_value(value: Any, default: Any = _UNSET) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, Sized):
        return len(value) == 0
    if isinstance(value, Iterable) and not isinstance(value, (bytes, bytearray)):
        # Peek without consuming more than one element.
        for _ in value:
            return False
        return True
    if default is not _UNSET:
        return value == default
    return False


class NotNullValidator:
    name = "NotNullValidator"

    def is_valid(self, context, value) -> bool:
        return value is not None


class NullValidator:
    name = "NullValidator"

    def is_valid(self, context, value) -> bool:
        return value is None


class NotEmptyValidator:
    """Fails for None, blank strings and empty collections.

    Pass ``default`` to also treat a type's default value (e.g. ``0``) as empty.
    """

    name = "NotEmptyValidator"

    def __init__(self, default: Any = _UNSET):
        self.default = default

    def is_valid(self, context, value) -> bool:
        return not is_empty_value(value, self.default)


class EmptyValidator:
    name = "EmptyValidator"

    def __init__(self, default: Any = _UNSET):
        self.default = default

    def is_valid(self, context, value) -> bool:
        return is_empty_value(value, self.default)


class PredicateValidator:
    """Runs ``predicate(instance, value, context)``."""

    name = "PredicateValidator"

    def __init__(self, predicate: Callable[[Any, Any, Any], bool]):
        if predicate is None:
            raise ValueError("Cannot pass a None predicate to PredicateValidator")
        if inspect.iscoroutinefunction(predicate):
            raise TypeError("Use must_async() for coroutine functions")
        self.predicate = predicate

    def is_valid(self, context, value) -> bool:
        return bool(self.predicate(context.instance_to_validate, value, context))


class AsyncPredicateValidator:
    """Awaits ``predicate(instance, value, context)``. Async only."""

    name = "AsyncPredicateValidator"

    def __init__(self, predicate: Callable[[Any, Any, Any], Awaitable[bool]]):
        if predicate is None:
            raise ValueError("Cannot pass a None predicate to AsyncPredicateValidator")
        self.predicate = predicate

    async def is_valid_async(self, context, value) -> bool:
        return bool(await self.predicate(context.instance_to_validate, value, context))


class CustomValidator:
    """Runs ``action(value, context)``, which records failures via ``context.add_failure``."""

    name = "CustomValidator"

    def __init__(self, action: Callable[[Any, Any], None]):
        if action is None:
            raise ValueError("Cannot pass a None action to CustomValidator")
        if inspect.iscoroutinefunction(action):
            raise TypeError("Use custom_async() for coroutine functions")
        self.action = action

    def is_valid(self, context, value) -> bool:
        self.action(value, context)
        return True


class AsyncCustomValidator:
    name = "AsyncCustomValidator"

    def __init__(self, action: Callable[[Any, Any], Awaitable[None]]):
        if action is None:
            raise ValueError("Cannot pass a None action to AsyncCustomValidator")
        self.action = action

    async def is_valid_async(self, context, value) -> bool:
        await self.action(value, context)
        return True
