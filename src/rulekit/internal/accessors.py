"""Member binding: turning a rule's member reference into a cached getter."""

import inspect
import logging
from collections.abc import Mapping
from typing import Any, Callable

logger = logging.getLogger(__name__)


def _read_member(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name)


class PropertyAccessor:
    """Reads one member (or dotted member path) from an instance.

    Mapping instances are read by key, everything else by attribute. A
    ``None`` part along a dotted path yields ``None`` rather than raising.
    """

    def __init__(self, getter: Callable[[Any], Any], member_path: tuple[str, ...] = ()):
        self._getter = getter
        self.member_path = member_path

    @classmethod
    def for_path(cls, path: str) -> "PropertyAccessor":
        parts = tuple(p for p in path.split(".") if p)
        if not parts:
            raise ValueError(f"'{path}' does not specify a valid member")

        def getter(obj: Any) -> Any:
            for part in parts:
                if obj is None:
                    return None
                obj = _read_member(obj, part)
            return obj

        return cls(getter, parts)

    @classmethod
    def for_callable(cls, func: Callable[[Any], Any]) -> "PropertyAccessor":
        if isinstance(func, property):
            return cls(func.fget, (func.fget.__name__,))

        name = getattr(func, "__name__", None)
        member_path = (name,) if name and name != "<lambda>" else ()
        return cls(func, member_path)

    @property
    def member_name(self) -> str | None:
        """Dotted member path, or None when it cannot be inferred."""
        return ".".join(self.member_path) if self.member_path else None

    def get(self, obj: Any) -> Any:
        return self._getter(obj)

    __call__ = get

    def __repr__(self) -> str:
        return f"PropertyAccessor({self.member_name or self._getter!r})"


class AccessorCache:
    """Arena of accessors keyed on the member reference.

    Names and dotted paths are keyed by the string. Plain functions without
    closures or defaults are keyed by their code object, so a lambda declared
    in a validator's ``__init__`` shares one entry across every instance of
    that validator. Other callables (closures, bound methods, partials) are
    not cached.
    """

    def __init__(self):
        self._cache: dict[Any, PropertyAccessor] = {}

    @staticmethod
    def cache_key(member: str | Callable) -> Any:
        if isinstance(member, (str, property)):
            return member
        if (inspect.isfunction(member) and member.__closure__ is None
                and not member.__defaults__ and not member.__kwdefaults__):
            return member.__code__
        return None

    def get_or_add(self, member: str | Callable, enabled: bool = True) -> PropertyAccessor:
        key = self.cache_key(member) if enabled else None
        if key is None:
            return _create_accessor(member)

        accessor = self._cache.get(key)
        if accessor is None:
            accessor = _create_accessor(member)
            self._cache[key] = accessor
        return accessor

    def clear(self) -> None:
        logger.debug(f"Clearing {len(self._cache)} cached accessors")
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)


def _create_accessor(member: str | Callable) -> PropertyAccessor:
    if isinstance(member, str):
        return PropertyAccessor.for_path(member)
    if callable(member) or isinstance(member, property):
        return PropertyAccessor.for_callable(member)
    raise TypeError(f"Cannot bind a rule to {member!r}; expected a member name or a callable")


accessor_cache = AccessorCache()
