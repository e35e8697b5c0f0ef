"""Looking up validators by the type of object they validate."""

import logging
from typing import Any, Callable, Protocol, runtime_checkable

from .validators.base import ObjectValidator

logger = logging.getLogger(__name__)


@runtime_checkable
class ValidatorFactory(Protocol):
    """Supplies the validator for a type, or None when there is none."""

    def get_validator(self, type_: type) -> ObjectValidator | None:
        ...


class ServiceValidatorFactory:
    """Registry of validators keyed by type.

    Registrations are either validator instances (shared) or zero-argument
    callables such as a validator class (a fresh validator per lookup).
    Lookups walk the type's MRO, so a validator registered for a base class
    also serves its subclasses unless a closer registration exists.
    """

    def __init__(self):
        self._registry: dict[type, ObjectValidator | Callable[[], ObjectValidator]] = {}

    def register(self, type_: type, validator: ObjectValidator | Callable[[], ObjectValidator]) -> None:
        if not isinstance(type_, type):
            raise TypeError(f"Expected a type to register a validator for, got {type_!r}")
        if validator is None:
            raise ValueError(f"Cannot register None as the validator for {type_.__name__}")
        self._registry[type_] = validator
        logger.debug(f"Registered validator for {type_.__name__}")

    def get_validator(self, type_: type) -> ObjectValidator | None:
        for klass in getattr(type_, "__mro__", (type_,)):
            entry = self._registry.get(klass)
            if entry is None:
                continue
            if isinstance(entry, ObjectValidator) and not isinstance(entry, type):
                return entry
            return entry()
        return None

    def get_validator_for(self, instance: Any) -> ObjectValidator | None:
        return self.get_validator(type(instance))

    def __contains__(self, type_: type) -> bool:
        return any(klass in self._registry for klass in getattr(type_, "__mro__", (type_,)))
