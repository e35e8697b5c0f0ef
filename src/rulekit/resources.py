"""Message template lookup.

The core only asks for ``get_string(key)``. Translated catalogs plug in as
``LanguageSource`` objects; when none of them knows a key, the built-in
English templates below are used.
"""

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

DEFAULT_CULTURE = "en"

ENGLISH_MESSAGES: dict[str, str] = {
    "EmailValidator": "'{PropertyName}' is not a valid email address.",
    "GreaterThanOrEqualValidator": "'{PropertyName}' must be greater than or equal to '{ComparisonValue}'.",
    "GreaterThanValidator": "'{PropertyName}' must be greater than '{ComparisonValue}'.",
    "LengthValidator": "'{PropertyName}' must be between {MinLength} and {MaxLength} characters. You entered {TotalLength} characters.",
    "MinimumLengthValidator": "The length of '{PropertyName}' must be at least {MinLength} characters. You entered {TotalLength} characters.",
    "MaximumLengthValidator": "The length of '{PropertyName}' must be {MaxLength} characters or fewer. You entered {TotalLength} characters.",
    "LessThanOrEqualValidator": "'{PropertyName}' must be less than or equal to '{ComparisonValue}'.",
    "LessThanValidator": "'{PropertyName}' must be less than '{ComparisonValue}'.",
    "NotEmptyValidator": "'{PropertyName}' must not be empty.",
    "NotEqualValidator": "'{PropertyName}' must not be equal to '{ComparisonValue}'.",
    "NotNullValidator": "'{PropertyName}' must not be empty.",
    "PredicateValidator": "The specified condition was not met for '{PropertyName}'.",
    "AsyncPredicateValidator": "The specified condition was not met for '{PropertyName}'.",
    "RegularExpressionValidator": "'{PropertyName}' is not in the correct format.",
    "EqualValidator": "'{PropertyName}' must be equal to '{ComparisonValue}'.",
    "ExactLengthValidator": "'{PropertyName}' must be {MaxLength} characters in length. You entered {TotalLength} characters.",
    "InclusiveBetweenValidator": "'{PropertyName}' must be between {From} and {To}. You entered {PropertyValue}.",
    "ExclusiveBetweenValidator": "'{PropertyName}' must be between {From} and {To} (exclusive). You entered {PropertyValue}.",
    "CreditCardValidator": "'{PropertyName}' is not a valid credit card number.",
    "ScalePrecisionValidator": "'{PropertyName}' must not be more than {ExpectedPrecision} digits in total, with allowance for {ExpectedScale} decimals. {Digits} digits and {ActualScale} decimals were found.",
    "EmptyValidator": "'{PropertyName}' must be empty.",
    "NullValidator": "'{PropertyName}' must be empty.",
    "EnumValidator": "'{PropertyName}' has a range of values which does not include '{PropertyValue}'.",
    "Length_Simple": "'{PropertyName}' must be between {MinLength} and {MaxLength} characters.",
    "MinimumLength_Simple": "The length of '{PropertyName}' must be at least {MinLength} characters.",
    "MaximumLength_Simple": "The length of '{PropertyName}' must be {MaxLength} characters or fewer.",
    "ExactLength_Simple": "'{PropertyName}' must be {MaxLength} characters in length.",
    "InclusiveBetween_Simple": "'{PropertyName}' must be between {From} and {To}.",
}


@runtime_checkable
class LanguageSource(Protocol):
    """A message catalog, e.g. one translated language."""

    def get_string(self, key: str, culture: str | None = None) -> str | None:
        ...


class LanguageManager:
    """Resolves message templates by key and culture."""

    def __init__(self, culture: str | None = None, enabled: bool = True):
        self.culture = culture
        self.enabled = enabled
        self._sources: list[LanguageSource] = []
        self._overrides: dict[tuple[str, str], str] = {}

    def add_source(self, source: LanguageSource) -> None:
        """Register a catalog; later sources take precedence."""
        if not isinstance(source, LanguageSource):
            raise TypeError(f"{type(source).__name__} does not provide get_string(key, culture)")
        self._sources.insert(0, source)

    def add_translation(self, culture: str, key: str, message: str) -> None:
        if not culture or not key:
            raise ValueError("culture and key must be non-empty")
        self._overrides[(culture.lower(), key)] = message

    def clear(self) -> None:
        self._sources.clear()
        self._overrides.clear()

    def get_string(self, key: str, culture: str | None = None) -> str | None:
        """Return the template for ``key`` or None when nothing is known for it."""
        if not key:
            return None

        if self.enabled:
            culture = (culture or self.culture or DEFAULT_CULTURE).lower()
            for candidate in _culture_chain(culture):
                message = self._overrides.get((candidate, key))
                if message is not None:
                    return message
                for source in self._sources:
                    message = source.get_string(key, candidate)
                    if message is not None:
                        return message
        else:
            # Disabled catalogs still honour explicit English overrides.
            message = self._overrides.get((DEFAULT_CULTURE, key))
            if message is not None:
                return message

        return ENGLISH_MESSAGES.get(key)


def _culture_chain(culture: str) -> list[str]:
    """``fr-ca`` -> ``["fr-ca", "fr"]``."""
    chain = [culture]
    if "-" in culture:
        chain.append(culture.split("-", 1)[0])
    return chain


global_language_manager = LanguageManager()
