"""Built-in property validators."""

from .base import AsyncPropertyValidator, ObjectValidator, PropertyValidator
from .child import ChildRulesAdaptor, ChildValidatorAdaptor, PolymorphicValidator
from .comparison import (
    EqualValidator,
    ExclusiveBetweenValidator,
    GreaterThanOrEqualValidator,
    GreaterThanValidator,
    InclusiveBetweenValidator,
    LessThanOrEqualValidator,
    LessThanValidator,
    NotEqualValidator,
    ScalePrecisionValidator,
)
from .core import (
    AsyncCustomValidator,
    AsyncPredicateValidator,
    CustomValidator,
    EmptyValidator,
    NotEmptyValidator,
    NotNullValidator,
    NullValidator,
    PredicateValidator,
)
from .strings import (
    CreditCardValidator,
    EmailValidator,
    EnumValidator,
    ExactLengthValidator,
    LengthValidator,
    MaximumLengthValidator,
    MinimumLengthValidator,
    RegularExpressionValidator,
    StringEnumValidator,
)

__all__ = [
    "PropertyValidator",
    "AsyncPropertyValidator",
    "ObjectValidator",
    "ChildRulesAdaptor",
    "ChildValidatorAdaptor",
    "PolymorphicValidator",
    "EqualValidator",
    "NotEqualValidator",
    "LessThanValidator",
    "LessThanOrEqualValidator",
    "GreaterThanValidator",
    "GreaterThanOrEqualValidator",
    "InclusiveBetweenValidator",
    "ExclusiveBetweenValidator",
    "ScalePrecisionValidator",
    "NotNullValidator",
    "NullValidator",
    "NotEmptyValidator",
    "EmptyValidator",
    "PredicateValidator",
    "AsyncPredicateValidator",
    "CustomValidator",
    "AsyncCustomValidator",
    "LengthValidator",
    "MinimumLengthValidator",
    "MaximumLengthValidator",
    "ExactLengthValidator",
    "RegularExpressionValidator",
    "EmailValidator",
    "CreditCardValidator",
    "EnumValidator",
    "StringEnumValidator"
]
