"""Equality, ordering, range and precision checks."""

import operator
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from ..internal.extensions import split_pascal_case


class _ComparisonValidator:
    """Compares the value against a constant or another member of the instance.

    Ordering comparisons treat ``None`` as valid, leaving presence to
    ``not_null``.
    """

    name = "ComparisonValidator"
    compare: Callable[[Any, Any], bool] = staticmethod(operator.eq)
    none_is_valid = True

    def __init__(self, value_to_compare: Any = None, member: Callable[[Any], Any] | None = None,
                 member_display_name: str | None = None):
        self.value_to_compare = value_to_compare
        self.member = member
        self.member_display_name = member_display_name

    def _comparison_value(self, context) -> Any:
        if self.member is not None:
            return self.member(context.instance_to_validate)
        return self.value_to_compare

    def is_valid(self, context, value) -> bool:
        if value is None and self.none_is_valid:
            return True

        comparison_value = self._comparison_value(context)
        try:
            valid = self.compare(value, comparison_value)
        except TypeError:
            valid = False

        if not valid:
            context.message_formatter.append_argument("ComparisonValue", comparison_value)
            context.message_formatter.append_argument(
                "ComparisonProperty", split_pascal_case(self.member_display_name) or ""
            )
        return valid


class EqualValidator(_ComparisonValidator):
    name = "EqualValidator"
    compare = staticmethod(operator.eq)
    none_is_valid = False


class NotEqualValidator(_ComparisonValidator):
    name = "NotEqualValidator"
    compare = staticmethod(operator.ne)
    none_is_valid = False


class LessThanValidator(_ComparisonValidator):
    name = "LessThanValidator"
    compare = staticmethod(operator.lt)


class LessThanOrEqualValidator(_ComparisonValidator):
    name = "LessThanOrEqualValidator"
    compare = staticmethod(operator.le)


class GreaterThanValidator(_ComparisonValidator):
    name = "GreaterThanValidator"
    compare = staticmethod(operator.gt)


class GreaterThanOrEqualValidator(_ComparisonValidator):
    name = "GreaterThanOrEqualValidator"
    compare = staticmethod(operator.ge)


class _RangeValidator:
    """Checks ``from_value`` against the value and the value against ``to_value``."""

    name = "RangeValidator"
    compare: Callable[[Any, Any], bool] = staticmethod(operator.le)

    def __init__(self, from_value: Any, to_value: Any):
        if to_value < from_value:
            raise ValueError(f"to_value ({to_value}) must be greater than or equal to from_value ({from_value})")
        self.from_value = from_value
        self.to_value = to_value

    def is_valid(self, context, value) -> bool:
        if value is None:
            return True
        try:
            valid = self.compare(self.from_value, value) and self.compare(value, self.to_value)
        except TypeError:
            valid = False
        if not valid:
            context.message_formatter.append_argument("From", self.from_value)
            context.message_formatter.append_argument("To", self.to_value)
        return valid


class InclusiveBetweenValidator(_RangeValidator):
    name = "InclusiveBetweenValidator"
    compare = staticmethod(operator.le)


class ExclusiveBetweenValidator(_RangeValidator):
    name = "ExclusiveBetweenValidator"
    compare = staticmethod(operator.lt)


class ScalePrecisionValidator:
    """Limits total digits (precision) and digits after the point (scale)."""

    name = "ScalePrecisionValidator"

    def __init__(self, precision: int, scale: int, ignore_trailing_zeros: bool = False):
        if scale < 0:
            raise ValueError(f"Scale must be a positive integer. [value:{scale}].")
        if precision < 0:
            raise ValueError(f"Precision must be a positive integer. [value:{precision}].")
        if precision < scale:
            raise ValueError(f"Scale must be less than precision. [scale:{scale}, precision:{precision}].")
        self.precision = precision
        self.scale = scale
        self.ignore_trailing_zeros = ignore_trailing_zeros

    def is_valid(self, context, value) -> bool:
        if value is None:
            return True
        try:
            number = value if isinstance(value, Decimal) else Decimal(str(value))
        except (InvalidOperation, ValueError):
            return False

        if self.ignore_trailing_zeros:
            number = number.normalize()
        sign, digits, exponent = number.as_tuple()
        actual_scale = max(-exponent, 0) if isinstance(exponent, int) else 0
        integer_digits = max(len(digits) + exponent, 0) if isinstance(exponent, int) else len(digits)
        if integer_digits == 0 and actual_scale == 0:
            integer_digits = 1

        total_digits = integer_digits + actual_scale
        expected_integer_digits = self.precision - self.scale
        valid = actual_scale <= self.scale and integer_digits <= expected_integer_digits

        if not valid:
            formatter = context.message_formatter
            formatter.append_argument("ExpectedPrecision", self.precision)
            formatter.append_argument("ExpectedScale", self.scale)
            formatter.append_argument("Digits", total_digits)
            formatter.append_argument("ActualScale", actual_scale)
        return valid
