"""Length, pattern, email, credit card and enum checks."""

import re
from enum import Enum
from typing import Any


class LengthValidator:
    """Checks ``len(value)``; ``max_length`` of -1 means unbounded. None is valid."""

    name = "LengthValidator"

    def __init__(self, min_length: int, max_length: int):
        if max_length != -1 and max_length < min_length:
            raise ValueError("max_length should be larger than min_length.")
        if min_length < 0:
            raise ValueError("min_length must not be negative.")
        self.min_length = min_length
        self.max_length = max_length

    def is_valid(self, context, value) -> bool:
        if value is None:
            return True

        length = len(value) if hasattr(value, "__len__") else len(str(value))
        if length < self.min_length or (self.max_length != -1 and length > self.max_length):
            formatter = context.message_formatter
            formatter.append_argument("MinLength", self.min_length)
            formatter.append_argument("MaxLength", self.max_length)
            formatter.append_argument("TotalLength", length)
            return False
        return True


class MinimumLengthValidator(LengthValidator):
    name = "MinimumLengthValidator"

    def __init__(self, min_length: int):
        super().__init__(min_length, -1)


class MaximumLengthValidator(LengthValidator):
    name = "MaximumLengthValidator"

    def __init__(self, max_length: int):
        super().__init__(0, max_length)


class ExactLengthValidator(LengthValidator):
    name = "ExactLengthValidator"

    def __init__(self, length: int):
        super().__init__(length, length)


class RegularExpressionValidator:
    """Passes when the pattern is found anywhere in the string. None is valid."""

    name = "RegularExpressionValidator"

    def __init__(self, pattern: str | re.Pattern, flags: int = 0):
        if pattern is None:
            raise ValueError("Cannot pass a None pattern")
        self.regex = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, flags)

    @property
    def expression(self) -> str:
        return self.regex.pattern

    def is_valid(self, context, value) -> bool:
        if value is None:
            return True
        if self.regex.search(str(value)) is None:
            context.message_formatter.append_argument("RegularExpression", self.regex.pattern)
            return False
        return True


class EmailValidator:
    """Loose check: exactly one ``@`` that is neither first nor last."""

    name = "EmailValidator"

    def is_valid(self, context, value) -> bool:
        if value is None:
            return True
        if not isinstance(value, str):
            return False
        index = value.find("@")
        return 0 < index < len(value) - 1 and index == value.rfind("@")


class CreditCardValidator:
    """Luhn checksum over the digits; spaces and dashes are ignored."""

    name = "CreditCardValidator"

    def is_valid(self, context, value) -> bool:
        if value is None:
            return True
        number = str(value).replace("-", "").replace(" ", "")
        if not number or not number.isdigit():
            return False

        checksum = 0
        for position, char in enumerate(reversed(number)):
            digit = int(char)
            if position % 2 == 1:
                digit *= 2
                if digit > 9:
                    digit -= 9
            checksum += digit
        return checksum % 10 == 0


class EnumValidator:
    """Value must be a member of ``enum_type`` or one of its values."""

    name = "EnumValidator"

    def __init__(self, enum_type: type[Enum]):
        if not (isinstance(enum_type, type) and issubclass(enum_type, Enum)):
            raise TypeError(f"The type '{enum_type!r}' is not an enum and can't be used with is_in_enum.")
        self.enum_type = enum_type

    def is_valid(self, context, value) -> bool:
        if value is None:
            return True
        if isinstance(value, self.enum_type):
            return True
        try:
            self.enum_type(value)
        except (ValueError, TypeError):
            return False
        return True


class StringEnumValidator:
    """String must name a member of ``enum_type``."""

    name = "EnumValidator"

    def __init__(self, enum_type: type[Enum], case_sensitive: bool = True):
        if not (isinstance(enum_type, type) and issubclass(enum_type, Enum)):
            raise TypeError(f"The type '{enum_type!r}' is not an enum and can't be used with is_enum_name.")
        self.enum_type = enum_type
        self.case_sensitive = case_sensitive

    def is_valid(self, context, value: Any) -> bool:
        if value is None:
            return True
        names = self.enum_type.__members__.keys()
        if self.case_sensitive:
            return value in names
        return str(value).lower() in {n.lower() for n in names}
