"""rulekit - Declarative object validation.

Validators declare rules (a member of the validated object plus an ordered
list of checks) and evaluate them against instances, producing a structured
list of failures. Nested objects, collections, rule sets, conditions and
asynchronous checks are supported.
"""

__version__ = "0.1.0"
__author__ = "rulekit contributors"
__description__ = "Declarative object validation with fluent rules"

from rulekit.config import ValidatorConfig, configure_defaults, get_default_config, load_config
from rulekit.context import ValidationContext
from rulekit.enums import ApplyConditionTo, CascadeMode, Severity
from rulekit.exceptions import AsyncValidatorInvokedSynchronouslyError, RulekitError, ValidationException
from rulekit.options import ValidationStrategy
from rulekit.results import ValidationFailure, ValidationResult
from rulekit.validator import AbstractValidator, InlineValidator

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "AbstractValidator",
    "ApplyConditionTo",
    "AsyncValidatorInvokedSynchronouslyError",
    "CascadeMode",
    "InlineValidator",
    "RulekitError",
    "Severity",
    "ValidationContext",
    "ValidationException",
    "ValidationFailure",
    "ValidationResult",
    "ValidationStrategy",
    "ValidatorConfig",
    "configure_defaults",
    "get_default_config",
    "load_config",
]
