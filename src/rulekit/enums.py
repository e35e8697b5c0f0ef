"""Enumerations shared across the rule-evaluation core."""

from enum import Enum


class CascadeMode(str, Enum):
    """Whether remaining checks run after an earlier one has failed."""
    CONTINUE = "continue"
    STOP = "stop"
    # Legacy value. At rule level it behaves like STOP; assigned to a
    # validator's cascade_mode it means class=CONTINUE, rule=STOP.
    STOP_ON_FIRST_FAILURE = "stop_on_first_failure"

    @property
    def stops(self) -> bool:
        return self in (CascadeMode.STOP, CascadeMode.STOP_ON_FIRST_FAILURE)


class ApplyConditionTo(str, Enum):
    """Which validators in a rule chain a when/unless condition applies to."""
    ALL_VALIDATORS = "all_validators"
    CURRENT_VALIDATOR = "current_validator"


class Severity(str, Enum):
    """Severity attached to a validation failure."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
