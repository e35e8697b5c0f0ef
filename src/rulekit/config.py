"""Configuration management for rulekit using Pydantic models.

The process-wide defaults are set once at startup with ``configure_defaults``;
every validator may also be handed its own ``ValidatorConfig`` explicitly.
"""

import json
import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import CascadeMode, Severity

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".rulekit.json"


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


class LanguageConfig(BaseModel):
    """Message catalog configuration section."""
    enabled: bool = True
    culture: str | None = None

    model_config = ConfigDict(frozen=True)


class LoggingConfig(BaseModel):
    """Logging configuration section.

    ``level`` is applied by the ``rulekit`` CLI to the ``rulekit`` logger;
    ``--log-level`` overrides it. Library code only emits DEBUG records
    (rule selection, skipped branches).
    """
    level: LogLevel = LogLevel.WARN

    model_config = ConfigDict(frozen=True)


class ValidatorConfig(BaseModel):
    """Complete rulekit configuration model."""
    default_class_level_cascade_mode: CascadeMode = Field(
        alias="defaultClassLevelCascadeMode", default=CascadeMode.CONTINUE
    )
    default_rule_level_cascade_mode: CascadeMode = Field(
        alias="defaultRuleLevelCascadeMode", default=CascadeMode.CONTINUE
    )
    severity: Severity = Severity.ERROR
    property_chain_separator: str = Field(alias="propertyChainSeparator", default=".")
    disable_accessor_cache: bool = Field(alias="disableAccessorCache", default=False)
    language: LanguageConfig = Field(default_factory=LanguageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("property_chain_separator")
    @classmethod
    def validate_separator(cls, v):
        if len(v) != 1 or v in "[]":
            raise ValueError(f"property_chain_separator must be a single character other than brackets, got: {v!r}")
        return v

    @field_validator("default_class_level_cascade_mode")
    @classmethod
    def validate_class_level_cascade(cls, v):
        # The legacy value has no meaning between rules.
        if v == CascadeMode.STOP_ON_FIRST_FAILURE:
            return CascadeMode.STOP
        return v

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")


_default_config = ValidatorConfig()


def get_default_config() -> ValidatorConfig:
    """Return the process-wide default configuration."""
    return _default_config


def configure_defaults(config: ValidatorConfig) -> ValidatorConfig:
    """Install ``config`` as the process-wide default.

    Intended to be called once during application startup. Validators that
    were given an explicit config are unaffected.
    """
    global _default_config
    if not isinstance(config, ValidatorConfig):
        raise TypeError(f"Expected ValidatorConfig, got {type(config).__name__}")
    _default_config = config
    logger.debug(f"Installed default validator config: {config.model_dump()}")
    return config


def load_config(config_path: str | Path | None = None) -> ValidatorConfig:
    """Read a ``.rulekit.json`` file into a ``ValidatorConfig``.

    Without ``config_path`` the file is looked up with ``find_config_file``.
    A path that does not exist gives the built-in defaults, so the CLI runs
    the same with or without a config file. The result is not installed as
    the process default; call ``configure_defaults`` for that.

    Raises:
        ValueError: the file is not JSON, or holds unknown keys or values
            ``ValidatorConfig`` rejects (e.g. a bracket as separator)
    """
    if config_path is None:
        config_path = find_config_file()
    else:
        config_path = Path(config_path)

    if config_path and config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = json.load(f)
            return ValidatorConfig(**config_data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {config_path}: {e}")
        except Exception as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")
    else:
        return create_default_config()


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Nearest ``.rulekit.json`` in ``start_dir`` (default: the working directory) or its parents."""
    if start_dir is None:
        start_dir = Path.cwd()

    current = Path(start_dir).resolve()

    while True:
        config_file = current / CONFIG_FILE_NAME
        if config_file.exists():
            return config_file

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def create_default_config() -> ValidatorConfig:
    """Configuration used when no file is found: CONTINUE cascades, ERROR severity, ``.`` separator."""
    return ValidatorConfig()
