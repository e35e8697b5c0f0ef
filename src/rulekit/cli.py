"""CLI interface for rulekit using Typer framework."""

import asyncio
import dataclasses
import importlib
import json as jsonlib
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rulekit import __description__, __version__
from rulekit.config import LogLevel, ValidatorConfig, configure_defaults, load_config
from rulekit.enums import Severity
from rulekit.exceptions import AsyncValidatorInvokedSynchronouslyError, RulekitError, ValidationException
from rulekit.options import ValidationStrategy
from rulekit.results import ValidationResult
from rulekit.validator import AbstractValidator

app = typer.Typer(
    name="rulekit",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich"
)

console = Console()

_LOG_LEVELS = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"rulekit version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", callback=version_callback, help="Show version and exit")
    ] = False,
) -> None:
    """rulekit - Declarative object validation."""


def _setup(config_path: Path | None, log_level: str | None) -> ValidatorConfig:
    """Load configuration, install it as the process default and configure logging.

    The level (``--log-level``, else ``logging.level`` from the config) is set
    on the ``rulekit`` logger only.
    """
    config = load_config(config_path)
    level = LogLevel(log_level.lower()) if log_level else config.logging.level
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("rulekit").setLevel(_LOG_LEVELS[level])
    return configure_defaults(config)


def load_validator(target: str) -> AbstractValidator:
    """Resolve ``package.module:attribute`` to a validator instance.

    The attribute may be a validator instance, a validator class, or any
    zero-argument callable returning a validator.
    """
    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Target must look like 'package.module:attribute', got '{target}'")

    module = importlib.import_module(module_name)
    try:
        obj = getattr(module, attribute)
    except AttributeError:
        raise ValueError(f"Module '{module_name}' has no attribute '{attribute}'") from None

    validator = obj if isinstance(obj, AbstractValidator) else obj()
    if not isinstance(validator, AbstractValidator):
        raise ValueError(f"'{target}' did not produce a validator (got {type(validator).__name__})")
    return validator


def _load_document(validator: AbstractValidator, data_path: Path) -> Any:
    """Read the JSON document and convert it to the validator's instance type when possible."""
    with open(data_path, encoding="utf-8") as f:
        document = jsonlib.load(f)

    instance_type = validator.instance_type
    if isinstance(document, dict) and isinstance(instance_type, type):
        if issubclass(instance_type, BaseModel):
            return instance_type.model_validate(document)
        if dataclasses.is_dataclass(instance_type):
            return instance_type(**document)
    return document


def _build_strategy(rule_sets: list[str] | None, properties: list[str] | None, throw: bool) -> ValidationStrategy:
    strategy = ValidationStrategy()
    if rule_sets:
        strategy.include_rule_sets(*rule_sets)
    if properties:
        strategy.include_properties(*properties)
    if throw:
        strategy.throw_on_failures()
    return strategy


def _print_json(payload: dict) -> None:
    console.print(jsonlib.dumps(payload, indent=2), markup=False, highlight=False, emoji=False, soft_wrap=True)


def _output_result_table(result: ValidationResult) -> None:
    if result.is_valid:
        console.print("[green]Valid:[/green] no validation failures")
        return

    console.print(f"[red]Invalid:[/red] {len(result.errors)} validation failure(s)")
    table = Table()
    table.add_column("Property", style="cyan")
    table.add_column("Severity", style="white")
    table.add_column("Code", style="dim")
    table.add_column("Message", style="white")

    for failure in result.errors:
        severity_color = {Severity.ERROR: "red", Severity.WARNING: "yellow"}.get(failure.severity, "green")
        table.add_row(
            escape(failure.property_name or "<model>"),
            f"[{severity_color}]{failure.severity.value.upper()}[/{severity_color}]",
            failure.error_code or "",
            escape(failure.error_message),
        )
    console.print(table)


@app.command()
def validate(
    target: Annotated[
        str,
        typer.Argument(help="Validator to run, as 'package.module:attribute'")
    ],
    data: Annotated[
        Path,
        typer.Argument(help="JSON document to validate")
    ],
    rule_set: Annotated[
        list[str] | None,
        typer.Option("--rule-set", "-r", help="Rule set to execute (repeatable; 'default' and '*' supported)")
    ] = None,
    prop: Annotated[
        list[str] | None,
        typer.Option("--property", "-p", help="Only validate this property path (repeatable)")
    ] = None,
    throw: Annotated[
        bool,
        typer.Option("--throw", help="Raise on failures instead of returning a result")
    ] = False,
    json: Annotated[
        bool,
        typer.Option("--json", help="Output the result as JSON")
    ] = False,
    use_async: Annotated[
        bool,
        typer.Option("--async", help="Run the validator asynchronously")
    ] = False,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Configuration file path (default: search for .rulekit.json)")
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Log level: error, warn, info, debug")
    ] = None,
) -> None:
    """Validate a JSON document with a validator."""
    try:
        _setup(config, log_level)
        validator = load_validator(target)
        instance = _load_document(validator, data)
        strategy = _build_strategy(rule_set, prop, throw)

        if use_async:
            result = asyncio.run(validator.validate_async(instance, strategy))
        else:
            result = validator.validate(instance, strategy)
    except ValidationException as e:
        if json:
            _print_json(ValidationResult(errors=e.errors).to_dict())
        else:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except AsyncValidatorInvokedSynchronouslyError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        console.print("[dim]Re-run with --async[/dim]")
        raise typer.Exit(1)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except (ValueError, TypeError, ImportError, RulekitError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if json:
        _print_json(result.to_dict())
    else:
        _output_result_table(result)

    raise typer.Exit(0 if result.is_valid else 1)


@app.command()
def describe(
    target: Annotated[
        str,
        typer.Argument(help="Validator to describe, as 'package.module:attribute'")
    ],
    json: Annotated[
        bool,
        typer.Option("--json", help="Output the description as JSON")
    ] = False,
) -> None:
    """Show the rules a validator declares, by property."""
    try:
        validator = load_validator(target)
    except (ValueError, TypeError, ImportError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    description = validator.create_descriptor().to_dict()
    if json:
        _print_json(description)
        return

    table = Table(title=type(validator).__name__)
    table.add_column("Property", style="cyan")
    table.add_column("Display Name", style="white")
    table.add_column("Checks", style="white")
    table.add_column("Rule Sets", style="dim")

    for name, member in description["members"].items():
        label = escape(f"{name or '<model>'}[]" if member["collection"] else (name or "<model>"))
        table.add_row(
            label,
            member["display_name"] or "",
            ", ".join(member["validators"]),
            ", ".join(member["rule_sets"]),
        )
    console.print(table)


if __name__ == "__main__":
    app()
