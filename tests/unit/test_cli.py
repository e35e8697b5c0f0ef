"""Unit tests for the rulekit CLI."""

import json
import logging
import sys
import textwrap
from pathlib import Path

import pytest
from typer.testing import CliRunner

from rulekit import __version__
from rulekit.cli import app, load_validator
from rulekit.config import configure_defaults, get_default_config

VALIDATOR_MODULE = "cli_validators"

VALIDATOR_SOURCE = textwrap.dedent('''
    from dataclasses import dataclass

    from rulekit import AbstractValidator


    @dataclass
    class Person:
        name: str | None = None
        age: int | None = None


    class PersonValidator(AbstractValidator):
        instance_type = Person

        def __init__(self):
            super().__init__()
            self.rule_for("name").not_null()
            self.rule_for("age").must(lambda age: age is not None and age >= 0).with_message(
                "Age must be non-negative"
            )
            self.rule_set("strict", lambda: self.rule_for("name").min_length(3))


    person_validator = PersonValidator()
    not_a_validator = 42
''')


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Temporary directory holding an importable validator module."""
    (tmp_path / f"{VALIDATOR_MODULE}.py").write_text(VALIDATOR_SOURCE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, VALIDATOR_MODULE, raising=False)
    monkeypatch.chdir(tmp_path)

    original = get_default_config()
    yield tmp_path
    configure_defaults(original)


def write_document(directory: Path, document, name: str = "person.json") -> Path:
    path = directory / name
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class TestVersion:
    """Test version output."""

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"rulekit version {__version__}" in result.stdout


class TestValidateCommand:
    """Test the validate command."""

    def test_valid_document(self, workspace):
        runner = CliRunner()
        data = write_document(workspace, {"name": "Ann", "age": 5})

        result = runner.invoke(app, ["validate", f"{VALIDATOR_MODULE}:person_validator", str(data)])

        assert result.exit_code == 0
        assert "Valid" in result.stdout

    def test_invalid_document_table(self, workspace):
        runner = CliRunner()
        data = write_document(workspace, {"name": None, "age": -1})

        result = runner.invoke(app, ["validate", f"{VALIDATOR_MODULE}:person_validator", str(data)])

        assert result.exit_code == 1
        assert "Invalid: 2 validation failure(s)" in result.stdout

    def test_invalid_document_json(self, workspace):
        runner = CliRunner()
        data = write_document(workspace, {"name": None, "age": -1})

        result = runner.invoke(app, ["validate", f"{VALIDATOR_MODULE}:person_validator", str(data), "--json"])

        assert result.exit_code == 1
        output = json.loads(result.stdout)
        assert output["is_valid"] is False
        assert [e["property_name"] for e in output["errors"]] == ["name", "age"]
        assert output["errors"][1]["error_message"] == "Age must be non-negative"

    def test_rule_set_option(self, workspace):
        runner = CliRunner()
        data = write_document(workspace, {"name": "Al", "age": -1})

        result = runner.invoke(app, [
            "validate", f"{VALIDATOR_MODULE}:PersonValidator", str(data), "--rule-set", "strict", "--json"
        ])

        assert result.exit_code == 1
        output = json.loads(result.stdout)
        assert output["rule_sets_executed"] == ["strict"]
        assert [e["error_code"] for e in output["errors"]] == ["MinimumLengthValidator"]

    def test_property_option(self, workspace):
        runner = CliRunner()
        data = write_document(workspace, {"name": None, "age": -1})

        result = runner.invoke(app, [
            "validate", f"{VALIDATOR_MODULE}:PersonValidator", str(data), "-p", "age", "--json"
        ])

        assert result.exit_code == 1
        assert [e["property_name"] for e in json.loads(result.stdout)["errors"]] == ["age"]

    def test_throw_option(self, workspace):
        runner = CliRunner()
        data = write_document(workspace, {"name": None, "age": 1})

        result = runner.invoke(app, [
            "validate", f"{VALIDATOR_MODULE}:PersonValidator", str(data), "--throw", "--json"
        ])

        assert result.exit_code == 1
        output = json.loads(result.stdout)
        assert [e["property_name"] for e in output["errors"]] == ["name"]

    def test_async_option(self, workspace):
        runner = CliRunner()
        data = write_document(workspace, {"name": "Ann", "age": 5})

        result = runner.invoke(app, ["validate", f"{VALIDATOR_MODULE}:PersonValidator", str(data), "--async"])

        assert result.exit_code == 0

    def test_config_option(self, workspace):
        runner = CliRunner()
        data = write_document(workspace, {"name": None, "age": 1})
        config = write_document(workspace, {"severity": "warning"}, name="custom.json")

        result = runner.invoke(app, [
            "validate", f"{VALIDATOR_MODULE}:PersonValidator", str(data), "--config", str(config), "--json"
        ])

        assert result.exit_code == 1
        assert json.loads(result.stdout)["errors"][0]["severity"] == "warning"

    def test_log_level_from_config(self, workspace):
        runner = CliRunner()
        data = write_document(workspace, {"name": "Ann", "age": 5})
        config = write_document(workspace, {"logging": {"level": "debug"}}, name="custom.json")
        logger = logging.getLogger("rulekit")
        previous = logger.level

        try:
            result = runner.invoke(app, [
                "validate", f"{VALIDATOR_MODULE}:PersonValidator", str(data), "--config", str(config)
            ])
            assert result.exit_code == 0
            assert logger.level == logging.DEBUG

            runner.invoke(app, [
                "validate", f"{VALIDATOR_MODULE}:PersonValidator", str(data),
                "--config", str(config), "--log-level", "error",
            ])
            assert logger.level == logging.ERROR
        finally:
            logger.setLevel(previous)

    def test_invalid_config(self, workspace):
        runner = CliRunner()
        data = write_document(workspace, {"name": "Ann", "age": 1})
        config = workspace / "broken.json"
        config.write_text("{ invalid json", encoding="utf-8")

        result = runner.invoke(app, [
            "validate", f"{VALIDATOR_MODULE}:PersonValidator", str(data), "--config", str(config)
        ])

        assert result.exit_code == 1
        assert "Invalid JSON" in result.stdout

    def test_wrong_document_shape(self, workspace):
        runner = CliRunner()
        data = write_document(workspace, [1, 2, 3])

        result = runner.invoke(app, ["validate", f"{VALIDATOR_MODULE}:PersonValidator", str(data)])

        assert result.exit_code == 1
        assert "Cannot validate instances of type 'list'" in result.stdout

    def test_missing_document(self, workspace):
        runner = CliRunner()

        result = runner.invoke(app, [
            "validate", f"{VALIDATOR_MODULE}:PersonValidator", str(workspace / "missing.json")
        ])

        assert result.exit_code == 1
        assert "Error:" in result.stdout

    def test_malformed_target(self, workspace):
        runner = CliRunner()
        data = write_document(workspace, {"name": "Ann"})

        result = runner.invoke(app, ["validate", "no_colon_here", str(data)])

        assert result.exit_code == 1
        assert "Target must look like" in result.stdout


class TestDescribeCommand:
    """Test the describe command."""

    def test_describe_table(self, workspace):
        runner = CliRunner()

        result = runner.invoke(app, ["describe", f"{VALIDATOR_MODULE}:person_validator"])

        assert result.exit_code == 0
        assert "PersonValidator" in result.stdout

    def test_describe_json(self, workspace):
        runner = CliRunner()

        result = runner.invoke(app, ["describe", f"{VALIDATOR_MODULE}:person_validator", "--json"])

        assert result.exit_code == 0
        members = json.loads(result.stdout)["members"]
        assert list(members) == ["name", "age"]
        assert members["name"]["rule_sets"] == ["default", "strict"]
        assert members["name"]["validators"] == ["NotNullValidator", "MinimumLengthValidator"]

    def test_describe_unknown_attribute(self, workspace):
        runner = CliRunner()

        result = runner.invoke(app, ["describe", f"{VALIDATOR_MODULE}:missing"])

        assert result.exit_code == 1
        assert "has no attribute 'missing'" in result.stdout


class TestLoadValidator:
    """Test resolving validator targets."""

    def test_instance_and_class(self, workspace):
        assert type(load_validator(f"{VALIDATOR_MODULE}:person_validator")).__name__ == "PersonValidator"
        assert type(load_validator(f"{VALIDATOR_MODULE}:PersonValidator")).__name__ == "PersonValidator"

    def test_not_a_validator(self, workspace):
        with pytest.raises(TypeError):
            load_validator(f"{VALIDATOR_MODULE}:not_a_validator")

    def test_unknown_module(self, workspace):
        with pytest.raises(ImportError):
            load_validator("module_that_does_not_exist:validator")
