"""Tests for the argbind command line interface."""

import json
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from argbind._cli.main import app

runner = CliRunner()

SERVICE_MODULE = '''
from dataclasses import dataclass


@dataclass
class Customer:
    id: int
    name: str


class Customers:
    def find(self, target, id):
        if target is Customer and str(id) == "1":
            return Customer(1, "Ada")
        return None


class Billing:
    def __str__(self):
        return "Billing"

    def charge(self, customer: Customer, amount: float, note: str = "") -> str:
        return f"charged {customer.name} {amount:.2f}"

    def bulk(self, data: dict) -> int:
        return len(data)


billing = Billing()
repository = Customers()
'''


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Create an importable service module and an empty pyproject.toml in a temporary project."""
    (tmp_path / "billing_app.py").write_text(SERVICE_MODULE)
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "billing"\n')
    monkeypatch.chdir(tmp_path)
    monkeypatch.syspath_prepend(str(tmp_path))
    yield tmp_path
    sys.modules.pop("billing_app", None)


def _configure(project: Path, body: str) -> None:
    (project / "pyproject.toml").write_text(f"[tool.argbind]\n{body}\n")


class TestParamsCommand:
    def test_lists_parameters(self, project: Path) -> None:  # noqa: ARG002
        result = runner.invoke(app, ["params", "billing_app:billing", "charge"])

        assert result.exit_code == 0, result.output
        assert "customer" in result.output
        assert "amount" in result.output
        assert "float" in result.output


class TestInvokeCommand:
    def test_invoke_with_configured_repository(self, project: Path) -> None:
        _configure(project, 'resolver = "billing_app:repository"')

        result = runner.invoke(
            app,
            ["invoke", "billing_app:billing", "charge", "--params", '{"customer": 1, "amount": "9.5"}'],
        )

        assert result.exit_code == 0, result.output
        assert "charged Ada 9.50" in result.output

    def test_payload_from_file(self, project: Path) -> None:
        _configure(project, 'resolver = "billing_app:repository"')
        payload = project / "payload.json"
        payload.write_text(json.dumps({"customer": {"id": 2, "name": "Grace"}, "amount": 3}))

        result = runner.invoke(app, ["invoke", "billing_app:billing", "charge", "--input", str(payload)])

        assert result.exit_code == 0, result.output
        assert "charged Grace 3.00" in result.output

    def test_binding_error_exits_with_one(self, project: Path) -> None:  # noqa: ARG002
        result = runner.invoke(
            app,
            ["invoke", "billing_app:billing", "charge", "--params", '{"customer": 1, "amount": 2}'],
        )

        assert result.exit_code == 1
        assert "CannotConvertScalarToEntity" in result.output

    def test_dry_run_shows_bound_arguments(self, project: Path) -> None:  # noqa: ARG002
        result = runner.invoke(
            app,
            [
                "invoke",
                "billing_app:billing",
                "charge",
                "--dry-run",
                "--params",
                '{"customer": {"id": 2, "name": "Grace"}, "amount": "4"}',
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Bound arguments" in result.output
        assert "4.0" in result.output
        assert "charged" not in result.output

    def test_dry_run_reports_errors(self, project: Path) -> None:  # noqa: ARG002
        result = runner.invoke(app, ["invoke", "billing_app:billing", "charge", "--dry-run"])

        assert result.exit_code == 1
        assert "ParameterMissing" in result.output

    def test_data_must_be_array_from_config(self, project: Path) -> None:
        _configure(project, "data_must_be_array = true")

        result = runner.invoke(app, ["invoke", "billing_app:billing", "bulk", "--params", '{"a": 1, "b": 2}'])

        assert result.exit_code == 0, result.output
        assert "2" in result.output

    def test_option_overrides_config(self, project: Path) -> None:
        _configure(project, "data_must_be_array = true")

        result = runner.invoke(
            app,
            ["invoke", "billing_app:billing", "bulk", "--no-data-must-be-array", "--params", '{"a": 1}'],
        )

        assert result.exit_code == 1
        assert "ParameterMissing" in result.output


class TestInvokeCommandInput:
    @pytest.mark.parametrize("payload", ["{not json", "[1, 2]"])
    def test_invalid_payload(self, project: Path, payload: str) -> None:  # noqa: ARG002
        result = runner.invoke(app, ["invoke", "billing_app:billing", "charge", "--params", payload])

        assert result.exit_code == 2

    def test_invalid_config(self, project: Path) -> None:
        _configure(project, "resolver = 123")

        result = runner.invoke(app, ["invoke", "billing_app:billing", "charge", "--params", "{}"])

        assert result.exit_code == 2
        assert "Configuration error" in result.output


class TestUnknownMethod:
    def test_params_command(self, project: Path) -> None:  # noqa: ARG002
        result = runner.invoke(app, ["params", "billing_app:billing", "refund"])

        assert result.exit_code == 1
        assert "has no method" in result.output

    def test_invoke_command(self, project: Path) -> None:  # noqa: ARG002
        result = runner.invoke(app, ["invoke", "billing_app:billing", "refund", "--params", "{}"])

        assert result.exit_code == 1
        assert "has no method" in result.output


@pytest.fixture
def nested_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Run from a subdirectory of a project whose modules are not on sys.path."""
    (tmp_path / "ledger_app.py").write_text(SERVICE_MODULE)
    (tmp_path / "pyproject.toml").write_text('[tool.argbind]\nresolver = "ledger_app:repository"\n')
    workdir = tmp_path / "scripts"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setattr(sys, "path", [*sys.path])
    yield workdir
    sys.modules.pop("ledger_app", None)


class TestProjectRoot:
    def test_modules_are_imported_from_project_root(self, nested_cwd: Path) -> None:  # noqa: ARG002
        result = runner.invoke(
            app,
            ["invoke", "ledger_app:billing", "charge", "--params", '{"customer": 1, "amount": 1}'],
        )

        assert result.exit_code == 0, result.output
        assert "charged Ada 1.00" in result.output
