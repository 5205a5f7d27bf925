"""Tests for the keyhub-seed CLI."""

import pytest
from click.testing import CliRunner

from keyhub_seed.cli import PREREQUISITES, cli
from keyhub_seed.config import CONFIG_FILENAME, Config


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def invoke(runner, store, config):
    """Invoke the CLI against the in-memory store."""

    def run(*args, **kwargs):
        return runner.invoke(cli, list(args), obj={"store": store, "config": config}, **kwargs)

    return run


class TestSeedCommands:
    """Tests for the single-seeder commands."""

    def test_admin(self, invoke, store, config) -> None:
        result = invoke("admin")

        assert result.exit_code == 0, result.output
        assert "AdminSeeder" in result.output
        assert store.exists("users", {"email": config.admin.email})

    def test_license_runs_prerequisites(self, invoke, store) -> None:
        result = invoke("license", "--count", "2")

        assert result.exit_code == 0, result.output
        for name in PREREQUISITES["LicenseSeeder"]:
            assert name in result.output
        assert store.count("licenses") == 6 + 2

    def test_no_presets(self, invoke, store) -> None:
        result = invoke("license", "--count", "2", "--no-presets")

        assert result.exit_code == 0, result.output
        assert store.count("licenses") == 2

    def test_roles_runs_permissions_first(self, invoke, store) -> None:
        result = invoke("roles")

        assert result.exit_code == 0, result.output
        assert store.count("permissions") > 0
        assert store.count("roles") > 0

    def test_access_log_without_licenses(self, invoke, store) -> None:
        result = invoke("access-log", "--logs-per-license", "2")

        assert result.exit_code == 0, result.output
        assert store.count("access_logs") == 0

    def test_failure_exit_code(self, invoke, store) -> None:
        store.online = False

        result = invoke("admin")

        assert result.exit_code == 1
        assert "FAILED" in result.output


class TestFullCommand:
    """Tests for the full command."""

    def test_production_is_minimal(self, invoke, store) -> None:
        result = invoke("full", "--env", "production")

        assert result.exit_code == 0, result.output
        assert store.count("users") == 1
        assert store.count("licenses") == 0

    def test_quick(self, invoke, store) -> None:
        result = invoke("full", "--quick", "--multiplier", "0.2")

        assert result.exit_code == 0, result.output
        assert store.count("users") == 1 + 5 + 3

    def test_all_seeders(self, invoke, store) -> None:
        result = invoke(
            "full", "--count", "2", "--logs-per-license", "1", "--skip-validation"
        )

        assert result.exit_code == 0, result.output
        assert "AccessLogSeeder" in result.output
        assert store.count("access_logs") > 0


class TestCleanCommand:
    """Tests for the clean command."""

    def test_cancelled(self, invoke, store) -> None:
        invoke("admin")

        result = invoke("clean", "--no-preserve-admin", input="n\n")

        assert "Cancelled" in result.output
        assert store.count("users") == 1

    def test_preserves_admin_by_default(self, invoke, store, config) -> None:
        invoke("user", "--count", "2")

        result = invoke("clean", "--yes")

        assert result.exit_code == 0, result.output
        assert [u["email"] for u in store.get_data("users")] == [config.admin.email]

    def test_everything(self, invoke, store) -> None:
        invoke("user", "--count", "2")

        result = invoke("clean", "--yes", "--no-preserve-admin")

        assert result.exit_code == 0, result.output
        assert store.count("users") == 0
        assert store.count("organizations") == 0


class TestReportingCommands:
    """Tests for stats and validate."""

    def test_stats(self, invoke) -> None:
        invoke("admin")

        result = invoke("stats")

        assert result.exit_code == 0, result.output
        assert "admin_users: 1" in result.output

    def test_validate_empty_store(self, invoke) -> None:
        result = invoke("validate")

        assert result.exit_code == 1
        assert "✗ PermissionsSeeder" in result.output

    def test_validate_seeded_store(self, invoke) -> None:
        invoke("full", "--count", "1", "--logs-per-license", "1")

        result = invoke("validate")

        assert result.exit_code == 0, result.output


class TestInitCommand:
    """Tests for the init command."""

    def test_writes_config(self, runner) -> None:
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["init"], obj={"config": Config()})

            assert result.exit_code == 0, result.output
            assert Config.from_toml(CONFIG_FILENAME).admin.org_code == "ADMIN_ORG"

    def test_refuses_overwrite(self, runner) -> None:
        with runner.isolated_filesystem():
            runner.invoke(cli, ["init"], obj={"config": Config()})

            result = runner.invoke(cli, ["init"], obj={"config": Config()})

            assert result.exit_code == 1
            assert "already exists" in result.output
