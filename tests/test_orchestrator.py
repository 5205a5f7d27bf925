"""Tests for the Orchestrator."""

import logging

import pytest

from keyhub_seed.exceptions import UnknownSeederError
from keyhub_seed.models import DEFAULT_SEEDER_ORDER, OrchestratorConfig, SeederResult, SeedOptions
from keyhub_seed.orchestrator import MINIMAL_SEEDERS, QUICK_DEV_SEEDERS, Orchestrator
from keyhub_seed.seeders import Seeder


class ScriptedSeeder(Seeder):
    """Seeder that records calls into a shared journal."""

    def __init__(self, store, name, journal, succeed=True, clean_succeeds=True):
        super().__init__(store)
        self.name = name
        self.journal = journal
        self.succeed = succeed
        self.clean_succeeds = clean_succeeds

    def do_seed(self, options):
        self.journal.append(("seed", self.name, options))
        if self.succeed:
            return SeederResult.ok(f"{self.name} ok", created=1)
        return SeederResult.failure(f"{self.name} failed")

    def do_clean(self, options):
        self.journal.append(("clean", self.name, options))
        if self.clean_succeeds:
            return SeederResult.ok(f"{self.name} cleaned")
        return SeederResult.failure(f"{self.name} clean failed")

    def get_stats(self):
        return {"rows": 1}


@pytest.fixture
def orchestrator(store, config, no_sleep) -> Orchestrator:
    return Orchestrator(store, config, seed=42, sleep=no_sleep)


@pytest.fixture
def journal() -> list:
    return []


def script(orchestrator, journal, failing=(), failing_clean=()) -> None:
    """Replace registered seeders with scripted ones named A, B and C."""
    orchestrator.seeders = {
        name: ScriptedSeeder(
            orchestrator.store,
            name,
            journal,
            succeed=name not in failing,
            clean_succeeds=name not in failing_clean,
        )
        for name in ("A", "B", "C")
    }


class TestRegistration:
    """Tests for seeder registration and lookup."""

    def test_default_order(self, orchestrator) -> None:
        assert list(orchestrator.seeders) == DEFAULT_SEEDER_ORDER

    def test_unknown_seeder(self, orchestrator) -> None:
        with pytest.raises(UnknownSeederError) as exc_info:
            orchestrator.get_seeder("Nope")

        assert "AdminSeeder" in str(exc_info.value)

    def test_execute_all_rejects_unknown_names_before_running(
        self, orchestrator, journal
    ) -> None:
        script(orchestrator, journal)

        with pytest.raises(UnknownSeederError):
            orchestrator.execute_all(OrchestratorConfig(seeders=["A", "Nope"]))

        assert journal == []


class TestExecuteAll:
    """Tests for Orchestrator.execute_all()."""

    def test_stops_at_first_failure(self, orchestrator, journal) -> None:
        script(orchestrator, journal, failing={"B"})

        result = orchestrator.execute_all(OrchestratorConfig(seeders=["A", "B", "C"]))

        assert not result.success
        assert list(result.results) == ["A", "B"]
        assert [name for _, name, _ in journal] == ["A", "B"]

    def test_skip_validation_reaches_seeders(self, orchestrator, journal) -> None:
        script(orchestrator, journal)

        orchestrator.execute_all(
            OrchestratorConfig(seeders=["A"], skip_validation=True)
        )

        assert journal[0][2].skip_validation is True

    def test_parallel_runs_serially(self, orchestrator, journal, caplog) -> None:
        script(orchestrator, journal)

        with caplog.at_level(logging.WARNING):
            result = orchestrator.execute_all(
                OrchestratorConfig(seeders=["A", "B", "C"], parallel=True)
            )

        assert result.success
        assert [name for _, name, _ in journal] == ["A", "B", "C"]
        assert "serially" in caplog.text

    def test_full_run(self, orchestrator, store) -> None:
        """Test every real seeder succeeds on an empty store."""
        result = orchestrator.execute_all(
            OrchestratorConfig(options=SeedOptions(count=3, logs_per_license=1))
        )

        assert result.success, result.results
        assert list(result.results) == DEFAULT_SEEDER_ORDER
        assert result.duration >= 0
        assert store.count("users") == 1 + 5 + 3
        assert store.count("licenses") == 6 + 3
        assert store.count("access_logs") > 0


class TestCleanAll:
    """Tests for Orchestrator.clean_all()."""

    def test_reverse_order(self, orchestrator, journal) -> None:
        script(orchestrator, journal)

        result = orchestrator.clean_all()

        assert result.success
        assert [name for _, name, _ in journal] == ["C", "B", "A"]
        assert all(options.preserve_admin for _, _, options in journal)

    def test_continues_past_failures(self, orchestrator, journal) -> None:
        script(orchestrator, journal, failing_clean={"B"})

        result = orchestrator.clean_all(preserve_admin=False)

        assert not result.success
        assert [name for _, name, _ in journal] == ["C", "B", "A"]
        assert not journal[0][2].preserve_admin

    def test_full_clean_keeps_admin(self, orchestrator, store, config) -> None:
        orchestrator.quick_dev(SeedOptions(multiplier=0.2))

        result = orchestrator.clean_all(preserve_admin=True)

        assert result.success
        assert [u["email"] for u in store.get_data("users")] == [config.admin.email]
        assert store.count("licenses") == 0


class TestPresets:
    """Tests for quick_dev() and minimal()."""

    def test_quick_dev_multiplier(self, orchestrator, store) -> None:
        """Test record volume is floor(15 * multiplier)."""
        result = orchestrator.quick_dev(SeedOptions(multiplier=0.2))

        assert result.success
        assert list(result.results) == QUICK_DEV_SEEDERS
        assert store.count("users") == 1 + 5 + 3
        assert store.count("licenses") == 6 + 3

    def test_quick_dev_default_count(self, orchestrator, journal) -> None:
        orchestrator.seeders = {
            name: ScriptedSeeder(orchestrator.store, name, journal)
            for name in QUICK_DEV_SEEDERS
        }

        orchestrator.quick_dev()

        assert all(options.count == 15 for _, _, options in journal)
        assert all(options.include_presets for _, _, options in journal)

    def test_minimal(self, orchestrator, store) -> None:
        result = orchestrator.minimal()

        assert result.success
        assert list(result.results) == MINIMAL_SEEDERS
        assert store.count("users") == 1
        assert store.count("licenses") == 0


class TestReporting:
    """Tests for get_all_stats() and validate_all()."""

    def test_stats_for_every_seeder(self, orchestrator) -> None:
        orchestrator.minimal()

        stats = orchestrator.get_all_stats()

        assert list(stats) == DEFAULT_SEEDER_ORDER
        assert stats["AdminSeeder"]["admin_users"] == 1

    def test_offline_store(self, orchestrator, store) -> None:
        """Test reporting degrades instead of raising."""
        store.online = False

        assert all(value == {} for value in orchestrator.get_all_stats().values())
        assert not any(orchestrator.validate_all().values())
