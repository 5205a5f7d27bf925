"""Seeder orchestration."""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import replace

from keyhub_seed.config import Config
from keyhub_seed.exceptions import UnknownSeederError
from keyhub_seed.models import (
    OrchestratorConfig,
    OrchestratorResult,
    SeederResult,
    SeedOptions,
)
from keyhub_seed.seeders import SEEDER_CLASSES, Seeder
from keyhub_seed.store.base import Store

logger = logging.getLogger(__name__)

QUICK_DEV_SEEDERS = ["AdminSeeder", "OrganizationSeeder", "UserSeeder", "LicenseSeeder"]
QUICK_DEV_COUNT = 15
MINIMAL_SEEDERS = ["AdminSeeder", "OrganizationSeeder"]


class Orchestrator:
    """
    Run registered seeders in a fixed order.

    Seeders are registered once at construction, in dependency order:
    permissions, roles, admin, organizations, users, licenses, access logs.

    Example:
        >>> orchestrator = Orchestrator(MemoryStore())
        >>> result = orchestrator.execute_all()
        >>> result.success
        True
    """

    def __init__(
        self,
        store: Store,
        config: Config | None = None,
        seed: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize orchestrator and register seeders.

        Args:
            store: Store shared by every seeder
            config: Configuration passed to every seeder
            seed: Seed for reproducible random data
            sleep: Backoff sleep used by the factories
        """
        self.store = store
        self.config = config or Config()
        self.seeders: dict[str, Seeder] = {
            cls.name: cls(store, self.config, seed=seed, sleep=sleep)
            for cls in SEEDER_CLASSES
        }

    def get_seeder(self, name: str) -> Seeder:
        """
        Look up a registered seeder.

        Raises:
            UnknownSeederError: If no seeder is registered under ``name``
        """
        if name not in self.seeders:
            raise UnknownSeederError(name, list(self.seeders))
        return self.seeders[name]

    def execute_single(self, name: str, options: SeedOptions | None = None) -> SeederResult:
        """
        Run one seeder.

        Raises:
            UnknownSeederError: If no seeder is registered under ``name``
        """
        return self.get_seeder(name).seed(options or SeedOptions())

    def execute_all(self, config: OrchestratorConfig | None = None) -> OrchestratorResult:
        """
        Run the configured seeders serially, stopping at the first failure.

        Args:
            config: Seeder list, environment and options (defaults to all
                seeders in registration order)

        Returns:
            OrchestratorResult holding the results of the seeders that ran
        """
        config = config or OrchestratorConfig()
        start = time.perf_counter()
        names = config.resolved_seeders()
        options = config.options
        if config.skip_validation:
            options = replace(options, skip_validation=True)

        logger.info(
            f"Seeding {len(names)} seeders ({config.environment}): {', '.join(names)}"
        )

        for name in names:
            self.get_seeder(name)

        if config.parallel and len(names) > 1:
            logger.warning("Parallel mode is not supported, running serially")

        results: dict[str, SeederResult] = {}
        for name in names:
            result = self.execute_single(name, options)
            results[name] = result
            if not result.success:
                logger.error(f"{name} failed, stopping")
                break

        duration = time.perf_counter() - start
        success = all(r.success for r in results.values())
        logger.info(f"Seeding finished in {duration:.2f}s")
        return OrchestratorResult(success=success, duration=duration, results=results)

    def clean_all(self, preserve_admin: bool = True) -> OrchestratorResult:
        """
        Clean every seeder in reverse registration order.

        Failures do not stop the run.

        Args:
            preserve_admin: Keep the bootstrap admin and system rows
        """
        start = time.perf_counter()
        logger.info("Cleaning all seed data...")
        options = SeedOptions(preserve_admin=preserve_admin)

        results = {
            name: seeder.clean(options)
            for name, seeder in reversed(list(self.seeders.items()))
        }

        duration = time.perf_counter() - start
        logger.info(f"Cleaning finished in {duration:.2f}s")
        return OrchestratorResult(
            success=all(r.success for r in results.values()),
            duration=duration,
            results=results,
        )

    def get_all_stats(self) -> dict[str, dict[str, float]]:
        stats: dict[str, dict[str, float]] = {}
        for name, seeder in self.seeders.items():
            try:
                stats[name] = seeder.get_stats()
            except Exception as e:
                logger.warning(f"Could not read stats of {name}: {e}")
                stats[name] = {}
        return stats

    def validate_all(self) -> dict[str, bool]:
        results: dict[str, bool] = {}
        for name, seeder in self.seeders.items():
            try:
                results[name] = seeder.validate()
            except Exception as e:
                logger.warning(f"Could not validate {name}: {e}")
                results[name] = False
        return results

    def quick_dev(self, options: SeedOptions | None = None) -> OrchestratorResult:
        """
        Seed a small development dataset.

        Runs admin, organization, user and license seeders with
        ``floor(15 * multiplier)`` records each (15 without multiplier).
        """
        options = options or SeedOptions()
        count = (
            math.floor(QUICK_DEV_COUNT * options.multiplier)
            if options.multiplier
            else QUICK_DEV_COUNT
        )
        return self.execute_all(
            OrchestratorConfig(
                environment="development",
                seeders=list(QUICK_DEV_SEEDERS),
                skip_validation=options.skip_validation,
                options=replace(options, count=count, include_presets=True),
            )
        )

    def minimal(self) -> OrchestratorResult:
        """Seed only the admin account and organization structure."""
        return self.execute_all(
            OrchestratorConfig(environment="production", seeders=list(MINIMAL_SEEDERS))
        )
