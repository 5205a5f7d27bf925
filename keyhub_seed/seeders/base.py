"""Seeder lifecycle base class."""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TypeVar

from keyhub_seed.config import Config
from keyhub_seed.factories.base import BatchFactory
from keyhub_seed.models import SeederResult, SeederState, SeedOptions
from keyhub_seed.store.base import Store

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=BatchFactory)


class Seeder(ABC):
    """
    Base class for entity seeders.

    ``seed()`` drives the lifecycle
    idle → connecting → pre_validating → seeding → post_validating → done
    (or failed from any state) around ``do_seed()``. Both ``seed()`` and
    ``clean()`` convert raised errors into a failed SeederResult and never
    raise themselves.
    """

    #: Unique registration name
    name: str = ""

    #: Seeders that must have run first (advisory)
    dependencies: list[str] = []

    def __init__(
        self,
        store: Store,
        config: Config | None = None,
        seed: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize seeder.

        Args:
            store: Store to seed
            config: Admin credentials, factory tuning and default volumes
            seed: Seed handed to the seeder's factories
            sleep: Backoff sleep handed to the seeder's factories
        """
        self.store = store
        self.config = config or Config()
        self.state = SeederState.IDLE
        self._seed = seed
        self._sleep = sleep

    def make_factory(self, factory_class: type[F]) -> F:
        return factory_class(
            self.store, self.config.factory, seed=self._seed, sleep=self._sleep
        )

    def transaction(self):
        """Open a store transaction with the configured bounds."""
        return self.store.transaction(
            timeout=self.config.factory.transaction_timeout,
            max_wait=self.config.factory.max_wait,
        )

    @abstractmethod
    def do_seed(self, options: SeedOptions) -> SeederResult:
        """Create this seeder's records."""

    @abstractmethod
    def do_clean(self, options: SeedOptions) -> SeederResult:
        """Remove records owned by this seeder."""

    @abstractmethod
    def get_stats(self) -> dict[str, float]:
        """Read-only counts of this seeder's records."""

    def seed(self, options: SeedOptions | None = None) -> SeederResult:
        """
        Run the seeding lifecycle.

        Args:
            options: Seed options (defaults to SeedOptions())

        Returns:
            SeederResult; errors are reported in ``result.error``
        """
        options = options or SeedOptions()
        start = time.perf_counter()
        logger.info(f"Running {self.name}...")

        try:
            self.state = SeederState.CONNECTING
            self.check_connection()

            if not options.force:
                self.state = SeederState.PRE_VALIDATING
                if not self.pre_validation(options):
                    self.state = SeederState.FAILED
                    return SeederResult.failure(
                        f"{self.name}: pre-validation failed, skipped"
                    )

            self.state = SeederState.SEEDING
            result = self.do_seed(options)

            if result.success and not options.skip_validation:
                self.state = SeederState.POST_VALIDATING
                if not self.validate():
                    self.log("post-validation failed, but data was created", "warning")

            self.state = SeederState.DONE if result.success else SeederState.FAILED
            duration = self._elapsed_ms(start)
            if result.success:
                logger.info(f"{self.name} finished ({duration}ms)")
            else:
                logger.error(f"{self.name} failed ({duration}ms)")
            return result

        except Exception as e:
            self.state = SeederState.FAILED
            logger.error(f"{self.name} raised ({self._elapsed_ms(start)}ms): {e}")
            return SeederResult.failure(f"{self.name}: seeding raised an error", str(e))

    def clean(self, options: SeedOptions | None = None) -> SeederResult:
        """
        Remove this seeder's records.

        Args:
            options: Seed options (``preserve_admin`` is honoured)

        Returns:
            SeederResult; errors are reported in ``result.error``
        """
        options = options or SeedOptions()
        start = time.perf_counter()
        logger.info(f"Cleaning {self.name}...")

        try:
            self.check_connection()
            result = self.do_clean(options)

            duration = self._elapsed_ms(start)
            if result.success:
                logger.info(f"{self.name} cleaned ({duration}ms)")
            else:
                logger.error(f"{self.name} clean failed ({duration}ms)")
            return result

        except Exception as e:
            logger.error(f"{self.name} clean raised ({self._elapsed_ms(start)}ms): {e}")
            return SeederResult.failure(f"{self.name}: clean raised an error", str(e))

    def validate(self) -> bool:
        """Default check: at least one stat is non-zero."""
        try:
            return any(value > 0 for value in self.get_stats().values())
        except Exception as e:
            self.log(f"validation raised: {e}", "warning")
            return False

    def pre_validation(self, options: SeedOptions) -> bool:
        """
        Inspect the store before seeding.

        Returns:
            False to skip the run
        """
        if any(value > 0 for value in self.get_stats().values()):
            self.log("existing data detected")
        return True

    def check_connection(self) -> None:
        """
        Raises:
            DatabaseConnectionError: If the store is unreachable
        """
        self.store.ping()

    def log(self, message: str, level: str = "info") -> None:
        logger.log(getattr(logging, level.upper()), f"[{self.name}] {message}")

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return round((time.perf_counter() - start) * 1000)
