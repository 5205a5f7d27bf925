"""Batch factory base class."""

import logging
import random
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from faker import Faker

from keyhub_seed.config import FactoryConfig
from keyhub_seed.exceptions import (
    DependencyMissingError,
    LicenseNotEligibleError,
    RecordValidationError,
)
from keyhub_seed.models import (
    GenerationOutcome,
    GenerationRequest,
    Record,
    RecordFailure,
    SeedCounts,
)
from keyhub_seed.store.base import Reader, Store, UnitOfWork
from keyhub_seed.uniqueness import resolve_unique

logger = logging.getLogger(__name__)

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

# Errors that fail a slot on the first attempt
NOT_RETRIED = (DependencyMissingError, LicenseNotEligibleError)


class BatchFactory(ABC):
    """
    Generate and persist records of one entity type.

    Subclasses implement ``generate_single`` (build one candidate record from
    overrides) and ``validate_record`` (integrity checks on the stored row).
    ``create_batch`` does the rest: chunking, concurrency, retry with
    exponential backoff, and aggregation of successes and failures.

    Example:
        >>> factory = OrganizationFactory(store, seed=42)
        >>> outcome = factory.create_batch(25)
        >>> len(outcome.succeeded) + len(outcome.failed)
        25
    """

    #: Table the factory writes to
    table: str = ""

    #: Field whose values must not collide (None when there is none)
    unique_field: str | None = None

    #: Fields identifying a preset record
    preset_keys: tuple[str, ...] = ()

    def __init__(
        self,
        store: Store,
        config: FactoryConfig | None = None,
        seed: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize factory.

        Args:
            store: Store to persist records in
            config: Batch size, retry and transaction bounds
            seed: Seed for the factory's random and Faker instances
            sleep: Backoff sleep function (seconds)
        """
        self.store = store
        self.config = config or FactoryConfig()
        self.rng = random.Random(seed)
        self.faker = Faker()
        if seed is not None:
            self.faker.seed_instance(seed)
        self.sleep = sleep
        self._reserved: set[Any] = set()
        self._reserved_lock = threading.Lock()

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def generate_single(self, overrides: Record | None = None) -> Record:
        """
        Build one candidate record.

        Args:
            overrides: Field values to use instead of generated ones

        Returns:
            Record ready to insert

        Raises:
            DependencyMissingError: If a referenced collection is empty
            UniquenessExhaustedError: If no free unique value was found
        """

    @abstractmethod
    def validate_record(self, record: Record, reader: Reader) -> list[str]:
        """
        Check a stored record.

        Args:
            record: Row as returned by the store
            reader: Reader bound to the record's transaction

        Returns:
            List of problems (empty when the record is valid)
        """

    def preset_records(self) -> list[Record]:
        """Fixed named records created by create_presets()."""
        return []

    def persist(self, tx: UnitOfWork, record: Record) -> Record:
        return tx.insert(self.table, record)

    # --- unique values -----------------------------------------------------

    def unique_value(self, generate: Callable[[], Any], field: str | None = None) -> Any:
        """
        Resolve a value not present in the store nor reserved by this batch.

        The accepted value is reserved atomically, so concurrent slots of
        the same batch never receive the same value.
        """
        column = field or self.unique_field

        def taken(value: Any) -> bool:
            if self.store.exists(self.table, {column: value}):
                return True
            with self._reserved_lock:
                if value in self._reserved:
                    return True
                self._reserved.add(value)
                return False

        return resolve_unique(
            generate, taken, max_attempts=self.config.unique_max_attempts, field=column
        )

    # --- batch creation ----------------------------------------------------

    def create_batch(
        self, count: int, overrides: Sequence[Record] | None = None
    ) -> GenerationOutcome:
        """
        Create ``count`` records in chunks of ``batch_size``.

        Record-level failures never raise; they are returned in
        ``outcome.failed`` with their global index.

        Args:
            count: Number of records to create
            overrides: Optional per-index overrides

        Returns:
            GenerationOutcome with ``len(succeeded) + len(failed) == count``

        Raises:
            ValueError: If count is negative
        """
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")

        request = GenerationRequest(count=count, overrides=list(overrides or []))
        outcome = GenerationOutcome()
        if count == 0:
            return outcome

        with self._reserved_lock:
            self._reserved.clear()

        batch_size = max(1, self.config.batch_size)
        logger.info(f"{self.name}: creating {count} '{self.table}' records")

        for offset in range(0, count, batch_size):
            width = min(batch_size, count - offset)
            outcome.merge(self._run_chunk(request, offset, width), offset)

            done = offset + width
            logger.info(
                f"{self.name}: progress {round(done / count * 100)}% ({done}/{count})"
            )

        if outcome.failed:
            logger.warning(
                f"{self.name}: batch finished, succeeded: {len(outcome.succeeded)}, "
                f"failed: {len(outcome.failed)}"
            )
            for failure in outcome.failed:
                logger.error(f"  index {failure.index}: {failure.message}")
        else:
            logger.info(f"{self.name}: created {len(outcome.succeeded)} records")

        return outcome

    def _run_chunk(
        self, request: GenerationRequest, offset: int, width: int
    ) -> GenerationOutcome:
        # All slots settle before the chunk returns; one failure never
        # cancels its siblings.
        chunk = GenerationOutcome()
        with ThreadPoolExecutor(max_workers=width) as pool:
            futures = [
                pool.submit(self._create_with_retry, request.override_for(offset + i))
                for i in range(width)
            ]

        for index, future in enumerate(futures):
            error = future.exception()
            if error is None:
                chunk.succeeded.append(future.result())
            else:
                chunk.failed.append(RecordFailure(index=index, error=error))
        return chunk

    def _create_with_retry(self, overrides: Record | None = None) -> Record:
        attempts = max(1, self.config.max_retries)

        for attempt in range(1, attempts):
            try:
                return self._create_one(overrides)
            except NOT_RETRIED:
                raise
            except Exception as e:
                delay = self.backoff_delay(attempt)
                logger.debug(
                    f"{self.name}: attempt {attempt} failed, "
                    f"retrying in {delay:.2f}s: {e}"
                )
                self.sleep(delay)

        # Last attempt: its error is the slot's failure
        return self._create_one(overrides)

    def _create_one(self, overrides: Record | None = None) -> Record:
        record = self.generate_single(overrides)
        with self.store.transaction(
            timeout=self.config.transaction_timeout, max_wait=self.config.max_wait
        ) as tx:
            created = self.persist(tx, record)
            problems = self.validate_record(created, tx)
            if problems:
                raise RecordValidationError(
                    self.table, created.get("id"), "; ".join(problems)
                )
        return created

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt (1-based)."""
        return (2 ** (attempt - 1) * 1000 + self.rng.uniform(0, 1000)) / 1000

    # --- presets and top-ups -----------------------------------------------

    def create_presets(self) -> SeedCounts:
        """
        Create the fixed named records that do not exist yet.

        Presets are persisted as-is, without record validation, so that
        scenario data (legacy formats, inconsistent flags) can be seeded.

        Returns:
            SeedCounts with created and already existing presets
        """
        counts = SeedCounts()
        presets = self.preset_records()

        for preset in presets:
            key = {field: preset[field] for field in self.preset_keys}
            if self.store.exists(self.table, key):
                logger.info(f"{self.name}: preset {key} already exists, skipping")
                counts.existing += 1
                continue

            record = self.generate_single(preset)
            with self.store.transaction(
                timeout=self.config.transaction_timeout, max_wait=self.config.max_wait
            ) as tx:
                self.persist(tx, record)
            logger.debug(f"{self.name}: created preset {key}")
            counts.created += 1

        logger.info(
            f"{self.name}: presets done, created: {counts.created}, "
            f"existing: {counts.existing} of {len(presets)}"
        )
        return counts

    def ensure_minimum(self, minimum: int) -> GenerationOutcome:
        """
        Create only as many records as needed to reach ``minimum``.

        Args:
            minimum: Desired total number of rows in the table

        Returns:
            GenerationOutcome of the top-up (empty when nothing was needed)
        """
        current = self.store.count(self.table)
        needed = max(0, minimum - current)
        if needed == 0:
            logger.info(f"{self.name}: {current} records present, nothing to create")
            return GenerationOutcome()

        logger.info(
            f"{self.name}: {current} records present, creating {needed} "
            f"to reach {minimum}"
        )
        return self.create_batch(needed)

    # --- shared helpers ----------------------------------------------------

    def chance(self, probability: float) -> bool:
        return self.rng.random() < probability

    def pick_weighted(self, buckets: Sequence[tuple[float, Any]]) -> Any:
        """
        Pick a bucket by cumulative weight.

        Args:
            buckets: (weight, value) pairs whose weights sum to 1
        """
        roll = self.rng.random()
        cumulative = 0.0
        for weight, value in buckets:
            cumulative += weight
            if roll < cumulative:
                return value
        return buckets[-1][1]

    def require_one(
        self, table: str, where: dict[str, Any], seeder: str, order_by: str | None = "created_at"
    ) -> Record:
        """
        Fetch the first matching row of a referenced table.

        Raises:
            DependencyMissingError: If no row matches
        """
        row = self.store.find_one(table, where, order_by=order_by)
        if row is None:
            raise DependencyMissingError(self.table, table, seeder)
        return row
