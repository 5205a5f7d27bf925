"""Data models and type definitions."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

Record = dict[str, Any]

DEFAULT_SEEDER_ORDER = [
    "PermissionsSeeder",
    "RolesSeeder",
    "AdminSeeder",
    "OrganizationSeeder",
    "UserSeeder",
    "LicenseSeeder",
    "AccessLogSeeder",
]


@dataclass
class GenerationRequest:
    """
    How many records to create and per-record field overrides.

    Attributes:
        count: Number of records to generate
        overrides: Optional per-index overrides (shorter lists leave the tail
            to random generation)
    """

    count: int
    overrides: list[Record] = field(default_factory=list)

    def override_for(self, index: int) -> Record:
        if index < len(self.overrides):
            return self.overrides[index] or {}
        return {}


@dataclass
class RecordFailure:
    """A slot of a batch that could not be created."""

    index: int
    error: BaseException

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass
class GenerationOutcome:
    """
    Partitioned result of one batch creation call.

    Attributes:
        succeeded: Records that were persisted and passed validation
        failed: One entry per slot that gave up, indexed globally
    """

    succeeded: list[Record] = field(default_factory=list)
    failed: list[RecordFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def failed_indices(self) -> list[int]:
        return sorted(f.index for f in self.failed)

    def merge(self, other: "GenerationOutcome", offset: int = 0) -> None:
        """Fold a chunk outcome into this one, shifting indices by offset."""
        self.succeeded.extend(other.succeeded)
        self.failed.extend(
            RecordFailure(index=f.index + offset, error=f.error) for f in other.failed
        )


@dataclass
class SeedCounts:
    """Created/existing/updated counters reported by a seeder."""

    created: int = 0
    existing: int = 0
    updated: int | None = None


@dataclass
class SeederResult:
    """
    Structured outcome of Seeder.seed() or Seeder.clean().

    Attributes:
        success: Whether the operation succeeded
        message: Human readable summary
        data: Optional counters
        error: Error message when the operation raised
    """

    success: bool
    message: str
    data: SeedCounts | None = None
    error: str | None = None

    @classmethod
    def ok(
        cls,
        message: str,
        created: int = 0,
        existing: int = 0,
        updated: int | None = None,
    ) -> "SeederResult":
        return cls(
            success=True,
            message=message,
            data=SeedCounts(created=created, existing=existing, updated=updated),
        )

    @classmethod
    def failure(cls, message: str, error: str | None = None) -> "SeederResult":
        return cls(success=False, message=message, error=error)


@dataclass
class OrchestratorResult:
    """Aggregate result of an orchestrator run."""

    success: bool
    duration: float
    results: dict[str, SeederResult] = field(default_factory=dict)
    error: str | None = None


class SeederState(str, Enum):
    """Lifecycle states of a seeder run."""

    IDLE = "idle"
    CONNECTING = "connecting"
    PRE_VALIDATING = "pre_validating"
    SEEDING = "seeding"
    POST_VALIDATING = "post_validating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SeedOptions:
    """
    Options consumed by seeders.

    Attributes:
        force: Skip pre-validation
        clean: Invoke clean instead of seed (CLI level)
        count: Record quantity (None lets each seeder use its default)
        include_presets: Also create fixed named records
        logs_per_license: Access logs per eligible license
        realistic_days: Days covered by the realistic access pattern
        generate_realistic: Generate the realistic access pattern
        preserve_admin: Keep the bootstrap admin (and system rows) on clean
        skip_validation: Bypass post-validation
        multiplier: Count multiplier for the quick-dev preset
    """

    force: bool = False
    clean: bool = False
    count: int | None = None
    include_presets: bool = True
    logs_per_license: int | None = None
    realistic_days: int | None = None
    generate_realistic: bool = False
    preserve_admin: bool = True
    skip_validation: bool = False
    multiplier: float | None = None


@dataclass
class OrchestratorConfig:
    """
    Configuration of one orchestrator run.

    Attributes:
        environment: development, test or production
        seeders: Explicit seeder list (None → default order)
        skip_validation: Bypass post-validation in every seeder
        parallel: Requested parallel mode (degrades to serial)
        options: Options handed to every seeder
    """

    environment: str = "development"
    seeders: list[str] | None = None
    skip_validation: bool = False
    parallel: bool = False
    options: SeedOptions = field(default_factory=SeedOptions)

    def resolved_seeders(self) -> list[str]:
        return list(self.seeders) if self.seeders is not None else list(DEFAULT_SEEDER_ORDER)
