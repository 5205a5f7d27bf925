"""Custom exceptions with helpful error messages."""


class KeyhubSeedError(Exception):
    """Base exception for keyhub-seed errors."""

    pass


class DatabaseConnectionError(KeyhubSeedError, ConnectionError):
    """Persistence layer is unreachable."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            f"Database connection failed: {reason}\n\n"
            f"Suggestions:\n"
            f"1. Check that the database server is running\n"
            f"2. Check [database] url in keyhub-seed.toml or --database-url\n"
            f"3. Verify credentials and network access"
        )


class RecordValidationError(KeyhubSeedError):
    """Generated record failed its integrity checks."""

    def __init__(self, table: str, record_id: str | None = None, reason: str = ""):
        self.table = table
        self.record_id = record_id
        detail = f" ({reason})" if reason else ""
        super().__init__(
            f"Record {record_id!r} in '{table}' failed validation{detail}"
        )


class UniquenessExhaustedError(KeyhubSeedError):
    """Could not find a value that does not collide with existing data."""

    def __init__(self, attempts: int, field: str | None = None):
        self.attempts = attempts
        self.field = field
        target = f" for '{field}'" if field else ""
        super().__init__(
            f"Could not generate unique value{target} after {attempts} attempts.\n\n"
            f"Suggestions:\n"
            f"1. Clean existing fixture data before seeding again\n"
            f"2. Widen the generator's value space\n"
            f"3. Pass explicit overrides for the unique field"
        )


class DependencyMissingError(KeyhubSeedError):
    """A referenced collection is empty, so the record cannot be generated."""

    def __init__(self, table: str, dependency: str, seeder: str | None = None):
        self.table = table
        self.dependency = dependency
        hint = seeder or dependency
        super().__init__(
            f"Cannot generate '{table}': no usable rows in '{dependency}'.\n\n"
            f"Suggestions:\n"
            f"1. Run {hint} first\n"
            f"2. Or pass the foreign key explicitly in overrides"
        )


class TransactionTimeoutError(KeyhubSeedError):
    """Transaction exceeded its statement timeout or pool wait bound."""

    def __init__(self, timeout: float, phase: str = "execution"):
        self.timeout = timeout
        self.phase = phase
        super().__init__(f"Transaction {phase} exceeded {timeout:g}s")


class DuplicateKeyError(KeyhubSeedError):
    """Store rejected a row because of a unique constraint."""

    def __init__(self, table: str, columns: tuple[str, ...], value: object = None):
        self.table = table
        self.columns = columns
        self.value = value
        cols = ", ".join(columns)
        super().__init__(
            f"Duplicate value {value!r} for UNIQUE({cols}) in '{table}'"
        )


class UnknownSeederError(KeyhubSeedError):
    """Seeder name is not registered with the orchestrator."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        super().__init__(
            f"Seeder '{name}' is not registered.\n\n"
            f"Available seeders: {', '.join(available)}"
        )


class LicenseNotEligibleError(KeyhubSeedError, ValueError):
    """License cannot receive access logs; retrying will not change that."""

    def __init__(self, license_id: str, reason: str):
        self.license_id = license_id
        self.reason = reason
        super().__init__(
            f"{reason}\n\n"
            f"Suggestions:\n"
            f"1. Use a used, unlocked license\n"
            f"2. Pass the license's own email in overrides"
        )
