"""Access log factory."""

import ipaddress
import logging
from datetime import datetime, timedelta, timezone

from keyhub_seed.exceptions import DependencyMissingError, LicenseNotEligibleError
from keyhub_seed.factories.base import BatchFactory
from keyhub_seed.models import GenerationOutcome, Record
from keyhub_seed.store.base import Reader

logger = logging.getLogger(__name__)

# First octets of domestic carrier ranges, grouped by carrier
CARRIER_PREFIXES = [
    ("113", "116"),
    ("221", "222"),
    ("183", "120"),
    ("101", "103"),
]

WORKING_HOURS = range(9, 19)

# Licenses handled per create_batch call in create_logs_for_all_licenses()
LICENSE_CHUNK_SIZE = 10

# Licenses that get a realistic access pattern
REALISTIC_LICENSE_LIMIT = 5

ELIGIBLE_LICENSES = {"is_used": True, "locked": False}


def is_valid_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


class AccessLogFactory(BatchFactory):
    """
    Generate access logs for used, unlocked licenses.

    The log's email always mirrors the email of its license.
    """

    table = "access_logs"

    def generate_single(self, overrides: Record | None = None) -> Record:
        overrides = overrides or {}

        license_id = overrides.get("license_id")
        email = overrides.get("email")
        if not license_id or not email:
            license = self._random_eligible_license()
            license_id, email = license["id"], license["email"]

        self.check_license(license_id, email)

        return {
            "license_id": license_id,
            "email": email,
            "ip": overrides.get("ip") or self.realistic_ip(),
            "is_risky": overrides.get("is_risky", self.chance(0.15)),
            "accessed_at": overrides.get("accessed_at") or self.access_time(),
        }

    def validate_record(self, record: Record, reader: Reader) -> list[str]:
        problems = [
            f"missing {field}"
            for field in ("id", "license_id", "email", "ip")
            if not record.get(field)
        ]
        if problems:
            return problems

        if not is_valid_ip(record["ip"]):
            problems.append(f"invalid ip {record['ip']!r}")

        license = reader.find_one("licenses", {"id": record["license_id"]})
        if license is None:
            problems.append(f"license {record['license_id']} does not exist")
        elif license["email"] != record["email"]:
            problems.append(
                f"email {record['email']!r} does not match license email "
                f"{license['email']!r}"
            )
        return problems

    def check_license(self, license_id: str, email: str) -> None:
        """
        Ensure a license can receive access logs.

        Raises:
            LicenseNotEligibleError: If the license is missing, belongs to
                another email, is unused or locked
        """
        license = self.store.find_one("licenses", {"id": license_id})
        if license is None:
            raise LicenseNotEligibleError(license_id, f"License not found: {license_id}")
        if license["email"] != email:
            raise LicenseNotEligibleError(
                license_id, f"Email mismatch: expected {license['email']}, got {email}"
            )
        if not license["is_used"]:
            raise LicenseNotEligibleError(license_id, f"License is unused: {email}")
        if license["locked"]:
            raise LicenseNotEligibleError(license_id, f"License is locked: {email}")

    def _random_eligible_license(self) -> Record:
        licenses = self.store.find_many("licenses", ELIGIBLE_LICENSES, limit=100)
        if not licenses:
            raise DependencyMissingError(self.table, "licenses", "LicenseSeeder")
        return self.rng.choice(licenses)

    # --- random values -----------------------------------------------------

    def realistic_ip(self) -> str:
        # 60% domestic carrier ranges, 40% anywhere
        if self.chance(0.6):
            prefix = self.rng.choice(self.rng.choice(CARRIER_PREFIXES))
            octets = [str(self.rng.randint(1, 255)) for _ in range(3)]
            return ".".join([prefix, *octets])
        return self.faker.ipv4()

    def access_time(self, now: datetime | None = None) -> datetime:
        """Random time in the last 30 days, 70% within working hours, never after now."""
        now = now or datetime.now(timezone.utc)
        day = now - timedelta(days=self.rng.randrange(30))

        if self.chance(0.7):
            hour = self.rng.choice(WORKING_HOURS)
        elif self.chance(0.5):
            hour = self.rng.randrange(0, 9)
        else:
            hour = self.rng.randrange(19, 24)

        accessed_at = day.replace(
            hour=hour,
            minute=self.rng.randrange(60),
            second=self.rng.randrange(60),
            microsecond=0,
        )
        return min(accessed_at, now)

    # --- bulk operations ---------------------------------------------------

    def create_logs_for_license(
        self, license_id: str, email: str, count: int = 5
    ) -> GenerationOutcome:
        self.check_license(license_id, email)
        overrides = [{"license_id": license_id, "email": email}] * count
        return self.create_batch(count, overrides)

    def create_logs_for_all_licenses(self, logs_per_license: int = 3) -> dict[str, int]:
        """
        Create ``logs_per_license`` logs for every used, unlocked license.

        Licenses are handled in chunks of LICENSE_CHUNK_SIZE; each chunk is
        one batch of ``chunk_size * logs_per_license`` records.

        Returns:
            Dict with total_logs, processed_licenses and errors (licenses
            with at least one failed log)
        """
        licenses = self.store.find_many("licenses", ELIGIBLE_LICENSES)
        summary = {"total_logs": 0, "processed_licenses": 0, "errors": 0}

        if not licenses:
            logger.warning("No used, unlocked licenses found")
            return summary
        if logs_per_license <= 0:
            return summary

        for start in range(0, len(licenses), LICENSE_CHUNK_SIZE):
            chunk = licenses[start : start + LICENSE_CHUNK_SIZE]
            overrides = [
                {"license_id": lic["id"], "email": lic["email"]}
                for lic in chunk
                for _ in range(logs_per_license)
            ]
            outcome = self.create_batch(len(overrides), overrides)

            failed_licenses = {f.index // logs_per_license for f in outcome.failed}
            for index in sorted(failed_licenses):
                logger.error(f"Failed to create access logs for {chunk[index]['email']}")

            summary["total_logs"] += len(outcome.succeeded)
            summary["processed_licenses"] += len(chunk) - len(failed_licenses)
            summary["errors"] += len(failed_licenses)

            done = start + len(chunk)
            logger.info(
                f"Access logs: {round(done / len(licenses) * 100)}% "
                f"({done}/{len(licenses)} licenses)"
            )

        logger.info(
            f"Access logs done, total: {summary['total_logs']}, "
            f"licenses: {summary['processed_licenses']}, errors: {summary['errors']}"
        )
        return summary

    def create_realistic_pattern(
        self,
        license_id: str,
        email: str,
        days: int = 30,
        now: datetime | None = None,
    ) -> GenerationOutcome:
        """
        Create logs that mimic a real user over ``days`` days.

        Weekdays see an access with probability 0.7, weekends 0.3; an
        active day has 1-3 accesses sharing the day's first IP.
        """
        self.check_license(license_id, email)
        now = now or datetime.now(timezone.utc)
        overrides: list[Record] = []

        for offset in range(days):
            date = now - timedelta(days=offset)
            probability = 0.3 if date.weekday() >= 5 else 0.7
            if not self.chance(probability):
                continue

            ip = self.realistic_ip()
            for _ in range(self.rng.randint(1, 3)):
                accessed_at = date.replace(
                    hour=self.rng.randrange(24),
                    minute=self.rng.randrange(60),
                    second=self.rng.randrange(60),
                    microsecond=0,
                )
                overrides.append(
                    {
                        "license_id": license_id,
                        "email": email,
                        "ip": ip,
                        "accessed_at": min(accessed_at, now),
                    }
                )

        logger.info(f"Creating {len(overrides)} logs over {days} days for {email}")
        return self.create_batch(len(overrides), overrides)

    def get_stats(self) -> dict[str, float]:
        logs = self.store.find_many(self.table)
        total = len(logs)
        risky = sum(1 for log in logs if log["is_risky"])
        working = sum(1 for log in logs if log["accessed_at"].hour in WORKING_HOURS)
        used_licenses = self.store.count("licenses", {"is_used": True})

        return {
            "total": total,
            "risky": risky,
            "safe": total - risky,
            "unique_ips": len({log["ip"] for log in logs}),
            "avg_logs_per_license": (
                round(total / used_licenses, 2) if used_licenses else 0
            ),
            "working_hours": working,
            "non_working_hours": total - working,
        }
