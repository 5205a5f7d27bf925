"""License factory."""

import logging
import re
from datetime import datetime, timedelta, timezone

from keyhub_seed.factories.base import EMAIL_PATTERN, BatchFactory
from keyhub_seed.factories.license_code import (
    generate_license_code,
    validate_license_code_format,
)
from keyhub_seed.models import Record
from keyhub_seed.store.base import Reader

logger = logging.getLogger(__name__)

MAX_PURCHASE_AMOUNT = 9999.99

# (probability, (low, high)) - amounts are rounded to 2 decimals
PURCHASE_AMOUNT_BUCKETS = [
    (0.30, (9.9, 49.9)),
    (0.40, (50.0, 199.9)),
    (0.25, (200.0, 499.9)),
    (0.05, (500.0, 999.9)),
]

# (probability, kind) - "future" is 30-730 days ahead, "past" 1-365 days ago
EXPIRY_BUCKETS = [
    (0.30, "permanent"),
    (0.40, "future"),
    (0.30, "past"),
]

WARNING_COUNT_BUCKETS = [
    (0.70, 0),
    (0.20, 1),
    (0.07, 2),
    (0.03, 3),
]

REMARKS = [
    "Enterprise customer",
    "Individual user",
    "Bulk purchase",
    "Trial converted",
    "Referral",
    "Renewal",
    "Campaign discount",
    "Promotion",
    "Internal testing",
    "Partner",
]


def _days(days: float) -> timedelta:
    return timedelta(days=days)


def is_expired(expires_at: datetime | None, now: datetime | None = None) -> bool:
    """A license is expired iff it has an expiry date in the past."""
    if expires_at is None:
        return False
    return expires_at < (now or datetime.now(timezone.utc))


def preset_licenses(now: datetime | None = None) -> list[Record]:
    """Scenario licenses: active, expired, locked, unused, permanent, high-warning."""
    now = now or datetime.now(timezone.utc)
    return [
        {
            "email": "license.active@example.com",
            "code": "act-001-ive",
            "is_used": True,
            "locked": False,
            "purchase_amount": 99.99,
            "expires_at": now + _days(365),
            "remark": "Active license",
        },
        {
            "email": "license.expired@example.com",
            "code": "exp-002-ire",
            "is_used": True,
            "locked": False,
            "purchase_amount": 199.99,
            "expires_at": now - _days(30),
            "remark": "Expired license",
        },
        {
            "email": "license.locked@example.com",
            "code": "loc-003-ked",
            "is_used": True,
            "locked": True,
            "warning_count": 3,
            "purchase_amount": 299.99,
            "expires_at": now + _days(180),
            "remark": "Locked license",
        },
        {
            "email": "license.unused@example.com",
            "code": "unu-004-sed",
            "is_used": False,
            "locked": False,
            "purchase_amount": 49.99,
            "expires_at": now + _days(90),
            "remark": "Unused license",
        },
        {
            "email": "license.permanent@example.com",
            "code": "per-005-man",
            "is_used": True,
            "locked": False,
            "purchase_amount": 999.99,
            "expires_at": None,
            "remark": "Permanent license",
        },
        {
            "email": "license.high-warning@example.com",
            "code": "war-006-ing",
            "is_used": True,
            "locked": False,
            "warning_count": 2,
            "purchase_amount": 199.99,
            "expires_at": now + _days(60),
            "remark": "High warning count license",
        },
    ]


class LicenseFactory(BatchFactory):
    """
    Generate licenses with checksummed unique codes.

    Emails are not unique: one customer may hold several licenses.
    """

    table = "licenses"
    unique_field = "code"
    preset_keys = ("email", "code")

    def generate_single(self, overrides: Record | None = None) -> Record:
        overrides = overrides or {}
        now = datetime.now(timezone.utc)

        code = overrides.get("code") or self.unique_value(
            lambda: generate_license_code(self.rng)
        )
        expires_at = (
            overrides["expires_at"] if "expires_at" in overrides else self.expiry_date(now)
        )

        return {
            "email": overrides.get("email") or self.faker.email(),
            "code": code,
            "is_used": overrides.get("is_used", self.chance(0.6)),
            "last_ip": overrides["last_ip"] if "last_ip" in overrides else self._last_ip(),
            "locked": overrides.get("locked", self.chance(0.1)),
            "warning_count": overrides.get("warning_count", self.warning_count()),
            "purchase_amount": overrides.get("purchase_amount", self.purchase_amount()),
            "expires_at": expires_at,
            "is_expired": is_expired(expires_at, now),
            "remark": overrides["remark"] if "remark" in overrides else self._remark(),
            "created_at": overrides.get("created_at") or now,
        }

    def validate_record(self, record: Record, reader: Reader) -> list[str]:
        problems = [
            f"missing {field}"
            for field in ("id", "email", "code")
            if not record.get(field)
        ]
        if problems:
            return problems

        if not validate_license_code_format(record["code"]):
            problems.append(f"invalid code {record['code']!r}")
        if not re.match(EMAIL_PATTERN, record["email"]):
            problems.append(f"invalid email {record['email']!r}")

        amount = record.get("purchase_amount")
        if amount is not None and not 0 <= float(amount) <= MAX_PURCHASE_AMOUNT:
            problems.append(f"purchase amount {amount} out of range")

        if bool(record.get("is_expired")) != is_expired(record.get("expires_at")):
            problems.append("is_expired does not match expires_at")

        if reader.exists(self.table, {"code": record["code"], "id__ne": record["id"]}):
            problems.append(f"duplicate code {record['code']!r}")
        return problems

    def preset_records(self) -> list[Record]:
        return preset_licenses()

    # --- weighted buckets --------------------------------------------------

    def purchase_amount(self) -> float:
        low, high = self.pick_weighted(PURCHASE_AMOUNT_BUCKETS)
        return round(self.rng.uniform(low, high), 2)

    def expiry_date(self, now: datetime | None = None) -> datetime | None:
        now = now or datetime.now(timezone.utc)
        kind = self.pick_weighted(EXPIRY_BUCKETS)
        if kind == "permanent":
            return None
        if kind == "future":
            return now + _days(self.rng.uniform(30, 730))
        return now - _days(self.rng.uniform(1, 365))

    def warning_count(self) -> int:
        return self.pick_weighted(WARNING_COUNT_BUCKETS)

    def _last_ip(self) -> str | None:
        if self.chance(0.2):
            return None
        return self.faker.ipv4()

    def _remark(self) -> str | None:
        if self.chance(0.6):
            return None
        return self.rng.choice(REMARKS)

    # --- maintenance -------------------------------------------------------

    def update_expired_status(self) -> int:
        """
        Flag licenses whose expiry date has passed.

        Returns:
            Number of licenses updated
        """
        updated = self.store.update_many(
            self.table,
            {"expires_at__lt": datetime.now(timezone.utc), "is_expired": False},
            {"is_expired": True},
        )
        if updated:
            logger.info(f"Updated expired status of {updated} licenses")
        return updated

    def get_stats(self) -> dict[str, float]:
        total = self.store.count(self.table)
        expired = self.store.count(self.table, {"is_expired": True})
        locked = self.store.count(self.table, {"locked": True})

        amounts = [
            float(row["purchase_amount"])
            for row in self.store.find_many(self.table, {"purchase_amount__isnull": False})
        ]
        average = round(sum(amounts) / len(amounts), 2) if amounts else 0

        return {
            "total": total,
            "used": self.store.count(self.table, {"is_used": True}),
            "active": total - expired - locked,
            "expired": expired,
            "locked": locked,
            "permanent": self.store.count(self.table, {"expires_at__isnull": True}),
            "average_purchase_amount": average,
        }
