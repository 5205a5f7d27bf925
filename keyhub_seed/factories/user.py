"""User factory."""

import re
from datetime import datetime, timezone

import bcrypt

from keyhub_seed.factories.base import EMAIL_PATTERN, BatchFactory
from keyhub_seed.models import Record
from keyhub_seed.store.base import Reader

DEFAULT_PASSWORD = "Test@123"

PRESET_USERS: list[Record] = [
    {
        "email": "test.active@example.com",
        "name": "Active Test User",
        "is_active": True,
        "phone": "13800138001",
    },
    {
        "email": "test.inactive@example.com",
        "name": "Inactive Test User",
        "is_active": False,
        "phone": "13800138002",
    },
    {
        "email": "test.nophone@example.com",
        "name": "No Phone User",
        "is_active": True,
        "phone": None,
    },
    {
        "email": "test.noname@example.com",
        "name": None,
        "is_active": True,
        "phone": "13800138004",
    },
    {
        "email": "test.complete@example.com",
        "name": "Complete Profile User",
        "is_active": True,
        "phone": "13800138005",
    },
]

MOBILE_PREFIXES = [
    "130", "131", "132", "133", "134", "135", "136", "137", "138", "139",
    "150", "151", "152", "153", "155", "156", "157", "158", "159",
    "180", "181", "182", "183", "184", "185", "186", "187", "188", "189",
]

AVATAR_STYLES = ["avataaars", "big-smile", "bottts", "identicon", "initials", "personas"]


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode(
        "utf-8"
    )


class UserFactory(BatchFactory):
    """
    Generate users with unique emails and bcrypt password hashes.

    Users without an explicit ``org_id`` join the oldest active
    organization; DependencyMissingError is raised when there is none.
    """

    table = "users"
    unique_field = "email"
    preset_keys = ("email",)

    def generate_single(self, overrides: Record | None = None) -> Record:
        overrides = overrides or {}

        email = overrides.get("email") or self.unique_value(self.faker.email)
        password_hash = overrides.get("password_hash") or hash_password(
            overrides.get("password", DEFAULT_PASSWORD), self.config.bcrypt_rounds
        )
        org_id = overrides.get("org_id")
        if org_id is None:
            org_id = self.require_one(
                "organizations", {"is_active": True}, "OrganizationSeeder"
            )["id"]

        return {
            "email": email,
            "password_hash": password_hash,
            "name": overrides["name"] if "name" in overrides else self._name(),
            "phone": overrides["phone"] if "phone" in overrides else self._phone(),
            "avatar_url": (
                overrides["avatar_url"] if "avatar_url" in overrides else self._avatar_url()
            ),
            "is_active": overrides.get("is_active", True),
            "org_id": org_id,
            "department_id": overrides.get("department_id"),
            "created_at": overrides.get("created_at") or datetime.now(timezone.utc),
        }

    def validate_record(self, record: Record, reader: Reader) -> list[str]:
        problems = [
            f"missing {field}"
            for field in ("id", "email", "password_hash")
            if not record.get(field)
        ]
        if problems:
            return problems

        if not re.match(EMAIL_PATTERN, record["email"]):
            problems.append(f"invalid email {record['email']!r}")
        if not record["password_hash"].startswith(("$2a$", "$2b$")):
            problems.append("password hash is not bcrypt")
        if reader.exists(
            self.table, {"email": record["email"], "id__ne": record["id"]}
        ):
            problems.append(f"duplicate email {record['email']!r}")
        return problems

    def preset_records(self) -> list[Record]:
        return [dict(user) for user in PRESET_USERS]

    def get_stats(self) -> dict[str, int]:
        total = self.store.count(self.table)
        active = self.store.count(self.table, {"is_active": True})
        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "with_phone": self.store.count(self.table, {"phone__isnull": False}),
            "with_avatar": self.store.count(self.table, {"avatar_url__isnull": False}),
            "with_name": self.store.count(self.table, {"name__isnull": False}),
        }

    def _name(self) -> str | None:
        # 30% of users never filled in a name
        if self.chance(0.3):
            return None
        return self.faker.name()

    def _phone(self) -> str | None:
        if self.chance(0.4):
            return None
        suffix = "".join(self.rng.choices("0123456789", k=8))
        return f"{self.rng.choice(MOBILE_PREFIXES)}{suffix}"

    def _avatar_url(self) -> str | None:
        if self.chance(0.5):
            return None
        style = self.rng.choice(AVATAR_STYLES)
        seed = self.faker.pystr(min_chars=10, max_chars=10)
        return f"https://api.dicebear.com/7.x/{style}/svg?seed={seed}"
