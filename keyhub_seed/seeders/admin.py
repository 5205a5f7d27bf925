"""Bootstrap administrator seeder."""

from datetime import datetime, timezone

from keyhub_seed.config import AdminConfig
from keyhub_seed.factories.user import hash_password
from keyhub_seed.models import Record, SeederResult, SeedOptions
from keyhub_seed.seeders.base import Seeder
from keyhub_seed.store.base import UnitOfWork


def ensure_admin_organization(tx: UnitOfWork, admin: AdminConfig) -> tuple[Record, bool]:
    """
    Find or create the administrators' organization.

    Returns:
        (organization, created) tuple
    """
    org = tx.find_one("organizations", {"code": admin.org_code})
    if org is not None:
        return org, False

    org = tx.insert(
        "organizations",
        {
            "name": admin.org_name,
            "code": admin.org_code,
            "remark": "Reserved for system administrators",
            "is_active": True,
            "created_at": datetime.now(timezone.utc),
        },
    )
    return org, True


class AdminSeeder(Seeder):
    """Create the bootstrap administrator account."""

    name = "AdminSeeder"
    dependencies: list[str] = []

    def do_seed(self, options: SeedOptions) -> SeederResult:
        admin = self.config.admin

        if self.store.exists("users", {"email": admin.email}):
            self.log(f"Admin account already exists: {admin.email}", "warning")
            return SeederResult.ok("Admin account already exists", existing=1)

        password_hash = hash_password(admin.password, self.config.factory.bcrypt_rounds)

        with self.transaction() as tx:
            org, _ = ensure_admin_organization(tx, admin)
            user = tx.insert(
                "users",
                {
                    "email": admin.email,
                    "password_hash": password_hash,
                    "name": admin.name,
                    "phone": None,
                    "avatar_url": None,
                    "is_active": True,
                    "org_id": org["id"],
                    "department_id": None,
                    "created_at": datetime.now(timezone.utc),
                },
            )

            role = tx.find_one("roles", {"slug": "super_admin", "system": True})
            if role is not None:
                tx.insert(
                    "user_roles",
                    {"user_id": user["id"], "role_id": role["id"], "org_id": org["id"]},
                )
                self.log("Assigned role super_admin")
            else:
                self.log(
                    "System role super_admin not found, skipping role assignment. "
                    "Run PermissionsSeeder and RolesSeeder first",
                    "warning",
                )

        self.log(f"Admin account created: {admin.email}")
        return SeederResult.ok("Admin account created", created=1)

    def do_clean(self, options: SeedOptions) -> SeederResult:
        if options.preserve_admin:
            return SeederResult.ok("Admin account preserved")

        email = self.config.admin.email
        with self.transaction() as tx:
            ids = [u["id"] for u in tx.find_many("users", {"email": email})]
            if ids:
                tx.delete("user_roles", {"user_id__in": ids})
            deleted = tx.delete("users", {"email": email})

        self.log(f"Deleted {deleted} admin accounts")
        return SeederResult.ok("Admin account removed", existing=deleted)

    def get_stats(self) -> dict[str, float]:
        return {"admin_users": self.store.count("users", {"email": self.config.admin.email})}

    def get_admin_user(self) -> Record | None:
        return self.store.find_one("users", {"email": self.config.admin.email})
