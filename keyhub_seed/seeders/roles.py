"""System role seeder."""

from keyhub_seed.models import SeederResult, SeedOptions
from keyhub_seed.seeders.base import Seeder
from keyhub_seed.seeders.data import CRITICAL_ROLES, SYSTEM_ROLE_SEEDS


class RolesSeeder(Seeder):
    """Create the system roles and link them to their permissions."""

    name = "RolesSeeder"
    dependencies = ["PermissionsSeeder"]

    def do_seed(self, options: SeedOptions) -> SeederResult:
        permission_ids = {
            p["slug"]: p["id"] for p in self.store.find_many("permissions")
        }
        if not permission_ids:
            return SeederResult.failure(
                "No permissions found, run PermissionsSeeder first"
            )

        existing = {
            r["slug"] for r in self.store.find_many("roles", {"system": True})
        }
        to_create = [role for role in SYSTEM_ROLE_SEEDS if role["slug"] not in existing]

        linked = 0
        for seed in to_create:
            self.log(f"Creating role {seed['name']} ({seed['slug']})")
            with self.transaction() as tx:
                role = tx.insert(
                    "roles",
                    {
                        "name": seed["name"],
                        "slug": seed["slug"],
                        "description": seed["description"],
                        "system": True,
                        "is_active": True,
                        "org_id": None,
                    },
                )
                for slug in seed["permissions"]:
                    if slug not in permission_ids:
                        self.log(f"Permission {slug} does not exist, skipping", "warning")
                        continue
                    tx.insert(
                        "role_permissions",
                        {"role_id": role["id"], "permission_id": permission_ids[slug]},
                    )
                    linked += 1

        assigned = self.assign_default_role()

        if not to_create:
            message = "All system roles already exist"
        else:
            message = f"Created {len(to_create)} system roles with {linked} permissions"
        if assigned:
            message += f", assigned member role to {assigned} users"

        return SeederResult.ok(
            message, created=len(to_create), existing=len(existing)
        )

    def assign_default_role(self) -> int:
        """
        Give the ``member`` role to every user without a role.

        Returns:
            Number of users updated
        """
        member = self.store.find_one("roles", {"slug": "member", "system": True})
        if member is None:
            self.log("Role 'member' not found, skipping user role assignment", "warning")
            return 0

        with_roles = {ur["user_id"] for ur in self.store.find_many("user_roles")}
        users = [u for u in self.store.find_many("users") if u["id"] not in with_roles]
        if not users:
            return 0

        with self.transaction() as tx:
            tx.insert_many(
                "user_roles",
                [
                    {"user_id": u["id"], "role_id": member["id"], "org_id": u["org_id"]}
                    for u in users
                ],
            )
        return len(users)

    def do_clean(self, options: SeedOptions) -> SeederResult:
        with self.transaction() as tx:
            if options.preserve_admin:
                custom = [r["id"] for r in tx.find_many("roles", {"system": False})]
                user_roles = role_permissions = 0
                if custom:
                    user_roles = tx.delete("user_roles", {"role_id__in": custom})
                    role_permissions = tx.delete("role_permissions", {"role_id__in": custom})
                deleted = tx.delete("roles", {"system": False})
                message = (
                    f"Deleted {deleted} non-system roles, {role_permissions} "
                    f"permission links and {user_roles} user assignments"
                )
            else:
                tx.delete("user_roles")
                tx.delete("role_permissions")
                deleted = tx.delete("roles")
                message = f"Deleted {deleted} roles"

        self.log(message)
        return SeederResult.ok(message, existing=deleted)

    def get_stats(self) -> dict[str, float]:
        total = self.store.count("roles")
        system = self.store.count("roles", {"system": True})
        return {
            "total": total,
            "system": system,
            "custom": total - system,
            "active": self.store.count("roles", {"is_active": True}),
            "user_roles": self.store.count("user_roles"),
            "role_permissions": self.store.count("role_permissions"),
        }

    def validate(self) -> bool:
        try:
            if self.store.count("roles") == 0:
                return False

            for slug in CRITICAL_ROLES:
                role = self.store.find_one("roles", {"slug": slug, "system": True})
                if role is None:
                    return False
                if slug == "super_admin" and not self.store.exists(
                    "role_permissions", {"role_id": role["id"]}
                ):
                    return False
            return True
        except Exception as e:
            self.log(f"validation raised: {e}", "warning")
            return False
