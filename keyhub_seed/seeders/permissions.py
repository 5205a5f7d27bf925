"""Permission catalog seeder."""

from keyhub_seed.models import SeederResult, SeedOptions
from keyhub_seed.seeders.base import Seeder
from keyhub_seed.seeders.data import CRITICAL_PERMISSIONS, PERMISSION_SEEDS


class PermissionsSeeder(Seeder):
    """Create the fixed permission catalog (all system permissions)."""

    name = "PermissionsSeeder"
    dependencies: list[str] = []

    def do_seed(self, options: SeedOptions) -> SeederResult:
        existing = {p["slug"] for p in self.store.find_many("permissions")}
        to_create = [
            {
                "resource": resource,
                "action": action,
                "slug": f"{resource}:{action}",
                "description": description,
                "system": True,
            }
            for resource, action, description in PERMISSION_SEEDS
            if f"{resource}:{action}" not in existing
        ]

        if not to_create:
            return SeederResult.ok(
                "All permissions already exist", existing=len(PERMISSION_SEEDS)
            )

        with self.transaction() as tx:
            tx.insert_many("permissions", to_create)

        total = self.store.count("permissions")
        system = self.store.count("permissions", {"system": True})
        return SeederResult.ok(
            f"Created {len(to_create)} permissions. Total: {total}, system: {system}",
            created=len(to_create),
            existing=len(PERMISSION_SEEDS) - len(to_create),
        )

    def do_clean(self, options: SeedOptions) -> SeederResult:
        with self.transaction() as tx:
            if options.preserve_admin:
                custom = [p["id"] for p in tx.find_many("permissions", {"system": False})]
                if custom:
                    tx.delete("role_permissions", {"permission_id__in": custom})
                deleted = tx.delete("permissions", {"system": False})
                message = f"Deleted {deleted} non-system permissions"
            else:
                tx.delete("role_permissions")
                deleted = tx.delete("permissions")
                message = f"Deleted {deleted} permissions"

        self.log(message)
        return SeederResult.ok(message, existing=deleted)

    def get_stats(self) -> dict[str, float]:
        permissions = self.store.find_many("permissions")
        system = sum(1 for p in permissions if p["system"])
        stats: dict[str, float] = {
            "total": len(permissions),
            "system": system,
            "custom": len(permissions) - system,
        }
        for permission in permissions:
            key = f"{permission['resource']}_permissions"
            stats[key] = stats.get(key, 0) + 1
        return stats

    def validate(self) -> bool:
        try:
            if self.store.count("permissions") == 0:
                return False
            return all(
                self.store.exists("permissions", {"slug": slug})
                for slug in CRITICAL_PERMISSIONS
            )
        except Exception as e:
            self.log(f"validation raised: {e}", "warning")
            return False
