"""Test user seeder."""

from keyhub_seed.factories.user import UserFactory
from keyhub_seed.models import SeederResult, SeedOptions
from keyhub_seed.seeders.base import Seeder


class UserSeeder(Seeder):
    """Create preset and random users, then spread them over organizations."""

    name = "UserSeeder"
    dependencies = ["OrganizationSeeder"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.factory = self.make_factory(UserFactory)

    def do_seed(self, options: SeedOptions) -> SeederResult:
        count = options.count if options.count is not None else self.config.defaults.user_count
        created = existing = 0

        if options.include_presets:
            presets = self.factory.create_presets()
            created += presets.created
            existing += presets.existing

        if count > 0:
            outcome = self.factory.create_batch(count)
            if not outcome.succeeded and outcome.failed:
                return SeederResult.failure(
                    f"Failed to create {count} users", outcome.failed[0].message
                )
            created += len(outcome.succeeded)
            self.log(f"Created {len(outcome.succeeded)} random users")

        self.assign_organizations()

        message = f"Users done: created {created}, existing {existing}"
        self.log(message)
        return SeederResult.ok(message, created=created, existing=existing)

    def assign_organizations(self) -> int:
        """
        Move every non-admin user to a random sample organization.

        80% of users also get a random department of that organization.

        Returns:
            Number of users updated
        """
        rng = self.factory.rng
        users = self.store.find_many("users", {"email__ne": self.config.admin.email})
        if not users:
            self.log("No users to assign")
            return 0

        organizations = self.store.find_many(
            "organizations", {"code__ne": self.config.admin.org_code}
        )
        if not organizations:
            self.log("No organizations to assign users to", "warning")
            return 0

        by_org: dict[str, list[str]] = {}
        for dept in self.store.find_many("departments"):
            by_org.setdefault(dept["org_id"], []).append(dept["id"])

        with self.transaction() as tx:
            for user in users:
                org = rng.choice(organizations)
                departments = by_org.get(org["id"], [])
                department_id = None
                if departments and rng.random() < 0.8:
                    department_id = rng.choice(departments)
                tx.update(
                    "users",
                    {"id": user["id"]},
                    {"org_id": org["id"], "department_id": department_id},
                )

        self.log(f"Assigned {len(users)} users to organizations and departments")
        return len(users)

    def do_clean(self, options: SeedOptions) -> SeederResult:
        where = {"email__ne": self.config.admin.email} if options.preserve_admin else None

        with self.transaction() as tx:
            ids = [u["id"] for u in tx.find_many("users", where)]
            if ids:
                tx.delete("user_roles", {"user_id__in": ids})
            deleted = tx.delete("users", where)

        self.log(f"Deleted {deleted} users")
        return SeederResult.ok("Users removed", existing=deleted)

    def get_stats(self) -> dict[str, float]:
        return self.factory.get_stats()
