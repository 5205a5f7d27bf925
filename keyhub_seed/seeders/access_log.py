"""Access log seeder."""

from keyhub_seed.factories.access_log import (
    ELIGIBLE_LICENSES,
    REALISTIC_LICENSE_LIMIT,
    AccessLogFactory,
)
from keyhub_seed.models import SeederResult, SeedOptions
from keyhub_seed.seeders.base import Seeder


class AccessLogSeeder(Seeder):
    """Create access logs for used, unlocked licenses."""

    name = "AccessLogSeeder"
    dependencies = ["LicenseSeeder"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.factory = self.make_factory(AccessLogFactory)

    def do_seed(self, options: SeedOptions) -> SeederResult:
        defaults = self.config.defaults
        logs_per_license = options.logs_per_license or defaults.logs_per_license
        realistic_days = options.realistic_days or defaults.realistic_days
        created = 0

        if logs_per_license > 0:
            summary = self.factory.create_logs_for_all_licenses(logs_per_license)
            created += summary["total_logs"]
            self.log(f"Created {summary['total_logs']} access logs")

        if options.generate_realistic:
            realistic = self.create_realistic_patterns(realistic_days)
            created += realistic
            self.log(f"Created {realistic} realistic access logs")

        return SeederResult.ok(f"Access logs done: created {created}", created=created)

    def create_realistic_patterns(self, days: int) -> int:
        licenses = self.store.find_many(
            "licenses", ELIGIBLE_LICENSES, limit=REALISTIC_LICENSE_LIMIT
        )
        if not licenses:
            self.log("No used licenses found, skipping realistic pattern", "warning")
            return 0

        total = 0
        for license in licenses:
            outcome = self.factory.create_realistic_pattern(
                license["id"], license["email"], days
            )
            if outcome.failed:
                self.log(
                    f"{len(outcome.failed)} realistic logs failed for {license['email']}",
                    "warning",
                )
            total += len(outcome.succeeded)
        return total

    def do_clean(self, options: SeedOptions) -> SeederResult:
        deleted = self.store.delete_many("access_logs")
        self.log(f"Deleted {deleted} access logs")
        return SeederResult.ok("Access logs removed", existing=deleted)

    def get_stats(self) -> dict[str, float]:
        return self.factory.get_stats()
