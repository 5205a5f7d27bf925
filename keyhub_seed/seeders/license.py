"""License seeder."""

from keyhub_seed.factories.license import LicenseFactory
from keyhub_seed.models import SeederResult, SeedOptions
from keyhub_seed.seeders.base import Seeder


class LicenseSeeder(Seeder):
    """Create preset and random licenses and repair stale expiry flags."""

    name = "LicenseSeeder"
    dependencies = ["UserSeeder"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.factory = self.make_factory(LicenseFactory)

    def do_seed(self, options: SeedOptions) -> SeederResult:
        count = (
            options.count if options.count is not None else self.config.defaults.license_count
        )
        created = existing = 0

        if options.include_presets:
            presets = self.factory.create_presets()
            created += presets.created
            existing += presets.existing

        if count > 0:
            outcome = self.factory.create_batch(count)
            if not outcome.succeeded and outcome.failed:
                return SeederResult.failure(
                    f"Failed to create {count} licenses", outcome.failed[0].message
                )
            created += len(outcome.succeeded)
            self.log(f"Created {len(outcome.succeeded)} random licenses")

        repaired = self.factory.update_expired_status()

        message = f"Licenses done: created {created}, existing {existing}"
        self.log(message)
        return SeederResult.ok(
            message, created=created, existing=existing, updated=repaired
        )

    def do_clean(self, options: SeedOptions) -> SeederResult:
        deleted = self.store.delete_many("licenses")
        self.log(f"Deleted {deleted} licenses")
        return SeederResult.ok("Licenses removed", existing=deleted)

    def get_stats(self) -> dict[str, float]:
        return self.factory.get_stats()
