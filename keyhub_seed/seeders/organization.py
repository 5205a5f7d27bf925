"""Organization and department seeder."""

from keyhub_seed.factories.organization import (
    MAIN_ORGANIZATION_CODE,
    DepartmentFactory,
    OrganizationFactory,
)
from keyhub_seed.models import SeederResult, SeedOptions
from keyhub_seed.seeders.admin import ensure_admin_organization
from keyhub_seed.seeders.base import Seeder


class OrganizationSeeder(Seeder):
    """
    Create the organization structure.

    Ensures the admin organization (with a flat department set), the
    predefined sample organizations, and a department tree for every
    organization without departments. The main sample organization gets
    the three-level tree.
    """

    name = "OrganizationSeeder"
    dependencies = ["AdminSeeder"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.organizations = self.make_factory(OrganizationFactory)
        self.departments = self.make_factory(DepartmentFactory)

    def do_seed(self, options: SeedOptions) -> SeederResult:
        with self.transaction() as tx:
            admin_org, admin_org_created = ensure_admin_organization(tx, self.config.admin)
        if admin_org_created:
            self.log(f"Created admin organization: {admin_org['name']}")

        created = int(admin_org_created)
        existing = int(not admin_org_created)
        departments = 0

        if not self.store.exists("departments", {"org_id": admin_org["id"]}):
            departments += self.departments.create_tree(admin_org["id"])

        presets = self.organizations.create_presets()
        created += presets.created
        existing += presets.existing

        for org in self.store.find_many("organizations", order_by="created_at"):
            if org["id"] == admin_org["id"]:
                continue
            if self.store.exists("departments", {"org_id": org["id"]}):
                continue
            count = self.departments.create_tree(
                org["id"], full=org["code"] == MAIN_ORGANIZATION_CODE
            )
            self.log(f"Created {count} departments for {org['name']}")
            departments += count

        self.update_admin_organization(admin_org["id"])

        self.log(
            f"Organization structure done: {created + existing} organizations, "
            f"{departments} new departments"
        )
        return SeederResult.ok(
            "Organization structure created",
            created=created + departments,
            existing=existing,
        )

    def update_admin_organization(self, org_id: str) -> None:
        updated = self.store.update_many(
            "users", {"email": self.config.admin.email}, {"org_id": org_id}
        )
        if not updated:
            self.log("Admin user not found, organization link not updated", "warning")

    def do_clean(self, options: SeedOptions) -> SeederResult:
        admin_code = self.config.admin.org_code

        with self.transaction() as tx:
            if options.preserve_admin:
                keep = tx.find_one("organizations", {"code": admin_code})
                org_filter = {"code__ne": admin_code}
                dept_filter = {"org_id__ne": keep["id"]} if keep else None
            else:
                org_filter = dept_filter = None

            departments = tx.delete("departments", dept_filter)
            organizations = tx.delete("organizations", org_filter)

        self.log(f"Deleted {organizations} organizations and {departments} departments")
        return SeederResult.ok(
            "Organization structure removed", existing=organizations + departments
        )

    def get_stats(self) -> dict[str, float]:
        return {
            "organizations": self.store.count("organizations"),
            "departments": self.store.count("departments"),
        }
