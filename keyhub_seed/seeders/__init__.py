"""Entity seeders."""

from keyhub_seed.seeders.access_log import AccessLogSeeder
from keyhub_seed.seeders.admin import AdminSeeder
from keyhub_seed.seeders.base import Seeder
from keyhub_seed.seeders.license import LicenseSeeder
from keyhub_seed.seeders.organization import OrganizationSeeder
from keyhub_seed.seeders.permissions import PermissionsSeeder
from keyhub_seed.seeders.roles import RolesSeeder
from keyhub_seed.seeders.user import UserSeeder

# Registration order; the orchestrator runs seeders in this order
SEEDER_CLASSES: list[type[Seeder]] = [
    PermissionsSeeder,
    RolesSeeder,
    AdminSeeder,
    OrganizationSeeder,
    UserSeeder,
    LicenseSeeder,
    AccessLogSeeder,
]

__all__ = [
    "Seeder",
    "SEEDER_CLASSES",
    "PermissionsSeeder",
    "RolesSeeder",
    "AdminSeeder",
    "OrganizationSeeder",
    "UserSeeder",
    "LicenseSeeder",
    "AccessLogSeeder",
]
