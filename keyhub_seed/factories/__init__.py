"""Record factories, one per entity type."""

from keyhub_seed.factories.access_log import AccessLogFactory
from keyhub_seed.factories.base import BatchFactory
from keyhub_seed.factories.license import LicenseFactory
from keyhub_seed.factories.organization import DepartmentFactory, OrganizationFactory
from keyhub_seed.factories.user import UserFactory

__all__ = [
    "BatchFactory",
    "OrganizationFactory",
    "DepartmentFactory",
    "UserFactory",
    "LicenseFactory",
    "AccessLogFactory",
]
