"""Organization and department factories."""

import logging
import string
from datetime import datetime, timezone

from keyhub_seed.factories.base import BatchFactory
from keyhub_seed.models import Record
from keyhub_seed.store.base import Reader, UnitOfWork

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits

PREDEFINED_ORGANIZATIONS: list[Record] = [
    {
        "name": "Innovation Technology Ltd.",
        "code": "INNOV_TECH",
        "remark": "Innovation-driven company focused on frontier R&D",
        "is_active": True,
    },
    {
        "name": "Digital Solutions Group",
        "code": "DIGITAL_SOL",
        "remark": "Large group offering digital transformation solutions",
        "is_active": True,
    },
    {
        "name": "Smart City Construction Co.",
        "code": "SMART_CITY",
        "remark": "Builds smart city projects",
        "is_active": True,
    },
    {
        "name": "Cloud Services Provider",
        "code": "CLOUD_SERV",
        "remark": "Cloud infrastructure provider",
        "is_active": False,  # deactivated sample
    },
]

# Organization that receives the full three-level department tree
MAIN_ORGANIZATION_CODE = "INNOV_TECH"

DEPARTMENT_NAMES = [
    "R&D", "Engineering", "Product", "QA", "Operations", "Architecture",
    "Frontend", "Backend", "Mobile", "Data", "AI Research",
    "Sales", "Marketing", "Customer Service", "Business Development",
    "Channels", "Project Management", "Growth", "Brand",
    "Human Resources", "Finance", "Administration", "Legal", "Procurement",
    "Audit", "Planning", "Quality", "Security", "Training",
    "CEO Office", "Board Office", "Strategy", "Investment",
    "Risk Control", "Compliance", "Public Relations",
]

SIMPLE_STRUCTURE: list[tuple[str, str]] = [
    ("Engineering", "Engineering team"),
    ("Sales", "Sales and customer relations"),
    ("Operations", "Day-to-day operations"),
]

# (name, remark, children); children use the same shape
FULL_STRUCTURE: list[tuple[str, str, list]] = [
    ("Technology Center", "Technology research and product development", [
        ("Frontend", "Web and mobile frontend development", [
            ("React Team", "React projects", []),
            ("Vue Team", "Vue projects", []),
        ]),
        ("Backend", "Services and API development", []),
        ("QA", "Quality assurance and testing", []),
        ("Operations", "System operations and DevOps", []),
        ("Data", "Data analysis and data science", []),
    ]),
    ("Marketing Center", "Marketing and sales", [
        ("Sales", "Product sales and customer relations", []),
        ("Promotion", "Brand promotion and campaigns", []),
        ("Business Development", "Partnerships and channels", []),
    ]),
    ("Operations Center", "Product operations and customer service", [
        ("Customer Service", "Customer service and support", []),
        ("Product Operations", "Product operations and analytics", []),
    ]),
    ("Corporate Center", "HR, finance and other corporate functions", [
        ("Human Resources", "Recruiting, training and performance", []),
        ("Finance", "Financial management and cost control", []),
        ("Administration", "Administration and logistics", []),
        ("Legal", "Legal affairs and compliance", []),
    ]),
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OrganizationFactory(BatchFactory):
    """Generate organizations with unique codes."""

    table = "organizations"
    unique_field = "code"
    preset_keys = ("code",)

    def generate_single(self, overrides: Record | None = None) -> Record:
        overrides = overrides or {}
        code = overrides.get("code") or self.unique_value(self._random_code)

        return {
            "name": overrides.get("name") or self.faker.company(),
            "code": code,
            "remark": overrides.get("remark", self.faker.sentence()),
            "is_active": overrides.get("is_active", self.chance(0.9)),
            "created_at": overrides.get("created_at") or _now(),
        }

    def validate_record(self, record: Record, reader: Reader) -> list[str]:
        return [
            f"missing {field}"
            for field in ("id", "name", "code")
            if not record.get(field)
        ]

    def preset_records(self) -> list[Record]:
        return [dict(org) for org in PREDEFINED_ORGANIZATIONS]

    def _random_code(self) -> str:
        return "".join(self.rng.choices(CODE_ALPHABET, k=8))


class DepartmentFactory(BatchFactory):
    """Generate departments and standard department trees."""

    table = "departments"

    def generate_single(self, overrides: Record | None = None) -> Record:
        overrides = overrides or {}
        org_id = overrides.get("org_id")
        if org_id is None:
            org_id = self.require_one(
                "organizations", {"is_active": True}, "OrganizationSeeder"
            )["id"]

        return {
            "org_id": org_id,
            "parent_id": overrides.get("parent_id"),
            "name": overrides.get("name") or self.rng.choice(DEPARTMENT_NAMES),
            "remark": overrides.get("remark", self.faker.sentence()),
            "is_active": overrides.get("is_active", self.chance(0.95)),
            "created_at": overrides.get("created_at") or _now(),
        }

    def validate_record(self, record: Record, reader: Reader) -> list[str]:
        problems = [
            f"missing {field}"
            for field in ("id", "name", "org_id")
            if not record.get(field)
        ]
        if record.get("org_id") and not reader.exists(
            "organizations", {"id": record["org_id"]}
        ):
            problems.append(f"organization {record['org_id']} does not exist")
        return problems

    def create_tree(self, org_id: str, full: bool = False) -> int:
        """
        Create the standard department structure of an organization.

        The whole tree is written in one transaction.

        Args:
            org_id: Organization to attach departments to
            full: Create the multi-level tree instead of the flat set

        Returns:
            Number of departments created
        """
        structure = FULL_STRUCTURE if full else [
            (name, remark, []) for name, remark in SIMPLE_STRUCTURE
        ]
        with self.store.transaction(
            timeout=self.config.transaction_timeout, max_wait=self.config.max_wait
        ) as tx:
            return self._create_level(tx, org_id, None, structure)

    def _create_level(
        self, tx: UnitOfWork, org_id: str, parent_id: str | None, nodes: list
    ) -> int:
        created = 0
        for name, remark, children in nodes:
            dept = tx.insert(
                self.table,
                self.generate_single(
                    {"org_id": org_id, "parent_id": parent_id, "name": name, "remark": remark}
                ),
            )
            created += 1
            logger.debug(f"Created department {name} (parent: {parent_id})")
            created += self._create_level(tx, org_id, dept["id"], children)
        return created
