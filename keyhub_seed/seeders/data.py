"""Permission catalog and system roles."""

SUPER_ADMIN_PERMISSION = "admin:*"

# (resource, action, description)
PERMISSION_SEEDS: list[tuple[str, str, str]] = [
    ("users", "read", "View users"),
    ("users", "create", "Create users"),
    ("users", "update", "Update users"),
    ("users", "delete", "Delete users"),
    ("users", "*", "Full user management"),
    ("departments", "read", "View departments"),
    ("departments", "create", "Create departments"),
    ("departments", "update", "Update departments"),
    ("departments", "delete", "Delete departments"),
    ("departments", "*", "Full department management"),
    ("organizations", "read", "View organization"),
    ("organizations", "update", "Update organization"),
    ("organizations", "*", "Full organization management"),
    ("roles", "read", "View roles"),
    ("roles", "create", "Create roles"),
    ("roles", "update", "Update roles and their permissions"),
    ("roles", "delete", "Delete roles"),
    ("roles", "assign", "Assign roles to users"),
    ("roles", "*", "Full role management"),
    ("permissions", "read", "View permission catalog"),
    ("permissions", "create", "Create permissions"),
    ("permissions", "delete", "Delete permissions"),
    ("permissions", "*", "Full permission management"),
    ("statistics", "read", "View statistics"),
    ("statistics", "*", "Full statistics access"),
    ("licenses", "read", "View licenses"),
    ("licenses", "create", "Create licenses"),
    ("licenses", "update", "Update licenses"),
    ("licenses", "delete", "Delete licenses"),
    ("licenses", "*", "Full license management"),
    ("admin", "*", "System administrator"),
]

CRITICAL_PERMISSIONS = [SUPER_ADMIN_PERMISSION, "users:read", "roles:read"]

SYSTEM_ROLE_SEEDS: list[dict] = [
    {
        "name": "Super Admin",
        "slug": "super_admin",
        "description": "All permissions across every organization",
        "permissions": [SUPER_ADMIN_PERMISSION],
    },
    {
        "name": "Organization Owner",
        "slug": "org_owner",
        "description": "Full management inside the organization",
        "permissions": [
            "users:*",
            "departments:*",
            "organizations:*",
            "roles:*",
            "permissions:read",
            "statistics:read",
            "licenses:*",
        ],
    },
    {
        "name": "Organization Admin",
        "slug": "org_admin",
        "description": "Manages users and departments of the organization",
        "permissions": [
            "users:read",
            "users:create",
            "users:update",
            "departments:*",
            "organizations:read",
            "roles:read",
            "permissions:read",
            "statistics:read",
            "licenses:read",
        ],
    },
    {
        "name": "Department Manager",
        "slug": "dept_manager",
        "description": "Manages users of the department",
        "permissions": [
            "users:read",
            "users:update",
            "departments:read",
            "organizations:read",
            "roles:read",
            "permissions:read",
            "statistics:read",
        ],
    },
    {
        "name": "Member",
        "slug": "member",
        "description": "Regular member with read access",
        "permissions": [
            "users:read",
            "departments:read",
            "organizations:read",
        ],
    },
    {
        "name": "Auditor",
        "slug": "auditor",
        "description": "Read and statistics access for auditing",
        "permissions": [
            "users:read",
            "departments:read",
            "organizations:read",
            "roles:read",
            "permissions:read",
            "statistics:read",
            "licenses:read",
        ],
    },
]

CRITICAL_ROLES = ["super_admin", "org_owner", "member"]
