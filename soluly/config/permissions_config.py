"""
Permissions and Role Templates Configuration
This config defines the fixed permission schema (resources and their actions)
and the built-in role templates offered by the role editor.
Used by the permission matrix validator, the seed script and the /roles/templates endpoint.
"""

CRUD_ACTIONS = ["view", "create", "edit", "delete"]

# Define resources and their actions
RESOURCES = {
    "dashboard": {
        "actions": ["view"],
        "label": "Dashboard"
    },
    "projects": {
        "actions": CRUD_ACTIONS,
        "label": "Projects"
    },
    "tickets": {
        "actions": CRUD_ACTIONS,
        "label": "Tickets"
    },
    "team": {
        "actions": CRUD_ACTIONS,
        "label": "Team Members"
    },
    "crm": {
        "actions": CRUD_ACTIONS,
        "label": "CRM (Clients & Leads)"
    },
    "quotes": {
        "actions": CRUD_ACTIONS,
        "label": "Customer Quotes"
    },
    "features": {
        "actions": CRUD_ACTIONS,
        "label": "Feature Requests"
    },
    "feedback": {
        "actions": CRUD_ACTIONS,
        "label": "Feedback"
    },
    "emails": {
        "actions": CRUD_ACTIONS,
        "label": "Emails"
    },
    "financials": {
        "actions": CRUD_ACTIONS,
        "label": "Financials"
    },
    "expenses": {
        "actions": CRUD_ACTIONS,
        "label": "Expenses"
    },
    "forms": {
        "actions": CRUD_ACTIONS,
        "label": "Forms"
    },
    "settings": {
        "actions": ["view", "manage_org", "manage_users", "manage_roles"],
        "label": "Settings"
    }
}

ACTION_LABELS = {
    "view": "View",
    "create": "Create",
    "edit": "Edit",
    "delete": "Delete",
    "manage_org": "Manage Organization",
    "manage_users": "Manage Users",
    "manage_roles": "Manage Roles",
}

# Field on a record that identifies its owner for "own" permissions.
# Resources not listed use "created_by".
OWNERSHIP_FIELDS = {
    "tickets": "assignee_id",
    "team": "id",
}

OWN = "own"


def _crud(view=False, create=False, edit=False, delete=False):
    return {"view": view, "create": create, "edit": edit, "delete": delete}


def _settings(view=False, manage_org=False, manage_users=False, manage_roles=False):
    return {"view": view, "manage_org": manage_org, "manage_users": manage_users, "manage_roles": manage_roles}


def _full():
    return _crud(True, True, True, True)


# Built-in role templates, stored in the same JSON shape as roles.permissions.
# project_scope: None = all projects, [] = needs project assignment.
ROLE_TEMPLATES = {
    "admin": {
        "name": "Admin",
        "description": "Full access to all features and settings",
        "permissions": {
            "dashboard": {"view": True},
            "projects": _full(),
            "tickets": _full(),
            "team": _full(),
            "crm": _full(),
            "quotes": _full(),
            "features": _full(),
            "feedback": _full(),
            "emails": _full(),
            "financials": _full(),
            "expenses": _full(),
            "forms": _full(),
            "settings": _settings(True, True, True, True),
        },
        "project_scope": None
    },
    "manager": {
        "name": "Manager",
        "description": "Can manage projects, team, and view financials",
        "permissions": {
            "dashboard": {"view": True},
            "projects": _crud(True, True, True),
            "tickets": _crud(True, True, True),
            "team": _crud(True, edit=True),
            "crm": _crud(True, True, True),
            "quotes": _crud(True, True, True),
            "features": _crud(True, True, True),
            "feedback": _crud(True, True, True),
            "emails": _crud(True, True, True),
            "financials": _crud(True),
            "expenses": _crud(True, True, True),
            "forms": _crud(True, True, True),
            "settings": _settings(True),
        },
        "project_scope": None
    },
    "sales": {
        "name": "Sales",
        "description": "Access to CRM, quotes, and client management",
        "permissions": {
            "dashboard": {"view": True},
            "projects": _crud(True),
            "tickets": _crud(True, True, OWN),
            "team": _crud(True),
            "crm": _crud(True, True, OWN),
            "quotes": _crud(True, True, OWN),
            "features": _crud(True, True),
            "feedback": _crud(True, True),
            "emails": _crud(OWN, True),
            "financials": _crud(),
            "expenses": _crud(),
            "forms": _crud(True, True, OWN),
            "settings": _settings(True),
        },
        "project_scope": None
    },
    "developer": {
        "name": "Developer",
        "description": "Access to projects, tickets, and feature requests",
        "permissions": {
            "dashboard": {"view": True},
            "projects": _crud(True, True, True),
            "tickets": _crud(True, True, True),
            "team": _crud(True),
            "crm": _crud(),
            "quotes": _crud(),
            "features": _crud(True, True, True),
            "feedback": _crud(True),
            "emails": _crud(),
            "financials": _crud(),
            "expenses": _crud(),
            "forms": _crud(True),
            "settings": _settings(True),
        },
        "project_scope": None
    },
    "accountant": {
        "name": "Accountant",
        "description": "Access to financials and expenses only",
        "permissions": {
            "dashboard": {"view": True},
            "projects": _crud(),
            "tickets": _crud(),
            "team": _crud(True),
            "crm": _crud(),
            "quotes": _crud(True),
            "features": _crud(),
            "feedback": _crud(),
            "emails": _crud(),
            "financials": _full(),
            "expenses": _full(),
            "forms": _crud(),
            "settings": _settings(True),
        },
        "project_scope": None
    },
    "feedback_only": {
        "name": "Feedback Collector",
        "description": "Can only submit and view feedback",
        "permissions": {
            "dashboard": {"view": True},
            "projects": _crud(),
            "tickets": _crud(),
            "team": _crud(),
            "crm": _crud(),
            "quotes": _crud(),
            "features": _crud(),
            "feedback": _crud(True, True, OWN),
            "emails": _crud(),
            "financials": _crud(),
            "expenses": _crud(),
            "forms": _crud(),
            "settings": _settings(),
        },
        "project_scope": None
    },
    "viewer": {
        "name": "Viewer",
        "description": "Read-only access to every area",
        "permissions": {
            resource: {action: action == "view" for action in config["actions"]}
            for resource, config in RESOURCES.items()
        },
        "project_scope": None
    },
    "contractor": {
        "name": "Contractor",
        "description": "Limited access to assigned projects only",
        "permissions": {
            "dashboard": {"view": True},
            "projects": _crud(True),
            "tickets": _crud(True, True, OWN),
            "team": _crud(True),
            "crm": _crud(),
            "quotes": _crud(),
            "features": _crud(True, True, OWN),
            "feedback": _crud(True, True, OWN),
            "emails": _crud(),
            "financials": _crud(),
            "expenses": _crud(),
            "forms": _crud(True),
            "settings": _settings(),
        },
        "project_scope": []
    }
}

# Roles seeded into every new organization. Only Admin is a system role.
SEEDED_ROLES = [
    {"template": "admin", "is_system": True},
    {"template": "manager", "is_system": False},
    {"template": "developer", "is_system": False},
    {"template": "viewer", "is_system": False},
]
