# Permission schema types
# Permission matrices are stored as JSON in roles.permissions
# and parsed into these closed enumerations in matrix.py

"""
Stored shape of roles.permissions (jsonb):

{
    "dashboard": {"view": true},
    "projects": {"view": true, "create": false, "edit": "own", "delete": false},
    ...
    "settings": {"view": true, "manage_org": false, "manage_users": false, "manage_roles": false}
}

Each value is one of: true (allowed), false (denied), "own" (own records only).
"""
from enum import Enum
from typing import Dict, FrozenSet, Mapping

from soluly.config.permissions_config import RESOURCES, OWN


class PermissionValue(str, Enum):
    DENIED = "denied"
    ALLOWED = "allowed"
    OWN_ONLY = "own"

    @property
    def grants(self) -> bool:
        return self is not PermissionValue.DENIED

    def to_json(self):
        if self is PermissionValue.OWN_ONLY:
            return OWN
        return self is PermissionValue.ALLOWED


class Resource(str, Enum):
    DASHBOARD = "dashboard"
    PROJECTS = "projects"
    TICKETS = "tickets"
    TEAM = "team"
    CRM = "crm"
    QUOTES = "quotes"
    FEATURES = "features"
    FEEDBACK = "feedback"
    EMAILS = "emails"
    SETTINGS = "settings"
    FINANCIALS = "financials"
    EXPENSES = "expenses"
    FORMS = "forms"


class Action(str, Enum):
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    MANAGE_ORG = "manage_org"
    MANAGE_USERS = "manage_users"
    MANAGE_ROLES = "manage_roles"


PermissionMatrix = Dict[Resource, Dict[Action, PermissionValue]]

SCHEMA: Mapping[Resource, FrozenSet[Action]] = {
    Resource(name): frozenset(Action(a) for a in config["actions"])
    for name, config in RESOURCES.items()
}
