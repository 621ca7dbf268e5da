"""
Seed System Roles Script
This script populates the roles table of one organization from the built-in templates.
Existing roles (matched case-insensitively by name) are left untouched so tenant edits survive.

Usage: python -m soluly.scripts.seed_system_roles <organization_id>
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from soluly.config.permissions_config import ROLE_TEMPLATES, SEEDED_ROLES
from soluly.database.supabase_client import get_service_supabase
from soluly.modules.permissions.matrix import matrix_to_json, validate_matrix
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_roles(supabase: Client, organization_id: str) -> int:
    """Create missing seeded roles for the organization. Returns the number created."""
    logger.info(f"Seeding roles for organization {organization_id}...")

    existing = supabase.table("roles")\
        .select("id, name")\
        .eq("organization_id", organization_id)\
        .execute()
    existing_names = {(r.get("name") or "").strip().casefold() for r in existing.data or []}

    created_count = 0
    for seeded in SEEDED_ROLES:
        template = ROLE_TEMPLATES[seeded["template"]]
        if template["name"].casefold() in existing_names:
            logger.debug(f"Role already present: {template['name']}")
            continue
        try:
            supabase.table("roles").insert({
                "organization_id": organization_id,
                "name": template["name"],
                "description": template["description"],
                "permissions": matrix_to_json(validate_matrix(template["permissions"])),
                "project_scope": template["project_scope"],
                "is_system": seeded["is_system"]
            }).execute()
            created_count += 1
            logger.debug(f"Created role: {template['name']}")
        except Exception as e:
            logger.error(f"Error creating role {template['name']}: {e}")
            raise

    logger.info(f"Roles seeded: {created_count} created, {len(SEEDED_ROLES) - created_count} already present")
    return created_count


def main():
    """Main function to seed roles for one organization"""
    if len(sys.argv) != 2:
        logger.error("Usage: python -m soluly.scripts.seed_system_roles <organization_id>")
        sys.exit(2)
    try:
        seed_roles(get_service_supabase(), sys.argv[1])
        logger.info("Seeding completed successfully!")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
