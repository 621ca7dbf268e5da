# Supabase table: roles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

roles:
- id: uuid (primary key)
- organization_id: uuid (foreign key to organizations.id, not null)
- name: text (not null) - unique per organization, compared case-insensitively
- description: text (nullable)
- permissions: jsonb (not null) - full permission matrix, see soluly/modules/permissions/models.py
- project_scope: jsonb array of project ids (nullable) - null = all projects, [] = no projects
- is_system: boolean (default: false) - cannot be deleted or renamed
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

team_members.role_id references roles.id without ON DELETE CASCADE.
Members left pointing at a deleted role resolve to the zero-permission matrix.
"""
