# Supabase tables read by project access management
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

projects:
- id: uuid (primary key)
- organization_id: uuid (foreign key to organizations.id, not null)
- name: text

team_members (columns used here):
- id, organization_id, name, email, avatar, status ("active" | ...)
- is_owner: boolean
- role_id: uuid (nullable)
- allowed_project_ids: jsonb array (nullable) - member-level override of the role's project_scope
- auth_user_id: uuid

project_team_members:
- id: uuid (primary key)
- project_id: uuid (foreign key to projects.id)
- team_member_id: uuid (foreign key to team_members.id)
- hours_logged: numeric
"""
