# Identity comes from Supabase Auth (auth.users); this service stores no credentials.

"""
Identity vs. membership:

- auth.users (managed by Supabase): email, password hash, JWT issuance.
  AuthService only calls sign_in_with_password, get_user and sign_out.
- team_members.auth_user_id links an identity to exactly one member row in
  one organization. That row (plus its role) is what authorization uses;
  it is resolved and cached per user by soluly/modules/session/context.py.

A valid token whose user has no team_members row is authenticated but not
authorized: /auth/me answers 403 for it.
"""
