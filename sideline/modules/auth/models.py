# Supabase Auth
# Users are authenticated by Supabase Auth (auth.users table); this service
# only validates the access tokens issued to the front end.

"""
Supabase Auth provides:
- auth.get_user() - Resolve the current user from a JWT access token

The resolved user is reduced to a Session (user_id, email, phone) which is
passed explicitly to the group, message and chat services.
"""
