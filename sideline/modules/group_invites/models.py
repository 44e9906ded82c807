# Supabase tables: group_invites, join_requests
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

group_invites:
- id: uuid (primary key, default: gen_random_uuid())
- group_id: uuid (foreign key to groups.id, not null)
- inviter_id: uuid (not null) - a group admin
- invitee_id: uuid (not null)
- status: text (not null, default: 'pending') - values: pending, accepted, rejected
- created_at: timestamptz (not null)
- expires_at: timestamptz (nullable)
- responded_at: timestamptz (nullable)

join_requests:
- id: uuid (primary key, default: gen_random_uuid())
- group_id: uuid (foreign key to groups.id, not null)
- user_id: uuid (not null)
- message: text (nullable)
- status: text (not null, default: 'pending') - values: pending, accepted, rejected
- created_at: timestamptz (not null)
- responded_at: timestamptz (nullable)

Status only ever moves pending -> accepted | rejected.
"""
