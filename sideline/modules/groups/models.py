# Supabase tables: groups, group_messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: uuid (primary key, default: gen_random_uuid())
- name: text (not null)
- description: text (nullable)
- sport: text (not null)
- creator_id: uuid (not null) - always in admins
- members: uuid[] (not null) - unique user ids
- admins: uuid[] (not null) - subset of members
- is_private: boolean (default: false)
- photo_url: text (nullable)
- max_members: integer (nullable)
- rules: text[] (nullable)
- tags: text[] (nullable)
- version: integer (not null, default: 0) - bumped on every membership write
- created_at: timestamptz (not null)
- updated_at: timestamptz (not null) - never moves backwards

group_messages:
- id: uuid (primary key, default: gen_random_uuid())
- group_id: uuid (foreign key to groups.id, not null)
- sender_id: uuid (not null)
- content: text (not null)
- timestamp: timestamptz (not null)
- type: text (not null, default: 'text') - values: text, media, system
- read: boolean (default: false)
- index on (group_id, timestamp)

Realtime must be enabled for group_messages (publication supabase_realtime).
"""
