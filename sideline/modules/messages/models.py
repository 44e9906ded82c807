# Firestore collection: messages
# This file documents the expected document shape
# Actual operations are handled via the google-cloud-firestore SDK in service.py

"""
Expected Firestore document structure (collection "messages", auto ids):

- sender_id: string
- recipient_id: string
- content: string
- timestamp: string (ISO-8601, UTC) - ordering key
- read: boolean - created false, only ever flipped to true
- type: string (optional) - values: text, media, system
- participants: array<string> - [sender_id, recipient_id], used by live queries

Composite indexes required:
- sender_id ASC, recipient_id ASC, timestamp DESC (conversation)
- recipient_id ASC, read ASC, timestamp DESC (unread)
- participants ARRAY_CONTAINS, timestamp DESC (live stream)
- sender_id ASC, timestamp DESC (recent conversations)
"""
