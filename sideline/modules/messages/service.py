import logging
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from sideline.config import settings
from sideline.core.clock import utcnow_iso
from sideline.core.exceptions import ValidationError, NotFoundError, PermissionDeniedError
from sideline.modules.messages.schemas import DirectMessageData, DirectMessageResponse
from sideline.realtime import Subscription, open_document_watch
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


def _to_messages(docs: Iterable) -> List[DirectMessageResponse]:
    return [DirectMessageResponse(id=doc.id, **doc.to_dict()) for doc in docs]


def _newest_first(messages: List[DirectMessageResponse]) -> List[DirectMessageResponse]:
    return sorted(messages, key=lambda m: m.timestamp, reverse=True)


class DirectMessageService:
    def __init__(self, db: firestore.Client, collection: str = settings.firestore_messages_collection):
        self.db = db
        self.collection = collection

    @property
    def messages(self):
        return self.db.collection(self.collection)

    def send_message(self, data: DirectMessageData) -> DirectMessageResponse:
        """Store a new, unread message"""
        content = data.content.strip()
        if not content:
            raise ValidationError("Message content is required")

        record = data.model_dump()
        record.update({
            "content": content,
            "timestamp": utcnow_iso(),
            "read": False,
            "participants": data.participants or list(dict.fromkeys([data.sender_id, data.recipient_id])),
        })
        _, doc_ref = self.messages.add(record)
        logger.debug(f"Message {doc_ref.id} sent from {data.sender_id} to {data.recipient_id}")
        return DirectMessageResponse(id=doc_ref.id, **record)

    def get_conversation(self, user_a: str, user_b: str) -> List[DirectMessageResponse]:
        """Messages exchanged between two users, newest first"""
        pair = list(dict.fromkeys([user_a, user_b]))
        query = self.messages\
            .where(filter=FieldFilter("sender_id", "in", pair))\
            .where(filter=FieldFilter("recipient_id", "in", pair))\
            .order_by("timestamp", direction=firestore.Query.DESCENDING)
        messages = _to_messages(query.stream())
        if user_a != user_b:
            # The in/in filter also matches A->A and B->B
            messages = [m for m in messages if m.sender_id != m.recipient_id]
        return messages

    def mark_message_as_read(self, message_id: str, reader_id: Optional[str] = None) -> DirectMessageResponse:
        """Flip a message to read. Idempotent."""
        doc_ref = self.messages.document(message_id)
        snapshot = doc_ref.get()
        if not snapshot.exists:
            raise NotFoundError("Message not found")
        message = DirectMessageResponse(id=snapshot.id, **snapshot.to_dict())
        if reader_id is not None and message.recipient_id != reader_id:
            raise PermissionDeniedError("Only the recipient can mark a message as read")
        if not message.read:
            doc_ref.update({"read": True})
        return message.model_copy(update={"read": True})

    def get_unread_messages(self, user_id: str) -> List[DirectMessageResponse]:
        """Unread messages addressed to the user, newest first"""
        query = self.messages\
            .where(filter=FieldFilter("recipient_id", "==", user_id))\
            .where(filter=FieldFilter("read", "==", False))\
            .order_by("timestamp", direction=firestore.Query.DESCENDING)
        return _to_messages(query.stream())

    def get_unread_count(self, user_id: str) -> int:
        return len(self.get_unread_messages(user_id))

    def subscribe_to_messages(self, user_id: str) -> Subscription:
        """Live list of every message the user takes part in, newest first"""
        query = self.messages\
            .where(filter=FieldFilter("participants", "array_contains", user_id))\
            .order_by("timestamp", direction=firestore.Query.DESCENDING)
        return open_document_watch(
            query,
            name=f"messages:{user_id}",
            build=lambda docs: _newest_first(_to_messages(docs)),
        )

    def get_recent_conversations(self, user_id: str) -> List[DirectMessageResponse]:
        """
        Latest message per recipient the user has written to.

        Only messages *sent* by the user are considered, so a conversation in
        which the user never replied does not show up.
        """
        query = self.messages\
            .where(filter=FieldFilter("sender_id", "==", user_id))\
            .order_by("timestamp", direction=firestore.Query.DESCENDING)
        latest: Dict[str, DirectMessageResponse] = {}
        for message in _to_messages(query.stream()):
            latest.setdefault(message.recipient_id, message)
        return list(latest.values())
