from sideline.realtime.subscription import Subscription
from sideline.realtime.sources import open_postgres_changes, open_document_watch

__all__ = ["Subscription", "open_postgres_changes", "open_document_watch"]
