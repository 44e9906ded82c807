from google.cloud import firestore
from sideline.config import settings


class FirestoreClient:
    _client: firestore.Client = None

    @classmethod
    def get_client(cls) -> firestore.Client:
        if cls._client is None:
            cls._client = firestore.Client(project=settings.firestore_project_id)
        return cls._client

    @classmethod
    def reset_client(cls):
        cls._client = None


def get_firestore() -> firestore.Client:
    return FirestoreClient.get_client()
