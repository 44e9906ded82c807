from twilio.rest import Client
from sideline.config import settings


class TwilioClient:
    _client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = Client(settings.twilio_account_sid, settings.twilio_auth_token)
        return cls._client

    @classmethod
    def reset_client(cls):
        cls._client = None


def get_twilio() -> Client:
    return TwilioClient.get_client()
