import pytest
from pydantic import ValidationError

from sideline.config.settings import Settings


def test_missing_twilio_credentials_abort_startup(monkeypatch):
    for name in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_VERIFY_SERVICE_SID"):
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None)

    missing = {error["loc"][0] for error in exc_info.value.errors()}
    assert missing == {"twilio_account_sid", "twilio_auth_token", "twilio_verify_service_sid"}


def test_port_defaults_to_3001(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)

    assert Settings(_env_file=None).port == 3001


def test_cors_origins_are_split(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")

    assert Settings(_env_file=None).get_cors_origins_list() == ["https://a.example", "https://b.example"]
