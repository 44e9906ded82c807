import os

os.environ.setdefault("TWILIO_ACCOUNT_SID", "AC00000000000000000000000000000000")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "test-auth-token")
os.environ.setdefault("TWILIO_VERIFY_SERVICE_SID", "VA00000000000000000000000000000000")
os.environ.setdefault("VERIFICATION_RATE_LIMIT", "1000/minute")
os.environ.setdefault("INVITE_SWEEP_INTERVAL_SECONDS", "0")

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from sideline.core.dependencies import get_auth_service
from sideline.core.exceptions import AuthenticationError
from sideline.core.twilio_client import get_twilio
from sideline.database.firestore_client import get_firestore
from sideline.database.supabase_client import get_supabase, get_supabase_realtime
from sideline.main import app
from sideline.modules.auth.schemas import Session
from sideline.modules.groups.schemas import GroupCreate
from sideline.modules.groups.service import GroupService
from sideline.modules.messages.service import DirectMessageService

from tests.fakes import FakeFirestore, FakeRealtimeClient, FakeSupabase


class FakeAuthService:
    """Tokens look like "token-<user_id>"."""

    def get_current_user(self, token: str) -> Session:
        if not token.startswith("token-"):
            raise AuthenticationError()
        return Session(user_id=token[len("token-"):])


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def realtime(supabase):
    return FakeRealtimeClient(supabase)


@pytest.fixture
def firestore_db():
    return FakeFirestore()


@pytest.fixture
def twilio_client():
    return MagicMock()


@pytest.fixture
def group_service(supabase, realtime):
    return GroupService(supabase, realtime=realtime, max_retries=5)


@pytest.fixture
def message_service(firestore_db):
    return DirectMessageService(firestore_db)


@pytest.fixture
def make_group(group_service):
    def _make(name="Sunday Hoops", sport="basketball", creator="u1", members=None, **extra):
        members = members or [creator]
        return group_service.create_group(GroupCreate(
            name=name,
            description=extra.pop("description", f"{name} pickup games"),
            sport=sport,
            creator_id=creator,
            members=members,
            admins=[creator],
            **extra,
        ))
    return _make


@pytest.fixture
def client(supabase, realtime, firestore_db, twilio_client):
    app.dependency_overrides[get_supabase] = lambda: supabase
    app.dependency_overrides[get_supabase_realtime] = lambda: realtime
    app.dependency_overrides[get_firestore] = lambda: firestore_db
    app.dependency_overrides[get_twilio] = lambda: twilio_client
    app.dependency_overrides[get_auth_service] = lambda: FakeAuthService()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth(user_id: str) -> dict:
    return {"Authorization": f"Bearer token-{user_id}"}
