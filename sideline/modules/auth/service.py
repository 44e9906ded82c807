import hashlib
import logging
import time
from supabase import Client
from sideline.modules.auth.schemas import Session
from sideline.core.exceptions import AuthenticationError
from typing import Dict

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_SESSION_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_current_user(self, token: str) -> Session:
        """Resolve a Supabase access token into a Session. Uses short TTL cache to reduce auth API calls."""
        cache_key = hashlib.sha256(token.encode()).hexdigest()
        now = time.monotonic()
        if cache_key in _AUTH_SESSION_CACHE:
            session, expiry = _AUTH_SESSION_CACHE[cache_key]
            if now < expiry:
                return session
            del _AUTH_SESSION_CACHE[cache_key]
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.info(f"Token rejected by Supabase Auth: {e}")
            raise AuthenticationError() from e
        if not user_response or not user_response.user:
            raise AuthenticationError()
        user = user_response.user
        session = Session(user_id=str(user.id), email=user.email, phone=user.phone or None)
        if len(_AUTH_SESSION_CACHE) < _AUTH_CACHE_MAX_SIZE:
            _AUTH_SESSION_CACHE[cache_key] = (session, now + _AUTH_CACHE_TTL_SEC)
        return session


def clear_session_cache():
    _AUTH_SESSION_CACHE.clear()
