"""
Core dependencies for route protection
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sideline.database.supabase_client import get_supabase
from sideline.modules.auth.service import AuthService
from sideline.modules.auth.schemas import Session
from supabase import Client
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_session(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Session:
    """Extract the acting user's session from the JWT bearer token"""
    token = credentials.credentials
    return auth_service.get_current_user(token)
