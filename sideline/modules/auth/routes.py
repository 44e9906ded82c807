from fastapi import APIRouter, Depends
from sideline.modules.auth.schemas import Session
from sideline.core.dependencies import get_current_session

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=Session)
async def get_current_user(session: Session = Depends(get_current_session)):
    """Return the session resolved from the bearer token (for frontend UI)."""
    return session
