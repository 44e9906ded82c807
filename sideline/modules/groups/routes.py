from fastapi import APIRouter, Depends
from sideline.database.supabase_client import get_supabase
from sideline.modules.auth.schemas import Session
from sideline.modules.groups.schemas import (
    GroupCreateRequest, GroupCreate, GroupResponse,
    GroupMessageCreate, GroupMessageResponse
)
from sideline.modules.groups.service import GroupService
from sideline.core.dependencies import get_current_session
from sideline.core.exceptions import PermissionDeniedError
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(supabase: Client = Depends(get_supabase)) -> GroupService:
    return GroupService(supabase)


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group(
    group_data: GroupCreateRequest,
    session: Session = Depends(get_current_session),
    service: GroupService = Depends(get_group_service)
):
    """Create a new group; the creator becomes its first member and admin"""
    return service.create_group(GroupCreate(
        **group_data.model_dump(),
        creator_id=session.user_id,
        members=[session.user_id],
        admins=[session.user_id],
    ))


@router.get("", response_model=List[GroupResponse])
async def list_groups(
    sport: Optional[str] = None,
    q: Optional[str] = None,
    session: Session = Depends(get_current_session),
    service: GroupService = Depends(get_group_service)
):
    """Discover groups: exact sport filter, or free-text search over name/description/sport"""
    if sport:
        return service.get_groups_by_sport(sport)
    return service.search_groups(q or "")


@router.get("/mine", response_model=List[GroupResponse])
async def list_my_groups(
    session: Session = Depends(get_current_session),
    service: GroupService = Depends(get_group_service)
):
    """Groups the current user is a member of"""
    return service.get_user_groups(session.user_id)


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: str,
    session: Session = Depends(get_current_session),
    service: GroupService = Depends(get_group_service)
):
    """Get group by ID"""
    return service.get_group(group_id)


@router.post("/{group_id}/join", response_model=GroupResponse)
async def join_group(
    group_id: str,
    session: Session = Depends(get_current_session),
    service: GroupService = Depends(get_group_service)
):
    """Join a public group (private groups go through invites or join requests)"""
    group = service.get_group(group_id)
    if group.is_private and session.user_id not in group.members:
        raise PermissionDeniedError("This group is private, request to join instead")
    return service.join_group(group_id, session.user_id)


@router.post("/{group_id}/leave", response_model=GroupResponse)
async def leave_group(
    group_id: str,
    session: Session = Depends(get_current_session),
    service: GroupService = Depends(get_group_service)
):
    """Leave a group"""
    return service.leave_group(group_id, session.user_id)


@router.get("/{group_id}/messages", response_model=List[GroupMessageResponse])
async def get_group_messages(
    group_id: str,
    session: Session = Depends(get_current_session),
    service: GroupService = Depends(get_group_service)
):
    """Message history, oldest first (members only)"""
    service.ensure_member(group_id, session.user_id)
    return service.get_group_messages(group_id)


@router.post("/{group_id}/messages", response_model=GroupMessageResponse, status_code=201)
async def send_group_message(
    group_id: str,
    message: GroupMessageCreate,
    session: Session = Depends(get_current_session),
    service: GroupService = Depends(get_group_service)
):
    """Post a text message to a group (members only)"""
    service.ensure_member(group_id, session.user_id)
    return service.send_group_message(group_id, session.user_id, message.content)
