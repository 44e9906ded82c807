from fastapi import APIRouter, Depends
from sideline.database.supabase_client import get_supabase
from sideline.modules.auth.schemas import Session
from sideline.modules.groups.service import GroupService
from sideline.modules.group_invites.schemas import (
    GroupInviteCreate, GroupInviteResponse,
    JoinRequestCreate, JoinRequestResponse
)
from sideline.modules.group_invites.service import GroupInviteService
from sideline.core.dependencies import get_current_session
from supabase import Client
from typing import List

router = APIRouter(tags=["group invites"])


def get_invite_service(supabase: Client = Depends(get_supabase)) -> GroupInviteService:
    return GroupInviteService(supabase, GroupService(supabase))


@router.post("/groups/{group_id}/invites", response_model=GroupInviteResponse, status_code=201)
async def create_invite(
    group_id: str,
    invite_data: GroupInviteCreate,
    session: Session = Depends(get_current_session),
    service: GroupInviteService = Depends(get_invite_service)
):
    """Invite a user to the group (group admins only)"""
    return service.create_invite(group_id, session.user_id, invite_data.invitee_id)


@router.get("/invites", response_model=List[GroupInviteResponse])
async def list_my_invites(
    session: Session = Depends(get_current_session),
    service: GroupInviteService = Depends(get_invite_service)
):
    """Pending, unexpired invites addressed to the current user"""
    return service.list_pending_invites(session.user_id)


@router.post("/invites/{invite_id}/accept", response_model=GroupInviteResponse)
async def accept_invite(
    invite_id: str,
    session: Session = Depends(get_current_session),
    service: GroupInviteService = Depends(get_invite_service)
):
    return service.respond_to_invite(invite_id, session.user_id, accept=True)


@router.post("/invites/{invite_id}/reject", response_model=GroupInviteResponse)
async def reject_invite(
    invite_id: str,
    session: Session = Depends(get_current_session),
    service: GroupInviteService = Depends(get_invite_service)
):
    return service.respond_to_invite(invite_id, session.user_id, accept=False)


@router.post("/groups/{group_id}/join-requests", response_model=JoinRequestResponse, status_code=201)
async def create_join_request(
    group_id: str,
    request_data: JoinRequestCreate,
    session: Session = Depends(get_current_session),
    service: GroupInviteService = Depends(get_invite_service)
):
    """Ask to join a group"""
    return service.create_join_request(group_id, session.user_id, request_data.message)


@router.get("/groups/{group_id}/join-requests", response_model=List[JoinRequestResponse])
async def list_join_requests(
    group_id: str,
    session: Session = Depends(get_current_session),
    service: GroupInviteService = Depends(get_invite_service)
):
    """Pending join requests, oldest first (group admins only)"""
    return service.list_pending_join_requests(group_id, session.user_id)


@router.post("/join-requests/{request_id}/accept", response_model=JoinRequestResponse)
async def accept_join_request(
    request_id: str,
    session: Session = Depends(get_current_session),
    service: GroupInviteService = Depends(get_invite_service)
):
    return service.review_join_request(request_id, session.user_id, accept=True)


@router.post("/join-requests/{request_id}/reject", response_model=JoinRequestResponse)
async def reject_join_request(
    request_id: str,
    session: Session = Depends(get_current_session),
    service: GroupInviteService = Depends(get_invite_service)
):
    return service.review_join_request(request_id, session.user_id, accept=False)
