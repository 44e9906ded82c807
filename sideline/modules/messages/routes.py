from fastapi import APIRouter, Depends
from google.cloud import firestore
from sideline.database.firestore_client import get_firestore
from sideline.modules.auth.schemas import Session
from sideline.modules.messages.schemas import (
    DirectMessageCreate, DirectMessageData, DirectMessageResponse, UnreadCountResponse
)
from sideline.modules.messages.service import DirectMessageService
from sideline.core.dependencies import get_current_session
from typing import List

router = APIRouter(prefix="/messages", tags=["messages"])


def get_message_service(db: firestore.Client = Depends(get_firestore)) -> DirectMessageService:
    return DirectMessageService(db)


@router.post("", response_model=DirectMessageResponse, status_code=201)
async def send_message(
    message: DirectMessageCreate,
    session: Session = Depends(get_current_session),
    service: DirectMessageService = Depends(get_message_service)
):
    """Send a direct message as the current user"""
    return service.send_message(DirectMessageData(**message.model_dump(), sender_id=session.user_id))


@router.get("/conversation/{other_user_id}", response_model=List[DirectMessageResponse])
async def get_conversation(
    other_user_id: str,
    session: Session = Depends(get_current_session),
    service: DirectMessageService = Depends(get_message_service)
):
    """Messages between the current user and another user, newest first"""
    return service.get_conversation(session.user_id, other_user_id)


@router.get("/unread", response_model=List[DirectMessageResponse])
async def get_unread_messages(
    session: Session = Depends(get_current_session),
    service: DirectMessageService = Depends(get_message_service)
):
    return service.get_unread_messages(session.user_id)


@router.get("/unread/count", response_model=UnreadCountResponse)
async def get_unread_count(
    session: Session = Depends(get_current_session),
    service: DirectMessageService = Depends(get_message_service)
):
    """Unread badge count"""
    return UnreadCountResponse(count=service.get_unread_count(session.user_id))


@router.get("/recent", response_model=List[DirectMessageResponse])
async def get_recent_conversations(
    session: Session = Depends(get_current_session),
    service: DirectMessageService = Depends(get_message_service)
):
    """Latest sent message per recipient (conversation previews)"""
    return service.get_recent_conversations(session.user_id)


@router.post("/{message_id}/read", response_model=DirectMessageResponse)
async def mark_message_as_read(
    message_id: str,
    session: Session = Depends(get_current_session),
    service: DirectMessageService = Depends(get_message_service)
):
    return service.mark_message_as_read(message_id, reader_id=session.user_id)
