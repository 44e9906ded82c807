import asyncio
import logging
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from google.cloud import firestore
from supabase import Client, AsyncClient
from sideline.core.dependencies import get_auth_service
from sideline.core.exceptions import AppError
from sideline.database.firestore_client import get_firestore
from sideline.database.supabase_client import get_supabase, get_supabase_realtime
from sideline.modules.auth.schemas import Session
from sideline.modules.auth.service import AuthService
from sideline.modules.chat.controller import ActionResult, ChatController, GroupChatController, DirectChatController
from sideline.modules.groups.service import GroupService
from sideline.modules.messages.service import DirectMessageService
from typing import List, Optional

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["chat"])


def get_group_chat_service(
    supabase: Client = Depends(get_supabase),
    realtime: AsyncClient = Depends(get_supabase_realtime),
) -> GroupService:
    return GroupService(supabase, realtime=realtime)


def get_direct_chat_service(db: firestore.Client = Depends(get_firestore)) -> DirectMessageService:
    return DirectMessageService(db)


async def _authenticate(websocket: WebSocket, token: str, auth_service: AuthService) -> Optional[Session]:
    try:
        return await asyncio.to_thread(auth_service.get_current_user, token)
    except AppError as e:
        await websocket.close(code=4000 + e.status_code, reason=e.message)
        return None


def _snapshot_sender(websocket: WebSocket):
    async def send_snapshot(messages: List):
        await websocket.send_json({
            "type": "snapshot",
            "messages": [m.model_dump(mode="json") for m in messages],
        })
    return send_snapshot


async def _serve(websocket: WebSocket, controller: ChatController) -> None:
    """Handle client actions until the socket closes or the user leaves"""
    while True:
        try:
            data = await websocket.receive_json()
        except (ValueError, TypeError):
            data = None
        if not isinstance(data, dict):
            result = ActionResult(ok=False, error="Expected a JSON object", status_code=400)
            await websocket.send_json({"type": "result", "action": None, **result.model_dump()})
            continue

        action = data.get("action")
        content = data.get("content")
        if action == "send":
            result = await controller.send(content if isinstance(content, str) else "")
        elif action == "leave" and isinstance(controller, GroupChatController):
            result = await controller.leave()
        else:
            result = ActionResult(ok=False, error=f"Unknown action: {action}", status_code=400)
        await websocket.send_json({"type": "result", "action": action, **result.model_dump()})
        if action == "leave" and result.ok:
            await websocket.close()
            return


async def _run(websocket: WebSocket, controller: ChatController, label: str) -> None:
    try:
        await controller.mount()
        await _serve(websocket, controller)
    except WebSocketDisconnect:
        logger.info(f"Client disconnected from {label}")
    except AppError as e:
        await websocket.close(code=4000 + e.status_code, reason=e.message)
    finally:
        await controller.unmount()


@router.websocket("/groups/{group_id}")
async def group_chat(
    websocket: WebSocket,
    group_id: str,
    token: str = Query(...),
    auth_service: AuthService = Depends(get_auth_service),
    service: GroupService = Depends(get_group_chat_service),
):
    """Live group chat: pushes full message snapshots, accepts send/leave actions (members only)"""
    await websocket.accept()
    session = await _authenticate(websocket, token, auth_service)
    if session is None:
        return
    try:
        group = await asyncio.to_thread(service.ensure_member, group_id, session.user_id)
    except AppError as e:
        await websocket.close(code=4000 + e.status_code, reason=e.message)
        return

    async def notify_exit():
        await websocket.send_json({"type": "left", "group_id": group_id})

    controller = GroupChatController(
        session, group, service,
        on_update=_snapshot_sender(websocket),
        on_exit=notify_exit,
    )
    await _run(websocket, controller, f"group {group_id}")


@router.websocket("/messages/{other_user_id}")
async def direct_chat(
    websocket: WebSocket,
    other_user_id: str,
    token: str = Query(...),
    auth_service: AuthService = Depends(get_auth_service),
    service: DirectMessageService = Depends(get_direct_chat_service),
):
    """Live direct conversation with another user"""
    await websocket.accept()
    session = await _authenticate(websocket, token, auth_service)
    if session is None:
        return
    controller = DirectChatController(
        session, other_user_id, service,
        on_update=_snapshot_sender(websocket),
    )
    await _run(websocket, controller, f"conversation with {other_user_id}")
