"""
Per-view chat state: the message list, loading flag and compose text.

A controller follows fetch-then-subscribe: ``mount`` loads the full list,
then opens a live subscription whose snapshots replace the list wholesale.
Sent messages are never inserted locally; they show up once the
subscription delivers them back.
"""

import asyncio
import inspect
import logging
from pydantic import BaseModel
from sideline.core.exceptions import AppError, ValidationError
from sideline.modules.auth.schemas import Session
from sideline.modules.groups.schemas import GroupResponse
from sideline.modules.groups.service import GroupService
from sideline.modules.messages.schemas import DirectMessageData, DirectMessageResponse
from sideline.modules.messages.service import DirectMessageService
from sideline.realtime import Subscription
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class ActionResult(BaseModel):
    ok: bool
    error: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def failure(cls, error: AppError) -> "ActionResult":
        return cls(ok=False, error=error.message, status_code=error.status_code)


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


class ChatController:
    def __init__(self, session: Session, on_update: Optional[Callable[[List[Any]], Any]] = None):
        self.session = session
        self.messages: List[Any] = []
        self.loading = False
        self.compose = ""
        self.error: Optional[Exception] = None
        self._on_update = on_update
        self._subscription: Optional[Subscription] = None
        self._pump_task: Optional[asyncio.Task] = None
        # Bumped on unmount; work started under an older generation is discarded
        self._generation = 0

    async def _fetch(self) -> List[Any]:
        raise NotImplementedError

    async def _subscribe(self) -> Subscription:
        raise NotImplementedError

    async def _send(self, content: str) -> None:
        raise NotImplementedError

    def _select(self, snapshot: List[Any]) -> List[Any]:
        return snapshot

    @property
    def mounted(self) -> bool:
        return self._subscription is not None

    async def mount(self) -> None:
        generation = self._generation
        self.loading = True
        self.error = None
        try:
            messages = await self._fetch()
        except AppError as e:
            self.loading = False
            self.error = e
            logger.warning(f"Initial fetch failed: {e.message}")
            raise
        if generation != self._generation:
            return
        await self._apply(messages)
        self.loading = False

        subscription = await self._subscribe()
        if generation != self._generation:
            await subscription.close()
            return
        self._subscription = subscription
        self._pump_task = asyncio.create_task(self._pump(subscription, generation))

    async def _apply(self, messages: List[Any]) -> None:
        self.messages = messages
        if self._on_update:
            await _maybe_await(self._on_update(messages))

    async def _pump(self, subscription: Subscription, generation: int) -> None:
        try:
            async for snapshot in subscription:
                if generation != self._generation:
                    break
                await self._apply(self._select(snapshot))
        except Exception as e:
            self.error = e
            logger.error(f"Live updates stopped for {subscription.name}: {e}")

    async def unmount(self) -> None:
        self._generation += 1
        subscription, self._subscription = self._subscription, None
        task, self._pump_task = self._pump_task, None
        if subscription:
            await subscription.close()
        if task and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def send(self, content: Optional[str] = None) -> ActionResult:
        """Send the compose text (or ``content``); the input is cleared only after the write succeeds"""
        if content is not None:
            self.compose = content
        text = self.compose.strip()
        if not text:
            return ActionResult.failure(ValidationError("Message content is required"))
        try:
            await self._send(text)
        except AppError as e:
            self.error = e
            logger.warning(f"Send failed: {e.message}")
            return ActionResult.failure(e)
        self.compose = ""
        return ActionResult(ok=True)


class GroupChatController(ChatController):
    def __init__(
        self,
        session: Session,
        group: GroupResponse,
        service: GroupService,
        on_update: Optional[Callable[[List[Any]], Any]] = None,
        on_select: Optional[Callable[[GroupResponse], Any]] = None,
        on_exit: Optional[Callable[[], Any]] = None,
    ):
        super().__init__(session, on_update)
        self.group = group
        self.service = service
        self._on_select = on_select
        self._on_exit = on_exit

    async def _fetch(self):
        return await asyncio.to_thread(self.service.get_group_messages, self.group.id)

    async def _subscribe(self):
        return await self.service.subscribe_to_group_messages(self.group.id)

    async def _send(self, content: str):
        # Membership can change while the view is open
        await asyncio.to_thread(self.service.ensure_member, self.group.id, self.session.user_id)
        await asyncio.to_thread(
            self.service.send_group_message, self.group.id, self.session.user_id, content
        )

    async def switch_group(self, group: GroupResponse) -> None:
        await self.unmount()
        self.group = group
        self.messages = []
        await self.mount()

    async def join(self) -> ActionResult:
        try:
            self.group = await asyncio.to_thread(self.service.join_group, self.group.id, self.session.user_id)
        except AppError as e:
            logger.warning(f"Join failed for group {self.group.id}: {e.message}")
            return ActionResult.failure(e)
        if self._on_select:
            await _maybe_await(self._on_select(self.group))
        return ActionResult(ok=True)

    async def leave(self) -> ActionResult:
        try:
            self.group = await asyncio.to_thread(self.service.leave_group, self.group.id, self.session.user_id)
        except AppError as e:
            logger.warning(f"Leave failed for group {self.group.id}: {e.message}")
            return ActionResult.failure(e)
        await self.unmount()
        if self._on_exit:
            await _maybe_await(self._on_exit())
        return ActionResult(ok=True)


class DirectChatController(ChatController):
    def __init__(
        self,
        session: Session,
        other_user_id: str,
        service: DirectMessageService,
        on_update: Optional[Callable[[List[Any]], Any]] = None,
    ):
        super().__init__(session, on_update)
        self.other_user_id = other_user_id
        self.service = service

    async def _fetch(self):
        return await asyncio.to_thread(self.service.get_conversation, self.session.user_id, self.other_user_id)

    async def _subscribe(self):
        return self.service.subscribe_to_messages(self.session.user_id)

    async def _send(self, content: str):
        await asyncio.to_thread(self.service.send_message, DirectMessageData(
            sender_id=self.session.user_id,
            recipient_id=self.other_user_id,
            content=content,
        ))

    def _select(self, snapshot: List[DirectMessageResponse]) -> List[DirectMessageResponse]:
        pair = {self.session.user_id, self.other_user_id}
        return [
            m for m in snapshot
            if {m.sender_id, m.recipient_id} == pair
        ]

    async def _apply(self, messages: List[DirectMessageResponse]) -> None:
        await super()._apply(messages)
        for message in messages:
            if message.recipient_id == self.session.user_id and not message.read:
                try:
                    await asyncio.to_thread(self.service.mark_message_as_read, message.id, self.session.user_id)
                except AppError as e:
                    logger.warning(f"Could not mark message {message.id} as read: {e.message}")
