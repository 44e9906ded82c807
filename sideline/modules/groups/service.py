import asyncio
import logging
import re
from supabase import Client, AsyncClient
from sideline.config import settings
from sideline.core.clock import utcnow_iso, advance_timestamp
from sideline.core.exceptions import ValidationError, NotFoundError, ConcurrencyError, PermissionDeniedError
from sideline.modules.groups.schemas import GroupCreate, GroupResponse, GroupMessageResponse
from sideline.realtime import Subscription, open_postgres_changes
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Characters with meaning in the PostgREST or=(...) grammar or as LIKE wildcards
_SEARCH_RESERVED = re.compile(r'[,()"\\%*]')

MembershipChange = Callable[[List[str], List[str], dict], Tuple[List[str], List[str]]]


def _unique(ids: List[str]) -> List[str]:
    return list(dict.fromkeys(ids))


class GroupService:
    def __init__(
        self,
        supabase: Client,
        realtime: Optional[AsyncClient] = None,
        max_retries: int = settings.membership_max_retries,
    ):
        self.supabase = supabase
        self.realtime = realtime
        self.max_retries = max_retries

    def create_group(self, group_data: GroupCreate) -> GroupResponse:
        """Create a group; the caller supplies members and admins"""
        members = _unique(group_data.members)
        admins = _unique(group_data.admins)
        if group_data.creator_id not in admins:
            raise ValidationError("Group creator must be an admin")
        if not set(admins) <= set(members):
            raise ValidationError("Group admins must be members")

        now = utcnow_iso()
        row = group_data.model_dump()
        row.update({
            "members": members,
            "admins": admins,
            "version": 0,
            "created_at": now,
            "updated_at": now,
        })
        result = self.supabase.table("groups").insert(row).execute()
        if not result.data:
            raise ValidationError("Failed to create group")

        logger.info(f"Created group {result.data[0]['id']} ({group_data.sport}) by {group_data.creator_id}")
        return GroupResponse(**result.data[0])

    def _fetch_group_row(self, group_id: str) -> dict:
        result = self.supabase.table("groups")\
            .select("*")\
            .eq("id", group_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise NotFoundError("Group not found")
        return result.data[0]

    def get_group(self, group_id: str) -> GroupResponse:
        """Get group by ID"""
        return GroupResponse(**self._fetch_group_row(group_id))

    def get_groups_by_sport(self, sport: str) -> List[GroupResponse]:
        """Groups for one sport, newest first"""
        result = self.supabase.table("groups")\
            .select("*")\
            .eq("sport", sport)\
            .order("created_at", desc=True)\
            .execute()
        return [GroupResponse(**group) for group in result.data or []]

    def get_user_groups(self, user_id: str) -> List[GroupResponse]:
        """Groups the user belongs to, most recently active first"""
        result = self.supabase.table("groups")\
            .select("*")\
            .contains("members", [user_id])\
            .order("updated_at", desc=True)\
            .execute()
        return [GroupResponse(**group) for group in result.data or []]

    def search_groups(self, query: str) -> List[GroupResponse]:
        """Case-insensitive substring match on name, description or sport"""
        term = _SEARCH_RESERVED.sub(" ", query or "").strip()
        builder = self.supabase.table("groups").select("*")
        if term:
            builder = builder.or_(
                f"name.ilike.%{term}%,description.ilike.%{term}%,sport.ilike.%{term}%"
            )
        result = builder.order("created_at", desc=True).execute()
        return [GroupResponse(**group) for group in result.data or []]

    def _update_membership(self, group_id: str, change: MembershipChange, action: str) -> GroupResponse:
        """
        Compare-and-swap on ``version``: the write only lands if nobody else
        changed the group since it was read, otherwise re-read and retry.
        """
        for attempt in range(1, self.max_retries + 1):
            current = self._fetch_group_row(group_id)
            old_members = list(current.get("members") or [])
            old_admins = list(current.get("admins") or [])
            members, admins = change(old_members, old_admins, current)
            if members == old_members and admins == old_admins:
                return GroupResponse(**current)

            version = current.get("version") or 0
            result = self.supabase.table("groups")\
                .update({
                    "members": members,
                    "admins": admins,
                    "version": version + 1,
                    "updated_at": advance_timestamp(current.get("updated_at")),
                })\
                .eq("id", group_id)\
                .eq("version", version)\
                .execute()
            if result.data:
                return GroupResponse(**result.data[0])
            logger.info(f"Concurrent {action} on group {group_id}, retrying ({attempt}/{self.max_retries})")

        logger.warning(f"Gave up on {action} for group {group_id} after {self.max_retries} attempts")
        raise ConcurrencyError(f"Could not {action} group, it is being modified by others. Please retry.")

    def join_group(self, group_id: str, user_id: str) -> GroupResponse:
        """Add user to the group's members (no-op if already a member)"""
        def add(members: List[str], admins: List[str], group: dict):
            if user_id in members:
                return members, admins
            max_members = group.get("max_members")
            if max_members and len(members) >= max_members:
                raise ValidationError("Group is full")
            return members + [user_id], admins

        group = self._update_membership(group_id, add, "join")
        logger.info(f"User {user_id} joined group {group_id}")
        return group

    def leave_group(self, group_id: str, user_id: str) -> GroupResponse:
        """Remove user from the group's members and admins"""
        def remove(members: List[str], admins: List[str], group: dict):
            return [m for m in members if m != user_id], [a for a in admins if a != user_id]

        group = self._update_membership(group_id, remove, "leave")
        logger.info(f"User {user_id} left group {group_id}")
        return group

    def ensure_member(self, group_id: str, user_id: str) -> GroupResponse:
        group = self.get_group(group_id)
        if user_id not in group.members:
            raise PermissionDeniedError("You must be a member of this group")
        return group

    def ensure_admin(self, group_id: str, user_id: str) -> GroupResponse:
        group = self.get_group(group_id)
        if user_id not in group.admins:
            raise PermissionDeniedError("You must be a group admin to perform this action")
        return group

    def send_group_message(self, group_id: str, sender_id: str, content: str) -> GroupMessageResponse:
        """Insert a text message stamped with the server time"""
        content = (content or "").strip()
        if not content:
            raise ValidationError("Message content is required")
        result = self.supabase.table("group_messages").insert({
            "group_id": group_id,
            "sender_id": sender_id,
            "content": content,
            "timestamp": utcnow_iso(),
            "type": "text",
            "read": False,
        }).execute()
        if not result.data:
            raise ValidationError("Failed to send message")
        return GroupMessageResponse(**result.data[0])

    def get_group_messages(self, group_id: str) -> List[GroupMessageResponse]:
        """All messages of a group, oldest first"""
        result = self.supabase.table("group_messages")\
            .select("*")\
            .eq("group_id", group_id)\
            .order("timestamp", desc=False)\
            .execute()
        return [GroupMessageResponse(**message) for message in result.data or []]

    async def subscribe_to_group_messages(self, group_id: str) -> Subscription:
        """Stream of the full ordered message list, re-fetched on every change to the group's messages"""
        if self.realtime is None:
            raise RuntimeError("GroupService was created without a realtime client")
        return await open_postgres_changes(
            self.realtime,
            channel_name=f"group_messages:{group_id}",
            table="group_messages",
            filter=f"group_id=eq.{group_id}",
            fetch=lambda: asyncio.to_thread(self.get_group_messages, group_id),
        )
