import logging
from datetime import timedelta
from supabase import Client
from sideline.config import settings
from sideline.core.clock import utcnow, utcnow_iso, parse_timestamp
from sideline.core.exceptions import (
    ValidationError, NotFoundError, PermissionDeniedError, InvalidTransitionError
)
from sideline.modules.groups.service import GroupService
from sideline.modules.group_invites.schemas import GroupInviteResponse, JoinRequestResponse
from typing import List

logger = logging.getLogger(__name__)

INVITES = "group_invites"
JOIN_REQUESTS = "join_requests"


class GroupInviteService:
    def __init__(self, supabase: Client, groups: GroupService, invite_ttl_hours: int = settings.invite_ttl_hours):
        self.supabase = supabase
        self.groups = groups
        self.invite_ttl_hours = invite_ttl_hours

    def _fetch(self, table: str, record_id: str, label: str) -> dict:
        result = self.supabase.table(table)\
            .select("*")\
            .eq("id", record_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise NotFoundError(f"{label} not found")
        return result.data[0]

    def _transition(self, table: str, record_id: str, status: str) -> dict:
        """Move a pending record to its final status; fails if it was answered meanwhile"""
        result = self.supabase.table(table)\
            .update({"status": status, "responded_at": utcnow_iso()})\
            .eq("id", record_id)\
            .eq("status", "pending")\
            .execute()
        if not result.data:
            raise InvalidTransitionError("This request has already been answered")
        return result.data[0]

    def _accept(self, table: str, record_id: str, group_id: str, user_id: str) -> dict:
        """
        Claim ``pending -> accepted`` before adding the member, so a concurrent
        rejection can never leave a member behind a rejected record. If the
        join fails the claim is released back to ``pending``.
        """
        accepted = self._transition(table, record_id, "accepted")
        try:
            self.groups.join_group(group_id, user_id)
        except Exception:
            self.supabase.table(table)\
                .update({"status": "pending", "responded_at": None})\
                .eq("id", record_id)\
                .eq("status", "accepted")\
                .execute()
            logger.warning(f"Join failed after accepting {table} {record_id}, reverted to pending")
            raise
        return accepted

    def _has_pending(self, table: str, group_id: str, column: str, user_id: str) -> bool:
        result = self.supabase.table(table)\
            .select("id")\
            .eq("group_id", group_id)\
            .eq(column, user_id)\
            .eq("status", "pending")\
            .limit(1)\
            .execute()
        return bool(result.data)

    # Invites

    def create_invite(self, group_id: str, inviter_id: str, invitee_id: str) -> GroupInviteResponse:
        """Invite a user to a group (group admins only)"""
        group = self.groups.ensure_admin(group_id, inviter_id)
        if invitee_id in group.members:
            raise ValidationError("User is already a member of this group")
        if self._has_pending(INVITES, group_id, "invitee_id", invitee_id):
            raise ValidationError("User already has a pending invite to this group")

        now = utcnow()
        result = self.supabase.table(INVITES).insert({
            "group_id": group_id,
            "inviter_id": inviter_id,
            "invitee_id": invitee_id,
            "status": "pending",
            "created_at": now.isoformat(),
            "expires_at": (now + timedelta(hours=self.invite_ttl_hours)).isoformat(),
        }).execute()
        if not result.data:
            raise ValidationError("Failed to create invite")
        logger.info(f"User {inviter_id} invited {invitee_id} to group {group_id}")
        return GroupInviteResponse(**result.data[0])

    def respond_to_invite(self, invite_id: str, invitee_id: str, accept: bool) -> GroupInviteResponse:
        """Accept or reject an invite; accepting joins the group"""
        invite = self._fetch(INVITES, invite_id, "Invite")
        if invite["invitee_id"] != invitee_id:
            raise PermissionDeniedError("This invite is not addressed to you")
        if invite["status"] != "pending":
            raise InvalidTransitionError("This invite has already been answered")
        if invite.get("expires_at") and parse_timestamp(invite["expires_at"]) <= utcnow():
            self._transition(INVITES, invite_id, "rejected")
            raise InvalidTransitionError("This invite has expired")

        if accept:
            updated = self._accept(INVITES, invite_id, invite["group_id"], invitee_id)
        else:
            updated = self._transition(INVITES, invite_id, "rejected")
        logger.info(f"Invite {invite_id} {updated['status']} by {invitee_id}")
        return GroupInviteResponse(**updated)

    def list_pending_invites(self, user_id: str) -> List[GroupInviteResponse]:
        result = self.supabase.table(INVITES)\
            .select("*")\
            .eq("invitee_id", user_id)\
            .eq("status", "pending")\
            .order("created_at", desc=True)\
            .execute()
        now = utcnow()
        return [
            GroupInviteResponse(**invite) for invite in result.data or []
            if not invite.get("expires_at") or parse_timestamp(invite["expires_at"]) > now
        ]

    def expire_stale_invites(self) -> int:
        """Reject every pending invite whose expiry has passed. Returns how many were expired."""
        now = utcnow_iso()
        result = self.supabase.table(INVITES)\
            .update({"status": "rejected", "responded_at": now})\
            .eq("status", "pending")\
            .lt("expires_at", now)\
            .execute()
        return len(result.data or [])

    # Join requests

    def create_join_request(self, group_id: str, user_id: str, message: str = None) -> JoinRequestResponse:
        """Ask to join a (typically private) group"""
        group = self.groups.get_group(group_id)
        if user_id in group.members:
            raise ValidationError("You are already a member of this group")
        if self._has_pending(JOIN_REQUESTS, group_id, "user_id", user_id):
            raise ValidationError("You already have a pending request for this group")

        result = self.supabase.table(JOIN_REQUESTS).insert({
            "group_id": group_id,
            "user_id": user_id,
            "message": message,
            "status": "pending",
            "created_at": utcnow_iso(),
        }).execute()
        if not result.data:
            raise ValidationError("Failed to create join request")
        logger.info(f"User {user_id} requested to join group {group_id}")
        return JoinRequestResponse(**result.data[0])

    def review_join_request(self, request_id: str, admin_id: str, accept: bool) -> JoinRequestResponse:
        """Accept or reject a join request (group admins only); accepting adds the requester"""
        request = self._fetch(JOIN_REQUESTS, request_id, "Join request")
        self.groups.ensure_admin(request["group_id"], admin_id)
        if request["status"] != "pending":
            raise InvalidTransitionError("This join request has already been answered")

        if accept:
            updated = self._accept(JOIN_REQUESTS, request_id, request["group_id"], request["user_id"])
        else:
            updated = self._transition(JOIN_REQUESTS, request_id, "rejected")
        logger.info(f"Join request {request_id} {updated['status']} by {admin_id}")
        return JoinRequestResponse(**updated)

    def list_pending_join_requests(self, group_id: str, admin_id: str) -> List[JoinRequestResponse]:
        self.groups.ensure_admin(group_id, admin_id)
        result = self.supabase.table(JOIN_REQUESTS)\
            .select("*")\
            .eq("group_id", group_id)\
            .eq("status", "pending")\
            .order("created_at", desc=False)\
            .execute()
        return [JoinRequestResponse(**request) for request in result.data or []]
