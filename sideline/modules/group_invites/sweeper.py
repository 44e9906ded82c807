import asyncio
import logging
from sideline.config import settings
from sideline.database.supabase_client import SupabaseClient
from sideline.modules.groups.service import GroupService
from sideline.modules.group_invites.service import GroupInviteService

logger = logging.getLogger(__name__)


async def expire_stale_invites():
    """Reject pending invites whose expiry has passed."""
    try:
        supabase = SupabaseClient.get_service_client()
        service = GroupInviteService(supabase, GroupService(supabase))
        expired = await asyncio.to_thread(service.expire_stale_invites)
        if expired:
            logger.info(f"Expired {expired} stale group invite(s)")
        else:
            logger.debug("No stale group invites found")
    except Exception as e:
        logger.error(f"Error expiring group invites: {str(e)}")


async def invite_sweeper_loop(interval_seconds: int = settings.invite_sweep_interval_seconds):
    """Background task that periodically expires stale invites"""
    while True:
        await expire_stale_invites()
        await asyncio.sleep(interval_seconds)
