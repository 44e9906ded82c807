"""
Adapters from store change notifications to Subscription snapshots.

Supabase realtime only tells us *that* something changed, so every event
triggers a full re-fetch of the ordered list. Firestore watches hand us the
complete result set, which is rebuilt into a list on every snapshot.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from supabase import AsyncClient

from sideline.realtime.subscription import Subscription

logger = logging.getLogger(__name__)


async def open_postgres_changes(
    client: AsyncClient,
    channel_name: str,
    table: str,
    fetch: Callable[[], Awaitable[List[Any]]],
    filter: Optional[str] = None,
    schema: str = "public",
) -> Subscription:
    """Subscribe to every change (insert/update/delete) on a table and re-fetch on each."""
    subscription: Subscription = Subscription(channel_name)
    # Fetches run one at a time so a slower, older read never lands after a newer one
    fetch_lock = asyncio.Lock()

    async def refetch():
        async with fetch_lock:
            if subscription.closed:
                return
            try:
                snapshot = await fetch()
            except Exception as e:
                logger.error(f"Re-fetch failed for {channel_name}: {e}")
                subscription.fail(e)
                return
        subscription.publish(snapshot)

    def on_change(payload):
        logger.debug(f"Change event on {channel_name}: {payload.get('eventType') if isinstance(payload, dict) else payload}")
        if subscription.closed:
            return
        subscription.track(asyncio.ensure_future(refetch()))

    channel = client.channel(channel_name)
    channel.on_postgres_changes(
        "*",
        schema=schema,
        table=table,
        filter=filter,
        callback=on_change,
    )
    await channel.subscribe()
    subscription.add_teardown(lambda: client.remove_channel(channel))
    logger.info(f"Opened realtime channel {channel_name}")
    return subscription


def open_document_watch(
    query,
    name: str,
    build: Callable[[Iterable[Any]], List[Any]],
) -> Subscription:
    """Watch a Firestore query; each snapshot is rebuilt with ``build`` and published."""
    subscription: Subscription = Subscription(name)

    def on_snapshot(docs, changes, read_time):
        if subscription.closed:
            return
        try:
            snapshot = build(docs)
        except Exception as e:
            logger.error(f"Failed to rebuild snapshot for {name}: {e}")
            subscription.fail(e)
            return
        subscription.publish(snapshot)

    watch = query.on_snapshot(on_snapshot)
    subscription.add_teardown(watch.unsubscribe)
    logger.info(f"Opened document watch {name}")
    return subscription
