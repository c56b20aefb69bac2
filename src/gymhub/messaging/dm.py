"""Direct-message channels: at most one per pair of users in a hub."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from gymhub.models.channel import Channel
from gymhub.store import insert_or_fetch

logger = logging.getLogger(__name__)


def dm_key(user_a: int, user_b: int) -> str:
    """Order-independent key for a pair of participants."""
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"


async def get_or_create_dm_channel(
    session: AsyncSession, hub_id: int, user_id: int, other_user_id: int
) -> tuple[Channel, bool]:
    """Return the DM channel between two users, creating it on first contact.

    Returns:
        (channel, created)
    """
    if user_id == other_user_id:
        raise ValueError("Cannot open a direct message with yourself")

    channel, created = await insert_or_fetch(
        session,
        Channel,
        {"hub_id": hub_id, "dm_key": dm_key(user_id, other_user_id)},
        {"name": "DM", "type": "private", "created_by": user_id},
    )
    if created:
        logger.info("Created DM channel %s in hub %s", channel.id, hub_id)
    return channel, created
