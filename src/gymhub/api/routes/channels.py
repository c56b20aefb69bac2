"""Channel API routes: direct-message channel lookup."""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from gymhub.api.deps import get_hub_id, get_user_id
from gymhub.database import get_db
from gymhub.messaging.dm import get_or_create_dm_channel
from gymhub.schemas.channel import ChannelRead, DirectChannelRequest, DirectChannelResult

router = APIRouter(prefix="/api/channels", tags=["channels"])


@router.post("/dm", response_model=DirectChannelResult)
async def open_direct_channel(
    body: DirectChannelRequest,
    response: Response,
    hub_id: int = Depends(get_hub_id),
    user_id: int = Depends(get_user_id),
    session: AsyncSession = Depends(get_db),
) -> DirectChannelResult:
    """Return the DM channel with another user, creating it on first use (201)."""
    try:
        channel, created = await get_or_create_dm_channel(
            session, hub_id, user_id, body.other_user_id
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None
    if created:
        response.status_code = 201
    return DirectChannelResult(channel=ChannelRead.model_validate(channel), created=created)
