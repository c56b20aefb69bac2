from datetime import datetime

from pydantic import BaseModel


class DirectChannelRequest(BaseModel):
    other_user_id: int


class ChannelRead(BaseModel):
    id: int
    hub_id: int
    name: str
    type: str
    dm_key: str | None = None
    created_by: int
    created_at: datetime

    model_config = {"from_attributes": True}


class DirectChannelResult(BaseModel):
    channel: ChannelRead
    created: bool
