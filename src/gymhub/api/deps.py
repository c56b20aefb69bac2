"""Shared FastAPI dependencies.

Hub and user identity arrive as headers set by the authenticating gateway in
front of this service.
"""

from functools import lru_cache

from fastapi import Header

from gymhub.scheduling.service import SchedulingService


@lru_cache
def get_scheduling_service() -> SchedulingService:
    return SchedulingService()


async def get_hub_id(x_hub_id: int = Header()) -> int:
    return x_hub_id


async def get_user_id(x_user_id: int = Header()) -> int:
    return x_user_id
