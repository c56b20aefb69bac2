"""Generic get-or-create on top of a uniqueness constraint.

Used wherever two callers may race to create the same logical row (a lesson
slot promoted from recurring availability, a direct-message channel). The
insert is attempted first; a uniqueness conflict rolls back that insert and the
existing row is fetched instead.
"""

import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gymhub.database import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class InsertConflict(Exception):
    """Raised internally when an insert hits an existing unique key."""

    def __init__(self, model: type[Base], unique_key: Mapping[str, Any]) -> None:
        self.model = model
        self.unique_key = dict(unique_key)
        super().__init__(f"{model.__tablename__} already has a row for {self.unique_key}")


async def _insert(
    session: AsyncSession,
    model: type[ModelT],
    unique_key: Mapping[str, Any],
    payload: Mapping[str, Any],
    conflict: type[InsertConflict],
) -> ModelT:
    row = model(**unique_key, **payload)
    session.add(row)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise conflict(model, unique_key) from None
    await session.refresh(row)
    return row


async def _fetch(
    session: AsyncSession, model: type[ModelT], unique_key: Mapping[str, Any]
) -> ModelT | None:
    stmt = select(model).filter_by(**unique_key)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def insert_or_fetch(
    session: AsyncSession,
    model: type[ModelT],
    unique_key: Mapping[str, Any],
    payload: Mapping[str, Any],
    conflict: type[InsertConflict] = InsertConflict,
) -> tuple[ModelT, bool]:
    """Create a row keyed on `unique_key`, or return the one that already exists.

    The insert commits on its own so a conflict never discards other pending
    work; callers must not have uncommitted changes on `session`.

    Args:
        session: Active database session.
        model: ORM class carrying a unique constraint over the `unique_key` columns.
        unique_key: Column values identifying the row.
        payload: Remaining column values, used only when inserting.
        conflict: Exception type raised internally on a uniqueness conflict.

    Returns:
        (row, created) where `created` is False if the row already existed.
    """
    existing = await _fetch(session, model, unique_key)
    if existing is not None:
        return existing, False

    try:
        return await _insert(session, model, unique_key, payload, conflict), True
    except InsertConflict as exc:
        logger.info("Insert conflict resolved by fetch: %s", exc)

    row = await _fetch(session, model, unique_key)
    if row is None:
        # The conflicting row vanished between the insert and the fetch.
        raise RuntimeError(f"{model.__tablename__} row for {dict(unique_key)} not found")
    return row, False
