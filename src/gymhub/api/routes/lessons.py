"""Lesson setup API routes: coach lesson profiles and lesson packages."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymhub.api.deps import get_hub_id
from gymhub.database import get_db
from gymhub.models.lessons import CoachLessonProfile, LessonPackage
from gymhub.schemas.lessons import (
    CoachLessonProfileRead,
    CoachLessonProfileUpsert,
    LessonPackageCreate,
    LessonPackageRead,
    LessonPackageUpdate,
)

router = APIRouter(prefix="/api/lessons", tags=["lessons"])


@router.get("/profile/{coach_id}", response_model=CoachLessonProfileRead)
async def get_profile(
    coach_id: int,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
) -> CoachLessonProfile:
    stmt = select(CoachLessonProfile).where(
        CoachLessonProfile.hub_id == hub_id,
        CoachLessonProfile.coach_user_id == coach_id,
    )
    result = await session.execute(stmt)
    profile = result.scalar_one_or_none()
    if profile is None:
        raise HTTPException(status_code=404, detail="Coach has not set up private lessons")
    return profile


@router.put("/profile/{coach_id}", response_model=CoachLessonProfileRead)
async def upsert_profile(
    coach_id: int,
    body: CoachLessonProfileUpsert,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
) -> CoachLessonProfile:
    """Create or replace a coach's lesson profile."""
    stmt = select(CoachLessonProfile).where(
        CoachLessonProfile.hub_id == hub_id,
        CoachLessonProfile.coach_user_id == coach_id,
    )
    result = await session.execute(stmt)
    profile = result.scalar_one_or_none()
    if profile is None:
        profile = CoachLessonProfile(hub_id=hub_id, coach_user_id=coach_id)
        session.add(profile)

    for field, value in body.model_dump().items():
        setattr(profile, field, value)

    await session.commit()
    await session.refresh(profile)
    return profile


@router.get("/packages", response_model=list[LessonPackageRead])
async def list_packages(
    coach_id: int | None = None,
    include_inactive: bool = False,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
) -> list[LessonPackage]:
    stmt = select(LessonPackage).where(LessonPackage.hub_id == hub_id)
    if coach_id is not None:
        stmt = stmt.where(LessonPackage.coach_user_id == coach_id)
    if not include_inactive:
        stmt = stmt.where(LessonPackage.is_active.is_(True))
    stmt = stmt.order_by(LessonPackage.sort_order, LessonPackage.id)
    result = await session.execute(stmt)
    return list(result.scalars().all())


@router.post("/packages", response_model=LessonPackageRead, status_code=201)
async def create_package(
    body: LessonPackageCreate,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
) -> LessonPackage:
    package = LessonPackage(hub_id=hub_id, **body.model_dump())
    session.add(package)
    await session.commit()
    await session.refresh(package)
    return package


async def _get_package_or_404(
    session: AsyncSession, hub_id: int, package_id: int
) -> LessonPackage:
    package = await session.get(LessonPackage, package_id)
    if package is None or package.hub_id != hub_id:
        raise HTTPException(status_code=404, detail="Lesson package not found")
    return package


@router.put("/packages/{package_id}", response_model=LessonPackageRead)
async def update_package(
    package_id: int,
    body: LessonPackageUpdate,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
) -> LessonPackage:
    """Update a lesson package (partial update)."""
    package = await _get_package_or_404(session, hub_id, package_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(package, field, value)
    await session.commit()
    await session.refresh(package)
    return package


@router.delete("/packages/{package_id}", status_code=204)
async def delete_package(
    package_id: int,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
) -> None:
    """Deactivate a package. Past bookings keep referring to it."""
    package = await _get_package_or_404(session, hub_id, package_id)
    package.is_active = False
    await session.commit()
