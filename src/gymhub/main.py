import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

# Register all models with Base.metadata
import gymhub.models  # noqa: F401
from gymhub.api.routes.availability import router as availability_router
from gymhub.api.routes.bookings import router as bookings_router
from gymhub.api.routes.channels import router as channels_router
from gymhub.api.routes.lessons import router as lessons_router
from gymhub.api.routes.slots import router as slots_router
from gymhub.config import get_settings
from gymhub.database import engine, init_db
from gymhub.schemas.system import StatusResponse


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Create tables on startup (dev convenience)
    await init_db()
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        title="GymHub",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.include_router(availability_router)
    app.include_router(lessons_router)
    app.include_router(slots_router)
    app.include_router(bookings_router)
    app.include_router(channels_router)

    @app.get("/api/system/status", response_model=StatusResponse)
    async def system_status() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
