from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from teamclock.core.logging import configure_logging
from teamclock.models import team, team_member, time_recording, timetable, user  # noqa: F401
from teamclock.routers.auth import router as auth_router
from teamclock.routers.managers import router as managers_router
from teamclock.routers.stats import router as stats_router
from teamclock.routers.teams import router as teams_router
from teamclock.routers.time_recordings import router as time_recordings_router
from teamclock.routers.timetables import router as timetables_router
from teamclock.routers.users import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("teamclock started")
    yield


app = FastAPI(
    title="Teamclock",
    lifespan=lifespan,
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "Unhandled exception",
            extra={"method": request.method, "path": request.url.path},
        )
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    logger.info(
        "Request handled",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
    return response


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(managers_router)
app.include_router(teams_router)
app.include_router(timetables_router)
app.include_router(time_recordings_router)
app.include_router(stats_router)


@app.get("/")
def root():
    return {"status": "Teamclock running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "1.0.0",
    }
