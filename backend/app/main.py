import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from app.api.routes import health, schedules, shows, snapshots
from app.core.config import get_settings
from app.core.exceptions import AppError, unique_violation_from_integrity_error
from app.core.middleware import RequestSizeLimitMiddleware
from app.db.bootstrap import ensure_schema

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_schema()
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError):
    error = unique_violation_from_integrity_error(exc)
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, error.message)
    return await app_error_handler(request, error)


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(schedules.router, prefix=settings.api_prefix, tags=["schedules"])
app.include_router(snapshots.router, prefix=settings.api_prefix, tags=["snapshots"])
app.include_router(shows.router, prefix=settings.api_prefix, tags=["shows"])
