from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from fshome.config import settings
from fshome.logging_setup import configure_logging
from fshome.routes.system import router as system_router
from fshome.routes.auth import router as auth_router
from fshome.routes.seasons import router as seasons_router, leaderboard_router
from fshome.routes.challenges import router as challenges_router, modes_router
from fshome.routes.participations import router as participations_router
from fshome.routes.suggestions import router as suggestions_router
from fshome.routes.honors import router as honors_router
from fshome.routes.cron import router as cron_router
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha)
    yield
    # Shutdown
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API for weekly challenges, seasons and honors",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(system_router)
app.include_router(auth_router)
app.include_router(seasons_router)
app.include_router(leaderboard_router)
app.include_router(challenges_router)
app.include_router(modes_router)
app.include_router(participations_router)
app.include_router(suggestions_router)
app.include_router(honors_router)
app.include_router(cron_router)

@app.exception_handler(SQLAlchemyError)
async def storage_error(request: Request, exc: SQLAlchemyError):
    log.error("storage_error", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(status_code=503, content={"detail": "Storage error; please retry"})

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid)
    response: Response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    structlog.contextvars.clear_contextvars()
    return response
