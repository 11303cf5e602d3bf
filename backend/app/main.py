from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.config import settings
from app.logging_setup import configure_logging
from app.routes.system import router as system_router
from app.routes.payments import router as payments_router
from app.routes.entries import router as entries_router
from app.routes.webhooks import router as webhooks_router
from app.services.container import build_services
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha)
    await app.state.services.startup()
    yield
    # Shutdown
    await app.state.services.shutdown()
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API for paid contest entries",
)

# Built once per process; requests reach it through app.state
app.state.services = build_services(settings)

# Registered before CORS so CORS stays outermost and also wraps the generic 500
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid, method=request.method, path=request.url.path)
    try:
        response: Response = await call_next(request)
    except Exception:
        # Full traceback in our logs, nothing internal in the response
        log.exception("unhandled_error")
        response = JSONResponse(status_code=500, content={"detail": "Internal server error", "request_id": rid})
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers["X-Request-ID"] = rid
    return response

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(system_router)
app.include_router(payments_router)
app.include_router(entries_router)
app.include_router(webhooks_router)

