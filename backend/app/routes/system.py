from __future__ import annotations
from fastapi import APIRouter, Depends, Request
from datetime import datetime, timezone
from app.config import settings
from app.deps import get_services
from app.services.container import Services

router = APIRouter()

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

@router.get("/")
async def index():
    return {
        "message": f"{settings.app_display_name} API",
        "status": "running",
        "time": _now(),
        "version": settings.app_version,
        "env": settings.environment,
        "endpoints": {
            "health": "GET /health",
            "createPaymentIntent": "POST /payment-intents",
            "submitEntry": "POST /entries",
            "ownerEntries": "GET /entries/{ownerId}",
            "entry": "GET /entries/id/{id}",
            "downloadFile": "GET /entries/id/{id}/download",
            "deleteEntry": "DELETE /entries/id/{id}",
            "paymentWebhook": "POST /payment-webhook",
        },
    }

@router.get("/health")
async def health(request: Request, services: Services = Depends(get_services)):
    # Always 200: the fields say what is degraded
    if services.db.configured:
        database = "connected" if await services.db.ping() else "disconnected"
    else:
        database = "not configured"
    return {
        "status": "ok",
        "env": settings.environment,
        "time": _now(),
        "request_id": request.headers.get("x-request-id") or request.state.request_id,
        "database": database,
        "payments": "configured" if services.gateway.configured else "not configured",
        "webhooks": "configured" if services.gateway.webhook_secret else "not configured",
        "storage": "ok" if await services.payloads.check() else "unavailable",
    }

@router.get("/version")
async def version():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "git_sha": settings.git_sha,
        "build": "docker",
    }
