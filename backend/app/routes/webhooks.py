from __future__ import annotations
from fastapi import APIRouter, Depends, Header, HTTPException, Request
import structlog
from app.deps import get_services
from app.errors import EntryError, WebhookSignatureInvalid, to_http
from app.services.container import Services
from app.services.reconciler import PAYMENT_FAILED_EVENT, reconcile_payment_failed

router = APIRouter(tags=["stripe"])
log = structlog.get_logger()

@router.post("/payment-webhook")
async def payment_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    services: Services = Depends(get_services),
):
    payload = await request.body()
    try:
        event = services.gateway.construct_event(payload, stripe_signature)
    except WebhookSignatureInvalid as e:
        log.warning("webhook_signature_invalid", error=e.message)
        raise HTTPException(status_code=400, detail=e.message)
    except EntryError as e:
        raise to_http(e)

    log.info("webhook_received", event_id=event.id, event_type=event.type)
    if event.type != PAYMENT_FAILED_EVENT or not event.object_id:
        # Ignore other events
        return {"received": True, "ignored": event.type}

    # Once the signature checks out Stripe always gets a 200; problems stay in our logs
    try:
        async with services.db.session() as session:
            await reconcile_payment_failed(session, event.object_id)
    except Exception:
        log.exception("webhook_processing_failed", event_id=event.id, payment_intent_id=event.object_id)
    return {"received": True}
