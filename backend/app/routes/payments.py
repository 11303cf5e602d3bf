from __future__ import annotations
from fastapi import APIRouter, Depends
from app.deps import get_services
from app.errors import EntryError, to_http
from app.schemas.entry import CreatePaymentIntentRequest, CreatePaymentIntentResponse
from app.services.container import Services
from app.services.payments import issue_payment_intent

router = APIRouter(tags=["payments"])

@router.post("/payment-intents", response_model=CreatePaymentIntentResponse)
async def create_payment_intent(payload: CreatePaymentIntentRequest, services: Services = Depends(get_services)):
    try:
        issued = await issue_payment_intent(
            services.gateway, payload.category, payload.entry_type, currency=services.currency
        )
    except EntryError as e:
        raise to_http(e)
    return CreatePaymentIntentResponse(
        client_secret=issued.client_secret,
        payment_intent_id=issued.payment_intent_id,
        entry_fee=issued.entry_fee,
        processing_fee=issued.processing_fee,
        total_amount=issued.total_amount,
    )
