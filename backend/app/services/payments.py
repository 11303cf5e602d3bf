from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import stripe
import structlog
from starlette.concurrency import run_in_threadpool
from app.errors import (
    InvalidInput, MissingField, PaymentNotFound, PaymentProviderError, ServiceNotConfigured, WebhookSignatureInvalid,
)
from app.services.fees import ENTRY_TYPES, amount_in_minor_units, compute_fees

log = structlog.get_logger()


@dataclass(frozen=True)
class PaymentIntentSnapshot:
    id: str
    status: str
    amount: int
    currency: str
    metadata: dict[str, str] = field(default_factory=dict)
    client_secret: str | None = None


@dataclass(frozen=True)
class PaymentEvent:
    id: str
    type: str
    object_id: str | None


@dataclass(frozen=True)
class IssuedIntent:
    client_secret: str
    payment_intent_id: str
    entry_fee: int
    processing_fee: int
    total_amount: int


def _as_dict(obj: Any) -> dict:
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return dict(obj)
    return obj.to_dict()

def _snapshot(pi: Any) -> PaymentIntentSnapshot:
    return PaymentIntentSnapshot(
        id=pi["id"],
        status=pi["status"],
        amount=int(pi["amount"] or 0),
        currency=pi["currency"],
        metadata={k: str(v) for k, v in _as_dict(pi["metadata"]).items()},
        client_secret=pi["client_secret"],
    )


class StripeGateway:
    """
    The only code that talks to Stripe. Keys are passed per call instead of
    mutating the global stripe.api_key. The SDK is blocking, so calls run in
    the thread pool.
    """

    def __init__(self, secret_key: str, webhook_secret: str = ""):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret

    @property
    def configured(self) -> bool:
        return bool(self.secret_key)

    def _require_key(self) -> None:
        if not self.secret_key:
            raise ServiceNotConfigured("Stripe not configured")

    async def create_intent(self, *, amount: int, currency: str, metadata: dict[str, str]) -> PaymentIntentSnapshot:
        self._require_key()
        try:
            pi = await run_in_threadpool(
                stripe.PaymentIntent.create,
                amount=amount,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
                api_key=self.secret_key,
            )
        except stripe.StripeError as e:
            log.error("stripe_create_intent_failed", error=str(e), code=getattr(e, "code", None))
            raise PaymentProviderError(f"Failed to create payment intent: {e.user_message or e}")
        return _snapshot(pi)

    async def retrieve_intent(self, payment_intent_id: str) -> PaymentIntentSnapshot:
        self._require_key()
        try:
            pi = await run_in_threadpool(stripe.PaymentIntent.retrieve, payment_intent_id, api_key=self.secret_key)
        except stripe.StripeError as e:
            log.warning("stripe_retrieve_intent_failed", payment_intent_id=payment_intent_id, error=str(e))
            raise PaymentNotFound(f"Payment intent {payment_intent_id} could not be verified")
        return _snapshot(pi)

    def construct_event(self, payload: bytes, signature: str | None) -> PaymentEvent:
        if not self.webhook_secret:
            raise ServiceNotConfigured("Stripe webhook secret not configured")
        try:
            event = stripe.Webhook.construct_event(
                payload=payload.decode("utf-8"),
                sig_header=signature or "",
                secret=self.webhook_secret,
            )
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise WebhookSignatureInvalid(f"Invalid webhook: {e}")
        try:
            object_id = event["data"]["object"]["id"]
        except (KeyError, TypeError):
            object_id = None
        return PaymentEvent(id=event["id"], type=event["type"], object_id=object_id)


async def issue_payment_intent(gateway: StripeGateway, category: str | None, entry_type: str | None, *, currency: str = "usd") -> IssuedIntent:
    """
    Create the Stripe intent a client pays against. The fee breakdown is
    written into the intent metadata; submission later trusts only that.
    """
    if not category or not entry_type:
        raise MissingField("Category and entryType are required")
    fees = compute_fees(category)
    if entry_type not in ENTRY_TYPES:
        raise InvalidInput(f"Invalid entry type: {entry_type!r}. Valid entry types: {', '.join(ENTRY_TYPES)}")

    pi = await gateway.create_intent(
        amount=amount_in_minor_units(fees.total_amount),
        currency=currency,
        metadata={
            "category": category,
            "entryType": entry_type,
            "entryFee": str(fees.entry_fee),
            "processingFee": str(fees.processing_fee),
        },
    )
    log.info("payment_intent_created", payment_intent_id=pi.id, category=category, entry_type=entry_type, total_amount=fees.total_amount)
    return IssuedIntent(
        client_secret=pi.client_secret or "",
        payment_intent_id=pi.id,
        entry_fee=fees.entry_fee,
        processing_fee=fees.processing_fee,
        total_amount=fees.total_amount,
    )
