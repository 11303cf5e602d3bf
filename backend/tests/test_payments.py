from __future__ import annotations
import pytest
import stripe
from app.errors import (
    InvalidCategory, InvalidInput, MissingField, PaymentNotFound, PaymentProviderError, ServiceNotConfigured,
    WebhookSignatureInvalid,
)
from app.services.payments import StripeGateway, issue_payment_intent
from factories import WEBHOOK_SECRET, FakeGateway, sign_payload, stripe_event


@pytest.mark.asyncio
async def test_issue_intent_records_fee_breakdown_in_metadata():
    gw = FakeGateway()
    issued = await issue_payment_intent(gw, "technology", "pitch-deck")
    assert (issued.entry_fee, issued.processing_fee, issued.total_amount) == (99, 4, 103)
    assert issued.client_secret.startswith(issued.payment_intent_id)

    pi = gw.intents[issued.payment_intent_id]
    assert pi.amount == 10300
    assert pi.currency == "usd"
    assert pi.metadata == {"category": "technology", "entryType": "pitch-deck", "entryFee": "99", "processingFee": "4"}


@pytest.mark.asyncio
@pytest.mark.parametrize("category,entry_type,exc", [
    (None, "text", MissingField),
    ("business", "", MissingField),
    ("sports", "text", InvalidCategory),
    ("business", "podcast", InvalidInput),
])
async def test_issue_intent_rejects_bad_input_without_calling_stripe(category, entry_type, exc):
    gw = FakeGateway()
    with pytest.raises(exc):
        await issue_payment_intent(gw, category, entry_type)
    assert gw.intents == {}


@pytest.mark.asyncio
async def test_issue_intent_propagates_provider_failure():
    gw = FakeGateway()
    gw.fail_create = True
    with pytest.raises(PaymentProviderError):
        await issue_payment_intent(gw, "business", "text")


@pytest.mark.asyncio
async def test_stripe_gateway_wraps_sdk_errors(monkeypatch):
    def boom(**kwargs):
        raise stripe.APIConnectionError("network unreachable")
    monkeypatch.setattr(stripe.PaymentIntent, "create", boom)

    with pytest.raises(PaymentProviderError):
        await StripeGateway("sk_test_x").create_intent(amount=5100, currency="usd", metadata={})


@pytest.mark.asyncio
async def test_stripe_gateway_passes_key_per_call(monkeypatch):
    seen = {}
    def fake_create(**kwargs):
        seen.update(kwargs)
        return {
            "id": "pi_1", "status": "requires_payment_method", "amount": kwargs["amount"], "currency": "usd",
            "metadata": kwargs["metadata"], "client_secret": "pi_1_secret",
        }
    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

    pi = await StripeGateway("sk_test_x").create_intent(amount=5100, currency="usd", metadata={"entryFee": "49"})
    assert seen["api_key"] == "sk_test_x"
    assert pi.id == "pi_1" and pi.amount == 5100 and pi.metadata == {"entryFee": "49"}
    assert pi.client_secret == "pi_1_secret"


@pytest.mark.asyncio
async def test_stripe_gateway_unknown_intent_is_not_found(monkeypatch):
    def missing(payment_intent_id, **kwargs):
        raise stripe.InvalidRequestError(f"No such payment_intent: '{payment_intent_id}'", "id")
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", missing)

    with pytest.raises(PaymentNotFound):
        await StripeGateway("sk_test_x").retrieve_intent("pi_nope")


@pytest.mark.asyncio
async def test_stripe_gateway_without_key_is_not_configured():
    with pytest.raises(ServiceNotConfigured):
        await StripeGateway("").create_intent(amount=100, currency="usd", metadata={})
    with pytest.raises(ServiceNotConfigured):
        await StripeGateway("").retrieve_intent("pi_1")


def test_construct_event_verifies_signature():
    gw = StripeGateway("sk_test_x", WEBHOOK_SECRET)
    payload = stripe_event("payment_intent.payment_failed", "pi_abc")
    event = gw.construct_event(payload, sign_payload(payload))
    assert event.type == "payment_intent.payment_failed"
    assert event.object_id == "pi_abc"


@pytest.mark.parametrize("signature", [None, "", "t=1,v1=deadbeef"])
def test_construct_event_rejects_bad_signature(signature):
    gw = StripeGateway("sk_test_x", WEBHOOK_SECRET)
    with pytest.raises(WebhookSignatureInvalid):
        gw.construct_event(stripe_event("payment_intent.payment_failed", "pi_abc"), signature)


def test_construct_event_rejects_other_secret():
    gw = StripeGateway("sk_test_x", WEBHOOK_SECRET)
    payload = stripe_event("payment_intent.payment_failed", "pi_abc")
    with pytest.raises(WebhookSignatureInvalid):
        gw.construct_event(payload, sign_payload(payload, secret="whsec_someone_else"))


def test_construct_event_requires_secret():
    payload = stripe_event("payment_intent.payment_failed", "pi_abc")
    with pytest.raises(ServiceNotConfigured):
        StripeGateway("sk_test_x", "").construct_event(payload, sign_payload(payload))
