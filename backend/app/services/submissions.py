"""
Turns a paid-for candidate into a stored entry.

Order matters: validate (no side effects), verify the Stripe intent, take fee
amounts from the intent metadata only, store the file, then persist. A
payment-failed webhook can land between the status check and the insert;
the reconciler corrects the entry on that event, so no lock is taken here.
"""
from __future__ import annotations
import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from app.errors import (
    AlreadySubmitted, CorruptPaymentMetadata, EntryError, InvalidInput, PaymentIncomplete, PersistenceError,
    ValidationFailure,
)
from app.models.entry import Entry
from app.services.entries import create_entry, get_entry_by_payment_intent
from app.services.fees import FeeBreakdown, amount_in_minor_units
from app.services.payments import PaymentIntentSnapshot, StripeGateway
from app.services.storage import PayloadStorage
from app.services.validation import EntryCandidate, check_file, ensure_valid

log = structlog.get_logger()


def fees_from_intent(pi: PaymentIntentSnapshot) -> FeeBreakdown:
    meta = pi.metadata or {}
    try:
        entry_fee = int(meta["entryFee"])
        processing_fee = int(meta["processingFee"])
    except (KeyError, TypeError, ValueError):
        log.error("corrupt_payment_metadata", payment_intent_id=pi.id, metadata=meta)
        raise CorruptPaymentMetadata(f"Payment intent {pi.id} carries no usable fee metadata")
    if entry_fee < 0 or processing_fee < 0:
        log.error("corrupt_payment_metadata", payment_intent_id=pi.id, metadata=meta)
        raise CorruptPaymentMetadata(f"Payment intent {pi.id} carries negative fees")
    total = entry_fee + processing_fee
    if pi.amount != amount_in_minor_units(total):
        log.error("payment_amount_mismatch", payment_intent_id=pi.id, amount=pi.amount, total_amount=total)
        raise CorruptPaymentMetadata(f"Payment intent {pi.id} amount does not match its fee metadata")
    return FeeBreakdown(entry_fee=entry_fee, processing_fee=processing_fee, total_amount=total)

def _check_intent_matches(pi: PaymentIntentSnapshot, c: EntryCandidate) -> None:
    # An intent paid for one category must not fund an entry in a pricier one
    paid_category = pi.metadata.get("category")
    paid_type = pi.metadata.get("entryType")
    if paid_category and paid_category != c.category:
        raise InvalidInput(f"Payment was made for category {paid_category!r}, not {c.category!r}")
    if paid_type and paid_type != c.entry_type:
        raise InvalidInput(f"Payment was made for entry type {paid_type!r}, not {c.entry_type!r}")


async def submit_entry(
    session: AsyncSession,
    *,
    gateway: StripeGateway,
    payloads: PayloadStorage,
    candidate: EntryCandidate,
    currency: str = "usd",
) -> Entry:
    c = candidate
    ensure_valid(c)

    pi = await gateway.retrieve_intent(c.payment_intent_id)
    if pi.status != "succeeded":
        log.info("entry_rejected", reason="payment_incomplete", payment_intent_id=pi.id, payment_status=pi.status)
        raise PaymentIncomplete(pi.status)

    fees = fees_from_intent(pi)
    _check_intent_matches(pi, c)

    if await get_entry_by_payment_intent(session, pi.id) is not None:
        log.info("entry_rejected", reason="already_submitted", payment_intent_id=pi.id)
        raise AlreadySubmitted("An entry has already been submitted for this payment")

    entry = Entry(
        owner_id=c.owner_id,
        category=c.category,
        entry_type=c.entry_type,
        title=c.title.strip(),
        description=c.description or None,
        entry_fee=fees.entry_fee,
        processing_fee=fees.processing_fee,
        total_amount=fees.total_amount,
        currency=pi.currency or currency,
        payment_intent_id=pi.id,
        payment_status="succeeded",
        review_status="submitted",
    )

    if c.entry_type == "text":
        entry.text_content = c.text_content
    elif c.entry_type == "video":
        entry.video_url = c.video_url.strip()
    elif c.entry_type == "pitch-deck":
        # The edge may have validated before the upload finished arriving
        problems = check_file(c.file)
        if problems:
            raise ValidationFailure(problems)
        try:
            entry.file_ref = await payloads.store(c.file.data, content_type=c.file.content_type, file_name=c.file.file_name)
        except EntryError:
            raise
        except Exception as e:
            log.error("entry_payload_store_failed", payment_intent_id=pi.id, error=str(e))
            raise PersistenceError(f"Failed to store file: {e}")
        entry.file_name = c.file.file_name
        entry.file_mime_type = c.file.content_type
        entry.file_size = c.file.size

    try:
        await create_entry(session, entry)
    except EntryError:
        if entry.file_ref:
            await _discard_payload(payloads, entry.file_ref)
        raise

    log.info(
        "entry_created",
        entry_id=str(entry.id), owner_id=entry.owner_id, category=entry.category, entry_type=entry.entry_type,
        payment_intent_id=entry.payment_intent_id, total_amount=entry.total_amount, file_size=entry.file_size or 0,
    )
    return entry

async def _discard_payload(payloads: PayloadStorage, ref: str) -> None:
    try:
        await payloads.delete(ref)
    except Exception as e:
        log.error("entry_payload_cleanup_failed", file_ref=ref, error=str(e))
