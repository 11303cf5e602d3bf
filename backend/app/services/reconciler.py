from __future__ import annotations
import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from app.services.entries import get_entry_by_payment_intent, update_payment_status

log = structlog.get_logger()

PAYMENT_FAILED_EVENT = "payment_intent.payment_failed"

async def reconcile_payment_failed(session: AsyncSession, payment_intent_id: str) -> bool:
    """
    Mark the entry funded by payment_intent_id as failed.

    No entry yet is normal: the payment may never have become a submission,
    or the submission may still be in flight. Replays change nothing.
    """
    entry = await get_entry_by_payment_intent(session, payment_intent_id)
    if entry is None:
        log.info("payment_failed_without_entry", payment_intent_id=payment_intent_id)
        return False
    changed = await update_payment_status(session, payment_intent_id, "failed")
    log.info("payment_reconciled", payment_intent_id=payment_intent_id, entry_id=str(entry.id), changed=changed)
    return changed
