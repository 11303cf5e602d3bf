from __future__ import annotations
import uuid
import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from app.errors import AlreadySubmitted, NotFound, PersistenceError, Unauthorized, InvalidInput
from app.models.entry import Entry, PAYMENT_STATUSES
from app.services.storage import PayloadStorage

log = structlog.get_logger()


def parse_entry_id(entry_id: str | uuid.UUID) -> uuid.UUID:
    if isinstance(entry_id, uuid.UUID):
        return entry_id
    try:
        return uuid.UUID(entry_id)
    except (ValueError, TypeError):
        raise NotFound("Entry not found")

async def create_entry(session: AsyncSession, entry: Entry) -> Entry:
    session.add(entry)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        if "payment_intent" in str(e.orig).lower():
            raise AlreadySubmitted("An entry has already been submitted for this payment")
        raise PersistenceError(f"Failed to store entry: {e.orig}")
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceError(f"Failed to store entry: {e}")
    return entry

async def get_entry(session: AsyncSession, entry_id: str | uuid.UUID) -> Entry | None:
    return await session.get(Entry, parse_entry_id(entry_id))

async def get_entry_by_payment_intent(session: AsyncSession, payment_intent_id: str) -> Entry | None:
    return await session.scalar(select(Entry).where(Entry.payment_intent_id == payment_intent_id))

async def list_entries_for_owner(session: AsyncSession, owner_id: str) -> list[Entry]:
    return (await session.execute(
        select(Entry).where(Entry.owner_id == owner_id).order_by(Entry.created_at.desc())
    )).scalars().all()

async def update_payment_status(session: AsyncSession, payment_intent_id: str, status: str) -> bool:
    """
    Set payment_status for the entry funded by payment_intent_id.
    An entry never leaves "failed". Returns True only if a row changed.
    """
    if status not in PAYMENT_STATUSES:
        raise InvalidInput(f"Invalid payment status: {status}")
    result = await session.execute(
        update(Entry)
        .where(Entry.payment_intent_id == payment_intent_id, Entry.payment_status != "failed", Entry.payment_status != status)
        .values(payment_status=status)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    return (result.rowcount or 0) > 0

async def load_payload(payloads: PayloadStorage, entry: Entry) -> bytes:
    if not entry.file_ref:
        raise NotFound("File not found for this entry")
    return await payloads.retrieve(entry.file_ref)

async def delete_entry(session: AsyncSession, payloads: PayloadStorage, entry_id: str | uuid.UUID, requesting_owner_id: str) -> None:
    entry = await get_entry(session, entry_id)
    if entry is None:
        raise NotFound("Entry not found")
    if entry.owner_id != requesting_owner_id:
        log.warning("entry_delete_refused", entry_id=str(entry.id), requested_by=requesting_owner_id)
        raise Unauthorized("Not authorized to delete this entry")

    file_ref = entry.file_ref
    await session.delete(entry)
    await session.commit()
    if file_ref:
        try:
            await payloads.delete(file_ref)
        except Exception as e:
            # Entry is gone already; an orphaned blob is only wasted space
            log.error("entry_payload_delete_failed", entry_id=str(entry.id), file_ref=file_ref, error=str(e))
    log.info("entry_deleted", entry_id=str(entry.id), owner_id=requesting_owner_id)
