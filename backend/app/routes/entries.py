from __future__ import annotations
import base64
from urllib.parse import quote
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile
import structlog

from app.config import MAX_UPLOAD_BYTES
from app.deps import get_services, get_session
from app.errors import EntryError, NotFound, to_http
from app.models.entry import Entry
from app.schemas.entry import DeleteEntryRequest, DeleteEntryResponse, EntryCreated, EntryDetail, EntryPublic, EntrySubmission
from app.services.container import Services
from app.services.entries import delete_entry, get_entry, list_entries_for_owner, load_payload
from app.services.submissions import submit_entry
from app.services.validation import EntryCandidate, UploadedFile

router = APIRouter(prefix="/entries", tags=["entries"])
log = structlog.get_logger()


def _to_public(e: Entry, cls=EntryPublic, **extra) -> EntryPublic:
    return cls(
        id=e.id,
        owner_id=e.owner_id,
        category=e.category,
        entry_type=e.entry_type,
        title=e.title,
        description=e.description,
        text_content=e.text_content,
        video_url=e.video_url,
        has_file=e.has_file,
        file_name=e.file_name,
        file_mime_type=e.file_mime_type,
        file_size=e.file_size,
        download_url=f"/entries/id/{e.id}/download" if e.has_file else None,
        entry_fee=e.entry_fee,
        processing_fee=e.processing_fee,
        total_amount=e.total_amount,
        currency=e.currency,
        payment_intent_id=e.payment_intent_id,
        payment_status=e.payment_status,
        review_status=e.review_status,
        created_at=e.created_at,
        updated_at=e.updated_at,
        **extra,
    )

def _field(form, *names: str) -> str | None:
    for name in names:
        value = form.get(name)
        if isinstance(value, str):
            return value
    return None

async def _read_candidate(request: Request) -> EntryCandidate:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = EntrySubmission.model_validate(await request.json())
        except (ValueError, ValidationError) as e:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            raise HTTPException(status_code=400, detail=f"Invalid JSON body: {e}")
        return EntryCandidate(
            owner_id=body.owner_id,
            category=body.category,
            entry_type=body.entry_type,
            title=body.title,
            payment_intent_id=body.payment_intent_id,
            description=body.description,
            text_content=body.text_content,
            video_url=body.video_url,
        )

    form = await request.form()
    upload = form.get("file")
    file = None
    if isinstance(upload, UploadFile) and upload.filename:
        # One byte past the limit is enough to know it is too big
        data = await upload.read(MAX_UPLOAD_BYTES + 1)
        file = UploadedFile(
            file_name=upload.filename,
            content_type=upload.content_type or "application/octet-stream",
            data=data,
        )
        log.info("entry_file_received", file_name=file.file_name, content_type=file.content_type, size=file.size)
    return EntryCandidate(
        # userId is what older clients send
        owner_id=_field(form, "ownerId", "userId"),
        category=_field(form, "category"),
        entry_type=_field(form, "entryType"),
        title=_field(form, "title"),
        payment_intent_id=_field(form, "paymentIntentId"),
        description=_field(form, "description"),
        text_content=_field(form, "textContent"),
        video_url=_field(form, "videoUrl"),
        file=file,
    )


@router.post("", response_model=EntryCreated, status_code=201)
async def create_entry(
    request: Request,
    session: AsyncSession = Depends(get_session),
    services: Services = Depends(get_services),
):
    """Submit an entry for a payment intent that has already succeeded. Multipart (with `file`) or JSON."""
    candidate = await _read_candidate(request)
    try:
        entry = await submit_entry(
            session, gateway=services.gateway, payloads=services.payloads, candidate=candidate, currency=services.currency
        )
    except EntryError as e:
        raise to_http(e)
    return EntryCreated(entry_id=entry.id, file_size=entry.file_size or 0)


@router.get("/id/{entry_id}", response_model=EntryDetail)
async def get_entry_by_id(
    entry_id: str,
    include_payload: bool = Query(default=False, alias="includePayload"),
    session: AsyncSession = Depends(get_session),
    services: Services = Depends(get_services),
):
    try:
        entry = await get_entry(session, entry_id)
        if entry is None:
            raise NotFound("Entry not found")
        file_data = None
        if include_payload and entry.has_file:
            file_data = base64.b64encode(await load_payload(services.payloads, entry)).decode("ascii")
    except EntryError as e:
        raise to_http(e)
    return _to_public(entry, EntryDetail, file_data=file_data)


@router.get("/id/{entry_id}/download")
async def download_entry_file(
    entry_id: str,
    session: AsyncSession = Depends(get_session),
    services: Services = Depends(get_services),
):
    try:
        entry = await get_entry(session, entry_id)
        if entry is None:
            raise NotFound("Entry not found")
        data = await load_payload(services.payloads, entry)
    except EntryError as e:
        raise to_http(e)

    file_name = entry.file_name or "download"
    ascii_name = file_name.encode("ascii", "ignore").decode().replace('"', "").replace("\r", "").replace("\n", "") or "download"
    return Response(
        content=data,
        media_type=entry.file_mime_type or "application/octet-stream",
        headers={
            "Content-Disposition": f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(file_name)}",
            "Cache-Control": "private, no-cache",
        },
    )


@router.delete("/id/{entry_id}", response_model=DeleteEntryResponse)
async def remove_entry(
    entry_id: str,
    payload: DeleteEntryRequest | None = Body(default=None),
    session: AsyncSession = Depends(get_session),
    services: Services = Depends(get_services),
):
    if payload is None or not payload.owner_id:
        raise HTTPException(status_code=400, detail="ownerId required for deletion")
    try:
        await delete_entry(session, services.payloads, entry_id, payload.owner_id)
    except EntryError as e:
        raise to_http(e)
    return DeleteEntryResponse()


@router.get("/{owner_id}", response_model=list[EntryPublic])
async def list_owner_entries(owner_id: str, session: AsyncSession = Depends(get_session)):
    rows = await list_entries_for_owner(session, owner_id)
    return [_to_public(e) for e in rows]
