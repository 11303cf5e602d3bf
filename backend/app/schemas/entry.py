from __future__ import annotations
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from uuid import UUID
from datetime import datetime


class CamelModel(BaseModel):
    # Unknown fields (e.g. a client-sent totalAmount) are dropped, never read
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CreatePaymentIntentRequest(CamelModel):
    # Optional here so a missing field is our 400, not FastAPI's 422
    category: str | None = None
    entry_type: str | None = None

class CreatePaymentIntentResponse(CamelModel):
    client_secret: str
    payment_intent_id: str
    entry_fee: int
    processing_fee: int
    total_amount: int


class EntrySubmission(CamelModel):
    """JSON form of POST /entries (text and video entries)."""
    owner_id: str | None = None
    category: str | None = None
    entry_type: str | None = None
    title: str | None = None
    description: str | None = None
    text_content: str | None = None
    video_url: str | None = None
    payment_intent_id: str | None = None

class EntryCreated(CamelModel):
    entry_id: UUID
    message: str = "Entry submitted successfully"
    file_size: int = 0


class EntryPublic(CamelModel):
    id: UUID
    owner_id: str
    category: str
    entry_type: str
    title: str
    description: str | None = None
    text_content: str | None = None
    video_url: str | None = None
    # 🔒 no storage reference, no bytes
    has_file: bool = False
    file_name: str | None = None
    file_mime_type: str | None = None
    file_size: int | None = None
    download_url: str | None = None
    entry_fee: int
    processing_fee: int
    total_amount: int
    currency: str
    payment_intent_id: str
    payment_status: str
    review_status: str
    created_at: datetime
    updated_at: datetime | None = None

class EntryDetail(EntryPublic):
    file_data: str | None = None  # base64, only when includePayload=true


class DeleteEntryRequest(CamelModel):
    owner_id: str | None = None

class DeleteEntryResponse(CamelModel):
    message: str = "Entry deleted successfully"
