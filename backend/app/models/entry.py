from __future__ import annotations
import uuid
from datetime import datetime, timezone
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, LargeBinary, DateTime, Uuid, CheckConstraint, UniqueConstraint, Index, func
from app.db import Base

PAYMENT_STATUSES = ("pending", "succeeded", "failed")
REVIEW_STATUSES = ("submitted", "under-review", "finalist", "winner", "rejected")

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def _in(column: str, values: tuple[str, ...]) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class Entry(Base):
    """
    One contest submission, funded by exactly one Stripe payment intent.
    Fee columns are copied from the intent metadata at creation time.
    Pitch-deck bytes live in payload storage; file_ref points at them.
    """
    __tablename__ = "entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)

    category: Mapped[str] = mapped_column(String(32), nullable=False)     # business | creative | technology | social-impact
    entry_type: Mapped[str] = mapped_column(String(16), nullable=False)   # text | pitch-deck | video
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)

    # payload: exactly one of these groups is set, matching entry_type
    text_content: Mapped[str | None] = mapped_column(Text(), nullable=True)
    video_url: Mapped[str | None] = mapped_column(Text(), nullable=True)
    file_ref: Mapped[str | None] = mapped_column(Text(), nullable=True)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    file_mime_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)

    entry_fee: Mapped[int] = mapped_column(Integer, nullable=False)
    processing_fee: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="usd")

    payment_intent_id: Mapped[str] = mapped_column(String(255), nullable=False)
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="succeeded")
    review_status: Mapped[str] = mapped_column(String(16), nullable=False, default="submitted")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("payment_intent_id", name="uq_entries_payment_intent_id"),
        CheckConstraint("entry_fee >= 0 AND processing_fee >= 0", name="ck_entries_fees_non_negative"),
        CheckConstraint("total_amount = entry_fee + processing_fee", name="ck_entries_total_amount"),
        CheckConstraint(_in("payment_status", PAYMENT_STATUSES), name="ck_entries_payment_status"),
        CheckConstraint(_in("review_status", REVIEW_STATUSES), name="ck_entries_review_status"),
        Index("ix_entries_owner_created", "owner_id", "created_at"),
    )

    @property
    def has_file(self) -> bool:
        return bool(self.file_ref)


class EntryPayload(Base):
    """File bytes for the database payload backend. Never joined into entry queries."""
    __tablename__ = "entry_payloads"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    content_type: Mapped[str] = mapped_column(String(128), nullable=False)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
