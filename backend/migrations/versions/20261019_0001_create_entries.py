from __future__ import annotations
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "entries",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("entry_type", sa.String(length=16), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("text_content", sa.Text(), nullable=True),
        sa.Column("video_url", sa.Text(), nullable=True),
        sa.Column("file_ref", sa.Text(), nullable=True),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("file_mime_type", sa.String(length=128), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("entry_fee", sa.Integer(), nullable=False),
        sa.Column("processing_fee", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=8), nullable=False, server_default="usd"),
        sa.Column("payment_intent_id", sa.String(length=255), nullable=False),
        sa.Column("payment_status", sa.String(length=16), nullable=False, server_default="succeeded"),
        sa.Column("review_status", sa.String(length=16), nullable=False, server_default="submitted"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("payment_intent_id", name="uq_entries_payment_intent_id"),
        sa.CheckConstraint("entry_fee >= 0 AND processing_fee >= 0", name="ck_entries_fees_non_negative"),
        sa.CheckConstraint("total_amount = entry_fee + processing_fee", name="ck_entries_total_amount"),
        sa.CheckConstraint("payment_status IN ('pending', 'succeeded', 'failed')", name="ck_entries_payment_status"),
        sa.CheckConstraint(
            "review_status IN ('submitted', 'under-review', 'finalist', 'winner', 'rejected')",
            name="ck_entries_review_status",
        ),
    )
    op.create_index("ix_entries_owner_id", "entries", ["owner_id"])
    op.create_index("ix_entries_owner_created", "entries", ["owner_id", "created_at"])

    op.create_table(
        "entry_payloads",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("data", sa.LargeBinary(), nullable=False),
        sa.Column("content_type", sa.String(length=128), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

def downgrade() -> None:
    op.drop_table("entry_payloads")
    op.drop_index("ix_entries_owner_created", table_name="entries")
    op.drop_index("ix_entries_owner_id", table_name="entries")
    op.drop_table("entries")
