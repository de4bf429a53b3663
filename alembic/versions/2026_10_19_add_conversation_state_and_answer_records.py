"""Add conversation_state and answer_records tables

Revision ID: add_conversation_state_answer_records
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "add_conversation_state_answer_records"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "conversation_state",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("conversation_key", sa.String(512), nullable=False),
        sa.Column("slot_name", sa.String(128), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("version", sa.String(64), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")
        ),
        sa.Column(
            "updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "conversation_key", "slot_name", name="uq_conversation_state_key_slot"
        ),
    )
    op.create_index(
        "ix_conversation_state_conversation_key",
        "conversation_state",
        ["conversation_key"],
        unique=False,
    )

    op.create_table(
        "answer_records",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("conversation_key", sa.String(512), nullable=True),
        sa.Column("gender", sa.String(32), nullable=True),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("answer", sa.Text(), nullable=False),
        sa.Column("destiny", sa.String(128), nullable=True),
        sa.Column("relation", sa.String(128), nullable=True),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("symptoms", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("etag", sa.String(64), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")
        ),
        sa.Column(
            "updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_answer_records_conversation_created",
        "answer_records",
        ["conversation_key", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_answer_records_conversation_created", table_name="answer_records")
    op.drop_table("answer_records")
    op.drop_index(
        "ix_conversation_state_conversation_key", table_name="conversation_state"
    )
    op.drop_table("conversation_state")
