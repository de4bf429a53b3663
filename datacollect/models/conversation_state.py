"""
ConversationStateSlot model: one row per (conversation_key, slot_name).

The version column is the optimistic concurrency token; writers must present
the version they read, inserts rely on the unique constraint.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Column, String, UniqueConstraint, Uuid

from datacollect.db import Base, JSONType
from datacollect.models.mixins import TimestampMixin


class ConversationStateSlot(Base, TimestampMixin):
    """Opaque per-conversation state blob for a named slot."""

    __tablename__ = "conversation_state"

    __table_args__ = (
        UniqueConstraint(
            "conversation_key", "slot_name", name="uq_conversation_state_key_slot"
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    conversation_key = Column(String(512), nullable=False, index=True)
    slot_name = Column(String(128), nullable=False)
    payload = Column(JSONType, nullable=True)
    version = Column(String(64), nullable=False)
