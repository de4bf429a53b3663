"""
AnswerRecord model: one row per accepted free-text answer.

Rows are only inserted by the question flow; corrective edits go through the
etag-checked update path.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Column, Index, Integer, String, Text, Uuid

from datacollect.db import Base, JSONType
from datacollect.models.mixins import TimestampMixin


class AnswerRecord(Base, TimestampMixin):
    __tablename__ = "answer_records"

    __table_args__ = (
        Index(
            "ix_answer_records_conversation_created",
            "conversation_key",
            "created_at",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    conversation_key = Column(String(512), nullable=True)
    gender = Column(String(32), nullable=True)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    destiny = Column(String(128), nullable=True)
    relation = Column(String(128), nullable=True)
    age = Column(Integer, nullable=True)
    symptoms = Column(JSONType, nullable=True, default=list)
    etag = Column(String(64), nullable=False)
