"""Pydantic schemas for answer records."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AnswerRecordData(BaseModel):
    """The captured content of one answer; immutable once appended."""

    conversation_key: Optional[str] = None
    gender: Optional[str] = None
    question: str
    answer: str
    destiny: Optional[str] = None
    relation: Optional[str] = None
    age: Optional[int] = None
    symptoms: list[str] = Field(default_factory=list)


class StoredAnswerRecord(AnswerRecordData):
    """Answer record as held by a store, with its concurrency token."""

    id: UUID
    etag: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AnswerRecordUpdate(BaseModel):
    """Corrective edit of an answer record. Omitted fields keep their value."""

    gender: Optional[str] = None
    question: Optional[str] = None
    answer: Optional[str] = None
    destiny: Optional[str] = None
    relation: Optional[str] = None
    age: Optional[int] = None
    symptoms: Optional[list[str]] = None
