"""
Durable storage for answer records.

append() never deduplicates; update() is guarded by the record's etag and is
reserved for corrective edits.
"""

from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from uuid import UUID

from fastapi_pagination import Page, Params, paginate
from fastapi_pagination.ext.sqlalchemy import paginate as paginate_query
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from datacollect.exceptions import ConcurrencyConflict, PersistenceError, RecordNotFound
from datacollect.models.answer_record import AnswerRecord
from datacollect.schemas.answer import AnswerRecordData, StoredAnswerRecord


def new_etag() -> str:
    return uuid.uuid4().hex


class AnswerRecordStore(ABC):
    """Contract for answer record persistence."""

    @abstractmethod
    def append(self, record: AnswerRecordData) -> UUID:
        """Store a new record and return its id."""
        ...

    @abstractmethod
    def update(
        self, record_id: UUID, record: AnswerRecordData, expected_etag: str
    ) -> str:
        """Overwrite a record if expected_etag matches. Returns the new etag."""
        ...

    @abstractmethod
    def get(self, record_id: UUID) -> Optional[StoredAnswerRecord]:
        ...

    @abstractmethod
    def list_records(
        self, conversation_key: Optional[str] = None
    ) -> List[StoredAnswerRecord]:
        """Records ordered by creation time, optionally for one conversation."""
        ...

    @abstractmethod
    def page_records(
        self, params: Params, conversation_key: Optional[str] = None
    ) -> Page[StoredAnswerRecord]:
        """One page of list_records(conversation_key)."""
        ...


class MemoryAnswerStore(AnswerRecordStore):
    def __init__(self) -> None:
        self._records: Dict[UUID, StoredAnswerRecord] = {}
        self._lock = threading.Lock()

    def append(self, record: AnswerRecordData) -> UUID:
        now = datetime.now(timezone.utc)
        stored = StoredAnswerRecord(
            id=uuid.uuid4(),
            etag=new_etag(),
            created_at=now,
            updated_at=now,
            **record.model_dump(),
        )
        with self._lock:
            self._records[stored.id] = stored
        return stored.id

    def update(
        self, record_id: UUID, record: AnswerRecordData, expected_etag: str
    ) -> str:
        with self._lock:
            current = self._records.get(record_id)
            if current is None:
                raise RecordNotFound(f"Answer record {record_id} not found")
            if current.etag != expected_etag:
                raise ConcurrencyConflict(
                    str(record_id), expected=expected_etag, actual=current.etag
                )
            etag = new_etag()
            self._records[record_id] = StoredAnswerRecord(
                id=record_id,
                etag=etag,
                created_at=current.created_at,
                updated_at=datetime.now(timezone.utc),
                **record.model_dump(),
            )
        return etag

    def get(self, record_id: UUID) -> Optional[StoredAnswerRecord]:
        with self._lock:
            record = self._records.get(record_id)
        return record.model_copy(deep=True) if record else None

    def list_records(
        self, conversation_key: Optional[str] = None
    ) -> List[StoredAnswerRecord]:
        with self._lock:
            records = list(self._records.values())
        if conversation_key is not None:
            records = [r for r in records if r.conversation_key == conversation_key]
        return [r.model_copy(deep=True) for r in records]

    def page_records(
        self, params: Params, conversation_key: Optional[str] = None
    ) -> Page[StoredAnswerRecord]:
        return paginate(self.list_records(conversation_key), params=params)


class SqlAnswerStore(AnswerRecordStore):
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def append(self, record: AnswerRecordData) -> UUID:
        with self._session_factory() as db:
            row = AnswerRecord(etag=new_etag(), **record.model_dump())
            try:
                db.add(row)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError("Failed to append answer record") from e
            return row.id

    def update(
        self, record_id: UUID, record: AnswerRecordData, expected_etag: str
    ) -> str:
        etag = new_etag()
        with self._session_factory() as db:
            try:
                result = db.execute(
                    update(AnswerRecord)
                    .where(
                        AnswerRecord.id == record_id,
                        AnswerRecord.etag == expected_etag,
                    )
                    .values(etag=etag, **record.model_dump())
                )
                if result.rowcount != 1:
                    db.rollback()
                    current = db.execute(
                        select(AnswerRecord.etag).where(AnswerRecord.id == record_id)
                    ).first()
                    if current is None:
                        raise RecordNotFound(f"Answer record {record_id} not found")
                    raise ConcurrencyConflict(
                        str(record_id), expected=expected_etag, actual=current.etag
                    )
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(
                    f"Failed to update answer record {record_id}"
                ) from e
        return etag

    def get(self, record_id: UUID) -> Optional[StoredAnswerRecord]:
        with self._session_factory() as db:
            row = db.get(AnswerRecord, record_id)
            return StoredAnswerRecord.model_validate(row) if row else None

    @staticmethod
    def _records_query(conversation_key: Optional[str]):
        query = select(AnswerRecord).order_by(AnswerRecord.created_at.asc())
        if conversation_key is not None:
            query = query.where(AnswerRecord.conversation_key == conversation_key)
        return query

    def list_records(
        self, conversation_key: Optional[str] = None
    ) -> List[StoredAnswerRecord]:
        with self._session_factory() as db:
            rows = db.execute(self._records_query(conversation_key)).scalars().all()
            return [StoredAnswerRecord.model_validate(r) for r in rows]

    def page_records(
        self, params: Params, conversation_key: Optional[str] = None
    ) -> Page[StoredAnswerRecord]:
        with self._session_factory() as db:
            return paginate_query(
                db,
                self._records_query(conversation_key),
                params=params,
                transformer=lambda rows: [
                    StoredAnswerRecord.model_validate(r) for r in rows
                ],
            )
