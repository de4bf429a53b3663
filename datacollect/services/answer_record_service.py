"""Answer recording with bounded retry on persistence failures."""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from fastapi_pagination import Page, Params

from datacollect.exceptions import ConfigurationError, PersistenceError, RecordNotFound
from datacollect.schemas.answer import (
    AnswerRecordData,
    AnswerRecordUpdate,
    StoredAnswerRecord,
)
from datacollect.state.models import CurrentQuestionState
from datacollect.storage.answer_store import AnswerRecordStore

logger = logging.getLogger(__name__)


class AnswerRecordService:
    def __init__(self, store: AnswerRecordStore, max_attempts: int = 3) -> None:
        if store is None:
            raise ConfigurationError("AnswerRecordService requires an answer store")
        self._store = store
        self._max_attempts = max(1, max_attempts)

    @staticmethod
    def build_record(
        conversation_key: str, current: CurrentQuestionState, answer: str
    ) -> AnswerRecordData:
        return AnswerRecordData(
            conversation_key=conversation_key,
            gender=current.gender,
            question=current.question,
            answer=answer,
            destiny=current.destiny,
            relation=current.relation,
            age=current.age,
            symptoms=list(current.symptoms),
        )

    def record_answer(self, record: AnswerRecordData) -> UUID:
        """
        Append a record, retrying failed writes.

        Raises the last PersistenceError once max_attempts is exhausted.
        """
        last_error: Optional[PersistenceError] = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                record_id = self._store.append(record)
            except PersistenceError as e:
                last_error = e
                logger.warning(
                    "Answer write failed for %s (attempt %d/%d): %s",
                    record.conversation_key,
                    attempt,
                    self._max_attempts,
                    e,
                )
                continue
            logger.info(
                "Answer record %s stored for %s", record_id, record.conversation_key
            )
            return record_id
        raise last_error

    def get_record(self, record_id: UUID) -> Optional[StoredAnswerRecord]:
        return self._store.get(record_id)

    def list_records(
        self, conversation_key: Optional[str] = None
    ) -> List[StoredAnswerRecord]:
        return self._store.list_records(conversation_key)

    def page_records(
        self, params: Params, conversation_key: Optional[str] = None
    ) -> Page[StoredAnswerRecord]:
        return self._store.page_records(params, conversation_key)

    def correct_record(
        self, record_id: UUID, data: AnswerRecordUpdate, expected_etag: str
    ) -> StoredAnswerRecord:
        """Apply a corrective edit guarded by the record's etag."""
        current = self._store.get(record_id)
        if current is None:
            raise RecordNotFound(f"Answer record {record_id} not found")
        merged = AnswerRecordData(
            **{
                **current.model_dump(include=set(AnswerRecordData.model_fields)),
                **data.model_dump(exclude_unset=True, exclude_none=True),
            }
        )
        self._store.update(record_id, merged, expected_etag)
        return self._store.get(record_id)
