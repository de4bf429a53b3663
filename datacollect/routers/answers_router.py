"""Answer records API: list, get, and etag-guarded corrective edits."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from fastapi_pagination import Page, Params

from datacollect.exceptions import ConcurrencyConflict, RecordNotFound
from datacollect.infra.logging_config import get_logger
from datacollect.routers.utils.dependencies import (
    get_answer_record_by_id,
    get_answer_service,
)
from datacollect.schemas.answer import AnswerRecordUpdate, StoredAnswerRecord
from datacollect.services.answer_record_service import AnswerRecordService

logger = get_logger("answers")

router = APIRouter(
    prefix="/answers",
    tags=["answers"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=Page[StoredAnswerRecord])
def list_answer_records(
    conversation_key: Optional[str] = None,
    params: Params = Depends(),
    service: AnswerRecordService = Depends(get_answer_service),
) -> Page[StoredAnswerRecord]:
    """List answer records in capture order, optionally for one conversation."""
    return service.page_records(params, conversation_key)


@router.get("/{id}", response_model=StoredAnswerRecord)
def get_answer_record(
    response: Response,
    record: StoredAnswerRecord = Depends(get_answer_record_by_id),
) -> StoredAnswerRecord:
    response.headers["ETag"] = f'"{record.etag}"'
    return record


@router.put("/{id}", response_model=StoredAnswerRecord)
def update_answer_record(
    data: AnswerRecordUpdate,
    response: Response,
    record: StoredAnswerRecord = Depends(get_answer_record_by_id),
    if_match: Optional[str] = Header(default=None),
    service: AnswerRecordService = Depends(get_answer_service),
) -> StoredAnswerRecord:
    """Correct an answer record. Requires If-Match with the record's current etag."""
    if not if_match:
        raise HTTPException(status_code=428, detail="If-Match header is required")
    try:
        updated = service.correct_record(record.id, data, if_match.strip('"'))
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail="Answer record not found") from e
    except ConcurrencyConflict as e:
        logger.warning("Stale If-Match for answer record %s", record.id)
        raise HTTPException(
            status_code=409, detail="Answer record was modified; reload and retry"
        ) from e
    logger.info("Answer record %s corrected", record.id)
    response.headers["ETag"] = f'"{updated.etag}"'
    return updated
