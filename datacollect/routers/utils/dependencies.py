from uuid import UUID

from fastapi import Depends, HTTPException, Request

from datacollect.core.bot import DataCollectionBot
from datacollect.schemas.answer import StoredAnswerRecord
from datacollect.services.answer_record_service import AnswerRecordService


def get_bot(request: Request) -> DataCollectionBot:
    """FastAPI dependency returning the bot wired at startup."""
    return request.app.state.bot


def get_answer_service(
    bot: DataCollectionBot = Depends(get_bot),
) -> AnswerRecordService:
    return bot.services.answers


def get_answer_record_by_id(
    id: UUID,
    service: AnswerRecordService = Depends(get_answer_service),
) -> StoredAnswerRecord:
    """FastAPI dependency to get an answer record by ID."""
    record = service.get_record(id)
    if record is None:
        raise HTTPException(status_code=404, detail="Answer record not found")
    return record
