"""Tests for AnswerRecordService."""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from datacollect.exceptions import (
    ConcurrencyConflict,
    ConfigurationError,
    PersistenceError,
    RecordNotFound,
)
from datacollect.schemas.answer import AnswerRecordData, AnswerRecordUpdate
from datacollect.services.answer_record_service import AnswerRecordService
from datacollect.state.models import CurrentQuestionState


@pytest.fixture
def current_question():
    return CurrentQuestionState(
        question="És uma mulher de 26 anos e tens febre. O que se passa contigo?",
        destiny="centro de saúde",
        relation="paciente",
        gender="feminino",
        age=26,
        symptoms=["febre"],
        scenario_id="febre-adulto",
    )


def test_requires_store():
    with pytest.raises(ConfigurationError):
        AnswerRecordService(None)


def test_build_record_copies_scenario_fields(current_question):
    record = AnswerRecordService.build_record("direct:C1", current_question, "tenho febre")
    assert record == AnswerRecordData(
        conversation_key="direct:C1",
        gender="feminino",
        question=current_question.question,
        answer="tenho febre",
        destiny="centro de saúde",
        relation="paciente",
        age=26,
        symptoms=["febre"],
    )


def test_record_answer_stores(answer_store, current_question):
    service = AnswerRecordService(answer_store)
    record_id = service.record_answer(
        AnswerRecordService.build_record("direct:C1", current_question, "quente")
    )
    assert service.get_record(record_id).answer == "quente"
    assert len(service.list_records("direct:C1")) == 1


def test_record_answer_gives_up_after_max_attempts(current_question):
    store = MagicMock()
    store.append.side_effect = PersistenceError("down")
    service = AnswerRecordService(store, max_attempts=4)

    with pytest.raises(PersistenceError, match="down"):
        service.record_answer(
            AnswerRecordService.build_record("direct:C1", current_question, "x")
        )
    assert store.append.call_count == 4


def test_record_answer_succeeds_after_transient_failure(current_question):
    record_id = uuid4()
    store = MagicMock()
    store.append.side_effect = [PersistenceError("blip"), record_id]
    service = AnswerRecordService(store, max_attempts=3)

    assert (
        service.record_answer(
            AnswerRecordService.build_record("direct:C1", current_question, "x")
        )
        == record_id
    )
    assert store.append.call_count == 2


def test_correct_record_merges_fields(answer_store, current_question):
    service = AnswerRecordService(answer_store)
    record_id = service.record_answer(
        AnswerRecordService.build_record("direct:C1", current_question, "febr")
    )
    etag = service.get_record(record_id).etag

    updated = service.correct_record(
        record_id, AnswerRecordUpdate(answer="febre alta"), etag
    )

    assert updated.answer == "febre alta"
    assert updated.question == current_question.question
    assert updated.age == 26
    assert updated.etag != etag


def test_correct_record_with_stale_etag(answer_store, current_question):
    service = AnswerRecordService(answer_store)
    record_id = service.record_answer(
        AnswerRecordService.build_record("direct:C1", current_question, "a")
    )
    etag = service.get_record(record_id).etag
    service.correct_record(record_id, AnswerRecordUpdate(answer="b"), etag)

    with pytest.raises(ConcurrencyConflict):
        service.correct_record(record_id, AnswerRecordUpdate(answer="c"), etag)


def test_correct_unknown_record(answer_store):
    service = AnswerRecordService(answer_store)
    with pytest.raises(RecordNotFound):
        service.correct_record(uuid4(), AnswerRecordUpdate(answer="x"), "etag")
