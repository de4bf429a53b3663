"""Tests for MemoryAnswerStore and SqlAnswerStore."""

from unittest.mock import patch
from uuid import uuid4

import pytest
from fastapi_pagination import Params

from datacollect.exceptions import ConcurrencyConflict, RecordNotFound
from datacollect.schemas.answer import AnswerRecordData, StoredAnswerRecord
from datacollect.storage.answer_store import SqlAnswerStore


def make_record(faker, conversation_key="direct:C1", **overrides):
    data = {
        "conversation_key": conversation_key,
        "gender": "feminino",
        "question": faker.sentence(),
        "answer": faker.sentence(),
        "destiny": "pronto-socorro",
        "relation": "paciente",
        "age": faker.random_int(min=18, max=80),
        "symptoms": ["febre"],
    }
    data.update(overrides)
    return AnswerRecordData(**data)


def test_append_then_get(answer_store, faker):
    record = make_record(faker, answer="tenho febre")
    record_id = answer_store.append(record)

    stored = answer_store.get(record_id)
    assert stored is not None
    assert stored.id == record_id
    assert stored.answer == "tenho febre"
    assert stored.symptoms == ["febre"]
    assert stored.etag


def test_append_never_deduplicates(answer_store, faker):
    record = make_record(faker)
    first = answer_store.append(record)
    second = answer_store.append(record)
    assert first != second
    assert len(answer_store.list_records("direct:C1")) == 2


def test_get_unknown_returns_none(answer_store):
    assert answer_store.get(uuid4()) is None


def test_list_filters_by_conversation(answer_store, faker):
    answer_store.append(make_record(faker, conversation_key="direct:C1"))
    answer_store.append(make_record(faker, conversation_key="direct:C2"))
    answer_store.append(make_record(faker, conversation_key="direct:C1"))

    assert len(answer_store.list_records()) == 3
    only_c1 = answer_store.list_records("direct:C1")
    assert len(only_c1) == 2
    assert all(r.conversation_key == "direct:C1" for r in only_c1)


def test_update_with_matching_etag(answer_store, faker):
    record_id = answer_store.append(make_record(faker, answer="errado"))
    etag = answer_store.get(record_id).etag

    new_etag = answer_store.update(
        record_id, make_record(faker, answer="corrigido"), etag
    )

    stored = answer_store.get(record_id)
    assert stored.answer == "corrigido"
    assert stored.etag == new_etag
    assert new_etag != etag


def test_update_with_stale_etag_conflicts(answer_store, faker):
    record_id = answer_store.append(make_record(faker, answer="original"))
    etag = answer_store.get(record_id).etag
    answer_store.update(record_id, make_record(faker, answer="first edit"), etag)

    with pytest.raises(ConcurrencyConflict):
        answer_store.update(record_id, make_record(faker, answer="second edit"), etag)
    assert answer_store.get(record_id).answer == "first edit"


def test_update_unknown_record(answer_store, faker):
    with pytest.raises(RecordNotFound):
        answer_store.update(uuid4(), make_record(faker), "whatever")


def test_page_records_covers_all_pages(answer_store, faker):
    for n in range(3):
        answer_store.append(make_record(faker, answer=f"resposta {n}"))
    answer_store.append(make_record(faker, conversation_key="direct:C2"))

    first = answer_store.page_records(Params(page=1, size=2), "direct:C1")
    second = answer_store.page_records(Params(page=2, size=2), "direct:C1")

    assert first.total == 3
    assert second.total == 3
    assert len(first.items) == 2
    assert len(second.items) == 1
    answers = {r.answer for r in first.items + second.items}
    assert answers == {"resposta 0", "resposta 1", "resposta 2"}


def test_sql_page_records_queries_the_database(session_factory, faker):
    store = SqlAnswerStore(session_factory)
    for _ in range(3):
        store.append(make_record(faker))

    with patch.object(SqlAnswerStore, "list_records", side_effect=AssertionError):
        page = store.page_records(Params(page=2, size=2))

    assert page.total == 3
    assert len(page.items) == 1
    assert isinstance(page.items[0], StoredAnswerRecord)
