"""Shared fixtures: SQLite-backed and in-memory stores, wired bot, activity factories."""

import random

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import datacollect.models  # noqa: F401
from datacollect.config import Settings
from datacollect.core.app_state import build_services
from datacollect.core.bot import DataCollectionBot
from datacollect.core.runtime import CollectingSender
from datacollect.core.turn_context import TurnContext
from datacollect.db import Base
from datacollect.main import create_app
from datacollect.schemas.activity import (
    Activity,
    ActivityType,
    Channel,
    ChannelAccount,
)
from datacollect.storage.answer_store import MemoryAnswerStore, SqlAnswerStore
from datacollect.storage.state_store import MemoryStateStore, SqlStateStore

BOT_ID = "bot-1"


@pytest.fixture(scope="function")
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="function")
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(params=["memory", "sql"])
def state_store(request, session_factory):
    if request.param == "memory":
        return MemoryStateStore()
    return SqlStateStore(session_factory)


@pytest.fixture(params=["memory", "sql"])
def answer_store(request, session_factory):
    if request.param == "memory":
        return MemoryAnswerStore()
    return SqlAnswerStore(session_factory)


@pytest.fixture
def settings():
    return Settings(questions_per_scenario=2, answer_write_max_attempts=3)


@pytest.fixture
def services(state_store, answer_store, settings):
    return build_services(state_store, answer_store, settings, rng=random.Random(7))


@pytest.fixture
def bot(services):
    return DataCollectionBot(services)


@pytest.fixture
def sender():
    return CollectingSender()


@pytest.fixture
def make_message():
    """Factory for message activities."""

    def _make(
        text=None,
        conversation_id="C1",
        user_id="u1",
        name="Ana",
        attachments=None,
    ):
        return Activity(
            type=ActivityType.MESSAGE,
            channel=Channel.DIRECT,
            conversation_id=conversation_id,
            from_=ChannelAccount(id=user_id, name=name),
            recipient=ChannelAccount(id=BOT_ID, name="bot"),
            text=text,
            attachments=attachments or [],
        )

    return _make


@pytest.fixture
def make_conversation_update():
    """Factory for conversationUpdate activities announcing new members."""

    def _make(members, conversation_id="C1"):
        return Activity(
            type=ActivityType.CONVERSATION_UPDATE,
            channel=Channel.DIRECT,
            conversation_id=conversation_id,
            from_=ChannelAccount(id=members[0][0], name=members[0][1]),
            recipient=ChannelAccount(id=BOT_ID, name="bot"),
            members_added=[ChannelAccount(id=i, name=n) for i, n in members],
        )

    return _make


@pytest.fixture
def make_turn():
    """Factory for a TurnContext over a ConversationState."""

    def _make(conversation_state, activity, sender):
        key = f"{activity.channel.value}:{activity.conversation_id}"
        return TurnContext(
            activity=activity,
            conversation_key=key,
            state=conversation_state.begin_turn(key),
            sender=sender,
        )

    return _make


@pytest.fixture
def app(services):
    return create_app(testing=True, services=services)


@pytest.fixture
def client(app):
    """FastAPI TestClient over the app wired to the test stores."""
    with TestClient(app) as c:
        yield c
