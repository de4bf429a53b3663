"""Tests for DataCollectionBot turn processing."""

import pytest

from datacollect.constants.scenarios import SCENARIO_COMPLETE_MESSAGE, WELCOME_MESSAGE
from datacollect.core.app_state import build_services
from datacollect.core.bot import DataCollectionBot
from datacollect.dialogs.question_flow import QUESTION_FLOW_DIALOG
from datacollect.exceptions import ConfigurationError, TransportError
from datacollect.schemas.activity import (
    Activity,
    ActivityType,
    Channel,
    ChannelAccount,
    OutboundSendResult,
)
from datacollect.storage.state_store import MemoryStateStore

KEY = "direct:C1"
BOT_ID = "bot-1"


def welcome_text(greeting):
    return WELCOME_MESSAGE.format(greeting=greeting)


def test_requires_services():
    with pytest.raises(ConfigurationError):
        DataCollectionBot(None)


@pytest.mark.asyncio
async def test_first_message_welcomes_and_asks(bot, sender, make_message, state_store):
    result = await bot.on_turn(make_message("olá"), sender)

    assert result.committed is True
    assert result.conversation_key == KEY
    assert len(result.replies) == 2
    assert result.replies[0] == welcome_text("Olá Ana!")
    assert state_store.get(KEY, "welcome_state").payload == {"did_welcome_user": True}
    assert state_store.get(KEY, "counter_state").payload == {"turn_count": 1}
    assert [m.text for m in sender.sent] == result.replies


@pytest.mark.asyncio
async def test_answer_is_recorded_and_welcome_not_repeated(
    bot, sender, make_message, answer_store
):
    await bot.on_turn(make_message("olá"), sender)
    result = await bot.on_turn(make_message("tenho febre"), sender)

    assert result.committed is True
    assert welcome_text("Olá Ana!") not in result.replies
    records = answer_store.list_records(KEY)
    assert len(records) == 1
    assert records[0].answer == "tenho febre"
    assert records[0].conversation_key == KEY


@pytest.mark.asyncio
async def test_full_scenario_then_new_one(
    bot, sender, make_message, answer_store, state_store
):
    await bot.on_turn(make_message("olá"), sender)
    await bot.on_turn(make_message("resposta um"), sender)
    result = await bot.on_turn(make_message("resposta dois"), sender)

    assert result.replies == [SCENARIO_COMPLETE_MESSAGE]
    assert state_store.get(KEY, "current_question") is None
    assert len(answer_store.list_records(KEY)) == 2

    result = await bot.on_turn(make_message("mais"), sender)
    assert len(result.replies) == 1
    assert state_store.get(KEY, "current_question") is not None
    assert state_store.get(KEY, "counter_state").payload == {"turn_count": 4}


@pytest.mark.asyncio
@pytest.mark.parametrize("name", [None, "", "User"])
async def test_anonymous_user_greeting(bot, sender, make_message, name):
    result = await bot.on_turn(make_message("oi", name=name), sender)
    assert result.replies[0] == welcome_text("Olá!")


@pytest.mark.asyncio
async def test_conversation_update_welcomes_once(
    bot, sender, make_conversation_update, state_store
):
    result = await bot.on_turn(
        make_conversation_update([(BOT_ID, "bot"), ("u1", "Ana"), ("u2", "Rui")]), sender
    )

    assert result.committed is True
    assert result.replies[0] == welcome_text("Olá Ana!")
    assert welcome_text("Olá Rui!") not in result.replies
    assert len(result.replies) == 2
    assert state_store.get(KEY, "counter_state") is None

    again = await bot.on_turn(make_conversation_update([("u3", "Eva")]), sender)
    assert again.replies == []


@pytest.mark.asyncio
async def test_member_added_then_answer_records_once(
    bot, sender, make_conversation_update, make_message, state_store, answer_store
):
    joined = await bot.on_turn(
        make_conversation_update([(BOT_ID, "bot"), ("u1", "Ana")], conversation_id="C1"),
        sender,
    )
    answered = await bot.on_turn(make_message("tenho febre", conversation_id="C1"), sender)

    assert joined.committed is True
    assert answered.committed is True
    replies = joined.replies + answered.replies
    assert [r for r in replies if "Ana" in r] == [welcome_text("Olá Ana!")]
    assert state_store.get(KEY, "welcome_state").payload == {"did_welcome_user": True}
    records = answer_store.list_records(KEY)
    assert [r.answer for r in records] == ["tenho febre"]


@pytest.mark.asyncio
async def test_stack_with_unregistered_dialog_restarts_flow(
    bot, sender, make_message, state_store
):
    state_store.put(
        KEY, "dialog_state", {"dialog_stack": [{"id": "renamedFlow", "state": {}}]}, None
    )

    result = await bot.on_turn(make_message("olá"), sender)

    assert result.committed is True
    assert result.error is None
    assert len(result.replies) == 2
    stack = state_store.get(KEY, "dialog_state").payload["dialog_stack"]
    assert stack[0]["id"] == QUESTION_FLOW_DIALOG
    assert "renamedFlow" not in [f["id"] for f in stack]


@pytest.mark.asyncio
async def test_bot_joining_alone_sends_nothing(
    bot, sender, make_conversation_update, state_store
):
    result = await bot.on_turn(make_conversation_update([(BOT_ID, "bot")]), sender)
    assert result.committed is True
    assert result.replies == []
    assert state_store.get(KEY, "welcome_state").payload == {"did_welcome_user": False}


@pytest.mark.asyncio
async def test_other_activity_creates_welcome_default(bot, sender, state_store):
    activity = Activity(
        type=ActivityType.OTHER,
        channel=Channel.DIRECT,
        conversation_id="C1",
        from_=ChannelAccount(id="u1"),
        recipient=ChannelAccount(id=BOT_ID),
    )
    result = await bot.on_turn(activity, sender)

    assert result.committed is True
    assert result.replies == []
    assert state_store.get(KEY, "welcome_state").payload == {"did_welcome_user": False}


@pytest.mark.asyncio
async def test_conversations_are_isolated(bot, sender, make_message, state_store):
    await bot.on_turn(make_message("olá", conversation_id="C1"), sender)
    result = await bot.on_turn(make_message("olá", conversation_id="C2"), sender)

    assert result.replies[0] == welcome_text("Olá Ana!")
    assert state_store.get("direct:C2", "counter_state").payload == {"turn_count": 1}


@pytest.mark.asyncio
async def test_transport_failure_does_not_roll_back(bot, make_message, state_store):
    async def failing_sender(outbound):
        raise TransportError("network down")

    result = await bot.on_turn(make_message("olá"), failing_sender)

    assert result.committed is True
    assert result.replies == []
    assert len(result.transport_errors) == 2
    assert state_store.get(KEY, "welcome_state").payload == {"did_welcome_user": True}


@pytest.mark.asyncio
async def test_rejected_send_is_reported(bot, make_message):
    async def rejecting_sender(outbound):
        return OutboundSendResult(success=False)

    result = await bot.on_turn(make_message("olá"), rejecting_sender)
    assert result.committed is True
    assert len(result.transport_errors) == 2


class RacingStateStore(MemoryStateStore):
    """Lets another writer commit between this turn's reads and its flush."""

    def __init__(self):
        super().__init__()
        self.race = False

    def put_many(self, conversation_key, writes):
        if self.race:
            self.race = False
            version = self.get(conversation_key, "counter_state").version
            self.put(conversation_key, "counter_state", {"turn_count": 100}, version)
        return super().put_many(conversation_key, writes)


@pytest.mark.asyncio
async def test_concurrent_turn_conflict_is_reported(
    answer_store, settings, make_message, sender
):
    store = RacingStateStore()
    racing_bot = DataCollectionBot(build_services(store, answer_store, settings))
    await racing_bot.on_turn(make_message("olá"), sender)

    store.race = True
    result = await racing_bot.on_turn(make_message("tenho febre"), sender)

    assert result.committed is False
    assert result.conflict is True
    assert result.error
    assert store.get(KEY, "counter_state").payload == {"turn_count": 100}
