"""
DataCollectionBot: the turn processor.

Loads per-conversation state, routes the activity by kind, drives the dialog
stack and commits all staged state once at the end of the turn.
"""

from __future__ import annotations

from typing import Optional

from datacollect.constants.scenarios import ANONYMOUS_USER_NAME, WELCOME_MESSAGE
from datacollect.core.app_state import BotServices
from datacollect.core.conversation_key import build_conversation_key
from datacollect.core.runtime import OutboundSender
from datacollect.core.turn_context import TurnContext
from datacollect.dialogs.engine import DialogTurnStatus
from datacollect.dialogs.question_flow import QUESTION_FLOW_DIALOG
from datacollect.exceptions import ConcurrencyConflict, ConfigurationError, PersistenceError
from datacollect.infra.logging_config import get_logger
from datacollect.schemas.activity import Activity, ActivityType, TurnResult
from datacollect.state.models import CounterState, WelcomeUserState

logger = get_logger("bot")


class DataCollectionBot:
    """One instance per process; every turn gets its own TurnContext."""

    def __init__(self, services: BotServices) -> None:
        if services is None:
            raise ConfigurationError("DataCollectionBot requires BotServices")
        self._services = services
        self._accessors = services.accessors

    @property
    def services(self) -> BotServices:
        return self._services

    async def on_turn(self, activity: Activity, sender: OutboundSender) -> TurnResult:
        """
        Process one inbound activity.

        Persistence failures abort the turn before the state flush; replies
        already sent stay sent. The next turn starts from the last committed
        state.
        """
        conversation_key = build_conversation_key(activity)
        conversation_state = self._accessors.conversation_state
        turn = TurnContext(
            activity=activity,
            conversation_key=conversation_key,
            state=conversation_state.begin_turn(conversation_key),
            sender=sender,
        )
        try:
            if activity.type == ActivityType.MESSAGE:
                await self._on_message(turn)
            elif activity.type == ActivityType.CONVERSATION_UPDATE:
                await self._on_conversation_update(turn)
            else:
                self._accessors.welcome_state.get(turn.state, WelcomeUserState)
                logger.debug("Ignoring %s activity for %s", activity.type.value, conversation_key)
            conversation_state.save_changes(turn.state)
        except PersistenceError as e:
            logger.exception("Turn failed for %s: %s", conversation_key, e)
            return self._result(turn, committed=False, error=e)

        return self._result(turn, committed=True)

    async def _on_message(self, turn: TurnContext) -> None:
        welcome = self._accessors.welcome_state.get(turn.state, WelcomeUserState)
        counter = self._accessors.counter_state.get(turn.state, CounterState)
        counter.turn_count += 1

        if not welcome.did_welcome_user:
            welcome.did_welcome_user = True
            await self._send_welcome(turn, turn.activity.from_.name)

        await self._run_dialogs(turn)

    async def _on_conversation_update(self, turn: TurnContext) -> None:
        welcome = self._accessors.welcome_state.get(turn.state, WelcomeUserState)
        activity = turn.activity
        for member in activity.members_added:
            if member.id == activity.recipient.id:
                continue
            if welcome.did_welcome_user:
                continue
            welcome.did_welcome_user = True
            await self._send_welcome(turn, member.name)
            await self._run_dialogs(turn)

    async def _send_welcome(self, turn: TurnContext, name: Optional[str]) -> None:
        if not name or name == ANONYMOUS_USER_NAME:
            greeting = "Olá!"
        else:
            greeting = f"Olá {name}!"
        await turn.send_text(WELCOME_MESSAGE.format(greeting=greeting))

    async def _run_dialogs(self, turn: TurnContext) -> None:
        dialogs = self._services.dialogs
        dc = dialogs.create_context(turn)
        unknown = [f.id for f in dc.stack if dialogs.find(f.id) is None]
        if unknown:
            logger.warning(
                "Discarding dialog stack for %s with unregistered dialogs %s",
                turn.conversation_key,
                unknown,
            )
            await dc.cancel_all_dialogs()
        if dc.active_dialog is None:
            result = await dc.begin_dialog(QUESTION_FLOW_DIALOG)
        else:
            result = await dc.continue_dialog()
        if result.status == DialogTurnStatus.COMPLETE:
            logger.info("Question flow completed for %s", turn.conversation_key)

    @staticmethod
    def _result(
        turn: TurnContext, committed: bool, error: Optional[Exception] = None
    ) -> TurnResult:
        return TurnResult(
            conversation_key=turn.conversation_key,
            committed=committed,
            replies=list(turn.replies),
            transport_errors=list(turn.transport_errors),
            error=str(error) if error else None,
            conflict=isinstance(error, ConcurrencyConflict),
        )
