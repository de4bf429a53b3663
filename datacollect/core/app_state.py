"""
Process-wide wiring: stores, state accessors, services and the dialog set.

Built once at startup and handed to the bot by reference; nothing in here is
mutated per turn.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from datacollect.config import Settings, get_settings
from datacollect.db import db_manager
from datacollect.dialogs.engine import DialogSet
from datacollect.dialogs.question_flow import build_question_flow
from datacollect.exceptions import ConfigurationError
from datacollect.services.answer_record_service import AnswerRecordService
from datacollect.services.scenario_service import ScenarioService, load_scenarios
from datacollect.state.accessors import ConversationState, StatePropertyAccessor
from datacollect.state.models import (
    CounterState,
    CurrentQuestionState,
    DialogState,
    SlotName,
    WelcomeUserState,
)
from datacollect.storage.answer_store import (
    AnswerRecordStore,
    MemoryAnswerStore,
    SqlAnswerStore,
)
from datacollect.storage.state_store import MemoryStateStore, SqlStateStore, StateStore


@dataclass(frozen=True)
class BotAccessors:
    conversation_state: ConversationState
    welcome_state: StatePropertyAccessor[WelcomeUserState]
    counter_state: StatePropertyAccessor[CounterState]
    dialog_state: StatePropertyAccessor[DialogState]
    current_question: StatePropertyAccessor[CurrentQuestionState]

    @classmethod
    def create(cls, conversation_state: ConversationState) -> "BotAccessors":
        if conversation_state is None:
            raise ConfigurationError("BotAccessors requires a ConversationState")
        return cls(
            conversation_state=conversation_state,
            welcome_state=conversation_state.create_property(
                SlotName.WELCOME_STATE, WelcomeUserState
            ),
            counter_state=conversation_state.create_property(
                SlotName.COUNTER_STATE, CounterState
            ),
            dialog_state=conversation_state.create_property(
                SlotName.DIALOG_STATE, DialogState
            ),
            current_question=conversation_state.create_property(
                SlotName.CURRENT_QUESTION, CurrentQuestionState
            ),
        )


@dataclass(frozen=True)
class BotServices:
    accessors: BotAccessors
    answers: AnswerRecordService
    scenarios: ScenarioService
    dialogs: DialogSet


def build_services(
    state_store: StateStore,
    answer_store: AnswerRecordStore,
    settings: Optional[Settings] = None,
    rng: Optional[random.Random] = None,
) -> BotServices:
    """Wire the bot around the given stores."""
    if state_store is None or answer_store is None:
        raise ConfigurationError("Both a state store and an answer store are required")
    settings = settings or get_settings()

    accessors = BotAccessors.create(ConversationState(state_store))
    answers = AnswerRecordService(
        answer_store, max_attempts=settings.answer_write_max_attempts
    )
    scenarios = ScenarioService(
        load_scenarios(settings.scenarios_path),
        questions_per_scenario=settings.questions_per_scenario,
        rng=rng,
    )
    dialogs = DialogSet(accessors.dialog_state)
    for dialog in build_question_flow(accessors, scenarios, answers):
        dialogs.add(dialog)
    return BotServices(
        accessors=accessors, answers=answers, scenarios=scenarios, dialogs=dialogs
    )


def build_services_from_settings(settings: Optional[Settings] = None) -> BotServices:
    """Pick store implementations from STORAGE_BACKEND."""
    settings = settings or get_settings()
    backend = (settings.storage_backend or "database").lower()
    if backend == "memory":
        return build_services(MemoryStateStore(), MemoryAnswerStore(), settings)
    if backend == "database":
        session_factory = db_manager.session_local
        return build_services(
            SqlStateStore(session_factory), SqlAnswerStore(session_factory), settings
        )
    raise ConfigurationError(f"Unknown storage backend: {settings.storage_backend}")
