"""Typed payloads for each conversation state slot."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class SlotName(str, Enum):
    """Fixed registry of per-conversation state slots."""

    WELCOME_STATE = "welcome_state"
    COUNTER_STATE = "counter_state"
    DIALOG_STATE = "dialog_state"
    CURRENT_QUESTION = "current_question"


class WelcomeUserState(BaseModel):
    did_welcome_user: bool = False


class CounterState(BaseModel):
    turn_count: int = 0


class CurrentQuestionState(BaseModel):
    """The scenario currently being interviewed."""

    question: str
    destiny: Optional[str] = None
    relation: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    symptoms: list[str] = Field(default_factory=list)
    scenario_id: Optional[str] = None


class DialogInstance(BaseModel):
    """One frame of the dialog stack."""

    id: str
    state: dict[str, Any] = Field(default_factory=dict)


class DialogState(BaseModel):
    """Dialog stack for a conversation; the last element is the active frame."""

    dialog_stack: list[DialogInstance] = Field(default_factory=list)
