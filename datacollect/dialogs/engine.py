"""
Dialog stack engine.

A Dialog is a tagged set of async functions (begin / continue / resume) that
operate on the continuation state of its own stack frame. The DialogSet maps
ids to dialogs; the DialogContext does the push/pop bookkeeping for one turn
and holds no dialog-specific logic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional

from datacollect.state.accessors import StatePropertyAccessor
from datacollect.state.models import DialogInstance, DialogState

if TYPE_CHECKING:
    from datacollect.core.turn_context import TurnContext

logger = logging.getLogger(__name__)


class DialogTurnStatus(str, Enum):
    EMPTY = "empty"
    WAITING = "waiting"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


@dataclass
class DialogTurnResult:
    status: DialogTurnStatus
    result: Any = None


BeginFn = Callable[["DialogContext", Any], Awaitable[DialogTurnResult]]
ContinueFn = Callable[["DialogContext"], Awaitable[DialogTurnResult]]
ResumeFn = Callable[["DialogContext", Any], Awaitable[DialogTurnResult]]

END_OF_TURN = DialogTurnResult(DialogTurnStatus.WAITING)


async def _wait_for_input(dc: "DialogContext") -> DialogTurnResult:
    return END_OF_TURN


async def _end_with_result(dc: "DialogContext", result: Any) -> DialogTurnResult:
    return await dc.end_dialog(result)


@dataclass(frozen=True)
class Dialog:
    """
    A named, resumable unit of conversational logic.

    begin(dc, options) runs when the frame is pushed. continue_(dc) receives
    the next user turn while the frame is on top. resume(dc, result) runs when
    a child frame pushed by this dialog completes. Defaults: wait for input on
    continue, end with the child's result on resume.
    """

    id: str
    begin: BeginFn
    continue_: ContinueFn = _wait_for_input
    resume: ResumeFn = _end_with_result


class DialogSet:
    """Registry of dialogs available to a conversation."""

    def __init__(self, dialog_state: StatePropertyAccessor[DialogState]) -> None:
        self._dialog_state = dialog_state
        self._dialogs: Dict[str, Dialog] = {}

    def add(self, dialog: Dialog) -> "DialogSet":
        if dialog.id in self._dialogs:
            raise ValueError(f"Dialog already registered: {dialog.id}")
        self._dialogs[dialog.id] = dialog
        return self

    def find(self, dialog_id: str) -> Optional[Dialog]:
        return self._dialogs.get(dialog_id)

    def create_context(self, turn: "TurnContext") -> "DialogContext":
        state = self._dialog_state.get(turn.state, DialogState)
        return DialogContext(self, turn, state)


class DialogContext:
    """Stack operations for one conversation during one turn."""

    def __init__(self, dialogs: DialogSet, turn: "TurnContext", state: DialogState) -> None:
        self.dialogs = dialogs
        self.turn = turn
        self._state = state

    @property
    def stack(self) -> list[DialogInstance]:
        return self._state.dialog_stack

    @property
    def active_dialog(self) -> Optional[DialogInstance]:
        return self.stack[-1] if self.stack else None

    def _lookup(self, dialog_id: str) -> Dialog:
        dialog = self.dialogs.find(dialog_id)
        if dialog is None:
            raise ValueError(f"Dialog not found: {dialog_id}")
        return dialog

    async def begin_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        dialog = self._lookup(dialog_id)
        self.stack.append(DialogInstance(id=dialog_id))
        logger.debug(
            "Begin dialog %s (depth %d) for %s",
            dialog_id,
            len(self.stack),
            self.turn.conversation_key,
        )
        return await dialog.begin(self, options)

    async def prompt(self, dialog_id: str, options: Any) -> DialogTurnResult:
        return await self.begin_dialog(dialog_id, options)

    async def continue_dialog(self) -> DialogTurnResult:
        instance = self.active_dialog
        if instance is None:
            return DialogTurnResult(DialogTurnStatus.EMPTY)
        dialog = self._lookup(instance.id)
        return await dialog.continue_(self)

    async def end_dialog(self, result: Any = None) -> DialogTurnResult:
        if self.stack:
            ended = self.stack.pop()
            logger.debug("End dialog %s for %s", ended.id, self.turn.conversation_key)
        parent = self.active_dialog
        if parent is None:
            return DialogTurnResult(DialogTurnStatus.COMPLETE, result)
        dialog = self._lookup(parent.id)
        return await dialog.resume(self, result)

    async def replace_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        """Pop the active frame without resuming its parent, then begin dialog_id."""
        if self.stack:
            self.stack.pop()
        return await self.begin_dialog(dialog_id, options)

    async def cancel_all_dialogs(self) -> DialogTurnResult:
        if not self.stack:
            return DialogTurnResult(DialogTurnStatus.EMPTY)
        self.stack.clear()
        return DialogTurnResult(DialogTurnStatus.CANCELLED)
