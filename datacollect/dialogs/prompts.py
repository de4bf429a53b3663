"""
Prompt dialogs: ask the user for a value and wait until a valid one arrives.

A prompt frame keeps its options in its continuation state, so a re-prompt
after a process restart uses the same wording.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel

from datacollect.dialogs.engine import END_OF_TURN, Dialog, DialogContext, DialogTurnResult
from datacollect.exceptions import InvalidInput
from datacollect.schemas.activity import Activity, ActivityType

logger = logging.getLogger(__name__)

PROMPT_OPTIONS = "options"

TextValidator = Callable[[str], str]


class PromptOptions(BaseModel):
    prompt: str
    retry_prompt: Optional[str] = None


def recognize_text(activity: Activity) -> str:
    """Return the stripped text of a message, or raise InvalidInput."""
    if activity.text is None:
        raise InvalidInput("Message carries no text")
    text = activity.text.strip()
    if not text:
        raise InvalidInput("Message text is empty")
    return text


def text_prompt(dialog_id: str, validator: Optional[TextValidator] = None) -> Dialog:
    """
    Build a dialog that captures one non-empty free-text reply.

    Non-message activities are ignored. Messages without usable text, or text
    rejected by validator (which raises InvalidInput), trigger the retry
    prompt and keep the frame waiting. A valid reply ends the frame with the
    recognized text as its result.
    """

    async def begin(dc: DialogContext, options: Any) -> DialogTurnResult:
        opts = PromptOptions.model_validate(options)
        frame = dc.active_dialog
        frame.state[PROMPT_OPTIONS] = opts.model_dump()
        await dc.turn.send_text(opts.prompt)
        return END_OF_TURN

    async def continue_(dc: DialogContext) -> DialogTurnResult:
        activity = dc.turn.activity
        if activity.type != ActivityType.MESSAGE:
            return END_OF_TURN

        frame = dc.active_dialog
        opts = PromptOptions.model_validate(frame.state[PROMPT_OPTIONS])
        try:
            value = recognize_text(activity)
            if validator is not None:
                value = validator(value)
        except InvalidInput as e:
            # Frame state is left unchanged
            logger.info("Re-prompting %s: %s", dc.turn.conversation_key, e)
            await dc.turn.send_text(opts.retry_prompt or opts.prompt)
            return END_OF_TURN
        return await dc.end_dialog(value)

    async def resume(dc: DialogContext, result: Any) -> DialogTurnResult:
        opts = PromptOptions.model_validate(dc.active_dialog.state[PROMPT_OPTIONS])
        await dc.turn.send_text(opts.prompt)
        return END_OF_TURN

    return Dialog(id=dialog_id, begin=begin, continue_=continue_, resume=resume)
