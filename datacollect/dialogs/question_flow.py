"""
Question flow: interview the user through one role-play scenario.

Start -> AwaitingFreeTextAnswer (text prompt child) -> PersistAnswer ->
NextQuestion (loop via replace_dialog) | Complete (pop, clear scenario).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from datacollect.constants.scenarios import RETRY_PROMPT, SCENARIO_COMPLETE_MESSAGE
from datacollect.dialogs.engine import Dialog, DialogTurnResult
from datacollect.dialogs.prompts import PromptOptions, text_prompt
from datacollect.dialogs.waterfall import WaterfallStep, waterfall
from datacollect.services.answer_record_service import AnswerRecordService
from datacollect.services.scenario_service import ScenarioService

if TYPE_CHECKING:
    from datacollect.core.app_state import BotAccessors

logger = logging.getLogger(__name__)

QUESTION_FLOW_DIALOG = "questionFlow"
TEXT_PROMPT = "textPrompt"


def build_question_flow(
    accessors: "BotAccessors",
    scenarios: ScenarioService,
    answers: AnswerRecordService,
) -> list[Dialog]:
    """Return the question flow waterfall and the prompt it depends on."""

    async def ask_question(step: WaterfallStep) -> DialogTurnResult:
        turn = step.dc.turn
        current = accessors.current_question.get(turn.state)
        if current is None:
            current = scenarios.new_scenario()
            accessors.current_question.set(turn.state, current)
            logger.info(
                "New scenario %s for %s", current.scenario_id, turn.conversation_key
            )
        else:
            logger.debug("Resuming scenario %s for %s", current.scenario_id, turn.conversation_key)
        return await step.prompt(
            TEXT_PROMPT,
            PromptOptions(prompt=current.question, retry_prompt=RETRY_PROMPT).model_dump(),
        )

    async def persist_answer(step: WaterfallStep) -> DialogTurnResult:
        turn = step.dc.turn
        current = accessors.current_question.get(turn.state)
        if current is None:
            # Scenario was cleared under us; start over with a fresh one
            logger.warning("No current question for %s; restarting flow", turn.conversation_key)
            return await step.replace_dialog(QUESTION_FLOW_DIALOG)

        record = AnswerRecordService.build_record(turn.conversation_key, current, step.result)
        record_id = answers.record_answer(record)

        following = scenarios.next_question(current)
        if following is not None:
            accessors.current_question.set(turn.state, following)
            return await step.replace_dialog(QUESTION_FLOW_DIALOG)

        accessors.current_question.delete(turn.state)
        await turn.send_text(SCENARIO_COMPLETE_MESSAGE)
        return await step.end_dialog(str(record_id))

    return [
        waterfall(QUESTION_FLOW_DIALOG, [ask_question, persist_answer]),
        text_prompt(TEXT_PROMPT),
    ]
