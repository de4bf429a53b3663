"""Waterfall dialogs: a fixed sequence of steps, each resumed with the previous step's result."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence

from datacollect.dialogs.engine import Dialog, DialogContext, DialogTurnResult

STEP_INDEX = "step_index"
OPTIONS = "options"
VALUES = "values"


@dataclass
class WaterfallStep:
    """Arguments handed to one waterfall step."""

    dc: DialogContext
    steps: Sequence["StepFn"]
    index: int
    options: Any
    values: dict[str, Any]
    result: Any = None

    async def next(self, result: Any = None) -> DialogTurnResult:
        return await _run_step(self.dc, self.steps, self.index + 1, result)

    async def prompt(self, dialog_id: str, options: Any) -> DialogTurnResult:
        return await self.dc.prompt(dialog_id, options)

    async def begin_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        return await self.dc.begin_dialog(dialog_id, options)

    async def replace_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        return await self.dc.replace_dialog(dialog_id, options)

    async def end_dialog(self, result: Any = None) -> DialogTurnResult:
        return await self.dc.end_dialog(result)


StepFn = Callable[[WaterfallStep], Awaitable[DialogTurnResult]]


async def _run_step(
    dc: DialogContext, steps: Sequence[StepFn], index: int, result: Any
) -> DialogTurnResult:
    if index >= len(steps):
        return await dc.end_dialog(result)
    frame = dc.active_dialog
    frame.state[STEP_INDEX] = index
    step = WaterfallStep(
        dc=dc,
        steps=steps,
        index=index,
        options=frame.state.get(OPTIONS),
        values=frame.state.setdefault(VALUES, {}),
        result=result,
    )
    return await steps[index](step)


def waterfall(dialog_id: str, steps: Sequence[StepFn]) -> Dialog:
    """
    Build a Dialog that runs steps in order.

    Continuation state holds the current step index, the begin options and a
    values dict shared by the steps. A step suspends by pushing a child
    (usually a prompt); the child's result is handed to the following step.
    """
    if not steps:
        raise ValueError(f"Waterfall {dialog_id} needs at least one step")
    steps = tuple(steps)

    async def begin(dc: DialogContext, options: Any) -> DialogTurnResult:
        dc.active_dialog.state[OPTIONS] = options
        return await _run_step(dc, steps, 0, None)

    async def continue_(dc: DialogContext) -> DialogTurnResult:
        # Input reaching the waterfall itself (no child on top) feeds the next step
        index = dc.active_dialog.state.get(STEP_INDEX, 0) + 1
        return await _run_step(dc, steps, index, dc.turn.activity.text)

    async def resume(dc: DialogContext, result: Any) -> DialogTurnResult:
        index = dc.active_dialog.state.get(STEP_INDEX, 0) + 1
        return await _run_step(dc, steps, index, result)

    return Dialog(id=dialog_id, begin=begin, continue_=continue_, resume=resume)
