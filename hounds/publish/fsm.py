from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

from hounds.core.result import Err, Ok, Result

S = TypeVar("S")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class StepAdvance(Generic[S]):
    state: S


@dataclass(frozen=True, slots=True)
class StepFinish:
    pass


StepOutcome = StepAdvance[S] | StepFinish
StepHandler = Callable[[S], Result[StepOutcome[S], E]]
SaveState = Callable[[S], Result[S, E]]
GetStep = Callable[[S], str]


FINISH = StepFinish()


def advance(state: S) -> StepAdvance[S]:
    return StepAdvance(state=state)


def run_state_machine(
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[str, StepHandler[S, E]],
    save_state: SaveState[S, E],
) -> Result[S, E]:
    """Drive ``initial_state`` through ``handlers`` until one finishes.

    Every advanced state is passed to ``save_state`` before the next step
    runs. Returns the last saved state, or the first error.
    """
    current = initial_state

    while True:
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            raise LookupError(f"no handler for step: {step}")

        outcome = handler(current)
        if isinstance(outcome, Err):
            return outcome

        if isinstance(outcome.value, StepFinish):
            return Ok(current)

        current = outcome.value.state
        saved = save_state(current)
        if isinstance(saved, Err):
            return saved
        current = saved.value
