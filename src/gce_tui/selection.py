from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from .models import (
    Event,
    FetchFailed,
    FetchSucceeded,
    Key,
    KeyPressed,
    LaunchSession,
    Phase,
    SelectionState,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Transition:
    state: SelectionState
    effect: LaunchSession | None = None
    terminate: bool = False


def transition(state: SelectionState, event: Event) -> Transition:
    """Compute the next state for ``event``.

    Fetch results only apply while loading. Navigation and confirmation only
    apply once the inventory is ready. Quit applies in every phase.
    """
    match event:
        case FetchSucceeded(inventory=inventory):
            if state.phase is not Phase.LOADING:
                return Transition(state)
            return Transition(SelectionState(phase=Phase.READY, inventory=tuple(inventory), cursor=0))
        case FetchFailed(cause=cause):
            if state.phase is not Phase.LOADING:
                return Transition(state)
            return Transition(SelectionState(phase=Phase.FAILED, last_error=cause))
        case KeyPressed(key=key):
            return _on_key(state, key)
    return Transition(state)


def _on_key(state: SelectionState, key: Key) -> Transition:
    if key is Key.QUIT:
        return Transition(state, terminate=True)
    if state.phase is not Phase.READY or not state.inventory:
        return Transition(state)

    last = len(state.inventory) - 1
    match key:
        case Key.UP:
            return Transition(replace(state, cursor=max(state.cursor - 1, 0)))
        case Key.DOWN:
            return Transition(replace(state, cursor=min(state.cursor + 1, last)))
        case Key.CONFIRM:
            return Transition(state, effect=LaunchSession(state.inventory[state.cursor]))
    return Transition(state)


class SelectionMachine:
    def __init__(self, state: SelectionState | None = None) -> None:
        self._state = state or SelectionState.initial()
        self.terminated = False

    @property
    def state(self) -> SelectionState:
        return self._state

    def dispatch(self, event: Event) -> LaunchSession | None:
        if self.terminated:
            logger.debug("Ignoring %r after termination.", event)
            return None

        result = transition(self._state, event)
        if result.state.phase is not self._state.phase:
            logger.debug("Phase %s -> %s.", self._state.phase.value, result.state.phase.value)
        self._state = result.state
        self.terminated = result.terminate
        return result.effect
