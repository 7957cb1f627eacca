"""Deterministic, event-driven conversational state tracking."""
from __future__ import annotations

import copy
from typing import Optional

from swarm.core.models import State, StateMachine


class AgentStateManager:
    """Holds an agent's state machine and the id of its current state.

    Transitions are exact event-name lookups in the current state's transition
    map. Undeclared events leave the state unchanged.
    """

    def __init__(self, state_machine: Optional[StateMachine]) -> None:
        self._machine = state_machine
        self._current: Optional[str] = state_machine.initial_state if state_machine else None

    @property
    def current_state_name(self) -> Optional[str]:
        return self._current

    def transition(self, event: str) -> Optional[State]:
        """Move along ``event`` and return the new state, or ``None`` if unchanged."""
        current = self._current_state()
        if current is None:
            return None
        target = current.transitions.get(event)
        if target is None:
            return None
        self._current = target
        return self._machine.states[target]

    def get_current_state(self) -> Optional[State]:
        """Return a copy of the current state."""
        state = self._current_state()
        return copy.deepcopy(state) if state is not None else None

    def reset(self) -> None:
        if self._machine is not None:
            self._current = self._machine.initial_state

    def _current_state(self) -> Optional[State]:
        if self._machine is None or self._current is None:
            return None
        return self._machine.states.get(self._current)
