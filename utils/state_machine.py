"""
State Machine

Enum-based state tracker with transition history. The session uses it to
record its derived phase (idle, loading, exporting, ...) so logs and callers
see one named state per transition.

Usage:
    from enum import Enum, auto

    class Phase(Enum):
        IDLE = auto()
        LOADING = auto()

    sm = StateMachine(initial_state=Phase.IDLE)
    sm.transition_to(Phase.LOADING, reason="load requested")
    print(sm.state)    # Phase.LOADING
    print(sm.history)  # list of StateTransition records
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, List, TypeVar

from utils.logging_config import get_logger

logger = get_logger("state_machine")

S = TypeVar("S", bound=Enum)


@dataclass(frozen=True)
class StateTransition(Generic[S]):
    """Records a single state transition."""

    from_state: S
    to_state: S
    timestamp: datetime
    reason: str


class StateMachine(Generic[S]):
    """
    Enum state tracker with a rolling transition history.

    - Transitions to the current state are no-ops
    - History keeps the last max_history transitions
    """

    def __init__(self, initial_state: S, max_history: int = 50):
        self._state: S = initial_state
        self._max_history = max_history
        self._history: List[StateTransition[S]] = []

    @property
    def state(self) -> S:
        return self._state

    @property
    def history(self) -> List[StateTransition[S]]:
        """Transition history (copy)."""
        return list(self._history)

    def transition_to(self, new_state: S, reason: str = "") -> bool:
        """
        Move to new_state.

        Returns:
            True if the transition occurred, False if already in new_state.
        """
        if new_state == self._state:
            return False

        old_state = self._state
        self._state = new_state

        self._history.append(
            StateTransition(
                from_state=old_state,
                to_state=new_state,
                timestamp=datetime.now(),
                reason=reason,
            )
        )
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

        logger.debug(f"State: {old_state.name} -> {new_state.name} ({reason})")
        return True
