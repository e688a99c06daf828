"""
State Transitions
==================

Defines the reassembly driver states, the valid transitions between them,
and provides validation.
"""

from enum import Enum
from typing import List, Tuple, Set
import logging

logger = logging.getLogger(__name__)


class DriverState(str, Enum):
    """States of one reassembly operation."""
    START = "start"
    AWAITING_RESULT = "awaiting_result"
    CONTINUING = "continuing"
    COMPLETE = "complete"
    ABORTED = "aborted"


class StateTransition(Enum):
    """
    Valid state transitions in the completion driver.

    Each transition is a tuple of (from_state, to_state).
    """
    # Initial request sent
    START_TO_AWAITING = (DriverState.START, DriverState.AWAITING_RESULT)

    # Result outcomes
    AWAITING_TO_COMPLETE = (DriverState.AWAITING_RESULT, DriverState.COMPLETE)
    AWAITING_TO_CONTINUING = (DriverState.AWAITING_RESULT, DriverState.CONTINUING)
    AWAITING_TO_ABORTED = (DriverState.AWAITING_RESULT, DriverState.ABORTED)

    # Continuation request sent
    CONTINUING_TO_AWAITING = (DriverState.CONTINUING, DriverState.AWAITING_RESULT)
    CONTINUING_TO_ABORTED = (DriverState.CONTINUING, DriverState.ABORTED)

    # COMPLETE and ABORTED are terminal

    @property
    def from_state(self) -> DriverState:
        """Get source state."""
        return self.value[0]

    @property
    def to_state(self) -> DriverState:
        """Get destination state."""
        return self.value[1]


class TransitionValidator:
    """
    Validates state transitions against allowed transitions.

    Example:
        >>> TransitionValidator.validate(DriverState.START, DriverState.AWAITING_RESULT)  # True
        >>> TransitionValidator.validate(DriverState.COMPLETE, DriverState.CONTINUING)  # False
    """

    VALID_TRANSITIONS: Set[Tuple[DriverState, DriverState]] = {t.value for t in StateTransition}

    @classmethod
    def validate(cls, from_state: DriverState, to_state: DriverState) -> bool:
        """
        Check if transition is valid.

        Args:
            from_state: Source state
            to_state: Destination state

        Returns:
            True if transition is allowed, False otherwise
        """
        is_valid = (from_state, to_state) in cls.VALID_TRANSITIONS

        if not is_valid:
            logger.warning(
                f"Invalid transition attempted: {from_state.value} -> {to_state.value}"
            )

        return is_valid

    @classmethod
    def get_allowed_transitions(cls, from_state: DriverState) -> List[DriverState]:
        """Get list of allowed destination states from given state."""
        return [
            to_state
            for (frm, to_state) in cls.VALID_TRANSITIONS
            if frm == from_state
        ]

    @classmethod
    def is_terminal_state(cls, state: DriverState) -> bool:
        """Check if state is terminal (no outgoing transitions)."""
        return len(cls.get_allowed_transitions(state)) == 0

    @classmethod
    def validate_or_raise(cls, from_state: DriverState, to_state: DriverState):
        """
        Validate transition and raise exception if invalid.

        Raises:
            ValueError: If transition is not allowed
        """
        if not cls.validate(from_state, to_state):
            allowed = sorted(s.value for s in cls.get_allowed_transitions(from_state))
            raise ValueError(
                f"Invalid transition: {from_state.value} -> {to_state.value}. "
                f"Allowed transitions from {from_state.value}: {allowed}"
            )
