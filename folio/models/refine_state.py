"""
Refine State - Per-chunk state machine for the refinement loop

    EVALUATING ──(score >= target)──────────→ CONVERGED
        │       ──(iterations exhausted)────→ EXHAUSTED
        ↓
      FIXING → RE_EVALUATING → EVALUATING
"""

from enum import Enum


class RefineState(str, Enum):
    """Refinement states for a single chunk"""

    EVALUATING = "evaluating"          # score the current text, decide
    FIXING = "fixing"                  # ask the model for a corrected translation
    RE_EVALUATING = "re_evaluating"    # score the corrected text, record the iteration

    # Terminal states
    CONVERGED = "converged"            # score reached the target
    EXHAUSTED = "exhausted"            # iteration budget spent


VALID_TRANSITIONS = {
    RefineState.EVALUATING: [
        RefineState.FIXING,
        RefineState.CONVERGED,
        RefineState.EXHAUSTED,
    ],
    RefineState.FIXING: [RefineState.RE_EVALUATING],
    RefineState.RE_EVALUATING: [RefineState.EVALUATING],
    RefineState.CONVERGED: [],
    RefineState.EXHAUSTED: [],
}


def is_terminal_state(state: RefineState) -> bool:
    """Check if a state is terminal (no further transitions)"""
    return state in [RefineState.CONVERGED, RefineState.EXHAUSTED]


def can_transition(from_state: RefineState, to_state: RefineState) -> bool:
    """Check if a state transition is valid"""
    return to_state in VALID_TRANSITIONS.get(from_state, [])
