"""
Result Accumulator - Folds orchestrator events into a Translation

accumulate_event() is a pure reducer: it never mutates the state it is
given and returns a new AccumulatorState on every call.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Hashable, Mapping, Optional

from folio.errors import PreconditionError
from folio.models.events import TranslateChunksComplete, TranslateChunksEvent, TranslatedChunkEvent
from folio.models.translation import Translation
from folio.prompts.builder import extract_title as extract_title_from_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccumulatorState:
    """Accumulated state - belongs to a single translation request"""
    complete: Optional[TranslateChunksComplete] = None
    total_quality_score: float = 0.0
    quality_score_count: int = 0
    model_win_counts: Dict[Any, int] = field(default_factory=dict)  # insertion order = first win


def create_initial_accumulator_state() -> AccumulatorState:
    """Empty state for a new translation request"""
    return AccumulatorState()


def accumulate_event(state: AccumulatorState, event: TranslateChunksEvent) -> AccumulatorState:
    """
    Fold one event into the state.

    - chunk: add quality_score (if any) to the running total, count a win
      for selected_model (if any)
    - complete: store the event
    """
    if isinstance(event, TranslatedChunkEvent):
        total = state.total_quality_score
        count = state.quality_score_count
        if event.quality_score is not None:
            total += event.quality_score
            count += 1

        win_counts = state.model_win_counts
        if event.selected_model is not None:
            win_counts = dict(win_counts)
            win_counts[event.selected_model] = win_counts.get(event.selected_model, 0) + 1

        return replace(
            state,
            total_quality_score=total,
            quality_score_count=count,
            model_win_counts=win_counts
        )

    if isinstance(event, TranslateChunksComplete):
        return replace(state, complete=event)

    return state


def max_by_value(mapping: Mapping[Hashable, int]) -> Optional[Hashable]:
    """Key with the strictly greatest value; the first key wins ties, None if empty"""
    best_key = None
    best_value = None
    for key, value in mapping.items():
        if best_value is None or value > best_value:
            best_key, best_value = key, value
    return best_key


def build_translation(
    state: AccumulatorState,
    start_time: float,
    extract_title: bool = False
) -> Translation:
    """
    Assemble the final Translation.

    Args:
        state: Final accumulator state
        start_time: time.time() at the start of the request
        extract_title: Derive the title from the translated text

    Raises:
        PreconditionError: If no complete event was accumulated
    """
    complete = state.complete
    if complete is None:
        raise PreconditionError("Translation did not complete.")

    text = "\n\n".join(complete.translations)

    quality_score = complete.quality_score
    if quality_score is None and state.quality_score_count > 0:
        quality_score = state.total_quality_score / state.quality_score_count

    title = extract_title_from_text(text) if extract_title else None
    processing_time = (time.time() - start_time) * 1000

    logger.debug(f"Built translation: {len(text)} chars, {complete.total_tokens_used} tokens")

    return Translation(
        text=text,
        title=title,
        tokens_used=complete.total_tokens_used,
        processing_time=processing_time,
        quality_score=quality_score,
        refinement_iterations=complete.refinement_iterations,
        selected_model=max_by_value(state.model_win_counts),
        accumulated_glossary=complete.accumulated_glossary or None
    )
