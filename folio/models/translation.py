"""
Translation - Final artifact returned by translate()
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from folio.models.glossary import GlossaryEntry


@dataclass
class Translation:
    """Final translation result"""
    text: str
    tokens_used: int
    processing_time: float                             # milliseconds
    title: Optional[str] = None
    quality_score: Optional[float] = None
    refinement_iterations: Optional[int] = None
    selected_model: Optional[Any] = None               # model that won most chunks
    accumulated_glossary: Optional[List[GlossaryEntry]] = None


@dataclass(frozen=True)
class TranslationProgress:
    """
    Progress report passed to TranslateOptions.on_progress.

    stage is one of: gathering_context, chunking, prompting, translating,
    selecting, refining. progress runs from 0 to 1 within a stage.
    """
    stage: str
    progress: float
    chunk_index: Optional[int] = None
    total_chunks: Optional[int] = None
    total_candidates: Optional[int] = None
    iteration: Optional[int] = None
    max_iterations: Optional[int] = None
