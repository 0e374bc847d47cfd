"""
Orchestrator events - What translate_chunks() yields

One TranslatedChunkEvent per source chunk, in order, then exactly one
TranslateChunksComplete.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from folio.models.glossary import GlossaryEntry


@dataclass(frozen=True)
class TranslatedChunkEvent:
    """A chunk finished translating"""
    index: int
    translation: str
    tokens_used: int                                   # summed across all models
    quality_score: Optional[float] = None              # set only by best-of-N
    selected_model: Optional[Any] = None               # set only by best-of-N
    extracted_terms: Optional[List[GlossaryEntry]] = None  # new terms only
    type: str = field(default="chunk", init=False)


@dataclass(frozen=True)
class TranslateChunksComplete:
    """All chunks finished (and refined, if enabled)"""
    translations: List[str]
    total_tokens_used: int
    accumulated_glossary: List[GlossaryEntry] = field(default_factory=list)
    quality_score: Optional[float] = None
    refinement_iterations: Optional[int] = None
    type: str = field(default="complete", init=False)


TranslateChunksEvent = Union[TranslatedChunkEvent, TranslateChunksComplete]
