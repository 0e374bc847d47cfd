"""
Data models for the translation pipeline
"""

from .chunk import Chunk, ChunkType, MediaType, TranslationTone
from .glossary import (
    Glossary,
    GlossaryEntry,
    keep,
    proper_noun,
    merge_glossaries,
    parse_glossary,
    load_glossary_file,
)
from .evaluation import EvaluationResult, TranslationIssue, IssueType, IssueLocation
from .candidate import Candidate, RankedCandidate, SelectionResult
from .refinement import (
    BoundaryIssue,
    BoundaryIssueType,
    BoundaryEvaluation,
    RefineIteration,
    RefineChunksResult,
)
from .refine_state import RefineState, is_terminal_state, can_transition, VALID_TRANSITIONS
from .events import TranslatedChunkEvent, TranslateChunksComplete, TranslateChunksEvent
from .translation import Translation, TranslationProgress
from .context import ContextResult, RequiredContextSource, PassiveContextSource
from .tool_results import TextGenerationResult

__all__ = [
    # Chunk
    "Chunk",
    "ChunkType",
    "MediaType",
    "TranslationTone",

    # Glossary
    "Glossary",
    "GlossaryEntry",
    "keep",
    "proper_noun",
    "merge_glossaries",
    "parse_glossary",
    "load_glossary_file",

    # Evaluation
    "EvaluationResult",
    "TranslationIssue",
    "IssueType",
    "IssueLocation",

    # Selection
    "Candidate",
    "RankedCandidate",
    "SelectionResult",

    # Refinement
    "BoundaryIssue",
    "BoundaryIssueType",
    "BoundaryEvaluation",
    "RefineIteration",
    "RefineChunksResult",
    "RefineState",
    "is_terminal_state",
    "can_transition",
    "VALID_TRANSITIONS",

    # Events and results
    "TranslatedChunkEvent",
    "TranslateChunksComplete",
    "TranslateChunksEvent",
    "Translation",
    "TranslationProgress",

    # Context
    "ContextResult",
    "RequiredContextSource",
    "PassiveContextSource",

    # Tool results
    "TextGenerationResult",
]
