"""
folio - Long-form document translation with LLMs

Pipeline:
- Structure-aware chunking (Markdown, HTML, plain text) under a token budget
- Per-chunk translation with carried context, optionally best-of-N over models
- LLM-judged evaluation (0-1 score with typed issues)
- Bounded evaluate → fix → re-evaluate refinement with boundary checks
"""

__version__ = "0.1.0"

# Re-export key components for convenience
from .errors import (
    FolioError,
    InvalidArgumentError,
    ChunkCountMismatchError,
    AbortedError,
    UpstreamError,
    StructuredOutputError,
    PreconditionError,
)
from .models import (
    Chunk,
    ChunkType,
    MediaType,
    TranslationTone,
    GlossaryEntry,
    keep,
    proper_noun,
    merge_glossaries,
    load_glossary_file,
    EvaluationResult,
    Translation,
    TranslationProgress,
    ContextResult,
    RequiredContextSource,
    PassiveContextSource,
)
from .chunking import chunk_text, count_tokens
from .graph import DynamicGlossaryConfig, TranslateChunksOptions, translate_chunks
from .sops import RefinementConfig, refine_chunks, select_best
from .tools import evaluate, extract_terms
from .translate import BestOfNConfig, TranslateOptions, translate
from .utils import CancellationToken, LanguageModel, StrandsLanguageModel

__all__ = [
    # Version
    "__version__",
    # Errors
    "FolioError",
    "InvalidArgumentError",
    "ChunkCountMismatchError",
    "AbortedError",
    "UpstreamError",
    "StructuredOutputError",
    "PreconditionError",
    # Models
    "Chunk",
    "ChunkType",
    "MediaType",
    "TranslationTone",
    "GlossaryEntry",
    "keep",
    "proper_noun",
    "merge_glossaries",
    "load_glossary_file",
    "EvaluationResult",
    "Translation",
    "TranslationProgress",
    "ContextResult",
    "RequiredContextSource",
    "PassiveContextSource",
    # Pipeline
    "chunk_text",
    "count_tokens",
    "DynamicGlossaryConfig",
    "TranslateChunksOptions",
    "translate_chunks",
    "RefinementConfig",
    "refine_chunks",
    "select_best",
    "evaluate",
    "extract_terms",
    # Facade
    "BestOfNConfig",
    "TranslateOptions",
    "translate",
    # Utils
    "CancellationToken",
    "LanguageModel",
    "StrandsLanguageModel",
]
