"""
Chunk translation pipeline - Orchestrates the per-chunk nodes

Flow per chunk (strictly sequential across chunks):
    system prompt (glossary so far) → TRANSLATE (all models) → SELECT
        → EXTRACT TERMS → emit TranslatedChunkEvent → carry context forward

After the last chunk:
    [REFINE (primary model)] → emit TranslateChunksComplete

Chunk i+1 never starts before chunk i's event is emitted: later prompts
depend on the context and glossary accumulated from earlier chunks.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, List, Optional, Sequence, Union

from folio.errors import PreconditionError
from folio.graph.nodes import chunk_state, extract_terms_node, select_node, translate_node
from folio.models.chunk import MediaType, TranslationTone
from folio.models.events import TranslateChunksComplete, TranslateChunksEvent, TranslatedChunkEvent
from folio.models.glossary import GlossaryEntry
from folio.models.translation import TranslationProgress
from folio.prompts.builder import TranslatedChunk, build_system_prompt
from folio.sops.refinement import RefinementConfig, RefinementSOP
from folio.tools.context_tools import ContextTool
from folio.utils.cancellation import CancellationToken, check_cancelled
from folio.utils.config import get_pipeline_config
from folio.utils.strands_utils import LanguageModel

logger = logging.getLogger(__name__)


@dataclass
class DynamicGlossaryConfig:
    """Dynamic glossary settings"""
    max_terms_per_chunk: int = 10                      # extractor output cap per chunk
    extractor_model: Optional[LanguageModel] = None    # default: primary model


@dataclass
class TranslateChunksOptions:
    """Options for translate_chunks()"""
    target_language: str
    models: Sequence[LanguageModel]                    # primary first
    source_language: Optional[str] = None
    title: Optional[str] = None                        # first chunk only
    tone: Optional[Union[TranslationTone, str]] = None
    domain: Optional[str] = None
    media_type: Optional[Union[MediaType, str]] = None
    context: Optional[str] = None
    glossary: Optional[List[GlossaryEntry]] = None
    evaluator_model: Optional[LanguageModel] = None    # default: first model
    dynamic_glossary: Optional[DynamicGlossaryConfig] = None
    refinement: Optional[RefinementConfig] = None
    tools: List[ContextTool] = field(default_factory=list)
    max_tool_steps: Optional[int] = None               # default: pipeline.yaml
    cancellation: Optional[CancellationToken] = None
    on_progress: Optional[Callable[[TranslationProgress], Any]] = None


def _report(options: TranslateChunksOptions, **progress):
    if options.on_progress is not None:
        options.on_progress(TranslationProgress(**progress))


async def translate_chunks(
    source_chunks: Sequence[str],
    options: TranslateChunksOptions
) -> AsyncIterator[TranslateChunksEvent]:
    """
    Translate chunks in order, yielding one event per chunk then a complete event.

    Args:
        source_chunks: Chunk contents in document order
        options: Translation options

    Yields:
        TranslatedChunkEvent per chunk, then exactly one TranslateChunksComplete

    Raises:
        PreconditionError: If options.models is empty (before any model call)
        AbortedError: If cancelled before a chunk or refinement step
    """
    models = list(options.models)
    if not models:
        raise PreconditionError("At least one model is required")

    primary = models[0]
    evaluator_model = options.evaluator_model or primary
    max_tool_steps = options.max_tool_steps or get_pipeline_config().max_tool_steps
    initial_glossary = list(options.glossary or [])
    total = len(source_chunks)

    logger.info(
        f"Translating {total} chunk(s) → {options.target_language} "
        f"with {len(models)} model(s)"
    )

    accumulated_glossary: List[GlossaryEntry] = []
    previous_chunks: List[TranslatedChunk] = []
    translations: List[str] = []
    scores: List[float] = []
    total_tokens = 0

    for index, source in enumerate(source_chunks):
        check_cancelled(options.cancellation)

        glossary = initial_glossary + accumulated_glossary
        system_prompt = build_system_prompt(
            options.target_language,
            source_language=options.source_language,
            tone=options.tone,
            domain=options.domain,
            media_type=options.media_type,
            context=options.context,
            glossary=glossary
        )

        _report(options, stage="translating", progress=index / total if total else 1.0,
                chunk_index=index, total_chunks=total, total_candidates=len(models))

        state = chunk_state(
            index,
            source,
            system_prompt,
            previous_chunks=list(previous_chunks),
            title=options.title if index == 0 else None,
            models=models,
            evaluator_model=evaluator_model,
            target_language=options.target_language,
            source_language=options.source_language,
            glossary=glossary,
            tools=options.tools or None,
            max_tool_steps=max_tool_steps,
            dynamic_glossary=options.dynamic_glossary,
            cancellation=options.cancellation
        )

        state = await translate_node(state)
        if len(models) > 1:
            _report(options, stage="selecting", progress=index / total,
                    chunk_index=index, total_chunks=total, total_candidates=len(models))
        state = await select_node(state)
        state = await extract_terms_node(state)

        translation: str = state["translation"]
        new_terms: Optional[List[GlossaryEntry]] = state["new_terms"]
        if new_terms:
            accumulated_glossary.extend(new_terms)
        if state["quality_score"] is not None:
            scores.append(state["quality_score"])

        total_tokens += state["tokens_used"]
        translations.append(translation)
        previous_chunks.append(TranslatedChunk(source=source, translation=translation))

        yield TranslatedChunkEvent(
            index=index,
            translation=translation,
            tokens_used=state["tokens_used"],
            quality_score=state["quality_score"],
            selected_model=state["selected_model"],
            extracted_terms=new_terms
        )

    quality_score: Optional[float] = sum(scores) / len(scores) if scores else None
    refinement_iterations: Optional[int] = None

    if options.refinement is not None and translations:
        check_cancelled(options.cancellation)
        _report(options, stage="refining", progress=0.0,
                total_chunks=total, max_iterations=options.refinement.max_iterations)

        refined = await RefinementSOP(primary, options.refinement).refine_chunks(
            list(source_chunks),
            translations,
            target_language=options.target_language,
            source_language=options.source_language,
            glossary=(initial_glossary + accumulated_glossary) or None,
            cancellation=options.cancellation
        )
        translations = refined.chunks
        total_tokens += refined.tokens_used
        refinement_iterations = refined.total_iterations
        quality_score = refined.average_score

        _report(options, stage="refining", progress=1.0, total_chunks=total,
                iteration=refined.total_iterations,
                max_iterations=options.refinement.max_iterations)

    logger.info(f"All {total} chunk(s) translated, {total_tokens} tokens")

    yield TranslateChunksComplete(
        translations=translations,
        total_tokens_used=total_tokens,
        accumulated_glossary=accumulated_glossary,
        quality_score=quality_score,
        refinement_iterations=refinement_iterations
    )
