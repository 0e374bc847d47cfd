"""
translate() - End-to-end entry point

Flow:
    gather required context → chunk → build tools → translate_chunks
        → fold events → Translation

Usage:
    from folio import translate, TranslateOptions
    from folio.utils.strands_utils import StrandsLanguageModel

    model = StrandsLanguageModel("translator")
    result = await translate(model, "ko", markdown_text, TranslateOptions(refinement=True))
    print(result.text, result.quality_score)
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Union

from folio.chunking import chunk_text
from folio.chunking.base import Chunker
from folio.chunking.tokens import TokenCounter
from folio.errors import PreconditionError
from folio.graph.accumulator import accumulate_event, build_translation, create_initial_accumulator_state
from folio.graph.builder import DynamicGlossaryConfig, TranslateChunksOptions, translate_chunks
from folio.models.chunk import MediaType, TranslationTone
from folio.models.context import PassiveContextSource, RequiredContextSource
from folio.models.glossary import GlossaryEntry
from folio.models.translation import Translation, TranslationProgress
from folio.sops.refinement import RefinementConfig
from folio.tools.context_tools import combine_context_results, create_tool_set, gather_required_context
from folio.utils.cancellation import CancellationToken
from folio.utils.config import get_pipeline_config
from folio.utils.observability import set_span_attribute, trace_workflow
from folio.utils.strands_utils import LanguageModel

logger = logging.getLogger(__name__)


@dataclass
class BestOfNConfig:
    """Best-of-N settings"""
    evaluator_model: Optional[LanguageModel] = None    # default: primary model


@dataclass
class TranslateOptions:
    """Options for translate()"""
    source_language: Optional[str] = None
    title: Optional[str] = None
    context: Optional[str] = None
    tone: Optional[Union[TranslationTone, str]] = None
    domain: Optional[str] = None
    media_type: Union[MediaType, str] = MediaType.MARKDOWN
    context_sources: List[Union[RequiredContextSource, PassiveContextSource]] = field(default_factory=list)
    glossary: Optional[List[GlossaryEntry]] = None
    max_tokens: Optional[int] = None                   # default: pipeline.yaml
    count_tokens: Optional[TokenCounter] = None
    chunker: Optional[Chunker] = None
    chunking: bool = True
    best_of_n: Union[bool, BestOfNConfig] = False
    dynamic_glossary: Union[bool, DynamicGlossaryConfig] = False
    refinement: Union[bool, RefinementConfig] = False
    on_progress: Optional[Callable[[TranslationProgress], Any]] = None
    cancellation: Optional[CancellationToken] = None


def _normalize_models(model_or_models: Union[LanguageModel, Sequence[LanguageModel]]) -> List[LanguageModel]:
    if isinstance(model_or_models, (list, tuple)):
        return list(model_or_models)
    return [model_or_models]


def _dynamic_glossary_config(value: Union[bool, DynamicGlossaryConfig]) -> Optional[DynamicGlossaryConfig]:
    if isinstance(value, DynamicGlossaryConfig):
        return value
    if value:
        return DynamicGlossaryConfig(max_terms_per_chunk=get_pipeline_config().max_terms_per_chunk)
    return None


def _refinement_config(value: Union[bool, RefinementConfig]) -> Optional[RefinementConfig]:
    if isinstance(value, RefinementConfig):
        return value
    if value:
        return RefinementConfig.from_pipeline_config()
    return None


async def translate(
    model_or_models: Union[LanguageModel, Sequence[LanguageModel]],
    target_language: str,
    text: str,
    options: Optional[TranslateOptions] = None
) -> Translation:
    """
    Translate a whole document.

    Args:
        model_or_models: One model, or several (primary first) for best-of-N
        target_language: Target language tag (e.g. "ko")
        text: Document text
        options: Translation options

    Returns:
        Translation with the assembled text, tokens used and quality data

    Raises:
        PreconditionError: If no model is given
        AbortedError: If cancelled
        UpstreamError: If a translation call fails
    """
    options = options or TranslateOptions()
    start_time = time.time()

    def report(stage: str, progress: float, **details):
        if options.on_progress is not None:
            options.on_progress(TranslationProgress(stage=stage, progress=progress, **details))

    all_models = _normalize_models(model_or_models)
    if not all_models:
        raise PreconditionError("At least one model is required")
    best_of_n = options.best_of_n
    if len(all_models) > 1 and best_of_n:
        models = all_models
        evaluator_model = best_of_n.evaluator_model if isinstance(best_of_n, BestOfNConfig) else None
    else:
        models = all_models[:1]
        evaluator_model = None

    with trace_workflow("translate", target_lang=target_language) as (span, session_id):
        set_span_attribute(span, "folio.models", len(models))

        # Step 1: required context
        report("gathering_context", 0.0)
        results = await gather_required_context(options.context_sources, options.cancellation)
        context = combine_context_results(results)
        if options.context:
            context = "\n\n".join(part for part in (options.context, context) if part)
        report("gathering_context", 1.0)

        # Step 2: chunking
        report("chunking", 0.0)
        chunks = chunk_text(
            text,
            media_type=options.media_type,
            chunker=options.chunker,
            chunking=options.chunking,
            max_tokens=options.max_tokens or get_pipeline_config().max_tokens,
            count_tokens=options.count_tokens,
            cancellation=options.cancellation
        )
        report("chunking", 1.0, total_chunks=len(chunks))
        set_span_attribute(span, "folio.chunks", len(chunks))
        logger.info(f"[{session_id}] {len(chunks)} chunk(s) → {target_language}")

        # Step 3: tools and prompts
        report("prompting", 0.0)
        tools = create_tool_set(options.context_sources, options.cancellation)
        chunk_options = TranslateChunksOptions(
            target_language=target_language,
            models=models,
            source_language=options.source_language,
            title=options.title,
            tone=options.tone,
            domain=options.domain,
            media_type=options.media_type,
            context=context or None,
            glossary=options.glossary,
            evaluator_model=evaluator_model,
            dynamic_glossary=_dynamic_glossary_config(options.dynamic_glossary),
            refinement=_refinement_config(options.refinement),
            tools=tools,
            cancellation=options.cancellation,
            on_progress=options.on_progress
        )
        report("prompting", 1.0)

        # Step 4: translate and fold
        state = create_initial_accumulator_state()
        async for event in translate_chunks(chunks, chunk_options):
            state = accumulate_event(state, event)

        translation = build_translation(state, start_time, extract_title=options.title is not None)
        set_span_attribute(span, "folio.tokens_used", translation.tokens_used)

    logger.info(
        f"[{session_id}] Translation complete: {translation.tokens_used} tokens, "
        f"{translation.processing_time:.0f}ms"
    )
    return translation
