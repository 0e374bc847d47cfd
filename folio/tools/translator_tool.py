"""
Translator tool - One model call translating one chunk

Builds the user prompt (title for the first chunk, previous-chunk context for
later ones) and returns the text plus token usage.
"""

import logging
import time
from typing import List, Optional, Sequence

from folio.models.tool_results import TextGenerationResult
from folio.prompts.builder import TranslatedChunk, build_user_prompt, build_user_prompt_with_context
from folio.utils.cancellation import CancellationToken
from folio.utils.observability import trace_agent
from folio.utils.strands_utils import LanguageModel

logger = logging.getLogger(__name__)


async def translate_chunk(
    model: LanguageModel,
    system_prompt: str,
    text: str,
    previous_chunks: Sequence[TranslatedChunk] = (),
    title: Optional[str] = None,
    tools: Optional[List] = None,
    max_steps: Optional[int] = None,
    cancellation: Optional[CancellationToken] = None
) -> TextGenerationResult:
    """
    Translate one chunk with one model.

    Args:
        model: Translating model
        system_prompt: Output of build_system_prompt()
        text: Source chunk
        previous_chunks: Already translated chunks, oldest first
        title: Document title (first chunk only)
        tools: Passive context tools (ContextTool list)
        max_steps: Tool-use step cap, applied when tools are given
        cancellation: Cancellation token

    Returns:
        TextGenerationResult with the translated text and tokens used
    """
    if previous_chunks:
        user_prompt = build_user_prompt_with_context(text, previous_chunks)
    else:
        user_prompt = build_user_prompt(text, title)

    start_time = time.time()
    with trace_agent("translator") as (span, record):
        record("input", {"chars": len(text), "previous_chunks": len(previous_chunks)})
        try:
            result = await model.generate_text(
                system_prompt,
                user_prompt,
                tools=tools or None,
                max_steps=max_steps if tools else None,
                cancellation=cancellation
            )
        except Exception as e:
            logger.error(f"Translation call failed ({model!r}): {e}")
            raise
        record("output", {"chars": len(result.text), "tokens": result.tokens_used})

    if not result.latency_ms:
        result.latency_ms = int((time.time() - start_time) * 1000)
    return result
