"""
Pipeline tools - Async model-calling functions

All tools are coroutines; per-chunk fan-out runs them with asyncio.gather().

- translate_chunk: one model translating one chunk
- evaluate: LLM-judged 0-1 score with typed issues
- extract_terms: glossary candidates for the dynamic glossary
- gather_required_context / combine_context_results / create_tool_set:
  context sources

Usage:
    result = await translate_chunk(model, system_prompt, chunk)
    judgment = await evaluate(judge, chunk, result.text, "ko")
"""

from folio.tools.translator_tool import translate_chunk
from folio.tools.evaluator_tool import evaluate
from folio.tools.term_extractor_tool import ExtractedTerms, extract_terms
from folio.tools.context_tools import (
    ContextTool,
    combine_context_results,
    create_tool_set,
    gather_required_context,
)

__all__ = [
    "translate_chunk",
    "evaluate",
    "ExtractedTerms",
    "extract_terms",
    "ContextTool",
    "combine_context_results",
    "create_tool_set",
    "gather_required_context",
]
