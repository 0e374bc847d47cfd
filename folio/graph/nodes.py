"""
Pipeline nodes - One step of per-chunk translation each

Every node takes the chunk state dict, updates it and returns it:
- translate_node: every model translates the chunk concurrently
- select_node: best-of-N over the candidates (single model: pass-through)
- extract_terms_node: grow the dynamic glossary from the winning translation

Chunk state keys:
    index, source, system_prompt, previous_chunks, title, models,
    evaluator_model, target_language, source_language, glossary,
    tools, max_tool_steps, dynamic_glossary, cancellation
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from folio.models.candidate import Candidate
from folio.models.glossary import GlossaryEntry
from folio.sops.selection import SelectionSOP
from folio.tools.term_extractor_tool import extract_terms
from folio.tools.translator_tool import translate_chunk
from folio.utils.cancellation import check_cancelled

logger = logging.getLogger(__name__)


def merge_new_terms(
    known: Sequence[GlossaryEntry],
    extracted: Sequence[GlossaryEntry]
) -> List[GlossaryEntry]:
    """
    Terms from extracted whose original is not already known.

    Matching is case-insensitive on original, also among the extracted
    terms themselves (first one wins).
    """
    seen = {entry.original.lower() for entry in known}
    new_terms: List[GlossaryEntry] = []
    for entry in extracted:
        key = entry.original.lower()
        if key in seen:
            continue
        seen.add(key)
        new_terms.append(entry)
    return new_terms


async def translate_node(state: Dict[str, Any]) -> Dict[str, Any]:
    """
    Translation node - all models in parallel.

    Args:
        state: Chunk state
            - source, system_prompt, models (required)
            - previous_chunks, title, tools, max_tool_steps, cancellation (optional)

    Returns:
        Updated state:
            - candidates: List[Candidate], one per model, metadata {"model": model}
            - tokens_used: sum over all model calls
    """
    index: int = state.get("index", 0)
    models = state["models"]
    check_cancelled(state.get("cancellation"))

    logger.info(f"Chunk {index + 1}: translating with {len(models)} model(s)")

    results = await asyncio.gather(
        *[
            translate_chunk(
                model,
                state["system_prompt"],
                state["source"],
                previous_chunks=state.get("previous_chunks") or (),
                title=state.get("title"),
                tools=state.get("tools"),
                max_steps=state.get("max_tool_steps"),
                cancellation=state.get("cancellation")
            )
            for model in models
        ],
        return_exceptions=True
    )

    candidates: List[Candidate] = []
    tokens_used = 0
    for model, result in zip(models, results):
        if isinstance(result, BaseException):
            logger.error(f"Chunk {index + 1}: translation failed: {result}")
            raise result
        candidates.append(Candidate(text=result.text, metadata={"model": model}))
        tokens_used += result.tokens_used

    state["candidates"] = candidates
    state["tokens_used"] = tokens_used
    logger.debug(f"Chunk {index + 1}: {len(candidates)} candidate(s), {tokens_used} tokens")
    return state


async def select_node(state: Dict[str, Any]) -> Dict[str, Any]:
    """
    Selection node - best-of-N when more than one model translated.

    Args:
        state: Chunk state
            - candidates (required, from translate_node)
            - evaluator_model, target_language, source_language, glossary

    Returns:
        Updated state:
            - translation: winning text
            - quality_score: winner's score (None for a single model)
            - selected_model: winning model (None for a single model)
    """
    candidates: List[Candidate] = state["candidates"]

    if len(candidates) == 1:
        state["translation"] = candidates[0].text
        state["quality_score"] = None
        state["selected_model"] = None
        return state

    index: int = state.get("index", 0)
    sop = SelectionSOP(state["evaluator_model"])
    selection = await sop.select(
        state["source"],
        candidates,
        target_language=state["target_language"],
        source_language=state.get("source_language"),
        glossary=state.get("glossary"),
        cancellation=state.get("cancellation")
    )

    best = selection.best
    state["translation"] = best.text
    state["quality_score"] = best.score
    state["selected_model"] = (best.metadata or {}).get("model")
    logger.info(f"Chunk {index + 1}: selected candidate scoring {best.score:.2f}")
    return state


async def extract_terms_node(state: Dict[str, Any]) -> Dict[str, Any]:
    """
    Term extraction node - runs only with a dynamic glossary config.

    Args:
        state: Chunk state
            - translation (required, from select_node)
            - dynamic_glossary: DynamicGlossaryConfig or None
            - glossary: everything known so far (initial + accumulated)

    Returns:
        Updated state:
            - new_terms: List[GlossaryEntry] (None when extraction is off)
    """
    config = state.get("dynamic_glossary")
    if config is None:
        state["new_terms"] = None
        return state

    index: int = state.get("index", 0)
    extractor = config.extractor_model or state["models"][0]
    extracted = await extract_terms(
        extractor,
        state["source"],
        state["translation"],
        max_terms=config.max_terms_per_chunk,
        cancellation=state.get("cancellation")
    )
    new_terms = merge_new_terms(state.get("glossary") or [], extracted)
    state["new_terms"] = new_terms

    if new_terms:
        logger.info(f"Chunk {index + 1}: {len(new_terms)} new glossary term(s)")
    return state


def chunk_state(
    index: int,
    source: str,
    system_prompt: str,
    **values: Optional[Any]
) -> Dict[str, Any]:
    """Initial chunk state dict for the node pipeline"""
    state: Dict[str, Any] = {
        "index": index,
        "source": source,
        "system_prompt": system_prompt,
    }
    state.update(values)
    return state
