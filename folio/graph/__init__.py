"""
Chunk translation pipeline

Usage:
    from folio.graph import TranslateChunksOptions, translate_chunks

    options = TranslateChunksOptions(target_language="ko", models=[model])
    async for event in translate_chunks(chunks, options):
        if event.type == "chunk":
            print(event.index, event.translation)
"""

# Pipeline
from .builder import DynamicGlossaryConfig, TranslateChunksOptions, translate_chunks

# Result accumulation
from .accumulator import (
    AccumulatorState,
    accumulate_event,
    build_translation,
    create_initial_accumulator_state,
    max_by_value,
)

# Individual nodes
from .nodes import extract_terms_node, merge_new_terms, select_node, translate_node

__all__ = [
    "DynamicGlossaryConfig",
    "TranslateChunksOptions",
    "translate_chunks",
    "AccumulatorState",
    "accumulate_event",
    "build_translation",
    "create_initial_accumulator_state",
    "max_by_value",
    "extract_terms_node",
    "merge_new_terms",
    "select_node",
    "translate_node",
]
