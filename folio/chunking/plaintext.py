"""
Plain-text chunker - Paragraphs packed up to the token budget
"""

import logging
import re
from typing import List, Optional

from folio.chunking.base import ChunkerOptions, ChunkList, pack, split_by_sentences
from folio.models.chunk import Chunk, ChunkType
from folio.utils.cancellation import check_cancelled

logger = logging.getLogger(__name__)

PARAGRAPH_BREAK = re.compile(r"\n\s*\n+")


class PlainTextChunker:
    """Splits on blank lines, falls back to sentences; every chunk is a paragraph"""

    def __call__(self, text: str, options: Optional[ChunkerOptions] = None) -> List[Chunk]:
        options = options or ChunkerOptions()
        counter = options.counter
        max_tokens = options.max_tokens
        check_cancelled(options.cancellation)

        units: List[str] = []
        for paragraph in PARAGRAPH_BREAK.split(text):
            check_cancelled(options.cancellation)
            paragraph = paragraph.strip()
            if not paragraph:
                continue
            if counter(paragraph) > max_tokens:
                units.extend(split_by_sentences(paragraph, max_tokens, counter))
            else:
                units.append(paragraph)

        out = ChunkList()
        for part in pack(units, "\n\n", max_tokens, counter):
            out.add(part, ChunkType.PARAGRAPH)

        logger.debug(f"Plain text chunked into {len(out.chunks)} chunk(s)")
        return out.chunks
