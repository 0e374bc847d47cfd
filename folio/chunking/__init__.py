"""
Chunking - Split documents into typed chunks under a token budget

Usage:
    from folio.chunking import chunk_text, get_default_chunker

    pieces = chunk_text(html, media_type=MediaType.HTML, max_tokens=2048)
"""

import logging
from typing import List, Optional, Union

from folio.chunking.base import Chunker, ChunkerOptions, DEFAULT_MAX_TOKENS
from folio.chunking.html import HtmlChunker
from folio.chunking.markdown import MarkdownChunker
from folio.chunking.plaintext import PlainTextChunker
from folio.chunking.tokens import TokenCounter, count_tokens
from folio.models.chunk import MediaType
from folio.utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)


def get_default_chunker(media_type: Union[MediaType, str, None] = None) -> Chunker:
    """
    Built-in chunker for a media type.

    HTML uses the HTML chunker; Markdown and plain text use the Markdown
    chunker, which degrades gracefully on text without Markdown syntax.
    """
    if media_type is not None and MediaType(media_type) == MediaType.HTML:
        return HtmlChunker()
    return MarkdownChunker()


def chunk_text(
    text: str,
    media_type: Union[MediaType, str, None] = None,
    chunker: Optional[Chunker] = None,
    chunking: bool = True,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    count_tokens: Optional[TokenCounter] = None,
    cancellation: Optional[CancellationToken] = None
) -> List[str]:
    """
    Chunk text into plain strings for translation.

    Args:
        text: Document text
        media_type: Selects the default chunker when chunker is None
        chunker: Custom chunker (plug-in point)
        chunking: False treats the whole document as one chunk
        max_tokens: Per-chunk token budget
        count_tokens: Custom token counter (plug-in point)
        cancellation: Checked by the chunker before each section

    Returns:
        Chunk contents in document order; [text] if chunking is disabled or
        the chunker produced nothing
    """
    if not chunking:
        return [text]

    active = chunker or get_default_chunker(media_type)
    chunks = active(text, ChunkerOptions(
        max_tokens=max_tokens,
        count_tokens=count_tokens,
        cancellation=cancellation
    ))

    if not chunks:
        return [text]
    return [chunk.content for chunk in chunks]


__all__ = [
    "Chunker",
    "ChunkerOptions",
    "DEFAULT_MAX_TOKENS",
    "HtmlChunker",
    "MarkdownChunker",
    "PlainTextChunker",
    "TokenCounter",
    "count_tokens",
    "chunk_text",
    "get_default_chunker",
]
