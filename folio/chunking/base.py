"""
Chunker plumbing shared by the Markdown, HTML and plain-text chunkers
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Protocol

from folio.chunking.tokens import TokenCounter, count_tokens
from folio.models.chunk import Chunk, ChunkType
from folio.utils.cancellation import CancellationToken

DEFAULT_MAX_TOKENS = 4096

SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


@dataclass
class ChunkerOptions:
    """Options passed to every chunker"""
    max_tokens: int = DEFAULT_MAX_TOKENS
    count_tokens: Optional[TokenCounter] = None
    cancellation: Optional[CancellationToken] = None

    @property
    def counter(self) -> TokenCounter:
        return self.count_tokens or count_tokens


class Chunker(Protocol):
    """Anything callable as chunker(text, options) -> List[Chunk]"""

    def __call__(self, text: str, options: Optional[ChunkerOptions] = None) -> List[Chunk]:
        ...


class ChunkList:
    """Collects chunks and assigns contiguous indices in emission order"""

    def __init__(self):
        self.chunks: List[Chunk] = []

    def add(self, content: str, chunk_type: ChunkType) -> None:
        self.chunks.append(Chunk(content=content, type=chunk_type, index=len(self.chunks)))


def pack(units: List[str], separator: str, max_tokens: int, counter: TokenCounter) -> List[str]:
    """
    Greedily join units with separator while the result stays within max_tokens.

    A unit that alone exceeds the budget is emitted on its own.
    """
    parts: List[str] = []
    current = ""
    for unit in units:
        candidate = f"{current}{separator}{unit}" if current else unit
        if current and counter(candidate) > max_tokens:
            parts.append(current)
            current = unit
        else:
            current = candidate
    if current:
        parts.append(current)
    return parts


def split_by_sentences(text: str, max_tokens: int, counter: TokenCounter) -> List[str]:
    """Split text at sentence boundaries and pack the sentences greedily"""
    sentences = [s for s in SENTENCE_BOUNDARY.split(text) if s]
    parts = pack(sentences, " ", max_tokens, counter)
    return parts or [text]
