"""
Token counting - tiktoken cl100k_base estimate of model-visible length

The encoding is created lazily on first use and shared afterwards.
"""

from functools import lru_cache
from typing import Callable

import tiktoken

TokenCounter = Callable[[str], int]

DEFAULT_ENCODING = "cl100k_base"


@lru_cache(maxsize=4)
def get_encoding(name: str = DEFAULT_ENCODING) -> tiktoken.Encoding:
    """Cached tiktoken encoding"""
    return tiktoken.get_encoding(name)


def count_tokens(text: str) -> int:
    """
    Count tokens in text with the cl100k_base encoding.

    Special-token markers in the input are counted as plain text.
    """
    if not text:
        return 0
    return len(get_encoding().encode(text, disallowed_special=()))
