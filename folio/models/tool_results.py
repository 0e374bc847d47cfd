"""
Tool result models - Return types of model-calling tools
"""

from dataclasses import dataclass


@dataclass
class TextGenerationResult:
    """Text completion result"""
    text: str                    # generated text
    tokens_used: int = 0         # total tokens reported by the provider
    latency_ms: int = 0          # response time in milliseconds
