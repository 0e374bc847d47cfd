"""
Chunk - A typed, indexed slice of a source document
"""

from enum import Enum

from pydantic import BaseModel, Field


class ChunkType(str, Enum):
    """Dominant content type of a chunk"""

    PARAGRAPH = "paragraph"
    SECTION = "section"      # heading plus body
    HEADING = "heading"      # heading emitted on its own
    LIST = "list"
    CODE = "code"


class MediaType(str, Enum):
    """Media types the built-in chunkers and prompts understand"""

    PLAIN = "text/plain"
    HTML = "text/html"
    MARKDOWN = "text/markdown"


class TranslationTone(str, Enum):
    """Tone requested from the translator"""

    FORMAL = "formal"
    INFORMAL = "informal"
    TECHNICAL = "technical"
    CASUAL = "casual"
    PROFESSIONAL = "professional"
    LITERARY = "literary"
    JOURNALISTIC = "journalistic"


class Chunk(BaseModel):
    """Chunk - one piece of a document (immutable)"""

    content: str = Field(..., description="Chunk text, markup included")
    type: ChunkType = Field(..., description="Dominant content type")
    index: int = Field(..., ge=0, description="0-based position in document order")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "content": "# Install\n\nRun the installer.",
                "type": "section",
                "index": 0
            }
        }
