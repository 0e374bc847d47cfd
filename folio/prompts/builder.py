"""
Prompt Builder - System and user prompts for chunk translation

All functions are pure: the same options always render the same prompt.

System prompt order:
    role → target language → meaning/tone preservation → [source language]
    → [tone] → [domain] → [format, unless plain text] → [context] → [glossary]
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from folio.models.chunk import MediaType, TranslationTone
from folio.models.glossary import GlossaryEntry
from folio.utils.config import get_language_name

TITLE_LINE = re.compile(r"^Title:\s*(.+?)(?:\n|$)")


@dataclass(frozen=True)
class TranslatedChunk:
    """A (source, translation) pair carried as context into later chunks"""
    source: str
    translation: str


def render_glossary_lines(glossary: Sequence[GlossaryEntry], indent: str = "  ") -> str:
    """One `- "original" → "translated" (context)` line per entry"""
    lines = []
    for entry in glossary:
        note = f" ({entry.context})" if entry.context else ""
        lines.append(f'{indent}- "{entry.original}" → "{entry.translated}"{note}')
    return "\n".join(lines)


def build_system_prompt(
    target_language: str,
    source_language: Optional[str] = None,
    tone: Optional[Union[TranslationTone, str]] = None,
    domain: Optional[str] = None,
    media_type: Optional[Union[MediaType, str]] = None,
    context: Optional[str] = None,
    glossary: Optional[Sequence[GlossaryEntry]] = None
) -> str:
    """
    Build the translator system prompt.

    Args:
        target_language: Target language tag (e.g. "ko", "pt-BR")
        source_language: Source language tag, if known
        tone: Requested tone
        domain: Subject domain (e.g. "medical")
        media_type: Input format; HTML and Markdown add a preservation clause
        context: Free-text background for the translator
        glossary: Terms that must be translated consistently

    Returns:
        Prompt parts joined by blank lines
    """
    parts: List[str] = [
        "You are a professional translator.",
        f"Translate the given text into {get_language_name(target_language)}.",
        "Preserve the original meaning, tone, and nuance as accurately as possible.",
        "Output only the translated text without any explanations or notes.",
    ]

    if source_language:
        parts.append(f"The source language is {get_language_name(source_language)}.")

    if tone:
        parts.append(f"Use a {TranslationTone(tone).value} tone in the translation.")

    if domain:
        parts.append(
            f"This text is from the {domain} domain. "
            "Use appropriate terminology for this field."
        )

    if media_type is not None and MediaType(media_type) != MediaType.PLAIN:
        format_name = "HTML" if MediaType(media_type) == MediaType.HTML else "Markdown"
        parts.append(
            f"The input is formatted as {format_name}. "
            "Preserve the formatting structure in your translation."
        )

    if context:
        parts.append(f"Additional context: {context}")

    if glossary:
        parts.append(
            "Use the following glossary for consistent terminology:\n"
            + render_glossary_lines(glossary)
        )

    return "\n\n".join(parts)


def build_user_prompt(text: str, title: Optional[str] = None) -> str:
    """Chunk text, prefixed with `Title: ...` when a title is given"""
    if title is not None:
        return f"Title: {title}\n\n{text}"
    return text


def build_user_prompt_with_context(text: str, previous_chunks: Sequence[TranslatedChunk]) -> str:
    """
    User prompt listing already-translated chunks before the current one.

    Falls back to the bare text when there is no previous chunk.
    """
    if not previous_chunks:
        return text

    context_parts = [
        f"[Previous section {i}]\nOriginal: {chunk.source}\nTranslation: {chunk.translation}"
        for i, chunk in enumerate(previous_chunks, 1)
    ]

    return (
        "The following sections have already been translated. "
        "Maintain consistency in terminology, style, and tone with the previous translations.\n\n"
        + "\n\n".join(context_parts)
        + f"\n\n[Current section to translate]\n{text}"
    )


def extract_title(translated_text: str) -> Optional[str]:
    """
    Title of a translated document.

    Uses a leading `Title: ...` line when the model kept it, otherwise the
    first line. Returns None for an empty first line.
    """
    match = TITLE_LINE.match(translated_text)
    if match:
        return match.group(1).strip()
    first_line = translated_text.split("\n")[0].strip()
    return first_line or None
