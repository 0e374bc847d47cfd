"""
Term extractor tool - Glossary candidates from a source/translation pair

Feeds the dynamic glossary: terms found in chunk N are enforced from chunk
N+1 onwards.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from folio.models.glossary import GlossaryEntry
from folio.prompts.template import load_prompt
from folio.utils.cancellation import CancellationToken, check_cancelled
from folio.utils.observability import trace_agent
from folio.utils.strands_utils import LanguageModel

logger = logging.getLogger(__name__)

DEFAULT_MAX_TERMS = 10


class ExtractedTerms(BaseModel):
    """Structured output schema for term extraction"""

    terms: List[GlossaryEntry] = Field(
        default_factory=list,
        description="Key terminology pairs, most important first"
    )


async def extract_terms(
    model: LanguageModel,
    source_text: str,
    translated_text: str,
    max_terms: int = DEFAULT_MAX_TERMS,
    cancellation: Optional[CancellationToken] = None
) -> List[GlossaryEntry]:
    """
    Extract terminology pairs worth keeping consistent.

    The model's order is kept; the result is only truncated to max_terms.

    Args:
        model: Extractor model
        source_text: Source chunk
        translated_text: Its translation
        max_terms: Upper bound on returned entries
        cancellation: Cancellation token

    Returns:
        Up to max_terms glossary entries
    """
    check_cancelled(cancellation)

    system_prompt = load_prompt("term_extractor", max_terms=max_terms)
    user_prompt = (
        f"Source text:\n{source_text}\n\n"
        f"Translated text:\n{translated_text}\n\n"
        "Extract the key terminology pairs from the above texts."
    )

    with trace_agent("term_extractor") as (span, record):
        result = await model.generate_structured(
            ExtractedTerms,
            system_prompt,
            user_prompt,
            cancellation=cancellation
        )
        record("output", {"terms": len(result.terms)})

    terms = list(result.terms[:max_terms])
    logger.debug(f"Extracted {len(terms)} term(s)")
    return terms
