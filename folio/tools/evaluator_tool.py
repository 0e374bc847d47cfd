"""
Evaluator tool - LLM-judged quality score for one translated span

Returns a 0-1 score and typed issues (accuracy, fluency, terminology, style).
The score is advisory: identical input can score differently across calls.

Score bands (guidance given to the judge):
    >= 0.9 excellent, 0.7-0.9 good, 0.5-0.7 acceptable, < 0.5 poor
"""

import logging
from typing import Optional, Sequence

from folio.errors import StructuredOutputError
from folio.models.evaluation import EvaluationResult
from folio.models.glossary import GlossaryEntry
from folio.prompts.builder import render_glossary_lines
from folio.prompts.template import load_prompt
from folio.utils.cancellation import CancellationToken, check_cancelled
from folio.utils.config import get_language_name
from folio.utils.observability import trace_agent
from folio.utils.strands_utils import LanguageModel

logger = logging.getLogger(__name__)


async def evaluate(
    model: LanguageModel,
    original: str,
    translated: str,
    target_language: str,
    source_language: Optional[str] = None,
    glossary: Optional[Sequence[GlossaryEntry]] = None,
    cancellation: Optional[CancellationToken] = None
) -> EvaluationResult:
    """
    Evaluate a translation against its source.

    Args:
        model: Judge model
        original: Source text
        translated: Translation to score
        target_language: Target language tag
        source_language: Source language tag, if known
        glossary: Mandated terms; deviations are reported as terminology issues
        cancellation: Cancellation token

    Returns:
        EvaluationResult. A judgment that does not match the schema yields
        score 1.0 with no issues rather than stalling the pipeline.

    Example:
        result = await evaluate(judge, "Hello", "안녕하세요", "ko")
        print(result.score, [i.type for i in result.issues])
    """
    check_cancelled(cancellation)

    system_prompt = _build_system_prompt(target_language, source_language, glossary)
    user_prompt = _build_user_prompt(original, translated)

    with trace_agent("evaluator") as (span, record):
        try:
            result = await model.generate_structured(
                EvaluationResult,
                system_prompt,
                user_prompt,
                cancellation=cancellation
            )
        except StructuredOutputError as e:
            logger.warning(f"Unparseable evaluation, treating as pass: {e}")
            result = EvaluationResult(score=1.0, issues=[])
        record("output", {"score": result.score, "issues": len(result.issues)})

    logger.debug(f"Evaluation score {result.score:.2f} with {len(result.issues)} issue(s)")
    return result


def _build_system_prompt(
    target_language: str,
    source_language: Optional[str],
    glossary: Optional[Sequence[GlossaryEntry]]
) -> str:
    """System prompt from evaluator.md plus the glossary section"""
    glossary_section = ""
    if glossary:
        glossary_section = (
            "\n## Glossary\n\n"
            "The following terms MUST be translated as specified. "
            'Violations should be marked as "terminology" issues:\n\n'
            + render_glossary_lines(glossary, indent="")
        )

    return load_prompt(
        "evaluator",
        source_language=get_language_name(source_language) if source_language else "the source language",
        target_language=get_language_name(target_language),
        glossary_section=glossary_section
    )


def _build_user_prompt(original: str, translated: str) -> str:
    return (
        f"## Original Text\n\n{original}\n\n"
        f"## Translated Text\n\n{translated}\n\n"
        "Please evaluate this translation."
    )
