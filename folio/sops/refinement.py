"""
Refinement SOP - Evaluate → fix → re-evaluate loop per chunk

Purpose: pull low-scoring chunk translations up to a target score within a
bounded number of rewrites, then check coherence across chunk seams.

Per-chunk state machine (see models.refine_state):
- EVALUATING: score >= target → CONVERGED; iterations spent → EXHAUSTED;
  otherwise → FIXING
- FIXING: rewrite conditioned on the last issue list (+ glossary)
- RE_EVALUATING: score the rewrite, record a RefineIteration → EVALUATING

Boundary checks are advisory: issues are reported and logged, never rewritten.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from folio.errors import ChunkCountMismatchError, UpstreamError
from folio.models.evaluation import TranslationIssue
from folio.models.glossary import GlossaryEntry
from folio.models.refine_state import RefineState, can_transition, is_terminal_state
from folio.models.refinement import (
    BoundaryEvaluation,
    BoundaryIssue,
    BoundaryIssueType,
    RefineChunksResult,
    RefineIteration,
)
from folio.prompts.builder import render_glossary_lines
from folio.prompts.template import load_prompt
from folio.tools.evaluator_tool import evaluate
from folio.utils.cancellation import CancellationToken, check_cancelled
from folio.utils.config import get_language_name, get_pipeline_config
from folio.utils.observability import trace_agent
from folio.utils.strands_utils import LanguageModel

logger = logging.getLogger(__name__)


@dataclass
class RefinementConfig:
    """Refinement thresholds"""
    target_score: float = 0.85       # stop at or above this score
    max_iterations: int = 3          # rewrites per chunk
    evaluate_boundaries: bool = True
    boundary_size: int = 200         # chars on each side of a seam

    @classmethod
    def from_pipeline_config(cls, **overrides) -> "RefinementConfig":
        """Defaults from pipeline.yaml, with keyword overrides"""
        pipeline = get_pipeline_config()
        values = {
            "target_score": pipeline.target_score,
            "max_iterations": pipeline.max_iterations,
            "boundary_size": pipeline.boundary_size,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def format_issues_for_prompt(issues: Sequence[TranslationIssue]) -> str:
    """`- [type] description` lines for the fix prompt"""
    return "\n".join(f"- [{issue.type.value}] {issue.description}" for issue in issues)


def parse_boundary_response(response_text: str) -> Optional[Dict[str, Any]]:
    """
    Pull the JSON object out of a boundary judgment.

    Accepts a ```json fenced block or a bare object. Returns None when no
    valid JSON object is found.
    """
    json_match = re.search(r'```(?:json)?\s*([\s\S]*?)\s*```', response_text)
    if json_match:
        json_str = json_match.group(1)
    else:
        json_match = re.search(r'\{[\s\S]*\}', response_text)
        json_str = json_match.group() if json_match else None

    if not json_str:
        return None
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


class RefinementSOP:
    """
    Iterative refinement over all chunks of a translation.

    Usage:
        sop = RefinementSOP(model, RefinementConfig(target_score=0.9))
        result = await sop.refine_chunks(sources, translations, target_language="ko")
        print(result.scores, result.total_iterations)
    """

    def __init__(self, model: LanguageModel, config: Optional[RefinementConfig] = None):
        self.model = model
        self.config = config or RefinementConfig()

    async def refine_chunks(
        self,
        original_chunks: Sequence[str],
        translated_chunks: Sequence[str],
        target_language: str,
        source_language: Optional[str] = None,
        glossary: Optional[Sequence[GlossaryEntry]] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> RefineChunksResult:
        """
        Refine every chunk, then evaluate boundaries.

        Raises:
            ChunkCountMismatchError: If the two lists differ in length (before any call)
            AbortedError: If cancelled before a chunk, iteration or boundary
        """
        if len(original_chunks) != len(translated_chunks):
            raise ChunkCountMismatchError(len(original_chunks), len(translated_chunks))

        config = self.config
        logger.info(
            f"Refining {len(original_chunks)} chunk(s) "
            f"(target {config.target_score}, max {config.max_iterations} iteration(s))"
        )

        refined: List[str] = list(translated_chunks)
        scores: List[float] = [0.0] * len(refined)
        history: List[RefineIteration] = []
        tokens_used = 0

        for i in range(len(refined)):
            check_cancelled(cancellation)
            text, score, chunk_history, chunk_tokens = await self._refine_one(
                i, original_chunks[i], refined[i],
                target_language, source_language, glossary, cancellation
            )
            refined[i] = text
            scores[i] = score
            history.extend(chunk_history)
            tokens_used += chunk_tokens

        boundary_evaluations: Optional[List[BoundaryEvaluation]] = None
        if config.evaluate_boundaries and len(refined) > 1:
            boundary_evaluations = await self._evaluate_boundaries(
                original_chunks, refined, target_language, cancellation
            )

        result = RefineChunksResult(
            chunks=refined,
            scores=scores,
            total_iterations=len(history),
            history=history,
            boundary_evaluations=boundary_evaluations,
            tokens_used=tokens_used
        )
        logger.info(
            f"Refinement complete: {result.total_iterations} iteration(s), "
            f"average score {result.average_score:.2f}"
        )
        return result

    async def _refine_one(
        self,
        index: int,
        original: str,
        translated: str,
        target_language: str,
        source_language: Optional[str],
        glossary: Optional[Sequence[GlossaryEntry]],
        cancellation: Optional[CancellationToken]
    ):
        """Run the state machine for one chunk. Returns (text, score, history, tokens)."""
        config = self.config
        history: List[RefineIteration] = []
        tokens_used = 0
        iteration = 0
        current = translated

        evaluation = await evaluate(
            self.model, original, current,
            target_language=target_language,
            source_language=source_language,
            glossary=glossary,
            cancellation=cancellation
        )
        logger.debug(f"Chunk {index + 1} initial score {evaluation.score:.2f}")

        state = RefineState.EVALUATING
        while True:
            if evaluation.score >= config.target_score:
                state = self._transition(state, RefineState.CONVERGED)
                break
            if iteration >= config.max_iterations:
                state = self._transition(state, RefineState.EXHAUSTED)
                break

            check_cancelled(cancellation)
            state = self._transition(state, RefineState.FIXING)
            iteration += 1
            before, score_before, issues = current, evaluation.score, list(evaluation.issues)
            fix = await self._fix(original, current, issues, target_language, source_language, glossary, cancellation)
            current = fix.text.strip()
            tokens_used += fix.tokens_used

            state = self._transition(state, RefineState.RE_EVALUATING)
            evaluation = await evaluate(
                self.model, original, current,
                target_language=target_language,
                source_language=source_language,
                glossary=glossary,
                cancellation=cancellation
            )
            history.append(RefineIteration(
                chunk_index=index,
                iteration=iteration,
                before=before,
                after=current,
                score_before=score_before,
                score_after=evaluation.score,
                issues_addressed=issues
            ))
            logger.debug(
                f"Chunk {index + 1} iteration {iteration}: "
                f"{score_before:.2f} → {evaluation.score:.2f}"
            )
            state = self._transition(state, RefineState.EVALUATING)

        if not is_terminal_state(state):
            raise RuntimeError(f"Refinement of chunk {index + 1} stopped in {state.value}")
        logger.debug(f"Chunk {index + 1} {state.value} at {evaluation.score:.2f}")
        return current, evaluation.score, history, tokens_used

    @staticmethod
    def _transition(current: RefineState, target: RefineState) -> RefineState:
        if not can_transition(current, target):
            raise RuntimeError(f"Invalid refinement transition: {current.value} → {target.value}")
        return target

    async def _fix(
        self,
        original: str,
        translated: str,
        issues: Sequence[TranslationIssue],
        target_language: str,
        source_language: Optional[str],
        glossary: Optional[Sequence[GlossaryEntry]],
        cancellation: Optional[CancellationToken]
    ):
        glossary_section = ""
        if glossary:
            glossary_section = (
                "\n## Glossary (must follow exactly)\n\n"
                + render_glossary_lines(glossary, indent="")
            )

        system_prompt = load_prompt(
            "refiner",
            source_language=get_language_name(source_language) if source_language else "the source language",
            target_language=get_language_name(target_language),
            issues=format_issues_for_prompt(issues),
            glossary_section=glossary_section
        )
        user_prompt = (
            f"## Original Text\n\n{original}\n\n"
            f"## Current Translation\n\n{translated}\n\n"
            "Please provide the improved translation:"
        )

        with trace_agent("refiner") as (span, record):
            record("input", {"issues": len(issues)})
            try:
                return await self.model.generate_text(
                    system_prompt, user_prompt, cancellation=cancellation
                )
            except Exception as e:
                logger.error(f"Refinement call failed: {e}")
                raise

    async def _evaluate_boundaries(
        self,
        original_chunks: Sequence[str],
        refined: Sequence[str],
        target_language: str,
        cancellation: Optional[CancellationToken]
    ) -> List[BoundaryEvaluation]:
        logger.debug(f"Evaluating {len(refined) - 1} chunk boundar(ies)")
        evaluations: List[BoundaryEvaluation] = []
        for i in range(len(refined) - 1):
            check_cancelled(cancellation)
            evaluation = await self.evaluate_boundary(
                i,
                refined[i], refined[i + 1],
                original_chunks[i], original_chunks[i + 1],
                target_language,
                cancellation=cancellation
            )
            if evaluation.issues:
                logger.warning(
                    f"Boundary {i + 1} has {len(evaluation.issues)} issue(s), "
                    f"score {evaluation.score:.2f}"
                )
            evaluations.append(evaluation)
        return evaluations

    async def evaluate_boundary(
        self,
        chunk_index: int,
        first_translated: str,
        second_translated: str,
        first_original: str,
        second_original: str,
        target_language: str,
        cancellation: Optional[CancellationToken] = None
    ) -> BoundaryEvaluation:
        """
        Judge coherence across the seam after chunk_index.

        An upstream failure or an unparseable judgment is treated as a pass
        (score 1.0, no issues) and logged as a warning, since boundary
        findings never trigger rewrites.

        Raises:
            AbortedError: If cancelled before the call
        """
        check_cancelled(cancellation)
        size = self.config.boundary_size
        target_name = get_language_name(target_language)

        user_prompt = (
            f"## End of chunk 1 (original)\n{first_original[-size:]}\n\n"
            f"## End of chunk 1 (translated to {target_name})\n{first_translated[-size:]}\n\n"
            f"## Start of chunk 2 (original)\n{second_original[:size]}\n\n"
            f"## Start of chunk 2 (translated to {target_name})\n{second_translated[:size]}\n\n"
            "Evaluate the boundary coherence:"
        )

        with trace_agent("boundary_evaluator") as (span, record):
            try:
                response = await self.model.generate_text(
                    load_prompt("boundary_evaluator"), user_prompt, cancellation=cancellation
                )
            except UpstreamError as e:
                logger.warning(f"Boundary {chunk_index + 1} judgment failed, treating as pass: {e}")
                return BoundaryEvaluation(chunk_index=chunk_index, score=1.0, issues=[])

            data = parse_boundary_response(response.text)
            evaluation = self._to_boundary_evaluation(chunk_index, data)
            record("output", {"score": evaluation.score, "issues": len(evaluation.issues)})
        return evaluation

    @staticmethod
    def _to_boundary_evaluation(chunk_index: int, data: Optional[Dict[str, Any]]) -> BoundaryEvaluation:
        score = None
        if data is not None:
            try:
                score = max(0.0, min(1.0, float(data.get("score"))))
            except (TypeError, ValueError):
                score = None
        if score is None:
            logger.warning(f"Unparseable boundary {chunk_index + 1} judgment, treating as pass")
            return BoundaryEvaluation(chunk_index=chunk_index, score=1.0, issues=[])

        raw_issues = data.get("issues")
        if not isinstance(raw_issues, list):
            raw_issues = []
        issues = [issue for issue in map(_to_boundary_issue, raw_issues) if issue is not None]
        if len(issues) < len(raw_issues):
            logger.debug(f"Boundary {chunk_index + 1}: dropped {len(raw_issues) - len(issues)} malformed issue(s)")
        return BoundaryEvaluation(chunk_index=chunk_index, score=score, issues=issues)


def _to_boundary_issue(raw: Any) -> Optional[BoundaryIssue]:
    """One judged issue; an unknown type is read as coherence, no description drops it"""
    if not isinstance(raw, dict) or not isinstance(raw.get("description"), str):
        return None
    try:
        return BoundaryIssue(type=raw.get("type"), description=raw["description"])
    except ValidationError:
        return BoundaryIssue(type=BoundaryIssueType.COHERENCE, description=raw["description"])


async def refine_chunks(
    model: LanguageModel,
    original_chunks: Sequence[str],
    translated_chunks: Sequence[str],
    target_language: str,
    source_language: Optional[str] = None,
    config: Optional[RefinementConfig] = None,
    glossary: Optional[Sequence[GlossaryEntry]] = None,
    cancellation: Optional[CancellationToken] = None
) -> RefineChunksResult:
    """Shortcut for RefinementSOP(model, config).refine_chunks(...)"""
    return await RefinementSOP(model, config).refine_chunks(
        original_chunks,
        translated_chunks,
        target_language=target_language,
        source_language=source_language,
        glossary=glossary,
        cancellation=cancellation
    )


async def evaluate_boundary(
    model: LanguageModel,
    first_translated: str,
    second_translated: str,
    first_original: str,
    second_original: str,
    target_language: str,
    config: Optional[RefinementConfig] = None,
    cancellation: Optional[CancellationToken] = None
) -> BoundaryEvaluation:
    """Shortcut for a single boundary check (reported with chunk_index 0)"""
    return await RefinementSOP(model, config).evaluate_boundary(
        0,
        first_translated, second_translated,
        first_original, second_original,
        target_language,
        cancellation=cancellation
    )
