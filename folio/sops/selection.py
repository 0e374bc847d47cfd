"""
Selection SOP - Best-of-N candidate ranking

Purpose: pick one translation out of K model outputs for the same chunk.

Rules:
- Every candidate is scored independently by the evaluator
- Higher score ranks first
- Equal scores keep submission order (first submitted wins the tie)
- An empty candidate list is rejected before any model call
"""

import logging
from typing import List, Optional, Sequence, Tuple

from folio.errors import InvalidArgumentError
from folio.models.candidate import Candidate, RankedCandidate, SelectionResult
from folio.models.evaluation import EvaluationResult
from folio.models.glossary import GlossaryEntry
from folio.tools.evaluator_tool import evaluate
from folio.utils.cancellation import CancellationToken, check_cancelled
from folio.utils.strands_utils import LanguageModel

logger = logging.getLogger(__name__)


class SelectionSOP:
    """
    Best-of-N selection.

    Evaluation is sequential: each judgment is a model call and the
    cancellation token is checked before each one.

    Usage:
        sop = SelectionSOP(judge)
        result = await sop.select(source, candidates, target_language="ko")
        print(result.best.text, result.best.score)
    """

    def __init__(self, evaluator_model: LanguageModel):
        self.evaluator_model = evaluator_model

    async def select(
        self,
        source_text: str,
        candidates: Sequence[Candidate],
        target_language: str,
        source_language: Optional[str] = None,
        glossary: Optional[Sequence[GlossaryEntry]] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> SelectionResult:
        """
        Evaluate and rank candidates.

        Raises:
            InvalidArgumentError: If candidates is empty
            AbortedError: If cancelled between evaluations
        """
        if not candidates:
            raise InvalidArgumentError("At least one candidate is required")

        evaluated: List[Tuple[Candidate, EvaluationResult]] = []
        for i, candidate in enumerate(candidates):
            check_cancelled(cancellation)
            result = await evaluate(
                self.evaluator_model,
                source_text,
                candidate.text,
                target_language=target_language,
                source_language=source_language,
                glossary=glossary,
                cancellation=cancellation
            )
            logger.debug(f"Candidate {i + 1}/{len(candidates)} scored {result.score:.2f}")
            evaluated.append((candidate, result))

        ranked = self.rank(evaluated)
        logger.info(
            f"Selected candidate with score {ranked[0].score:.2f} "
            f"out of {len(ranked)}"
        )
        return SelectionResult(best=ranked[0], all=ranked)

    @staticmethod
    def rank(evaluated: Sequence[Tuple[Candidate, EvaluationResult]]) -> List[RankedCandidate]:
        """
        Rank evaluated candidates by score, descending.

        sorted() is stable, so equal scores keep input order.
        """
        ordered = sorted(evaluated, key=lambda pair: pair[1].score, reverse=True)
        return [
            RankedCandidate(
                text=candidate.text,
                score=result.score,
                rank=rank,
                issues=list(result.issues),
                metadata=candidate.metadata
            )
            for rank, (candidate, result) in enumerate(ordered, 1)
        ]


async def select_best(
    evaluator_model: LanguageModel,
    source_text: str,
    candidates: Sequence[Candidate],
    target_language: str,
    source_language: Optional[str] = None,
    glossary: Optional[Sequence[GlossaryEntry]] = None,
    cancellation: Optional[CancellationToken] = None
) -> SelectionResult:
    """Shortcut for SelectionSOP(evaluator_model).select(...)"""
    return await SelectionSOP(evaluator_model).select(
        source_text,
        candidates,
        target_language=target_language,
        source_language=source_language,
        glossary=glossary,
        cancellation=cancellation
    )
