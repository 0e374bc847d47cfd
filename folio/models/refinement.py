"""
Refinement models - Records produced by the refinement pass
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from folio.models.evaluation import TranslationIssue


class BoundaryIssueType(str, Enum):
    """Category of an issue found across a chunk boundary"""

    COHERENCE = "coherence"
    STYLE = "style"
    REFERENCE = "reference"
    TERMINOLOGY = "terminology"


class BoundaryIssue(BaseModel):
    """Issue at the seam between two adjacent chunks"""

    type: BoundaryIssueType
    description: str


class BoundaryEvaluation(BaseModel):
    """Coherence judgment for the boundary after chunk_index"""

    chunk_index: int = Field(..., ge=0, description="Index of the earlier chunk of the pair")
    score: float = Field(..., ge=0.0, le=1.0)
    issues: List[BoundaryIssue] = Field(default_factory=list)


class RefineIteration(BaseModel):
    """One fix-and-re-evaluate step on one chunk"""

    chunk_index: int
    iteration: int = Field(..., ge=1, description="1-based per chunk")
    before: str
    after: str
    score_before: float
    score_after: float
    issues_addressed: List[TranslationIssue] = Field(default_factory=list)

    class Config:
        frozen = True


class RefineChunksResult(BaseModel):
    """Output of refine_chunks()"""

    chunks: List[str]
    scores: List[float]
    total_iterations: int = 0
    history: List[RefineIteration] = Field(default_factory=list)
    boundary_evaluations: Optional[List[BoundaryEvaluation]] = None
    tokens_used: int = 0

    @property
    def average_score(self) -> float:
        """Mean of the final per-chunk scores (0.0 for no chunks)"""
        if not self.scores:
            return 0.0
        return sum(self.scores) / len(self.scores)
