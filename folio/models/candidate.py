"""
Candidate models - Competing translations for best-of-N selection
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from folio.models.evaluation import TranslationIssue


@dataclass(frozen=True)
class Candidate:
    """One model's proposed translation for a chunk"""
    text: str
    metadata: Optional[Any] = None   # opaque, usually the model that produced it


@dataclass(frozen=True)
class RankedCandidate:
    """A candidate after evaluation"""
    text: str
    score: float
    rank: int                        # 1-based, 1 = best
    issues: List[TranslationIssue] = field(default_factory=list)
    metadata: Optional[Any] = None


@dataclass(frozen=True)
class SelectionResult:
    """Result of best-of-N selection"""
    best: RankedCandidate
    all: List[RankedCandidate] = field(default_factory=list)
