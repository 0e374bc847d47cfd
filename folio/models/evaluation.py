"""
Evaluation Result - Structured judgment returned by the evaluator

These models double as the structured-output schema sent to the judge model.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class IssueType(str, Enum):
    """Category of a translation issue"""

    ACCURACY = "accuracy"          # meaning not conveyed
    FLUENCY = "fluency"            # unnatural in the target language
    TERMINOLOGY = "terminology"    # wrong or inconsistent terms, glossary violations
    STYLE = "style"                # tone or register mismatch


class IssueLocation(BaseModel):
    """Character span in the translated text (start inclusive, end exclusive)"""

    start: int = Field(..., ge=0, description="Starting character index (0-based, inclusive)")
    end: int = Field(..., ge=0, description="Ending character index (0-based, exclusive)")


class TranslationIssue(BaseModel):
    """A specific issue found in a translation"""

    type: IssueType = Field(..., description="The type of issue")
    description: str = Field(..., description="A human-readable description of the issue")
    location: Optional[IssueLocation] = Field(
        default=None,
        description="The location of the issue in the translated text, if applicable"
    )


class EvaluationResult(BaseModel):
    """Evaluation result - a 0-1 score and the list of issues"""

    score: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Quality score: 1 is perfect, 0.9+ excellent, 0.7-0.9 good, "
                    "0.5-0.7 acceptable, below 0.5 poor"
    )
    issues: List[TranslationIssue] = Field(
        default_factory=list,
        description="Specific issues found in the translation"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "score": 0.82,
                "issues": [
                    {
                        "type": "terminology",
                        "description": "'pull request' should be '풀 리퀘스트'",
                        "location": {"start": 10, "end": 15}
                    }
                ]
            }
        }
