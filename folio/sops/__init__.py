"""
Standard Operating Procedures for the translation pipeline

- SelectionSOP: best-of-N ranking
- RefinementSOP: evaluate → fix → re-evaluate loop and boundary checks
"""

from .selection import SelectionSOP, select_best
from .refinement import (
    RefinementConfig,
    RefinementSOP,
    evaluate_boundary,
    format_issues_for_prompt,
    parse_boundary_response,
    refine_chunks,
)

__all__ = [
    "SelectionSOP",
    "select_best",
    "RefinementConfig",
    "RefinementSOP",
    "evaluate_boundary",
    "format_issues_for_prompt",
    "parse_boundary_response",
    "refine_chunks",
]
