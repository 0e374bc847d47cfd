"""
Glossary - Term mappings applied consistently across a translation

A glossary is a plain list of GlossaryEntry values keyed by `original`
(case-sensitive). merge_glossaries() resolves collisions last-write-wins.

Usage:
    glossary = merge_glossaries(
        load_glossary_file("glossary.yaml"),
        [proper_noun("Folio"), GlossaryEntry(original="chunk", translated="청크")]
    )
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from folio.errors import InvalidArgumentError

logger = logging.getLogger(__name__)


class GlossaryEntry(BaseModel):
    """A single term mapping"""

    original: str = Field(..., description="The original term in the source text")
    translated: str = Field(..., description="The translated term")
    context: Optional[str] = Field(
        default=None,
        description="Optional context for when to use this translation"
    )

    @field_validator("original", "translated")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("glossary terms must be non-empty")
        return value

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "original": "pull request",
                "translated": "풀 리퀘스트",
                "context": "Git hosting"
            }
        }


Glossary = List[GlossaryEntry]


def keep(term: str, context: Optional[str] = None) -> GlossaryEntry:
    """Entry that keeps a term untranslated"""
    return GlossaryEntry(original=term, translated=term, context=context)


def proper_noun(term: str) -> GlossaryEntry:
    """Entry for a proper noun, kept as-is"""
    return keep(term, "proper noun")


def merge_glossaries(*glossaries: Sequence[GlossaryEntry]) -> Glossary:
    """
    Merge glossaries, later entries replacing earlier ones with the same original.

    Keys keep the position where they first appeared; only the mapping is
    replaced.

    Args:
        *glossaries: Glossaries in increasing priority order

    Returns:
        Merged glossary with at most one entry per original
    """
    merged: Dict[str, GlossaryEntry] = {}
    for glossary in glossaries:
        for entry in glossary:
            merged[entry.original] = entry
    return list(merged.values())


def parse_glossary(data: object, source: str = "<glossary>") -> Glossary:
    """
    Validate raw glossary data (a list of mappings).

    Raises:
        InvalidArgumentError: If data is not a list or an entry is malformed
    """
    if not isinstance(data, list):
        raise InvalidArgumentError(f"{source}: glossary must be a list of entries")

    entries: Glossary = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise InvalidArgumentError(f"{source}: entry {i} is not a mapping")
        try:
            entries.append(GlossaryEntry(**item))
        except ValidationError as e:
            raise InvalidArgumentError(f"{source}: entry {i} is invalid: {e}") from e
    return entries


def load_glossary_file(path: Union[str, Path]) -> Glossary:
    """
    Load a glossary from a JSON or YAML file.

    Args:
        path: .json, .yaml or .yml file holding a list of
              {original, translated, context?} mappings

    Returns:
        Parsed glossary

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidArgumentError: If the file content is not a valid glossary
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InvalidArgumentError(f"{path}: cannot parse glossary: {e}") from e

    entries = parse_glossary(data, source=str(path))
    logger.info(f"Loaded {len(entries)} glossary entries from {path}")
    return entries
