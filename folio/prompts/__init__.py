"""
Prompt templates, template loader and translation prompt builder
"""

from .template import (
    PromptTemplate,
    PromptTemplateLoader,
    get_template_loader,
    load_prompt,
)
from .builder import (
    TranslatedChunk,
    build_system_prompt,
    build_user_prompt,
    build_user_prompt_with_context,
    extract_title,
    render_glossary_lines,
)

__all__ = [
    "PromptTemplate",
    "PromptTemplateLoader",
    "get_template_loader",
    "load_prompt",
    "TranslatedChunk",
    "build_system_prompt",
    "build_user_prompt",
    "build_user_prompt_with_context",
    "extract_title",
    "render_glossary_lines",
]
