"""
Prompt Template Loader - Load and render prompt templates from markdown files
"""

import re
import yaml
from typing import Dict, Any, Optional, List
from functools import lru_cache
from pathlib import Path


class PromptTemplate:
    """
    A prompt template loaded from a markdown file.

    Supports:
    - YAML frontmatter for metadata
    - {{ variable }} substitution
    """

    FRONTMATTER = re.compile(r'^---\s*\n(.*?)\n---\s*\n', re.DOTALL)
    VARIABLE = re.compile(r'\{\{\s*(\w+)\s*\}\}')

    def __init__(self, content: str, metadata: Optional[Dict[str, Any]] = None):
        """
        Initialize a prompt template.

        Args:
            content: Template content (may include frontmatter)
            metadata: Optional pre-parsed metadata
        """
        self.raw_content = content
        self._metadata = metadata
        self._content = None
        self._parse()

    def _parse(self):
        """Parse frontmatter and content"""
        if self._metadata is not None:
            self._content = self.raw_content
            return

        match = self.FRONTMATTER.match(self.raw_content)
        if match:
            self._metadata = yaml.safe_load(match.group(1)) or {}
            self._content = self.raw_content[match.end():]
        else:
            self._metadata = {}
            self._content = self.raw_content

    @property
    def metadata(self) -> Dict[str, Any]:
        """Template metadata from frontmatter"""
        return self._metadata

    @property
    def content(self) -> str:
        """Template content (without frontmatter)"""
        return self._content

    @property
    def variables(self) -> List[str]:
        """Variable names referenced in the template, in order of first use"""
        seen: List[str] = []
        for name in self.VARIABLE.findall(self._content):
            if name not in seen:
                seen.append(name)
        return seen

    def render(self, **kwargs) -> str:
        """
        Render the template in a single pass.

        Substituted values are not re-scanned, so text that happens to
        contain {{ ... }} is inserted verbatim. Unknown variables are left
        in place.

        Args:
            **kwargs: Variables to substitute

        Returns:
            Rendered template string (trailing whitespace stripped)
        """
        def substitute(match: re.Match) -> str:
            name = match.group(1)
            if name in kwargs:
                return str(kwargs[name])
            return match.group(0)

        return self.VARIABLE.sub(substitute, self._content).rstrip()


class PromptTemplateLoader:
    """
    Loader for prompt templates from the prompts directory.

    Usage:
        loader = PromptTemplateLoader()
        template = loader.load("evaluator")
        prompt = template.render(source_language="Korean", target_language="English")
    """

    def __init__(self, prompts_dir: Optional[str] = None):
        """
        Args:
            prompts_dir: Path to prompts directory.
                         Defaults to folio/prompts/ (this directory).
        """
        if prompts_dir is None:
            self.prompts_dir = Path(__file__).parent
        else:
            self.prompts_dir = Path(prompts_dir)

    @lru_cache(maxsize=32)
    def load(self, name: str) -> PromptTemplate:
        """
        Load a prompt template by name.

        Raises:
            FileNotFoundError: If template file not found
        """
        candidates = [
            self.prompts_dir / f"{name}.md",
            self.prompts_dir / name,
            self.prompts_dir / f"{name}.txt"
        ]

        for path in candidates:
            if path.is_file():
                with open(path, "r", encoding="utf-8") as f:
                    return PromptTemplate(f.read())

        raise FileNotFoundError(
            f"Prompt template '{name}' not found. "
            f"Searched in: {self.prompts_dir}"
        )

    def list_templates(self) -> List[str]:
        """List all available prompt templates"""
        return sorted(path.stem for path in self.prompts_dir.glob("*.md"))

    def clear_cache(self):
        """Clear the template cache"""
        self.load.cache_clear()


# Singleton instance
_default_loader: Optional[PromptTemplateLoader] = None


def get_template_loader(prompts_dir: Optional[str] = None) -> PromptTemplateLoader:
    """Get or create the default template loader singleton"""
    global _default_loader
    if _default_loader is None:
        _default_loader = PromptTemplateLoader(prompts_dir)
    return _default_loader


def load_prompt(name: str, **kwargs) -> str:
    """
    Load and render a prompt template.

    Args:
        name: Template name
        **kwargs: Variables to substitute

    Returns:
        Rendered prompt string
    """
    return get_template_loader().load(name).render(**kwargs)
