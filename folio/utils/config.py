"""
Configuration Loader - Load YAML configuration files
"""

import logging
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional
from functools import lru_cache

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    Loader for YAML configuration files.

    Usage:
        config = ConfigLoader()
        pipeline = config.load("pipeline")
        languages = config.load("languages")
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the config loader.

        Args:
            config_dir: Path to config directory.
                        Defaults to folio/config/ inside the package.
        """
        if config_dir is None:
            self.config_dir = Path(__file__).parent.parent / "config"
        else:
            self.config_dir = Path(config_dir)

    @lru_cache(maxsize=32)
    def load(self, name: str) -> Dict[str, Any]:
        """
        Load a configuration file by name.

        Args:
            name: Config file name (without .yaml extension)

        Returns:
            Parsed configuration dict (empty for an empty file)

        Raises:
            FileNotFoundError: If config file not found
        """
        candidates = [
            self.config_dir / f"{name}.yaml",
            self.config_dir / f"{name}.yml",
            self.config_dir / name,
        ]

        for path in candidates:
            if path.is_file():
                with open(path, "r", encoding="utf-8") as f:
                    return yaml.safe_load(f) or {}

        raise FileNotFoundError(
            f"Config file '{name}' not found in {self.config_dir}"
        )

    def get_languages(self) -> Dict[str, str]:
        """Language tag to English name table (empty if missing)"""
        try:
            return self.load("languages")
        except FileNotFoundError:
            logger.warning(f"languages.yaml not found in {self.config_dir}, using raw tags")
            return {}

    def clear_cache(self):
        """Clear the config cache"""
        self.load.cache_clear()


# Singleton instance
_default_loader: Optional[ConfigLoader] = None


def get_config_loader(config_dir: Optional[str] = None) -> ConfigLoader:
    """Get or create the default config loader singleton"""
    global _default_loader
    if _default_loader is None:
        _default_loader = ConfigLoader(config_dir)
    return _default_loader


def get_language_name(tag: str) -> str:
    """
    Resolve a BCP 47 tag to an English language name for prompts.

    Tries the exact tag, then the base subtag ("pt-BR" → "pt").
    Unknown tags are returned unchanged.

    Example:
        get_language_name("ko")     # "Korean"
        get_language_name("pt-BR")  # "Brazilian Portuguese"
        get_language_name("xx-YY")  # "xx-YY"
    """
    languages = get_config_loader().get_languages()
    normalized = tag.replace("_", "-")
    if normalized in languages:
        return languages[normalized]
    base = normalized.split("-")[0]
    if base in languages:
        return languages[base]
    # Case-insensitive fallback: "EN-us", "Ko"
    lowered = {k.lower(): v for k, v in languages.items()}
    return lowered.get(normalized.lower(), lowered.get(base.lower(), tag))


# =============================================================================
# Pipeline defaults
# =============================================================================

@dataclass
class PipelineConfig:
    """Defaults applied when the caller leaves an option unset"""
    max_tokens: int = 4096
    max_tool_steps: int = 10
    target_score: float = 0.85
    max_iterations: int = 3
    boundary_size: int = 200
    max_terms_per_chunk: int = 10


def load_pipeline_config(loader: Optional[ConfigLoader] = None) -> PipelineConfig:
    """
    Load pipeline.yaml into a PipelineConfig.

    Falls back to built-in defaults when the file is missing.
    """
    loader = loader or get_config_loader()
    try:
        raw = loader.load("pipeline")
    except FileNotFoundError:
        logger.warning(f"pipeline.yaml not found in {loader.config_dir}, using defaults")
        return PipelineConfig()

    defaults = PipelineConfig()
    chunking = raw.get("chunking", {})
    translation = raw.get("translation", {})
    refinement = raw.get("refinement", {})
    dynamic_glossary = raw.get("dynamic_glossary", {})

    return PipelineConfig(
        max_tokens=chunking.get("max_tokens", defaults.max_tokens),
        max_tool_steps=translation.get("max_tool_steps", defaults.max_tool_steps),
        target_score=refinement.get("target_score", defaults.target_score),
        max_iterations=refinement.get("max_iterations", defaults.max_iterations),
        boundary_size=refinement.get("boundary_size", defaults.boundary_size),
        max_terms_per_chunk=dynamic_glossary.get(
            "max_terms_per_chunk", defaults.max_terms_per_chunk
        ),
    )


_pipeline_config: Optional[PipelineConfig] = None


def get_pipeline_config() -> PipelineConfig:
    """Pipeline config singleton"""
    global _pipeline_config
    if _pipeline_config is None:
        _pipeline_config = load_pipeline_config()
    return _pipeline_config
