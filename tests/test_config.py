"""
Config tests - YAML loader, pipeline defaults and language names
"""

import os
import tempfile
import unittest

from folio.utils.config import (
    ConfigLoader,
    PipelineConfig,
    get_language_name,
    get_pipeline_config,
    load_pipeline_config,
)
from folio.utils.strands_utils import get_config as get_strands_config


class TestConfigLoader(unittest.TestCase):

    def test_bundled_pipeline_config(self):
        config = get_pipeline_config()
        self.assertEqual(config.max_tokens, 4096)
        self.assertEqual(config.max_tool_steps, 10)
        self.assertEqual(config.target_score, 0.85)
        self.assertEqual(config.max_iterations, 3)
        self.assertEqual(config.boundary_size, 200)
        self.assertEqual(config.max_terms_per_chunk, 10)

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(FileNotFoundError):
                ConfigLoader(tmp).load("pipeline")

    def test_missing_pipeline_falls_back_to_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertLogs("folio.utils.config", level="WARNING"):
                config = load_pipeline_config(ConfigLoader(tmp))
        self.assertEqual(config, PipelineConfig())

    def test_partial_pipeline_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            with open(os.path.join(tmp, "pipeline.yaml"), "w", encoding="utf-8") as f:
                f.write("refinement:\n  target_score: 0.9\n")
            config = load_pipeline_config(ConfigLoader(tmp))
        self.assertEqual(config.target_score, 0.9)
        self.assertEqual(config.max_iterations, 3)

    def test_models_config(self):
        config = get_strands_config()
        self.assertIn("translator", config.models)
        self.assertIn("evaluator", config.models)


class TestLanguageNames(unittest.TestCase):

    def test_lookup(self):
        self.assertEqual(get_language_name("ko"), "Korean")
        self.assertEqual(get_language_name("pt-BR"), "Brazilian Portuguese")
        self.assertEqual(get_language_name("pt_BR"), "Brazilian Portuguese")
        self.assertEqual(get_language_name("ko-KR"), "Korean")
        self.assertEqual(get_language_name("KO"), "Korean")

    def test_unknown_tag_is_returned(self):
        self.assertEqual(get_language_name("xx-YY"), "xx-YY")


if __name__ == "__main__":
    unittest.main()
