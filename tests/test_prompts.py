"""
Prompt tests - template rendering and translation prompt builder
"""

import unittest

from folio.models.chunk import MediaType, TranslationTone
from folio.models.glossary import GlossaryEntry
from folio.prompts import (
    PromptTemplate,
    TranslatedChunk,
    build_system_prompt,
    build_user_prompt,
    build_user_prompt_with_context,
    extract_title,
    get_template_loader,
    load_prompt,
)


class TestPromptTemplate(unittest.TestCase):

    def test_frontmatter_and_variables(self):
        template = PromptTemplate("---\nname: t\n---\nHello {{ who }} and {{who}} in {{ place }}\n")
        self.assertEqual(template.metadata, {"name": "t"})
        self.assertEqual(template.variables, ["who", "place"])
        self.assertEqual(template.render(who="Ann", place="Oslo"), "Hello Ann and Ann in Oslo")

    def test_single_pass_and_unknown_variables(self):
        template = PromptTemplate("{{ a }} {{ b }}")
        self.assertEqual(template.render(a="{{ b }}"), "{{ b }} {{ b }}")

    def test_bundled_templates(self):
        names = get_template_loader().list_templates()
        for name in ("evaluator", "refiner", "boundary_evaluator", "term_extractor"):
            self.assertIn(name, names)

    def test_evaluator_prompt_renders_every_variable(self):
        prompt = load_prompt(
            "evaluator",
            source_language="English",
            target_language="Korean",
            glossary_section=""
        )
        self.assertIn("Korean", prompt)
        self.assertNotIn("{{", prompt)

    def test_missing_template(self):
        with self.assertRaises(FileNotFoundError):
            get_template_loader().load("does_not_exist")


class TestSystemPrompt(unittest.TestCase):

    def test_minimal(self):
        prompt = build_system_prompt("ko")
        self.assertTrue(prompt.startswith("You are a professional translator."))
        self.assertIn("Translate the given text into Korean.", prompt)
        self.assertNotIn("source language", prompt)
        self.assertNotIn("glossary", prompt)

    def test_clause_order(self):
        glossary = [GlossaryEntry(original="chunk", translated="청크", context="docs")]
        prompt = build_system_prompt(
            "ko",
            source_language="en",
            tone=TranslationTone.FORMAL,
            domain="medical",
            media_type=MediaType.HTML,
            context="A user manual.",
            glossary=glossary
        )
        markers = [
            "You are a professional translator.",
            "into Korean",
            "Preserve the original meaning",
            "The source language is English.",
            "Use a formal tone",
            "medical domain",
            "formatted as HTML",
            "Additional context: A user manual.",
            '- "chunk" → "청크" (docs)',
        ]
        positions = [prompt.index(m) for m in markers]
        self.assertEqual(positions, sorted(positions))

    def test_plain_text_has_no_format_clause(self):
        self.assertNotIn("formatted as", build_system_prompt("ko", media_type=MediaType.PLAIN))
        self.assertIn("formatted as Markdown", build_system_prompt("ko", media_type="text/markdown"))

    def test_empty_glossary_is_omitted(self):
        self.assertNotIn("glossary", build_system_prompt("ko", glossary=[]))

    def test_deterministic(self):
        self.assertEqual(build_system_prompt("pt-BR", tone="casual"), build_system_prompt("pt-BR", tone="casual"))
        self.assertIn("Brazilian Portuguese", build_system_prompt("pt-BR"))


class TestUserPrompt(unittest.TestCase):

    def test_plain_and_title(self):
        self.assertEqual(build_user_prompt("Body"), "Body")
        self.assertEqual(build_user_prompt("Body", title="Guide"), "Title: Guide\n\nBody")

    def test_previous_chunks(self):
        prompt = build_user_prompt_with_context(
            "Third",
            [TranslatedChunk("First", "Premier"), TranslatedChunk("Second", "Deuxième")]
        )
        self.assertIn("Maintain consistency in terminology, style, and tone", prompt)
        self.assertLess(prompt.index("[Previous section 1]"), prompt.index("[Previous section 2]"))
        self.assertIn("Original: First\nTranslation: Premier", prompt)
        self.assertTrue(prompt.endswith("[Current section to translate]\nThird"))

    def test_no_previous_chunks(self):
        self.assertEqual(build_user_prompt_with_context("Text", []), "Text")

    def test_extract_title(self):
        self.assertEqual(extract_title("Title: 안내서\n\n본문"), "안내서")
        self.assertEqual(extract_title("# 안내서\n본문"), "# 안내서")
        self.assertIsNone(extract_title("\nBody"))


if __name__ == "__main__":
    unittest.main()
