"""
Facade tests - translate() end to end with scripted models
"""

import unittest

from pydantic import BaseModel

from folio import (
    AbortedError,
    BestOfNConfig,
    ContextResult,
    MediaType,
    PassiveContextSource,
    PreconditionError,
    RequiredContextSource,
    TranslateOptions,
    translate,
)
from folio.graph import DynamicGlossaryConfig
from folio.sops import RefinementConfig
from folio.tools.term_extractor_tool import ExtractedTerms
from folio.models.glossary import GlossaryEntry
from folio.utils.cancellation import CancellationToken

from tests.fakes import FakeLanguageModel, scores, word_count

DOCUMENT = "# Guide\n\nFirst part of the guide.\n\n## Details\n\nSecond part with details."


def echo(system_prompt, user_prompt):
    """Translation double: uppercase the current section"""
    marker = "[Current section to translate]\n"
    text = user_prompt.split(marker)[-1]
    return text.upper()


class QueryParams(BaseModel):
    query: str


class TestTranslate(unittest.IsolatedAsyncioTestCase):

    async def test_single_model(self):
        model = FakeLanguageModel(default_text=echo)
        result = await translate(model, "ko", DOCUMENT, TranslateOptions(count_tokens=word_count, max_tokens=8))

        self.assertEqual(
            result.text,
            "# GUIDE\n\nFIRST PART OF THE GUIDE.\n\n## DETAILS\n\nSECOND PART WITH DETAILS."
        )
        self.assertEqual(len(model.text_calls), 2)
        self.assertEqual(result.tokens_used, 20)
        self.assertIsNone(result.quality_score)
        self.assertIsNone(result.selected_model)
        self.assertIsNone(result.title)
        self.assertGreaterEqual(result.processing_time, 0)

    async def test_no_models(self):
        with self.assertRaises(PreconditionError):
            await translate([], "ko", DOCUMENT, TranslateOptions(count_tokens=word_count))

    async def test_chunking_disabled(self):
        model = FakeLanguageModel(default_text=echo)
        result = await translate(model, "ko", DOCUMENT, TranslateOptions(chunking=False))
        self.assertEqual(len(model.text_calls), 1)
        self.assertEqual(model.text_calls[0]["user_prompt"], DOCUMENT)
        self.assertEqual(result.text, DOCUMENT.upper())

    async def test_html_media_type(self):
        model = FakeLanguageModel(default_text=echo)
        options = TranslateOptions(media_type=MediaType.HTML, count_tokens=word_count)
        result = await translate(model, "ko", "<p>Hello, world!</p><script>x()</script>", options)
        self.assertEqual(result.text, "<P>HELLO, WORLD!</P>")
        self.assertIn("formatted as HTML", model.text_calls[0]["system_prompt"])

    async def test_best_of_n_needs_flag(self):
        primary = FakeLanguageModel("primary")
        secondary = FakeLanguageModel("secondary")

        await translate([primary, secondary], "ko", "Hello.", TranslateOptions(count_tokens=word_count))

        self.assertEqual(len(primary.text_calls), 1)
        self.assertEqual(secondary.text_calls, [])
        self.assertEqual(primary.structured_calls, [])

    async def test_best_of_n(self):
        primary = FakeLanguageModel("primary", texts=["weak"])
        secondary = FakeLanguageModel("secondary", texts=["strong"])
        judge = FakeLanguageModel("judge", structured={"EvaluationResult": scores(0.4, 0.9)})
        options = TranslateOptions(count_tokens=word_count, best_of_n=BestOfNConfig(evaluator_model=judge))

        result = await translate([primary, secondary], "ko", "Hello.", options)

        self.assertEqual(result.text, "strong")
        self.assertIs(result.selected_model, secondary)
        self.assertEqual(result.quality_score, 0.9)
        self.assertEqual(result.tokens_used, 20)

    async def test_best_of_n_flag_uses_primary_as_judge(self):
        primary = FakeLanguageModel("primary", structured={"EvaluationResult": scores(0.5, 0.7)})
        secondary = FakeLanguageModel("secondary")
        options = TranslateOptions(count_tokens=word_count, best_of_n=True)

        result = await translate([primary, secondary], "ko", "Hello.", options)

        self.assertIs(result.selected_model, secondary)
        self.assertEqual(len(primary.structured_calls), 2)

    async def test_title_is_extracted_only_when_given(self):
        model = FakeLanguageModel(texts=["Title: 안내서\n\n본문"])
        result = await translate(model, "ko", "Body", TranslateOptions(title="Guide", count_tokens=word_count))
        self.assertEqual(result.title, "안내서")
        self.assertEqual(model.text_calls[0]["user_prompt"], "Title: Guide\n\nBody")

    async def test_refinement_and_dynamic_glossary_flags(self):
        model = FakeLanguageModel(
            texts=["draft"],
            structured={
                "ExtractedTerms": [ExtractedTerms(terms=[GlossaryEntry(original="Body", translated="본문")])],
                "EvaluationResult": scores(0.95),
            }
        )
        options = TranslateOptions(count_tokens=word_count, refinement=True, dynamic_glossary=True)

        result = await translate(model, "ko", "Body", options)

        self.assertEqual(result.text, "draft")
        self.assertEqual(result.quality_score, 0.95)
        self.assertEqual(result.refinement_iterations, 0)
        self.assertEqual(result.accumulated_glossary, [GlossaryEntry(original="Body", translated="본문")])

    async def test_explicit_configs(self):
        model = FakeLanguageModel(structured={"EvaluationResult": scores(0.1, 0.2)})
        options = TranslateOptions(
            count_tokens=word_count,
            refinement=RefinementConfig(max_iterations=1),
            dynamic_glossary=DynamicGlossaryConfig(max_terms_per_chunk=1)
        )
        result = await translate(model, "ko", "Body", options)
        self.assertEqual(result.refinement_iterations, 1)
        self.assertEqual(result.quality_score, 0.2)

    async def test_context_sources(self):
        gathered = []

        async def style_guide(cancellation=None):
            gathered.append("style")
            return ContextResult(content="Use polite forms.")

        async def search(params, cancellation=None):
            return ContextResult(content=f"results for {params.query}")

        model = FakeLanguageModel()
        options = TranslateOptions(
            count_tokens=word_count,
            context="Product manual.",
            context_sources=[
                RequiredContextSource(name="style", description="Style guide", gather=style_guide),
                PassiveContextSource(name="search", description="Search docs", parameters=QueryParams, gather=search),
            ]
        )

        await translate(model, "ko", "Body", options)

        self.assertEqual(gathered, ["style"])
        call = model.text_calls[0]
        self.assertIn("Additional context: Product manual.\n\nUse polite forms.", call["system_prompt"])
        self.assertEqual([t.name for t in call["tools"]], ["search"])
        self.assertEqual(call["max_steps"], 10)

    async def test_progress_stages(self):
        reports = []
        model = FakeLanguageModel()
        options = TranslateOptions(count_tokens=word_count, refinement=True, on_progress=reports.append)

        await translate(model, "ko", "Body", options)

        stages = []
        for report in reports:
            if not stages or stages[-1] != report.stage:
                stages.append(report.stage)
        self.assertEqual(stages, ["gathering_context", "chunking", "prompting", "translating", "refining"])

    async def test_abort(self):
        token = CancellationToken()
        token.cancel("user stop")
        model = FakeLanguageModel()
        with self.assertRaises(AbortedError):
            await translate(model, "ko", DOCUMENT, TranslateOptions(count_tokens=word_count, cancellation=token))
        self.assertEqual(model.call_count, 0)


if __name__ == "__main__":
    unittest.main()
