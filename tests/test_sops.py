"""
SOP tests - best-of-N selection and iterative refinement
"""

import unittest

from folio.errors import AbortedError, ChunkCountMismatchError, InvalidArgumentError, UpstreamError
from folio.models.candidate import Candidate
from folio.models.evaluation import EvaluationResult, IssueType, TranslationIssue
from folio.models.glossary import GlossaryEntry
from folio.models.refinement import BoundaryIssueType
from folio.sops import (
    RefinementConfig,
    RefinementSOP,
    SelectionSOP,
    evaluate_boundary,
    parse_boundary_response,
    refine_chunks,
    select_best,
)
from folio.utils.cancellation import CancellationToken

from tests.fakes import FakeLanguageModel, scores


class TestSelection(unittest.IsolatedAsyncioTestCase):

    async def test_highest_score_wins(self):
        judge = FakeLanguageModel(structured={"EvaluationResult": scores(0.5, 0.9, 0.7)})
        result = await select_best(judge, "src", [Candidate("a"), Candidate("b"), Candidate("c")], "ko")

        self.assertEqual(result.best.text, "b")
        self.assertEqual([c.text for c in result.all], ["b", "c", "a"])
        self.assertEqual([c.rank for c in result.all], [1, 2, 3])

    async def test_ties_keep_submission_order(self):
        for _ in range(3):
            judge = FakeLanguageModel(structured={"EvaluationResult": scores(0.8, 0.8, 0.9, 0.8)})
            candidates = [Candidate("first"), Candidate("second"), Candidate("best"), Candidate("last")]
            result = await select_best(judge, "src", candidates, "ko")
            self.assertEqual([c.text for c in result.all], ["best", "first", "second", "last"])

    async def test_equal_pair_first_submitted_is_rank_one(self):
        judge = FakeLanguageModel(structured={"EvaluationResult": scores(0.7, 0.7)})
        result = await select_best(judge, "src", [Candidate("x"), Candidate("y")], "ko")
        self.assertEqual(result.best.text, "x")
        self.assertEqual(result.best.rank, 1)

    async def test_empty_candidates(self):
        judge = FakeLanguageModel()
        with self.assertRaises(InvalidArgumentError):
            await select_best(judge, "src", [], "ko")
        self.assertEqual(judge.call_count, 0)

    async def test_metadata_and_issues_carried(self):
        issue = TranslationIssue(type=IssueType.STYLE, description="Too casual")
        judge = FakeLanguageModel(structured={"EvaluationResult": [EvaluationResult(score=0.4, issues=[issue])]})
        result = await SelectionSOP(judge).select("src", [Candidate("a", metadata={"model": "m"})], "ko")
        self.assertEqual(result.best.metadata, {"model": "m"})
        self.assertEqual(result.best.issues, [issue])

    async def test_cancelled_between_evaluations(self):
        token = CancellationToken()
        judge = FakeLanguageModel(structured={"EvaluationResult": scores(0.5)})

        original = judge.generate_structured

        async def cancel_after_first(*args, **kwargs):
            result = await original(*args, **kwargs)
            token.cancel()
            return result

        judge.generate_structured = cancel_after_first
        with self.assertRaises(AbortedError):
            await select_best(judge, "src", [Candidate("a"), Candidate("b")], "ko", cancellation=token)
        self.assertEqual(len(judge.structured_calls), 1)


def issue(description):
    return TranslationIssue(type=IssueType.ACCURACY, description=description)


class TestRefinement(unittest.IsolatedAsyncioTestCase):

    async def test_mismatch_fails_before_any_call(self):
        model = FakeLanguageModel()
        with self.assertRaises(ChunkCountMismatchError) as ctx:
            await refine_chunks(model, ["a", "b"], ["x"], "ko")
        self.assertIsInstance(ctx.exception, InvalidArgumentError)
        self.assertEqual(str(ctx.exception), "Chunk count mismatch: 2 original vs 1 translated")
        self.assertEqual(model.call_count, 0)

    async def test_converged_chunk_is_untouched(self):
        model = FakeLanguageModel(structured={"EvaluationResult": scores(0.95)})
        result = await refine_chunks(model, ["a"], ["x"], "ko")

        self.assertEqual(result.chunks, ["x"])
        self.assertEqual(result.scores, [0.95])
        self.assertEqual(result.total_iterations, 0)
        self.assertIsNone(result.boundary_evaluations)
        self.assertEqual(model.text_calls, [])

    async def test_fix_loop_until_target(self):
        evaluations = [
            EvaluationResult(score=0.5, issues=[issue("Missing clause")]),
            EvaluationResult(score=0.7, issues=[issue("Wrong tense")]),
            EvaluationResult(score=0.9, issues=[]),
        ]
        model = FakeLanguageModel(
            texts=["  second draft \n", "third draft"],
            structured={"EvaluationResult": evaluations}
        )
        glossary = [GlossaryEntry(original="chunk", translated="청크")]

        result = await refine_chunks(model, ["source"], ["first draft"], "ko", glossary=glossary)

        self.assertEqual(result.chunks, ["third draft"])
        self.assertEqual(result.scores, [0.9])
        self.assertEqual(result.total_iterations, 2)
        self.assertEqual(result.tokens_used, 20)

        first, second = result.history
        self.assertEqual((first.iteration, first.before, first.after), (1, "first draft", "second draft"))
        self.assertEqual((first.score_before, first.score_after), (0.5, 0.7))
        self.assertEqual([i.description for i in first.issues_addressed], ["Missing clause"])
        self.assertEqual((second.iteration, second.before, second.after), (2, "second draft", "third draft"))

        fix_call = model.text_calls[0]
        self.assertIn("- [accuracy] Missing clause", fix_call["system_prompt"])
        self.assertIn('"chunk" → "청크"', fix_call["system_prompt"])
        self.assertIn("## Current Translation\n\nfirst draft", fix_call["user_prompt"])

    async def test_exhausted_after_max_iterations(self):
        model = FakeLanguageModel(structured={"EvaluationResult": scores(0.1, 0.2, 0.3)})
        config = RefinementConfig(max_iterations=2, evaluate_boundaries=False)

        result = await refine_chunks(model, ["a"], ["x"], "ko", config=config)

        self.assertEqual(result.total_iterations, 2)
        self.assertEqual(result.scores, [0.3])
        self.assertEqual(len(model.text_calls), 2)

    async def test_iterations_are_bounded(self):
        model = FakeLanguageModel(structured={"EvaluationResult": scores(*[0.0] * 20)})
        config = RefinementConfig(max_iterations=3, evaluate_boundaries=False)

        result = await refine_chunks(model, ["a", "b", "c"], ["x", "y", "z"], "ko", config=config)

        self.assertLessEqual(result.total_iterations, 3 * 3)
        self.assertEqual(result.total_iterations, 9)
        for i in range(3):
            per_chunk = [h.iteration for h in result.history if h.chunk_index == i]
            self.assertEqual(per_chunk, [1, 2, 3])

    async def test_zero_iterations_only_evaluates(self):
        model = FakeLanguageModel(structured={"EvaluationResult": scores(0.2)})
        config = RefinementConfig(max_iterations=0, evaluate_boundaries=False)
        result = await refine_chunks(model, ["a"], ["x"], "ko", config=config)
        self.assertEqual(result.chunks, ["x"])
        self.assertEqual(result.total_iterations, 0)

    async def test_boundaries_evaluated_for_multiple_chunks(self):
        boundary_json = (
            '```json\n{"score": 0.6, "issues": '
            '[{"type": "reference", "description": "Pronoun changes"}]}\n```'
        )
        model = FakeLanguageModel(
            texts=[boundary_json],
            structured={"EvaluationResult": scores(0.9, 0.9)}
        )

        with self.assertLogs("folio.sops.refinement", level="WARNING"):
            result = await refine_chunks(model, ["a" * 300, "b" * 300], ["x" * 300, "y" * 300], "ko")

        self.assertEqual(len(result.boundary_evaluations), 1)
        boundary = result.boundary_evaluations[0]
        self.assertEqual(boundary.chunk_index, 0)
        self.assertEqual(boundary.score, 0.6)
        self.assertEqual(boundary.issues[0].type, BoundaryIssueType.REFERENCE)
        # Boundary issues are reported only
        self.assertEqual(result.chunks, ["x" * 300, "y" * 300])

        prompt = model.text_calls[0]["user_prompt"]
        self.assertIn("## End of chunk 1 (original)\n" + "a" * 200 + "\n", prompt)
        self.assertNotIn("a" * 201, prompt)
        self.assertIn("## Start of chunk 2 (translated to Korean)\n" + "y" * 200 + "\n", prompt)

    async def test_cancelled_before_chunk(self):
        token = CancellationToken()
        token.cancel()
        model = FakeLanguageModel()
        with self.assertRaises(AbortedError):
            await refine_chunks(model, ["a"], ["x"], "ko", cancellation=token)
        self.assertEqual(model.call_count, 0)

    async def test_config_from_pipeline(self):
        config = RefinementConfig.from_pipeline_config(max_iterations=5)
        self.assertEqual(config.target_score, 0.85)
        self.assertEqual(config.max_iterations, 5)
        self.assertEqual(config.boundary_size, 200)


class TestBoundaryEvaluation(unittest.IsolatedAsyncioTestCase):

    async def test_unparseable_response_passes(self):
        model = FakeLanguageModel(texts=["The boundary looks fine to me."])
        with self.assertLogs("folio.sops.refinement", level="WARNING"):
            result = await evaluate_boundary(model, "x", "y", "a", "b", "ko")
        self.assertEqual(result.score, 1.0)
        self.assertEqual(result.issues, [])

    async def test_upstream_failure_passes(self):
        model = FakeLanguageModel(texts=[UpstreamError("timeout")])
        with self.assertLogs("folio.sops.refinement", level="WARNING"):
            result = await evaluate_boundary(model, "x", "y", "a", "b", "ko")
        self.assertEqual(result.score, 1.0)

    async def test_score_is_clamped(self):
        model = FakeLanguageModel(texts=['{"score": 1.7, "issues": []}'])
        result = await evaluate_boundary(model, "x", "y", "a", "b", "ko")
        self.assertEqual(result.score, 1.0)

    async def test_sop_reports_chunk_index(self):
        model = FakeLanguageModel(texts=['{"score": 0.8}'])
        result = await RefinementSOP(model).evaluate_boundary(4, "x", "y", "a", "b", "ko")
        self.assertEqual(result.chunk_index, 4)
        self.assertEqual(result.score, 0.8)

    async def test_malformed_issue_keeps_score(self):
        judgment = (
            '{"score": 0.3, "issues": ['
            '{"type": "grammar", "description": "Tense shifts at the seam"}, '
            '{"type": "reference", "description": "Pronoun has no antecedent"}, '
            '{"type": "style"}]}'
        )
        model = FakeLanguageModel(texts=[judgment])
        result = await evaluate_boundary(model, "x", "y", "a", "b", "ko")
        self.assertEqual(result.score, 0.3)
        self.assertEqual(
            [(issue.type, issue.description) for issue in result.issues],
            [
                (BoundaryIssueType.COHERENCE, "Tense shifts at the seam"),
                (BoundaryIssueType.REFERENCE, "Pronoun has no antecedent"),
            ]
        )

    async def test_missing_score_passes(self):
        model = FakeLanguageModel(texts=['{"issues": [{"type": "style", "description": "Shift"}]}'])
        with self.assertLogs("folio.sops.refinement", level="WARNING"):
            result = await evaluate_boundary(model, "x", "y", "a", "b", "ko")
        self.assertEqual(result.score, 1.0)
        self.assertEqual(result.issues, [])

    def test_parse_boundary_response(self):
        self.assertEqual(parse_boundary_response('Sure: {"score": 0.5}'), {"score": 0.5})
        self.assertEqual(parse_boundary_response('```\n{"score": 0.4}\n```'), {"score": 0.4})
        self.assertIsNone(parse_boundary_response("no json"))
        self.assertIsNone(parse_boundary_response("{broken"))


if __name__ == "__main__":
    unittest.main()
