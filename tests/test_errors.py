"""
Error taxonomy and cancellation token tests
"""

import unittest

from folio.errors import (
    AbortedError,
    ChunkCountMismatchError,
    FolioError,
    InvalidArgumentError,
    PreconditionError,
    StructuredOutputError,
    UpstreamError,
)
from folio.utils.cancellation import CancellationToken, check_cancelled


class TestErrors(unittest.TestCase):

    def test_hierarchy(self):
        self.assertTrue(issubclass(InvalidArgumentError, ValueError))
        self.assertTrue(issubclass(ChunkCountMismatchError, InvalidArgumentError))
        self.assertTrue(issubclass(StructuredOutputError, UpstreamError))
        for error in (AbortedError, UpstreamError, PreconditionError, InvalidArgumentError):
            self.assertTrue(issubclass(error, FolioError))

    def test_chunk_count_mismatch(self):
        error = ChunkCountMismatchError(3, 2)
        self.assertEqual(error.original_count, 3)
        self.assertEqual(error.translated_count, 2)
        self.assertEqual(str(error), "Chunk count mismatch: 3 original vs 2 translated")


class TestCancellationToken(unittest.TestCase):

    def test_not_cancelled(self):
        token = CancellationToken()
        self.assertFalse(token.cancelled)
        token.raise_if_cancelled()
        check_cancelled(token)
        check_cancelled(None)

    def test_cancel_keeps_first_reason(self):
        token = CancellationToken()
        token.cancel("first")
        token.cancel("second")
        self.assertTrue(token.cancelled)
        self.assertEqual(token.reason, "first")
        with self.assertRaises(AbortedError) as ctx:
            check_cancelled(token)
        self.assertEqual(str(ctx.exception), "first")


if __name__ == "__main__":
    unittest.main()
