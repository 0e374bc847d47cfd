"""
Error taxonomy for the translation pipeline

Every failure raised by folio derives from FolioError so callers can catch
pipeline errors in one place, while InvalidArgumentError also derives from
ValueError to match the usual Python contract for bad arguments.
"""


class FolioError(Exception):
    """Base class for all pipeline errors"""


class InvalidArgumentError(FolioError, ValueError):
    """Bad input: empty candidate list, malformed glossary entry, etc."""


class ChunkCountMismatchError(InvalidArgumentError):
    """Original and translated chunk lists have different lengths"""

    def __init__(self, original_count: int, translated_count: int):
        self.original_count = original_count
        self.translated_count = translated_count
        super().__init__(
            f"Chunk count mismatch: {original_count} original "
            f"vs {translated_count} translated"
        )


class AbortedError(FolioError):
    """Cancellation was observed before or during an operation"""


class UpstreamError(FolioError):
    """A model invocation was rejected, timed out or failed"""


class StructuredOutputError(UpstreamError):
    """A model returned output that does not conform to the requested schema"""


class PreconditionError(FolioError):
    """The pipeline was started in a state it cannot run from"""
