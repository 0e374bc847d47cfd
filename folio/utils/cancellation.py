"""
Cooperative cancellation

Every long-running operation takes an optional CancellationToken and calls
raise_if_cancelled() before each unit of work (section, chunk, refinement
iteration, boundary check).

Usage:
    token = CancellationToken()
    task = asyncio.create_task(translate(model, "ko", text, TranslateOptions(cancellation=token)))
    token.cancel("user pressed stop")
"""

from typing import Optional

from folio.errors import AbortedError


class CancellationToken:
    """A one-shot cancellation flag shared between a caller and the pipeline"""

    def __init__(self):
        self._cancelled = False
        self._reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        """Mark the token as cancelled. Later calls keep the first reason."""
        if not self._cancelled:
            self._cancelled = True
            self._reason = reason

    def raise_if_cancelled(self) -> None:
        """
        Raise AbortedError if the token has been cancelled.

        Raises:
            AbortedError: If cancel() was called
        """
        if self._cancelled:
            raise AbortedError(self._reason or "The operation was aborted")


def check_cancelled(cancellation: Optional[CancellationToken]) -> None:
    """raise_if_cancelled() for an optional token"""
    if cancellation is not None:
        cancellation.raise_if_cancelled()
