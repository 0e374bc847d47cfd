"""
Context tools - Gathering required context and exposing passive sources as tools

Required sources run once, in order, before translation. Passive sources
become ContextTool values that a LanguageModel implementation can offer to
the model (see strands_utils.to_strands_tool).
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from folio.errors import InvalidArgumentError
from folio.models.context import ContextResult, PassiveContextSource, RequiredContextSource
from folio.utils.cancellation import CancellationToken, check_cancelled

logger = logging.getLogger(__name__)

ContextSource = Union[RequiredContextSource, PassiveContextSource]


@dataclass(frozen=True)
class ContextTool:
    """
    Provider-neutral tool definition.

    invoke(params) validates the raw params and returns the gathered content.
    """
    name: str
    description: str
    input_schema: Dict[str, Any]
    invoke: Callable[[Dict[str, Any]], Awaitable[str]]


async def gather_required_context(
    sources: Sequence[ContextSource],
    cancellation: Optional[CancellationToken] = None
) -> List[ContextResult]:
    """
    Gather every required source, sequentially and in order.

    Passive sources are skipped. Source failures propagate.

    Raises:
        AbortedError: If cancelled before a source is gathered
    """
    results: List[ContextResult] = []
    for source in sources:
        if source.mode != "required":
            continue
        check_cancelled(cancellation)
        logger.info(f"Gathering context from '{source.name}'")
        results.append(await source.gather(cancellation))
    return results


def combine_context_results(results: Sequence[ContextResult]) -> str:
    """Join non-blank contents with blank lines"""
    return "\n\n".join(r.content for r in results if r.content.strip())


def _make_invoke(
    source: PassiveContextSource,
    cancellation: Optional[CancellationToken]
) -> Callable[[Dict[str, Any]], Awaitable[str]]:
    async def invoke(params: Dict[str, Any]) -> str:
        check_cancelled(cancellation)
        try:
            parsed = source.parameters.model_validate(params)
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid parameters for '{source.name}': {e}") from e
        logger.info(f"Model requested context from '{source.name}'")
        result = await source.gather(parsed, cancellation)
        return result.content

    return invoke


def create_tool_set(
    sources: Sequence[ContextSource],
    cancellation: Optional[CancellationToken] = None
) -> List[ContextTool]:
    """
    Turn passive sources into tools; required sources are ignored.

    The input schema is the JSON schema of the source's parameters model.
    """
    tools: List[ContextTool] = []
    for source in sources:
        if source.mode != "passive":
            continue
        tools.append(ContextTool(
            name=source.name,
            description=source.description,
            input_schema=source.parameters.model_json_schema(),
            invoke=_make_invoke(source, cancellation)
        ))
    return tools
