"""
Context sources - External collaborators that supply background for a translation

Required sources are gathered once before translation starts. Passive sources
are exposed to the translating model as tools and gathered on demand.

Usage:
    async def fetch_readme(cancellation=None):
        return ContextResult(content=open("README.md").read())

    readme = RequiredContextSource(
        name="readme",
        description="Project README",
        gather=fetch_readme
    )

    class LookupParams(BaseModel):
        term: str

    async def lookup(params: LookupParams, cancellation=None):
        return ContextResult(content=dictionary[params.term])

    lookup_source = PassiveContextSource(
        name="lookup_term",
        description="Look up a term in the product dictionary",
        parameters=LookupParams,
        gather=lookup
    )
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from pydantic import BaseModel


@dataclass(frozen=True)
class ContextResult:
    """Content gathered from a context source"""
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RequiredContextSource:
    """Always gathered before translation. gather(cancellation) -> ContextResult"""
    name: str
    description: str
    gather: Callable[..., Awaitable[ContextResult]]
    mode: str = field(default="required", init=False)


@dataclass(frozen=True)
class PassiveContextSource:
    """
    Gathered at the model's discretion through a tool call.

    gather(params, cancellation) -> ContextResult, where params is an instance
    of the `parameters` pydantic model.
    """
    name: str
    description: str
    parameters: Type[BaseModel]
    gather: Callable[..., Awaitable[ContextResult]]
    mode: str = field(default="passive", init=False)
