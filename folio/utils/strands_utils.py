"""
Strands Agent utilities - The model capability used by every pipeline stage

The pipeline talks to models only through the LanguageModel protocol:

- generate_text(system_prompt, user_prompt, tools, max_steps, cancellation)
      -> TextGenerationResult(text, tokens_used, latency_ms)
- generate_structured(schema, system_prompt, user_prompt, cancellation)
      -> instance of the pydantic schema

StrandsLanguageModel implements it on Amazon Bedrock through the Strands SDK:
- prompt caching on the system prompt
- throttling detection with exponential backoff
- token usage from the agent's event loop metrics
- passive context tools exposed as Strands tools with a per-call step budget

Any other provider only needs the two coroutine methods above.
"""

import logging
import traceback
import asyncio
import time
import yaml
import os
from typing import Optional, Dict, Any, List, Type, TypeVar, Protocol, runtime_checkable
from dataclasses import dataclass, field

from pydantic import BaseModel
from strands import Agent
from strands.models import BedrockModel
from strands.tools.tools import PythonAgentTool
from strands.types.content import SystemContentBlock
from strands.types.exceptions import (
    ContextWindowOverflowException,
    EventLoopException,
    MaxTokensReachedException,
    ModelThrottledException,
)
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from folio.errors import InvalidArgumentError, StructuredOutputError, UpstreamError
from folio.models.tool_results import TextGenerationResult
from folio.utils.cancellation import CancellationToken, check_cancelled

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# Provider failures surfaced to the pipeline as UpstreamError
PROVIDER_ERRORS = (
    EventLoopException,
    ModelThrottledException,
    ContextWindowOverflowException,
    MaxTokensReachedException,
    ClientError,
)


# =============================================================================
# Capability interface
# =============================================================================

@runtime_checkable
class LanguageModel(Protocol):
    """Text and structured completion, the only two things the pipeline needs"""

    async def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: Optional[List[Any]] = None,
        max_steps: Optional[int] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> TextGenerationResult:
        ...

    async def generate_structured(
        self,
        schema: Type[SchemaT],
        system_prompt: str,
        user_prompt: str,
        cancellation: Optional[CancellationToken] = None
    ) -> SchemaT:
        ...


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class ModelConfig:
    """Settings for one model role"""
    model_id: str
    max_tokens: int = 8192
    temperature: float = 0.1
    description: str = ""


@dataclass
class StrandsConfig:
    """Strands/Bedrock settings"""
    region: str = "us-west-2"
    models: Dict[str, ModelConfig] = field(default_factory=dict)
    retry_max_attempts: int = 50
    timeout_seconds: int = 900


def load_config(config_path: Optional[str] = None) -> StrandsConfig:
    """
    Load models.yaml.

    Args:
        config_path: Path to models.yaml. Defaults to folio/config/models.yaml

    Returns:
        StrandsConfig with one ModelConfig per role
    """
    if config_path is None:
        base_dir = os.path.dirname(os.path.dirname(__file__))
        config_path = os.path.join(base_dir, "config", "models.yaml")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning(f"Config file not found: {config_path}, using defaults")
        return _default_config()

    models = {}
    for role, model_cfg in raw_config.get("models", {}).items():
        models[role] = ModelConfig(
            model_id=model_cfg["model_id"],
            max_tokens=model_cfg.get("max_tokens", 8192),
            temperature=model_cfg.get("temperature", 0.1),
            description=model_cfg.get("description", "")
        )

    retry_cfg = raw_config.get("retry", {})

    return StrandsConfig(
        region=raw_config.get("region", "us-west-2"),
        models=models,
        retry_max_attempts=retry_cfg.get("max_attempts", 50),
        timeout_seconds=raw_config.get("timeout_seconds", 900)
    )


def _default_config() -> StrandsConfig:
    """Built-in defaults"""
    sonnet = "us.anthropic.claude-sonnet-4-5-20250929-v1:0"
    return StrandsConfig(
        region="us-west-2",
        models={
            "translator": ModelConfig(model_id=sonnet, temperature=0.3),
            "evaluator": ModelConfig(model_id=sonnet, temperature=0.1),
            "extractor": ModelConfig(model_id=sonnet, temperature=0.1),
        }
    )


_config: Optional[StrandsConfig] = None


def get_config(config_path: Optional[str] = None) -> StrandsConfig:
    """Get or load the config singleton"""
    global _config
    if _config is None:
        _config = load_config(config_path)
    return _config


# =============================================================================
# Model and agent creation
# =============================================================================

def get_model(
    role: str,
    streaming: bool = True,
    tool_cache: bool = False,
    config: Optional[StrandsConfig] = None
) -> BedrockModel:
    """
    Build a BedrockModel for a role in models.yaml.

    Raises:
        ValueError: If the role is not configured
    """
    if config is None:
        config = get_config()

    if role not in config.models:
        available = list(config.models.keys())
        raise ValueError(f"Unknown role: {role}. Available: {available}")

    model_config = config.models[role]

    return BedrockModel(
        model_id=model_config.model_id,
        region_name=config.region,
        streaming=streaming,
        cache_tools="default" if tool_cache else None,
        max_tokens=model_config.max_tokens,
        temperature=model_config.temperature,
        boto_client_config=BotoConfig(
            read_timeout=config.timeout_seconds,
            connect_timeout=config.timeout_seconds,
            retries=dict(max_attempts=config.retry_max_attempts, mode="adaptive")
        )
    )


def get_agent(
    role: str,
    system_prompt: str,
    agent_name: Optional[str] = None,
    prompt_cache: bool = True,
    cache_type: str = "default",
    tools: Optional[List] = None,
    streaming: bool = True,
    config: Optional[StrandsConfig] = None
) -> Agent:
    """
    Create a Strands Agent with optional prompt caching.

    Args:
        role: Model role in models.yaml
        system_prompt: System prompt text
        agent_name: Name used in logs (default: role)
        prompt_cache: Add a cache point after the system prompt
        cache_type: "default" or "ephemeral"
        tools: Strands tools for the agent
        streaming: Enable streaming
        config: Optional config override

    Returns:
        Configured Agent
    """
    if agent_name is None:
        agent_name = role

    model = get_model(role=role, streaming=streaming, config=config)

    if prompt_cache:
        logger.debug(f"[{agent_name.upper()}] prompt cache enabled (type={cache_type})")
        system_prompt_content = [
            SystemContentBlock(text=system_prompt),
            SystemContentBlock(cachePoint={"type": cache_type})
        ]
    else:
        system_prompt_content = system_prompt

    # callback_handler=None: responses are consumed through stream_async
    return Agent(
        model=model,
        system_prompt=system_prompt_content,
        tools=tools,
        callback_handler=None
    )


# =============================================================================
# Streaming with retry
# =============================================================================

def _is_throttling(error: Exception) -> bool:
    if isinstance(error, ModelThrottledException):
        return True
    if isinstance(error, EventLoopException):
        error_msg = str(error).lower()
        return "throttling" in error_msg or "too many requests" in error_msg
    return False


async def _retry_agent_streaming(
    agent: Agent,
    message: str,
    max_attempts: int = 5,
    base_delay: int = 10
):
    """
    Stream an agent response, retrying throttled requests with exponential backoff.

    Non-throttling errors are raised immediately.

    Yields:
        Raw agent streaming events
    """
    for attempt in range(max_attempts):
        try:
            async for event in agent.stream_async(message):
                yield event
            return

        except (ModelThrottledException, EventLoopException) as e:
            if _is_throttling(e) and attempt < max_attempts - 1:
                delay = base_delay * (2 ** attempt)
                logger.info(f"Throttled - retry {attempt + 1}/{max_attempts} in {delay}s")
                await asyncio.sleep(delay)
                continue

            logger.error(f"Streaming error (attempt {attempt + 1}/{max_attempts}): {e}")
            logger.debug(traceback.format_exc())
            raise


def extract_usage_from_agent(agent: Agent) -> Dict[str, int]:
    """
    Token usage from the agent's event loop metrics.

    Returns:
        input_tokens, output_tokens, total_tokens,
        cache_read_input_tokens, cache_write_input_tokens
    """
    usage = {
        "input_tokens": 0,
        "output_tokens": 0,
        "total_tokens": 0,
        "cache_read_input_tokens": 0,
        "cache_write_input_tokens": 0
    }

    metrics = getattr(agent, "event_loop_metrics", None)
    accumulated = getattr(metrics, "accumulated_usage", None) if metrics else None
    if accumulated:
        usage["input_tokens"] = accumulated.get("inputTokens", 0)
        usage["output_tokens"] = accumulated.get("outputTokens", 0)
        usage["total_tokens"] = accumulated.get("totalTokens", 0)
        usage["cache_read_input_tokens"] = accumulated.get("cacheReadInputTokens", 0)
        usage["cache_write_input_tokens"] = accumulated.get("cacheWriteInputTokens", 0)

    return usage


async def run_agent_async(
    agent: Agent,
    message: str,
    use_retry: bool = True
) -> Dict[str, Any]:
    """
    Run an agent with streaming and optional throttling retry.

    When the agent used tools, the text of the final message is returned
    rather than everything streamed across tool-use cycles.

    Returns:
        Dict with:
        - text: response text
        - usage: token usage (see extract_usage_from_agent)
    """
    streamed_text = ""
    final_result = None

    stream = _retry_agent_streaming(agent, message) if use_retry else agent.stream_async(message)
    async for event in stream:
        if "data" in event:
            streamed_text += event["data"]
        if "result" in event:
            final_result = event["result"]

    text = str(final_result) if final_result is not None else streamed_text

    return {
        "text": text,
        "usage": extract_usage_from_agent(agent)
    }


# =============================================================================
# Tool wrapping
# =============================================================================

class ToolStepBudget:
    """Counts tool invocations within one generate_text call"""

    def __init__(self, max_steps: Optional[int]):
        self.max_steps = max_steps
        self.used = 0

    def consume(self) -> bool:
        """Take one step. False once the budget is spent."""
        if self.max_steps is not None and self.used >= self.max_steps:
            return False
        self.used += 1
        return True


def _tool_result(tool_use_id: str, text: str, status: str = "success") -> Dict[str, Any]:
    return {
        "toolUseId": tool_use_id,
        "status": status,
        "content": [{"text": text}]
    }


def to_strands_tool(tool: Any, budget: ToolStepBudget) -> PythonAgentTool:
    """
    Wrap a ContextTool as a Strands tool.

    Invocations past the budget return an error result telling the model to
    finish without further tool calls. Invalid parameters are reported back
    to the model as an error result.
    """
    tool_spec = {
        "name": tool.name,
        "description": tool.description,
        "inputSchema": {"json": tool.input_schema}
    }

    async def _invoke(tool_use, **kwargs):
        tool_use_id = tool_use["toolUseId"]
        if not budget.consume():
            logger.warning(f"[{tool.name}] tool step limit ({budget.max_steps}) reached")
            return _tool_result(
                tool_use_id,
                f"Tool step limit of {budget.max_steps} reached. "
                "Finish the translation without calling more tools.",
                status="error"
            )
        try:
            content = await tool.invoke(tool_use.get("input") or {})
        except InvalidArgumentError as e:
            return _tool_result(tool_use_id, str(e), status="error")
        return _tool_result(tool_use_id, content)

    return PythonAgentTool(tool.name, tool_spec, _invoke)


# =============================================================================
# Bedrock implementation of LanguageModel
# =============================================================================

class StrandsLanguageModel:
    """
    LanguageModel backed by a Strands Agent on Amazon Bedrock.

    A fresh agent is built per call so no conversation history leaks between
    chunks; the cached system prompt keeps repeated calls cheap.

    Usage:
        translator = StrandsLanguageModel("translator")
        judge = StrandsLanguageModel("evaluator")
        result = await translate([translator], "ko", text, TranslateOptions(...))
    """

    def __init__(
        self,
        role: str = "translator",
        config: Optional[StrandsConfig] = None,
        prompt_cache: bool = True,
        name: Optional[str] = None
    ):
        self.role = role
        self.config = config
        self.prompt_cache = prompt_cache
        self.name = name or role

    def __repr__(self) -> str:
        return f"StrandsLanguageModel(role={self.role!r}, name={self.name!r})"

    async def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: Optional[List[Any]] = None,
        max_steps: Optional[int] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> TextGenerationResult:
        """
        Run a text completion.

        Raises:
            AbortedError: If cancelled before the call
            UpstreamError: If Bedrock rejects or fails the request
        """
        check_cancelled(cancellation)
        start_time = time.time()

        strands_tools = None
        if tools:
            budget = ToolStepBudget(max_steps)
            strands_tools = [to_strands_tool(t, budget) for t in tools]

        agent = get_agent(
            role=self.role,
            system_prompt=system_prompt,
            agent_name=self.name,
            prompt_cache=self.prompt_cache,
            tools=strands_tools,
            config=self.config
        )

        try:
            result = await run_agent_async(agent, user_prompt)
        except PROVIDER_ERRORS as e:
            logger.error(f"[{self.name}] text generation failed: {e}")
            raise UpstreamError(f"{self.name}: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)
        return TextGenerationResult(
            text=result["text"],
            tokens_used=result["usage"]["total_tokens"],
            latency_ms=latency_ms
        )

    async def generate_structured(
        self,
        schema: Type[SchemaT],
        system_prompt: str,
        user_prompt: str,
        cancellation: Optional[CancellationToken] = None
    ) -> SchemaT:
        """
        Run a structured completion conforming to a pydantic schema.

        Raises:
            AbortedError: If cancelled before the call
            StructuredOutputError: If the output does not match the schema
            UpstreamError: If Bedrock rejects or fails the request
        """
        check_cancelled(cancellation)

        agent = get_agent(
            role=self.role,
            system_prompt=system_prompt,
            agent_name=self.name,
            prompt_cache=self.prompt_cache,
            config=self.config
        )

        try:
            return await agent.structured_output_async(schema, user_prompt)
        except PROVIDER_ERRORS as e:
            logger.error(f"[{self.name}] structured generation failed: {e}")
            raise UpstreamError(f"{self.name}: {e}") from e
        except ValueError as e:
            # pydantic ValidationError is a ValueError too
            logger.warning(f"[{self.name}] structured output did not match {schema.__name__}: {e}")
            raise StructuredOutputError(f"{self.name}: {e}") from e


__all__ = [
    # Capability
    "LanguageModel",
    "StrandsLanguageModel",
    # Configuration
    "ModelConfig",
    "StrandsConfig",
    "load_config",
    "get_config",
    # Model & agent creation
    "get_model",
    "get_agent",
    # Execution
    "extract_usage_from_agent",
    "run_agent_async",
    # Tools
    "ToolStepBudget",
    "to_strands_tool",
]
