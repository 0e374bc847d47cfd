"""
Utility modules for the translation pipeline
"""

# Model capability and Strands Agent utilities
from .strands_utils import (
    # Capability
    LanguageModel,
    StrandsLanguageModel,
    # Configuration
    ModelConfig,
    StrandsConfig,
    load_config as load_strands_config,
    get_config as get_strands_config,
    # Model & Agent Creation
    get_model,
    get_agent,
    # Execution
    extract_usage_from_agent,
    run_agent_async,
    # Tools
    ToolStepBudget,
    to_strands_tool,
)

# Observability (OpenTelemetry-based)
from .observability import (
    set_session_context,
    get_session_id,
    get_tracer,
    add_span_event,
    set_span_attribute,
    set_span_status,
    record_exception,
    trace_agent,
    trace_workflow,
)

# Config loader
from .config import (
    ConfigLoader,
    PipelineConfig,
    get_config_loader,
    get_language_name,
    get_pipeline_config,
    load_pipeline_config,
)

# Cancellation
from .cancellation import CancellationToken, check_cancelled

__all__ = [
    # Capability
    "LanguageModel",
    "StrandsLanguageModel",
    # Strands Agent utilities
    "ModelConfig",
    "StrandsConfig",
    "load_strands_config",
    "get_strands_config",
    "get_model",
    "get_agent",
    "extract_usage_from_agent",
    "run_agent_async",
    "ToolStepBudget",
    "to_strands_tool",
    # Observability
    "set_session_context",
    "get_session_id",
    "get_tracer",
    "add_span_event",
    "set_span_attribute",
    "set_span_status",
    "record_exception",
    "trace_agent",
    "trace_workflow",
    # Config loader
    "ConfigLoader",
    "PipelineConfig",
    "get_config_loader",
    "get_language_name",
    "get_pipeline_config",
    "load_pipeline_config",
    # Cancellation
    "CancellationToken",
    "check_cancelled",
]
