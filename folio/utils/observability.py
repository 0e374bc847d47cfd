"""
Observability - OpenTelemetry tracing for the translation pipeline

Only opentelemetry-api is required. Without a configured SDK every span is a
non-recording no-op, so the helpers below are safe to call unconditionally.

Span layout:
    translate (workflow, carries session.id baggage)
      ├── translator           one per model call
      ├── evaluator            best-of-N and refinement judgments
      ├── term_extractor
      ├── refiner
      └── boundary_evaluator
"""

import os
import uuid
import logging
from typing import Dict, Any, Optional
from contextlib import contextmanager

from opentelemetry import baggage, context, trace
from opentelemetry.trace import Status, StatusCode

logger = logging.getLogger(__name__)


DEFAULT_TRACER_MODULE_NAME = "folio"
DEFAULT_TRACER_VERSION = "0.1.0"


# =============================================================================
# Session context (Baggage)
# =============================================================================

def set_session_context(
    session_id: str,
    workflow_type: Optional[str] = None,
    target_lang: Optional[str] = None
) -> Any:
    """
    Attach session context to OpenTelemetry baggage.

    Args:
        session_id: Unique session/request ID
        workflow_type: Workflow type (e.g. "translate")
        target_lang: Target language tag

    Returns:
        Context token to pass to context.detach()
    """
    ctx = baggage.set_baggage("session.id", str(session_id))
    if workflow_type:
        ctx = baggage.set_baggage("workflow.type", workflow_type, context=ctx)
    if target_lang:
        ctx = baggage.set_baggage("target.lang", target_lang, context=ctx)
    logger.debug(f"Session '{session_id}' attached to telemetry context")
    return context.attach(ctx)


def get_session_id() -> Optional[str]:
    """Session ID from the current baggage"""
    return baggage.get_baggage("session.id")


# =============================================================================
# Tracer factory
# =============================================================================

def get_tracer(
    module_name: Optional[str] = None,
    version: Optional[str] = None
) -> trace.Tracer:
    """
    Get the OpenTelemetry tracer for folio.

    Environment overrides:
    - TRACER_MODULE_NAME (default: "folio")
    - TRACER_LIBRARY_VERSION (default: "0.1.0")
    """
    return trace.get_tracer(
        instrumenting_module_name=module_name or os.getenv(
            "TRACER_MODULE_NAME", DEFAULT_TRACER_MODULE_NAME
        ),
        instrumenting_library_version=version or os.getenv(
            "TRACER_LIBRARY_VERSION", DEFAULT_TRACER_VERSION
        )
    )


# =============================================================================
# Span helpers
# =============================================================================

def _safe_value(value: Any) -> Any:
    if isinstance(value, (str, bool, int, float)):
        return value
    return str(value)[:1000]


def add_span_event(
    span: trace.Span,
    event_name: str,
    attributes: Optional[Dict[str, Any]] = None
) -> None:
    """
    Add a timestamped event to a span.

    Non-primitive attribute values are stringified and truncated to 1000 chars.

    Example:
        with tracer.start_as_current_span("translator") as span:
            add_span_event(span, "input", {"chars": len(text)})
    """
    if span and span.is_recording():
        safe_attrs = {k: _safe_value(v) for k, v in (attributes or {}).items()}
        span.add_event(event_name, safe_attrs)


def set_span_attribute(span: trace.Span, key: str, value: Any) -> None:
    """Set a single attribute on a recording span"""
    if span and span.is_recording():
        span.set_attribute(key, _safe_value(value))


def set_span_status(
    span: trace.Span,
    success: bool,
    message: Optional[str] = None
) -> None:
    """Mark a span OK or ERROR"""
    if span and span.is_recording():
        if success:
            span.set_status(Status(StatusCode.OK))
        else:
            span.set_status(Status(StatusCode.ERROR, message or "Error"))


def record_exception(span: trace.Span, exception: Exception) -> None:
    """Record an exception on a span and mark it ERROR"""
    if span and span.is_recording():
        span.record_exception(exception)
        span.set_status(Status(StatusCode.ERROR, str(exception)))


# =============================================================================
# Context managers
# =============================================================================

@contextmanager
def trace_agent(
    agent_name: str,
    tracer: Optional[trace.Tracer] = None
):
    """
    Trace one model call.

    Yields:
        (span, event_recorder) tuple

    Example:
        with trace_agent("evaluator") as (span, record):
            record("input", {"chars": len(translated)})
            result = await model.generate_structured(...)
            record("output", {"score": result.score})
    """
    if tracer is None:
        tracer = get_tracer()

    with tracer.start_as_current_span(agent_name) as span:
        def record_event(event_type: str, attributes: Dict[str, Any] = None):
            add_span_event(span, event_type, attributes)

        try:
            yield span, record_event
            set_span_status(span, True)
        except Exception as e:
            record_exception(span, e)
            raise


@contextmanager
def trace_workflow(
    workflow_name: str,
    session_id: Optional[str] = None,
    target_lang: Optional[str] = None,
    tracer: Optional[trace.Tracer] = None
):
    """
    Trace a whole translation request.

    Sets the session baggage and opens the root span. Use only around a
    coroutine that runs to completion in one task (not across generator
    yields), since the context token must be detached where it was attached.

    Yields:
        (span, session_id) tuple
    """
    if tracer is None:
        tracer = get_tracer()

    if session_id is None:
        session_id = str(uuid.uuid4())

    token = set_session_context(session_id, workflow_type=workflow_name, target_lang=target_lang)

    try:
        with tracer.start_as_current_span(workflow_name) as span:
            set_span_attribute(span, "session.id", session_id)

            try:
                yield span, session_id
                set_span_status(span, True)
            except Exception as e:
                record_exception(span, e)
                raise
    finally:
        context.detach(token)
