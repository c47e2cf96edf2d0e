"""
Minimal OpenTelemetry helpers. Spans are no-ops until an SDK tracer provider is configured.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from opentelemetry import trace

_TRACER = trace.get_tracer("itam.tracing")


@contextmanager
def tracing_span(name: str, attributes: Optional[Dict[str, Any]] = None) -> Iterator[None]:
    """Record a tracing span around the wrapped block."""
    with _TRACER.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield
