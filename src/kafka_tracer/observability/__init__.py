"""
Observability utilities for kafka_tracer.

This package provides the tracer abstraction used by the interceptors and
the standard tag names attached to producer and consumer spans.

Example:
    >>> from kafka_tracer.observability import MockTracer, create_tracer
    >>>
    >>> tracer = create_tracer(__name__)       # OpenTelemetry-backed
    >>> test_tracer = MockTracer()             # records spans for assertions
"""

from kafka_tracer.observability.attributes import (
    ATTR_COMPONENT,
    ATTR_ERROR,
    ATTR_MESSAGE_BUS_DESTINATION,
    ATTR_MESSAGE_BUS_PARTITION,
    ATTR_MESSAGE_BUS_PARTITION_KEY,
    ATTR_MESSAGE_BUS_PENDING_MESSAGE,
    ATTR_MESSAGE_BUS_PRE_FETCHED_IN_BATCH,
    ATTR_SPAN_KIND,
    SPAN_KIND_CONSUMER,
    SPAN_KIND_PRODUCER,
    SPAN_NAME_CONSUMER,
    SPAN_NAME_PRODUCER,
)
from kafka_tracer.observability.tracer import (
    DEFAULT_TRACER_NAME,
    MockSpan,
    MockSpanContext,
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    SpanKindEnum,
    Tracer,
    create_tracer,
)

__all__ = [
    # Tracer (composition-based API)
    "DEFAULT_TRACER_NAME",
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "MockSpan",
    "MockSpanContext",
    "SpanKindEnum",
    "create_tracer",
    # Span names
    "SPAN_NAME_PRODUCER",
    "SPAN_NAME_CONSUMER",
    # Attributes
    "ATTR_COMPONENT",
    "ATTR_SPAN_KIND",
    "ATTR_ERROR",
    "ATTR_MESSAGE_BUS_DESTINATION",
    "ATTR_MESSAGE_BUS_PARTITION",
    "ATTR_MESSAGE_BUS_PARTITION_KEY",
    "ATTR_MESSAGE_BUS_PENDING_MESSAGE",
    "ATTR_MESSAGE_BUS_PRE_FETCHED_IN_BATCH",
    "SPAN_KIND_PRODUCER",
    "SPAN_KIND_CONSUMER",
]
