"""
Standard span tag names for kafka_tracer.

This module defines the tag-name constants attached to every producer and
consumer span. The names follow the ``message_bus.*`` semantic conventions
used by the OpenTracing Kafka integrations, so spans produced here line up
with spans produced by other language clients.

Example:
    >>> from kafka_tracer.observability.attributes import (
    ...     ATTR_COMPONENT,
    ...     ATTR_MESSAGE_BUS_DESTINATION,
    ... )
    >>>
    >>> with tracer.span_with_kind(
    ...     "kafka.producer",
    ...     attributes={
    ...         ATTR_COMPONENT: "kafka",
    ...         ATTR_MESSAGE_BUS_DESTINATION: "orders",
    ...     },
    ... ):
    ...     pass
"""

# =============================================================================
# Span Names
# =============================================================================

SPAN_NAME_PRODUCER = "kafka.producer"
"""Name of the span wrapping a send operation."""

SPAN_NAME_CONSUMER = "kafka.consumer"
"""Name of the span wrapping the processing of one fetched message."""

# =============================================================================
# Generic Attributes
# =============================================================================

ATTR_COMPONENT = "component"
"""Name of the instrumented client library (string)."""

ATTR_SPAN_KIND = "span.kind"
"""Role of the span, 'producer' or 'consumer' (string)."""

ATTR_ERROR = "error"
"""Set to True when the wrapped operation raised (boolean)."""

# =============================================================================
# Message Bus Attributes
# =============================================================================

ATTR_MESSAGE_BUS_DESTINATION = "message_bus.destination"
"""Topic the message is sent to or was read from (string)."""

ATTR_MESSAGE_BUS_PARTITION = "message_bus.partition"
"""Partition of the message, None when not chosen explicitly."""

ATTR_MESSAGE_BUS_PARTITION_KEY = "message_bus.partition_key"
"""Partition key supplied by the producer, None when absent."""

ATTR_MESSAGE_BUS_PENDING_MESSAGE = "message_bus.pending_message"
"""Whether the send is buffered for a later flush (boolean)."""

ATTR_MESSAGE_BUS_PRE_FETCHED_IN_BATCH = "message_bus.pre_fetched_in_batch"
"""Whether the consumed message was fetched as part of a batch (boolean)."""

# =============================================================================
# Span Kind Values
# =============================================================================

SPAN_KIND_PRODUCER = "producer"
SPAN_KIND_CONSUMER = "consumer"

# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    # Span names
    "SPAN_NAME_PRODUCER",
    "SPAN_NAME_CONSUMER",
    # Generic
    "ATTR_COMPONENT",
    "ATTR_SPAN_KIND",
    "ATTR_ERROR",
    # Message bus
    "ATTR_MESSAGE_BUS_DESTINATION",
    "ATTR_MESSAGE_BUS_PARTITION",
    "ATTR_MESSAGE_BUS_PARTITION_KEY",
    "ATTR_MESSAGE_BUS_PENDING_MESSAGE",
    "ATTR_MESSAGE_BUS_PRE_FETCHED_IN_BATCH",
    # Span kind values
    "SPAN_KIND_PRODUCER",
    "SPAN_KIND_CONSUMER",
]
