"""Span tag construction for producer and consumer spans."""

from __future__ import annotations

from typing import Any

from kafka_tracer.observability.attributes import (
    ATTR_COMPONENT,
    ATTR_MESSAGE_BUS_DESTINATION,
    ATTR_MESSAGE_BUS_PARTITION,
    ATTR_MESSAGE_BUS_PARTITION_KEY,
    ATTR_MESSAGE_BUS_PENDING_MESSAGE,
    ATTR_MESSAGE_BUS_PRE_FETCHED_IN_BATCH,
    ATTR_SPAN_KIND,
    SPAN_KIND_CONSUMER,
    SPAN_KIND_PRODUCER,
)

DEFAULT_COMPONENT = "kafka"
"""Default value of the ``component`` tag."""


def build_producer_tags(
    component: str,
    topic: str,
    partition: Any = None,
    partition_key: Any = None,
    pending: bool = False,
) -> dict[str, Any]:
    """
    Build the tags of a ``kafka.producer`` span.

    Partition and partition key are always present; None means the caller
    did not choose one.

    Args:
        component: Name of the instrumented client library
        topic: Destination topic
        partition: Explicit partition, if any
        partition_key: Explicit partition key, if any
        pending: True for a buffered send, False for a send that waits
            for delivery

    Returns:
        Span tags
    """
    return {
        ATTR_COMPONENT: component,
        ATTR_SPAN_KIND: SPAN_KIND_PRODUCER,
        ATTR_MESSAGE_BUS_PARTITION: partition,
        ATTR_MESSAGE_BUS_PARTITION_KEY: partition_key,
        ATTR_MESSAGE_BUS_DESTINATION: topic,
        ATTR_MESSAGE_BUS_PENDING_MESSAGE: pending,
    }


def build_consumer_tags(component: str, topic: str, partition: Any = None) -> dict[str, Any]:
    """Build the tags of a ``kafka.consumer`` span for one fetched message."""
    return {
        ATTR_COMPONENT: component,
        ATTR_SPAN_KIND: SPAN_KIND_CONSUMER,
        ATTR_MESSAGE_BUS_PARTITION: partition,
        ATTR_MESSAGE_BUS_DESTINATION: topic,
        ATTR_MESSAGE_BUS_PRE_FETCHED_IN_BATCH: True,
    }


__all__ = [
    "DEFAULT_COMPONENT",
    "build_consumer_tags",
    "build_producer_tags",
]
