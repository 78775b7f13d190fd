"""Tests for kafka_tracer.observability.attributes module."""

from kafka_tracer.observability import attributes
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


class TestAttributeConstants:
    """Tests for attribute constant definitions."""

    def test_span_names(self):
        """Span names are kafka.producer and kafka.consumer."""
        assert SPAN_NAME_PRODUCER == "kafka.producer"
        assert SPAN_NAME_CONSUMER == "kafka.consumer"

    def test_generic_tags(self):
        """Generic tags use the OpenTracing names."""
        assert ATTR_COMPONENT == "component"
        assert ATTR_SPAN_KIND == "span.kind"
        assert ATTR_ERROR == "error"
        assert SPAN_KIND_PRODUCER == "producer"
        assert SPAN_KIND_CONSUMER == "consumer"

    def test_message_bus_tags_have_message_bus_prefix(self):
        """Message bus tags share the message_bus. prefix."""
        for name in (
            ATTR_MESSAGE_BUS_DESTINATION,
            ATTR_MESSAGE_BUS_PARTITION,
            ATTR_MESSAGE_BUS_PARTITION_KEY,
            ATTR_MESSAGE_BUS_PENDING_MESSAGE,
            ATTR_MESSAGE_BUS_PRE_FETCHED_IN_BATCH,
        ):
            assert name.startswith("message_bus.")

    def test_all_exports_exist(self):
        """Every name in __all__ is defined in the module."""
        for name in attributes.__all__:
            assert hasattr(attributes, name)
