"""Tests for kafka_tracer.tags module."""

from kafka_tracer.tags import DEFAULT_COMPONENT, build_consumer_tags, build_producer_tags


class TestBuildProducerTags:
    """Tests for build_producer_tags()."""

    def test_blocking_send(self):
        """A blocking send has pending_message False and no partition."""
        assert build_producer_tags("kafka", "testing") == {
            "component": "kafka",
            "span.kind": "producer",
            "message_bus.partition": None,
            "message_bus.partition_key": None,
            "message_bus.destination": "testing",
            "message_bus.pending_message": False,
        }

    def test_buffered_send_with_partition(self):
        """Explicit partition, key and pending flag are kept."""
        tags = build_producer_tags(
            "kafka", "orders", partition=2, partition_key="c-1", pending=True
        )

        assert tags["message_bus.partition"] == 2
        assert tags["message_bus.partition_key"] == "c-1"
        assert tags["message_bus.pending_message"] is True

    def test_partition_keys_are_always_present(self):
        """Partition and partition key are reported even when absent."""
        tags = build_producer_tags(DEFAULT_COMPONENT, "orders")

        assert "message_bus.partition" in tags
        assert "message_bus.partition_key" in tags


class TestBuildConsumerTags:
    """Tests for build_consumer_tags()."""

    def test_consumer_tags(self):
        """Consumer tags report the fetched-in-batch flag and no partition key."""
        assert build_consumer_tags("kafka", "test", "A") == {
            "component": "kafka",
            "span.kind": "consumer",
            "message_bus.partition": "A",
            "message_bus.destination": "test",
            "message_bus.pre_fetched_in_batch": True,
        }

    def test_custom_component(self):
        """The component tag names the instrumented library."""
        assert build_consumer_tags("confluent-kafka", "test")["component"] == "confluent-kafka"


def test_default_component():
    assert DEFAULT_COMPONENT == "kafka"
