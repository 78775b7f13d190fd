"""
Shared pytest fixtures for the kafka_tracer tests.

This module provides:
- A recording tracer (tracer)
- A client binding pointing at the in-process fake client (binding)
- An instrumentor that is always uninstrumented after the test (instrumentor)
- Fake client objects (client, producer, consumer) and a message factory
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest

from kafka_tracer import ClientBinding, KafkaInstrumentor, MockTracer
from tests import fake_kafka

FAKE_MODULE = "tests.fake_kafka"


@pytest.fixture
def tracer() -> MockTracer:
    """Tracer recording spans and propagation calls."""
    return MockTracer()


@pytest.fixture
def binding() -> ClientBinding:
    """Binding of the default hook points onto the fake client module."""
    return ClientBinding(module=FAKE_MODULE)


@pytest.fixture
def instrumentor(binding: ClientBinding) -> Generator[KafkaInstrumentor, None, None]:
    """Instrumentor for the fake client, removed after the test."""
    instrumentor = KafkaInstrumentor(binding)
    yield instrumentor
    instrumentor.uninstrument()


@pytest.fixture
def client() -> fake_kafka.Client:
    return fake_kafka.Client(seed_brokers=["localhost"])


@pytest.fixture
def producer() -> fake_kafka.Producer:
    return fake_kafka.Producer()


@pytest.fixture
def make_message() -> Callable[..., fake_kafka.FetchedMessage]:
    """Factory for fetched messages."""

    def factory(**kwargs: Any) -> fake_kafka.FetchedMessage:
        kwargs.setdefault("value", b"hello")
        kwargs.setdefault("headers", {})
        kwargs.setdefault("topic", "test")
        return fake_kafka.FetchedMessage(**kwargs)

    return factory
