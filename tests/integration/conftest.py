"""
Shared pytest fixtures for OpenTelemetry integration tests.

This module provides fixtures for OpenTelemetry testing infrastructure
using an in-memory span exporter for span inspection.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest

from kafka_tracer import KafkaInstrumentor

# Module-level storage for the global test provider
_test_provider = None


@pytest.fixture(scope="session", autouse=True)
def setup_test_tracing() -> Generator[Any, None, None]:
    """
    Set up a global TracerProvider for all tests at session scope.

    Individual tests use the trace_exporter fixture to capture spans.
    """
    global _test_provider

    from opentelemetry import trace
    from opentelemetry.sdk.trace import TracerProvider

    current_provider = trace.get_tracer_provider()

    # Only set up if not already configured (avoid re-configuration errors)
    if current_provider.__class__.__name__ == "ProxyTracerProvider":
        _test_provider = TracerProvider()
        trace.set_tracer_provider(_test_provider)
    else:
        _test_provider = current_provider

    yield _test_provider


@pytest.fixture
def trace_exporter(setup_test_tracing: Any) -> Generator[Any, None, None]:
    """
    Create an in-memory span exporter for testing.

    The exporter captures all finished spans in memory. It is attached to
    the session provider for the duration of the test.

    Yields:
        InMemorySpanExporter instance with captured spans
    """
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import SimpleSpanProcessor
    from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

    exporter = InMemorySpanExporter()
    if isinstance(_test_provider, TracerProvider):
        _test_provider.add_span_processor(SimpleSpanProcessor(exporter))

    yield exporter

    exporter.clear()
    # Note: processors cannot be removed from the provider, clearing is enough


@pytest.fixture
def find_spans(trace_exporter: Any) -> Callable[[str], list[Any]]:
    """
    Helper fixture to find all finished spans with the given name.

    Example:
        >>> def test_consumer(find_spans):
        ...     # ... operations that create spans ...
        ...     assert len(find_spans("kafka.consumer")) == 1
    """

    def _find_spans(name: str) -> list[Any]:
        return [s for s in trace_exporter.get_finished_spans() if s.name == name]

    return _find_spans


@pytest.fixture
def otel_instrumentor(instrumentor: KafkaInstrumentor) -> KafkaInstrumentor:
    """Fake client instrumented with the OpenTelemetry global tracer."""
    instrumentor.instrument()
    return instrumentor
