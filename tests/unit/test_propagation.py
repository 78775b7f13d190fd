"""
Unit tests for trace context propagation through message headers.

Tests for:
- carrier_from_headers() with mapping, list and malformed headers
- inject_context() into mapping and list headers
- extract_context() round trip with MockTracer
"""

from __future__ import annotations

import logging

import pytest

from kafka_tracer import MockTracer, NullTracer
from kafka_tracer.propagation import carrier_from_headers, extract_context, inject_context

TRACE_ID = MockTracer.TRACE_ID_HEADER
SPAN_ID = MockTracer.SPAN_ID_HEADER


class TestCarrierFromHeaders:
    """Tests for carrier_from_headers()."""

    @pytest.mark.parametrize("headers", [None, {}, []])
    def test_empty_headers(self, headers):
        """Missing or empty headers give an empty carrier."""
        assert carrier_from_headers(headers) == {}

    def test_mapping_headers(self):
        """String and bytes values of a mapping are decoded."""
        headers = {"traceparent": b"00-abc", "event_type": "OrderCreated"}

        assert carrier_from_headers(headers) == {
            "traceparent": "00-abc",
            "event_type": "OrderCreated",
        }

    def test_list_headers(self):
        """A list of (name, bytes) tuples is decoded."""
        headers = [("traceparent", b"00-abc"), ("event_type", b"OrderCreated")]

        assert carrier_from_headers(headers) == {
            "traceparent": "00-abc",
            "event_type": "OrderCreated",
        }

    def test_undecodable_entries_are_skipped(self):
        """Binary values and malformed entries are dropped."""
        headers = [
            ("payload", b"\xff\xfe"),
            ("broken",),
            "junk",
            ("traceparent", b"00-abc"),
            ("n", None),
        ]

        assert carrier_from_headers(headers) == {"traceparent": "00-abc"}

    def test_unsupported_type_gives_empty_carrier(self):
        """Headers of an unknown type are ignored."""
        assert carrier_from_headers(42) == {}

    def test_does_not_alias_the_headers(self):
        """The carrier is a new dictionary."""
        headers = {"a": "b"}
        carrier = carrier_from_headers(headers)
        carrier["c"] = "d"

        assert headers == {"a": "b"}


class TestInjectContext:
    """Tests for inject_context()."""

    def test_mapping_headers_receive_string_values(self):
        """Mapping headers are updated in place, existing keys kept."""
        tracer = MockTracer()
        headers = {"event_type": "OrderCreated"}

        with tracer.span_with_kind("kafka.producer") as span:
            inject_context(tracer, headers, span)

        assert headers == {
            "event_type": "OrderCreated",
            TRACE_ID: span.context.trace_id,
            SPAN_ID: span.context.span_id,
        }

    def test_list_headers_receive_bytes_tuples(self):
        """List headers get (name, bytes) entries appended."""
        tracer = MockTracer()
        headers = [("event_type", b"OrderCreated")]

        with tracer.span_with_kind("kafka.producer") as span:
            inject_context(tracer, headers, span)

        assert headers == [
            ("event_type", b"OrderCreated"),
            (TRACE_ID, span.context.trace_id.encode("utf-8")),
            (SPAN_ID, span.context.span_id.encode("utf-8")),
        ]

    def test_list_headers_replace_stale_context(self):
        """Entries named like an injected key are replaced, not duplicated."""
        tracer = MockTracer()
        headers = [(TRACE_ID, b"stale"), ("event_type", b"OrderCreated")]

        with tracer.span_with_kind("kafka.producer") as span:
            inject_context(tracer, headers, span)

        assert [name for name, _ in headers].count(TRACE_ID) == 1
        assert dict(headers)[TRACE_ID] == span.context.trace_id.encode("utf-8")

    def test_uses_the_active_span_by_default(self):
        """Without a span argument the tracer's active span is injected."""
        tracer = MockTracer()
        headers: dict[str, str] = {}

        with tracer.span_with_kind("kafka.producer") as span:
            inject_context(tracer, headers)

        assert headers[SPAN_ID] == span.context.span_id

    def test_none_headers_are_a_noop(self):
        """No headers means nothing to inject into."""
        tracer = MockTracer()

        inject_context(tracer, None)

        assert tracer.injected == []

    def test_null_tracer_leaves_headers_untouched(self):
        """A tracer that writes nothing does not modify the headers."""
        headers = [("event_type", b"OrderCreated")]

        inject_context(NullTracer(), headers)

        assert headers == [("event_type", b"OrderCreated")]

    def test_immutable_headers_are_logged(self, caplog):
        """Headers that cannot be updated are left alone with a warning."""
        tracer = MockTracer()
        headers = (("event_type", b"OrderCreated"),)

        with caplog.at_level(logging.WARNING, logger="kafka_tracer.propagation"):
            with tracer.span_with_kind("kafka.producer") as span:
                inject_context(tracer, headers, span)

        assert headers == (("event_type", b"OrderCreated"),)
        assert "immutable headers" in caplog.text


class TestExtractContext:
    """Tests for extract_context()."""

    def test_round_trip_through_list_headers(self):
        """Context injected into list headers is extracted again."""
        tracer = MockTracer()
        headers: list[tuple[str, bytes]] = []
        with tracer.span_with_kind("kafka.producer") as span:
            inject_context(tracer, headers, span)

        assert extract_context(tracer, headers) == span.context

    def test_round_trip_through_mapping_headers(self):
        """Context injected into mapping headers is extracted again."""
        tracer = MockTracer()
        headers: dict[str, str] = {}
        with tracer.span_with_kind("kafka.producer") as span:
            inject_context(tracer, headers, span)

        assert extract_context(tracer, headers) == span.context

    def test_missing_headers_have_no_parent(self):
        """Messages without headers are extracted from an empty carrier."""
        tracer = MockTracer()

        assert extract_context(tracer, None) is None
        assert tracer.extracted == [{}]
