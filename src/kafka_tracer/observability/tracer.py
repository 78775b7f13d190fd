"""
Tracer protocol and implementations for kafka_tracer.

The interceptors never talk to OpenTelemetry directly. They depend on the
small capability surface described by :class:`Tracer`: open an active span
of a given kind, and inject/extract trace context into a text-map carrier.
That keeps the span lifecycle testable with :class:`MockTracer` and lets
tracing be switched off entirely with :class:`NullTracer`.

Example:
    >>> from kafka_tracer.observability import create_tracer, SpanKindEnum
    >>>
    >>> tracer = create_tracer(__name__)
    >>> with tracer.span_with_kind("kafka.producer", kind=SpanKindEnum.PRODUCER) as span:
    ...     carrier: dict[str, str] = {}
    ...     tracer.inject(carrier)
"""

from __future__ import annotations

import contextlib
import uuid
from collections.abc import Generator, MutableMapping
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from opentelemetry import propagate, trace

if TYPE_CHECKING:
    from opentelemetry.context import Context
    from opentelemetry.trace import Span

DEFAULT_TRACER_NAME = "kafka_tracer"


class SpanKindEnum(Enum):
    """
    Span kinds for distributed tracing.

    Simplified enumeration mapped onto OpenTelemetry's SpanKind by
    :class:`OpenTelemetryTracer`.

    Values:
        INTERNAL: Default span kind for internal operations
        PRODUCER: For send operations
        CONSUMER: For processing of a received message
    """

    INTERNAL = "internal"
    PRODUCER = "producer"
    CONSUMER = "consumer"


@runtime_checkable
class Tracer(Protocol):
    """
    Protocol for tracers used by the interceptors.

    Implementations:
    - NullTracer: No-op tracer for when tracing is disabled
    - OpenTelemetryTracer: Wrapper around the OpenTelemetry API
    - MockTracer: Recording tracer for tests
    """

    @property
    def enabled(self) -> bool:
        """True if the tracer creates real spans."""
        ...

    def span_with_kind(
        self,
        name: str,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        attributes: dict[str, Any] | None = None,
        context: Any | None = None,
    ) -> AbstractContextManager[Any]:
        """
        Open a span that is active for the duration of the ``with`` block.

        The span is finished when the block exits, whether normally or by
        an exception.

        Args:
            name: Span name (e.g., "kafka.producer")
            kind: The span kind (PRODUCER, CONSUMER, ...)
            attributes: Span tags (optional)
            context: Parent context, typically one returned by ``extract``

        Returns:
            Context manager yielding the span (or None for NullTracer)
        """
        ...

    def inject(self, carrier: MutableMapping[str, str], span: Any | None = None) -> None:
        """
        Write the context of ``span`` (default: the active span) into ``carrier``.

        Args:
            carrier: Text map receiving string keys and values
            span: Span whose context is propagated (optional)
        """
        ...

    def extract(self, carrier: MutableMapping[str, str]) -> Any | None:
        """
        Read a parent context from ``carrier``.

        Args:
            carrier: Text map read from a received message

        Returns:
            A context usable as ``span_with_kind(context=...)``
        """
        ...


class NullTracer:
    """
    No-op tracer implementation for when tracing is disabled.

    Example:
        >>> tracer = NullTracer()
        >>> with tracer.span_with_kind("operation"):  # Does nothing
        ...     do_work()
        >>> tracer.enabled  # False
    """

    @property
    def enabled(self) -> bool:
        """Always returns False for NullTracer."""
        return False

    @contextlib.contextmanager
    def span_with_kind(
        self,
        name: str,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        attributes: dict[str, Any] | None = None,
        context: Any | None = None,
    ) -> Generator[None, None, None]:
        """Create a no-op span context (yields None)."""
        yield None

    def inject(self, carrier: MutableMapping[str, str], span: Any | None = None) -> None:
        """Leave the carrier untouched."""
        return None

    def extract(self, carrier: MutableMapping[str, str]) -> None:
        """Return None (no parent)."""
        return None


_KIND_MAPPING = {
    SpanKindEnum.INTERNAL: trace.SpanKind.INTERNAL,
    SpanKindEnum.PRODUCER: trace.SpanKind.PRODUCER,
    SpanKindEnum.CONSUMER: trace.SpanKind.CONSUMER,
}


class OpenTelemetryTracer:
    """
    OpenTelemetry tracer implementation.

    Spans are created through the globally configured TracerProvider and
    context is propagated with the globally configured text-map propagator
    (W3C ``traceparent``/``tracestate`` and ``baggage`` by default).

    Exceptions are not recorded automatically; the span lifecycle decides
    which errors mark a span as failed.

    Args:
        tracer_name: Name for the tracer (typically __name__)
    """

    def __init__(self, tracer_name: str = DEFAULT_TRACER_NAME) -> None:
        self._tracer = trace.get_tracer(tracer_name)

    @property
    def enabled(self) -> bool:
        """Always returns True for OpenTelemetryTracer."""
        return True

    def span_with_kind(
        self,
        name: str,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        attributes: dict[str, Any] | None = None,
        context: Context | None = None,
    ) -> AbstractContextManager[Span]:
        """
        Create an OpenTelemetry span context with SpanKind.

        Tags whose value is None are not sent to OpenTelemetry, which does
        not accept None attribute values.
        """
        return self._tracer.start_as_current_span(
            name,
            context=context,
            kind=_KIND_MAPPING.get(kind, trace.SpanKind.INTERNAL),
            attributes={k: v for k, v in (attributes or {}).items() if v is not None},
            record_exception=False,
            set_status_on_exception=False,
        )

    def inject(self, carrier: MutableMapping[str, str], span: Span | None = None) -> None:
        context = trace.set_span_in_context(span) if span is not None else None
        propagate.inject(carrier, context=context)

    def extract(self, carrier: MutableMapping[str, str]) -> Context:
        return propagate.extract(carrier)


# =============================================================================
# Test double
# =============================================================================


@dataclass(frozen=True)
class MockSpanContext:
    """Identity of a span created by MockTracer."""

    trace_id: str
    span_id: str


@dataclass
class MockSpan:
    """Span recorded by MockTracer."""

    name: str
    kind: SpanKindEnum
    attributes: dict[str, Any]
    parent: Any | None
    context: MockSpanContext
    attribute_calls: list[tuple[str, Any]] = field(default_factory=list)
    statuses: list[Any] = field(default_factory=list)
    exceptions: list[BaseException] = field(default_factory=list)
    ended: bool = False

    def set_attribute(self, key: str, value: Any) -> None:
        self.attribute_calls.append((key, value))
        self.attributes[key] = value

    def set_status(self, status: Any, description: str | None = None) -> None:
        self.statuses.append(status)

    def record_exception(self, exception: BaseException, **kwargs: Any) -> None:
        self.exceptions.append(exception)

    def end(self) -> None:
        self.ended = True


class MockTracer:
    """
    Mock tracer for testing that records spans and propagation calls.

    Injected carriers receive ``x-mock-trace-id`` and ``x-mock-span-id``
    keys; extracting a carrier holding them yields the producing span's
    :class:`MockSpanContext`, so a producer/consumer round trip can be
    asserted without an OpenTelemetry SDK.

    Example:
        >>> tracer = MockTracer()
        >>> with tracer.span_with_kind("operation", attributes={"key": "value"}):
        ...     pass
        >>> assert tracer.span_names == ["operation"]
        >>> assert tracer.spans[0].attributes == {"key": "value"}
    """

    TRACE_ID_HEADER = "x-mock-trace-id"
    SPAN_ID_HEADER = "x-mock-span-id"

    def __init__(self) -> None:
        """Initialize MockTracer with empty recordings."""
        self.spans: list[MockSpan] = []
        self.injected: list[MutableMapping[str, str]] = []
        self.extracted: list[MutableMapping[str, str]] = []
        self._active: list[MockSpan] = []

    @property
    def enabled(self) -> bool:
        """Returns True to enable attribute computation in tests."""
        return True

    @property
    def span_names(self) -> list[str]:
        """Get just the span names for easy assertions."""
        return [span.name for span in self.spans]

    @property
    def active_span(self) -> MockSpan | None:
        return self._active[-1] if self._active else None

    def clear(self) -> None:
        """Clear recorded spans and propagation calls."""
        self.spans.clear()
        self.injected.clear()
        self.extracted.clear()

    @contextlib.contextmanager
    def span_with_kind(
        self,
        name: str,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        attributes: dict[str, Any] | None = None,
        context: Any | None = None,
    ) -> Generator[MockSpan, None, None]:
        """Record a span, make it active and end it on exit."""
        if context is None and self._active:
            parent: Any | None = self._active[-1].context
            trace_id = self._active[-1].context.trace_id
        else:
            parent = context
            if isinstance(context, MockSpanContext):
                trace_id = context.trace_id
            else:
                trace_id = uuid.uuid4().hex
        span = MockSpan(
            name=name,
            kind=kind,
            attributes=dict(attributes) if attributes is not None else {},
            parent=parent,
            context=MockSpanContext(trace_id=trace_id, span_id=uuid.uuid4().hex[:16]),
        )
        self.spans.append(span)
        self._active.append(span)
        try:
            yield span
        finally:
            self._active.pop()
            span.end()

    def inject(self, carrier: MutableMapping[str, str], span: MockSpan | None = None) -> None:
        self.injected.append(carrier)
        target = span if span is not None else self.active_span
        if target is None:
            return
        carrier[self.TRACE_ID_HEADER] = target.context.trace_id
        carrier[self.SPAN_ID_HEADER] = target.context.span_id

    def extract(self, carrier: MutableMapping[str, str]) -> MockSpanContext | None:
        self.extracted.append(carrier)
        trace_id = carrier.get(self.TRACE_ID_HEADER)
        span_id = carrier.get(self.SPAN_ID_HEADER)
        if not trace_id or not span_id:
            return None
        return MockSpanContext(trace_id=trace_id, span_id=span_id)


def create_tracer(
    name: str = DEFAULT_TRACER_NAME,
    enable_tracing: bool = True,
) -> Tracer:
    """
    Factory function to create the appropriate tracer.

    Args:
        name: Tracer name (typically __name__)
        enable_tracing: Whether tracing should be enabled (default True)

    Returns:
        OpenTelemetryTracer bound to the global TracerProvider if enabled,
        NullTracer otherwise
    """
    if enable_tracing:
        return OpenTelemetryTracer(name)
    return NullTracer()


__all__ = [
    "DEFAULT_TRACER_NAME",
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "MockSpan",
    "MockSpanContext",
    "SpanKindEnum",
    "create_tracer",
]
