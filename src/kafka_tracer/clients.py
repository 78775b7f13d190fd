"""
Traced client wrappers.

An alternative to patching the client library: build a traced wrapper
around one producer, client or consumer instance. The wrapper exposes the
traced operation under the same name and delegates every other attribute
to the wrapped object. Nothing global is modified, so "uninstrumenting" is
simply going back to the plain object.

Example:
    >>> from kafka_tracer import InstrumentationConfig, TracedProducer
    >>>
    >>> producer = TracedProducer(kafka.producer(), InstrumentationConfig())
    >>> producer.produce("hello", topic="greetings")
    >>> producer.deliver_messages()  # delegated untouched
"""

from __future__ import annotations

from typing import Any

from kafka_tracer.config import InstrumentationConfig, TracingState
from kafka_tracer.interceptors import HeadersFactory, ReceiveLoopInterceptor, SendInterceptor
from kafka_tracer.spans import ErrorTypes
from kafka_tracer.tags import DEFAULT_COMPONENT


class _TracedWrapper:
    def __init__(self, wrapped: Any, config: InstrumentationConfig | None) -> None:
        self._wrapped = wrapped
        self._state = TracingState(config or InstrumentationConfig())

    @property
    def wrapped(self) -> Any:
        """The plain, untraced object."""
        return self._wrapped

    @property
    def config(self) -> InstrumentationConfig | None:
        return self._state.current()

    def __getattr__(self, name: str) -> Any:
        return getattr(self._wrapped, name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._wrapped!r})"


class TracedProducer(_TracedWrapper):
    """
    Producer whose ``produce`` (buffered send) is traced.

    Args:
        producer: Producer to wrap
        config: Tracer and filter (default: OpenTelemetry, trace everything)
        component: Value of the ``component`` tag
        error_types: Client errors that mark the span as failed
        headers_factory: Creates headers for sends made without them
    """

    def __init__(
        self,
        producer: Any,
        config: InstrumentationConfig | None = None,
        component: str = DEFAULT_COMPONENT,
        error_types: ErrorTypes = Exception,
        headers_factory: HeadersFactory = dict,
    ) -> None:
        super().__init__(producer, config)
        self._produce = SendInterceptor(
            self._state,
            component,
            error_types,
            pending=True,
            headers_factory=headers_factory,
        )

    def produce(self, *args: Any, **kwargs: Any) -> Any:
        return self._produce(self._wrapped.produce, self._wrapped, args, kwargs)


class TracedClient(_TracedWrapper):
    """
    Client whose ``deliver_message`` (blocking send) and ``each_message``
    (topic receive loop) are traced.

    Args:
        client: Client to wrap
        config: Tracer and filter (default: OpenTelemetry, trace everything)
        component: Value of the ``component`` tag
        error_types: Client errors that mark producer spans as failed
        callback_param: Name of the receive loop's callback parameter
        headers_factory: Creates headers for sends made without them
    """

    def __init__(
        self,
        client: Any,
        config: InstrumentationConfig | None = None,
        component: str = DEFAULT_COMPONENT,
        error_types: ErrorTypes = Exception,
        callback_param: str = "handler",
        headers_factory: HeadersFactory = dict,
    ) -> None:
        super().__init__(client, config)
        self._deliver_message = SendInterceptor(
            self._state,
            component,
            error_types,
            pending=False,
            headers_factory=headers_factory,
        )
        self._each_message = ReceiveLoopInterceptor(self._state, component, callback_param)

    def deliver_message(self, *args: Any, **kwargs: Any) -> Any:
        return self._deliver_message(self._wrapped.deliver_message, self._wrapped, args, kwargs)

    def each_message(self, *args: Any, **kwargs: Any) -> Any:
        return self._each_message(self._wrapped.each_message, self._wrapped, args, kwargs)


class TracedConsumer(_TracedWrapper):
    """
    Consumer-group member whose ``each_message`` receive loop is traced.

    Args:
        consumer: Consumer to wrap
        config: Tracer and filter (default: OpenTelemetry, trace everything)
        component: Value of the ``component`` tag
        callback_param: Name of the receive loop's callback parameter
    """

    def __init__(
        self,
        consumer: Any,
        config: InstrumentationConfig | None = None,
        component: str = DEFAULT_COMPONENT,
        callback_param: str = "handler",
    ) -> None:
        super().__init__(consumer, config)
        self._each_message = ReceiveLoopInterceptor(self._state, component, callback_param)

    def each_message(self, *args: Any, **kwargs: Any) -> Any:
        return self._each_message(self._wrapped.each_message, self._wrapped, args, kwargs)


__all__ = [
    "TracedClient",
    "TracedConsumer",
    "TracedProducer",
]
