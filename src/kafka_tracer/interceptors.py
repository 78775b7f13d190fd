"""
Interceptors for the four traced operations of a Kafka client.

Each interceptor is a ``wrapt`` wrapper, ``(wrapped, instance, args, kwargs)``,
and follows the same pattern: read the current configuration, consult the
filter predicate, then either run the original call untouched or run it
through the span lifecycle in :mod:`kafka_tracer.spans`.

Operation shapes:
    SYNC_SEND           blocking send, ``message_bus.pending_message=False``
    BATCHED_SEND        buffered send, ``message_bus.pending_message=True``
    TOPIC_RECEIVE_LOOP  receive loop over one topic, per-message callback
    GROUP_RECEIVE_LOOP  consumer-group receive loop, per-message callback

Send operations are expected to take the arguments ``value``, ``key``,
``headers``, ``topic``, ``partition`` and ``partition_key`` (positionally
or by keyword). Coroutine functions and coroutine callbacks are traced
with coroutine wrappers so the span covers the awaited work.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Awaitable, Callable
from contextvars import ContextVar
from enum import Enum
from typing import Any, TypeVar

from kafka_tracer.config import InstrumentationConfig, TracingState
from kafka_tracer.spans import (
    ErrorTypes,
    traced_receive,
    traced_receive_async,
    traced_send,
    traced_send_async,
)
from kafka_tracer.tags import build_consumer_tags, build_producer_tags

logger = logging.getLogger(__name__)

R = TypeVar("R")

HeadersFactory = Callable[[], Any]
"""Creates the headers of a traced send called without headers."""

# Set while an intercepted send runs, traced or filtered, so a send
# implemented on top of another instrumented send is intercepted once.
_inside_send: ContextVar[bool] = ContextVar("kafka_tracer_inside_send", default=False)


class OperationShape(Enum):
    """The four call shapes that can be intercepted."""

    SYNC_SEND = "sync_send"
    BATCHED_SEND = "batched_send"
    TOPIC_RECEIVE_LOOP = "topic_receive_loop"
    GROUP_RECEIVE_LOOP = "group_receive_loop"

    @property
    def is_send(self) -> bool:
        return self in (OperationShape.SYNC_SEND, OperationShape.BATCHED_SEND)


class _BoundCall:
    """Arguments of one intercepted call, readable and replaceable by name."""

    def __init__(self, bound: inspect.BoundArguments, passed: frozenset[str]) -> None:
        self._bound = bound
        self._passed = passed
        self._named = {
            name
            for name, parameter in bound.signature.parameters.items()
            if parameter.kind not in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD)
        }
        self._extra: dict[str, Any] = next(
            (
                bound.arguments[name]
                for name, parameter in bound.signature.parameters.items()
                if parameter.kind is parameter.VAR_KEYWORD
            ),
            {},
        )

    @classmethod
    def bind(
        cls,
        wrapped: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> _BoundCall | None:
        """Bind a call, or return None when it does not match the signature."""
        try:
            bound = inspect.signature(wrapped).bind(*args, **kwargs)
        except (TypeError, ValueError):
            return None
        passed = frozenset(bound.arguments)
        bound.apply_defaults()
        return cls(bound, passed)

    def passed(self, name: str) -> bool:
        """True if the caller gave ``name``, False if it holds its default."""
        if name in self._named:
            return name in self._passed
        return name in self._extra

    def get(self, name: str, default: Any = None) -> Any:
        if name in self._named:
            return self._bound.arguments.get(name, default)
        return self._extra.get(name, default)

    def set(self, name: str, value: Any) -> None:
        if name in self._named:
            self._bound.arguments[name] = value
        else:
            self._extra[name] = value

    def invoke(self, wrapped: Callable[..., Any]) -> Any:
        return wrapped(*self._bound.args, **self._bound.kwargs)


async def _await_inside_send(awaitable: Awaitable[R]) -> R:
    token = _inside_send.set(True)
    try:
        return await awaitable
    finally:
        _inside_send.reset(token)


def _run_inside_send(operation: Callable[[], Any]) -> Any:
    """Run ``operation`` with nested sends suppressed, also while its coroutine is awaited."""
    token = _inside_send.set(True)
    try:
        result = operation()
    finally:
        _inside_send.reset(token)
    if inspect.iscoroutine(result):
        return _await_inside_send(result)
    return result


class SendInterceptor:
    """
    Interceptor for a send operation.

    Args:
        state: Holder of the active configuration
        component: Value of the ``component`` tag
        error_types: Client errors that mark the span as failed
        pending: True for a buffered send, False for a blocking one
        headers_factory: Creates headers for a send called without them
            (``dict`` for mapping headers, ``list`` for tuple-list headers)
    """

    def __init__(
        self,
        state: TracingState,
        component: str,
        error_types: ErrorTypes = Exception,
        pending: bool = False,
        headers_factory: HeadersFactory = dict,
    ) -> None:
        self._state = state
        self._component = component
        self._error_types = error_types
        self._pending = pending
        self._headers_factory = headers_factory

    def __call__(
        self,
        wrapped: Callable[..., Any],
        instance: Any,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        config = self._state.current()
        if config is None or _inside_send.get():
            return wrapped(*args, **kwargs)

        call = _BoundCall.bind(wrapped, args, kwargs)
        if call is None:
            # Let the client report the bad call exactly as it would untraced.
            return wrapped(*args, **kwargs)

        headers = call.get("headers")
        topic = call.get("topic")
        partition = call.get("partition")
        partition_key = call.get("partition_key")

        ignored = config.ignore_message(
            call.get("value"),
            call.get("key"),
            headers,
            topic,
            partition,
            partition_key,
        )
        if ignored:
            logger.debug("Message ignored, sending untraced", extra={"topic": topic})
            return _run_inside_send(lambda: call.invoke(wrapped))

        # A default value is shared by every call and must not receive context.
        if headers is None or not call.passed("headers"):
            headers = self._headers_factory()
            call.set("headers", headers)

        tags = build_producer_tags(self._component, topic, partition, partition_key, self._pending)
        traced = traced_send_async if inspect.iscoroutinefunction(wrapped) else traced_send
        return _run_inside_send(
            lambda: traced(
                config.tracer,
                tags,
                headers,
                lambda: call.invoke(wrapped),
                self._error_types,
            )
        )


class ReceiveLoopInterceptor:
    """
    Interceptor for a receive loop delivering messages to a callback.

    The loop itself runs untouched; its per-message callback is replaced
    by one that processes each message inside a consumer span. The
    configuration is read for every message, so uninstrumenting stops
    tracing of loops that are already running.

    Args:
        state: Holder of the active configuration
        component: Value of the ``component`` tag
        callback_param: Name of the loop's callback parameter
    """

    def __init__(self, state: TracingState, component: str, callback_param: str) -> None:
        self._state = state
        self._component = component
        self._callback_param = callback_param

    def __call__(
        self,
        wrapped: Callable[..., Any],
        instance: Any,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        if self._state.current() is None:
            return wrapped(*args, **kwargs)

        call = _BoundCall.bind(wrapped, args, kwargs)
        if call is None:
            return wrapped(*args, **kwargs)

        callback = call.get(self._callback_param)
        if callback is None:
            return call.invoke(wrapped)

        call.set(self._callback_param, self.wrap_callback(callback))
        return call.invoke(wrapped)

    def wrap_callback(self, callback: Callable[[Any], Any]) -> Callable[[Any], Any]:
        """Return ``callback`` wrapped so each message is traced."""
        if inspect.iscoroutinefunction(callback):

            @functools.wraps(callback)
            async def traced_async_callback(message: Any) -> Any:
                config = self._config_for(message)
                if config is None:
                    return await callback(message)
                return await traced_receive_async(
                    config.tracer,
                    message,
                    self._tags(message),
                    callback,
                )

            return traced_async_callback

        @functools.wraps(callback)
        def traced_callback(message: Any) -> Any:
            config = self._config_for(message)
            if config is None:
                return callback(message)
            return traced_receive(config.tracer, message, self._tags(message), callback)

        return traced_callback

    def _config_for(self, message: Any) -> InstrumentationConfig | None:
        config = self._state.current()
        if config is None:
            return None
        ignored = config.ignore_message(
            getattr(message, "value", None),
            getattr(message, "key", None),
            getattr(message, "headers", None),
            message.topic,
            message.partition,
            None,
        )
        return None if ignored else config

    def _tags(self, message: Any) -> dict[str, Any]:
        return build_consumer_tags(self._component, message.topic, message.partition)


def create_interceptor(
    shape: OperationShape,
    state: TracingState,
    component: str,
    error_types: ErrorTypes = Exception,
    callback_param: str | None = None,
    headers_factory: HeadersFactory = dict,
) -> SendInterceptor | ReceiveLoopInterceptor:
    """
    Create the interceptor for an operation shape.

    Args:
        shape: Which of the four operations is intercepted
        state: Holder of the active configuration
        component: Value of the ``component`` tag
        error_types: Client errors that mark producer spans as failed
        callback_param: Callback parameter name (receive loops only)
        headers_factory: Headers created for sends without headers

    Returns:
        A ``wrapt``-compatible wrapper

    Raises:
        ValueError: If a receive loop is requested without callback_param
    """
    if shape.is_send:
        return SendInterceptor(
            state,
            component,
            error_types,
            pending=shape is OperationShape.BATCHED_SEND,
            headers_factory=headers_factory,
        )
    if not callback_param:
        raise ValueError(f"{shape.value} interceptor requires a callback parameter name")
    return ReceiveLoopInterceptor(state, component, callback_param)


__all__ = [
    "HeadersFactory",
    "OperationShape",
    "ReceiveLoopInterceptor",
    "SendInterceptor",
    "create_interceptor",
]
