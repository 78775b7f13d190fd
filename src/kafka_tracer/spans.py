"""
Span lifecycle around a single send or a single received message.

Producer side:
    1. ``kafka.producer`` span started as the active span, with its tags
    2. span context injected into the outgoing headers
    3. the send runs
    4. errors of the client's error domain tag the span ``error=True`` and
       are re-raised unchanged
    5. the span finishes when the block exits

Consumer side:
    1. parent context extracted from the message headers
    2. ``kafka.consumer`` span started as a child of that context
    3. the per-message callback runs
    4. any exception tags the span ``error=True`` and is re-raised
    5. the span finishes when the block exits

Both sides are exposed as context managers (usable around blocking calls
and ``await`` expressions alike) and as thin ``traced_*`` helpers. When a
blocking send or callback returns a coroutine (or, for callbacks, any
awaitable), the helper returns a coroutine that keeps the span open until
the awaited work is done.
"""

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable, Generator
from typing import Any, TypeVar

from opentelemetry.trace import Status, StatusCode

from kafka_tracer.observability import SpanKindEnum, Tracer
from kafka_tracer.observability.attributes import (
    ATTR_ERROR,
    ATTR_MESSAGE_BUS_DESTINATION,
    SPAN_NAME_CONSUMER,
    SPAN_NAME_PRODUCER,
)
from kafka_tracer.propagation import extract_context, inject_context

logger = logging.getLogger(__name__)

R = TypeVar("R")

ErrorTypes = type[BaseException] | tuple[type[BaseException], ...]


def mark_error(span: Any, error: BaseException) -> None:
    """Tag ``span`` as failed with ``error``."""
    if span is None:
        return
    span.set_attribute(ATTR_ERROR, True)
    span.set_status(Status(StatusCode.ERROR, str(error)))
    span.record_exception(error)


@contextlib.contextmanager
def producer_span(
    tracer: Tracer,
    tags: dict[str, Any],
    headers: Any,
    error_types: ErrorTypes = Exception,
) -> Generator[Any, None, None]:
    """
    Open a ``kafka.producer`` span and inject its context into ``headers``.

    The context is injected before the body runs, so the headers handed to
    the client already carry it.

    Args:
        tracer: Tracer creating the span
        tags: Producer span tags
        headers: Outgoing message headers, updated in place
        error_types: Exceptions that mark the span as failed

    Yields:
        The active span
    """
    with tracer.span_with_kind(
        SPAN_NAME_PRODUCER,
        kind=SpanKindEnum.PRODUCER,
        attributes=tags,
    ) as span:
        inject_context(tracer, headers, span)
        logger.debug(
            "Producer span started",
            extra={"topic": tags.get(ATTR_MESSAGE_BUS_DESTINATION)},
        )
        try:
            yield span
        except error_types as e:
            mark_error(span, e)
            raise


@contextlib.contextmanager
def consumer_span(
    tracer: Tracer,
    message: Any,
    tags: dict[str, Any],
) -> Generator[Any, None, None]:
    """
    Open a ``kafka.consumer`` span parented on the context in ``message``.

    Args:
        tracer: Tracer creating the span
        message: Fetched message whose headers carry the producer context
        tags: Consumer span tags

    Yields:
        The active span
    """
    parent = extract_context(tracer, getattr(message, "headers", None))
    with tracer.span_with_kind(
        SPAN_NAME_CONSUMER,
        kind=SpanKindEnum.CONSUMER,
        attributes=tags,
        context=parent,
    ) as span:
        logger.debug(
            "Consumer span started",
            extra={"topic": tags.get(ATTR_MESSAGE_BUS_DESTINATION)},
        )
        try:
            yield span
        except Exception as e:
            mark_error(span, e)
            raise


async def _await_within(stack: contextlib.ExitStack, awaitable: Awaitable[R]) -> R:
    with stack:
        return await awaitable


def traced_send(
    tracer: Tracer,
    tags: dict[str, Any],
    headers: Any,
    operation: Callable[[], R],
    error_types: ErrorTypes = Exception,
) -> R:
    """Run a blocking send inside a producer span and return its result."""
    with contextlib.ExitStack() as stack:
        stack.enter_context(producer_span(tracer, tags, headers, error_types))
        result = operation()
        if inspect.iscoroutine(result):
            return _await_within(stack.pop_all(), result)  # type: ignore[return-value]
        return result


async def traced_send_async(
    tracer: Tracer,
    tags: dict[str, Any],
    headers: Any,
    operation: Callable[[], Awaitable[R]],
    error_types: ErrorTypes = Exception,
) -> R:
    """Await a coroutine send inside a producer span and return its result."""
    with producer_span(tracer, tags, headers, error_types):
        return await operation()


def traced_receive(
    tracer: Tracer,
    message: Any,
    tags: dict[str, Any],
    callback: Callable[[Any], R],
) -> R:
    """Run a per-message callback inside a consumer span."""
    with contextlib.ExitStack() as stack:
        stack.enter_context(consumer_span(tracer, message, tags))
        result = callback(message)
        if inspect.isawaitable(result):
            return _await_within(stack.pop_all(), result)  # type: ignore[return-value]
        return result


async def traced_receive_async(
    tracer: Tracer,
    message: Any,
    tags: dict[str, Any],
    callback: Callable[[Any], Awaitable[R]],
) -> R:
    """Await a coroutine per-message callback inside a consumer span."""
    with consumer_span(tracer, message, tags):
        return await callback(message)


__all__ = [
    "consumer_span",
    "mark_error",
    "producer_span",
    "traced_receive",
    "traced_receive_async",
    "traced_send",
    "traced_send_async",
]
