"""
Capability protocols for the instrumented message-bus client.

kafka_tracer never imports a concrete client type. It relies only on the
shapes below, which match the four hook points it intercepts and the
attributes it reads from fetched messages.

Headers may be either a mutable mapping (``{"name": "value"}``) or a list
of ``(name, bytes)`` tuples, the two conventions used by Kafka clients.
"""

from __future__ import annotations

from collections.abc import Callable, MutableMapping
from typing import Any, Protocol, TypeAlias, runtime_checkable

Headers: TypeAlias = MutableMapping[str, Any] | list[tuple[str, bytes]]
"""Message headers: a mapping or a list of (name, value) tuples."""

IgnoreMessage: TypeAlias = Callable[[Any, Any, Any, str, Any, Any], bool]
"""Filter predicate ``(value, key, headers, topic, partition, partition_key) -> bool``.

Returning True skips tracing for the message entirely.
"""

MessageHandler: TypeAlias = Callable[["FetchedMessage"], Any]
"""Per-message callback passed to a receive loop."""


@runtime_checkable
class FetchedMessage(Protocol):
    """A message delivered to a receive-loop callback."""

    @property
    def headers(self) -> Headers | None: ...

    @property
    def partition(self) -> Any: ...

    @property
    def topic(self) -> str: ...


@runtime_checkable
class MessageProducer(Protocol):
    """Buffering producer: messages are queued and delivered on a later flush."""

    def produce(
        self,
        value: Any,
        key: Any = None,
        headers: Headers | None = None,
        topic: str = ...,
        partition: int | None = None,
        partition_key: Any = None,
        **kwargs: Any,
    ) -> Any: ...


@runtime_checkable
class MessageClient(Protocol):
    """Client offering a blocking send and a flat topic receive loop."""

    def deliver_message(
        self,
        value: Any,
        key: Any = None,
        headers: Headers | None = None,
        topic: str = ...,
        partition: int | None = None,
        partition_key: Any = None,
        **kwargs: Any,
    ) -> Any: ...

    def each_message(self, topic: str, handler: MessageHandler, **kwargs: Any) -> Any: ...


@runtime_checkable
class MessageConsumer(Protocol):
    """Consumer-group member delivering messages of its assigned partitions."""

    def each_message(self, handler: MessageHandler, **kwargs: Any) -> Any: ...


def never_ignore(
    value: Any,
    key: Any,
    headers: Any,
    topic: str,
    partition: Any,
    partition_key: Any,
) -> bool:
    """Default filter predicate: trace every message."""
    return False


__all__ = [
    "Headers",
    "IgnoreMessage",
    "MessageHandler",
    "FetchedMessage",
    "MessageProducer",
    "MessageClient",
    "MessageConsumer",
    "never_ignore",
]
