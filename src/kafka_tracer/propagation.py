"""
Trace context propagation through message headers.

The tracer speaks text maps (``dict[str, str]``); Kafka clients carry
headers either as a mapping or as a list of ``(name, bytes)`` tuples. This
module converts between the two so the same tracer works with both header
conventions.

Example:
    >>> headers: list[tuple[str, bytes]] = [("event_type", b"OrderCreated")]
    >>> with tracer.span_with_kind("kafka.producer") as span:
    ...     inject_context(tracer, headers, span)
    >>> headers
    [('event_type', b'OrderCreated'), ('traceparent', b'00-...')]
    >>>
    >>> parent = extract_context(tracer, headers)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any

from kafka_tracer.observability import Tracer

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            return None
    return None


def carrier_from_headers(headers: Any) -> dict[str, str]:
    """
    Build a text-map carrier from message headers.

    Entries that are not text (or UTF-8 encoded text) are skipped. Headers
    of an unrecognised type yield an empty carrier.

    Args:
        headers: A mapping, a list of (name, value) tuples, or None

    Returns:
        Dictionary of string header names to string values
    """
    carrier: dict[str, str] = {}
    if not headers:
        return carrier

    if isinstance(headers, Mapping):
        items = headers.items()
    elif isinstance(headers, (list, tuple)):
        items = (entry for entry in headers if isinstance(entry, tuple) and len(entry) == 2)
    else:
        logger.debug(
            "Ignoring headers of unsupported type",
            extra={"headers_type": type(headers).__name__},
        )
        return carrier

    for raw_key, raw_value in items:
        key = _as_text(raw_key)
        value = _as_text(raw_value)
        if key is None or value is None:
            continue
        carrier[key] = value
    return carrier


def inject_context(tracer: Tracer, headers: Any, span: Any | None = None) -> None:
    """
    Write the context of ``span`` into ``headers`` in place.

    Mapping headers receive string values. List headers receive
    ``(name, bytes)`` tuples; entries with the same name as an injected key
    are replaced, every other entry is kept.

    Args:
        tracer: Tracer providing the text-map representation
        headers: Message headers to update; None is a no-op
        span: Span to propagate (default: the tracer's active span)
    """
    if headers is None:
        return

    carrier: dict[str, str] = {}
    tracer.inject(carrier, span)
    if not carrier:
        return

    if isinstance(headers, MutableMapping):
        headers.update(carrier)
    elif isinstance(headers, list):
        headers[:] = [
            entry
            for entry in headers
            if not (isinstance(entry, tuple) and entry and entry[0] in carrier)
        ]
        headers.extend((key, value.encode("utf-8")) for key, value in carrier.items())
    else:
        logger.warning(
            "Cannot inject trace context into immutable headers",
            extra={"headers_type": type(headers).__name__},
        )


def extract_context(tracer: Tracer, headers: Any) -> Any | None:
    """
    Read the parent context carried by ``headers``.

    Args:
        tracer: Tracer decoding the text map
        headers: Headers of a received message (may be None or empty)

    Returns:
        The extracted context; whatever the tracer uses for "no parent"
        when the headers carry none
    """
    return tracer.extract(carrier_from_headers(headers))


__all__ = [
    "carrier_from_headers",
    "extract_context",
    "inject_context",
]
