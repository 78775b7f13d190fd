"""
Instrumentation configuration.

The active tracer and filter predicate are read by every intercepted call
and written only when instrumentation is switched on or off. They are kept
together in an immutable :class:`InstrumentationConfig` snapshot; a
:class:`TracingState` swaps whole snapshots under a lock, so readers never
see a tracer from one activation paired with the filter of another.

Example:
    >>> from kafka_tracer.config import InstrumentationConfig, TracingState
    >>> from kafka_tracer.observability import MockTracer
    >>>
    >>> state = TracingState()
    >>> state.set(InstrumentationConfig(tracer=MockTracer()))
    >>> state.current().ignore_message("v", None, {}, "orders", None, None)
    False
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from kafka_tracer.observability import Tracer, create_tracer
from kafka_tracer.protocols import IgnoreMessage, never_ignore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstrumentationConfig:
    """
    Tracer and filter predicate used by the interceptors.

    Attributes:
        tracer: Tracer creating the producer and consumer spans. Defaults
            to the OpenTelemetry global tracer.
        ignore_message: Filter predicate; messages for which it returns
            True are passed through without any tracing.
    """

    tracer: Tracer = field(default_factory=create_tracer)
    ignore_message: IgnoreMessage = never_ignore


class TracingState:
    """
    Holder for the current :class:`InstrumentationConfig`.

    Reads are lock-free: ``current()`` returns whichever snapshot was last
    published. Writes are serialised by a lock.
    """

    def __init__(self, config: InstrumentationConfig | None = None) -> None:
        self._lock = threading.Lock()
        self._config = config

    def current(self) -> InstrumentationConfig | None:
        """Return the active configuration, or None when tracing is off."""
        return self._config

    def set(self, config: InstrumentationConfig) -> None:
        with self._lock:
            self._config = config
        logger.debug(
            "Tracing configuration updated",
            extra={"tracer": type(config.tracer).__name__},
        )

    def clear(self) -> None:
        with self._lock:
            self._config = None


__all__ = [
    "InstrumentationConfig",
    "TracingState",
]
