"""
kafka_tracer - distributed tracing for Kafka producers and consumers.

This library provides:
- Producer spans around blocking and buffered sends, with the trace
  context injected into the outgoing message headers
- Consumer spans around the processing of each received message, parented
  on the context carried by its headers
- Reversible instrumentation of a client library (instrument/uninstrument)
- Traced wrapper objects for instrumenting single client instances
- A filter predicate to skip tracing of selected messages
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("kafka-tracer")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from kafka_tracer.clients import TracedClient, TracedConsumer, TracedProducer
from kafka_tracer.config import InstrumentationConfig, TracingState
from kafka_tracer.exceptions import (
    IncompatibleVersionError,
    InstrumentationError,
    KafkaTracerError,
)
from kafka_tracer.instrumentation import (
    DEFAULT_HOOK_POINTS,
    ClientBinding,
    HookPoint,
    KafkaInstrumentor,
    get_instrumentor,
    instrument,
    uninstrument,
)
from kafka_tracer.interceptors import OperationShape
from kafka_tracer.observability import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    SpanKindEnum,
    Tracer,
    create_tracer,
)
from kafka_tracer.propagation import extract_context, inject_context
from kafka_tracer.protocols import (
    FetchedMessage,
    IgnoreMessage,
    MessageClient,
    MessageConsumer,
    MessageProducer,
    never_ignore,
)
from kafka_tracer.tags import build_consumer_tags, build_producer_tags

__all__ = [
    "__version__",
    # Activation
    "instrument",
    "uninstrument",
    "get_instrumentor",
    "KafkaInstrumentor",
    "ClientBinding",
    "HookPoint",
    "DEFAULT_HOOK_POINTS",
    "OperationShape",
    # Configuration
    "InstrumentationConfig",
    "TracingState",
    "IgnoreMessage",
    "never_ignore",
    # Traced wrappers
    "TracedClient",
    "TracedConsumer",
    "TracedProducer",
    # Tracers
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "SpanKindEnum",
    "create_tracer",
    # Propagation and tags
    "inject_context",
    "extract_context",
    "build_producer_tags",
    "build_consumer_tags",
    # Client capability
    "FetchedMessage",
    "MessageClient",
    "MessageConsumer",
    "MessageProducer",
    # Exceptions
    "KafkaTracerError",
    "IncompatibleVersionError",
    "InstrumentationError",
]
