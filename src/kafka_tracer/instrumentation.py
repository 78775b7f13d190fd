"""
Installing and removing the interceptors on a Kafka client library.

:class:`KafkaInstrumentor` is an OpenTelemetry ``BaseInstrumentor``. It
wraps the four hook points of a client library with ``wrapt`` function
wrappers and restores them with ``unwrap`` on ``uninstrument()``. Which
module and which methods are wrapped is described by a
:class:`ClientBinding`; there is one instrumentor per binding.

Activation rules:
    - client library not importable: nothing happens, ``instrument()``
      returns False
    - client library older than ``ClientBinding.min_version``:
      :class:`IncompatibleVersionError`, nothing is installed
    - a hook point missing from the library: nothing is installed,
      ``instrument()`` returns False
    - already instrumented: the tracer and filter are replaced, the hook
      points are not wrapped a second time
    - a hook point already wrapped through another binding is skipped

The default :class:`ClientBinding` names the ruby-kafka style API
(``Client.deliver_message``, ``Producer.produce``, ``each_message``) in a
module called ``kafka``. The kafka-python distribution also installs a
``kafka`` module but has none of these methods, so ``instrument()`` logs a
warning and returns False there. Pass a binding describing the client
library actually in use.

Example:
    >>> import kafka_tracer
    >>>
    >>> kafka_tracer.instrument(
    ...     ignore_message=lambda value, key, headers, topic, partition, partition_key: (
    ...         topic == "heartbeats"
    ...     ),
    ... )
    >>> ...
    >>> kafka_tracer.uninstrument()
"""

from __future__ import annotations

import importlib
import importlib.metadata
import inspect
import logging
import operator
import threading
from collections.abc import Collection
from dataclasses import dataclass
from types import ModuleType
from typing import Any, ClassVar

import wrapt
from opentelemetry.instrumentation.instrumentor import BaseInstrumentor
from opentelemetry.instrumentation.utils import unwrap
from packaging.version import InvalidVersion, Version

from kafka_tracer.config import InstrumentationConfig, TracingState
from kafka_tracer.exceptions import IncompatibleVersionError, InstrumentationError
from kafka_tracer.interceptors import HeadersFactory, OperationShape, create_interceptor
from kafka_tracer.observability import Tracer, create_tracer
from kafka_tracer.protocols import IgnoreMessage, never_ignore
from kafka_tracer.tags import DEFAULT_COMPONENT

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()


@dataclass(frozen=True)
class HookPoint:
    """
    A method of the client library that gets intercepted.

    Attributes:
        owner: Attribute path of the owning class within the module
            (e.g., "Client" or "consumer.Consumer")
        method: Name of the method on the owning class
        shape: Which of the four operation shapes the method has
        callback_param: Name of the per-message callback parameter
            (receive loops only)
    """

    owner: str
    method: str
    shape: OperationShape
    callback_param: str | None = None

    @property
    def qualname(self) -> str:
        return f"{self.owner}.{self.method}"


DEFAULT_HOOK_POINTS: tuple[HookPoint, ...] = (
    HookPoint("Client", "deliver_message", OperationShape.SYNC_SEND),
    HookPoint("Producer", "produce", OperationShape.BATCHED_SEND),
    HookPoint("Client", "each_message", OperationShape.TOPIC_RECEIVE_LOOP, "handler"),
    HookPoint("Consumer", "each_message", OperationShape.GROUP_RECEIVE_LOOP, "handler"),
)


@dataclass(frozen=True)
class ClientBinding:
    """
    Where the client library lives and which of its methods are traced.

    The defaults describe a ruby-kafka style client importable as
    ``kafka``. They do not match kafka-python, which uses the same module
    name with a different API.

    Attributes:
        module: Importable module name of the client library
        distribution: Distribution name used to look up the installed
            version when the module has no ``__version__`` (defaults to
            ``module``)
        component: Value of the ``component`` span tag
        min_version: Oldest supported client version
        error_class: Name of the client's base error class; errors of
            this class mark producer spans as failed
        hook_points: Methods to intercept
        headers_factory: Creates the headers of a traced send made without
            headers; ``list`` for clients taking ``(key, bytes)`` tuples
    """

    module: str = "kafka"
    distribution: str | None = None
    component: str = DEFAULT_COMPONENT
    min_version: str = "0.7.0"
    error_class: str = "Error"
    hook_points: tuple[HookPoint, ...] = DEFAULT_HOOK_POINTS
    headers_factory: HeadersFactory = dict

    @property
    def requirement(self) -> str:
        return f"{self.distribution or self.module} >= {self.min_version}"


class KafkaInstrumentor(BaseInstrumentor):
    """
    Installs and removes the tracing interceptors of one client binding.

    ``KafkaInstrumentor(binding)`` returns the same instance for equal
    bindings, so activations made from different places share one set of
    wrappers. Bookkeeping happens under a per-instance lock; intercepted
    calls never take it.

    Args:
        binding: Client library description (default: ``ClientBinding()``)
        state: Configuration holder shared with the interceptors; only
            used when the instance for ``binding`` is first created
    """

    _binding: ClientBinding
    _state: TracingState
    _lock: threading.Lock
    _wrapped: list[tuple[type, str]]

    _instances: ClassVar[dict[ClientBinding, KafkaInstrumentor]] = {}
    # Hook points currently wrapped, with the binding that wrapped them.
    _wrapped_hooks: ClassVar[dict[tuple[type, str], ClientBinding]] = {}

    def __new__(
        cls,
        binding: ClientBinding | None = None,
        state: TracingState | None = None,
    ) -> KafkaInstrumentor:
        binding = binding or ClientBinding()
        with _registry_lock:
            instance = cls._instances.get(binding)
            if instance is None:
                instance = object.__new__(cls)
                instance._binding = binding
                instance._state = state or TracingState()
                instance._lock = threading.Lock()
                instance._wrapped = []
                cls._instances[binding] = instance
            return instance

    def __init__(
        self,
        binding: ClientBinding | None = None,
        state: TracingState | None = None,
    ) -> None:
        # Instances are set up once, in __new__.
        pass

    @property
    def binding(self) -> ClientBinding:
        return self._binding

    @property
    def state(self) -> TracingState:
        return self._state

    @property
    def is_instrumented(self) -> bool:
        """True while interceptors are installed."""
        return self.is_instrumented_by_opentelemetry

    def instrumentation_dependencies(self) -> Collection[str]:
        return (self._binding.requirement,)

    def instrument(
        self,
        tracer: Tracer | None = None,
        ignore_message: IgnoreMessage | None = None,
        **kwargs: Any,
    ) -> bool:
        """
        Install the interceptors on every hook point.

        Args:
            tracer: Tracer for the spans (default: OpenTelemetry global tracer)
            ignore_message: Filter predicate (default: trace every message)

        Returns:
            True if the interceptors are installed, False if the client
            library is unavailable

        Raises:
            IncompatibleVersionError: If the client library is too old
            InstrumentationError: If a receive-loop hook point has no
                callback parameter of the configured name
        """
        with self._lock:
            if self.is_instrumented_by_opentelemetry:
                self._state.set(self._make_config(tracer, ignore_message))
                logger.debug(
                    "Kafka tracing already instrumented, configuration replaced",
                    extra={"client_module": self._binding.module},
                )
                return True

            # The version gate in _instrument raises instead of skipping.
            installed = super().instrument(
                tracer=tracer,
                ignore_message=ignore_message,
                skip_dep_check=True,
                **kwargs,
            )
            if not installed:
                self._is_instrumented_by_opentelemetry = False
            return bool(installed)

    def uninstrument(self, **kwargs: Any) -> None:
        """Restore every original method. Does nothing if not instrumented."""
        with self._lock:
            if not self.is_instrumented_by_opentelemetry:
                self._state.clear()
                logger.debug("Kafka tracing not instrumented, nothing to remove")
                return
            super().uninstrument(**kwargs)

    def _instrument(self, **kwargs: Any) -> bool:
        module = self._load_module()
        if module is None:
            return False

        self._check_version(module)

        targets = self._resolve_targets(module)
        error_type = self._resolve_error_type(module)
        if targets is None or error_type is None:
            return False

        self._state.set(self._make_config(kwargs.get("tracer"), kwargs.get("ignore_message")))

        with _registry_lock:
            for owner, hook in targets:
                key = (owner, hook.method)
                if key in self._wrapped_hooks:
                    logger.warning(
                        "%s is already traced through another binding, skipping",
                        hook.qualname,
                        extra={"client_module": self._binding.module},
                    )
                    continue
                interceptor = create_interceptor(
                    hook.shape,
                    self._state,
                    self._binding.component,
                    error_types=error_type,
                    callback_param=hook.callback_param,
                    headers_factory=self._binding.headers_factory,
                )
                wrapt.wrap_function_wrapper(owner, hook.method, interceptor)
                self._wrapped_hooks[key] = self._binding
                self._wrapped.append(key)

        logger.info(
            "Kafka tracing instrumented",
            extra={
                "client_module": self._binding.module,
                "hooks_installed": len(self._wrapped),
                "hooks_total": len(targets),
            },
        )
        return True

    def _uninstrument(self, **kwargs: Any) -> None:
        self._state.clear()
        with _registry_lock:
            for owner, method in self._wrapped:
                unwrap(owner, method)
                self._wrapped_hooks.pop((owner, method), None)
            removed = len(self._wrapped)
            self._wrapped.clear()

        logger.info(
            "Kafka tracing uninstrumented",
            extra={"client_module": self._binding.module, "hooks_removed": removed},
        )

    def _make_config(
        self,
        tracer: Tracer | None,
        ignore_message: IgnoreMessage | None,
    ) -> InstrumentationConfig:
        return InstrumentationConfig(
            tracer=tracer or create_tracer(),
            ignore_message=ignore_message or never_ignore,
        )

    def _load_module(self) -> ModuleType | None:
        try:
            return importlib.import_module(self._binding.module)
        except ImportError:
            logger.info(
                "Kafka client library not installed, tracing disabled",
                extra={"client_module": self._binding.module},
            )
            return None

    def _installed_version(self, module: ModuleType) -> str | None:
        found = getattr(module, "__version__", None) or getattr(module, "VERSION", None)
        if found is not None:
            return str(found)
        try:
            return importlib.metadata.version(self._binding.distribution or self._binding.module)
        except importlib.metadata.PackageNotFoundError:
            return None

    def _check_version(self, module: ModuleType) -> None:
        found = self._installed_version(module)
        required = self._binding.min_version
        try:
            compatible = found is not None and Version(found) >= Version(required)
        except InvalidVersion:
            compatible = False
        if not compatible:
            raise IncompatibleVersionError(self._binding.module, found, required)

    def _resolve_targets(self, module: ModuleType) -> list[tuple[type, HookPoint]] | None:
        targets: list[tuple[type, HookPoint]] = []
        for hook in self._binding.hook_points:
            try:
                owner = operator.attrgetter(hook.owner)(module)
                method = getattr(owner, hook.method)
            except AttributeError:
                logger.warning(
                    "Kafka client library has no %s, tracing disabled",
                    hook.qualname,
                    extra={"client_module": self._binding.module},
                )
                return None
            if not inspect.isclass(owner):
                raise InstrumentationError(f"{hook.owner} is not a class")
            if not hook.shape.is_send:
                self._check_callback_param(hook, method)
            targets.append((owner, hook))
        return targets

    def _check_callback_param(self, hook: HookPoint, method: Any) -> None:
        if not hook.callback_param:
            raise InstrumentationError(f"{hook.qualname} needs a callback_param")
        parameters = inspect.signature(method).parameters
        if hook.callback_param in parameters:
            return
        if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in parameters.values()):
            return
        raise InstrumentationError(
            f"{hook.qualname} has no '{hook.callback_param}' callback parameter"
        )

    def _resolve_error_type(self, module: ModuleType) -> type[BaseException] | None:
        error_type = getattr(module, self._binding.error_class, None)
        if not (inspect.isclass(error_type) and issubclass(error_type, BaseException)):
            logger.warning(
                "Kafka client library has no %s error class, tracing disabled",
                self._binding.error_class,
                extra={"client_module": self._binding.module},
            )
            return None
        return error_type


# =============================================================================
# Process-wide default instrumentor
# =============================================================================

_default_instrumentor: KafkaInstrumentor | None = None
_default_lock = threading.Lock()


def get_instrumentor() -> KafkaInstrumentor:
    """Return the process-wide instrumentor, creating it on first use."""
    global _default_instrumentor
    with _default_lock:
        if _default_instrumentor is None:
            _default_instrumentor = KafkaInstrumentor()
        return _default_instrumentor


def instrument(
    tracer: Tracer | None = None,
    ignore_message: IgnoreMessage | None = None,
) -> bool:
    """Instrument the client library with the process-wide instrumentor."""
    return get_instrumentor().instrument(tracer=tracer, ignore_message=ignore_message)


def uninstrument() -> None:
    """Remove the process-wide instrumentation, if any."""
    get_instrumentor().uninstrument()


__all__ = [
    "ClientBinding",
    "DEFAULT_HOOK_POINTS",
    "HookPoint",
    "KafkaInstrumentor",
    "get_instrumentor",
    "instrument",
    "uninstrument",
]
