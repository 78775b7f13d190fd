"""Library exceptions for the kafka_tracer package."""


class KafkaTracerError(Exception):
    """Base exception for kafka_tracer."""

    pass


class IncompatibleVersionError(KafkaTracerError):
    """Raised when the instrumented client is older than the supported minimum.

    Raised by ``instrument()`` before any hook point is touched, so a failed
    activation never leaves the client partially instrumented.
    """

    def __init__(self, module: str, found: str | None, required: str) -> None:
        self.module = module
        self.found = found
        self.required = required
        found_info = found if found is not None else "an unknown version"
        super().__init__(
            f"{module} {found_info} is not supported: kafka_tracer requires {module} >= {required}"
        )


class InstrumentationError(KafkaTracerError):
    """Raised when an intercepted call does not have the shape of its hook point."""

    pass
