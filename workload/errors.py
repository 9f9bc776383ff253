from __future__ import annotations


class WorkloadError(Exception):
    """Base class for everything raised by workload."""


class InvalidWeight(WorkloadError, ValueError):
    pass


class InvalidTemplateSet(WorkloadError, ValueError):
    pass


class InvalidRate(WorkloadError, ValueError):
    pass


class UnknownFilter(WorkloadError, ValueError):
    pass


class InvalidPattern(WorkloadError, ValueError):
    """Malformed brace expression in a request URL."""


class SchedulerStateError(WorkloadError, RuntimeError):
    pass


class TransportFailure(WorkloadError):
    """The transport could not produce a response (reset, refused, DNS, ...)."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
