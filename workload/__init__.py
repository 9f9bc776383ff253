from __future__ import annotations

__version__ = "1.2.0"

from .config import WorkloadConfig, load_config  # noqa: E402
from .events import CallbackSink, ErrorEvent, EventSink, QueueSink, Visit  # noqa: E402
from .models import RequestTemplate, WorkingRequest  # noqa: E402
from .pipeline import Continue, Drop, Replace  # noqa: E402
from .scheduler import Scheduler  # noqa: E402
from .transport import HttpxTransport  # noqa: E402

__all__ = [
    "CallbackSink",
    "Continue",
    "Drop",
    "ErrorEvent",
    "EventSink",
    "HttpxTransport",
    "QueueSink",
    "Replace",
    "RequestTemplate",
    "Scheduler",
    "Visit",
    "WorkingRequest",
    "WorkloadConfig",
    "load_config",
]
