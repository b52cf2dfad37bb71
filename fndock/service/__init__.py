"""Service model: function specs, event variants, service file loading."""

from fndock.service.loader import load_service, normalize_event
from fndock.service.types import (
    DEFAULT_EVENT,
    Event,
    FunctionSpec,
    HttpEvent,
    IngressConfig,
    ProviderDefaults,
    ScheduleEvent,
    Service,
    TriggerEvent,
)

__all__ = [
    "DEFAULT_EVENT",
    "Event",
    "FunctionSpec",
    "HttpEvent",
    "IngressConfig",
    "ProviderDefaults",
    "ScheduleEvent",
    "Service",
    "TriggerEvent",
    "load_service",
    "normalize_event",
]
