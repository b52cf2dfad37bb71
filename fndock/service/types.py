"""Service dataclass types: functions, their events, provider defaults."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class HttpEvent:
    """HTTP-triggered function, optionally routed by path and hostname."""

    path: str = "/"
    hostname: str | None = None

    type = "http"


@dataclass(frozen=True)
class TriggerEvent:
    """Message-queue triggered function."""

    topic: str = ""
    queue: str = "kafka"

    type = "trigger"


@dataclass(frozen=True)
class ScheduleEvent:
    """Cron-scheduled function."""

    schedule: str = ""

    type = "schedule"


Event = HttpEvent | TriggerEvent | ScheduleEvent

DEFAULT_EVENT = HttpEvent()


@dataclass
class FunctionSpec:
    """User-declared intent for a single function.

    ``events`` keeps the raw event mappings as written in the service file;
    they are parsed into :data:`Event` variants during manifest synthesis so
    that a malformed event only fails its own function.
    """

    id: str
    handler: str | None = None
    runtime: str | None = None
    image: str | None = None
    deps: str | None = None
    content: str = ""
    content_type: str | None = None
    namespace: str | None = None
    description: str | None = None
    labels: dict[str, Any] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    environment: Any = None
    memory_size: int | str | None = None
    cpu: str | None = None
    timeout: int | str | None = None
    port: int | None = None
    secrets: list[str] = field(default_factory=list)
    affinity: dict | None = None
    tolerations: list | None = None
    events: list[dict] = field(default_factory=list)

    @classmethod
    def from_dict(cls, function_id: str, d: dict) -> "FunctionSpec":
        """Build a FunctionSpec from a (normalized) service-file function body."""
        return cls(
            id=function_id,
            handler=d.get("handler"),
            runtime=d.get("runtime"),
            image=d.get("image"),
            deps=d.get("deps"),
            content=d.get("content", ""),
            content_type=d.get("contentType"),
            namespace=d.get("namespace"),
            description=d.get("description"),
            labels=d.get("labels") or {},
            annotations=d.get("annotations") or {},
            environment=d.get("environment"),
            memory_size=d.get("memorySize"),
            cpu=d.get("cpu"),
            timeout=d.get("timeout"),
            port=d.get("port"),
            secrets=d.get("secrets") or [],
            affinity=d.get("affinity"),
            tolerations=d.get("tolerations"),
            events=d.get("events") or [],
        )


@dataclass
class IngressConfig:
    """Extra routing document settings passed through from the provider block."""

    annotations: dict[str, str] = field(default_factory=dict)
    tls: list | None = None


@dataclass
class ProviderDefaults:
    """Service-wide defaults applied to every function."""

    runtime: str | None = None
    namespace: str = "default"
    memory_size: int | str | None = None
    cpu: str | None = None
    timeout: int | str | None = None
    environment: Any = None
    hostname: str | None = None
    default_dns_resolution: str | None = None
    content_type: str = "text"
    affinity: dict | None = None
    tolerations: list | None = None
    ingress: IngressConfig = field(default_factory=IngressConfig)

    @classmethod
    def from_dict(cls, d: dict) -> "ProviderDefaults":
        ingress_dict = d.get("ingress") or {}
        return cls(
            runtime=d.get("runtime"),
            namespace=d.get("namespace") or "default",
            memory_size=d.get("memorySize"),
            cpu=d.get("cpu"),
            timeout=d.get("timeout"),
            environment=d.get("environment"),
            hostname=d.get("hostname"),
            default_dns_resolution=d.get("defaultDNSResolution"),
            content_type=d.get("contentType") or "text",
            affinity=d.get("affinity"),
            tolerations=d.get("tolerations"),
            ingress=IngressConfig(
                annotations=ingress_dict.get("annotations") or {},
                tls=ingress_dict.get("tls"),
            ),
        )


@dataclass
class Service:
    """A loaded service file: name, provider defaults and its functions."""

    name: str
    provider: ProviderDefaults = field(default_factory=ProviderDefaults)
    functions: list[FunctionSpec] = field(default_factory=list)
