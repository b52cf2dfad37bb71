"""Deploy parameters dataclass."""

from dataclasses import dataclass, field


@dataclass
class DeployParams:
    """Run-level options gathered by the CLI, fixed for the whole run."""

    force: bool = False
    hostname: str | None = None  # run-level ingress host override
    default_dns_resolution: str = "nip.io"
    ingress_annotations: dict[str, str] = field(default_factory=dict)
    tls: list | None = None
    poll_interval: float = 2.0
    max_retries: int = 3
    stability_window: int = 2
    max_restarts: int = 2
