"""Per-function outcomes and the per-run context they are aggregated into."""

import enum
from dataclasses import dataclass, field

from fndock.deploy.errors import ReconcileError


class Action(enum.Enum):
    SKIP = "skipped"
    CREATE = "created"
    UPDATE = "updated"
    CONFLICT = "conflict"
    DELETE = "deleted"


@dataclass
class DeploymentOutcome:
    name: str
    action: Action
    error: str | None = None

    @property
    def routable(self) -> bool:
        """Whether the function is deployed and serving after this run.

        A conflict leaves the stored function in place, so its route is kept.
        """
        return self.error is None and self.action is not Action.DELETE


@dataclass
class RunContext:
    """Mutable state of one deploy/remove run.

    Pipelines only append to ``outcomes``/``errors``; under the single-threaded
    event loop that needs no locking.
    """

    outcomes: list[DeploymentOutcome] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    skipped_without_handler: list[str] = field(default_factory=list)

    def record(self, outcome: DeploymentOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.error is not None:
            self.errors.append(outcome.error)

    def fail(self, name: str, error: str) -> None:
        self.outcomes.append(DeploymentOutcome(name, Action.SKIP, error=error))
        self.errors.append(error)

    def summary(self, header="Found errors while deploying the given functions:") -> "RunSummary":
        counts = {action: 0 for action in Action}
        for outcome in self.outcomes:
            if outcome.error is None:
                counts[outcome.action] += 1
        return RunSummary(
            created=counts[Action.CREATE],
            updated=counts[Action.UPDATE],
            skipped=counts[Action.SKIP],
            conflicts=counts[Action.CONFLICT],
            deleted=counts[Action.DELETE],
            outcomes=list(self.outcomes),
            errors=list(self.errors),
            header=header,
        )


@dataclass
class RunSummary:
    """What the caller gets back from a run."""

    created: int = 0
    updated: int = 0
    skipped: int = 0
    conflicts: int = 0
    deleted: int = 0
    outcomes: list[DeploymentOutcome] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    header: str = "Found errors while deploying the given functions:"

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    @property
    def error_message(self) -> str | None:
        if not self.errors:
            return None
        return "\n".join([self.header, *self.errors])

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ReconcileError(self.errors, header=self.header)
