"""Errors raised by the reconciliation engine."""


class ManifestError(ValueError):
    """A function cannot be turned into a manifest; raised before any API call."""


class DeployError(RuntimeError):
    """The API rejected a create or update of a function."""

    def __init__(self, name, code, message, verb="deploy"):
        super().__init__(
            f"Unable to {verb} the function {name}. Received:\n"
            f"  Code: {code}\n"
            f"  Message: {message}"
        )
        self.name = name
        self.code = code


class RolloutError(RuntimeError):
    """The workload crash-looped or never appeared."""


class IngressError(RuntimeError):
    """The routing document could not be written or removed."""


class ReconcileError(RuntimeError):
    """Composed error for a run in which one or more functions failed."""

    def __init__(self, errors, header="Found errors while deploying the given functions:"):
        super().__init__("\n".join([header, *errors]))
        self.errors = list(errors)
