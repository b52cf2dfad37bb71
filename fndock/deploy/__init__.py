"""Deploy library: manifest synthesis, reconciliation, rollout watching, ingress."""

from fndock.deploy.decision import apply_decision, canonical, decide
from fndock.deploy.errors import DeployError, IngressError, ManifestError, ReconcileError, RolloutError
from fndock.deploy.ingress import (
    add_ingress_rule_if_necessary,
    build_rules,
    remove_ingress_rule_if_necessary,
)
from fndock.deploy.manifest import build_manifest, memory_with_unit, parse_env
from fndock.deploy.orchestrate import deploy_function, render, run_deploy, run_remove
from fndock.deploy.params import DeployParams
from fndock.deploy.results import Action, DeploymentOutcome, RunContext, RunSummary
from fndock.deploy.rollout import RolloutPhase, RolloutState, RolloutWatcher

__all__ = [
    "Action",
    "DeployError",
    "DeployParams",
    "DeploymentOutcome",
    "IngressError",
    "ManifestError",
    "ReconcileError",
    "RolloutError",
    "RolloutPhase",
    "RolloutState",
    "RolloutWatcher",
    "RunContext",
    "RunSummary",
    "add_ingress_rule_if_necessary",
    "apply_decision",
    "build_manifest",
    "build_rules",
    "canonical",
    "decide",
    "deploy_function",
    "memory_with_unit",
    "parse_env",
    "remove_ingress_rule_if_necessary",
    "render",
    "run_deploy",
    "run_remove",
]
