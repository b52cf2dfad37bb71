"""Deploy orchestration: run_deploy, run_remove, render."""

import asyncio
import logging

from fndock.cluster.errors import ApiError, NotFoundError
from fndock.deploy.decision import apply_decision, decide, fetch_existing
from fndock.deploy.errors import DeployError, IngressError
from fndock.deploy.ingress import add_ingress_rule_if_necessary, remove_ingress_rule_if_necessary
from fndock.deploy.manifest import build_manifest
from fndock.deploy.params import DeployParams
from fndock.deploy.results import Action, DeploymentOutcome, RunContext, RunSummary
from fndock.deploy.rollout import RolloutWatcher
from fndock.service.types import FunctionSpec, ProviderDefaults, Service

logger = logging.getLogger(__name__)

REMOVE_HEADER = "Found errors while removing the given functions:"


async def deploy_function(cluster, fn: FunctionSpec, defaults: ProviderDefaults, params: DeployParams):
    """synthesize -> decide -> apply -> watch for one function."""
    manifest = build_manifest(fn, defaults)
    name = manifest["metadata"]["name"]
    namespace = manifest["metadata"]["namespace"]
    functions = cluster.functions(namespace)

    existing = await fetch_existing(functions, name)
    action = decide(manifest, existing, force=params.force)
    action, request_moment = await apply_decision(functions, manifest, action, existing)
    if request_moment is None:
        return DeploymentOutcome(name, action)

    watcher = RolloutWatcher(
        cluster.pods(namespace),
        name,
        request_moment,
        interval=params.poll_interval,
        max_retries=params.max_retries,
        stability_window=params.stability_window,
        max_restarts=params.max_restarts,
    )
    await watcher.watch()
    return DeploymentOutcome(name, action)


def _by_namespace(functions, defaults: ProviderDefaults):
    """Functions keyed by the namespace they are deployed to, in declaration order."""
    groups = {}
    for fn in functions:
        groups.setdefault(fn.namespace or defaults.namespace, []).append(fn)
    return groups


async def run_deploy(cluster, service: Service, params: DeployParams | None = None) -> RunSummary:
    """Deploy every function of *service* concurrently.

    A failing function never stops its siblings. Ingress is planned once all
    pipelines have settled, and only if none of them failed.
    """
    params = params or DeployParams()
    defaults = service.provider
    ctx = RunContext()

    deployable = []
    for fn in service.functions:
        if fn.handler:
            deployable.append(fn)
        else:
            logger.info(f"Skipping deployment of {fn.id} since it doesn't have a handler")
            ctx.skipped_without_handler.append(fn.id)

    results = await asyncio.gather(
        *(deploy_function(cluster, fn, defaults, params) for fn in deployable),
        return_exceptions=True,
    )
    for fn, result in zip(deployable, results):
        if isinstance(result, Exception):
            logger.error(f"Function {fn.id} failed: {result}")
            ctx.fail(fn.id, str(result))
        else:
            ctx.record(result)

    if ctx.errors:
        summary = ctx.summary()
        logger.error(summary.error_message)
        return summary

    # An ingress only reaches backends in its own namespace.
    routable = {o.name for o in ctx.outcomes if o.routable}
    routed = _by_namespace([fn for fn in deployable if fn.id in routable], defaults)
    for namespace, functions in routed.items():
        try:
            await add_ingress_rule_if_necessary(
                cluster.ingresses(namespace),
                service.name,
                functions,
                cluster.api_host,
                hostname=params.hostname or defaults.hostname,
                default_dns_resolution=defaults.default_dns_resolution or params.default_dns_resolution,
                annotations={**defaults.ingress.annotations, **params.ingress_annotations},
                tls=params.tls or defaults.ingress.tls,
            )
        except IngressError as e:
            logger.error(str(e))
            ctx.errors.append(str(e))

    summary = ctx.summary()
    logger.info(
        f"Deployed {summary.created} created, {summary.updated} updated, "
        f"{summary.skipped} unchanged, {summary.conflicts} already existing"
    )
    return summary


async def remove_function(cluster, fn: FunctionSpec, defaults: ProviderDefaults):
    namespace = fn.namespace or defaults.namespace
    logger.info(f"Removing function: {fn.id}...")
    try:
        await cluster.functions(namespace).delete(fn.id)
    except NotFoundError:
        logger.info(f"The function {fn.id} doesn't exist. Skipping removal.")
        return DeploymentOutcome(fn.id, Action.SKIP)
    except ApiError as e:
        raise DeployError(fn.id, e.code, e.message, verb="remove") from e
    logger.info(f"Function {fn.id} successfully deleted")
    return DeploymentOutcome(fn.id, Action.DELETE)


async def run_remove(cluster, service: Service) -> RunSummary:
    """Delete every function of *service*, then its routing document."""
    ctx = RunContext()
    results = await asyncio.gather(
        *(remove_function(cluster, fn, service.provider) for fn in service.functions),
        return_exceptions=True,
    )
    for fn, result in zip(service.functions, results):
        if isinstance(result, Exception):
            ctx.fail(fn.id, str(result))
        else:
            ctx.record(result)

    for namespace in _by_namespace(service.functions, service.provider):
        try:
            await remove_ingress_rule_if_necessary(cluster.ingresses(namespace), service.name)
        except IngressError as e:
            ctx.errors.append(str(e))

    summary = ctx.summary(header=REMOVE_HEADER)
    if summary.failed:
        logger.error(summary.error_message)
    return summary


def render(service: Service) -> list[dict]:
    """Manifests for every function with a handler, without touching the cluster."""
    return [build_manifest(fn, service.provider) for fn in service.functions if fn.handler]
