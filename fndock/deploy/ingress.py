"""Ingress synthesis: merge HTTP routes of all functions into one routing document."""

import logging

from fndock.cluster.errors import ApiError, NotFoundError
from fndock.deploy.decision import with_resource_version
from fndock.deploy.errors import IngressError, ManifestError
from fndock.deploy.manifest import DEFAULT_PORT, function_event
from fndock.service.types import HttpEvent

logger = logging.getLogger(__name__)

DEFAULT_ANNOTATIONS = {
    "kubernetes.io/ingress.class": "nginx",
    "ingress.kubernetes.io/rewrite-target": "/",
}


def ingress_name(service):
    return f"ingress-{service}"


def ingress_labels(functions):
    """One ``<function id>: "1"`` label per function of the run."""
    return {fn.id: "1" for fn in functions}


def default_hostname(api_host, dns_suffix="nip.io"):
    return f"{api_host}.{dns_suffix}"


def build_rules(functions, hostname=None, fallback_host=None):
    """Group HTTP routes by effective host.

    A plain root-path event without a hostname is served by the default
    backend and contributes no rule. Functions whose event cannot be parsed
    are left out here; their deploy pipeline reports the problem.
    """
    rules = []
    by_host = {}
    for fn in functions:
        try:
            event = function_event(fn)
        except ManifestError:
            continue
        if not isinstance(event, HttpEvent):
            continue
        path = event.path or "/"
        if path == "/" and not event.hostname:
            continue
        host = event.hostname or hostname or fallback_host
        entry = {
            "path": path if path.startswith("/") else f"/{path}",
            "backend": {"serviceName": fn.id, "servicePort": DEFAULT_PORT},
        }
        if host in by_host:
            by_host[host]["http"]["paths"].append(entry)
        else:
            rule = {"host": host, "http": {"paths": [entry]}}
            by_host[host] = rule
            rules.append(rule)
    return rules


def build_ingress(service, functions, rules, annotations=None, tls=None):
    metadata = {
        "name": ingress_name(service),
        "labels": ingress_labels(functions),
        "annotations": {**DEFAULT_ANNOTATIONS, **(annotations or {})},
    }
    spec = {"rules": rules}
    if tls:
        spec["tls"] = tls
    return {
        "apiVersion": "extensions/v1beta1",
        "kind": "Ingress",
        "metadata": metadata,
        "spec": spec,
    }


async def add_ingress_rule_if_necessary(
    ingresses,
    service,
    functions,
    api_host,
    hostname=None,
    default_dns_resolution="nip.io",
    annotations=None,
    tls=None,
):
    """Create or replace the service's routing document.

    Returns the document written, or None when no function needs a rule.
    """
    rules = build_rules(functions, hostname, default_hostname(api_host, default_dns_resolution))
    if not rules:
        logger.debug("Skipping ingress rule generation")
        return None

    ingress = build_ingress(service, functions, rules, annotations, tls)
    name = ingress["metadata"]["name"]
    try:
        try:
            existing = await ingresses.get(name)
        except NotFoundError:
            await ingresses.create(ingress)
            logger.info(f"Deployed Ingress rule {name}")
        else:
            await ingresses.update(name, with_resource_version(ingress, existing))
            logger.info(f"Updated Ingress rule {name}")
    except ApiError as e:
        raise IngressError(f"Unable to deploy the ingress rule. Received: {e.message}") from e
    return ingress


async def remove_ingress_rule_if_necessary(ingresses, service):
    """Delete the service's routing document if there is one. Returns whether it existed."""
    name = ingress_name(service)
    try:
        await ingresses.delete(name)
    except NotFoundError:
        logger.debug("Skipping ingress rule clean up")
        return False
    except ApiError as e:
        raise IngressError(
            f"Unable to remove the ingress rule {name}. Received:\n"
            f"  Code: {e.code}\n"
            f"  Message: {e.message}"
        ) from e
    logger.info(f"Removed Ingress rule {name}")
    return True
