"""Function manifest synthesis: FunctionSpec + provider defaults -> Function resource."""

import copy
import hashlib
import json
import re

from fndock.deploy.errors import ManifestError
from fndock.service.types import (
    DEFAULT_EVENT,
    Event,
    FunctionSpec,
    HttpEvent,
    ProviderDefaults,
    ScheduleEvent,
    TriggerEvent,
)

API_VERSION = "kubeless.io/v1beta1"
DEFAULT_TIMEOUT = "180"
DEFAULT_PORT = 8080
MQ_TYPES = ("kafka", "nats")

_NUMERIC = re.compile(r"^\d+$")


def _to_string(value):
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def force_string(mapping):
    """Coerce every value of *mapping* to a string, keeping key order."""
    return {k: _to_string(v) for k, v in (mapping or {}).items()}


def parse_env(src):
    """Normalize an environment block into a list of ``{name, value}`` entries.

    Mappings keep their key order and have values stringified; lists pass
    through untouched since they may carry ``valueFrom`` references.
    """
    if isinstance(src, dict):
        return [{"name": k, "value": _to_string(v)} for k, v in src.items()]
    if isinstance(src, list):
        return copy.deepcopy(src)
    raise ManifestError("Format of 'environment' is unknown: neither dictionary(mapping) nor list.")


def merge_env(provider_env, function_env):
    """Provider-level entries first, then function-level ones."""
    environment = parse_env(provider_env) if provider_env else None
    if function_env:
        fenv = parse_env(function_env)
        environment = environment + fenv if environment else fenv
    return environment


def memory_with_unit(memory):
    """128 -> '128Mi'; values already carrying a unit are kept verbatim."""
    text = str(memory)
    return f"{text}Mi" if _NUMERIC.match(text) else text


def parse_event(raw) -> Event:
    """Turn a raw ``{type: ...}`` event mapping into its variant."""
    if not isinstance(raw, dict):
        raise ManifestError(f"Event {raw!r} is not a mapping")
    kind = raw.get("type")
    if kind == "http":
        return HttpEvent(path=raw.get("path") or "/", hostname=raw.get("hostname") or None)
    if kind == "trigger":
        return TriggerEvent(topic=raw.get("topic") or "", queue=str(raw.get("queue") or "kafka").lower())
    if kind == "schedule":
        return ScheduleEvent(schedule=raw.get("schedule") or "")
    raise ManifestError(f"Event type {kind} is not supported (unsupported event type)")


def function_event(fn: FunctionSpec) -> Event:
    """The single event of *fn*; an implicit root HTTP event when none is declared."""
    if len(fn.events) > 1:
        raise ManifestError(f"Function {fn.id} declares {len(fn.events)} events, at most one is supported")
    if not fn.events:
        return DEFAULT_EVENT
    return parse_event(fn.events[0])


def _event_fields(event: Event, name) -> dict:
    if isinstance(event, HttpEvent):
        return {"type": "HTTP"}
    if isinstance(event, TriggerEvent):
        if not event.topic:
            raise ManifestError(f"Function {name}: topic required for trigger event")
        if event.queue not in MQ_TYPES:
            raise ManifestError(
                f"Function {name}: unsupported queue {event.queue} for trigger event (i.e. kafka, nats)"
            )
        return {"type": "PubSub", "topic": event.topic}
    if isinstance(event, ScheduleEvent):
        if not event.schedule:
            raise ManifestError(f"Function {name}: schedule required for schedule event")
        return {"type": "Scheduled", "schedule": event.schedule}
    raise ManifestError(f"Function {name}: unsupported event type {type(event).__name__}")


def content_checksum(content) -> str:
    return "sha256:" + hashlib.sha256((content or "").encode()).hexdigest()


def _container(fn: FunctionSpec, defaults: ProviderDefaults):
    environment = merge_env(defaults.environment, fn.environment)
    memory = fn.memory_size or defaults.memory_size
    cpu = fn.cpu or defaults.cpu
    affinity = fn.affinity or defaults.affinity
    tolerations = fn.tolerations or defaults.tolerations

    if not (fn.image or environment or memory or cpu or fn.secrets or affinity or tolerations):
        return None

    container = {"name": fn.id}
    if fn.image:
        container["image"] = fn.image
    if environment:
        container["env"] = environment
    if memory or cpu:
        container["resources"] = {"limits": {}, "requests": {}}
        if memory:
            value = memory_with_unit(memory)
            container["resources"]["limits"]["memory"] = value
            container["resources"]["requests"]["memory"] = value
        if cpu:
            container["resources"]["limits"]["cpu"] = str(cpu)
            container["resources"]["requests"]["cpu"] = str(cpu)

    pod_spec = {"containers": [container]}
    if fn.secrets:
        container["volumeMounts"] = [{"name": f"{s}-vol", "mountPath": f"/{s}"} for s in fn.secrets]
        pod_spec["volumes"] = [{"name": f"{s}-vol", "secret": {"secretName": s}} for s in fn.secrets]
    if affinity:
        pod_spec["affinity"] = copy.deepcopy(affinity)

    deployment = {"spec": {"template": {"spec": pod_spec}}}
    if tolerations:
        deployment["spec"]["tolerations"] = copy.deepcopy(tolerations)
    return deployment


def build_manifest(fn: FunctionSpec, defaults: ProviderDefaults | None = None) -> dict:
    """Synthesize the Function resource for *fn*.

    Pure: equal inputs give equal manifests, which is what lets an unchanged
    function be skipped. Raises ManifestError without returning anything
    partial when the function is invalid.
    """
    defaults = defaults or ProviderDefaults()
    event_fields = _event_fields(function_event(fn), fn.id)

    labels = force_string({**fn.labels, "created-by": "kubeless", "function": fn.id})
    annotations = dict(fn.annotations)
    if fn.description:
        annotations["kubeless.serverless.com/description"] = fn.description

    port = int(fn.port or DEFAULT_PORT)
    spec = {
        "deps": fn.deps or "",
        "function": fn.content,
        "checksum": content_checksum(fn.content),
        "function-content-type": fn.content_type or defaults.content_type,
        "handler": fn.handler,
        "runtime": fn.runtime or defaults.runtime,
        "timeout": str(fn.timeout or defaults.timeout or DEFAULT_TIMEOUT),
        "service": {
            "ports": [
                {
                    "name": "http-function-port",
                    "port": port,
                    "protocol": "TCP",
                    "targetPort": port,
                }
            ],
            "selector": force_string({**fn.labels, "function": fn.id}),
            "type": "ClusterIP",
        },
        **event_fields,
    }
    deployment = _container(fn, defaults)
    if deployment is not None:
        spec["deployment"] = deployment

    return {
        "apiVersion": API_VERSION,
        "kind": "Function",
        "metadata": {
            "name": fn.id,
            "namespace": fn.namespace or defaults.namespace,
            "labels": labels,
            "annotations": annotations,
        },
        "spec": spec,
    }
