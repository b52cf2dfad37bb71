"""Service file loading and event shorthand normalization."""

import os

import yaml

from fndock.service.types import FunctionSpec, ProviderDefaults, Service

_EVENT_TYPES = ("http", "trigger", "schedule")


def normalize_event(event):
    """Convert a service-file event entry into the explicit ``{type: ...}`` form.

    Accepts ``{"http": {...}}``, ``{"trigger": "topic"}``,
    ``{"schedule": "rate(1 minute)"}`` and already-explicit mappings.
    Unknown shapes are returned unchanged and rejected later, during
    manifest synthesis of the owning function.
    """
    if not isinstance(event, dict) or "type" in event or len(event) != 1:
        return event
    kind, body = next(iter(event.items()))
    if kind not in _EVENT_TYPES:
        return {"type": kind}
    if kind == "http":
        return {"type": "http", **(body or {})}
    if kind == "trigger":
        if isinstance(body, dict):
            return {"type": "trigger", **body}
        return {"type": "trigger", "topic": body}
    if isinstance(body, dict):
        return {"type": "schedule", **body}
    return {"type": "schedule", "schedule": body}


def _read_relative(base_dir, rel_path):
    path = os.path.join(base_dir, rel_path)
    if not os.path.isfile(path):
        raise FileNotFoundError(f"File not found: {path}")
    with open(path) as f:
        return f.read()


def _build_function(function_id, body, base_dir):
    body = dict(body or {})
    if "source" in body and "content" not in body:
        body["content"] = _read_relative(base_dir, body["source"])
    if "depsFile" in body and "deps" not in body:
        body["deps"] = _read_relative(base_dir, body["depsFile"])
    body["events"] = [normalize_event(e) for e in body.get("events") or []]
    return FunctionSpec.from_dict(function_id, body)


def load_service(service_path):
    """Load a service YAML file into a :class:`Service`.

    Function sources referenced with ``source:`` are resolved relative to the
    directory containing the service file.
    """
    if not os.path.isfile(service_path):
        raise FileNotFoundError(f"Service file not found: {service_path}")

    with open(service_path) as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Service file {service_path} must contain a mapping")

    functions = config.get("functions")
    if not functions:
        raise ValueError(f"Service file {service_path} does not declare any functions")

    base_dir = os.path.dirname(os.path.abspath(service_path))
    name = config.get("service") or os.path.basename(base_dir)
    return Service(
        name=name,
        provider=ProviderDefaults.from_dict(config.get("provider") or {}),
        functions=[_build_function(fid, body, base_dir) for fid, body in functions.items()],
    )
