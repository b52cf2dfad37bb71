"""Shared pytest fixtures for all test modules."""

import os
import subprocess
import sys

import pytest
import yaml

from fndock.cluster.errors import ConflictError, NotFoundError


PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))

# Far enough ahead that every fake pod counts as created by the rollout under test.
FRESH = "2999-01-01T00:00:00Z"


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def run_cli(project_root):
    """Return a callable that invokes the fndock CLI as a subprocess."""

    def _run(*args, env=None):
        result = subprocess.run(
            [sys.executable, "-m", "fndock.fndock", *args],
            capture_output=True,
            text=True,
            cwd=project_root,
            env={**os.environ, **(env or {})},
        )
        return result.returncode, result.stdout, result.stderr

    return _run


# ── In-memory cluster ───────────────────────────────────────────────


class FakeResourceClient:
    """Dict-backed stand-in for ResourceClient.

    ``list_responses`` scripts successive ``list()`` results; an Exception
    entry is raised instead of returned, and the last entry repeats once the
    script is exhausted. ``fail_on`` maps ``method`` or ``(method, name)`` to
    an exception to raise.
    """

    def __init__(self, items=None):
        self.items = dict(items or {})
        self.calls = []
        self.list_responses = []
        self.fail_on = {}

    def _maybe_fail(self, method, name=None):
        exc = self.fail_on.get((method, name)) or self.fail_on.get(method)
        if exc is not None:
            raise exc

    def writes(self):
        return [c for c in self.calls if c[0] in ("create", "update", "delete")]

    async def get(self, name):
        self.calls.append(("get", name))
        self._maybe_fail("get", name)
        if name not in self.items:
            raise NotFoundError(f'"{name}" not found')
        return self.items[name]

    async def list(self):
        self.calls.append(("list", None))
        self._maybe_fail("list")
        if self.list_responses:
            response = self.list_responses.pop(0) if len(self.list_responses) > 1 else self.list_responses[0]
            if isinstance(response, Exception):
                raise response
            return response
        return list(self.items.values())

    async def create(self, body):
        name = body["metadata"]["name"]
        self.calls.append(("create", name))
        self._maybe_fail("create", name)
        if name in self.items:
            raise ConflictError(f'"{name}" already exists')
        self.items[name] = body
        return body

    async def update(self, name, body):
        """Wholesale replace, rejected when the stored resourceVersion moved on."""
        self.calls.append(("update", name))
        self._maybe_fail("update", name)
        if name not in self.items:
            raise NotFoundError(f'"{name}" not found')
        stored = self.items[name].get("metadata", {}).get("resourceVersion")
        sent = body.get("metadata", {}).get("resourceVersion")
        if stored is not None and sent != stored:
            raise ConflictError(f'the object "{name}" has been modified')
        self.items[name] = body
        return body

    async def delete(self, name):
        self.calls.append(("delete", name))
        self._maybe_fail("delete", name)
        if name not in self.items:
            raise NotFoundError(f'"{name}" not found')
        return self.items.pop(name)


class FakeCluster:
    """Cluster handle whose clients are FakeResourceClients, one per (kind, namespace)."""

    api_host = "192.168.99.100"

    def __init__(self):
        self.clients = {}

    def _client(self, kind, namespace):
        return self.clients.setdefault((kind, namespace), FakeResourceClient())

    def functions(self, namespace):
        return self._client("functions", namespace)

    def pods(self, namespace):
        return self._client("pods", namespace)

    def ingresses(self, namespace):
        return self._client("ingresses", namespace)


def _make_pod(function, ready=True, restarts=0, created=FRESH, name=None, deleting=False):
    metadata = {
        "name": name or f"{function}-5d8f7c9b-x1",
        "labels": {"function": function},
        "creationTimestamp": created,
    }
    if deleting:
        metadata["deletionTimestamp"] = FRESH
    state = {"running": {"startedAt": created}} if ready else {"waiting": {"reason": "CrashLoopBackOff"}}
    return {
        "metadata": metadata,
        "status": {"containerStatuses": [{"ready": ready, "restartCount": restarts, "state": state}]},
    }


@pytest.fixture
def fake_cluster():
    return FakeCluster()


@pytest.fixture
def fake_client():
    return FakeResourceClient()


@pytest.fixture
def make_pod():
    """Return a factory for pod documents with one container status."""
    return _make_pod


@pytest.fixture
def write_service(tmp_path):
    """Return a factory that writes a service file (and handler) into tmp_path."""

    def _write(config, handler_source="def hello(event, context):\n    return 'hello world'\n"):
        (tmp_path / "handler.py").write_text(handler_source)
        path = tmp_path / "serverless.yml"
        with open(path, "w") as f:
            yaml.dump(config, f)
        return str(path)

    return _write
