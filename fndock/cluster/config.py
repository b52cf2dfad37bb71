"""Cluster connection config: API URL and credentials from kubeconfig or env."""

import logging
import os
from dataclasses import dataclass

import yaml

from fndock.redact import register_secret

logger = logging.getLogger(__name__)

DEFAULT_KUBECONFIG = "~/.kube/config"


@dataclass(frozen=True)
class ClusterConfig:
    """Immutable connection parameters shared by every resource client of a run."""

    api_url: str
    token: str | None = None
    ca_file: str | None = None
    verify: bool = True
    timeout: float = 30.0

    @property
    def headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @property
    def tls_verify(self):
        """Value for httpx's ``verify=``: CA bundle path, or a bool."""
        if not self.verify:
            return False
        return self.ca_file or True


def _select(entries, name):
    for entry in entries or []:
        if entry.get("name") == name:
            return entry
    return {}


def load_cluster_config(kubeconfig=None):
    """Resolve the cluster connection for the current kubeconfig context.

    ``FNDOCK_API_URL`` and ``FNDOCK_TOKEN`` override the kubeconfig values;
    with both set no kubeconfig is needed at all.
    """
    api_url = os.environ.get("FNDOCK_API_URL")
    token = os.environ.get("FNDOCK_TOKEN")
    ca_file = None
    verify = True

    path = os.path.expanduser(kubeconfig or os.environ.get("KUBECONFIG") or DEFAULT_KUBECONFIG)
    if os.path.isfile(path):
        with open(path) as f:
            kube = yaml.safe_load(f) or {}
        context_name = kube.get("current-context")
        context = _select(kube.get("contexts"), context_name).get("context", {})
        cluster = _select(kube.get("clusters"), context.get("cluster")).get("cluster", {})
        user = _select(kube.get("users"), context.get("user")).get("user", {})

        api_url = api_url or cluster.get("server")
        token = token or user.get("token")
        ca_file = cluster.get("certificate-authority")
        verify = not cluster.get("insecure-skip-tls-verify", False)
        logger.debug(f"Using kubeconfig {path} (context: {context_name})")
    elif kubeconfig:
        raise FileNotFoundError(f"Kubeconfig not found: {path}")

    if not api_url:
        raise ValueError("Unable to determine the cluster API URL: set FNDOCK_API_URL or provide a kubeconfig")

    register_secret(token)
    return ClusterConfig(api_url=api_url.rstrip("/"), token=token, ca_file=ca_file, verify=verify)
