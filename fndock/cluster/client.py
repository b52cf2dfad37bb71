"""Namespaced REST resource client and the per-run cluster handle."""

import logging
from urllib.parse import urlparse

import httpx

from fndock.cluster.config import ClusterConfig
from fndock.cluster.errors import ApiError, ConflictError, NotFoundError, RequestTimeoutError

logger = logging.getLogger(__name__)

FUNCTIONS_API = "apis/kubeless.io/v1beta1"
CORE_API = "api/v1"
INGRESS_API = "apis/extensions/v1beta1"


def _error_message(resp):
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return resp.text


class ResourceClient:
    """get/list/create/update/delete for one collection in one namespace.

    Every call opens a short-lived ``httpx.AsyncClient``; pass *transport* to
    route requests elsewhere (tests use ``httpx.MockTransport``).
    """

    def __init__(self, config: ClusterConfig, api: str, namespace: str, plural: str, transport=None):
        self.config = config
        self.namespace = namespace
        self.plural = plural
        self.url = f"{config.api_url}/{api}/namespaces/{namespace}/{plural}"
        self._transport = transport

    async def _request(self, method, url, body=None, headers=None):
        all_headers = dict(self.config.headers)
        all_headers.update(headers or {})
        try:
            async with httpx.AsyncClient(verify=self.config.tls_verify, transport=self._transport) as client:
                resp = await client.request(method, url, json=body, headers=all_headers, timeout=self.config.timeout)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"{method} {url}: request timed out") from e

        if resp.status_code == 404:
            raise NotFoundError(_error_message(resp))
        if resp.status_code == 409:
            raise ConflictError(_error_message(resp))
        if resp.status_code >= 400:
            raise ApiError(resp.status_code, _error_message(resp))
        return resp.json() if resp.content else {}

    async def get(self, name):
        return await self._request("GET", f"{self.url}/{name}")

    async def list(self):
        result = await self._request("GET", self.url)
        return result.get("items") or []

    async def create(self, body):
        return await self._request("POST", self.url, body)

    async def update(self, name, body):
        """Replace the stored resource with *body* (PUT).

        *body* should carry the stored ``metadata.resourceVersion`` so that a
        concurrent write is rejected with 409 instead of being overwritten.
        """
        return await self._request("PUT", f"{self.url}/{name}", body)

    async def delete(self, name):
        return await self._request("DELETE", f"{self.url}/{name}")


class Cluster:
    """Factory for the resource clients a run needs, bound to one ClusterConfig."""

    def __init__(self, config: ClusterConfig, transport=None):
        self.config = config
        self._transport = transport

    @property
    def api_host(self) -> str:
        return urlparse(self.config.api_url).hostname or ""

    def functions(self, namespace) -> ResourceClient:
        return ResourceClient(self.config, FUNCTIONS_API, namespace, "functions", self._transport)

    def pods(self, namespace) -> ResourceClient:
        return ResourceClient(self.config, CORE_API, namespace, "pods", self._transport)

    def ingresses(self, namespace) -> ResourceClient:
        return ResourceClient(self.config, INGRESS_API, namespace, "ingresses", self._transport)
