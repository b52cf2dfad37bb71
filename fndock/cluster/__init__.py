"""Cluster access: resource client, connection config, API errors."""

from fndock.cluster.client import Cluster, ResourceClient
from fndock.cluster.config import ClusterConfig, load_cluster_config
from fndock.cluster.errors import ApiError, ConflictError, NotFoundError, RequestTimeoutError

__all__ = [
    "ApiError",
    "Cluster",
    "ClusterConfig",
    "ConflictError",
    "NotFoundError",
    "RequestTimeoutError",
    "ResourceClient",
    "load_cluster_config",
]
