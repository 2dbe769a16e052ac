"""
Thin accessor over the two Kubernetes listings the sampler joins:
node allocatable memory from the core API and node memory usage from
metrics-server (metrics.k8s.io/v1beta1).
"""
from typing import Any, List, Optional, Tuple

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.utils import parse_quantity

from memwatch.core.config import Settings
from memwatch.core.exceptions import ClusterClientError, UpstreamListError
from memwatch.core.logging import cluster_logger
from memwatch.schemas.node_memory import NodeCapacity, NodeUsage

METRICS_GROUP = "metrics.k8s.io"
METRICS_VERSION = "v1beta1"


def _memory_bytes(node_name: str, quantity: Any) -> Optional[int]:
    """Convert a Kubernetes memory quantity ("16Gi", "812344Ki") to bytes."""
    if quantity is None:
        return None
    try:
        return int(parse_quantity(quantity))
    except ValueError as e:
        cluster_logger.warning(
            f"Unparsable memory quantity {quantity!r} on node {node_name}: {e}"
        )
        return None


class ClusterClient:
    """Lists node capacity and node usage records."""

    def __init__(
        self,
        core_api: k8s_client.CoreV1Api,
        custom_api: k8s_client.CustomObjectsApi,
        request_timeout: Optional[float] = None,
    ):
        self.core_api = core_api
        self.custom_api = custom_api
        self.request_timeout = request_timeout

    def list_node_capacity(self) -> List[NodeCapacity]:
        try:
            nodes = self.core_api.list_node(_request_timeout=self.request_timeout)
        except Exception as e:
            raise UpstreamListError("nodes", str(e)) from e

        capacities = []
        for node in nodes.items:
            name = node.metadata.name
            allocatable = (node.status.allocatable if node.status else None) or {}
            capacities.append(
                NodeCapacity(name=name, memory_bytes=_memory_bytes(name, allocatable.get("memory")))
            )
        return capacities

    def list_node_usage(self) -> List[NodeUsage]:
        try:
            result = self.custom_api.list_cluster_custom_object(
                group=METRICS_GROUP,
                version=METRICS_VERSION,
                plural="nodes",
                _request_timeout=self.request_timeout,
            )
        except Exception as e:
            raise UpstreamListError("node metrics", str(e)) from e

        usages = []
        for item in result.get("items", []):
            name = item["metadata"]["name"]
            usage = item.get("usage") or {}
            usages.append(
                NodeUsage(name=name, memory_bytes=_memory_bytes(name, usage.get("memory")))
            )
        return usages


def load_kube_api_clients(settings: Settings) -> Tuple[k8s_client.CoreV1Api, k8s_client.CustomObjectsApi]:
    """
    Build the core and custom-objects API clients.

    In-cluster service account credentials are tried first, then the local
    kubeconfig for development.

    Raises:
        ClusterClientError: if neither configuration can be loaded
    """
    try:
        k8s_config.load_incluster_config()
        cluster_logger.info("Loaded in-cluster Kubernetes config")
    except k8s_config.ConfigException:
        try:
            k8s_config.load_kube_config(config_file=settings.KUBECONFIG)
            cluster_logger.info("Loaded kubeconfig")
        except Exception as e:
            raise ClusterClientError(f"no Kubernetes config available: {e}") from e

    try:
        return k8s_client.CoreV1Api(), k8s_client.CustomObjectsApi()
    except Exception as e:
        raise ClusterClientError(f"failed to create Kubernetes clients: {e}") from e


def create_cluster_client(settings: Settings, core_api=None, custom_api=None) -> ClusterClient:
    if core_api is None or custom_api is None:
        core_api, custom_api = load_kube_api_clients(settings)
    return ClusterClient(core_api, custom_api, request_timeout=settings.KUBE_REQUEST_TIMEOUT)
