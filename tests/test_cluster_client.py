from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from kubernetes.client.rest import ApiException

from memwatch.core.config import Settings
from memwatch.core.exceptions import UpstreamListError
from memwatch.services.cluster_client import ClusterClient, create_cluster_client


def node(name, allocatable):
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name),
        status=SimpleNamespace(allocatable=allocatable),
    )


def node_metrics(name, memory):
    item = {"metadata": {"name": name}, "usage": {"cpu": "250m"}}
    if memory is not None:
        item["usage"]["memory"] = memory
    return item


@pytest.fixture
def apis():
    core_api = MagicMock()
    custom_api = MagicMock()
    core_api.list_node.return_value = SimpleNamespace(items=[
        node("n1", {"cpu": "4", "memory": "16Gi"}),
        node("n2", {"cpu": "2"}),
        node("n3", {"memory": "lots"}),
    ])
    custom_api.list_cluster_custom_object.return_value = {
        "items": [
            node_metrics("n1", "812344Ki"),
            node_metrics("n2", None),
        ]
    }
    return core_api, custom_api


class TestClusterClient:

    def test_list_node_capacity_converts_quantities(self, apis):
        core_api, custom_api = apis
        capacities = ClusterClient(core_api, custom_api, request_timeout=5).list_node_capacity()

        assert [c.name for c in capacities] == ["n1", "n2", "n3"]
        assert capacities[0].memory_bytes == 16 * 1024 ** 3
        assert capacities[1].memory_bytes is None
        assert capacities[2].memory_bytes is None
        core_api.list_node.assert_called_once_with(_request_timeout=5)

    def test_list_node_usage_queries_metrics_api(self, apis):
        core_api, custom_api = apis
        usages = ClusterClient(core_api, custom_api).list_node_usage()

        assert [(u.name, u.memory_bytes) for u in usages] == [
            ("n1", 812344 * 1024),
            ("n2", None),
        ]
        custom_api.list_cluster_custom_object.assert_called_once_with(
            group="metrics.k8s.io",
            version="v1beta1",
            plural="nodes",
            _request_timeout=None,
        )

    def test_node_listing_failure(self, apis):
        core_api, custom_api = apis
        core_api.list_node.side_effect = ApiException(status=403, reason="Forbidden")

        with pytest.raises(UpstreamListError, match="error getting nodes"):
            ClusterClient(core_api, custom_api).list_node_capacity()

    def test_metrics_listing_failure(self, apis):
        core_api, custom_api = apis
        custom_api.list_cluster_custom_object.side_effect = ApiException(status=503)

        with pytest.raises(UpstreamListError, match="error getting node metrics"):
            ClusterClient(core_api, custom_api).list_node_usage()

    def test_create_cluster_client_uses_given_apis(self, apis):
        core_api, custom_api = apis
        client = create_cluster_client(
            Settings(KUBE_REQUEST_TIMEOUT=3), core_api=core_api, custom_api=custom_api
        )

        assert client.core_api is core_api
        assert client.request_timeout == 3
