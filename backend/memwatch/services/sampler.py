from typing import Dict, List

from memwatch.core.logging import cluster_logger
from memwatch.schemas.node_memory import NodeSample, NodeUsage
from memwatch.services.cluster_client import ClusterClient


class NodeAvailabilitySampler:
    """Joins node capacity with node usage and derives available memory."""

    def __init__(self, cluster_client: ClusterClient):
        self.cluster_client = cluster_client

    def sample(self) -> List[NodeSample]:
        """
        Run one sampling pass.

        Nodes missing from the usage listing, or missing a memory figure on
        either side, are left out of the result without failing the pass.
        Output follows the capacity listing's order. Available memory is not
        clamped: a negative value means the node is overcommitted.

        Raises:
            UpstreamListError: if either listing cannot be fetched
        """
        usages = self.cluster_client.list_node_usage()
        capacities = self.cluster_client.list_node_capacity()

        usage_by_name: Dict[str, NodeUsage] = {}
        for usage in usages:
            usage_by_name.setdefault(usage.name, usage)

        samples = []
        for capacity in capacities:
            usage = usage_by_name.get(capacity.name)
            if usage is None:
                cluster_logger.debug(f"No usage metrics for node {capacity.name}, skipping")
                continue

            if capacity.memory_bytes is None or usage.memory_bytes is None:
                cluster_logger.warning(
                    f"Node {capacity.name} is missing a memory figure "
                    f"(allocatable={capacity.memory_bytes}, used={usage.memory_bytes}), skipping"
                )
                continue

            samples.append(
                NodeSample(
                    identity=capacity.name,
                    total_memory_bytes=capacity.memory_bytes,
                    available_memory_bytes=capacity.memory_bytes - usage.memory_bytes,
                )
            )

        cluster_logger.debug(
            f"Sampled {len(samples)} of {len(capacities)} nodes "
            f"({len(usages)} usage records)"
        )
        return samples
