from typing import Optional

from pydantic import BaseModel

from memwatch.core.utils import bytes_to_mb


class NodeCapacity(BaseModel):
    """Allocatable memory of one node, as listed by the core API."""
    name: str
    memory_bytes: Optional[int] = None


class NodeUsage(BaseModel):
    """Live memory usage of one node, as listed by metrics-server."""
    name: str
    memory_bytes: Optional[int] = None


class NodeSample(BaseModel):
    """Per-node availability for a single sampling pass."""
    identity: str
    total_memory_bytes: int
    # total - used; negative when the node is overcommitted
    available_memory_bytes: int

    @property
    def available_memory_mb(self) -> int:
        return bytes_to_mb(self.available_memory_bytes)


class MemoryTotals(BaseModel):
    """Cluster-wide rollup for the totals row shape."""
    total_memory_bytes: int
    reserve_mem_bytes: int
